"""
Coercion of the system matrix and vectors.

Solvers only need ``A @ x``. Dense arrays, ``scipy.sparse`` matrices and
``scipy.sparse.linalg.LinearOperator`` instances all provide it. Methods that
work componentwise (Jacobi, Gauss-Seidel, preconditioners built from A) need
the matrix entries and go through ``dense_entries``.
"""

from typing import Optional
import numpy as np
from scipy import sparse
from scipy.sparse.linalg import LinearOperator

from .errors import DimensionMismatchError


def as_operator(A):
    """Return ``A`` in a form supporting ``A @ x`` and ``A.shape``."""
    if isinstance(A, LinearOperator):
        op = A
    elif sparse.issparse(A):
        op = sparse.csr_matrix(A, dtype=np.float64)
    else:
        op = np.asarray(A, dtype=np.float64)

    if len(op.shape) != 2 or op.shape[0] != op.shape[1]:
        raise DimensionMismatchError(f"A must be square, got shape {op.shape}")
    return op


def dense_entries(A) -> np.ndarray:
    """Explicit entries of ``A`` as a dense float64 array."""
    if isinstance(A, LinearOperator):
        raise TypeError("This method needs the matrix entries of A; "
                        "a matrix-free LinearOperator is not enough")
    if sparse.issparse(A):
        return A.toarray().astype(np.float64)
    return np.asarray(A, dtype=np.float64)


def as_vector(v, n: int, name: str) -> np.ndarray:
    """Flatten ``v`` into a fresh float64 vector of length ``n``."""
    vec = np.array(v, dtype=np.float64).flatten()
    if vec.shape[0] != n:
        raise DimensionMismatchError(
            f"{name} has length {vec.shape[0]}, expected {n} to match A")
    return vec


def initial_guess(x0: Optional[np.ndarray], n: int) -> np.ndarray:
    """Copy of ``x0``, or the zero vector if not given."""
    if x0 is None:
        return np.zeros(n, dtype=np.float64)
    return as_vector(x0, n, 'x0')
