"""
Preconditioners for Richardson-type Iterations
==============================================

A preconditioner P ≈ A enters the iteration only through solves

    P z = r

which must be cheap. Any object with a ``solve(r)`` method qualifies; the
classes below cover the cases used by the solvers:

- Identity:          P = I               (no preconditioning)
- Diagonal:          P = diag(A)         (Jacobi)
- Lower triangular:  P = tril(A)         (Gauss-Seidel)
- SSOR:              P = ω/(2-ω) (D/ω + L) D^{-1} (D/ω + U)   (symmetric)
- Matrix:            any invertible P, LU-factorised once

Preconditioners built from A are constructed once per solve and are
read-only afterwards.
"""

from typing import Callable, Dict, Protocol, runtime_checkable
import inspect

import numpy as np
from scipy import linalg, sparse
from scipy.sparse.linalg import splu

from .errors import SingularPreconditionerError
from .operators import dense_entries


@runtime_checkable
class Preconditioner(Protocol):
    """Anything that can solve P z = r for z."""

    def solve(self, r: np.ndarray) -> np.ndarray:
        ...


def check_diagonal(diagonal: np.ndarray, kind: str):
    """Raise SingularPreconditionerError if any diagonal entry is zero."""
    zeros = np.flatnonzero(diagonal == 0)
    if zeros.size:
        raise SingularPreconditionerError(
            f"{kind} preconditioner is singular: zero diagonal entry "
            f"at row(s) {zeros.tolist()}")


# =============================================================================
# PRECONDITIONERS
# =============================================================================

class IdentityPreconditioner:
    """P = I. Leaves the residual untouched."""

    def solve(self, r: np.ndarray) -> np.ndarray:
        return np.array(r, dtype=np.float64)

    @classmethod
    def from_matrix(cls, A) -> 'IdentityPreconditioner':
        return cls()


class DiagonalPreconditioner:
    """
    Jacobi preconditioner P = diag(A).

    P^{-1} r = r / diag(A). Effective when A is diagonally dominant.
    """

    def __init__(self, diagonal: np.ndarray):
        self.diagonal = np.asarray(diagonal, dtype=np.float64).flatten()
        check_diagonal(self.diagonal, 'Diagonal')

    @classmethod
    def from_matrix(cls, A) -> 'DiagonalPreconditioner':
        return cls(np.diag(dense_entries(A)))

    def solve(self, r: np.ndarray) -> np.ndarray:
        return r / self.diagonal


class LowerTriangularPreconditioner:
    """
    Gauss-Seidel preconditioner P = tril(A), diagonal included.

    Solves by forward substitution.
    """

    def __init__(self, lower: np.ndarray):
        self.lower = np.tril(np.asarray(lower, dtype=np.float64))
        check_diagonal(np.diag(self.lower), 'Lower triangular')

    @classmethod
    def from_matrix(cls, A) -> 'LowerTriangularPreconditioner':
        return cls(dense_entries(A))

    def solve(self, r: np.ndarray) -> np.ndarray:
        return linalg.solve_triangular(self.lower, r, lower=True)


class SSORPreconditioner:
    """
    Symmetric Successive Over-Relaxation preconditioner.

    M = ω/(2-ω) (D/ω + L) D^{-1} (D/ω + U)

    where D = diag(A), L / U the strict lower / upper triangles of A.
    For symmetric positive definite A, M is symmetric positive definite,
    which makes it usable with steepest descent and CG.
    ω = 1 gives symmetric Gauss-Seidel.

    Parameters
    ----------
    A : array_like
        System matrix
    omega : float
        Relaxation parameter (0 < ω < 2).
    """

    def __init__(self, A, omega: float = 1.0):
        if not 0.0 < omega < 2.0:
            raise ValueError(f"SSOR requires 0 < omega < 2, got {omega}")
        A = dense_entries(A)
        self.omega = omega
        self.D = np.diag(A).copy()
        check_diagonal(self.D, 'SSOR')

        D_omega = np.diag(self.D / omega)
        self.DL = D_omega + np.tril(A, -1)
        self.DU = D_omega + np.triu(A, 1)

    @classmethod
    def from_matrix(cls, A, omega: float = 1.0) -> 'SSORPreconditioner':
        return cls(A, omega=omega)

    def solve(self, r: np.ndarray) -> np.ndarray:
        # Forward solve: (D/ω + L) y = r
        y = linalg.solve_triangular(self.DL, r, lower=True)
        # Backward solve: (D/ω + U) x = D y
        x = linalg.solve_triangular(self.DU, self.D * y, lower=False)
        return (2.0 - self.omega) / self.omega * x


class MatrixPreconditioner:
    """
    General invertible preconditioner P, factorised once with LU.

    Dense P uses LAPACK (scipy.linalg.lu_factor), sparse P uses SuperLU.
    """

    def __init__(self, P):
        if sparse.issparse(P):
            try:
                self._lu = splu(sparse.csc_matrix(P, dtype=np.float64))
            except RuntimeError as exc:
                raise SingularPreconditionerError(
                    f"Preconditioner matrix is singular: {exc}") from exc
            self._solve = self._lu.solve
        else:
            P = np.asarray(P, dtype=np.float64)
            if P.ndim != 2 or P.shape[0] != P.shape[1]:
                raise ValueError(f"Preconditioner must be square, got shape {P.shape}")
            lu, piv = linalg.lu_factor(P, check_finite=True)
            if np.any(np.diag(lu) == 0):
                raise SingularPreconditionerError(
                    "Preconditioner matrix is singular (zero pivot in LU)")
            self._lu = (lu, piv)
            self._solve = lambda r: linalg.lu_solve((lu, piv), r)
        self.shape = P.shape

    def solve(self, r: np.ndarray) -> np.ndarray:
        return self._solve(r)


# Preconditioner registry
PRECONDITIONERS: Dict[str, Callable] = {
    'identity': IdentityPreconditioner.from_matrix,
    'jacobi': DiagonalPreconditioner.from_matrix,
    'diagonal': DiagonalPreconditioner.from_matrix,
    'gauss-seidel': LowerTriangularPreconditioner.from_matrix,
    'lower': LowerTriangularPreconditioner.from_matrix,
    'ssor': SSORPreconditioner.from_matrix,
}


def check_params(P, params: dict):
    """
    Reject parameters the preconditioner selected by ``P`` does not take.

    Only registry factories accept parameters; None counts as 'identity'.
    ``P`` must be None, a known registry name, a matrix or an object.
    """
    if not params:
        return
    if P is not None and not isinstance(P, str):
        raise ValueError(f"Preconditioner parameters {sorted(params)} only apply "
                         f"to registry names, not to {type(P).__name__}")

    key = 'identity' if P is None else P.lower()
    accepted = list(inspect.signature(PRECONDITIONERS[key]).parameters)[1:]
    unknown = sorted(set(params) - set(accepted))
    if unknown:
        raise ValueError(f"Preconditioner '{key}' does not accept {unknown}. "
                         f"Accepted: {accepted}")


def build_preconditioner(P, A, **params) -> Preconditioner:
    """
    Turn a preconditioner argument into an object with ``solve``.

    Parameters
    ----------
    P : None, str, Preconditioner or matrix
        None for the identity, a registry name (built from ``A``),
        a ready preconditioner, or an explicit matrix P.
    A : array_like
        System matrix, used when ``P`` is a registry name.
    params : dict
        Extra parameters for the registry factory (e.g. omega for SSOR).
    """
    if isinstance(P, str) and P.lower() not in PRECONDITIONERS:
        raise ValueError(f"Unknown preconditioner: {P}. "
                         f"Available: {list(PRECONDITIONERS.keys())}")
    check_params(P, params)

    if P is None:
        return IdentityPreconditioner()

    if isinstance(P, str):
        return PRECONDITIONERS[P.lower()](A, **params)

    if sparse.issparse(P) or isinstance(P, (np.ndarray, list, tuple)):
        return MatrixPreconditioner(P)

    if isinstance(P, Preconditioner):
        return P

    raise TypeError(f"Cannot use {type(P).__name__} as a preconditioner")


def preconditioner_name(P) -> str:
    """Short label for a preconditioner argument."""
    if P is None:
        return 'identity'
    if isinstance(P, str):
        return P.lower()
    if isinstance(P, Preconditioner) and not isinstance(P, MatrixPreconditioner):
        return type(P).__name__.replace('Preconditioner', '').lower() or 'custom'
    return 'matrix'
