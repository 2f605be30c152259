"""
Iterative Solvers for Linear Systems
====================================

Iterative methods for solving

    A x = b

sharing one stopping criterion ||b - A x|| / ||b|| < tol and one result
type carrying the final iterate and the convergence history.

Solvers:
- Richardson iteration (any preconditioner P)
- Jacobi (P = diag(A))
- Gauss-Seidel (P = tril(A))
- Steepest Descent (SPD A, optional preconditioner)
- Conjugate Gradient (SPD A, optional preconditioner)
"""

import logging

from .base import IterativeSolver, SolverResult
from .richardson import RichardsonSolver, richardson
from .jacobi import JacobiSolver, jacobi
from .gauss_seidel import GaussSeidelSolver, gauss_seidel
from .steepest_descent import SteepestDescentSolver, steepest_descent
from .conjugate_gradient import ConjugateGradientSolver, conjugate_gradient
from .preconditioners import (
    DiagonalPreconditioner,
    IdentityPreconditioner,
    LowerTriangularPreconditioner,
    MatrixPreconditioner,
    Preconditioner,
    SSORPreconditioner,
)
from .errors import (
    ConvergenceError,
    DegenerateSystemError,
    DimensionMismatchError,
    IterativeSolverError,
    NotPositiveDefiniteError,
    SingularPreconditionerError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'IterativeSolver',
    'SolverResult',
    'RichardsonSolver',
    'JacobiSolver',
    'GaussSeidelSolver',
    'SteepestDescentSolver',
    'ConjugateGradientSolver',
    'richardson',
    'jacobi',
    'gauss_seidel',
    'steepest_descent',
    'conjugate_gradient',
    'Preconditioner',
    'IdentityPreconditioner',
    'DiagonalPreconditioner',
    'LowerTriangularPreconditioner',
    'SSORPreconditioner',
    'MatrixPreconditioner',
    'IterativeSolverError',
    'DimensionMismatchError',
    'SingularPreconditionerError',
    'NotPositiveDefiniteError',
    'DegenerateSystemError',
    'ConvergenceError',
]
