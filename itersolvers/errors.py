"""
Exceptions raised by the iterative solvers.

Running out of iterations is not an error by default; see
``IterativeSolver(raise_on_maxiter=True)`` for the strict variant.
"""

import numpy as np


class IterativeSolverError(Exception):
    """Base class for all solver errors."""


class DimensionMismatchError(IterativeSolverError, ValueError):
    """A is not square, or b / x0 do not match its dimension."""


class SingularPreconditionerError(IterativeSolverError, np.linalg.LinAlgError):
    """The preconditioner P cannot be inverted (e.g. zero diagonal entry)."""


class NotPositiveDefiniteError(IterativeSolverError, np.linalg.LinAlgError):
    """A non-positive curvature z^T A z was met during a descent step."""


class DegenerateSystemError(IterativeSolverError, ValueError):
    """The relative residual ||r|| / ||b|| is undefined because ||b|| = 0."""


class ConvergenceError(IterativeSolverError):
    """
    Tolerance not reached within the iteration limit.

    Only raised when requested. The partial result is kept on ``result``.
    """

    def __init__(self, message, result=None):
        super().__init__(message)
        self.result = result
