"""
Residual and Convergence Check
==============================

Stopping criterion shared by all solvers:

    ||b - A x|| / ||b|| < tol

The criterion controls the relative residual, not the error. The relative
error is only bounded through the condition number,

    ||x* - x|| / ||x*|| <= κ(A) * ||b - A x|| / ||b||,

so on ill-conditioned systems a small residual does not imply an accurate
solution.
"""

from typing import List, Tuple
import numpy as np

from .errors import DegenerateSystemError


ZERO_RHS_POLICIES = ('absolute', 'raise')


def residual(A, b: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Residual r = b - A @ x."""
    return b - A @ x


def relative_residual_norm(r: np.ndarray, b_norm: float) -> float:
    """||r|| / ||b||, or ||r|| when ||b|| = 0."""
    r_norm = float(np.linalg.norm(r))
    if b_norm == 0.0:
        return r_norm
    return r_norm / b_norm


def check_convergence(A, b: np.ndarray, x: np.ndarray,
                      tol: float) -> Tuple[bool, float]:
    """
    Compute the relative residual of ``x`` and compare it against ``tol``.

    Returns
    -------
    tuple
        (converged, relnorm)
    """
    relnorm = relative_residual_norm(residual(A, b, x), float(np.linalg.norm(b)))
    return relnorm < tol, relnorm


class ConvergenceMonitor:
    """
    Records the convergence history of one solve.

    Every call to ``update`` appends exactly one entry, whether or not the
    tolerance has been reached, so the history has one entry per iteration
    attempted including the terminal one.

    Parameters
    ----------
    b : np.ndarray
        Right-hand side of the system.
    tol : float
        Relative residual threshold (strict comparison).
    zero_rhs : str
        What to do when ||b|| = 0: 'absolute' measures ||r|| instead,
        'raise' refuses with DegenerateSystemError.
    """

    def __init__(self, b: np.ndarray, tol: float, zero_rhs: str = 'absolute'):
        if zero_rhs not in ZERO_RHS_POLICIES:
            raise ValueError(f"Unknown zero_rhs policy: {zero_rhs}. "
                             f"Available: {list(ZERO_RHS_POLICIES)}")
        self.b_norm = float(np.linalg.norm(b))
        if self.b_norm == 0.0 and zero_rhs == 'raise':
            raise DegenerateSystemError(
                "||b|| = 0: relative residual ||r||/||b|| is undefined")
        self.tol = tol
        self.history: List[float] = []

    @property
    def absolute(self) -> bool:
        """True when the history holds absolute instead of relative norms."""
        return self.b_norm == 0.0

    def update(self, r: np.ndarray) -> bool:
        """Record the norm of residual ``r`` and report convergence."""
        relnorm = relative_residual_norm(r, self.b_norm)
        self.history.append(relnorm)
        return relnorm < self.tol

    def accepts(self, r: np.ndarray) -> bool:
        """Test residual ``r`` against the tolerance without recording it."""
        return relative_residual_norm(r, self.b_norm) < self.tol

    @property
    def converged(self) -> bool:
        return bool(self.history) and self.history[-1] < self.tol

    @property
    def last(self) -> float:
        return self.history[-1] if self.history else float('nan')
