"""
Jacobi Method for Linear Systems
================================

Richardson iteration with P = diag(A), written componentwise:

    x_i^(k+1) = (b_i - Σ_{j≠i} A_ij x_j^(k)) / A_ii

Only old values x^(k) appear on the right-hand side; the new iterate is
assembled in a separate vector and replaces the old one after the sweep.
"""

from typing import Optional, Tuple
import numpy as np

from .base import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
    IterativeSolver,
    SolverResult,
    Trajectory,
)
from .convergence import ConvergenceMonitor, residual
from .preconditioners import check_diagonal


class JacobiSolver(IterativeSolver):
    """Jacobi iteration (out-of-place sweep)."""

    requires_entries = True

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.name = "Jacobi"

    def _solve_impl(self,
                    A: np.ndarray,
                    b: np.ndarray,
                    x: np.ndarray,
                    monitor: ConvergenceMonitor,
                    trajectory: Optional[Trajectory]) -> Tuple[np.ndarray, int]:
        check_diagonal(np.diag(A), self.name)
        n = len(b)

        iteration = 0
        for _ in range(self.max_iterations):
            x_new = np.empty(n)
            for i in range(n):
                sigma = np.dot(A[i, :i], x[:i]) + np.dot(A[i, i+1:], x[i+1:])
                x_new[i] = (b[i] - sigma) / A[i, i]

            x = x_new
            iteration += 1
            if trajectory is not None:
                trajectory.add_iterate(x)

            converged = monitor.update(residual(A, b, x))
            self._log(iteration, monitor.last)
            if converged:
                break

        return x, iteration


def jacobi(A,
           b: np.ndarray,
           x0: Optional[np.ndarray] = None,
           tol: float = DEFAULT_TOLERANCE,
           maxiter: int = DEFAULT_MAX_ITERATIONS,
           **options) -> SolverResult:
    """Solve A @ x = b with the Jacobi method."""
    return JacobiSolver(tolerance=tol, max_iterations=maxiter, **options).solve(A, b, x0)
