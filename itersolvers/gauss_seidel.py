"""
Gauss-Seidel Method for Linear Systems
======================================

Richardson iteration with P = tril(A) (diagonal included). Forward
substitution gives, for i = 1..n,

    x_i^(k+1) = (b_i - Σ_{j<i} A_ij x_j^(k+1) - Σ_{j>i} A_ij x_j^(k)) / A_ii

Components already updated in the current sweep are used immediately.
This is the only difference to Jacobi, and it is what makes Gauss-Seidel
converge faster on diagonally dominant systems.
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


class GaussSeidelSolver(IterativeSolver):
    """Gauss-Seidel iteration (in-place sweep)."""

    requires_entries = True

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.name = "Gauss-Seidel"

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
            # x[:i] already holds the new values when row i is processed
            for i in range(n):
                sigma = np.dot(A[i, :i], x[:i]) + np.dot(A[i, i+1:], x[i+1:])
                x[i] = (b[i] - sigma) / A[i, i]

            iteration += 1
            if trajectory is not None:
                trajectory.add_iterate(x)

            converged = monitor.update(residual(A, b, x))
            self._log(iteration, monitor.last)
            if converged:
                break

        return x, iteration


def gauss_seidel(A,
                 b: np.ndarray,
                 x0: Optional[np.ndarray] = None,
                 tol: float = DEFAULT_TOLERANCE,
                 maxiter: int = DEFAULT_MAX_ITERATIONS,
                 **options) -> SolverResult:
    """Solve A @ x = b with the Gauss-Seidel method."""
    return GaussSeidelSolver(tolerance=tol, max_iterations=maxiter, **options).solve(A, b, x0)
