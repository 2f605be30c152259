"""
Richardson Iteration for Linear Systems
=======================================

Solves A @ x = b by the preconditioned fixed-point iteration

    x^(k+1) = x^(k) + P^{-1} (b - A x^(k))

The map is affine in x, so the error obeys exactly

    e^(k+1) = (I - P^{-1} A) e^(k)

and the iteration converges linearly with rate ||I - P^{-1} A|| from any
initial guess whenever that norm is below 1. Jacobi (P = diag(A)) and
Gauss-Seidel (P = tril(A)) are the classic instances.
"""

from typing import Optional, Tuple
import numpy as np

from .base import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
    PreconditionedSolver,
    SolverResult,
    Trajectory,
)
from .convergence import ConvergenceMonitor, residual


class RichardsonSolver(PreconditionedSolver):
    """
    Preconditioned Richardson iteration.

    Works for any A for which the chosen P makes I - P^{-1} A contractive;
    symmetry or definiteness of A is not required.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.name = f"Richardson ({self.preconditioner_name})"

    def _solve_impl(self,
                    A,
                    b: np.ndarray,
                    x: np.ndarray,
                    monitor: ConvergenceMonitor,
                    trajectory: Optional[Trajectory]) -> Tuple[np.ndarray, int]:
        """
        Algorithm:
        1. r = b - A @ x
        2. stop if ||r|| / ||b|| < tol
        3. solve P u = r
        4. x = x + u
        """
        P = self._build_preconditioner(A)

        iteration = 0
        for _ in range(self.max_iterations):
            r = residual(A, b, x)

            converged = monitor.update(r)
            self._log(iteration, monitor.last)
            if converged:
                break

            u = P.solve(r)
            x = x + u
            iteration += 1

            if trajectory is not None:
                trajectory.add_iterate(x)

        return x, iteration


def richardson(A,
               b: np.ndarray,
               P=None,
               x0: Optional[np.ndarray] = None,
               tol: float = DEFAULT_TOLERANCE,
               maxiter: int = DEFAULT_MAX_ITERATIONS,
               **options) -> SolverResult:
    """
    Solve A @ x = b with preconditioned Richardson iteration.

    ``P`` is None (identity), a preconditioner name, an object with
    ``solve(r)`` or an invertible matrix. Remaining keyword options are
    passed to ``RichardsonSolver``.
    """
    solver = RichardsonSolver(P, tolerance=tol, max_iterations=maxiter, **options)
    return solver.solve(A, b, x0)
