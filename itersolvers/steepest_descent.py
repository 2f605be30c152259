"""
Steepest Descent Solver for Linear Systems
==========================================

For symmetric positive definite A, solving A @ x = b is equivalent to
minimising the energy

    φ(x) = ½ x^T A x - x^T b

whose negative gradient is the residual r = b - A x. Steepest descent
steps along the (preconditioned) residual z = P^{-1} r with the exact
line-search step size

    α = (z^T r) / (z^T A z)

and converges from any starting point with linear rate (κ - 1)/(κ + 1),
κ the condition number of A (of P^{-1} A when preconditioned).

Reference: Shewchuk, "An Introduction to the Conjugate Gradient Method
Without the Agonizing Pain", 1994.
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
from .errors import NotPositiveDefiniteError


class SteepestDescentSolver(PreconditionedSolver):
    """
    (Preconditioned) steepest descent solver for SPD linear systems.

    Uses optimal step size for quadratic minimization.
    Convergence rate depends on condition number κ(A).
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.preconditioner is None:
            self.name = "Steepest Descent"
        else:
            self.name = f"Steepest Descent ({self.preconditioner_name})"

    def _solve_impl(self,
                    A,
                    b: np.ndarray,
                    x: np.ndarray,
                    monitor: ConvergenceMonitor,
                    trajectory: Optional[Trajectory]) -> Tuple[np.ndarray, int]:
        """
        Solve using steepest descent with optimal step size.

        Algorithm:
        1. r = b - A @ x
        2. z = P^{-1} r
        3. w = A @ z
        4. α = (z^T r) / (z^T w)
        5. x = x + α * z
        6. r = r - α * w   (no second matrix-vector product)
        """
        P = self._build_preconditioner(A)
        r = residual(A, b, x)

        iteration = 0
        for _ in range(self.max_iterations):
            converged = monitor.update(r)
            self._log(iteration, monitor.last)
            if converged:
                break

            z = P.solve(r)
            w = A @ z

            zTw = np.dot(z, w)
            if not zTw > 0:
                raise NotPositiveDefiniteError(
                    f"{self.name}: z^T A z = {zTw:.3e} <= 0 at iteration "
                    f"{iteration}; A (or P^{{-1}} A) is not positive definite")

            alpha = np.dot(z, r) / zTw

            # Update solution
            x = x + alpha * z

            # Update residual: r_new = r - α * A @ z
            r = r - alpha * w

            iteration += 1
            if trajectory is not None:
                trajectory.add_iterate(x)

        return x, iteration


def steepest_descent(A,
                     b: np.ndarray,
                     P=None,
                     x0: Optional[np.ndarray] = None,
                     tol: float = DEFAULT_TOLERANCE,
                     maxiter: int = DEFAULT_MAX_ITERATIONS,
                     **options) -> SolverResult:
    """Solve SPD A @ x = b with (preconditioned) steepest descent."""
    solver = SteepestDescentSolver(P, tolerance=tol, max_iterations=maxiter, **options)
    return solver.solve(A, b, x0)
