"""
Conjugate Gradient Solver for Linear Systems
============================================

Solves A @ x = b using the (preconditioned) Conjugate Gradient method.

For symmetric positive definite A, CG converges in at most n iterations
(in exact arithmetic) and typically much faster for well-conditioned systems.
In floating point the search directions slowly lose A-orthogonality, so the
n-step guarantee degrades, but convergence remains linear with rate
(√κ - 1)/(√κ + 1), compared to (κ - 1)/(κ + 1) for steepest descent.

The method generates A-conjugate search directions that span the Krylov subspace:
    K_k(A, r_0) = span{r_0, A r_0, A^2 r_0, ..., A^{k-1} r_0}

With a preconditioner P (symmetric positive definite) the same recurrences
run on z = P^{-1} r; P = I recovers plain CG.

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


class ConjugateGradientSolver(PreconditionedSolver):
    """
    Conjugate Gradient solver for SPD linear systems.

    Key properties:
    - Generates A-conjugate search directions
    - Optimal in Krylov subspace at each iteration
    - Convergence in at most n iterations (exact arithmetic)
    - Convergence rate: O(sqrt(κ(A))) vs O(κ(A)) for steepest descent
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.preconditioner is None:
            self.name = "Conjugate Gradient"
        else:
            self.name = f"PCG ({self.preconditioner_name})"

    def _solve_impl(self,
                    A,
                    b: np.ndarray,
                    x: np.ndarray,
                    monitor: ConvergenceMonitor,
                    trajectory: Optional[Trajectory]) -> Tuple[np.ndarray, int]:
        """
        Solve using Conjugate Gradient method.

        Algorithm (with preconditioner P, z = r when P = I):
        1. r = b - A @ x,  z = P^{-1} r,  p = z
        2. For each iteration:
           a. α = (r^T z) / (p^T A p)
           b. x = x + α * p
           c. r_new = r - α * A @ p
           d. z_new = P^{-1} r_new
           e. β = (r_new^T z_new) / (r^T z)
           f. p = z_new + β * p
        """
        P = self._build_preconditioner(A)

        r = residual(A, b, x)
        z = P.solve(r)
        p = z.copy()  # Search direction
        rTz = np.dot(r, z)

        iteration = 0
        for _ in range(self.max_iterations):
            converged = monitor.update(r)
            self._log(iteration, monitor.last)
            if converged:
                break

            if trajectory is not None:
                trajectory.add_direction(p)

            # Step size: α = (r^T z) / (p^T A p)
            Ap = A @ p
            pTAp = np.dot(p, Ap)
            if not pTAp > 0:
                raise NotPositiveDefiniteError(
                    f"{self.name}: p^T A p = {pTAp:.3e} <= 0 at iteration "
                    f"{iteration}; A is not positive definite")

            alpha = rTz / pTAp

            # Update solution and residual
            x = x + alpha * p
            r = r - alpha * Ap

            iteration += 1
            if trajectory is not None:
                trajectory.add_iterate(x)

            # Conjugate direction coefficient: β = (r_new^T z_new) / (r^T z)
            z = P.solve(r)
            rTz_new = np.dot(r, z)
            beta = rTz_new / rTz

            p = z + beta * p
            rTz = rTz_new

        return x, iteration


def conjugate_gradient(A,
                       b: np.ndarray,
                       P=None,
                       x0: Optional[np.ndarray] = None,
                       tol: float = DEFAULT_TOLERANCE,
                       maxiter: int = DEFAULT_MAX_ITERATIONS,
                       **options) -> SolverResult:
    """Solve SPD A @ x = b with (preconditioned) conjugate gradients."""
    solver = ConjugateGradientSolver(P, tolerance=tol, max_iterations=maxiter, **options)
    return solver.solve(A, b, x0)
