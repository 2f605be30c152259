"""
Base class for iterative solvers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import logging
import time

import numpy as np

from .convergence import ConvergenceMonitor, ZERO_RHS_POLICIES, residual
from .errors import ConvergenceError, DimensionMismatchError
from .operators import as_operator, as_vector, dense_entries, initial_guess
from .preconditioners import (
    PRECONDITIONERS,
    Preconditioner,
    build_preconditioner,
    check_params,
    preconditioner_name,
)

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

# Relative residual threshold ||b - Ax|| / ||b|| < tol
DEFAULT_TOLERANCE = 1e-6

# Hard cap on the number of iterations attempted
DEFAULT_MAX_ITERATIONS = 100

# Behaviour for ||b|| = 0: 'absolute' or 'raise'
DEFAULT_ZERO_RHS = 'absolute'


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class SolverResult:
    """
    Container for solver results and diagnostics.

    ``relative_residual`` is the last history entry. ``converged`` also holds
    when the loop ran out of iterations but the returned iterate, measured
    once more, meets the tolerance.
    """
    x: np.ndarray
    history: List[float]
    converged: bool
    iterations: int
    elapsed_time: float
    solver_name: str

    # Additional diagnostics
    final_residual_norm: float = 0.0
    relative_residual: float = float('nan')
    iterates: Optional[List[np.ndarray]] = None
    directions: Optional[List[np.ndarray]] = None

    def __post_init__(self):
        if self.history:
            self.relative_residual = self.history[-1]

    def __iter__(self):
        # Allows ``x, history = solver.solve(A, b)``
        yield self.x
        yield self.history


@dataclass
class Trajectory:
    """Iterates (and CG search directions) recorded during one solve."""
    iterates: List[np.ndarray] = field(default_factory=list)
    directions: List[np.ndarray] = field(default_factory=list)

    def add_iterate(self, x: np.ndarray):
        self.iterates.append(x.copy())

    def add_direction(self, p: np.ndarray):
        self.directions.append(p.copy())


# =============================================================================
# SOLVERS
# =============================================================================

class IterativeSolver(ABC):
    """
    Abstract base class for iterative linear system solvers.

    Solves: A @ x = b

    All solvers share an identical interface and stopping criterion
    ||b - A x|| / ||b|| < tolerance. A solver instance only holds its
    configuration; every call to ``solve`` starts from fresh state.
    """

    # Componentwise methods need the explicit entries of A
    requires_entries = False

    def __init__(self,
                 tolerance: float = DEFAULT_TOLERANCE,
                 max_iterations: int = DEFAULT_MAX_ITERATIONS,
                 verbose: bool = False,
                 store_iterates: bool = False,
                 zero_rhs: str = DEFAULT_ZERO_RHS,
                 raise_on_maxiter: bool = False):
        """
        Initialize solver with convergence parameters.

        Parameters
        ----------
        tolerance : float
            Stopping criterion for the relative residual norm ||b - Ax|| / ||b||
        max_iterations : int
            Maximum number of iterations attempted
        verbose : bool
            Log the residual of every iteration at INFO level
        store_iterates : bool
            Keep the trajectory x^(0), x^(1), ... on the result
        zero_rhs : str
            Policy for ||b|| = 0: 'absolute' or 'raise'
        raise_on_maxiter : bool
            Raise ConvergenceError instead of returning when the
            tolerance is not met within max_iterations
        """
        if not tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        if int(max_iterations) != max_iterations or max_iterations < 1:
            raise ValueError(f"max_iterations must be a positive integer, got {max_iterations}")
        if zero_rhs not in ZERO_RHS_POLICIES:
            raise ValueError(f"Unknown zero_rhs policy: {zero_rhs}. "
                             f"Available: {list(ZERO_RHS_POLICIES)}")

        self.tolerance = tolerance
        self.max_iterations = int(max_iterations)
        self.verbose = verbose
        self.store_iterates = store_iterates
        self.zero_rhs = zero_rhs
        self.raise_on_maxiter = raise_on_maxiter
        self.name = "IterativeSolver"

    @abstractmethod
    def _solve_impl(self,
                    A,
                    b: np.ndarray,
                    x: np.ndarray,
                    monitor: ConvergenceMonitor,
                    trajectory: Optional[Trajectory]) -> Tuple[np.ndarray, int]:
        """
        Internal solve implementation.

        Parameters
        ----------
        A : operator
            System matrix (n x n); dense entries if ``requires_entries``
        b : np.ndarray
            Right-hand side vector (n,)
        x : np.ndarray
            Initial guess (n,), owned by this call
        monitor : ConvergenceMonitor
            Receives one residual per iteration attempted
        trajectory : Trajectory or None
            Receives iterates when recording is enabled

        Returns
        -------
        tuple
            (solution, number of updates applied to the iterate)
        """

    def _prepare_operator(self, A):
        A = as_operator(A)
        if self.requires_entries:
            return dense_entries(A)
        return A

    def solve(self,
              A,
              b: np.ndarray,
              x0: Optional[np.ndarray] = None) -> SolverResult:
        """
        Solve the linear system A @ x = b.

        Parameters
        ----------
        A : array_like, sparse matrix or LinearOperator
            Square system matrix (n x n)
        b : array_like
            Right-hand side vector (n,)
        x0 : array_like, optional
            Initial guess. If None, uses zero vector.

        Returns
        -------
        SolverResult
            Solution and convergence diagnostics

        Raises
        ------
        DimensionMismatchError
            A not square, or b / x0 of the wrong length.
        DegenerateSystemError
            ||b|| = 0 with ``zero_rhs='raise'``.
        ConvergenceError
            Tolerance not reached, only with ``raise_on_maxiter=True``.
        """
        A = self._prepare_operator(A)
        n = A.shape[0]
        b = as_vector(b, n, 'b')
        x = initial_guess(x0, n)

        monitor = ConvergenceMonitor(b, self.tolerance, self.zero_rhs)
        if monitor.absolute:
            logger.warning("%s: ||b|| = 0, measuring absolute residual ||r|| "
                           "instead of ||r||/||b||", self.name)

        trajectory = Trajectory() if self.store_iterates else None
        if trajectory is not None:
            trajectory.add_iterate(x)

        logger.debug("%s: solving n=%d, tol=%.1e, maxiter=%d",
                     self.name, n, self.tolerance, self.max_iterations)

        # Time the solve
        start_time = time.perf_counter()
        x, iterations = self._solve_impl(A, b, x, monitor, trajectory)
        elapsed_time = time.perf_counter() - start_time

        # Final residual, recomputed on the returned iterate
        r_final = residual(A, b, x)
        final_residual_norm = float(np.linalg.norm(r_final))

        # Measure-then-update loops that run out of iterations return an
        # iterate one update past history[-1]
        converged = monitor.converged or monitor.accepts(r_final)

        result = SolverResult(
            x=x,
            history=monitor.history,
            converged=converged,
            iterations=iterations,
            elapsed_time=elapsed_time,
            solver_name=self.name,
            final_residual_norm=final_residual_norm,
            iterates=trajectory.iterates if trajectory is not None else None,
            directions=(trajectory.directions or None) if trajectory is not None else None,
        )

        if result.converged:
            logger.debug("%s: converged in %d iterations, ||b - Ax|| = %.3e",
                         self.name, iterations, final_residual_norm)
        else:
            logger.warning("%s: no convergence after %d iterations, "
                           "||r||/||b|| = %.3e (tol %.1e)", self.name,
                           len(result.history), result.relative_residual,
                           self.tolerance)
            if self.raise_on_maxiter:
                raise ConvergenceError(
                    f"{self.name} did not reach tol={self.tolerance:.1e} "
                    f"within {self.max_iterations} iterations", result)

        return result

    def _log(self, iteration: int, relnorm: float):
        """Log iteration progress."""
        if self.verbose:
            logger.info("  %s iter %4d: ||r||/||b|| = %.6e", self.name, iteration, relnorm)


class PreconditionedSolver(IterativeSolver):
    """
    Iterative solver driven by a preconditioner P.

    The preconditioner is given as None (identity), a registry name built
    from A on every solve ('jacobi', 'gauss-seidel', 'ssor', ...), a ready
    object with ``solve(r)``, or an explicit matrix P.
    """

    def __init__(self,
                 preconditioner=None,
                 precond_params: Optional[dict] = None,
                 *args, **kwargs):
        """
        Parameters
        ----------
        preconditioner : None, str, Preconditioner or matrix
            Preconditioner: None, name, object or matrix
        precond_params : dict, optional
            Additional parameters for registry preconditioners (e.g. omega for SSOR)
        """
        super().__init__(*args, **kwargs)
        if isinstance(preconditioner, str) and preconditioner.lower() not in PRECONDITIONERS:
            raise ValueError(f"Unknown preconditioner: {preconditioner}. "
                             f"Available: {list(PRECONDITIONERS.keys())}")
        self.preconditioner = preconditioner
        self.precond_params = precond_params or {}
        check_params(preconditioner, self.precond_params)
        self.preconditioner_name = preconditioner_name(preconditioner)

    def _build_preconditioner(self, A) -> Preconditioner:
        """Build preconditioner for given matrix."""
        P = build_preconditioner(self.preconditioner, A, **self.precond_params)
        shape = getattr(P, 'shape', None)
        if shape is not None and tuple(shape) != tuple(A.shape):
            raise DimensionMismatchError(
                f"Preconditioner has shape {tuple(shape)}, A has shape {tuple(A.shape)}")
        return P
