"""
Numerical Diagnostics for Iterative Solvers
============================================

Quantities for judging solution quality and explaining convergence,
independently of which solver produced the iterate.

Metrics:
    1. Relative Residual Norm: ||b - Ax|| / ||b||
    2. Energy: φ(x) = ½ x^T A x - x^T b (minimised by x* for SPD A)
    3. A-norm Error: ||x - x*||_A = sqrt((x-x*)^T A (x-x*))
    4. Iteration matrix norm ||I - P^{-1} A|| (Richardson rate)
    5. Theoretical rates of steepest descent and CG from κ(A)
    6. Loss of Conjugacy: deviation from A-orthogonality of CG directions
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import numpy as np
import pandas as pd
from scipy import linalg

from .base import SolverResult
from .convergence import relative_residual_norm, residual
from .operators import dense_entries
from .preconditioners import build_preconditioner


# =============================================================================
# SOLUTION QUALITY
# =============================================================================

def reference_solution(A, b: np.ndarray) -> np.ndarray:
    """
    Reference solution from a direct solver.

    Uses scipy's direct solve which employs LAPACK routines for
    maximum numerical precision.
    """
    return linalg.solve(dense_entries(A), np.asarray(b, dtype=np.float64))


def relative_residual(A, b: np.ndarray, x: np.ndarray) -> float:
    """||b - A x|| / ||b||, or ||b - A x|| when ||b|| = 0."""
    b = np.asarray(b, dtype=np.float64)
    return relative_residual_norm(residual(A, b, x), float(np.linalg.norm(b)))


def energy(A, b: np.ndarray, x: np.ndarray) -> float:
    """Quadratic energy φ(x) = ½ x^T A x - x^T b."""
    x = np.asarray(x, dtype=np.float64)
    return float(0.5 * np.dot(x, A @ x) - np.dot(x, b))


def a_norm_error(A, x: np.ndarray, x_ref: np.ndarray) -> float:
    """
    Compute A-norm error: ||x - x*||_A = sqrt((x-x*)^T A (x-x*))

    The A-norm is the natural norm for the quadratic minimization problem.
    """
    diff = np.asarray(x, dtype=np.float64) - x_ref
    return float(np.sqrt(np.abs(np.dot(diff, A @ diff))))


# =============================================================================
# CONDITIONING AND RATES
# =============================================================================

def verify_spd(A, tol: float = 1e-10) -> Tuple[bool, float]:
    """
    Verify that matrix A is symmetric positive definite.

    Returns
    -------
    tuple
        (is_spd, min_eigenvalue)
    """
    A = dense_entries(A)

    # Check symmetry
    if not np.allclose(A, A.T, atol=tol):
        return False, 0.0

    # Check positive definiteness
    min_eig = float(np.linalg.eigvalsh(A).min())
    return min_eig > 0, min_eig


def condition_number(A) -> float:
    """2-norm condition number κ(A) = σ_max / σ_min."""
    A = dense_entries(A)
    if np.allclose(A, A.T):
        eigenvalues = np.abs(np.linalg.eigvalsh(A))
        return float(eigenvalues.max() / eigenvalues.min())
    return float(np.linalg.cond(A, 2))


def iteration_matrix(A, P=None) -> np.ndarray:
    """Richardson iteration matrix B = I - P^{-1} A."""
    A = dense_entries(A)
    precond = build_preconditioner(P, A)
    PinvA = np.column_stack([precond.solve(A[:, j]) for j in range(A.shape[1])])
    return np.eye(A.shape[0]) - PinvA


def iteration_matrix_norm(A, P=None) -> float:
    """
    ||B|| = sqrt(λ_max(B^T B)) for B = I - P^{-1} A.

    Richardson iteration with preconditioner P converges from any initial
    guess if this is below 1, with error ||x* - x^(k)|| <= ||B||^k ||x* - x^(0)||.
    """
    B = iteration_matrix(A, P)
    return float(np.sqrt(linalg.eigvalsh(B.T @ B).max()))


def steepest_descent_rate(kappa: float) -> float:
    """Linear convergence rate (κ - 1)/(κ + 1) of steepest descent."""
    return (kappa - 1.0) / (kappa + 1.0)


def conjugate_gradient_rate(kappa: float) -> float:
    """Linear convergence rate (√κ - 1)/(√κ + 1) of conjugate gradients."""
    root = np.sqrt(kappa)
    return float((root - 1.0) / (root + 1.0))


def observed_rates(history: Sequence[float]) -> np.ndarray:
    """Ratios history[k+1] / history[k] of successive residual norms."""
    h = np.asarray(history, dtype=np.float64)
    if h.size < 2:
        return np.empty(0)
    with np.errstate(divide='ignore', invalid='ignore'):
        return h[1:] / h[:-1]


def conjugacy_loss(A, directions: Sequence[np.ndarray]) -> List[float]:
    """
    Loss of conjugacy between consecutive CG search directions:

        |p_{k+1}^T A p_k| / (||p_{k+1}||_A ||p_k||_A)

    Exactly zero in exact arithmetic.
    """
    losses = []
    for d_old, d_new in zip(directions[:-1], directions[1:]):
        Ad_old = A @ d_old
        norm_A_new = np.sqrt(abs(np.dot(d_new, A @ d_new)))
        norm_A_old = np.sqrt(abs(np.dot(d_old, Ad_old)))

        if norm_A_new > 1e-15 and norm_A_old > 1e-15:
            losses.append(float(abs(np.dot(d_new, Ad_old)) / (norm_A_new * norm_A_old)))
    return losses


# =============================================================================
# TEST PROBLEMS
# =============================================================================

def diagonally_dominant_matrix(n: int, rng: np.random.Generator) -> np.ndarray:
    """Random matrix with large diagonal: randn(n, n) + diag(15 + 50 rand(n))."""
    return rng.standard_normal((n, n)) + np.diag(15.0 + 50.0 * rng.random(n))


def random_spd_matrix(n: int, rng: np.random.Generator) -> np.ndarray:
    """Random SPD matrix U diag(|σ|) U^T from the SVD of a Gaussian matrix."""
    U, sigma, _ = np.linalg.svd(rng.standard_normal((n, n)))
    return U @ np.diag(np.abs(sigma)) @ U.T


# =============================================================================
# TABULATION
# =============================================================================

def history_frame(results: Mapping[str, SolverResult]) -> pd.DataFrame:
    """
    Convergence histories side by side.

    One column per solver, indexed by iteration; shorter histories are
    padded with NaN.
    """
    columns: Dict[str, pd.Series] = {
        name: pd.Series(result.history, dtype=float)
        for name, result in results.items()
    }
    df = pd.DataFrame(columns)
    df.index.name = 'iteration'
    return df


def summary_frame(results: Mapping[str, SolverResult],
                  A=None,
                  x_ref: Optional[np.ndarray] = None) -> pd.DataFrame:
    """One row of convergence diagnostics per solver."""
    records = []
    for name, result in results.items():
        record = {
            'solver': name,
            'converged': result.converged,
            'iterations': result.iterations,
            'history_length': len(result.history),
            'relative_residual': result.relative_residual,
            'final_residual_norm': result.final_residual_norm,
            'wall_clock_time_ms': result.elapsed_time * 1000,
        }
        if x_ref is not None:
            err = np.linalg.norm(result.x - x_ref)
            record['two_norm_error'] = err
            record['relative_solution_error'] = err / np.linalg.norm(x_ref)
            if A is not None:
                record['a_norm_error'] = a_norm_error(A, result.x, x_ref)
        records.append(record)
    return pd.DataFrame(records)
