"""Steepest descent and conjugate gradients."""
from __future__ import annotations

import numpy as np
import pytest
from scipy import sparse
from scipy.sparse.linalg import aslinearoperator

from itersolvers import (
    ConjugateGradientSolver,
    SteepestDescentSolver,
    conjugate_gradient,
    steepest_descent,
)
from itersolvers.diagnostics import conjugacy_loss, energy


@pytest.mark.parametrize("n", [5, 12, 25])
def test_cg_terminates_within_n_iterations(rng, n):
    M = rng.standard_normal((n, n))
    A = M @ M.T + n * np.eye(n)
    b = rng.standard_normal(n)

    result = conjugate_gradient(A, b, tol=1e-10, maxiter=n)
    assert result.converged
    assert result.iterations <= n
    assert np.linalg.norm(b - A @ result.x) / np.linalg.norm(b) < 1e-9


@pytest.mark.parametrize("solve", [steepest_descent, conjugate_gradient])
def test_energy_is_non_increasing(spd_system, solve):
    A, b = spd_system
    result = solve(A, b, tol=1e-10, maxiter=200, store_iterates=True)
    energies = np.array([energy(A, b, x) for x in result.iterates])
    scale = max(1.0, np.abs(energies).max())
    assert np.all(np.diff(energies) <= 1e-12 * scale)


def test_cg_faster_than_steepest_descent(spd_system):
    A, b = spd_system
    sd = steepest_descent(A, b, tol=1e-8, maxiter=1000)
    cg = conjugate_gradient(A, b, tol=1e-8, maxiter=1000)
    assert sd.converged and cg.converged
    assert cg.iterations < sd.iterations


def test_cg_directions_are_conjugate(rng):
    n = 10
    M = rng.standard_normal((n, n))
    A = M @ M.T + n * np.eye(n)
    b = rng.standard_normal(n)

    result = conjugate_gradient(A, b, tol=1e-12, maxiter=n, store_iterates=True)
    assert result.directions is not None
    assert len(result.directions) == result.iterations
    assert max(conjugacy_loss(A, result.directions)) < 1e-6


@pytest.mark.parametrize("P", ['jacobi', 'ssor'])
def test_preconditioned_cg(spd_system, P):
    A, b = spd_system
    result = conjugate_gradient(A, b, P, tol=1e-10)
    assert result.converged
    assert result.solver_name == f"PCG ({P})"
    np.testing.assert_allclose(result.x, np.linalg.solve(A, b), rtol=1e-6, atol=1e-9)


def test_preconditioning_helps_badly_scaled_steepest_descent(rng):
    n = 20
    d = np.logspace(0, 3, n)
    M = rng.standard_normal((n, n))
    C = M @ M.T / n + np.eye(n)
    S = np.diag(np.sqrt(d))
    A = S @ C @ S
    b = rng.standard_normal(n)

    plain = steepest_descent(A, b, tol=1e-6, maxiter=2000)
    diagonal = steepest_descent(A, b, 'jacobi', tol=1e-6, maxiter=2000)
    assert diagonal.converged
    assert diagonal.iterations < plain.iterations


def test_steepest_descent_step_uses_preconditioned_residual():
    A = np.array([[4.0, 0.0], [0.0, 1.0]])
    b = np.array([4.0, 1.0])
    # P = A is the perfect preconditioner: one step reaches the solution
    result = steepest_descent(A, b, A, tol=1e-12)
    assert result.iterations == 1
    np.testing.assert_allclose(result.x, [1.0, 1.0])


@pytest.mark.parametrize("solver_cls", [SteepestDescentSolver, ConjugateGradientSolver])
def test_matrix_free_and_sparse_operators(spd_system, solver_cls):
    A, b = spd_system
    expected = np.linalg.solve(A, b)
    for op in (aslinearoperator(A), sparse.csr_matrix(A)):
        result = solver_cls(tolerance=1e-10, max_iterations=500).solve(op, b)
        assert result.converged
        np.testing.assert_allclose(result.x, expected, rtol=1e-6, atol=1e-9)


def test_cg_converged_on_final_update_at_maxiter():
    A = np.array([[10.0, 1.0], [1.0, 10.0]])
    b = np.array([11.0, 2.0])

    result = ConjugateGradientSolver(tolerance=1e-10, max_iterations=2,
                                     raise_on_maxiter=True).solve(A, b)
    assert len(result.history) == 2
    assert result.iterations == 2
    assert result.converged
    assert result.final_residual_norm < 1e-10 * np.linalg.norm(b)
    np.testing.assert_allclose(result.x, np.linalg.solve(A, b))
