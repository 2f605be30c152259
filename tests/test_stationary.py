"""Richardson, Jacobi and Gauss-Seidel."""
from __future__ import annotations

import logging

import numpy as np
import pytest

from itersolvers import (
    GaussSeidelSolver,
    JacobiSolver,
    RichardsonSolver,
    gauss_seidel,
    jacobi,
    richardson,
)
from itersolvers.diagnostics import iteration_matrix_norm


def test_diagonal_system_converges_in_one_iteration(rng):
    d = np.array([2.0, 4.0, 5.0, 0.5])
    A = np.diag(d)
    b = rng.standard_normal(4)

    result = jacobi(A, b)
    assert result.iterations == 1
    assert len(result.history) == 1
    assert result.converged
    np.testing.assert_allclose(result.x, b / d)

    result = richardson(A, b, 'jacobi')
    assert result.iterations == 1
    assert result.converged
    np.testing.assert_allclose(result.x, b / d)


def test_richardson_error_contracts_with_iteration_matrix_norm(dominant_system):
    A, b = dominant_system
    rho = iteration_matrix_norm(A, 'jacobi')
    assert rho < 1

    x_star = np.linalg.solve(A, b)
    result = richardson(A, b, 'jacobi', tol=1e-12, store_iterates=True)
    errors = [np.linalg.norm(x_star - x) for x in result.iterates]

    for k, e_k in enumerate(errors):
        assert e_k <= rho ** k * errors[0] * (1 + 1e-8) + 1e-13
    for e_k, e_next in zip(errors[:-1], errors[1:]):
        if e_k > 1e-10 * np.linalg.norm(x_star):
            assert e_next / e_k <= rho + 1e-8


def test_richardson_without_preconditioner_diverges(dominant_system):
    A, b = dominant_system
    assert iteration_matrix_norm(A, None) > 1

    result = richardson(A, b, tol=1e-10, maxiter=20)
    assert not result.converged
    assert len(result.history) == 20
    assert result.history[-1] > result.history[0]


def test_richardson_accepts_explicit_matrix(dominant_system):
    A, b = dominant_system
    result = richardson(A, b, np.tril(A), tol=1e-10)
    assert result.converged
    np.testing.assert_allclose(result.x, np.linalg.solve(A, b), rtol=1e-6, atol=1e-10)


@pytest.mark.parametrize("name, solver_cls", [
    ('jacobi', JacobiSolver),
    ('gauss-seidel', GaussSeidelSolver),
])
def test_componentwise_sweeps_match_richardson(dominant_system, name, solver_cls):
    A, b = dominant_system
    maxiter = 5
    sweeps = solver_cls(tolerance=1e-300, max_iterations=maxiter,
                        store_iterates=True).solve(A, b)
    fixed_point = RichardsonSolver(name, tolerance=1e-300, max_iterations=maxiter,
                                   store_iterates=True).solve(A, b)

    assert len(sweeps.iterates) == len(fixed_point.iterates) == maxiter + 1
    for x_sweep, x_fixed in zip(sweeps.iterates, fixed_point.iterates):
        np.testing.assert_allclose(x_sweep, x_fixed, rtol=1e-10, atol=1e-14)


def test_gauss_seidel_uses_updated_components(scenario_system):
    A, b, _ = scenario_system
    np.testing.assert_allclose(jacobi(A, b, maxiter=1).x, [1.1, 1.1])
    np.testing.assert_allclose(gauss_seidel(A, b, maxiter=1).x, [1.1, 0.99])


def test_gauss_seidel_beats_jacobi_on_dominant_tridiagonal():
    n = 10
    A = 4.0 * np.eye(n) - np.eye(n, k=1) - np.eye(n, k=-1)
    b = np.ones(n)

    res_j = jacobi(A, b, tol=1e-10)
    res_gs = gauss_seidel(A, b, tol=1e-10)

    assert res_j.converged and res_gs.converged
    assert res_gs.iterations < res_j.iterations
    for k in range(2, len(res_gs.history)):
        assert res_gs.history[k] < res_j.history[k]


def test_jacobi_does_not_fix_divergent_system():
    A = np.array([[1.0, 2.0], [3.0, 1.0]])
    b = np.array([3.0, 4.0])

    result = jacobi(A, b, tol=1e-6, maxiter=50)
    assert not result.converged
    assert len(result.history) == 50
    assert min(result.history) >= 1e-6
    assert result.history[-1] > result.history[0]

    result = richardson(A, b, 'jacobi', tol=1e-6, maxiter=50)
    assert not result.converged
    assert result.history[-1] > result.history[0]


def test_input_x0_is_not_mutated(scenario_system):
    A, b, _ = scenario_system
    x0 = np.array([5.0, -3.0])
    gauss_seidel(A, b, x0=x0, tol=1e-10)
    np.testing.assert_array_equal(x0, [5.0, -3.0])


def test_sparse_matrix_input(dominant_system):
    from scipy import sparse

    A, b = dominant_system
    result = gauss_seidel(sparse.csr_matrix(A), b, tol=1e-10)
    assert result.converged
    np.testing.assert_allclose(result.x, np.linalg.solve(A, b), rtol=1e-6, atol=1e-10)


def test_richardson_single_exact_step_counts_as_converged(caplog):
    A = np.diag([2.0, 4.0])
    b = np.ones(2)

    with caplog.at_level(logging.WARNING, logger="itersolvers"):
        result = richardson(A, b, 'jacobi', maxiter=1, raise_on_maxiter=True)
    assert result.history == [1.0]
    assert result.iterations == 1
    assert result.converged
    assert result.final_residual_norm == 0.0
    np.testing.assert_array_equal(result.x, [0.5, 0.25])
    assert not any("no convergence" in r.getMessage() for r in caplog.records)
