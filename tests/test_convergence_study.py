from __future__ import annotations

import os

from itersolvers import convergence_study


def test_run_study_tables():
    tables = convergence_study.run_study(seed=0, n=20)
    assert set(tables) == {'richardson', 'splitting', 'descent'}

    richardson = tables['richardson']['summary'].set_index('solver')
    assert richardson.loc['richardson_diagonal', 'iteration_matrix_norm'] < 1
    assert richardson.loc['richardson_identity', 'iteration_matrix_norm'] > 1
    assert richardson.loc['richardson_diagonal', 'converged']
    assert not richardson.loc['richardson_identity', 'converged']

    splitting = tables['splitting']['summary'].set_index('solver')
    assert splitting.loc['gauss_seidel', 'iterations'] <= splitting.loc['jacobi', 'iterations']

    rates = tables['descent']['rates'].iloc[0]
    assert rates['conjugate_gradient_rate'] < rates['steepest_descent_rate'] < 1
    assert list(tables['descent']['history'].columns) == [
        'steepest_descent', 'steepest_descent_diagonal', 'conjugate_gradient']


def test_save_study(tmp_path):
    tables = convergence_study.run_study(seed=1, n=10)
    convergence_study.save_study(tables, str(tmp_path))
    written = set(os.listdir(tmp_path))
    assert 'richardson_history.csv' in written
    assert 'splitting_summary.csv' in written
    assert 'descent_rates.csv' in written
