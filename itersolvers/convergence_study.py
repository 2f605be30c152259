#!/usr/bin/env python3
"""
Convergence Study for the Iterative Solvers
===========================================

Reruns the classroom experiments on random test problems and tabulates
the convergence histories:

    1. Richardson with P = I versus P = diag(A) on a diagonally dominant
       system, together with the iteration matrix norms ||I - P^{-1} A||.
    2. Jacobi versus Gauss-Seidel on the same system.
    3. Steepest descent, diagonally preconditioned steepest descent and
       conjugate gradients on a random SPD system, with the theoretical
       rates (κ-1)/(κ+1) and (√κ-1)/(√κ+1).

Histories and summaries are saved as CSV files.

Usage:
    python -m itersolvers.convergence_study
"""

from typing import Dict, Optional
import logging
import os

import numpy as np
import pandas as pd

from .conjugate_gradient import conjugate_gradient
from .diagnostics import (
    condition_number,
    conjugate_gradient_rate,
    diagonally_dominant_matrix,
    history_frame,
    iteration_matrix_norm,
    random_spd_matrix,
    reference_solution,
    steepest_descent_rate,
    summary_frame,
)
from .gauss_seidel import gauss_seidel
from .jacobi import jacobi
from .richardson import richardson
from .steepest_descent import steepest_descent

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

PROBLEM_SIZE = 100
SEED = 42

# Richardson / Jacobi / Gauss-Seidel experiments
STATIONARY_TOLERANCE = 1e-10
STATIONARY_MAX_ITERATIONS = 30

# Steepest descent / CG experiments
DESCENT_TOLERANCE = 1e-6
DESCENT_MAX_ITERATIONS = 40

OUTPUT_DIR = os.path.join(os.getcwd(), 'convergence_study')


def run_richardson_experiment(A: np.ndarray, b: np.ndarray) -> Dict[str, pd.DataFrame]:
    """Richardson without and with diagonal preconditioning."""
    results = {
        'richardson_identity': richardson(A, b, None, tol=STATIONARY_TOLERANCE,
                                          maxiter=STATIONARY_MAX_ITERATIONS),
        'richardson_diagonal': richardson(A, b, 'jacobi', tol=STATIONARY_TOLERANCE,
                                          maxiter=STATIONARY_MAX_ITERATIONS),
    }
    x_ref = reference_solution(A, b)

    summary = summary_frame(results, A=A, x_ref=x_ref)
    summary['iteration_matrix_norm'] = [
        iteration_matrix_norm(A, None),
        iteration_matrix_norm(A, 'jacobi'),
    ]
    return {'history': history_frame(results), 'summary': summary}


def run_splitting_experiment(A: np.ndarray, b: np.ndarray) -> Dict[str, pd.DataFrame]:
    """Jacobi versus Gauss-Seidel."""
    results = {
        'jacobi': jacobi(A, b, tol=STATIONARY_TOLERANCE, maxiter=STATIONARY_MAX_ITERATIONS),
        'gauss_seidel': gauss_seidel(A, b, tol=STATIONARY_TOLERANCE,
                                     maxiter=STATIONARY_MAX_ITERATIONS),
    }
    x_ref = reference_solution(A, b)
    return {
        'history': history_frame(results),
        'summary': summary_frame(results, A=A, x_ref=x_ref),
    }


def run_descent_experiment(A: np.ndarray, b: np.ndarray) -> Dict[str, pd.DataFrame]:
    """Steepest descent (plain and preconditioned) versus CG on an SPD system."""
    options = dict(tol=DESCENT_TOLERANCE, maxiter=DESCENT_MAX_ITERATIONS)
    results = {
        'steepest_descent': steepest_descent(A, b, **options),
        'steepest_descent_diagonal': steepest_descent(A, b, 'jacobi', **options),
        'conjugate_gradient': conjugate_gradient(A, b, **options),
    }
    x_ref = reference_solution(A, b)

    kappa = condition_number(A)
    rates = pd.DataFrame([{
        'condition_number': kappa,
        'steepest_descent_rate': steepest_descent_rate(kappa),
        'conjugate_gradient_rate': conjugate_gradient_rate(kappa),
    }])
    return {
        'history': history_frame(results),
        'summary': summary_frame(results, A=A, x_ref=x_ref),
        'rates': rates,
    }


def run_study(seed: int = SEED, n: int = PROBLEM_SIZE) -> Dict[str, Dict[str, pd.DataFrame]]:
    """Run all experiments and return their tables, keyed by experiment."""
    rng = np.random.default_rng(seed)

    A = diagonally_dominant_matrix(n, rng)
    b = rng.random(n)
    logger.info("Diagonally dominant system: n=%d, κ(A)=%.2f", n, condition_number(A))

    A_spd = random_spd_matrix(n, rng)
    b_spd = np.ones(n)
    logger.info("SPD system: n=%d, κ(A)=%.2f", n, condition_number(A_spd))

    return {
        'richardson': run_richardson_experiment(A, b),
        'splitting': run_splitting_experiment(A, b),
        'descent': run_descent_experiment(A_spd, b_spd),
    }


def save_study(tables: Dict[str, Dict[str, pd.DataFrame]], output_dir: str):
    """Save all tables to ``output_dir/<experiment>_<table>.csv``."""
    os.makedirs(output_dir, exist_ok=True)
    for experiment, frames in tables.items():
        for table, df in frames.items():
            path = os.path.join(output_dir, f'{experiment}_{table}.csv')
            df.to_csv(path, index=(table == 'history'))
            logger.debug("Wrote %s", path)


def main(output_dir: Optional[str] = None):
    """Main execution function."""
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    output_dir = output_dir or OUTPUT_DIR

    tables = run_study()
    save_study(tables, output_dir)

    for experiment, frames in tables.items():
        logger.info("%s summary:\n%s", experiment,
                    frames['summary'].to_string(index=False, float_format='%.3e'))
    logger.info("Convergence study saved to: %s", output_dir)
    return tables


if __name__ == '__main__':
    main()
