from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def scenario_system():
    """A = [[10, 1], [1, 10]], b = [11, 11], exact solution [1, 1]."""
    A = np.array([[10.0, 1.0], [1.0, 10.0]])
    b = np.array([11.0, 11.0])
    x_star = np.array([1.0, 1.0])
    return A, b, x_star


@pytest.fixture
def spd_system(rng):
    """Well-conditioned SPD system, n = 30."""
    n = 30
    M = rng.standard_normal((n, n))
    A = M @ M.T / n + np.eye(n)
    b = rng.standard_normal(n)
    return A, b


@pytest.fixture
def dominant_system(rng):
    """Diagonally dominant (nonsymmetric) system, n = 20."""
    n = 20
    A = rng.standard_normal((n, n)) + np.diag(15.0 + 50.0 * rng.random(n))
    b = rng.random(n)
    return A, b


@pytest.fixture
def spd_dominant_system(rng):
    """Symmetric, strictly diagonally dominant (hence SPD) system, n = 20."""
    n = 20
    M = rng.standard_normal((n, n))
    A = (M + M.T) / 2 + np.diag(20.0 + 10.0 * rng.random(n))
    b = rng.standard_normal(n)
    return A, b
