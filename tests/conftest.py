"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np
from scipy.linalg import qr


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def design_matrix(rng):
    """Intercept, two-level batch and one covariate for 12 samples."""
    n = 12
    batch = np.repeat([0.0, 1.0], n // 2)
    covariate = rng.standard_normal(n)
    return np.column_stack([np.ones(n), batch, covariate])


@pytest.fixture
def factorization(design_matrix):
    """(qr, qraux) of design_matrix in LAPACK geqrf layout."""
    (q, tau), _ = qr(design_matrix, mode='raw')
    return q, tau


@pytest.fixture
def expression(rng, design_matrix):
    """20 features x 12 samples with design effects and noise."""
    n_features = 20
    beta = rng.standard_normal((n_features, design_matrix.shape[1])) * 3
    noise = rng.standard_normal((n_features, design_matrix.shape[0]))
    return beta @ design_matrix.T + noise


@pytest.fixture
def ols_residuals():
    """Function computing residuals of each row of y regressed on design via lstsq."""
    def _ols(y, design):
        beta, *_ = np.linalg.lstsq(design, y.T, rcond=None)
        return y - (design @ beta).T
    return _ols
