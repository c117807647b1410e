"""
Tests for residual fit() and compute_residuals().

Tests the complete pipeline: design validation, the per-row residual
engine, lower-bound censoring and the solution wrapper.
"""

import numpy as np
import pytest
from scipy.linalg import qr

from pyresiduals.residuals import fit, compute_residuals, ResidualDesign, ResidualSolution
from pyresiduals.core.compute.tolerances import CPU_FP64
from pyresiduals.core.exceptions import (
    DimensionError,
    InvalidScalarError,
    SubsetBoundsError,
    ValidationError,
)


@pytest.fixture
def intercept_only():
    """Factorization of a 3-sample intercept-only design."""
    (q, tau), _ = qr(np.ones((3, 1)), mode='raw')
    return q, tau


class TestResiduals:
    """Residuals match an independent least-squares computation."""

    def test_matches_lstsq(self, expression, design_matrix, factorization, ols_residuals):
        q, tau = factorization
        result = compute_residuals(expression, q, tau)
        expected = ols_residuals(expression, design_matrix)
        np.testing.assert_allclose(result, expected, rtol=CPU_FP64.rtol, atol=CPU_FP64.atol)

    def test_residuals_orthogonal_to_design(self, expression, design_matrix, factorization):
        q, tau = factorization
        result = compute_residuals(expression, q, tau)
        np.testing.assert_allclose(result @ design_matrix, 0.0, atol=1e-9)

    def test_intercept_only_scenario(self, intercept_only):
        q, tau = intercept_only
        result = compute_residuals(np.array([[5.0, 1.0, 9.0]]), q, tau)
        np.testing.assert_allclose(result, [[0.0, -4.0, 4.0]], atol=1e-12)

    def test_output_shape_and_type(self, expression, factorization):
        result = compute_residuals(expression, *factorization)
        assert isinstance(result, np.ndarray)
        assert result.shape == expression.shape
        assert result.dtype == np.float64

    def test_input_not_modified(self, expression, factorization):
        original = expression.copy()
        compute_residuals(expression, *factorization, lower_bound=0.0)
        np.testing.assert_array_equal(expression, original)

    def test_rerun_is_bit_identical(self, expression, factorization):
        first = compute_residuals(expression, *factorization, lower_bound=-1.0)
        second = compute_residuals(expression, *factorization, lower_bound=-1.0)
        np.testing.assert_array_equal(first, second)

    def test_integer_input(self, intercept_only):
        result = compute_residuals(np.array([[5, 1, 9]]), *intercept_only)
        np.testing.assert_allclose(result, [[0.0, -4.0, 4.0]], atol=1e-12)

    def test_raw_pair_accepted(self, expression, design_matrix):
        raw, _ = qr(design_matrix, mode='raw')
        q, tau = raw
        np.testing.assert_array_equal(
            compute_residuals(expression, raw),
            compute_residuals(expression, q, tau),
        )

    def test_no_coefficients_returns_input(self, expression):
        result = compute_residuals(expression, np.zeros((12, 0)), np.zeros(0))
        np.testing.assert_array_equal(result, expression)

    def test_zero_samples(self):
        result = compute_residuals(np.zeros((4, 0)), np.zeros((0, 0)), np.zeros(0))
        assert result.shape == (4, 0)

    def test_zero_samples_with_bound(self):
        result = compute_residuals(
            np.zeros((4, 0)), np.zeros((0, 0)), np.zeros(0), lower_bound=1.0,
        )
        assert result.shape == (4, 0)


class TestSubset:
    """Subset rows come out in subset order, duplicates included."""

    def test_single_row_matches_full(self, expression, factorization):
        full = compute_residuals(expression, *factorization)
        single = compute_residuals(expression, *factorization, subset=[7])
        np.testing.assert_array_equal(single[0], full[7])

    def test_order_and_duplicates(self, expression, factorization):
        full = compute_residuals(expression, *factorization)
        subset = [5, 0, 5, 19]
        result = compute_residuals(expression, *factorization, subset=subset)
        assert result.shape == (4, expression.shape[1])
        np.testing.assert_array_equal(result, full[subset])

    def test_one_based(self, expression, factorization):
        zero = compute_residuals(expression, *factorization, subset=[0, 2, 19])
        one = compute_residuals(expression, *factorization, subset=[1, 3, 20], index_base=1)
        np.testing.assert_array_equal(zero, one)

    def test_boolean_mask(self, expression, factorization):
        mask = np.zeros(expression.shape[0], dtype=bool)
        mask[[1, 4]] = True
        full = compute_residuals(expression, *factorization)
        result = compute_residuals(expression, *factorization, subset=mask)
        np.testing.assert_array_equal(result, full[[1, 4]])

    def test_empty_subset(self, expression, factorization):
        result = compute_residuals(expression, *factorization, subset=[])
        assert result.shape == (0, expression.shape[1])

    def test_solution_reports_subset(self, expression, factorization):
        solution = fit(expression, *factorization, subset=[3, 1], index_base=0)
        np.testing.assert_array_equal(solution.subset, [3, 1])


class TestLowerBound:
    """Censored values are forced strictly below every real residual."""

    def test_intercept_only_censoring(self, intercept_only):
        result = compute_residuals(np.array([[5.0, 1.0, 9.0]]), *intercept_only, lower_bound=2)
        np.testing.assert_allclose(result, [[0.0, -5.0, 4.0]], atol=1e-12)

    def test_censored_sort_below(self, expression, factorization):
        bound = np.quantile(expression, 0.2)
        result = compute_residuals(expression, *factorization, lower_bound=bound)
        censored = expression <= bound
        assert np.any(censored)
        for row, mask in zip(result, censored):
            if mask.any() and not mask.all():
                assert row[mask].max() < row[~mask].min()
                assert np.all(row[mask] == row[mask][0])

    def test_uncensored_values_unchanged(self, expression, factorization):
        bound = np.quantile(expression, 0.2)
        plain = compute_residuals(expression, *factorization)
        result = compute_residuals(expression, *factorization, lower_bound=bound)
        keep = expression > bound
        np.testing.assert_array_equal(result[keep], plain[keep])

    def test_censored_value_is_min_minus_one(self, expression, factorization):
        bound = np.quantile(expression, 0.2)
        plain = compute_residuals(expression, *factorization)
        result = compute_residuals(expression, *factorization, lower_bound=bound)
        for i in range(expression.shape[0]):
            mask = expression[i] <= bound
            if mask.any():
                np.testing.assert_array_equal(result[i, mask], plain[i].min() - 1)

    def test_all_censored_row(self, intercept_only):
        result = compute_residuals(np.array([[1.0, 1.0, 1.0]]), *intercept_only, lower_bound=5.0)
        assert np.all(result[0] == result[0, 0])
        assert result[0, 0] == pytest.approx(-1.0, abs=1e-12)

    @pytest.mark.parametrize("disabled", [None, -np.inf, np.inf, np.nan])
    def test_non_finite_bound_disables(self, expression, factorization, disabled):
        plain = compute_residuals(expression, *factorization)
        result = compute_residuals(expression, *factorization, lower_bound=disabled)
        np.testing.assert_array_equal(result, plain)

    def test_censored_counts(self, intercept_only):
        x = np.array([[5.0, 1.0, 9.0], [3.0, 4.0, 5.0], [0.0, 0.0, 7.0]])
        solution = fit(x, *intercept_only, lower_bound=2.0)
        np.testing.assert_array_equal(solution.censored_counts, [1, 0, 2])
        assert solution.info['n_censored_rows'] == 2
        assert solution.info['n_censored_values'] == 3

    def test_counts_zero_when_disabled(self, expression, factorization):
        solution = fit(expression, *factorization)
        assert solution.censored_counts.sum() == 0
        assert solution.info['lower_bound'] is None


class TestErrors:
    """All validation happens before any output exists."""

    def test_sample_count_mismatch(self, expression, factorization):
        q, tau = factorization
        with pytest.raises(DimensionError, match="samples"):
            compute_residuals(expression[:, :10], q, tau)

    def test_qraux_mismatch(self, expression, factorization):
        q, tau = factorization
        with pytest.raises(DimensionError):
            compute_residuals(expression, q, tau[:1])

    @pytest.mark.parametrize("subset", [[20], [-1], [0, 25]])
    def test_subset_out_of_range(self, expression, factorization, subset):
        with pytest.raises(SubsetBoundsError) as excinfo:
            compute_residuals(expression, *factorization, subset=subset)
        assert excinfo.value.n_rows == 20

    def test_one_based_zero_rejected(self, expression, factorization):
        with pytest.raises(SubsetBoundsError):
            compute_residuals(expression, *factorization, subset=[0], index_base=1)

    @pytest.mark.parametrize("bound", ["0", [1.0, 2.0], True, 1j])
    def test_invalid_bound(self, expression, factorization, bound):
        with pytest.raises(InvalidScalarError):
            compute_residuals(expression, *factorization, lower_bound=bound)

    def test_one_dimensional_input(self, factorization):
        with pytest.raises(DimensionError):
            compute_residuals(np.zeros(12), *factorization)

    def test_missing_qr(self, expression):
        with pytest.raises(ValidationError, match="qr"):
            compute_residuals(expression)

    def test_unknown_backend(self, expression, factorization):
        with pytest.raises(ValidationError, match="Unknown backend"):
            compute_residuals(expression, *factorization, backend='tpu')


class TestSolution:

    def test_fit_returns_solution(self, expression, factorization):
        solution = fit(expression, *factorization)
        assert isinstance(solution, ResidualSolution)
        assert solution.n_coefs == 3
        assert solution.backend_name == 'cpu_dormqr'
        assert solution.warnings == ()

    def test_timing_sections(self, expression, factorization):
        timing = fit(expression, *factorization).timing
        assert {'total_seconds', 'setup', 'rows', 'finalize'} <= set(timing)

    def test_info(self, expression, factorization):
        info = fit(expression, *factorization, subset=[0, 1]).info
        assert info['method'] == 'qr_residuals'
        assert info['n_rows'] == 2
        assert info['n_samples'] == 12
        assert info['output_class'] == 'ndarray'

    def test_fit_from_design(self, expression, factorization):
        design = ResidualDesign.build(expression, *factorization, subset=[2])
        solution = fit(design)
        np.testing.assert_array_equal(
            solution.residuals, compute_residuals(expression, *factorization, subset=[2])
        )

    def test_design_with_extra_arguments(self, expression, factorization):
        design = ResidualDesign.build(expression, *factorization)
        with pytest.raises(ValidationError, match="must be omitted"):
            fit(design, subset=[0])

    def test_summary(self, expression, factorization):
        text = fit(expression, *factorization, lower_bound=0.0).summary()
        assert "Coefficients: 3" in text
        assert "Residual df:  9" in text
        assert "cpu_dormqr" in text

    def test_repr(self, expression, factorization):
        assert "n_coefs=3" in repr(fit(expression, *factorization))
