"""
Shared helpers for residual backends.

The censoring rule is identical on every backend and runs on the host
copy of the row, so it lives here rather than in each backend.
"""

from __future__ import annotations

from typing import Any
import numpy as np
from numpy.typing import NDArray

from pyresiduals.residuals.design import ResidualDesign


def find_censored(
    row: NDArray[np.float64],
    lower_bound: float,
) -> NDArray[np.intp]:
    """Columns whose raw value is at or below the lower bound."""
    return np.flatnonzero(row <= lower_bound)


def censor_row(
    residuals: NDArray[np.float64],
    censored: NDArray[np.intp],
) -> None:
    """
    Force censored residuals strictly below every other residual in the row.
    
    Every censored position is set to min(residuals) - 1, so all of them
    tie with each other and sort below all uncensored values.
    """
    if censored.size == 0:
        return
    lowest = residuals.min() - 1
    residuals[censored] = lowest


def build_info(
    design: ResidualDesign,
    censored_counts: NDArray[np.intp],
) -> dict[str, Any]:
    """Result.info entries common to all residual backends."""
    return {
        'method': 'qr_residuals',
        'n_coefs': design.n_coefs,
        'n_rows': design.n_subset,
        'n_samples': design.n_samples,
        'lower_bound': design.lower_bound if design.check_lower else None,
        'n_censored_rows': int(np.count_nonzero(censored_counts)),
        'n_censored_values': int(censored_counts.sum()),
        'output_class': design.output.storage_class,
    }
