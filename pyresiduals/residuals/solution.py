"""
Residual solution types.

Contains the parameter payload and user-facing solution wrapper.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray

from pyresiduals.core.result import Result

if TYPE_CHECKING:
    from pyresiduals.residuals.design import ResidualDesign


@dataclass(frozen=True)
class ResidualParams:
    """
    Parameter payload for a residual computation.
    
    This is the immutable data computed by backends.
    
    Attributes:
        residuals: Finalized residual matrix (subset rows x samples) in the
            selected output storage class
        subset: 0-based source row of each output row
        censored_counts: Number of censored values in each output row
    """
    residuals: Any
    subset: NDArray[np.intp]
    censored_counts: NDArray[np.intp]


@dataclass
class ResidualSolution:
    """
    User-facing residual results.
    
    Wraps the backend Result and provides convenient accessors.
    """
    _result: Result[ResidualParams]
    _design: 'ResidualDesign'
    
    @property
    def residuals(self) -> Any:
        """Residual matrix, one row per subset entry."""
        return self._result.params.residuals
    
    @property
    def subset(self) -> NDArray[np.intp]:
        return self._result.params.subset
    
    @property
    def censored_counts(self) -> NDArray[np.intp]:
        return self._result.params.censored_counts
    
    @property
    def n_coefs(self) -> int:
        return self._design.n_coefs
    
    @property
    def lower_bound(self) -> float:
        return self._design.lower_bound
    
    @property
    def info(self) -> dict[str, Any]:
        return self._result.info
    
    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing
    
    @property
    def backend_name(self) -> str:
        return self._result.backend_name
    
    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings
    
    def summary(self) -> str:
        """Human-readable description of the computation."""
        design = self._design
        lines = [
            "QR residuals",
            "=" * 40,
            f"Rows:         {design.n_subset} of {design.n_features}",
            f"Samples:      {design.n_samples}",
            f"Coefficients: {design.n_coefs}",
            f"Residual df:  {design.n_samples - design.n_coefs}",
        ]
        if design.check_lower:
            n_rows = int(np.count_nonzero(self.censored_counts))
            n_values = int(self.censored_counts.sum())
            lines.append(f"Lower bound:  {design.lower_bound:g} "
                         f"({n_values} values censored in {n_rows} rows)")
        else:
            lines.append("Lower bound:  none")
        lines.append(f"Output:       {design.output.storage_package}."
                     f"{design.output.storage_class}")
        lines.append(f"Backend:      {self.backend_name}")
        if self.timing is not None:
            lines.append(f"Time:         {self.timing['total_seconds']:.4f}s")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)
    
    def __repr__(self) -> str:
        return (f"ResidualSolution(rows={self._design.n_subset}, "
                f"samples={self._design.n_samples}, n_coefs={self.n_coefs}, "
                f"backend={self.backend_name!r})")
