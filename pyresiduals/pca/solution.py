"""
Denoised PCA solution types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray

from pyresiduals.core.result import Result


@dataclass(frozen=True)
class PCAParams:
    """
    Parameter payload for denoised PCA.
    
    Attributes:
        components: PC scores, samples x n_components
        rotation: Loadings, features x n_components. Covers the kept
            features in the order of kept, or every feature of the input
            when rotation vectors were filled in
        percent_var: Percentage of total variance explained by every
            computed PC (not only the retained ones)
        kept: 0-based source rows of the features used in the SVD
        tech_var: Technical variance of each kept feature
    """
    components: NDArray[np.floating[Any]]
    rotation: NDArray[np.floating[Any]]
    percent_var: NDArray[np.floating[Any]]
    kept: NDArray[np.intp]
    tech_var: NDArray[np.floating[Any]]


@dataclass
class PCASolution:
    """User-facing denoised PCA results."""
    _result: Result[PCAParams]
    
    @property
    def components(self) -> NDArray[np.floating[Any]]:
        return self._result.params.components
    
    @property
    def rotation(self) -> NDArray[np.floating[Any]]:
        return self._result.params.rotation
    
    @property
    def percent_var(self) -> NDArray[np.floating[Any]]:
        return self._result.params.percent_var
    
    @property
    def kept(self) -> NDArray[np.intp]:
        return self._result.params.kept
    
    @property
    def tech_var(self) -> NDArray[np.floating[Any]]:
        return self._result.params.tech_var
    
    @property
    def n_components(self) -> int:
        return self.components.shape[1]
    
    @property
    def info(self) -> dict[str, Any]:
        return self._result.info
    
    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing
    
    @property
    def backend_name(self) -> str:
        return self._result.backend_name
    
    def lowrank(self) -> NDArray[np.floating[Any]]:
        """Low-rank approximation rotation @ components.T, features x samples."""
        return self.rotation @ self.components.T
    
    def summary(self) -> str:
        """Human-readable description of the decomposition."""
        info = self.info
        retained = float(self.percent_var[:self.n_components].sum())
        lines = [
            "Denoised PCA",
            "=" * 40,
            f"Features used:  {self.kept.size} of {info['n_candidates']}",
            f"Samples:        {self.components.shape[0]}",
            f"On residuals:   {'yes' if info['on_residuals'] else 'no'}",
            f"Components:     {self.n_components} "
            f"(chosen {info['npcs_chosen']}, range {info['min_rank']}..{info['max_rank']})",
            f"Variance kept:  {retained:.2f}%",
        ]
        return "\n".join(lines)
