"""
Principal components analysis with noise-based rank selection.

Public API:
    denoise_pca(x, technical, ...) -> PCASolution
    denoise_lowrank(x, technical, ...) -> features x samples matrix
    denoise_pca_number(var_exp, var_tech, var_total) -> int
"""

from pyresiduals.pca._number import denoise_pca_number
from pyresiduals.pca.solvers import denoise_pca, denoise_lowrank
from pyresiduals.pca.solution import PCASolution, PCAParams

__all__ = [
    "denoise_pca",
    "denoise_lowrank",
    "denoise_pca_number",
    "PCASolution",
    "PCAParams",
]
