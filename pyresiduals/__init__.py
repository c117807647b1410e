"""
PyResiduals: least-squares residuals for feature x sample matrices.

Computes the residuals of a linear model fitted to every row of a large
matrix (one response vector per gene or feature) from a single,
precomputed QR factorization of the shared design matrix.

Submodules:
    residuals: QR residuals with lower-bound censoring
    pca: Denoised PCA, optionally on residuals
"""

__version__ = "0.1.0"

from pyresiduals import residuals
from pyresiduals import pca
from pyresiduals.residuals import fit, compute_residuals

__all__ = [
    "__version__",
    "residuals",
    "pca",
    "fit",
    "compute_residuals",
]
