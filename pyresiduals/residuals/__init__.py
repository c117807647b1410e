"""
Least-squares residuals from a precomputed QR factorization.

One design matrix is shared by many response vectors (one per feature,
e.g. per gene), so the design is factorized once and each row of the
features x samples matrix is projected onto the residual space.

Public API:
    fit(x, qr, qraux, ...) -> ResidualSolution
    compute_residuals(x, qr, qraux, ...) -> residual matrix

Example:
    >>> from scipy.linalg import qr
    >>> from pyresiduals.residuals import compute_residuals
    >>> (q, tau), _ = qr(design, mode='raw')
    >>> res = compute_residuals(expr, q, tau, lower_bound=0.0)
"""

from pyresiduals.residuals.design import ResidualDesign, resolve_subset
from pyresiduals.residuals.output import OutputParam, select_output
from pyresiduals.residuals.solution import ResidualSolution, ResidualParams
from pyresiduals.residuals.solvers import fit, compute_residuals

__all__ = [
    "fit",
    "compute_residuals",
    "ResidualDesign",
    "ResidualSolution",
    "ResidualParams",
    "OutputParam",
    "select_output",
    "resolve_subset",
]
