"""
Solver dispatch for QR residuals.

Provides fit() (full solution object) and compute_residuals() (matrix
only) as the public API, plus backend selection.
"""

from __future__ import annotations

from typing import Any, Literal
from numpy.typing import ArrayLike

from pyresiduals.core.exceptions import ValidationError
from pyresiduals.core.compute.device import select_device
from pyresiduals.residuals.design import ResidualDesign, IndexBase
from pyresiduals.residuals.solution import ResidualSolution
from pyresiduals.residuals.backends.cpu import CPUResidualBackend


BackendChoice = Literal['auto', 'cpu', 'gpu']


def fit(
    x: Any,
    qr: Any = None,
    qraux: ArrayLike | None = None,
    *,
    subset: ArrayLike | None = None,
    lower_bound: Any = None,
    index_base: IndexBase = 0,
    backend: BackendChoice = 'auto',
    use_fp64: bool = True,
) -> ResidualSolution:
    """
    Compute least-squares residuals of every selected row of x.
    
    Each row of x (a feature) is regressed on the same design matrix,
    whose QR factorization is supplied precomputed, and replaced by its
    residuals. Values at or below lower_bound are treated as
    undetectable: their residuals are set one unit below the smallest
    residual of the row, so they rank below every real measurement.
    
    Args:
        x: Features x samples matrix: numpy array, any scipy.sparse
            matrix/array, or pandas DataFrame (index = features). Also
            accepts a prebuilt ResidualDesign, in which case the other
            data arguments must be omitted.
        qr: Compact QR matrix of the samples x coefficients design, as
            from scipy.linalg.qr(design, mode='raw'), or the (qr, tau) pair
        qraux: Householder scale factors (tau)
        subset: Rows to process: None (all), boolean mask, integer
            positions (duplicates and order kept) or row names
        lower_bound: Censoring threshold. None, NaN or +/-inf disables it.
        index_base: 0 or 1, the origin of integer positions in subset
        backend: 'auto' or 'cpu' (LAPACK, float64) or 'gpu' (CUDA)
        use_fp64: GPU precision; ignored on CPU
        
    Returns:
        ResidualSolution
        
    Raises:
        DimensionError: If the factorization does not match x's columns
        SubsetBoundsError: If subset refers to rows that do not exist
        InvalidScalarError: If lower_bound is not a single number
        ValidationError: For any other invalid input
        
    Example:
        >>> import numpy as np
        >>> from scipy.linalg import qr
        >>> from pyresiduals.residuals import fit
        >>> 
        >>> design = np.ones((3, 1))
        >>> (q, tau), _ = qr(design, mode='raw')
        >>> fit(np.array([[5., 1., 9.]]), q, tau).residuals.round(6) + 0.0
        array([[ 0., -4.,  4.]])
    """
    if isinstance(x, ResidualDesign):
        if qr is not None or qraux is not None or subset is not None or lower_bound is not None:
            raise ValidationError(
                "qr, qraux, subset and lower_bound must be omitted when x is a ResidualDesign"
            )
        design = x
    else:
        if qr is None:
            raise ValidationError("qr: required when x is not a ResidualDesign")
        design = ResidualDesign.build(
            x, qr, qraux,
            subset=subset, lower_bound=lower_bound, index_base=index_base,
        )
    
    backend_impl = _get_backend(backend, use_fp64)
    result = backend_impl.solve(design)
    
    return ResidualSolution(_result=result, _design=design)


def compute_residuals(
    x: Any,
    qr: Any = None,
    qraux: ArrayLike | None = None,
    *,
    subset: ArrayLike | None = None,
    lower_bound: Any = None,
    index_base: IndexBase = 0,
    backend: BackendChoice = 'auto',
    use_fp64: bool = True,
) -> Any:
    """
    Residual matrix only; see fit() for the arguments.
    
    Returns:
        (subset rows x samples) residual matrix. Dense ndarray for ndarray
        and CSC input, DataFrame for DataFrame input, the same sparse
        format for other scipy.sparse input.
    """
    return fit(
        x, qr, qraux,
        subset=subset, lower_bound=lower_bound, index_base=index_base,
        backend=backend, use_fp64=use_fp64,
    ).residuals


def _get_backend(choice: BackendChoice, use_fp64: bool):
    """
    Select and instantiate the appropriate backend.
    
    'auto' always resolves to the CPU reference.
    
    Raises:
        ValidationError: If unknown backend specified
        RuntimeError: If GPU requested but no CUDA device is available
    """
    if choice in ('auto', 'cpu'):
        return CPUResidualBackend()
    
    if choice == 'gpu':
        device = select_device('gpu')
        if device.device_type != 'cuda':
            raise RuntimeError(
                f"GPU residuals need a CUDA device with float64 and ormqr, "
                f"found {device}. Use backend='cpu'."
            )
        from pyresiduals.residuals.backends.gpu import GPUResidualBackend
        return GPUResidualBackend(use_fp64=use_fp64, device=f"cuda:{device.device_index}")
    
    raise ValidationError(f"Unknown backend: {choice!r}")
