"""
Residual Design.

Bundles everything the residual engine needs into one validated,
immutable object: the row accessor over the input matrix, the QR
factorization of the design matrix, the resolved row subset, the lower
bound, and the chosen output storage class.

All validation happens here, before any row is read, so a backend can
assume its inputs are consistent and never produces partial output.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any, Literal
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyresiduals.core.exceptions import DimensionError, SubsetBoundsError, ValidationError
from pyresiduals.core.validation import check_1d, check_length, check_numeric_scalar
from pyresiduals.core.compute.linalg.qr import QRFactorization
from pyresiduals.residuals.accessor import RowMatrix
from pyresiduals.residuals.output import OutputParam, select_output


IndexBase = Literal[0, 1]


def resolve_subset(
    subset: ArrayLike | None,
    n_rows: int,
    *,
    index_base: IndexBase = 0,
    row_names: Any = None,
) -> NDArray[np.intp]:
    """
    Turn a row selection into an ordered array of 0-based row indices.
    
    Args:
        subset: None for all rows; a boolean mask of length n_rows; a
            sequence of integer positions; or a sequence of row names
            (requires row_names). Order and duplicates are preserved.
        n_rows: Number of rows in the matrix
        index_base: 0 or 1, the origin of integer positions
        row_names: Row labels (pandas Index) for name-based selection
        
    Returns:
        1D intp array of row indices in [0, n_rows)
        
    Raises:
        SubsetBoundsError: If any index or name does not refer to a row
        DimensionError: If a boolean mask has the wrong length
        ValidationError: If the subset is not integer, boolean or string
    """
    if index_base not in (0, 1):
        raise ValidationError(f"index_base: must be 0 or 1, got {index_base!r}")
    
    if subset is None:
        return np.arange(n_rows, dtype=np.intp)
    
    arr = np.asarray(subset)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    check_1d(arr, 'subset')
    
    if arr.dtype.kind == 'O':
        arr = _narrow_object(arr)
    
    if arr.dtype == np.bool_:
        check_length(arr, n_rows, 'subset')
        return np.flatnonzero(arr).astype(np.intp)
    
    if arr.size == 0:
        return np.empty(0, dtype=np.intp)
    
    if arr.dtype.kind in ('U', 'S', 'O'):
        return _resolve_names(arr, row_names, n_rows)
    
    if arr.dtype.kind == 'f':
        if not np.all(np.isfinite(arr)) or np.any(arr != np.floor(arr)):
            bad = arr[~np.isfinite(arr) | (arr != np.floor(arr))][0]
            raise SubsetBoundsError(
                f"subset: {bad!r} is not an integer row index",
                index=bad, n_rows=n_rows,
            )
    elif arr.dtype.kind not in ('i', 'u'):
        raise ValidationError(
            f"subset: expected integer, boolean or string values, got dtype {arr.dtype}"
        )
    
    shifted = arr.astype(np.int64) - index_base
    outside = (shifted < 0) | (shifted >= n_rows)
    if np.any(outside):
        bad = arr[np.flatnonzero(outside)[0]]
        raise SubsetBoundsError(
            f"subset: index {bad} out of range for {n_rows} rows "
            f"(valid {index_base}..{n_rows - 1 + index_base})",
            index=bad, n_rows=n_rows,
        )
    return shifted.astype(np.intp)


def _narrow_object(arr: NDArray) -> NDArray:
    """Give an object array of booleans, integers or strings a concrete dtype."""
    if arr.size == 0:
        return arr.astype(np.int64)
    values = arr.tolist()
    if all(isinstance(v, (bool, np.bool_)) for v in values):
        return arr.astype(np.bool_)
    if all(isinstance(v, numbers.Integral) for v in values):
        return arr.astype(np.int64)
    if all(isinstance(v, str) for v in values):
        return arr
    raise ValidationError(
        "subset: expected integer, boolean or string values, got mixed or missing values"
    )


def _resolve_names(names: NDArray, row_names: Any, n_rows: int) -> NDArray[np.intp]:
    if row_names is None:
        raise ValidationError("subset: row names given but the matrix has no row labels")
    if not row_names.is_unique:
        raise ValidationError(
            "subset: row names are ambiguous because the matrix has duplicate row labels"
        )
    
    positions = row_names.get_indexer(names)
    missing = positions < 0
    if np.any(missing):
        bad = names[np.flatnonzero(missing)[0]]
        raise SubsetBoundsError(
            f"subset: row name {bad!r} not found",
            index=bad, n_rows=n_rows,
        )
    return positions.astype(np.intp)


def check_lower_bound(value: Any) -> float:
    """
    Validate the lower bound.
    
    Returns:
        The bound as a float; NaN when value is None. Any non-finite
        bound disables censoring.
        
    Raises:
        InvalidScalarError: If value is not a single real number
    """
    if value is None:
        return float('nan')
    return check_numeric_scalar(value, 'lower_bound')


@dataclass(frozen=True)
class ResidualDesign:
    """
    Validated inputs of a residual computation.
    
    Construction:
        ResidualDesign.build(x, qr, qraux)
        ResidualDesign.build(x, qr, qraux, subset=[0, 4, 4], lower_bound=0.0)
        ResidualDesign.build(x, scipy.linalg.qr(X, mode='raw')[0])
    """
    matrix: RowMatrix
    factorization: QRFactorization
    subset: NDArray[np.intp]
    lower_bound: float
    output: OutputParam
    
    @classmethod
    def build(
        cls,
        x: Any,
        qr: Any,
        qraux: ArrayLike | None = None,
        *,
        subset: ArrayLike | None = None,
        lower_bound: Any = None,
        index_base: IndexBase = 0,
    ) -> ResidualDesign:
        """
        Validate every input and bundle them.
        
        Args:
            x: Features x samples matrix (ndarray, scipy.sparse or DataFrame)
            qr: Compact QR matrix of the samples x coefficients design
            qraux: Auxiliary vector of the factorization
            subset: Rows to process, see resolve_subset()
            lower_bound: Values at or below this are censored; None or
                non-finite disables censoring
            index_base: Origin of integer subset positions
            
        Raises:
            DimensionError: If the factorization does not match the
                number of samples
            SubsetBoundsError: If the subset refers to missing rows
            InvalidScalarError: If lower_bound is not a single number
        """
        matrix = RowMatrix.build(x)
        factorization = QRFactorization.build(qr, qraux)
        
        if factorization.n_obs != matrix.n_cols:
            raise DimensionError(
                f"qr: factorization has {factorization.n_obs} observations "
                f"but x has {matrix.n_cols} samples (columns)",
                expected=matrix.n_cols,
                actual=factorization.n_obs,
            )
        
        rows = resolve_subset(
            subset, matrix.n_rows,
            index_base=index_base, row_names=matrix.row_names,
        )
        bound = check_lower_bound(lower_bound)
        output = select_output(matrix.storage_class, matrix.storage_package)
        
        return cls(
            matrix=matrix,
            factorization=factorization,
            subset=rows,
            lower_bound=bound,
            output=output,
        )
    
    @property
    def n_features(self) -> int:
        return self.matrix.n_rows
    
    @property
    def n_samples(self) -> int:
        return self.matrix.n_cols
    
    @property
    def n_coefs(self) -> int:
        return self.factorization.n_coefs
    
    @property
    def n_subset(self) -> int:
        return self.subset.shape[0]
    
    @property
    def check_lower(self) -> bool:
        """True when censoring at the lower bound is enabled."""
        return bool(np.isfinite(self.lower_bound))
