"""
Row-oriented access to dense, sparse and labelled matrices.

RowMatrix reads one row at a time into a caller-owned dense buffer,
regardless of how the matrix is stored. OutputMatrix is its write-side
counterpart: it is sized once, filled row by row, and finalized into
the storage class chosen by residuals.output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy import sparse

from pyresiduals.core.exceptions import ValidationError
from pyresiduals.core.validation import check_array, check_2d
from pyresiduals.residuals.output import OutputParam, SPARSE_FORMATS


def storage_tag(x: Any) -> tuple[str, str]:
    """(class name, top-level package) of an object's type."""
    cls = type(x)
    return cls.__name__, cls.__module__.split('.')[0]


def _is_dataframe(x: Any) -> bool:
    return storage_tag(x) == ('DataFrame', 'pandas')


@dataclass(frozen=True)
class RowMatrix:
    """
    Read-only row accessor over a features x samples matrix.
    
    Sparse input of any format is converted once to CSR with duplicate
    entries summed, so each get_row() is a slice of the index arrays.
    
    Construction:
        RowMatrix.build(np.ndarray)
        RowMatrix.build(scipy.sparse.csc_matrix(...))
        RowMatrix.build(pandas.DataFrame(...))   # index = features
    """
    _values: NDArray[np.floating[Any]] | sparse.csr_matrix
    storage_class: str
    storage_package: str
    row_names: Any = None
    col_names: Any = None
    
    @classmethod
    def build(cls, x: Any) -> RowMatrix:
        """
        Wrap an input matrix.
        
        Raises:
            ValidationError: If the matrix is not numeric
            DimensionError: If a dense input is not 2D
        """
        storage_class, storage_package = storage_tag(x)
        
        if sparse.issparse(x):
            if not np.issubdtype(x.dtype, np.number) or np.issubdtype(x.dtype, np.complexfloating):
                raise ValidationError(
                    f"x: non-numeric sparse dtype {x.dtype}, expected real numeric data"
                )
            values = sparse.csr_matrix(x, dtype=np.float64, copy=True)
            values.sum_duplicates()
            return cls(values, storage_class, storage_package)
        
        if _is_dataframe(x):
            values = check_array(x.to_numpy(), 'x')
            check_2d(values, 'x')
            return cls(values, storage_class, storage_package,
                       row_names=x.index, col_names=x.columns)
        
        values = check_array(x, 'x')
        check_2d(values, 'x')
        return cls(values, storage_class, storage_package)
    
    @property
    def n_rows(self) -> int:
        return self._values.shape[0]
    
    @property
    def n_cols(self) -> int:
        return self._values.shape[1]
    
    @property
    def is_sparse(self) -> bool:
        return sparse.issparse(self._values)
    
    def get_row(self, i: int, buffer: NDArray[np.float64]) -> NDArray[np.float64]:
        """Overwrite buffer with row i as dense float64 values."""
        if self.is_sparse:
            start, end = self._values.indptr[i], self._values.indptr[i + 1]
            buffer.fill(0.0)
            buffer[self._values.indices[start:end]] = self._values.data[start:end]
        else:
            buffer[:] = self._values[i]
        return buffer
    
    def subset_row_names(self, subset: NDArray[np.intp]) -> Any:
        """Row labels for the selected rows, or None for unlabelled input."""
        if self.row_names is None:
            return None
        return self.row_names.take(subset)


class OutputMatrix:
    """
    Write-once row store finalized into a chosen storage class.
    
    Storage for every row is allocated up front. Rows are written densely;
    compression into a sparse format happens once in yield_matrix().
    """
    
    def __init__(
        self,
        n_rows: int,
        n_cols: int,
        param: OutputParam,
        row_names: Any = None,
        col_names: Any = None,
    ):
        self._values = np.zeros((n_rows, n_cols), dtype=np.float64)
        self._param = param
        self._row_names = row_names
        self._col_names = col_names
        self._finalized = False
    
    @property
    def shape(self) -> tuple[int, int]:
        return self._values.shape
    
    @property
    def param(self) -> OutputParam:
        return self._param
    
    def set_row(self, i: int, buffer: NDArray[np.float64]) -> None:
        """Copy buffer into row i."""
        if self._finalized:
            raise RuntimeError("OutputMatrix.set_row() called after yield_matrix()")
        self._values[i, :] = buffer
    
    def yield_matrix(self) -> Any:
        """
        Finalize and return the matrix in the selected storage class.
        
        Raises:
            RuntimeError: If called twice
        """
        if self._finalized:
            raise RuntimeError("OutputMatrix.yield_matrix() called twice")
        self._finalized = True
        
        param = self._param
        if param.is_sparse:
            fmt = SPARSE_FORMATS[param.storage_class]
            if param.storage_class.endswith('_array'):
                return sparse.csr_array(self._values).asformat(fmt)
            return sparse.csr_matrix(self._values).asformat(fmt)
        
        if param.is_frame:
            import pandas as pd
            return pd.DataFrame(self._values, index=self._row_names, columns=self._col_names)
        
        return self._values
