"""
Core infrastructure for PyResiduals.

Shared abstractions used by the domain sub-packages (residuals, pca).

Key components:
    protocols: Backend protocol
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Hardware detection, timing, linear algebra kernels
"""

from pyresiduals.core.protocols import Backend
from pyresiduals.core.result import Result
from pyresiduals.core.exceptions import (
    PyResidualsError,
    ValidationError,
    DimensionError,
    SubsetBoundsError,
    InvalidScalarError,
    NumericalError,
)

__all__ = [
    "Backend",
    "Result",
    "PyResidualsError",
    "ValidationError",
    "DimensionError",
    "SubsetBoundsError",
    "InvalidScalarError",
    "NumericalError",
]
