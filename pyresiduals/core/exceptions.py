"""
Exception hierarchy for PyResiduals.

All exceptions inherit from PyResidualsError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""

from typing import Any


class PyResidualsError(Exception):
    """Base exception for all PyResiduals errors."""
    pass


class ValidationError(PyResidualsError):
    """
    Input validation failed.
    
    Raised when user-provided inputs fail validation checks. Every
    validation error is raised before any row of the input is read.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.
    
    Raised when array shapes don't match expected dimensions, when the
    factorization disagrees with the number of samples in the matrix, or
    when the factorization has more coefficients than observations.
    
    Attributes:
        expected: The expected size, if a single size applies
        actual: The size that was found
    """
    
    def __init__(
        self,
        message: str,
        expected: int | None = None,
        actual: int | None = None
    ):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class SubsetBoundsError(ValidationError, IndexError):
    """
    A subset index does not refer to a row of the matrix.
    
    The whole subset is checked before any output is allocated, so this
    never leaves a partially written result behind.
    
    Attributes:
        index: The offending index (or name) exactly as supplied
        n_rows: Number of rows in the matrix being subset
    """
    
    def __init__(
        self,
        message: str,
        index: Any = None,
        n_rows: int | None = None
    ):
        super().__init__(message)
        self.index = index
        self.n_rows = n_rows


class InvalidScalarError(ValidationError):
    """
    A parameter that must be a single real number is not one.
    
    Attributes:
        name: Parameter name
        value: The rejected value
    """
    
    def __init__(self, message: str, name: str | None = None, value: Any = None):
        super().__init__(message)
        self.name = name
        self.value = value


class NumericalError(PyResidualsError):
    """
    Numerical computation failed.
    
    Raised when a LAPACK routine reports an illegal argument. With
    validated inputs this indicates a bug rather than bad data.
    
    Attributes:
        routine: Name of the failing routine (e.g. 'dormqr')
        info: The routine's INFO return code
    """
    
    def __init__(
        self,
        message: str,
        routine: str | None = None,
        info: int | None = None
    ):
        super().__init__(message)
        self.routine = routine
        self.info = info
