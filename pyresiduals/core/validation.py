"""
Input validation utilities for PyResiduals.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import numbers

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pyresiduals.core.exceptions import (
    ValidationError,
    DimensionError,
    InvalidScalarError,
)


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to numpy array.
    
    Accepts any array-like and converts to numpy array. Rejects inputs
    that result in object dtype (indicating mixed types or non-numeric data).
    
    Args:
        array: Input to validate
        name: Parameter name for error messages
        
    Returns:
        numpy.ndarray with numeric dtype
        
    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e
    
    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    # Reject non-numeric dtypes (strings, bytes, datetime, etc.)
    if not np.issubdtype(result.dtype, np.number) or np.issubdtype(result.dtype, np.complexfloating):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected real numeric data"
        )

    # Ensure floating point for numerical stability
    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.
    
    Args:
        array: Array to check
        name: Parameter name for error messages
        
    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.
    
    Args:
        array: Array to check
        ndim: Required number of dimensions
        name: Parameter name for error messages
        
    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}",
            expected=ndim,
            actual=array.ndim,
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_length(array: NDArray[Any], length: int, name: str) -> None:
    """
    Verify a 1D array has exactly the given length.
    
    Args:
        array: Array to check
        length: Required length
        name: Parameter name for error messages
        
    Raises:
        DimensionError: If the length differs
    """
    if array.shape[0] != length:
        raise DimensionError(
            f"{name}: expected length {length}, got {array.shape[0]}",
            expected=length,
            actual=array.shape[0],
        )


def check_min_samples(array: NDArray[np.floating[Any]], min_samples: int, name: str, axis: int = 0) -> None:
    """
    Verify array has at least the minimum number of samples.
    
    Args:
        array: Array to check
        min_samples: Minimum required samples along axis
        name: Parameter name for error messages
        axis: Axis holding the samples
        
    Raises:
        ValidationError: If array has fewer than min_samples
    """
    n = array.shape[axis]
    if n < min_samples:
        raise ValidationError(
            f"{name}: requires at least {min_samples} samples, got {n}"
        )


def check_numeric_scalar(value: Any, name: str) -> float:
    """
    Verify a value is a single real number and return it as a float.
    
    NaN and infinite values are accepted; callers decide what they mean.
    Booleans, strings, complex numbers and arrays with more than one
    element are rejected.
    
    Args:
        value: Candidate scalar
        name: Parameter name for error messages
        
    Returns:
        The value as a Python float
        
    Raises:
        InvalidScalarError: If value is not a single real number
    """
    if isinstance(value, (bool, np.bool_)):
        raise InvalidScalarError(
            f"{name}: expected a real number, got boolean {value!r}",
            name=name, value=value,
        )
    
    if isinstance(value, np.ndarray):
        if value.size != 1:
            raise InvalidScalarError(
                f"{name}: expected a single value, got array of size {value.size}",
                name=name, value=value,
            )
        if value.dtype == np.bool_ or not np.issubdtype(value.dtype, np.number) \
                or np.issubdtype(value.dtype, np.complexfloating):
            raise InvalidScalarError(
                f"{name}: expected a real number, got dtype {value.dtype}",
                name=name, value=value,
            )
        return float(value.reshape(-1)[0])
    
    if not isinstance(value, numbers.Real):
        raise InvalidScalarError(
            f"{name}: expected a real number, got {type(value).__name__}",
            name=name, value=value,
        )
    return float(value)


def check_positive_int(value: Any, name: str) -> int:
    """
    Verify a value is an integer >= 1.
    
    Raises:
        ValidationError: If value is not a positive integer
    """
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Integral):
        raise ValidationError(f"{name}: expected an integer, got {value!r}")
    if value < 1:
        raise ValidationError(f"{name}: must be >= 1, got {value}")
    return int(value)
