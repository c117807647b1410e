"""
Output storage selection for residual matrices.

By default the residual matrix is returned in the same storage class as
the input. Residuals are dense even when the raw values are sparse (most
entries become non-zero once the fitted component is removed), so
compressed-sparse-column input is returned as a dense array instead.

The choice is a pure function of the input's (class, package) tag and
is expressed as a lookup table so that further storage classes can be
added without touching the residual engine.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OutputParam:
    """
    Storage class of an output matrix.
    
    Attributes:
        storage_class: Type name, e.g. 'ndarray', 'csr_matrix', 'DataFrame'
        storage_package: Top-level package of the type, e.g. 'numpy'
    """
    storage_class: str
    storage_package: str
    
    @property
    def is_dense(self) -> bool:
        return (self.storage_class, self.storage_package) == ('ndarray', 'numpy')
    
    @property
    def is_sparse(self) -> bool:
        return self.storage_package == 'scipy' and self.storage_class in SPARSE_FORMATS
    
    @property
    def is_frame(self) -> bool:
        return (self.storage_class, self.storage_package) == ('DataFrame', 'pandas')


DENSE_OUTPUT = OutputParam('ndarray', 'numpy')

# scipy.sparse class name -> format string understood by asformat()
SPARSE_FORMATS: dict[str, str] = {
    f"{fmt}_{flavour}": fmt
    for fmt in ('csr', 'csc', 'coo', 'lil', 'dok', 'bsr', 'dia')
    for flavour in ('matrix', 'array')
}

# Explicit overrides of the mirror-the-input rule.
OUTPUT_POLICY: dict[tuple[str, str], OutputParam] = {
    ('csc_matrix', 'scipy'): DENSE_OUTPUT,
    ('csc_array', 'scipy'): DENSE_OUTPUT,
}


def select_output(storage_class: str, storage_package: str) -> OutputParam:
    """
    Choose the output storage class for residuals of a given input.
    
    Args:
        storage_class: Type name of the input matrix
        storage_package: Top-level package of the input matrix type
        
    Returns:
        The policy entry for the tag if there is one, a mirror of the
        input for supported classes, and dense output otherwise.
    """
    key = (storage_class, storage_package)
    if key in OUTPUT_POLICY:
        return OUTPUT_POLICY[key]
    
    mirrored = OutputParam(storage_class, storage_package)
    if mirrored.is_dense or mirrored.is_sparse or mirrored.is_frame:
        return mirrored
    return DENSE_OUTPUT
