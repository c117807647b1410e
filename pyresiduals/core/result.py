"""
Generic result container for all PyResiduals computations.

Every backend wraps its output in the same envelope so that timing,
diagnostics and warnings are reported identically whether the work ran
through LAPACK on the CPU or through PyTorch on a GPU.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (n_coefs, censoring counts, output class)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for a backend computation.
    
    Type Parameters:
        P: The domain-specific parameter payload type
        
    Attributes:
        params: Domain-specific payload (residual matrix, PCA components, ...)
        info: Structured metadata describing the run
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation
        
    Examples:
        >>> Result(
        ...     params=ResidualParams(residuals=res, subset=idx, censored_counts=counts),
        ...     info={'method': 'qr_residuals', 'n_coefs': 2},
        ...     timing={'total_seconds': 0.01, 'rows': 0.008},
        ...     backend_name='cpu_dormqr'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)
    
    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
