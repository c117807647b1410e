"""
Residual backends.

Available backends:
    CPUResidualBackend: CPU reference implementation using LAPACK dormqr
    GPUResidualBackend: CUDA implementation using torch.ormqr (import on demand)
"""

from pyresiduals.residuals.backends.cpu import CPUResidualBackend

__all__ = [
    "CPUResidualBackend",
]
