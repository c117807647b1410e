"""
Linear algebra kernels for PyResiduals.

All functions follow these conventions:
    - CPU functions use SciPy's LAPACK bindings
    - GPU functions use PyTorch and operate on device tensors
    - Errors are raised immediately with clear messages
"""

from pyresiduals.core.compute.linalg.qr import (
    QRFactorization,
    OrthogonalMultiplier,
    apply_q_cpu,
    apply_q_gpu,
)

__all__ = [
    "QRFactorization",
    "OrthogonalMultiplier",
    "apply_q_cpu",
    "apply_q_gpu",
]
