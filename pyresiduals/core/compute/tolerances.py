"""
Tolerance tiers for numerical validation.

Residuals from the two orthogonal multiplies agree with an independent
least-squares computation to within the tier of the path that produced
them:
- CPU FP64 (reference, LAPACK dormqr)
- GPU FP64: same as CPU
- GPU FP32: relaxed for single-precision arithmetic

Used by the test suite and by the GPU backend's precision warning.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


CPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-10,
    name='cpu_fp64',
    description='CPU double precision, LAPACK reference',
)

GPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-10,
    name='gpu_fp64',
    description='GPU double precision, matches CPU reference',
)

GPU_FP32 = ToleranceTier(
    rtol=1e-4,
    atol=1e-4,
    name='gpu_fp32',
    description='GPU single precision, statistically equivalent',
)


def select_tolerance(backend_name: str) -> ToleranceTier:
    """Select the tolerance tier for a backend name."""
    if 'gpu' in backend_name:
        if 'fp32' in backend_name:
            return GPU_FP32
        return GPU_FP64
    return CPU_FP64
