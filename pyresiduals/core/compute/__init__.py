"""
Shared compute infrastructure for PyResiduals.

Hardware detection, timing utilities, tolerance tiers and linear algebra
kernels shared by all domain-specific backends. Domain backends live in
{domain}/backends/, not here.

Submodules:
    device: Hardware detection and device selection
    timing: Execution timing utilities
    tolerances: Accuracy expected of each compute path
    linalg: Orthogonal factor application
"""

from pyresiduals.core.compute.device import (
    DeviceInfo,
    detect_gpu,
    get_cpu_info,
    select_device,
)
from pyresiduals.core.compute.timing import Timer

__all__ = [
    "DeviceInfo",
    "detect_gpu",
    "get_cpu_info",
    "select_device",
    "Timer",
]
