"""
GPU tests for QR residuals.

The GPU backend runs the same per-row loop with torch.ormqr; in FP64 it
must agree with the CPU reference to the tolerance tier of its backend.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pyresiduals.core.compute.tolerances import GPU_FP32, select_tolerance
from pyresiduals.residuals import fit

# Check GPU availability
try:
    import torch
    GPU_AVAILABLE = torch.cuda.is_available()
except ImportError:
    GPU_AVAILABLE = False


@pytest.mark.skipif(not GPU_AVAILABLE, reason="CUDA not available")
class TestResidualsGPU:
    """GPU residuals against the CPU reference."""

    def test_gpu_matches_cpu(self, expression, factorization):
        cpu = fit(expression, *factorization, backend='cpu')
        gpu = fit(expression, *factorization, backend='gpu')
        tol = select_tolerance(gpu.backend_name)
        assert gpu.backend_name == 'gpu_ormqr_fp64'
        assert_allclose(gpu.residuals, cpu.residuals,
                        rtol=tol.rtol, atol=tol.atol)

    def test_gpu_censoring_matches_cpu(self, expression, factorization):
        cpu = fit(expression, *factorization, lower_bound=1.0, backend='cpu')
        gpu = fit(expression, *factorization, lower_bound=1.0, backend='gpu')
        tol = select_tolerance(gpu.backend_name)
        np.testing.assert_array_equal(gpu.censored_counts, cpu.censored_counts)
        assert_allclose(gpu.residuals, cpu.residuals,
                        rtol=tol.rtol, atol=tol.atol)

    def test_gpu_subset(self, expression, factorization):
        cpu = fit(expression, *factorization, subset=[5, 5, 0], backend='cpu')
        gpu = fit(expression, *factorization, subset=[5, 5, 0], backend='gpu')
        tol = select_tolerance(gpu.backend_name)
        assert_allclose(gpu.residuals, cpu.residuals,
                        rtol=tol.rtol, atol=tol.atol)

    def test_fp32_warns(self, expression, factorization):
        with pytest.warns(RuntimeWarning, match="float32"):
            gpu = fit(expression, *factorization, backend='gpu', use_fp64=False)
        assert gpu.backend_name == 'gpu_ormqr_fp32'
        assert len(gpu.warnings) == 1

        cpu = fit(expression, *factorization, backend='cpu')
        tol = select_tolerance(gpu.backend_name)
        assert tol is GPU_FP32
        assert_allclose(gpu.residuals, cpu.residuals,
                        rtol=tol.rtol, atol=tol.atol)

    def test_gpu_timing_sections(self, expression, factorization):
        gpu = fit(expression, *factorization, backend='gpu')
        assert 'rows' in gpu.timing
        assert gpu.info['device'].startswith('cuda')


@pytest.mark.skipif(GPU_AVAILABLE, reason="CUDA is available")
def test_gpu_unavailable_raises(expression, factorization):
    with pytest.raises(RuntimeError):
        fit(expression, *factorization, backend='gpu')
