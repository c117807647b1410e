"""
GPU backend for QR residuals using PyTorch.

Same per-row algorithm as the CPU reference, with the factorization and
the row buffer resident on a CUDA device and torch.ormqr as the
orthogonal multiplier. Rows are still processed one after another.
"""

import warnings

import numpy as np

from pyresiduals.core.result import Result
from pyresiduals.core.compute.timing import Timer
from pyresiduals.core.compute.tolerances import GPU_FP32
from pyresiduals.core.compute.linalg.qr import apply_q_gpu
from pyresiduals.residuals.accessor import OutputMatrix
from pyresiduals.residuals.design import ResidualDesign
from pyresiduals.residuals.solution import ResidualParams
from pyresiduals.residuals._common import find_censored, censor_row, build_info


class GPUResidualBackend:
    """
    GPU backend computing least-squares residuals from a QR factorization.

    FP64 by default so results match the CPU reference. FP32 is faster on
    consumer GPUs but only statistically equivalent.
    """

    def __init__(self, use_fp64: bool = True, device: str = 'cuda'):
        """
        Args:
            use_fp64: Run in float64 (default) or float32.
            device: CUDA device string ('cuda', 'cuda:0', ...)
        """
        import torch

        if device.startswith('cuda'):
            if not torch.cuda.is_available():
                raise RuntimeError(
                    "CUDA not available. Install PyTorch with CUDA support, "
                    "or use backend='cpu'."
                )
        elif device == 'mps':
            raise RuntimeError(
                "MPS supports neither float64 nor ormqr. Use backend='cpu'."
            )
        else:
            raise ValueError(f"Unknown GPU device: {device!r}. Use 'cuda'.")

        self.device = torch.device(device)
        self.dtype = torch.float64 if use_fp64 else torch.float32
        self.use_fp64 = use_fp64

    @property
    def name(self) -> str:
        precision = "fp64" if self.use_fp64 else "fp32"
        return f'gpu_ormqr_{precision}'

    def solve(self, design: ResidualDesign) -> Result[ResidualParams]:
        """
        Compute residuals for every row of the design's subset on the GPU.

        Censoring is detected on the raw host row and applied to the host
        copy of the residuals, exactly as on the CPU.
        """
        import torch

        warnings_list = []
        if not self.use_fp64:
            msg = (f"float32 residuals agree with the CPU reference only to "
                   f"rtol={GPU_FP32.rtol:g}, atol={GPU_FP32.atol:g}")
            warnings.warn(msg, RuntimeWarning, stacklevel=2)
            warnings_list.append(msg)

        timer = Timer(sync_cuda=True)
        timer.start()

        matrix = design.matrix
        factor = design.factorization

        with timer.section('data_transfer_to_gpu'):
            qr = torch.from_numpy(np.ascontiguousarray(factor.qr)).to(
                device=self.device, dtype=self.dtype)
            tau = torch.from_numpy(factor.qraux).to(device=self.device, dtype=self.dtype)
            row = np.empty(design.n_samples, dtype=np.float64)
            buffer = torch.empty(design.n_samples, device=self.device, dtype=self.dtype)

        with timer.section('setup'):
            n_coefs = factor.n_coefs
            output = OutputMatrix(
                design.n_subset, design.n_samples, design.output,
                row_names=matrix.subset_row_names(design.subset),
                col_names=matrix.col_names,
            )
            censored_counts = np.zeros(design.n_subset, dtype=np.intp)
            check_lower = design.check_lower
            lower_bound = design.lower_bound

        with timer.section('rows'):
            for s, r in enumerate(design.subset):
                matrix.get_row(r, row)

                if check_lower:
                    censored = find_censored(row, lower_bound)

                buffer.copy_(torch.from_numpy(row))
                apply_q_gpu(qr, tau, buffer, transpose=True)
                buffer[:n_coefs] = 0.0
                apply_q_gpu(qr, tau, buffer, transpose=False)
                row[:] = buffer.cpu().numpy()

                if check_lower:
                    censor_row(row, censored)
                    censored_counts[s] = censored.size

                output.set_row(s, row)

        with timer.section('finalize'):
            residuals = output.yield_matrix()

        timer.stop()

        params = ResidualParams(
            residuals=residuals,
            subset=design.subset,
            censored_counts=censored_counts,
        )
        info = build_info(design, censored_counts)
        info['device'] = str(self.device)

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )
