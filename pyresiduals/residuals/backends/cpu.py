"""
CPU reference backend for QR residuals.

Applies the orthogonal factor with LAPACK dormqr (through SciPy), one
row at a time, reusing a single row buffer.
"""

import numpy as np

from pyresiduals.core.result import Result
from pyresiduals.core.compute.timing import Timer
from pyresiduals.core.compute.linalg.qr import OrthogonalMultiplier
from pyresiduals.residuals.accessor import OutputMatrix
from pyresiduals.residuals.design import ResidualDesign
from pyresiduals.residuals.solution import ResidualParams
from pyresiduals.residuals._common import find_censored, censor_row, build_info


class CPUResidualBackend:
    """
    CPU backend computing least-squares residuals from a QR factorization.
    
    Implements the Backend protocol for ResidualDesign -> ResidualParams.
    
    For each selected row y, Q'y is formed, its first n_coefs entries
    (the fitted component) are zeroed, and Q is applied again. Because Q
    is orthogonal the result is y - Q1 Q1'y, the OLS residual, without
    ever forming Q.
    """
    
    @property
    def name(self) -> str:
        return 'cpu_dormqr'
    
    def solve(self, design: ResidualDesign) -> Result[ResidualParams]:
        """
        Compute residuals for every row of the design's subset.
        
        Algorithm, per subset position s with source row r:
            1. Load row r into the buffer
            2. Record columns at or below the lower bound (if enabled)
            3. buffer <- Q' buffer
            4. Zero the first n_coefs entries
            5. buffer <- Q buffer
            6. Set recorded columns to min(buffer) - 1
            7. Write the buffer as output row s
            
        Args:
            design: Validated residual design
            
        Returns:
            Result containing ResidualParams
            
        Raises:
            NumericalError: If LAPACK rejects an argument
        """
        timer = Timer()
        timer.start()
        
        matrix = design.matrix
        
        with timer.section('setup'):
            multiply_qt = OrthogonalMultiplier(design.factorization, transpose=True)
            multiply_q = OrthogonalMultiplier(design.factorization, transpose=False)
            n_coefs = multiply_qt.n_coefs
            output = OutputMatrix(
                design.n_subset, design.n_samples, design.output,
                row_names=matrix.subset_row_names(design.subset),
                col_names=matrix.col_names,
            )
            buffer = np.empty(design.n_samples, dtype=np.float64)
            censored_counts = np.zeros(design.n_subset, dtype=np.intp)
            check_lower = design.check_lower
            lower_bound = design.lower_bound
        
        with timer.section('rows'):
            for s, r in enumerate(design.subset):
                matrix.get_row(r, buffer)
                
                if check_lower:
                    censored = find_censored(buffer, lower_bound)
                
                multiply_qt(buffer)
                buffer[:n_coefs] = 0.0
                multiply_q(buffer)
                
                if check_lower:
                    censor_row(buffer, censored)
                    censored_counts[s] = censored.size
                
                output.set_row(s, buffer)
        
        with timer.section('finalize'):
            residuals = output.yield_matrix()
        
        timer.stop()
        
        params = ResidualParams(
            residuals=residuals,
            subset=design.subset,
            censored_counts=censored_counts,
        )
        
        return Result(
            params=params,
            info=build_info(design, censored_counts),
            timing=timer.result(),
            backend_name=self.name,
            warnings=(),
        )
