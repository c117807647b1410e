"""
Application of the orthogonal factor of a QR decomposition.

A factorization X = QR computed by LAPACK geqrf (scipy.linalg.qr with
mode='raw', or R's qr(..., LAPACK=TRUE)) stores Q implicitly as a
product of Householder reflectors: the reflector vectors below the
diagonal of the compact matrix, and their scale factors in a separate
auxiliary vector (tau, called qraux in R). Q is never formed here; it is
applied to a vector with LAPACK ormqr on the CPU and torch.ormqr on the
GPU, which costs O(n * k) per vector instead of O(n^2).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.linalg import get_lapack_funcs

from pyresiduals.core.exceptions import DimensionError, NumericalError, ValidationError
from pyresiduals.core.validation import check_array, check_1d, check_2d, check_finite

if TYPE_CHECKING:
    import torch


@dataclass(frozen=True)
class QRFactorization:
    """
    Compact QR factorization of an (n_obs x n_coefs) design matrix.
    
    Attributes:
        qr: Compact matrix (n_obs x n_coefs), Fortran-ordered, reflectors
            stored below the diagonal
        qraux: Reflector scale factors (n_coefs,)
    
    Construct with build(), which validates shapes.
    """
    qr: NDArray[np.floating[Any]]
    qraux: NDArray[np.floating[Any]]
    
    @classmethod
    def build(cls, qr: Any, qraux: ArrayLike | None = None) -> QRFactorization:
        """
        Validate and wrap a compact QR factorization.
        
        Args:
            qr: Compact QR matrix, an existing QRFactorization, or the
                (qr, tau) pair returned by scipy.linalg.qr(X, mode='raw')[0]
            qraux: Auxiliary vector. May be omitted when qr already
                carries it.
                
        Returns:
            QRFactorization
            
        Raises:
            ValidationError: If qraux is missing or inputs are non-numeric
                or non-finite
            DimensionError: If qraux length differs from the number of
                columns of qr, or there are more coefficients than observations
        """
        if qraux is None:
            if isinstance(qr, QRFactorization):
                return qr
            if isinstance(qr, tuple) and len(qr) == 2:
                qr, qraux = qr
            else:
                raise ValidationError(
                    "qraux: required unless qr is a QRFactorization or a (qr, tau) pair"
                )
        
        qr_arr = check_array(qr, 'qr')
        check_2d(qr_arr, 'qr')
        qraux_arr = check_array(qraux, 'qraux')
        check_1d(qraux_arr, 'qraux')
        
        n_obs, n_coefs = qr_arr.shape
        if qraux_arr.shape[0] != n_coefs:
            raise DimensionError(
                f"qraux: length {qraux_arr.shape[0]} does not match the "
                f"{n_coefs} columns of qr",
                expected=n_coefs,
                actual=qraux_arr.shape[0],
            )
        if n_coefs > n_obs:
            raise DimensionError(
                f"qr: {n_coefs} coefficients exceed {n_obs} observations",
                expected=n_obs,
                actual=n_coefs,
            )
        check_finite(qr_arr, 'qr')
        check_finite(qraux_arr, 'qraux')
        
        return cls(
            qr=np.asfortranarray(qr_arr, dtype=np.float64),
            qraux=np.ascontiguousarray(qraux_arr, dtype=np.float64),
        )
    
    @property
    def n_obs(self) -> int:
        """Number of observations (samples)."""
        return self.qr.shape[0]
    
    @property
    def n_coefs(self) -> int:
        """Number of fitted coefficients."""
        return self.qr.shape[1]


class OrthogonalMultiplier:
    """
    Applies Q or Q' of a factorization to vectors in place.
    
    The LAPACK workspace size is queried once at construction so that
    repeated calls on a reused buffer do no allocation beyond LAPACK's
    own output.
    
    A factorization with zero observations or zero coefficients has
    Q equal to the identity; calls are then no-ops.
    """
    
    def __init__(self, factor: QRFactorization, transpose: bool):
        self._factor = factor
        self._trans = 'T' if transpose else 'N'
        self._ormqr, = get_lapack_funcs(('ormqr',), (factor.qr,))
        self._identity = factor.n_obs == 0 or factor.n_coefs == 0
        self._lwork = 1
        
        if not self._identity:
            probe = np.zeros((factor.n_obs, 1), dtype=np.float64)
            _, work, info = self._ormqr(
                'L', self._trans, factor.qr, factor.qraux, probe, -1
            )
            _check_info(info)
            self._lwork = max(1, int(np.real(work[0])))
    
    @property
    def transpose(self) -> bool:
        return self._trans == 'T'
    
    @property
    def n_coefs(self) -> int:
        """Number of coefficients implied by the factorization."""
        return self._factor.n_coefs
    
    def __call__(self, vector: NDArray[np.float64]) -> NDArray[np.float64]:
        """
        Overwrite vector with Q' vector (transpose) or Q vector.
        
        Args:
            vector: Contiguous float64 vector of length n_obs
            
        Returns:
            The same vector object
            
        Raises:
            DimensionError: If the vector length differs from n_obs
            NumericalError: If LAPACK reports an illegal argument
        """
        if vector.shape[0] != self._factor.n_obs:
            raise DimensionError(
                f"vector: length {vector.shape[0]} does not match the "
                f"{self._factor.n_obs} observations of the factorization",
                expected=self._factor.n_obs,
                actual=vector.shape[0],
            )
        if self._identity:
            return vector
        
        cq, _, info = self._ormqr(
            'L', self._trans, self._factor.qr, self._factor.qraux,
            vector.reshape(-1, 1), self._lwork, overwrite_c=1,
        )
        _check_info(info)
        vector[:] = cq[:, 0]
        return vector


def apply_q_cpu(
    factor: QRFactorization,
    vector: NDArray[np.float64],
    transpose: bool,
) -> NDArray[np.float64]:
    """
    One-shot in-place multiplication by Q (transpose=False) or Q'.
    
    Prefer OrthogonalMultiplier when the same side is applied repeatedly.
    """
    return OrthogonalMultiplier(factor, transpose)(vector)


def apply_q_gpu(
    qr: 'torch.Tensor',
    tau: 'torch.Tensor',
    vector: 'torch.Tensor',
    transpose: bool,
) -> 'torch.Tensor':
    """
    In-place multiplication by Q or Q' on the tensor's device.
    
    Args:
        qr: Compact QR tensor (n_obs x n_coefs)
        tau: Reflector scale factors (n_coefs,)
        vector: Tensor of length n_obs, same device and dtype as qr
        transpose: Apply Q' instead of Q
        
    Returns:
        The same vector tensor
    """
    import torch
    
    if vector.shape[0] != qr.shape[0]:
        raise DimensionError(
            f"vector: length {vector.shape[0]} does not match the "
            f"{qr.shape[0]} observations of the factorization",
            expected=qr.shape[0],
            actual=vector.shape[0],
        )
    if qr.shape[0] == 0 or qr.shape[1] == 0:
        return vector
    
    out = torch.ormqr(qr, tau, vector.unsqueeze(1), left=True, transpose=transpose)
    vector.copy_(out.squeeze(1))
    return vector


def _check_info(info: int) -> None:
    if info < 0:
        raise NumericalError(
            f"dormqr: argument {-info} had an illegal value",
            routine='dormqr',
            info=int(info),
        )
