"""
Denoised PCA of a features x samples matrix.

The number of PCs is chosen so that the discarded PCs account for the
technical component of the variance. When a QR factorization of a
design matrix is supplied, the PCA is performed on the residuals of
that design, removing known structure (batches, covariates) first.
"""

from __future__ import annotations

from typing import Any, Callable
import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import sparse

from pyresiduals.core.result import Result
from pyresiduals.core.exceptions import ValidationError
from pyresiduals.core.compute.timing import Timer
from pyresiduals.core.validation import (
    check_array,
    check_1d,
    check_length,
    check_min_samples,
    check_positive_int,
)
from pyresiduals.residuals.accessor import RowMatrix, storage_tag
from pyresiduals.residuals.design import resolve_subset, IndexBase
from pyresiduals.residuals.solvers import fit as residual_fit
from pyresiduals.pca._number import denoise_pca_number
from pyresiduals.pca.solution import PCAParams, PCASolution


Technical = ArrayLike | Callable[[NDArray[np.floating[Any]]], ArrayLike]


def denoise_pca(
    x: Any,
    technical: Technical,
    *,
    subset: ArrayLike | None = None,
    min_rank: int = 5,
    max_rank: int = 50,
    fill_missing: bool = False,
    qr: Any = None,
    qraux: ArrayLike | None = None,
    lower_bound: Any = None,
    index_base: IndexBase = 0,
) -> PCASolution:
    """
    PCA retaining only the components above the technical noise.

    Args:
        x: Features x samples matrix (ndarray, scipy.sparse or DataFrame)
        technical: Technical component of the variance of each feature.
            One of: an array of length n_rows of x; a function mapping
            the mean of each selected raw row to its technical variance;
            or a DataFrame with 'total' and 'tech' columns (one row per
            feature of x), whose tech values are rescaled so that the
            reported total matches the observed variance.
        subset: Rows to use, see residuals.resolve_subset()
        min_rank: Minimum number of PCs to retain
        max_rank: Maximum number of PCs to compute
        fill_missing: Extrapolate rotation vectors to every feature of
            x, including those not used in the SVD, so that rotation
            has n_rows rows in the order of x
        qr, qraux: Optional QR factorization of a design matrix. When
            given, PCA runs on the residuals of each row.
        lower_bound: Censoring threshold passed to the residual step
        index_base: Origin of integer positions in subset

    Returns:
        PCASolution

    Raises:
        ValidationError: If technical has the wrong length or columns,
            ranks are invalid, fewer than 2 samples are present, or no
            feature has more variance than its technical component
    """
    min_rank = check_positive_int(min_rank, 'min_rank')
    max_rank = check_positive_int(max_rank, 'max_rank')
    if min_rank > max_rank:
        raise ValidationError(f"min_rank ({min_rank}) exceeds max_rank ({max_rank})")

    timer = Timer()
    timer.start()

    matrix = RowMatrix.build(x)
    rows = resolve_subset(subset, matrix.n_rows, index_base=index_base,
                          row_names=matrix.row_names)

    def row_values(selected: NDArray[np.intp]) -> NDArray[np.float64]:
        if qr is not None:
            return _as_dense(residual_fit(
                x, qr, qraux, subset=selected, lower_bound=lower_bound, backend='cpu',
            ).residuals)
        return _raw_values(matrix, selected)

    with timer.section('values'):
        values = row_values(rows)

    check_min_samples(values, 2, 'x', axis=1)

    with timer.section('variance'):
        all_var = values.var(axis=1, ddof=1)
        if callable(technical):
            raw = values if qr is None else _raw_values(matrix, rows)
            tech_var = _trend_variance(technical, raw.mean(axis=1))
        else:
            tech_var = _technical_variance(technical, all_var, rows, matrix.n_rows)
        keep = all_var > tech_var
        if not np.any(keep):
            raise ValidationError(
                "technical: no feature has total variance above its technical variance"
            )
        all_var = all_var[keep]
        tech_var = tech_var[keep]
        kept = rows[keep]

    with timer.section('svd'):
        y = values[keep].T
        y = y - y.mean(axis=0)
        u, d, vt = np.linalg.svd(y, full_matrices=False)
        n_comp = min(max_rank, d.shape[0])
        u, d, vt = u[:, :n_comp], d[:n_comp], vt[:n_comp]

    var_exp = d ** 2 / (values.shape[1] - 1)
    total_var = float(all_var.sum())
    npcs = denoise_pca_number(var_exp, float(tech_var.sum()), total_var)
    n_keep = min(max(npcs, min_rank), var_exp.shape[0])

    rotation = vt[:n_keep].T
    if fill_missing:
        with timer.section('fill_missing'):
            leftover = np.setdiff1d(np.arange(matrix.n_rows), kept)
            rotation = _fill_rotation(
                rotation, kept, leftover, row_values(leftover),
                u[:, :n_keep], d[:n_keep], matrix.n_rows,
            )

    timer.stop()

    params = PCAParams(
        components=u[:, :n_keep] * d[:n_keep],
        rotation=rotation,
        percent_var=var_exp / total_var * 100,
        kept=kept,
        tech_var=tech_var,
    )
    info = {
        'method': 'denoised_pca',
        'n_candidates': rows.size,
        'on_residuals': qr is not None,
        'npcs_chosen': npcs,
        'min_rank': min_rank,
        'max_rank': max_rank,
        'fill_missing': fill_missing,
    }
    return PCASolution(_result=Result(
        params=params,
        info=info,
        timing=timer.result(),
        backend_name='cpu_svd',
    ))


def denoise_lowrank(x: Any, technical: Technical, **kwargs: Any) -> NDArray[np.float64]:
    """
    Low-rank approximation of x from its denoised PCs.

    Runs denoise_pca() with fill_missing=True and returns
    rotation @ components.T, a features x samples matrix covering every
    row of x. Keyword arguments are passed on to denoise_pca().
    """
    return denoise_pca(x, technical, fill_missing=True, **kwargs).lowrank()


def _raw_values(matrix: RowMatrix, rows: NDArray[np.intp]) -> NDArray[np.float64]:
    values = np.empty((rows.size, matrix.n_cols), dtype=np.float64)
    for s, r in enumerate(rows):
        matrix.get_row(r, values[s])
    return values


def _trend_variance(
    trend: Callable[[NDArray[np.floating[Any]]], ArrayLike],
    means: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """Technical variance from a mean-variance trend fitted to raw values."""
    tech = check_array(trend(means), 'technical')
    check_1d(tech, 'technical')
    check_length(tech, means.size, 'technical')
    return tech


def _technical_variance(
    technical: Any,
    all_var: NDArray[np.floating[Any]],
    rows: NDArray[np.intp],
    n_rows: int,
) -> NDArray[np.floating[Any]]:
    """Technical variance of each selected row from a vector or decomposition table."""
    if storage_tag(technical) == ('DataFrame', 'pandas'):
        missing = sorted({'total', 'tech'} - set(technical.columns))
        if missing:
            raise ValidationError(f"technical: DataFrame lacks column(s) {missing}")
        total = _column(technical, 'total', n_rows)[rows]
        tech = _column(technical, 'tech', n_rows)[rows]

        with np.errstate(divide='ignore', invalid='ignore'):
            tech_var = tech * (all_var / total)
        no_total = total == 0
        tech_var[no_total & (all_var == 0)] = 0.0
        tech_var[no_total & (all_var != 0)] = np.inf
        return tech_var

    tech = check_array(technical, 'technical')
    check_1d(tech, 'technical')
    check_length(tech, n_rows, 'technical')
    return tech[rows]


def _column(frame: Any, name: str, n_rows: int) -> NDArray[np.floating[Any]]:
    column = check_array(frame[name].to_numpy(), f"technical.{name}")
    check_length(column, n_rows, f"technical.{name}")
    return column.astype(np.float64)


def _fill_rotation(
    rotation: NDArray[np.floating[Any]],
    kept: NDArray[np.intp],
    leftover: NDArray[np.intp],
    left_values: NDArray[np.float64],
    u: NDArray[np.floating[Any]],
    d: NDArray[np.floating[Any]],
    n_rows: int,
) -> NDArray[np.float64]:
    """
    Rotation vectors for every feature.

    Features outside the SVD are new columns of the centered samples x
    features matrix UDV'. Projecting them onto U and dividing by D gives
    their rows of V.
    """
    full = np.zeros((n_rows, rotation.shape[1]), dtype=np.float64)
    full[kept] = rotation
    if leftover.size:
        projected = left_values @ u - np.outer(left_values.mean(axis=1), u.sum(axis=0))
        full[leftover] = projected / d
    return full


def _as_dense(matrix: Any) -> NDArray[np.float64]:
    if sparse.issparse(matrix):
        return matrix.toarray()
    if hasattr(matrix, 'to_numpy'):
        return matrix.to_numpy(dtype=np.float64)
    return np.asarray(matrix, dtype=np.float64)
