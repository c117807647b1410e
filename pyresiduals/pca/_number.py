"""
Choice of the number of principal components to retain.
"""

import numpy as np
from numpy.typing import ArrayLike

from pyresiduals.core.validation import check_array, check_1d, check_numeric_scalar


def denoise_pca_number(var_exp: ArrayLike, var_tech: float, var_total: float) -> int:
    """
    Number of leading PCs to keep so that the discarded ones account for
    the technical noise.
    
    Biological signal is assumed to sit in the earliest PCs, so PCs are
    discarded from the end until their variance, plus any variance not
    captured by the computed PCs at all, exceeds var_tech.
    
    Args:
        var_exp: Variance explained by each PC, in decreasing order
        var_tech: Total technical variance
        var_total: Total variance of the data
        
    Returns:
        Number of PCs to keep, at least 1
    """
    var_exp = check_array(var_exp, 'var_exp')
    check_1d(var_exp, 'var_exp')
    var_tech = check_numeric_scalar(var_tech, 'var_tech')
    var_total = check_numeric_scalar(var_total, 'var_total')
    
    npcs = var_exp.shape[0]
    flipped = var_exp[::-1]
    estimated_contrib = np.cumsum(flipped) + (var_total - flipped.sum())
    
    above_noise = estimated_contrib > var_tech
    if np.any(above_noise):
        return int(npcs - np.argmax(above_noise))
    return 1
