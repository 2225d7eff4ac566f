"""
Shared numerical utilities for transition estimation.

Functions:
    center_columns: Subtract each column's mean
    simple_regression_residuals: Column-wise residuals of y_i ~ 1 + x_i
"""

from __future__ import annotations

import numpy as np


__all__ = [
    'center_columns',
    'simple_regression_residuals',
]


def center_columns(values: np.ndarray) -> np.ndarray:
    """
    Return a column-centered copy of a 2-D array.

    Args:
        values: 2-D array (observations x features)

    Returns:
        New array with every column's mean subtracted.
    """
    values = np.asarray(values, dtype=np.float64)
    return values - values.mean(axis=0, keepdims=True)


def simple_regression_residuals(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Residuals of regressing each column of y on the matching column of x.

    For every column i this fits ``y[:, i] = a + b * x[:, i] + e`` by
    ordinary least squares and returns the residual vector ``e``. The
    columns are fitted independently but computed in one vectorized pass.

    When x[:, i] is constant its slope is not estimable; the slope is
    dropped as aliased and the residual is y[:, i] minus its mean.

    Args:
        x: Predictor matrix (n_obs, n_cols)
        y: Response matrix (n_obs, n_cols), same shape as x

    Returns:
        Residual matrix (n_obs, n_cols)

    Example:
        >>> x = np.array([[0.0], [1.0], [2.0]])
        >>> y = 2.0 * x + 1.0
        >>> np.allclose(simple_regression_residuals(x, y), 0.0)
        True
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError(f"x shape {x.shape} must match y shape {y.shape}")

    xc = center_columns(x)
    yc = center_columns(y)

    sxx = np.sum(xc * xc, axis=0)
    sxy = np.sum(xc * yc, axis=0)

    slope = np.zeros_like(sxx)
    estimable = sxx > 0
    slope[estimable] = sxy[estimable] / sxx[estimable]

    return yc - xc * slope
