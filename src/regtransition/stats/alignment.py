"""
Orthogonal alignment of two score matrices (Kabsch-style).

Given two matrices P and Q observed over the same rows (targets) and the
same number of columns (regulators), find the orthogonal map W between
their column spaces that minimises the squared residual after centering.

Algorithm
=========

1. Center P and Q column-wise.
2. Cross-covariance C = cov(P_c, Q_c), features x features (n - 1 denominator).
3. Corrected covariance C' = C - k * outer(Q_bar, P_bar), where k is the
   number of columns of P and P_bar, Q_bar are the column means of the
   centered matrices.
4. SVD: C' = U S V'.
5. Axis signs c = colsum((P_c V) * (Q_c U)) - n * (P_bar V) * (Q_bar U),
   E = diag(sign(c)).
6. W = V E U'.

The mean-correction terms in steps 3 and 5 are applied exactly as written,
including their scalar multipliers. After centering they are rounding-level.

W may be improper (det = -1): reflections are allowed.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from regtransition.core.errors import InvalidInputError
from regtransition.utils.statistics import center_columns

__all__ = [
    'kabsch_rotation',
    'kabsch_align',
]


def kabsch_rotation(
    p: NDArray[np.float64],
    q: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Orthogonal map between the column spaces of p and q.

    Args:
        p: Matrix (n_obs, n_features)
        q: Matrix with the same shape as p

    Returns:
        W with shape (n_features, n_features). For p == q, W is the
        identity. For q = p @ R with R orthogonal, W is R.T: the map in
        column-vector form, q_row.T = W @ p_row.T. When R is symmetric (a
        reflection or an involutive permutation) this equals R. The sign
        rule keeps every axis for rotations close to the identity; large
        rotations can come back with flipped axes.

    Raises:
        InvalidInputError: If shapes differ or fewer than two observations.
    """
    p = np.asarray(p, dtype=np.float64)
    q = np.asarray(q, dtype=np.float64)
    if p.ndim != 2 or p.shape != q.shape:
        raise InvalidInputError(
            f"alignment requires matrices of identical 2-D shape, got {p.shape} and {q.shape}"
        )
    n_obs, n_features = p.shape
    if n_obs < 2:
        raise InvalidInputError("alignment requires at least two observations")

    p_c = center_columns(p)
    q_c = center_columns(q)

    covmat = center_columns(p_c).T @ center_columns(q_c) / (n_obs - 1)
    p_bar = p_c.mean(axis=0)
    q_bar = q_c.mean(axis=0)

    u, _, vt = np.linalg.svd(covmat - n_features * np.outer(q_bar, p_bar))
    v = vt.T

    c_k = (
        np.sum((p_c @ v) * (q_c @ u), axis=0)
        - n_obs * (p_bar @ v) * (q_bar @ u)
    )
    e = np.diag(np.sign(c_k))

    return v @ e @ u.T


def kabsch_align(p: pd.DataFrame | NDArray[np.float64], q: pd.DataFrame | NDArray[np.float64]) -> pd.DataFrame:
    """
    Labelled wrapper around :func:`kabsch_rotation`.

    Both axes of the result carry the column labels of p (positions when p
    is an unlabelled array).
    """
    p_values = p.to_numpy(dtype=np.float64) if isinstance(p, pd.DataFrame) else p
    q_values = q.to_numpy(dtype=np.float64) if isinstance(q, pd.DataFrame) else q
    w = kabsch_rotation(p_values, q_values)
    labels = p.columns if isinstance(p, pd.DataFrame) else pd.RangeIndex(w.shape[0])
    return pd.DataFrame(w, index=labels, columns=labels)
