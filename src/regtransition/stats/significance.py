"""
Null-distribution significance testing for transition matrices.

The per-regulator statistic is the sum of squared off-diagonal mass
(SSODM): the squared L2 norm of a regulator's row (or column) of the
transition matrix. With the diagonal removed it measures how much of the
regulator's state-2 targeting is explained by *other* regulators' state-1
patterns, i.e. how strongly its involvement changed between conditions.

Each regulator's observed SSODM is compared with the SSODMs of the same
regulator across a null ensemble of transition matrices computed under
permuted condition labels.

P-values
========

z-score:
    z_i = (ssodm_i - mean(null_i)) / sd(null_i)     (sd with n-1 denominator)
    p_i = 1 - Phi(z_i)

    A null with zero standard deviation gives a non-finite z (0/0 = nan,
    or +/-inf); this is reported with a warning and returned unchanged.

non-parametric:
    p_i = 1 - #{null_i <= ssodm_i} / N

    i.e. one minus the position of the observed value in the sorted null
    (interval search, ties counted as "less than or equal"). An observed
    value at or above the null maximum gives exactly 0.
    A nan observed SSODM, or a nan anywhere in the regulator's null, gives
    a nan p-value (with a warning); an infinite observed value gives 0.

Differential involvement
========================

``differential_involvement`` repeats the computation column-wise (incoming
mass) and returns the t-values, p-values and the joint observed/null table
used by ranking and plotting collaborators, optionally rescaled by the
null-only mean and sd of each regulator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy import stats

from regtransition.core.errors import UnknownMethodError
from regtransition.core.network import NullEnsemble, TransitionMatrix

logger = logging.getLogger(__name__)

__all__ = [
    'SignificanceMethod',
    'resolve_significance_method',
    'SignificanceResult',
    'DifferentialInvolvementResult',
    'compute_ssodm',
    'null_ssodm_matrix',
    'calculate_pvalues',
    'score_significance',
    'differential_involvement',
    'transition_sigmas',
    'two_sided_pvalues',
    'top_transition_edges',
]

SSODMAxis = Literal["rows", "columns"]


# =============================================================================
# Enums
# =============================================================================

class SignificanceMethod(Enum):
    """
    P-value methods for observed vs null SSODM.

    - ZSCORE: Normal approximation of the null SSODM distribution.
    - NONPARAMETRIC: Empirical rank of the observed SSODM in the null.
    """

    ZSCORE = "z-score"
    NONPARAMETRIC = "non-parametric"


_SIGNIFICANCE_ALIASES = {
    "z-score": SignificanceMethod.ZSCORE,
    "zscore": SignificanceMethod.ZSCORE,
    "z_score": SignificanceMethod.ZSCORE,
    "non-parametric": SignificanceMethod.NONPARAMETRIC,
    "nonparametric": SignificanceMethod.NONPARAMETRIC,
    "non_parametric": SignificanceMethod.NONPARAMETRIC,
}


def resolve_significance_method(method: SignificanceMethod | str) -> SignificanceMethod:
    """
    Map a method token to a SignificanceMethod.

    Raises:
        UnknownMethodError: For anything other than the z-score or
            non-parametric tokens.
    """
    if isinstance(method, SignificanceMethod):
        return method
    if isinstance(method, str):
        resolved = _SIGNIFICANCE_ALIASES.get(method.strip().lower())
        if resolved is not None:
            return resolved
    valid = ", ".join(repr(m.value) for m in SignificanceMethod)
    raise UnknownMethodError(f"Undefined method {method!r}. Must be one of {valid}")


# =============================================================================
# Result Dataclasses
# =============================================================================

@dataclass(frozen=True)
class SignificanceResult:
    """
    Per-regulator significance of transition magnitude.

    Attributes:
        p_values: Regulator -> p-value (may be nan for degenerate nulls)
        statistics: Regulator -> z-score (z-score method) or fraction of
            null SSODMs <= observed (non-parametric method)
        method: Which p-value method produced this result
        n_permutations: Size of the null ensemble
        observed_ssodm: Observed row SSODM per regulator
        null_mean: Mean null SSODM per regulator
        null_std: Standard deviation (n-1) of null SSODM per regulator
    """

    p_values: pd.Series
    statistics: pd.Series
    method: SignificanceMethod
    n_permutations: int
    observed_ssodm: pd.Series
    null_mean: pd.Series
    null_std: pd.Series

    @property
    def regulators(self) -> pd.Index:
        return self.p_values.index

    def significant(self, alpha: float = 0.05) -> pd.Index:
        """Regulators with a finite p-value below alpha, most significant first."""
        p = self.p_values.dropna()
        return p[p < alpha].sort_values(kind="stable").index

    def to_frame(self) -> pd.DataFrame:
        """One row per regulator, suitable for reporting."""
        return pd.DataFrame({
            "observed_ssodm": self.observed_ssodm,
            "null_mean": self.null_mean,
            "null_std": self.null_std,
            "statistic": self.statistics,
            "p_value": self.p_values,
        })

    def to_dict(self) -> dict[str, object]:
        return {
            "method": self.method.value,
            "n_permutations": self.n_permutations,
            "p_values": {str(k): float(v) for k, v in self.p_values.items()},
        }


@dataclass(frozen=True)
class DifferentialInvolvementResult:
    """
    Column-wise SSODM comparison of observed vs null transition matrices.

    Attributes:
        observed_ssodm: Observed column SSODM per regulator
        null_ssodm: Regulators x permutations, each row sorted ascending
        t_values: (observed - null mean) / null sd per regulator
        p_values: 1 - Phi(t) per regulator
        rescaled: Whether ``combined`` is standardized by the null mean/sd
        order: Regulator display order (descending t when rescaled,
            original order otherwise)
        combined: Regulators x (null columns + "Observed"), rows in
            ``order``; rescaled when ``rescaled`` is True
    """

    observed_ssodm: pd.Series
    null_ssodm: pd.DataFrame
    t_values: pd.Series
    p_values: pd.Series
    rescaled: bool
    order: pd.Index
    combined: pd.DataFrame = field(repr=False)

    def to_long(self) -> pd.DataFrame:
        """
        Long-format table (regulator, source, value) for plotting collaborators.

        ``source`` is "Null" for permutation values and "Observed" for the
        observed value. Regulators appear in ``order``.
        """
        long = self.combined.rename_axis(index="regulator").reset_index().melt(
            id_vars="regulator", var_name="column", value_name="value"
        )
        long["source"] = np.where(long["column"] == "Observed", "Observed", "Null")
        long["regulator"] = pd.Categorical(
            long["regulator"], categories=list(self.order), ordered=True
        )
        long = long.sort_values(["regulator", "source"], kind="stable")
        return long[["regulator", "source", "value"]].reset_index(drop=True)


# =============================================================================
# SSODM
# =============================================================================

def _axis_index(by: SSODMAxis) -> int:
    if by == "rows":
        return 1
    if by == "columns":
        return 0
    raise ValueError(f"by must be 'rows' or 'columns', got {by!r}")


def compute_ssodm(matrix: TransitionMatrix | pd.DataFrame, by: SSODMAxis = "rows") -> pd.Series:
    """
    Sum of squared off-diagonal mass per regulator.

    Args:
        matrix: Transition matrix.
        by: "rows" for ``sum_j T[i, j]^2`` or "columns" for ``sum_j T[j, i]^2``.

    Returns:
        Series indexed by regulator.
    """
    tm = TransitionMatrix.coerce(matrix)
    values = np.sum(tm.values ** 2, axis=_axis_index(by))
    return pd.Series(values, index=tm.labels, name="ssodm")


def null_ssodm_matrix(null_ensemble: NullEnsemble | list, by: SSODMAxis = "rows") -> pd.DataFrame:
    """
    SSODM of every null matrix, one row per regulator, each row sorted.

    Returns:
        DataFrame (regulators x permutations). Sorting discards which
        permutation produced which value; only the per-regulator null
        distribution is kept.
    """
    # stacked axes are (perm, row, col), one more than a single matrix
    axis = _axis_index(by) + 1
    ensemble = NullEnsemble.coerce(null_ensemble)
    ssodm = np.sum(ensemble.stack() ** 2, axis=axis)
    return pd.DataFrame(np.sort(ssodm.T, axis=1), index=ensemble.labels)


def _prepare(
    observed: TransitionMatrix | pd.DataFrame,
    null_ensemble: NullEnsemble | list,
) -> tuple[TransitionMatrix, NullEnsemble]:
    tm = TransitionMatrix.coerce(observed)
    ensemble = NullEnsemble.coerce(null_ensemble)
    ensemble.validate_against(tm)
    return tm, ensemble


def _null_moments(null: NDArray[np.float64]) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    return null.mean(axis=1), null.std(axis=1, ddof=1)


def _zscores(observed: NDArray[np.float64], null: NDArray[np.float64], labels: pd.Index):
    null_mean, null_std = _null_moments(null)

    with np.errstate(divide="ignore", invalid="ignore"):
        z = (observed - null_mean) / null_std

    degenerate = ~np.isfinite(z)
    if np.any(degenerate):
        logger.warning(
            "Null SSODM distribution is degenerate (sd=0, fewer than 2 permutations "
            "or non-finite values) for %d regulator(s): %s; their z-scores are not finite",
            int(degenerate.sum()), list(labels[degenerate][:10]),
        )
    return z, null_mean, null_std


def _rank_fractions(observed: NDArray[np.float64], null: NDArray[np.float64], labels: pd.Index):
    """Fraction of each sorted null row that is <= the observed value (nan if undefined)."""
    n_perm = null.shape[1]
    undefined = np.isnan(observed) | np.isnan(null).any(axis=1)

    fractions = np.array([
        np.searchsorted(null[i], observed[i], side="right") / n_perm
        for i in range(len(observed))
    ], dtype=np.float64)
    fractions[undefined] = np.nan

    if np.any(undefined):
        logger.warning(
            "Observed or null SSODM is nan for %d regulator(s): %s; "
            "their ranks are undefined",
            int(undefined.sum()), list(labels[undefined][:10]),
        )
    return fractions


# =============================================================================
# P-values
# =============================================================================

def score_significance(
    observed: TransitionMatrix | pd.DataFrame,
    null_ensemble: NullEnsemble | list,
    method: SignificanceMethod | str = "z-score",
) -> SignificanceResult:
    """
    Significance of each regulator's observed row SSODM against the null.

    Args:
        observed: Observed transition matrix.
        null_ensemble: Null transition matrices sharing the observed labels.
        method: "z-score" or "non-parametric".

    Returns:
        SignificanceResult with one entry per regulator.

    Raises:
        UnknownMethodError: For an unsupported method (before any computation).
        InvalidInputError: If the ensemble does not match the observed matrix.
    """
    method = resolve_significance_method(method)
    tm, ensemble = _prepare(observed, null_ensemble)

    labels = tm.labels
    ssodm = compute_ssodm(tm, by="rows").to_numpy()
    null = null_ssodm_matrix(ensemble, by="rows").to_numpy()
    n_perm = null.shape[1]

    if method is SignificanceMethod.ZSCORE:
        statistic, null_mean, null_std = _zscores(ssodm, null, labels)
        p_values = 1.0 - stats.norm.cdf(statistic)
    else:
        null_mean, null_std = _null_moments(null)
        statistic = _rank_fractions(ssodm, null, labels)
        p_values = 1.0 - statistic

    return SignificanceResult(
        p_values=pd.Series(p_values, index=labels, name="p_value"),
        statistics=pd.Series(statistic, index=labels, name="statistic"),
        method=method,
        n_permutations=n_perm,
        observed_ssodm=pd.Series(ssodm, index=labels, name="observed_ssodm"),
        null_mean=pd.Series(null_mean, index=labels, name="null_mean"),
        null_std=pd.Series(null_std, index=labels, name="null_std"),
    )


def calculate_pvalues(
    observed: TransitionMatrix | pd.DataFrame,
    null_ensemble: NullEnsemble | list,
    method: SignificanceMethod | str = "z-score",
) -> pd.Series:
    """
    Per-regulator p-values for an observed transition matrix.

    Thin wrapper around :func:`score_significance` returning only the
    p-value Series (index = regulators).
    """
    return score_significance(observed, null_ensemble, method).p_values


def two_sided_pvalues(p_values: pd.Series | NDArray[np.float64]) -> pd.Series | NDArray[np.float64]:
    """Fold one-sided p-values into two-sided ones: 1 - 2|0.5 - p|."""
    return 1.0 - 2.0 * np.abs(0.5 - p_values)


# =============================================================================
# Differential involvement (column-wise SSODM)
# =============================================================================

def differential_involvement(
    observed: TransitionMatrix | pd.DataFrame,
    null_ensemble: NullEnsemble | list,
    rescale: bool = False,
) -> DifferentialInvolvementResult:
    """
    Column-wise SSODM t-values and p-values with the joint observed/null table.

    Args:
        observed: Observed transition matrix.
        null_ensemble: Null transition matrices sharing the observed labels.
        rescale: If True, each regulator's null+observed values are
            standardized by the mean and sd of the null values only (the
            observed value is excluded from both), and regulators are
            ordered by descending t-value. The t-values and p-values are
            the same either way.

    Returns:
        DifferentialInvolvementResult
    """
    tm, ensemble = _prepare(observed, null_ensemble)
    labels = tm.labels

    ssodm = compute_ssodm(tm, by="columns").to_numpy()
    null_df = null_ssodm_matrix(ensemble, by="columns")
    null = null_df.to_numpy()
    n_perm = null.shape[1]

    t_values, null_mean, null_std = _zscores(ssodm, null, labels)
    p_values = 1.0 - stats.norm.cdf(t_values)

    combined = np.column_stack([null, ssodm])
    if rescale:
        with np.errstate(divide="ignore", invalid="ignore"):
            combined = (combined - null_mean[:, None]) / null_std[:, None]
        order = labels[np.argsort(-t_values, kind="stable")]
    else:
        order = labels

    columns = [f"null_{k}" for k in range(n_perm)] + ["Observed"]
    combined_df = pd.DataFrame(combined, index=labels, columns=columns).loc[order]

    return DifferentialInvolvementResult(
        observed_ssodm=pd.Series(ssodm, index=labels, name="observed_ssodm"),
        null_ssodm=null_df,
        t_values=pd.Series(t_values, index=labels, name="t_value"),
        p_values=pd.Series(p_values, index=labels, name="p_value"),
        rescaled=rescale,
        order=order,
        combined=combined_df,
    )


# =============================================================================
# Edge-level summaries
# =============================================================================

def transition_sigmas(
    observed: TransitionMatrix | pd.DataFrame,
    null_ensemble: NullEnsemble | list,
) -> pd.DataFrame:
    """
    Element-wise z-scores of the observed matrix against the null ensemble.

    sigma[i, j] = (T[i, j] - mean(null[i, j])) / sd(null[i, j]), sd with
    n-1 denominator; the diagonal is set to 0.
    """
    tm, ensemble = _prepare(observed, null_ensemble)
    stacked = ensemble.stack()

    with np.errstate(divide="ignore", invalid="ignore"):
        sigmas = (tm.values - stacked.mean(axis=0)) / stacked.std(axis=0, ddof=1)
    np.fill_diagonal(sigmas, 0.0)

    return pd.DataFrame(sigmas, index=tm.labels, columns=tm.labels)


def top_transition_edges(
    observed: TransitionMatrix | pd.DataFrame,
    null_ensemble: NullEnsemble | list,
    n_edges: int = 100,
    n_top_regulators: int = 10,
) -> pd.DataFrame:
    """
    Strongest off-diagonal transitions touching the most significant regulators.

    Regulators are ranked by two-sided z-score p-value of their row SSODM;
    an edge is kept when its source or target is among the
    ``n_top_regulators`` best ranked and its |weight| is at least the
    ``n_edges``-th largest |weight| among those candidate edges.

    Returns:
        DataFrame with columns source, target, sigma, weight sorted by
        descending |weight|.
    """
    if n_edges < 1 or n_top_regulators < 1:
        raise ValueError("n_edges and n_top_regulators must be positive")

    tm, ensemble = _prepare(observed, null_ensemble)
    sigmas = transition_sigmas(tm, ensemble)
    weights = tm.to_frame()

    p_two_sided = two_sided_pvalues(calculate_pvalues(tm, ensemble, SignificanceMethod.ZSCORE))
    top = set(p_two_sided.dropna().sort_values(kind="stable").index[:n_top_regulators])

    edges = pd.DataFrame({
        "source": np.repeat(tm.labels.to_numpy(), tm.n_regulators),
        "target": np.tile(tm.labels.to_numpy(), tm.n_regulators),
        "sigma": sigmas.to_numpy().ravel(),
        "weight": weights.to_numpy().ravel(),
    })
    edges = edges[edges["source"] != edges["target"]]
    edges = edges[edges["source"].isin(top) | edges["target"].isin(top)]

    abs_weight = edges["weight"].abs()
    if len(edges) > n_edges:
        threshold = np.sort(abs_weight.to_numpy())[::-1][n_edges - 1]
        edges = edges[abs_weight >= threshold]

    order = np.argsort(-edges["weight"].abs().to_numpy(), kind="stable")
    return edges.iloc[order].reset_index(drop=True)
