"""
Tests for SSODM null-distribution significance testing.

Validates:
- SSODM per row/column
- z-score and non-parametric p-values on hand-checkable ensembles
- Degenerate nulls (zero spread) producing nan with a warning
- Differential involvement (column-wise) tables and rescaling
- Edge-level sigmas and top-edge selection
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose
from scipy import stats

from regtransition.core.errors import InvalidInputError, UnknownMethodError
from regtransition.core.network import NullEnsemble, TransitionMatrix
from regtransition.stats.significance import (
    SignificanceMethod,
    calculate_pvalues,
    compute_ssodm,
    differential_involvement,
    null_ssodm_matrix,
    resolve_significance_method,
    score_significance,
    top_transition_edges,
    transition_sigmas,
    two_sided_pvalues,
)

from conftest import generate_null_ensemble


def single_entry(labels, row, col, value):
    """Transition matrix with one non-zero entry."""
    values = np.zeros((len(labels), len(labels)))
    values[row, col] = value
    return TransitionMatrix(values, labels)


@pytest.fixture
def ramp_ensemble(regulator_labels):
    """Ten null matrices whose only entry T[A, B] takes the values 1..10."""
    return NullEnsemble([single_entry(regulator_labels, 0, 1, k) for k in range(1, 11)])


@pytest.fixture
def random_case(regulator_labels):
    rng = np.random.default_rng(5)
    values = rng.normal(size=(4, 4))
    np.fill_diagonal(values, 0.0)
    observed = TransitionMatrix(values, regulator_labels)
    null = generate_null_ensemble(regulator_labels, n_permutations=40, seed=9)
    return observed, null


# =============================================================================
# Method resolution
# =============================================================================

class TestResolveSignificanceMethod:

    @pytest.mark.parametrize("token,expected", [
        ("z-score", SignificanceMethod.ZSCORE),
        ("zscore", SignificanceMethod.ZSCORE),
        ("non-parametric", SignificanceMethod.NONPARAMETRIC),
        ("Nonparametric", SignificanceMethod.NONPARAMETRIC),
        (SignificanceMethod.ZSCORE, SignificanceMethod.ZSCORE),
    ])
    def test_tokens(self, token, expected):
        assert resolve_significance_method(token) is expected

    def test_unknown(self):
        with pytest.raises(UnknownMethodError, match="Undefined method"):
            resolve_significance_method("bootstrap")

    def test_unknown_method_raised_before_input_checks(self):
        with pytest.raises(UnknownMethodError):
            score_significance(np.eye(3), "not an ensemble", method="bootstrap")


# =============================================================================
# SSODM
# =============================================================================

class TestSSODM:

    def test_rows_and_columns(self, regulator_labels):
        values = np.array([
            [0.0, 1.0, 2.0, 0.0],
            [0.0, 0.0, 0.0, 3.0],
            [0.0, 0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0, 0.0],
        ])
        tm = TransitionMatrix(values, regulator_labels)

        assert list(compute_ssodm(tm, by="rows")) == [5.0, 9.0, 0.0, 1.0]
        assert list(compute_ssodm(tm, by="columns")) == [1.0, 1.0, 4.0, 9.0]
        assert compute_ssodm(tm).index.equals(regulator_labels)

    def test_invalid_axis(self, regulator_labels):
        with pytest.raises(ValueError, match="rows' or 'columns"):
            compute_ssodm(TransitionMatrix(np.eye(4), regulator_labels), by="diagonal")

    def test_null_matrix_rows_sorted(self, regulator_labels):
        members = [single_entry(regulator_labels, 0, 1, k) for k in (3, 1, 2)]
        null = null_ssodm_matrix(members)

        assert null.shape == (4, 3)
        assert list(null.loc["A"]) == [1.0, 4.0, 9.0]
        assert list(null.loc["B"]) == [0.0, 0.0, 0.0]

    def test_null_matrix_columns(self, regulator_labels):
        members = [single_entry(regulator_labels, 0, 1, k) for k in (2, 1)]
        null = null_ssodm_matrix(members, by="columns")

        assert list(null.loc["B"]) == [1.0, 4.0]
        assert list(null.loc["A"]) == [0.0, 0.0]


# =============================================================================
# P-values
# =============================================================================

class TestNonParametric:

    def test_observed_at_null_maximum(self, regulator_labels, ramp_ensemble):
        observed = single_entry(regulator_labels, 0, 1, 10)
        p = calculate_pvalues(observed, ramp_ensemble, "non-parametric")
        assert p["A"] == 0.0

    def test_observed_at_null_minimum(self, regulator_labels, ramp_ensemble):
        """Ties count as less-than-or-equal: 1 of 10 null values is <= 1."""
        observed = single_entry(regulator_labels, 0, 1, 1)
        p = calculate_pvalues(observed, ramp_ensemble, "non-parametric")
        assert p["A"] == pytest.approx(0.9)

    def test_observed_below_null(self, regulator_labels, ramp_ensemble):
        observed = single_entry(regulator_labels, 0, 1, 0.5)
        p = calculate_pvalues(observed, ramp_ensemble, "non-parametric")
        assert p["A"] == 1.0

    def test_range(self, random_case):
        observed, null = random_case
        result = score_significance(observed, null, "non-parametric")

        assert result.method is SignificanceMethod.NONPARAMETRIC
        assert result.n_permutations == 40
        assert np.all((result.p_values >= 0) & (result.p_values <= 1))
        assert_allclose(result.p_values, 1.0 - result.statistics)

    def test_nan_observed_gives_nan(self, random_case):
        observed, null = random_case
        values = np.array(observed.values)
        values[0, 1] = np.nan

        result = score_significance(
            TransitionMatrix(values, observed.labels), null, "non-parametric"
        )

        assert np.isnan(result.p_values["A"])
        assert np.isnan(result.statistics["A"])
        assert np.all(np.isfinite(result.p_values.drop("A")))

    def test_nan_in_null_member_gives_nan(self, random_case):
        """A nan null SSODM cannot be ranked against the observed value."""
        observed, null = random_case
        members = list(null)
        values = np.array(members[3].values)
        values[1, 2] = np.nan
        members[3] = TransitionMatrix(values, observed.labels)

        p = calculate_pvalues(observed, members, "non-parametric")

        assert np.isnan(p["B"])
        assert np.all(np.isfinite(p.drop("B")))

    def test_infinite_observed_ranks_above_null(self, regulator_labels, ramp_ensemble):
        observed = single_entry(regulator_labels, 0, 1, np.inf)
        p = calculate_pvalues(observed, ramp_ensemble, "non-parametric")
        assert p["A"] == 0.0

    def test_no_zscore_warning(self, regulator_labels, ramp_ensemble, caplog):
        """Zero-spread null rows do not produce z-score warnings here."""
        observed = single_entry(regulator_labels, 0, 1, 1)
        calculate_pvalues(observed, ramp_ensemble, "non-parametric")
        assert "z-scores" not in caplog.text


class TestZScore:

    def test_observed_at_null_mean(self, regulator_labels):
        """Null row SSODMs alternate 1 and 9 (mean 5); observed row SSODM is 5."""
        observed = TransitionMatrix(
            np.array([
                [0.0, 1.0, 2.0, 0.0],
                [0.0, 0.0, 0.0, 0.0],
                [0.0, 0.0, 0.0, 0.0],
                [0.0, 0.0, 0.0, 0.0],
            ]),
            regulator_labels,
        )
        null = [single_entry(regulator_labels, 0, 2, 1 if k % 2 else 3) for k in range(20)]

        p = calculate_pvalues(observed, null, "z-score")
        assert p["A"] == pytest.approx(0.5)

    def test_matches_normal_formula(self, random_case):
        observed, null = random_case
        obs = (observed.values ** 2).sum(axis=1)
        null_ssodm = (null.stack() ** 2).sum(axis=2)
        z = (obs - null_ssodm.mean(axis=0)) / null_ssodm.std(axis=0, ddof=1)

        result = score_significance(observed, null)

        assert_allclose(result.statistics.to_numpy(), z)
        assert_allclose(result.p_values.to_numpy(), 1.0 - stats.norm.cdf(z))
        assert result.p_values.index.equals(observed.labels)

    def test_degenerate_null_gives_nan(self, regulator_labels, caplog):
        """Row A has the same SSODM in every null matrix, so its sd is 0."""
        rng = np.random.default_rng(0)
        members = []
        for _ in range(100):
            values = rng.normal(size=(4, 4))
            values[0] = [1.0, 0.0, 0.0, 0.0]
            members.append(TransitionMatrix(values, regulator_labels))
        observed = TransitionMatrix(np.eye(4), regulator_labels)

        p = calculate_pvalues(observed, members, "z-score")

        assert np.isnan(p["A"])
        others = p.drop("A")
        assert np.all(np.isfinite(others))
        assert np.all((others >= 0) & (others <= 1))
        assert "degenerate" in caplog.text

    def test_nan_observed_gives_nan(self, random_case):
        observed, null = random_case
        values = np.array(observed.values)
        values[2, 0] = np.nan

        p = calculate_pvalues(TransitionMatrix(values, observed.labels), null, "z-score")

        assert np.isnan(p["C"])
        assert np.all(np.isfinite(p.drop("C")))

    def test_nan_in_null_member_gives_nan(self, random_case):
        observed, null = random_case
        members = list(null)
        values = np.array(members[0].values)
        values[3, 1] = np.nan
        members[0] = TransitionMatrix(values, observed.labels)

        result = score_significance(observed, members, "z-score")

        assert np.isnan(result.p_values["D"])
        assert np.isnan(result.null_mean["D"])
        assert np.all(np.isfinite(result.p_values.drop("D")))

    def test_significant_regulators(self, regulator_labels):
        """A strongly rewired regulator stands out against a quiet null."""
        observed = single_entry(regulator_labels, 2, 0, 5.0)
        null = generate_null_ensemble(regulator_labels, n_permutations=60, scale=0.1)

        result = score_significance(observed, null)
        assert list(result.significant(0.05)) == ["C"]

    def test_result_tables(self, random_case):
        observed, null = random_case
        result = score_significance(observed, null)

        frame = result.to_frame()
        assert list(frame.columns) == [
            "observed_ssodm", "null_mean", "null_std", "statistic", "p_value",
        ]
        assert frame.index.equals(observed.labels)

        payload = result.to_dict()
        assert payload["method"] == "z-score"
        assert payload["n_permutations"] == 40
        assert set(payload["p_values"]) == {"A", "B", "C", "D"}


class TestEnsembleValidation:

    def test_label_mismatch(self, random_case):
        observed, _ = random_case
        other = generate_null_ensemble(pd.Index(["A", "B", "C", "E"]), n_permutations=5)
        with pytest.raises(InvalidInputError, match="do not match"):
            score_significance(observed, other)

    def test_size_mismatch(self, random_case):
        observed, _ = random_case
        other = generate_null_ensemble(pd.Index(["A", "B", "C"]), n_permutations=5)
        with pytest.raises(InvalidInputError):
            calculate_pvalues(observed, other)

    def test_single_matrix_is_not_an_ensemble(self, random_case):
        observed, _ = random_case
        with pytest.raises(InvalidInputError, match="sequence of matrices"):
            score_significance(observed, observed)


def test_two_sided_pvalues():
    p = pd.Series([0.5, 0.0, 1.0, 0.25, 0.9])
    assert_allclose(two_sided_pvalues(p), [1.0, 0.0, 0.0, 0.5, 0.2])


# =============================================================================
# Differential involvement
# =============================================================================

class TestDifferentialInvolvement:

    def test_column_statistics(self, random_case):
        observed, null = random_case
        obs = (observed.values ** 2).sum(axis=0)
        null_ssodm = (null.stack() ** 2).sum(axis=1)
        t = (obs - null_ssodm.mean(axis=0)) / null_ssodm.std(axis=0, ddof=1)

        result = differential_involvement(observed, null)

        assert_allclose(result.observed_ssodm.to_numpy(), obs)
        assert_allclose(result.t_values.to_numpy(), t)
        assert_allclose(result.p_values.to_numpy(), 1.0 - stats.norm.cdf(t))

    def test_combined_table(self, random_case):
        observed, null = random_case
        result = differential_involvement(observed, null)

        assert not result.rescaled
        assert result.order.equals(observed.labels)
        assert result.combined.shape == (4, 41)
        assert result.combined.columns[-1] == "Observed"
        assert_allclose(result.combined["Observed"].to_numpy(), result.observed_ssodm.to_numpy())
        assert_allclose(result.combined.iloc[:, :-1].to_numpy(), result.null_ssodm.to_numpy())

    def test_rescaled_table(self, random_case):
        observed, null = random_case
        plain = differential_involvement(observed, null)
        result = differential_involvement(observed, null, rescale=True)

        expected_order = plain.t_values.sort_values(ascending=False).index
        assert list(result.order) == list(expected_order)
        assert list(result.combined.index) == list(expected_order)

        # rescaled observed column is the t-value; null part has mean 0, sd 1
        assert_allclose(
            result.combined["Observed"].to_numpy(),
            plain.t_values.loc[expected_order].to_numpy(),
        )
        null_part = result.combined.iloc[:, :-1].to_numpy()
        assert_allclose(null_part.mean(axis=1), 0.0, atol=1e-12)
        assert_allclose(null_part.std(axis=1, ddof=1), 1.0)

        assert_allclose(result.t_values, plain.t_values)
        assert_allclose(result.p_values, plain.p_values)

    def test_long_format(self, random_case):
        observed, null = random_case
        long = differential_involvement(observed, null, rescale=True).to_long()

        assert list(long.columns) == ["regulator", "source", "value"]
        assert len(long) == 4 * 41
        assert (long["source"] == "Observed").sum() == 4
        assert set(long["source"]) == {"Null", "Observed"}


# =============================================================================
# Edge-level summaries
# =============================================================================

class TestTransitionSigmas:

    def test_elementwise_zscores(self, random_case):
        observed, null = random_case
        stacked = null.stack()
        expected = (observed.values - stacked.mean(axis=0)) / stacked.std(axis=0, ddof=1)
        np.fill_diagonal(expected, 0.0)

        sigmas = transition_sigmas(observed, null)

        assert sigmas.index.equals(observed.labels)
        assert sigmas.columns.equals(observed.labels)
        assert_allclose(sigmas.to_numpy(), expected)


class TestTopTransitionEdges:

    def test_columns_and_ordering(self, random_case):
        observed, null = random_case
        edges = top_transition_edges(observed, null, n_edges=5, n_top_regulators=2)

        assert list(edges.columns) == ["source", "target", "sigma", "weight"]
        assert (edges["source"] != edges["target"]).all()
        weights = edges["weight"].abs().to_numpy()
        assert np.all(np.diff(weights) <= 0)
        assert len(edges) >= 5

    def test_edges_touch_top_regulators(self, random_case):
        observed, null = random_case
        p = two_sided_pvalues(calculate_pvalues(observed, null))
        best = p.sort_values(kind="stable").index[0]

        edges = top_transition_edges(observed, null, n_edges=100, n_top_regulators=1)

        assert ((edges["source"] == best) | (edges["target"] == best)).all()
        # both directions of every partner: 2 * (4 - 1)
        assert len(edges) == 6

    def test_edge_weights_match_matrix(self, random_case):
        observed, null = random_case
        edges = top_transition_edges(observed, null)
        frame = observed.to_frame()
        for row in edges.itertuples():
            assert row.weight == frame.loc[row.source, row.target]

    @pytest.mark.parametrize("kwargs", [{"n_edges": 0}, {"n_top_regulators": 0}])
    def test_invalid_counts(self, random_case, kwargs):
        observed, null = random_case
        with pytest.raises(ValueError, match="must be positive"):
            top_transition_edges(observed, null, **kwargs)
