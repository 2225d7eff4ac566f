"""
Tests for the Kabsch orthogonal alignment solver.

These tests validate:
1. Identity recovery when both matrices are equal
2. Recovery of symmetric orthogonal maps (reflections, involutive permutations)
3. Transposed recovery of small rotations, orthogonality for arbitrary ones
4. Invariance to column offsets (centering)
5. Determinism and labelling
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose
from scipy import linalg

from regtransition.core.errors import InvalidInputError
from regtransition.stats.alignment import kabsch_align, kabsch_rotation


@pytest.fixture
def point_set():
    """30 observations of 4 features with distinct variances."""
    rng = np.random.default_rng(11)
    return rng.normal(size=(30, 4)) * np.array([1.0, 2.0, 3.0, 4.0])


class TestKabschRotation:
    """Tests for kabsch_rotation()."""

    def test_identical_inputs_give_identity(self, point_set):
        w = kabsch_rotation(point_set, point_set)
        assert_allclose(w, np.eye(4), atol=1e-10)

    def test_recovers_reflection(self, point_set):
        """Q = P @ H for a Householder reflection H returns H."""
        v = np.array([1.0, -2.0, 0.5, 1.0])
        householder = np.eye(4) - 2.0 * np.outer(v, v) / (v @ v)

        w = kabsch_rotation(point_set, point_set @ householder)

        assert_allclose(w, householder, atol=1e-10)
        assert np.linalg.det(w) == pytest.approx(-1.0)

    def test_recovers_column_swap(self, point_set):
        """Q = P with two columns exchanged returns the swap matrix."""
        swap = np.eye(4)[[1, 0, 2, 3]]

        w = kabsch_rotation(point_set, point_set @ swap)

        assert_allclose(w, swap, atol=1e-10)

    def test_general_rotation_returns_transpose(self, point_set):
        """Q = P @ R for a small non-symmetric rotation R returns R.T."""
        rng = np.random.default_rng(2)
        generator = rng.normal(size=(4, 4))
        rotation = linalg.expm(0.02 * (generator - generator.T))
        assert not np.allclose(rotation, rotation.T)

        w = kabsch_rotation(point_set, point_set @ rotation)

        assert_allclose(w, rotation.T, atol=1e-10)
        assert np.linalg.det(w) == pytest.approx(1.0)

    def test_result_is_orthogonal(self, point_set):
        """Any rotation of the data yields an orthogonal map."""
        rng = np.random.default_rng(5)
        rotation, _ = np.linalg.qr(rng.normal(size=(4, 4)))
        target = point_set @ rotation + 0.01 * rng.normal(size=point_set.shape)

        w = kabsch_rotation(point_set, target)

        assert_allclose(w @ w.T, np.eye(4), atol=1e-10)

    def test_invariant_to_column_offsets(self, point_set):
        rng = np.random.default_rng(8)
        target = point_set @ np.eye(4)[[1, 0, 2, 3]] + 0.1 * rng.normal(size=point_set.shape)

        w = kabsch_rotation(point_set, target)
        w_shifted = kabsch_rotation(point_set + 5.0, target - 3.0)

        assert_allclose(w_shifted, w, atol=1e-8)

    def test_deterministic(self, point_set):
        target = np.roll(point_set, 1, axis=1)
        np.testing.assert_array_equal(
            kabsch_rotation(point_set, target),
            kabsch_rotation(point_set, target),
        )

    def test_inputs_not_modified(self, point_set):
        p = point_set.copy()
        q = np.roll(point_set, 1, axis=1)
        q_copy = q.copy()
        kabsch_rotation(p, q)
        np.testing.assert_array_equal(p, point_set)
        np.testing.assert_array_equal(q, q_copy)

    def test_shape_mismatch_raises(self, point_set):
        with pytest.raises(InvalidInputError, match="identical 2-D shape"):
            kabsch_rotation(point_set, point_set[:, :3])

    def test_single_observation_raises(self):
        with pytest.raises(InvalidInputError, match="two observations"):
            kabsch_rotation(np.ones((1, 3)), np.ones((1, 3)))


class TestKabschAlign:
    """Tests for the labelled kabsch_align() wrapper."""

    def test_labels_from_first_matrix(self, point_set):
        p = pd.DataFrame(point_set, columns=["ABF1", "REB1", "MCM1", "SWI4"])
        q = pd.DataFrame(point_set, columns=["a", "b", "c", "d"])

        w = kabsch_align(p, q)

        assert list(w.index) == list(p.columns)
        assert list(w.columns) == list(p.columns)
        assert_allclose(w.to_numpy(), np.eye(4), atol=1e-10)

    def test_unlabelled_arrays(self, point_set):
        w = kabsch_align(point_set, point_set)
        assert list(w.index) == [0, 1, 2, 3]
