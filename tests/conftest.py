"""
Pytest configuration and shared fixtures.

Provides seeded synthetic regulator-target networks and null ensembles.
"""

import numpy as np
import pandas as pd
import pytest

from regtransition.core.network import NullEnsemble, ScoredNetwork, TransitionMatrix


def generate_network_pair(
    n_targets: int,
    n_regulators: int,
    shift: float = 0.5,
    seed: int = 42,
) -> tuple[ScoredNetwork, ScoredNetwork]:
    """
    Generate two scored networks over the same targets and regulators.

    The state-2 network is the state-1 network with part of each
    regulator's targeting pattern borrowed from its neighbour plus noise,
    so the transition matrix has structure off the diagonal.

    Args:
        n_targets: Number of target genes (rows)
        n_regulators: Number of regulators (columns)
        shift: Weight of the neighbouring regulator's pattern in state 2
        seed: Random seed for reproducibility
    """
    rng = np.random.default_rng(seed)
    state1 = rng.normal(size=(n_targets, n_regulators))
    borrowed = np.roll(state1, 1, axis=1)
    state2 = (1 - shift) * state1 + shift * borrowed + 0.1 * rng.normal(size=state1.shape)

    targets = pd.Index([f"GENE_{i:04d}" for i in range(n_targets)])
    regulators = pd.Index([f"TF_{j:02d}" for j in range(n_regulators)])
    return (
        ScoredNetwork(pd.DataFrame(state1, index=targets, columns=regulators)),
        ScoredNetwork(pd.DataFrame(state2, index=targets, columns=regulators)),
    )


def generate_null_ensemble(
    labels: pd.Index,
    n_permutations: int = 50,
    scale: float = 0.3,
    seed: int = 7,
) -> NullEnsemble:
    """Random transition matrices with zero diagonal sharing ``labels``."""
    rng = np.random.default_rng(seed)
    n = len(labels)
    members = []
    for _ in range(n_permutations):
        values = scale * rng.normal(size=(n, n))
        np.fill_diagonal(values, 0.0)
        members.append(TransitionMatrix(values, labels))
    return NullEnsemble(members)


@pytest.fixture
def network_pair():
    """Small network pair (60 targets x 6 regulators) for fast unit tests."""
    return generate_network_pair(n_targets=60, n_regulators=6, seed=42)


@pytest.fixture
def wide_network_pair():
    """Network pair with more regulators than the L1 tests need (40 x 12)."""
    return generate_network_pair(n_targets=40, n_regulators=12, seed=3)


@pytest.fixture
def regulator_labels():
    return pd.Index(["A", "B", "C", "D"])
