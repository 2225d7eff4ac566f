"""
Transition matrix estimation between two scored regulatory networks.

Workflow:
    1. Resolve the method token (fails before any matrix work)
    2. Coerce both inputs to ScoredNetwork and check their labels agree
    3. Orient: the comparison axis (regulators or targets) becomes the columns
    4. Dispatch to the selected strategy in ``regtransition.stats.methods``
    5. Post-process: optional row standardization, optional diagonal removal
    6. Label rows and columns with the comparison-axis labels

Example:
    >>> from regtransition.stats.transition import estimate_transition_matrix
    >>> tm = estimate_transition_matrix(cc_net_1, cc_net_2, method="ols")
    >>> tm.to_frame().loc["ABF1", "REB1"]
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

import numpy as np
from numpy.typing import NDArray

from regtransition.core.errors import InvalidInputError
from regtransition.core.network import TransitionMatrix, coerce_network
from regtransition.stats.transition_types import TransitionMethod, resolve_method

if TYPE_CHECKING:
    from regtransition.stats.methods._base import _BaseTransitionMethod

logger = logging.getLogger(__name__)

__all__ = [
    'TransitionMethod',
    'resolve_method',
    'get_method',
    'estimate_transition_matrix',
    'standardize_rows',
    'zero_diagonal',
]


def _method_registry() -> dict[TransitionMethod, Callable[..., _BaseTransitionMethod]]:
    from regtransition.stats.methods import (
        KabschMethod,
        L1Method,
        OLSMethod,
        PseudoinverseMethod,
    )

    return {
        TransitionMethod.OLS: OLSMethod,
        TransitionMethod.KABSCH: KabschMethod,
        TransitionMethod.PSEUDOINVERSE: PseudoinverseMethod,
        TransitionMethod.L1: L1Method,
    }


def get_method(method: TransitionMethod | str, **options: object) -> _BaseTransitionMethod:
    """
    Instantiate the estimator strategy for a method token.

    Args:
        method: TransitionMethod or token ("ols", "kabsch", "orig", "L1", ...)
        **options: Constructor options for the strategy (e.g. ``n_folds`` for L1)

    Raises:
        UnknownMethodError: If the token is not recognized.
    """
    resolved = resolve_method(method)
    return _method_registry()[resolved](**options)


def standardize_rows(tm: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Divide each row by the sum of its absolute values.

    Rows whose absolute sum is exactly zero are returned unchanged.
    """
    tm = np.asarray(tm, dtype=np.float64)
    row_sums = np.sum(np.abs(tm), axis=1, keepdims=True)
    divisor = np.where(row_sums == 0.0, 1.0, row_sums)
    return tm / divisor


def zero_diagonal(tm: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return a copy of a square matrix with its diagonal set to 0."""
    out = np.array(tm, dtype=np.float64, copy=True)
    np.fill_diagonal(out, 0.0)
    return out


def estimate_transition_matrix(
    network1: object,
    network2: object,
    *,
    by_regulator: bool = True,
    standardize: bool = False,
    remove_diagonal: bool = True,
    method: TransitionMethod | str = "ols",
    method_options: dict[str, object] | None = None,
) -> TransitionMatrix:
    """
    Estimate the transition matrix from network1 (state 1) to network2 (state 2).

    Args:
        network1: Starting network (ScoredNetwork, DataFrame or 2-D ndarray),
            targets x regulators.
        network2: Final network with the same labels as network1.
        by_regulator: If True the result is regulator x regulator; if False
            the networks are transposed and the result is target x target.
        standardize: Divide each row by its absolute sum (zero rows unchanged).
        remove_diagonal: Set self-transitions to 0.
        method: "ols", "kabsch" (orthogonal), "orig" (pseudoinverse) or "L1".
        method_options: Extra constructor options for the selected strategy.

    Returns:
        TransitionMatrix with identical row and column labels taken from the
        comparison axis of network1.

    Raises:
        UnknownMethodError: If ``method`` is not recognized (raised first).
        InvalidInputError: If the inputs are not numeric matrices or their
            labels disagree.
    """
    strategy = get_method(method, **(method_options or {}))

    net1 = coerce_network(network1, "network1")
    net2 = coerce_network(network2, "network2")

    if not net1.regulators.equals(net2.regulators):
        raise InvalidInputError(
            "network1 and network2 must share the same regulators in the same order"
        )
    if not net1.targets.equals(net2.targets):
        raise InvalidInputError(
            "network1 and network2 must share the same targets in the same order"
        )

    x, labels = net1.oriented(by_regulator)
    y, _ = net2.oriented(by_regulator)

    logger.info(
        "Using %s method (%d x %d working matrices)",
        strategy.name.value, x.shape[0], x.shape[1],
    )
    tm = strategy.estimate(x, y)

    if standardize:
        tm = standardize_rows(tm)
    if remove_diagonal:
        tm = zero_diagonal(tm)

    return TransitionMatrix(tm, labels)
