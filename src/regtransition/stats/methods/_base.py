"""
Shared base classes for transition matrix estimators.

Every estimator maps two oriented score matrices (observations x features,
identical shapes) to a features x features transition matrix. The OLS and
L1 estimators additionally share the "OLS-star" residual construction,
which lives in ``_ResidualRegressionMethod`` so the concrete subclasses
only define how the residual matrix is regressed on network 1.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ...core.errors import InvalidInputError

if TYPE_CHECKING:
    from ..transition_types import TransitionMethod


class _BaseTransitionMethod(abc.ABC):
    """
    Skeleton for a transition estimation strategy.

    Subclasses implement:
        * ``name`` property (TransitionMethod)
        * ``_estimate`` (the numerical core on validated float arrays)
    """

    @property
    @abc.abstractmethod
    def name(self) -> TransitionMethod:  # pragma: no cover
        ...

    @abc.abstractmethod
    def _estimate(
        self,
        net1: NDArray[np.float64],
        net2: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        ...

    def estimate(
        self,
        net1: NDArray[np.float64],
        net2: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """
        Estimate the transition matrix between two oriented networks.

        Args:
            net1: State-1 matrix (n_obs, n_features); columns are the
                entities the transition matrix is indexed by.
            net2: State-2 matrix with the same shape as net1.

        Returns:
            Unlabelled (n_features, n_features) transition matrix. Inputs
            are never modified.

        Raises:
            InvalidInputError: If the matrices are not 2-D with equal shapes.
        """
        net1 = np.asarray(net1, dtype=np.float64)
        net2 = np.asarray(net2, dtype=np.float64)
        if net1.ndim != 2 or net2.ndim != 2:
            raise InvalidInputError(
                f"networks must be 2-D, got {net1.ndim}-D and {net2.ndim}-D"
            )
        if net1.shape != net2.shape:
            raise InvalidInputError(
                f"network shapes differ: {net1.shape} vs {net2.shape}"
            )
        return self._estimate(net1, net2)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class _ResidualRegressionMethod(_BaseTransitionMethod):
    """
    Estimators built on OLS-star residuals.

    For each column i, network 2's column is regressed on network 1's
    matching column (with intercept) and the residual kept. What remains
    of each state-2 pattern after removing its own state-1 pattern is then
    explained by all state-1 patterns jointly in ``_regress``.
    """

    @abc.abstractmethod
    def _regress(
        self,
        net1: NDArray[np.float64],
        net2_star: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        ...

    def _estimate(
        self,
        net1: NDArray[np.float64],
        net2: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        from ...utils.statistics import simple_regression_residuals

        net2_star = simple_regression_residuals(net1, net2)
        return self._regress(net1, net2_star)
