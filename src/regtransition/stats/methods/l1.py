"""
L1-penalized (lasso) transition matrix estimator.

Statistical Approach:
    1. Build OLS-star residuals exactly as the OLS estimator does.
    2. For every response column i, regress residual column i on the full
       state-1 network with an L1 penalty and an unpenalized intercept.
       Predictors are standardized to unit variance before penalization;
       coefficients are reported on the original scale.
    3. The penalty lambda1 is chosen inside a bounded interval by
       minimizing k-fold cross-validated mean squared prediction error
       (bounded Brent search, ``scipy.optimize.minimize_scalar``).
    4. Column i of the transition matrix holds the coefficients of the
       final fit on all observations at the selected lambda1.

Penalty scale:
    lambda1 penalizes the un-normalized objective
    ``0.5 * ||y - a - Xb||^2 + lambda1 * ||b||_1``. scikit-learn's
    ``Lasso`` divides the squared error by n, so ``alpha = lambda1 / n``.

Determinism:
    Folds are contiguous and unshuffled (``KFold(shuffle=False)``), and the
    coordinate descent uses cyclic updates, so identical inputs always give
    identical matrices.

Cost:
    One bounded search per response column, each evaluation fitting
    ``n_folds`` lassos. Fold-wise predictor scaling is shared across all
    columns, so a few hundred regulators remain tractable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ...core.errors import InvalidInputError
from ._base import _ResidualRegressionMethod

if TYPE_CHECKING:
    from ..transition_types import TransitionMethod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Fold:
    """Pre-scaled training/validation split shared by all response columns."""

    train: NDArray[np.intp]
    test: NDArray[np.intp]
    x_train: NDArray[np.float64]
    x_test: NDArray[np.float64]


class L1Method(_ResidualRegressionMethod):
    """
    Lasso regression of OLS-star residuals with cross-validated penalty.

    Attributes:
        n_folds: Number of cross-validation folds (default 5).
        min_lambda: Lower bound of the lambda1 search interval (default 1).
        max_lambda: Upper bound of the lambda1 search interval (default 2).
        max_iter: Coordinate descent iteration cap per lasso fit.
        tol: Coordinate descent convergence tolerance.
        xatol: Absolute tolerance of the bounded lambda1 search.

    Example:
        >>> method = L1Method(n_folds=5, min_lambda=1.0, max_lambda=2.0)
        >>> tm = method.estimate(net1, net2)
        >>> coef, lambdas = method.regress_residuals(x, residuals)
    """

    def __init__(
        self,
        n_folds: int = 5,
        min_lambda: float = 1.0,
        max_lambda: float = 2.0,
        max_iter: int = 10000,
        tol: float = 1e-6,
        xatol: float = 1e-3,
    ) -> None:
        if n_folds < 2:
            raise InvalidInputError(f"n_folds must be at least 2, got {n_folds}")
        if not 0 < min_lambda <= max_lambda:
            raise InvalidInputError(
                f"lambda bounds must satisfy 0 < min_lambda <= max_lambda, "
                f"got ({min_lambda}, {max_lambda})"
            )
        self.n_folds = n_folds
        self.min_lambda = min_lambda
        self.max_lambda = max_lambda
        self.max_iter = max_iter
        self.tol = tol
        self.xatol = xatol

    @property
    def name(self) -> TransitionMethod:
        from ..transition_types import TransitionMethod
        return TransitionMethod.L1

    def _lasso(self, lambda1: float, n_obs: int):
        from sklearn.linear_model import Lasso

        return Lasso(
            alpha=lambda1 / n_obs,
            fit_intercept=True,
            max_iter=self.max_iter,
            tol=self.tol,
            selection="cyclic",
        )

    def _make_folds(self, net1: NDArray[np.float64]) -> list[_Fold]:
        from sklearn.model_selection import KFold
        from sklearn.preprocessing import StandardScaler

        folds = []
        for train, test in KFold(n_splits=self.n_folds, shuffle=False).split(net1):
            scaler = StandardScaler().fit(net1[train])
            folds.append(_Fold(
                train=train,
                test=test,
                x_train=scaler.transform(net1[train]),
                x_test=scaler.transform(net1[test]),
            ))
        return folds

    def _cv_error(self, lambda1: float, y: NDArray[np.float64], folds: list[_Fold]) -> float:
        sse = 0.0
        for fold in folds:
            model = self._lasso(lambda1, len(fold.train)).fit(fold.x_train, y[fold.train])
            resid = y[fold.test] - model.predict(fold.x_test)
            sse += float(resid @ resid)
        return sse / len(y)

    def _select_lambda(self, y: NDArray[np.float64], folds: list[_Fold]) -> float:
        from scipy.optimize import minimize_scalar

        if self.min_lambda == self.max_lambda:
            return self.min_lambda

        result = minimize_scalar(
            self._cv_error,
            bounds=(self.min_lambda, self.max_lambda),
            args=(y, folds),
            method='bounded',
            options={'xatol': self.xatol},
        )
        return float(np.clip(result.x, self.min_lambda, self.max_lambda))

    def regress_residuals(
        self,
        net1: NDArray[np.float64],
        net2_star: NDArray[np.float64],
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """
        Penalized regression of every residual column on net1.

        Returns:
            (tm, lambdas): coefficient matrix (n_features, n_columns) with
            column i holding the fit for residual column i, and the lambda1
            selected for each column.
        """
        from sklearn.preprocessing import StandardScaler

        n_obs, n_features = net1.shape
        if n_obs < self.n_folds:
            raise InvalidInputError(
                f"L1 method needs at least n_folds={self.n_folds} observations, got {n_obs}"
            )

        folds = self._make_folds(net1)
        scaler = StandardScaler().fit(net1)
        x_scaled = scaler.transform(net1)

        tm = np.zeros((n_features, net2_star.shape[1]), dtype=np.float64)
        lambdas = np.empty(net2_star.shape[1], dtype=np.float64)

        for i in range(net2_star.shape[1]):
            y = net2_star[:, i]
            lambda1 = self._select_lambda(y, folds)
            model = self._lasso(lambda1, n_obs).fit(x_scaled, y)
            tm[:, i] = model.coef_ / scaler.scale_
            lambdas[i] = lambda1
            logger.debug("L1 column %d: lambda1=%.4f, %d nonzero coefficients",
                         i, lambda1, int(np.count_nonzero(model.coef_)))

        return tm, lambdas

    def _regress(
        self,
        net1: NDArray[np.float64],
        net2_star: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        tm, _ = self.regress_residuals(net1, net2_star)
        return tm


__all__ = ["L1Method"]
