"""
OLS transition matrix estimator.

T = pinv(X'X) X' Y*, where X is the oriented state-1 network and Y* the
matrix of OLS-star residuals. The Moore-Penrose pseudoinverse is required
because X'X is routinely singular (more regulators than informative
targets, or collinear regulator profiles).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from scipy import linalg

from ._base import _ResidualRegressionMethod

if TYPE_CHECKING:
    from ..transition_types import TransitionMethod

# Relative singular value cutoff: sqrt(machine epsilon).
GINV_TOLERANCE = float(np.sqrt(np.finfo(np.float64).eps))


class OLSMethod(_ResidualRegressionMethod):
    """
    Least-squares regression of OLS-star residuals on the state-1 network.

    Attributes:
        rtol: Singular values of X'X below ``rtol * max(singular value)``
            are treated as zero by the pseudoinverse.

    Example:
        >>> method = OLSMethod()
        >>> tm = method.estimate(net1, net2)   # (n_features, n_features)
    """

    def __init__(self, rtol: float = GINV_TOLERANCE) -> None:
        self.rtol = rtol

    @property
    def name(self) -> TransitionMethod:
        from ..transition_types import TransitionMethod
        return TransitionMethod.OLS

    def _regress(
        self,
        net1: NDArray[np.float64],
        net2_star: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        xtx_inv = linalg.pinv(net1.T @ net1, atol=0.0, rtol=self.rtol)
        return xtx_inv @ net1.T @ net2_star


__all__ = ["OLSMethod", "GINV_TOLERANCE"]
