"""
SVD pseudoinverse transition matrix estimator ("orig").

With network2 = U S V' (thin SVD), T = V S^-1 U' network1.

Caveat: no guard is applied to (near-)zero singular values of network 2.
When network 2 is rank deficient the affected entries become inf/nan and
are returned as such, because masking them would hide a degenerate input.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ._base import _BaseTransitionMethod

if TYPE_CHECKING:
    from ..transition_types import TransitionMethod

logger = logging.getLogger(__name__)


class PseudoinverseMethod(_BaseTransitionMethod):
    """Apply the SVD inverse of the state-2 network to the state-1 network."""

    @property
    def name(self) -> TransitionMethod:
        from ..transition_types import TransitionMethod
        return TransitionMethod.PSEUDOINVERSE

    def _estimate(
        self,
        net1: NDArray[np.float64],
        net2: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        u, s, vt = np.linalg.svd(net2, full_matrices=False)

        cutoff = np.finfo(np.float64).eps * max(net2.shape) * (s[0] if s.size else 0.0)
        n_degenerate = int(np.sum(s <= cutoff))
        if n_degenerate:
            logger.warning(
                "State-2 network is numerically rank deficient "
                "(%d of %d singular values ~0); transition entries will be unbounded",
                n_degenerate, s.size,
            )

        return vt.T @ np.diag(1.0 / s) @ u.T @ net1


__all__ = ["PseudoinverseMethod"]
