"""Orthogonal (Kabsch) transition matrix estimator."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ._base import _BaseTransitionMethod

if TYPE_CHECKING:
    from ..transition_types import TransitionMethod


class KabschMethod(_BaseTransitionMethod):
    """Transition matrix = orthogonal alignment of network 1 onto network 2."""

    @property
    def name(self) -> TransitionMethod:
        from ..transition_types import TransitionMethod
        return TransitionMethod.KABSCH

    def _estimate(
        self,
        net1: NDArray[np.float64],
        net2: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        from ..alignment import kabsch_rotation

        return kabsch_rotation(net1, net2)


__all__ = ["KabschMethod"]
