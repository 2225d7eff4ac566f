"""
Transition matrix estimation strategies.

This package provides four interchangeable estimators, each exposing
``estimate(net1, net2) -> ndarray``:

* :class:`OLSMethod` -- pseudoinverse least squares on OLS-star residuals
* :class:`KabschMethod` -- orthogonal alignment of the two networks
* :class:`PseudoinverseMethod` -- SVD inverse of network 2 applied to network 1
* :class:`L1Method` -- lasso on OLS-star residuals with cross-validated penalty

``regtransition.stats.transition.estimate_transition_matrix`` selects one by
its method token and applies the shared post-processing.
"""

from __future__ import annotations

from .ols import OLSMethod
from .kabsch import KabschMethod
from .pseudoinverse import PseudoinverseMethod
from .l1 import L1Method

__all__ = [
    "OLSMethod",
    "KabschMethod",
    "PseudoinverseMethod",
    "L1Method",
]
