"""
Method identifiers for transition matrix estimation.

These types are shared by the estimator front-end (``transition``) and the
per-method strategy classes (``methods``).
"""

from __future__ import annotations

from enum import Enum

from regtransition.core.errors import UnknownMethodError

__all__ = [
    'TransitionMethod',
    'resolve_method',
]


class TransitionMethod(Enum):
    """
    Registered transition matrix estimators.

    Attributes:
        OLS: Least-squares regression of OLS-star residuals on network 1
        KABSCH: Orthogonal alignment of network 1 onto network 2
        PSEUDOINVERSE: SVD-based inverse of network 2 applied to network 1 ("orig")
        L1: Lasso regression of OLS-star residuals, penalty chosen by k-fold CV
    """

    OLS = "ols"
    KABSCH = "kabsch"
    PSEUDOINVERSE = "orig"
    L1 = "L1"


_ALIASES = {
    "ols": TransitionMethod.OLS,
    "kabsch": TransitionMethod.KABSCH,
    "orthogonal": TransitionMethod.KABSCH,
    "orig": TransitionMethod.PSEUDOINVERSE,
    "pseudoinverse": TransitionMethod.PSEUDOINVERSE,
    "l1": TransitionMethod.L1,
    "lasso": TransitionMethod.L1,
}


def resolve_method(method: TransitionMethod | str) -> TransitionMethod:
    """
    Map a method token to a TransitionMethod.

    Accepts the enum itself, its canonical value ("ols", "kabsch", "orig",
    "L1") or a case-insensitive alias ("orthogonal", "pseudoinverse", "l1",
    "lasso").

    Raises:
        UnknownMethodError: If the token names no supported method.
    """
    if isinstance(method, TransitionMethod):
        return method
    if isinstance(method, str):
        try:
            return TransitionMethod(method)
        except ValueError:
            resolved = _ALIASES.get(method.strip().lower())
            if resolved is not None:
                return resolved
    valid = ", ".join(repr(m.value) for m in TransitionMethod)
    raise UnknownMethodError(f"Invalid method {method!r}. Must be one of {valid}")
