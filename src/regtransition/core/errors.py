"""
Exceptions raised by regtransition.

Numerical degeneracy (singular matrices, zero-variance null distributions)
has no exception class here: those situations surface as
non-finite values or as errors from the underlying linear algebra routines.
"""

__all__ = [
    'InvalidInputError',
    'UnknownMethodError',
]


class InvalidInputError(ValueError):
    """Raised when an input is not a usable numeric matrix or labels disagree."""
    pass


class UnknownMethodError(InvalidInputError):
    """Raised when a method token does not name a supported algorithm."""
    pass
