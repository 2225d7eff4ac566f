"""
Core data structures for regulatory transition analysis.

1. ScoredNetwork: targets x regulators edge scores for one condition
2. TransitionMatrix: square regulator x regulator transition matrix
3. NullEnsemble: permutation-derived transition matrices
4. InvalidInputError / UnknownMethodError: input validation failures

Design Philosophy:
    - Immutability: containers copy their inputs and expose read-only arrays
    - Validation up front: bad labels or shapes fail before any algebra runs
"""

from regtransition.core.errors import InvalidInputError, UnknownMethodError
from regtransition.core.network import (
    NullEnsemble,
    ScoredNetwork,
    TransitionMatrix,
    coerce_network,
)

__all__ = [
    'ScoredNetwork',
    'TransitionMatrix',
    'NullEnsemble',
    'coerce_network',
    'InvalidInputError',
    'UnknownMethodError',
]
