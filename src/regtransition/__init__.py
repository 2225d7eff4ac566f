"""
regtransition - Differential regulator involvement between two conditions

Estimates regulator x regulator transition matrices between two scored
bipartite regulator-target networks and tests which regulators' transition
mass exceeds that of a permutation null.
"""

__version__ = "0.1.0"

from regtransition.core.network import NullEnsemble, ScoredNetwork, TransitionMatrix
from regtransition.core.errors import InvalidInputError, UnknownMethodError
from regtransition.stats.transition import estimate_transition_matrix
from regtransition.stats.significance import calculate_pvalues, score_significance
from regtransition.analysis import TransitionAnalysis

__all__ = [
    "ScoredNetwork",
    "TransitionMatrix",
    "NullEnsemble",
    "InvalidInputError",
    "UnknownMethodError",
    "estimate_transition_matrix",
    "calculate_pvalues",
    "score_significance",
    "TransitionAnalysis",
]
