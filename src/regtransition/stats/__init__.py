"""
Statistical core for regulatory transition analysis.

Exports:
- Transition matrix estimation (OLS, Kabsch, pseudoinverse, L1)
- Orthogonal alignment solver
- SSODM-based significance testing against a null ensemble
"""

from .alignment import kabsch_align, kabsch_rotation
from .transition import (
    TransitionMethod,
    estimate_transition_matrix,
    get_method,
    resolve_method,
    standardize_rows,
    zero_diagonal,
)
from .significance import (
    DifferentialInvolvementResult,
    SignificanceMethod,
    SignificanceResult,
    calculate_pvalues,
    compute_ssodm,
    differential_involvement,
    null_ssodm_matrix,
    score_significance,
    top_transition_edges,
    transition_sigmas,
    two_sided_pvalues,
)

__all__ = [
    "kabsch_align",
    "kabsch_rotation",
    "TransitionMethod",
    "estimate_transition_matrix",
    "get_method",
    "resolve_method",
    "standardize_rows",
    "zero_diagonal",
    "DifferentialInvolvementResult",
    "SignificanceMethod",
    "SignificanceResult",
    "calculate_pvalues",
    "compute_ssodm",
    "differential_involvement",
    "null_ssodm_matrix",
    "score_significance",
    "top_transition_edges",
    "transition_sigmas",
    "two_sided_pvalues",
]
