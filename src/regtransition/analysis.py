"""
Analysis session bundling an observed transition matrix with its null ensemble.

A TransitionAnalysis is what a full run produces: the transition matrix of
the real condition pair, the transition matrices of the permuted pairs,
and the configuration they were all estimated with. Downstream consumers
(reports, heatmaps, network views) read it; nothing mutates it.

Example:
    >>> analysis = TransitionAnalysis.from_networks(
    ...     cc_net_1, cc_net_2, null_tms,
    ...     config=config_from_dict(load_config("transition.yaml")),
    ... )
    >>> analysis.pvalues().sort_values().head()   # configured p-value method
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import pandas as pd

from regtransition.config import AnalysisConfig, TransitionConfig
from regtransition.core.network import NullEnsemble, TransitionMatrix
from regtransition.stats.significance import (
    DifferentialInvolvementResult,
    SignificanceMethod,
    SignificanceResult,
    differential_involvement,
    score_significance,
    top_transition_edges,
    transition_sigmas,
)
from regtransition.stats.transition import estimate_transition_matrix

logger = logging.getLogger(__name__)

__all__ = ['TransitionAnalysis']


@dataclass(frozen=True)
class TransitionAnalysis:
    """
    Observed transition matrix, null ensemble and estimation settings.

    Attributes:
        tm: Observed transition matrix
        null_tm: Null ensemble; every member shares tm's labels and shape
        config: Estimation settings used for tm and for every null matrix,
            plus the default p-value method. A bare TransitionConfig is
            accepted and paired with the default significance settings.
    """

    tm: TransitionMatrix
    null_tm: NullEnsemble
    config: AnalysisConfig = field(default_factory=AnalysisConfig)

    def __post_init__(self):
        tm = TransitionMatrix.coerce(self.tm)
        null_tm = NullEnsemble.coerce(self.null_tm)
        null_tm.validate_against(tm)
        object.__setattr__(self, 'tm', tm)
        object.__setattr__(self, 'null_tm', null_tm)
        if isinstance(self.config, TransitionConfig):
            object.__setattr__(self, 'config', AnalysisConfig(transition=self.config))

    @classmethod
    def from_networks(
        cls,
        network1: object,
        network2: object,
        null_tm: NullEnsemble | list,
        config: AnalysisConfig | TransitionConfig | None = None,
    ) -> TransitionAnalysis:
        """
        Estimate the observed transition matrix and attach a null ensemble.

        The null ensemble must have been estimated with the same ``config``
        on permuted condition pairs; only its shape and labels can be
        checked here.
        """
        config = config or AnalysisConfig()
        if isinstance(config, TransitionConfig):
            config = AnalysisConfig(transition=config)
        transition = config.transition
        tm = estimate_transition_matrix(network1, network2, **transition.estimator_kwargs())
        analysis = cls(tm=tm, null_tm=null_tm, config=config)
        logger.info(
            "Transition analysis: %d regulators, %d null matrices (%s)",
            tm.n_regulators, analysis.n_permutations, transition.transition_method.value,
        )
        return analysis

    @property
    def regulators(self) -> pd.Index:
        return self.tm.labels

    @property
    def n_permutations(self) -> int:
        return self.null_tm.n_permutations

    def significance(self, method: SignificanceMethod | str | None = None) -> SignificanceResult:
        """Row-SSODM significance; ``method`` defaults to the configured one."""
        if method is None:
            method = self.config.significance.significance_method
        return score_significance(self.tm, self.null_tm, method)

    def pvalues(self, method: SignificanceMethod | str | None = None) -> pd.Series:
        """Per-regulator p-values (row SSODM)."""
        return self.significance(method).p_values

    def differential_involvement(self, rescale: bool = False) -> DifferentialInvolvementResult:
        return differential_involvement(self.tm, self.null_tm, rescale=rescale)

    def sigmas(self) -> pd.DataFrame:
        return transition_sigmas(self.tm, self.null_tm)

    def top_edges(self, n_edges: int = 100, n_top_regulators: int = 10) -> pd.DataFrame:
        return top_transition_edges(
            self.tm, self.null_tm, n_edges=n_edges, n_top_regulators=n_top_regulators
        )
