"""
Configuration file support for regtransition analyses.

Supports YAML and JSON config files describing how transition matrices are
estimated and how their significance is assessed. The same configuration
must be used for the observed matrix and for every member of the null
ensemble, so it is captured once and passed around as a frozen object.

Example config (YAML)::

    transition:
      method: L1
      by_regulator: true
      standardize: false
      remove_diagonal: true
      l1:
        n_folds: 5
        min_lambda: 1.0
        max_lambda: 2.0
    significance:
      method: non-parametric
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from regtransition.core.errors import InvalidInputError
from regtransition.stats.significance import SignificanceMethod, resolve_significance_method
from regtransition.stats.transition_types import TransitionMethod, resolve_method


@dataclass(frozen=True)
class L1Config:
    """Penalty search settings for the L1 method."""
    n_folds: int = 5
    min_lambda: float = 1.0
    max_lambda: float = 2.0
    max_iter: int = 10000
    tol: float = 1e-6


@dataclass(frozen=True)
class TransitionConfig:
    """
    Transition matrix estimation settings.

    Defaults: regulator-level comparison,
    no row standardization, diagonal removed, OLS.
    """
    method: str = "ols"
    by_regulator: bool = True
    standardize: bool = False
    remove_diagonal: bool = True
    l1: L1Config = field(default_factory=L1Config)

    def __post_init__(self):
        resolve_method(self.method)

    @property
    def transition_method(self) -> TransitionMethod:
        return resolve_method(self.method)

    def estimator_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``estimate_transition_matrix``."""
        method = self.transition_method
        options = asdict(self.l1) if method is TransitionMethod.L1 else {}
        return {
            "by_regulator": self.by_regulator,
            "standardize": self.standardize,
            "remove_diagonal": self.remove_diagonal,
            "method": method,
            "method_options": options,
        }


@dataclass(frozen=True)
class SignificanceConfig:
    """P-value settings."""
    method: str = "z-score"

    def __post_init__(self):
        resolve_significance_method(self.method)

    @property
    def significance_method(self) -> SignificanceMethod:
        return resolve_significance_method(self.method)


@dataclass(frozen=True)
class AnalysisConfig:
    """Complete configuration schema for a transition analysis."""
    transition: TransitionConfig = field(default_factory=TransitionConfig)
    significance: SignificanceConfig = field(default_factory=SignificanceConfig)


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid

    Examples:
        >>> config = load_config(Path("transition.yaml"))
        >>> print(config['transition']['method'])
        ols
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in ('.yaml', '.yml', '.json'):
        raise ValueError(
            f"Unsupported config format: {suffix}. "
            f"Use .yaml, .yml, or .json"
        )

    try:
        with open(config_path, 'r') as f:
            if suffix == '.json':
                config = json.load(f)
            else:
                config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


def _build(cls, values: Mapping[str, Any] | None, section: str):
    """Instantiate a config dataclass, rejecting keys it does not define."""
    if values is None:
        return cls()
    if not isinstance(values, Mapping):
        raise InvalidInputError(f"Config section '{section}' must be a mapping")

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise InvalidInputError(f"Unknown keys in config section '{section}': {unknown}")
    return cls(**values)


def config_from_dict(config: Mapping[str, Any]) -> AnalysisConfig:
    """
    Build a validated AnalysisConfig from a loaded mapping.

    Raises:
        InvalidInputError: For unknown sections or keys.
        UnknownMethodError: For unrecognized method tokens.
    """
    unknown = sorted(set(config) - {"transition", "significance"})
    if unknown:
        raise InvalidInputError(f"Unknown config sections: {unknown}")

    transition = config.get("transition") or {}
    if not isinstance(transition, Mapping):
        raise InvalidInputError("Config section 'transition' must be a mapping")
    transition = dict(transition)
    l1 = _build(L1Config, transition.pop("l1", None), "transition.l1")
    return AnalysisConfig(
        transition=_build(TransitionConfig, {**transition, "l1": l1}, "transition"),
        significance=_build(SignificanceConfig, config.get("significance"), "significance"),
    )
