"""Utility modules for transition matrix estimation."""

from regtransition.utils.statistics import (
    center_columns,
    simple_regression_residuals,
)

__all__ = [
    'center_columns',
    'simple_regression_residuals',
]
