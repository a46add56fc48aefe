"""Objective evaluation at network outputs."""
from __future__ import annotations

from nnetrain.objective.function import (
    DimensionMismatchError,
    ObjectiveValue,
    compute_objective_function,
)

__all__ = ["DimensionMismatchError", "ObjectiveValue", "compute_objective_function"]
