"""Trainer configuration.

The trainer itself has few knobs: how often to print the objective, and
whether nonlinear components accumulate activation statistics. Options for
the compiler and the executor are nested under `optimize` and `compute`.
"""
from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from nnetrain.config import PositiveInt
from nnetrain.config.resolve import load_payload


class OptimizeConfig(BaseModel):
    """Compiler options.

    `optimize` prunes nodes that do not contribute to a requested output.
    `cache_capacity` bounds how many compiled computations are kept.
    """

    optimize: bool = True
    cache_capacity: PositiveInt = 64


class ComputeConfig(BaseModel):
    """Executor options."""

    debug: bool = False


class TrainerConfig(BaseModel):
    """Settings for NnetTrainer.

    store_component_stats: if true, nonlinear components store the sums of
        their activations and derivatives during training.
    zero_component_stats: if both this and store_component_stats are true,
        the stored stats are zeroed before training.
    print_interval: number of minibatches per reporting phase.
    debug_computation: log each compiled computation before running it.
    """

    zero_component_stats: bool = True
    store_component_stats: bool = False
    print_interval: PositiveInt = 100
    debug_computation: bool = False
    optimize: OptimizeConfig = Field(default_factory=OptimizeConfig)
    compute: ComputeConfig = Field(default_factory=ComputeConfig)

    @classmethod
    def from_path(cls, path: Path) -> "TrainerConfig":
        """Load trainer options from a JSON or YAML file."""
        return cls.model_validate(load_payload(path.suffix, path.read_text(encoding="utf-8")))


class ComputeProbConfig(BaseModel):
    """Settings for NnetComputeProb, which evaluates without training."""

    debug_computation: bool = False
    optimize: OptimizeConfig = Field(default_factory=OptimizeConfig)
    compute: ComputeConfig = Field(default_factory=ComputeConfig)
