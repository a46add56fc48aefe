"""Component configuration with discriminated unions.

Each component type has its own config class. Pydantic's discriminated
unions allow YAML like `type: AffineComponent` (or the shorthand `affine`)
to deserialize into the correct config class.
"""
from __future__ import annotations

import enum
from typing import Annotated, Literal, TypeAlias

from pydantic import Field

from nnetrain.config import Config, NonNegativeFloat, PositiveFloat, PositiveInt


class ComponentType(str, enum.Enum):
    """Enumeration of component types for type-safe config parsing.

    The member name (lowercased) is the module under `nnetrain.component`
    that holds the class named by the value.
    """

    AFFINE = "AffineComponent"
    RECTIFIED_LINEAR = "RectifiedLinearComponent"
    SIGMOID = "SigmoidComponent"
    TANH = "TanhComponent"
    LOG_SOFTMAX = "LogSoftmaxComponent"
    SOFTMAX = "SoftmaxComponent"

    @staticmethod
    def module_name() -> str:
        """Return the Python package containing component implementations."""
        return "nnetrain.component"


class AffineComponentConfig(Config):
    """Configuration for a trainable affine transform y = W x + b."""

    type: Literal[ComponentType.AFFINE] = ComponentType.AFFINE
    input_dim: PositiveInt
    output_dim: PositiveInt
    learning_rate: NonNegativeFloat = 0.001
    param_stddev: PositiveFloat | None = None
    bias_stddev: NonNegativeFloat = 1.0

    @property
    def effective_param_stddev(self) -> float:
        """Initial weight stddev; defaults to 1/sqrt(input_dim)."""
        if self.param_stddev is not None:
            return float(self.param_stddev)
        return float(self.input_dim) ** -0.5


class RectifiedLinearComponentConfig(Config):
    """Configuration for ReLU."""

    type: Literal[ComponentType.RECTIFIED_LINEAR] = ComponentType.RECTIFIED_LINEAR
    dim: PositiveInt


class SigmoidComponentConfig(Config):
    """Configuration for the logistic sigmoid."""

    type: Literal[ComponentType.SIGMOID] = ComponentType.SIGMOID
    dim: PositiveInt


class TanhComponentConfig(Config):
    """Configuration for tanh."""

    type: Literal[ComponentType.TANH] = ComponentType.TANH
    dim: PositiveInt


class LogSoftmaxComponentConfig(Config):
    """Configuration for log-softmax over the last dimension."""

    type: Literal[ComponentType.LOG_SOFTMAX] = ComponentType.LOG_SOFTMAX
    dim: PositiveInt


class SoftmaxComponentConfig(Config):
    """Configuration for softmax over the last dimension."""

    type: Literal[ComponentType.SOFTMAX] = ComponentType.SOFTMAX
    dim: PositiveInt


ComponentConfig: TypeAlias = Annotated[
    AffineComponentConfig
    | RectifiedLinearComponentConfig
    | SigmoidComponentConfig
    | TanhComponentConfig
    | LogSoftmaxComponentConfig
    | SoftmaxComponentConfig,
    Field(discriminator="type"),
]


def component_input_dim(config: ComponentConfig) -> int:
    """Input dimension a component expects."""
    if isinstance(config, AffineComponentConfig):
        return int(config.input_dim)
    return int(config.dim)


def component_output_dim(config: ComponentConfig) -> int:
    """Output dimension a component produces."""
    if isinstance(config, AffineComponentConfig):
        return int(config.output_dim)
    return int(config.dim)
