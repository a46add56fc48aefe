"""Configuration system: turning YAML into validated Python objects.

Network descriptions and trainer options are written as YAML (or JSON) and
validated into Pydantic models. Configs that describe a component can build
the corresponding torch module directly.
"""
from __future__ import annotations

import enum
import importlib
from typing import Annotated, Protocol, TypeVar, cast

from pydantic import AfterValidator, BaseModel
from torch import nn


T = TypeVar("T")


class ValidationType(enum.Enum):
    """Types of value validation we support."""

    SHOULD_BE_POSITIVE = "should_be_positive"
    SHOULD_BE_NON_NEGATIVE = "should_be_non_negative"


class Config(BaseModel):
    """Base class for all configuration objects.

    Provides a `build()` method that dynamically constructs the nn.Module
    corresponding to this config, and validation helpers for enforcing
    constraints on config values.
    """

    def build(self) -> nn.Module:
        """Construct the nn.Module this config describes.

        Uses dynamic imports based on the config's `type` field, so adding
        a new component type only requires adding the module.
        """

        class _BuildType(Protocol):
            value: str
            name: str

            def module_name(self) -> str:
                ...

        t = cast(_BuildType, getattr(self, "type"))
        class_name = t.value
        module_name = t.name.lower()
        mod = importlib.import_module(f"{t.module_name()}.{module_name}")
        cls = getattr(mod, class_name)
        return cls(self)

    @staticmethod
    def check(left: T, validation_type: ValidationType) -> T:
        """Validate a value against a constraint, raising ValueError on failure."""
        match validation_type:
            case ValidationType.SHOULD_BE_POSITIVE:
                if left <= 0:  # type: ignore[operator]
                    raise ValueError(
                        f"Validation failed: {validation_type.name}: {left!r} <= 0"
                    )
                return left
            case ValidationType.SHOULD_BE_NON_NEGATIVE:
                if left < 0:  # type: ignore[operator]
                    raise ValueError(
                        f"Validation failed: {validation_type.name}: {left!r} < 0"
                    )
                return left
            case _:
                raise ValueError(
                    f"Validation failed: unknown validation type {validation_type}"
                )


# Type aliases for validated primitives, used in config models
PositiveInt = Annotated[
    int,
    AfterValidator(lambda v: Config.check(v, ValidationType.SHOULD_BE_POSITIVE)),
]
PositiveFloat = Annotated[
    float,
    AfterValidator(lambda v: Config.check(v, ValidationType.SHOULD_BE_POSITIVE)),
]
NonNegativeFloat = Annotated[
    float,
    AfterValidator(lambda v: Config.check(v, ValidationType.SHOULD_BE_NON_NEGATIVE)),
]
