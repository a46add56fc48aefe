"""Compiled computations: the ordered steps the executor runs."""
from __future__ import annotations

import enum
from dataclasses import dataclass

from nnetrain.compiler.request import ComputationRequest


class StepType(enum.Enum):
    """What a step does."""

    COMPONENT = "component"
    OUTPUT = "output"


@dataclass(frozen=True, slots=True)
class Step:
    """Compute node `node` from the value of node `input`."""

    type: StepType
    node: str
    input: str


@dataclass(frozen=True, slots=True)
class NnetComputation:
    """A request together with the steps that satisfy it.

    Computations are immutable and may be shared between minibatches with
    equal requests.
    """

    request: ComputationRequest
    steps: tuple[Step, ...]

    @property
    def num_steps(self) -> int:
        return len(self.steps)
