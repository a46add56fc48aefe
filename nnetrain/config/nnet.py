"""Network configuration: the graph of named nodes.

A network is described as three lists:
- inputs: the streams the network reads (name and feature dimension)
- components: trainable or fixed transforms, each reading one other node
- outputs: named outputs, each reading one node and declaring the objective
  function used to train it

Example (YAML):

    vars:
      hidden: 256
    inputs:
      - name: input
        dim: 40
    components:
      - name: affine1
        input: input
        component: {type: affine, input_dim: 40, output_dim: '${hidden}'}
      - name: relu1
        input: affine1
        component: {type: relu, dim: '${hidden}'}
    outputs:
      - name: output
        input: relu1
        objective: quadratic
"""
from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from nnetrain.config import PositiveInt
from nnetrain.config.component import ComponentConfig
from nnetrain.config.objective import ObjectiveType
from nnetrain.config.resolve import load_payload


class InputNodeConfig(BaseModel):
    """An input stream of the network."""

    name: str
    dim: PositiveInt


class ComponentNodeConfig(BaseModel):
    """A component applied to the value of another node."""

    name: str
    input: str
    component: ComponentConfig


class OutputNodeConfig(BaseModel):
    """A network output and the objective it is trained with."""

    name: str
    input: str
    objective: ObjectiveType = ObjectiveType.LINEAR


class NnetConfig(BaseModel):
    """The complete network description loaded from YAML or JSON."""

    inputs: list[InputNodeConfig]
    components: list[ComponentNodeConfig] = []
    outputs: list[OutputNodeConfig]

    @classmethod
    def from_path(cls, path: Path) -> "NnetConfig":
        """Load and validate a network config from a JSON or YAML file.

        Supports `${var}` substitution from a top-level `vars` section and
        shorthand component type names.
        """
        payload = load_payload(path.suffix, path.read_text(encoding="utf-8"))
        return cls.model_validate(payload)
