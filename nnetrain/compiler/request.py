"""Computation requests: what a minibatch asks of the network.

A request lists the input streams supplied and the outputs wanted, with
their row counts, and whether model derivatives are needed. It carries no
data, so structurally identical minibatches produce equal requests and can
share one compiled computation.
"""
from __future__ import annotations

from dataclasses import dataclass

from nnetrain.data.example import NnetExample
from nnetrain.nnet import Nnet


class DimensionMismatchError(ValueError):
    """Supervision and network output disagree on the number of columns."""


@dataclass(frozen=True, slots=True)
class IoSpecification:
    """One requested input or output."""

    name: str
    num_rows: int
    has_deriv: bool = False


@dataclass(frozen=True, slots=True)
class ComputationRequest:
    """Hashable description of one forward (and maybe backward) pass."""

    inputs: tuple[IoSpecification, ...]
    outputs: tuple[IoSpecification, ...]
    need_model_derivative: bool
    store_component_stats: bool

    def input_index(self, name: str) -> int:
        for i, spec in enumerate(self.inputs):
            if spec.name == name:
                return i
        return -1

    def output_index(self, name: str) -> int:
        for i, spec in enumerate(self.outputs):
            if spec.name == name:
                return i
        return -1


def get_computation_request(
    nnet: Nnet,
    eg: NnetExample,
    need_model_derivative: bool,
    store_component_stats: bool,
) -> ComputationRequest:
    """Build the request for an example.

    Every stream must name an input or output node of the network; anything
    else is an error, raised before any computation runs. Output streams
    must also match the width of their node, so a bad stream anywhere in the
    example fails it before any output is scored. Outputs get
    `has_deriv` when model derivatives are needed, since the objective
    derivative is what back-propagation starts from.
    """
    inputs: list[IoSpecification] = []
    outputs: list[IoSpecification] = []
    seen: set[str] = set()
    for io in eg.io:
        if io.name in seen:
            raise ValueError(f"Example has more than one stream named {io.name!r}")
        seen.add(io.name)
        node_index = nnet.get_node_index(io.name)
        if node_index < 0:
            raise ValueError(f"Node named {io.name!r} not found in network")
        if nnet.is_input_node(node_index):
            inputs.append(IoSpecification(name=io.name, num_rows=io.num_rows))
        elif nnet.is_output_node(node_index):
            dim = nnet.output_dim(io.name)
            if io.features.num_cols != dim:
                raise DimensionMismatchError(
                    f"Supervision for output {io.name!r} has dim {io.features.num_cols}, "
                    f"network output has dim {dim}"
                )
            outputs.append(
                IoSpecification(
                    name=io.name,
                    num_rows=io.num_rows,
                    has_deriv=need_model_derivative,
                )
            )
        else:
            raise ValueError(
                f"Example stream {io.name!r} names a component node; "
                "only input and output nodes can be supplied"
            )
    if not outputs:
        raise ValueError("Example has no streams for output nodes of the network")
    return ComputationRequest(
        inputs=tuple(inputs),
        outputs=tuple(outputs),
        need_model_derivative=need_model_derivative,
        store_component_stats=store_component_stats,
    )
