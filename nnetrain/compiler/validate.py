"""Validation pass: check a request against the network.

Before compiling we make sure the request makes sense for this network:
- every requested input is an input node, every output an output node
- every input an output depends on is supplied
- every node is computed row by row, so an output must have the same number
  of rows as each input it depends on

Catching these errors here prevents cryptic shape errors mid-computation.
"""
from __future__ import annotations

from nnetrain.compiler.request import ComputationRequest
from nnetrain.nnet import Nnet


class Validator:
    """Checks a ComputationRequest for consistency with an Nnet."""

    def validate_request(self, nnet: Nnet, request: ComputationRequest) -> None:
        """Raise ValueError if the request cannot be computed."""
        if not request.outputs:
            raise ValueError("Computation request has no outputs.")
        supplied: dict[str, int] = {}
        for spec in request.inputs:
            index = nnet.get_node_index(spec.name)
            if index < 0 or not nnet.is_input_node(index):
                raise ValueError(f"Requested input {spec.name!r} is not an input node.")
            if spec.num_rows <= 0:
                raise ValueError(f"Input {spec.name!r} has no rows.")
            supplied[spec.name] = spec.num_rows

        for spec in request.outputs:
            index = nnet.get_node_index(spec.name)
            if index < 0 or not nnet.is_output_node(index):
                raise ValueError(f"Requested output {spec.name!r} is not an output node.")
            source = self.source_input(nnet, spec.name)
            if source not in supplied:
                raise ValueError(
                    f"Output {spec.name!r} depends on input {source!r}, "
                    "which the request does not supply."
                )
            if supplied[source] != spec.num_rows:
                raise ValueError(
                    f"Output {spec.name!r} has {spec.num_rows} rows but input "
                    f"{source!r} has {supplied[source]}. "
                    "Fix: supervision must have one row per input row."
                )

    def source_input(self, nnet: Nnet, name: str) -> str:
        """Follow `input` links from node `name` back to an input node."""
        node = nnet.get_node(nnet.get_node_index(name))
        while node.input is not None:
            node = nnet.get_node(nnet.get_node_index(node.input))
        return node.name
