"""Objective evaluation without training.

NnetComputeProb runs the forward pass only and sums the objective of every
output, for checking a model on held-out examples.
"""
from __future__ import annotations

import logging

from nnetrain.compiler import CachingCompiler, get_computation_request
from nnetrain.config.train import ComputeProbConfig
from nnetrain.console import logger
from nnetrain.data.example import NnetExample
from nnetrain.nnet import Nnet
from nnetrain.objective import ObjectiveValue, compute_objective_function
from nnetrain.runtime import NnetComputer

_log = logging.getLogger(__name__)


class NnetComputeProb:
    """Accumulates per-output objectives over examples. Never updates the network."""

    def __init__(self, config: ComputeProbConfig, nnet: Nnet) -> None:
        self.config = config
        self.nnet = nnet
        self.compiler = CachingCompiler(nnet, config.optimize)
        self._totals: dict[str, ObjectiveValue] = {}
        self.num_minibatches_processed = 0

    def compute(self, eg: NnetExample) -> None:
        """Add the objectives of `eg` to the running totals."""
        request = get_computation_request(
            self.nnet, eg, need_model_derivative=False, store_component_stats=False
        )
        computation = self.compiler.compile(request)
        if self.config.debug_computation:
            _log.debug("Computation:\n%s", self.compiler.planner.format(computation))
        computer = NnetComputer(self.config.compute, computation, self.nnet)
        computer.accept_inputs(self.nnet, eg)
        computer.forward()
        for io in eg.io:
            node_index = self.nnet.get_node_index(io.name)
            if node_index < 0 or not self.nnet.is_output_node(node_index):
                continue
            objective_type = self.nnet.get_node(node_index).objective_type
            if objective_type is None:
                raise ValueError(f"Output node {io.name!r} has no objective type")
            value = compute_objective_function(
                io.features, objective_type, io.name, False, computer
            )
            total = self._totals.get(io.name, ObjectiveValue(0.0, 0.0))
            self._totals[io.name] = ObjectiveValue(
                tot_weight=total.tot_weight + value.tot_weight,
                tot_objf=total.tot_objf + value.tot_objf,
            )
        self.num_minibatches_processed += 1

    def get_objective(self, output_name: str) -> ObjectiveValue | None:
        """Accumulated objective of `output_name`, or None if never seen."""
        return self._totals.get(output_name)

    def print_total_stats(self) -> bool:
        """Log the average objective per output; True if any had weight."""
        ans = False
        for name, total in self._totals.items():
            average = (
                total.tot_objf / total.tot_weight if total.tot_weight != 0.0 else float("nan")
            )
            logger.objective_total(name, average, total.tot_weight)
            ans = ans or total.tot_weight != 0.0
        return ans
