"""Minibatch trainer.

NnetTrainer runs one example at a time through the network:
request -> compiled computation -> forward -> objective per output ->
backward. It keeps per-output objective statistics and logs the average
objective every `print_interval` minibatches.
"""
from __future__ import annotations

import logging

from nnetrain.compiler import CachingCompiler, get_computation_request
from nnetrain.config.train import TrainerConfig
from nnetrain.data.example import NnetExample
from nnetrain.nnet import Nnet
from nnetrain.objective import compute_objective_function
from nnetrain.runtime import NnetComputer
from nnetrain.trainer.stats import ObjectiveFunctionInfo

_log = logging.getLogger(__name__)


class NnetTrainer:
    """Trains an Nnet on examples, one minibatch per `train()` call.

    The network is updated in place. `num_minibatches_processed` advances
    once for every output stream processed, so with several outputs per
    example the phases of each output are counted against a shared counter.
    """

    def __init__(self, config: TrainerConfig, nnet: Nnet) -> None:
        """Set up the trainer; zero component stats if configured to."""
        self.config = config
        self.nnet = nnet
        self.compiler = CachingCompiler(nnet, config.optimize)
        self.num_minibatches_processed = 0
        self.objf_info: dict[str, ObjectiveFunctionInfo] = {}
        if config.zero_component_stats and config.store_component_stats:
            nnet.zero_component_stats()

    def train(self, eg: NnetExample) -> None:
        """Do one forward and backward pass on `eg` and update the network.

        Raises:
            ValueError: If the example does not fit the network.
            RuntimeError: If phase bookkeeping is violated.
        """
        request = get_computation_request(
            self.nnet,
            eg,
            need_model_derivative=True,
            store_component_stats=self.config.store_component_stats,
        )
        computation = self.compiler.compile(request)
        if self.config.debug_computation:
            _log.debug("Computation:\n%s", self.compiler.planner.format(computation))

        computer = NnetComputer(self.config.compute, computation, self.nnet, self.nnet)
        computer.accept_inputs(self.nnet, eg)
        computer.forward()
        self.process_outputs(eg, computer)
        computer.backward()

    def process_outputs(self, eg: NnetExample, computer: NnetComputer) -> None:
        """Evaluate the objective of every output stream in `eg`."""
        for io in eg.io:
            node_index = self.nnet.get_node_index(io.name)
            if node_index < 0:
                raise ValueError(f"Node named {io.name!r} not found in network")
            if not self.nnet.is_output_node(node_index):
                continue
            objective_type = self.nnet.get_node(node_index).objective_type
            if objective_type is None:
                raise ValueError(f"Output node {io.name!r} has no objective type")
            value = compute_objective_function(
                io.features,
                objective_type,
                io.name,
                True,
                computer,
            )
            info = self.objf_info.setdefault(io.name, ObjectiveFunctionInfo())
            info.update_stats(
                io.name,
                self.config.print_interval,
                self.num_minibatches_processed,
                value.tot_weight,
                value.tot_objf,
            )
            self.num_minibatches_processed += 1

    def print_total_stats(self) -> bool:
        """Log the overall objective of every output.

        Returns True if any output saw nonzero weight.
        """
        ans = False
        for name, info in self.objf_info.items():
            ans = info.print_total_stats(name) or ans
        return ans
