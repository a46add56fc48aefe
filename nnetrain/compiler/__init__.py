"""Compiler: turn computation requests into executable computations.

Each minibatch yields a ComputationRequest (which inputs are supplied, which
outputs are wanted, whether derivatives are needed). The compiler turns it
into an NnetComputation, the ordered list of steps the executor runs.

Pipeline stages:
1. Validate: check the request against the network
2. Schedule: pick the nodes needed and order them
3. Plan (optional): render the computation as text for debugging

Training sees the same request structure over and over, so CachingCompiler
keeps recent computations and returns the same object for equal requests.
"""
from __future__ import annotations

import logging
from collections import OrderedDict

from nnetrain.compiler.computation import NnetComputation, Step, StepType
from nnetrain.compiler.plan import Planner
from nnetrain.compiler.request import (
    ComputationRequest,
    DimensionMismatchError,
    IoSpecification,
    get_computation_request,
)
from nnetrain.compiler.validate import Validator
from nnetrain.config.train import OptimizeConfig
from nnetrain.nnet import Nnet

__all__ = [
    "CachingCompiler",
    "Compiler",
    "ComputationRequest",
    "DimensionMismatchError",
    "IoSpecification",
    "NnetComputation",
    "Planner",
    "Step",
    "StepType",
    "Validator",
    "get_computation_request",
]

logger = logging.getLogger(__name__)


class Compiler:
    """Compiles requests for one network."""

    validator: Validator
    planner: Planner

    def __init__(self, nnet: Nnet, config: OptimizeConfig | None = None) -> None:
        self.nnet = nnet
        self.config = config if config is not None else OptimizeConfig()
        self.validator = Validator()
        self.planner = Planner()

    def compile(self, request: ComputationRequest) -> NnetComputation:
        """Validate and schedule a request.

        Raises:
            ValueError: If the request does not fit the network.
        """
        self.validator.validate_request(self.nnet, request)
        return NnetComputation(request=request, steps=self.schedule(request))

    def schedule(self, request: ComputationRequest) -> tuple[Step, ...]:
        """Steps in node order.

        With optimization on, only nodes feeding a requested output are kept.
        Otherwise every component reachable from a supplied input runs.
        """
        nnet = self.nnet
        supplied = {spec.name for spec in request.inputs}
        wanted = {spec.name for spec in request.outputs}

        needed: set[str] = set()
        if self.config.optimize:
            for name in wanted:
                node = nnet.get_node(nnet.get_node_index(name))
                while node.input is not None:
                    needed.add(node.input)
                    node = nnet.get_node(nnet.get_node_index(node.input))
        else:
            for index in range(nnet.num_nodes):
                if nnet.is_component_node(index):
                    name = nnet.get_node_name(index)
                    if self.validator.source_input(nnet, name) in supplied:
                        needed.add(name)

        steps: list[Step] = []
        for index in range(nnet.num_nodes):
            node = nnet.get_node(index)
            if node.input is None:
                continue
            if nnet.is_component_node(index) and node.name in needed:
                steps.append(Step(type=StepType.COMPONENT, node=node.name, input=node.input))
            elif nnet.is_output_node(index) and node.name in wanted:
                steps.append(Step(type=StepType.OUTPUT, node=node.name, input=node.input))
        return tuple(steps)


class CachingCompiler(Compiler):
    """A Compiler that remembers recent computations.

    The cache is keyed by the request and holds at most
    `config.cache_capacity` entries, evicting the least recently used.
    Callers must treat returned computations as read-only.
    """

    def __init__(self, nnet: Nnet, config: OptimizeConfig | None = None) -> None:
        super().__init__(nnet, config)
        self._cache: OrderedDict[ComputationRequest, NnetComputation] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def compile(self, request: ComputationRequest) -> NnetComputation:
        cached = self._cache.get(request)
        if cached is not None:
            self._cache.move_to_end(request)
            self.hits += 1
            return cached

        computation = super().compile(request)
        self.misses += 1
        self._cache[request] = computation
        if len(self._cache) > int(self.config.cache_capacity):
            self._cache.popitem(last=False)
        logger.debug(
            "Compiled computation with %d steps (cache size %d)",
            computation.num_steps,
            len(self._cache),
        )
        return computation

    def __len__(self) -> int:
        return len(self._cache)
