"""Executor for compiled computations.

An NnetComputer runs one NnetComputation on one minibatch:
1. accept_inputs: densify the example's input streams
2. forward: run the component steps in order
3. get_output / accept_output_deriv: hand outputs to the objective and take
   back its derivatives
4. backward: back-propagate and update the parameters

Back-propagation uses torch autograd. The derivatives accepted at the outputs
are gradients of the objective, which training maximizes, so parameters move
along the gradient.
"""
from __future__ import annotations

import logging

import torch
from torch import Tensor

from nnetrain.compiler.computation import NnetComputation, StepType
from nnetrain.compiler.request import ComputationRequest
from nnetrain.component import NonlinearComponent
from nnetrain.config.train import ComputeConfig
from nnetrain.data.example import NnetExample
from nnetrain.nnet import Nnet

logger = logging.getLogger(__name__)


class NnetComputer:
    """Runs a compiled computation.

    `nnet` is the network evaluated; `nnet_to_update`, if given, receives the
    parameter updates in backward(). It may be `nnet` itself.
    """

    def __init__(
        self,
        config: ComputeConfig,
        computation: NnetComputation,
        nnet: Nnet,
        nnet_to_update: Nnet | None = None,
    ) -> None:
        self.config = config
        self.computation = computation
        self.nnet = nnet
        self.nnet_to_update = nnet_to_update
        self._values: dict[str, Tensor] = {}
        self._output_derivs: dict[str, Tensor] = {}
        self._inputs_accepted = False
        self._forward_done = False

    @property
    def request(self) -> ComputationRequest:
        return self.computation.request

    def accept_inputs(self, nnet: Nnet, eg: NnetExample) -> None:
        """Take the input matrices of `eg` for every requested input."""
        for spec in self.request.inputs:
            io = eg.get(spec.name)
            if io is None:
                raise ValueError(f"Example has no stream named {spec.name!r}")
            x = io.features.to_dense()
            dim = nnet.input_dim(spec.name)
            if tuple(x.shape) != (spec.num_rows, dim):
                raise ValueError(
                    f"Input {spec.name!r}: expected shape ({spec.num_rows}, {dim}), "
                    f"got {tuple(x.shape)}"
                )
            self._values[spec.name] = x
        self._inputs_accepted = True

    def forward(self) -> None:
        """Run every step of the computation."""
        if not self._inputs_accepted:
            raise RuntimeError("forward() called before accept_inputs().")
        request = self.request
        with torch.set_grad_enabled(request.need_model_derivative):
            for step in self.computation.steps:
                x = self._values[step.input]
                match step.type:
                    case StepType.COMPONENT:
                        component = self.nnet.component(step.node)
                        y = component(x)
                        if request.store_component_stats and isinstance(
                            component, NonlinearComponent
                        ):
                            component.store_stats(y)
                    case StepType.OUTPUT:
                        y = x
                self._values[step.node] = y
                if self.config.debug:
                    logger.debug(
                        "%s %s <- %s: shape=%s mean=%.6g",
                        step.type.value,
                        step.node,
                        step.input,
                        tuple(y.shape),
                        float(y.detach().mean()) if y.numel() else 0.0,
                    )
        self._forward_done = True

    def get_output(self, name: str) -> Tensor:
        """Value of output node `name`, detached from the graph."""
        if self.request.output_index(name) < 0:
            raise ValueError(f"{name!r} is not a requested output.")
        if not self._forward_done:
            raise RuntimeError("get_output() called before forward().")
        return self._values[name].detach()

    def accept_output_deriv(self, name: str, deriv: Tensor) -> None:
        """Take the objective derivative for output `name`.

        The output must have been requested with a derivative, and `deriv`
        must have the output's shape. The computer keeps the tensor.
        """
        index = self.request.output_index(name)
        if index < 0:
            raise ValueError(f"{name!r} is not a requested output.")
        if not self.request.outputs[index].has_deriv:
            raise ValueError(f"Output {name!r} was not requested with a derivative.")
        if not self._forward_done:
            raise RuntimeError("accept_output_deriv() called before forward().")
        value = self._values[name]
        if deriv.shape != value.shape:
            raise ValueError(
                f"Derivative for {name!r} has shape {tuple(deriv.shape)}, "
                f"output has shape {tuple(value.shape)}"
            )
        self._output_derivs[name] = deriv.to(dtype=value.dtype, device=value.device)

    def backward(self) -> None:
        """Back-propagate the accepted derivatives and update parameters."""
        request = self.request
        if not request.need_model_derivative:
            raise RuntimeError("backward() called on a computation without derivatives.")
        if not self._forward_done:
            raise RuntimeError("backward() called before forward().")

        tensors: list[Tensor] = []
        grads: list[Tensor] = []
        for spec in request.outputs:
            if not spec.has_deriv:
                continue
            deriv = self._output_derivs.get(spec.name)
            if deriv is None:
                raise RuntimeError(f"No derivative accepted for output {spec.name!r}.")
            value = self._values[spec.name]
            if value.requires_grad:
                tensors.append(value)
                grads.append(deriv)
        if tensors:
            torch.autograd.backward(tensors, grad_tensors=grads)

        if self.nnet_to_update is not None:
            for name, component in self.nnet.components.items():
                target = self.nnet_to_update.component(name)
                if target.is_updatable:
                    target.update(source=component)
                    if self.config.debug:
                        logger.debug("updated %s", name)
        for param in self.nnet.parameters():
            param.grad = None
