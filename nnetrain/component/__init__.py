"""Network components: the transforms that sit between input and output nodes.

Each component type is a torch module built from its config. Nonlinear
components can accumulate statistics about their activations during training
(the per-dimension sum of values and of derivatives, plus a count), which is
useful for diagnosing saturated or dead units.
"""
from __future__ import annotations

import torch
from torch import Tensor, nn

from nnetrain.config.component import ComponentConfig


class Component(nn.Module):
    """Base class for all components.

    Subclasses implement `forward` on a (num_rows, dim) matrix.
    """

    def __init__(self, config: ComponentConfig) -> None:
        super().__init__()
        self.config = config

    @property
    def is_updatable(self) -> bool:
        """Whether backward() applies parameter updates to this component."""
        return False

    def forward(self, x: Tensor) -> Tensor:
        """Forward pass, to be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement forward pass.")

    def update(self, source: Component | None = None) -> None:
        """Apply the gradients held by `source` (default: self) to this component."""
        raise NotImplementedError(f"{type(self).__name__} is not updatable.")


class NonlinearComponent(Component):
    """Elementwise nonlinearity that can store activation statistics."""

    value_sum: Tensor
    deriv_sum: Tensor
    count: Tensor

    def __init__(self, config: ComponentConfig) -> None:
        super().__init__(config)
        dim = int(getattr(config, "dim"))
        self.register_buffer("value_sum", torch.zeros(dim, dtype=torch.float64))
        self.register_buffer("deriv_sum", torch.zeros(dim, dtype=torch.float64))
        self.register_buffer("count", torch.zeros((), dtype=torch.float64))

    def derivative(self, out: Tensor) -> Tensor:
        """Derivative of the nonlinearity, expressed in terms of its output."""
        raise NotImplementedError("Subclasses must implement derivative.")

    @torch.no_grad()
    def store_stats(self, out: Tensor) -> None:
        """Accumulate column sums of the output and its derivative."""
        out = out.detach().to(torch.float64)
        self.value_sum += out.sum(dim=0)
        self.deriv_sum += self.derivative(out).sum(dim=0)
        self.count += out.size(0)

    @torch.no_grad()
    def zero_stats(self) -> None:
        """Reset the stored statistics."""
        self.value_sum.zero_()
        self.deriv_sum.zero_()
        self.count.zero_()
