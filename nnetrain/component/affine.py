"""Trainable affine component.

The only updatable component type. Parameters are initialized with a
Gaussian whose stddev defaults to 1/sqrt(input_dim), and updated in
backward() with the component's own learning rate.
"""
from __future__ import annotations

import torch
from torch import Tensor, nn
from typing_extensions import override

from nnetrain.component import Component
from nnetrain.config.component import AffineComponentConfig


class AffineComponent(Component):
    """y = x W^T + b."""

    def __init__(self, config: AffineComponentConfig) -> None:
        super().__init__(config)
        self.learning_rate = float(config.learning_rate)
        self.linear = nn.Linear(config.input_dim, config.output_dim)
        with torch.no_grad():
            self.linear.weight.normal_(0.0, config.effective_param_stddev)
            self.linear.bias.normal_(0.0, float(config.bias_stddev))

    @property
    @override
    def is_updatable(self) -> bool:
        return True

    @override
    def forward(self, x: Tensor) -> Tensor:
        return self.linear(x)

    @torch.no_grad()
    @override
    def update(self, source: Component | None = None) -> None:
        """Move the parameters along the objective gradient, then clear it.

        Gradients hold the derivative of the objective (which is maximized),
        so the step is added rather than subtracted. `source` is the
        component whose gradients are used; it must have the same shapes.
        """
        source = self if source is None else source
        for param, src in zip(self.parameters(), source.parameters(), strict=True):
            if src.grad is None:
                continue
            param.add_(src.grad, alpha=self.learning_rate)
            src.grad = None
