"""Hyperbolic tangent."""
from __future__ import annotations

import torch
from torch import Tensor
from typing_extensions import override

from nnetrain.component import NonlinearComponent


class TanhComponent(NonlinearComponent):
    """y = tanh(x); dy/dx = 1 - y^2."""

    @override
    def forward(self, x: Tensor) -> Tensor:
        return torch.tanh(x)

    @override
    def derivative(self, out: Tensor) -> Tensor:
        return 1.0 - out * out
