"""Logistic sigmoid."""
from __future__ import annotations

import torch
from torch import Tensor
from typing_extensions import override

from nnetrain.component import NonlinearComponent


class SigmoidComponent(NonlinearComponent):
    """y = 1 / (1 + exp(-x)); dy/dx = y (1 - y)."""

    @override
    def forward(self, x: Tensor) -> Tensor:
        return torch.sigmoid(x)

    @override
    def derivative(self, out: Tensor) -> Tensor:
        return out * (1.0 - out)
