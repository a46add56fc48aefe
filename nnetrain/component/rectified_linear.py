"""Rectified linear unit."""
from __future__ import annotations

import torch
from torch import Tensor
from typing_extensions import override

from nnetrain.component import NonlinearComponent


class RectifiedLinearComponent(NonlinearComponent):
    """y = max(x, 0)."""

    @override
    def forward(self, x: Tensor) -> Tensor:
        return torch.relu(x)

    @override
    def derivative(self, out: Tensor) -> Tensor:
        return (out > 0).to(out.dtype)
