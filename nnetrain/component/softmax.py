"""Softmax over the feature dimension."""
from __future__ import annotations

import torch.nn.functional as F
from torch import Tensor
from typing_extensions import override

from nnetrain.component import Component


class SoftmaxComponent(Component):
    """Row-wise softmax."""

    @override
    def forward(self, x: Tensor) -> Tensor:
        return F.softmax(x, dim=-1)
