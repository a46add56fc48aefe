"""Log-softmax over the feature dimension.

Placed before an output trained with the linear objective, this turns the
dot product with a posterior into the cross-entropy objective.
"""
from __future__ import annotations

import torch.nn.functional as F
from torch import Tensor
from typing_extensions import override

from nnetrain.component import Component


class LogSoftmaxComponent(Component):
    """Row-wise log-softmax."""

    @override
    def forward(self, x: Tensor) -> Tensor:
        return F.log_softmax(x, dim=-1)
