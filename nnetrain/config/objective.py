"""Objective function types attached to output nodes.

LINEAR is the dot product of the output and the supervision; it is used for
cross-entropy training where the network ends in a log-softmax, so the output
is already a normalized log-probability. QUADRATIC is negative half the
squared distance between output and supervision, used for regression.
"""
from __future__ import annotations

import enum


class ObjectiveType(str, enum.Enum):
    """Objective function computed on an output node."""

    LINEAR = "linear"
    QUADRATIC = "quadratic"
