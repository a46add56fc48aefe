"""Runtime: executing compiled computations on minibatches."""
from __future__ import annotations

from nnetrain.runtime.computer import NnetComputer

__all__ = ["NnetComputer"]
