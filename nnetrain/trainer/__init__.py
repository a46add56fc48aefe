"""Training and evaluation drivers.

This package provides:
- NnetTrainer: one minibatch per call, with per-output objective reporting
- ObjectiveFunctionInfo: phase and total statistics for one output
- NnetComputeProb: forward-only evaluation on held-out examples
"""
from __future__ import annotations

from nnetrain.trainer.diagnostics import NnetComputeProb
from nnetrain.trainer.stats import ObjectiveFunctionInfo, PhaseReport, TotalReport
from nnetrain.trainer.trainer import NnetTrainer

__all__ = [
    "NnetComputeProb",
    "NnetTrainer",
    "ObjectiveFunctionInfo",
    "PhaseReport",
    "TotalReport",
]
