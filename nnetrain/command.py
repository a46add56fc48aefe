"""Typed CLI command payloads.

Each command type represents a distinct user intent. The CLI parses arguments
into these typed objects, which are then dispatched to the appropriate handler.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from nnetrain.config.train import TrainerConfig
from nnetrain.supervision import CompressionMethod


@dataclass(frozen=True, slots=True)
class TrainCommand:
    """Request to train a network for one pass over an examples file."""

    nnet: Path
    egs: Path
    nnet_out: Path
    config: TrainerConfig
    seed: int


@dataclass(frozen=True, slots=True)
class CompileCommand:
    """Request to compile the computation for an examples file without running it.

    Useful for checking that a network and its examples fit together.
    """

    nnet: Path
    egs: Path
    print_plan: bool


@dataclass(frozen=True, slots=True)
class EgsCommand:
    """Request to convert a numpy archive into an examples file."""

    npz: Path
    egs_out: Path
    compress: CompressionMethod | None


Command = TrainCommand | CompileCommand | EgsCommand
