"""Training examples and their on-disk formats."""
from __future__ import annotations

from nnetrain.data.egs import (
    EgsDataset,
    EgsReader,
    EgsWriter,
    compress_example,
    examples_from_npz,
)
from nnetrain.data.example import NnetExample, NnetIo

__all__ = [
    "EgsDataset",
    "EgsReader",
    "EgsWriter",
    "NnetExample",
    "NnetIo",
    "compress_example",
    "examples_from_npz",
]
