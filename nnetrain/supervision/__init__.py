"""Matrices carried by training examples.

Every input or supervision stream of an example holds a GeneralMatrix in one
of three encodings:
- sparse: per-row (index, value) pairs, typically class posteriors
- full: a dense torch matrix
- compressed: a packed dense matrix, decoded with to_dense()
"""
from __future__ import annotations

from nnetrain.supervision.compress import (
    CompressedMatrix,
    CompressionMethod,
    MatrixCompressor,
)
from nnetrain.supervision.matrix import GeneralMatrix, MatrixKind, SparseMatrix

__all__ = [
    "CompressedMatrix",
    "CompressionMethod",
    "GeneralMatrix",
    "MatrixCompressor",
    "MatrixKind",
    "SparseMatrix",
]
