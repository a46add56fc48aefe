"""Compression for dense feature and target matrices.

Examples are read many times during training, so dense matrices are often
stored compressed. Three storage formats are supported:
- two_byte: a global (min, range) header and uint16 codes (2 bytes/element)
- one_byte: a global (min, range) header and uint8 codes (1 byte/element)
- q8_0: int8 codes with per-block float16 scales along each row

Compression is lossy; `CompressedMatrix.to_dense()` returns the decoded
approximation. A constant matrix decodes exactly in the global-header formats.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass

import torch
import torch.nn.functional as F


class CompressionMethod(str, enum.Enum):
    """Storage format of a CompressedMatrix."""

    TWO_BYTE = "two_byte"
    ONE_BYTE = "one_byte"
    Q8_0 = "q8_0"


_QBLOCK = 32
_FP16_TINY = float(torch.finfo(torch.float16).tiny)


@dataclass(frozen=True)
class CompressedMatrix:
    """A packed (num_rows, num_cols) matrix.

    For the global-header formats `scale` holds `[min, range]` as float32;
    for q8_0 it holds the per-block float16 scales, shape
    (num_rows, n_blocks).
    """

    method: CompressionMethod
    num_rows: int
    num_cols: int
    codes: torch.Tensor
    scale: torch.Tensor

    def to_dense(self) -> torch.Tensor:
        """Decode into a float32 matrix."""
        return MatrixCompressor().decompress(self)


class MatrixCompressor:
    """Compresses and decompresses 2-D float matrices."""

    @staticmethod
    def _levels(method: CompressionMethod) -> int:
        match method:
            case CompressionMethod.TWO_BYTE:
                return 65535
            case CompressionMethod.ONE_BYTE:
                return 255
            case _:
                raise ValueError(f"No global-header levels for {method}")

    @staticmethod
    def _qblock(num_cols: int) -> int:
        return max(1, min(_QBLOCK, num_cols))

    def compress(self, x: torch.Tensor, method: CompressionMethod) -> CompressedMatrix:
        """Pack a 2-D matrix in the given format."""
        if x.dim() != 2:
            raise ValueError(f"Expected a 2-D matrix, got shape {tuple(x.shape)}")
        x = x.detach().to(torch.float32)
        rows, cols = int(x.size(0)), int(x.size(1))
        match method:
            case CompressionMethod.TWO_BYTE | CompressionMethod.ONE_BYTE:
                codes, scale = self._compress_global(x, method)
            case CompressionMethod.Q8_0:
                codes, scale = self._compress_q8_0(x)
            case _:
                raise ValueError(f"Unsupported compression method: {method}")
        return CompressedMatrix(
            method=method, num_rows=rows, num_cols=cols, codes=codes, scale=scale
        )

    def decompress(self, m: CompressedMatrix) -> torch.Tensor:
        """Decode a CompressedMatrix into a float32 matrix."""
        match m.method:
            case CompressionMethod.TWO_BYTE | CompressionMethod.ONE_BYTE:
                return self._decompress_global(m)
            case CompressionMethod.Q8_0:
                return self._decompress_q8_0(m)
            case _:
                raise ValueError(f"Unsupported compression method: {m.method}")

    # ─────────────────────────────────────────────────────────────────────
    # Global header: one (min, range) pair for the whole matrix
    # ─────────────────────────────────────────────────────────────────────

    def _compress_global(
        self, x: torch.Tensor, method: CompressionMethod
    ) -> tuple[torch.Tensor, torch.Tensor]:
        levels = self._levels(method)
        if x.numel() == 0:
            lo, span = 0.0, 0.0
        else:
            lo = float(x.min())
            span = float(x.max()) - lo
        if span > 0.0:
            q = torch.round((x - lo) / span * levels).clamp(0, levels)
        else:
            q = torch.zeros_like(x)
        # uint16 has limited op support in torch; keep 16-bit codes in int32.
        dtype = torch.int32 if method is CompressionMethod.TWO_BYTE else torch.uint8
        return q.to(dtype), torch.tensor([lo, span], dtype=torch.float32)

    def _decompress_global(self, m: CompressedMatrix) -> torch.Tensor:
        levels = self._levels(m.method)
        lo, span = float(m.scale[0]), float(m.scale[1])
        q = m.codes.to(torch.float32)
        return (lo + q * (span / levels)).reshape(m.num_rows, m.num_cols)

    # ─────────────────────────────────────────────────────────────────────
    # q8_0: per-block scales along each row
    # ─────────────────────────────────────────────────────────────────────

    def _compress_q8_0(self, x: torch.Tensor) -> tuple[torch.Tensor, torch.Tensor]:
        rows, cols = int(x.size(0)), int(x.size(1))
        qb = self._qblock(cols)
        n_blocks = max(1, math.ceil(cols / qb))
        pad_dim = n_blocks * qb
        x = x if cols == pad_dim else F.pad(x, (0, pad_dim - cols), value=0.0)
        x2 = x.reshape(rows, n_blocks, qb)
        amax = x2.abs().amax(dim=-1)
        scale = (amax / 127.0).clamp(min=_FP16_TINY)
        q = torch.round(x2 / scale.unsqueeze(-1)).clamp(-127, 127)
        return q.to(torch.int8).reshape(rows, pad_dim), scale.to(torch.float16)

    def _decompress_q8_0(self, m: CompressedMatrix) -> torch.Tensor:
        n_blocks = int(m.scale.size(-1))
        pad_dim = int(m.codes.size(-1))
        qb = pad_dim // n_blocks
        q = m.codes.reshape(m.num_rows, n_blocks, qb).to(torch.float32)
        s = m.scale.to(torch.float32).unsqueeze(-1)
        return (q * s).reshape(m.num_rows, pad_dim)[:, : m.num_cols]
