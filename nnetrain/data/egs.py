"""Reading and writing training examples.

Examples are stored as a single torch file holding plain dicts of tensors,
so they load with `torch.load(weights_only=True)`. Each stream records its
encoding:

    {"name": "output", "kind": "sparse", "indices": ..., "values": ...,
     "num_rows": 8, "num_cols": 10}

Examples can also be built from numpy `.npz` archives, which is the usual
way to get features prepared elsewhere into training.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

import numpy as np
import torch
from torch import Tensor
from torch.utils.data import Dataset
from typing_extensions import override

from nnetrain.data.example import NnetExample, NnetIo
from nnetrain.supervision import (
    CompressedMatrix,
    CompressionMethod,
    GeneralMatrix,
    MatrixCompressor,
    MatrixKind,
    SparseMatrix,
)

logger = logging.getLogger(__name__)

EGS_FORMAT_VERSION = 1


def _encode_io(io: NnetIo) -> dict[str, object]:
    matrix = io.features
    out: dict[str, object] = {"name": io.name, "kind": matrix.kind.value}
    match matrix.kind:
        case MatrixKind.FULL:
            out["data"] = matrix.get_full_matrix().detach().cpu().contiguous()
        case MatrixKind.SPARSE:
            sparse = matrix.get_sparse_matrix()
            out["indices"] = sparse.indices.cpu().clone()
            out["values"] = sparse.values.cpu().clone()
            out["num_rows"] = sparse.num_rows
            out["num_cols"] = sparse.num_cols
        case MatrixKind.COMPRESSED:
            packed = matrix.get_compressed_matrix()
            out["method"] = packed.method.value
            out["codes"] = packed.codes.cpu()
            out["scale"] = packed.scale.cpu()
            out["num_rows"] = packed.num_rows
            out["num_cols"] = packed.num_cols
    return out


def _int(record: dict[str, object], key: str) -> int:
    value = record[key]
    if not isinstance(value, int):
        raise ValueError(f"Stream field {key!r} must be an integer, got {value!r}")
    return value


def _decode_io(record: dict[str, object]) -> NnetIo:
    name = str(record["name"])
    kind = MatrixKind(str(record["kind"]))
    match kind:
        case MatrixKind.FULL:
            data = record["data"]
            if not isinstance(data, Tensor):
                raise ValueError(f"Stream {name!r}: 'data' is not a tensor")
            matrix = GeneralMatrix.from_full(data)
        case MatrixKind.SPARSE:
            indices, values = record["indices"], record["values"]
            if not isinstance(indices, Tensor) or not isinstance(values, Tensor):
                raise ValueError(f"Stream {name!r}: sparse stream needs tensors")
            size = (_int(record, "num_rows"), _int(record, "num_cols"))
            coo = torch.sparse_coo_tensor(indices, values, size=size).coalesce()
            matrix = GeneralMatrix.from_sparse(SparseMatrix(data=coo))
        case MatrixKind.COMPRESSED:
            codes, scale = record["codes"], record["scale"]
            if not isinstance(codes, Tensor) or not isinstance(scale, Tensor):
                raise ValueError(f"Stream {name!r}: compressed stream needs tensors")
            matrix = GeneralMatrix.from_compressed(
                CompressedMatrix(
                    method=CompressionMethod(str(record["method"])),
                    num_rows=_int(record, "num_rows"),
                    num_cols=_int(record, "num_cols"),
                    codes=codes,
                    scale=scale,
                )
            )
    return NnetIo(name=name, features=matrix)


class EgsWriter:
    """Writes examples to a torch file."""

    def write(self, path: Path, examples: Iterable[NnetExample]) -> int:
        """Write all `examples` to `path`; returns how many were written."""
        records = [[_encode_io(io) for io in eg.io] for eg in examples]
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        torch.save({"version": EGS_FORMAT_VERSION, "examples": records}, path)
        logger.debug("Wrote %d examples to %s", len(records), path)
        return len(records)


class EgsReader:
    """Reads examples written by EgsWriter."""

    def read(self, path: Path) -> list[NnetExample]:
        payload = torch.load(Path(path), map_location="cpu", weights_only=True)
        if not isinstance(payload, dict) or "examples" not in payload:
            raise ValueError(f"{path} is not an examples file")
        version = payload.get("version")
        if version != EGS_FORMAT_VERSION:
            raise ValueError(
                f"{path}: unsupported examples format version {version!r}, "
                f"expected {EGS_FORMAT_VERSION}"
            )
        return [
            NnetExample(io=[_decode_io(record) for record in eg])
            for eg in payload["examples"]
        ]


class EgsDataset(Dataset[NnetExample]):
    """Examples from a file, served one minibatch at a time."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.examples = EgsReader().read(self.path)

    def __len__(self) -> int:
        return len(self.examples)

    @override
    def __getitem__(self, idx: int) -> NnetExample:
        return self.examples[idx]


def examples_from_npz(path: Path) -> list[NnetExample]:
    """Build examples from a numpy archive.

    Every array is one stream, named by its key, with the example index as
    the leading axis:
    - float arrays of shape (E, R, D) become full matrices
    - integer arrays of shape (E, R) are class labels; they need a scalar
      entry `<name>.dim` giving the number of classes and become one-hot
      sparse matrices
    """
    with np.load(Path(path)) as npz:
        arrays = {key: npz[key] for key in npz.files}

    dims = {key[: -len(".dim")]: int(arrays.pop(key)) for key in list(arrays) if key.endswith(".dim")}
    if not arrays:
        raise ValueError(f"{path} holds no streams")
    counts = {key: int(a.shape[0]) for key, a in arrays.items()}
    num_examples = next(iter(counts.values()))
    if any(n != num_examples for n in counts.values()):
        raise ValueError(f"{path}: streams disagree on the number of examples: {counts}")

    streams: dict[str, list[GeneralMatrix]] = {}
    for key, array in arrays.items():
        if np.issubdtype(array.dtype, np.integer):
            if array.ndim != 2:
                raise ValueError(f"Label stream {key!r} must have shape (E, R), got {array.shape}")
            if key not in dims:
                raise ValueError(f"Label stream {key!r} needs a '{key}.dim' entry")
            streams[key] = [
                GeneralMatrix.from_sparse(
                    SparseMatrix.from_rows([[(int(c), 1.0)] for c in labels], num_cols=dims[key])
                )
                for labels in array
            ]
        elif np.issubdtype(array.dtype, np.floating):
            if array.ndim != 3:
                raise ValueError(f"Feature stream {key!r} must have shape (E, R, D), got {array.shape}")
            streams[key] = [
                GeneralMatrix.from_full(torch.from_numpy(np.ascontiguousarray(m, dtype=np.float32)))
                for m in array
            ]
        else:
            raise ValueError(f"Stream {key!r} has unsupported dtype {array.dtype}")

    return [
        NnetExample(io=[NnetIo(name=key, features=streams[key][e]) for key in streams])
        for e in range(num_examples)
    ]


def compress_example(
    eg: NnetExample,
    method: CompressionMethod,
    names: Sequence[str] | None = None,
) -> NnetExample:
    """A copy of `eg` with full streams compressed.

    Only streams listed in `names` are compressed, or every full stream if
    `names` is None. Sparse and already compressed streams are kept as is.
    """
    compressor = MatrixCompressor()
    io: list[NnetIo] = []
    for stream in eg.io:
        matrix = stream.features
        if matrix.kind is MatrixKind.FULL and (names is None or stream.name in names):
            packed = compressor.compress(matrix.get_full_matrix(), method)
            matrix = GeneralMatrix.from_compressed(packed)
        io.append(NnetIo(name=stream.name, features=matrix))
    return NnetExample(io=io)
