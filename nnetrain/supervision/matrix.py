"""Sparse matrices and the general (tagged) matrix type."""
from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass

import torch

from nnetrain.supervision.compress import CompressedMatrix


@dataclass(frozen=True)
class SparseMatrix:
    """A (num_rows, num_cols) matrix stored as a coalesced COO tensor.

    The usual content is a posterior per row: a few (class, probability)
    pairs whose values sum to at most one.
    """

    data: torch.Tensor

    def __post_init__(self) -> None:
        if not self.data.is_sparse or self.data.dim() != 2:
            raise ValueError("SparseMatrix requires a 2-D sparse COO tensor")

    @classmethod
    def from_rows(
        cls, rows: Sequence[Sequence[tuple[int, float]]], num_cols: int
    ) -> "SparseMatrix":
        """Build from one list of (column, value) pairs per row.

        Repeated columns within a row are summed.
        """
        row_idx: list[int] = []
        col_idx: list[int] = []
        values: list[float] = []
        for r, pairs in enumerate(rows):
            for c, v in pairs:
                if not 0 <= int(c) < num_cols:
                    raise ValueError(
                        f"Column index {c} out of range for {num_cols} columns (row {r})"
                    )
                row_idx.append(r)
                col_idx.append(int(c))
                values.append(float(v))
        indices = torch.tensor([row_idx, col_idx], dtype=torch.long)
        data = torch.sparse_coo_tensor(
            indices,
            torch.tensor(values, dtype=torch.float32),
            size=(len(rows), int(num_cols)),
        ).coalesce()
        return cls(data=data)

    @classmethod
    def from_dense(cls, x: torch.Tensor) -> "SparseMatrix":
        """Keep only the nonzero entries of a dense matrix."""
        return cls(data=x.detach().to(torch.float32).to_sparse().coalesce())

    @property
    def num_rows(self) -> int:
        return int(self.data.size(0))

    @property
    def num_cols(self) -> int:
        return int(self.data.size(1))

    @property
    def indices(self) -> torch.Tensor:
        return self.data.coalesce().indices()

    @property
    def values(self) -> torch.Tensor:
        return self.data.coalesce().values()

    def sum(self) -> float:
        """Sum of all stored values."""
        return float(self.values.to(torch.float64).sum())

    def trace_mat_smat(self, m: torch.Tensor) -> float:
        """tr(M^T S): the sum of value * M[row, col] over stored entries."""
        idx = self.indices
        picked = m[idx[0], idx[1]].to(torch.float64)
        return float((picked * self.values.to(torch.float64)).sum())

    def to_dense(self) -> torch.Tensor:
        return self.data.to_dense()


class MatrixKind(str, enum.Enum):
    """Encoding held by a GeneralMatrix."""

    SPARSE = "sparse"
    FULL = "full"
    COMPRESSED = "compressed"


@dataclass(frozen=True)
class GeneralMatrix:
    """A matrix in one of three encodings, with a uniform read interface.

    Sparse posteriors are cheap to store and to take dot products with;
    full matrices make no sparsity assumption; compressed matrices save
    space and must be decoded with `to_dense()` before arithmetic.
    """

    kind: MatrixKind
    data: torch.Tensor | SparseMatrix | CompressedMatrix

    def __post_init__(self) -> None:
        match self.kind:
            case MatrixKind.FULL:
                ok = isinstance(self.data, torch.Tensor) and self.data.dim() == 2
            case MatrixKind.SPARSE:
                ok = isinstance(self.data, SparseMatrix)
            case MatrixKind.COMPRESSED:
                ok = isinstance(self.data, CompressedMatrix)
            case _:
                ok = False
        if not ok:
            raise ValueError(
                f"GeneralMatrix of kind {self.kind} cannot hold {type(self.data).__name__}"
            )

    @classmethod
    def from_full(cls, x: torch.Tensor) -> "GeneralMatrix":
        return cls(kind=MatrixKind.FULL, data=x)

    @classmethod
    def from_sparse(cls, x: SparseMatrix) -> "GeneralMatrix":
        return cls(kind=MatrixKind.SPARSE, data=x)

    @classmethod
    def from_compressed(cls, x: CompressedMatrix) -> "GeneralMatrix":
        return cls(kind=MatrixKind.COMPRESSED, data=x)

    @property
    def num_rows(self) -> int:
        match self.data:
            case torch.Tensor() as t:
                return int(t.size(0))
            case SparseMatrix() | CompressedMatrix() as m:
                return m.num_rows
        raise ValueError(f"Unsupported matrix data {type(self.data)!r}")

    @property
    def num_cols(self) -> int:
        match self.data:
            case torch.Tensor() as t:
                return int(t.size(1))
            case SparseMatrix() | CompressedMatrix() as m:
                return m.num_cols
        raise ValueError(f"Unsupported matrix data {type(self.data)!r}")

    def get_full_matrix(self) -> torch.Tensor:
        if not isinstance(self.data, torch.Tensor):
            raise ValueError(f"Matrix is {self.kind.value}, not full")
        return self.data

    def get_sparse_matrix(self) -> SparseMatrix:
        if not isinstance(self.data, SparseMatrix):
            raise ValueError(f"Matrix is {self.kind.value}, not sparse")
        return self.data

    def get_compressed_matrix(self) -> CompressedMatrix:
        if not isinstance(self.data, CompressedMatrix):
            raise ValueError(f"Matrix is {self.kind.value}, not compressed")
        return self.data

    def to_dense(self) -> torch.Tensor:
        """Materialize as a float32 dense matrix (a new tensor for every kind)."""
        match self.data:
            case torch.Tensor() as t:
                return t.detach().to(torch.float32).clone()
            case SparseMatrix() | CompressedMatrix() as m:
                return m.to_dense()
        raise ValueError(f"Unsupported matrix data {type(self.data)!r}")
