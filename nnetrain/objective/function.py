"""Objective functions evaluated at network outputs.

Two objectives are supported, both maximized by training:

- linear: the dot product of the output with the supervision. Used with a
  log-softmax output and posterior targets it is the cross-entropy with the
  sign flipped. Weight is the sum of the supervision entries.
- quadratic: -0.5 * ||supervision - output||^2. Weight is the number of rows.

The supervision may be sparse, full or compressed; the result is the same up
to compression error. Sums are accumulated in float64.
"""
from __future__ import annotations

from dataclasses import dataclass

import torch

from nnetrain.compiler.request import DimensionMismatchError
from nnetrain.config.objective import ObjectiveType
from nnetrain.runtime import NnetComputer
from nnetrain.supervision import GeneralMatrix, MatrixKind


@dataclass(frozen=True, slots=True)
class ObjectiveValue:
    """Total weight and weighted objective of one output on one minibatch."""

    tot_weight: float
    tot_objf: float


def compute_objective_function(
    supervision: GeneralMatrix,
    objective_type: ObjectiveType,
    output_name: str,
    supply_deriv: bool,
    computer: NnetComputer,
) -> ObjectiveValue:
    """Evaluate the objective of output `output_name` against `supervision`.

    If `supply_deriv` is true the derivative of the objective with respect
    to the output is handed to `computer.accept_output_deriv`; the computer
    owns it from then on.

    Raises:
        DimensionMismatchError: If the output and supervision widths differ.
        ValueError: If the objective type is not supported.
    """
    output = computer.get_output(output_name)
    if output.size(1) != supervision.num_cols:
        raise DimensionMismatchError(
            f"Objective function for output {output_name!r}: "
            f"network output has dim {output.size(1)}, "
            f"supervision has dim {supervision.num_cols}"
        )

    match objective_type:
        case ObjectiveType.LINEAR:
            match supervision.kind:
                case MatrixKind.SPARSE:
                    sparse = supervision.get_sparse_matrix()
                    tot_weight = sparse.sum()
                    tot_objf = sparse.trace_mat_smat(output)
                    deriv = supervision.to_dense()
                case MatrixKind.FULL | MatrixKind.COMPRESSED:
                    # compressed supervision is decoded and treated as full
                    deriv = supervision.to_dense()
                    tot_weight = float(deriv.to(torch.float64).sum())
                    tot_objf = float((output.to(torch.float64) * deriv.to(torch.float64)).sum())
                case _:
                    raise ValueError(f"Unsupported supervision kind {supervision.kind!r}")
        case ObjectiveType.QUADRATIC:
            diff = supervision.to_dense() - output.to(torch.float32)
            tot_weight = float(diff.size(0))
            tot_objf = -0.5 * float(diff.to(torch.float64).pow(2).sum())
            deriv = diff
        case _:
            raise ValueError(f"Objective function type {objective_type!r} not handled.")

    if supply_deriv:
        computer.accept_output_deriv(output_name, deriv)
    return ObjectiveValue(tot_weight=tot_weight, tot_objf=tot_objf)
