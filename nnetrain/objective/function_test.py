"""
function_test provides tests for the objective functions.
"""
from __future__ import annotations

import unittest

import torch

from nnetrain.config.objective import ObjectiveType
from nnetrain.objective import (
    DimensionMismatchError,
    ObjectiveValue,
    compute_objective_function,
)
from nnetrain.supervision import (
    CompressionMethod,
    GeneralMatrix,
    MatrixCompressor,
    SparseMatrix,
)

OUTPUT = torch.tensor([[0.9, 0.1], [0.2, 0.8]])
TARGET = torch.tensor([[1.0, 0.0], [0.0, 1.0]])


class RecordingComputer:
    """Serves a fixed output and records the derivatives it is given."""

    def __init__(self, output: torch.Tensor) -> None:
        self.output = output
        self.derivs: dict[str, torch.Tensor] = {}

    def get_output(self, name: str) -> torch.Tensor:
        return self.output

    def accept_output_deriv(self, name: str, deriv: torch.Tensor) -> None:
        self.derivs[name] = deriv


def evaluate(
    supervision: GeneralMatrix,
    objective_type: ObjectiveType,
    output: torch.Tensor = OUTPUT,
    supply_deriv: bool = True,
) -> tuple[ObjectiveValue, RecordingComputer]:
    computer = RecordingComputer(output)
    value = compute_objective_function(
        supervision, objective_type, "output", supply_deriv, computer  # type: ignore[arg-type]
    )
    return value, computer


class LinearObjectiveTest(unittest.TestCase):
    """
    LinearObjectiveTest provides tests for the linear objective.
    """
    def test_one_hot_dense(self) -> None:
        """
        test weight, objective and derivative on one-hot targets.
        """
        value, computer = evaluate(GeneralMatrix.from_full(TARGET), ObjectiveType.LINEAR)
        self.assertAlmostEqual(value.tot_weight, 2.0)
        self.assertAlmostEqual(value.tot_objf, 1.7, places=6)
        torch.testing.assert_close(computer.derivs["output"], TARGET)

    def test_encodings_agree(self) -> None:
        """
        test that sparse, full and compressed targets give the same result.
        """
        target = torch.tensor([[0.7, 0.3], [0.0, 1.0], [0.25, 0.5]])
        output = torch.log_softmax(torch.randn(3, 2, generator=torch.Generator().manual_seed(3)), dim=1)
        encodings = [
            GeneralMatrix.from_full(target),
            GeneralMatrix.from_sparse(SparseMatrix.from_dense(target)),
            GeneralMatrix.from_compressed(
                MatrixCompressor().compress(target, CompressionMethod.TWO_BYTE)
            ),
        ]
        results = [evaluate(m, ObjectiveType.LINEAR, output=output) for m in encodings]
        for value, computer in results:
            self.assertAlmostEqual(value.tot_weight, 2.75, places=3)
            self.assertAlmostEqual(value.tot_objf, results[0][0].tot_objf, places=3)
            torch.testing.assert_close(computer.derivs["output"], target, atol=1e-3, rtol=0.0)

    def test_sparse_from_rows(self) -> None:
        """
        test the sparse path with explicit (column, value) pairs.
        """
        sparse = SparseMatrix.from_rows([[(0, 1.0)], [(1, 0.5), (0, 0.5)]], num_cols=2)
        value, computer = evaluate(GeneralMatrix.from_sparse(sparse), ObjectiveType.LINEAR)
        self.assertAlmostEqual(value.tot_weight, 2.0)
        self.assertAlmostEqual(value.tot_objf, 0.9 + 0.5 * 0.8 + 0.5 * 0.2, places=6)
        torch.testing.assert_close(
            computer.derivs["output"], torch.tensor([[1.0, 0.0], [0.5, 0.5]])
        )

    def test_no_deriv(self) -> None:
        """
        test that nothing is pushed when no derivative is wanted.
        """
        value, computer = evaluate(
            GeneralMatrix.from_full(TARGET), ObjectiveType.LINEAR, supply_deriv=False
        )
        self.assertAlmostEqual(value.tot_objf, 1.7, places=6)
        self.assertEqual(computer.derivs, {})

    def test_deriv_is_not_the_supervision(self) -> None:
        """
        test that the pushed derivative does not alias the supervision.
        """
        target = TARGET.clone()
        _, computer = evaluate(GeneralMatrix.from_full(target), ObjectiveType.LINEAR)
        computer.derivs["output"].zero_()
        torch.testing.assert_close(target, TARGET)


class QuadraticObjectiveTest(unittest.TestCase):
    """
    QuadraticObjectiveTest provides tests for the quadratic objective.
    """
    def test_scenario(self) -> None:
        """
        test diff, weight and objective on a small example.
        """
        value, computer = evaluate(GeneralMatrix.from_full(TARGET), ObjectiveType.QUADRATIC)
        self.assertAlmostEqual(value.tot_weight, 2.0)
        self.assertAlmostEqual(value.tot_objf, -0.05, places=6)
        torch.testing.assert_close(
            computer.derivs["output"], torch.tensor([[0.1, -0.1], [-0.2, 0.2]])
        )

    def test_diff_reproduces_output(self) -> None:
        """
        test that supervision minus the derivative gives the output back.
        """
        target = torch.randn(5, 3, generator=torch.Generator().manual_seed(1))
        output = torch.randn(5, 3, generator=torch.Generator().manual_seed(2))
        value, computer = evaluate(GeneralMatrix.from_full(target), ObjectiveType.QUADRATIC, output)
        torch.testing.assert_close(target - computer.derivs["output"], output)
        self.assertEqual(value.tot_weight, 5.0)

    def test_weight_ignores_values(self) -> None:
        """
        test that the weight is the row count for sparse targets too.
        """
        sparse = SparseMatrix.from_rows([[], [(1, 3.0)]], num_cols=2)
        value, _ = evaluate(GeneralMatrix.from_sparse(sparse), ObjectiveType.QUADRATIC)
        self.assertEqual(value.tot_weight, 2.0)
        want = -0.5 * (0.81 + 0.01 + 0.04 + 2.2 * 2.2)
        self.assertAlmostEqual(value.tot_objf, want, places=5)


class ObjectiveErrorTest(unittest.TestCase):
    """
    ObjectiveErrorTest provides tests for rejected inputs.
    """
    def test_dimension_mismatch(self) -> None:
        """
        test that a width mismatch names the output and both dims.
        """
        target = GeneralMatrix.from_full(torch.zeros(2, 3))
        for objective in (ObjectiveType.LINEAR, ObjectiveType.QUADRATIC):
            with self.assertRaises(DimensionMismatchError) as ctx:
                evaluate(target, objective)
            message = str(ctx.exception)
            self.assertIn("'output'", message)
            self.assertIn("2", message)
            self.assertIn("3", message)
        self.assertTrue(issubclass(DimensionMismatchError, ValueError))

    def test_unknown_objective(self) -> None:
        """
        test that an unsupported objective type is rejected.
        """
        with self.assertRaises(ValueError):
            evaluate(GeneralMatrix.from_full(TARGET), "cross_entropy")  # type: ignore[arg-type]

    def test_mismatch_pushes_nothing(self) -> None:
        """
        test that a failed evaluation leaves the computer untouched.
        """
        computer = RecordingComputer(OUTPUT)
        with self.assertRaises(DimensionMismatchError):
            compute_objective_function(
                GeneralMatrix.from_full(torch.zeros(2, 5)),
                ObjectiveType.LINEAR,
                "output",
                True,
                computer,  # type: ignore[arg-type]
            )
        self.assertEqual(computer.derivs, {})
