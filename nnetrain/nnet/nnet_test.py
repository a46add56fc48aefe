"""
nnet_test provides tests for network construction and node queries.
"""
from __future__ import annotations

import unittest

import torch

from nnetrain.component import NonlinearComponent
from nnetrain.config.nnet import NnetConfig
from nnetrain.config.objective import ObjectiveType
from nnetrain.nnet import Nnet, NodeType


def make_config(**overrides: object) -> NnetConfig:
    """A two-output network: a log-softmax classifier and a regression head."""
    payload: dict[str, object] = {
        "inputs": [{"name": "input", "dim": 3}],
        "components": [
            # listed out of order on purpose
            {"name": "final", "input": "hidden",
             "component": {"type": "AffineComponent", "input_dim": 4, "output_dim": 2}},
            {"name": "affine1", "input": "input",
             "component": {"type": "AffineComponent", "input_dim": 3, "output_dim": 4}},
            {"name": "hidden", "input": "affine1",
             "component": {"type": "SigmoidComponent", "dim": 4}},
            {"name": "logsoftmax", "input": "final",
             "component": {"type": "LogSoftmaxComponent", "dim": 2}},
        ],
        "outputs": [
            {"name": "output", "input": "logsoftmax", "objective": "linear"},
            {"name": "output-reg", "input": "final", "objective": "quadratic"},
        ],
    }
    payload.update(overrides)
    return NnetConfig.model_validate(payload)


class NnetTest(unittest.TestCase):
    """
    NnetTest provides tests for the Nnet graph.
    """
    def test_nodes_in_execution_order(self) -> None:
        """
        test that components are topologically sorted.
        """
        nnet = Nnet(make_config())
        names = [nnet.get_node_name(i) for i in range(nnet.num_nodes)]
        self.assertEqual(
            names,
            ["input", "affine1", "hidden", "final", "logsoftmax", "output", "output-reg"],
        )

    def test_node_queries(self) -> None:
        """
        test lookups by name and index.
        """
        nnet = Nnet(make_config())
        self.assertEqual(nnet.get_node_index("missing"), -1)
        out = nnet.get_node_index("output-reg")
        self.assertTrue(nnet.is_output_node(out))
        self.assertFalse(nnet.is_input_node(out))
        self.assertEqual(nnet.get_node(out).objective_type, ObjectiveType.QUADRATIC)
        self.assertEqual(nnet.get_node(out).type, NodeType.OUTPUT)
        self.assertEqual(nnet.output_dim("output"), 2)
        self.assertEqual(nnet.input_dim("input"), 3)
        self.assertEqual(nnet.input_names(), ["input"])
        self.assertEqual(nnet.output_names(), ["output", "output-reg"])
        self.assertEqual(len(nnet.updatable_components()), 2)

    def test_info(self) -> None:
        """
        test the per-node descriptions shown by the compile command.
        """
        info = Nnet(make_config()).info()
        self.assertEqual(list(info), ["input", "affine1", "hidden", "final", "logsoftmax", "output", "output-reg"])
        self.assertEqual(info["input"], "input dim=3")
        self.assertEqual(info["hidden"], "SigmoidComponent input=affine1 dim=4")
        self.assertEqual(info["output-reg"], "output input=final dim=2 objective=quadratic")

    def test_rejects_dim_mismatch(self) -> None:
        """
        test rejecting a component whose input dim does not match.
        """
        config = make_config(
            components=[
                {"name": "affine1", "input": "input",
                 "component": {"type": "AffineComponent", "input_dim": 5, "output_dim": 2}},
            ],
            outputs=[{"name": "output", "input": "affine1"}],
        )
        with self.assertRaises(ValueError):
            Nnet(config)

    def test_rejects_cycle(self) -> None:
        """
        test rejecting a cyclic graph.
        """
        config = make_config(
            components=[
                {"name": "a", "input": "b", "component": {"type": "TanhComponent", "dim": 3}},
                {"name": "b", "input": "a", "component": {"type": "TanhComponent", "dim": 3}},
            ],
            outputs=[{"name": "output", "input": "a"}],
        )
        with self.assertRaises(ValueError):
            Nnet(config)

    def test_rejects_unknown_input(self) -> None:
        """
        test rejecting a reference to a node that does not exist.
        """
        config = make_config(outputs=[{"name": "output", "input": "nowhere"}])
        with self.assertRaises(ValueError):
            Nnet(config)

    def test_rejects_duplicate_names(self) -> None:
        """
        test rejecting two nodes with the same name.
        """
        config = make_config(outputs=[{"name": "input", "input": "final"}])
        with self.assertRaises(ValueError):
            Nnet(config)

    def test_zero_component_stats(self) -> None:
        """
        test zeroing stats across all nonlinear components.
        """
        nnet = Nnet(make_config())
        hidden = nnet.component("hidden")
        assert isinstance(hidden, NonlinearComponent)
        hidden.store_stats(torch.full((2, 4), 0.5))
        self.assertEqual(float(hidden.count), 2.0)
        nnet.zero_component_stats()
        self.assertEqual(float(hidden.count), 0.0)
