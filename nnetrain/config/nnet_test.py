"""
nnet_test provides tests for JSON/YAML network and trainer config loading.
"""
from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from nnetrain.config.component import AffineComponentConfig, ComponentType
from nnetrain.config.nnet import NnetConfig
from nnetrain.config.objective import ObjectiveType
from nnetrain.config.resolve import Resolver, normalize_type_names
from nnetrain.config.train import TrainerConfig


class NnetConfigTest(unittest.TestCase):
    """
    NnetConfigTest provides tests for the NnetConfig class.
    """
    def test_load_yaml_with_vars_and_aliases(self) -> None:
        """
        test loading a YAML network with shorthand types and vars.
        """
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nnet.yaml"
            path.write_text(
                "\n".join(
                    [
                        "vars:",
                        "  hidden: 8",
                        "inputs:",
                        "  - name: input",
                        "    dim: 4",
                        "components:",
                        "  - name: affine1",
                        "    input: input",
                        "    component: {type: affine, input_dim: 4, output_dim: '${hidden}'}",
                        "  - name: relu1",
                        "    input: affine1",
                        "    component: {type: relu, dim: '${hidden}'}",
                        "outputs:",
                        "  - name: output",
                        "    input: relu1",
                        "    objective: quadratic",
                    ]
                ),
                encoding="utf-8",
            )
            config = NnetConfig.from_path(path)

        affine = config.components[0].component
        self.assertIsInstance(affine, AffineComponentConfig)
        self.assertEqual(affine.output_dim, 8)
        self.assertEqual(config.components[1].component.type, ComponentType.RECTIFIED_LINEAR)
        self.assertEqual(config.outputs[0].objective, ObjectiveType.QUADRATIC)

    def test_load_json_defaults_to_linear(self) -> None:
        """
        test that outputs default to the linear objective.
        """
        payload = {
            "inputs": [{"name": "input", "dim": 3}],
            "components": [
                {"name": "final", "input": "input",
                 "component": {"type": "log_softmax", "dim": 3}},
            ],
            "outputs": [{"name": "output", "input": "final"}],
        }
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nnet.json"
            path.write_text(json.dumps(payload), encoding="utf-8")
            config = NnetConfig.from_path(path)
        self.assertEqual(config.outputs[0].objective, ObjectiveType.LINEAR)

    def test_rejects_unknown_objective(self) -> None:
        """
        test rejecting an objective type that does not exist.
        """
        with self.assertRaises(ValidationError):
            NnetConfig.model_validate(
                {
                    "inputs": [{"name": "input", "dim": 3}],
                    "outputs": [{"name": "output", "input": "input", "objective": "cubic"}],
                }
            )

    def test_rejects_non_positive_dim(self) -> None:
        """
        test rejecting a zero input dimension.
        """
        with self.assertRaises(ValidationError):
            NnetConfig.model_validate(
                {"inputs": [{"name": "input", "dim": 0}], "outputs": []}
            )

    def test_rejects_unsupported_suffix(self) -> None:
        """
        test rejecting a config file with an unknown extension.
        """
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nnet.txt"
            path.write_text("inputs: []", encoding="utf-8")
            with self.assertRaises(ValueError):
                NnetConfig.from_path(path)


class ResolverTest(unittest.TestCase):
    """
    ResolverTest provides tests for variable substitution.
    """
    def test_whole_string_keeps_type(self) -> None:
        """
        test that a lone placeholder keeps the variable's type.
        """
        self.assertEqual(Resolver({"n": 42}).resolve("${n}"), 42)

    def test_embedded_placeholder(self) -> None:
        """
        test substitution inside a longer string.
        """
        self.assertEqual(Resolver({"n": 3}).resolve("layer${n}"), "layer3")

    def test_cycle_detected(self) -> None:
        """
        test that cyclic vars raise.
        """
        with self.assertRaises(ValueError):
            Resolver({"a": "${b}", "b": "${a}"}).resolve("${a}")

    def test_unknown_var(self) -> None:
        """
        test that unknown vars raise.
        """
        with self.assertRaises(ValueError):
            Resolver({}).resolve("${missing}")

    def test_normalize_nested(self) -> None:
        """
        test alias normalization inside nested lists.
        """
        out = normalize_type_names({"components": [{"component": {"type": "tanh"}}]})
        self.assertEqual(out, {"components": [{"component": {"type": "TanhComponent"}}]})


class TrainerConfigTest(unittest.TestCase):
    """
    TrainerConfigTest provides tests for trainer options.
    """
    def test_defaults(self) -> None:
        """
        test default option values.
        """
        config = TrainerConfig()
        self.assertTrue(config.zero_component_stats)
        self.assertFalse(config.store_component_stats)
        self.assertEqual(config.print_interval, 100)
        self.assertTrue(config.optimize.optimize)
        self.assertFalse(config.compute.debug)

    def test_load_yaml(self) -> None:
        """
        test loading nested options from YAML.
        """
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "train.yaml"
            path.write_text(
                "print_interval: 10\nstore_component_stats: true\noptimize:\n  cache_capacity: 2\n",
                encoding="utf-8",
            )
            config = TrainerConfig.from_path(path)
        self.assertEqual(config.print_interval, 10)
        self.assertTrue(config.store_component_stats)
        self.assertEqual(config.optimize.cache_capacity, 2)

    def test_rejects_zero_print_interval(self) -> None:
        """
        test rejecting a zero print interval.
        """
        with self.assertRaises(ValidationError):
            TrainerConfig(print_interval=0)
