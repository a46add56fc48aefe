"""
computer_test provides tests for the computation executor.
"""
from __future__ import annotations

import copy
import unittest

import torch

from nnetrain.compiler import Compiler, get_computation_request
from nnetrain.component import NonlinearComponent
from nnetrain.config.train import ComputeConfig
from nnetrain.data.example import NnetExample, NnetIo
from nnetrain.nnet import Nnet
from nnetrain.nnet.nnet_test import make_config
from nnetrain.runtime import NnetComputer
from nnetrain.supervision import GeneralMatrix


def make_example(rows: int = 3) -> NnetExample:
    torch.manual_seed(0)
    return NnetExample(
        io=[
            NnetIo(name="input", features=GeneralMatrix.from_full(torch.randn(rows, 3))),
            NnetIo(name="output-reg", features=GeneralMatrix.from_full(torch.zeros(rows, 2))),
        ]
    )


def make_computer(
    nnet: Nnet,
    eg: NnetExample,
    *,
    train: bool = True,
    store_stats: bool = False,
    nnet_to_update: Nnet | None = None,
) -> NnetComputer:
    request = get_computation_request(nnet, eg, train, store_stats)
    computation = Compiler(nnet).compile(request)
    return NnetComputer(ComputeConfig(), computation, nnet, nnet_to_update)


class NnetComputerTest(unittest.TestCase):
    """
    NnetComputerTest provides tests for forward and backward passes.
    """
    def test_forward_matches_modules(self) -> None:
        """
        test that forward composes the component modules.
        """
        nnet = Nnet(make_config())
        eg = make_example()
        computer = make_computer(nnet, eg, train=False)
        computer.accept_inputs(nnet, eg)
        computer.forward()
        x = eg.get("input").features.to_dense()  # type: ignore[union-attr]
        with torch.no_grad():
            want = nnet.component("final")(nnet.component("hidden")(nnet.component("affine1")(x)))
        torch.testing.assert_close(computer.get_output("output-reg"), want)
        self.assertFalse(computer.get_output("output-reg").requires_grad)

    def test_backward_updates_parameters(self) -> None:
        """
        test that backward moves parameters by learning_rate times the gradient.
        """
        nnet = Nnet(make_config())
        before = copy.deepcopy(nnet)
        eg = make_example()
        computer = make_computer(nnet, eg, nnet_to_update=nnet)
        computer.accept_inputs(nnet, eg)
        computer.forward()
        out = computer.get_output("output-reg")
        computer.accept_output_deriv("output-reg", torch.ones_like(out))
        computer.backward()

        # reference gradient through autograd on the untouched copy
        x = eg.get("input").features.to_dense()  # type: ignore[union-attr]
        y = before.component("final")(before.component("hidden")(before.component("affine1")(x)))
        y.sum().backward()
        lr = before.component("final").learning_rate
        want = before.component("final").linear.bias + lr * before.component("final").linear.bias.grad
        torch.testing.assert_close(nnet.component("final").linear.bias, want.detach())
        for param in nnet.parameters():
            self.assertIsNone(param.grad)

    def test_no_update_without_target(self) -> None:
        """
        test that gradients are discarded when there is nothing to update.
        """
        nnet = Nnet(make_config())
        before = copy.deepcopy(nnet.state_dict())
        eg = make_example()
        computer = make_computer(nnet, eg)
        computer.accept_inputs(nnet, eg)
        computer.forward()
        computer.accept_output_deriv("output-reg", torch.ones(3, 2))
        computer.backward()
        for key, value in nnet.state_dict().items():
            torch.testing.assert_close(value, before[key])
        for param in nnet.parameters():
            self.assertIsNone(param.grad)

    def test_stores_component_stats(self) -> None:
        """
        test that nonlinear components accumulate stats when requested.
        """
        nnet = Nnet(make_config())
        eg = make_example(rows=4)
        computer = make_computer(nnet, eg, store_stats=True)
        computer.accept_inputs(nnet, eg)
        computer.forward()
        hidden = nnet.component("hidden")
        assert isinstance(hidden, NonlinearComponent)
        self.assertEqual(float(hidden.count), 4.0)

    def test_rejects_bad_derivative(self) -> None:
        """
        test that derivative shape and request flags are checked.
        """
        nnet = Nnet(make_config())
        eg = make_example()
        computer = make_computer(nnet, eg)
        computer.accept_inputs(nnet, eg)
        computer.forward()
        with self.assertRaises(ValueError):
            computer.accept_output_deriv("output-reg", torch.ones(2, 2))
        with self.assertRaises(ValueError):
            computer.accept_output_deriv("output", torch.ones(3, 2))

        no_deriv = make_computer(nnet, eg, train=False)
        no_deriv.accept_inputs(nnet, eg)
        no_deriv.forward()
        with self.assertRaises(ValueError):
            no_deriv.accept_output_deriv("output-reg", torch.ones(3, 2))
        with self.assertRaises(RuntimeError):
            no_deriv.backward()

    def test_call_order(self) -> None:
        """
        test that out-of-order calls raise.
        """
        nnet = Nnet(make_config())
        eg = make_example()
        computer = make_computer(nnet, eg)
        with self.assertRaises(RuntimeError):
            computer.forward()
        computer.accept_inputs(nnet, eg)
        with self.assertRaises(RuntimeError):
            computer.get_output("output-reg")
        computer.forward()
        with self.assertRaises(RuntimeError):
            computer.backward()

    def test_rejects_wrong_input_dim(self) -> None:
        """
        test that input matrices must match the input node dim.
        """
        nnet = Nnet(make_config())
        eg = make_example()
        computer = make_computer(nnet, eg)
        bad = NnetExample(
            io=[
                NnetIo(name="input", features=GeneralMatrix.from_full(torch.zeros(3, 5))),
                NnetIo(name="output-reg", features=GeneralMatrix.from_full(torch.zeros(3, 2))),
            ]
        )
        with self.assertRaisesRegex(ValueError, "expected shape"):
            computer.accept_inputs(nnet, bad)
