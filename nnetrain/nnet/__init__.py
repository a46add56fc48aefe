"""The network: a graph of named input, component and output nodes.

The trainer only talks to the network through node lookups (is this name an
output? which objective does it use?) and the one-time zeroing of component
statistics. The executor reads the components to run them and updates their
parameters in backward().
"""
from __future__ import annotations

from nnetrain.nnet.nnet import Nnet, Node, NodeType

__all__ = ["Nnet", "Node", "NodeType"]
