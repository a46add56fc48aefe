"""Network graph construction and queries."""
from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass

from torch import nn

from nnetrain.component import Component, NonlinearComponent
from nnetrain.config.component import component_input_dim, component_output_dim
from nnetrain.config.nnet import NnetConfig
from nnetrain.config.objective import ObjectiveType


class NodeType(enum.Enum):
    """Kind of a network node."""

    INPUT = "input"
    COMPONENT = "component"
    OUTPUT = "output"


@dataclass(frozen=True, slots=True)
class Node:
    """A node of the network graph.

    `input` names the node this one reads (None for input nodes), `dim` is
    the dimension of the node's value, and `objective_type` is set only on
    output nodes.
    """

    name: str
    type: NodeType
    dim: int
    input: str | None = None
    objective_type: ObjectiveType | None = None


class Nnet(nn.Module):
    """A feed-forward network described by an NnetConfig.

    Nodes are indexed in execution order: inputs first, then components in
    topological order, then outputs.
    """

    def __init__(self, config: NnetConfig) -> None:
        super().__init__()
        self.config = config
        self.components = nn.ModuleDict()
        self._nodes: list[Node] = []
        self._index: dict[str, int] = {}
        self._build()

    # ─────────────────────────────────────────────────────────────────────
    # Construction
    # ─────────────────────────────────────────────────────────────────────

    def _add_node(self, node: Node) -> None:
        if not node.name or "." in node.name:
            raise ValueError(f"Invalid node name {node.name!r}: must be non-empty without '.'")
        if node.name in self._index:
            raise ValueError(f"Duplicate node name {node.name!r}")
        self._index[node.name] = len(self._nodes)
        self._nodes.append(node)

    def _build(self) -> None:
        for spec in self.config.inputs:
            self._add_node(Node(name=spec.name, type=NodeType.INPUT, dim=int(spec.dim)))

        pending = {spec.name: spec for spec in self.config.components}
        if len(pending) != len(self.config.components):
            raise ValueError("Duplicate component node names in network config.")
        output_names = {spec.name for spec in self.config.outputs}

        def visit(name: str, stack: tuple[str, ...]) -> None:
            spec = pending.get(name)
            if spec is None:
                return
            if name in stack:
                raise ValueError(f"Cycle in network graph: {' -> '.join(stack + (name,))}")
            if spec.input in output_names:
                raise ValueError(f"Component {name!r} reads output node {spec.input!r}")
            if spec.input not in self._index and spec.input not in pending:
                raise ValueError(f"Component {name!r} reads unknown node {spec.input!r}")
            visit(spec.input, stack + (name,))
            del pending[name]
            want = component_input_dim(spec.component)
            have = self._nodes[self._index[spec.input]].dim
            if want != have:
                raise ValueError(
                    f"Component {name!r}: expected input dim {want}, "
                    f"but node {spec.input!r} has dim {have}"
                )
            self._add_node(
                Node(
                    name=name,
                    type=NodeType.COMPONENT,
                    dim=component_output_dim(spec.component),
                    input=spec.input,
                )
            )
            self.components[name] = spec.component.build()

        for spec in self.config.components:
            visit(spec.name, ())

        for spec in self.config.outputs:
            if spec.input not in self._index:
                raise ValueError(f"Output {spec.name!r} reads unknown node {spec.input!r}")
            if self.is_output_node(self._index[spec.input]):
                raise ValueError(f"Output {spec.name!r} reads output node {spec.input!r}")
            self._add_node(
                Node(
                    name=spec.name,
                    type=NodeType.OUTPUT,
                    dim=self._nodes[self._index[spec.input]].dim,
                    input=spec.input,
                    objective_type=spec.objective,
                )
            )

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    def get_node_index(self, name: str) -> int:
        """Index of the node called `name`, or -1 if there is none."""
        return self._index.get(name, -1)

    def get_node(self, index: int) -> Node:
        return self._nodes[index]

    def get_node_name(self, index: int) -> str:
        return self._nodes[index].name

    def is_input_node(self, index: int) -> bool:
        return self._nodes[index].type is NodeType.INPUT

    def is_component_node(self, index: int) -> bool:
        return self._nodes[index].type is NodeType.COMPONENT

    def is_output_node(self, index: int) -> bool:
        return self._nodes[index].type is NodeType.OUTPUT

    def node_dim(self, index: int) -> int:
        return self._nodes[index].dim

    def input_dim(self, name: str) -> int:
        """Dimension of the input node `name`."""
        index = self.get_node_index(name)
        if index < 0 or not self.is_input_node(index):
            raise ValueError(f"No input node named {name!r}")
        return self._nodes[index].dim

    def output_dim(self, name: str) -> int:
        """Dimension of the output node `name`."""
        index = self.get_node_index(name)
        if index < 0 or not self.is_output_node(index):
            raise ValueError(f"No output node named {name!r}")
        return self._nodes[index].dim

    def input_names(self) -> list[str]:
        return [n.name for n in self._nodes if n.type is NodeType.INPUT]

    def output_names(self) -> list[str]:
        return [n.name for n in self._nodes if n.type is NodeType.OUTPUT]

    def component(self, name: str) -> Component:
        """The component computed at node `name`."""
        module = self.components[name]
        assert isinstance(module, Component)
        return module

    def iter_components(self) -> Iterator[Component]:
        for module in self.components.values():
            assert isinstance(module, Component)
            yield module

    def updatable_components(self) -> list[Component]:
        return [c for c in self.iter_components() if c.is_updatable]

    # ─────────────────────────────────────────────────────────────────────
    # Mutation
    # ─────────────────────────────────────────────────────────────────────

    def zero_component_stats(self) -> None:
        """Zero the activation statistics stored by nonlinear components."""
        for component in self.iter_components():
            if isinstance(component, NonlinearComponent):
                component.zero_stats()

    def info(self) -> dict[str, str]:
        """Short description of every node, for display."""
        out: dict[str, str] = {}
        for node in self._nodes:
            match node.type:
                case NodeType.INPUT:
                    out[node.name] = f"input dim={node.dim}"
                case NodeType.COMPONENT:
                    kind = type(self.components[node.name]).__name__
                    out[node.name] = f"{kind} input={node.input} dim={node.dim}"
                case NodeType.OUTPUT:
                    objective = node.objective_type.value if node.objective_type else "?"
                    out[node.name] = (
                        f"output input={node.input} dim={node.dim} objective={objective}"
                    )
        return out
