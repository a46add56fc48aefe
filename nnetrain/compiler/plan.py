"""Plan printer: human-readable view of a compiled computation.

Used for `debug_computation` and `nnetrain compile --print-plan`, to check
which nodes a request touches and in what order.
"""
from __future__ import annotations

from collections.abc import Iterable

from nnetrain.compiler.computation import NnetComputation, StepType
from nnetrain.compiler.request import IoSpecification


class Planner:
    """Renders computations as indented text."""

    def format(self, computation: NnetComputation) -> str:
        """Render a computation."""
        request = computation.request
        out: list[str] = []
        out.append(
            f"need_model_derivative={request.need_model_derivative} "
            f"store_component_stats={request.store_component_stats}"
        )
        out.append("inputs:")
        out.extend(self.format_io(request.inputs, indent=2))
        out.append("outputs:")
        out.extend(self.format_io(request.outputs, indent=2))
        out.append(f"steps ({computation.num_steps}):")
        for i, step in enumerate(computation.steps):
            verb = "compute" if step.type is StepType.COMPONENT else "output"
            out.append(f"  [{i}] {verb} {step.node} <- {step.input}")
        return "\n".join(out)

    def format_io(self, specs: Iterable[IoSpecification], *, indent: int) -> Iterable[str]:
        pad = " " * indent
        for spec in specs:
            deriv = " deriv" if spec.has_deriv else ""
            yield f"{pad}- {spec.name} rows={spec.num_rows}{deriv}"
