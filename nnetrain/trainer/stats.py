"""Running objective statistics for one network output.

Training progress is reported in phases: fixed-size runs of
`minibatches_per_phase` minibatches. When the minibatch counter crosses into
the next phase, the average objective of the phase just completed is logged
and the phase accumulators start over. All-time totals are kept alongside
for the final summary.
"""
from __future__ import annotations

from dataclasses import dataclass

from nnetrain.console import logger


@dataclass(frozen=True, slots=True)
class PhaseReport:
    """Average objective over one phase of minibatches (inclusive range)."""

    output_name: str
    start_minibatch: int
    end_minibatch: int
    average: float
    weight: float


@dataclass(frozen=True, slots=True)
class TotalReport:
    """Average objective over all minibatches seen."""

    output_name: str
    average: float
    weight: float


def _average(objf: float, weight: float) -> float:
    return objf / weight if weight != 0.0 else float("nan")


@dataclass
class ObjectiveFunctionInfo:
    """Phase and all-time sums of objective and weight for one output."""

    current_phase: int = 0
    tot_weight: float = 0.0
    tot_objf: float = 0.0
    tot_weight_this_phase: float = 0.0
    tot_objf_this_phase: float = 0.0

    def update_stats(
        self,
        output_name: str,
        minibatches_per_phase: int,
        minibatch_counter: int,
        this_minibatch_weight: float,
        this_minibatch_tot_objf: float,
    ) -> PhaseReport | None:
        """Fold in one minibatch's objective.

        Returns the report of the phase that just completed, if the counter
        moved into a new phase.

        Raises:
            ValueError: If minibatches_per_phase is not positive.
            RuntimeError: If the counter skips a phase or goes backwards.
        """
        if minibatches_per_phase <= 0:
            raise ValueError(f"minibatches_per_phase must be positive, got {minibatches_per_phase}")
        phase = minibatch_counter // minibatches_per_phase
        report = None
        if phase != self.current_phase:
            if phase != self.current_phase + 1:
                raise RuntimeError(
                    f"Minibatch {minibatch_counter} for output {output_name!r} is in phase "
                    f"{phase}, expected phase {self.current_phase} or {self.current_phase + 1}"
                )
            report = self.print_stats_for_this_phase(output_name, minibatches_per_phase)
            self.current_phase = phase
            self.tot_weight_this_phase = 0.0
            self.tot_objf_this_phase = 0.0
        self.tot_weight_this_phase += this_minibatch_weight
        self.tot_objf_this_phase += this_minibatch_tot_objf
        self.tot_weight += this_minibatch_weight
        self.tot_objf += this_minibatch_tot_objf
        return report

    def print_stats_for_this_phase(
        self, output_name: str, minibatches_per_phase: int
    ) -> PhaseReport:
        """Log and return the statistics of the current phase."""
        start = self.current_phase * minibatches_per_phase
        report = PhaseReport(
            output_name=output_name,
            start_minibatch=start,
            end_minibatch=start + minibatches_per_phase - 1,
            average=_average(self.tot_objf_this_phase, self.tot_weight_this_phase),
            weight=self.tot_weight_this_phase,
        )
        logger.objective_phase(
            report.output_name,
            report.start_minibatch,
            report.end_minibatch,
            report.average,
            report.weight,
        )
        return report

    def total_report(self, output_name: str) -> TotalReport:
        return TotalReport(
            output_name=output_name,
            average=_average(self.tot_objf, self.tot_weight),
            weight=self.tot_weight,
        )

    def print_total_stats(self, output_name: str) -> bool:
        """Log the overall average; return whether any weight was seen."""
        report = self.total_report(output_name)
        logger.objective_total(report.output_name, report.average, report.weight)
        return self.tot_weight != 0.0
