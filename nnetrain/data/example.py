"""Training examples: named matrices for a network's inputs and outputs."""
from __future__ import annotations

from dataclasses import dataclass, field

from nnetrain.supervision import GeneralMatrix


@dataclass(frozen=True)
class NnetIo:
    """One named stream of an example.

    For a stream that names an input node `features` is fed to the network;
    for one that names an output node it is the supervision.
    """

    name: str
    features: GeneralMatrix

    @property
    def num_rows(self) -> int:
        return self.features.num_rows


@dataclass(frozen=True)
class NnetExample:
    """A minibatch: input and supervision streams sharing one row count per stream."""

    io: list[NnetIo] = field(default_factory=list)

    def get(self, name: str) -> NnetIo | None:
        """The stream called `name`, if any."""
        for io in self.io:
            if io.name == name:
                return io
        return None
