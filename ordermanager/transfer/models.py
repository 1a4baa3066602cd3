"""Data models for transfer results."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class TransferStep(Enum):
    """The three phases of a transfer, in execution order."""

    ARCHIVE = "archive"
    CLEAR = "clear"
    COPY = "copy"


@dataclass(frozen=True)
class TransferOutcome:
    """Result of moving or deleting a single file.

    ``destination`` is None for deletions and for failures that concern a
    whole directory (e.g. the target could not be walked).
    """

    step: TransferStep
    source: Path
    destination: Path | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class TransferReport:
    """All outcomes of one transfer operation."""

    selected_key: str
    outcomes: list[TransferOutcome] = field(default_factory=list)

    def record(self, outcome: TransferOutcome) -> None:
        self.outcomes.append(outcome)

    def for_step(self, step: TransferStep) -> list[TransferOutcome]:
        return [o for o in self.outcomes if o.step is step]

    @property
    def succeeded(self) -> list[TransferOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[TransferOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def archived(self) -> list[Path]:
        return [o.source for o in self.for_step(TransferStep.ARCHIVE) if o.succeeded]

    @property
    def moved(self) -> list[Path]:
        return [o.source for o in self.for_step(TransferStep.COPY) if o.succeeded]
