"""Value types passed between the poller, the driver and the presentation layers."""

from dataclasses import dataclass, field

from .constants import STATUS_PENDING


@dataclass(frozen=True)
class PhaseState:
    """Display state of one pipeline phase."""
    id: str
    label: str
    description: str
    status: str = STATUS_PENDING  # "pending" | "running" | "completed" | "error"
    progress: int = 0  # 0 to 100


@dataclass(frozen=True)
class Tick:
    """One polling observation of a remote job."""
    percent: float  # clamped to 0.0–100.0
    status: str  # lower-cased
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class RemoteTrace:
    """Last status seen for a remote phase, for the debug panel."""
    last: str = "-"  # e.g. "running (40%)"
    seen_running: bool = False


@dataclass
class GenerationArtifact:
    """Result of the generation phase, handed to the results view."""
    job_id: str
    synthetic_data: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"job_id": self.job_id, "synthetic_data": self.synthetic_data}
