"""Shared data types used across clipsplit."""

from dataclasses import asdict, dataclass, field
from enum import Enum


class RunStatus(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    DONE = "done"


class RowResult(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ClipSpec:
    """One named sub-range of the source video.

    ``start`` and ``end`` are kept as the text the user supplied (or as
    seconds when built programmatically) and are only interpreted when the
    row is exported.
    """

    name: str
    start: str | float
    end: str | float


@dataclass
class ProgressEvent:
    """Outbound progress notification for the UI layer."""

    total: int
    completed: int
    current_clip: str
    status: RunStatus
    message: str
    row_index: int | None = None
    row_result: RowResult | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        data["row_result"] = self.row_result.value if self.row_result else None
        return data


@dataclass(frozen=True)
class RunSummary:
    """Terminal result of one export run."""

    total_rows: int
    exported: int
    skipped: int
    failed: int
    errors: tuple[str, ...] = ()
    status: RunStatus = RunStatus.DONE

    def to_dict(self) -> dict:
        return {
            "total_rows": self.total_rows,
            "exported": self.exported,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": list(self.errors),
            "status": self.status.value,
        }


@dataclass
class CsvPreview:
    """Rows read from a CSV plus every row-level problem found in them."""

    total_rows: int
    rows: list[ClipSpec] = field(default_factory=list)
    validation_errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_rows": self.total_rows,
            "rows": [
                {"clip_name": r.name, "start_time": str(r.start), "end_time": str(r.end)}
                for r in self.rows
            ],
            "validation_errors": list(self.validation_errors),
        }
