from dataclasses import dataclass, field
from typing import Any

from scrubber.detection.allocator import PlaceholderAllocator
from scrubber.detection.models import PiiCounts


class SenderRole:
    AGENT = "agent"
    CUSTOMER = "customer"
    UNKNOWN = "unknown"


class FilterReason:
    """Human-readable filter reasons stored on processed records."""

    MIN_LENGTH = "Below minimum message length"
    MIN_CHARACTERS = "Below minimum character count"
    STATUS = "Unresolved status"
    DATE_RANGE = "Out of date range"


# filter reason -> key in statistics["filter_breakdown"]
FILTER_BREAKDOWN_KEYS: dict[str, str] = {
    FilterReason.MIN_LENGTH: "min_length",
    FilterReason.MIN_CHARACTERS: "min_characters",
    FilterReason.STATUS: "status",
    FilterReason.DATE_RANGE: "date_range",
}


@dataclass(frozen=True)
class FilterOutcome:
    """Result of evaluating one row: either filtered with a reason, or kept."""

    content: str = ""
    filtered: bool = False
    reason: str | None = None
    role: str = SenderRole.UNKNOWN
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def drop(cls, reason: str, content: str = "") -> "FilterOutcome":
        return cls(content=content, filtered=True, reason=reason)


def empty_content() -> dict[str, Any]:
    return {"messages": [], "metadata": {}}


def build_content(role: str, text: str, metadata: dict[str, str]) -> dict[str, Any]:
    """Structured content of a kept record, as written to JSONL."""
    return {
        "messages": [{"role": role, "content": text}],
        "metadata": dict(metadata),
    }


@dataclass
class RunStatistics:
    """Aggregates finalized into processing_runs.statistics."""

    max_errors: int = 100
    pii_counts: PiiCounts = field(default_factory=PiiCounts)
    filter_breakdown: dict[str, int] = field(
        default_factory=lambda: {key: 0 for key in FILTER_BREAKDOWN_KEYS.values()}
    )
    errors: list[dict[str, Any]] = field(default_factory=list)

    def record_filter(self, reason: str) -> None:
        key = FILTER_BREAKDOWN_KEYS.get(reason)
        if key is not None:
            self.filter_breakdown[key] += 1

    def record_error(self, row: int, message: str) -> None:
        if len(self.errors) < self.max_errors:
            self.errors.append({"row": row, "message": message})

    def as_dict(self) -> dict[str, Any]:
        return {
            "pii_counts": self.pii_counts.as_dict(),
            "filter_breakdown": dict(self.filter_breakdown),
            "errors": list(self.errors),
        }


@dataclass
class RunState:
    """Mutable state owned by one executing run."""

    allocator: PlaceholderAllocator
    statistics: RunStatistics
    row_number: int = 0
    processed: int = 0
    filtered: int = 0
    errored: int = 0

    @property
    def rows_handled(self) -> int:
        return self.processed + self.filtered + self.errored


@dataclass(frozen=True)
class PreviewItem:
    """Side-by-side view of one sample message."""

    original: str
    processed: str
    pii_found: dict[str, str] = field(default_factory=dict)
