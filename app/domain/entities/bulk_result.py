"""Aggregate outcome of a bulk notification fan-out."""

from dataclasses import dataclass, field


@dataclass
class BulkError:
    user_id: str
    error: str


@dataclass
class BulkResult:
    """Counters and per-user errors collected while sending in batches."""

    total: int
    success: int = 0
    failed: int = 0
    pending: int = 0
    errors: list[BulkError] = field(default_factory=list)
    job_id: str | None = None


__all__ = ["BulkError", "BulkResult"]
