from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class SweepSummary:
    """Observable outcome of one background sweep run."""

    name: str
    scanned: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def record_failure(self, ref: object, exc: BaseException) -> None:
        self.failed += 1
        self.errors.append(f"{ref}: {exc}")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "scanned": self.scanned,
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": list(self.errors),
        }
