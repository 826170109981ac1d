from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import DepartmentTiming


class DepartmentTimingRepository(Protocol):
    def get(self, department: str) -> Optional[DepartmentTiming]:
        raise NotImplementedError

    def list_all(self) -> Sequence[DepartmentTiming]:
        raise NotImplementedError

    def upsert(self, timing: DepartmentTiming) -> None:
        raise NotImplementedError
