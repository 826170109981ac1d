from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import PayrollPeriod


class PayrollPeriodRepository(Protocol):
    def get(self, year: int, month: int) -> Optional[PayrollPeriod]:
        raise NotImplementedError

    def save(self, period: PayrollPeriod) -> None:
        raise NotImplementedError

    def list_for_year(self, year: int) -> Sequence[PayrollPeriod]:
        raise NotImplementedError
