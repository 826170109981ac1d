from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..common.datetime_utils import normalize_shift_time, parse_shift_time
from ..core.constants import DEFAULT_WORKING_HOURS
from ..core.exceptions import ConfigurationError, ValidationError
from .cache import TimingCache
from .model import DepartmentTiming, default_timing
from .repository import DepartmentTimingRepository

logger = logging.getLogger(__name__)


def _key(department: str) -> str:
    return (department or "").strip().lower()


class DepartmentTimingStore:
    """Resolve and cache department shift configuration.

    Every department resolves to a timing; unconfigured ones get the default.
    Writes go through ``update`` which invalidates before returning.
    """

    def __init__(self, repository: DepartmentTimingRepository, cache: TimingCache):
        self._repository = repository
        self._cache = cache

    def get(self, department: str) -> DepartmentTiming:
        key = _key(department)
        if not key:
            raise ConfigurationError("User has no department assigned", code="NO_DEPARTMENT")

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        timing = self._repository.get(key)
        if timing is None:
            logger.info("No timing configured for department %r, using default", key)
            timing = default_timing(key)
        else:
            timing = self._validated(timing)

        self._cache.set(key, timing)
        return timing

    def list_all(self) -> list[DepartmentTiming]:
        return [self._validated(t) for t in self._repository.list_all()]

    def invalidate(self, department: Optional[str] = None) -> None:
        if department is None:
            self._cache.clear()
        else:
            self._cache.delete(_key(department))

    def update(
        self,
        department: str,
        *,
        check_in_time: str,
        check_out_time: str,
        working_hours: Optional[int] = None,
        overtime_threshold_minutes: Optional[int] = None,
        late_threshold_minutes: Optional[int] = None,
        auto_checkout_grace_minutes: Optional[int] = None,
        weekly_off_days: Optional[Iterable[int]] = None,
    ) -> DepartmentTiming:
        key = _key(department)
        if not key:
            raise ValidationError("Department is required", missing_fields=["department"])
        try:
            check_in = normalize_shift_time(check_in_time)
            check_out = normalize_shift_time(check_out_time)
        except ConfigurationError as exc:
            raise ValidationError(exc.message, code="INVALID_SHIFT_TIME") from exc

        current = self._repository.get(key) or default_timing(key)
        off_days = current.weekly_off_days if weekly_off_days is None else frozenset(int(d) for d in weekly_off_days)
        if any(d < 0 or d > 6 for d in off_days):
            raise ValidationError("Weekly off days must be between 0 (Sunday) and 6 (Saturday)")

        timing = replace(
            current,
            department=key,
            check_in_time=check_in,
            check_out_time=check_out,
            working_hours=int(working_hours or shift_length_hours(check_in, check_out)),
            overtime_threshold_minutes=_pick(overtime_threshold_minutes, current.overtime_threshold_minutes),
            late_threshold_minutes=_pick(late_threshold_minutes, current.late_threshold_minutes),
            auto_checkout_grace_minutes=_pick(auto_checkout_grace_minutes, current.auto_checkout_grace_minutes),
            weekly_off_days=off_days,
            is_default=False,
        )
        self._repository.upsert(timing)
        self.invalidate(key)
        logger.info("Department timing updated for %r: %s - %s", key, check_in, check_out)
        return timing

    @staticmethod
    def _validated(timing: DepartmentTiming) -> DepartmentTiming:
        try:
            check_in = normalize_shift_time(timing.check_in_time)
            check_out = normalize_shift_time(timing.check_out_time)
        except ConfigurationError as exc:
            raise ConfigurationError(
                f"Department {timing.department!r} has an invalid shift time: {exc.message}"
            ) from exc
        return replace(timing, check_in_time=check_in, check_out_time=check_out)


def _pick(value: Optional[int], fallback: int) -> int:
    return fallback if value is None else int(value)


def shift_length_hours(check_in_time: str, check_out_time: str) -> int:
    start = parse_shift_time(check_in_time)
    end = parse_shift_time(check_out_time)
    base = datetime(2000, 1, 1)
    start_dt = base.replace(hour=start.hour, minute=start.minute)
    end_dt = base.replace(hour=end.hour, minute=end.minute)
    if end_dt <= start_dt:
        end_dt += timedelta(days=1)
    hours = int((end_dt - start_dt).total_seconds() // 3600)
    return hours or DEFAULT_WORKING_HOURS
