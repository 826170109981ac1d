from dataclasses import replace

import pytest

from attendance_engine.core.exceptions import ConfigurationError, ValidationError
from attendance_engine.timing.cache import InMemoryTimingCache, RedisTimingCache
from attendance_engine.timing.store import DepartmentTimingStore, shift_length_hours

from conftest import ENGINEERING, InMemoryTimings


class Ticker:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class FakeRedis:
    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value.encode("utf-8")

    def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)

    def scan_iter(self, match):
        prefix = match.rstrip("*")
        return [k for k in list(self.data) if k.startswith(prefix)]


@pytest.fixture
def ticker():
    return Ticker()


@pytest.fixture
def repo():
    return InMemoryTimings({"engineering": ENGINEERING})


@pytest.fixture
def store(repo, ticker):
    return DepartmentTimingStore(repo, InMemoryTimingCache(ttl_seconds=300, clock=ticker))


def test_unconfigured_department_gets_default(store):
    timing = store.get("sales")

    assert timing.is_default
    assert timing.check_in_time == "9:00 AM"
    assert timing.check_out_time == "6:00 PM"


def test_lookup_is_case_insensitive(store):
    assert store.get("Engineering") == store.get("engineering")


def test_reads_are_cached_until_ttl(store, repo, ticker):
    store.get("engineering")
    store.get("engineering")
    assert repo.gets == 1

    ticker.now = 301
    store.get("engineering")
    assert repo.gets == 2


def test_update_invalidates_and_normalizes(store):
    store.get("engineering")

    updated = store.update("engineering", check_in_time="10:00 am", check_out_time="07:00 pm")

    assert updated.check_in_time == "10:00 AM"
    assert updated.check_out_time == "7:00 PM"
    assert updated.working_hours == 9
    assert store.get("engineering").check_in_time == "10:00 AM"


def test_update_rejects_malformed_time(store):
    with pytest.raises(ValidationError) as exc:
        store.update("engineering", check_in_time="25:00", check_out_time="6:00 PM")
    assert exc.value.code == "INVALID_SHIFT_TIME"


def test_update_rejects_bad_weekly_off(store):
    with pytest.raises(ValidationError):
        store.update("engineering", check_in_time="9:00 AM", check_out_time="6:00 PM", weekly_off_days=[7])


def test_malformed_stored_timing_fails_loudly(repo, store):
    repo.timings["broken"] = replace(ENGINEERING, department="broken", check_out_time="18:00")

    with pytest.raises(ConfigurationError):
        store.get("broken")


def test_missing_department_is_a_configuration_error(store):
    with pytest.raises(ConfigurationError) as exc:
        store.get("")
    assert exc.value.code == "NO_DEPARTMENT"


def test_shift_length_crosses_midnight():
    assert shift_length_hours("10:00 PM", "6:00 AM") == 8
    assert shift_length_hours("9:00 AM", "6:00 PM") == 9


def test_redis_cache_shares_entries(repo):
    client = FakeRedis()
    cache = RedisTimingCache(client, ttl_seconds=300)
    store = DepartmentTimingStore(repo, cache)

    first = store.get("engineering")
    assert RedisTimingCache(client, ttl_seconds=300).get("engineering") == first

    store.invalidate()
    assert client.data == {}
