from __future__ import annotations

import pytest

import cache
import clock
import state
from injury.types import Injury, MedicalStatus, WellnessEntry
from medical_repo import init_db

FROZEN_NOW = "2025-03-01T12:00:00+00:00"


@pytest.fixture(autouse=True)
def _isolation():
    """Frozen clock and a fresh in-memory cache for every test."""
    clock.set_now(FROZEN_NOW)
    cache.set_cache(cache.Cache())
    yield
    clock.reset()
    cache.set_cache(cache.Cache())
    state.reset()


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "medical.sqlite3")
    init_db(path)
    return path


@pytest.fixture
def make_injury():
    def _mk(body_part="knee", severity=2, *, status="active", injury_type="Strain", player_id="7", **kw):
        return Injury(
            injury_id=kw.pop("injury_id", f"inj-{body_part}-{severity}"),
            player_id=player_id,
            body_part=body_part,
            injury_type=injury_type,
            severity=severity,
            recovery_status=status,
            injury_date=kw.pop("injury_date", "2025-02-20"),
            expected_return_date=kw.pop("expected_return_date", None),
        )

    return _mk


@pytest.fixture
def make_wellness():
    def _mk(player_id="7", **kw):
        values = {
            "sleep_hours": 8.0,
            "stress_level": 3,
            "soreness_level": 3,
            "energy_level": 7,
            "hydration_level": 7,
            "max_heart_rate": None,
        }
        values.update(kw)
        return WellnessEntry(player_id=player_id, entry_date="2025-03-01", **values)

    return _mk


@pytest.fixture
def make_status():
    def _mk(player_id="7", injuries=(), wellness=None, availability=None, degraded=None):
        return MedicalStatus(
            player_id=player_id,
            injuries=tuple(injuries),
            wellness=wellness,
            availability=availability,
            degraded=list(degraded or []),
        )

    return _mk


class BrokenBackend:
    """Cache backend that fails every call."""

    def __init__(self):
        self.calls = 0

    def get(self, key):
        self.calls += 1
        raise ConnectionError("cache down")

    def set(self, key, value, ttl_seconds):
        self.calls += 1
        raise ConnectionError("cache down")

    def delete(self, key):
        self.calls += 1
        raise ConnectionError("cache down")


@pytest.fixture
def broken_cache():
    backend = BrokenBackend()
    cache.set_cache(cache.Cache(backend))
    return backend
