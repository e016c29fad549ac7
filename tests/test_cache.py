from __future__ import annotations

import pytest

import cache
import clock
from compliance import check_workout_compliance
from injury import record_injury
from load import calculate_load_management
from recovery import calculate_adherence_metrics, get_recovery_milestones, initialize_recovery_protocol


class TimeoutBackend:
    def __init__(self):
        self.calls = 0

    def _fail(self, *args):
        self.calls += 1
        raise TimeoutError("cache timeout")

    get = _fail
    set = _fail
    delete = _fail


def test_build_cache_key():
    assert cache.build_cache_key("ns", "7", None, 50) == "ns:7:-:50"
    with pytest.raises(ValueError):
        cache.build_cache_key(" ")


def test_memory_cache_expires_on_clock():
    c = cache.Cache()
    c.set("k", {"a": 1}, 60)
    assert c.get("k") == {"a": 1}
    clock.set_now("2025-03-01T12:01:01+00:00")
    assert c.get("k") is None


def test_expired_entries_are_swept_on_write():
    backend = cache.MemoryTTLCache(sweep_interval_s=60)
    for i in range(1000):
        backend.set(f"k{i}", i, 1)
    assert len(backend) == 1000

    clock.set_now("2025-03-02T12:00:00+00:00")
    backend.set("fresh", 1, 60)
    assert len(backend) == 1
    assert backend.get("fresh") == 1


def test_sweep_keeps_live_entries():
    backend = cache.MemoryTTLCache(sweep_interval_s=0)
    backend.set("short", 1, 10)
    backend.set("long", 2, 3600)
    clock.set_now("2025-03-01T12:01:00+00:00")
    backend.set("other", 3, 60)
    assert len(backend) == 2
    assert backend.get("long") == 2
    assert backend.get("short") is None


def test_player_generation_changes_on_bump():
    assert cache.player_generation("7") == "0"
    cache.bump_player_generation("7")
    first = cache.player_generation("7")
    cache.bump_player_generation("7")
    assert first != "0"
    assert cache.player_generation("7") not in {"0", first}
    assert cache.player_generation("8") == "0"


def test_cached_values_are_copies():
    c = cache.Cache()
    value = {"items": [1]}
    c.set("k", value, 60)
    value["items"].append(2)
    assert c.get("k") == {"items": [1]}


def test_disabled_cache_always_misses():
    c = cache.Cache(enabled=False)
    c.set("k", 1, 60)
    assert c.get("k") is None


def test_broken_backend_reads_as_miss(broken_cache):
    c = cache.get_cache()
    assert c.get("k") is None
    c.set("k", 1, 60)
    c.delete("k")
    assert broken_cache.calls == 3


async def _snapshot(db_path):
    compliance = await check_workout_compliance("7", ["Back Squat", "Bench Press"], 95, db_path=db_path)
    load = await calculate_load_management("7", 90, db_path=db_path)
    milestones = await get_recovery_milestones("inj-1", db_path=db_path)
    metrics = await calculate_adherence_metrics("inj-1", db_path=db_path)
    return compliance.to_dict(), load.to_dict(), [m.to_dict() for m in milestones], metrics.to_dict()


async def test_cache_outage_gives_the_same_answers(db_path):
    await record_injury(
        "7", body_part="knee", injury_type="Sprain", severity=3, injury_id="inj-1", db_path=db_path
    )
    await initialize_recovery_protocol("inj-1", "knee_injury", db_path=db_path)

    healthy = await _snapshot(db_path)
    cached = await _snapshot(db_path)

    backend = TimeoutBackend()
    cache.set_cache(cache.Cache(backend))
    broken = await _snapshot(db_path)

    assert healthy == cached == broken
    assert backend.calls > 0

