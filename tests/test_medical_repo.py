from __future__ import annotations

import asyncio
import threading

import pytest

import medical_repo
from medical_repo import MedicalRepo, init_db, run_in_repo
from schema import SCHEMA_VERSION


def _meta(repo, key):
    row = repo._conn.execute("SELECT value FROM meta WHERE key=?;", (key,)).fetchone()
    return row[0] if row else None


def test_init_db_is_idempotent(db_path):
    init_db(db_path)
    with MedicalRepo(db_path) as repo:
        assert repo.get_schema_version() == SCHEMA_VERSION
        repo.validate_integrity()


def test_nested_transaction_rolls_back_only_inner_work(db_path):
    with MedicalRepo(db_path) as repo:
        with repo.transaction() as cur:
            cur.execute("INSERT INTO meta(key, value) VALUES ('outer', '1');")
            with pytest.raises(RuntimeError):
                with repo.transaction() as inner:
                    inner.execute("INSERT INTO meta(key, value) VALUES ('inner', '1');")
                    raise RuntimeError("boom")
        assert _meta(repo, "outer") == "1"
        assert _meta(repo, "inner") is None


def test_validate_integrity_flags_duplicate_current_availability(db_path):
    with MedicalRepo(db_path) as repo:
        with repo.transaction() as cur:
            cur.execute("DROP INDEX IF EXISTS ux_player_availability_current;")
            for _ in range(2):
                cur.execute(
                    """
                    INSERT INTO player_availability(player_id, availability_status, is_current, effective_date, created_at)
                    VALUES ('7', 'available', 1, '2025-03-01', '2025-03-01');
                    """
                )
        with pytest.raises(ValueError, match="multiple current availability"):
            repo.validate_integrity()


async def test_run_in_repo_passes_a_connected_repo(db_path):
    def _version(repo):
        return repo.get_schema_version()

    assert await run_in_repo(db_path, _version) == SCHEMA_VERSION


async def test_timed_out_write_still_commits(db_path):
    release = threading.Event()
    done = threading.Event()

    def _slow_write(repo):
        release.wait(5)
        with repo.transaction() as cur:
            cur.execute("INSERT INTO meta(key, value) VALUES ('late', '1');")
        done.set()

    with pytest.raises(asyncio.TimeoutError):
        await run_in_repo(db_path, _slow_write, timeout=0.05)
    release.set()
    assert await asyncio.to_thread(done.wait, 5)
    with MedicalRepo(db_path) as repo:
        assert _meta(repo, "late") == "1"


def test_cli_init_and_validate(tmp_path, capsys):
    path = str(tmp_path / "cli.sqlite3")
    medical_repo.main(["init", "--db", path])
    medical_repo.main(["validate", "--db", path])
    out = capsys.readouterr().out
    assert f"OK: initialized {path}" in out
    assert f"OK: validation passed for {path}" in out
