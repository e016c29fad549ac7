# db_schema/core.py
"""Key/value ``meta`` table (schema version, creation time). DDL only."""

from __future__ import annotations


def ddl(*, now: str, schema_version: str) -> str:
    return f"""
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        INSERT INTO meta(key, value) VALUES ('schema_version', '{schema_version}')
        ON CONFLICT(key) DO UPDATE SET value=excluded.value;
        INSERT OR IGNORE INTO meta(key, value) VALUES ('created_at', '{now}');
"""
