from __future__ import annotations

from workforce_sync.database.bootstrap import SCHEMA_PATH, _iter_sql_statements, _strip_create_db_and_use


def test_statements_split_outside_quotes():
    sql = """
    -- comment; with a semicolon
    INSERT INTO t VALUES ('a;b');
    INSERT INTO t VALUES ("c\\";d");
    SELECT 1
    """

    statements = list(_iter_sql_statements(sql))

    assert statements == ["INSERT INTO t VALUES ('a;b')", 'INSERT INTO t VALUES ("c\\";d")', "SELECT 1"]


def test_bundled_schema_creates_every_table():
    sql = _strip_create_db_and_use(SCHEMA_PATH.read_text(encoding="utf-8"))

    statements = list(_iter_sql_statements(sql))

    assert not any(s.upper().startswith(("CREATE DATABASE", "USE ")) for s in statements)
    created = [s.split()[5] for s in statements if s.upper().startswith("CREATE TABLE IF NOT EXISTS")]
    assert created == ["workers", "attendance_events", "sync_errors", "sync_passes", "audit_logs"]
