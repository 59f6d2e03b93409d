from __future__ import annotations

from office_attendance.database.bootstrap import (
    SCHEMA_PATH,
    _iter_sql_statements,
    _strip_comments,
    _strip_create_db_and_use,
)


def test_splitter_ignores_semicolons_in_quotes():
    sql = "INSERT INTO t VALUES ('a;b'); INSERT INTO t VALUES (\"c;d\");\nSELECT 1"

    assert list(_iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("c;d")',
        "SELECT 1",
    ]


def test_bundled_schema_is_database_agnostic():
    sql = _strip_create_db_and_use(_strip_comments(SCHEMA_PATH.read_text(encoding="utf-8")))
    statements = list(_iter_sql_statements(sql))

    assert len(statements) == 1
    assert statements[0].startswith("CREATE TABLE IF NOT EXISTS documents")
    assert "USE " not in sql
