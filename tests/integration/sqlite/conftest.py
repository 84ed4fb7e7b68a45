"""
Fixtures for SQLite integration tests.
"""
import sqlitehandle as db
import pytest


@pytest.fixture
def typed_table():
    """In-memory connection with a table holding one column per bind type."""
    conn = db.Connection()
    conn.create_in_memory()
    db.execute(conn, 'CREATE TABLE typed (i INTEGER, i64 INTEGER, s TEXT, b BLOB)')

    yield conn
    conn.close()


@pytest.fixture
def fetch_all():
    """Step `sql` to completion and collect rows as tuples of text values."""
    return _fetch_all


def _fetch_all(conn, sql, *args):
    with db.prepare(conn, sql) as stmt:
        stmt.bind_all(*args)
        rows = []
        while stmt.step():
            rows.append(tuple(stmt.get_string(col) for col in range(stmt.column_count)))
        return rows
