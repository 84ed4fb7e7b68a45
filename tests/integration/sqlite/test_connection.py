import ctypes.util

import pytest
import sqlitehandle as db
from sqlitehandle.exceptions import ContractViolation, SqlError
from sqlitehandle.native import load_library


def test_create_in_memory():
    cn = db.Connection()
    assert not cn.is_open

    cn.create_in_memory()
    assert cn.is_open
    assert cn.path == ':memory:'

    cn.close()
    assert not cn.is_open


def test_close_is_idempotent():
    cn = db.Connection()
    cn.close()
    cn.create_in_memory()
    cn.close()
    cn.close()
    assert not cn.is_open


def test_context_manager_closes(tmp_path):
    with db.Connection() as cn:
        cn.open(str(tmp_path / 'ctx.db'))
        assert cn.is_open
    assert not cn.is_open


def test_open_creates_file(tmp_path):
    path = tmp_path / 'created.db'
    with db.Connection() as cn:
        cn.open(str(path))
        cn.execute('CREATE TABLE t(a)')
    assert path.exists()


def test_open_invalid_path_raises(tmp_path):
    """Opening inside a missing directory fails with a message"""
    cn = db.Connection()
    with pytest.raises(SqlError) as exc_info:
        cn.open(str(tmp_path / 'missing' / 'dir' / 'test.db'))

    assert exc_info.value.code != 0
    assert exc_info.value.name == 'SQLITE_CANTOPEN'
    assert exc_info.value.message
    assert not cn.is_open


def test_open_without_create_requires_existing_file(tmp_path):
    cn = db.Connection()
    with pytest.raises(SqlError) as exc_info:
        cn.open(str(tmp_path / 'absent.db'), create=False)
    assert exc_info.value.name == 'SQLITE_CANTOPEN'


def test_readonly_connection_rejects_writes(sqlite_file_db):
    _, path = sqlite_file_db
    with db.Connection() as ro:
        ro.open(path, readonly=True)
        with pytest.raises(SqlError) as exc_info:
            ro.execute("INSERT INTO test_table (name, value) VALUES ('Eve', 1)")
    assert exc_info.value.name == 'SQLITE_READONLY'


def test_reopen_switches_database(sqlite_file_db, tmp_path):
    """open on an open connection replaces its session"""
    cn, _ = sqlite_file_db
    cn.open(str(tmp_path / 'other.db'))

    with pytest.raises(SqlError, match='no such table'):
        cn.execute('SELECT * FROM test_table')


def test_failed_reopen_keeps_session(sqlite_conn, tmp_path):
    with pytest.raises(SqlError):
        sqlite_conn.open(str(tmp_path / 'missing' / 'test.db'))

    assert sqlite_conn.is_open
    sqlite_conn.execute('SELECT * FROM test_table')


def test_execute_syntax_error(sqlite_conn):
    with pytest.raises(SqlError) as exc_info:
        sqlite_conn.execute('SELEC * FROM test_table')

    assert exc_info.value.code == 1
    assert 'syntax error' in exc_info.value.message


def test_execute_multiple_statements(sqlite_conn):
    sqlite_conn.execute("""
    INSERT INTO test_table (name, value) VALUES ('David', 40);
    UPDATE test_table SET value = 25 WHERE name = 'Bob';
    """)
    assert sqlite_conn.changes() == 1


def test_last_row_id(sqlite_conn):
    sqlite_conn.execute("INSERT INTO test_table (name, value) VALUES ('David', 40)")
    assert sqlite_conn.last_row_id() == 4


def test_last_row_id_before_insert():
    with db.Connection() as cn:
        cn.create_in_memory()
        assert cn.last_row_id() == 0


def test_constraint_violation(sqlite_conn):
    with pytest.raises(SqlError) as exc_info:
        sqlite_conn.execute("INSERT INTO test_table (name, value) VALUES ('Alice', 1)")

    assert exc_info.value.name == 'SQLITE_CONSTRAINT'
    assert 'UNIQUE' in exc_info.value.message


def test_busy_timeout(sqlite_conn):
    sqlite_conn.busy_timeout(100)


def test_unopened_connection_fails_fast():
    cn = db.Connection()
    with pytest.raises(ContractViolation):
        cn.execute('SELECT 1')
    with pytest.raises(ContractViolation):
        cn.last_row_id()


def test_statement_count_tracks_live_statements(sqlite_conn):
    assert sqlite_conn.statement_count() == 0

    first = sqlite_conn.prepare('SELECT 1')
    second = sqlite_conn.prepare('SELECT 2')
    assert sqlite_conn.statement_count() == 2

    first.finalize()
    assert sqlite_conn.statement_count() == 1
    second.finalize()
    assert sqlite_conn.statement_count() == 0


def test_close_with_live_statement(sqlite_file_db):
    """A session closed under a live statement is freed once it is finalized"""
    cn, _ = sqlite_file_db
    stmt = cn.prepare('SELECT name FROM test_table ORDER BY id')

    cn.close()
    assert not cn.is_open
    assert stmt.is_prepared

    stmt.finalize()
    assert not stmt.is_prepared


def test_repr(sqlite_conn):
    assert repr(sqlite_conn) == "<Connection open ':memory:'>"
    assert repr(db.Connection()) == '<Connection closed>'


def test_connection_with_explicit_library():
    """A connection and its statements run on a library loaded by explicit path"""
    path = ctypes.util.find_library('sqlite3')
    if path is None:
        pytest.skip('sqlite3 library not locatable by name')
    lib = load_library(path)

    with db.Connection(library=path) as cn:
        assert cn.library is lib
        cn.create_in_memory()
        cn.execute('CREATE TABLE t (a INTEGER)')
        with cn.prepare('INSERT INTO t VALUES (?)') as insert:
            assert insert._lib is lib
            insert.bind(0, 7)
            insert.step()
        with pytest.raises(SqlError, match='no such table: missing'):
            cn.prepare('SELECT * FROM missing')
        assert cn.last_row_id() == 1


if __name__ == '__main__':
    __import__('pytest').main([__file__])
