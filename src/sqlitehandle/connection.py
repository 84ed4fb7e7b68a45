"""
SQLite session handle.

A `Connection` exclusively owns one ``sqlite3*`` session. The session is
acquired with a two-phase protocol: the engine opens into a local
`OwnedHandle`, the result code is inspected, and only then is the handle
adopted or released. A failed open therefore never leaves the `Connection`
half-owning a session, and the error message is read from the failed handle
before it is freed.

Usage::

    with Connection() as cn:
        cn.create_in_memory()
        cn.execute('CREATE TABLE t(a INTEGER, b TEXT)')

A `Connection` must not be used from several threads at once, and must
outlive every `Statement` prepared against it.
"""
import ctypes
import logging
from typing import Any, Self

from sqlitehandle.exceptions import SqlError
from sqlitehandle.handle import OwnedHandle
from sqlitehandle.native import MEMORY_DATABASE, SQLITE_OK
from sqlitehandle.native import SQLITE_OPEN_CREATE, SQLITE_OPEN_READONLY
from sqlitehandle.native import SQLITE_OPEN_READWRITE, error_message
from sqlitehandle.native import load_library
from sqlitehandle.statement import Statement
from sqlitehandle.utils.contracts import requires_open

__all__ = ['Connection']

logger = logging.getLogger(__name__)


class Connection:
    """Owner of one SQLite session.

    A new `Connection` is unopened; `open` or `create_in_memory` attaches a
    session, and `close` (or leaving a ``with`` block) releases it exactly
    once.

    Args:
        library: Path of the SQLite shared library to use. When omitted the
            library is located by `load_library`.
    """

    def __init__(self, library: str | None = None) -> None:
        self._lib = load_library(library)
        self._db = OwnedHandle(release=self._lib.sqlite3_close_v2, kind='connection')
        self.path = None
        self.options = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __repr__(self) -> str:
        state = f'open {self.path!r}' if self.is_open else 'closed'
        return f'<Connection {state}>'

    @property
    def is_open(self) -> bool:
        return bool(self._db)

    @property
    def handle(self) -> ctypes.c_void_p:
        """Raw ``sqlite3*`` for preparing statements against this session.

        Only `Statement` should use it; the `Connection` keeps ownership.
        """
        return self._db.handle

    @property
    def library(self) -> ctypes.CDLL:
        """The loaded SQLite library serving this connection and its statements.
        """
        return self._lib

    def open(self, path: str, readonly: bool = False, create: bool = True) -> None:
        """Open or create the database file at `path`.

        Any previously open session is closed once the new one is open. On
        failure the previous session, if any, is left untouched.

        Args:
            path: Database file path, or ``':memory:'``.
            readonly: Open the database read-only.
            create: Create the file if it does not exist (ignored when
                `readonly` is set).

        Raises
            SqlError: The engine could not open the database.
        """
        if readonly:
            flags = SQLITE_OPEN_READONLY
        else:
            flags = SQLITE_OPEN_READWRITE
            if create:
                flags |= SQLITE_OPEN_CREATE

        with OwnedHandle(release=self._lib.sqlite3_close_v2, kind='connection') as local:
            rc = self._lib.sqlite3_open_v2(
                str(path).encode('utf-8'), ctypes.byref(local.handle), flags, None)
            if rc != SQLITE_OK:
                # the engine allocates a session even on failure; read its
                # message before the local owner releases it
                raise SqlError(rc, error_message(self._lib, local.handle) or _errstr(self._lib, rc))
            self._db.reset(local.detach())

        self.path = str(path)
        logger.debug(f'Opened connection to {self.path}')

    def create_in_memory(self) -> None:
        """Open a private in-memory database.
        """
        self.open(MEMORY_DATABASE)

    def close(self) -> None:
        """Close the session. Calling it again, or on an unopened connection,
        does nothing.

        Statements still alive keep the session as a zombie until they are
        finalized; the session is freed by the engine at that point.
        """
        if self._db:
            self._db.release()
            logger.debug(f'Closed connection to {self.path}')

    @requires_open
    def execute(self, sql: str) -> None:
        """Run one or more SQL statements without parameters or results.

        Raises
            SqlError: Any statement in `sql` failed.
        """
        rc = self._lib.sqlite3_exec(self._db.handle, sql.encode('utf-8'), None, None, None)
        if rc != SQLITE_OK:
            raise SqlError(rc, error_message(self._lib, self._db.handle))

    @requires_open
    def last_row_id(self) -> int:
        """Rowid of the most recent successful INSERT on this session (0 if none).
        """
        return self._lib.sqlite3_last_insert_rowid(self._db.handle)

    @requires_open
    def changes(self) -> int:
        """Rows modified by the most recent INSERT, UPDATE or DELETE.
        """
        return self._lib.sqlite3_changes(self._db.handle)

    @requires_open
    def busy_timeout(self, milliseconds: int) -> None:
        """Sleep-and-retry for up to `milliseconds` when a table is locked.
        """
        rc = self._lib.sqlite3_busy_timeout(self._db.handle, milliseconds)
        if rc != SQLITE_OK:
            raise SqlError(rc, error_message(self._lib, self._db.handle))

    @property
    @requires_open
    def in_transaction(self) -> bool:
        """True while an explicit transaction is open, as reported by the engine.
        """
        return self._lib.sqlite3_get_autocommit(self._db.handle) == 0

    @requires_open
    def statement_count(self) -> int:
        """Number of prepared statements on this session that are not finalized.
        """
        count = 0
        stmt = self._lib.sqlite3_next_stmt(self._db.handle, None)
        while stmt:
            count += 1
            stmt = self._lib.sqlite3_next_stmt(self._db.handle, stmt)
        return count

    def begin_transaction(self) -> None:
        self.execute('BEGIN')

    def commit_transaction(self) -> None:
        self.execute('COMMIT')

    def rollback_transaction(self) -> None:
        self.execute('ROLLBACK')

    def prepare(self, sql: str) -> Statement:
        """Compile `sql` into a new `Statement` bound to this connection.
        """
        stmt = Statement()
        stmt.prepare(self, sql)
        return stmt


def _errstr(lib, rc: int) -> str:
    msg = lib.sqlite3_errstr(rc)
    return msg.decode('utf-8', errors='replace') if msg else f'error {rc}'
