"""
SQLite prepared-statement handle.

A `Statement` exclusively owns one ``sqlite3_stmt*`` and keeps a plain,
non-owning reference to the `Connection` it was prepared against. The
connection must stay open for as long as the statement is in use.

Parameter positions are 0-based in this API and translated to SQLite's
1-based numbering inside the bind methods. Column positions are 0-based,
as in SQLite.

Lifecycle::

    stmt = Statement()
    stmt.prepare(cn, 'INSERT INTO t VALUES(?, ?)')
    for a, b in rows:
        stmt.bind(0, a)
        stmt.bind(1, b)
        stmt.step()
        stmt.reset()
    stmt.finalize()

Column getters are valid only while the last `step` returned True, and only
until the next `step` or `reset`.
"""
import ctypes
import logging
from typing import TYPE_CHECKING, Any, Self

from sqlitehandle.exceptions import ContractViolation, SqlError
from sqlitehandle.handle import OwnedHandle
from sqlitehandle.native import SQLITE_DONE, SQLITE_NULL, SQLITE_OK
from sqlitehandle.native import SQLITE_ROW, SQLITE_TRANSIENT, error_message
from sqlitehandle.utils.contracts import requires_prepared

if TYPE_CHECKING:
    from sqlitehandle.connection import Connection

__all__ = ['Statement']

logger = logging.getLogger(__name__)

INT32_MIN, INT32_MAX = -2**31, 2**31 - 1
INT64_MIN, INT64_MAX = -2**63, 2**63 - 1


class Statement:
    """Owner of one compiled SQL statement.

    Args:
        connection: When given together with `sql`, the statement is prepared
            immediately.
        sql: SQL text to compile.
    """

    def __init__(self, connection: 'Connection | None' = None, sql: str | None = None) -> None:
        self._lib = None
        self._stmt = OwnedHandle(kind='statement')
        self.connection = None
        if connection is not None and sql is not None:
            self.prepare(connection, sql)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.finalize()

    def __repr__(self) -> str:
        if not self.is_prepared:
            return '<Statement unprepared>'
        return f'<Statement {self.sql!r}>'

    @property
    def is_prepared(self) -> bool:
        return bool(self._stmt)

    def prepare(self, connection: 'Connection', sql: str) -> None:
        """Compile `sql` against the open session of `connection`.

        A statement that is already prepared is finalized first, so a failed
        re-prepare leaves it unprepared and detached from any connection. The
        statement uses the library of `connection`.

        Raises
            ContractViolation: `connection` is not open.
            SqlError: The SQL does not compile.
            ValueError: `sql` holds no statement, only whitespace or comments.
        """
        if not connection.is_open:
            raise ContractViolation('Statement.prepare() requires an open connection')
        self.finalize()
        self.connection = None

        self._lib = lib = connection.library
        self._stmt = OwnedHandle(release=lib.sqlite3_finalize, kind='statement')
        db = connection.handle
        encoded = sql.encode('utf-8')
        with OwnedHandle(release=lib.sqlite3_finalize, kind='statement') as local:
            rc = lib.sqlite3_prepare_v2(
                db, encoded, len(encoded), ctypes.byref(local.handle), None)
            if rc != SQLITE_OK:
                # compile errors are reported on the session, not the statement
                raise SqlError(rc, error_message(lib, db))
            if not local:
                raise ValueError(f'No SQL statement to prepare in {sql!r}')
            self._stmt.reset(local.detach())

        self.connection = connection
        logger.debug(f'Prepared statement: {sql}')

    def finalize(self) -> None:
        """Release the compiled statement. Safe to call any number of times.
        """
        if self._stmt:
            self._stmt.release()
            logger.debug('Finalized statement')

    close = finalize

    def _check(self, rc: int) -> None:
        if rc != SQLITE_OK:
            db = self._lib.sqlite3_db_handle(self._stmt.handle)
            raise SqlError(rc, error_message(self._lib, db))

    @property
    @requires_prepared
    def sql(self) -> str:
        """SQL text the statement was compiled from.
        """
        return self._lib.sqlite3_sql(self._stmt.handle).decode('utf-8')

    @property
    @requires_prepared
    def parameter_count(self) -> int:
        return self._lib.sqlite3_bind_parameter_count(self._stmt.handle)

    @property
    @requires_prepared
    def column_count(self) -> int:
        return self._lib.sqlite3_column_count(self._stmt.handle)

    # Binding

    def bind(self, index: int, value: int | str | bytes | bytearray | memoryview | None) -> None:
        """Bind `value` to the 0-based parameter `index`.

        ``int`` values use a 32-bit binding when they fit and a 64-bit one
        otherwise; ``str`` binds UTF-8 text, bytes-like values bind a blob, and
        ``None`` binds SQL NULL. Text and blobs are copied by the engine.

        Raises
            ContractViolation: The statement is not prepared.
            TypeError: `value` has an unsupported type.
            OverflowError: An ``int`` does not fit in 64 bits.
            SqlError: The engine rejected the binding, e.g. `index` is out of
                range.
        """
        if value is None:
            self.bind_null(index)
        elif isinstance(value, int):
            if INT32_MIN <= value <= INT32_MAX:
                self.bind_int(index, value)
            else:
                self.bind_int64(index, value)
        elif isinstance(value, str):
            self.bind_text(index, value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            self.bind_blob(index, value)
        else:
            raise TypeError(f'Unsupported parameter type {type(value).__name__} at index {index}')

    def bind_all(self, *values: Any) -> None:
        """Bind `values` to parameters 0, 1, ... in order.
        """
        for index, value in enumerate(values):
            self.bind(index, value)

    @requires_prepared
    def bind_int(self, index: int, value: int) -> None:
        if not INT32_MIN <= value <= INT32_MAX:
            raise OverflowError(f'{value} does not fit in a 32-bit integer')
        self._check(self._lib.sqlite3_bind_int(self._stmt.handle, index + 1, value))

    @requires_prepared
    def bind_int64(self, index: int, value: int) -> None:
        if not INT64_MIN <= value <= INT64_MAX:
            raise OverflowError(f'{value} does not fit in a 64-bit integer')
        self._check(self._lib.sqlite3_bind_int64(self._stmt.handle, index + 1, value))

    @requires_prepared
    def bind_text(self, index: int, value: str) -> None:
        encoded = value.encode('utf-8')
        self._check(self._lib.sqlite3_bind_text(
            self._stmt.handle, index + 1, encoded, len(encoded), SQLITE_TRANSIENT))

    @requires_prepared
    def bind_blob(self, index: int, value: bytes | bytearray | memoryview) -> None:
        data = bytes(value)
        self._check(self._lib.sqlite3_bind_blob(
            self._stmt.handle, index + 1, data, len(data), SQLITE_TRANSIENT))

    @requires_prepared
    def bind_null(self, index: int) -> None:
        self._check(self._lib.sqlite3_bind_null(self._stmt.handle, index + 1))

    @requires_prepared
    def clear_bindings(self) -> None:
        """Set every parameter back to NULL.
        """
        self._check(self._lib.sqlite3_clear_bindings(self._stmt.handle))

    # Execution

    @requires_prepared
    def step(self) -> bool:
        """Advance to the next result row.

        Returns
            True when a row is available, False when the statement has run to
            completion. Stepping again after False requires `reset` first.

        Raises
            SqlError: Execution failed.
        """
        rc = self._lib.sqlite3_step(self._stmt.handle)
        if rc == SQLITE_ROW:
            return True
        if rc == SQLITE_DONE:
            return False
        raise SqlError(rc, error_message(self._lib, self._lib.sqlite3_db_handle(self._stmt.handle)))

    @requires_prepared
    def reset(self) -> None:
        """Rewind to the state right after `prepare`. Bindings are kept.

        Raises
            SqlError: The engine reported an error; after a failed `step` this
                repeats that step's error.
        """
        self._check(self._lib.sqlite3_reset(self._stmt.handle))

    # Columns

    @requires_prepared
    def column_name(self, col: int) -> str:
        name = self._lib.sqlite3_column_name(self._stmt.handle, col)
        return name.decode('utf-8') if name is not None else ''

    @requires_prepared
    def column_type(self, col: int) -> int:
        """Storage class of column `col` in the current row (``SQLITE_INTEGER``
        ... ``SQLITE_NULL`` from `sqlitehandle.native`).
        """
        return self._lib.sqlite3_column_type(self._stmt.handle, col)

    def is_null(self, col: int) -> bool:
        """True when column `col` of the current row is SQL NULL.

        `get_string` and `get_blob` return an empty value for NULL; use this
        to tell the two apart.
        """
        return self.column_type(col) == SQLITE_NULL

    @requires_prepared
    def get_int(self, col: int) -> int:
        return self._lib.sqlite3_column_int(self._stmt.handle, col)

    @requires_prepared
    def get_int64(self, col: int) -> int:
        return self._lib.sqlite3_column_int64(self._stmt.handle, col)

    @requires_prepared
    def get_string(self, col: int) -> str:
        """Column `col` as text; ``''`` for NULL.

        Bytes that are not valid UTF-8, as another writer may store, are
        replaced with U+FFFD rather than raising. Use `get_blob` for the raw
        bytes.
        """
        ptr = self._lib.sqlite3_column_text(self._stmt.handle, col)
        if not ptr:
            return ''
        size = self._lib.sqlite3_column_bytes(self._stmt.handle, col)
        return ctypes.string_at(ptr, size).decode('utf-8', errors='replace')

    @requires_prepared
    def get_blob(self, col: int) -> bytes:
        """Column `col` as bytes; ``b''`` for NULL or an empty blob.

        The length comes from the engine, so embedded zero bytes are kept.
        """
        ptr = self._lib.sqlite3_column_blob(self._stmt.handle, col)
        if not ptr:
            return b''
        size = self._lib.sqlite3_column_bytes(self._stmt.handle, col)
        return ctypes.string_at(ptr, size)

