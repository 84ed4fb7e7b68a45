"""
SQLite error types.

`SqlError` is the only recoverable error raised from engine calls.
`ContractViolation` marks programming errors (using an unopened connection
or an unprepared statement) and is not part of the `DatabaseError` family.
"""

__all__ = [
    'DatabaseError',
    'SqlError',
    'ContractViolation',
    'result_name',
]

RESULT_NAMES = {
    0: 'SQLITE_OK',
    1: 'SQLITE_ERROR',
    2: 'SQLITE_INTERNAL',
    3: 'SQLITE_PERM',
    4: 'SQLITE_ABORT',
    5: 'SQLITE_BUSY',
    6: 'SQLITE_LOCKED',
    7: 'SQLITE_NOMEM',
    8: 'SQLITE_READONLY',
    9: 'SQLITE_INTERRUPT',
    10: 'SQLITE_IOERR',
    11: 'SQLITE_CORRUPT',
    12: 'SQLITE_NOTFOUND',
    13: 'SQLITE_FULL',
    14: 'SQLITE_CANTOPEN',
    15: 'SQLITE_PROTOCOL',
    16: 'SQLITE_EMPTY',
    17: 'SQLITE_SCHEMA',
    18: 'SQLITE_TOOBIG',
    19: 'SQLITE_CONSTRAINT',
    20: 'SQLITE_MISMATCH',
    21: 'SQLITE_MISUSE',
    22: 'SQLITE_NOLFS',
    23: 'SQLITE_AUTH',
    24: 'SQLITE_FORMAT',
    25: 'SQLITE_RANGE',
    26: 'SQLITE_NOTADB',
    27: 'SQLITE_NOTICE',
    28: 'SQLITE_WARNING',
    100: 'SQLITE_ROW',
    101: 'SQLITE_DONE',
}


def result_name(code: int) -> str:
    """Symbolic name of the primary result code in `code`.

    Extended codes carry the primary code in their low byte, so
    ``SQLITE_CONSTRAINT_UNIQUE`` (2067) maps to ``SQLITE_CONSTRAINT``.
    """
    return RESULT_NAMES.get(code & 0xff, 'SQLITE_UNKNOWN')


class DatabaseError(Exception):
    """Base class for all sqlitehandle errors.
    """


class SqlError(DatabaseError):
    """An engine call returned a non-success status.

    Carries the status code returned by the failing call and the engine's
    error message captured at that moment.
    """

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message)

    @property
    def code(self) -> int:
        return self.args[0]

    @property
    def message(self) -> str:
        return self.args[1]

    @property
    def name(self) -> str:
        return result_name(self.code)

    def __str__(self) -> str:
        return f'{self.name} ({self.code}): {self.message}'


class ContractViolation(AssertionError):
    """A handle was used before it was opened or prepared.
    """
