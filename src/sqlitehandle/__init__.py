"""
Resource-safe access to the SQLite C library.

A `Connection` owns one SQLite session and a `Statement` owns one prepared
statement; both release their handle exactly once. Engine failures raise
`SqlError`; using a handle before it is opened or prepared raises
`ContractViolation`.

Module functions mirror the `Connection` methods:
- db.execute(cn, sql)
- db.prepare(cn, sql)
"""
__version__ = '0.1.0'

from sqlitehandle.connection import Connection
from sqlitehandle.exceptions import ContractViolation, DatabaseError, SqlError
from sqlitehandle.exceptions import result_name
from sqlitehandle.handle import OwnedHandle
from sqlitehandle.native import MEMORY_DATABASE, library_version
from sqlitehandle.options import ConnectionOptions, connect
from sqlitehandle.statement import Statement
from sqlitehandle.transaction import Transaction as transaction

ErrorSignal = SqlError


def execute(cn: Connection, sql: str) -> None:
    """Run SQL without parameters or results.
    """
    cn.execute(sql)


def prepare(cn: Connection, sql: str) -> Statement:
    """Compile SQL into a new prepared statement.
    """
    return cn.prepare(sql)


__all__ = [
    'Connection',
    'ConnectionOptions',
    'ContractViolation',
    'DatabaseError',
    'ErrorSignal',
    'MEMORY_DATABASE',
    'OwnedHandle',
    'SqlError',
    'Statement',
    'connect',
    'execute',
    'library_version',
    'prepare',
    'result_name',
    'transaction',
]
