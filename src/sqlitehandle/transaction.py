"""
Transaction handling for a single connection.
"""
import logging
from typing import Any

from sqlitehandle.connection import Connection

__all__ = ['Transaction']

logger = logging.getLogger(__name__)


class Transaction:
    """Context manager running a block inside BEGIN ... COMMIT.

    The transaction is committed when the block finishes normally and rolled
    back when it raises; the exception is not suppressed. Nested transactions
    are not supported.

    Examples
        with Transaction(cn):
            cn.execute('DELETE FROM ...')
            cn.execute('UPDATE ...')
    """

    def __init__(self, cn: Connection) -> None:
        self.connection = cn

    def __enter__(self) -> Connection:
        if self.connection.in_transaction:
            raise RuntimeError('Nested transactions are not supported')

        self.connection.begin_transaction()
        logger.debug(f'Started transaction for connection {id(self.connection)}')

        return self.connection

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        if exc_type is not None:
            logger.warning('Rolling back the current transaction')
            # a failed COMMIT or a constraint error with ON CONFLICT ROLLBACK
            # may already have ended the transaction
            if self.connection.in_transaction:
                self.connection.rollback_transaction()
        else:
            self.connection.commit_transaction()
            logger.debug(f'Committed transaction for connection {id(self.connection)}')
