"""
Connection options and the `connect()` factory.
"""
import logging
from dataclasses import dataclass, fields
from typing import Any

from sqlitehandle.connection import Connection
from sqlitehandle.native import MEMORY_DATABASE

from libb import ConfigOptions, load_options

__all__ = ['ConnectionOptions', 'connect']

logger = logging.getLogger(__name__)


@dataclass
class ConnectionOptions(ConfigOptions):
    """Options

    - database: file path, or ``':memory:'`` for a private in-memory database
    - readonly: open the database read-only (default: False)
    - create: create the file when missing (default: True)
    - timeout: busy timeout in milliseconds; 0 keeps the engine default
    - foreign_keys: enable foreign key enforcement after opening (default: False)
    - library: path of the SQLite shared library (default: located automatically)
    """
    database: str = None
    readonly: bool = False
    create: bool = True
    timeout: int = 0
    foreign_keys: bool = False
    library: str = None

    def __post_init__(self):
        if not self.database:
            raise ValueError('database is required (a file path or ":memory:")')
        if self.readonly and self.create:
            self.create = False
        if self.timeout < 0:
            raise ValueError('timeout must be zero or a positive number of milliseconds')

    @property
    def in_memory(self) -> bool:
        return self.database == MEMORY_DATABASE


@load_options(cls=ConnectionOptions)
def connect(options: ConnectionOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> Connection:
    """Open a `Connection` configured from options.

    Args:
        options: Can be:
                - ConnectionOptions object
                - Name of a setting on `config`
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading named settings)
        **kw: Additional keyword arguments to override options

    Returns
        An open Connection. If configuring it fails, it is closed before the
        error propagates.
    """
    if isinstance(options, ConnectionOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=ConnectionOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    logger.debug(f'Connecting with {options}')

    cn = Connection(library=options.library)
    cn.open(options.database, readonly=options.readonly, create=options.create)
    try:
        if options.timeout:
            cn.busy_timeout(options.timeout)
        if options.foreign_keys:
            cn.execute('PRAGMA foreign_keys = ON')
    except Exception:
        cn.close()
        raise

    cn.options = options
    return cn
