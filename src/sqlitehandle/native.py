"""
ctypes bindings to the SQLite C library.

Only the part of the C API used by `Connection` and `Statement` is declared.
Every function gets explicit ``argtypes``/``restype`` so handles are passed as
pointers and 64-bit integers are not truncated.
"""
import ctypes
import ctypes.util
import logging
import sys
from ctypes import POINTER, c_char_p, c_int, c_int64, c_void_p
from functools import lru_cache

__all__ = [
    'load_library',
    'library_version',
    'SQLITE_OK',
    'SQLITE_ROW',
    'SQLITE_DONE',
    'SQLITE_TRANSIENT',
    'MEMORY_DATABASE',
    'error_message',
]

logger = logging.getLogger(__name__)

SQLITE_OK = 0
SQLITE_ROW = 100
SQLITE_DONE = 101

SQLITE_OPEN_READONLY = 0x00000001
SQLITE_OPEN_READWRITE = 0x00000002
SQLITE_OPEN_CREATE = 0x00000004

# column types
SQLITE_INTEGER = 1
SQLITE_FLOAT = 2
SQLITE_TEXT = 3
SQLITE_BLOB = 4
SQLITE_NULL = 5

# destructor sentinel: the engine copies text/blob values before returning
SQLITE_TRANSIENT = c_void_p(-1)

MEMORY_DATABASE = ':memory:'

_SIGNATURES = {
    'sqlite3_libversion': ([], c_char_p),
    'sqlite3_open_v2': ([c_char_p, POINTER(c_void_p), c_int, c_char_p], c_int),
    'sqlite3_close_v2': ([c_void_p], c_int),
    'sqlite3_errmsg': ([c_void_p], c_char_p),
    'sqlite3_errstr': ([c_int], c_char_p),
    'sqlite3_exec': ([c_void_p, c_char_p, c_void_p, c_void_p, c_void_p], c_int),
    'sqlite3_last_insert_rowid': ([c_void_p], c_int64),
    'sqlite3_changes': ([c_void_p], c_int),
    'sqlite3_get_autocommit': ([c_void_p], c_int),
    'sqlite3_busy_timeout': ([c_void_p, c_int], c_int),
    'sqlite3_next_stmt': ([c_void_p, c_void_p], c_void_p),
    'sqlite3_prepare_v2': ([c_void_p, c_char_p, c_int, POINTER(c_void_p), c_void_p], c_int),
    'sqlite3_finalize': ([c_void_p], c_int),
    'sqlite3_db_handle': ([c_void_p], c_void_p),
    'sqlite3_sql': ([c_void_p], c_char_p),
    'sqlite3_bind_parameter_count': ([c_void_p], c_int),
    'sqlite3_bind_int': ([c_void_p, c_int, c_int], c_int),
    'sqlite3_bind_int64': ([c_void_p, c_int, c_int64], c_int),
    'sqlite3_bind_text': ([c_void_p, c_int, c_char_p, c_int, c_void_p], c_int),
    'sqlite3_bind_blob': ([c_void_p, c_int, c_char_p, c_int, c_void_p], c_int),
    'sqlite3_bind_null': ([c_void_p, c_int], c_int),
    'sqlite3_clear_bindings': ([c_void_p], c_int),
    'sqlite3_step': ([c_void_p], c_int),
    'sqlite3_reset': ([c_void_p], c_int),
    'sqlite3_column_count': ([c_void_p], c_int),
    'sqlite3_column_name': ([c_void_p, c_int], c_char_p),
    'sqlite3_column_type': ([c_void_p, c_int], c_int),
    'sqlite3_column_int': ([c_void_p, c_int], c_int),
    'sqlite3_column_int64': ([c_void_p, c_int], c_int64),
    'sqlite3_column_text': ([c_void_p, c_int], c_void_p),
    'sqlite3_column_blob': ([c_void_p, c_int], c_void_p),
    'sqlite3_column_bytes': ([c_void_p, c_int], c_int),
}


def _candidate_names() -> list[str]:
    names = []
    found = ctypes.util.find_library('sqlite3')
    if found:
        names.append(found)
    if sys.platform == 'win32':
        names.append('sqlite3.dll')
    elif sys.platform == 'darwin':
        names.append('libsqlite3.dylib')
    else:
        names.extend(['libsqlite3.so.0', 'libsqlite3.so'])
    return names


def _declare(lib: ctypes.CDLL) -> ctypes.CDLL:
    for name, (argtypes, restype) in _SIGNATURES.items():
        func = getattr(lib, name)
        func.argtypes = argtypes
        func.restype = restype
    return lib


@lru_cache(maxsize=None)
def load_library(path: str | None = None) -> ctypes.CDLL:
    """Load the SQLite shared library and declare its signatures.

    Args:
        path: Explicit library path. When omitted, the name reported by
            ``ctypes.util.find_library`` is tried first, then the platform's
            usual soname.

    Raises
        OSError: If no candidate library could be loaded.
    """
    candidates = [path] if path else _candidate_names()
    errors = []
    for name in candidates:
        try:
            lib = ctypes.CDLL(name)
        except OSError as e:
            errors.append(f'{name}: {e}')
            continue
        _declare(lib)
        logger.debug(f'Loaded SQLite {lib.sqlite3_libversion().decode()} from {name}')
        return lib
    raise OSError(f'Unable to load the SQLite library ({"; ".join(errors) or "no candidates"})')


def library_version() -> str:
    """Version string of the loaded SQLite library, e.g. ``'3.45.1'``."""
    return load_library().sqlite3_libversion().decode()


def error_message(lib: ctypes.CDLL, db: c_void_p) -> str:
    """Current error message of a session handle, read through `lib`.

    Must be read before the next engine call on `db`, which may overwrite the
    engine-owned buffer.
    """
    msg = lib.sqlite3_errmsg(db)
    return msg.decode('utf-8', errors='replace') if msg else ''
