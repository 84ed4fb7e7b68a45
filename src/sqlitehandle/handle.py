"""
Owned engine handles.

An `OwnedHandle` holds one raw pointer returned by the SQLite library together
with the function that releases it (``sqlite3_close_v2`` for sessions,
``sqlite3_finalize`` for statements). The release function runs exactly once
per adopted pointer, whichever way control leaves the owner.

Typical two-phase acquisition::

    with OwnedHandle(release=lib.sqlite3_finalize, kind='statement') as local:
        rc = lib.sqlite3_prepare_v2(db, sql, n, ctypes.byref(local.handle), None)
        if rc != SQLITE_OK:
            raise SqlError(rc, error_message(lib, db))  # local is released on exit
        owner.reset(local.detach())                 # ownership moves to owner
"""
import logging
from collections.abc import Callable
from ctypes import c_void_p
from typing import Any, Self

__all__ = ['OwnedHandle']

logger = logging.getLogger(__name__)


class OwnedHandle:
    """Exclusive owner of a raw engine pointer.

    Args:
        handle: Pointer to adopt. ``None`` creates an empty owner whose
            `handle` can be filled in place by an engine out-parameter.
        release: Callable that frees the pointer; its return value is only
            logged.
        kind: Label used in log messages.
    """

    def __init__(self, handle: c_void_p | int | None = None,
                 release: Callable[[c_void_p], Any] | None = None,
                 kind: str = 'handle') -> None:
        self._handle = _as_pointer(handle)
        self._release = release
        self.kind = kind

    @property
    def handle(self) -> c_void_p:
        """The owned pointer (a null pointer when empty)."""
        return self._handle

    def __bool__(self) -> bool:
        return self._handle.value is not None

    def __repr__(self) -> str:
        address = hex(self._handle.value) if self else 'null'
        return f'<OwnedHandle {self.kind} {address}>'

    def detach(self) -> c_void_p:
        """Give up ownership and return the pointer without releasing it.
        """
        handle, self._handle = self._handle, c_void_p()
        return handle

    def reset(self, handle: c_void_p | int | None = None) -> None:
        """Adopt `handle`, releasing the previously owned pointer first.
        """
        new = _as_pointer(handle)
        if new.value is not None and new.value == self._handle.value:
            return
        old = self.detach()
        self._handle = new
        if old.value is not None and self._release is not None:
            rc = self._release(old)
            logger.debug(f'Released {self.kind} {hex(old.value)} (rc={rc})')

    def release(self) -> None:
        """Release the owned pointer. Safe to call any number of times.
        """
        self.reset(None)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.release()

    def __del__(self) -> None:
        if '_handle' in self.__dict__ and self:
            self.release()


def _as_pointer(handle: c_void_p | int | None) -> c_void_p:
    if isinstance(handle, c_void_p):
        return handle
    return c_void_p(handle)
