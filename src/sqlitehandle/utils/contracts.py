"""
Precondition checks for handle-owning objects.

Using a `Connection` before it is opened, or a `Statement` before it is
prepared, is a programming error. The decorators here raise
`ContractViolation` for those cases instead of passing a null pointer to the
engine. They are explicit checks rather than ``assert`` statements, so they
stay active under ``python -O``.
"""
from functools import wraps

from sqlitehandle.exceptions import ContractViolation

__all__ = ['requires_open', 'requires_prepared']


def _requires(attribute, state):
    def decorator(func):
        @wraps(func)
        def inner(self, *args, **kwargs):
            if not getattr(self, attribute):
                raise ContractViolation(
                    f'{type(self).__name__}.{func.__name__}() requires {state} handle')
            return func(self, *args, **kwargs)
        return inner
    return decorator


requires_open = _requires('is_open', 'an open')
requires_open.__doc__ = """Guard a `Connection` method: the session must be open."""

requires_prepared = _requires('is_prepared', 'a prepared')
requires_prepared.__doc__ = """Guard a `Statement` method: the statement must be prepared."""
