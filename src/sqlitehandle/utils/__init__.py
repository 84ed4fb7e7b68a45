from sqlitehandle.utils.contracts import requires_open, requires_prepared

__all__ = ['requires_open', 'requires_prepared']
