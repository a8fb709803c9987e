"""
Storage package for clpd.

Provides the local encrypted entry store.
"""

from clpd.database.store import EntryStore, StoreStats
from clpd.database.locking import ReadWriteLock

__all__ = [
    'EntryStore',
    'StoreStats',
    'ReadWriteLock',
]
