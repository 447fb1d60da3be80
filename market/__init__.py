"""Market data stores.

This module provides:
- SnapshotStore: the current listings per (item, world), replaced wholesale
  on every accepted upload
- HistoryStore: the append-only sale log per (item, world)

Snapshots are last-write-wins while history only grows. Concurrent snapshot
replacements for the same pair are not versioned or merged; whichever write
lands last is what readers see.
"""

from .models import City, Materia, Listing, HistoryEntry
from .records import now_ms, record_key
from .snapshots import SnapshotStore
from .history import HistoryStore, DEFAULT_MAX_ENTRIES

__all__ = [
    'SnapshotStore', 'HistoryStore', 'DEFAULT_MAX_ENTRIES',
    'City', 'Materia', 'Listing', 'HistoryEntry',
    'now_ms', 'record_key',
]
