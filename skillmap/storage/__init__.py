"""
Document persistence for SkillMap.

- Snapshot: canonical nodes/edges plus viewport
- PersistenceAdapter: browser key-value store and file import/export
"""

from skillmap.storage.snapshot import Snapshot, dumps, loads, from_document, to_document
from skillmap.storage.persistence import PersistenceAdapter, STORAGE_KEY, EXPORT_FILENAME

__all__ = [
    'Snapshot',
    'PersistenceAdapter',
    'dumps',
    'loads',
    'from_document',
    'to_document',
    'STORAGE_KEY',
    'EXPORT_FILENAME',
]
