"""
Persistence adapter for SkillMap documents.

Wraps a key-value mapping (NiceGUI's browser-bound app.storage.user in the
app, a plain dict in tests) and stores one snapshot as JSON text under a
single key. Every canonical change overwrites it immediately; overlay-only
changes never reach this module.
"""

import logging
from typing import MutableMapping

from skillmap.errors import ImportFormatError
from skillmap.storage.snapshot import Snapshot, dumps, loads

logger = logging.getLogger(__name__)

STORAGE_KEY = "skillmap.snapshot"
EXPORT_FILENAME = "skillmap.json"


class PersistenceAdapter:
    """Loads and saves the document snapshot in a key-value store."""

    def __init__(self, storage: MutableMapping, key: str = STORAGE_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> Snapshot:
        """Return the stored snapshot, or the default single-root document."""
        text = self.storage.get(self.key)
        if not text:
            return Snapshot()
        try:
            return loads(text)
        except ImportFormatError as e:
            logger.warning(f"Stored snapshot unreadable, starting fresh: {e}")
            return Snapshot()

    def save(self, snapshot: Snapshot) -> None:
        self.storage[self.key] = dumps(snapshot)

    def capture(self, store, renderer) -> Snapshot:
        """Snapshot of the store's canonical set plus the renderer's viewport."""
        zoom, pan = renderer.viewport
        return Snapshot(nodes=store.nodes, edges=store.edges, zoom=zoom, pan=pan)

    def save_state(self, store, renderer) -> None:
        self.save(self.capture(store, renderer))

    def export_bytes(self, snapshot: Snapshot) -> bytes:
        return dumps(snapshot).encode("utf-8")

    def import_bytes(self, data: bytes) -> Snapshot:
        """
        Parse an uploaded document.

        Raises:
            ImportFormatError: data is not UTF-8 JSON
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ImportFormatError(f"Not a text document: {e}")
        return loads(text)

    @staticmethod
    def apply(snapshot: Snapshot, store, renderer) -> None:
        """Replace the canonical set and viewport wholesale with a parsed snapshot."""
        store.replace(snapshot.nodes, snapshot.edges)
        renderer.set_viewport(snapshot.zoom, snapshot.pan)
        logger.info(f"Loaded document with {len(snapshot.nodes)} nodes and {len(snapshot.edges)} edges")
