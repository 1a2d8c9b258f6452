"""Snapshot-based undo/redo history for a drawing surface."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from PIL import Image

from sketchmix.utils.image_utils import decode_png, encode_png

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """An immutable PNG snapshot of the surface.

    Attributes:
        data: PNG-encoded surface contents
        created_at: When the snapshot was taken
    """
    data: bytes
    created_at: datetime = field(default_factory=datetime.now)


class HistoryStack:
    """Undo/redo history built from full-surface snapshots.

    Snapshots are taken *before* each stroke begins and after each clear, so
    the entry at the current position is the state just prior to the most
    recent stroke. Entries past the current position form the redo branch and
    are discarded when a new snapshot is appended.

    Every operation is a no-op when no surface is attached.

    Attributes:
        surface: The surface to snapshot and restore, or None
        max_entries: Maximum number of snapshots kept; oldest are evicted
            first. None means unbounded.
    """

    def __init__(self, surface: Optional[Image.Image], max_entries: Optional[int] = 50):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")

        self.surface = surface
        self.max_entries = max_entries
        self.entries: List[HistoryEntry] = []
        self.position = -1

    def snapshot(self) -> None:
        """Record the current surface, dropping any redo branch."""
        if self.surface is None:
            return

        del self.entries[self.position + 1:]
        self.entries.append(HistoryEntry(data=encode_png(self.surface)))
        self.position = len(self.entries) - 1

        if self.max_entries is not None and len(self.entries) > self.max_entries:
            evicted = len(self.entries) - self.max_entries
            del self.entries[:evicted]
            self.position -= evicted
            logger.debug(f"History cap reached, evicted {evicted} oldest snapshot(s)")

    def undo(self) -> bool:
        """Step back one snapshot and restore it.

        Returns:
            True if the surface was restored, False if there was nothing to undo
        """
        if self.surface is None or not self.can_undo:
            return False

        self.position -= 1
        self._restore(self.entries[self.position])
        return True

    def redo(self) -> bool:
        """Step forward one snapshot and restore it.

        Returns:
            True if the surface was restored, False if there was nothing to redo
        """
        if self.surface is None or not self.can_redo:
            return False

        self.position += 1
        self._restore(self.entries[self.position])
        return True

    @property
    def can_undo(self) -> bool:
        return self.position > 0

    @property
    def can_redo(self) -> bool:
        return self.position < len(self.entries) - 1

    @property
    def redo_count(self) -> int:
        return len(self.entries) - 1 - self.position

    def get_count(self) -> int:
        """Get number of snapshots held."""
        return len(self.entries)

    def _restore(self, entry: HistoryEntry) -> None:
        snapshot = decode_png(entry.data)
        self.surface.paste((0, 0, 0, 0), (0, 0, *self.surface.size))
        self.surface.paste(snapshot, (0, 0))

    def __repr__(self) -> str:
        return (
            f"HistoryStack(entries={len(self.entries)}, "
            f"position={self.position}, max_entries={self.max_entries})"
        )
