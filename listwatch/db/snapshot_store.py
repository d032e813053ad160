"""Snapshot store interface.

``load`` has three outcomes: a Snapshot, ``None`` when nothing was ever
saved for the list type, or SnapshotCorruptError when something was saved
but cannot be read back. ``save`` replaces the stored snapshot atomically.
"""

from abc import ABC, abstractmethod
from typing import Optional

from listwatch.models.schemas import Snapshot


class BaseSnapshotStore(ABC):
    """Persists the most recent snapshot per list type."""

    @abstractmethod
    async def load(self, list_type: str) -> Optional[Snapshot]:
        """Return the stored snapshot, or None if absent.

        Raises SnapshotCorruptError on unreadable content and StoreError on
        any other failure.
        """
        ...

    @abstractmethod
    async def save(self, list_type: str, snapshot: Snapshot) -> None:
        """Atomically replace the stored snapshot. Raises StoreError."""
        ...
