"""Shared fakes for list sources, stores and notifiers."""

from typing import Dict, List, Optional, Set

import pytest

from listwatch.db.snapshot_store import BaseSnapshotStore
from listwatch.errors import DeliveryError, MetadataUnavailable, SourceUnavailable, StoreError
from listwatch.models.schemas import EntityMetadata, Snapshot
from listwatch.notify.base_notifier import BaseNotifier
from listwatch.scraper.base_strategy import BaseListSource


class FakeSource(BaseListSource):
    def __init__(self, lists: Dict[str, List[str]], names: Optional[Dict[str, str]] = None):
        super().__init__({"source": "fake"})
        self.lists = lists
        self.names = names or {}
        self.failing_lists: Set[str] = set()
        self.failing_keys: Set[str] = set()
        self.metadata_calls: List[str] = []

    async def get_ordered_keys(self, list_type):
        if list_type in self.failing_lists or list_type not in self.lists:
            raise SourceUnavailable(f"{list_type} unavailable", list_type)
        return list(self.lists[list_type])

    async def get_entity_metadata(self, list_type, key):
        self.metadata_calls.append(key)
        if key in self.failing_keys:
            raise MetadataUnavailable(f"{key} unavailable", list_type, key)
        return EntityMetadata(display_name=self.names.get(key))


class MemoryStore(BaseSnapshotStore):
    def __init__(self):
        self.snapshots: Dict[str, Snapshot] = {}
        self.save_count = 0
        self.load_error: Optional[StoreError] = None
        self.save_error: Optional[StoreError] = None

    async def load(self, list_type):
        if self.load_error:
            raise self.load_error
        return self.snapshots.get(list_type)

    async def save(self, list_type, snapshot):
        if self.save_error:
            raise self.save_error
        self.save_count += 1
        self.snapshots[list_type] = snapshot


class RecordingNotifier(BaseNotifier):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[tuple] = []

    @property
    def channel_name(self):
        return "recording"

    async def send(self, list_type, text):
        if self.fail:
            raise DeliveryError("webhook down", list_type)
        self.sent.append((list_type, text))


@pytest.fixture
def source():
    return FakeSource({"main": ["a", "b", "c"]}, names={"a": "Alpha", "b": "Bravo", "c": "Charlie"})


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)
