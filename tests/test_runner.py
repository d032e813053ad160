"""Tests for run orchestration and its partial-failure policy."""

import pytest

from listwatch.errors import SnapshotCorruptError, StoreError
from listwatch.models.schemas import Snapshot
from listwatch.notify.discord import DiscordWebhookNotifier
from listwatch.runner import ListWatcher


def make_watcher(source, store, notifier):
    return ListWatcher(source, store, notifier)


@pytest.mark.asyncio
async def test_first_run_saves_baseline_without_notifying(source, store, notifier):
    source.lists["main"] = ["A", "B"]
    results = await make_watcher(source, store, notifier).run(["main"])

    assert results["main"].status == "baseline"
    assert notifier.sent == []
    assert store.snapshots["main"].keys() == ["A", "B"]


@pytest.mark.asyncio
async def test_change_is_notified_and_persisted(source, store, notifier):
    store.snapshots["main"] = Snapshot.from_keys("main", ["A", "B", "C", "D"])
    source.lists["main"] = ["A", "C", "D", "B"]

    results = await make_watcher(source, store, notifier).run(["main"])

    assert results["main"].status == "notified"
    assert results["main"].summary.moved_count == 1
    assert notifier.sent == [("main", "B moved down from #2 to #4.")]
    assert store.snapshots["main"].keys() == ["A", "C", "D", "B"]


@pytest.mark.asyncio
async def test_second_run_without_change_is_idempotent(source, store, notifier):
    watcher = make_watcher(source, store, notifier)
    store.snapshots["main"] = Snapshot.from_keys("main", ["a", "b"])

    await watcher.run(["main"])
    assert len(notifier.sent) == 1
    persisted = store.snapshots["main"]

    results = await watcher.run(["main"])
    assert results["main"].status == "unchanged"
    assert results["main"].summary.added_count == 0
    assert len(notifier.sent) == 1
    assert store.snapshots["main"].keys() == persisted.keys()
    assert [e.display_name for e in store.snapshots["main"].entities] == \
        [e.display_name for e in persisted.entities]


@pytest.mark.asyncio
async def test_unchanged_still_persists(source, store, notifier):
    store.snapshots["main"] = Snapshot.from_keys("main", ["a", "b", "c"])
    await make_watcher(source, store, notifier).run(["main"])
    assert notifier.sent == []
    assert store.save_count == 1


@pytest.mark.asyncio
async def test_delivery_failure_still_persists(source, store, failing_notifier):
    store.snapshots["main"] = Snapshot.from_keys("main", ["a", "b"])

    results = await make_watcher(source, store, failing_notifier).run(["main"])

    assert results["main"].status == "delivery_failed"
    assert results["main"].notified is False
    assert store.snapshots["main"].keys() == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_source_failure_skips_only_that_list(source, store, notifier):
    source.lists["bonus"] = ["x"]
    source.failing_lists.add("main")
    store.snapshots["main"] = Snapshot.from_keys("main", ["a"])

    results = await make_watcher(source, store, notifier).run(["main", "bonus"])

    assert results["main"].status == "source_failed"
    assert results["bonus"].status == "baseline"
    assert store.snapshots["main"].keys() == ["a"]
    assert store.snapshots["bonus"].keys() == ["x"]


@pytest.mark.asyncio
async def test_corrupt_store_takes_baseline_path(source, store, notifier, caplog):
    store.load_error = SnapshotCorruptError("bad json", "main")

    results = await make_watcher(source, store, notifier).run(["main"])

    assert results["main"].status == "baseline"
    assert results["main"].error == "bad json"
    assert notifier.sent == []
    assert "corrupt" in caplog.text


@pytest.mark.asyncio
async def test_load_error_takes_baseline_path(source, store, notifier):
    store.load_error = StoreError("disk unavailable", "main")
    results = await make_watcher(source, store, notifier).run(["main"])
    assert results["main"].status == "baseline"
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_save_failure_after_notify_does_not_resend(source, store, notifier, caplog):
    store.snapshots["main"] = Snapshot.from_keys("main", ["a", "b"])
    store.save_error = StoreError("read-only filesystem", "main")

    results = await make_watcher(source, store, notifier).run(["main"])

    assert results["main"].status == "store_failed"
    assert results["main"].notified is True
    assert len(notifier.sent) == 1
    assert any(r.levelname == "CRITICAL" for r in caplog.records)


@pytest.mark.asyncio
async def test_unexpected_error_does_not_stop_other_lists(source, store, notifier):
    class ExplodingStore(type(store)):
        async def load(self, list_type):
            if list_type == "main":
                raise RuntimeError("boom")
            return await super().load(list_type)

    exploding = ExplodingStore()
    source.lists["bonus"] = ["x"]

    results = await make_watcher(source, exploding, notifier).run(["main", "bonus"])

    assert results["main"].status == "failed"
    assert "boom" in results["main"].error
    assert results["bonus"].status == "baseline"


@pytest.mark.asyncio
async def test_insertion_reports_only_added(source, store, notifier):
    store.snapshots["main"] = Snapshot.from_keys("main", ["A", "B", "C"])
    source.lists["main"] = ["A", "X", "B", "C"]

    await make_watcher(source, store, notifier).run(["main"])

    assert notifier.sent == [("main", "X added to the list at #2.")]


@pytest.mark.asyncio
async def test_unexpected_notifier_error_still_persists(source, store, notifier, caplog):
    class BrokenNotifier(type(notifier)):
        async def send(self, list_type, text):
            raise KeyError("list")

    store.snapshots["main"] = Snapshot.from_keys("main", ["a", "b"])

    results = await make_watcher(source, store, BrokenNotifier()).run(["main"])

    assert results["main"].status == "delivery_failed"
    assert results["main"].notified is False
    assert store.snapshots["main"].keys() == ["a", "b", "c"]
    assert "raised unexpectedly" in caplog.text


@pytest.mark.asyncio
async def test_malformed_webhook_url_still_persists(source, store):
    store.snapshots["main"] = Snapshot.from_keys("main", ["a", "b"])
    webhook = DiscordWebhookNotifier("https://exa mple.com:notaport/hook", retry_attempts=1)

    results = await make_watcher(source, store, webhook).run(["main"])
    await webhook.aclose()

    assert results["main"].status == "delivery_failed"
    assert store.snapshots["main"].keys() == ["a", "b", "c"]
