import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from infra_integrations.clock import SteppingClock, to_epoch
from infra_integrations.errors import InvalidValueType, StoreError, StoreSaveFailed
from infra_integrations.metric import MetricSet, SourceType
from infra_integrations.persist import (
    DEFAULT_TTL,
    FileStore,
    InMemoryStore,
    StoredEntry,
    Storer,
    default_path,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock(instant: datetime):
    return lambda: instant


def test_in_memory_store_returns_none_for_missing_key():
    store = InMemoryStore(clock=fixed_clock(NOW))

    assert store.get("missing") is None


def test_in_memory_store_overwrites_value_and_timestamp_together():
    clock = SteppingClock(start=NOW)
    store = InMemoryStore(clock=clock)

    first = store.set("key", 1.0)
    second = store.set("key", 2.0)

    assert second - first == 1.0
    assert store.get("key") == StoredEntry(value=2.0, timestamp=second)
    assert len(store) == 1


def test_in_memory_store_delete_and_save_are_safe():
    store = InMemoryStore(clock=fixed_clock(NOW))
    store.set("key", 1.0)

    store.delete("key")
    store.delete("key")
    store.save()

    assert "key" not in store


def test_stores_satisfy_storer_protocol(tmp_path: Path):
    assert isinstance(InMemoryStore(), Storer)
    assert isinstance(FileStore(tmp_path / "store.json"), Storer)


def test_default_path_is_derived_from_integration_name(monkeypatch, tmp_path: Path):
    monkeypatch.setattr("tempfile.tempdir", str(tmp_path))

    assert default_path("com.example.redis") == tmp_path / "nr-integrations" / "com.example.redis.json"


def test_file_store_missing_file_starts_empty(tmp_path: Path):
    store = FileStore(tmp_path / "absent.json", clock=fixed_clock(NOW))

    assert len(store) == 0


def test_file_store_round_trip(tmp_path: Path):
    path = tmp_path / "nested" / "store.json"
    store = FileStore(path, clock=fixed_clock(NOW))
    store.set("bytes_sent", 1024.0)
    store.set("requests", 7.0)
    store.save()

    reloaded = FileStore(path, clock=fixed_clock(NOW + timedelta(hours=1)))

    assert reloaded.keys() == ["bytes_sent", "requests"]
    assert reloaded.get("bytes_sent") == StoredEntry(value=1024.0, timestamp=to_epoch(NOW))
    assert reloaded.get("requests") == StoredEntry(value=7.0, timestamp=to_epoch(NOW))


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_stores_refuse_non_finite_values(tmp_path: Path, value: float):
    for store in (InMemoryStore(clock=fixed_clock(NOW)), FileStore(tmp_path / "store.json", clock=fixed_clock(NOW))):
        with pytest.raises(StoreError, match="non-finite"):
            store.set("key", value)

        assert store.get("key") is None


def test_file_store_fed_by_metric_sets_always_reloads(tmp_path: Path):
    path = tmp_path / "store.json"
    store = FileStore(path, clock=SteppingClock(start=NOW))
    ms = MetricSet("NetworkSample", store)
    ms.set_metric("bytesSent", 10, SourceType.RATE)
    for bad in (float("inf"), float("nan"), 10**400):
        with pytest.raises(InvalidValueType):
            ms.set_metric("bytesReceived", bad, SourceType.DELTA)
    store.save()

    reloaded = FileStore(path, clock=fixed_clock(NOW))

    assert reloaded.keys() == ["bytesSent"]
    assert reloaded.get("bytesSent").value == 10.0


def test_file_store_writes_full_mapping_with_save_timestamp(tmp_path: Path):
    path = tmp_path / "store.json"
    store = FileStore(path, clock=fixed_clock(NOW))
    store.set("a", 1.0)
    store.save()
    store.delete("a")
    store.set("b", 2.0)
    store.save()

    document = json.loads(path.read_text(encoding="utf-8"))

    assert document["timestamp"] == to_epoch(NOW)
    assert set(document["entries"]) == {"b"}
    assert document["entries"]["b"] == {"value": 2.0, "timestamp": to_epoch(NOW)}
    assert [p.name for p in tmp_path.iterdir()] == ["store.json"]


def test_file_store_discards_expired_state(tmp_path: Path):
    path = tmp_path / "store.json"
    store = FileStore(path, clock=fixed_clock(NOW))
    store.set("key", 5.0)
    store.save()

    reloaded = FileStore(path, clock=fixed_clock(NOW + DEFAULT_TTL + timedelta(seconds=1)))

    assert reloaded.get("key") is None
    assert len(reloaded) == 0


def test_file_store_custom_ttl(tmp_path: Path):
    path = tmp_path / "store.json"
    store = FileStore(path, clock=fixed_clock(NOW), ttl=timedelta(minutes=5))
    store.set("key", 5.0)
    store.save()

    fresh = FileStore(path, clock=fixed_clock(NOW + timedelta(minutes=4)), ttl=timedelta(minutes=5))
    stale = FileStore(path, clock=fixed_clock(NOW + timedelta(minutes=6)), ttl=timedelta(minutes=5))

    assert fresh.get("key") is not None
    assert stale.get("key") is None


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "",
        "[]",
        json.dumps({"entries": {}}),
        json.dumps({"timestamp": 1, "entries": {"key": {"value": "abc", "timestamp": 1}}}),
        json.dumps({"timestamp": 1, "entries": ["key"]}),
    ],
)
def test_file_store_corrupt_or_incompatible_file_starts_empty(tmp_path: Path, content: str):
    path = tmp_path / "store.json"
    path.write_text(content, encoding="utf-8")

    store = FileStore(path, clock=fixed_clock(NOW))

    assert len(store) == 0
    store.set("key", 1.0)
    store.save()
    assert FileStore(path, clock=fixed_clock(NOW)).get("key") is not None


def test_file_store_save_failure_is_raised(tmp_path: Path):
    path = tmp_path / "store.json"
    path.mkdir()
    store = FileStore(path, clock=fixed_clock(NOW))
    store.set("key", 1.0)

    with pytest.raises(StoreSaveFailed):
        store.save()

    assert [p.name for p in tmp_path.iterdir()] == ["store.json"]


class RecordingLog:
    def __init__(self):
        self.events = []

    def debug(self, event, **fields):
        self.events.append(("debug", event))

    def warning(self, event, **fields):
        self.events.append(("warning", event))


def test_file_store_reports_to_the_given_log(tmp_path: Path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    log = RecordingLog()

    store = FileStore(path, clock=fixed_clock(NOW), log=log)
    store.save()

    assert log.events == [("warning", "store.load.corrupt"), ("debug", "store.save")]
