import json
import os

import pytest

from attendance_server.repositories import COLLECTIONS, RecordStore


def test_initialize_seeds_every_collection(tmp_path):
    data_dir = tmp_path / "nested" / "data"
    store = RecordStore(str(data_dir))

    store.initialize()

    for collection in COLLECTIONS:
        path = data_dir / f"{collection}.json"
        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == []


def test_initialize_keeps_existing_files(store):
    store.save("devices", [{"SN": "KEEP"}])

    store.initialize()

    assert store.load("devices") == [{"SN": "KEEP"}]


def test_load_missing_file_returns_empty(tmp_path):
    store = RecordStore(str(tmp_path))
    assert store.load("logs") == []


@pytest.mark.parametrize("content", ["", "   \n", "{not json", '{"SN": "A"}', "42"])
def test_load_unusable_content_returns_empty(store, content):
    with open(store.path_for("users"), "w", encoding="utf-8") as handle:
        handle.write(content)

    assert store.load("users") == []


def test_save_then_load_preserves_order_and_fields(store):
    records = [
        {"enrollid": "2", "timestamp": "2025-01-01T08:00:00Z", "temp": 36.5},
        {"enrollid": "1", "timestamp": "2025-01-01T07:00:00Z", "image": "aGVsbG8="},
        {"enrollid": "3", "timestamp": "2025-01-01T09:00:00Z", "nested": {"a": [1, 2]}, "name": "Nguyễn"},
    ]

    store.save("logs", records)

    assert store.load("logs") == records


def test_save_is_pretty_printed_and_leaves_no_temp_file(store):
    store.save("devices", [{"SN": "A1"}])

    path = store.path_for("devices")
    with open(path, encoding="utf-8") as handle:
        assert "\n  " in handle.read()
    assert not os.path.exists(f"{path}.tmp")


def test_save_failure_propagates_and_keeps_previous_file(store):
    store.save("devices", [{"SN": "A1"}])

    with pytest.raises(TypeError):
        store.save("devices", [{"SN": "A2", "bad": object()}])

    assert store.load("devices") == [{"SN": "A1"}]
    assert not os.path.exists(f"{store.path_for('devices')}.tmp")


def test_unknown_collection_is_rejected(store):
    with pytest.raises(ValueError):
        store.load("doors")
    with pytest.raises(ValueError):
        with store.locked("doors"):
            pass


def test_locked_is_per_collection(store):
    with store.locked("devices"):
        # a different collection is not blocked
        with store.locked("logs"):
            store.save("logs", [{"enrollid": "1"}])

    assert store.load("logs") == [{"enrollid": "1"}]
