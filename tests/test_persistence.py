import json

import pytest

from shastrapath_tool import state as actions
from shastrapath_tool.errors import WorkbenchDataError
from shastrapath_tool.models import CropRegion, ImageRecord, WorkbenchState
from shastrapath_tool.persistence import STATE_KEY, SnapshotStore, state_from_dict, state_to_dict
from shastrapath_tool.state import reduce


def _populated_state():
    state = WorkbenchState()
    for action in (
        actions.AddRow(),
        actions.UpdateRow(row_id=1, field="primary_text", value="पाठ one"),
        actions.AddRow(),
        actions.UpdateRow(row_id=2, field="remark_a", value="RC=12"),
        actions.AddImage(
            row_id=2,
            image=ImageRecord(
                image_id="img-1",
                filename="a.png",
                mime="image/png",
                original_data=b"\x89PNG-original",
                cropped_data=b"cropped",
                crop_region=CropRegion(1, 2, 3, 4, unit="px"),
            ),
        ),
        actions.AddSection(name="Notes"),
        actions.AddTable(name="Extra"),
    ):
        state = reduce(state, action)
    return state


def test_state_round_trips_through_json():
    state = _populated_state()
    restored = state_from_dict(json.loads(json.dumps(state_to_dict(state))))
    assert restored == state


def test_store_round_trip(tmp_path):
    store = SnapshotStore(tmp_path / "nested" / "store.json")
    state = _populated_state()
    assert store.save_state(state)
    assert SnapshotStore(store.path).load_state() == state
    assert STATE_KEY in json.loads(store.path.read_text(encoding="utf-8"))


def test_store_keeps_other_keys(tmp_path):
    store = SnapshotStore(tmp_path / "store.json")
    assert store.set("theme", "dark")
    assert store.save_state(WorkbenchState())
    assert store.get("theme") == "dark"


def test_missing_store_loads_nothing(tmp_path):
    assert SnapshotStore(tmp_path / "absent.json").load_state() is None


def test_quota_failure_keeps_previous_snapshot(tmp_path, caplog):
    path = tmp_path / "store.json"
    assert SnapshotStore(path).save_state(WorkbenchState())
    previous = path.read_text(encoding="utf-8")

    small = SnapshotStore(path, max_bytes=len(previous.encode("utf-8")) + 10)
    assert not small.save_state(_populated_state())
    assert path.read_text(encoding="utf-8") == previous
    assert "exceeds quota" in caplog.text
    assert list(tmp_path.glob("*.tmp")) == []


def test_corrupt_store_is_ignored(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    assert SnapshotStore(path).load_state() is None


def test_unusable_snapshot_is_ignored(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({STATE_KEY: json.dumps({"version": 2, "sections": "nope"})}), encoding="utf-8")
    assert SnapshotStore(path).load_state() is None


def test_current_rows_missing_fields_are_rejected():
    payload = {"version": 2, "sections": [{"name": "S", "tables": [{"name": "T", "rows": [{"id": 1}]}]}]}
    with pytest.raises(WorkbenchDataError):
        state_from_dict(payload)


def test_duplicate_row_ids_are_rejected():
    row = {
        "id": 1,
        "classification": "स्व",
        "primaryText": "",
        "headingAccumulator": "",
        "pointerAccumulator": "",
        "remarkA": "",
        "remarkB": "",
    }
    payload = {"version": 2, "sections": [{"name": "S", "tables": [{"name": "T", "rows": [row, dict(row)]}]}]}
    with pytest.raises(WorkbenchDataError):
        state_from_dict(payload)


def test_legacy_column_rows_are_migrated():
    payload = {
        "sections": [
            {
                "name": "Old",
                "tables": [
                    {
                        "name": "Sheet A",
                        "selectedRowIndex": 1,
                        "rows": [
                            {"id": 1, "col2": "", "col3": "G\n1", "col4": "text", "pointers": "(क्र.-1)"},
                            {"id": 1, "col2": "व्यु", "col4": "dup", "col5": "MTN", "col6": "inner"},
                        ],
                        "images": {"1": [{"originalImageData": "data:image/png;base64,aGVsbG8="}]},
                    }
                ],
            }
        ]
    }
    state = state_from_dict(payload)
    section = state.sections[0]
    assert section.name == "Old"
    table = section.tables[0]
    first, second = table.rows
    assert first.row_id == 1
    assert first.classification == "स्व"
    assert first.heading_accumulator == "G\n1"
    assert first.primary_text == "text"
    assert first.pointer_accumulator == "(क्र.-1)"
    assert second.row_id != first.row_id
    assert (second.classification, second.remark_a, second.remark_b) == ("व्यु", "MTN", "inner")
    assert table.selected_row_id == second.row_id
    assert table.next_row_id > second.row_id
    (image,) = table.images[second.row_id]
    assert image.original_data == b"hello"


def test_snapshot_without_sections_is_rejected():
    with pytest.raises(WorkbenchDataError):
        state_from_dict({"version": 2})
