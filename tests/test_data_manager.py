import io

import pytest
from PIL import Image

from shastrapath_tool import WorkbenchDataManager, WorkbenchInputError
from shastrapath_tool import state as actions
from shastrapath_tool.models import CropRegion, ParsedDocument, Section
from shastrapath_tool.persistence import SnapshotStore


def _png(width=40, height=20):
    out = io.BytesIO()
    Image.new("RGB", (width, height), "red").save(out, format="PNG")
    return out.getvalue()


def _document():
    sections = (
        Section(heading="Gita", subheading="2", body="verse one<br/>verse two (क्र.-1) See Code 9"),
        Section(heading="Upanishad", subheading="7", body="mantra (क्र.-2)"),
    )
    return ParsedDocument(display_name="notes.docx", dialect="A", sections=sections)


def test_undo_and_redo_are_inverse():
    manager = WorkbenchDataManager()
    manager.dispatch(actions.AddRow())
    before = manager.state
    manager.dispatch(actions.UpdateRow(row_id=1, field="primary_text", value="edited"))
    after = manager.state

    assert manager.undo()
    assert manager.state == before
    assert manager.redo()
    assert manager.state == after
    assert not manager.can_redo


def test_new_action_clears_redo_stack():
    manager = WorkbenchDataManager()
    manager.dispatch(actions.AddRow())
    manager.undo()
    assert manager.can_redo
    manager.dispatch(actions.AddTable())
    assert not manager.can_redo


def test_selection_changes_are_not_undoable():
    manager = WorkbenchDataManager()
    manager.dispatch(actions.AddRow())
    manager.dispatch(actions.AddRow())
    manager.dispatch(actions.SelectRow(row_id=1))
    manager.undo()
    assert [r.row_id for r in manager.active_table.rows] == [1]


def test_unchanged_state_is_not_recorded():
    manager = WorkbenchDataManager()
    manager.dispatch(actions.DeleteRow(row_id=7))
    assert not manager.can_undo


def test_undo_keeps_loaded_documents():
    manager = WorkbenchDataManager()
    manager.dispatch(actions.AddRow())
    manager.dispatch(actions.AddDocument(document=_document()))
    manager.undo()
    assert len(manager.state.documents) == 1
    assert manager.active_table.rows == ()


def test_copy_from_section_uses_selection_or_body():
    manager = WorkbenchDataManager()
    manager.dispatch(actions.AddDocument(document=_document()))
    manager.dispatch(actions.AddRow())

    manager.copy_from_section(0, 0)
    row = manager.selected_row
    assert row.primary_text == "verse one\nverse two"
    assert row.pointer_accumulator == "(क्र.-1)"
    assert row.heading_accumulator == "Gita\n2"

    manager.copy_from_section(0, 1, "mantra (क्र.-2)")
    row = manager.selected_row
    assert row.primary_text.endswith("............\nmantra")
    assert row.heading_accumulator == "Gita\n2\n\nUpanishad\n7"


def test_copy_from_missing_section_is_ignored():
    manager = WorkbenchDataManager()
    manager.dispatch(actions.AddRow())
    manager.copy_from_section(3, 0)
    assert manager.selected_row.primary_text == ""


def test_listeners_see_every_commit():
    seen = []
    manager = WorkbenchDataManager()
    manager.subscribe(seen.append)
    manager.dispatch(actions.AddRow())
    manager.undo()
    assert len(seen) == 2


def test_changes_are_saved_and_reloaded(tmp_path):
    store = SnapshotStore(tmp_path / "snapshot.json")
    manager = WorkbenchDataManager(store=store)
    manager.dispatch(actions.AddRow())
    manager.dispatch(actions.UpdateRow(row_id=1, field="primary_text", value="saved"))

    restored = WorkbenchDataManager(store=store)
    assert restored.load_snapshot()
    assert restored.active_table.rows[0].primary_text == "saved"
    assert not restored.can_undo


def test_presentation_order_does_not_touch_stored_rows():
    manager = WorkbenchDataManager()
    manager.dispatch(actions.AddRow())
    manager.dispatch(actions.UpdateRow(row_id=1, field="classification", value="परि"))
    manager.dispatch(actions.AddRow())
    manager.dispatch(actions.UpdateRow(row_id=2, field="classification", value="व्यु"))
    assert [r.row_id for r in manager.visible_rows()] == [2, 1]
    assert [r.row_id for r in manager.active_table.rows] == [1, 2]


def test_attach_and_crop_image():
    manager = WorkbenchDataManager()
    manager.dispatch(actions.AddRow())
    manager.attach_image(1, _png(), "shot.png")
    (record,) = manager.active_table.images[1]
    manager.commit_crop(1, record.image_id, CropRegion(0, 0, 50, 50, unit="%"))
    (cropped,) = manager.active_table.images[1]
    with Image.open(io.BytesIO(cropped.cropped_data)) as img:
        assert img.size == (20, 10)


def test_attach_rejects_non_image():
    manager = WorkbenchDataManager()
    manager.dispatch(actions.AddRow())
    with pytest.raises(WorkbenchInputError):
        manager.attach_image(1, b"not an image", "bad.png")
