"""Pure reducers over :class:`~shastrapath_tool.models.WorkbenchState`.

``reduce(state, action)`` returns a new state and never mutates its input.
Actions that point at a missing section, table, row or image, or that need a
selected row when none is selected, return the state unchanged.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, ClassVar, Dict, Optional, Tuple, Type

from .merge import merge_fragment, merge_heading
from .models import (
    DEFAULT_SECTION_NAME,
    DEFAULT_TABLE_NAME,
    CropRegion,
    ImageRecord,
    ParsedDocument,
    Row,
    SectionTab,
    Table,
    WorkbenchState,
)

LOGGER = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Actions
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Action:
    """Base class; ``section_index``/``table_index`` of ``None`` mean the active ones."""

    undoable: ClassVar[bool] = True


@dataclass(frozen=True)
class AddRow(Action):
    section_index: Optional[int] = None
    table_index: Optional[int] = None


@dataclass(frozen=True)
class DeleteRow(Action):
    row_id: int = 0
    section_index: Optional[int] = None
    table_index: Optional[int] = None


@dataclass(frozen=True)
class SelectRow(Action):
    row_id: Optional[int] = None
    section_index: Optional[int] = None
    table_index: Optional[int] = None
    undoable: ClassVar[bool] = False


@dataclass(frozen=True)
class UpdateRow(Action):
    row_id: int = 0
    field: str = ""
    value: str = ""
    section_index: Optional[int] = None
    table_index: Optional[int] = None


@dataclass(frozen=True)
class PasteFragment(Action):
    text: str = ""
    heading_context: str = ""


@dataclass(frozen=True)
class RecordHeading(Action):
    heading_context: str = ""


@dataclass(frozen=True)
class CopyFromSection(Action):
    """Paste a fragment and record its heading provenance as one user action."""

    text: str = ""
    heading: str = ""
    heading_context: str = ""


@dataclass(frozen=True)
class AddTable(Action):
    name: Optional[str] = None
    section_index: Optional[int] = None


@dataclass(frozen=True)
class RenameTable(Action):
    table_index: int = 0
    name: str = ""
    section_index: Optional[int] = None


@dataclass(frozen=True)
class DeleteTable(Action):
    table_index: int = 0
    section_index: Optional[int] = None


@dataclass(frozen=True)
class AddSection(Action):
    name: Optional[str] = None


@dataclass(frozen=True)
class RenameSection(Action):
    section_index: int = 0
    name: str = ""


@dataclass(frozen=True)
class DeleteSection(Action):
    section_index: int = 0


@dataclass(frozen=True)
class SetActive(Action):
    section_index: int = 0
    table_index: int = 0
    undoable: ClassVar[bool] = False


@dataclass(frozen=True)
class AddImage(Action):
    row_id: int = 0
    image: Optional[ImageRecord] = None


@dataclass(frozen=True)
class CropImage(Action):
    row_id: int = 0
    image_id: str = ""
    cropped_data: bytes = b""
    region: Optional[CropRegion] = None


@dataclass(frozen=True)
class RemoveImage(Action):
    row_id: int = 0
    image_id: str = ""


@dataclass(frozen=True)
class AddDocument(Action):
    document: Optional[ParsedDocument] = None
    undoable: ClassVar[bool] = False


@dataclass(frozen=True)
class RemoveDocument(Action):
    index: int = 0
    undoable: ClassVar[bool] = False


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _resolve(state: WorkbenchState, section_index: Optional[int], table_index: Optional[int]) -> Optional[Tuple[int, int]]:
    s_idx = state.active_section_index if section_index is None else section_index
    if not 0 <= s_idx < len(state.sections):
        return None
    t_idx = state.active_table_index if table_index is None else table_index
    if not 0 <= t_idx < len(state.sections[s_idx].tables):
        return None
    return s_idx, t_idx


def _with_table(
    state: WorkbenchState,
    section_index: Optional[int],
    table_index: Optional[int],
    fn: Callable[[Table], Table],
) -> WorkbenchState:
    target = _resolve(state, section_index, table_index)
    if target is None:
        LOGGER.debug("No table at section=%s table=%s; ignoring", section_index, table_index)
        return state
    s_idx, t_idx = target
    section = state.sections[s_idx]
    table = section.tables[t_idx]
    updated = fn(table)
    if updated is table:
        return state
    tables = section.tables[:t_idx] + (updated,) + section.tables[t_idx + 1:]
    sections = state.sections[:s_idx] + (replace(section, tables=tables),) + state.sections[s_idx + 1:]
    return replace(state, sections=sections)


def _replace_row(table: Table, row: Row) -> Table:
    rows = tuple(row if r.row_id == row.row_id else r for r in table.rows)
    return replace(table, rows=rows)


def _with_selected_row(table: Table, fn: Callable[[Row], Row]) -> Table:
    row = table.selected_row
    if row is None:
        return table
    updated = fn(row)
    if updated == row:
        return table
    return _replace_row(table, updated)


def _unique_name(existing: Tuple[str, ...], stem: str) -> str:
    n = len(existing) + 1
    while f"{stem} {n}" in existing:
        n += 1
    return f"{stem} {n}"


# ----------------------------------------------------------------------
# Row reducers
# ----------------------------------------------------------------------
def _add_row(state: WorkbenchState, action: AddRow) -> WorkbenchState:
    def fn(table: Table) -> Table:
        row = Row(row_id=table.next_row_id)
        return replace(
            table,
            rows=table.rows + (row,),
            selected_row_id=row.row_id,
            next_row_id=table.next_row_id + 1,
        )

    return _with_table(state, action.section_index, action.table_index, fn)


def _delete_row(state: WorkbenchState, action: DeleteRow) -> WorkbenchState:
    def fn(table: Table) -> Table:
        positions = [i for i, r in enumerate(table.rows) if r.row_id == action.row_id]
        if not positions:
            return table
        position = positions[0]
        rows = table.rows[:position] + table.rows[position + 1:]
        images = {k: v for k, v in table.images.items() if k != action.row_id}
        selected = table.selected_row_id
        if selected == action.row_id:
            if position < len(rows):
                selected = rows[position].row_id
            elif rows:
                selected = rows[-1].row_id
            else:
                selected = None
        return replace(table, rows=rows, images=images, selected_row_id=selected)

    return _with_table(state, action.section_index, action.table_index, fn)


def _select_row(state: WorkbenchState, action: SelectRow) -> WorkbenchState:
    def fn(table: Table) -> Table:
        if action.row_id is not None and table.row_by_id(action.row_id) is None:
            return table
        if table.selected_row_id == action.row_id:
            return table
        return replace(table, selected_row_id=action.row_id)

    return _with_table(state, action.section_index, action.table_index, fn)


def _update_row(state: WorkbenchState, action: UpdateRow) -> WorkbenchState:
    if action.field not in Row.EDITABLE_FIELDS:
        LOGGER.warning("Refusing to edit unknown row field %r", action.field)
        return state

    def fn(table: Table) -> Table:
        row = table.row_by_id(action.row_id)
        if row is None or getattr(row, action.field) == action.value:
            return table
        return _replace_row(table, replace(row, **{action.field: action.value}))

    return _with_table(state, action.section_index, action.table_index, fn)


def _paste_fragment(state: WorkbenchState, action: PasteFragment) -> WorkbenchState:
    return _with_table(
        state, None, None,
        lambda t: _with_selected_row(t, lambda r: merge_fragment(action.text, action.heading_context, r)),
    )


def _record_heading(state: WorkbenchState, action: RecordHeading) -> WorkbenchState:
    return _with_table(
        state, None, None,
        lambda t: _with_selected_row(t, lambda r: merge_heading(action.heading_context, r)),
    )


def _copy_from_section(state: WorkbenchState, action: CopyFromSection) -> WorkbenchState:
    def fn(row: Row) -> Row:
        return merge_heading(action.heading_context, merge_fragment(action.text, action.heading, row))

    return _with_table(state, None, None, lambda t: _with_selected_row(t, fn))


# ----------------------------------------------------------------------
# Table / section reducers
# ----------------------------------------------------------------------
def _add_table(state: WorkbenchState, action: AddTable) -> WorkbenchState:
    s_idx = state.active_section_index if action.section_index is None else action.section_index
    if not 0 <= s_idx < len(state.sections):
        return state
    section = state.sections[s_idx]
    name = (action.name or "").strip() or _unique_name(tuple(t.name for t in section.tables), "Sheet")
    section = replace(section, tables=section.tables + (Table(name=name),))
    sections = state.sections[:s_idx] + (section,) + state.sections[s_idx + 1:]
    state = replace(state, sections=sections)
    if s_idx == state.active_section_index:
        state = replace(state, active_table_index=len(section.tables) - 1)
    return state


def _rename_table(state: WorkbenchState, action: RenameTable) -> WorkbenchState:
    name = action.name.strip()
    if not name:
        return state
    return _with_table(
        state, action.section_index, action.table_index,
        lambda t: t if t.name == name else replace(t, name=name),
    )


def _delete_table(state: WorkbenchState, action: DeleteTable) -> WorkbenchState:
    target = _resolve(state, action.section_index, action.table_index)
    if target is None:
        return state
    s_idx, t_idx = target
    section = state.sections[s_idx]
    tables = section.tables[:t_idx] + section.tables[t_idx + 1:]
    if not tables:
        tables = (Table(name=DEFAULT_TABLE_NAME),)
    sections = state.sections[:s_idx] + (replace(section, tables=tables),) + state.sections[s_idx + 1:]
    state = replace(state, sections=sections)
    if s_idx == state.active_section_index:
        active = state.active_table_index
        if active > t_idx or active >= len(tables):
            active -= 1
        state = replace(state, active_table_index=max(0, min(active, len(tables) - 1)))
    return state


def _add_section(state: WorkbenchState, action: AddSection) -> WorkbenchState:
    name = (action.name or "").strip() or _unique_name(tuple(s.name for s in state.sections), "Section")
    sections = state.sections + (SectionTab(name=name, tables=(Table(name=DEFAULT_TABLE_NAME),)),)
    return replace(state, sections=sections, active_section_index=len(sections) - 1, active_table_index=0)


def _rename_section(state: WorkbenchState, action: RenameSection) -> WorkbenchState:
    name = action.name.strip()
    if not name or not 0 <= action.section_index < len(state.sections):
        return state
    section = state.sections[action.section_index]
    if section.name == name:
        return state
    i = action.section_index
    return replace(state, sections=state.sections[:i] + (replace(section, name=name),) + state.sections[i + 1:])


def _delete_section(state: WorkbenchState, action: DeleteSection) -> WorkbenchState:
    i = action.section_index
    if not 0 <= i < len(state.sections):
        return state
    sections = state.sections[:i] + state.sections[i + 1:]
    if not sections:
        sections = (SectionTab(name=DEFAULT_SECTION_NAME, tables=(Table(name=DEFAULT_TABLE_NAME),)),)
    active = state.active_section_index
    if active == i:
        active = min(i, len(sections) - 1)
        table_index = 0
    else:
        if active > i:
            active -= 1
        table_index = state.active_table_index
    return replace(state, sections=sections, active_section_index=active, active_table_index=table_index)


def _set_active(state: WorkbenchState, action: SetActive) -> WorkbenchState:
    if _resolve(state, action.section_index, action.table_index) is None:
        return state
    if (state.active_section_index, state.active_table_index) == (action.section_index, action.table_index):
        return state
    return replace(state, active_section_index=action.section_index, active_table_index=action.table_index)


# ----------------------------------------------------------------------
# Image reducers
# ----------------------------------------------------------------------
def _add_image(state: WorkbenchState, action: AddImage) -> WorkbenchState:
    if action.image is None:
        return state

    def fn(table: Table) -> Table:
        if table.row_by_id(action.row_id) is None:
            return table
        images = dict(table.images)
        images[action.row_id] = images.get(action.row_id, ()) + (action.image,)
        return replace(table, images=images)

    return _with_table(state, None, None, fn)


def _map_row_images(table: Table, row_id: int, fn: Callable[[Tuple[ImageRecord, ...]], Tuple[ImageRecord, ...]]) -> Table:
    current = table.images.get(row_id)
    if not current:
        return table
    updated = fn(current)
    if updated == current:
        return table
    images = dict(table.images)
    if updated:
        images[row_id] = updated
    else:
        images.pop(row_id, None)
    return replace(table, images=images)


def _crop_image(state: WorkbenchState, action: CropImage) -> WorkbenchState:
    def crop(records: Tuple[ImageRecord, ...]) -> Tuple[ImageRecord, ...]:
        return tuple(
            replace(r, cropped_data=action.cropped_data, crop_region=action.region)
            if r.image_id == action.image_id else r
            for r in records
        )

    return _with_table(state, None, None, lambda t: _map_row_images(t, action.row_id, crop))


def _remove_image(state: WorkbenchState, action: RemoveImage) -> WorkbenchState:
    def remove(records: Tuple[ImageRecord, ...]) -> Tuple[ImageRecord, ...]:
        return tuple(r for r in records if r.image_id != action.image_id)

    return _with_table(state, None, None, lambda t: _map_row_images(t, action.row_id, remove))


# ----------------------------------------------------------------------
# Parsed documents
# ----------------------------------------------------------------------
def _add_document(state: WorkbenchState, action: AddDocument) -> WorkbenchState:
    if action.document is None:
        return state
    return replace(state, documents=state.documents + (action.document,))


def _remove_document(state: WorkbenchState, action: RemoveDocument) -> WorkbenchState:
    i = action.index
    if not 0 <= i < len(state.documents):
        return state
    return replace(state, documents=state.documents[:i] + state.documents[i + 1:])


_REDUCERS: Dict[Type[Action], Callable[[WorkbenchState, Action], WorkbenchState]] = {
    AddRow: _add_row,
    DeleteRow: _delete_row,
    SelectRow: _select_row,
    UpdateRow: _update_row,
    PasteFragment: _paste_fragment,
    RecordHeading: _record_heading,
    CopyFromSection: _copy_from_section,
    AddTable: _add_table,
    RenameTable: _rename_table,
    DeleteTable: _delete_table,
    AddSection: _add_section,
    RenameSection: _rename_section,
    DeleteSection: _delete_section,
    SetActive: _set_active,
    AddImage: _add_image,
    CropImage: _crop_image,
    RemoveImage: _remove_image,
    AddDocument: _add_document,
    RemoveDocument: _remove_document,
}


def reduce(state: WorkbenchState, action: Action) -> WorkbenchState:
    """Return the state that results from applying ``action`` to ``state``."""
    reducer = _REDUCERS.get(type(action))
    if reducer is None:
        raise TypeError(f"Unsupported action: {type(action).__name__}")
    return reducer(state, action)
