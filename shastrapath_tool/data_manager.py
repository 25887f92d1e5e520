"""Data management layer for the annotation workbench.

This module owns the single :class:`WorkbenchState` of a session. All changes
go through :meth:`WorkbenchDataManager.dispatch`, which applies a pure
reducer, records undo history and saves the snapshot. Keeping the logic here
lets us test it without bringing up the graphical user interface.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .config import DEFAULT_DIALECT_B_PATTERN
from .document_loader import load_document
from .images import crop_bytes, load_image
from .merge import normalize_selection
from .models import CropRegion, ParsedDocument, Row, SectionTab, Table, WorkbenchState
from .persistence import SnapshotStore
from .presentation import presentation_order
from .segmenter import Dialect
from . import state as actions
from .state import Action, reduce

LOGGER = logging.getLogger(__name__)

# what one undo step restores: the section tree and the active tab indices
Snapshot = Tuple[Tuple[SectionTab, ...], int, int]


def _snapshot(state: WorkbenchState) -> Snapshot:
    return state.sections, state.active_section_index, state.active_table_index


def _restore(state: WorkbenchState, snapshot: Snapshot) -> WorkbenchState:
    sections, section_index, table_index = snapshot
    return replace(
        state,
        sections=sections,
        active_section_index=section_index,
        active_table_index=table_index,
    )


@dataclass
class WorkbenchDataManager:
    state: WorkbenchState = field(default_factory=WorkbenchState)
    store: Optional[SnapshotStore] = None
    dialect_b_pattern: str = DEFAULT_DIALECT_B_PATTERN
    _undo_stack: List[Snapshot] = field(default_factory=list, init=False)
    _redo_stack: List[Snapshot] = field(default_factory=list, init=False)
    _listeners: List[Callable[[WorkbenchState], None]] = field(default_factory=list, init=False)

    # ------------------------------------------------------------------
    def subscribe(self, listener: Callable[[WorkbenchState], None]) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    def _commit(self, new_state: WorkbenchState) -> None:
        self.state = new_state
        if self.store is not None:
            self.store.save_state(new_state)
        for listener in list(self._listeners):
            listener(new_state)

    # ------------------------------------------------------------------
    def dispatch(self, action: Action) -> WorkbenchState:
        """Apply ``action`` to the latest state; unchanged results are not recorded."""
        previous = self.state
        new_state = reduce(previous, action)
        if new_state == previous:
            LOGGER.debug("%s left the state unchanged", type(action).__name__)
            return previous
        if action.undoable:
            self._undo_stack.append(_snapshot(previous))
            self._redo_stack.clear()
        self._commit(new_state)
        return new_state

    # ------------------------------------------------------------------
    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def undo(self) -> bool:
        if not self._undo_stack:
            return False
        snapshot = self._undo_stack.pop()
        self._redo_stack.append(_snapshot(self.state))
        self._commit(_restore(self.state, snapshot))
        LOGGER.info("Undo applied.")
        return True

    def redo(self) -> bool:
        if not self._redo_stack:
            return False
        snapshot = self._redo_stack.pop()
        self._undo_stack.append(_snapshot(self.state))
        self._commit(_restore(self.state, snapshot))
        LOGGER.info("Redo applied.")
        return True

    # ------------------------------------------------------------------
    def load_snapshot(self) -> bool:
        """Replace the table tree with the stored snapshot, if any."""
        if self.store is None:
            return False
        loaded = self.store.load_state()
        if loaded is None:
            return False
        self.state = replace(loaded, documents=self.state.documents)
        self._undo_stack.clear()
        self._redo_stack.clear()
        for listener in list(self._listeners):
            listener(self.state)
        LOGGER.info("Snapshot restored from %s", self.store.path)
        return True

    # ------------------------------------------------------------------
    @property
    def active_table(self) -> Optional[Table]:
        return self.state.active_table

    @property
    def selected_row(self) -> Optional[Row]:
        table = self.state.active_table
        return table.selected_row if table is not None else None

    def visible_rows(self) -> List[Row]:
        table = self.state.active_table
        return presentation_order(table.rows) if table is not None else []

    # ------------------------------------------------------------------
    def load_document(self, path: str | Path, dialect: Optional[Dialect] = None) -> ParsedDocument:
        document = load_document(path, dialect, self.dialect_b_pattern)
        self.dispatch(actions.AddDocument(document=document))
        LOGGER.info("Parsed %s into %d sections", document.display_name, len(document.sections))
        return document

    def copy_from_section(self, document_index: int, section_index: int, selected_text: str = "") -> None:
        """Merge a selection (or the whole section body) into the selected row."""
        try:
            section = self.state.documents[document_index].sections[section_index]
        except IndexError:
            return
        text = normalize_selection(selected_text or section.body)
        self.dispatch(
            actions.CopyFromSection(
                text=text,
                heading=section.heading,
                heading_context=section.heading_context,
            )
        )

    # ------------------------------------------------------------------
    def attach_image(self, row_id: int, data: bytes, filename: str) -> None:
        self.dispatch(actions.AddImage(row_id=row_id, image=load_image(data, filename)))

    def commit_crop(self, row_id: int, image_id: str, region: CropRegion) -> None:
        table = self.state.active_table
        if table is None:
            return
        for image in table.images.get(row_id, ()):
            if image.image_id == image_id:
                cropped = crop_bytes(image.original_data, region)
                self.dispatch(actions.CropImage(row_id=row_id, image_id=image_id, cropped_data=cropped, region=region))
                return
