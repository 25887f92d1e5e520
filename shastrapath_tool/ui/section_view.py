"""Parsed-document view used by the main window."""
from __future__ import annotations

import html
import logging
from typing import Callable, Optional, Sequence

from PyQt6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSizePolicy,
    QSplitter,
    QTableWidget,
    QTableWidgetItem,
    QTextBrowser,
    QVBoxLayout,
    QWidget,
)
from PyQt6.QtCore import Qt

from ..models import ParsedDocument, Section
from ..segmenter import BODY_LINE_BREAK

LOGGER = logging.getLogger(__name__)

COLUMNS: Sequence[str] = ("Granth", "Adhyay", "Pointers", "Text")


class SectionView(QWidget):
    """Shows the sections of one parsed document and copies text out of them.

    ``on_copy(section_index, selected_text)`` is called when the user copies;
    ``selected_text`` is empty when nothing is highlighted in the text pane.
    """

    def __init__(
        self,
        document: ParsedDocument,
        on_copy: Callable[[int, str], None],
        parent: QWidget | None = None,
    ):
        super().__init__(parent)
        self.document = document
        self._on_copy = on_copy
        self._current: Optional[int] = None

        layout = QVBoxLayout(self)
        self.info_label = QLabel(
            f"{document.display_name}: {len(document.sections)} sections (dialect {document.dialect}). "
            "Select text below and press Copy, or double-click a section to copy all of it."
        )
        layout.addWidget(self.info_label)

        filter_row = QHBoxLayout()
        self.filter_edit = QLineEdit()
        self.filter_edit.setPlaceholderText("Filter sections…")
        self.filter_edit.textChanged.connect(self._apply_filter)
        self.copy_btn = QPushButton("Copy to Selected Row")
        self.copy_btn.clicked.connect(self.copy_current)
        filter_row.addWidget(self.filter_edit)
        filter_row.addWidget(self.copy_btn)
        layout.addLayout(filter_row)

        splitter = QSplitter(Qt.Orientation.Vertical)
        self.table = QTableWidget()
        self.table.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.table.setWordWrap(True)
        self.table.currentCellChanged.connect(self._on_current_changed)
        self.table.cellDoubleClicked.connect(lambda row, _col: self._copy_section(row, ""))
        splitter.addWidget(self.table)

        self.text_pane = QTextBrowser()
        splitter.addWidget(self.text_pane)
        layout.addWidget(splitter)

        self._populate()

    # ------------------------------------------------------------------
    def _populate(self) -> None:
        sections = self.document.sections
        self.table.setColumnCount(len(COLUMNS))
        self.table.setHorizontalHeaderLabels(list(COLUMNS))
        self.table.setRowCount(len(sections))
        for row_index, section in enumerate(sections):
            values = (
                section.heading,
                section.subheading,
                section.pointer_tag,
                section.body.replace(BODY_LINE_BREAK, "\n"),
            )
            for col_index, value in enumerate(values):
                item = QTableWidgetItem(value)
                item.setTextAlignment(Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignLeft)
                item.setData(Qt.ItemDataRole.UserRole, row_index)
                self.table.setItem(row_index, col_index, item)
        self.table.horizontalHeader().setStretchLastSection(True)
        self.table.resizeRowsToContents()

    # ------------------------------------------------------------------
    def _apply_filter(self, text: str) -> None:
        needle = text.strip().lower()
        for row_index, section in enumerate(self.document.sections):
            haystack = " ".join((section.heading, section.subheading, section.pointer_tag, section.body)).lower()
            self.table.setRowHidden(row_index, bool(needle) and needle not in haystack)

    # ------------------------------------------------------------------
    def _on_current_changed(self, row: int, _col: int, _prev_row: int, _prev_col: int) -> None:
        if not 0 <= row < len(self.document.sections):
            self._current = None
            self.text_pane.clear()
            return
        self._current = row
        section: Section = self.document.sections[row]
        self.text_pane.setHtml(
            BODY_LINE_BREAK.join(html.escape(line) for line in section.body.split(BODY_LINE_BREAK))
        )

    # ------------------------------------------------------------------
    def copy_current(self) -> None:
        if self._current is None:
            return
        selected = self.text_pane.textCursor().selectedText()
        # Qt reports line breaks in a selection as U+2029
        self._copy_section(self._current, selected.replace("\u2029", "\n").strip())

    # ------------------------------------------------------------------
    def _copy_section(self, row: int, selected_text: str) -> None:
        if 0 <= row < len(self.document.sections):
            self._on_copy(row, selected_text)
