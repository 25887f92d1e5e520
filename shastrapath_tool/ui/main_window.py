"""Main window for the annotation workbench."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QIcon, QKeySequence, QPixmap, QShortcut
from PyQt6.QtWidgets import (
    QApplication,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QHeaderView,
    QInputDialog,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QSplitter,
    QTabBar,
    QTabWidget,
    QTableWidget,
    QTableWidgetItem,
    QTextBrowser,
    QVBoxLayout,
    QWidget,
)

from ..bug_report import BugReport, submit_bug_report
from ..config import Settings, load_settings
from ..data_manager import WorkbenchDataManager
from ..errors import WorkbenchError
from ..exporters import export_csv, export_docx, export_excel, export_pdf
from ..models import (
    CLASSIFICATION_LABELS,
    CLASSIFICATIONS,
    EXPORT_COLUMNS,
    REMARK_CODES,
    VALUED_REMARK_CODES,
    CropRegion,
    Row,
    WorkbenchState,
    compose_remark,
    split_remark,
)
from ..persistence import SnapshotStore
from .. import state as actions
from .section_view import SectionView

LOGGER = logging.getLogger(__name__)

# grid column -> row field (Sr. is derived from the display position)
COLUMN_FIELDS: Sequence[Optional[str]] = (
    None,
    "classification",
    "heading_accumulator",
    "primary_text",
    "remark_a",
    "remark_b",
)


class MainWindow(QMainWindow):
    """Top-level window coordinating UI widgets with the data manager."""

    def __init__(
        self,
        data_manager: Optional[WorkbenchDataManager] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__()
        self.settings = settings or load_settings()
        if data_manager is None:
            data_manager = WorkbenchDataManager(
                store=SnapshotStore(self.settings.snapshot_path),
                dialect_b_pattern=self.settings.dialect_b_pattern,
            )
            data_manager.load_snapshot()
        self.data_manager = data_manager
        self.setWindowTitle("ShastraPath Workbench")
        self.resize(1400, 850)
        self._loading = False
        self._visible_rows: List[Row] = []
        self._doc_views: List[SectionView] = []

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)

        button_row = QHBoxLayout()
        self.load_word_btn = QPushButton("Load Word")
        self.load_word_btn.clicked.connect(self.load_word_document)
        self.undo_btn = QPushButton("Undo")
        self.undo_btn.clicked.connect(self.undo_last)
        self.redo_btn = QPushButton("Redo")
        self.redo_btn.clicked.connect(self.redo_last)
        self.excel_btn = QPushButton("Export Excel")
        self.excel_btn.clicked.connect(self.save_excel)
        self.csv_btn = QPushButton("Export CSV")
        self.csv_btn.clicked.connect(self.save_csv)
        self.pdf_btn = QPushButton("Export PDF")
        self.pdf_btn.clicked.connect(self.save_pdf)
        self.word_btn = QPushButton("Export Word")
        self.word_btn.clicked.connect(self.save_word)
        self.bug_btn = QPushButton("Report Bug")
        self.bug_btn.clicked.connect(self.report_bug)
        for button in (
            self.load_word_btn,
            self.undo_btn,
            self.redo_btn,
            self.excel_btn,
            self.csv_btn,
            self.pdf_btn,
            self.word_btn,
        ):
            button_row.addWidget(button)
        button_row.addStretch()
        button_row.addWidget(self.bug_btn)
        main_layout.addLayout(button_row)

        edit_row = QHBoxLayout()
        self.add_section_btn = QPushButton("Add Section")
        self.add_section_btn.clicked.connect(lambda: self._dispatch(actions.AddSection()))
        self.rename_section_btn = QPushButton("Rename Section")
        self.rename_section_btn.clicked.connect(self.rename_section)
        self.delete_section_btn = QPushButton("Delete Section")
        self.delete_section_btn.clicked.connect(self.delete_section)
        self.add_table_btn = QPushButton("Add Table")
        self.add_table_btn.clicked.connect(lambda: self._dispatch(actions.AddTable()))
        self.rename_table_btn = QPushButton("Rename Table")
        self.rename_table_btn.clicked.connect(self.rename_table)
        self.delete_table_btn = QPushButton("Delete Table")
        self.delete_table_btn.clicked.connect(self.delete_table)
        self.add_row_btn = QPushButton("Add Row")
        self.add_row_btn.clicked.connect(lambda: self._dispatch(actions.AddRow()))
        self.delete_row_btn = QPushButton("Delete Row")
        self.delete_row_btn.clicked.connect(self.delete_row)
        for button in (
            self.add_section_btn,
            self.rename_section_btn,
            self.delete_section_btn,
            self.add_table_btn,
            self.rename_table_btn,
            self.delete_table_btn,
            self.add_row_btn,
            self.delete_row_btn,
        ):
            edit_row.addWidget(button)
        edit_row.addStretch()
        main_layout.addLayout(edit_row)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        main_layout.addWidget(splitter, 1)

        self.doc_tabs = QTabWidget()
        self.doc_tabs.setTabsClosable(True)
        self.doc_tabs.tabCloseRequested.connect(self.remove_document_tab)
        splitter.addWidget(self.doc_tabs)

        right = QWidget()
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(0, 0, 0, 0)
        self.section_bar = QTabBar()
        self.section_bar.currentChanged.connect(self.on_section_tab_changed)
        right_layout.addWidget(self.section_bar)
        self.table_bar = QTabBar()
        self.table_bar.currentChanged.connect(self.on_table_tab_changed)
        right_layout.addWidget(self.table_bar)

        self.grid = self._create_table_widget()
        right_layout.addWidget(self.grid, 1)

        image_row = QHBoxLayout()
        self.image_list = QListWidget()
        self.image_list.setViewMode(QListWidget.ViewMode.IconMode)
        self.image_list.setFixedHeight(110)
        image_row.addWidget(self.image_list, 1)
        image_buttons = QVBoxLayout()
        self.add_image_btn = QPushButton("Add Image")
        self.add_image_btn.clicked.connect(self.add_image_attachment)
        self.crop_image_btn = QPushButton("Crop Image")
        self.crop_image_btn.clicked.connect(self.crop_image_attachment)
        self.remove_image_btn = QPushButton("Remove Image")
        self.remove_image_btn.clicked.connect(self.remove_image_attachment)
        for button in (self.add_image_btn, self.crop_image_btn, self.remove_image_btn):
            image_buttons.addWidget(button)
        image_row.addLayout(image_buttons)
        right_layout.addLayout(image_row)
        splitter.addWidget(right)
        splitter.setSizes([600, 800])

        self.console = QTextBrowser()
        self.console.setFixedHeight(100)
        main_layout.addWidget(self.console)

        QShortcut(QKeySequence("Ctrl+Z"), self, activated=self.undo_last)
        QShortcut(QKeySequence("Ctrl+Y"), self, activated=self.redo_last)

        self.data_manager.subscribe(lambda _state: self.populate_table())
        self.populate_documents()
        self.populate_table()
        self.console.append("Application Ready.")

    # ------------------------------------------------------------------
    def log_console(self, message: str) -> None:
        LOGGER.info(message)
        self.console.append(message)

    # ------------------------------------------------------------------
    def _dispatch(self, action: actions.Action) -> None:
        try:
            self.data_manager.dispatch(action)
        except WorkbenchError as exc:
            QMessageBox.warning(self, "Error", str(exc))

    # ------------------------------------------------------------------
    def _create_table_widget(self) -> QTableWidget:
        table = QTableWidget()
        table.setEditTriggers(
            QTableWidget.EditTrigger.DoubleClicked | QTableWidget.EditTrigger.EditKeyPressed
        )
        table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        table.setSelectionMode(QTableWidget.SelectionMode.SingleSelection)
        table.setWordWrap(True)
        table.setColumnCount(len(EXPORT_COLUMNS))
        table.setHorizontalHeaderLabels(list(EXPORT_COLUMNS))
        table.itemChanged.connect(self.on_table_cell_changed)
        table.currentCellChanged.connect(self.on_current_cell_changed)
        header = table.horizontalHeader()
        header.setSectionResizeMode(QHeaderView.ResizeMode.Interactive)
        header.setStretchLastSection(True)
        table.verticalHeader().setVisible(False)
        table.verticalHeader().setDefaultSectionSize(96)
        return table

    # ------------------------------------------------------------------
    def _state(self) -> WorkbenchState:
        return self.data_manager.state

    # ------------------------------------------------------------------
    def _rebuild_bar(self, bar: QTabBar, names: Sequence[str], current: int) -> None:
        bar.blockSignals(True)
        while bar.count():
            bar.removeTab(0)
        for name in names:
            bar.addTab(name)
        if 0 <= current < bar.count():
            bar.setCurrentIndex(current)
        bar.blockSignals(False)

    # ------------------------------------------------------------------
    def populate_table(self) -> None:
        state = self._state()
        self._loading = True
        try:
            self._rebuild_bar(self.section_bar, [s.name for s in state.sections], state.active_section_index)
            section = state.active_section
            self._rebuild_bar(
                self.table_bar,
                [t.name for t in section.tables] if section else [],
                state.active_table_index,
            )

            table = state.active_table
            rows = self.data_manager.visible_rows()
            self._visible_rows = rows
            self.grid.blockSignals(True)
            self.grid.clearContents()
            self.grid.setRowCount(len(rows))
            for display_row, row in enumerate(rows):
                for column, field_name in enumerate(COLUMN_FIELDS):
                    if field_name == "classification":
                        self.grid.setCellWidget(display_row, column, self._classification_combo(row))
                        continue
                    if field_name == "remark_a":
                        self.grid.setCellWidget(display_row, column, self._remark_editor(row))
                        continue
                    value = str(display_row + 1) if field_name is None else getattr(row, field_name)
                    item = QTableWidgetItem(value)
                    item.setTextAlignment(Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignLeft)
                    item.setData(Qt.ItemDataRole.UserRole, row.row_id)
                    if field_name is None:
                        item.setFlags(item.flags() & ~Qt.ItemFlag.ItemIsEditable)
                    if field_name == "primary_text" and row.pointer_accumulator:
                        item.setToolTip(row.pointer_accumulator)
                    self.grid.setItem(display_row, column, item)
            selected_id = table.selected_row_id if table else None
            for display_row, row in enumerate(rows):
                if row.row_id == selected_id:
                    self.grid.setCurrentCell(display_row, 3)
                    break
            self.grid.blockSignals(False)
            self.populate_images()
        finally:
            self._loading = False
        self.undo_btn.setEnabled(self.data_manager.can_undo)
        self.redo_btn.setEnabled(self.data_manager.can_redo)

    # ------------------------------------------------------------------
    def _classification_combo(self, row: Row) -> QComboBox:
        combo = QComboBox()
        combo.addItem("Select", "")
        for value in CLASSIFICATIONS:
            combo.addItem(CLASSIFICATION_LABELS.get(value, value), value)
        index = combo.findData(row.classification)
        if index < 0:
            combo.addItem(row.classification, row.classification)
            index = combo.count() - 1
        combo.setCurrentIndex(index)
        combo.currentIndexChanged.connect(
            lambda _i, combo=combo, row_id=row.row_id: self._dispatch(
                actions.UpdateRow(row_id=row_id, field="classification", value=str(combo.currentData()))
            )
        )
        return combo

    # ------------------------------------------------------------------
    def _remark_editor(self, row: Row) -> QWidget:
        """Publication remark: a code, plus a value for the valued codes."""
        code, value = split_remark(row.remark_a)
        editor = QWidget()
        layout = QVBoxLayout(editor)
        layout.setContentsMargins(0, 0, 0, 0)
        combo = QComboBox()
        combo.addItem("Select", "")
        for remark_code in REMARK_CODES:
            combo.addItem(remark_code, remark_code)
        index = combo.findData(code)
        if index < 0:
            # free text from older tables is kept as its own entry
            combo.addItem(row.remark_a, row.remark_a)
            index = combo.count() - 1
            value = ""
        combo.setCurrentIndex(index)
        value_edit = QLineEdit(value)
        value_edit.setPlaceholderText("Value")
        value_edit.setVisible(code in VALUED_REMARK_CODES)
        layout.addWidget(combo)
        layout.addWidget(value_edit)
        editor.code_combo = combo
        editor.value_edit = value_edit

        def commit(*_args, row_id=row.row_id) -> None:
            remark = compose_remark(str(combo.currentData()), value_edit.text())
            self._dispatch(actions.UpdateRow(row_id=row_id, field="remark_a", value=remark))

        combo.currentIndexChanged.connect(commit)
        value_edit.editingFinished.connect(commit)
        return editor

    # ------------------------------------------------------------------
    def populate_images(self) -> None:
        self.image_list.clear()
        table = self._state().active_table
        row = table.selected_row if table else None
        if table is None or row is None:
            return
        for image in table.images.get(row.row_id, ()):
            pixmap = QPixmap()
            pixmap.loadFromData(image.display_data)
            item = QListWidgetItem(QIcon(pixmap), image.filename)
            item.setData(Qt.ItemDataRole.UserRole, image.image_id)
            self.image_list.addItem(item)

    # ------------------------------------------------------------------
    def populate_documents(self) -> None:
        self.doc_tabs.clear()
        self._doc_views = []
        for index, document in enumerate(self._state().documents):
            view = SectionView(document, self._make_copy_handler(index))
            self._doc_views.append(view)
            self.doc_tabs.addTab(view, document.display_name)

    def _make_copy_handler(self, document_index: int) -> Callable[[int, str], None]:
        def handler(section_index: int, selected_text: str) -> None:
            if self.data_manager.selected_row is None:
                return
            self.data_manager.copy_from_section(document_index, section_index, selected_text)

        return handler

    # ------------------------------------------------------------------
    def on_section_tab_changed(self, index: int) -> None:
        if self._loading or index < 0:
            return
        self._dispatch(actions.SetActive(section_index=index, table_index=0))

    def on_table_tab_changed(self, index: int) -> None:
        if self._loading or index < 0:
            return
        self._dispatch(actions.SetActive(section_index=self._state().active_section_index, table_index=index))

    # ------------------------------------------------------------------
    def on_table_cell_changed(self, item: QTableWidgetItem) -> None:
        if self._loading:
            return
        field_name = COLUMN_FIELDS[item.column()]
        row_id = item.data(Qt.ItemDataRole.UserRole)
        if field_name is None or row_id is None:
            return
        self._dispatch(actions.UpdateRow(row_id=int(row_id), field=field_name, value=item.text()))

    def on_current_cell_changed(self, row: int, _col: int, _prev_row: int, _prev_col: int) -> None:
        if self._loading or not 0 <= row < len(self._visible_rows):
            return
        self._dispatch(actions.SelectRow(row_id=self._visible_rows[row].row_id))

    # ------------------------------------------------------------------
    def delete_row(self) -> None:
        row = self.data_manager.selected_row
        if row is None:
            QMessageBox.information(self, "Delete Row", "No row is currently selected.")
            return
        self._dispatch(actions.DeleteRow(row_id=row.row_id))

    def rename_section(self) -> None:
        state = self._state()
        section = state.active_section
        if section is None:
            return
        name, ok = QInputDialog.getText(self, "Rename Section", "Section name:", text=section.name)
        if ok:
            self._dispatch(actions.RenameSection(section_index=state.active_section_index, name=name))

    def delete_section(self) -> None:
        state = self._state()
        section = state.active_section
        if section is None:
            return
        answer = QMessageBox.question(self, "Delete Section", f"Delete section '{section.name}' and all its tables?")
        if answer == QMessageBox.StandardButton.Yes:
            self._dispatch(actions.DeleteSection(section_index=state.active_section_index))

    def rename_table(self) -> None:
        state = self._state()
        table = state.active_table
        if table is None:
            return
        name, ok = QInputDialog.getText(self, "Rename Table", "Table name:", text=table.name)
        if ok:
            self._dispatch(actions.RenameTable(table_index=state.active_table_index, name=name))

    def delete_table(self) -> None:
        state = self._state()
        table = state.active_table
        if table is None:
            return
        answer = QMessageBox.question(self, "Delete Table", f"Delete table '{table.name}'?")
        if answer == QMessageBox.StandardButton.Yes:
            self._dispatch(actions.DeleteTable(table_index=state.active_table_index))

    # ------------------------------------------------------------------
    def undo_last(self) -> None:
        if self.data_manager.undo():
            self.log_console("Undo applied.")

    def redo_last(self) -> None:
        if self.data_manager.redo():
            self.log_console("Redo applied.")

    # ------------------------------------------------------------------
    def load_word_document(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Select Word File", "", "Word Documents (*.docx)")
        if not file_path:
            return
        try:
            document = self.data_manager.load_document(file_path)
        except WorkbenchError as exc:
            LOGGER.exception("Failed to load Word document")
            QMessageBox.critical(self, "Load Error", str(exc))
            return
        self.populate_documents()
        self.doc_tabs.setCurrentIndex(self.doc_tabs.count() - 1)
        self.log_console(f"{document.display_name}: {len(document.sections)} sections parsed.")

    def remove_document_tab(self, index: int) -> None:
        self.data_manager.dispatch(actions.RemoveDocument(index=index))
        self.populate_documents()

    # ------------------------------------------------------------------
    def add_image_attachment(self) -> None:
        row = self.data_manager.selected_row
        if row is None:
            QMessageBox.information(self, "Add Image", "Select a row first.")
            return
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Select Image", "", "Image Files (*.png *.jpg *.jpeg *.bmp *.gif)"
        )
        if not file_path:
            return
        try:
            data = Path(file_path).read_bytes()
            self.data_manager.attach_image(row.row_id, data, Path(file_path).name)
        except OSError as exc:
            QMessageBox.critical(self, "Image Error", f"Could not read image: {exc}")
            return
        except WorkbenchError as exc:
            QMessageBox.warning(self, "Image Error", str(exc))
            return
        self.log_console(f"Image attachment added: {file_path}")

    def _current_image_id(self) -> Optional[str]:
        item = self.image_list.currentItem()
        return item.data(Qt.ItemDataRole.UserRole) if item is not None else None

    def crop_image_attachment(self) -> None:
        row = self.data_manager.selected_row
        image_id = self._current_image_id()
        if row is None or image_id is None:
            QMessageBox.information(self, "Crop Image", "Select an image first.")
            return
        dialog = CropDialog(self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        try:
            self.data_manager.commit_crop(row.row_id, image_id, dialog.region())
        except WorkbenchError as exc:
            QMessageBox.warning(self, "Crop Image", str(exc))
            return
        self.log_console("Crop applied.")

    def remove_image_attachment(self) -> None:
        row = self.data_manager.selected_row
        image_id = self._current_image_id()
        if row is None or image_id is None:
            return
        self._dispatch(actions.RemoveImage(row_id=row.row_id, image_id=image_id))

    # ------------------------------------------------------------------
    def _save_path(self, caption: str, file_filter: str, suffix: str) -> Optional[Path]:
        table = self._state().active_table
        if table is None or not table.rows:
            QMessageBox.warning(self, "Empty", "Nothing to save!")
            return None
        file_name, _ = QFileDialog.getSaveFileName(self, caption, f"{table.name}{suffix}", file_filter)
        if not file_name:
            return None
        if not file_name.endswith(suffix):
            file_name += suffix
        return Path(file_name)

    def _run_export(self, export: Callable[[Path], Path], path: Optional[Path]) -> None:
        if path is None:
            return
        try:
            export(path)
        except WorkbenchError as exc:
            QMessageBox.critical(self, "Export Error", str(exc))
            return
        self.log_console(f"File saved: {path}")

    def save_excel(self) -> None:
        section = self._state().active_section
        path = self._save_path("Save Excel File", "Excel Workbook (*.xlsx)", ".xlsx")
        if section is not None:
            self._run_export(lambda p: export_excel(section.tables, p), path)

    def save_csv(self) -> None:
        table = self._state().active_table
        path = self._save_path("Save CSV File", "CSV (*.csv)", ".csv")
        self._run_export(lambda p: export_csv(table, p), path)

    def save_pdf(self) -> None:
        table = self._state().active_table
        path = self._save_path("Save PDF File", "PDF (*.pdf)", ".pdf")
        self._run_export(lambda p: export_pdf(table, p, font_path=self.settings.pdf_font_path), path)

    def save_word(self) -> None:
        table = self._state().active_table
        path = self._save_path("Save Word File", "Word Document (*.docx)", ".docx")
        self._run_export(
            lambda p: export_docx(table, p, image_width_inches=self.settings.export_image_width_inches),
            path,
        )

    # ------------------------------------------------------------------
    def report_bug(self) -> None:
        dialog = BugReportDialog(self, self.settings)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self.log_console("Bug report submitted.")


class CropDialog(QDialog):
    """Collects a crop rectangle in percent of the image size."""

    def __init__(self, parent: QWidget):
        super().__init__(parent)
        self.setWindowTitle("Crop Image")
        layout = QVBoxLayout(self)
        form = QFormLayout()
        self._spins = {}
        for name, default in (("x", 0.0), ("y", 0.0), ("width", 100.0), ("height", 100.0)):
            spin = QDoubleSpinBox()
            spin.setRange(0.0, 100.0)
            spin.setSuffix(" %")
            spin.setValue(default)
            self._spins[name] = spin
            form.addRow(name.capitalize(), spin)
        layout.addLayout(form)
        button_box = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        button_box.accepted.connect(self.accept)
        button_box.rejected.connect(self.reject)
        layout.addWidget(button_box)

    def region(self) -> CropRegion:
        return CropRegion(
            x=self._spins["x"].value(),
            y=self._spins["y"].value(),
            width=self._spins["width"].value(),
            height=self._spins["height"].value(),
            unit="%",
        )


class BugReportDialog(QDialog):
    """Modal dialog that posts a bug report; errors stay inline in the dialog."""

    def __init__(self, parent: QWidget, settings: Settings):
        super().__init__(parent)
        self.setWindowTitle("Report a Bug")
        self._settings = settings
        self._images: List[Path] = []

        layout = QVBoxLayout(self)
        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #b91c1c;")
        self.error_label.setWordWrap(True)
        layout.addWidget(self.error_label)

        form = QFormLayout()
        self.title_edit = QLineEdit()
        self.title_edit.setPlaceholderText("Short summary of the bug")
        form.addRow("Title", self.title_edit)
        self.description_edit = QPlainTextEdit()
        self.description_edit.setPlaceholderText("Describe the bug in detail")
        form.addRow("Description", self.description_edit)
        layout.addLayout(form)

        image_row = QHBoxLayout()
        self.image_list = QListWidget()
        self.image_list.setFixedHeight(70)
        add_btn = QPushButton("Add Images")
        add_btn.clicked.connect(self._browse_images)
        remove_btn = QPushButton("Remove")
        remove_btn.clicked.connect(self._remove_image)
        image_row.addWidget(self.image_list, 1)
        image_row.addWidget(add_btn)
        image_row.addWidget(remove_btn)
        layout.addLayout(image_row)

        button_box = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        button_box.button(QDialogButtonBox.StandardButton.Ok).setText("Submit")
        button_box.accepted.connect(self.submit)
        button_box.rejected.connect(self.reject)
        layout.addWidget(button_box)

    def _browse_images(self) -> None:
        files, _ = QFileDialog.getOpenFileNames(
            self, "Select Images", "", "Image Files (*.png *.jpg *.jpeg *.bmp *.gif)"
        )
        for path in files:
            self._images.append(Path(path))
            self.image_list.addItem(Path(path).name)

    def _remove_image(self) -> None:
        row = self.image_list.currentRow()
        if 0 <= row < len(self._images):
            del self._images[row]
            self.image_list.takeItem(row)

    def build_report(self) -> BugReport:
        report = BugReport(self.title_edit.text(), self.description_edit.toPlainText())
        for path in self._images:
            report.add_image_file(path)
        return report

    def submit(self) -> None:
        self.error_label.setText("")
        try:
            report = self.build_report()
            report.validate()
        except WorkbenchError as exc:
            self.error_label.setText(str(exc))
            return
        except OSError as exc:
            self.error_label.setText(f"Could not read image: {exc}")
            return
        QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        try:
            result = submit_bug_report(report, self._settings.bug_endpoint, self._settings.bug_timeout)
        finally:
            QApplication.restoreOverrideCursor()
        if not result.success:
            self.error_label.setText(result.error or "Something went wrong")
            return
        self.accept()


def run_app() -> None:
    """Entry point used by scripts to launch the GUI."""
    import sys

    settings = load_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
    app = QApplication(sys.argv)
    window = MainWindow(settings=settings)
    window.show()
    sys.exit(app.exec())
