"""Export tables to spreadsheet, PDF and Word files.

Every exporter receives plain data: the spreadsheet writers get the row
fields, the PDF and Word writers get the six-column projection in
presentation order. Writer failures are wrapped in :class:`WorkbenchDataError`.
"""
from __future__ import annotations

import html
import io
import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence

import fitz  # PyMuPDF
import pandas as pd
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import InvalidImageStreamError, UnexpectedEndOfFileError, UnrecognizedImageError
from docx.shared import Inches, Pt

from .errors import WorkbenchDataError
from .models import EXPORT_COLUMNS, SectionTab, Table
from .presentation import presentation_order, rows_to_dataframe, table_to_dataframe

LOGGER = logging.getLogger(__name__)

_SHEET_NAME_INVALID = re.compile(r"[\[\]:*?/\\]")

# relative column widths shared by the PDF and Word layouts
COLUMN_WIDTHS: Sequence[int] = (6, 9, 20, 45, 10, 10)


def _sheet_name(name: str, taken: set[str]) -> str:
    base = _SHEET_NAME_INVALID.sub("_", name or "Sheet").strip() or "Sheet"
    base = base[:31]
    candidate = base
    n = 2
    while candidate.lower() in taken:
        suffix = f" ({n})"
        candidate = base[: 31 - len(suffix)] + suffix
        n += 1
    taken.add(candidate.lower())
    return candidate


# ----------------------------------------------------------------------
# Spreadsheet
# ----------------------------------------------------------------------
def export_excel(tables: Iterable[Table], path: str | Path) -> Path:
    """Write one worksheet per table."""
    path = Path(path)
    taken: set[str] = set()
    try:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for table in tables:
                frame = rows_to_dataframe(table)
                frame.to_excel(writer, sheet_name=_sheet_name(table.name, taken), index=False)
    except (OSError, ValueError) as exc:
        LOGGER.exception("Excel export failed: %s", path)
        raise WorkbenchDataError(f"Could not write {path.name}: {exc}") from exc
    LOGGER.info("Excel file saved: %s", path)
    return path


def export_section_excel(section: SectionTab, path: str | Path) -> Path:
    return export_excel(section.tables, path)


def export_csv(table: Table, path: str | Path) -> Path:
    path = Path(path)
    try:
        # BOM so spreadsheet programs detect UTF-8 Devanagari
        rows_to_dataframe(table).to_csv(path, index=False, encoding="utf-8-sig")
    except OSError as exc:
        LOGGER.exception("CSV export failed: %s", path)
        raise WorkbenchDataError(f"Could not write {path.name}: {exc}") from exc
    LOGGER.info("CSV file saved: %s", path)
    return path


# ----------------------------------------------------------------------
# PDF
# ----------------------------------------------------------------------
def _cell_html(value: object) -> str:
    return html.escape(str(value if value is not None else "")).replace("\n", "<br/>")


def table_to_html(table: Table, title: Optional[str] = None) -> str:
    frame = table_to_dataframe(table)
    total = sum(COLUMN_WIDTHS)
    parts = ["<body>"]
    parts.append(f"<h3>{html.escape(title if title is not None else table.name)}</h3>")
    parts.append("<table>")
    parts.append(
        "<tr>"
        + "".join(
            f'<th style="width:{width * 100 // total}%">{html.escape(col)}</th>'
            for col, width in zip(EXPORT_COLUMNS, COLUMN_WIDTHS)
        )
        + "</tr>"
    )
    for record in frame.itertuples(index=False):
        parts.append("<tr>" + "".join(f"<td>{_cell_html(v)}</td>" for v in record) + "</tr>")
    parts.append("</table></body>")
    return "".join(parts)


_PDF_CSS = """
body { font-size: 9pt; }
h3 { font-size: 12pt; margin-bottom: 6pt; }
table { border-collapse: collapse; width: 100%; }
th, td { border: 0.5pt solid #444; padding: 3pt; vertical-align: top; text-align: left; }
th { background-color: #eeeeee; }
"""


def export_pdf(table: Table, path: str | Path, *, title: Optional[str] = None, font_path: Optional[Path] = None) -> Path:
    """Render the table as an HTML story onto A4 landscape pages."""
    path = Path(path)
    css = _PDF_CSS
    archive = None
    if font_path is not None and Path(font_path).exists():
        font_path = Path(font_path)
        archive = fitz.Archive(str(font_path.parent))
        css = f"@font-face {{ font-family: workbench; src: url({font_path.name}); }}\n" + css
        css += "\nbody, th, td { font-family: workbench; }\n"
    elif font_path is not None:
        LOGGER.warning("PDF font %s not found; using built-in fonts", font_path)

    try:
        story = fitz.Story(html=table_to_html(table, title), user_css=css, archive=archive)
        mediabox = fitz.paper_rect("a4-l")
        where = mediabox + (36, 36, -36, -36)
        writer = fitz.DocumentWriter(str(path))
        more = True
        while more:
            device = writer.begin_page(mediabox)
            more, _ = story.place(where)
            story.draw(device)
            writer.end_page()
        writer.close()
    except (RuntimeError, ValueError, OSError) as exc:
        LOGGER.exception("PDF export failed: %s", path)
        raise WorkbenchDataError(f"Could not write {path.name}: {exc}") from exc
    LOGGER.info("PDF file saved: %s", path)
    return path


# ----------------------------------------------------------------------
# Word
# ----------------------------------------------------------------------
def _configure_document_template(document) -> None:
    section = document.sections[0]
    for side in ("top_margin", "bottom_margin", "left_margin", "right_margin"):
        setattr(section, side, Inches(0.6))
    normal_style = document.styles["Normal"]
    normal_style.font.size = Pt(10)


def export_docx(
    table: Table,
    path: str | Path,
    *,
    title: Optional[str] = None,
    image_width_inches: float = 2.5,
) -> Path:
    """Write the six-column table; row images go under the ShastraPath text."""
    path = Path(path)
    document = Document()
    _configure_document_template(document)
    document.add_heading(title if title is not None else table.name, level=2)

    rows = presentation_order(table.rows)
    frame = table_to_dataframe(table)
    doc_table = document.add_table(rows=1, cols=len(EXPORT_COLUMNS))
    doc_table.style = "Table Grid"
    for cell, header in zip(doc_table.rows[0].cells, EXPORT_COLUMNS):
        cell.text = header
        for run in cell.paragraphs[0].runs:
            run.bold = True

    text_column = list(EXPORT_COLUMNS).index("ShastraPath")
    for row, record in zip(rows, frame.itertuples(index=False)):
        cells = doc_table.add_row().cells
        for cell, value in zip(cells, record):
            cell.text = str(value if value is not None else "")
        for image in table.images.get(row.row_id, ()):
            paragraph = cells[text_column].add_paragraph()
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            try:
                paragraph.add_run().add_picture(io.BytesIO(image.display_data), width=Inches(image_width_inches))
            except (UnrecognizedImageError, InvalidImageStreamError, UnexpectedEndOfFileError) as exc:
                LOGGER.warning("Skipping image %s in row %s: %s", image.filename, row.row_id, exc)

    try:
        document.save(str(path))
    except OSError as exc:
        LOGGER.exception("Word export failed: %s", path)
        raise WorkbenchDataError(f"Could not write {path.name}: {exc}") from exc
    LOGGER.info("Word file saved: %s", path)
    return path
