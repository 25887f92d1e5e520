"""Read uploaded Word documents and hand their paragraphs to the segmenter."""
from __future__ import annotations

import html
import logging
import mimetypes
import zipfile
from pathlib import Path
from typing import Iterable, List, Optional

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml.table import CT_Tbl
from docx.oxml.text.paragraph import CT_P
from docx.table import Table
from docx.text.paragraph import Paragraph

from .config import DEFAULT_DIALECT_B_PATTERN
from .errors import WorkbenchDataError, WorkbenchInputError
from .models import ParsedDocument
from .segmenter import Dialect, detect_dialect, segment

LOGGER = logging.getLogger(__name__)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

mimetypes.add_type(DOCX_MIME, ".docx")


def check_document_type(path: str | Path) -> None:
    """Reject anything that is not a ``.docx`` upload."""
    mime = mimetypes.guess_type(str(path))[0]
    if mime != DOCX_MIME:
        raise WorkbenchInputError("Please upload a valid .docx file")


def _paragraph_inlines_to_html(paragraph) -> str:
    chunks: List[str] = []
    for run in paragraph.runs:
        text = run.text or ""
        if not text:
            continue
        s = html.escape(text)
        if run.bold:
            s = f"<strong>{s}</strong>"
        if run.italic:
            s = f"<em>{s}</em>"
        chunks.append(s)
    content = "".join(chunks).strip()
    return f"<p>{content}</p>"


def _iter_doc_blocks(document) -> Iterable[object]:
    """Yield paragraphs and tables in document order."""
    for child in document.element.body.iterchildren():
        if isinstance(child, CT_P):
            yield Paragraph(child, document)
        elif isinstance(child, CT_Tbl):
            yield Table(child, document)


def document_to_markup(document) -> str:
    """Convert a python-docx document to ``<p>`` markup, one element per paragraph.

    Paragraphs inside table cells are emitted cell by cell, row by row.
    """
    parts: List[str] = []
    for block in _iter_doc_blocks(document):
        if isinstance(block, Table):
            for row in block.rows:
                for cell in row.cells:
                    parts.extend(_paragraph_inlines_to_html(p) for p in cell.paragraphs)
        else:
            parts.append(_paragraph_inlines_to_html(block))
    return "\n".join(parts)


def load_docx_markup(path: str | Path) -> str:
    path = Path(path)
    check_document_type(path)
    if not path.exists():
        raise WorkbenchInputError(f"Word document {path} does not exist")
    try:
        document = Document(str(path))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError, SyntaxError) as exc:
        LOGGER.exception("Failed to open Word document: %s", path)
        raise WorkbenchDataError(f"Failed to parse the file {path.name}: {exc}") from exc
    return document_to_markup(document)


def load_document(
    path: str | Path,
    dialect: Optional[Dialect] = None,
    dialect_b_pattern: str = DEFAULT_DIALECT_B_PATTERN,
) -> ParsedDocument:
    """Parse one ``.docx`` file into a :class:`ParsedDocument`."""
    path = Path(path)
    LOGGER.info("File selected: %s", path.name)
    markup = load_docx_markup(path)
    chosen = Dialect(dialect) if dialect is not None else detect_dialect(path.name, dialect_b_pattern)
    sections = segment(markup, chosen)
    return ParsedDocument(display_name=path.name, dialect=chosen.value, sections=tuple(sections))
