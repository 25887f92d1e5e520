import io

import fitz
import pandas as pd
import pytest
from docx import Document
from PIL import Image

from shastrapath_tool.errors import WorkbenchDataError
from shastrapath_tool.exporters import (
    export_csv,
    export_docx,
    export_excel,
    export_pdf,
    export_section_excel,
    table_to_html,
)
from shastrapath_tool.models import EXPORT_COLUMNS, ImageRecord, Row, SectionTab, Table


def _png():
    out = io.BytesIO()
    Image.new("RGB", (30, 30), "blue").save(out, format="PNG")
    return out.getvalue()


def _table(name="Sheet 1"):
    return Table(
        name=name,
        rows=(
            Row(row_id=1, classification="स्व", primary_text="second <b>row</b>", heading_accumulator="Gita\n2"),
            Row(row_id=2, classification="व्यु", primary_text="first row", remark_a="MTN"),
        ),
        images={
            1: (ImageRecord(image_id="i1", filename="a.png", mime="image/png", original_data=_png()),),
        },
        next_row_id=3,
    )


def test_export_excel_writes_one_sheet_per_table(tmp_path):
    path = tmp_path / "out.xlsx"
    export_excel([_table("Sheet 1"), _table("Sheet/1"), _table("sheet 1")], path)
    sheets = pd.read_excel(path, sheet_name=None)
    assert list(sheets) == ["Sheet 1", "Sheet_1", "sheet 1 (2)"]
    frame = sheets["Sheet 1"]
    assert frame["primary_text"].tolist() == ["first row", "second <b>row</b>"]
    assert frame["row_id"].tolist() == [2, 1]


def test_export_section_excel_uses_section_tables(tmp_path):
    section = SectionTab(name="S", tables=(_table("One"), _table("Two")))
    path = export_section_excel(section, tmp_path / "section.xlsx")
    assert list(pd.read_excel(path, sheet_name=None)) == ["One", "Two"]


def test_export_csv_has_bom(tmp_path):
    path = export_csv(_table(), tmp_path / "out.csv")
    assert path.read_bytes().startswith(b"\xef\xbb\xbf")
    frame = pd.read_csv(path, encoding="utf-8-sig")
    assert frame["classification"].tolist() == ["व्यु", "स्व"]


def test_table_html_escapes_cells():
    markup = table_to_html(_table(), title="Report")
    assert "<h3>Report</h3>" in markup
    assert "second &lt;b&gt;row&lt;/b&gt;" in markup
    assert "Gita<br/>2" in markup
    for column in EXPORT_COLUMNS:
        assert column in markup


def test_export_pdf_renders_pages(tmp_path):
    path = export_pdf(_table(), tmp_path / "out.pdf", title="Report")
    with fitz.open(str(path)) as doc:
        assert doc.page_count >= 1
        text = doc[0].get_text()
    assert "ShastraPath" in text
    assert "first row" in text


def test_export_pdf_missing_font_falls_back(tmp_path):
    path = export_pdf(_table(), tmp_path / "out.pdf", font_path=tmp_path / "missing.ttf")
    assert path.exists()


def test_export_docx_table_and_images(tmp_path):
    path = export_docx(_table(), tmp_path / "out.docx", title="Report")
    document = Document(str(path))
    (table,) = document.tables
    assert [c.text for c in table.rows[0].cells] == list(EXPORT_COLUMNS)
    assert table.rows[1].cells[3].text == "first row"
    assert table.rows[2].cells[0].text == "2"
    assert len(document.inline_shapes) == 1


def test_export_to_missing_directory_raises(tmp_path):
    with pytest.raises(WorkbenchDataError):
        export_docx(_table(), tmp_path / "missing" / "out.docx")
    with pytest.raises(WorkbenchDataError):
        export_csv(_table(), tmp_path / "missing" / "out.csv")


def test_export_docx_skips_unreadable_images(tmp_path):
    broken = ImageRecord(image_id="bad", filename="bad.png", mime="image/png", original_data=b"not an image")
    table = Table(rows=(Row(row_id=1, primary_text="only"),), images={1: (broken,)}, next_row_id=2)
    path = export_docx(table, tmp_path / "skip.docx")
    document = Document(str(path))
    assert document.tables[0].rows[1].cells[3].text == "only"
    assert len(document.inline_shapes) == 0
