import unicodedata

from shastrapath_tool.models import EXPORT_COLUMNS, Row, Table
from shastrapath_tool.presentation import presentation_order, rows_to_dataframe, table_to_dataframe


def test_sort_by_classification_then_first_line():
    rows = (
        Row(row_id=1, classification="परि", primary_text="a"),
        Row(row_id=2, classification="स्व", primary_text="beta\nzzz"),
        Row(row_id=3, classification="स्व", primary_text="alpha"),
        Row(row_id=4, classification="व्यु", primary_text="z"),
        Row(row_id=5, classification="unknown", primary_text="a"),
    )
    assert [r.row_id for r in presentation_order(rows)] == [4, 3, 2, 1, 5]


def test_empty_text_sorts_after_text_and_ties_keep_insertion_order():
    rows = (
        Row(row_id=1, primary_text=""),
        Row(row_id=2, primary_text="same"),
        Row(row_id=3, primary_text=""),
        Row(row_id=4, primary_text="same"),
    )
    assert [r.row_id for r in presentation_order(rows)] == [2, 4, 1, 3]


def test_sort_is_stable_when_reapplied():
    rows = tuple(Row(row_id=i, primary_text=text) for i, text in enumerate(["b", "a", "b", "", "a"], start=1))
    once = presentation_order(rows)
    assert presentation_order(once) == once


def test_first_line_comparison_is_normalised():
    composed = "\u0958"
    decomposed = "\u0915\u093c"
    assert unicodedata.normalize("NFC", composed) == unicodedata.normalize("NFC", decomposed)
    rows = (Row(row_id=1, primary_text=composed), Row(row_id=2, primary_text=decomposed))
    assert [r.row_id for r in presentation_order(rows)] == [1, 2]


def test_table_to_dataframe_uses_export_columns():
    table = Table(
        rows=(
            Row(row_id=1, classification="स्व", primary_text="second", heading_accumulator="G\n1", remark_a="MTN"),
            Row(row_id=2, classification="व्यु", primary_text="first", remark_b="inner"),
        )
    )
    frame = table_to_dataframe(table)
    assert list(frame.columns) == list(EXPORT_COLUMNS)
    assert frame["Sr."].tolist() == [1, 2]
    assert frame["ShastraPath"].tolist() == ["first", "second"]
    assert frame.iloc[1]["Granth"] == "G\n1"
    assert frame.iloc[1]["Pub. Rem"] == "MTN"
    assert frame.iloc[0]["In. Rem"] == "inner"


def test_rows_to_dataframe_keeps_field_names():
    frame = rows_to_dataframe(Table(rows=(Row(row_id=7, primary_text="x"),)))
    assert list(frame.columns) == ["row_id", *Row.EDITABLE_FIELDS]
    assert frame.iloc[0]["row_id"] == 7


def test_empty_table_projects_to_empty_frame():
    assert presentation_order(()) == []
    assert table_to_dataframe(Table()).empty
