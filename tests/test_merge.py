from shastrapath_tool.merge import (
    SEPARATOR,
    extract_citations,
    merge_fragment,
    merge_heading,
    normalize_selection,
)
from shastrapath_tool.models import Row


def test_repeat_fragment_is_merged_once():
    row = Row(row_id=1)
    once = merge_fragment("text (क्र.-12)", "", row)
    twice = merge_fragment("text (क्र.-12)", "", once)
    assert twice == once
    assert once.primary_text == "text"
    assert once.pointer_accumulator == "(क्र.-12)"
    assert SEPARATOR not in once.primary_text


def test_novel_citation_adds_separator():
    row = merge_fragment("text (क्र.-12)", "", Row(row_id=1))
    row = merge_fragment("other (क्र.-99)", "", row)
    assert row.primary_text == f"text\n{SEPARATOR}\nother"
    assert row.pointer_accumulator.split("\n") == ["(क्र.-12)", "(क्र.-99)"]


def test_known_citation_appends_without_separator():
    row = merge_fragment("first (क्र.-1)", "", Row(row_id=1))
    row = merge_fragment("second (क्र.-1)", "", row)
    assert row.primary_text == "first\nsecond"
    assert row.pointer_accumulator == "(क्र.-1)"


def test_fragment_without_citation_appends_plainly():
    row = merge_fragment("alpha", "", Row(row_id=1, primary_text="start"))
    assert row.primary_text == "start\nalpha"
    assert row.pointer_accumulator == ""


def test_citation_only_fragment_updates_pointers():
    row = merge_fragment("(क्र.-5)", "", Row(row_id=1, primary_text="keep"))
    assert row.primary_text == "keep"
    assert row.pointer_accumulator == "(क्र.-5)"


def test_extract_citations_returns_body_without_citations():
    citations, body = extract_citations("a (क्र.-1) b (क्र. 2)")
    assert citations == ["(क्र.-1)", "(क्र. 2)"]
    assert body == "a  b"


def test_normalize_selection_cuts_at_see_code():
    assert normalize_selection("one<br/>two See Code 12 rest") == "one\ntwo"
    assert normalize_selection("") == ""


def test_merge_heading_groups_subheadings_under_heading():
    row = Row(row_id=1)
    row = merge_heading("Gita\n1", row)
    row = merge_heading("Gita\n2", row)
    row = merge_heading("Upanishad\n7", row)
    assert row.heading_accumulator == "Gita\n1\n2\n\nUpanishad\n7"


def test_merge_heading_is_idempotent():
    row = merge_heading("Gita\n1", Row(row_id=1))
    assert merge_heading("Gita\n1", row) == row
    folded = merge_heading("Gita\np1\n4", row)
    assert merge_heading("Gita\np1\n4", folded) == folded


def test_merge_heading_ignores_empty_heading_and_subheading():
    row = Row(row_id=1)
    assert merge_heading("\n3", row) == row
    assert merge_heading("Gita\n", row).heading_accumulator == "Gita"


def test_fragment_merge_is_idempotent_from_populated_rows():
    populated = Row(
        row_id=1,
        primary_text=f"old text\n{SEPARATOR}\nmore",
        pointer_accumulator="(क्र.-1)\n(क्र.-2)",
    )
    fragments = [
        "fresh (क्र.-9)",
        "known again (क्र.-1)",
        "mixed (क्र.-2) (क्र.-7)",
        "(क्र.-8)",
        "no citation at all",
        "old text",
        "",
    ]
    for start in (Row(row_id=1), populated):
        for fragment in fragments:
            once = merge_fragment(fragment, "G\n1", start)
            assert merge_fragment(fragment, "G\n1", once) == once, fragment


def test_mixed_citations_count_as_novel():
    row = Row(row_id=1, primary_text="a", pointer_accumulator="(क्र.-2)")
    row = merge_fragment("b (क्र.-2) (क्र.-7)", "", row)
    assert row.primary_text == f"a\n{SEPARATOR}\nb"
    assert row.pointer_accumulator == "(क्र.-2)\n(क्र.-7)"


def test_heading_merge_is_idempotent_over_several_blocks():
    start = Row(row_id=1, heading_accumulator="Gita\n1\n2\n\nUpanishad\n7\n\nPurana")
    for context in ("Gita\n1", "Gita\n3", "Upanishad\n7\np4", "Purana\n", "Veda\n5", "New"):
        once = merge_heading(context, start)
        assert merge_heading(context, once) == once, context
    row = merge_heading("Upanishad\n8", start)
    assert row.heading_accumulator == "Gita\n1\n2\n\nUpanishad\n7\n8\n\nPurana"


def test_heading_context_does_not_change_fragment_merge():
    row = Row(row_id=1, primary_text="a", pointer_accumulator="(क्र.-1)")
    assert merge_fragment("b (क्र.-3)", "", row) == merge_fragment("b (क्र.-3)", "Gita\n2", row)
