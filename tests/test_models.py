import pytest

from shastrapath_tool.models import (
    REMARK_CODES,
    VALUED_REMARK_CODES,
    Section,
    Table,
    Row,
    compose_remark,
    split_remark,
)


@pytest.mark.parametrize("code", REMARK_CODES)
def test_remark_codes_round_trip(code):
    value = "page 12" if code in VALUED_REMARK_CODES else ""
    stored = compose_remark(code, value)
    assert split_remark(stored) == (code, value)


def test_plain_codes_drop_values():
    assert compose_remark("MTN", "ignored") == "MTN"
    assert compose_remark("RA", "") == "RA="
    assert compose_remark(" ", "x") == ""


def test_split_remark_keeps_equals_inside_value():
    assert split_remark("RC=a=b") == ("RC", "a=b")
    assert split_remark("") == ("", "")


def test_heading_context_joins_heading_and_subheading():
    assert Section(heading="Gita", subheading="2").heading_context == "Gita\n2"


def test_table_selection_lookup():
    table = Table(rows=(Row(row_id=4), Row(row_id=9)), selected_row_id=9)
    assert table.selected_row.row_id == 9
    assert table.selected_row_index == 1
    assert Table(rows=(Row(row_id=4),), selected_row_id=None).selected_row is None
