"""Presentation order and tabular projections of a table's rows.

The sort is applied only when rendering or exporting; stored row order is
never changed.
"""
from __future__ import annotations

import unicodedata
from typing import List, Sequence

import pandas as pd

from .models import CLASSIFICATIONS, EXPORT_COLUMNS, Row, Table

_UNLISTED_RANK = len(CLASSIFICATIONS)


def _first_line(text: str) -> str:
    for line in str(text or "").split("\n"):
        return unicodedata.normalize("NFC", line.strip())
    return ""


def _rank(classification: str) -> int:
    try:
        return CLASSIFICATIONS.index(classification)
    except ValueError:
        return _UNLISTED_RANK


def _sort_frame(rows: Sequence[Row]) -> pd.DataFrame:
    frame = pd.DataFrame(
        {
            "_order": range(len(rows)),
            "_rank": [_rank(r.classification) for r in rows],
            "_first": [_first_line(r.primary_text) for r in rows],
        }
    )
    frame["_empty"] = frame["_first"].eq("")
    # _order is the final key so equal rows keep their insertion order
    return frame.sort_values(["_rank", "_empty", "_first", "_order"], kind="mergesort")


def presentation_order(rows: Sequence[Row]) -> List[Row]:
    """Return ``rows`` sorted by classification, then by first line of text."""
    if not rows:
        return []
    frame = _sort_frame(rows)
    return [rows[int(i)] for i in frame["_order"]]


def table_to_records(table: Table) -> List[dict]:
    """Project rows onto the export columns, in presentation order."""
    records = []
    for position, row in enumerate(presentation_order(table.rows), start=1):
        records.append(
            {
                "Sr.": position,
                "V.T": row.classification,
                "Granth": row.heading_accumulator,
                "ShastraPath": row.primary_text,
                "Pub. Rem": row.remark_a,
                "In. Rem": row.remark_b,
            }
        )
    return records


def table_to_dataframe(table: Table) -> pd.DataFrame:
    return pd.DataFrame(table_to_records(table), columns=list(EXPORT_COLUMNS))


def rows_to_dataframe(table: Table) -> pd.DataFrame:
    """Rows in presentation order, keyed by the row field names."""
    columns = ["row_id", *Row.EDITABLE_FIELDS]
    return pd.DataFrame(
        [{c: getattr(r, c) for c in columns} for r in presentation_order(table.rows)],
        columns=columns,
    )
