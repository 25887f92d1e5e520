"""Fold user-selected fragments and heading pairs into a table row.

Both merges are idempotent: repeating the same input against the row they
produced leaves the row unchanged.
"""
from __future__ import annotations

import re
from dataclasses import replace
from typing import List, Sequence

from .models import Row

CITATION_PATTERN = re.compile(r"\(क्र\.[^()]*\)")
SEPARATOR = "............"
SELECTION_CUTOFF = "See Code"


def normalize_selection(text: str) -> str:
    """Prepare copied section text for merging.

    ``<br/>`` tokens from the section body become newlines and anything after
    the first ``See Code`` marker is dropped.
    """
    cleaned = str(text or "").replace("<br/>", "\n")
    return cleaned.split(SELECTION_CUTOFF, 1)[0].strip()


def extract_citations(text: str) -> tuple[List[str], str]:
    """Return ``(citations, body)`` for a fragment."""
    citations = [m.group(0).strip() for m in CITATION_PATTERN.finditer(text or "")]
    body = CITATION_PATTERN.sub("", text or "").strip()
    return citations, body


def _pointer_list(accumulator: str) -> List[str]:
    return [line.strip() for line in str(accumulator or "").split("\n") if line.strip()]


def _ordered_union(*groups: Sequence[str]) -> List[str]:
    seen: dict[str, None] = {}
    for group in groups:
        for item in group:
            item = item.strip()
            if item:
                seen.setdefault(item, None)
    return list(seen)


def merge_fragment(selected_text: str, heading_context: str, row: Row) -> Row:
    """Append a selected fragment to ``row.primary_text`` and track its citations.

    A fragment that carries a citation the row has not seen yet is separated
    from earlier text by a run of dots. ``heading_context`` is accepted so
    callers can pass the section they copied from; it does not change the
    result (headings are recorded by :func:`merge_heading`).
    """
    citations, body = extract_citations(selected_text)
    existing = _pointer_list(row.pointer_accumulator)
    is_novel = any(c not in existing for c in citations)

    primary = row.primary_text or ""
    if body and body not in primary:
        if not primary:
            primary = body
        elif is_novel:
            primary = f"{primary}\n{SEPARATOR}\n{body}"
        else:
            primary = f"{primary}\n{body}"

    pointers = "\n".join(_ordered_union(existing, citations))
    return replace(row, primary_text=primary, pointer_accumulator=pointers)


def _split_blocks(accumulator: str) -> List[List[str]]:
    blocks: List[List[str]] = []
    for chunk in re.split(r"\n\s*\n", str(accumulator or "")):
        lines = [ln.strip() for ln in chunk.split("\n") if ln.strip()]
        if lines:
            blocks.append(lines)
    return blocks


def merge_heading(heading_context: str, row: Row) -> Row:
    """Record a ``heading\\nsubheading`` pair in ``row.heading_accumulator``.

    The accumulator holds blocks separated by a blank line; each block is a
    heading followed by the sub-headings recorded under it.
    """
    heading, _, rest = str(heading_context or "").partition("\n")
    heading = heading.strip()
    if not heading:
        return row
    # a folded pointer can make the sub-heading span several lines
    subheadings = _ordered_union(rest.split("\n"))

    blocks = _split_blocks(row.heading_accumulator)
    for block in blocks:
        if block[0] == heading:
            block.extend([s for s in subheadings if s not in block[1:]])
            break
    else:
        blocks.append([heading] + subheadings)

    accumulator = "\n\n".join("\n".join(block) for block in blocks)
    return replace(row, heading_accumulator=accumulator)
