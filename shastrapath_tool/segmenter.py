"""Split converted document markup into labelled sections.

Two marker grammars ("dialects") are recognised:

* Dialect A: each record opens with ``ग्रंथ :-`` followed by optional
  ``Adhyay :-`` and ``Pointers :-`` lines and free text.
* Dialect B: each record opens with a ``Sthal :-`` location line. A
  ``Pointers :-`` line seen before the ``Granth :-`` line is folded into the
  heading, and the location only fills the subheading when no ``Adhyay :-``
  value has been seen yet.

Parsing never raises on unexpected structure: missing markers simply leave
fields empty.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup

from .config import DEFAULT_DIALECT_B_PATTERN
from .models import Section

LOGGER = logging.getLogger(__name__)

BODY_LINE_BREAK = "<br/>"


class Dialect(str, Enum):
    A = "A"
    B = "B"


@dataclass(frozen=True)
class DialectRules:
    record_marker: str
    heading_prefix: str
    subheading_prefix: str
    pointer_prefix: str
    publisher_tokens: Tuple[str, ...]
    location_prefix: Optional[str] = None
    fold_leading_pointer: bool = False


DIALECT_RULES = {
    Dialect.A: DialectRules(
        record_marker="ग्रंथ :-",
        heading_prefix="ग्रंथ :-",
        subheading_prefix="Adhyay :-",
        pointer_prefix="Pointers :-",
        publisher_tokens=("(प्रकाशक",),
    ),
    Dialect.B: DialectRules(
        record_marker="Sthal :-",
        heading_prefix="Granth :-",
        subheading_prefix="Adhyay :-",
        pointer_prefix="Pointers :-",
        publisher_tokens=("(प्रकाशक", "(Publisher"),
        location_prefix="Sthal :-",
        fold_leading_pointer=True,
    ),
}


def detect_dialect(filename: str, pattern: str = DEFAULT_DIALECT_B_PATTERN) -> Dialect:
    """Pick the dialect from the uploaded file name."""
    name = Path(str(filename or "")).name
    try:
        if re.search(pattern, name):
            return Dialect.B
    except re.error as exc:
        LOGGER.warning("Invalid dialect pattern %r: %s", pattern, exc)
    return Dialect.A


def _strip_publisher(value: str, tokens: Iterable[str]) -> str:
    for token in tokens:
        value = value.split(token, 1)[0]
    return value.strip()


def _strip_prefix(line: str, prefix: str) -> str:
    return line[len(prefix):].strip()


def classify(lines: Sequence[str], dialect: Dialect = Dialect.A) -> Section:
    """Assign each line of one chunk to a named field.

    Prefixes are checked in priority order (heading, subheading, pointer,
    location); the first match consumes the line. Everything else lands in the
    body, joined with ``<br/>`` so line breaks survive raw-text round trips.
    """
    rules = DIALECT_RULES[Dialect(dialect)]
    heading = ""
    subheading = ""
    pointer = ""
    seen_heading = False
    text_lines: List[str] = []

    for raw in lines:
        line = str(raw or "").strip()
        if line.startswith(rules.heading_prefix):
            heading = _strip_publisher(_strip_prefix(line, rules.heading_prefix), rules.publisher_tokens)
            if rules.fold_leading_pointer and not seen_heading and pointer:
                heading = f"{heading}\n{pointer}"
                pointer = ""
            seen_heading = True
        elif line.startswith(rules.subheading_prefix):
            subheading = _strip_prefix(line, rules.subheading_prefix)
        elif line.startswith(rules.pointer_prefix):
            pointer = _strip_prefix(line, rules.pointer_prefix)
        elif rules.location_prefix and line.startswith(rules.location_prefix):
            if not subheading:
                subheading = _strip_prefix(line, rules.location_prefix)
        else:
            text_lines.append(line)

    return Section(
        heading=heading,
        subheading=subheading,
        pointer_tag=pointer,
        body=BODY_LINE_BREAK.join(text_lines),
        lines=tuple(str(raw or "").strip() for raw in lines),
    )


def paragraph_lines(markup: str) -> List[str]:
    """Return the trimmed text of every ``<p>`` element, in document order."""
    soup = BeautifulSoup(markup or "", "html.parser")
    return [p.get_text().strip() for p in soup.find_all("p")]


def _split_chunks(lines: Sequence[str], rules: DialectRules) -> List[List[str]]:
    """Start a chunk at each record marker, or at a second heading within one record."""
    chunks: List[List[str]] = []
    current: List[str] = []
    has_heading = False
    for line in lines:
        is_heading = line.startswith(rules.heading_prefix)
        if current and (line.startswith(rules.record_marker) or (is_heading and has_heading)):
            chunks.append(current)
            current = []
            has_heading = False
        current.append(line)
        has_heading = has_heading or is_heading
    if current:
        chunks.append(current)
    return chunks


def segment(markup: str, dialect: Dialect = Dialect.A) -> List[Section]:
    """Split converted document markup into an ordered list of sections."""
    rules = DIALECT_RULES[Dialect(dialect)]
    lines = paragraph_lines(markup)
    if not lines:
        soup = BeautifulSoup(markup or "", "html.parser")
        text = [ln.strip() for ln in soup.get_text("\n").splitlines() if ln.strip()]
        LOGGER.warning("No paragraph lines found; returning the whole text as one section")
        return [Section(body=BODY_LINE_BREAK.join(text))]

    sections = [classify(chunk, dialect) for chunk in _split_chunks(lines, rules)]
    LOGGER.info("Segmented %d paragraph lines into %d sections (dialect %s)", len(lines), len(sections), Dialect(dialect).value)
    return sections
