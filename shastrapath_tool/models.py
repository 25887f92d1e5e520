"""Fixed-shape records shared by the parser, the merge engine and the table store.

Every record is a frozen dataclass. Code that needs a changed record builds a
new one with :func:`dataclasses.replace`, which keeps undo snapshots cheap and
lets reducers be compared with ``==`` in tests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, Optional, Sequence, Tuple

# Classification ("V.T") values in their presentation order.
CLASSIFICATIONS: Sequence[str] = (
    "व्यु",
    "व्या",
    "साल",
    "ल",
    "लचि",
    "पर्या",
    "विक.",
    "स्व",
    "परि",
)
CLASSIFICATION_LABELS: Dict[str, str] = {
    "साल": "सा.ल",
    "ल": "ल.",
    "लचि": "ल.चि.",
    "स्व": "स्व.",
    "परि": "परि.",
}
DEFAULT_CLASSIFICATION = "स्व"

# Publication remark codes; the valued ones are stored as ``CODE=value``.
REMARK_CODES: Sequence[str] = ("MTN", "MMT", "Samegranth", "SinglePath", "RA", "RC", "RS")
VALUED_REMARK_CODES: Sequence[str] = ("RA", "RC", "RS")

EXPORT_COLUMNS: Sequence[str] = ("Sr.", "V.T", "Granth", "ShastraPath", "Pub. Rem", "In. Rem")

DEFAULT_SECTION_NAME = "Section 1"
DEFAULT_TABLE_NAME = "Sheet 1"


@dataclass(frozen=True)
class Section:
    """One heading-delimited unit of a parsed document."""

    heading: str = ""
    subheading: str = ""
    pointer_tag: str = ""
    body: str = ""
    lines: Tuple[str, ...] = ()

    @property
    def heading_context(self) -> str:
        return f"{self.heading}\n{self.subheading}"


@dataclass(frozen=True)
class ParsedDocument:
    display_name: str
    dialect: str
    sections: Tuple[Section, ...] = ()


@dataclass(frozen=True)
class Row:
    row_id: int
    classification: str = DEFAULT_CLASSIFICATION
    primary_text: str = ""
    heading_accumulator: str = ""
    pointer_accumulator: str = ""
    remark_a: str = ""
    remark_b: str = ""

    EDITABLE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "classification",
        "primary_text",
        "heading_accumulator",
        "pointer_accumulator",
        "remark_a",
        "remark_b",
    )


@dataclass(frozen=True)
class CropRegion:
    x: float
    y: float
    width: float
    height: float
    unit: str = "px"


@dataclass(frozen=True)
class ImageRecord:
    image_id: str
    filename: str
    mime: str
    original_data: bytes
    cropped_data: Optional[bytes] = None
    crop_region: Optional[CropRegion] = None

    @property
    def display_data(self) -> bytes:
        return self.cropped_data if self.cropped_data else self.original_data


@dataclass(frozen=True)
class Table:
    name: str = DEFAULT_TABLE_NAME
    rows: Tuple[Row, ...] = ()
    selected_row_id: Optional[int] = None
    images: Dict[int, Tuple[ImageRecord, ...]] = field(default_factory=dict)
    next_row_id: int = 1

    def row_by_id(self, row_id: Optional[int]) -> Optional[Row]:
        if row_id is None:
            return None
        for row in self.rows:
            if row.row_id == row_id:
                return row
        return None

    @property
    def selected_row(self) -> Optional[Row]:
        return self.row_by_id(self.selected_row_id)

    @property
    def selected_row_index(self) -> Optional[int]:
        for index, row in enumerate(self.rows):
            if row.row_id == self.selected_row_id:
                return index
        return None


@dataclass(frozen=True)
class SectionTab:
    name: str = DEFAULT_SECTION_NAME
    tables: Tuple[Table, ...] = (Table(),)


@dataclass(frozen=True)
class WorkbenchState:
    sections: Tuple[SectionTab, ...] = (SectionTab(),)
    active_section_index: int = 0
    active_table_index: int = 0
    documents: Tuple[ParsedDocument, ...] = ()

    @property
    def active_section(self) -> Optional[SectionTab]:
        if 0 <= self.active_section_index < len(self.sections):
            return self.sections[self.active_section_index]
        return None

    @property
    def active_table(self) -> Optional[Table]:
        section = self.active_section
        if section is None:
            return None
        if 0 <= self.active_table_index < len(section.tables):
            return section.tables[self.active_table_index]
        return None


def compose_remark(code: str, value: str = "") -> str:
    """Return the stored form of a publication remark."""
    code = (code or "").strip()
    if code in VALUED_REMARK_CODES:
        return f"{code}={value}"
    return code


def split_remark(remark: str) -> tuple[str, str]:
    """Split a stored remark into ``(code, value)``; value is empty for plain codes."""
    code, _, value = str(remark or "").partition("=")
    return code, value
