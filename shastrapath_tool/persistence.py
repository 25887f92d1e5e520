"""Local snapshot persistence.

The workbench keeps a flat JSON file of string keys to string values. The
whole section/table/row/image tree is serialised under :data:`STATE_KEY` after
every change and read back once at start-up. Failures are logged and reported
as return values; they never propagate to the UI.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import WorkbenchDataError
from .models import (
    DEFAULT_CLASSIFICATION,
    DEFAULT_SECTION_NAME,
    DEFAULT_TABLE_NAME,
    CropRegion,
    ImageRecord,
    Row,
    SectionTab,
    Table,
    WorkbenchState,
)

LOGGER = logging.getLogger(__name__)

STATE_KEY = "tableState"
SNAPSHOT_VERSION = 2

# Column keys used by snapshots written before rows had named fields.
LEGACY_ROW_KEYS: Dict[str, str] = {
    "col2": "classification",
    "col3": "heading_accumulator",
    "col4": "primary_text",
    "col5": "remark_a",
    "col6": "remark_b",
    "pointers": "pointer_accumulator",
}
_ROW_JSON_KEYS: Dict[str, str] = {
    "id": "row_id",
    "classification": "classification",
    "primaryText": "primary_text",
    "headingAccumulator": "heading_accumulator",
    "pointerAccumulator": "pointer_accumulator",
    "remarkA": "remark_a",
    "remarkB": "remark_b",
}


# ----------------------------------------------------------------------
# Encoding
# ----------------------------------------------------------------------
def _b64(data: Optional[bytes]) -> Optional[str]:
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def _unb64(value: Any) -> Optional[bytes]:
    if value in (None, ""):
        return None
    text = str(value)
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise WorkbenchDataError(f"Invalid image data in snapshot: {exc}") from exc


def _image_to_dict(image: ImageRecord) -> Dict[str, Any]:
    region = image.crop_region
    return {
        "imageId": image.image_id,
        "filename": image.filename,
        "mime": image.mime,
        "originalImageData": _b64(image.original_data),
        "croppedImageData": _b64(image.cropped_data),
        "cropRegion": None if region is None else {
            "x": region.x, "y": region.y, "width": region.width, "height": region.height, "unit": region.unit,
        },
    }


def _row_to_dict(row: Row) -> Dict[str, Any]:
    return {key: getattr(row, attr) for key, attr in _ROW_JSON_KEYS.items()}


def state_to_dict(state: WorkbenchState) -> Dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "activeSectionIndex": state.active_section_index,
        "activeTableIndex": state.active_table_index,
        "sections": [
            {
                "name": section.name,
                "tables": [
                    {
                        "name": table.name,
                        "nextRowId": table.next_row_id,
                        "selectedRowId": table.selected_row_id,
                        "rows": [_row_to_dict(r) for r in table.rows],
                        "images": {
                            str(row_id): [_image_to_dict(img) for img in images]
                            for row_id, images in table.images.items()
                        },
                    }
                    for table in section.tables
                ],
            }
            for section in state.sections
        ],
    }


# ----------------------------------------------------------------------
# Decoding
# ----------------------------------------------------------------------
def _image_from_dict(payload: Dict[str, Any], fallback_id: str) -> ImageRecord:
    original = _unb64(payload.get("originalImageData"))
    if original is None:
        raise WorkbenchDataError("Image entry without original data")
    raw_region = payload.get("cropRegion") or payload.get("crop")
    region = None
    if isinstance(raw_region, dict) and raw_region.get("width") and raw_region.get("height"):
        region = CropRegion(
            x=float(raw_region.get("x", 0)),
            y=float(raw_region.get("y", 0)),
            width=float(raw_region["width"]),
            height=float(raw_region["height"]),
            unit=str(raw_region.get("unit", "px")),
        )
    return ImageRecord(
        image_id=str(payload.get("imageId") or fallback_id),
        filename=str(payload.get("filename") or "image"),
        mime=str(payload.get("mime") or "image/png"),
        original_data=original,
        cropped_data=_unb64(payload.get("croppedImageData")),
        crop_region=region,
    )


def _row_from_dict(payload: Dict[str, Any]) -> Row:
    missing = [key for key in _ROW_JSON_KEYS if key not in payload]
    if missing:
        raise WorkbenchDataError("Row is missing fields: " + ", ".join(missing))
    values = {attr: payload[key] for key, attr in _ROW_JSON_KEYS.items()}
    values["row_id"] = int(values["row_id"])
    for attr in Row.EDITABLE_FIELDS:
        values[attr] = str(values[attr] if values[attr] is not None else "")
    return Row(**values)


def _legacy_row(payload: Dict[str, Any], row_id: int) -> Row:
    values = {attr: str(payload.get(key) or "") for key, attr in LEGACY_ROW_KEYS.items()}
    values["classification"] = values["classification"] or DEFAULT_CLASSIFICATION
    return Row(row_id=row_id, **values)


def _table_from_dict(payload: Dict[str, Any], legacy: bool) -> Table:
    raw_rows = payload.get("rows") or []
    if not isinstance(raw_rows, list):
        raise WorkbenchDataError("Table rows must be a list")

    rows: List[Row] = []
    position_to_id: Dict[int, int] = {}
    if legacy:
        used: set[int] = set()
        for position, raw in enumerate(raw_rows):
            try:
                row_id = int(raw.get("id"))
            except (TypeError, ValueError):
                row_id = 0
            if row_id <= 0 or row_id in used:
                row_id = max(used | {len(raw_rows)}) + 1
            used.add(row_id)
            rows.append(_legacy_row(raw, row_id))
            position_to_id[position] = row_id
    else:
        rows = [_row_from_dict(raw) for raw in raw_rows]
        if len({r.row_id for r in rows}) != len(rows):
            raise WorkbenchDataError(f"Duplicate row ids in table {payload.get('name')!r}")

    live_ids = {r.row_id for r in rows}
    images: Dict[int, Tuple[ImageRecord, ...]] = {}
    for key, entries in (payload.get("images") or {}).items():
        try:
            row_id = position_to_id.get(int(key)) if legacy else int(key)
        except ValueError:
            LOGGER.warning("Dropping images stored under invalid key %r", key)
            continue
        if row_id not in live_ids:
            LOGGER.warning("Dropping images for missing row %s", key)
            continue
        images[row_id] = tuple(
            _image_from_dict(entry, f"{row_id}-{i}") for i, entry in enumerate(entries or [])
        )

    if legacy:
        index = payload.get("selectedRowIndex")
        selected = rows[index].row_id if isinstance(index, int) and 0 <= index < len(rows) else None
    else:
        selected = payload.get("selectedRowId")
        if selected not in live_ids:
            selected = None

    next_row_id = max([int(payload.get("nextRowId") or 0), *(r.row_id + 1 for r in rows), 1])
    return Table(
        name=str(payload.get("name") or DEFAULT_TABLE_NAME),
        rows=tuple(rows),
        selected_row_id=selected,
        images=images,
        next_row_id=next_row_id,
    )


def state_from_dict(payload: Dict[str, Any]) -> WorkbenchState:
    """Rebuild a state tree, migrating snapshots from older versions."""
    if not isinstance(payload, dict):
        raise WorkbenchDataError("Snapshot must be a JSON object")
    legacy = int(payload.get("version") or 1) < SNAPSHOT_VERSION
    raw_sections = payload.get("sections")
    if not isinstance(raw_sections, list):
        raise WorkbenchDataError("Snapshot has no section list")

    sections: List[SectionTab] = []
    for raw in raw_sections:
        tables = tuple(_table_from_dict(t, legacy) for t in (raw.get("tables") or []))
        sections.append(
            SectionTab(
                name=str(raw.get("name") or DEFAULT_SECTION_NAME),
                tables=tables or (Table(),),
            )
        )
    if not sections:
        sections.append(SectionTab())

    active_section = int(payload.get("activeSectionIndex") or 0)
    if not 0 <= active_section < len(sections):
        active_section = 0
    active_table = int(payload.get("activeTableIndex") or 0)
    if not 0 <= active_table < len(sections[active_section].tables):
        active_table = 0
    if legacy:
        LOGGER.info("Migrated legacy snapshot with %d section(s)", len(sections))
    return WorkbenchState(
        sections=tuple(sections),
        active_section_index=active_section,
        active_table_index=active_table,
    )


# ----------------------------------------------------------------------
# Store
# ----------------------------------------------------------------------
class SnapshotStore:
    """A flat string-keyed store backed by one JSON file."""

    def __init__(self, path: str | Path, max_bytes: Optional[int] = None):
        self.path = Path(path)
        self.max_bytes = max_bytes

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.error("Could not read snapshot store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            LOGGER.error("Snapshot store %s is not a JSON object", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> bool:
        """Write one key atomically; return ``False`` (and log) on failure."""
        data = self._read_all()
        data[key] = value
        try:
            text = json.dumps(data, ensure_ascii=False)
            if self.max_bytes is not None and len(text.encode("utf-8")) > self.max_bytes:
                raise OSError(f"snapshot of {len(text.encode('utf-8'))} bytes exceeds quota of {self.max_bytes}")
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            LOGGER.error("Failed to save snapshot key %s: %s", key, exc)
            return False
        return True

    def save_state(self, state: WorkbenchState) -> bool:
        try:
            payload = json.dumps(state_to_dict(state), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            LOGGER.error("Failed to serialise workbench state: %s", exc)
            return False
        return self.set(STATE_KEY, payload)

    def load_state(self) -> Optional[WorkbenchState]:
        raw = self.get(STATE_KEY)
        if raw is None:
            return None
        try:
            return state_from_dict(json.loads(raw))
        except (json.JSONDecodeError, WorkbenchDataError, TypeError, ValueError, AttributeError) as exc:
            LOGGER.warning("Ignoring unusable snapshot in %s: %s", self.path, exc)
            return None
