"""Runtime settings for the workbench, read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DIALECT_B_PATTERN = r"(?i)(?:^|[_\-\s.])(?:b|en|eng)(?:[_\-\s.]|$)"


def _parse_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _parse_float(value: str | None, default: float) -> float:
    try:
        return float(value) if value is not None else default
    except ValueError:
        return default


@dataclass
class Settings:
    snapshot_path: Path
    bug_endpoint: str
    bug_timeout: int
    log_level: str
    pdf_font_path: Optional[Path]
    dialect_b_pattern: str
    export_image_width_inches: float = 2.5


def load_settings() -> Settings:
    font = os.getenv("SHASTRAPATH_PDF_FONT", "").strip()
    return Settings(
        snapshot_path=Path(
            os.getenv("SHASTRAPATH_SNAPSHOT_PATH", str(Path.home() / ".shastrapath" / "snapshot.json"))
        ),
        bug_endpoint=os.getenv("SHASTRAPATH_BUG_ENDPOINT", "http://localhost:3000/api/bug"),
        bug_timeout=_parse_int(os.getenv("SHASTRAPATH_BUG_TIMEOUT"), 30),
        log_level=os.getenv("SHASTRAPATH_LOG_LEVEL", "INFO").upper(),
        pdf_font_path=Path(font) if font else None,
        dialect_b_pattern=os.getenv("SHASTRAPATH_DIALECT_B_PATTERN", DEFAULT_DIALECT_B_PATTERN),
        export_image_width_inches=_parse_float(os.getenv("SHASTRAPATH_EXPORT_IMAGE_WIDTH"), 2.5),
    )
