"""Client for the bug-report endpoint (``multipart/form-data`` POST)."""
from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import requests

from .errors import WorkbenchInputError

LOGGER = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to submit bug report. Please try again later."


@dataclass
class BugReport:
    title: str
    description: str
    # (filename, bytes) pairs
    images: List[Tuple[str, bytes]] = field(default_factory=list)

    def validate(self) -> None:
        if not self.title.strip() or not self.description.strip():
            raise WorkbenchInputError("Title and description are required.")

    def add_image_file(self, path: str | Path) -> None:
        path = Path(path)
        self.images.append((path.name, path.read_bytes()))


@dataclass
class BugReportResult:
    success: bool
    error: Optional[str] = None


def submit_bug_report(report: BugReport, endpoint: str, timeout: int = 30) -> BugReportResult:
    """POST ``report``; every failure comes back as an unsuccessful result.

    Validation errors are raised before any request is made. There is no
    automatic retry.
    """
    report.validate()
    # (None, value) parts keep the body multipart even without images
    parts = [
        ("title", (None, report.title)),
        ("description", (None, report.description)),
    ]
    parts.extend(
        ("images", (name, data, mimetypes.guess_type(name)[0] or "application/octet-stream"))
        for name, data in report.images
    )
    try:
        response = requests.post(endpoint, files=parts, timeout=timeout)
    except requests.RequestException as exc:
        LOGGER.error("Bug report submission failed: %s", exc)
        return BugReportResult(False, str(exc) or GENERIC_FAILURE)

    if not response.ok:
        LOGGER.error("Bug report endpoint returned HTTP %s", response.status_code)
        return BugReportResult(False, GENERIC_FAILURE)
    try:
        payload = response.json()
    except ValueError:
        LOGGER.error("Bug report endpoint returned a non-JSON body")
        return BugReportResult(False, "Something went wrong")
    if not isinstance(payload, dict) or not payload.get("success"):
        error = payload.get("error") if isinstance(payload, dict) else None
        return BugReportResult(False, error or "Something went wrong")
    LOGGER.info("Bug report submitted: %s", report.title)
    return BugReportResult(True)
