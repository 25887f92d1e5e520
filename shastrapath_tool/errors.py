"""Exceptions raised by the workbench core."""
from __future__ import annotations


class WorkbenchError(RuntimeError):
    """Base class for errors the workbench reports to the user."""


class WorkbenchInputError(WorkbenchError):
    """Raised when user supplied input is rejected (file type, blank field, bad image)."""


class WorkbenchDataError(WorkbenchError):
    """Raised when a document or export cannot be processed safely."""
