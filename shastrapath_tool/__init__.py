"""Core package for the ShastraPath annotation workbench."""

from .data_manager import WorkbenchDataManager
from .errors import WorkbenchDataError, WorkbenchError, WorkbenchInputError

__all__ = [
    "WorkbenchDataManager",
    "WorkbenchError",
    "WorkbenchDataError",
    "WorkbenchInputError",
]
