"""Exception taxonomy for the contact import engine."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from .models import ImportBatchResult


class ContactImportError(Exception):
    """Base class for errors raised by the import engine."""


class ConfigurationError(ContactImportError):
    """Raised when configuration files are missing or malformed."""


class ParseFailure(ContactImportError):
    """Raised when the uploaded file is not valid tabular data."""


class ValidationBlocked(ContactImportError):
    """Raised when the header row or importable-row ratio blocks a commit.

    The diagnostic report is still attached so callers can render the preview.
    """

    def __init__(self, reasons: Sequence[str], report: Optional[Any] = None) -> None:
        self.reasons: List[str] = list(reasons)
        self.report = report
        super().__init__("; ".join(self.reasons) or "import blocked")


class BatchFailure(ContactImportError):
    """A single insertion batch failed. Recorded on the result, never raised out of a run."""

    def __init__(self, batch_number: int, size: int, cause: BaseException) -> None:
        self.batch_number = batch_number
        self.size = size
        self.cause = cause
        super().__init__(f"batch {batch_number} ({size} contacts) failed: {cause}")


class TotalFailure(ContactImportError):
    """Every insertion batch failed."""

    def __init__(self, result: "ImportBatchResult") -> None:
        self.result = result
        super().__init__(
            f"Import failed: all {result.failure_count} contacts were rejected. "
            "Try again with a smaller file."
        )
