from __future__ import annotations

from .classifier import ColumnClassifier, HeaderClassification
from .duplicates import DuplicatePartition, DuplicateResolver, StoreSnapshot
from .errors import (
    BatchFailure,
    ConfigurationError,
    ContactImportError,
    ParseFailure,
    TotalFailure,
    ValidationBlocked,
)
from .importability import ImportabilityFilter, ImportabilityReport
from .models import (
    CanonicalField,
    ContactRecord,
    DuplicateVerdict,
    ImportBatchResult,
    ImportContext,
    ProfileMatch,
)
from .normalization import RowNormalizer, read_contact_table
from .orchestrator import ImportOrchestrator, ImportPreview
from .rep_matcher import RepMatcher

__all__ = [
    "BatchFailure",
    "CanonicalField",
    "ColumnClassifier",
    "ConfigurationError",
    "ContactImportError",
    "ContactRecord",
    "DuplicatePartition",
    "DuplicateResolver",
    "DuplicateVerdict",
    "HeaderClassification",
    "ImportBatchResult",
    "ImportContext",
    "ImportOrchestrator",
    "ImportPreview",
    "ImportabilityFilter",
    "ImportabilityReport",
    "ParseFailure",
    "ProfileMatch",
    "RepMatcher",
    "RowNormalizer",
    "StoreSnapshot",
    "TotalFailure",
    "ValidationBlocked",
    "read_contact_table",
]
