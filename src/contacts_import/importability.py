"""Decide which normalized rows can be imported and whether the file as a whole is usable."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import ValidationBlocked
from .lookups import PLACEHOLDER_HEADER_RE
from .models import ContactRecord

logger = logging.getLogger(__name__)

PLACEHOLDER_FIRST_NAME = "Homeowner"

MISSING_NAME_AND_CONTACT = "missing name + missing contact"
MISSING_CONTACT_ONLY = "missing contact only"
MISSING_NAME_ONLY = "missing name only"


@dataclass(frozen=True)
class HeaderQuality:
    total_columns: int
    placeholder_columns: int
    blocked: bool
    suspicious: bool

    @property
    def placeholder_ratio(self) -> float:
        return self.placeholder_columns / self.total_columns if self.total_columns else 0.0


@dataclass
class ImportabilityReport:
    importable: List[ContactRecord] = field(default_factory=list)
    excluded: List[ContactRecord] = field(default_factory=list)
    breakdown: Dict[str, int] = field(default_factory=dict)
    header_quality: Optional[HeaderQuality] = None
    blocking_reasons: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.importable) + len(self.excluded)

    @property
    def importable_ratio(self) -> float:
        return len(self.importable) / self.total_rows if self.total_rows else 0.0

    @property
    def blocked(self) -> bool:
        return bool(self.blocking_reasons)

    def raise_if_blocked(self) -> None:
        if self.blocking_reasons:
            raise ValidationBlocked(self.blocking_reasons, report=self)

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_rows": self.total_rows,
            "importable": len(self.importable),
            "excluded": len(self.excluded),
            "importable_ratio": round(self.importable_ratio, 4),
            "breakdown": dict(self.breakdown),
            "placeholder_headers": self.header_quality.placeholder_columns if self.header_quality else 0,
            "blocking_reasons": list(self.blocking_reasons),
            "warnings": list(self.warnings),
        }


class ImportabilityFilter:
    def __init__(
        self,
        min_importable_ratio: float = 0.05,
        placeholder_block_ratio: float = 0.5,
    ) -> None:
        self.min_importable_ratio = min_importable_ratio
        self.placeholder_block_ratio = placeholder_block_ratio

    @staticmethod
    def is_importable(record: ContactRecord) -> bool:
        return record.has_contact_info

    @staticmethod
    def exclusion_reason(record: ContactRecord) -> Optional[str]:
        if record.has_contact_info:
            return None
        if record.has_name:
            return MISSING_CONTACT_ONLY
        return MISSING_NAME_AND_CONTACT

    def assess_headers(self, headers: Sequence[str]) -> HeaderQuality:
        total = len(headers)
        placeholders = sum(
            1 for header in headers if not str(header).strip() or PLACEHOLDER_HEADER_RE.match(str(header).strip())
        )
        blocked = bool(total) and placeholders / total >= self.placeholder_block_ratio
        return HeaderQuality(
            total_columns=total,
            placeholder_columns=placeholders,
            blocked=blocked,
            suspicious=placeholders > 0 and not blocked,
        )

    def evaluate(
        self, records: Iterable[ContactRecord], headers: Optional[Sequence[str]] = None
    ) -> ImportabilityReport:
        report = ImportabilityReport(
            breakdown={MISSING_NAME_AND_CONTACT: 0, MISSING_CONTACT_ONLY: 0, MISSING_NAME_ONLY: 0}
        )
        for record in records:
            reason = self.exclusion_reason(record)
            if reason is None:
                report.importable.append(record)
                if not record.has_name:
                    report.breakdown[MISSING_NAME_ONLY] += 1
            else:
                report.excluded.append(record)
                report.breakdown[reason] += 1

        if headers is not None:
            quality = self.assess_headers(headers)
            report.header_quality = quality
            if quality.blocked:
                report.blocking_reasons.append(
                    f"Header row appears to be missing: {quality.placeholder_columns} of "
                    f"{quality.total_columns} columns have placeholder names"
                )
            elif quality.suspicious:
                report.warnings.append(
                    f"{quality.placeholder_columns} column(s) have placeholder names; check the header row"
                )

        if report.importable_ratio < self.min_importable_ratio:
            report.blocking_reasons.append(
                f"Only {len(report.importable)} of {report.total_rows} rows have an email, phone, "
                "street or city; this file is not in a recognized contact format"
            )

        if report.blocking_reasons:
            logger.warning("Import blocked: %s", "; ".join(report.blocking_reasons))
        return report
