from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


class CanonicalField(str, Enum):
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    MIDDLE_NAME = "middle_name"
    FULL_NAME = "full_name"
    EMAIL = "email"
    SECONDARY_EMAIL = "secondary_email"
    ADDITIONAL_EMAIL = "additional_email"
    PHONE = "phone"
    SECONDARY_PHONE = "secondary_phone"
    ADDITIONAL_PHONE = "additional_phone"
    COMPANY_NAME = "company_name"
    ADDRESS_STREET = "address_street"
    ADDRESS_CITY = "address_city"
    ADDRESS_STATE = "address_state"
    ADDRESS_ZIP = "address_zip"
    SECONDARY_ADDRESS = "secondary_address"
    SECONDARY_CITY = "secondary_city"
    SECONDARY_STATE = "secondary_state"
    SECONDARY_ZIP = "secondary_zip"
    COUNTY = "county"
    LEAD_SOURCE = "lead_source"
    TAGS = "tags"
    NOTES = "notes"
    SALES_REP_NAME = "sales_rep_name"
    QUALIFICATION_STATUS = "qualification_status"
    ESTIMATED_VALUE = "estimated_value"


EMAIL_FIELDS = (
    CanonicalField.EMAIL,
    CanonicalField.SECONDARY_EMAIL,
    CanonicalField.ADDITIONAL_EMAIL,
)
PHONE_FIELDS = (
    CanonicalField.PHONE,
    CanonicalField.SECONDARY_PHONE,
    CanonicalField.ADDITIONAL_PHONE,
)
SECONDARY_ADDRESS_FIELDS = (
    CanonicalField.SECONDARY_ADDRESS,
    CanonicalField.SECONDARY_CITY,
    CanonicalField.SECONDARY_STATE,
    CanonicalField.SECONDARY_ZIP,
)


class ColumnReason(str, Enum):
    MAPPED = "mapped"
    METADATA_NOISE = "metadata-noise"
    DUPLICATE_OF_MAPPED = "duplicate-of-mapped"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class ColumnClassification:
    header: str
    field: Optional[CanonicalField]
    reason: ColumnReason
    strategy: str = ""

    @property
    def is_mapped(self) -> bool:
        return self.field is not None

    def to_dict(self) -> Dict[str, str]:
        return {
            "header": self.header,
            "field": self.field.value if self.field else "",
            "reason": self.reason.value,
            "strategy": self.strategy,
        }


@dataclass(frozen=True)
class ContactRecord:
    first_name: str = ""
    last_name: str = ""
    middle_name: str = ""
    email: str = ""
    secondary_email: str = ""
    additional_emails: Tuple[str, ...] = ()
    phone: str = ""
    secondary_phone: str = ""
    additional_phones: Tuple[str, ...] = ()
    company_name: str = ""
    address_street: str = ""
    address_city: str = ""
    address_state: str = ""
    address_zip: str = ""
    county: str = ""
    notes: str = ""
    lead_source: str = ""
    tags: str = ""
    sales_rep_name: str = ""
    qualification_status: str = ""
    estimated_value: str = ""
    source_row: int = -1

    @property
    def emails(self) -> List[str]:
        return [v for v in (self.email, self.secondary_email, *self.additional_emails) if v]

    @property
    def phones(self) -> List[str]:
        return [v for v in (self.phone, self.secondary_phone, *self.additional_phones) if v]

    @property
    def has_name(self) -> bool:
        return bool(self.first_name or self.last_name)

    @property
    def has_contact_info(self) -> bool:
        return bool(self.email or self.phone or self.address_street or self.address_city)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "middle_name": self.middle_name,
            "email": self.email,
            "secondary_email": self.secondary_email,
            "additional_emails": list(self.additional_emails),
            "phone": self.phone,
            "secondary_phone": self.secondary_phone,
            "additional_phones": list(self.additional_phones),
            "company_name": self.company_name,
            "address_street": self.address_street,
            "address_city": self.address_city,
            "address_state": self.address_state,
            "address_zip": self.address_zip,
            "county": self.county,
            "notes": self.notes,
            "lead_source": self.lead_source,
            "tags": self.tags,
            "sales_rep_name": self.sales_rep_name,
            "qualification_status": self.qualification_status,
            "estimated_value": self.estimated_value,
        }

    def replace(self, **changes: Any) -> "ContactRecord":
        return replace(self, **changes)


@dataclass(frozen=True)
class ProfileMatch:
    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""

    @staticmethod
    def from_mapping(payload: Dict[str, Any]) -> "ProfileMatch":
        return ProfileMatch(
            id=str(payload.get("id", "") or "").strip(),
            first_name=str(payload.get("first_name", "") or "").strip(),
            last_name=str(payload.get("last_name", "") or "").strip(),
            email=str(payload.get("email", "") or "").strip(),
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ExistingContact:
    """A persisted contact as returned by the contact store."""

    id: str
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    email: str = ""
    location_id: Optional[str] = None

    @staticmethod
    def from_mapping(payload: Dict[str, Any]) -> "ExistingContact":
        location = payload.get("location_id")
        return ExistingContact(
            id=str(payload.get("id", "") or "").strip(),
            first_name=str(payload.get("first_name", "") or "").strip(),
            last_name=str(payload.get("last_name", "") or "").strip(),
            phone=str(payload.get("phone", "") or "").strip(),
            email=str(payload.get("email", "") or "").strip(),
            location_id=str(location) if location else None,
        )

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class VerdictKind(str, Enum):
    CLEAN = "clean"
    SAME_LOCATION = "same_location"
    CROSS_LOCATION = "cross_location"


@dataclass(frozen=True)
class DuplicateVerdict:
    kind: VerdictKind
    matched_field: str = ""
    existing_value: str = ""
    existing_name: str = ""
    existing_phone: str = ""
    location_name: str = ""

    @classmethod
    def clean(cls) -> "DuplicateVerdict":
        return cls(kind=VerdictKind.CLEAN)

    @property
    def is_clean(self) -> bool:
        return self.kind is VerdictKind.CLEAN

    def describe(self) -> str:
        if self.kind is VerdictKind.SAME_LOCATION:
            return f"{self.matched_field} {self.existing_value} already exists in this location"
        if self.kind is VerdictKind.CROSS_LOCATION:
            who = self.existing_name or self.existing_phone
            return f"{who} already exists in {self.location_name or 'another location'}"
        return "clean"


@dataclass(frozen=True)
class ImportContext:
    tenant_id: str
    location_id: Optional[str] = None


@dataclass
class ImportBatchResult:
    success_count: int = 0
    failure_count: int = 0
    unmatched_reps: FrozenSet[str] = frozenset()
    pipeline_entries_created: int = 0
    same_location_duplicates: int = 0
    cross_location_duplicates: int = 0
    failed_batches: List[int] = field(default_factory=list)

    @property
    def total_failure(self) -> bool:
        return bool(self.failed_batches) and self.success_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "unmatched_reps": sorted(self.unmatched_reps),
            "pipeline_entries_created": self.pipeline_entries_created,
            "same_location_duplicates": self.same_location_duplicates,
            "cross_location_duplicates": self.cross_location_duplicates,
            "failed_batches": list(self.failed_batches),
        }
