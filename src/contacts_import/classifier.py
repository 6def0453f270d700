"""Map raw header strings from vendor exports onto canonical contact fields."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .lookups import COLUMN_MAPPINGS, INPUT_DATA_PREFIX_RE, METADATA_PATTERNS
from .models import CanonicalField as F
from .models import ColumnClassification, ColumnReason

logger = logging.getLogger(__name__)

# (primary, secondary, additional) slots for repeated fields
_SLOTS: Dict[str, Tuple[F, F, F]] = {
    "email": (F.EMAIL, F.SECONDARY_EMAIL, F.ADDITIONAL_EMAIL),
    "phone": (F.PHONE, F.SECONDARY_PHONE, F.ADDITIONAL_PHONE),
}
_SLOT_FAMILY: Dict[F, Tuple[str, int]] = {
    field: (family, index) for family, slots in _SLOTS.items() for index, field in enumerate(slots)
}

_PRIMARY_ADDRESS = {
    "street": F.ADDRESS_STREET,
    "city": F.ADDRESS_CITY,
    "state": F.ADDRESS_STATE,
    "zip": F.ADDRESS_ZIP,
}
_SECONDARY_ADDRESS = {
    "street": F.SECONDARY_ADDRESS,
    "city": F.SECONDARY_CITY,
    "state": F.SECONDARY_STATE,
    "zip": F.SECONDARY_ZIP,
}
_ADDRESS_PART_TOKENS = {
    "street": {"street", "address", "line1", "address1", "street_address", "streetaddress", "full", "formatted", "mailing_address", "mailingaddress"},
    "city": {"city", "locality"},
    "state": {"state", "region", "province"},
    "zip": {"zip", "zipcode", "zip_code", "zip5", "postal", "postalcode", "postal_code"},
}

_STRUCTURED_HEADER_RE = re.compile(r"^[a-z0-9_\-]+:[a-z0-9_.\-\[\]]+$")
_SECONDARY_WORDS_RE = re.compile(r"\b(?:secondary|alt|alternate|other)\b")
_PHONE_WORD_RE = re.compile(r"phone|mobile|\bcell|\btel")

_FAMILY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("email", ("email", "e-mail")),
    ("phone", ("phone", "mobile", "cell", "tel")),
    ("zip", ("zip", "postal")),
    ("city", ("city",)),
    ("state", ("state", "province")),
    ("address", ("address", "street")),
    ("name", ("name",)),
)
_FIELD_FAMILY: Dict[F, str] = {
    F.FIRST_NAME: "name",
    F.LAST_NAME: "name",
    F.MIDDLE_NAME: "name",
    F.FULL_NAME: "name",
    F.EMAIL: "email",
    F.SECONDARY_EMAIL: "email",
    F.ADDITIONAL_EMAIL: "email",
    F.PHONE: "phone",
    F.SECONDARY_PHONE: "phone",
    F.ADDITIONAL_PHONE: "phone",
    F.ADDRESS_STREET: "address",
    F.SECONDARY_ADDRESS: "address",
    F.ADDRESS_CITY: "city",
    F.SECONDARY_CITY: "city",
    F.ADDRESS_STATE: "state",
    F.SECONDARY_STATE: "state",
    F.ADDRESS_ZIP: "zip",
    F.SECONDARY_ZIP: "zip",
}


def normalize_header(header: str) -> str:
    return re.sub(r"\s+", " ", str(header or "")).strip().lower()


def header_family(text: str) -> str:
    """Return the coarse field family a header text refers to, or ''."""
    lowered = normalize_header(text)
    for family, keywords in _FAMILY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return family
    return ""


def _assign_slot(family: str, requested: int, claimed: Set[F]) -> F:
    primary, secondary, additional = _SLOTS[family]
    if requested <= 0 and primary not in claimed:
        return primary
    if requested <= 1 and secondary not in claimed:
        return secondary
    return additional


def _ordinal_from_text(key: str) -> int:
    """0 = no ordinal marker, 1 = second slot, 2 = overflow."""
    numbers = [int(n) for n in re.findall(r"\d+", key)]
    if any(n >= 3 for n in numbers):
        return 2
    if 2 in numbers or _SECONDARY_WORDS_RE.search(key):
        return 1
    return 0


@dataclass(frozen=True)
class HeaderClassification:
    columns: Tuple[ColumnClassification, ...]

    def field_for(self, header: str) -> Optional[F]:
        for column in self.columns:
            if column.header == header:
                return column.field
        return None

    def _with_reason(self, reason: ColumnReason) -> List[ColumnClassification]:
        return [column for column in self.columns if column.reason is reason]

    @property
    def headers(self) -> List[str]:
        return [column.header for column in self.columns]

    @property
    def mapped(self) -> List[ColumnClassification]:
        return self._with_reason(ColumnReason.MAPPED)

    @property
    def metadata_noise(self) -> List[ColumnClassification]:
        return self._with_reason(ColumnReason.METADATA_NOISE)

    @property
    def duplicates(self) -> List[ColumnClassification]:
        return self._with_reason(ColumnReason.DUPLICATE_OF_MAPPED)

    @property
    def unmatched(self) -> List[ColumnClassification]:
        return self._with_reason(ColumnReason.UNMATCHED)

    @property
    def claimed(self) -> FrozenSet[F]:
        return frozenset(column.field for column in self.columns if column.field is not None)

    def has_field(self, field: F) -> bool:
        return field in self.claimed

    def to_dict(self) -> Dict[str, object]:
        return {
            "columns": [column.to_dict() for column in self.columns],
            "mapped": len(self.mapped),
            "metadata_noise": len(self.metadata_noise),
            "duplicates": len(self.duplicates),
            "unmatched": [column.header for column in self.unmatched],
        }


Strategy = Callable[[str, Set[F]], Optional[F]]


class ColumnClassifier:
    """Resolves headers through an ordered chain of strategies.

    Strategies run in order (exact table lookup, structured ``service:a.b``
    paths, fuzzy keyword containment) and the first one returning a field wins.
    Headers none of them claim are then sorted into metadata noise, echoes of
    an already mapped column, or genuinely unmatched columns.
    """

    def __init__(
        self,
        mappings: Mapping[str, F] = COLUMN_MAPPINGS,
        metadata_patterns: Sequence["re.Pattern[str]"] = METADATA_PATTERNS,
    ) -> None:
        self.mappings = mappings
        self.metadata_patterns = tuple(metadata_patterns)
        self.strategies: Tuple[Tuple[str, Strategy], ...] = (
            ("exact", self.match_exact),
            ("structured", self.match_structured_path),
            ("fuzzy", self.match_fuzzy),
        )

    def classify(self, header: str) -> ColumnClassification:
        return self.classify_headers([header]).columns[0]

    def classify_headers(self, headers: Iterable[str]) -> HeaderClassification:
        header_list = [str(header) for header in headers]
        claimed: Set[F] = set()
        resolved: List[Optional[ColumnClassification]] = []

        for header in header_list:
            key = normalize_header(header)
            result: Optional[ColumnClassification] = None
            for name, strategy in self.strategies:
                field = strategy(key, claimed) if key else None
                if field is not None:
                    claimed.add(field)
                    result = ColumnClassification(header, field, ColumnReason.MAPPED, name)
                    break
            resolved.append(result)

        mapped_families = {_FIELD_FAMILY[field] for field in claimed if field in _FIELD_FAMILY}
        columns: List[ColumnClassification] = []
        for header, result in zip(header_list, resolved):
            columns.append(result or self._classify_leftover(header, mapped_families))

        classification = HeaderClassification(columns=tuple(columns))
        if classification.unmatched:
            logger.info(
                "Unmatched columns: %s",
                ", ".join(column.header for column in classification.unmatched[:10]),
            )
        return classification

    def _classify_leftover(self, header: str, mapped_families: Set[str]) -> ColumnClassification:
        key = normalize_header(header)
        prefix = INPUT_DATA_PREFIX_RE.match(key)
        if prefix:
            family = header_family(key[prefix.end():])
            if family and family in mapped_families:
                return ColumnClassification(header, None, ColumnReason.DUPLICATE_OF_MAPPED, "input-data")
        if not key or any(pattern.search(key) for pattern in self.metadata_patterns):
            return ColumnClassification(header, None, ColumnReason.METADATA_NOISE, "metadata")
        return ColumnClassification(header, None, ColumnReason.UNMATCHED)

    def match_exact(self, key: str, claimed: Set[F]) -> Optional[F]:
        field = self.mappings.get(key)
        if field in _SLOT_FAMILY:
            family, index = _SLOT_FAMILY[field]
            return _assign_slot(family, index, claimed)
        return field

    def match_structured_path(self, key: str, claimed: Set[F]) -> Optional[F]:
        if not _STRUCTURED_HEADER_RE.match(key):
            return None
        _, path = key.split(":", 1)
        segments = [segment for segment in re.split(r"[.\[\]]+", path) if segment]
        if not segments:
            return None
        joined = ".".join(segments)

        name_match = re.search(r"(?:^|\.)name\.(first|last|middle|full)", joined) or re.search(
            r"(?:^|\.)(first|last|middle|full)_?name(?:$|\.)", joined
        )
        if name_match:
            return {
                "first": F.FIRST_NAME,
                "last": F.LAST_NAME,
                "middle": F.MIDDLE_NAME,
                "full": F.FULL_NAME,
            }[name_match.group(1)]
        if segments[-1] in ("name", "fullname", "full_name"):
            if any("company" in segment or "business" in segment for segment in segments):
                return F.COMPANY_NAME
            return F.FULL_NAME

        part = _address_part(segments[-1])
        has_owner = any("owner" in segment for segment in segments)
        has_mailing = any("mailing" in segment for segment in segments)
        if segments[-1] == "county":
            return F.COUNTY
        if has_owner and has_mailing:
            return _SECONDARY_ADDRESS.get(part) if part else None
        if has_mailing and part:
            primary = _PRIMARY_ADDRESS[part]
            return primary if primary not in claimed else _SECONDARY_ADDRESS[part]
        if any("property" in segment for segment in segments) and part:
            return _PRIMARY_ADDRESS[part]

        for family in ("phone", "email"):
            if any(family in segment for segment in segments):
                indexes = [int(segment) for segment in segments if segment.isdigit()]
                requested = min(indexes[0], 2) if indexes else 0
                return _assign_slot(family, requested, claimed)
        if part and any("address" in segment for segment in segments):
            return _PRIMARY_ADDRESS[part]
        return None

    def match_fuzzy(self, key: str, claimed: Set[F]) -> Optional[F]:
        if INPUT_DATA_PREFIX_RE.match(key):
            return None
        probe = re.sub(r"e-?mail address", "email", key)
        if "address" in probe or "street" in probe or "mailing" in probe:
            return None
        if "type" in probe or "label" in probe:
            return None
        is_email = "email" in probe or "e-mail" in probe
        is_phone = bool(_PHONE_WORD_RE.search(probe))
        if "status" in probe:
            if is_email or is_phone or F.QUALIFICATION_STATUS in claimed:
                return None
            return F.QUALIFICATION_STATUS

        if is_email:
            return _assign_slot("email", _ordinal_from_text(probe), claimed)
        if is_phone:
            return _assign_slot("phone", _ordinal_from_text(probe), claimed)

        if "name" in probe:
            if "first" in probe:
                return F.FIRST_NAME
            if "last" in probe:
                return F.LAST_NAME
            if "middle" in probe:
                return F.MIDDLE_NAME
        return None


def _address_part(segment: str) -> str:
    for part, tokens in _ADDRESS_PART_TOKENS.items():
        if segment in tokens:
            return part
    return ""
