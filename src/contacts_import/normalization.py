from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import IO, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd
import phonenumbers
from email_validator import EmailNotValidError, validate_email

from .classifier import HeaderClassification
from .config_loader import ImportConfig
from .errors import ParseFailure
from .lookups import KNOWN_CITIES, STATUS_ALIASES
from .models import (
    EMAIL_FIELDS,
    PHONE_FIELDS,
    SECONDARY_ADDRESS_FIELDS,
    CanonicalField as F,
    ContactRecord,
)

logger = logging.getLogger(__name__)

NOTES_HEADER = "--- Additional Information (from import) ---"
MIN_PHONE_DIGITS = 7

_NORMALIZED_TOKEN_RE = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")
_MONEY_NOISE_RE = re.compile(r"[$€£¥,\s]|\busd\b", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)$")
_TRAILING_ZIP_RE = re.compile(r"\s*\b\d{5}(?:-\d{4})?\s*$")
_TRAILING_STATE_RE = re.compile(r"(?:^|\s+)[A-Za-z]{2}\s*$")

TableSource = Union[str, IO[str], IO[bytes]]


def read_contact_table(source: TableSource) -> pd.DataFrame:
    """Read a comma-delimited UTF-8 export with a header row, every cell as a string."""
    try:
        frame = pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8",
        )
    except pd.errors.EmptyDataError as exc:
        raise ParseFailure("The file is empty or has no header row") from exc
    except pd.errors.ParserError as exc:
        raise ParseFailure(f"The file is not valid CSV: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ParseFailure("The file is not UTF-8 encoded") from exc
    if len(frame.columns) == 0:
        raise ParseFailure("The file has no columns")
    # rows whose cells are all empty or whitespace, e.g. trailing ",,,," lines
    blank = frame.replace(r"^\s*$", "", regex=True).eq("").all(axis=1)
    return frame.loc[~blank].reset_index(drop=True)


def _coerce_to_string(value: Any) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def safe_get(row: Any, key: str) -> str:
    try:
        return _coerce_to_string(row.get(key, ""))
    except (AttributeError, KeyError, TypeError):
        return ""


def phone_digits(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def split_full_name(full_name: str) -> Tuple[str, str]:
    """Split on whitespace: the first token is the first name, the rest the last name."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], " ".join(parts[1:])


def normalize_status(raw: str, aliases: Mapping[str, str] = STATUS_ALIASES) -> Optional[str]:
    original = (raw or "").strip()
    value = original.lower()
    if not value:
        return None
    if value in aliases:
        return aliases[value]
    for key in sorted(aliases, key=len, reverse=True):
        if re.search(rf"\b{re.escape(key)}\b", value):
            return aliases[key]
        if len(value) >= 3 and re.search(rf"\b{re.escape(value)}\b", key):
            return aliases[key]
    if _NORMALIZED_TOKEN_RE.match(original):
        return original
    return None


def parse_money(raw: Any) -> Optional[float]:
    cleaned = _MONEY_NOISE_RE.sub("", _coerce_to_string(raw))
    if not cleaned or not _NUMBER_RE.match(cleaned):
        return None
    return float(cleaned)


def extract_city(address: str, known_cities: Sequence[str] = KNOWN_CITIES) -> Optional[str]:
    text = (address or "").strip()
    if not text:
        return None
    lowered = text.lower()
    for city in sorted(known_cities, key=len, reverse=True):
        if city.lower() in lowered:
            return city.title()

    parts = [part.strip() for part in text.split(",")]
    if len(parts) < 2:
        return None
    candidate = _TRAILING_ZIP_RE.sub("", parts[1])
    candidate = _TRAILING_STATE_RE.sub("", candidate).strip()
    if not candidate or candidate.replace(" ", "").isdigit():
        return None
    return candidate


def build_secondary_address_notes(values: Mapping[F, str]) -> str:
    parts = [values[field].strip() for field in SECONDARY_ADDRESS_FIELDS if values.get(field, "").strip()]
    if not parts:
        return ""
    return f"{NOTES_HEADER}\nSecondary Address: {', '.join(parts)}"


def validate_email_strict(value: str) -> str:
    try:
        return validate_email(value, check_deliverability=False).normalized
    except EmailNotValidError:
        return ""


def format_phone_e164(value: str, default_country: str = "US") -> str:
    try:
        parsed = phonenumbers.parse(value, None if value.startswith("+") else default_country)
    except phonenumbers.NumberParseException:
        logger.debug("phonenumbers.parse failed for %s", value)
        return value
    if not phonenumbers.is_possible_number(parsed):
        return value
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


@dataclass
class NormalizationSettings:
    max_additional_values: Optional[int] = 10
    strict_email: bool = False
    format_phones_e164: bool = False
    default_phone_country: str = "US"
    known_cities: Sequence[str] = KNOWN_CITIES

    @classmethod
    def from_config(cls, config: ImportConfig) -> "NormalizationSettings":
        return cls(
            max_additional_values=config.limits.max_additional_values,
            strict_email=config.validation.strict_email,
            format_phones_e164=config.validation.format_phones_e164,
            default_phone_country=config.validation.default_phone_country,
        )


class RowNormalizer:
    """Turns one raw row into a :class:`ContactRecord` using a header classification.

    Malformed or blank cells never raise; they simply leave the field empty.
    """

    def __init__(
        self,
        classification: HeaderClassification,
        settings: Optional[NormalizationSettings] = None,
    ) -> None:
        self.classification = classification
        self.settings = settings or NormalizationSettings()
        self._infer_city = not classification.has_field(F.ADDRESS_CITY)

    def normalize_rows(self, rows: Iterable[Mapping[str, Any]]) -> List[ContactRecord]:
        return [self.normalize(row, index) for index, row in enumerate(rows)]

    def normalize_frame(self, frame: pd.DataFrame) -> List[ContactRecord]:
        return self.normalize_rows(frame.to_dict(orient="records"))

    def normalize(self, row: Mapping[str, Any], row_index: int = -1) -> ContactRecord:
        values: Dict[F, str] = {}
        raw_emails: List[str] = []
        raw_phones: List[str] = []

        for column in self.classification.columns:
            field = column.field
            if field is None:
                continue
            value = safe_get(row, column.header)
            if not value:
                continue
            if field in EMAIL_FIELDS:
                raw_emails.append(value)
            elif field in PHONE_FIELDS:
                raw_phones.append(value)
            else:
                values.setdefault(field, value)

        emails = self._collect_emails(raw_emails, row_index)
        phones = self._collect_phones(raw_phones, row_index)
        first_name, last_name = self._resolve_name(values)

        city = values.get(F.ADDRESS_CITY, "")
        street = values.get(F.ADDRESS_STREET, "")
        if not city and street and self._infer_city:
            city = extract_city(street, self.settings.known_cities) or ""

        notes = "\n\n".join(
            part for part in (values.get(F.NOTES, ""), build_secondary_address_notes(values)) if part
        )

        return ContactRecord(
            first_name=first_name,
            last_name=last_name,
            middle_name=values.get(F.MIDDLE_NAME, ""),
            email=emails[0] if emails else "",
            secondary_email=emails[1] if len(emails) > 1 else "",
            additional_emails=tuple(emails[2:]),
            phone=phones[0] if phones else "",
            secondary_phone=phones[1] if len(phones) > 1 else "",
            additional_phones=tuple(phones[2:]),
            company_name=values.get(F.COMPANY_NAME, ""),
            address_street=street,
            address_city=city,
            address_state=values.get(F.ADDRESS_STATE, ""),
            address_zip=values.get(F.ADDRESS_ZIP, ""),
            county=values.get(F.COUNTY, ""),
            notes=notes,
            lead_source=values.get(F.LEAD_SOURCE, ""),
            tags=values.get(F.TAGS, ""),
            sales_rep_name=values.get(F.SALES_REP_NAME, ""),
            qualification_status=normalize_status(values.get(F.QUALIFICATION_STATUS, "")) or "",
            estimated_value=values.get(F.ESTIMATED_VALUE, ""),
            source_row=row_index,
        )

    def _resolve_name(self, values: Mapping[F, str]) -> Tuple[str, str]:
        first = values.get(F.FIRST_NAME, "")
        last = values.get(F.LAST_NAME, "")
        full = values.get(F.FULL_NAME, "")
        if full and not first and not last:
            first, last = split_full_name(full)
        if first and not last and len(first.split()) > 1:
            first, last = split_full_name(first)
        return first.strip(), last.strip()

    def _collect_emails(self, raw: Sequence[str], row_index: int) -> List[str]:
        seen = set()
        result: List[str] = []
        for value in raw:
            candidate = value.strip()
            if "@" not in candidate:
                continue
            if self.settings.strict_email:
                candidate = validate_email_strict(candidate)
                if not candidate:
                    logger.debug("Row %d: dropped invalid email %r", row_index, value)
                    continue
            key = candidate.lower()
            if key in seen:
                continue
            seen.add(key)
            result.append(candidate)
        return self._cap(result, "email", row_index)

    def _collect_phones(self, raw: Sequence[str], row_index: int) -> List[str]:
        seen = set()
        result: List[str] = []
        for value in raw:
            digits = phone_digits(value)
            if len(digits) < MIN_PHONE_DIGITS or digits in seen:
                continue
            seen.add(digits)
            if self.settings.format_phones_e164:
                result.append(format_phone_e164(value.strip(), self.settings.default_phone_country))
            else:
                result.append(value.strip())
        return self._cap(result, "phone", row_index)

    def _cap(self, values: List[str], kind: str, row_index: int) -> List[str]:
        limit = self.settings.max_additional_values
        if limit is None or len(values) <= 2 + limit:
            return values
        logger.info(
            "Row %d: keeping %d of %d %s values", row_index, 2 + limit, len(values), kind
        )
        return values[: 2 + limit]
