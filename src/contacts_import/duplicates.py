"""Check importable records against contacts already in the store.

The check is split into an async :meth:`DuplicateResolver.snapshot` that reads
the store and a pure :meth:`DuplicateResolver.resolve` over that snapshot, so
preview and commit each take their own snapshot and never share a cache.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import ContactRecord, DuplicateVerdict, ExistingContact, VerdictKind
from .normalization import MIN_PHONE_DIGITS, phone_digits
from .store import ContactStore

logger = logging.getLogger(__name__)


def phone_key(value: Optional[str]) -> str:
    digits = phone_digits(value or "")
    return digits if len(digits) >= MIN_PHONE_DIGITS else ""


def email_key(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _index(contacts: Iterable[ExistingContact], key_func, attr: str) -> Dict[str, ExistingContact]:
    index: Dict[str, ExistingContact] = {}
    for contact in contacts:
        key = key_func(getattr(contact, attr))
        if key:
            index.setdefault(key, contact)
    return index


@dataclass(frozen=True)
class StoreSnapshot:
    same_location_phones: Mapping[str, ExistingContact]
    same_location_emails: Mapping[str, ExistingContact]
    cross_location_phones: Mapping[str, ExistingContact]
    location_names: Mapping[str, str]

    @classmethod
    def build(
        cls,
        same_location: Sequence[ExistingContact],
        cross_location: Sequence[ExistingContact] = (),
        location_names: Optional[Mapping[str, str]] = None,
    ) -> "StoreSnapshot":
        return cls(
            same_location_phones=_index(same_location, phone_key, "phone"),
            same_location_emails=_index(same_location, email_key, "email"),
            cross_location_phones=_index(cross_location, phone_key, "phone"),
            location_names=dict(location_names or {}),
        )


@dataclass
class DuplicatePartition:
    clean: List[ContactRecord] = field(default_factory=list)
    same_location: List[Tuple[ContactRecord, DuplicateVerdict]] = field(default_factory=list)
    cross_location: List[Tuple[ContactRecord, DuplicateVerdict]] = field(default_factory=list)

    @property
    def duplicate_count(self) -> int:
        return len(self.same_location) + len(self.cross_location)

    def to_dict(self) -> Dict[str, object]:
        return {
            "clean": len(self.clean),
            "same_location": [verdict.describe() for _, verdict in self.same_location],
            "cross_location": [verdict.describe() for _, verdict in self.cross_location],
        }


class DuplicateResolver:
    def __init__(self, store: ContactStore) -> None:
        self.store = store

    async def snapshot(self, tenant_id: str, location_id: Optional[str]) -> StoreSnapshot:
        same_rows = await self.store.fetch_contacts(tenant_id, location_id=location_id)
        same = [ExistingContact.from_mapping(row) for row in same_rows]

        cross: List[ExistingContact] = []
        names: Dict[str, str] = {}
        if location_id is not None:
            cross_rows = await self.store.fetch_contacts(
                tenant_id, exclude_location_id=location_id, with_phone_only=True
            )
            cross = [ExistingContact.from_mapping(row) for row in cross_rows]
            location_ids = sorted({c.location_id for c in cross if c.location_id})
            if location_ids:
                names = await self.store.fetch_locations(location_ids)

        logger.debug(
            "Snapshot for tenant %s: %d same-location, %d cross-location contacts",
            tenant_id,
            len(same),
            len(cross),
        )
        return StoreSnapshot.build(same, cross, names)

    @staticmethod
    def verdict_for(record: ContactRecord, snapshot: StoreSnapshot) -> DuplicateVerdict:
        phone_keys = [key for key in (phone_key(p) for p in record.phones) if key]
        email_keys = [key for key in (email_key(e) for e in record.emails) if key]

        for key in phone_keys:
            existing = snapshot.same_location_phones.get(key)
            if existing is not None:
                return DuplicateVerdict(VerdictKind.SAME_LOCATION, "phone", existing.phone)
        for key in email_keys:
            existing = snapshot.same_location_emails.get(key)
            if existing is not None:
                return DuplicateVerdict(VerdictKind.SAME_LOCATION, "email", existing.email)
        for key in phone_keys:
            existing = snapshot.cross_location_phones.get(key)
            if existing is not None:
                return DuplicateVerdict(
                    VerdictKind.CROSS_LOCATION,
                    "phone",
                    existing.phone,
                    existing_name=existing.display_name,
                    existing_phone=existing.phone,
                    location_name=snapshot.location_names.get(existing.location_id or "", ""),
                )
        return DuplicateVerdict.clean()

    def resolve(self, records: Iterable[ContactRecord], snapshot: StoreSnapshot) -> DuplicatePartition:
        partition = DuplicatePartition()
        for record in records:
            verdict = self.verdict_for(record, snapshot)
            if verdict.kind is VerdictKind.SAME_LOCATION:
                partition.same_location.append((record, verdict))
            elif verdict.kind is VerdictKind.CROSS_LOCATION:
                partition.cross_location.append((record, verdict))
            else:
                partition.clean.append(record)
        return partition

    async def check(
        self, records: Sequence[ContactRecord], tenant_id: str, location_id: Optional[str]
    ) -> DuplicatePartition:
        snapshot = await self.snapshot(tenant_id, location_id)
        partition = self.resolve(records, snapshot)
        if partition.duplicate_count:
            logger.info(
                "Skipping %d duplicate(s): %d same-location, %d cross-location",
                partition.duplicate_count,
                len(partition.same_location),
                len(partition.cross_location),
            )
        return partition
