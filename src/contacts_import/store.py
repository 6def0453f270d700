"""Collaborator contracts consumed by the import engine, plus an in-memory store."""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional, Protocol, Sequence

import pandas as pd

from .models import ProfileMatch


class ContactStore(Protocol):
    """Persisted contact store. Only non-deleted contacts are ever returned."""

    async def fetch_contacts(
        self,
        tenant_id: str,
        *,
        location_id: Optional[str] = None,
        exclude_location_id: Optional[str] = None,
        with_phone_only: bool = False,
    ) -> List[Dict[str, Any]]:  # pragma: no cover - protocol
        """Return id, first_name, last_name, phone, email and location_id columns."""

    async def fetch_locations(self, location_ids: Sequence[str]) -> Dict[str, str]:  # pragma: no cover
        """Map location id to display name."""

    async def insert_contacts(self, rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:  # pragma: no cover
        """Insert a batch and return the inserted rows (with ``id``) in input order."""

    async def insert_pipeline_entries(
        self, rows: Sequence[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:  # pragma: no cover
        """Insert a batch of pipeline entries."""


class ProfileDirectory(Protocol):
    async def list_profiles(
        self, tenant_id: str, location_id: Optional[str] = None
    ) -> List[ProfileMatch]:  # pragma: no cover - protocol
        """List rep profiles for a tenant, optionally limited to a location."""


class InMemoryContactStore:
    """Dict-backed store used for previews against an exported contact list and in tests."""

    def __init__(
        self,
        contacts: Optional[Sequence[Dict[str, Any]]] = None,
        locations: Optional[Dict[str, str]] = None,
    ) -> None:
        self.contacts: List[Dict[str, Any]] = [dict(row) for row in contacts or []]
        self.locations: Dict[str, str] = dict(locations or {})
        self.pipeline_entries: List[Dict[str, Any]] = []
        self.insert_calls = 0

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, tenant_id: str) -> "InMemoryContactStore":
        rows = []
        for index, row in enumerate(frame.to_dict(orient="records")):
            payload = {key: ("" if pd.isna(value) else value) for key, value in row.items()}
            payload.setdefault("id", f"existing-{index}")
            payload.setdefault("tenant_id", tenant_id)
            payload["location_id"] = payload.get("location_id") or None
            payload["is_deleted"] = str(payload.get("is_deleted", "")).lower() in {"true", "1", "yes"}
            rows.append(payload)
        return cls(contacts=rows)

    async def fetch_contacts(
        self,
        tenant_id: str,
        *,
        location_id: Optional[str] = None,
        exclude_location_id: Optional[str] = None,
        with_phone_only: bool = False,
    ) -> List[Dict[str, Any]]:
        results = []
        for row in self.contacts:
            if row.get("tenant_id") != tenant_id or row.get("is_deleted"):
                continue
            if location_id is not None and row.get("location_id") != location_id:
                continue
            if exclude_location_id is not None and row.get("location_id") in (None, exclude_location_id):
                continue
            if with_phone_only and not row.get("phone"):
                continue
            results.append(dict(row))
        return results

    async def fetch_locations(self, location_ids: Sequence[str]) -> Dict[str, str]:
        return {lid: self.locations[lid] for lid in location_ids if lid in self.locations}

    async def insert_contacts(self, rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self.insert_calls += 1
        inserted = []
        for row in rows:
            stored = dict(row, id=str(uuid.uuid4()))
            self.contacts.append(stored)
            inserted.append(dict(stored))
        return inserted

    async def insert_pipeline_entries(self, rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        inserted = [dict(row, id=str(uuid.uuid4())) for row in rows]
        self.pipeline_entries.extend(inserted)
        return inserted


class StaticProfileDirectory:
    def __init__(
        self,
        profiles: Sequence[ProfileMatch],
        assignments: Optional[Dict[str, Sequence[str]]] = None,
    ) -> None:
        self.profiles = list(profiles)
        self.assignments = {key: set(value) for key, value in (assignments or {}).items()}

    async def list_profiles(self, tenant_id: str, location_id: Optional[str] = None) -> List[ProfileMatch]:
        if location_id is None or location_id not in self.assignments:
            return list(self.profiles)
        allowed = self.assignments[location_id]
        return [profile for profile in self.profiles if profile.id in allowed]
