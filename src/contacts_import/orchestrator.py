"""Drive a file from parsed rows to persisted contacts and pipeline entries."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .classifier import ColumnClassifier, HeaderClassification
from .config_loader import ImportConfig
from .duplicates import DuplicatePartition, DuplicateResolver
from .errors import BatchFailure, TotalFailure
from .importability import PLACEHOLDER_FIRST_NAME, ImportabilityFilter, ImportabilityReport
from .models import ContactRecord, ImportBatchResult, ImportContext
from .normalization import NormalizationSettings, RowNormalizer, parse_money
from .rep_matcher import RepMatcher
from .store import ContactStore, ProfileDirectory

logger = logging.getLogger(__name__)

DEFAULT_LEAD_SOURCE = "csv_import"
CONTACT_TYPE = "homeowner"
PIPELINE_STATUS = "lead"


@dataclass
class ImportPreview:
    classification: HeaderClassification
    records: List[ContactRecord]
    report: ImportabilityReport
    duplicates: Optional[DuplicatePartition] = None

    @property
    def blocked(self) -> bool:
        return self.report.blocked

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "columns": self.classification.to_dict(),
            "importability": self.report.to_dict(),
        }
        if self.duplicates is not None:
            payload["duplicates"] = self.duplicates.to_dict()
        return payload


@dataclass
class _PendingContact:
    row: Dict[str, Any]
    assigned_to: Optional[str]
    estimated_value: Optional[float]


def build_contact_row(
    record: ContactRecord, context: ImportContext, assigned_to: Optional[str]
) -> Dict[str, Any]:
    return {
        "tenant_id": context.tenant_id,
        "location_id": context.location_id,
        "first_name": record.first_name or PLACEHOLDER_FIRST_NAME,
        "last_name": record.last_name,
        "email": record.email or None,
        "phone": record.phone or None,
        "secondary_email": record.secondary_email or None,
        "secondary_phone": record.secondary_phone or None,
        "additional_emails": list(record.additional_emails),
        "additional_phones": list(record.additional_phones),
        "company_name": record.company_name or None,
        "address_street": record.address_street or None,
        "address_city": record.address_city or None,
        "address_state": record.address_state or None,
        "address_zip": record.address_zip or None,
        "lead_source": record.lead_source or DEFAULT_LEAD_SOURCE,
        "tags": [tag.strip() for tag in record.tags.split(",") if tag.strip()],
        "notes": record.notes or None,
        "qualification_status": record.qualification_status or None,
        "type": CONTACT_TYPE,
        "is_deleted": False,
        "assigned_to": assigned_to,
    }


class ImportOrchestrator:
    """Sequences classification, normalization, filtering, duplicate checks and inserts.

    Every collaborator call is awaited in turn; nothing runs concurrently for a
    single import. A batch that was already sent to the store is never rolled
    back.
    """

    def __init__(
        self,
        store: ContactStore,
        profiles: ProfileDirectory,
        config: Optional[ImportConfig] = None,
        *,
        classifier: Optional[ColumnClassifier] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.profiles = profiles
        self.config = config or ImportConfig()
        self.classifier = classifier or ColumnClassifier()
        self.resolver = DuplicateResolver(store)
        self.filter = ImportabilityFilter(
            min_importable_ratio=self.config.limits.min_importable_ratio,
            placeholder_block_ratio=self.config.limits.placeholder_header_block_ratio,
        )
        self._sleep = sleep

    def prepare(self, frame: pd.DataFrame) -> ImportPreview:
        headers = [str(column) for column in frame.columns]
        classification = self.classifier.classify_headers(headers)
        normalizer = RowNormalizer(classification, NormalizationSettings.from_config(self.config))
        records = normalizer.normalize_frame(frame)
        report = self.filter.evaluate(records, headers)
        logger.info(
            "Prepared %d rows: %d importable, %d excluded",
            report.total_rows,
            len(report.importable),
            len(report.excluded),
        )
        return ImportPreview(classification=classification, records=records, report=report)

    async def preview(self, frame: pd.DataFrame, context: ImportContext) -> ImportPreview:
        prepared = self.prepare(frame)
        if prepared.report.importable:
            prepared.duplicates = await self.resolver.check(
                prepared.report.importable, context.tenant_id, context.location_id
            )
        return prepared

    def batch_size_for(self, total: int) -> int:
        batching = self.config.batching
        if total > batching.large_volume_threshold:
            return batching.large_batch_size
        return batching.batch_size

    async def commit(
        self,
        frame: pd.DataFrame,
        context: ImportContext,
        rep_overrides: Optional[Mapping[str, Optional[str]]] = None,
    ) -> ImportBatchResult:
        prepared = self.prepare(frame)
        prepared.report.raise_if_blocked()

        partition = await self.resolver.check(
            prepared.report.importable, context.tenant_id, context.location_id
        )
        rep_location = context.location_id if self.config.rep_matching.filter_by_location else None
        profiles = await self.profiles.list_profiles(context.tenant_id, rep_location)
        matcher = RepMatcher(
            profiles,
            company_aliases=self.config.rep_matching.company_aliases,
            overrides=rep_overrides,
        )

        pending: List[_PendingContact] = []
        for record in partition.clean:
            assigned_to = matcher.resolve(record.sales_rep_name)
            pending.append(
                _PendingContact(
                    row=build_contact_row(record, context, assigned_to),
                    assigned_to=assigned_to,
                    estimated_value=parse_money(record.estimated_value),
                )
            )

        result = ImportBatchResult(
            same_location_duplicates=len(partition.same_location),
            cross_location_duplicates=len(partition.cross_location),
        )
        await self._insert_all(pending, context, result)
        result.unmatched_reps = frozenset(matcher.unmatched)

        if result.unmatched_reps:
            names = matcher.unmatched_names()
            more = f" and {len(names) - 5} more" if len(names) > 5 else ""
            logger.warning(
                "Sales reps not found: %s%s. These contacts were left unassigned.",
                ", ".join(names[:5]),
                more,
            )
        if result.total_failure:
            raise TotalFailure(result)
        logger.info(
            "Imported %d contacts (%d failed, %d pipeline entries)",
            result.success_count,
            result.failure_count,
            result.pipeline_entries_created,
        )
        return result

    async def _insert_all(
        self, pending: Sequence[_PendingContact], context: ImportContext, result: ImportBatchResult
    ) -> None:
        total = len(pending)
        if not total:
            return
        batching = self.config.batching
        size = self.batch_size_for(total)
        throttle = total > batching.pause_threshold and batching.pause_seconds > 0
        total_batches = (total + size - 1) // size

        for number, start in enumerate(range(0, total, size), start=1):
            if throttle and number > 1:
                await self._sleep(batching.pause_seconds)
            batch = pending[start : start + size]
            logger.debug("Importing batch %d of %d", number, total_batches)
            inserted = await self._insert_batch(number, [item.row for item in batch])
            if inserted is None:
                result.failure_count += len(batch)
                result.failed_batches.append(number)
                continue
            result.success_count += len(inserted)
            result.pipeline_entries_created += await self._insert_pipeline_entries(
                number, batch, inserted, context
            )

    async def _insert_batch(
        self, number: int, rows: List[Dict[str, Any]]
    ) -> Optional[List[Dict[str, Any]]]:
        attempts = 1 + self.config.batching.batch_retries
        for attempt in range(1, attempts + 1):
            try:
                return await self.store.insert_contacts(rows)
            except Exception as exc:
                failure = BatchFailure(number, len(rows), exc)
                if attempt < attempts:
                    logger.warning("%s; retrying (%d of %d)", failure, attempt, attempts - 1)
                    continue
                logger.exception("%s", failure)
        return None

    async def _insert_pipeline_entries(
        self,
        number: int,
        batch: Sequence[_PendingContact],
        inserted: Sequence[Dict[str, Any]],
        context: ImportContext,
    ) -> int:
        if len(inserted) != len(batch):
            logger.warning(
                "Batch %d: store returned %d rows for %d contacts", number, len(inserted), len(batch)
            )
        entries = [
            {
                "tenant_id": context.tenant_id,
                "contact_id": row.get("id"),
                "location_id": context.location_id,
                "status": PIPELINE_STATUS,
                "assigned_to": item.assigned_to,
                "estimated_value": item.estimated_value,
            }
            for item, row in zip(batch, inserted)
            if item.estimated_value is not None and row.get("id")
        ]
        if not entries:
            return 0
        try:
            created = await self.store.insert_pipeline_entries(entries)
        except Exception:
            logger.exception("Batch %d: failed to create %d pipeline entries", number, len(entries))
            return 0
        return len(created) if created is not None else len(entries)
