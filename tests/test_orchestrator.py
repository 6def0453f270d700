import asyncio
from io import StringIO

import pandas as pd
import pytest

from contacts_import.config_loader import ImportConfig
from contacts_import.errors import TotalFailure, ValidationBlocked
from contacts_import.models import ImportContext, ProfileMatch
from contacts_import.normalization import read_contact_table
from contacts_import.orchestrator import ImportOrchestrator, build_contact_row
from contacts_import.store import InMemoryContactStore, StaticProfileDirectory

CONTEXT = ImportContext(tenant_id="t-1", location_id="L1")
JOHN = ProfileMatch(id="p-2", first_name="John", last_name="Smith", email="jsmith@roof.co")


class FlakyStore(InMemoryContactStore):
    def __init__(self, fail_calls=(), fail_all=False, fail_pipeline=False, **kwargs):
        super().__init__(**kwargs)
        self.fail_calls = set(fail_calls)
        self.fail_all = fail_all
        self.fail_pipeline = fail_pipeline
        self.batch_sizes = []

    async def insert_contacts(self, rows):
        self.batch_sizes.append(len(rows))
        if self.fail_all or len(self.batch_sizes) in self.fail_calls:
            raise RuntimeError("statement timeout")
        return await super().insert_contacts(rows)

    async def insert_pipeline_entries(self, rows):
        if self.fail_pipeline:
            raise RuntimeError("pipeline table unavailable")
        return await super().insert_pipeline_entries(rows)


class CountingDirectory(StaticProfileDirectory):
    def __init__(self, profiles):
        super().__init__(profiles)
        self.calls = []

    async def list_profiles(self, tenant_id, location_id=None):
        self.calls.append((tenant_id, location_id))
        return await super().list_profiles(tenant_id, location_id)


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def _frame(text):
    return read_contact_table(StringIO(text))


def _bulk_frame(count):
    return pd.DataFrame(
        {
            "Name": [f"Person {i}" for i in range(count)],
            "Email": [f"user{i}@example.com" for i in range(count)],
        }
    )


def _orchestrator(store=None, profiles=(), config=None, sleep=None):
    return ImportOrchestrator(
        store if store is not None else FlakyStore(),
        profiles if isinstance(profiles, StaticProfileDirectory) else StaticProfileDirectory(profiles),
        config,
        sleep=sleep or RecordingSleep(),
    )


TWO_ROWS = (
    "Full Name,Email,Phone,Sales Rep,Estimated Value,Status\n"
    'Jane Doe,jane@example.com,(555) 123-4567,John Smith,"$12,500",Hot Lead\n'
    "Bob Lee,,,,,\n"
)


def test_preview_reports_columns_exclusions_and_duplicates():
    store = FlakyStore(
        contacts=[{"id": "c-1", "tenant_id": "t-1", "location_id": "L1", "phone": "555-123-4567"}]
    )
    preview = asyncio.run(_orchestrator(store).preview(_frame(TWO_ROWS), CONTEXT))

    assert not preview.blocked
    assert len(preview.report.importable) == 1
    assert preview.report.breakdown["missing contact only"] == 1
    assert len(preview.duplicates.same_location) == 1
    assert store.batch_sizes == []

    payload = preview.to_dict()
    assert payload["importability"]["excluded"] == 1
    assert payload["duplicates"]["same_location"] == ["phone 555-123-4567 already exists in this location"]


def test_commit_inserts_contact_and_pipeline_entry():
    store = FlakyStore()
    result = asyncio.run(_orchestrator(store, [JOHN]).commit(_frame(TWO_ROWS), CONTEXT))

    assert result.success_count == 1
    assert result.failure_count == 0
    assert result.pipeline_entries_created == 1
    assert result.unmatched_reps == frozenset()

    (contact,) = store.contacts
    assert contact["first_name"] == "Jane"
    assert contact["last_name"] == "Doe"
    assert contact["assigned_to"] == "p-2"
    assert contact["lead_source"] == "csv_import"
    assert contact["type"] == "homeowner"
    assert contact["qualification_status"] == "interested"
    assert contact["location_id"] == "L1"

    (entry,) = store.pipeline_entries
    assert entry["contact_id"] == contact["id"]
    assert entry["estimated_value"] == 12500.0
    assert entry["assigned_to"] == "p-2"
    assert entry["status"] == "lead"


def test_rows_without_value_get_no_pipeline_entry():
    store = FlakyStore()
    result = asyncio.run(_orchestrator(store).commit(_frame("Email,Value\na@x.com,\nb@x.com,900\n"), CONTEXT))
    assert result.success_count == 2
    assert result.pipeline_entries_created == 1
    assert [entry["estimated_value"] for entry in store.pipeline_entries] == [900.0]


def test_nameless_contacts_get_placeholder_first_name():
    store = FlakyStore()
    asyncio.run(_orchestrator(store).commit(_frame("Email\nowner@x.com\n"), CONTEXT))
    assert store.contacts[0]["first_name"] == "Homeowner"


def test_build_contact_row_defaults():
    prepared = _orchestrator().prepare(_frame("Name,Phone,Tags,Lead Source\nAl Ray,5551234567,\"a, b,,c\",Door\n"))
    row = build_contact_row(prepared.records[0], CONTEXT, None)
    assert row["tags"] == ["a", "b", "c"]
    assert row["lead_source"] == "Door"
    assert row["email"] is None
    assert row["is_deleted"] is False


def test_commit_rechecks_duplicates_after_preview():
    store = FlakyStore()
    orchestrator = _orchestrator(store)
    frame = _frame(TWO_ROWS)
    preview = asyncio.run(orchestrator.preview(frame, CONTEXT))
    assert preview.duplicates.duplicate_count == 0

    store.contacts.append({"id": "c-9", "tenant_id": "t-1", "location_id": "L1", "email": "JANE@example.com"})
    result = asyncio.run(orchestrator.commit(frame, CONTEXT))
    assert result.same_location_duplicates == 1
    assert result.success_count == 0
    assert store.batch_sizes == []


def test_cross_location_duplicates_are_counted():
    store = FlakyStore(
        contacts=[{"id": "c-1", "tenant_id": "t-1", "location_id": "L2", "phone": "5551234567"}],
        locations={"L2": "Tampa"},
    )
    result = asyncio.run(_orchestrator(store).commit(_frame(TWO_ROWS), CONTEXT))
    assert result.cross_location_duplicates == 1
    assert result.success_count == 0


def test_failed_batch_is_recorded_and_later_batches_continue():
    store = FlakyStore(fail_calls={2})
    result = asyncio.run(_orchestrator(store).commit(_bulk_frame(250), CONTEXT))

    assert store.batch_sizes == [100, 100, 50]
    assert result.success_count == 150
    assert result.failure_count == 100
    assert result.failed_batches == [2]
    assert not result.total_failure


def test_all_batches_failing_raises_total_failure():
    with pytest.raises(TotalFailure) as excinfo:
        asyncio.run(_orchestrator(FlakyStore(fail_all=True)).commit(_bulk_frame(3), CONTEXT))
    assert excinfo.value.result.failure_count == 3
    assert "all 3 contacts were rejected" in str(excinfo.value)


def test_retry_recovers_a_failed_batch():
    config = ImportConfig()
    config.batching.batch_retries = 1
    store = FlakyStore(fail_calls={1})
    result = asyncio.run(_orchestrator(store, config=config).commit(_bulk_frame(3), CONTEXT))
    assert store.batch_sizes == [3, 3]
    assert result.success_count == 3
    assert result.failed_batches == []


def test_large_files_use_smaller_batches_and_pause_between_them():
    store = FlakyStore()
    sleep = RecordingSleep()
    result = asyncio.run(_orchestrator(store, sleep=sleep).commit(_bulk_frame(1200), CONTEXT))

    assert result.success_count == 1200
    assert set(store.batch_sizes) == {50}
    assert len(store.batch_sizes) == 24
    assert sleep.calls == [0.1] * 23


def test_medium_files_do_not_pause():
    sleep = RecordingSleep()
    asyncio.run(_orchestrator(sleep=sleep).commit(_bulk_frame(300), CONTEXT))
    assert sleep.calls == []


def test_batch_size_for_threshold():
    orchestrator = _orchestrator()
    assert orchestrator.batch_size_for(1000) == 100
    assert orchestrator.batch_size_for(1001) == 50


def test_unmatched_reps_are_reported_and_left_unassigned():
    store = FlakyStore()
    frame = _frame("Email,Sales Rep\na@x.com,Ghost Person\nb@x.com,John Smith\nc@x.com,\n")
    result = asyncio.run(_orchestrator(store, [JOHN]).commit(frame, CONTEXT))

    assert result.unmatched_reps == frozenset({"Ghost Person"})
    assert [row["assigned_to"] for row in store.contacts] == [None, "p-2", None]


def test_rep_overrides_take_precedence():
    store = FlakyStore()
    frame = _frame("Email,Sales Rep\na@x.com,Ghost Person\n")
    result = asyncio.run(
        _orchestrator(store, [JOHN]).commit(frame, CONTEXT, rep_overrides={"Ghost Person": "p-2"})
    )
    assert result.unmatched_reps == frozenset()
    assert store.contacts[0]["assigned_to"] == "p-2"


def test_profiles_are_read_at_commit_time():
    directory = CountingDirectory([])
    orchestrator = _orchestrator(FlakyStore(), directory)
    frame = _frame("Email,Sales Rep\na@x.com,John Smith\n")

    asyncio.run(orchestrator.preview(frame, CONTEXT))
    assert directory.calls == []

    directory.profiles.append(JOHN)
    result = asyncio.run(orchestrator.commit(frame, CONTEXT))
    assert directory.calls == [("t-1", None)]
    assert result.unmatched_reps == frozenset()


def test_profiles_can_be_filtered_by_location():
    config = ImportConfig()
    config.rep_matching.filter_by_location = True
    directory = CountingDirectory([JOHN])
    asyncio.run(_orchestrator(FlakyStore(), directory, config).commit(_bulk_frame(1), CONTEXT))
    assert directory.calls == [("t-1", "L1")]


def test_blocked_file_is_never_inserted():
    store = FlakyStore()
    frame = _frame("_1,_2,_3\na@x.com,5551234567,Miami\n")
    with pytest.raises(ValidationBlocked) as excinfo:
        asyncio.run(_orchestrator(store).commit(frame, CONTEXT))
    assert excinfo.value.report is not None
    assert store.batch_sizes == []


def test_two_row_file_end_to_end():
    frame = _frame(
        "Name,Email,Phone,City\n"
        "John Smith,john@x.com,555-123-4567,Miami\n"
        "Jane,jane@x.com,,Tampa\n"
    )
    prepared = _orchestrator().prepare(frame)

    assert not prepared.blocked
    assert prepared.report.excluded == []
    assert [(r.first_name, r.last_name) for r in prepared.report.importable] == [("John", "Smith"), ("Jane", "")]
    assert [r.address_city for r in prepared.report.importable] == ["Miami", "Tampa"]
    assert prepared.report.importable[1].phone == ""


def test_pipeline_entry_failure_keeps_contact_counts():
    store = FlakyStore(fail_pipeline=True)
    result = asyncio.run(_orchestrator(store, [JOHN]).commit(_frame(TWO_ROWS), CONTEXT))

    assert result.success_count == 1
    assert result.failure_count == 0
    assert result.failed_batches == []
    assert result.pipeline_entries_created == 0
    assert store.pipeline_entries == []
    assert len(store.contacts) == 1


def test_batch_is_failed_when_every_retry_fails():
    config = ImportConfig()
    config.batching.batch_size = 2
    config.batching.batch_retries = 1
    store = FlakyStore(fail_calls={1, 2})
    result = asyncio.run(_orchestrator(store, config=config).commit(_bulk_frame(4), CONTEXT))

    assert store.batch_sizes == [2, 2, 2]
    assert result.success_count == 2
    assert result.failure_count == 2
    assert result.failed_batches == [1]
