import pytest

from contacts_import.errors import ValidationBlocked
from contacts_import.importability import (
    MISSING_CONTACT_ONLY,
    MISSING_NAME_AND_CONTACT,
    MISSING_NAME_ONLY,
    ImportabilityFilter,
)
from contacts_import.models import ContactRecord


def test_any_contact_channel_makes_a_record_importable():
    check = ImportabilityFilter()
    assert check.is_importable(ContactRecord(address_street="12 Palm Way"))
    assert check.is_importable(ContactRecord(address_city="Tampa"))
    assert check.is_importable(ContactRecord(phone="555-123-4567"))
    assert check.is_importable(ContactRecord(email="a@x.com"))
    assert not check.is_importable(ContactRecord(first_name="Ann", company_name="Acme"))


def test_street_only_record_is_importable_but_not_renamed_yet():
    report = ImportabilityFilter().evaluate([ContactRecord(address_street="12 Palm Way")])
    assert len(report.importable) == 1
    assert report.importable[0].first_name == ""
    assert report.breakdown[MISSING_NAME_ONLY] == 1
    assert not report.blocked


def test_exclusion_breakdown():
    records = [
        ContactRecord(first_name="Ann"),
        ContactRecord(company_name="Acme"),
        ContactRecord(first_name="Bob", email="b@x.com"),
    ]
    check = ImportabilityFilter()
    assert check.exclusion_reason(records[0]) == MISSING_CONTACT_ONLY
    assert check.exclusion_reason(records[1]) == MISSING_NAME_AND_CONTACT
    assert check.exclusion_reason(records[2]) is None

    report = check.evaluate(records)
    assert report.breakdown == {
        MISSING_NAME_AND_CONTACT: 1,
        MISSING_CONTACT_ONLY: 1,
        MISSING_NAME_ONLY: 0,
    }
    assert report.total_rows == 3


def test_placeholder_headers_block_or_warn():
    check = ImportabilityFilter()
    records = [ContactRecord(email="a@x.com")]

    blocked = check.evaluate(records, ["_1", "_2", "Email", "Unnamed: 3"])
    assert blocked.header_quality.blocked
    assert blocked.blocked

    suspicious = check.evaluate(records, ["First Name", "Email", "Phone", "Unnamed: 3"])
    assert suspicious.header_quality.suspicious
    assert not suspicious.blocked
    assert suspicious.warnings


def test_low_importable_ratio_blocks():
    check = ImportabilityFilter()
    junk = [ContactRecord(first_name=f"Row {i}") for i in range(29)]

    report = check.evaluate(junk + [ContactRecord(phone="555-123-4567")])
    assert report.importable_ratio < 0.05
    with pytest.raises(ValidationBlocked) as excinfo:
        report.raise_if_blocked()
    assert excinfo.value.report is report

    enough = check.evaluate(junk[:28] + [ContactRecord(phone="555-123-4567")] * 2)
    assert not enough.blocked


def test_empty_file_is_blocked():
    assert ImportabilityFilter().evaluate([]).blocked
