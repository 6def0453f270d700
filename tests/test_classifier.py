import pytest

from contacts_import.classifier import ColumnClassifier, header_family
from contacts_import.lookups import TEMPLATE_HEADERS
from contacts_import.models import CanonicalField as F
from contacts_import.models import ColumnReason


def _fields(headers):
    classification = ColumnClassifier().classify_headers(headers)
    return [column.field for column in classification.columns]


def test_template_headers_classify_without_ambiguity():
    classification = ColumnClassifier().classify_headers(TEMPLATE_HEADERS)
    assert classification.unmatched == []
    assert [column.field for column in classification.columns] == [
        F.FIRST_NAME,
        F.LAST_NAME,
        F.EMAIL,
        F.PHONE,
        F.SECONDARY_EMAIL,
        F.SECONDARY_PHONE,
        F.COMPANY_NAME,
        F.ADDRESS_STREET,
        F.ADDRESS_CITY,
        F.ADDRESS_STATE,
        F.ADDRESS_ZIP,
        F.LEAD_SOURCE,
        F.TAGS,
        F.SALES_REP_NAME,
    ]
    assert {column.strategy for column in classification.columns} == {"exact"}


def test_crm_export_headers():
    assert _fields(["Name", "Email 1 - Value", "Phone Number 1 - Value", "City"]) == [
        F.FULL_NAME,
        F.EMAIL,
        F.PHONE,
        F.ADDRESS_CITY,
    ]


def test_fuzzy_phone_ordinals_cascade_through_slots():
    assert _fields(["Mobile Phone", "Work Cell", "Landline Tel", "Wireless Phone 3"]) == [
        F.PHONE,
        F.SECONDARY_PHONE,
        F.ADDITIONAL_PHONE,
        F.ADDITIONAL_PHONE,
    ]


def test_secondary_marker_falls_back_to_additional_when_taken():
    assert _fields(["Personal Email", "Backup Email 2", "Other Email Contact"]) == [
        F.EMAIL,
        F.SECONDARY_EMAIL,
        F.ADDITIONAL_EMAIL,
    ]


def test_repeated_exact_header_is_not_treated_as_primary_twice():
    # pandas renames a repeated "Email" header to "Email.1"
    assert _fields(["Email", "Email.1"]) == [F.EMAIL, F.SECONDARY_EMAIL]


def test_mailing_address_is_never_an_email():
    classification = ColumnClassifier().classify_headers(["Email", "Owner Mailing Address Line 2"])
    column = classification.columns[1]
    assert column.field is None
    assert column.reason is ColumnReason.UNMATCHED


def test_email_address_phrase_still_counts_as_email():
    assert _fields(["Email", "Email Address 2"]) == [F.EMAIL, F.SECONDARY_EMAIL]


def test_status_column_is_qualification_status_not_phone():
    classification = ColumnClassifier().classify_headers(["Homeowner Status", "Phone 1 Status", "Phone 1 - Type"])
    assert classification.columns[0].field is F.QUALIFICATION_STATUS
    assert classification.columns[1].reason is ColumnReason.METADATA_NOISE
    assert classification.columns[2].reason is ColumnReason.METADATA_NOISE


@pytest.mark.parametrize(
    "header, expected",
    [
        ("skiptrace:owner.mailing_address.city", F.SECONDARY_CITY),
        ("skiptrace:owner.mailing_address.street", F.SECONDARY_ADDRESS),
        ("skiptrace:property.address.zip", F.ADDRESS_ZIP),
        ("skiptrace:property.county", F.COUNTY),
        ("skiptrace:person.name.first", F.FIRST_NAME),
        ("skiptrace:person.name.last", F.LAST_NAME),
        ("skiptrace:phones.2.number", F.ADDITIONAL_PHONE),
        ("skiptrace:person.name", F.FULL_NAME),
        ("batchdata:owner.name", F.FULL_NAME),
        ("batchdata:owners[0].full_name", F.FULL_NAME),
        ("batchdata:company.name", F.COMPANY_NAME),
    ],
)
def test_structured_paths(header, expected):
    column = ColumnClassifier().classify(header)
    assert column.field is expected
    assert column.reason is ColumnReason.MAPPED


def test_owner_mailing_goes_to_secondary_even_when_primary_is_free():
    classification = ColumnClassifier().classify_headers(
        ["skiptrace:owner.mailing_address.city", "skiptrace:person.mailing_address.city"]
    )
    assert [column.field for column in classification.columns] == [F.SECONDARY_CITY, F.ADDRESS_CITY]


def test_input_data_echo_and_noise():
    classification = ColumnClassifier().classify_headers(
        ["Email", "Input Data: Email", "Input Data: Favorite Color", "Unnamed: 3", "Latitude", "Favorite Color"]
    )
    reasons = [column.reason for column in classification.columns]
    assert reasons == [
        ColumnReason.MAPPED,
        ColumnReason.DUPLICATE_OF_MAPPED,
        ColumnReason.METADATA_NOISE,
        ColumnReason.METADATA_NOISE,
        ColumnReason.METADATA_NOISE,
        ColumnReason.UNMATCHED,
    ]
    assert [column.header for column in classification.unmatched] == ["Favorite Color"]


def test_input_data_for_unmapped_family_is_noise_not_duplicate():
    classification = ColumnClassifier().classify_headers(["Email", "Input Data: Phone"])
    assert classification.columns[1].reason is ColumnReason.METADATA_NOISE


def test_header_family():
    assert header_family("Input Data: Mailing City") == "city"
    assert header_family("E-mail") == "email"
    assert header_family("Favorite Color") == ""


def test_classification_summary():
    classification = ColumnClassifier().classify_headers(["First Name", "Shoe Size"])
    summary = classification.to_dict()
    assert summary["mapped"] == 1
    assert summary["unmatched"] == ["Shoe Size"]
    assert classification.field_for("First Name") is F.FIRST_NAME
    assert classification.field_for("Shoe Size") is None
