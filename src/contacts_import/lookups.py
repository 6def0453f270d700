"""Static lookup tables used by the classifier, normalizer and rep matcher.

Tables are read-only mappings built once at import. Bump ``LOOKUPS_VERSION``
whenever a table changes so diagnostics can report which rule set classified
a file.
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from .models import CanonicalField as F

LOOKUPS_VERSION = "2024.3"

_COLUMN_MAPPINGS: Dict[str, F] = {
    # names
    "first_name": F.FIRST_NAME,
    "firstname": F.FIRST_NAME,
    "first name": F.FIRST_NAME,
    "first": F.FIRST_NAME,
    "fname": F.FIRST_NAME,
    "given name": F.FIRST_NAME,
    "owner first name": F.FIRST_NAME,
    "last_name": F.LAST_NAME,
    "lastname": F.LAST_NAME,
    "last name": F.LAST_NAME,
    "last": F.LAST_NAME,
    "lname": F.LAST_NAME,
    "surname": F.LAST_NAME,
    "family name": F.LAST_NAME,
    "owner last name": F.LAST_NAME,
    "middle_name": F.MIDDLE_NAME,
    "middle name": F.MIDDLE_NAME,
    "middlename": F.MIDDLE_NAME,
    "middle initial": F.MIDDLE_NAME,
    "name": F.FULL_NAME,
    "full_name": F.FULL_NAME,
    "fullname": F.FULL_NAME,
    "full name": F.FULL_NAME,
    "contact name": F.FULL_NAME,
    "customer name": F.FULL_NAME,
    "client name": F.FULL_NAME,
    "homeowner name": F.FULL_NAME,
    "owner name": F.FULL_NAME,
    "person.name": F.FULL_NAME,
    "skiptrace:person.name": F.FULL_NAME,
    # primary email
    "email": F.EMAIL,
    "email_address": F.EMAIL,
    "email address": F.EMAIL,
    "e-mail": F.EMAIL,
    "emailaddress": F.EMAIL,
    "email_1": F.EMAIL,
    "email 1": F.EMAIL,
    "email1": F.EMAIL,
    "primary email": F.EMAIL,
    "primary_email": F.EMAIL,
    "contact email": F.EMAIL,
    "main email": F.EMAIL,
    "home email": F.EMAIL,
    "work email": F.EMAIL,
    "email 1 - value": F.EMAIL,
    "e-mail 1 - value": F.EMAIL,
    "person.email": F.EMAIL,
    "skiptrace:email": F.EMAIL,
    "skiptrace:person.email": F.EMAIL,
    "skiptrace:emails.0.email": F.EMAIL,
    # secondary email
    "email_2": F.SECONDARY_EMAIL,
    "email 2": F.SECONDARY_EMAIL,
    "email2": F.SECONDARY_EMAIL,
    "secondary email": F.SECONDARY_EMAIL,
    "secondary_email": F.SECONDARY_EMAIL,
    "alternate email": F.SECONDARY_EMAIL,
    "alt email": F.SECONDARY_EMAIL,
    "other email": F.SECONDARY_EMAIL,
    "email 2 - value": F.SECONDARY_EMAIL,
    "e-mail 2 - value": F.SECONDARY_EMAIL,
    "skiptrace:emails.1.email": F.SECONDARY_EMAIL,
    # additional emails
    "email_3": F.ADDITIONAL_EMAIL,
    "email 3": F.ADDITIONAL_EMAIL,
    "email3": F.ADDITIONAL_EMAIL,
    "email 3 - value": F.ADDITIONAL_EMAIL,
    "email_4": F.ADDITIONAL_EMAIL,
    "email 4": F.ADDITIONAL_EMAIL,
    "email4": F.ADDITIONAL_EMAIL,
    "email 4 - value": F.ADDITIONAL_EMAIL,
    # primary phone
    "phone": F.PHONE,
    "phone_number": F.PHONE,
    "phone number": F.PHONE,
    "phonenumber": F.PHONE,
    "telephone": F.PHONE,
    "mobile": F.PHONE,
    "cell": F.PHONE,
    "cell phone": F.PHONE,
    "mobile phone": F.PHONE,
    "phone_1": F.PHONE,
    "phone 1": F.PHONE,
    "phone1": F.PHONE,
    "primary phone": F.PHONE,
    "primary_phone": F.PHONE,
    "main phone": F.PHONE,
    "contact phone": F.PHONE,
    "mobile number": F.PHONE,
    "cell number": F.PHONE,
    "home phone": F.PHONE,
    "work phone": F.PHONE,
    "phone 1 - value": F.PHONE,
    "phone number 1 - value": F.PHONE,
    "person.phone": F.PHONE,
    "skiptrace:phone": F.PHONE,
    "skiptrace:person.phone": F.PHONE,
    "skiptrace:phones.0.number": F.PHONE,
    # secondary phone
    "phone_2": F.SECONDARY_PHONE,
    "phone 2": F.SECONDARY_PHONE,
    "phone2": F.SECONDARY_PHONE,
    "secondary phone": F.SECONDARY_PHONE,
    "secondary_phone": F.SECONDARY_PHONE,
    "alternate phone": F.SECONDARY_PHONE,
    "alt phone": F.SECONDARY_PHONE,
    "other phone": F.SECONDARY_PHONE,
    "home phone 2": F.SECONDARY_PHONE,
    "work phone 2": F.SECONDARY_PHONE,
    "phone 2 - value": F.SECONDARY_PHONE,
    "phone number 2 - value": F.SECONDARY_PHONE,
    "skiptrace:phones.1.number": F.SECONDARY_PHONE,
    # additional phones
    "phone_3": F.ADDITIONAL_PHONE,
    "phone 3": F.ADDITIONAL_PHONE,
    "phone3": F.ADDITIONAL_PHONE,
    "phone 3 - value": F.ADDITIONAL_PHONE,
    "phone number 3 - value": F.ADDITIONAL_PHONE,
    "phone_4": F.ADDITIONAL_PHONE,
    "phone 4": F.ADDITIONAL_PHONE,
    "phone4": F.ADDITIONAL_PHONE,
    "phone 4 - value": F.ADDITIONAL_PHONE,
    "phone number 4 - value": F.ADDITIONAL_PHONE,
    # company
    "company_name": F.COMPANY_NAME,
    "company": F.COMPANY_NAME,
    "company name": F.COMPANY_NAME,
    "companyname": F.COMPANY_NAME,
    "business": F.COMPANY_NAME,
    "business name": F.COMPANY_NAME,
    "organization": F.COMPANY_NAME,
    "organization 1 - name": F.COMPANY_NAME,
    # primary address
    "address_street": F.ADDRESS_STREET,
    "address": F.ADDRESS_STREET,
    "street": F.ADDRESS_STREET,
    "street address": F.ADDRESS_STREET,
    "address1": F.ADDRESS_STREET,
    "address_1": F.ADDRESS_STREET,
    "address 1": F.ADDRESS_STREET,
    "address line 1": F.ADDRESS_STREET,
    "street_address": F.ADDRESS_STREET,
    "primary address": F.ADDRESS_STREET,
    "property address": F.ADDRESS_STREET,
    "property.address": F.ADDRESS_STREET,
    "skiptrace:property.address": F.ADDRESS_STREET,
    "skiptrace:property.address.address": F.ADDRESS_STREET,
    "address 1 - street": F.ADDRESS_STREET,
    "address_city": F.ADDRESS_CITY,
    "city": F.ADDRESS_CITY,
    "city_1": F.ADDRESS_CITY,
    "city 1": F.ADDRESS_CITY,
    "property city": F.ADDRESS_CITY,
    "property.city": F.ADDRESS_CITY,
    "address 1 - city": F.ADDRESS_CITY,
    "address_state": F.ADDRESS_STATE,
    "state": F.ADDRESS_STATE,
    "province": F.ADDRESS_STATE,
    "region": F.ADDRESS_STATE,
    "state_1": F.ADDRESS_STATE,
    "state 1": F.ADDRESS_STATE,
    "property state": F.ADDRESS_STATE,
    "property.state": F.ADDRESS_STATE,
    "address 1 - region": F.ADDRESS_STATE,
    "address_zip": F.ADDRESS_ZIP,
    "zip": F.ADDRESS_ZIP,
    "zip_code": F.ADDRESS_ZIP,
    "zipcode": F.ADDRESS_ZIP,
    "zip code": F.ADDRESS_ZIP,
    "postal": F.ADDRESS_ZIP,
    "postal_code": F.ADDRESS_ZIP,
    "postal code": F.ADDRESS_ZIP,
    "postalcode": F.ADDRESS_ZIP,
    "zip_1": F.ADDRESS_ZIP,
    "zip 1": F.ADDRESS_ZIP,
    "property zip": F.ADDRESS_ZIP,
    "property.zip": F.ADDRESS_ZIP,
    "address 1 - postal code": F.ADDRESS_ZIP,
    "county": F.COUNTY,
    "property county": F.COUNTY,
    "property.county": F.COUNTY,
    # secondary address, kept in notes
    "address_2": F.SECONDARY_ADDRESS,
    "address 2": F.SECONDARY_ADDRESS,
    "address2": F.SECONDARY_ADDRESS,
    "secondary address": F.SECONDARY_ADDRESS,
    "secondary_address": F.SECONDARY_ADDRESS,
    "mailing address": F.SECONDARY_ADDRESS,
    "mailing_address": F.SECONDARY_ADDRESS,
    "alternate address": F.SECONDARY_ADDRESS,
    "other address": F.SECONDARY_ADDRESS,
    "city_2": F.SECONDARY_CITY,
    "city 2": F.SECONDARY_CITY,
    "secondary city": F.SECONDARY_CITY,
    "mailing city": F.SECONDARY_CITY,
    "state_2": F.SECONDARY_STATE,
    "state 2": F.SECONDARY_STATE,
    "secondary state": F.SECONDARY_STATE,
    "mailing state": F.SECONDARY_STATE,
    "zip_2": F.SECONDARY_ZIP,
    "zip 2": F.SECONDARY_ZIP,
    "zipcode_2": F.SECONDARY_ZIP,
    "secondary zip": F.SECONDARY_ZIP,
    "mailing zip": F.SECONDARY_ZIP,
    # lead source
    "lead_source": F.LEAD_SOURCE,
    "source": F.LEAD_SOURCE,
    "leadsource": F.LEAD_SOURCE,
    "lead source": F.LEAD_SOURCE,
    "how did you hear": F.LEAD_SOURCE,
    # tags
    "tags": F.TAGS,
    "tag": F.TAGS,
    "labels": F.TAGS,
    "categories": F.TAGS,
    "group membership": F.TAGS,
    # notes
    "notes": F.NOTES,
    "note": F.NOTES,
    "comments": F.NOTES,
    # sales rep
    "assigned_to": F.SALES_REP_NAME,
    "assigned to": F.SALES_REP_NAME,
    "assignedto": F.SALES_REP_NAME,
    "sales_rep": F.SALES_REP_NAME,
    "sales rep": F.SALES_REP_NAME,
    "sales_rep_name": F.SALES_REP_NAME,
    "salesrep": F.SALES_REP_NAME,
    "salesman": F.SALES_REP_NAME,
    "rep": F.SALES_REP_NAME,
    "rep name": F.SALES_REP_NAME,
    "property owner": F.SALES_REP_NAME,
    "property_owner": F.SALES_REP_NAME,
    "propertyowner": F.SALES_REP_NAME,
    "account owner": F.SALES_REP_NAME,
    "account_owner": F.SALES_REP_NAME,
    "owner": F.SALES_REP_NAME,
    "agent": F.SALES_REP_NAME,
    "agent name": F.SALES_REP_NAME,
    "created by": F.SALES_REP_NAME,
    "createdby": F.SALES_REP_NAME,
    "created_by": F.SALES_REP_NAME,
    # qualification status
    "status": F.QUALIFICATION_STATUS,
    "qualification_status": F.QUALIFICATION_STATUS,
    "qualification status": F.QUALIFICATION_STATUS,
    "lead status": F.QUALIFICATION_STATUS,
    "lead_status": F.QUALIFICATION_STATUS,
    "disposition": F.QUALIFICATION_STATUS,
    "stage": F.QUALIFICATION_STATUS,
    # estimated value
    "estimated_value": F.ESTIMATED_VALUE,
    "estimated value": F.ESTIMATED_VALUE,
    "est value": F.ESTIMATED_VALUE,
    "value": F.ESTIMATED_VALUE,
    "deal value": F.ESTIMATED_VALUE,
    "job value": F.ESTIMATED_VALUE,
    "amount": F.ESTIMATED_VALUE,
}

COLUMN_MAPPINGS: Mapping[str, F] = MappingProxyType(_COLUMN_MAPPINGS)

# Header row of the downloadable import template; every entry must classify cleanly.
TEMPLATE_HEADERS: Tuple[str, ...] = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "secondary_email",
    "secondary_phone",
    "company_name",
    "address_street",
    "address_city",
    "address_state",
    "address_zip",
    "lead_source",
    "tags",
    "sales_rep",
)

STATUS_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "new": "lead",
        "new lead": "lead",
        "lead": "lead",
        "cold": "lead",
        "cold lead": "lead",
        "contacted": "contacted",
        "called": "contacted",
        "left message": "contacted",
        "hot": "interested",
        "hot lead": "interested",
        "warm": "interested",
        "warm lead": "interested",
        "interested": "interested",
        "qualified": "interested",
        "appointment": "appointment_set",
        "appointment set": "appointment_set",
        "appt set": "appointment_set",
        "scheduled": "appointment_set",
        "callback": "follow_up",
        "call back": "follow_up",
        "follow up": "follow_up",
        "follow-up": "follow_up",
        "not interested": "not_interested",
        "ni": "not_interested",
        "not home": "not_home",
        "nh": "not_home",
        "no answer": "not_home",
        "sold": "sold",
        "won": "sold",
        "closed won": "sold",
        "signed": "sold",
        "lost": "lost",
        "closed lost": "lost",
        "dead": "lost",
        "dnk": "do_not_knock",
        "do not knock": "do_not_knock",
        "no soliciting": "do_not_knock",
        "no solicitation": "do_not_knock",
    }
)

# Organization names in source data that route to a specific rep name.
COMPANY_REP_ALIASES: Mapping[str, str] = MappingProxyType({})

KNOWN_CITIES: Tuple[str, ...] = (
    "miami",
    "miami beach",
    "miami gardens",
    "north miami",
    "hialeah",
    "homestead",
    "tampa",
    "st. petersburg",
    "st petersburg",
    "clearwater",
    "brandon",
    "orlando",
    "kissimmee",
    "sanford",
    "jacksonville",
    "tallahassee",
    "gainesville",
    "ocala",
    "sarasota",
    "bradenton",
    "fort myers",
    "cape coral",
    "naples",
    "fort lauderdale",
    "hollywood",
    "pembroke pines",
    "coral springs",
    "pompano beach",
    "boca raton",
    "delray beach",
    "boynton beach",
    "west palm beach",
    "palm bay",
    "melbourne",
    "daytona beach",
    "port st. lucie",
    "port st lucie",
    "lakeland",
    "pensacola",
    "houston",
    "dallas",
    "austin",
    "san antonio",
    "atlanta",
    "charlotte",
    "nashville",
    "phoenix",
    "denver",
    "chicago",
)

_PLACEHOLDER_HEADER = r"^(?:_\d+|_?unnamed:?\s*\d+(?:_level_\d+)?|column\s*_?\d+|field\s*_?\d+|__parsed_extra)$"
PLACEHOLDER_HEADER_RE = re.compile(_PLACEHOLDER_HEADER, re.IGNORECASE)

INPUT_DATA_PREFIX_RE = re.compile(r"^input\s*data\s*:\s*", re.IGNORECASE)

METADATA_PATTERNS: Tuple["re.Pattern[str]", ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\btype$",
        r"\blabel$",
        r"\bvalidity$",
        r"\b(?:is\s*)?valid$",
        r"\b(?:phone|mobile|cell|e-?mail)\b.*\bstatus$",
        r"\b(?:dnc|do not call|litigator|tcpa|opt[\s_-]?out|wireless|carrier|line type)\b",
        r"(?:timestamp|created at|updated at|date added|last modified|_at$|\bdate$)",
        _PLACEHOLDER_HEADER,
        r"(?:latitude|longitude|\blat\b|\blng\b|\blon\b|coordinates?|geo\s*code)",
        r"^(?:id|uuid|record id|row id|row number|#)$",
        r"^input\s*data\s*:",
    )
)
