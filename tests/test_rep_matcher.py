from contacts_import.models import ProfileMatch
from contacts_import.rep_matcher import RepMatcher

PROFILES = [
    ProfileMatch(id="p-1", first_name="Johnny", last_name="Walker", email="jw@roof.co"),
    ProfileMatch(id="p-2", first_name="John", last_name="Smith", email="jsmith@roof.co"),
    ProfileMatch(id="p-3", first_name="Jane", last_name="Roe", email="jane.roe@roof.co"),
    ProfileMatch(id="p-4", first_name="Bob", last_name="Jones", email=""),
]


def test_full_name_in_either_order():
    matcher = RepMatcher(PROFILES)
    assert matcher.resolve("John Smith") == "p-2"
    assert matcher.resolve("  smith   john ") == "p-2"


def test_email_local_part():
    assert RepMatcher(PROFILES).resolve("jane.roe") == "p-3"


def test_single_token_matches_first_or_last_name():
    assert RepMatcher(PROFILES).resolve("Roe") == "p-3"
    assert RepMatcher(PROFILES).resolve("Bob") == "p-4"


def test_first_profile_in_list_order_wins_over_a_stronger_later_match():
    # "john" is contained in "johnny walker", which comes before John Smith
    assert RepMatcher(PROFILES).resolve("John") == "p-1"

    profiles = [
        ProfileMatch(id="p-1", first_name="John", last_name="Smithson"),
        ProfileMatch(id="p-2", first_name="John", last_name="Smith"),
    ]
    assert RepMatcher(profiles).resolve("John Smith") == "p-1"
    assert RepMatcher(list(reversed(profiles))).resolve("John Smith") == "p-2"


def test_containment_is_last_resort():
    assert RepMatcher(PROFILES).resolve("Bob Jones Roofing") == "p-4"


def test_company_alias_routes_to_rep():
    matcher = RepMatcher(PROFILES, company_aliases={"Acme Roofing LLC": "Jane Roe"})
    assert matcher.resolve("ACME Roofing LLC") == "p-3"


def test_overrides_take_precedence_and_unmatched_are_tracked():
    matcher = RepMatcher(PROFILES, overrides={"Mystery Rep": "p-9", "John Smith": None})
    assert matcher.resolve("Mystery Rep") == "p-9"
    assert matcher.resolve("John Smith") is None
    assert matcher.resolve("Zed Zulu") is None
    assert matcher.resolve("") is None
    assert matcher.unmatched_names() == ["Zed Zulu"]


def test_no_profiles_means_no_match():
    assert RepMatcher([]).match("John Smith") is None
