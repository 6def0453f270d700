"""Resolve free-text sales rep names from source files to internal profiles."""
from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from .lookups import COMPANY_REP_ALIASES
from .models import ProfileMatch

logger = logging.getLogger(__name__)

Tier = Callable[[str, ProfileMatch], bool]


def _clean(value: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (value or "")).strip().lower()


def match_full_name(needle: str, profile: ProfileMatch) -> bool:
    first, last = _clean(profile.first_name), _clean(profile.last_name)
    if not (first or last):
        return False
    return needle in {f"{first} {last}".strip(), f"{last} {first}".strip()}


def match_email_local_part(needle: str, profile: ProfileMatch) -> bool:
    email = _clean(profile.email)
    if "@" not in email:
        return False
    return needle == email.split("@", 1)[0]


def match_single_token(needle: str, profile: ProfileMatch) -> bool:
    if " " in needle:
        return False
    return needle in {name for name in (_clean(profile.first_name), _clean(profile.last_name)) if name}


def match_containment(needle: str, profile: ProfileMatch) -> bool:
    full = _clean(profile.full_name)
    if not full:
        return False
    return needle in full or full in needle


class RepMatcher:
    """Resolve a rep name to the first profile, in list order, that any tier accepts.

    Each profile is tried against every tier before moving on to the next
    profile; there is no ranking across profiles. Company aliases are consulted
    before the tiers and redirect to the aliased rep name.
    """

    TIERS: Tuple[Tuple[str, Tier], ...] = (
        ("full_name", match_full_name),
        ("email_local_part", match_email_local_part),
        ("single_token", match_single_token),
        ("containment", match_containment),
    )

    def __init__(
        self,
        profiles: Sequence[ProfileMatch],
        company_aliases: Optional[Mapping[str, str]] = None,
        overrides: Optional[Mapping[str, Optional[str]]] = None,
    ) -> None:
        self.profiles = list(profiles)
        aliases: Dict[str, str] = {_clean(k): v for k, v in COMPANY_REP_ALIASES.items()}
        aliases.update({_clean(k): v for k, v in (company_aliases or {}).items()})
        self.company_aliases = aliases
        self.overrides = dict(overrides or {})
        self.unmatched: Set[str] = set()

    def match_alias(self, needle: str) -> Optional[ProfileMatch]:
        target = self.company_aliases.get(needle)
        if not target:
            return None
        target_clean = _clean(target)
        for profile in self.profiles:
            if profile.id == target or match_full_name(target_clean, profile):
                return profile
            if match_email_local_part(target_clean, profile):
                return profile
        logger.warning("Company alias %r points at unknown rep %r", needle, target)
        return None

    def match(self, rep_name: Optional[str]) -> Optional[ProfileMatch]:
        needle = _clean(rep_name)
        if not needle or not self.profiles:
            return None
        aliased = self.match_alias(needle)
        if aliased is not None:
            return aliased
        for profile in self.profiles:
            for tier_name, tier in self.TIERS:
                if tier(needle, profile):
                    logger.debug("Rep %r matched %s via %s", rep_name, profile.id, tier_name)
                    return profile
        return None

    def resolve(self, rep_name: Optional[str]) -> Optional[str]:
        """Return the profile id for a rep name, honoring manual overrides.

        Names that neither an override nor the tiers resolve are remembered in
        ``unmatched`` so the caller can report them.
        """
        raw = (rep_name or "").strip()
        if not raw:
            return None
        if raw in self.overrides:
            return self.overrides[raw] or None
        profile = self.match(raw)
        if profile is None:
            self.unmatched.add(raw)
            return None
        return profile.id

    def unmatched_names(self) -> List[str]:
        return sorted(self.unmatched)
