"""
CRM identity resolution for meeting attendees.

Tries progressively looser strategies against the contact store and stops
at the first one that yields a contact.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Tuple

import structlog

from meetingintel.core.models import AttendeeInput
from meetingintel.intelligence.research_models import CRMContact

logger = structlog.get_logger(__name__)


class ContactStore(Protocol):
    """Exact-filter contact queries, as offered by the CRM client."""

    def find_by_email(self, email: str) -> Optional[CRMContact]: ...

    def find_by_name_company(
        self, first_name: str, last_name: str, company: Optional[str] = None
    ) -> List[CRMContact]: ...

    def find_by_first_name_prefix(self, prefix: str, last_name: str) -> List[CRMContact]: ...


def split_name(name: str) -> Optional[Tuple[str, str]]:
    """First token and the remaining tokens; None for single-token names."""
    tokens = name.split()
    if len(tokens) < 2:
        return None
    return tokens[0], " ".join(tokens[1:])


def pick_candidate(candidates: List[CRMContact], company_hint: Optional[str]) -> Optional[CRMContact]:
    """Prefer a candidate whose company overlaps the hint, else the first one."""
    if not candidates:
        return None
    if company_hint:
        hint = company_hint.strip().lower()
        for candidate in candidates:
            company = (candidate.company or "").strip().lower()
            if company and (company in hint or hint in company):
                return candidate
    return candidates[0]


class ContactMatcher:
    """
    Resolve an attendee to a CRM contact.

    Strategies, in order: normalized email, first + last name + company,
    first + last name, then first-name prefix + exact last name. Store
    errors propagate to the caller.
    """

    def __init__(self, store: ContactStore, prefix_length: int = 4):
        self.store = store
        self.prefix_length = max(1, prefix_length)

    def find_contact(self, attendee: AttendeeInput) -> Optional[CRMContact]:
        company_hint = attendee.company

        if attendee.email:
            contact = self.store.find_by_email(attendee.email.strip().lower())
            if contact:
                logger.info("crm_contact_matched", attendee=attendee.name, strategy="email")
                return contact

        names = split_name(attendee.name)
        if names is None:
            logger.debug("crm_name_match_skipped", attendee=attendee.name, reason="single_token_name")
            return None
        first_name, last_name = names

        if company_hint:
            contact = pick_candidate(
                self.store.find_by_name_company(first_name, last_name, company_hint), company_hint
            )
            if contact:
                logger.info("crm_contact_matched", attendee=attendee.name, strategy="name_company")
                return contact

        contact = pick_candidate(self.store.find_by_name_company(first_name, last_name), company_hint)
        if contact:
            logger.info("crm_contact_matched", attendee=attendee.name, strategy="name")
            return contact

        prefix = first_name[: self.prefix_length]
        contact = pick_candidate(self.store.find_by_first_name_prefix(prefix, last_name), company_hint)
        if contact:
            logger.info("crm_contact_matched", attendee=attendee.name, strategy="fuzzy")
            return contact

        logger.info("crm_contact_not_found", attendee=attendee.name)
        return None
