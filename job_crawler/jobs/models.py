"""Listing data models and identity assignment."""

import hashlib
import json
from dataclasses import dataclass
from typing import Optional

# Description value for listings whose detail page could not be read
UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ListingCandidate:
    """One posting as extracted from one search results page."""

    title: str = ""
    company: str = ""
    location: str = ""
    summary: str = ""
    link: str = ""


@dataclass(frozen=True)
class CanonicalListing(ListingCandidate):
    """A deduplicated listing with its identity and (once enriched) description."""

    identity: str = ""
    description: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: ListingCandidate) -> "CanonicalListing":
        if isinstance(candidate, CanonicalListing):
            return candidate
        return cls(
            title=candidate.title,
            company=candidate.company,
            location=candidate.location,
            summary=candidate.summary,
            link=candidate.link,
            identity=assign_identity(candidate),
        )

    @property
    def is_enriched(self) -> bool:
        return self.description is not None and self.description != UNAVAILABLE

    def to_dict(self) -> dict:
        """Convert to a row dict matching the persisted column layout."""
        return {
            "identity": self.identity,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "summary": self.summary,
            "link": self.link,
            "description": self.description,
        }


def assign_identity(candidate: ListingCandidate) -> str:
    """SHA-256 of the (title, location, company) triple.

    The fields are encoded as a JSON array so that no two distinct triples
    share an encoding.
    """
    raw = json.dumps([candidate.title, candidate.location, candidate.company], ensure_ascii=False)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
