from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

PLACEHOLDER = "N/A"

# Loosely-typed mapping pulled from a listing or catalog page before normalization.
CandidateRecord = Dict[str, Any]


def present(value: Any) -> Any:
    """Return value unchanged unless it is blank, in which case the placeholder.

    Whitespace is stripped only to decide emptiness; the stored value is kept as-is.
    """
    text = "" if value is None else str(value)
    if not text.strip():
        return PLACEHOLDER
    return value


@dataclass(frozen=True)
class CatalogItem:
    id: Optional[str]
    url: Optional[str]
    image: Optional[str]
    name: Optional[str]
    price: Optional[str]

    HEADERS = ("id", "url", "image", "name", "price")

    def to_row(self) -> List[Any]:
        return [present(getattr(self, f.name)) for f in fields(self)]


@dataclass(frozen=True)
class SocialMedia:
    # None marks a link the source did not provide
    website: Optional[str] = None
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    twitter: Optional[str] = None


@dataclass(frozen=True)
class Organization:
    id: Any
    institution_id: Any
    name: Optional[str]
    description: Optional[str]
    email: Optional[str]
    status: Optional[str]
    visibility: Optional[str]
    social_media: SocialMedia = field(default_factory=SocialMedia)

    HEADERS = (
        "ID", "Institution ID", "Name", "Description", "Email", "Status",
        "Visibility", "Website", "Instagram", "Facebook", "Twitter",
    )

    def to_row(self) -> List[Any]:
        sm = self.social_media
        values = [
            self.id,
            self.institution_id,
            self.name,
            self.description,
            self.email,
            self.status,
            self.visibility,
            sm.website,
            sm.instagram,
            sm.facebook,
            sm.twitter,
        ]
        return [present(v) for v in values]


class Spider:
    """Minimal spider contract.

    Subclasses implement harvest() to fetch their pages and admit normalized
    records into the run's aggregator.
    """

    name: str = "base"

    def harvest(self, ctx, *args, **kwargs) -> None:
        raise NotImplementedError
