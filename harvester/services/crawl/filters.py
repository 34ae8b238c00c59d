from __future__ import annotations

from typing import Any

from .base import CandidateRecord, Organization

PUBLIC = "Public"


def admit_all(record: Any) -> bool:
    return True


def is_public(record: Organization) -> bool:
    return record.visibility == PUBLIC


def candidate_may_be_public(candidate: CandidateRecord) -> bool:
    """False only when a listing entry already says it is not public.

    Entries that carry no visibility of their own must be enriched before the
    admission filter can decide.
    """
    for key in ("visibility", "Visibility"):
        if key in candidate and candidate[key] is not None:
            return candidate[key] == PUBLIC
    return True
