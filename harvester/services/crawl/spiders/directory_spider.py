from __future__ import annotations

"""Campus Labs Engage organization directory spider.

The directory exposes a paged search endpoint and a per-organization detail
endpoint:

- listing: {domain}/engage/api/discovery/search/organizations?orderBy[0]=UpperName asc&top=N&skip=M
  -> {"value": [{"WebsiteKey": "...", ...}, ...]}
- detail:  {domain}/engage/api/discovery/organization/bykey/{WebsiteKey}
  -> {"id": ..., "institutionId": ..., "name": ..., "socialMedia": {...}, ...}

Every listing entry is enriched through the detail endpoint and the resulting
Organization is admitted only when its visibility is "Public". Paging stops on
the first listing shorter than the page size.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from ..base import CandidateRecord, Organization, SocialMedia, Spider
from ..context import HarvestContext, HarvestStats
from ..errors import DecodeError, MissingFieldError
from ..filters import candidate_may_be_public, is_public
from ..pagination import DriverState, OffsetCursor, run_offset

logger = logging.getLogger(__name__)

LISTING_PATH = "/engage/api/discovery/search/organizations"
DETAIL_PATH = "/engage/api/discovery/organization/bykey/"

# socialMedia sub-key in the detail payload -> SocialMedia field
SOCIAL_KEYS = {
    "ExternalWebsite": "website",
    "InstagramUrl": "instagram",
    "FacebookUrl": "facebook",
    "TwitterUrl": "twitter",
}


class DirectorySpider(Spider):
    name = "directory"

    def __init__(
        self,
        domain: str,
        *,
        page_size: int = 1000,
        start_page: int = 0,
        enrich_concurrency: int = 1,
        admit: Callable[[Organization], bool] = is_public,
    ) -> None:
        self.domain = domain.rstrip("/")
        self.page_size = int(page_size)
        self.start_page = int(start_page)
        self.enrich_concurrency = max(1, int(enrich_concurrency))
        self.admit = admit

    # --- Public API ---
    def listing_url(self, skip: int) -> str:
        return (
            f"{self.domain}{LISTING_PATH}"
            f"?orderBy%5B0%5D=UpperName%20asc&top={self.page_size}&skip={skip}"
        )

    def detail_url(self, key: Any) -> str:
        return f"{self.domain}{DETAIL_PATH}{key}"

    def harvest(self, ctx: HarvestContext, cursor: Optional[OffsetCursor] = None) -> HarvestStats:
        cursor = cursor or OffsetCursor(self.page_size, self.start_page)

        def process_page(skip: int) -> int:
            url = self.listing_url(skip)
            payload = ctx.fetcher.fetch_json(url)
            ctx.stats.listing_fetches += 1
            cursor.state = DriverState.EXTRACTING
            candidates = self.parse_listing(payload, source_url=url)
            self._enrich_and_admit(ctx, candidates)
            return len(candidates)

        run_offset(cursor, process_page)
        logger.info(
            "Directory harvest finished after %d pages (%d listed, %d admitted)",
            cursor.pages_fetched, cursor.total_fetched, ctx.stats.admitted,
        )
        return ctx.stats

    @staticmethod
    def parse_listing(payload: Any, *, source_url: str = "") -> List[CandidateRecord]:
        if not isinstance(payload, dict) or not isinstance(payload.get("value"), list):
            raise DecodeError(source_url, "listing payload has no 'value' list")
        return payload["value"]

    @staticmethod
    def parse_organization(data: Dict[str, Any]) -> Organization:
        """Build an Organization from a detail payload.

        Raises MissingFieldError when a top-level key is absent or socialMedia is
        not an object. Missing social links become None.
        """
        if not isinstance(data, dict):
            raise MissingFieldError("id")

        def req(key: str) -> Any:
            if key not in data:
                raise MissingFieldError(key)
            return data[key]

        social = req("socialMedia")
        if social is None:
            social = {}
        elif not isinstance(social, dict):
            raise MissingFieldError("socialMedia")
        links = {attr: social.get(key) for key, attr in SOCIAL_KEYS.items()}
        return Organization(
            id=req("id"),
            institution_id=req("institutionId"),
            name=req("name"),
            description=req("description"),
            email=req("email"),
            status=req("status"),
            visibility=req("visibility"),
            social_media=SocialMedia(**links),
        )

    # --- Internals ---
    def _enrich_and_admit(self, ctx: HarvestContext, candidates: List[CandidateRecord]) -> None:
        keys: List[Any] = []
        for cand in candidates:
            if not isinstance(cand, dict):
                ctx.stats.skipped += 1
                logger.warning("Dropping listing entry that is not an object: %r", cand)
                continue
            if not candidate_may_be_public(cand):
                ctx.stats.rejected += 1
                continue
            key = cand.get("WebsiteKey")
            if key is None:
                ctx.stats.skipped += 1
                logger.warning("Dropping listing entry without WebsiteKey: %r", cand)
                continue
            keys.append(key)

        if self.enrich_concurrency > 1 and len(keys) > 1:
            with ThreadPoolExecutor(max_workers=self.enrich_concurrency) as executor:
                # map() keeps listing order and re-raises the error of the earliest failed key
                results = list(executor.map(lambda k: self._enrich(ctx, k), keys))
        else:
            results = [self._enrich(ctx, k) for k in keys]

        ctx.stats.enrichment_fetches += len(keys)
        for org in results:
            if org is None:
                ctx.stats.skipped += 1
                continue
            if not self.admit(org):
                ctx.stats.rejected += 1
                continue
            ctx.aggregator.admit(org)
            ctx.stats.admitted += 1
            logger.info("Synced organization: %s", org.name)

    def _enrich(self, ctx: HarvestContext, key: Any) -> Optional[Organization]:
        data = ctx.fetcher.fetch_json(self.detail_url(key))
        try:
            return self.parse_organization(data)
        except MissingFieldError as exc:
            logger.warning("Dropping organization %s: %s", key, exc)
            return None
