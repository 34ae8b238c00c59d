from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from selectolax.parser import HTMLParser, Node

from ..base import CatalogItem, Spider
from ..context import HarvestContext, HarvestStats
from ..errors import MalformedItemError
from ..filters import admit_all
from ..pagination import FixedSetCursor, run_fixed_set

logger = logging.getLogger(__name__)


class CatalogSpider(Spider):
    """HTML spider for product listing pages (WooCommerce-style markup).

    Each `li.product` yields one CatalogItem from its first link, image,
    heading and price span. An item missing one of those is logged and
    skipped; its siblings are still extracted.
    """

    name = "catalog"

    def __init__(
        self,
        *,
        item_sel: str = "li.product",
        concurrency: int = 4,
        admit: Callable[[CatalogItem], bool] = admit_all,
    ) -> None:
        self.item_sel = item_sel
        self.concurrency = int(concurrency)
        self.admit = admit

    # --- Public API ---
    def harvest(self, ctx: HarvestContext, cursor: FixedSetCursor) -> HarvestStats:
        """Fetch every page of the cursor on the worker pool and admit its items."""

        def work(url: str) -> HarvestStats:
            doc = ctx.fetcher.fetch_html(url)
            items, _raw_count, skipped = self.parse_html(doc, source_url=url)
            local = HarvestStats(listing_fetches=1, skipped=skipped)
            for item in items:
                if not self.admit(item):
                    local.rejected += 1
                    continue
                ctx.aggregator.admit(item)
                local.admitted += 1
            logger.debug("Page %s: %d items admitted", url, local.admitted)
            return local

        for page_stats in run_fixed_set(cursor, work, concurrency=self.concurrency):
            ctx.stats.merge(page_stats)
        return ctx.stats

    def parse_html(self, doc: HTMLParser, *, source_url: str = "") -> Tuple[List[CatalogItem], int, int]:
        """Return (items, raw item count, skipped count) for one listing page."""
        nodes = doc.css(self.item_sel) or []
        items: List[CatalogItem] = []
        skipped = 0
        for node in nodes:
            try:
                items.append(self.extract_item(node))
            except MalformedItemError as exc:
                skipped += 1
                logger.warning("Skipping malformed item on %s: %s", source_url or "<page>", exc)
        return items, len(nodes), skipped

    @staticmethod
    def extract_item(node: Node) -> CatalogItem:
        url = _first_attr(node, "a", "href")
        image = _first_attr(node, "img", "src")
        name = _first_text(node, "h2")
        price = _first_text(node, "span")
        id_node = node.css_first("[data-product_id]")
        product_id = id_node.attributes.get("data-product_id") if id_node is not None else None
        return CatalogItem(id=product_id, url=url, image=image, name=name, price=price)


# --- Internals ---
def _first(node: Node, selector: str) -> Node:
    found = node.css_first(selector)
    if found is None:
        raise MalformedItemError(selector)
    return found


def _first_attr(node: Node, selector: str, attr: str) -> str:
    value: Optional[str] = _first(node, selector).attributes.get(attr)
    if value is None:
        raise MalformedItemError(f"{selector}[{attr}]")
    return value


def _first_text(node: Node, selector: str) -> str:
    return _first(node, selector).text()
