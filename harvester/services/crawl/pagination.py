"""Pagination drivers.

Two policies:
- FixedSetCursor: the page descriptors are known before the run starts and
  are visited once each, optionally on a worker pool.
- OffsetCursor: page index + page size. A page whose raw payload is shorter
  than the page size is the last one. With a corpus that is an exact multiple
  of the page size this costs one extra, empty, listing fetch.
"""

from __future__ import annotations

import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DriverState(str, enum.Enum):
    SEEDED = "seeded"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    DECIDING = "deciding"
    DONE = "done"


class FixedSetCursor:
    def __init__(self, pages: Iterable[str]) -> None:
        self.pages: List[str] = []
        for p in pages:
            if p not in self.pages:
                self.pages.append(p)
        # Seeded with the pages to visit; nothing adds to it during a run yet.
        self.discovered: Set[str] = set(self.pages)
        self.state = DriverState.SEEDED

    def __len__(self) -> int:
        return len(self.pages)


class OffsetCursor:
    def __init__(self, page_size: int, start_page: int = 0) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if start_page < 0:
            raise ValueError("start_page must be >= 0")
        self.page_size = page_size
        self.start_page = start_page
        self.current_page = start_page
        self.pages_fetched = 0
        self.total_fetched = 0
        self.state = DriverState.SEEDED

    @property
    def skip(self) -> int:
        return self.current_page * self.page_size

    @property
    def done(self) -> bool:
        return self.state is DriverState.DONE

    def record(self, raw_count: int) -> None:
        """Account for one fetched page and decide whether another follows.

        raw_count is the size of the listing payload, before any filtering.
        """
        self.state = DriverState.DECIDING
        self.pages_fetched += 1
        self.total_fetched += raw_count
        if raw_count < self.page_size:
            self.state = DriverState.DONE
            return
        self.current_page += 1


def run_fixed_set(cursor: FixedSetCursor, worker: Callable[[str], T], *, concurrency: int = 4) -> List[T]:
    """Run worker once per page on a thread pool and return results in page order.

    Every worker is joined before returning. If any failed, the error of the
    earliest failed page in cursor order is re-raised, not the earliest in time.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")
    cursor.state = DriverState.FETCHING
    with ThreadPoolExecutor(max_workers=concurrency) as executor:
        futures = [executor.submit(worker, page) for page in cursor.pages]
    # leaving the block waits for all of them
    cursor.state = DriverState.DONE
    return [f.result() for f in futures]


def run_offset(cursor: OffsetCursor, process_page: Callable[[int], int]) -> OffsetCursor:
    """Drive process_page(skip) until the cursor reports the last page.

    process_page returns the raw item count of the page it fetched.
    """
    while not cursor.done:
        cursor.state = DriverState.FETCHING
        logger.debug("Fetching page %d (skip=%d)", cursor.current_page, cursor.skip)
        raw_count = process_page(cursor.skip)
        cursor.record(raw_count)
    return cursor
