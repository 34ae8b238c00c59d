from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict

from .aggregator import RecordAggregator
from .fetcher import PageFetcher


@dataclass
class HarvestStats:
    listing_fetches: int = 0
    enrichment_fetches: int = 0
    admitted: int = 0
    rejected: int = 0  # filtered out
    skipped: int = 0  # malformed items / entities with missing fields

    def merge(self, other: "HarvestStats") -> None:
        for k, v in asdict(other).items():
            setattr(self, k, getattr(self, k) + v)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class HarvestContext:
    """Everything one harvest run shares. Built at start, discarded after the sink write.

    Only the aggregator may be touched from worker threads; stats are updated on
    the driving thread.
    """

    fetcher: PageFetcher
    aggregator: RecordAggregator = field(default_factory=RecordAggregator)
    stats: HarvestStats = field(default_factory=HarvestStats)
