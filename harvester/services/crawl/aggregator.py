from __future__ import annotations

import threading
from typing import Any, List, Tuple


class RecordAggregator:
    """Ordered, lock-guarded collection shared by every worker of a run.

    Order within one worker follows its admissions; order across workers is
    whatever the scheduler produced. drain() hands the sequence over once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: List[Any] = []
        self._drained = False

    def admit(self, record: Any) -> None:
        with self._lock:
            if self._drained:
                raise RuntimeError("aggregator already drained")
            self._records.append(record)

    def drain(self) -> Tuple[Any, ...]:
        with self._lock:
            if self._drained:
                raise RuntimeError("aggregator already drained")
            self._drained = True
            out = tuple(self._records)
            self._records = []
            return out

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
