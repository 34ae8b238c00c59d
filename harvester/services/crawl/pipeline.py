from __future__ import annotations

import csv
import os
from typing import Iterable, Sequence


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def write_csv(records: Iterable, path: str, headers: Sequence[str]) -> str:
    """Write records to a CSV file: a header row, then one to_row() per record.

    Blank fields are written as the placeholder by to_row(). The file is
    overwritten. Returns the path written.
    """
    parent = os.path.dirname(path)
    if parent:
        ensure_dir(parent)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(list(headers))
        for rec in records:
            writer.writerow(rec.to_row())
    return path
