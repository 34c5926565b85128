from __future__ import annotations

import csv
from typing import List
from pathlib import Path

from ..adapters.base import ProductRecord


class CSVExporter:
    """
    One row per record, columns in the API's field order.
    """

    _headers = ["id", "title", "price", "image", "url"]

    def export(self, records: List[ProductRecord], path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            w = csv.DictWriter(f, fieldnames=self._headers)
            w.writeheader()
            for record in records:
                w.writerow(record.to_dict())
