from __future__ import annotations

import json
from typing import List
from pathlib import Path

from ..adapters.base import ProductRecord


class JSONExporter:
    def export(self, records: List[ProductRecord], path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in records], f, indent=2, ensure_ascii=False)
