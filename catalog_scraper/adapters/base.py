from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, TypeVar

#: Placeholder emitted for a title or price no heuristic could find.
NOT_AVAILABLE = "N/A"

T_co = TypeVar("T_co", covariant=True)


@dataclass(frozen=True)
class RenderedPage:
    """Snapshot of a fully rendered page: the only input the extractor sees."""

    url: str
    html: str


@dataclass(frozen=True)
class ProductRecord:
    """One scraped listing. ``url`` is the dedup key within a batch."""

    id: int
    title: str
    price: str
    image: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "price": self.price,
            "image": self.image,
            "url": self.url,
        }


class Matcher(Protocol[T_co]):
    """
    One heuristic in an ordered chain.
    Return a match, or None to let the next matcher in the chain try.
    """

    name: str

    def match(self, root: Any) -> Optional[T_co]:
        ...
