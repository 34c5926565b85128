from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Set, Tuple

from bs4 import BeautifulSoup, Tag

from .base import NOT_AVAILABLE, ProductRecord, RenderedPage
from .matchers import (
    IMAGE_MATCHERS,
    PRICE_MATCHERS,
    TITLE_MATCHERS,
    AttributeMatcher,
    CardMatcher,
    TextMatcher,
    default_card_matchers,
    first_match,
    product_link_selector,
)
from ..utils.parsing import (
    collapse_whitespace,
    is_product_url,
    normalize_image_url,
    normalize_price,
    resolve_url,
)

logger = logging.getLogger(__name__)

PriceNormalizer = Callable[[str], str]


class ListingExtractor:
    """
    Turns a rendered category page into product records.

    Card discovery and every field use ordered matcher chains; the first
    matcher with a hit wins. Extraction never raises for missing fields:
    they fall back to "N/A" (title, price) or "" (image).
    """

    def __init__(
        self,
        product_path: str = "/product/",
        card_matchers: Optional[Sequence[CardMatcher]] = None,
        title_matchers: Sequence[TextMatcher] = TITLE_MATCHERS,
        price_matchers: Sequence[TextMatcher] = PRICE_MATCHERS,
        image_matchers: Sequence[AttributeMatcher] = IMAGE_MATCHERS,
        price_normalizer: PriceNormalizer = normalize_price,
    ) -> None:
        self.product_path = product_path
        self.card_matchers = list(card_matchers or default_card_matchers(product_path))
        self.title_matchers = list(title_matchers)
        self.price_matchers = list(price_matchers)
        self.image_matchers = list(image_matchers)
        self.price_normalizer = price_normalizer
        self._link_selector = product_link_selector(product_path)

    def extract(self, page: RenderedPage) -> List[ProductRecord]:
        soup = BeautifulSoup(page.html, "html.parser")
        cards = self.find_cards(soup)

        records: List[ProductRecord] = []
        seen: Set[str] = set()
        for card in cards:
            url, container = self._resolve_anchor(card, page.url)
            if not is_product_url(url, self.product_path) or url in seen:
                continue
            seen.add(url)

            title = first_match(self.title_matchers, container) or ""
            price = self._price_of(container)
            if not title and not price:
                continue

            image = first_match(self.image_matchers, container) or ""
            records.append(
                ProductRecord(
                    id=len(records) + 1,
                    title=title or NOT_AVAILABLE,
                    price=price or NOT_AVAILABLE,
                    image=normalize_image_url(image, page.url),
                    url=url,
                )
            )

        logger.debug("Extracted %s records from %s cards on %s", len(records), len(cards), page.url)
        return records

    def find_cards(self, soup: BeautifulSoup) -> List[Tag]:
        for matcher in self.card_matchers:
            cards = matcher.match(soup)
            if cards:
                logger.debug("Card strategy %s matched %s elements", matcher.name, len(cards))
                return cards
        return []

    # ---- Per-card helpers ---------------------------------------------------

    def _resolve_anchor(self, card: Tag, base_url: str) -> Tuple[str, Tag]:
        """Return (product url, container to read fields from) for a card."""
        if card.name == "a":
            return resolve_url(card.get("href"), base_url), card

        link = card.select_one(self._link_selector)
        wrapper = card.find_parent("a")
        if link is None and wrapper is not None and is_product_url(wrapper.get("href") or "", self.product_path):
            link = wrapper
        url = resolve_url(link.get("href"), base_url) if link is not None else ""
        return url, wrapper or card

    def _price_of(self, container: Tag) -> str:
        raw = first_match(self.price_matchers, container)
        if not raw:
            return ""
        return collapse_whitespace(self.price_normalizer(raw))
