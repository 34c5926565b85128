from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, TypeVar

from bs4 import Tag

from .base import Matcher
from ..utils.parsing import collapse_whitespace

T = TypeVar("T")


class CardMatcher:
    """Selects every element matching a CSS selector; None when there are none."""

    def __init__(self, selector: str, name: Optional[str] = None) -> None:
        self.selector = selector
        self.name = name or selector

    def match(self, root: Tag) -> Optional[List[Tag]]:
        found = root.select(self.selector)
        return found or None

    def __repr__(self) -> str:
        return f"CardMatcher({self.selector!r})"


class TextMatcher:
    """
    Text of the first element matching a CSS selector.
    Empty text counts as no match so the chain moves on.
    """

    def __init__(self, selector: str, collapse: bool = False) -> None:
        self.selector = selector
        self.name = selector
        self.collapse = collapse

    def match(self, root: Tag) -> Optional[str]:
        node = root.select_one(self.selector)
        if node is None:
            return None
        if self.collapse:
            text = collapse_whitespace(node.get_text(" "))
        else:
            text = node.get_text(" ", strip=True)
        return text or None


class AttributeMatcher:
    """Value of the first non-empty attribute among ``attrs`` on the first element matching ``selector``."""

    def __init__(self, selector: str, attrs: Sequence[str]) -> None:
        self.selector = selector
        self.attrs = tuple(attrs)
        self.name = f"{selector}[{'|'.join(self.attrs)}]"

    def match(self, root: Tag) -> Optional[str]:
        node = root.select_one(self.selector)
        if node is None:
            return None
        for attr in self.attrs:
            value = node.get(attr)
            if isinstance(value, list):
                value = " ".join(value)
            if value and value.strip():
                return value.strip()
        return None


def first_match(matchers: Iterable[Matcher[T]], root: Tag) -> Optional[T]:
    """Run matchers in priority order and commit to the first hit."""
    for matcher in matchers:
        result = matcher.match(root)
        if result is not None:
            return result
    return None


def product_link_selector(product_path: str) -> str:
    return f'a[href*="{product_path}"]'


def default_card_matchers(product_path: str = "/product/") -> List[CardMatcher]:
    # Semantic markup first, brittle class names next, any product link last.
    return [
        CardMatcher('[data-testid="product-card"]', name="testid"),
        CardMatcher('[class*="product-card"]', name="class:product-card"),
        CardMatcher('[class*="ProductCard"]', name="class:ProductCard"),
        CardMatcher(product_link_selector(product_path), name="product-link"),
    ]


TITLE_MATCHERS: List[TextMatcher] = [
    TextMatcher("h2"),
    TextMatcher("h3"),
    TextMatcher("h4"),
    TextMatcher("[class*='title']"),
    TextMatcher("[class*='name']"),
]

PRICE_MATCHERS: List[TextMatcher] = [
    TextMatcher("[data-testid='price']", collapse=True),
    TextMatcher("[class*='price']", collapse=True),
    TextMatcher("[class*='Price']", collapse=True),
]

IMAGE_MATCHERS: List[AttributeMatcher] = [
    AttributeMatcher("img", ("src", "data-src")),
]
