from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urljoin, urlparse, urlunparse

_WHITESPACE_RE = re.compile(r"\s+")

#: Currency glyph the source site renders in front of (and between) amounts.
CURRENCY_MARKER = "D"
#: Code put in front of the normalized amount.
CURRENCY_CODE = "AED"

_SECOND_AMOUNT_RE = re.compile(rf"\s+{CURRENCY_MARKER}\s+")
_LEADING_MARKER_RE = re.compile(rf"^{CURRENCY_MARKER}\s*")


def normalize_url(url: str) -> str:
    """
    Normalize URL by removing the fragment.
    """
    parts = list(urlparse(url))
    parts[5] = ""  # strip fragment
    return urlunparse(parts)


def resolve_url(href: Optional[str], base_url: str) -> str:
    if not href:
        return ""
    return normalize_url(urljoin(base_url, href.strip()))


def is_product_url(url: str, product_path: str = "/product/") -> bool:
    return bool(url) and product_path in url


def collapse_whitespace(text: Optional[str]) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def normalize_image_url(src: Optional[str], base_url: str = "") -> str:
    """
    Make an image reference absolute.

    Protocol-relative values ("//cdn/x.jpg") always get an explicit https
    scheme; other relative paths are resolved against ``base_url``.
    """
    src = (src or "").strip()
    if not src:
        return ""
    if src.startswith("//"):
        return "https:" + src
    if src.startswith("data:") or not base_url:
        return src
    return urljoin(base_url, src)


def normalize_price(text: str) -> str:
    """
    Turn listing price text into a currency-prefixed string.

    The source renders the current and the struck-through price as
    "D 1,299 D 1,599". Keep the first amount and swap the glyph for the
    currency code: "AED 1,299". Text not in that layout passes through.
    """
    if not text:
        return ""
    first = _SECOND_AMOUNT_RE.split(text)[0]
    return _LEADING_MARKER_RE.sub(f"{CURRENCY_CODE} ", first, count=1) or text
