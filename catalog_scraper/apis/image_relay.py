from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from aiohttp import ClientSession

from ..config import DEFAULT_USER_AGENT
from ..errors import RelayError
from ..utils.http import fetch_bytes

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/jpeg"
#: Image bytes for a given URL are treated as immutable.
CACHE_CONTROL = "public, max-age=86400"
ACCEPT = "image/webp,image/apng,image/*,*/*;q=0.8"


@dataclass(frozen=True)
class RelayedImage:
    body: bytes
    content_type: str
    cache_control: str = CACHE_CONTROL


class ImageRelay:
    """
    Fetches source-site images on the dashboard's behalf.
    The source blocks hot-linked requests that lack its own Referer.
    """

    def __init__(
        self,
        session: ClientSession,
        referer: str,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 15.0,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.headers: Dict[str, str] = {
            "User-Agent": user_agent,
            "Referer": referer,
            "Accept": ACCEPT,
        }

    async def relay(self, image_url: Optional[str]) -> RelayedImage:
        if not image_url:
            raise RelayError(400, "Missing url parameter")

        status, content_type, body = await fetch_bytes(
            self.session, image_url, headers=self.headers, timeout=self.timeout
        )
        if not 200 <= status < 300:
            logger.warning("Upstream returned %s for image %s", status, image_url)
            raise RelayError(status, "Failed to fetch image")
        return RelayedImage(body=body, content_type=content_type or DEFAULT_CONTENT_TYPE)
