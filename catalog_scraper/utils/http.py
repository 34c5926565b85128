from __future__ import annotations

from typing import Dict, Optional, Tuple
import logging

import aiohttp
from aiohttp import ClientSession, ClientTimeout

logger = logging.getLogger(__name__)


async def fetch_bytes(
    session: ClientSession,
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 15.0,
) -> Tuple[int, Optional[str], bytes]:
    """
    Fetch a URL once and return (status, content_type, body).
    The body is empty for non-2xx responses. No retries: callers decide.
    """
    async with session.get(url, headers=headers or {}, timeout=ClientTimeout(total=timeout)) as resp:
        content_type = resp.headers.get("Content-Type")
        if not 200 <= resp.status < 300:
            logger.debug("fetch_bytes got %s for %s", resp.status, url)
            return resp.status, content_type, b""
        return resp.status, content_type, await resp.read()


def create_session() -> ClientSession:
    """
    Create a shared aiohttp ClientSession.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    connector = aiohttp.TCPConnector(limit=20)
    return aiohttp.ClientSession(connector=connector)
