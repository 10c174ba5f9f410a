"""Upstream handling for ish2api proxy."""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from .config import UPSTREAM_HEADERS
from .errors import UpstreamConnectionError, UpstreamStatusError

logger = logging.getLogger(__name__)


def create_http_client(
    timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """One client per upstream call; nothing is pooled across requests."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout), follow_redirects=True, transport=transport
    )


def encode_body(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


@asynccontextmanager
async def open_upstream(
    payload: Dict[str, Any], target_url: str, timeout: Optional[float] = None
) -> AsyncIterator[httpx.Response]:
    """
    POST the payload upstream and hold the streaming response open.

    Args:
        payload: Request body, already forced to stream
        target_url: Upstream completions endpoint
        timeout: Seconds, or None to wait indefinitely

    Yields:
        The httpx response with its body not yet read

    Raises:
        UpstreamStatusError: upstream answered with a non-2xx status
        UpstreamConnectionError: the request could not be sent or read

    The connection and the client are closed when the block exits, however
    it exits.
    """
    body = encode_body(payload)
    try:
        async with create_http_client(timeout) as client:
            async with client.stream(
                "POST", target_url, content=body, headers=dict(UPSTREAM_HEADERS)
            ) as response:
                if not response.is_success:
                    content = await response.aread()
                    error_text = content.decode("utf-8", errors="replace")
                    logger.error(
                        f"Error from upstream API: {response.status_code} - {error_text}"
                    )
                    raise UpstreamStatusError(response.status_code, error_text)
                yield response
    except httpx.HTTPError as e:
        detail = str(e) or "no detail"
        logger.error(f"Upstream transport failure: {type(e).__name__}: {detail}")
        raise UpstreamConnectionError(f"{type(e).__name__}: {detail}") from e


async def iter_chunks(response: httpx.Response) -> AsyncIterator[bytes]:
    """Yield body chunks as they arrive, ending when the upstream closes."""
    async for chunk in response.aiter_bytes():
        if chunk:
            yield chunk
