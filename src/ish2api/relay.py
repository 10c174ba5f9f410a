"""Filtering relay between the upstream event-stream and the client."""

import codecs
import logging
from contextlib import aclosing
from typing import Any, AsyncGenerator, AsyncIterable, Dict, Optional

from .config import MARKER, filter_logger
from .errors import ErrorEnvelope, PROXY_ERROR, ProxyError
from .upstream import iter_chunks, open_upstream

logger = logging.getLogger(__name__)


class MarkerFilter:
    """
    Looks for a marker in the decoded text of each chunk fed to it.

    Decoding is incremental: a multi-byte character cut by a chunk boundary
    is held back until the rest of it arrives. Each chunk is checked on its
    own, so a marker split across two chunks is not seen.
    """

    def __init__(self, marker: str = MARKER):
        self.marker = marker
        self.decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.triggered = False

    def feed(self, chunk: bytes) -> bool:
        """
        Decode the chunk and return True if its text contains the marker.
        Once triggered, every later call returns True.
        """
        if self.triggered:
            return True
        text = self.decoder.decode(chunk)
        if self.marker in text:
            self.triggered = True
        return self.triggered


async def filter_chunks(
    chunks: AsyncIterable[bytes], marker_filter: MarkerFilter
) -> AsyncGenerator[bytes, None]:
    """
    Forward chunks verbatim until one of them contains the marker.

    The chunk carrying the marker is dropped and nothing after it is read.
    The decoded text is only inspected, the bytes passed on are the ones
    received.
    """
    async for chunk in chunks:
        if marker_filter.feed(chunk):
            filter_logger.info(
                f"{marker_filter.marker} content detected. Stopping the stream to the client."
            )
            return
        yield chunk


async def relay_chat_completion(
    payload: Dict[str, Any],
    target_url: str,
    timeout: Optional[float] = None,
    marker: str = MARKER,
) -> AsyncGenerator[bytes, None]:
    """
    Stream an upstream chat completion to the client through the marker filter.

    Args:
        payload: Client payload, already forced to stream
        target_url: Upstream completions endpoint
        timeout: Upstream timeout in seconds, None for no limit
        marker: Text that ends the stream silently

    Yields:
        Upstream chunks, unchanged, or a single SSE error event if the
        upstream fails
    """
    try:
        async with open_upstream(payload, target_url, timeout) as response:
            async with aclosing(
                filter_chunks(iter_chunks(response), MarkerFilter(marker))
            ) as filtered:
                async for chunk in filtered:
                    yield chunk
    except ProxyError as e:
        yield e.envelope().to_sse()
    except Exception as e:
        logger.error(f"An unexpected error occurred: {type(e).__name__}: {str(e)}")
        yield ErrorEnvelope.build(
            f"An unexpected error occurred: {str(e)}", PROXY_ERROR
        ).to_sse()
