import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from ..errors import TransportError
from .base import RequestOptions, StreamResponse, StreamTransport

logger = logging.getLogger(__name__)

# Responses with this status never carry a body
NO_CONTENT = 204


class HttpxTransport(StreamTransport):
    """Byte-stream transport backed by ``httpx.AsyncClient``.

    Hidden design decisions:
    - Client construction and timeout policy
    - Mapping of httpx failures onto TransportError
    - Response release when the stream is abandoned
    """

    def __init__(
        self,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None
    ):
        """Initialize the transport.

        Args:
            timeout: Request timeout in seconds, used when no client is given
            client: Optional preconfigured client; it is not closed by close()
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @asynccontextmanager
    async def open_stream(
        self,
        url: str,
        options: RequestOptions
    ) -> AsyncIterator[StreamResponse]:
        """Send the request and yield its response with a lazy byte body."""
        try:
            async with self._client.stream(
                options.method,
                url,
                json=options.body,
                headers=options.headers,
            ) as response:
                logger.debug("POST %s -> %s", url, response.status_code)
                body = None if response.status_code == NO_CONTENT else response.aiter_bytes()
                yield StreamResponse(
                    status_code=response.status_code,
                    reason=response.reason_phrase,
                    body=body,
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Error during chat response streaming: {e}") from e

    async def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
