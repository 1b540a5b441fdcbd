from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict


class RequestOptions(BaseModel):
    """Everything the transport needs to send one request."""

    model_config = ConfigDict(frozen=True)

    method: str = "POST"
    headers: dict[str, str]
    body: dict[str, Any]


@dataclass
class StreamResponse:
    """Status line and body of a streamed response.

    ``body`` is None when the response carries nothing to read.
    """

    status_code: int
    reason: str
    body: AsyncIterator[bytes] | None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class StreamTransport(ABC):
    """Abstract base class for byte-stream transports.

    This module hides the design decision of which HTTP stack to use.
    Implementations must handle:
    - Connection setup and pooling
    - Sending the request body and headers
    - Exposing the response body as raw byte chunks
    - Releasing the response when the caller is done with it

    Supports async context manager protocol for proper resource cleanup:
        async with transport:
            async with transport.open_stream(url, options) as response:
                ...
    """

    @abstractmethod
    def open_stream(
        self,
        url: str,
        options: RequestOptions
    ) -> AbstractAsyncContextManager[StreamResponse]:
        """Send a request and expose its streamed response.

        Args:
            url: Endpoint to send the request to
            options: Method, headers and JSON body

        Returns:
            Async context manager yielding a StreamResponse; leaving it
            closes the response even if the body was not fully read

        Raises:
            TransportError: If the request fails at the network level
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "StreamTransport":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
