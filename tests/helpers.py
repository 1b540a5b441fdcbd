"""Stream fixtures shared by the test modules."""
import asyncio
import json
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from chatstream.chat import RequestOptions
from chatstream.transport import StreamResponse, StreamTransport

DONE_FRAME = "data: [DONE]\n\n"


def frame(content: str | None = None, role: str | None = None, **extra: Any) -> str:
    """Build one ``data:`` frame carrying a single delta."""
    delta = {}
    if content is not None:
        delta["content"] = content
    if role is not None:
        delta["role"] = role
    payload = {
        "id": "chatcmpl-123",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "gpt-3.5-turbo",
        "choices": [{"index": 0, "delta": delta, "finish_reason": None}],
        **extra,
    }
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


async def wait_until(predicate: Callable[[], bool], attempts: int = 200) -> None:
    """Yield to the event loop until ``predicate`` holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


class FakeClock:
    """Epoch-ms clock that advances a fixed step on every read."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 250):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


class ScriptedTransport(StreamTransport):
    """Transport that replays byte chunks instead of talking to a server.

    In manual mode chunks are fed one at a time with ``feed`` and the body
    ends on ``end``.
    """

    def __init__(
        self,
        chunks: list[bytes | str] = (),
        status_code: int = 200,
        reason: str = "OK",
        has_body: bool = True,
        manual: bool = False
    ):
        self.chunks = [c.encode() if isinstance(c, str) else c for c in chunks]
        self.status_code = status_code
        self.reason = reason
        self.has_body = has_body
        self.manual = manual
        self.queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self.requests: list[tuple[str, RequestOptions]] = []
        self.released = 0
        self.closed = False

    def feed(self, chunk: bytes | str) -> None:
        self.queue.put_nowait(chunk.encode() if isinstance(chunk, str) else chunk)

    def end(self) -> None:
        self.queue.put_nowait(None)

    async def _body(self) -> AsyncIterator[bytes]:
        if self.manual:
            while (chunk := await self.queue.get()) is not None:
                yield chunk
        else:
            for chunk in self.chunks:
                yield chunk

    @asynccontextmanager
    async def open_stream(self, url: str, options: RequestOptions) -> AsyncIterator[StreamResponse]:
        self.requests.append((url, options))
        try:
            yield StreamResponse(
                status_code=self.status_code,
                reason=self.reason,
                body=self._body() if self.has_body else None,
            )
        finally:
            self.released += 1

    async def close(self) -> None:
        self.closed = True


