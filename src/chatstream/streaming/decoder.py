"""Frame decoding for server-sent chat-completion streams.

This module hides how a raw response body becomes delta records:
- Frames may straddle network reads, so one residual buffer is kept
  per decoder and only complete frames are ever parsed.
- Multi-byte characters split across reads are decoded incrementally.
- A frame that fails to parse is skipped without ending the stream.
- The ``[DONE]`` sentinel ends decoding even if bytes remain.

Usage:
    decoder = FrameDecoder(response.aiter_bytes())
    async for delta in decoder:
        print(delta.content or "", end="")
    print(decoder.skipped_frames)
"""

import codecs
import logging
import re
from collections.abc import AsyncIterable, AsyncIterator

from pydantic import ValidationError

from .models import ChatCompletionChunk, DeltaRecord

logger = logging.getLogger(__name__)

FRAME_SEPARATOR = "\n\n"
DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

# SSE fields that carry no payload for chat completions
_IGNORED_FIELDS = ("event:", "id:", "retry:")

_LEADING_BACKTICK = re.compile(r"^`\s*")


def normalize_content(content: str) -> str:
    """Collapse whitespace the API emits right after a leading backtick."""
    return _LEADING_BACKTICK.sub("`", content)


def extract_frame_data(frame: str) -> str:
    """Return the payload text of one frame.

    ``data:`` prefixes are stripped, comment lines and non-data fields are
    dropped, and the remaining lines are joined and trimmed.

    Args:
        frame: Raw frame text without the trailing blank line

    Returns:
        Payload text, empty if the frame carried none
    """
    data_lines = []
    for line in frame.split("\n"):
        if line.startswith(DATA_PREFIX):
            data_lines.append(line[len(DATA_PREFIX):].strip())
        elif line.startswith(":") or line.startswith(_IGNORED_FIELDS):
            continue
        else:
            data_lines.append(line.strip())
    return "\n".join(data_lines).strip()


def parse_delta(payload: str) -> DeltaRecord | None:
    """Parse a frame payload into the delta of its first choice.

    Returns:
        The delta record, or None if the payload is malformed
    """
    try:
        chunk = ChatCompletionChunk.model_validate_json(payload)
    except ValidationError as e:
        logger.debug("Skipping malformed frame %r: %s", payload[:200], e)
        return None

    if not chunk.choices:
        logger.debug("Skipping frame without choices %r", payload[:200])
        return None

    delta = chunk.choices[0].delta
    if delta.content:
        delta = delta.model_copy(update={"content": normalize_content(delta.content)})
    return delta


class FrameDecoder:
    """Lazy, single-use async iterator of delta records over a byte stream.

    Construct one per request; the residual buffer and text decoder state
    belong to that request only.
    """

    def __init__(
        self,
        chunks: AsyncIterable[bytes],
        text_decoder: codecs.IncrementalDecoder | None = None
    ):
        """Initialize with the response body.

        Args:
            chunks: Async iterable of raw byte chunks
            text_decoder: Incremental decoder to use (default: UTF-8,
                invalid bytes become U+FFFD)
        """
        self._chunks = chunks
        self._text_decoder = text_decoder or codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._frames = 0
        self._skipped = 0
        self._done = False
        self._iter = self._decode()

    @property
    def frames(self) -> int:
        """Number of delta records yielded so far."""
        return self._frames

    @property
    def skipped_frames(self) -> int:
        """Number of malformed frames skipped so far."""
        return self._skipped

    @property
    def done(self) -> bool:
        """Whether the ``[DONE]`` sentinel has been seen."""
        return self._done

    @property
    def residual(self) -> str:
        """Text of the incomplete trailing frame, if any."""
        return self._buffer

    def __aiter__(self) -> "FrameDecoder":
        return self

    async def __anext__(self) -> DeltaRecord:
        return await self._iter.__anext__()

    async def aclose(self) -> None:
        """Stop decoding and close the underlying byte iterator."""
        await self._iter.aclose()

    def _split_frames(self, text: str) -> list[str]:
        """Append text to the buffer and pop every complete frame."""
        self._buffer = (self._buffer + text).replace("\r\n", "\n")
        *complete, self._buffer = self._buffer.split(FRAME_SEPARATOR)
        return complete

    async def _decode(self) -> AsyncIterator[DeltaRecord]:
        try:
            async for chunk in self._chunks:
                if not chunk:
                    continue
                for frame in self._split_frames(self._text_decoder.decode(chunk)):
                    payload = extract_frame_data(frame)
                    if not payload:
                        continue
                    if payload == DONE_SENTINEL:
                        self._done = True
                        return
                    delta = parse_delta(payload)
                    if delta is None:
                        self._skipped += 1
                        continue
                    self._frames += 1
                    yield delta
        finally:
            aclose = getattr(self._chunks, "aclose", None)
            if aclose is not None:
                await aclose()


def decode_frames(
    chunks: AsyncIterable[bytes],
    text_decoder: codecs.IncrementalDecoder | None = None
) -> FrameDecoder:
    """Create a frame decoder over a byte stream.

    Args:
        chunks: Async iterable of raw byte chunks
        text_decoder: Incremental decoder to use (default: UTF-8)

    Returns:
        FrameDecoder yielding one DeltaRecord per well-formed frame
    """
    return FrameDecoder(chunks, text_decoder)
