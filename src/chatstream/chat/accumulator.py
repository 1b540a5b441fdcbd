"""Folding of delta records into a growing chat message."""

from collections.abc import Callable

from ..streaming.models import DeltaRecord
from .models import ChatMessage, ChatToken, now_ms


def apply_delta(message: ChatMessage, delta: DeltaRecord, timestamp: int) -> ChatMessage:
    """Return ``message`` with one delta folded in.

    Content and role are concatenated, never replaced, and the delta is
    appended to ``meta.chunks``. The message timestamp stays 0.

    Args:
        message: The in-progress message
        delta: Delta decoded from one frame
        timestamp: Arrival time recorded on the token

    Returns:
        New ChatMessage value
    """
    content = delta.content or ""
    role = delta.role or ""
    token = ChatToken(content=content, role=role, timestamp=timestamp)
    return message.model_copy(update={
        "content": message.content + content,
        "role": message.role + role,
        "timestamp": 0,
        "meta": message.meta.model_copy(update={"chunks": [*message.meta.chunks, token]}),
    })


class DeltaAccumulator:
    """Holds the message being assembled from a stream of deltas."""

    def __init__(self, message: ChatMessage, clock: Callable[[], int] = now_ms):
        self._message = message
        self._clock = clock

    @property
    def message(self) -> ChatMessage:
        return self._message

    @property
    def chunks(self) -> list[ChatToken]:
        return list(self._message.meta.chunks)

    def apply(self, delta: DeltaRecord) -> ChatMessage:
        """Fold one delta in and return the updated message."""
        self._message = apply_delta(self._message, delta, self._clock())
        return self._message
