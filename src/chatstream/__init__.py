"""
Chatstream: stream chat completions into an observable message list.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .chat import (
    GPT4,
    GPT35,
    ChatCompletion,
    ChatMessage,
    ChatMessageMeta,
    ChatRole,
    ChatToken,
    StreamingParams,
    SubmitOutcome,
    SubmitResult,
)
from .errors import ChatStreamError, MissingBodyError, TransportError
from .streaming import DeltaRecord, FrameDecoder, decode_frames
from .transport import HttpxTransport, StreamResponse, StreamTransport

__all__ = [
    "GPT4",
    "GPT35",
    "ChatCompletion",
    "ChatMessage",
    "ChatMessageMeta",
    "ChatRole",
    "ChatStreamError",
    "ChatToken",
    "DeltaRecord",
    "FrameDecoder",
    "HttpxTransport",
    "MissingBodyError",
    "StreamResponse",
    "StreamTransport",
    "StreamingParams",
    "SubmitOutcome",
    "SubmitResult",
    "TransportError",
    "decode_frames",
]
