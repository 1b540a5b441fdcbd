"""Chat module for chatstream.

Provides the message models, the observable message list and the
ChatCompletion controller that streams answers into it.
"""

from .accumulator import DeltaAccumulator, apply_delta
from .cancellation import CancellationToken
from .controller import ChatCompletion, SubmitOutcome, SubmitResult, format_response_time
from .models import (
    GPT4,
    GPT35,
    ChatMessage,
    ChatMessageMeta,
    ChatMessageParams,
    ChatRole,
    ChatToken,
    create_chat_message,
    create_placeholder,
)
from .request import RequestOptions, StreamingParams, build_request_options
from .state import MessageList

__all__ = [
    "GPT4",
    "GPT35",
    "CancellationToken",
    "ChatCompletion",
    "ChatMessage",
    "ChatMessageMeta",
    "ChatMessageParams",
    "ChatRole",
    "ChatToken",
    "DeltaAccumulator",
    "MessageList",
    "RequestOptions",
    "StreamingParams",
    "SubmitOutcome",
    "SubmitResult",
    "apply_delta",
    "build_request_options",
    "create_chat_message",
    "create_placeholder",
    "format_response_time",
]
