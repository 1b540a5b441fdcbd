"""Data models for chat messages.

These models define the messages exposed to callers, independent of
the wire format used to stream them.
"""

import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class ChatRole(str, Enum):
    """Roles understood by the chat-completions API."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class GPT35(str, Enum):
    """GPT-3.5 model names."""

    TURBO = "gpt-3.5-turbo"
    TURBO_16K = "gpt-3.5-turbo-16k"


class GPT4(str, Enum):
    """GPT-4 model names."""

    BASE = "gpt-4"
    BASE_32K = "gpt-4-32k"
    TURBO = "gpt-4-turbo"
    OMNI = "gpt-4o"
    OMNI_MINI = "gpt-4o-mini"


class ChatToken(BaseModel):
    """One decoded delta, as received."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(default="", description="Content fragment")
    role: str = Field(default="", description="Role fragment")
    timestamp: int = Field(description="Arrival time in epoch milliseconds")


class ChatMessageMeta(BaseModel):
    """Streaming metadata attached to a message."""

    model_config = ConfigDict(frozen=True)

    loading: bool = Field(default=False, description="True while the message is streaming")
    response_time: str = Field(default="", description="Formatted request duration")
    chunks: list[ChatToken] = Field(
        default_factory=list,
        description="Tokens in arrival order"
    )


class ChatMessage(BaseModel):
    """One conversation turn, submitted or being assembled."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Message text")
    role: str = Field(description="Role of the message sender")
    timestamp: int = Field(
        default=0,
        description="Completion time in epoch milliseconds, 0 while streaming"
    )
    meta: ChatMessageMeta = Field(default_factory=ChatMessageMeta)

    def to_api(self) -> dict[str, str]:
        """Reduce to the ``{content, role}`` shape the API expects."""
        return {"content": self.content, "role": self.role}


class ChatMessageParams(BaseModel):
    """Loose message shape accepted from callers.

    Only ``content`` and ``role`` are required; metadata may be partial.
    """

    content: str
    role: str
    timestamp: int | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


MessageInput = ChatMessage | ChatMessageParams | dict[str, Any]


def create_chat_message(params: MessageInput, now: int | None = None) -> ChatMessage:
    """Normalize caller input into a full ChatMessage.

    Args:
        params: A ChatMessage, ChatMessageParams or plain dict
        now: Timestamp to use when none is given (default: current time)

    Returns:
        ChatMessage with default metadata filled in
    """
    if isinstance(params, ChatMessage):
        if params.timestamp and not params.meta.loading:
            return params
        return params.model_copy(update={
            "timestamp": params.timestamp or (now if now is not None else now_ms()),
            "meta": params.meta.model_copy(update={"loading": False}),
        })
    if not isinstance(params, ChatMessageParams):
        params = ChatMessageParams.model_validate(params)

    # Role enums are stored by value
    role = params.role.value if isinstance(params.role, Enum) else params.role
    # Only the controller's placeholder may be loading
    meta = ChatMessageMeta.model_validate(
        {"response_time": "", "chunks": [], **params.meta, "loading": False}
    )
    return ChatMessage(
        content=params.content,
        role=role,
        timestamp=params.timestamp or (now if now is not None else now_ms()),
        meta=meta,
    )


def create_placeholder() -> ChatMessage:
    """Create the empty loading message that a response streams into."""
    return ChatMessage(
        content="",
        role="",
        timestamp=0,
        meta=ChatMessageMeta(loading=True),
    )
