"""Wire models for streamed chat-completion frames.

Only the fields the decoder needs are declared; everything else the API
sends is ignored.
"""

from pydantic import BaseModel, ConfigDict, Field


class DeltaRecord(BaseModel):
    """Incremental content/role fragment decoded from one frame.

    A field left as None contributes nothing to the message.
    """

    model_config = ConfigDict(frozen=True)

    content: str | None = Field(default=None, description="Content fragment")
    role: str | None = Field(default=None, description="Role fragment")


class ChunkChoice(BaseModel):
    """One entry of the ``choices`` array in a streamed frame."""

    index: int = Field(default=0, description="Choice index")
    delta: DeltaRecord = Field(default_factory=DeltaRecord)
    finish_reason: str | None = Field(
        default=None,
        description="Why generation stopped, set on the last frame"
    )


class ChatCompletionChunk(BaseModel):
    """Payload of a single ``data:`` frame."""

    id: str | None = None
    object: str | None = None
    created: int | None = None
    model: str | None = None
    choices: list[ChunkChoice] = Field(default_factory=list)
