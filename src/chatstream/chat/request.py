"""Request construction for streamed chat completions."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..transport.base import RequestOptions

CHAT_COMPLETIONS_PATH = "/chat/completions"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
CHAT_COMPLETIONS_URL = DEFAULT_BASE_URL + CHAT_COMPLETIONS_PATH


class StreamingParams(BaseModel):
    """API key, model and completion settings for a ChatCompletion.

    Unknown keyword arguments are kept and sent to the API verbatim.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    api_key: str = Field(description="Bearer token for the API")
    model: str = Field(description="Model to complete with")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    n: int | None = Field(default=None, ge=1)
    stop: str | list[str] | None = None
    max_tokens: int | None = Field(default=None, ge=1)
    presence_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    frequency_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    logit_bias: dict[str, float] | None = None
    user: str | None = None

    @field_validator("model", mode="before")
    @classmethod
    def _model_name(cls, value: Any) -> Any:
        return value.value if isinstance(value, Enum) else value

    def completion_settings(self) -> dict[str, Any]:
        """Settings forwarded in the request body, without key and model."""
        return self.model_dump(exclude={"api_key", "model"}, exclude_none=True)


def build_request_options(
    params: StreamingParams,
    messages: list[dict[str, str]]
) -> RequestOptions:
    """Build the streaming request for a list of API messages.

    Args:
        params: Key, model and completion settings
        messages: Messages in ``{content, role}`` form

    Returns:
        RequestOptions with JSON body ``{model, ...settings, messages, stream}``
    """
    return RequestOptions(
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {params.api_key}",
        },
        body={
            "model": params.model,
            **params.completion_settings(),
            "messages": messages,
            "stream": True,
        },
    )
