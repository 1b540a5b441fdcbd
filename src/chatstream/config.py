"""Configuration loaded from the environment.

Centralizes environment variable names and defaults so the rest of the
package only deals with typed settings.
"""

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from rich.console import Console
from rich.logging import RichHandler

from .chat.request import DEFAULT_BASE_URL, StreamingParams

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TIMEOUT = 120.0


class ChatSettings(BaseModel):
    """Settings for talking to a chat-completions endpoint."""

    api_key: str | None = Field(default=None, description="API key (OPENAI_API_KEY)")
    model: str = Field(default=DEFAULT_MODEL, description="Chat model (OPENAI_CHAT_MODEL)")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL (OPENAI_BASE_URL)")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def to_params(self, **overrides: object) -> StreamingParams:
        """Build StreamingParams, letting explicit overrides win.

        Raises:
            ValueError: If no API key is configured
        """
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY is not set")
        values: dict[str, object] = {"api_key": self.api_key, "model": self.model}
        if self.temperature is not None:
            values["temperature"] = self.temperature
        values.update({k: v for k, v in overrides.items() if v is not None})
        return StreamingParams(**values)


def load_settings(dotenv: bool = True) -> ChatSettings:
    """Read settings from the environment.

    Args:
        dotenv: Whether to load a ``.env`` file first

    Environment variables:
        OPENAI_API_KEY: API key (required to send requests)
        OPENAI_CHAT_MODEL: Chat model (default: gpt-3.5-turbo)
        OPENAI_BASE_URL: API base URL (default: https://api.openai.com/v1)
        CHATSTREAM_TIMEOUT: Request timeout in seconds (default: 120)
        CHATSTREAM_TEMPERATURE: Sampling temperature (default: API default)
    """
    if dotenv:
        load_dotenv()

    temperature = os.getenv("CHATSTREAM_TEMPERATURE")
    return ChatSettings(
        api_key=os.getenv("OPENAI_API_KEY") or None,
        model=os.getenv("OPENAI_CHAT_MODEL", DEFAULT_MODEL),
        base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL),
        timeout=float(os.getenv("CHATSTREAM_TIMEOUT", str(DEFAULT_TIMEOUT))),
        temperature=float(temperature) if temperature else None,
    )


def setup_logging(log_level: str = "warning", *, console: Console | None = None) -> None:
    """Route all loggers through a RichHandler.

    Args:
        log_level: Logging level (debug, info, warning, error)
        console: Optional Rich console to log to (default: stderr)
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    # Request lines from httpx are only useful when debugging
    if level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
