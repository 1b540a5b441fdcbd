"""Client factory functions for CLI.

Centralizes creation of the chat client from environment variables.
Hides configuration details from command implementations.
"""

import typer
from rich.console import Console

from ..chat import ChatCompletion
from ..config import load_settings

# Default console for output
_console = Console()


def get_chat(
    console: Console | None = None,
    model: str | None = None,
    temperature: float | None = None
) -> ChatCompletion:
    """Create a chat client from environment variables.

    Args:
        console: Optional Rich console for output
        model: Model override (default: OPENAI_CHAT_MODEL)
        temperature: Sampling temperature override

    Returns:
        ChatCompletion ready to stream answers

    Raises:
        SystemExit: If OPENAI_API_KEY is not set
    """
    con = console or _console
    settings = load_settings()
    if not settings.api_key:
        con.print("[red]Error: OPENAI_API_KEY not set in environment[/red]")
        raise typer.Exit(code=1)

    params = settings.to_params(model=model, temperature=temperature)
    return ChatCompletion(
        params,
        url=settings.completions_url,
        timeout=settings.timeout,
    )
