"""Main CLI application using Typer."""
import asyncio
import signal
from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ..chat import ChatCompletion, ChatMessage, ChatRole, SubmitOutcome, SubmitResult
from ..config import setup_logging
from ..errors import ChatStreamError
from .providers import get_chat

# Create Typer app
app = typer.Typer(
    name="chatstream",
    help="Stream chat completions into the terminal as they arrive",
    no_args_is_help=True,
    add_completion=False,
)

# Console for rich output
console = Console()


@app.callback()
def main(
    log_level: str = typer.Option(
        "warning",
        "--log-level",
        help="Logging level: debug, info, warning or error"
    )
):
    """Configure logging for every command."""
    setup_logging(log_level)


def render_message(message: ChatMessage) -> Panel:
    """Render one message, with a spinner-like marker while it streams."""
    title = message.role or "assistant"
    body = Text(message.content)
    if message.meta.loading:
        body.append(" ▌", style="dim")
    return Panel(body, title=title, title_align="left", border_style="cyan")


def render_footer(message: ChatMessage) -> Text:
    return Text(
        f"Tokens: {len(message.meta.chunks)} | Response time: {message.meta.response_time}",
        style="dim",
    )


@contextmanager
def abort_on_interrupt(chat: ChatCompletion) -> Iterator[None]:
    """Turn Ctrl-C into abort_response() while a response streams."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, chat.abort_response)
        installed = True
    except (NotImplementedError, RuntimeError):
        # Unsupported platform, or not running in the main thread
        installed = False
    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


async def stream_answer(chat: ChatCompletion, entries: list[dict[str, str]]) -> SubmitResult:
    """Submit entries and live-render the answer until it is finalized."""
    with Live(console=console, refresh_per_second=12, transient=False) as live:
        def on_change(messages: list[ChatMessage]) -> None:
            if messages:
                live.update(render_message(messages[-1]))

        unsubscribe = chat.subscribe(on_change)
        try:
            with abort_on_interrupt(chat):
                result = await chat.submit_prompt(entries)
        finally:
            unsubscribe()

        if result.message is not None:
            live.update(Group(render_message(result.message), render_footer(result.message)))
    if result.outcome == SubmitOutcome.ABORTED:
        console.print("[yellow]Response aborted[/yellow]")
    return result


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Prompt to send"),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model to use (default: OPENAI_CHAT_MODEL)"
    ),
    temperature: float | None = typer.Option(
        None,
        "--temperature",
        "-t",
        help="Sampling temperature"
    ),
    system: str | None = typer.Option(
        None,
        "--system",
        "-s",
        help="Optional system message"
    )
):
    """Stream a single answer to PROMPT."""
    async def _ask():
        chat = get_chat(console, model=model, temperature=temperature)
        entries = []
        if system:
            entries.append({"content": system, "role": ChatRole.SYSTEM.value})
        entries.append({"content": prompt, "role": ChatRole.USER.value})

        async with chat:
            try:
                await stream_answer(chat, entries)
            except ChatStreamError as e:
                console.print(f"[red]Error: {e}[/red]")
                raise typer.Exit(code=1)

    asyncio.run(_ask())


@app.command()
def chat(
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model to use (default: OPENAI_CHAT_MODEL)"
    ),
    temperature: float | None = typer.Option(
        None,
        "--temperature",
        "-t",
        help="Sampling temperature"
    )
):
    """Start an interactive conversation.

    Type /reset to clear the history, /quit to leave. Ctrl-C stops the
    answer being streamed.
    """
    async def _chat():
        client = get_chat(console, model=model, temperature=temperature)
        console.print("[dim]Type /reset to clear the history, /quit to leave.[/dim]")

        async with client:
            while True:
                try:
                    prompt = await asyncio.to_thread(console.input, "[bold green]You[/bold green]: ")
                except (EOFError, KeyboardInterrupt):
                    break

                prompt = prompt.strip()
                if not prompt:
                    continue
                if prompt in ("/quit", "/exit"):
                    break
                if prompt == "/reset":
                    client.reset_messages()
                    console.print("[dim]History cleared.[/dim]")
                    continue

                try:
                    await stream_answer(client, [{"content": prompt, "role": ChatRole.USER.value}])
                except ChatStreamError as e:
                    console.print(f"[red]Error: {e}[/red]")

    asyncio.run(_chat())


if __name__ == "__main__":
    app()
