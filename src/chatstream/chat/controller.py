"""Request lifecycle for a streamed chat completion.

ChatCompletion owns the conversation and hides:
- The at-most-one-request-in-flight rule
- Wiring of the response body through frame decoding and delta folding
- Cancellation of the in-flight stream
- Response timing and finalization of the streamed message

Usage:
    chat = ChatCompletion(StreamingParams(api_key="sk-...", model="gpt-4o-mini"))
    chat.subscribe(render)
    result = await chat.submit_prompt([{"content": "Hi", "role": "user"}])
    print(result.message.content, result.message.meta.response_time)
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import MissingBodyError, TransportError
from ..streaming.decoder import FrameDecoder
from ..transport import HttpxTransport, StreamTransport
from .accumulator import DeltaAccumulator
from .cancellation import CancellationToken
from .models import ChatMessage, MessageInput, create_chat_message, create_placeholder, now_ms
from .request import CHAT_COMPLETIONS_URL, RequestOptions, StreamingParams, build_request_options
from .state import MessageList, Subscriber

logger = logging.getLogger(__name__)

MILLISECONDS_PER_SECOND = 1000


def format_response_time(before: int, after: int) -> str:
    """Format the elapsed time between two epoch-ms timestamps."""
    elapsed = (after - before) / MILLISECONDS_PER_SECOND
    return f"{elapsed:.2f} sec."


class SubmitOutcome(str, Enum):
    """What a call to submit_prompt did."""

    COMPLETED = "completed"  # Stream ran to the end
    ABORTED = "aborted"      # Stream stopped by abort_response()
    RESET = "reset"          # Empty submission cleared the conversation
    IGNORED = "ignored"      # Rejected because a response was still streaming


@dataclass(frozen=True)
class SubmitResult:
    """Result of submit_prompt, with the finalized message when one streamed."""

    outcome: SubmitOutcome
    message: ChatMessage | None = None

    @property
    def accepted(self) -> bool:
        return self.outcome != SubmitOutcome.IGNORED


class ChatCompletion:
    """Stateful chat client that streams each answer into its message list.

    One instance owns one conversation. Observers read ``messages`` or
    subscribe to be called with every new list.
    """

    def __init__(
        self,
        params: StreamingParams,
        transport: StreamTransport | None = None,
        *,
        url: str = CHAT_COMPLETIONS_URL,
        timeout: float = 120.0,
        clock: Callable[[], int] = now_ms
    ):
        """Initialize the controller.

        Args:
            params: API key, model and completion settings
            transport: Byte-stream transport (default: a new HttpxTransport)
            url: Chat-completions endpoint
            timeout: Request timeout in seconds for the default transport
            clock: Epoch-millisecond clock used for all timestamps
        """
        self._params = params
        self._owns_transport = transport is None
        self._transport = transport or HttpxTransport(timeout=timeout)
        self._url = url
        self._clock = clock
        self._state = MessageList()
        self._token: CancellationToken | None = None

    @property
    def messages(self) -> list[ChatMessage]:
        """Current conversation; replaced by a new list on every change."""
        return self._state.messages

    @property
    def is_loading(self) -> bool:
        """Whether an answer is currently streaming."""
        return self._state.is_loading

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback`` with each new message list.

        Returns:
            Function that removes the subscription
        """
        return self._state.subscribe(callback)

    async def submit_prompt(
        self,
        new_entries: Iterable[MessageInput] | None = None
    ) -> SubmitResult:
        """Append messages and stream the model's answer into the list.

        An empty or missing ``new_entries`` clears the conversation instead.
        Nothing happens while a previous answer is still streaming.

        Args:
            new_entries: Messages to add before requesting a completion

        Returns:
            SubmitResult describing what happened

        Raises:
            TransportError: If the request or the stream fails; the
                streamed message is finalized before this propagates
        """
        if self._state.is_loading:
            logger.debug("Ignoring submit while a response is streaming")
            return SubmitResult(SubmitOutcome.IGNORED)

        entries = [create_chat_message(entry, self._clock()) for entry in new_entries or ()]
        if not entries:
            self._state.reset()
            return SubmitResult(SubmitOutcome.RESET)

        # Guard check and placeholder append happen without yielding
        self._state.append([*entries, create_placeholder()])
        before = self._clock()

        # The placeholder is what the server answers, so it is not sent
        history = [message.to_api() for message in self._state.messages[:-1]]
        options = build_request_options(self._params, history)

        token = CancellationToken()
        self._token = token
        stream_task = asyncio.ensure_future(self._stream(options, token))
        token.add_callback(stream_task.cancel)

        try:
            await stream_task
        except asyncio.CancelledError:
            if not token.cancelled:
                raise
            logger.info("Request aborted")
        except Exception:
            if not token.cancelled:
                logger.error("Error during chat response streaming", exc_info=True)
                raise
            logger.info("Request aborted", exc_info=True)
        finally:
            if self._token is token:
                self._token = None
            message = self._finalize(before)

        outcome = SubmitOutcome.ABORTED if token.cancelled else SubmitOutcome.COMPLETED
        return SubmitResult(outcome, message)

    def abort_response(self) -> bool:
        """Stop the in-flight stream, keeping what has arrived so far.

        Returns:
            True if a request was in flight
        """
        token = self._token
        if token is None:
            return False
        self._token = None
        token.cancel()
        return True

    def set_messages(self, entries: Iterable[MessageInput]) -> bool:
        """Replace the whole conversation.

        Returns:
            False if rejected because an answer is streaming
        """
        if self._state.is_loading:
            logger.debug("Ignoring set_messages while a response is streaming")
            return False
        self._state.replace([create_chat_message(entry, self._clock()) for entry in entries])
        return True

    def reset_messages(self) -> bool:
        """Clear the conversation.

        Returns:
            False if rejected because an answer is streaming
        """
        if self._state.is_loading:
            logger.debug("Ignoring reset_messages while a response is streaming")
            return False
        self._state.reset()
        return True

    async def close(self) -> None:
        """Abort any in-flight request and close the default transport."""
        self.abort_response()
        if self._owns_transport:
            await self._transport.close()

    async def __aenter__(self) -> "ChatCompletion":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _stream(self, options: RequestOptions, token: CancellationToken) -> None:
        """Read the response and fold every delta into the tail message."""
        async with self._transport.open_stream(self._url, options) as response:
            if not response.is_success:
                raise TransportError.from_status(response.status_code, response.reason)
            if response.body is None:
                raise MissingBodyError(response.status_code)

            accumulator = DeltaAccumulator(self._state.messages[-1], self._clock)
            decoder = FrameDecoder(response.body)
            try:
                async for delta in decoder:
                    if token.cancelled:
                        break
                    self._state.update_tail(accumulator.apply(delta))
                    # Let observers see each update before the next frame
                    await asyncio.sleep(0)
            finally:
                await decoder.aclose()

            logger.debug(
                "Stream closed after %d frames (%d skipped, sentinel=%s)",
                decoder.frames,
                decoder.skipped_frames,
                decoder.done,
            )

    def _finalize(self, before: int) -> ChatMessage:
        """Stamp the streamed message with its completion time."""
        after = self._clock()
        return self._state.finalize_tail(after, format_response_time(before, after))
