"""Observable message list state.

Hides how the conversation is stored and how observers learn about
changes. Every transition installs a new list object, so observers can
compare by identity to detect a change, and is announced synchronously
to every subscriber.
"""

from collections.abc import Callable, Iterable

from .models import ChatMessage

Subscriber = Callable[[list[ChatMessage]], None]


class MessageList:
    """Ordered conversation owned by a single ChatCompletion.

    At most the tail message may be loading; while it is, it is the only
    message that changes.
    """

    def __init__(self, messages: Iterable[ChatMessage] = ()):
        self._messages: list[ChatMessage] = list(messages)
        self._subscribers: list[Subscriber] = []

    @property
    def messages(self) -> list[ChatMessage]:
        """Current list. Treat as read-only; it is replaced, never edited."""
        return self._messages

    @property
    def tail(self) -> ChatMessage | None:
        return self._messages[-1] if self._messages else None

    @property
    def is_loading(self) -> bool:
        """Whether the tail message is still streaming."""
        tail = self.tail
        return tail is not None and tail.meta.loading

    def __len__(self) -> int:
        return len(self._messages)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback invoked with each new list.

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def append(self, entries: Iterable[ChatMessage]) -> None:
        self._set([*self._messages, *entries])

    def replace(self, entries: Iterable[ChatMessage]) -> None:
        self._set(list(entries))

    def reset(self) -> None:
        self._set([])

    def update_tail(self, message: ChatMessage) -> None:
        """Swap the tail message for its updated value."""
        if not self._messages:
            raise IndexError("update_tail on an empty message list")
        self._set([*self._messages[:-1], message])

    def finalize_tail(self, timestamp: int, response_time: str) -> ChatMessage:
        """Stamp the tail with its completion time and stop loading.

        Returns:
            The finalized tail message
        """
        tail = self.tail
        if tail is None:
            raise IndexError("finalize_tail on an empty message list")
        finalized = tail.model_copy(update={
            "timestamp": timestamp,
            "meta": tail.meta.model_copy(update={
                "loading": False,
                "response_time": response_time,
            }),
        })
        self.update_tail(finalized)
        return finalized

    def _set(self, messages: list[ChatMessage]) -> None:
        self._messages = messages
        for callback in list(self._subscribers):
            callback(messages)
