from collections.abc import Callable
from typing import Any


class CancellationToken:
    """Cooperative cancellation handle for a single request.

    Once cancelled it stays cancelled; callbacks registered afterwards run
    immediately.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], Any]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def add_callback(self, callback: Callable[[], Any]) -> None:
        """Run ``callback`` when the token is cancelled."""
        if self._cancelled:
            callback()
        else:
            self._callbacks.append(callback)

    def cancel(self) -> None:
        """Signal cancellation. Repeated calls are no-ops."""
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()
