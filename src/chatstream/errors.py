"""Exception hierarchy for chatstream.

Malformed frames are never raised; they are skipped by the frame decoder.
Cancellation is reported through the submit result rather than raised.
"""


class ChatStreamError(Exception):
    """Base class for all chatstream errors."""


class TransportError(ChatStreamError):
    """The completion request failed before the stream finished.

    Raised for non-success HTTP statuses and for network failures while
    the response body is being read.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason

    @classmethod
    def from_status(cls, status_code: int, reason: str) -> "TransportError":
        """Build the error for a non-2xx response."""
        return cls(
            f"Network response was not ok: {status_code} - {reason}",
            status_code=status_code,
            reason=reason,
        )


class MissingBodyError(TransportError):
    """The response carried no readable body."""

    def __init__(self, status_code: int | None = None) -> None:
        super().__init__(
            "No body included in POST response object",
            status_code=status_code,
        )
