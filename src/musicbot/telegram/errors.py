from __future__ import annotations


class TransportError(RuntimeError):
    """An outbound Bot API call failed."""


class TransientTransportError(TransportError):
    """Network-level failure; the call may succeed if retried."""


class TelegramRetryAfter(TransientTransportError):
    def __init__(self, retry_after: float, description: str | None = None) -> None:
        self.retry_after = retry_after
        self.description = description
        super().__init__(description or f"retry after {retry_after}")


class PermanentTransportError(TransportError):
    """The API rejected the call; retrying will not help."""

    def __init__(
        self,
        method: str,
        *,
        error_code: int | None = None,
        description: str | None = None,
    ) -> None:
        self.method = method
        self.error_code = error_code
        self.description = description or ""
        super().__init__(f"{method} failed ({error_code}): {self.description}")

    @property
    def message_not_modified(self) -> bool:
        return "message is not modified" in self.description.lower()
