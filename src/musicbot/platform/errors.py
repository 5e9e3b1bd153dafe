"""Platform error taxonomy.

Adapters raise these from their network calls; handlers translate them into
user-facing text via :func:`musicbot.telegram.texts.user_visible_error`.
"""

from __future__ import annotations


class PlatformError(RuntimeError):
    reason = "platform error"

    def __init__(
        self,
        platform: str = "",
        resource: str = "",
        resource_id: str | None = None,
        *,
        detail: str | None = None,
    ) -> None:
        self.platform = platform
        self.resource = resource
        self.resource_id = resource_id
        self.detail = detail
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [part for part in (self.platform, self.resource) if part]
        if self.resource_id:
            parts.append(self.resource_id)
        message = self.reason if self.detail is None else f"{self.reason}: {self.detail}"
        if not parts:
            return message
        return f"{': '.join(parts)}: {message}"


class NotFoundError(PlatformError):
    reason = "resource not found"


class UnavailableError(PlatformError):
    reason = "content unavailable"


class UnsupportedError(PlatformError):
    reason = "feature not supported"


class RateLimitedError(PlatformError):
    reason = "rate limit exceeded"


class AuthRequiredError(PlatformError):
    reason = "authentication required"


class InvalidQualityError(PlatformError):
    reason = "invalid quality"

    def __init__(self, quality: str, *, platform: str = "") -> None:
        self.quality = quality
        super().__init__(platform, "quality", detail=repr(quality))
