"""Rate-limited outbound calls.

A :class:`RateLimiter` holds one gate per operation kind (``send``, ``edit``,
``delete``). A call takes a permit, runs with retry on transient failures,
waits ``spacing_s`` and only then returns the permit, so calls of one kind are
spaced out across every handler task. Pass the limiter explicitly; there is no
module-level instance.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import partial
from typing import Any, Literal, TypeAlias, TypeVar

import anyio

from ..logging import get_logger
from .api_schemas import Message
from .client import BotClient
from .errors import PermanentTransportError, TelegramRetryAfter, TransientTransportError

logger = get_logger(__name__)

T = TypeVar("T")

CallKind: TypeAlias = Literal["send", "edit", "delete"]

SEND: CallKind = "send"
EDIT: CallKind = "edit"
DELETE: CallKind = "delete"


class RateLimiter:
    def __init__(
        self,
        *,
        permits: int = 1,
        spacing_s: float = 1.0,
        max_attempts: int = 3,
        backoff_s: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        if permits < 1:
            raise ValueError("permits must be at least 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.permits = permits
        self.spacing_s = spacing_s
        self.max_attempts = max_attempts
        self.backoff_s = backoff_s
        self._sleep = sleep
        # created lazily: anyio primitives need a running event loop
        self._gates: dict[str, anyio.CapacityLimiter] = {}

    def _gate(self, kind: str) -> anyio.CapacityLimiter:
        gate = self._gates.get(kind)
        if gate is None:
            gate = anyio.CapacityLimiter(self.permits)
            self._gates[kind] = gate
        return gate

    def available(self, kind: str) -> float:
        gate = self._gates.get(kind)
        if gate is None:
            return float(self.permits)
        return gate.available_tokens

    @asynccontextmanager
    async def slot(self, kind: str) -> AsyncIterator[None]:
        async with self._gate(kind):
            try:
                yield
            finally:
                if self.spacing_s > 0:
                    await self._sleep(self.spacing_s)

    def _backoff(self, exc: TransientTransportError, attempt: int) -> float:
        if isinstance(exc, TelegramRetryAfter):
            return exc.retry_after
        return self.backoff_s * 2 ** (attempt - 1)

    async def run(
        self,
        kind: str,
        call: Callable[[], Awaitable[T]],
        *,
        chat_id: int | None = None,
    ) -> T:
        async with self.slot(kind):
            attempt = 0
            while True:
                attempt += 1
                try:
                    return await call()
                except TransientTransportError as exc:
                    if attempt >= self.max_attempts:
                        logger.error(
                            "outbound.retries_exhausted",
                            kind=kind,
                            chat_id=chat_id,
                            attempts=attempt,
                            error=str(exc),
                        )
                        raise
                    delay = self._backoff(exc, attempt)
                    logger.warning(
                        "outbound.retry",
                        kind=kind,
                        chat_id=chat_id,
                        attempt=attempt,
                        delay_s=delay,
                        error=str(exc),
                        error_type=exc.__class__.__name__,
                    )
                await self._sleep(delay)


async def call_with_retry(
    limiter: RateLimiter | None,
    kind: str,
    call: Callable[[], Awaitable[T]],
    *,
    chat_id: int | None = None,
) -> T:
    if limiter is None:
        return await call()
    return await limiter.run(kind, call, chat_id=chat_id)


async def send_message_with_retry(
    bot: BotClient,
    limiter: RateLimiter | None,
    chat_id: int,
    text: str,
    **kwargs: Any,
) -> Message | None:
    return await call_with_retry(
        limiter,
        SEND,
        partial(bot.send_message, chat_id, text, **kwargs),
        chat_id=chat_id,
    )


async def edit_message_text_with_retry(
    bot: BotClient,
    limiter: RateLimiter | None,
    chat_id: int,
    message_id: int,
    text: str,
    **kwargs: Any,
) -> Message | None:
    try:
        return await call_with_retry(
            limiter,
            EDIT,
            partial(bot.edit_message_text, chat_id, message_id, text, **kwargs),
            chat_id=chat_id,
        )
    except PermanentTransportError as exc:
        if exc.message_not_modified:
            return None
        raise


async def delete_message_with_retry(
    bot: BotClient,
    limiter: RateLimiter | None,
    chat_id: int,
    message_id: int,
) -> bool:
    return await call_with_retry(
        limiter,
        DELETE,
        partial(bot.delete_message, chat_id, message_id),
        chat_id=chat_id,
    )


async def send_document_with_retry(
    bot: BotClient,
    limiter: RateLimiter | None,
    chat_id: int,
    filename: str,
    content: bytes,
    **kwargs: Any,
) -> Message | None:
    return await call_with_retry(
        limiter,
        SEND,
        partial(bot.send_document, chat_id, filename, content, **kwargs),
        chat_id=chat_id,
    )
