from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import partial
from typing import Any, TypeAlias

from ... import __version__
from ...logging import get_logger
from ...platform.quality import Quality
from ...platform.registry import PlatformRegistry
from ...repository import QualityPreferences, SongRepository
from ..api_schemas import CallbackQuery, Message
from ..client import BotClient
from ..errors import TransportError
from ..extract import DEFAULT_ID_POLICY, LikelyIdPolicy
from ..ratelimit import (
    RateLimiter,
    delete_message_with_retry,
    edit_message_text_with_retry,
    send_document_with_retry,
    send_message_with_retry,
)
from ..shortlink import ShortLinkResolver

logger = get_logger(__name__)

HTML = "HTML"


@dataclass(frozen=True, slots=True)
class MusicRequest:
    platform: str
    track_id: str
    quality: Quality
    chat_id: int
    reply_to: int | None = None
    user_id: int | None = None


MusicDelivery: TypeAlias = Callable[[MusicRequest], Awaitable[None]]


@dataclass(slots=True)
class HandlerContext:
    """Collaborators shared by every handler for the process lifetime."""

    bot: BotClient
    registry: PlatformRegistry
    limiter: RateLimiter | None = None
    bot_name: str = ""
    shortlinks: ShortLinkResolver | None = None
    default_quality: Quality = Quality.HIGH
    id_policy: LikelyIdPolicy = DEFAULT_ID_POLICY
    repository: SongRepository | None = None
    preferences: QualityPreferences | None = None
    deliver: MusicDelivery | None = None
    version: str = __version__


def _log_failure(event: str, exc: Exception, **fields: Any) -> None:
    logger.warning(
        event,
        error=str(exc),
        error_type=exc.__class__.__name__,
        **fields,
    )


async def send_text(
    ctx: HandlerContext,
    chat_id: int,
    text: str,
    *,
    reply_to: int | None = None,
    parse_mode: str | None = None,
    reply_markup: dict[str, Any] | None = None,
) -> Message | None:
    try:
        return await send_message_with_retry(
            ctx.bot,
            ctx.limiter,
            chat_id,
            text,
            reply_to_message_id=reply_to,
            parse_mode=parse_mode,
            reply_markup=reply_markup,
        )
    except TransportError as exc:
        _log_failure("reply.failed", exc, chat_id=chat_id)
        return None


async def edit_text(
    ctx: HandlerContext,
    chat_id: int,
    message_id: int,
    text: str,
    *,
    parse_mode: str | None = None,
    reply_markup: dict[str, Any] | None = None,
) -> None:
    try:
        await edit_message_text_with_retry(
            ctx.bot,
            ctx.limiter,
            chat_id,
            message_id,
            text,
            parse_mode=parse_mode,
            reply_markup=reply_markup,
        )
    except TransportError as exc:
        _log_failure("reply.failed", exc, chat_id=chat_id, message_id=message_id)


async def delete_message(ctx: HandlerContext, chat_id: int, message_id: int) -> None:
    try:
        await delete_message_with_retry(ctx.bot, ctx.limiter, chat_id, message_id)
    except TransportError as exc:
        _log_failure("reply.failed", exc, chat_id=chat_id, message_id=message_id)


async def send_document(
    ctx: HandlerContext,
    chat_id: int,
    filename: str,
    content: bytes,
    *,
    caption: str | None = None,
    parse_mode: str | None = None,
    reply_to: int | None = None,
) -> bool:
    try:
        await send_document_with_retry(
            ctx.bot,
            ctx.limiter,
            chat_id,
            filename,
            content,
            caption=caption,
            parse_mode=parse_mode,
            reply_to_message_id=reply_to,
        )
    except TransportError as exc:
        _log_failure("reply.failed", exc, chat_id=chat_id, filename=filename)
        return False
    return True


def make_reply(
    ctx: HandlerContext, msg: Message
) -> Callable[..., Awaitable[Message | None]]:
    return partial(send_text, ctx, msg.chat.id, reply_to=msg.message_id)


async def resolve_quality(
    ctx: HandlerContext, user_id: int | None, override: str = ""
) -> Quality:
    """Requested quality, then the user's saved preference, then the default."""
    if override:
        return Quality(override)
    if ctx.preferences is not None and user_id is not None:
        saved = await ctx.preferences.get_quality(user_id)
        if saved is not None:
            return saved
    return ctx.default_quality


async def answer_callback(
    ctx: HandlerContext, query: CallbackQuery, text: str
) -> None:
    try:
        await ctx.bot.answer_callback_query(query.id, text=text)
    except TransportError as exc:
        _log_failure("callback.answer_failed", exc, callback_id=query.id)
