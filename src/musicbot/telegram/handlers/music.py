from __future__ import annotations

from ...logging import get_logger
from ...platform.errors import PlatformError
from ...platform.interface import TrackProvider
from ...platform.quality import Quality, is_quality
from ...platform.types import Resolution
from .. import texts
from ..api_schemas import Message, Update
from ..commands.parse import command_arguments, command_name
from ..extract import (
    extract_platform_track,
    extract_quality_override,
    match_platform_track,
    parse_trailing_options,
    resolve_text,
)
from .base import (
    HandlerContext,
    MusicRequest,
    answer_callback,
    make_reply,
    resolve_quality,
    send_text,
)

logger = get_logger(__name__)

_USAGE_COMMANDS = frozenset({"start", "help"})
# commands that carry no platform of their own
_GENERIC_COMMANDS = frozenset({"start", "help", "music"})


async def _resolve_message(
    ctx: HandlerContext, msg: Message, command: str | None
) -> tuple[Resolution, str]:
    """Track and quality override for a message addressed to the music handler."""
    text = (msg.text or "").strip()
    args = command_arguments(text) if command is not None else text
    if command is not None and not args:
        reply_text = msg.reply_to_message.text if msg.reply_to_message else None
        if not reply_text or not reply_text.strip():
            return Resolution(), ""
        result = await resolve_text(
            reply_text,
            ctx.registry,
            shortlinks=ctx.shortlinks,
            policy=ctx.id_policy,
        )
        return result, parse_trailing_options(reply_text, ctx.registry).quality

    if command is not None and command not in _GENERIC_COMMANDS:
        platform = ctx.registry.resolve_alias(command)
        if platform is not None:
            options = parse_trailing_options(args, ctx.registry)
            result = await match_platform_track(
                ctx.registry,
                platform,
                options.base,
                shortlinks=ctx.shortlinks,
                policy=ctx.id_policy,
            )
            if result.found:
                return result, options.quality

    result = await extract_platform_track(
        msg,
        ctx.registry,
        shortlinks=ctx.shortlinks,
        policy=ctx.id_policy,
    )
    return result, extract_quality_override(msg, ctx.registry)


async def _describe(ctx: HandlerContext, request: MusicRequest) -> str:
    meta = ctx.registry.meta(request.platform)
    platform = ctx.registry.get(request.platform)
    header = f"{meta.tag}: {request.track_id}"
    if isinstance(platform, TrackProvider):
        track = await platform.get_track(request.track_id)
        artists = track.artist_names
        header = f"{meta.tag}: {track.title}"
        if artists:
            header = f"{header} - {artists}"
    return f"{header}\nquality: {request.quality}"


async def deliver(ctx: HandlerContext, request: MusicRequest) -> None:
    """Hand the request to the delivery collaborator, or describe the track."""
    logger.info(
        "music.request",
        platform=request.platform,
        track_id=request.track_id,
        quality=str(request.quality),
        chat_id=request.chat_id,
    )
    try:
        if ctx.deliver is not None:
            await ctx.deliver(request)
            return
        text = await _describe(ctx, request)
    except PlatformError as exc:
        logger.info(
            "music.failed",
            platform=request.platform,
            track_id=request.track_id,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
        await send_text(
            ctx,
            request.chat_id,
            texts.user_visible_error(exc),
            reply_to=request.reply_to,
        )
        return
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "music.error",
            platform=request.platform,
            track_id=request.track_id,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
        await send_text(
            ctx,
            request.chat_id,
            texts.user_visible_error(exc),
            reply_to=request.reply_to,
        )
        return
    await send_text(ctx, request.chat_id, text, reply_to=request.reply_to)


async def handle_music(ctx: HandlerContext, update: Update) -> None:
    msg = update.message
    if msg is None or not msg.text:
        return
    reply = make_reply(ctx, msg)
    command = command_name(msg.text.strip(), ctx.bot_name)
    if command in _USAGE_COMMANDS and not command_arguments(msg.text):
        await reply(texts.USAGE)
        return
    if (
        command is not None
        and not command_arguments(msg.text)
        and (msg.reply_to_message is None or not msg.reply_to_message.text)
    ):
        await reply(texts.INPUT_CONTENT)
        return

    result, override = await _resolve_message(ctx, msg, command)
    if not result.found:
        if command is not None:
            await reply(texts.NO_RESULTS)
        return
    user_id = msg.from_.id if msg.from_ is not None else None
    quality = await resolve_quality(ctx, user_id, override)
    await deliver(
        ctx,
        MusicRequest(
            platform=result.platform,
            track_id=result.track_id,
            quality=quality,
            chat_id=msg.chat.id,
            reply_to=msg.message_id,
            user_id=user_id,
        ),
    )


def parse_music_callback(data: str | None) -> tuple[str, str, str] | None:
    """``music <platform> <track_id> <quality>`` to its three fields."""
    if not data:
        return None
    fields = data.split()
    if len(fields) != 4 or fields[0] != "music" or not is_quality(fields[3]):
        return None
    return fields[1], fields[2], fields[3]


def build_music_callback(platform: str, track_id: str, quality: Quality | str) -> str:
    return f"music {platform} {track_id} {quality}"


async def handle_music_callback(ctx: HandlerContext, update: Update) -> None:
    query = update.callback_query
    if query is None:
        return
    parsed = parse_music_callback(query.data)
    if parsed is None or ctx.registry.get(parsed[0]) is None:
        await answer_callback(ctx, query, texts.NO_RESULTS)
        return
    await answer_callback(ctx, query, texts.CALLBACK_OK)
    if query.message is None:
        return
    platform, track_id, quality = parsed
    await deliver(
        ctx,
        MusicRequest(
            platform=platform,
            track_id=track_id,
            quality=Quality(quality),
            chat_id=query.message.chat.id,
            reply_to=query.message.message_id,
            user_id=query.from_.id,
        ),
    )
