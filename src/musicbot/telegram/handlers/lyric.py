from __future__ import annotations

import html
import re

from ...logging import get_logger
from ...platform.errors import PlatformError
from ...platform.interface import Platform, TrackProvider
from ...platform.lyrics import build_lyric_texts
from ...platform.types import Lyrics
from .. import texts
from ..api_schemas import Message, Update
from ..commands.parse import command_arguments
from ..extract import extract_platform_track, resolve_text
from .base import (
    HTML,
    HandlerContext,
    delete_message,
    edit_text,
    make_reply,
    send_document,
)

logger = get_logger(__name__)

LYRIC_CAPTION_MAX_CHARS = 1000
_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\r\n]+')


def build_lyric_caption(plain: str) -> str:
    """Expandable blockquote caption, or "" when it would not fit."""
    plain = plain.strip()
    if not plain:
        return ""
    candidate = f"<blockquote expandable>{html.escape(plain)}</blockquote>"
    if len(candidate) > LYRIC_CAPTION_MAX_CHARS:
        return ""
    return candidate


async def lyric_filename(platform: Platform, track_id: str) -> str:
    fallback = f"{platform.name}_{track_id}.lrc"
    if not isinstance(platform, TrackProvider):
        return fallback
    try:
        track = await platform.get_track(track_id)
    except Exception as exc:  # noqa: BLE001
        logger.info(
            "lyric.filename_fallback",
            platform=platform.name,
            track_id=track_id,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
        return fallback
    name = track.title.strip()
    if track.artist_names:
        name = f"{track.artist_names} - {name}"
    name = _UNSAFE_FILENAME_RE.sub("_", name).strip(" ._")
    if not name:
        return fallback
    return f"{name}.lrc"


async def _send_lyrics(
    ctx: HandlerContext,
    msg: Message,
    placeholder: Message,
    lyrics: Lyrics,
    filename: str,
) -> None:
    lrc, plain = build_lyric_texts(lyrics)
    if not lrc.strip():
        lrc = texts.LYRICS_EMPTY
    await delete_message(ctx, placeholder.chat.id, placeholder.message_id)
    caption = build_lyric_caption(plain)
    content = lrc.encode("utf-8")
    sent = await send_document(
        ctx,
        msg.chat.id,
        filename,
        content,
        caption=caption or None,
        parse_mode=HTML if caption else None,
        reply_to=msg.message_id,
    )
    if not sent and caption:
        await send_document(
            ctx, msg.chat.id, filename, content, reply_to=msg.message_id
        )


async def handle_lyric(ctx: HandlerContext, update: Update) -> None:
    msg = update.message
    if msg is None:
        return
    reply = make_reply(ctx, msg)
    args = command_arguments(msg.text)
    reply_text = msg.reply_to_message.text if msg.reply_to_message else None
    if not args and msg.reply_to_message is None:
        await reply(texts.INPUT_CONTENT)
        return
    if not args and not reply_text:
        return

    placeholder = await reply(texts.FETCHING_LYRICS)
    if placeholder is None:
        return

    async def fail(text: str) -> None:
        await edit_text(ctx, placeholder.chat.id, placeholder.message_id, text)

    if args:
        result = await extract_platform_track(
            msg, ctx.registry, shortlinks=ctx.shortlinks, policy=ctx.id_policy
        )
    else:
        result = await resolve_text(
            reply_text or "",
            ctx.registry,
            shortlinks=ctx.shortlinks,
            policy=ctx.id_policy,
        )
    if not result.found:
        await fail(texts.NO_RESULTS)
        return
    platform = ctx.registry.get(result.platform)
    if platform is None:
        await fail(texts.LYRICS_FAILED)
        return
    if not platform.supports_lyrics():
        await fail(texts.LYRICS_UNSUPPORTED)
        return

    try:
        lyrics = await platform.get_lyrics(result.track_id)
    except PlatformError as exc:
        logger.info(
            "lyric.failed",
            platform=result.platform,
            track_id=result.track_id,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
        await fail(texts.user_visible_error(exc))
        return
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "lyric.error",
            platform=result.platform,
            track_id=result.track_id,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
        await fail(texts.user_visible_error(exc))
        return
    filename = await lyric_filename(platform, result.track_id)
    await _send_lyrics(ctx, msg, placeholder, lyrics, filename)
