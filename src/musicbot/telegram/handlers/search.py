from __future__ import annotations

from typing import Any

from ...logging import get_logger
from ...platform.errors import PlatformError
from ...platform.interface import SearchProvider
from ...platform.registry import PlatformRegistry
from ...platform.types import Track
from .. import texts
from ..api_schemas import Update
from ..commands.parse import command_arguments, command_name
from ..extract import parse_trailing_options
from .base import HandlerContext, edit_text, make_reply, resolve_quality
from .music import build_music_callback

logger = get_logger(__name__)

SEARCH_LIMIT = 10
_BUTTONS_PER_ROW = 5
_MAX_CALLBACK_BYTES = 64


def search_platform(registry: PlatformRegistry, requested: str = "") -> str | None:
    """Platform to search: the requested one, else the first that can search."""
    if requested:
        return requested
    for platform in registry:
        if isinstance(platform, SearchProvider) and platform.supports_search():
            return platform.name
    return None


def format_results(tracks: list[Track]) -> str:
    lines = []
    for index, track in enumerate(tracks, start=1):
        line = f"{index}. {track.title}"
        if track.artist_names:
            line = f"{line} - {track.artist_names}"
        lines.append(line)
    return "\n".join(lines)


def results_keyboard(tracks: list[Track], quality: str) -> dict[str, Any]:
    rows: list[list[dict[str, str]]] = []
    row: list[dict[str, str]] = []
    for index, track in enumerate(tracks, start=1):
        data = build_music_callback(track.platform, track.id, quality)
        if len(data.encode("utf-8")) > _MAX_CALLBACK_BYTES:
            continue
        row.append({"text": str(index), "callback_data": data})
        if len(row) == _BUTTONS_PER_ROW:
            rows.append(row)
            row = []
    if row:
        rows.append(row)
    return {"inline_keyboard": rows}


async def handle_search(ctx: HandlerContext, update: Update) -> None:
    msg = update.message
    if msg is None or not msg.text:
        return
    reply = make_reply(ctx, msg)
    text = msg.text.strip()
    if command_name(text, ctx.bot_name) is not None:
        text = command_arguments(text)
    options = parse_trailing_options(text, ctx.registry)
    keyword = options.base.strip()
    if not keyword:
        await reply(texts.INPUT_KEYWORD)
        return

    name = search_platform(ctx.registry, options.platform)
    if name is None:
        await reply(texts.NO_SEARCH_PLATFORM)
        return
    platform = ctx.registry.get(name)
    if not isinstance(platform, SearchProvider) or not platform.supports_search():
        await reply(texts.SEARCH_UNSUPPORTED)
        return

    placeholder = await reply(texts.SEARCHING)
    if placeholder is None:
        return
    try:
        tracks = await platform.search(keyword, SEARCH_LIMIT)
    except PlatformError as exc:
        logger.info(
            "search.failed",
            platform=name,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
        await edit_text(
            ctx,
            placeholder.chat.id,
            placeholder.message_id,
            texts.user_visible_error(exc),
        )
        return
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "search.error",
            platform=name,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
        await edit_text(
            ctx,
            placeholder.chat.id,
            placeholder.message_id,
            texts.user_visible_error(exc),
        )
        return
    if not tracks:
        await edit_text(
            ctx, placeholder.chat.id, placeholder.message_id, texts.NO_RESULTS
        )
        return

    user_id = msg.from_.id if msg.from_ is not None else None
    quality = await resolve_quality(ctx, user_id, options.quality)
    tracks = tracks[:SEARCH_LIMIT]
    header = f"{ctx.registry.meta(name).tag}: {keyword}"
    await edit_text(
        ctx,
        placeholder.chat.id,
        placeholder.message_id,
        f"{header}\n{format_results(tracks)}",
        reply_markup=results_keyboard(tracks, quality),
    )
