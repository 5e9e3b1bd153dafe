from __future__ import annotations

from typing import Any

from ...logging import get_logger
from ...platform.errors import InvalidQualityError
from ...platform.quality import Quality, parse_quality
from .. import texts
from ..api_schemas import Update
from ..commands.parse import command_arguments
from .base import (
    HandlerContext,
    answer_callback,
    edit_text,
    make_reply,
    resolve_quality,
)

logger = get_logger(__name__)

SETTINGS_PREFIX = "settings"


def quality_keyboard(current: Quality) -> dict[str, Any]:
    row = []
    for quality in Quality:
        label = f"* {quality}" if quality == current else str(quality)
        row.append(
            {"text": label, "callback_data": f"{SETTINGS_PREFIX} quality {quality}"}
        )
    return {"inline_keyboard": [row]}


def parse_settings_callback(data: str | None) -> str | None:
    """Requested quality token from ``settings quality <q>``, unvalidated."""
    if not data:
        return None
    fields = data.split()
    if len(fields) != 3 or fields[0] != SETTINGS_PREFIX or fields[1] != "quality":
        return None
    return fields[2]


async def handle_settings(ctx: HandlerContext, update: Update) -> None:
    msg = update.message
    if msg is None:
        return
    reply = make_reply(ctx, msg)
    user_id = msg.from_.id if msg.from_ is not None else None
    args = command_arguments(msg.text)
    if not args:
        current = await resolve_quality(ctx, user_id)
        await reply(
            texts.QUALITY_CURRENT.format(quality=current),
            reply_markup=quality_keyboard(current),
        )
        return
    if ctx.preferences is None or user_id is None:
        await reply(texts.SETTINGS_UNAVAILABLE)
        return
    token = args.split()[0]
    try:
        quality = parse_quality(token)
    except InvalidQualityError:
        await reply(texts.UNKNOWN_QUALITY.format(quality=token))
        return
    await ctx.preferences.set_quality(user_id, quality)
    logger.info("settings.quality", user_id=user_id, quality=str(quality))
    await reply(texts.QUALITY_SAVED.format(quality=quality))


async def handle_settings_callback(ctx: HandlerContext, update: Update) -> None:
    query = update.callback_query
    if query is None:
        return
    token = parse_settings_callback(query.data)
    if token is None:
        await answer_callback(ctx, query, texts.GENERIC_FAILURE)
        return
    try:
        quality = parse_quality(token)
    except InvalidQualityError:
        await answer_callback(ctx, query, texts.UNKNOWN_QUALITY.format(quality=token))
        return
    if ctx.preferences is None:
        await answer_callback(ctx, query, texts.SETTINGS_UNAVAILABLE)
        return
    await ctx.preferences.set_quality(query.from_.id, quality)
    logger.info("settings.quality", user_id=query.from_.id, quality=str(quality))
    await answer_callback(ctx, query, texts.QUALITY_SAVED.format(quality=quality))
    if query.message is not None:
        await edit_text(
            ctx,
            query.message.chat.id,
            query.message.message_id,
            texts.QUALITY_CURRENT.format(quality=quality),
            reply_markup=quality_keyboard(quality),
        )
