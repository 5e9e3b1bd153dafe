from __future__ import annotations

from typing import Any

from ...logging import get_logger
from ...platform.types import Resolution
from ..api_schemas import Update
from ..errors import TransportError
from ..extract import parse_trailing_options, resolve_text
from .base import HandlerContext, resolve_quality

logger = get_logger(__name__)


def build_inline_article(
    ctx: HandlerContext, result: Resolution, quality: str
) -> dict[str, Any]:
    meta = ctx.registry.meta(result.platform)
    return {
        "type": "article",
        "id": f"{result.platform}:{result.track_id}"[:64],
        "title": f"{meta.tag} {result.track_id}",
        "description": f"quality: {quality}",
        "input_message_content": {
            "message_text": f"/music {result.platform} {result.track_id} {quality}",
        },
    }


async def handle_inline(ctx: HandlerContext, update: Update) -> None:
    query = update.inline_query
    if query is None:
        return
    results: list[dict[str, Any]] = []
    text = query.query.strip()
    if text:
        result = await resolve_text(
            text, ctx.registry, shortlinks=ctx.shortlinks, policy=ctx.id_policy
        )
        if result.found:
            override = parse_trailing_options(text, ctx.registry).quality
            quality = await resolve_quality(ctx, query.from_.id, override)
            results.append(build_inline_article(ctx, result, quality))
    try:
        await ctx.bot.answer_inline_query(query.id, results)
    except TransportError as exc:
        logger.warning(
            "inline.answer_failed",
            inline_query_id=query.id,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
