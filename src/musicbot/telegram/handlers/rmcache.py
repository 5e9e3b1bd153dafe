from __future__ import annotations

from ...logging import get_logger
from .. import texts
from ..api_schemas import Update
from ..commands.parse import command_arguments
from ..extract import resolve_text
from .base import HandlerContext, make_reply

logger = get_logger(__name__)


async def handle_rmcache(ctx: HandlerContext, update: Update) -> None:
    msg = update.message
    repo = ctx.repository
    if msg is None or repo is None:
        return
    reply = make_reply(ctx, msg)
    args = command_arguments(msg.text)
    if not args:
        await reply(texts.INPUT_ID_OR_KEYWORD)
        return

    parts = args.split()
    if len(parts) >= 2 and ctx.registry.get(parts[0]) is not None:
        platform, track_id = parts[0], parts[1]
    else:
        result = await resolve_text(
            args, ctx.registry, shortlinks=ctx.shortlinks, policy=ctx.id_policy
        )
        if not result.found:
            await reply(texts.NO_RESULTS)
            return
        platform, track_id = result.platform, result.track_id

    try:
        await repo.delete_all_qualities_by_platform_track_id(platform, track_id)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "rmcache.failed",
            platform=platform,
            track_id=track_id,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
        await reply(texts.RMCACHE_FAILED)
        return
    logger.info("rmcache.cleared", platform=platform, track_id=track_id)
    await reply(texts.RMCACHE_DONE.format(platform=platform, track_id=track_id))
