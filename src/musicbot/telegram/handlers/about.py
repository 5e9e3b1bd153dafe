from __future__ import annotations

from .. import texts
from ..api_schemas import Update
from .base import HTML, HandlerContext, make_reply


async def handle_about(ctx: HandlerContext, update: Update) -> None:
    msg = update.message
    if msg is None:
        return
    await make_reply(ctx, msg)(texts.about_text(ctx.version), parse_mode=HTML)
