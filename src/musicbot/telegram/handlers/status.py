from __future__ import annotations

import html

from .. import texts
from ..api_schemas import Chat, Update
from .base import HTML, HandlerContext, make_reply


def chat_label(chat: Chat) -> str:
    if chat.title:
        return chat.title
    if chat.username:
        return f"@{chat.username}"
    return chat.first_name or str(chat.id)


async def handle_status(ctx: HandlerContext, update: Update) -> None:
    msg = update.message
    repo = ctx.repository
    if msg is None or repo is None:
        return
    user_id = msg.from_.id if msg.from_ is not None else 0
    text = texts.status_text(
        total=await repo.count(),
        chat_label=chat_label(msg.chat),
        chat_count=await repo.count_by_chat_id(msg.chat.id),
        user_id=user_id,
        user_count=await repo.count_by_user_id(user_id) if user_id else 0,
        send_count=await repo.get_send_count(),
    )

    by_platform = await repo.count_by_platform()
    if by_platform:
        lines = [
            f"{html.escape(ctx.registry.meta(name).label)}: {by_platform[name]}"
            for name in sorted(by_platform)
        ]
        text += "\n\ncached by platform:\n" + "\n".join(lines)

    names = ctx.registry.list()
    if names:
        labels = ", ".join(ctx.registry.meta(name).label for name in names)
        text += f"\n\nplatforms: {html.escape(labels)}"

    await make_reply(ctx, msg)(text, parse_mode=HTML)
