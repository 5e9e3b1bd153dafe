from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ...logging import get_logger
from ...platform.registry import PlatformRegistry
from .parse import is_reserved_command

if TYPE_CHECKING:
    from ..client import TelegramClient

logger = get_logger(__name__)

_MAX_BOT_COMMANDS = 100
_COMMAND_RE = re.compile(r"^[a-z0-9_]{1,32}$")

BUILTIN_COMMANDS: tuple[tuple[str, str], ...] = (
    ("music", "get a track: /music <platform> <id> [quality]"),
    ("search", "search tracks"),
    ("lyric", "get lyrics"),
    ("recognize", "recognize a song from audio"),
    ("settings", "default quality"),
    ("status", "cache statistics"),
    ("about", "about this bot"),
    ("rmcache", "drop a cached track"),
    ("help", "usage"),
)


def build_bot_commands(registry: PlatformRegistry) -> list[dict[str, str]]:
    commands: list[dict[str, str]] = []
    seen: set[str] = set()
    for cmd, description in BUILTIN_COMMANDS:
        commands.append({"command": cmd, "description": description})
        seen.add(cmd)
    for name in registry.list():
        cmd = name.lower()
        if cmd in seen or is_reserved_command(cmd):
            continue
        if not _COMMAND_RE.match(cmd):
            logger.debug("startup.command_menu.skip_platform", platform=name)
            continue
        meta = registry.meta(name)
        commands.append({"command": cmd, "description": f"get a track from {meta.label}"})
        seen.add(cmd)
    if len(commands) > _MAX_BOT_COMMANDS:
        logger.warning(
            "startup.command_menu.too_many",
            count=len(commands),
            limit=_MAX_BOT_COMMANDS,
        )
        commands = commands[:_MAX_BOT_COMMANDS]
    return commands


async def set_command_menu(bot: TelegramClient, registry: PlatformRegistry) -> None:
    commands = build_bot_commands(registry)
    try:
        ok = await bot.set_my_commands(commands)
    except Exception as exc:  # noqa: BLE001
        logger.info(
            "startup.command_menu.failed",
            error=str(exc),
            error_type=exc.__class__.__name__,
        )
        return
    if not ok:
        logger.info("startup.command_menu.rejected")
        return
    logger.info(
        "startup.command_menu.updated",
        commands=[cmd["command"] for cmd in commands],
    )
