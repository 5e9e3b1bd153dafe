from __future__ import annotations

from collections.abc import Callable

from ..api_schemas import Message, Update

RESERVED_COMMANDS: frozenset[str] = frozenset(
    {
        "start",
        "help",
        "music",
        "netease",
        "program",
        "search",
        "lyric",
        "recognize",
        "about",
        "status",
        "settings",
        "rmcache",
    }
)


def command_arguments(text: str | None) -> str:
    """Return everything after the command token, trimmed.

    Non-command text and bare commands yield "".
    """
    if not text:
        return ""
    stripped = text.strip()
    if not stripped.startswith("/"):
        return ""
    parts = stripped.split(maxsplit=1)
    if len(parts) < 2:
        return ""
    return parts[1].strip()


def _command_token(text: str | None) -> str | None:
    if not text or not text.startswith("/"):
        return None
    parts = text.split(maxsplit=1)
    if not parts:
        return None
    token = parts[0][1:]
    return token or None


def command_name(text: str | None, bot_name: str | None = None) -> str | None:
    """Command addressed to this bot, without the leading slash.

    ``/cmd@bot_name`` resolves to ``cmd``; a command addressed to any other
    bot resolves to ``None``.
    """
    token = _command_token(text.strip() if text else text)
    if token is None:
        return None
    command, sep, target = token.partition("@")
    if not sep:
        return command
    if bot_name and target == bot_name and command:
        return command
    return None


def match_command(bot_name: str | None, cmd: str) -> Callable[[Update], bool]:
    def _predicate(update: Update) -> bool:
        message = update.message
        if message is None or not message.text:
            return False
        token = _command_token(message.text)
        if token is None:
            return False
        if token == cmd:
            return True
        return bool(bot_name) and token == f"{cmd}@{bot_name}"

    return _predicate


def is_command_message(message: Message | None) -> bool:
    if message is None or not message.text or not message.text.startswith("/"):
        return False
    if not message.entities:
        return False
    entity = message.entities[0]
    return entity.type == "bot_command" and entity.offset == 0


def is_reserved_command(name: str) -> bool:
    return name in RESERVED_COMMANDS
