from __future__ import annotations

from .menu import build_bot_commands, set_command_menu
from .parse import (
    RESERVED_COMMANDS,
    command_arguments,
    command_name,
    is_command_message,
    is_reserved_command,
    match_command,
)

__all__ = [
    "RESERVED_COMMANDS",
    "build_bot_commands",
    "command_arguments",
    "command_name",
    "is_command_message",
    "is_reserved_command",
    "match_command",
    "set_command_menu",
]
