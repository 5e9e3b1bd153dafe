"""Msgspec models for Telegram Bot API payloads (subset used by musicbot)."""

from __future__ import annotations

import msgspec

__all__ = [
    "CallbackQuery",
    "CallbackQueryMessage",
    "Chat",
    "InlineQuery",
    "Message",
    "MessageEntity",
    "MessageReply",
    "Update",
    "User",
    "decode_update",
    "decode_updates",
]


class User(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    is_bot: bool | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class Chat(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    type: str
    title: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def is_private(self) -> bool:
        return self.type == "private"


class MessageEntity(msgspec.Struct, forbid_unknown_fields=False):
    type: str
    offset: int
    length: int
    url: str | None = None


class MessageReply(msgspec.Struct, forbid_unknown_fields=False):
    message_id: int
    text: str | None = None
    caption: str | None = None
    from_: User | None = msgspec.field(default=None, name="from")


class Message(msgspec.Struct, forbid_unknown_fields=False):
    message_id: int
    chat: Chat
    from_: User | None = msgspec.field(default=None, name="from")
    text: str | None = None
    caption: str | None = None
    entities: list[MessageEntity] | None = None
    reply_to_message: MessageReply | None = None
    message_thread_id: int | None = None


class CallbackQueryMessage(msgspec.Struct, forbid_unknown_fields=False):
    message_id: int
    chat: Chat
    text: str | None = None


class CallbackQuery(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    from_: User = msgspec.field(name="from")
    message: CallbackQueryMessage | None = None
    inline_message_id: str | None = None
    data: str | None = None


class InlineQuery(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    from_: User = msgspec.field(name="from")
    query: str = ""
    offset: str = ""
    chat_type: str | None = None


class Update(msgspec.Struct, forbid_unknown_fields=False):
    update_id: int
    message: Message | None = None
    callback_query: CallbackQuery | None = None
    inline_query: InlineQuery | None = None


_UPDATE_DECODER = msgspec.json.Decoder(Update)
_UPDATES_DECODER = msgspec.json.Decoder(list[Update])


def decode_update(payload: str | bytes) -> Update:
    return _UPDATE_DECODER.decode(payload)


def decode_updates(payload: str | bytes) -> list[Update]:
    return _UPDATES_DECODER.decode(payload)
