from __future__ import annotations

import html

from ..platform.errors import (
    AuthRequiredError,
    InvalidQualityError,
    NotFoundError,
    RateLimitedError,
    UnavailableError,
    UnsupportedError,
)

USAGE = (
    "send a track link, <platform>:<id>, or\n"
    "/music <platform> <id> <quality>\n"
    "/search <keyword> [platform]\n"
    "/lyric <link or id> (or reply to a message)\n"
    "/settings <quality>"
)
INPUT_ID_OR_KEYWORD = "send a track id or keyword."
INPUT_CONTENT = "send a track keyword, share link or id."
INPUT_KEYWORD = "send a search keyword."
NO_RESULTS = "no results."
SEARCHING = "searching..."
FETCHING_LYRICS = "fetching lyrics..."
LYRICS_FAILED = "failed to fetch lyrics; the track may not exist or be instrumental."
LYRICS_EMPTY = "no lyrics available\n"
LYRICS_UNSUPPORTED = "this platform does not provide lyrics."
SEARCH_UNSUPPORTED = "this platform does not support search."
NO_SEARCH_PLATFORM = "no platform supports search."
RMCACHE_FAILED = "failed to clear cache."
RMCACHE_DONE = "cleared cache for {platform} track {track_id}."
UNKNOWN_PLATFORM = "unknown platform: {platform}"
UNKNOWN_QUALITY = "unknown quality: {quality} (use standard, high, lossless or hires)"
QUALITY_SAVED = "default quality set to {quality}."
QUALITY_CURRENT = "default quality: {quality}"
SETTINGS_UNAVAILABLE = "settings are not available."
CALLBACK_OK = "ok"
GENERIC_FAILURE = "something went wrong, try again later."

_ERROR_TEXTS: tuple[tuple[type[Exception], str], ...] = (
    (NotFoundError, "track or lyrics not found."),
    (UnavailableError, "this track is currently unavailable."),
    (UnsupportedError, "this platform does not support that."),
    (RateLimitedError, "the platform is rate limiting requests, try again later."),
    (AuthRequiredError, "the platform requires login for this track."),
    (InvalidQualityError, "unknown quality."),
)


def user_visible_error(exc: BaseException | None) -> str:
    if exc is None:
        return GENERIC_FAILURE
    for error_type, text in _ERROR_TEXTS:
        if isinstance(exc, error_type):
            return text
    return GENERIC_FAILURE


def status_text(
    *,
    total: int,
    chat_label: str,
    chat_count: int,
    user_id: int,
    user_count: int,
    send_count: int,
) -> str:
    return (
        "<b>[stats]</b>\n"
        f"cached tracks: {total}\n"
        f"this chat [{html.escape(chat_label)}]: {chat_count}\n"
        f'this user [<a href="tg://user?id={user_id}">{user_id}</a>]: {user_count}\n'
        f"tracks sent: {send_count}"
    )


def about_text(version: str) -> str:
    return (
        f"<b>musicbot</b> {html.escape(version)}\n"
        "multi-platform music bot for telegram."
    )
