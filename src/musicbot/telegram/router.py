"""Ordered dispatch of Telegram updates to handlers.

Routes are evaluated in the order they were added and the first matching
predicate claims the update. Later catch-all predicates assume the earlier,
more specific ones have already had their chance, so never reorder them.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import TypeAlias
from urllib.parse import urlsplit

from ..logging import get_logger
from ..platform.registry import PlatformRegistry
from ..platform.types import NOT_FOUND, Resolution
from .api_schemas import Message, Update
from .commands.parse import (
    command_name,
    is_command_message,
    is_reserved_command,
    match_command,
)
from .extract import (
    DEFAULT_ID_POLICY,
    LikelyIdPolicy,
    has_search_platform_suffix,
    parse_trailing_options,
)
from .urls import extract_first_url, extract_urls

logger = get_logger(__name__)

Predicate: TypeAlias = Callable[[Update], bool]
UpdateHandler: TypeAlias = Callable[[Update], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class Route:
    name: str
    predicate: Predicate
    handler: UpdateHandler | None = None


class Router:
    def __init__(self, routes: Iterable[Route] = ()) -> None:
        self._routes: list[Route] = list(routes)

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self._routes)

    def add(self, route: Route) -> None:
        self._routes.append(route)

    def select(self, update: Update) -> Route | None:
        for route in self._routes:
            if route.predicate(update):
                return route
        return None

    async def dispatch(self, update: Update) -> Route | None:
        route = self.select(update)
        if route is None:
            logger.debug("router.ignored", update_id=update.update_id)
            return None
        if route.handler is None:
            logger.debug(
                "router.unhandled", route=route.name, update_id=update.update_id
            )
            return route
        logger.debug("router.dispatch", route=route.name, update_id=update.update_id)
        try:
            await route.handler(update)
        except Exception:
            logger.exception(
                "handler.failed", route=route.name, update_id=update.update_id
            )
        return route


def _text_message(update: Update) -> Message | None:
    msg = update.message
    if msg is None or not msg.text:
        return None
    return msg


def platform_command(registry: PlatformRegistry, bot_name: str | None) -> Predicate:
    """``/<platform>`` for any registered, non-reserved platform alias."""

    def _predicate(update: Update) -> bool:
        msg = _text_message(update)
        if msg is None:
            return False
        command = command_name(msg.text.strip(), bot_name)
        if not command or is_reserved_command(command):
            return False
        name = registry.resolve_alias(command)
        return name is not None and registry.get(name) is not None

    return _predicate


def _match_rules(registry: PlatformRegistry, text: str) -> Resolution:
    result = registry.match_text(text)
    if result.found:
        return result
    return registry.match_url(text)


def _is_short_link(registry: PlatformRegistry, text: str) -> bool:
    url = extract_first_url(text)
    if not url:
        return False
    host = (urlsplit(url).hostname or "").lower()
    return bool(host) and host in registry.short_link_hosts()


def _group_url_match(registry: PlatformRegistry, text: str) -> Resolution:
    for url in extract_urls(text):
        result = registry.match_url(url)
        if not result.found:
            result = registry.match_text(url)
        if result.found:
            return result
    return NOT_FOUND


def platform_match(
    registry: PlatformRegistry,
    *,
    policy: LikelyIdPolicy = DEFAULT_ID_POLICY,
) -> Predicate:
    """Text or links that resolve to a single track.

    Group chats only react to links from platforms that allow it.
    """

    def _predicate(update: Update) -> bool:
        msg = _text_message(update)
        if msg is None:
            return False
        text = msg.text
        if has_search_platform_suffix(text, registry, policy=policy):
            return False
        if not msg.chat.is_private:
            result = _group_url_match(registry, text)
            return result.found and registry.meta(result.platform).allow_group_url
        options = parse_trailing_options(text, registry)
        base = options.base.strip()
        if not base:
            return False
        url = extract_first_url(base)
        if url and registry.match_playlist_url(url).found:
            return False
        if options.platform:
            return True
        if _match_rules(registry, base).found:
            return True
        if _group_url_match(registry, base).found:
            return True
        return _is_short_link(registry, base)

    return _predicate


def private_search(registry: PlatformRegistry) -> Predicate:
    """Remaining private-chat text is treated as a search keyword."""

    def _predicate(update: Update) -> bool:
        msg = _text_message(update)
        if msg is None or is_command_message(msg) or not msg.chat.is_private:
            return False
        base = parse_trailing_options(msg.text, registry).base.strip()
        if not base:
            return False
        url = extract_first_url(base)
        return not (url and registry.match_playlist_url(url).found)

    return _predicate


def callback_prefix(prefix: str) -> Predicate:
    def _predicate(update: Update) -> bool:
        query = update.callback_query
        if query is None or not query.data:
            return False
        return query.data == prefix or query.data.startswith(f"{prefix} ")

    return _predicate


def is_inline_query(update: Update) -> bool:
    return update.inline_query is not None


@dataclass(slots=True)
class RouteHandlers:
    music: UpdateHandler | None = None
    search: UpdateHandler | None = None
    lyric: UpdateHandler | None = None
    recognize: UpdateHandler | None = None
    about: UpdateHandler | None = None
    status: UpdateHandler | None = None
    settings: UpdateHandler | None = None
    rmcache: UpdateHandler | None = None
    music_callback: UpdateHandler | None = None
    settings_callback: UpdateHandler | None = None
    inline: UpdateHandler | None = None


def build_routes(
    registry: PlatformRegistry,
    handlers: RouteHandlers,
    *,
    bot_name: str | None = None,
    policy: LikelyIdPolicy = DEFAULT_ID_POLICY,
) -> list[Route]:
    commands: list[tuple[str, UpdateHandler | None]] = [
        ("start", handlers.music),
        ("help", handlers.music),
        ("music", handlers.music),
        ("netease", handlers.music),
        ("program", handlers.music),
        ("search", handlers.search),
        ("lyric", handlers.lyric),
        ("recognize", handlers.recognize),
        ("about", handlers.about),
        ("status", handlers.status),
        ("settings", handlers.settings),
        ("rmcache", handlers.rmcache),
    ]
    routes = [
        Route(f"command.{cmd}", match_command(bot_name, cmd), handler)
        for cmd, handler in commands
    ]
    routes.extend(
        [
            Route(
                "platform_command",
                platform_command(registry, bot_name),
                handlers.music,
            ),
            Route(
                "platform_match",
                platform_match(registry, policy=policy),
                handlers.music,
            ),
            Route("search", private_search(registry), handlers.search),
            Route("callback.music", callback_prefix("music"), handlers.music_callback),
            Route(
                "callback.settings",
                callback_prefix("settings"),
                handlers.settings_callback,
            ),
            Route("inline", is_inline_query, handlers.inline),
        ]
    )
    return routes


def build_router(
    registry: PlatformRegistry,
    handlers: RouteHandlers,
    *,
    bot_name: str | None = None,
    policy: LikelyIdPolicy = DEFAULT_ID_POLICY,
) -> Router:
    return Router(build_routes(registry, handlers, bot_name=bot_name, policy=policy))
