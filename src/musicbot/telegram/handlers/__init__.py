from __future__ import annotations

from functools import partial

from ..router import RouteHandlers
from .about import handle_about
from .base import HandlerContext, MusicDelivery, MusicRequest
from .inline import handle_inline
from .lyric import handle_lyric
from .music import handle_music, handle_music_callback
from .rmcache import handle_rmcache
from .search import handle_search
from .settings import handle_settings, handle_settings_callback
from .status import handle_status

__all__ = [
    "HandlerContext",
    "MusicDelivery",
    "MusicRequest",
    "bind_handlers",
]


def bind_handlers(ctx: HandlerContext) -> RouteHandlers:
    """Built-in handlers bound to ``ctx``; recognize stays unhandled."""
    return RouteHandlers(
        music=partial(handle_music, ctx),
        search=partial(handle_search, ctx),
        lyric=partial(handle_lyric, ctx),
        about=partial(handle_about, ctx),
        status=partial(handle_status, ctx),
        settings=partial(handle_settings, ctx),
        rmcache=partial(handle_rmcache, ctx),
        music_callback=partial(handle_music_callback, ctx),
        settings_callback=partial(handle_settings_callback, ctx),
        inline=partial(handle_inline, ctx),
    )
