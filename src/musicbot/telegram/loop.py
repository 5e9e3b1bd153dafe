from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable

import anyio

from ..logging import get_logger
from ..platform.registry import PlatformRegistry
from ..settings import MusicBotSettings
from .api_schemas import Update
from .client import TelegramClient
from .commands.menu import set_command_menu
from .errors import TransientTransportError
from .extract import LikelyIdPolicy
from .handlers import HandlerContext, MusicDelivery, bind_handlers
from .ratelimit import RateLimiter
from .router import Router, build_router
from .shortlink import ShortLinkResolver

logger = get_logger(__name__)

ALLOWED_UPDATES = ["message", "callback_query", "inline_query"]
_POLL_RETRY_S = 2.0


async def poll_updates(
    bot: TelegramClient,
    *,
    offset: int | None = None,
    timeout_s: int = 50,
    sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
) -> AsyncIterator[Update]:
    while True:
        try:
            updates = await bot.get_updates(
                offset, timeout_s=timeout_s, allowed_updates=ALLOWED_UPDATES
            )
        except TransientTransportError as exc:
            logger.warning(
                "poll.failed",
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            await sleep(_POLL_RETRY_S)
            continue
        for update in updates:
            offset = update.update_id + 1
            yield update


async def run_main_loop(router: Router, updates: AsyncIterator[Update]) -> None:
    """Dispatch each update on its own task until ``updates`` is exhausted."""
    async with anyio.create_task_group() as tg:
        async for update in updates:
            tg.start_soon(router.dispatch, update)


async def run_bot(
    settings: MusicBotSettings,
    token: str,
    registry: PlatformRegistry,
    *,
    deliver: MusicDelivery | None = None,
) -> None:
    bot = TelegramClient(token)
    shortlinks = ShortLinkResolver(
        registry, timeout_s=settings.resolve.short_link_timeout_s
    )
    try:
        bot_name = settings.telegram.bot_name
        if bot_name is None:
            me = await bot.get_me()
            bot_name = me.username if me is not None else None
        logger.info("startup", bot_name=bot_name, platforms=registry.list())
        limits = settings.rate_limit
        ctx = HandlerContext(
            bot=bot,
            registry=registry,
            limiter=RateLimiter(
                permits=limits.permits,
                spacing_s=limits.spacing_s,
                max_attempts=limits.max_attempts,
                backoff_s=limits.backoff_s,
            ),
            bot_name=bot_name or "",
            shortlinks=shortlinks,
            default_quality=settings.default_quality,
            id_policy=LikelyIdPolicy(min_length=settings.resolve.likely_id_min_length),
            deliver=deliver,
        )
        router = build_router(
            registry, bind_handlers(ctx), bot_name=bot_name, policy=ctx.id_policy
        )
        await set_command_menu(bot, registry)
        await run_main_loop(
            router,
            poll_updates(bot, timeout_s=settings.telegram.poll_timeout_s),
        )
    finally:
        await shortlinks.aclose()
        await bot.close()
