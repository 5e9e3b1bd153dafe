from collections.abc import Callable

import pytest

from musicbot.platform import PlatformRegistry
from musicbot.telegram.api_schemas import Update
from musicbot.telegram.router import (
    Route,
    RouteHandlers,
    Router,
    build_router,
    callback_prefix,
    platform_match,
)
from tests.fakes import (
    GROUP,
    FullPlatform,
    StubPlatform,
    make_callback,
    make_inline,
    make_update,
)


class _Recorder:
    def __init__(self) -> None:
        self.seen: list[tuple[str, Update]] = []

    def handler(self, name: str) -> Callable:
        async def _handle(update: Update) -> None:
            self.seen.append((name, update))

        return _handle

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.seen]


def _registry() -> PlatformRegistry:
    return PlatformRegistry(
        [
            FullPlatform(
                "netease",
                aliases=("ncm",),
                host="music.163.com",
                short_hosts=("163cn.tv",),
            ),
            StubPlatform("qq", host="y.qq.com", allow_group_url=True),
            StubPlatform("bilibili"),
        ]
    )


def _router(recorder: _Recorder, **overrides) -> Router:
    fields = {
        "music": recorder.handler("music"),
        "search": recorder.handler("search"),
        "lyric": recorder.handler("lyric"),
        "about": recorder.handler("about"),
        "status": recorder.handler("status"),
        "settings": recorder.handler("settings"),
        "rmcache": recorder.handler("rmcache"),
        "music_callback": recorder.handler("music_callback"),
        "settings_callback": recorder.handler("settings_callback"),
        "inline": recorder.handler("inline"),
    }
    fields.update(overrides)
    return build_router(_registry(), RouteHandlers(**fields), bot_name="musicbot")


def test_route_order_is_fixed() -> None:
    router = _router(_Recorder())

    assert [route.name for route in router.routes] == [
        "command.start",
        "command.help",
        "command.music",
        "command.netease",
        "command.program",
        "command.search",
        "command.lyric",
        "command.recognize",
        "command.about",
        "command.status",
        "command.settings",
        "command.rmcache",
        "platform_command",
        "platform_match",
        "search",
        "callback.music",
        "callback.settings",
        "inline",
    ]


@pytest.mark.parametrize(
    ("text", "route"),
    [
        ("/start", "command.start"),
        ("/music netease 1 hires", "command.music"),
        ("/music@musicbot netease 1 hires", "command.music"),
        ("/netease 12345", "command.netease"),
        ("/search jay chou", "command.search"),
        ("/lyric netease:1", "command.lyric"),
        ("/rmcache netease 1", "command.rmcache"),
        ("/qq 12345", "platform_command"),
        ("/bilibili@musicbot abc123", "platform_command"),
        ("netease:12345", "platform_match"),
        ("https://y.qq.com/song/abc", "platform_match"),
        ("listen https://music.163.com/song/1 now", "platform_match"),
        ("https://163cn.tv/xyz", "platform_match"),
        ("a1b2c3 ncm", "platform_match"),
        ("netease:1 high", "platform_match"),
        ("jay chou", "search"),
        ("jay chou netease", "search"),
        ("https://music.163.com/playlist/9", None),
        ("/unknown thing", None),
        ("/music@otherbot netease 1 hires", None),
    ],
)
def test_private_message_routing(text: str, route: str | None) -> None:
    router = _router(_Recorder())

    selected = router.select(make_update(text))

    assert (selected.name if selected else None) == route


@pytest.mark.parametrize(
    ("text", "route"),
    [
        ("https://y.qq.com/song/abc", "platform_match"),
        ("look https://y.qq.com/song/abc", "platform_match"),
        ("https://music.163.com/song/1", None),
        ("netease:12345", None),
        ("jay chou", None),
        ("/music netease 1 hires", "command.music"),
    ],
)
def test_group_message_routing(text: str, route: str | None) -> None:
    router = _router(_Recorder())

    selected = router.select(make_update(text, chat=GROUP))

    assert (selected.name if selected else None) == route


def test_callback_and_inline_routing() -> None:
    router = _router(_Recorder())

    assert router.select(make_callback("music netease 1 high")).name == (
        "callback.music"
    )
    assert router.select(make_callback("settings quality high")).name == (
        "callback.settings"
    )
    assert router.select(make_callback("musical")) is None
    assert router.select(make_inline("netease:1")).name == "inline"


def test_callback_prefix_requires_separator() -> None:
    predicate = callback_prefix("music")

    assert predicate(make_callback("music"))
    assert predicate(make_callback("music a b c"))
    assert not predicate(make_callback("musicx a"))
    assert not predicate(make_update("music"))


@pytest.mark.anyio
async def test_dispatch_calls_first_matching_handler() -> None:
    recorder = _Recorder()
    router = _router(recorder)

    route = await router.dispatch(make_update("/qq 12345"))

    assert route is not None
    assert route.name == "platform_command"
    assert recorder.names == ["music"]


@pytest.mark.anyio
async def test_route_without_handler_claims_update() -> None:
    recorder = _Recorder()
    router = _router(recorder)

    route = await router.dispatch(make_update("/recognize"))

    assert route is not None
    assert route.name == "command.recognize"
    assert recorder.seen == []


@pytest.mark.anyio
async def test_unmatched_update_is_ignored() -> None:
    recorder = _Recorder()
    router = _router(recorder)

    assert await router.dispatch(make_update("jay chou", chat=GROUP)) is None
    assert await router.dispatch(Update(update_id=9)) is None
    assert recorder.seen == []


@pytest.mark.anyio
async def test_handler_failure_does_not_escape() -> None:
    async def _boom(update: Update) -> None:
        raise RuntimeError("boom")

    recorder = _Recorder()
    router = _router(recorder, search=_boom)

    route = await router.dispatch(make_update("jay chou"))

    assert route is not None
    assert route.name == "search"


@pytest.mark.anyio
async def test_custom_routes_keep_insertion_order() -> None:
    recorder = _Recorder()
    router = Router()
    router.add(Route("first", lambda update: True, recorder.handler("first")))
    router.add(Route("second", lambda update: True, recorder.handler("second")))

    await router.dispatch(make_update("anything"))

    assert recorder.names == ["first"]


def test_platform_match_ignores_non_text_updates() -> None:
    predicate = platform_match(_registry())

    assert not predicate(make_update(None))
    assert not predicate(make_callback("music netease 1 high"))
