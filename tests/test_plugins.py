from collections.abc import Iterator

import pytest

from musicbot import plugins
from musicbot.platform import PlatformRegistry
from tests.fakes import StubPlatform
from tests.plugin_fixtures import FakeEntryPoint, install_entrypoints

GROUP = plugins.PLATFORM_GROUP


class _KugouPlatform(StubPlatform):
    def __init__(self) -> None:
        super().__init__("kugou")


@pytest.fixture(autouse=True)
def _reset_plugin_state() -> Iterator[None]:
    plugins.reset_plugin_state()
    yield
    plugins.reset_plugin_state()


def test_list_ids_does_not_load_entrypoints(monkeypatch) -> None:
    ep = FakeEntryPoint("netease", "musicbot_netease:PLATFORM", GROUP)
    install_entrypoints(monkeypatch, [ep])

    assert plugins.list_ids(GROUP) == ["netease"]
    assert ep.loads == 0


def test_load_entrypoint_records_errors(monkeypatch) -> None:
    def loader():
        raise RuntimeError("boom")

    install_entrypoints(
        monkeypatch,
        [FakeEntryPoint("broken", "musicbot_broken:PLATFORM", GROUP, loader=loader)],
    )

    with pytest.raises(plugins.PluginLoadFailed):
        plugins.load_entrypoint(GROUP, "broken")

    errors = plugins.get_load_errors()
    assert errors[0].name == "broken"
    assert "boom" in errors[0].error


def test_duplicate_entrypoints_are_rejected(monkeypatch) -> None:
    install_entrypoints(
        monkeypatch,
        [
            FakeEntryPoint("dup", "one:PLATFORM", GROUP, dist_name="one"),
            FakeEntryPoint("dup", "two:PLATFORM", GROUP, dist_name="two"),
        ],
    )

    assert plugins.list_ids(GROUP) == []
    with pytest.raises(plugins.PluginLoadFailed):
        plugins.load_entrypoint(GROUP, "dup")
    assert any("duplicate plugin id" in err.error for err in plugins.get_load_errors())


def test_missing_entrypoint_is_not_recorded(monkeypatch) -> None:
    install_entrypoints(monkeypatch, [])

    with pytest.raises(plugins.PluginLoadFailed, match="plugin not found"):
        plugins.load_entrypoint(GROUP, "nothing")
    assert plugins.get_load_errors() == ()


def test_allowlist_matches_name_or_distribution(monkeypatch) -> None:
    install_entrypoints(
        monkeypatch,
        [
            FakeEntryPoint("netease", "a:P", GROUP, dist_name="musicbot"),
            FakeEntryPoint("qq", "b:P", GROUP, dist_name="musicbot-qq"),
            FakeEntryPoint("kugou", "c:P", GROUP, dist_name="other"),
        ],
    )

    assert plugins.list_ids(GROUP, allowlist=["netease"]) == ["netease"]
    assert plugins.list_ids(GROUP, allowlist=["musicbot_qq"]) == ["qq"]
    assert plugins.list_ids(GROUP, allowlist=["  "]) == ["netease", "qq", "kugou"]


def test_load_caches_results(monkeypatch) -> None:
    ep = FakeEntryPoint("kugou", "c:P", GROUP, loader=_KugouPlatform)
    install_entrypoints(monkeypatch, [ep])

    first = plugins.load_entrypoint(GROUP, "kugou")
    second = plugins.load_entrypoint(GROUP, "kugou")
    assert first is second
    assert ep.loads == 1

    plugins.reset_plugin_state()
    plugins.load_entrypoint(GROUP, "kugou")
    assert ep.loads == 2


def test_load_platforms_accepts_instances_classes_and_factories(monkeypatch) -> None:
    install_entrypoints(
        monkeypatch,
        [
            FakeEntryPoint(
                "netease", "a:PLATFORM", GROUP, loader=lambda: StubPlatform("netease")
            ),
            FakeEntryPoint(
                "kugou", "b:KugouPlatform", GROUP, loader=lambda: _KugouPlatform
            ),
            FakeEntryPoint(
                "qq",
                "c:create",
                GROUP,
                loader=lambda: (lambda: StubPlatform("qq")),
            ),
        ],
    )

    registry = plugins.load_platforms()

    assert registry.list() == ["netease", "kugou", "qq"]
    assert plugins.get_load_errors() == ()


def test_load_platforms_skips_invalid_and_conflicting(monkeypatch) -> None:
    existing = PlatformRegistry([StubPlatform("netease")])
    install_entrypoints(
        monkeypatch,
        [
            FakeEntryPoint("bad", "a:NOT_A_PLATFORM", GROUP, loader=lambda: 42),
            FakeEntryPoint(
                "netease", "b:PLATFORM", GROUP, loader=lambda: StubPlatform("netease")
            ),
            FakeEntryPoint("kugou", "c:PLATFORM", GROUP, loader=_KugouPlatform),
        ],
    )

    registry = plugins.load_platforms(registry=existing)

    assert registry is existing
    assert registry.list() == ["netease", "kugou"]
    errors = {err.name: err.error for err in plugins.get_load_errors()}
    assert "not a platform adapter" in errors["bad"]
    assert "already registered" in errors["netease"]


def test_clear_load_errors_filters(monkeypatch) -> None:
    def loader():
        raise RuntimeError("boom")

    install_entrypoints(
        monkeypatch,
        [
            FakeEntryPoint("one", "a:P", GROUP, loader=loader),
            FakeEntryPoint("two", "b:P", GROUP, loader=loader),
        ],
    )
    for name in ("one", "two"):
        with pytest.raises(plugins.PluginLoadFailed):
            plugins.load_entrypoint(GROUP, name)

    plugins.clear_load_errors(name="one")
    assert [err.name for err in plugins.get_load_errors()] == ["two"]

    plugins.clear_load_errors(group=GROUP)
    assert plugins.get_load_errors() == ()
