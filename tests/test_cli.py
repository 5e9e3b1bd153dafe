from pathlib import Path

from typer.testing import CliRunner

from musicbot import __version__, cli, plugins
from tests.fakes import StubPlatform
from tests.plugin_fixtures import FakeEntryPoint, install_entrypoints


def _config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "musicbot.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_version_flag() -> None:
    result = CliRunner().invoke(cli.create_app(), ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_run_reports_missing_config(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli.create_app(), ["run", "--config", str(tmp_path / "missing.toml")]
    )

    assert result.exit_code == 1
    assert "Missing config file" in result.output


def test_run_requires_bot_token(tmp_path: Path) -> None:
    path = _config(tmp_path, 'default_quality = "high"\n')

    result = CliRunner().invoke(cli.create_app(), ["run", "--config", str(path)])

    assert result.exit_code == 1
    assert "Missing bot token" in result.output


def test_platforms_lists_and_loads(tmp_path: Path, monkeypatch) -> None:
    plugins.reset_plugin_state()
    path = _config(tmp_path, '[plugins]\nenabled = ["netease"]\n')
    install_entrypoints(
        monkeypatch,
        [
            FakeEntryPoint(
                "netease",
                "musicbot_netease:PLATFORM",
                plugins.PLATFORM_GROUP,
                loader=lambda: StubPlatform("netease", aliases=("ncm",)),
            ),
            FakeEntryPoint(
                "qq",
                "musicbot_qq:PLATFORM",
                plugins.PLATFORM_GROUP,
                dist_name="musicbot-qq",
            ),
        ],
    )

    result = CliRunner().invoke(
        cli.create_app(), ["platforms", "--config", str(path), "--load"]
    )

    assert result.exit_code == 0, result.output
    assert "netease (musicbot) enabled" in result.output
    assert "qq (musicbot-qq) disabled" in result.output
    assert "loaded netease [netease] aliases: ncm" in result.output
    plugins.reset_plugin_state()


def test_platforms_surfaces_load_errors(tmp_path: Path, monkeypatch) -> None:
    plugins.reset_plugin_state()
    path = _config(tmp_path, "")

    def _broken():
        raise ImportError("missing dependency")

    install_entrypoints(
        monkeypatch,
        [
            FakeEntryPoint(
                "broken",
                "musicbot_broken:PLATFORM",
                plugins.PLATFORM_GROUP,
                loader=_broken,
            )
        ],
    )

    result = CliRunner().invoke(
        cli.create_app(), ["platforms", "--config", str(path), "--load"]
    )

    assert result.exit_code == 1
    assert "broken: missing dependency" in result.output
    plugins.reset_plugin_state()
