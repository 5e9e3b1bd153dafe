from pathlib import Path

import pytest

from musicbot.config import ConfigError
from musicbot.platform import Quality
from musicbot.settings import (
    MusicBotSettings,
    load_settings,
    require_bot_token,
    validate_settings_data,
)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "musicbot.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_settings_from_toml(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        'default_quality = "lossless"\n'
        "\n"
        "[telegram]\n"
        'bot_token = "123:abc"\n'
        'bot_name = "@MusicBot"\n'
        "\n"
        "[rate_limit]\n"
        "spacing_s = 0.5\n"
        "\n"
        "[plugins]\n"
        'enabled = [" Musicbot-Netease ", ""]\n',
    )

    settings, config_path = load_settings(path)

    assert config_path == path
    assert settings.default_quality == Quality.LOSSLESS
    assert settings.telegram.bot_name == "MusicBot"
    assert settings.rate_limit.spacing_s == 0.5
    assert settings.resolve.likely_id_min_length == 4
    assert settings.plugin_allowlist() == {"musicbot-netease"}
    assert require_bot_token(settings, path) == "123:abc"


def test_env_overrides_toml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, '[telegram]\nbot_token = "from-file"\n')
    monkeypatch.setenv("MUSICBOT__TELEGRAM__BOT_TOKEN", "from-env")
    monkeypatch.setenv("MUSICBOT__DEFAULT_QUALITY", "hires")

    settings, _ = load_settings(path)

    assert require_bot_token(settings, path) == "from-env"
    assert settings.default_quality == Quality.HIRES


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Missing config file"):
        load_settings(tmp_path / "nope.toml")


def test_config_path_must_be_a_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not a file"):
        load_settings(tmp_path)


def test_invalid_quality_is_a_config_error(tmp_path: Path) -> None:
    path = _write(tmp_path, 'default_quality = "low"\n')

    with pytest.raises(ConfigError, match="default_quality"):
        load_settings(path)


def test_unknown_telegram_key_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="chat_id"):
        validate_settings_data(
            {"telegram": {"bot_token": "t", "chat_id": 1}},
            config_path=tmp_path / "musicbot.toml",
        )


def test_missing_or_blank_token(tmp_path: Path) -> None:
    path = tmp_path / "musicbot.toml"

    with pytest.raises(ConfigError, match="Missing bot token"):
        require_bot_token(MusicBotSettings(), path)
    with pytest.raises(ConfigError, match="Missing bot token"):
        require_bot_token(
            validate_settings_data(
                {"telegram": {"bot_token": "   "}}, config_path=path
            ),
            path,
        )


def test_defaults() -> None:
    settings = MusicBotSettings()

    assert settings.default_quality == Quality.HIGH
    assert settings.telegram.poll_timeout_s == 50
    assert settings.rate_limit.max_attempts == 3
    assert settings.plugin_allowlist() is None
