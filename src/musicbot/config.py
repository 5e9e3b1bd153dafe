from __future__ import annotations

from pathlib import Path

HOME_CONFIG_PATH = Path.home() / ".musicbot" / "musicbot.toml"


class ConfigError(RuntimeError):
    pass


def resolve_config_path(path: str | Path | None) -> Path:
    return Path(path).expanduser() if path else HOME_CONFIG_PATH


def ensure_config_file(cfg_path: Path) -> None:
    if cfg_path.exists() and not cfg_path.is_file():
        raise ConfigError(f"Config path {cfg_path} exists but is not a file.") from None
    if not cfg_path.exists():
        raise ConfigError(f"Missing config file {cfg_path}.") from None
