from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_serializer,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import TomlConfigSettingsSource

from .config import ConfigError, ensure_config_file, resolve_config_path
from .platform.errors import InvalidQualityError
from .platform.quality import Quality, parse_quality


class TelegramSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bot_token: SecretStr | None = None
    bot_name: str | None = None
    poll_timeout_s: int = Field(default=50, ge=0, le=50)

    @field_validator("bot_token", mode="before")
    @classmethod
    def _validate_bot_token(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("bot_token must be a string")
        return value

    @field_validator("bot_name", mode="before")
    @classmethod
    def _validate_bot_name(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("bot_name must be a string")
        cleaned = value.strip().removeprefix("@")
        return cleaned or None

    @field_serializer("bot_token")
    def _dump_token(self, value: SecretStr | None) -> str | None:
        return value.get_secret_value() if value else None


class RateLimitSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    permits: int = Field(default=1, ge=1)
    spacing_s: float = Field(default=1.0, ge=0)
    max_attempts: int = Field(default=3, ge=1)
    backoff_s: float = Field(default=1.0, ge=0)


class ResolveSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    short_link_timeout_s: float = Field(default=8.0, gt=0)
    likely_id_min_length: int = Field(default=4, ge=1)


class PluginsSettings(BaseModel):
    enabled: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class MusicBotSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="allow",
        env_prefix="MUSICBOT__",
        env_nested_delimiter="__",
    )

    default_quality: Quality = Quality.HIGH
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    resolve: ResolveSettings = Field(default_factory=ResolveSettings)
    plugins: PluginsSettings = Field(default_factory=PluginsSettings)

    @field_validator("default_quality", mode="before")
    @classmethod
    def _validate_default_quality(cls, value: Any) -> Any:
        if isinstance(value, Quality):
            return value
        if not isinstance(value, str):
            raise ValueError("default_quality must be a string")
        try:
            return parse_quality(value.strip())
        except InvalidQualityError:
            names = ", ".join(quality.value for quality in Quality)
            raise ValueError(f"default_quality must be one of: {names}") from None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def plugin_allowlist(self) -> set[str] | None:
        enabled = {name.strip().lower() for name in self.plugins.enabled if name.strip()}
        return enabled or None


def load_settings(path: str | Path | None = None) -> tuple[MusicBotSettings, Path]:
    cfg_path = resolve_config_path(path)
    ensure_config_file(cfg_path)
    return _load_settings_from_path(cfg_path), cfg_path


def validate_settings_data(
    data: dict[str, Any], *, config_path: Path
) -> MusicBotSettings:
    try:
        return MusicBotSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc


def require_bot_token(settings: MusicBotSettings, config_path: Path) -> str:
    token = settings.telegram.bot_token
    if token is None or not token.get_secret_value().strip():
        raise ConfigError(f"Missing bot token in {config_path}.")
    return token.get_secret_value().strip()


def _load_settings_from_path(cfg_path: Path) -> MusicBotSettings:
    cfg = dict(MusicBotSettings.model_config)
    cfg["toml_file"] = cfg_path
    Bound = type(
        "MusicBotSettingsBound",
        (MusicBotSettings,),
        {"model_config": SettingsConfigDict(**cfg)},
    )
    try:
        return Bound()
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {cfg_path}: {exc}") from exc
