from __future__ import annotations

from pathlib import Path

import anyio
import typer

from . import __version__
from .config import ConfigError
from .logging import get_logger, setup_logging
from .plugins import (
    PLATFORM_GROUP,
    entrypoint_distribution_name,
    get_load_errors,
    is_entrypoint_allowed,
    list_entrypoints,
    load_platforms,
    normalize_allowlist,
)
from .settings import MusicBotSettings, load_settings, require_bot_token
from .telegram.loop import run_bot

logger = get_logger(__name__)

_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to musicbot.toml (defaults to ~/.musicbot/musicbot.toml).",
)


def _exit_config_error(exc: ConfigError, *, code: int = 1) -> None:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=code) from exc


def _load(config: Path | None) -> tuple[MusicBotSettings, Path]:
    try:
        return load_settings(config)
    except ConfigError as exc:
        _exit_config_error(exc)
        raise


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def app_main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Multi-platform music bot for Telegram."""


def run(
    config: Path | None = _CONFIG_OPTION,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """Start long polling and serve updates."""
    setup_logging(debug=debug)
    settings, config_path = _load(config)
    try:
        token = require_bot_token(settings, config_path)
    except ConfigError as exc:
        _exit_config_error(exc)
        return
    registry = load_platforms(settings.plugin_allowlist())
    if not len(registry):
        logger.warning("startup.no_platforms", group=PLATFORM_GROUP)
    try:
        anyio.run(run_bot, settings, token, registry)
    except KeyboardInterrupt:
        logger.info("shutdown.interrupted")


def platforms(
    config: Path | None = _CONFIG_OPTION,
    load: bool = typer.Option(
        False,
        "--load/--no-load",
        help="Load plugins to validate and surface import errors.",
    ),
) -> None:
    """List discovered platform plugins."""
    allowlist: set[str] | None = None
    try:
        settings, _ = load_settings(config)
    except ConfigError:
        settings = None
    if settings is not None:
        allowlist = normalize_allowlist(settings.plugin_allowlist())

    entrypoints = list_entrypoints(PLATFORM_GROUP)
    typer.echo("platforms:")
    if not entrypoints:
        typer.echo("  (none)")
    for ep in entrypoints:
        dist = entrypoint_distribution_name(ep) or "unknown"
        status = ""
        if allowlist is not None:
            status = " enabled" if is_entrypoint_allowed(ep, allowlist) else " disabled"
        typer.echo(f"  {ep.name} ({dist}){status}")

    if not load:
        return
    registry = load_platforms(allowlist)
    for name in registry.list():
        meta = registry.meta(name)
        aliases = ", ".join(meta.aliases) or "-"
        typer.echo(f"  loaded {meta.tag} [{name}] aliases: {aliases}")
    errors = get_load_errors()
    if errors:
        typer.echo("errors:")
        for err in errors:
            typer.echo(f"  {err.name}: {err.error}")
        raise typer.Exit(code=1)


def create_app() -> typer.Typer:
    app = typer.Typer(
        add_completion=False,
        invoke_without_command=True,
        help="Multi-platform music bot for Telegram.",
    )
    app.callback()(app_main)
    app.command(name="run")(run)
    app.command(name="platforms")(platforms)
    return app


def main() -> None:
    app = create_app()
    app()


if __name__ == "__main__":
    main()
