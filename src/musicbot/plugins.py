"""Platform adapter discovery through ``importlib.metadata`` entry points.

Third-party distributions expose adapters under the ``musicbot.platforms``
group. An entry point may point at a platform instance, a platform class, or
a zero-argument factory returning one.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from importlib.metadata import EntryPoint, entry_points
from typing import Any

from .logging import get_logger
from .platform.interface import Platform
from .platform.registry import PlatformRegistry

logger = get_logger(__name__)

PLATFORM_GROUP = "musicbot.platforms"

_DIST_NAME_RE = re.compile(r"[-_.]+")


@dataclass(frozen=True, slots=True)
class PluginLoadError:
    group: str
    name: str
    value: str
    distribution: str | None
    error: str


class PluginLoadFailed(RuntimeError):
    def __init__(self, error: PluginLoadError) -> None:
        super().__init__(f"failed to load plugin {error.name!r}: {error.error}")
        self.error = error


_LOAD_ERRORS: list[PluginLoadError] = []
_LOADED: dict[tuple[str, str], Any] = {}


def reset_plugin_state() -> None:
    _LOAD_ERRORS.clear()
    _LOADED.clear()


def get_load_errors() -> tuple[PluginLoadError, ...]:
    return tuple(_LOAD_ERRORS)


def clear_load_errors(*, group: str | None = None, name: str | None = None) -> None:
    _LOAD_ERRORS[:] = [
        err
        for err in _LOAD_ERRORS
        if not (
            (group is None or err.group == group) and (name is None or err.name == name)
        )
    ]


def canonicalize_name(name: str) -> str:
    return _DIST_NAME_RE.sub("-", name.strip()).lower()


def normalize_allowlist(allowlist: Iterable[str] | None) -> set[str] | None:
    if allowlist is None:
        return None
    cleaned = {canonicalize_name(item) for item in allowlist if item.strip()}
    return cleaned or None


def entrypoint_distribution_name(ep: EntryPoint) -> str | None:
    dist = getattr(ep, "dist", None)
    if dist is None:
        return None
    return getattr(dist, "name", None)


def is_entrypoint_allowed(ep: EntryPoint, allowlist: set[str] | None) -> bool:
    """Allowlist entries match an entry point name or its distribution."""
    if allowlist is None:
        return True
    if canonicalize_name(ep.name) in allowlist:
        return True
    dist = entrypoint_distribution_name(ep)
    return dist is not None and canonicalize_name(dist) in allowlist


def _record(ep: EntryPoint, group: str, error: str) -> PluginLoadError:
    record = PluginLoadError(
        group=group,
        name=ep.name,
        value=ep.value,
        distribution=entrypoint_distribution_name(ep),
        error=error,
    )
    _LOAD_ERRORS.append(record)
    logger.warning(
        "plugin.load_failed",
        group=group,
        name=ep.name,
        distribution=record.distribution,
        error=error,
    )
    return record


def _group_entrypoints(group: str) -> list[EntryPoint]:
    return list(entry_points().select(group=group))


def list_entrypoints(
    group: str, *, allowlist: Iterable[str] | None = None
) -> list[EntryPoint]:
    """Entry points of ``group`` after allowlisting; duplicated names are dropped."""
    allowed = normalize_allowlist(allowlist)
    found = _group_entrypoints(group)
    counts: dict[str, int] = {}
    for ep in found:
        counts[ep.name] = counts.get(ep.name, 0) + 1
    result: list[EntryPoint] = []
    for ep in found:
        if counts[ep.name] > 1:
            continue
        if not is_entrypoint_allowed(ep, allowed):
            continue
        result.append(ep)
    return result


def list_ids(group: str, *, allowlist: Iterable[str] | None = None) -> list[str]:
    return [ep.name for ep in list_entrypoints(group, allowlist=allowlist)]


def load_entrypoint(
    group: str,
    name: str,
    *,
    validator: Callable[[Any, EntryPoint], Any] | None = None,
) -> Any:
    key = (group, name)
    if key in _LOADED:
        return _LOADED[key]
    matches = [ep for ep in _group_entrypoints(group) if ep.name == name]
    if not matches:
        raise PluginLoadFailed(
            PluginLoadError(group, name, "", None, "plugin not found")
        )
    if len(matches) > 1:
        dists = sorted(entrypoint_distribution_name(ep) or "unknown" for ep in matches)
        record = _record(
            matches[0], group, f"duplicate plugin id (from {', '.join(dists)})"
        )
        raise PluginLoadFailed(record)
    ep = matches[0]
    try:
        obj = ep.load()
        if validator is not None:
            obj = validator(obj, ep)
    except Exception as exc:  # noqa: BLE001
        raise PluginLoadFailed(_record(ep, group, str(exc) or repr(exc))) from exc
    _LOADED[key] = obj
    return obj


def validate_platform(obj: Any, ep: EntryPoint) -> Platform:
    if isinstance(obj, type) or (callable(obj) and not isinstance(obj, Platform)):
        obj = obj()
    if not isinstance(obj, Platform):
        raise TypeError(f"{ep.value} is not a platform adapter")
    return obj


def load_platforms(
    allowlist: Iterable[str] | None = None,
    *,
    registry: PlatformRegistry | None = None,
) -> PlatformRegistry:
    """Register every loadable platform plugin; broken ones are logged and skipped."""
    registry = registry if registry is not None else PlatformRegistry()
    for ep in list_entrypoints(PLATFORM_GROUP, allowlist=allowlist):
        try:
            platform = load_entrypoint(
                PLATFORM_GROUP, ep.name, validator=validate_platform
            )
        except PluginLoadFailed:
            continue
        try:
            registry.register(platform)
        except ValueError as exc:
            _record(ep, PLATFORM_GROUP, str(exc))
    logger.info("platforms.loaded", platforms=registry.list())
    return registry
