from __future__ import annotations

from collections.abc import Iterable, Iterator

from ..logging import get_logger
from .interface import Platform, PlaylistURLMatcher, ShortLinkProvider
from .types import NOT_FOUND, PlatformMeta, Resolution, normalize_alias

logger = get_logger(__name__)


class PlatformRegistry:
    """Platforms keyed by name, matched in registration order.

    Populate once at startup; lookups afterwards are read-only and need no
    locking.
    """

    def __init__(self, platforms: Iterable[Platform] = ()) -> None:
        self._ordered: list[Platform] = []
        self._by_name: dict[str, Platform] = {}
        self._meta: dict[str, PlatformMeta] = {}
        self._aliases: dict[str, str] = {}
        for platform in platforms:
            self.register(platform)

    def register(self, platform: Platform) -> None:
        name = platform.name
        if not name or not name.strip():
            raise ValueError("platform name cannot be empty")
        if name in self._by_name:
            raise ValueError(f"platform already registered: {name}")
        meta = _build_meta(platform)
        self._ordered.append(platform)
        self._by_name[name] = platform
        self._meta[name] = meta
        for alias in (name, *meta.aliases):
            key = normalize_alias(alias)
            if not key:
                continue
            existing = self._aliases.get(key)
            if existing is not None and existing != name:
                logger.warning(
                    "platform.alias.conflict",
                    alias=key,
                    platform=name,
                    existing=existing,
                )
                continue
            self._aliases[key] = name
        logger.debug("platform.registered", platform=name, aliases=meta.aliases)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[Platform]:
        return iter(tuple(self._ordered))

    def get(self, name: str) -> Platform | None:
        return self._by_name.get(name)

    def list(self) -> list[str]:
        return [platform.name for platform in self._ordered]

    def meta(self, name: str) -> PlatformMeta:
        meta = self._meta.get(name)
        if meta is None:
            return PlatformMeta(name=name)
        return meta

    def resolve_alias(self, token: str) -> str | None:
        key = normalize_alias(token)
        if not key:
            return None
        return self._aliases.get(key)

    def match_text(self, text: str) -> Resolution:
        for platform in self._ordered:
            track_id = platform.match_text(text)
            if track_id:
                return Resolution.hit(platform.name, track_id)
        return NOT_FOUND

    def match_url(self, text: str) -> Resolution:
        for platform in self._ordered:
            track_id = platform.match_url(text)
            if track_id:
                return Resolution.hit(platform.name, track_id)
        return NOT_FOUND

    def match_playlist_url(self, url: str) -> Resolution:
        for platform in self._ordered:
            if not isinstance(platform, PlaylistURLMatcher):
                continue
            playlist_id = platform.match_playlist_url(url)
            if playlist_id:
                return Resolution.hit(platform.name, playlist_id)
        return NOT_FOUND

    def short_link_hosts(self) -> frozenset[str]:
        hosts: set[str] = set()
        for platform in self._ordered:
            if isinstance(platform, ShortLinkProvider):
                hosts.update(
                    host.strip().lower()
                    for host in platform.short_link_hosts()
                    if host.strip()
                )
        return frozenset(hosts)


def _build_meta(platform: Platform) -> PlatformMeta:
    meta = platform.metadata()
    if meta.name == platform.name:
        return meta
    return PlatformMeta(
        name=platform.name,
        display_name=meta.display_name,
        emoji=meta.emoji,
        aliases=meta.aliases,
        allow_group_url=meta.allow_group_url,
    )
