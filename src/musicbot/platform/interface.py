from __future__ import annotations

from typing import Protocol, runtime_checkable

from .types import Lyrics, PlatformMeta, Track


@runtime_checkable
class Platform(Protocol):
    """A pluggable adapter for one music source.

    ``match_text`` and ``match_url`` return the extracted track id, or ``None``
    when the input is not recognized. Adapters are shared by every handler task
    and must be safe for concurrent use.
    """

    @property
    def name(self) -> str: ...

    def metadata(self) -> PlatformMeta: ...

    def match_text(self, text: str) -> str | None: ...

    def match_url(self, url: str) -> str | None: ...

    def supports_lyrics(self) -> bool: ...

    async def get_lyrics(self, track_id: str) -> Lyrics: ...


@runtime_checkable
class ShortLinkProvider(Protocol):
    def short_link_hosts(self) -> tuple[str, ...]: ...


@runtime_checkable
class PlaylistURLMatcher(Protocol):
    def match_playlist_url(self, url: str) -> str | None: ...


@runtime_checkable
class SearchProvider(Protocol):
    def supports_search(self) -> bool: ...

    async def search(self, query: str, limit: int) -> list[Track]: ...


@runtime_checkable
class TrackProvider(Protocol):
    async def get_track(self, track_id: str) -> Track: ...
