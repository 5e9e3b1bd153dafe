from __future__ import annotations

from dataclasses import dataclass, field


def normalize_alias(alias: str) -> str:
    cleaned = alias.strip()
    if not cleaned:
        return ""
    return cleaned.removeprefix("@").strip().lower()


@dataclass(frozen=True, slots=True)
class PlatformMeta:
    name: str
    display_name: str = ""
    emoji: str = ""
    aliases: tuple[str, ...] = ()
    allow_group_url: bool = False

    @property
    def label(self) -> str:
        return self.display_name or self.name

    @property
    def tag(self) -> str:
        if self.emoji:
            return f"{self.emoji} {self.label}"
        return self.label


@dataclass(frozen=True, slots=True)
class Artist:
    name: str
    id: str = ""


@dataclass(frozen=True, slots=True)
class Track:
    id: str
    platform: str
    title: str
    artists: tuple[Artist, ...] = ()
    album: str = ""
    duration_s: float = 0.0

    @property
    def artist_names(self) -> str:
        return "/".join(artist.name for artist in self.artists if artist.name.strip())


@dataclass(frozen=True, slots=True)
class LyricLine:
    time_s: float
    text: str


@dataclass(frozen=True, slots=True)
class Lyrics:
    timestamped: tuple[LyricLine, ...] = field(default_factory=tuple)
    plain: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.timestamped and not self.plain.strip()


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving message text into a platform track.

    When ``found`` is false both strings are empty.
    """

    platform: str = ""
    track_id: str = ""
    found: bool = False

    @classmethod
    def hit(cls, platform: str, track_id: str) -> Resolution:
        return cls(platform=platform, track_id=track_id, found=True)


NOT_FOUND = Resolution()
