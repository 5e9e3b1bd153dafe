"""Platform adapters: capability protocol, registry, quality and errors."""

from .errors import (
    AuthRequiredError,
    InvalidQualityError,
    NotFoundError,
    PlatformError,
    RateLimitedError,
    UnavailableError,
    UnsupportedError,
)
from .interface import (
    Platform,
    PlaylistURLMatcher,
    SearchProvider,
    ShortLinkProvider,
    TrackProvider,
)
from .quality import Quality, normalize_quality_token, parse_quality
from .registry import PlatformRegistry
from .types import (
    NOT_FOUND,
    Artist,
    LyricLine,
    Lyrics,
    PlatformMeta,
    Resolution,
    Track,
)

__all__ = [
    "NOT_FOUND",
    "Artist",
    "AuthRequiredError",
    "InvalidQualityError",
    "LyricLine",
    "Lyrics",
    "NotFoundError",
    "Platform",
    "PlatformError",
    "PlatformMeta",
    "PlatformRegistry",
    "PlaylistURLMatcher",
    "Quality",
    "RateLimitedError",
    "Resolution",
    "SearchProvider",
    "ShortLinkProvider",
    "Track",
    "TrackProvider",
    "UnavailableError",
    "UnsupportedError",
    "normalize_quality_token",
    "parse_quality",
]
