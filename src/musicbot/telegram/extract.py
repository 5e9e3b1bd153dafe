"""Turn message text into a platform track and an optional quality override.

Resolution never raises for unmatched input; callers get ``NOT_FOUND`` and
decide what to tell the user.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..platform.quality import is_quality, normalize_quality_token
from ..platform.registry import PlatformRegistry
from ..platform.types import NOT_FOUND, Resolution
from .api_schemas import Message
from .commands.parse import command_arguments
from .shortlink import ShortLinkResolver
from .urls import extract_first_url, extract_urls

__all__ = [
    "DEFAULT_ID_POLICY",
    "LikelyIdPolicy",
    "TrailingOptions",
    "extract_platform_track",
    "extract_quality_override",
    "has_search_platform_suffix",
    "is_likely_id_token",
    "match_platform_track",
    "parse_trailing_options",
    "resolve_text",
]


@dataclass(frozen=True, slots=True)
class LikelyIdPolicy:
    """Shape rule for bare tokens a platform matcher declined.

    Tokens must be ASCII letters and digits and carry at least one digit.
    Mixed letter/digit tokens pass at any length; digit-only tokens need
    ``min_length`` characters. Letter-only words never pass.
    """

    min_length: int = 4

    def accepts(self, token: str) -> bool:
        token = token.strip()
        if not token or not token.isascii() or not token.isalnum():
            return False
        if not any(ch.isdigit() for ch in token):
            return False
        if any(ch.isalpha() for ch in token):
            return True
        return len(token) >= self.min_length


DEFAULT_ID_POLICY = LikelyIdPolicy()


def is_likely_id_token(token: str, *, policy: LikelyIdPolicy = DEFAULT_ID_POLICY) -> bool:
    return policy.accepts(token)


@dataclass(frozen=True, slots=True)
class TrailingOptions:
    base: str
    platform: str = ""
    quality: str = ""


def parse_trailing_options(
    text: str, registry: PlatformRegistry | None = None
) -> TrailingOptions:
    """Split ``<base> [platform] [quality]`` from the end of free text.

    The quality token is read last-first, then a platform alias.
    """
    fields = text.split()
    quality = ""
    platform = ""
    if fields:
        quality = normalize_quality_token(fields[-1])
        if quality:
            fields.pop()
    if fields and registry is not None:
        resolved = registry.resolve_alias(fields[-1])
        if resolved:
            platform = resolved
            fields.pop()
    return TrailingOptions(base=" ".join(fields), platform=platform, quality=quality)


def has_search_platform_suffix(
    text: str,
    registry: PlatformRegistry,
    *,
    policy: LikelyIdPolicy = DEFAULT_ID_POLICY,
) -> bool:
    """True for ``<keyword> <platform>`` text that asks for a search."""
    if not text or not text.strip() or extract_urls(text):
        return False
    options = parse_trailing_options(text, registry)
    if not options.platform or not options.base:
        return False
    tokens = options.base.split()
    return not (len(tokens) == 1 and policy.accepts(tokens[0]))


def _is_playlist(text: str, registry: PlatformRegistry) -> bool:
    url = extract_first_url(text)
    if not url:
        return False
    return registry.match_playlist_url(url).found


async def _expand(text: str, shortlinks: ShortLinkResolver | None) -> str:
    if shortlinks is None:
        return text
    return await shortlinks.resolve_text(text)


async def match_platform_track(
    registry: PlatformRegistry,
    platform_name: str,
    text: str,
    *,
    shortlinks: ShortLinkResolver | None = None,
    policy: LikelyIdPolicy = DEFAULT_ID_POLICY,
) -> Resolution:
    """Resolve ``text`` against one known platform.

    The platform's own matchers go first; a bare token that looks like an ID
    is then accepted verbatim.
    """
    text = text.strip()
    platform = registry.get(platform_name)
    if platform is None or not text:
        return NOT_FOUND
    resolved = await _expand(text, shortlinks)
    if _is_playlist(resolved, registry):
        return NOT_FOUND
    track_id = platform.match_text(resolved) or platform.match_url(resolved)
    if track_id:
        return Resolution.hit(platform_name, track_id)
    candidate = resolved.strip()
    if policy.accepts(candidate):
        return Resolution.hit(platform_name, candidate)
    return NOT_FOUND


async def resolve_text(
    text: str,
    registry: PlatformRegistry,
    *,
    shortlinks: ShortLinkResolver | None = None,
    policy: LikelyIdPolicy = DEFAULT_ID_POLICY,
) -> Resolution:
    """Free-text resolution: trailing options, short links, then the rules."""
    options = parse_trailing_options(text, registry)
    base = options.base.strip()
    if not base:
        return NOT_FOUND
    if options.platform and not extract_urls(base):
        tokens = base.split()
        if len(tokens) == 1 and policy.accepts(tokens[0]):
            return await match_platform_track(
                registry,
                options.platform,
                tokens[0],
                shortlinks=shortlinks,
                policy=policy,
            )
        # keyword plus platform suffix is a search request
        return NOT_FOUND

    resolved = await _expand(base, shortlinks)
    if _is_playlist(resolved, registry):
        return NOT_FOUND

    result = registry.match_text(resolved)
    if result.found:
        return result
    result = registry.match_url(resolved)
    if result.found:
        return result

    url = extract_first_url(resolved)
    if url and url != resolved:
        result = registry.match_url(url)
        if result.found:
            return result
        return registry.match_text(url)
    return NOT_FOUND


async def extract_platform_track(
    message: Message | None,
    registry: PlatformRegistry,
    *,
    shortlinks: ShortLinkResolver | None = None,
    policy: LikelyIdPolicy = DEFAULT_ID_POLICY,
) -> Resolution:
    if message is None or not message.text or not message.text.strip():
        return NOT_FOUND
    text = message.text.strip()
    if text.startswith("/"):
        args = command_arguments(text)
        fields = args.split()
        if (
            len(fields) == 3
            and is_quality(fields[2])
            and registry.get(fields[0]) is not None
        ):
            return Resolution.hit(fields[0], fields[1])
        text = args
    if not text:
        return NOT_FOUND
    return await resolve_text(text, registry, shortlinks=shortlinks, policy=policy)


def extract_quality_override(
    message: Message | None, registry: PlatformRegistry | None = None
) -> str:
    """Quality requested in the message, or "" for no override.

    Commands accept only a canonical name as the third argument. Free text
    also accepts ``low`` as ``standard`` in the trailing position.
    """
    if message is None or not message.text:
        return ""
    text = message.text.strip()
    if text.startswith("/"):
        fields = command_arguments(text).split()
        if len(fields) == 3 and is_quality(fields[2]):
            return fields[2]
        return ""
    return parse_trailing_options(text, registry).quality
