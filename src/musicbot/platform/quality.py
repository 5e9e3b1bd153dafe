from __future__ import annotations

from enum import StrEnum

from .errors import InvalidQualityError


class Quality(StrEnum):
    """Audio quality tier shared by every platform."""

    STANDARD = "standard"
    HIGH = "high"
    LOSSLESS = "lossless"
    HIRES = "hires"

    @property
    def bitrate(self) -> int:
        # approximate kbps, platforms vary
        return _BITRATES[self]


_BITRATES = {
    Quality.STANDARD: 128,
    Quality.HIGH: 320,
    Quality.LOSSLESS: 1411,
    Quality.HIRES: 2400,
}

QUALITY_NAMES: frozenset[str] = frozenset(quality.value for quality in Quality)

# accepted only in free text, never as a command argument
_FREE_TEXT_SYNONYMS = {"high": Quality.HIGH, "low": Quality.STANDARD}


def parse_quality(value: str) -> Quality:
    """Validate an exact canonical quality name.

    Raises InvalidQualityError for anything outside the four canonical names.
    """
    try:
        return Quality(value)
    except ValueError:
        raise InvalidQualityError(value) from None


def is_quality(value: str) -> bool:
    return value in QUALITY_NAMES


def normalize_quality_token(token: str) -> str:
    """Map a free-text token to a canonical quality name, or "" if unrecognized."""
    cleaned = token.strip().lower()
    if not cleaned:
        return ""
    synonym = _FREE_TEXT_SYNONYMS.get(cleaned)
    if synonym is not None:
        return synonym.value
    if cleaned in QUALITY_NAMES:
        return cleaned
    return ""
