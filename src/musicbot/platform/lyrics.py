from __future__ import annotations

import re

from .types import LyricLine, Lyrics

_TIMESTAMP_RE = re.compile(r"\[(\d+):(\d+)[.:](\d{1,3})\]")
_LINE_RE = re.compile(r"^\[(\d+):(\d+)[.:](\d+)\](.*)$")


def _centis(fraction: str) -> int:
    if not fraction:
        return 0
    if len(fraction) == 1:
        return int(fraction) * 10
    return int(fraction[:2])


def format_timestamp(seconds: float) -> str:
    total_centis = int(round(seconds * 100))
    minutes, rem = divmod(total_centis, 6000)
    secs, centis = divmod(rem, 100)
    return f"{minutes:02d}:{secs:02d}.{centis:02d}"


def normalize_lrc_timestamps(text: str) -> str:
    """Rewrite ``[m:s.fff]`` / ``[m:s:ff]`` stamps to ``[mm:ss.cc]``."""

    def _replace(match: re.Match[str]) -> str:
        minutes, seconds, fraction = match.groups()
        return f"[{int(minutes):02d}:{int(seconds):02d}.{_centis(fraction):02d}]"

    return _TIMESTAMP_RE.sub(_replace, text)


def parse_lrc_lines(text: str) -> tuple[LyricLine, ...]:
    lines: list[LyricLine] = []
    for raw in text.splitlines():
        match = _LINE_RE.match(raw)
        if match is None:
            continue
        minutes, seconds, fraction, body = match.groups()
        body = body.strip()
        if not body:
            continue
        time_s = int(minutes) * 60 + int(seconds) + _centis(fraction) / 100
        lines.append(LyricLine(time_s=time_s, text=body))
    return tuple(lines)


def build_lyric_texts(lyrics: Lyrics | None) -> tuple[str, str]:
    """Return ``(lrc_text, plain_text)`` for a lyrics payload."""
    if lyrics is None:
        return "", ""
    lrc_text = ""
    plain_text = ""
    if lyrics.timestamped:
        rendered = [
            f"[{format_timestamp(line.time_s)}] {line.text.strip()}"
            for line in lyrics.timestamped
            if line.text.strip()
        ]
        lrc_text = "\n".join(rendered)
        plain_text = lrc_text
    if not lrc_text.strip() and lyrics.plain.strip():
        lrc_text = normalize_lrc_timestamps(lyrics.plain)
    if not plain_text.strip() and lyrics.plain.strip():
        plain_text = lyrics.plain
    return lrc_text.strip(), plain_text.strip()
