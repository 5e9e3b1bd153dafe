from __future__ import annotations

import re

_URL_RE = re.compile(
    r"https?://[^\s\u00a0\u2000-\u200d\u202f\u205f\u3000<>\"'()\uff08\uff09\[\]{}\u3010\u3011\u300a\u300b\u300c\u300d\u300e\u300f]+"
)
_TRAILING = frozenset(".,!?;:)]}>\"'\uff0c\u3002\uff01\uff1f\uff1b\uff1a\uff09\u3011\u300b\u300d\u300f\u3001")


def trim_url_candidate(candidate: str) -> str:
    candidate = candidate.strip()
    while candidate and (candidate[-1] in _TRAILING or candidate[-1].isspace()):
        candidate = candidate[:-1]
    return candidate.strip()


def extract_urls(text: str | None) -> list[str]:
    if not text or not text.strip():
        return []
    urls: list[str] = []
    for match in _URL_RE.findall(text):
        cleaned = trim_url_candidate(match)
        if cleaned:
            urls.append(cleaned)
    return urls


def extract_first_url(text: str | None) -> str:
    if not text or not text.strip():
        return ""
    match = _URL_RE.search(text)
    if match is None:
        return ""
    return trim_url_candidate(match.group(0))
