from __future__ import annotations

from urllib.parse import urljoin, urlsplit

import anyio
import httpx

from ..logging import get_logger
from ..platform.registry import PlatformRegistry
from .urls import extract_first_url

logger = get_logger(__name__)

_BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/132.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Range": "bytes=0-0",
}


class ShortLinkResolver:
    """Expands short links for hosts declared by registered platforms.

    Only hosts listed by a platform's ``short_link_hosts()`` are contacted.
    Any failure, including the timeout, leaves the text unchanged.
    """

    def __init__(
        self,
        registry: PlatformRegistry,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = 8.0,
    ) -> None:
        self._registry = registry
        self._client = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None
        self.timeout_s = timeout_s

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def should_resolve(self, url: str) -> bool:
        host = (urlsplit(url).hostname or "").lower()
        if not host:
            return False
        return host in self._registry.short_link_hosts()

    async def resolve_url(self, url: str) -> str:
        if not self.should_resolve(url):
            return url
        try:
            with anyio.fail_after(self.timeout_s):
                response = await self._client.get(
                    url, headers=_BROWSER_HEADERS, follow_redirects=False
                )
        except (TimeoutError, httpx.HTTPError) as exc:
            logger.info(
                "shortlink.failed",
                url=url,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            return url
        if response.is_redirect:
            location = response.headers.get("location", "").strip()
            if location:
                resolved = urljoin(url, location)
                logger.debug("shortlink.resolved", url=url, resolved=resolved)
                return resolved
        return str(response.url)

    async def resolve_text(self, text: str) -> str:
        url = extract_first_url(text)
        if not url:
            return text
        resolved = await self.resolve_url(url)
        if not resolved or resolved == url:
            return text
        return text.replace(url, resolved, 1)
