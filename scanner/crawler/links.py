"""Link liveness checks via HEAD requests."""

import asyncio

import httpx
import structlog

logger = structlog.get_logger(__name__)


class LinkChecker:
    """Checks whether URLs answer a HEAD request with a 2xx status."""

    def __init__(
        self,
        user_agent: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.user_agent = user_agent
        self._transport = transport

    async def _is_alive(self, client: httpx.AsyncClient, url: str, timeout: float) -> bool:
        try:
            async with asyncio.timeout(timeout):
                response = await client.head(url)
        except (httpx.HTTPError, httpx.InvalidURL, TimeoutError) as e:
            logger.debug("link_check_failed", url=url, error=str(e) or type(e).__name__)
            return False
        return response.is_success

    async def check(self, urls: list[str], timeout: float) -> list[bool]:
        """
        Check links concurrently, each under its own timeout.

        Args:
            urls: Absolute URLs to check
            timeout: Per-link budget in seconds

        Returns:
            One liveness flag per URL, in input order
        """
        if not urls:
            return []

        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        ) as client:
            return list(
                await asyncio.gather(*(self._is_alive(client, url, timeout) for url in urls))
            )

    async def count_alive(self, urls: list[str], timeout: float) -> int:
        """Number of URLs that answered with a 2xx status."""
        return sum(await self.check(urls, timeout))
