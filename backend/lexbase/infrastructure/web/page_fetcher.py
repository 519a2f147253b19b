"""Web page fetcher — httpx for transport, BeautifulSoup for cleanup.

One call is one attempt; retries are decided by the link service from the
returned ``ErrorKind``.
"""

import logging
import random
import re
import unicodedata
from collections.abc import Callable, Sequence
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from lexbase.application.interfaces.page_fetcher import FetchedPage, PageFetcher
from lexbase.application.services.error_classification import classify_status, to_err
from lexbase.domain.result import Err, Ok, Result

logger = logging.getLogger(__name__)

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.5 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:124.0) Gecko/20100101 Firefox/124.0",
)

_BROWSER_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
    "DNT": "1",
}

# Page chrome that never carries legal text.
_NOISE_SELECTOR = (
    "script, style, nav, header, footer, iframe, .ads, .banner, .cookie, "
    '[class*="cookie"], [id*="cookie"]'
)
_WHITESPACE_RUN = re.compile(r"\s+")

# Legacy Brazilian government sites serve Latin-1 regardless of what they declare.
_LATIN1_DOMAIN_SUFFIX = ".gov.br"


def decode_html(url: str, response: httpx.Response) -> str:
    host = urlparse(url).hostname or ""
    if host.endswith(_LATIN1_DOMAIN_SUFFIX):
        return response.content.decode("iso-8859-1")
    return response.text


def extract_readable_text(html: str) -> str:
    """Strip page chrome and return NFC-normalised body text on a single line."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.select(_NOISE_SELECTOR):
        if not element.decomposed:
            element.decompose()

    root = soup.body or soup
    text = _WHITESPACE_RUN.sub(" ", root.get_text(" ")).strip()
    return unicodedata.normalize("NFC", text)


class HttpPageFetcher(PageFetcher):
    """Fetches pages with browser-like headers and a rotating User-Agent."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        timeout_seconds: float = 30.0,
        user_agents: Sequence[str] = USER_AGENTS,
        choose: Callable[[Sequence[str]], str] = random.choice,
    ):
        self._client = http_client
        self._timeout = timeout_seconds
        self._user_agents = user_agents
        self._choose = choose

    def _headers(self) -> dict[str, str]:
        return {**_BROWSER_HEADERS, "User-Agent": self._choose(self._user_agents)}

    async def fetch(self, url: str) -> Result[FetchedPage]:
        try:
            response = await self._client.get(
                url,
                headers=self._headers(),
                timeout=self._timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            err = to_err(exc)
            logger.warning("Fetch of %s failed (%s): %s", url, err.kind.value, err.message)
            return err

        if not response.is_success:
            message = f"Status da resposta: {response.status_code} {response.reason_phrase}".strip()
            logger.warning("Fetch of %s returned %d", url, response.status_code)
            return Err(kind=classify_status(response.status_code), message=message)

        html = decode_html(url, response)
        text = extract_readable_text(html)
        logger.info("Fetched %s (%d HTML chars, %d text chars)", url, len(html), len(text))
        return Ok(FetchedPage(url=url, text=text, status_code=response.status_code))
