import asyncio
import logging
from typing import Optional

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter

from facetqa.actions.errors import FetchFailure
from facetqa.browser.selectors import PageSelectors

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36",
    "Accept-Language": "de-DE,de;q=0.9",
}


class DetailDocument:
    """Parsed product detail page.

    Only reads static markup; nothing rendered by scripts is visible here.
    """

    def __init__(self, url: str, soup: BeautifulSoup, selectors: Optional[PageSelectors] = None):
        self.url = url
        self.soup = soup
        self.selectors = selectors or PageSelectors()

    def gift_occasion(self) -> Optional[str]:
        """Return the gift-occasion value of the classification block, if present.

        Each classification row holds a label span followed by a value span.
        """
        label = self.selectors.gift_occasion_label.casefold()
        for row in self.soup.select(self.selectors.detail_classification):
            spans = row.find_all("span")
            if len(spans) >= 2 and spans[0].get_text(strip=True).casefold() == label:
                return spans[1].get_text(strip=True)
        return None

    def badge_text(self) -> str:
        return " ".join(span.get_text(strip=True) for span in self.soup.select(self.selectors.detail_badge))

    def stock_label(self) -> Optional[str]:
        node = self.soup.select_one(self.selectors.detail_stock_label)
        return node.get_text(strip=True) if node else None


class DetailFetcher:
    """Fetches product detail documents over plain HTTP, outside the browser."""

    def __init__(self, timeout: float = 15, retries: int = 2, selectors: Optional[PageSelectors] = None):
        self.timeout = timeout
        self.selectors = selectors or PageSelectors()
        self.session = requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)
        adapter = HTTPAdapter(max_retries=retries)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _fetch(self, url: str) -> str:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchFailure(url, str(e)) from e
        if not response.ok:
            raise FetchFailure(url, f"HTTP {response.status_code}")
        if not response.text.strip():
            raise FetchFailure(url, "empty document")
        return response.text

    async def fetch(self, url: Optional[str]) -> DetailDocument:
        """Fetch and parse one detail page.

        Raises:
            FetchFailure: No url, a transport error, a non-2xx status or an empty body.
        """
        if not url:
            raise FetchFailure(url, "product has no detail link")

        loop = asyncio.get_running_loop()
        html = await loop.run_in_executor(None, self._fetch, url)
        logging.debug(f"fetched detail document {url} ({len(html)} bytes)")
        return DetailDocument(url, BeautifulSoup(html, "html.parser"), self.selectors)

    def close(self):
        self.session.close()
