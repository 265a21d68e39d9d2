"""
Retry-wrapped JSON fetch through a live browser page.

Requests are issued from inside the page with ``fetch(..., credentials:
"include")`` so they carry the session cookies the browser already holds.
"""

import asyncio
import logging

from scrapers.errors import ScraperNotInitializedError
from utils.common import RETRY_BASE_DELAY, RETRY_MAX_DELAY, backoff_delay

logger = logging.getLogger(__name__)

MAX_RETRIES = 3

JS_FETCH_JSON = """
async (fetchUrl) => {
    const res = await fetch(fetchUrl, {
        credentials: 'include',
        headers: {
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        },
    });
    return await res.json();
}
"""


class PageFetcher:
    """Fetch JSON through a Playwright page with exponential backoff.

    ``fetch_json`` never raises for transport problems: after ``max_retries``
    failed retries it logs and returns ``None``, which callers treat as the
    end of the list they are paginating. The one exception is a missing page,
    which is a caller ordering bug and raises immediately.
    """

    def __init__(
        self,
        page=None,
        max_retries: int = MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
        max_delay: float = RETRY_MAX_DELAY,
    ):
        self.page = page
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    def bind(self, page):
        self.page = page

    def unbind(self):
        self.page = None

    async def fetch_json(self, url: str) -> dict | None:
        if self.page is None:
            raise ScraperNotInitializedError()

        attempt = 0
        while True:
            try:
                data = await self.page.evaluate(JS_FETCH_JSON, url)
                if not isinstance(data, dict):
                    raise ValueError(f"expected a JSON object, got {type(data).__name__}")
                return data
            except Exception as e:
                if attempt >= self.max_retries:
                    logger.error("Fetch failed after %d retries: %s", self.max_retries, e)
                    return None
                delay = backoff_delay(attempt, self.base_delay, self.max_delay)
                logger.warning(
                    "Fetch failed, retrying in %.1fs (attempt %d/%d): %s",
                    delay, attempt + 1, self.max_retries, e,
                )
                await asyncio.sleep(delay)
                attempt += 1
