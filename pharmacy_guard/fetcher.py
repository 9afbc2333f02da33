"""
Source Fetcher
==============
Downloads the duty page. One attempt per run with a bounded timeout;
the scheduler's next tick is the retry.
"""
import logging

import requests

from .errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
                  '(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'fr-FR,fr;q=0.9,en-US;q=0.8,en;q=0.7',
}


class SourceFetcher:

    def __init__(self, url, timeout=15, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    @classmethod
    def from_config(cls, config):
        return cls(config.SCRAPER_URL, timeout=config.SCRAPER_TIMEOUT)

    def fetch(self):
        """Return the page HTML. Raises FetchError on network error, timeout or non-2xx."""
        logger.info("[Scraper] Fetching pharmacies from: %s", self.url)
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout as e:
            raise FetchError(f"Timed out after {self.timeout}s fetching {self.url}") from e
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else 'error'
            raise FetchError(f"HTTP {status} fetching {self.url}") from e
        except requests.RequestException as e:
            raise FetchError(f"Error fetching {self.url}: {e}") from e
        return response.text
