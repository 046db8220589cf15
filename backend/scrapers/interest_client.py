"""
interest.co.nz Page Client - raw HTML fetching for the rate tables

Pages:
- mortgage-rates:       GET /borrowing
- personal-loan-rates:  GET /borrowing/personal-loan
- car-loan-rates:       GET /borrowing/car-loan
- credit-card-rates:    GET /borrowing/credit-cards

Retry policy:
- Network errors and statuses 408/429/500/502/503/504 are retried
- 3 retries, fixed 1.5s delay, 20s timeout per request
- Any other non-2xx status fails immediately

Usage:
    from scrapers.interest_client import InterestScraperClient

    client = InterestScraperClient()
    html = client.get_page('mortgage-rates')
"""

import time
import logging
from typing import Dict, Optional
from urllib.parse import urljoin

import requests

from constants import CAR_LOAN_RATES, CREDIT_CARD_RATES, MORTGAGE_RATES, PERSONAL_LOAN_RATES
from services.errors import FetchError

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

BASE_URL = "https://www.interest.co.nz/"
USER_AGENT = "ratesapi.nz scraper (+https://ratesapi.nz; contact: ops@ratesapi.nz)"

PAGE_PATHS: Dict[str, str] = {
    MORTGAGE_RATES: "borrowing",
    PERSONAL_LOAN_RATES: "borrowing/personal-loan",
    CAR_LOAN_RATES: "borrowing/car-loan",
    CREDIT_CARD_RATES: "borrowing/credit-cards",
}

# Retry configuration
MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 1.5
RETRY_ON_STATUS = frozenset([408, 429, 500, 502, 503, 504])
REQUEST_TIMEOUT_SECONDS = 20


class InterestScraperClient:
    """
    HTML client for the interest.co.nz borrowing pages.

    Example:
        client = InterestScraperClient()
        html = client.get_page('credit-card-rates')
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        session: Optional[requests.Session] = None,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9",
        })

    def url_for(self, data_type: str) -> str:
        try:
            path = PAGE_PATHS[data_type]
        except KeyError:
            raise ValueError(f"No source page for data type {data_type!r}")
        return urljoin(self.base_url, path)

    def get_page(self, data_type: str) -> str:
        """
        Fetch the HTML page for a data type.

        Returns:
            Response body text

        Raises:
            FetchError: If the page could not be fetched after retries
        """
        return self._get(self.url_for(data_type))

    def _get(self, url: str) -> str:
        start_time = time.time()
        attempts = self.max_retries + 1
        last_error: Optional[str] = None
        last_status: Optional[int] = None

        for attempt in range(attempts):
            try:
                response = self._session.get(url, timeout=self.timeout)
                logger.debug(f"GET {url} -> {response.status_code}")

                if response.ok:
                    duration = time.time() - start_time
                    logger.info(
                        f"Fetched {url}: {len(response.text)} chars, "
                        f"{duration:.2f}s, retries={attempt}"
                    )
                    return response.text

                last_status = response.status_code
                last_error = f"Request failed with status {response.status_code}"
                if response.status_code not in RETRY_ON_STATUS:
                    raise FetchError(last_error, url=url, status_code=last_status)

            except requests.exceptions.RequestException as e:
                last_error = str(e)
                last_status = None

            if attempt < attempts - 1:
                logger.warning(
                    f"GET {url} attempt {attempt + 1}/{attempts} failed: {last_error}. "
                    f"Retrying in {self.retry_delay:.1f}s"
                )
                time.sleep(self.retry_delay)

        raise FetchError(
            f"Failed after {attempts} attempts: {last_error}",
            url=url,
            status_code=last_status,
        )

    def close(self):
        self._session.close()
