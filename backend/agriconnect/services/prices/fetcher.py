"""
External market price fetcher (FAO FPMA food price API).
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional
import httpx
from agriconnect.core.config import (
    FAO_API_BASE,
    FAO_COUNTRY_CODE,
    PRICE_FETCH_TIMEOUT_SECONDS,
    PRICE_FETCH_MAX_RETRIES,
    PRICE_FETCH_RETRY_DELAY_SECONDS,
)
from agriconnect.core.sync_log import log_api_fetch

logger = logging.getLogger(__name__)

SOURCE_NAME = "FAO FPMA API"


class FAOPriceFetcher:
    """Fetches monthly market prices for one country from FAO FPMA."""

    def __init__(
        self,
        base_url: str = FAO_API_BASE,
        country_code: str = FAO_COUNTRY_CODE,
        timeout: float = PRICE_FETCH_TIMEOUT_SECONDS,
        max_retries: int = PRICE_FETCH_MAX_RETRIES,
        retry_delay: float = PRICE_FETCH_RETRY_DELAY_SECONDS,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize fetcher.

        Args:
            base_url: FPMA API base URL
            country_code: ISO3 country code (e.g., "BWA")
            timeout: Per-attempt timeout in seconds
            max_retries: Maximum number of attempts
            retry_delay: Base backoff delay; attempt N waits retry_delay * N
            client: Optional shared httpx client (a new one is created per attempt otherwise)
            sleep: Sleep function used between attempts
        """
        self.base_url = base_url.rstrip("/")
        self.country_code = country_code
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = client
        self._sleep = sleep

    @property
    def url(self) -> str:
        return f"{self.base_url}/PriceMonthly/{self.country_code}"

    def _get(self) -> Any:
        headers = {"Accept": "application/json"}
        if self._client is not None:
            response = self._client.get(self.url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
            response = client.get(self.url, headers=headers)
            response.raise_for_status()
            return response.json()

    @staticmethod
    def _extract_rows(payload: Any) -> List[Dict[str, Any]]:
        """Accept a bare array or an object wrapping it under data/items."""
        if isinstance(payload, dict):
            payload = payload.get("data") or payload.get("items") or []
        if not isinstance(payload, list):
            return []
        return [row for row in payload if isinstance(row, dict)]

    def fetch_external_prices(self) -> Optional[List[Dict[str, Any]]]:
        """
        Fetch raw price rows, retrying with linear backoff.

        Returns:
            List of {commodity, market, price, unit, ...} dicts, or None when
            the source is unavailable or keeps returning nothing
        """
        for attempt in range(1, self.max_retries + 1):
            log_api_fetch(SOURCE_NAME, False, attempt=attempt, status="attempting")
            try:
                rows = self._extract_rows(self._get())
                if rows:
                    log_api_fetch(SOURCE_NAME, True, attempt=attempt, record_count=len(rows))
                    return rows
                log_api_fetch(SOURCE_NAME, False, attempt=attempt, reason="Empty response")
            except Exception as e:
                log_api_fetch(SOURCE_NAME, False, attempt=attempt, error=str(e))

            if attempt < self.max_retries:
                self._sleep(self.retry_delay * attempt)

        logger.info(f"{SOURCE_NAME} unavailable after {self.max_retries} attempts")
        return None
