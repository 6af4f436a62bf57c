"""HTTP GET with exponential backoff on rate-limit (429) responses."""

import logging
import time
from typing import Callable, Optional

import requests

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429

_DEFAULT_MAX_RETRIES = 5
_DEFAULT_INITIAL_DELAY = 0.5  # seconds, doubled after every retry


class RateLimitedFetcher:
    """Wraps a raw GET, retrying only when the source answers 429.

    Any other response, success or hard error, is returned immediately.
    When retries run out the last 429 response is returned, not raised:
    callers decide what a persistent failure status means.
    """

    def __init__(
        self,
        get: Optional[Callable[..., requests.Response]] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = _DEFAULT_MAX_RETRIES,
        initial_delay: float = _DEFAULT_INITIAL_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if get is None:
            session = requests.Session()
            if api_key:
                session.headers["x-api-key"] = api_key
            get = session.get
        self._get = get
        self.timeout = timeout
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._sleep = sleep

    def fetch(self, url: str, params: Optional[dict] = None) -> requests.Response:
        """GET `url` and return the response, backing off on 429."""
        delay = self.initial_delay
        attempt = 0
        while True:
            logger.debug(
                "GET %s (attempt %d)",
                url,
                attempt + 1,
                extra={"event": "request_attempt", "url": url, "attempt": attempt + 1},
            )
            response = self._get(url, params=params, timeout=self.timeout)

            if response.status_code != RATE_LIMIT_STATUS:
                return response

            if attempt >= self.max_retries:
                logger.warning(
                    "Rate limit persists after %d retries: %s",
                    self.max_retries,
                    url,
                    extra={"event": "retries_exhausted", "url": url, "attempt": attempt + 1},
                )
                return response

            logger.warning(
                "429 received for %s, retrying in %.2fs (retry %d/%d)",
                url,
                delay,
                attempt + 1,
                self.max_retries,
                extra={"event": "retry_scheduled", "url": url, "attempt": attempt + 1, "delay": delay},
            )
            self._sleep(delay)
            delay *= 2
            attempt += 1
