"""
Rate-limited HTTP client for the Taiwan Laws & Regulations Database OpenAPI.

Official source:
    https://law.moj.gov.tw/api/swagger

Requests are paced by a shared RateLimiter (1.2s between request starts by
default), retried with exponential backoff on 429/5xx and network errors, and
finally handed to curl when the in-process client keeps failing.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Protocol

import requests

from .errors import FetchError
from .process import run_bounded

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "twlaw/0.1 (real-legislation-ingestion)"
MIN_REQUEST_INTERVAL = 1.2
DEFAULT_MAX_RETRIES = 3
CURL_MAX_BYTES = 256 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Binary response of a completed fetch."""

    status: int
    body: bytes
    content_type: str
    url: str


class RateLimiter:
    """
    Ensure a minimum delay between the start of consecutive requests.

    One instance is shared by every fetch in a run. It keeps mutable state and
    is not safe for concurrent callers.
    """

    def __init__(
        self,
        min_interval: float = MIN_REQUEST_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = max(0.0, min_interval)
        self._clock = clock
        self._sleep = sleep
        self._last_request_at: float | None = None

    def wait(self) -> None:
        """Sleep as needed, then record the start of a new request."""
        now = self._clock()
        if self._last_request_at is not None:
            elapsed = now - self._last_request_at
            if elapsed < self.min_interval:
                self._sleep(self.min_interval - elapsed)
                now = self._clock()
        self._last_request_at = now


class FallbackFetcher(Protocol):
    """Last-resort fetch used after in-process retries are exhausted."""

    def fetch(self, url: str) -> FetchResult: ...


class CurlFetcher:
    """Fetch a URL by shelling out to curl, capturing binary stdout up to ``max_bytes``."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        retries: int = 3,
        retry_delay: int = 2,
        max_bytes: int = CURL_MAX_BYTES,
        executable: str = "curl",
    ) -> None:
        self.user_agent = user_agent
        self.retries = retries
        self.retry_delay = retry_delay
        self.max_bytes = max_bytes
        self.executable = executable

    def command(self, url: str) -> list[str]:
        return [
            self.executable,
            "-fL",
            "--retry", str(self.retries),
            "--retry-delay", str(self.retry_delay),
            "-A", self.user_agent,
            url,
        ]

    def fetch(self, url: str) -> FetchResult:
        try:
            completed = run_bounded(self.command(url), self.max_bytes)
        except OSError as e:
            raise FetchError(f"Cannot run {self.executable}: {e}") from e

        if completed.exceeded:
            raise FetchError(
                f"{self.executable} output exceeds {self.max_bytes} bytes for {url}"
            )
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise FetchError(
                f"{self.executable} exited with status {completed.returncode}"
                + (f": {stderr}" if stderr else "")
            )
        return FetchResult(status=200, body=completed.stdout, content_type="", url=url)


def _is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


def _backoff_seconds(attempt: int) -> int:
    """2s, 4s, 8s, ... for attempts 0, 1, 2, ..."""
    return 2 ** (attempt + 1)


class RateLimitedFetcher:
    """HTTP fetcher combining pacing, exponential backoff and a curl fallback."""

    def __init__(
        self,
        limiter: RateLimiter,
        session: requests.Session | None = None,
        fallback: FallbackFetcher | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.limiter = limiter
        self.session = session or requests.Session()
        self.fallback = fallback if fallback is not None else CurlFetcher(user_agent=user_agent)
        self.user_agent = user_agent
        self.timeout = timeout
        self._sleep = sleep

    def fetch_binary(self, url: str, max_retries: int = DEFAULT_MAX_RETRIES) -> FetchResult:
        """
        Fetch a binary payload under the shared rate limit.

        Retryable statuses (429, 5xx) are retried until ``max_retries`` is
        reached, after which the last response is returned as-is. Any other
        status is returned immediately. Network errors on every attempt lead to
        a single fallback fetch.

        Args:
            url: Resource to download
            max_retries: Retries after the first attempt

        Returns:
            FetchResult with status, body, content type and final URL

        Raises:
            FetchError: If network retries and the fallback all fail
        """
        self.limiter.wait()

        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                response = self.session.get(
                    url,
                    headers={"User-Agent": self.user_agent, "Accept": "*/*"},
                    allow_redirects=True,
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                last_error = e
                if attempt < max_retries:
                    backoff = _backoff_seconds(attempt)
                    logger.info(f"  Network error for {url}; retrying in {backoff}s...")
                    self._sleep(backoff)
                continue

            if _is_retryable_status(response.status_code) and attempt < max_retries:
                backoff = _backoff_seconds(attempt)
                logger.info(f"  HTTP {response.status_code} for {url}; retrying in {backoff}s...")
                self._sleep(backoff)
                continue

            return FetchResult(
                status=response.status_code,
                body=response.content,
                content_type=response.headers.get("content-type", ""),
                url=response.url or url,
            )

        try:
            logger.info(f"  Falling back to external fetch for {url}")
            return self.fallback.fetch(url)
        except FetchError as e:
            last_error = e

        raise FetchError(f"Failed to fetch {url} after {max_retries} retries: {last_error}") from last_error
