"""
HTTP Transport for the OSDF transfer client.

Handles HTTP communication with the director and origins. Redirects are
never followed, and transfer requests are retried on transient failures.
"""

import random
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from osdf_transfer.exceptions import ConnectionFailedError
from osdf_transfer.logging import get_logger, log_http_request, log_http_response

logger = get_logger("http")


@dataclass
class RetryConfig:
    """Configuration for automatic retry behavior on transfers."""

    max_retries: int = 1
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [500, 502, 503, 504])
    max_backoff: float = 60.0  # Maximum backoff time in seconds
    jitter: float = 0.1  # Jitter factor (0.1 = ±10%)
    respect_retry_after: bool = True


class HTTPTransport:
    """
    HTTP transport layer shared by discovery and transfers.

    Handles:
    - Redirect following disabled on every request
    - A default timeout so a stalled peer cannot hang the process
    - Exponential backoff with jitter for transient transfer failures
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize HTTP transport.

        Args:
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
            transport: Optional httpx transport (e.g. ``httpx.MockTransport`` in tests)
        """
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

        # Following redirects opens the client up to SSRF.
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=False,
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "HTTPTransport":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        content: Any = None,
        stream: bool = False,
        attempt: int = 0,
    ) -> httpx.Response:
        """
        Send a single request without retrying.

        With ``stream=True`` the body is left unread; the caller must close
        the response.

        Raises:
            httpx.TransportError: On network failures
        """
        log_http_request(method, url, dict(headers or {}), attempt)
        request = self._client.build_request(method, url, headers=headers, content=content)
        started = time.monotonic()
        response = self._client.send(request, stream=stream)
        log_http_response(
            response.status_code,
            url,
            dict(response.headers),
            (time.monotonic() - started) * 1000,
        )
        return response

    def execute_with_retry(
        self, request_fn: Callable[[int], httpx.Response]
    ) -> httpx.Response:
        """
        Execute a request with automatic retry on transient errors.

        ``request_fn`` receives the attempt number and must send a fresh
        request each time (rewinding any request body). The final response is
        returned even when its status is an error; 4xx responses are never
        retried.

        Raises:
            ConnectionFailedError: If every attempt failed at the network level
        """
        for attempt in range(self.retry_config.max_retries + 1):
            try:
                response = request_fn(attempt)
            except httpx.TransportError as e:
                if attempt >= self.retry_config.max_retries:
                    raise ConnectionFailedError(str(e) or type(e).__name__) from e
                wait_time = self._get_backoff_time(attempt)
                logger.warning(
                    "Request failed (%s), retrying in %.1fs", type(e).__name__, wait_time
                )
                time.sleep(wait_time)
                continue

            if not self._should_retry(response.status_code, attempt):
                return response

            response.close()
            retry_after = response.headers.get("Retry-After")
            wait_time = self._get_backoff_time(attempt, retry_after)
            logger.warning(
                "Got status %d, retrying in %.1fs", response.status_code, wait_time
            )
            time.sleep(wait_time)

        # max_retries < 0 leaves the loop without an attempt
        raise ConnectionFailedError("No request attempts were made")

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        """
        Determine if a request should be retried.

        Args:
            status_code: HTTP status code
            attempt: Current attempt number (0-indexed)
        """
        if attempt >= self.retry_config.max_retries:
            return False

        return status_code in self.retry_config.retry_on

    def _get_backoff_time(self, attempt: int, retry_after: str | None = None) -> float:
        """
        Calculate backoff time for retry.

        Exponential backoff ``backoff_factor ** attempt`` with ±jitter, capped
        at ``max_backoff``. A numeric ``Retry-After`` value takes precedence
        (still capped); anything else falls back to exponential backoff.

        Args:
            attempt: Current attempt number (0-indexed)
            retry_after: Value of the Retry-After header, if present
        """
        if retry_after and self.retry_config.respect_retry_after:
            try:
                seconds = float(retry_after)
            except ValueError:
                seconds = -1.0
            if seconds >= 0:
                return min(seconds, self.retry_config.max_backoff)

        base_wait = self.retry_config.backoff_factor ** attempt

        jitter_range = base_wait * self.retry_config.jitter
        jitter = random.uniform(-jitter_range, jitter_range)
        wait_time = base_wait + jitter

        return min(wait_time, self.retry_config.max_backoff)
