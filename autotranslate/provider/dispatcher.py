"""
Rate-limited request dispatcher

Serializes outbound provider requests with a minimum inter-request delay and
retries transient failures:
- HTTP 429: the inter-request delay doubles, then the request is retried
- HTTP 5xx: fixed retry delay, then the request is retried
- other 4xx, transport errors, unparseable bodies: raised immediately

The dispatcher performs no text transformation.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from autotranslate.logger import get_logger
from autotranslate.provider import deepl
from autotranslate.provider.exceptions import DispatchError, DispatchErrorKind
from autotranslate.provider.markers import MarkerSet

logger = get_logger(__name__)

DEFAULT_DELAY_BETWEEN_REQUESTS = 1000  # ms
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 2000  # ms


@dataclass
class RateState:
    """Per-dispatcher pacing state. Delays are in milliseconds."""
    current_delay: float
    last_request_time: Optional[float] = None


def categorize_status(status_code: int) -> DispatchErrorKind:
    if status_code == 429:
        return DispatchErrorKind.RATE_LIMITED
    if status_code >= 500:
        return DispatchErrorKind.SERVER_ERROR
    return DispatchErrorKind.CLIENT_ERROR


class RateLimitedDispatcher:
    """Sends wire text to the provider under rate-limit discipline."""

    def __init__(
        self,
        api_key: str,
        api_url: str,
        target_language: str,
        source_language: Optional[str] = None,
        delay_between_requests: float = DEFAULT_DELAY_BETWEEN_REQUESTS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        provider_options: Optional[Dict[str, Any]] = None,
        timeout: Any = 30,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        clock: Optional[Callable[[], float]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            api_key: Provider API key
            api_url: Provider translate endpoint
            target_language: Target language code
            source_language: Source language code, or None to let the provider detect it
            delay_between_requests: Base inter-request delay (ms)
            max_retries: Retries for 429 / 5xx responses
            retry_delay: Fixed wait before retrying a 5xx (ms)
            provider_options: Opaque options merged into every payload
            timeout: HTTP timeout config (see deepl.get_httpx_timeout)
            client: Shared httpx.AsyncClient; one is created and owned otherwise
            sleep: Awaitable sleep taking seconds (default asyncio.sleep)
            clock: Monotonic clock in seconds (default time.monotonic)
            logger: Diagnostics logger (default module logger)
        """
        self.api_url = api_url
        self.target_language = target_language
        self.source_language = source_language
        self.base_delay = delay_between_requests
        self.max_retries = max(0, int(max_retries))
        self.retry_delay = retry_delay
        self.provider_options = dict(provider_options or {})
        self.headers = deepl.build_headers(api_key)

        self.markers = MarkerSet.generate()
        self.state = RateState(current_delay=delay_between_requests)

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=deepl.get_httpx_timeout(timeout))
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic
        self._lock = asyncio.Lock()
        self.logger = logger or get_logger(__name__)

    @property
    def current_delay(self) -> float:
        return self.state.current_delay

    async def close(self):
        if self._owns_client:
            await self._client.aclose()

    async def _apply_request_delay(self) -> None:
        """Wait until current_delay has passed since the previous request, then stamp it."""
        async with self._lock:
            last = self.state.last_request_time
            if last is not None:
                elapsed_ms = (self._clock() - last) * 1000
                if elapsed_ms < self.state.current_delay:
                    wait_ms = self.state.current_delay - elapsed_ms
                    self.logger.debug(f"Rate limit pacing: waiting {wait_ms:.0f}ms")
                    await self._sleep(wait_ms / 1000)
            self.state.last_request_time = self._clock()

    async def _post(self, wire_text: str) -> httpx.Response:
        body = deepl.build_payload(
            wire_text,
            target_language=self.target_language,
            source_language=self.source_language,
            provider_options=self.provider_options,
        )
        response = await self._client.post(self.api_url, headers=self.headers, json=body)
        response.raise_for_status()
        return response

    async def send(self, wire_text: str) -> str:
        """
        Send one wire text and return the provider's raw translation.

        Raises:
            DispatchError: Client errors, transport errors, invalid bodies, or
                429/5xx once max_retries is exhausted.
        """
        retry_count = 0
        while True:
            await self._apply_request_delay()
            try:
                response = await self._post(wire_text)
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                kind = categorize_status(status_code)

                if kind is DispatchErrorKind.RATE_LIMITED and retry_count < self.max_retries:
                    # Exponential backoff on the pacing delay itself
                    self.state.current_delay = self.state.current_delay * 2
                    self.logger.warning(
                        f"DeepL API rate limit reached. Retrying in {self.state.current_delay:.0f}ms "
                        f"(retry {retry_count + 1}/{self.max_retries})"
                    )
                    await self._sleep(self.state.current_delay / 1000)
                    retry_count += 1
                    continue

                if kind is DispatchErrorKind.SERVER_ERROR and retry_count < self.max_retries:
                    self.logger.warning(
                        f"DeepL API server error ({status_code}). Retrying in {self.retry_delay:.0f}ms "
                        f"(retry {retry_count + 1}/{self.max_retries})"
                    )
                    await self._sleep(self.retry_delay / 1000)
                    retry_count += 1
                    continue

                raise DispatchError(
                    f"DeepL API error ({status_code}): {deepl.describe_http_error(e.response)}",
                    kind=kind,
                    status_code=status_code,
                    details={"retries": retry_count},
                ) from e
            except httpx.TimeoutException as e:
                raise DispatchError(
                    "DeepL API request timeout",
                    kind=DispatchErrorKind.NETWORK_ERROR,
                ) from e
            except httpx.RequestError as e:
                raise DispatchError(
                    f"DeepL API request failed: {e}",
                    kind=DispatchErrorKind.NETWORK_ERROR,
                ) from e

            # Backoff does not outlive the incident that caused it
            self.state.current_delay = self.base_delay
            return deepl.parse_translation(response)
