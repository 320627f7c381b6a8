"""HTTP client with bounded retries and exponential backoff."""

from __future__ import annotations

import asyncio
import typing as typ

import httpx

from swaggerbot.logging import BoundLogger, bound_logger

from .errors import FetchError, HttpError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    Sleep: typ.TypeAlias = cabc.Callable[[float], cabc.Awaitable[None]]

_TAG = "http.call"


class RetryingHTTPClient:
    """Send HTTP requests, retrying server errors and network failures.

    Client errors (4xx) fail immediately. Server errors (5xx) and transport
    exceptions are retried until ``max_attempts`` requests have been made,
    sleeping ``2 ** attempt * backoff_base_s`` seconds after each failed
    attempt. The final failure propagates to the caller.

    Parameters
    ----------
    http_client
        Optional ``httpx.AsyncClient``, mainly for tests. When omitted the
        instance creates and owns one using ``timeout_s``.
    timeout_s
        Per-request timeout for an owned client.
    max_attempts
        Default number of attempts per call.
    backoff_base_s
        Multiplier applied to ``2 ** attempt`` to compute backoff delays.
    sleep
        Awaitable sleep function; tests pass a recorder.
    logger
        Logger used for retry and failure events.

    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = 30.0,
        max_attempts: int = 3,
        backoff_base_s: float = 1.0,
        sleep: Sleep = asyncio.sleep,
        logger: BoundLogger | None = None,
    ) -> None:
        """Initialise the client and its retry policy."""
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout_s,
            follow_redirects=True,
        )
        self._max_attempts = max_attempts
        self._backoff_base_s = backoff_base_s
        self._sleep = sleep
        self._log = logger or bound_logger(__name__)

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    def backoff_delay(self, attempt: int) -> float:
        """Return the delay in seconds after failed ``attempt`` (1-based)."""
        return float(2**attempt) * self._backoff_base_s

    async def call(  # noqa: PLR0913
        self,
        method: str,
        url: str,
        *,
        headers: cabc.Mapping[str, str] | None = None,
        params: cabc.Mapping[str, str | int] | None = None,
        json: object | None = None,
        max_attempts: int | None = None,
    ) -> str:
        """Perform a request and return the response body as text.

        Raises
        ------
        HttpError
            For a 4xx response, or a 5xx response on the final attempt.
        FetchError
            When the final attempt fails with a transport error.

        """
        attempts = max_attempts or self._max_attempts
        attempt = 1
        while True:
            self._log.debug(
                _TAG,
                f"Attempting {method} request",
                url=url,
                attempt=attempt,
                max_attempts=attempts,
            )
            try:
                response = await self._client.request(
                    method, url, headers=headers, params=params, json=json
                )
            except httpx.RequestError as exc:
                if attempt >= attempts:
                    self._log.error(
                        _TAG, "All retry attempts failed", url=url, error=str(exc)
                    )
                    raise FetchError.network_error(url, str(exc)) from exc
                await self._back_off(url, attempt, "Request failed, retrying", exc)
                attempt += 1
                continue

            if response.is_success:
                self._log.debug(
                    _TAG,
                    "Request successful",
                    url=url,
                    status=response.status_code,
                    data_length=len(response.text),
                )
                return response.text

            error = HttpError.from_status(
                url, response.status_code, response.reason_phrase, response.text
            )
            self._log.error(
                _TAG,
                "HTTP error",
                url=url,
                status=error.status_code,
                status_text=error.status_text,
                body=error.body_preview,
            )
            if not error.is_retryable or attempt >= attempts:
                raise error
            await self._back_off(url, attempt, "Retrying after delay", error)
            attempt += 1

    async def _back_off(
        self, url: str, attempt: int, message: str, exc: BaseException
    ) -> None:
        delay = self.backoff_delay(attempt)
        self._log.warning(
            _TAG, message, url=url, attempt=attempt, delay_s=delay, error=str(exc)
        )
        await self._sleep(delay)
