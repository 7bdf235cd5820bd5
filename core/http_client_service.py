# core/http_client_service.py
"""Perform HTTP I/O for review oracle providers.

This module provides a small HTTP layer used by the oracle client. It
centralizes retry behavior and response handling so call sites do not
re-implement network concerns.

Notes:
    - Retries are applied for timeouts, transport errors, 429 and 5xx responses.
    - Other 4xx responses (bad key, bad request) fail immediately.
"""

import asyncio
from typing import Any

import httpx
import structlog

import config

logger = structlog.get_logger(__name__)


class HTTPClientService:
    """Perform JSON POST requests with retries."""

    def __init__(self, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize the HTTP client.

        Args:
            timeout: Request timeout in seconds. Defaults to the configured value.
            transport: Optional transport override, e.g. ``httpx.MockTransport`` in tests.
        """
        effective_timeout = timeout if timeout is not None else config.HTTPX_TIMEOUT
        self._client = httpx.AsyncClient(timeout=effective_timeout, transport=transport)
        self.request_count = 0
        self._stats = {
            "total_requests": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "retry_attempts": 0,
        }

        logger.debug(f"HTTPClientService initialized with timeout={effective_timeout}s")

    async def aclose(self) -> None:
        """Close the underlying HTTP client and release resources."""
        await self._client.aclose()
        logger.debug("HTTPClientService closed")

    async def post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        max_retries: int | None = None,
    ) -> httpx.Response:
        """POST a JSON payload with retry behavior.

        Args:
            url: Target URL for the request.
            payload: JSON payload to send.
            headers: Optional HTTP headers.
            params: Optional query parameters.
            max_retries: Maximum attempts. When omitted, defaults to the
                configured value.

        Returns:
            The successful HTTP response.

        Raises:
            httpx.TimeoutException: When all attempts time out.
            httpx.HTTPStatusError: When a non-retryable status occurs or retries are
                exhausted.
            httpx.RequestError: When the request fails and retries are exhausted.
        """
        self._stats["total_requests"] += 1
        self.request_count += 1

        effective_headers = headers or {}
        effective_max_retries = max(1, max_retries if max_retries is not None else config.LLM_RETRY_ATTEMPTS)

        last_exception: Exception | None = None

        for attempt in range(effective_max_retries):
            try:
                logger.debug(f"HTTP POST to {url} (attempt {attempt + 1}/{effective_max_retries})")

                response = await self._client.post(url, json=payload, headers=effective_headers, params=params)
                response.raise_for_status()

                self._stats["successful_requests"] += 1
                logger.debug(f"HTTP POST successful: {response.status_code}")
                return response

            except httpx.TimeoutException as e:
                last_exception = e
                logger.warning(f"HTTP timeout (attempt {attempt + 1}): {e}")

            except httpx.HTTPStatusError as e:
                last_exception = e
                status_code = e.response.status_code
                response_text = e.response.text[:200]

                logger.warning(f"HTTP status error (attempt {attempt + 1}): {status_code} - {response_text}")

                # Don't retry on client errors (except 429 rate limit)
                if 400 <= status_code < 500 and status_code != 429:
                    logger.error(f"Non-retryable client error {status_code}, aborting")
                    break

            except httpx.RequestError as e:
                last_exception = e
                logger.warning(f"HTTP request error (attempt {attempt + 1}): {e}")

            if attempt < effective_max_retries - 1:
                delay = config.LLM_RETRY_DELAY_SECONDS * (2**attempt)
                logger.info(f"Retrying in {delay:.2f}s due to: {type(last_exception).__name__}")
                await asyncio.sleep(delay)
                self._stats["retry_attempts"] += 1

        self._stats["failed_requests"] += 1
        logger.error(f"HTTP POST failed after {effective_max_retries} attempts: {last_exception}")

        if last_exception:
            raise last_exception
        raise httpx.RequestError("HTTP request failed with no specific error")

    def get_statistics(self) -> dict[str, Any]:
        """Return HTTP request statistics for monitoring."""
        total = self._stats["total_requests"]
        return {
            **self._stats,
            "success_rate": (self._stats["successful_requests"] / total * 100) if total > 0 else 0,
            "failure_rate": (self._stats["failed_requests"] / total * 100) if total > 0 else 0,
            "avg_retries_per_request": (self._stats["retry_attempts"] / total) if total > 0 else 0,
        }
