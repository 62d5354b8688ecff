from __future__ import annotations

from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from release_calendar.core.config import settings


class ExternalAPIError(Exception):
    pass


async def fetch_json(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    method: str = "GET",
    data: dict | None = None,
    content: str | None = None,
) -> Any:
    """Request a provider endpoint and decode its JSON body.

    Transport errors and 5xx responses are retried with jittered backoff;
    4xx responses raise ``httpx.HTTPStatusError`` immediately. A body that is
    not JSON raises ``ExternalAPIError``, like a 5xx.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max(settings.http_retry_attempts, 1)),
        wait=wait_exponential_jitter(initial=1, max=8),
        retry=retry_if_exception_type((httpx.TransportError, ExternalAPIError)),
        reraise=True,
    ):
        with attempt:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                response = await client.request(
                    method, url, headers=headers, params=params, data=data, content=content
                )
                if response.status_code >= 500:
                    raise ExternalAPIError(f"Server error {response.status_code}")
                response.raise_for_status()
                try:
                    return response.json()
                except ValueError as exc:
                    raise ExternalAPIError(f"Invalid JSON body from {response.request.url.host}") from exc
    raise ExternalAPIError("Unreachable")
