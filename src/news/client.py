"""News provider client — top headlines over httpx."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from src.config import AppConfig
from src.errors import ServiceUnavailable, UpstreamError

logger = logging.getLogger(__name__)

# Category value meaning "no topic filter"
ALL_CATEGORIES = "all"


@dataclass
class HeadlinesQuery:
    country: str | None = None
    category: str | None = None
    lang: str | None = None
    max: str | None = None
    q: str | None = None


def build_headline_params(query: HeadlinesQuery, api_key: str) -> dict[str, str]:
    """Map client query parameters onto the provider's query string.

    ``category`` becomes ``topic`` and is dropped for the literal ``all``.
    Parameters the client did not send are not forwarded.
    """
    params: dict[str, str] = {}
    if query.country:
        params["country"] = query.country
    if query.category and query.category.strip().lower() != ALL_CATEGORIES:
        params["topic"] = query.category.strip()
    if query.lang:
        params["lang"] = query.lang
    if query.max:
        params["max"] = query.max
    if query.q:
        params["q"] = query.q
    params["apikey"] = api_key
    return params


class NewsClient:
    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_app_config(cls, config: AppConfig) -> NewsClient:
        return cls(
            api_key=config.news.api_key,
            base_url=config.news.base_url,
            timeout_seconds=config.news.timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key.strip())

    async def headlines(self, query: HeadlinesQuery) -> Any:
        """Fetch top headlines and return the provider's JSON unchanged."""
        if not self.configured:
            logger.error("News API key is not configured")
            raise ServiceUnavailable("News service is not configured.")

        params = build_headline_params(query, self.api_key.strip())
        start_time = time.monotonic()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.get(self.base_url, params=params)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "News headlines call failed (status=%d): %s",
                e.response.status_code,
                e.response.text[:500],
            )
            raise UpstreamError(
                "News service unavailable. Please try again.",
                status_code=502,
                upstream_status=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("News headlines call failed: %s", e)
            raise UpstreamError(
                "News service unavailable. Please try again.", status_code=502
            ) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)
        logger.info("News headlines call ok (latency_ms=%d)", latency_ms)
        return payload
