"""Rakuten Books connectors for Japanese book and game releases.

The search endpoints have no usable "all categories" query, so each adapter
walks a configured list of sub-queries (book genre ids or game hardware
names), one request per entry, sorted by sales and capped at ``hits`` items.
A fixed delay follows every request, including failed ones, and a failed
sub-query never discards what earlier sub-queries collected.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from release_calendar.core.config import settings
from release_calendar.ingestion.base import AdapterResult, BaseAdapter, ErrorKind, StageError
from release_calendar.ingestion.http import ExternalAPIError, fetch_json
from release_calendar.ingestion.observability import IngestionMonitor, ingestion_monitor
from release_calendar.ingestion.throttle import FixedDelayThrottle, Throttle
from release_calendar.models.release import ReleaseKind
from release_calendar.schema.release import ReleaseRecord
from release_calendar.utils.datetime import parse_release_date
from release_calendar.utils.genres import map_rakuten_genre, normalize_hardware, secure_url
from release_calendar.utils.redaction import redact_secrets

logger = logging.getLogger("release_calendar.ingestion.rakuten")

RAKUTEN_API_BASE = "https://app.rakuten.co.jp/services/api"
MAX_HITS = 30


def _as_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _image_url(raw: dict[str, Any]) -> str | None:
    return secure_url(raw.get("largeImageUrl") or raw.get("mediumImageUrl") or raw.get("smallImageUrl"))


class RakutenAdapter(BaseAdapter):
    """Shared search loop for the Rakuten Books family of endpoints."""
    endpoint: str
    query_param: str

    def __init__(
        self,
        app_id: str | None = None,
        affiliate_id: str | None = None,
        *,
        sub_queries: Sequence[str] | None = None,
        hits: int | None = None,
        throttle: Throttle | None = None,
        monitor: IngestionMonitor | None = None,
    ) -> None:
        self.app_id = app_id or settings.rakuten_app_id
        self.affiliate_id = affiliate_id or settings.rakuten_affiliate_id
        self.sub_queries = list(sub_queries if sub_queries is not None else self.configured_sub_queries())
        self.hits = min(max(hits or settings.rakuten_hits, 1), MAX_HITS)
        self.throttle = throttle or FixedDelayThrottle(settings.rakuten_request_delay_seconds)
        self.monitor = monitor or ingestion_monitor

    def configured_sub_queries(self) -> Sequence[str]:
        """Sub-query values used when none are passed explicitly."""
        raise NotImplementedError

    def build_params(self, value: str) -> dict[str, str]:
        """Query parameters for one sub-query."""
        params = {
            "format": "json",
            "applicationId": self.app_id or "",
            self.query_param: value,
            "sort": "sales",
            "hits": str(self.hits),
        }
        if self.affiliate_id:
            params["affiliateId"] = self.affiliate_id
        return params

    def product_url(self, raw: dict[str, Any]) -> str | None:
        if self.affiliate_id and raw.get("affiliateUrl"):
            return raw["affiliateUrl"]
        return raw.get("itemUrl") or None

    @staticmethod
    def extract_items(payload: Any) -> list[dict[str, Any]]:
        """Unwrap ``{"Items": [{"Item": {...}}]}`` (or flat formatVersion=2) payloads."""
        if not isinstance(payload, dict):
            raise ExternalAPIError("Unexpected Rakuten payload")
        items: list[dict[str, Any]] = []
        for entry in payload.get("Items") or []:
            if not isinstance(entry, dict):
                continue
            item = entry.get("Item", entry)
            if isinstance(item, dict):
                items.append(item)
        return items

    async def fetch(self) -> AdapterResult:
        if not self.app_id:
            logger.warning("RAKUTEN_APP_ID not configured; skipping %s", self.source_name)
            return AdapterResult.missing_credentials(self.source_name, "RAKUTEN_APP_ID not configured")

        result = AdapterResult(source_name=self.source_name)
        url = f"{RAKUTEN_API_BASE}{self.endpoint}"
        for value in self.sub_queries:
            try:
                payload = await self.monitor.track(
                    self.source_name,
                    "search",
                    lambda value=value: fetch_json(url, params=self.build_params(value)),
                    context={self.query_param: value},
                )
                self.normalize_all(self.extract_items(payload), result)
            except (httpx.HTTPError, ExternalAPIError) as exc:
                detail = redact_secrets(str(exc))
                logger.warning("Rakuten search failed for %s=%s: %s", self.query_param, value, detail)
                result.errors.append(StageError(ErrorKind.TRANSPORT, f"{self.query_param}={value}", detail))
            except Exception as exc:  # noqa: BLE001
                detail = redact_secrets(f"{exc.__class__.__name__}: {exc}")
                logger.exception("Unexpected error in Rakuten search for %s=%s", self.query_param, value)
                result.errors.append(StageError(ErrorKind.UNEXPECTED, f"{self.query_param}={value}", detail))
            finally:
                await self.throttle.wait()

        logger.info(
            "Found %d %s records (%d raw, %d dropped)",
            len(result.records),
            self.source_name,
            result.raw_count,
            result.dropped,
        )
        return result


class RakutenBooksAdapter(RakutenAdapter):
    source_name = "rakuten_books"
    endpoint = "/BooksBook/Search/20170404"
    query_param = "booksGenreId"

    def configured_sub_queries(self) -> Sequence[str]:
        return settings.rakuten_book_genre_ids

    def convert(self, raw: dict[str, Any]) -> ReleaseRecord | None:
        release_date = parse_release_date(raw.get("salesDate"))
        if release_date is None:
            return None
        return ReleaseRecord(
            kind=ReleaseKind.BOOK,
            title=raw.get("title") or "",
            release_date=release_date,
            genre=map_rakuten_genre(raw.get("booksGenreId")),
            publisher=raw.get("publisherName") or None,
            developer=raw.get("author") or None,
            description=raw.get("itemCaption") or None,
            price=_as_int(raw.get("itemPrice")),
            image_url=_image_url(raw),
            product_url=self.product_url(raw),
            source_name=self.source_name,
            isbn=raw.get("isbn"),
        )


class RakutenGamesAdapter(RakutenAdapter):
    source_name = "rakuten_games"
    endpoint = "/BooksGame/Search/20170404"
    query_param = "hardware"

    def configured_sub_queries(self) -> Sequence[str]:
        return settings.rakuten_game_hardware

    def convert(self, raw: dict[str, Any]) -> ReleaseRecord | None:
        release_date = parse_release_date(raw.get("salesDate"))
        if release_date is None:
            return None
        return ReleaseRecord(
            kind=ReleaseKind.GAME,
            title=raw.get("title") or "",
            release_date=release_date,
            platform=normalize_hardware(raw.get("hardware")),
            publisher=raw.get("label") or None,
            description=raw.get("itemCaption") or None,
            price=_as_int(raw.get("itemPrice")),
            image_url=_image_url(raw),
            product_url=self.product_url(raw),
            source_name=self.source_name,
            jan_code=raw.get("jan"),
        )
