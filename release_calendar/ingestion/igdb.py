"""IGDB connector for upcoming global game releases."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Sequence

import httpx

from release_calendar.core.config import settings
from release_calendar.ingestion.base import AdapterResult, BaseAdapter, ErrorKind, StageError
from release_calendar.ingestion.http import ExternalAPIError, fetch_json
from release_calendar.ingestion.observability import IngestionMonitor, ingestion_monitor
from release_calendar.ingestion.token_cache import TokenCache
from release_calendar.models.release import ReleaseKind
from release_calendar.schema.release import ReleaseRecord
from release_calendar.utils.datetime import Clock, select_release_date, utcnow
from release_calendar.utils.genres import secure_url
from release_calendar.utils.redaction import redact_secrets

logger = logging.getLogger("release_calendar.ingestion.igdb")

GAME_FIELDS = (
    "name",
    "summary",
    "cover.url",
    "genres.name",
    "platforms.name",
    "first_release_date",
    "release_dates.date",
    "release_dates.region",
    "rating",
    "aggregated_rating",
    "involved_companies.company.name",
    "involved_companies.developer",
    "involved_companies.publisher",
)


def _rounded(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return round(value)


def _cover_url(payload: dict[str, Any]) -> str | None:
    cover = payload.get("cover") or {}
    url = cover.get("url") if isinstance(cover, dict) else None
    if not url:
        return None
    return secure_url(url.replace("t_thumb", "t_cover_big"))


def _names(entries: Any) -> list[str]:
    return [entry["name"] for entry in entries or [] if isinstance(entry, dict) and entry.get("name")]


def _companies(payload: dict[str, Any], role: str) -> str | None:
    companies = [
        entry.get("company")
        for entry in payload.get("involved_companies") or []
        if isinstance(entry, dict) and entry.get(role)
    ]
    names = [company["name"] for company in companies if isinstance(company, dict) and company.get("name")]
    return ", ".join(names) or None


class IGDBAdapter(BaseAdapter):
    """IGDB games query bounded by an upcoming release-date window."""
    source_name = "igdb"
    _game_url = "https://api.igdb.com/v4/games"

    def __init__(
        self,
        token_cache: TokenCache,
        client_id: str | None = None,
        *,
        region_codes: Sequence[int] | None = None,
        target_region: int | None = None,
        worldwide_region: int | None = None,
        window_days: int | None = None,
        limit: int | None = None,
        clock: Clock = utcnow,
        monitor: IngestionMonitor | None = None,
    ) -> None:
        self.token_cache = token_cache
        self.client_id = client_id or token_cache.client_id or settings.igdb_client_id
        self.region_codes = list(region_codes if region_codes is not None else settings.igdb_region_codes)
        self.target_region = settings.igdb_target_region if target_region is None else target_region
        self.worldwide_region = settings.igdb_worldwide_region if worldwide_region is None else worldwide_region
        self.window_days = window_days or settings.igdb_window_days
        self.limit = min(limit or settings.igdb_result_limit, 500)
        self._clock = clock
        self.monitor = monitor or ingestion_monitor

    def build_query(self) -> str:
        """Apicalypse body for releases between now and the end of the window."""
        now = self._clock()
        start = int(now.timestamp())
        end = int((now + timedelta(days=self.window_days)).timestamp())
        regions = ",".join(str(code) for code in self.region_codes)
        clauses = [f"release_dates.date >= {start}", f"release_dates.date <= {end}"]
        if regions:
            clauses.append(f"release_dates.region = ({regions})")
        return (
            f"fields {','.join(GAME_FIELDS)};"
            f" where {' & '.join(clauses)};"
            " sort release_dates.date asc;"
            f" limit {self.limit};"
        )

    async def _authenticated_post(self, query: str, token: str) -> list[dict[str, Any]]:
        """POST an IGDB query, refreshing the token once on a 401."""
        for attempt in range(2):
            headers = {
                "Client-ID": self.client_id or "",
                "Authorization": f"Bearer {token}",
                "Content-Type": "text/plain",
            }
            try:
                payload = await fetch_json(self._game_url, method="POST", headers=headers, content=query)
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code == 401 and attempt == 0:
                    logger.info("IGDB rejected cached token; refreshing")
                    self.token_cache.invalidate()
                    token = await self.token_cache.get_token()
                    if not token:
                        raise ExternalAPIError("IGDB token unavailable after refresh") from exc
                    continue
                raise
            if not isinstance(payload, list):
                raise ExternalAPIError("Unexpected IGDB payload")
            return payload
        raise ExternalAPIError("IGDB request failed after refreshing token")

    async def fetch(self) -> AdapterResult:
        if not self.client_id:
            logger.warning("IGDB client id not configured; skipping %s", self.source_name)
            return AdapterResult.missing_credentials(self.source_name, "IGDB client id not configured")
        token = await self.token_cache.get_token()
        if not token:
            logger.warning("No IGDB token available; skipping %s", self.source_name)
            return AdapterResult.missing_credentials(self.source_name, "IGDB token unavailable")

        result = AdapterResult(source_name=self.source_name)
        query = self.build_query()
        try:
            payload = await self.monitor.track(
                self.source_name,
                "upcoming_games",
                lambda: self._authenticated_post(query, token),
                context={"window_days": self.window_days, "regions": self.region_codes},
            )
        except (httpx.HTTPError, ExternalAPIError) as exc:
            detail = redact_secrets(str(exc))
            logger.warning("IGDB upcoming_games query failed: %s", detail)
            result.errors.append(StageError(ErrorKind.TRANSPORT, "upcoming_games", detail))
            return result

        self.normalize_all(payload, result)
        logger.info(
            "Found %d igdb records (%d raw, %d dropped)", len(result.records), result.raw_count, result.dropped
        )
        return result

    def convert(self, raw: dict[str, Any]) -> ReleaseRecord | None:
        igdb_id = raw.get("id")
        if not isinstance(igdb_id, int):
            return None
        release_date = select_release_date(
            raw.get("release_dates"),
            target_region=self.target_region,
            worldwide_region=self.worldwide_region,
            fallback_epoch=raw.get("first_release_date"),
        )
        if release_date is None:
            return None
        platforms = _names(raw.get("platforms"))
        genres = _names(raw.get("genres"))
        return ReleaseRecord(
            kind=ReleaseKind.GAME,
            title=raw.get("name") or "",
            release_date=release_date,
            platform=", ".join(platforms) or None,
            genre=genres[0] if genres else None,
            publisher=_companies(raw, "publisher"),
            developer=_companies(raw, "developer"),
            description=raw.get("summary") or None,
            image_url=_cover_url(raw),
            critic_score=_rounded(raw.get("aggregated_rating")),
            user_score=_rounded(raw.get("rating")),
            source_name=self.source_name,
            igdb_id=igdb_id,
        )
