"""Adapter registry for release data providers."""

from __future__ import annotations

from release_calendar.core.config import Settings, settings as default_settings
from release_calendar.ingestion.base import BaseAdapter
from release_calendar.ingestion.igdb import IGDBAdapter
from release_calendar.ingestion.observability import IngestionMonitor
from release_calendar.ingestion.rakuten import RakutenBooksAdapter, RakutenGamesAdapter
from release_calendar.ingestion.throttle import FixedDelayThrottle, Throttle
from release_calendar.ingestion.token_cache import TokenCache
from release_calendar.utils.datetime import Clock, utcnow

PROVIDER_ORDER = ("rakuten_books", "rakuten_games", "igdb")


def build_adapters(
    *,
    settings: Settings | None = None,
    token_cache: TokenCache | None = None,
    throttle: Throttle | None = None,
    monitor: IngestionMonitor | None = None,
    clock: Clock = utcnow,
) -> list[BaseAdapter]:
    """Return adapters in the fixed order a sync run visits them.

    Both Rakuten adapters share one throttle so the delay also separates the
    last book request from the first game request.
    """
    config = settings or default_settings
    cache = token_cache or TokenCache(
        config.igdb_client_id,
        config.igdb_client_secret,
        clock=clock,
        safety_margin_seconds=config.token_safety_margin_seconds,
    )
    rakuten_throttle = throttle or FixedDelayThrottle(config.rakuten_request_delay_seconds)
    rakuten_options = {
        "hits": config.rakuten_hits,
        "throttle": rakuten_throttle,
        "monitor": monitor,
    }
    return [
        RakutenBooksAdapter(
            config.rakuten_app_id,
            config.rakuten_affiliate_id,
            sub_queries=config.rakuten_book_genre_ids,
            **rakuten_options,
        ),
        RakutenGamesAdapter(
            config.rakuten_app_id,
            config.rakuten_affiliate_id,
            sub_queries=config.rakuten_game_hardware,
            **rakuten_options,
        ),
        IGDBAdapter(
            cache,
            config.igdb_client_id,
            region_codes=config.igdb_region_codes,
            target_region=config.igdb_target_region,
            worldwide_region=config.igdb_worldwide_region,
            window_days=config.igdb_window_days,
            limit=config.igdb_result_limit,
            clock=clock,
            monitor=monitor,
        ),
    ]


__all__ = ["PROVIDER_ORDER", "build_adapters"]
