from __future__ import annotations

from datetime import date
from typing import Any

import httpx
import pytest

from release_calendar.ingestion.base import ErrorKind
from release_calendar.ingestion.igdb import IGDBAdapter
from release_calendar.models.release import ReleaseKind
from release_calendar.samples.ingestion import load_ingestion_sample


class StubTokenCache:
    """Token cache stand-in that hands out numbered tokens."""

    def __init__(self, client_id: str | None = "client-abc", tokens: list[str | None] | None = None) -> None:
        self.client_id = client_id
        self._tokens = list(tokens if tokens is not None else ["token-1", "token-2"])
        self.invalidations = 0

    async def get_token(self) -> str | None:
        return self._tokens[0] if self._tokens else None

    def invalidate(self) -> None:
        self.invalidations += 1
        self._tokens.pop(0)


def _unauthorized() -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.igdb.com/v4/games")
    return httpx.HTTPStatusError(
        "Client error '401 Unauthorized'", request=request, response=httpx.Response(401, request=request)
    )


def _stub_fetch(monkeypatch: pytest.MonkeyPatch, responses: list[Any], calls: list[dict[str, Any]]) -> None:
    async def fake_fetch_json(url: str, **kwargs: Any) -> Any:
        calls.append({"url": url, **kwargs})
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr("release_calendar.ingestion.igdb.fetch_json", fake_fetch_json)


@pytest.mark.asyncio
async def test_igdb_adapter_normalizes_sample(monkeypatch: pytest.MonkeyPatch, clock, monitor) -> None:
    calls: list[dict[str, Any]] = []
    _stub_fetch(monkeypatch, [load_ingestion_sample("igdb_games")], calls)
    adapter = IGDBAdapter(StubTokenCache(), clock=clock, monitor=monitor)

    result = await adapter.fetch()

    assert result.errors == []
    assert result.raw_count == 3
    assert result.dropped == 1
    first, second = result.records

    assert first.kind == ReleaseKind.GAME
    assert first.igdb_id == 101
    assert first.title == "Skyward Relay"
    # The Japanese release wins over the earlier release in another region.
    assert first.release_date == date(2026, 2, 16)
    assert first.platform == "Nintendo Switch, PC (Microsoft Windows)"
    assert first.genre == "Platform"
    assert first.developer == "Lantern Works"
    assert first.publisher == "Northwind Publishing"
    assert first.image_url == "https://images.igdb.com/igdb/image/upload/t_cover_big/co101.jpg"
    assert first.critic_score == 88
    assert first.user_score == 82
    assert first.price is None
    assert first.source_name == "igdb"

    assert second.igdb_id == 102
    assert second.release_date == date(2026, 2, 25)
    assert second.platform == "PlayStation 5"
    assert second.image_url is None

    call = calls[0]
    assert call["method"] == "POST"
    assert call["headers"]["Client-ID"] == "client-abc"
    assert call["headers"]["Authorization"] == "Bearer token-1"


def test_query_covers_window_regions_and_limit(clock) -> None:
    adapter = IGDBAdapter(StubTokenCache(), clock=clock, region_codes=[5, 8], window_days=90, limit=100)

    query = adapter.build_query()

    start = int(clock().timestamp())
    end = start + 90 * 86400
    assert query.startswith("fields name,summary,cover.url,")
    assert f"release_dates.date >= {start}" in query
    assert f"release_dates.date <= {end}" in query
    assert "release_dates.region = (5,8)" in query
    assert "sort release_dates.date asc;" in query
    assert query.endswith("limit 100;")


@pytest.mark.asyncio
async def test_unauthorized_response_refreshes_token_once(monkeypatch: pytest.MonkeyPatch, clock, monitor) -> None:
    calls: list[dict[str, Any]] = []
    _stub_fetch(monkeypatch, [_unauthorized(), load_ingestion_sample("igdb_games")], calls)
    token_cache = StubTokenCache()
    adapter = IGDBAdapter(token_cache, clock=clock, monitor=monitor)

    result = await adapter.fetch()

    assert token_cache.invalidations == 1
    assert [call["headers"]["Authorization"] for call in calls] == ["Bearer token-1", "Bearer token-2"]
    assert len(result.records) == 2
    assert result.errors == []


@pytest.mark.asyncio
async def test_repeated_unauthorized_is_a_transport_error(monkeypatch: pytest.MonkeyPatch, clock, monitor) -> None:
    calls: list[dict[str, Any]] = []
    _stub_fetch(monkeypatch, [_unauthorized(), _unauthorized()], calls)
    adapter = IGDBAdapter(StubTokenCache(), clock=clock, monitor=monitor)

    result = await adapter.fetch()

    assert len(calls) == 2
    assert result.records == []
    assert result.errors[0].kind == ErrorKind.TRANSPORT
    assert result.errors[0].operation == "upcoming_games"
    snapshot = await monitor.snapshot()
    assert snapshot["igdb"]["upcoming_games"]["failed"] == 1


@pytest.mark.asyncio
async def test_missing_token_skips_provider(monkeypatch: pytest.MonkeyPatch, clock, monitor) -> None:
    calls: list[dict[str, Any]] = []
    _stub_fetch(monkeypatch, [], calls)
    adapter = IGDBAdapter(StubTokenCache(tokens=[]), clock=clock, monitor=monitor)

    result = await adapter.fetch()

    assert result.skipped is True
    assert result.errors[0].kind == ErrorKind.MISSING_CREDENTIALS
    assert calls == []
    assert await monitor.snapshot() == {}


@pytest.mark.asyncio
async def test_missing_client_id_skips_provider(monkeypatch: pytest.MonkeyPatch, clock, monitor) -> None:
    calls: list[dict[str, Any]] = []
    _stub_fetch(monkeypatch, [], calls)
    adapter = IGDBAdapter(StubTokenCache(client_id=None), clock=clock, monitor=monitor)

    result = await adapter.fetch()

    assert result.skipped is True
    assert calls == []


@pytest.mark.asyncio
async def test_non_list_payload_is_recorded(monkeypatch: pytest.MonkeyPatch, clock, monitor) -> None:
    calls: list[dict[str, Any]] = []
    _stub_fetch(monkeypatch, [{"message": "unexpected"}], calls)
    adapter = IGDBAdapter(StubTokenCache(), clock=clock, monitor=monitor)

    result = await adapter.fetch()

    assert result.records == []
    assert result.errors[0].kind == ErrorKind.TRANSPORT
    assert "Unexpected IGDB payload" in result.errors[0].detail


def test_convert_falls_back_to_first_release_date(clock) -> None:
    adapter = IGDBAdapter(StubTokenCache(), clock=clock)

    record = adapter.convert({"id": 7, "name": "Quiet Fields", "first_release_date": 1772000000})

    assert record is not None
    assert record.release_date == date(2026, 2, 25)
    assert record.platform is None
    assert record.critic_score is None


@pytest.mark.asyncio
async def test_malformed_entries_are_dropped_not_fatal(monkeypatch: pytest.MonkeyPatch, clock, monitor) -> None:
    payload = load_ingestion_sample("igdb_games")
    payload.append(None)
    payload.append("not-a-game")
    payload.append(
        {
            "id": 104,
            "name": "Odd Dates",
            "release_dates": [None, "soon", {"date": 1772000000, "region": 5}],
            "involved_companies": [{"company": "Unnamed Studio", "developer": True}],
        }
    )
    calls: list[dict[str, Any]] = []
    _stub_fetch(monkeypatch, [payload], calls)
    adapter = IGDBAdapter(StubTokenCache(), clock=clock, monitor=monitor)

    result = await adapter.fetch()

    assert result.errors == []
    assert result.raw_count == 6
    assert result.dropped == 3
    assert [record.igdb_id for record in result.records] == [101, 102, 104]
    odd = result.records[-1]
    assert odd.release_date == date(2026, 2, 25)
    assert odd.developer is None


@pytest.mark.asyncio
async def test_token_lost_during_refresh_is_a_transport_error(
    monkeypatch: pytest.MonkeyPatch, clock, monitor
) -> None:
    calls: list[dict[str, Any]] = []
    _stub_fetch(monkeypatch, [_unauthorized()], calls)
    adapter = IGDBAdapter(StubTokenCache(tokens=["token-1"]), clock=clock, monitor=monitor)

    result = await adapter.fetch()

    assert len(calls) == 1
    assert result.skipped is False
    assert result.errors[0].kind == ErrorKind.TRANSPORT
    assert "token unavailable after refresh" in result.errors[0].detail
