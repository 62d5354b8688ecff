from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from release_calendar.ingestion.base import AdapterResult, BaseAdapter, ErrorKind
from release_calendar.ingestion.rakuten import RakutenBooksAdapter, RakutenGamesAdapter
from release_calendar.models.release import ReleaseKind
from release_calendar.schema.release import ReleaseRecord
from release_calendar.services.release_store import StoreError
from release_calendar.services.release_writer import ReleaseWriter
from release_calendar.services.sync_service import run_daily_sync


def _books_payload(price: int) -> dict[str, Any]:
    return {
        "Items": [
            {
                "Item": {
                    "title": "Example Title",
                    "salesDate": "2026年03月10日",
                    "itemPrice": price,
                    "isbn": "9784000000000",
                }
            }
        ]
    }


def _stub_fetch(monkeypatch: pytest.MonkeyPatch, handler) -> None:
    async def fake_fetch_json(url: str, *, params: dict[str, Any] | None = None, **kwargs: Any) -> Any:
        return handler(url, params or {})

    monkeypatch.setattr("release_calendar.ingestion.rakuten.fetch_json", fake_fetch_json)


class ExplodingAdapter(BaseAdapter):
    source_name = "exploding"

    async def fetch(self) -> AdapterResult:
        raise RuntimeError("provider blew up")


@pytest.mark.asyncio
async def test_daily_sync_end_to_end(monkeypatch: pytest.MonkeyPatch, store, clock, throttle, monitor) -> None:
    prices = iter([4950, 4200])
    _stub_fetch(monkeypatch, lambda url, params: _books_payload(next(prices)))
    adapter = RakutenBooksAdapter("app-123", sub_queries=["001004008"], throttle=throttle, monitor=monitor)
    writer = ReleaseWriter(store, clock=clock)
    first_run = clock()

    summary = await run_daily_sync([adapter], writer, clock=clock)

    assert summary.total_saved == 1
    stored = await store.get("9784000000000")
    assert stored.kind == ReleaseKind.BOOK
    assert stored.title == "Example Title"
    assert stored.release_date == date(2026, 3, 10)
    assert stored.price == 4950
    assert stored.created_at == first_run
    assert stored.updated_at == first_run

    clock.advance(days=1)
    await run_daily_sync([adapter], writer, clock=clock)

    stored = await store.get("9784000000000")
    assert stored.id == "9784000000000"
    assert stored.price == 4200
    assert stored.created_at == first_run
    assert stored.updated_at == clock()


@pytest.mark.asyncio
async def test_provider_failure_does_not_stop_later_providers(
    monkeypatch: pytest.MonkeyPatch, store, clock, throttle, monitor
) -> None:
    def handler(url: str, params: dict[str, Any]) -> Any:
        if "hardware" in params:
            raise RuntimeError("games endpoint exploded")
        return _books_payload(4950)

    _stub_fetch(monkeypatch, handler)
    books = RakutenBooksAdapter("app-123", sub_queries=["001004008"], throttle=throttle, monitor=monitor)
    games = RakutenGamesAdapter("app-123", sub_queries=["Nintendo Switch"], throttle=throttle, monitor=monitor)
    writer = ReleaseWriter(store, clock=clock)

    summary = await run_daily_sync([books, ExplodingAdapter(), games], writer, monitor=monitor, clock=clock)

    assert summary.total_saved == 1
    assert await store.get("9784000000000") is not None
    assert [provider.provider for provider in summary.providers] == ["rakuten_books", "exploding", "rakuten_games"]
    assert summary.error_kinds() == [ErrorKind.UNEXPECTED, ErrorKind.UNEXPECTED]
    assert summary.providers[1].errors[0].detail == "RuntimeError: provider blew up"
    # The games throttle still ran after its failed request.
    assert throttle.waits == 2
    assert summary.metrics["rakuten_games"]["search"]["failed"] == 1
    assert summary.finished_at == clock()


@pytest.mark.asyncio
async def test_missing_credentials_are_summarized(store, clock, throttle, monitor) -> None:
    adapter = RakutenBooksAdapter(sub_queries=["001004008"], throttle=throttle, monitor=monitor)
    writer = ReleaseWriter(store, clock=clock)

    summary = await run_daily_sync([adapter], writer, clock=clock)

    payload = summary.as_dict()
    assert payload["total_saved"] == 0
    assert payload["providers"][0]["skipped"] is True
    assert payload["providers"][0]["errors"][0]["kind"] == "missing_credentials"


@pytest.mark.asyncio
async def test_failure_outside_provider_guard_is_reraised(store, clock) -> None:
    def adapters():
        raise RuntimeError("adapter registry unavailable")
        yield  # pragma: no cover

    writer = ReleaseWriter(store, clock=clock)

    with pytest.raises(RuntimeError, match="adapter registry unavailable"):
        await run_daily_sync(adapters(), writer, clock=clock)


class TwoBooksAdapter(BaseAdapter):
    source_name = "rakuten_books"

    async def fetch(self) -> AdapterResult:
        result = AdapterResult(source_name=self.source_name)
        first = _books_payload(4950)["Items"][0]["Item"]
        second = dict(first, isbn="9784000000017", title="Second Title", itemPrice=1980)
        self.normalize_all([first, second], result)
        return result

    def convert(self, raw: dict[str, Any]) -> ReleaseRecord | None:
        return ReleaseRecord(
            kind=ReleaseKind.BOOK,
            title=raw["title"],
            release_date=date(2026, 3, 10),
            price=raw["itemPrice"],
            source_name=self.source_name,
            isbn=raw["isbn"],
        )


class LockedRowStore:
    def __init__(self, locked_id: str) -> None:
        self.locked_id = locked_id
        self.saved: dict[str, ReleaseRecord] = {}

    async def get(self, record_id: str) -> ReleaseRecord | None:
        if record_id == self.locked_id:
            raise StoreError("database is locked")
        return self.saved.get(record_id)

    async def put(self, record: ReleaseRecord) -> None:
        self.saved[record.id] = record


@pytest.mark.asyncio
async def test_store_read_failure_counts_as_failed_write(clock) -> None:
    store = LockedRowStore("9784000000000")
    writer = ReleaseWriter(store, clock=clock)

    summary = await run_daily_sync([TwoBooksAdapter()], writer, clock=clock)

    provider = summary.providers[0]
    assert provider.fetched == 2
    assert provider.saved == 1
    assert provider.failed_writes == 1
    assert summary.error_kinds() == [ErrorKind.PERSISTENCE]
    assert list(store.saved) == ["9784000000017"]
