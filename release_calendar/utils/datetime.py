"""Datetime parsing helpers for ingestion payloads."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, Mapping

Clock = Callable[[], datetime]

_FULL_KANJI_RE = re.compile(r"(\d{4})年(\d{1,2})月(\d{1,2})日")
_MONTH_KANJI_RE = re.compile(r"(\d{4})年(\d{1,2})月")
_NUMERIC_RE = re.compile(r"(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})")


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def _build_date(year: str, month: str, day: str) -> date | None:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_release_date(value: str | None) -> date | None:
    """Parse retailer sales dates into calendar dates.

    Recognized shapes, tried in order:

    - ``2026年12月15日`` (full date with unit markers)
    - ``2026年12月`` or ``2026年12月下旬`` (month only, day defaults to 1)
    - ``2026/3/5`` or ``2026-03-05``

    Returns None when nothing matches or the components do not form a real date.
    """
    if not value:
        return None
    text = value.strip()
    match = _FULL_KANJI_RE.search(text)
    if match:
        return _build_date(*match.groups())
    match = _MONTH_KANJI_RE.search(text)
    if match:
        year, month = match.groups()
        return _build_date(year, month, "1")
    match = _NUMERIC_RE.search(text)
    if match:
        return _build_date(*match.groups())
    return None


def date_from_epoch(seconds: int | float) -> date:
    """Convert epoch seconds to a UTC calendar date."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc).date()


def _epoch_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def select_release_date(
    release_dates: Iterable[Mapping[str, Any]] | None,
    *,
    target_region: int,
    worldwide_region: int,
    fallback_epoch: int | None = None,
) -> date | None:
    """Pick a release date from region-tagged IGDB entries.

    Preference: earliest target-region date, then earliest worldwide date,
    then the item's primary release timestamp, then the earliest date of any
    region.
    """
    by_region: dict[int, list[int]] = {}
    every: list[int] = []
    for entry in release_dates or []:
        if not isinstance(entry, Mapping):
            continue
        stamp = _epoch_or_none(entry.get("date"))
        if stamp is None:
            continue
        every.append(stamp)
        region = entry.get("region")
        if isinstance(region, int):
            by_region.setdefault(region, []).append(stamp)

    for region in (target_region, worldwide_region):
        if by_region.get(region):
            return date_from_epoch(min(by_region[region]))
    fallback = _epoch_or_none(fallback_epoch)
    if fallback is not None:
        return date_from_epoch(fallback)
    if every:
        return date_from_epoch(min(every))
    return None
