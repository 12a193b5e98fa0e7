"""Shared fixtures for backtester tests."""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from whatif.data.cache import SeriesCache
from whatif.data.sources import PriceSource
from whatif.exceptions import ProviderUnavailableError


class StaticPriceSource(PriceSource):
    """Price source serving fixed rows and recording every call."""

    name = "static"

    def __init__(self, rows: list[Any] | None = None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.calls: list[tuple[str, date, date, str]] = []

    def fetch_rows(
        self,
        ticker: str,
        range_start: date,
        range_end: date,
        interval: str = "1d",
    ) -> list[Any]:
        self.calls.append((ticker, range_start, range_end, interval))
        if self.error is not None:
            raise self.error
        return list(self.rows)


class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_rows(prices: dict[str, float]) -> list[dict[str, Any]]:
    """Build raw upstream rows from an ISO-date -> price mapping."""
    return [{"date": d, "adj_close": p} for d, p in prices.items()]


# Trading days around the 2024 Easter weekend (Good Friday 2024-03-29 closed)
EASTER_2024 = {
    "2024-03-25": 100.0,
    "2024-03-26": 101.0,
    "2024-03-27": 102.0,
    "2024-03-28": 103.0,
    "2024-04-01": 104.0,
    "2024-04-02": 105.0,
    "2024-04-03": 106.0,
    "2024-04-04": 107.0,
    "2024-04-05": 108.0,
    "2024-04-08": 109.0,
}


@pytest.fixture
def easter_rows() -> list[dict[str, Any]]:
    return make_rows(EASTER_2024)


@pytest.fixture
def static_source(easter_rows: list[dict[str, Any]]) -> StaticPriceSource:
    return StaticPriceSource(easter_rows)


@pytest.fixture
def failing_source() -> StaticPriceSource:
    return StaticPriceSource(
        error=ProviderUnavailableError("Price provider error", detail="429 Too Many Requests")
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> SeriesCache:
    return SeriesCache(max_entries=3, ttl_seconds=60, clock=clock)
