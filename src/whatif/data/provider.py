"""Series provider: trading-day-aligned adjusted-close series.

Resolves a ticker and a requested calendar window into a
:class:`~whatif.types.PriceSeries` whose endpoints are real trading days:

- the upstream is asked for a buffered window (10 days before the start,
  2 days after the end) so a weekend or holiday endpoint still has trading
  data nearby;
- the effective start snaps forward to the first trading day on or after the
  requested start, the effective end snaps backward to the last trading day on
  or before the requested end;
- anything that leaves fewer than two points is an explicit failure, never a
  partial result.
"""

from __future__ import annotations

import asyncio
import logging
import math
from bisect import bisect_left, bisect_right
from datetime import date
from typing import Any, Iterable, cast

from whatif.data.cache import CacheKey, NullSeriesCache, SeriesCache
from whatif.data.sources import PriceSource
from whatif.dates import buffered_window, coerce_row_date, parse_iso_date
from whatif.exceptions import (InsufficientDataError, NoDataError,
                               ProviderUnavailableError)
from whatif.types import PricePoint, PriceSeries, Ticker

logger = logging.getLogger(__name__)

STUB_START_PRICE = 10.0
STUB_END_PRICE = 15.0


def _coerce_price(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


def normalize_rows(rows: Iterable[Any] | None) -> list[PricePoint]:
    """Turn raw upstream rows into ascending, date-unique price points.

    Rows that are not mappings, or lack a usable date or a finite positive
    adjusted close, are dropped. When several rows share a date the last one
    wins.

    :param rows: Raw rows with ``date`` and ``adj_close`` keys.
    :returns: Price points sorted by date.
    """
    by_date: dict[date, PricePoint] = {}
    dropped = 0

    for row in rows or ():
        if not isinstance(row, dict):
            dropped += 1
            continue
        row_date = coerce_row_date(row.get("date"))
        price = _coerce_price(row.get("adj_close"))
        if row_date is None or price is None:
            dropped += 1
            continue
        by_date[row_date] = PricePoint(date=row_date, adj_close=price)

    if dropped:
        logger.debug(f"Dropped {dropped} unusable upstream rows")

    return [by_date[d] for d in sorted(by_date)]


def snap_forward_index(points: list[PricePoint], target: date) -> int | None:
    """Index of the first point dated on or after ``target``."""
    idx = bisect_left([p.date for p in points], target)
    return idx if idx < len(points) else None


def snap_backward_index(points: list[PricePoint], target: date) -> int | None:
    """Index of the last point dated on or before ``target``."""
    idx = bisect_right([p.date for p in points], target) - 1
    return idx if idx >= 0 else None


class SeriesProvider:
    """Fetches, normalizes, snaps and caches adjusted-close series.

    :param source: Upstream price source. May be None only in stub mode.
    :param cache: Series cache shared across requests (None disables caching).
    :param stub: Return a deterministic two-point series instead of calling
        the upstream (development and tests).
    """

    def __init__(
        self,
        source: PriceSource | None,
        cache: SeriesCache | None = None,
        stub: bool = False,
    ) -> None:
        if source is None and not stub:
            raise ValueError("a price source is required unless stub mode is on")
        self.source = source
        self.cache = cache if cache is not None else NullSeriesCache()
        self.stub = stub

    @property
    def source_name(self) -> str:
        if self.stub or self.source is None:
            return "stub"
        return self.source.name

    async def get_adjusted_series(
        self,
        ticker: str,
        start_date: str,
        end_date: str,
    ) -> PriceSeries:
        """Return the trading-day-aligned series for a requested window.

        :param ticker: Symbol to fetch.
        :param start_date: Requested start, ``YYYY-MM-DD``.
        :param end_date: Requested end, ``YYYY-MM-DD``.
        :returns: Series from the snapped start to the snapped end, inclusive.
        :raises InvalidDateError: If either date is malformed.
        :raises ProviderUnavailableError: If the upstream fetch fails.
        :raises NoDataError: If the upstream has no usable rows.
        :raises InsufficientDataError: If snapping leaves fewer than two points.
        """
        start = parse_iso_date(start_date)
        end = parse_iso_date(end_date)

        if self.stub:
            return self._stub_series(ticker, start, end)

        key = CacheKey(ticker, start_date, end_date)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Series cache hit for {key}")
            return cached

        logger.debug(f"Series cache miss for {key}")
        range_start, range_end = buffered_window(start, end)

        source = cast(PriceSource, self.source)
        try:
            rows = await asyncio.to_thread(
                source.fetch_rows, ticker, range_start, range_end, "1d"
            )
        except ProviderUnavailableError as e:
            logger.warning(f"Upstream fetch failed for {ticker}: {e.detail or e}")
            raise
        except Exception as e:
            logger.warning(f"Upstream fetch failed for {ticker}: {e}")
            raise ProviderUnavailableError("Price provider error", detail=str(e)) from e

        points = normalize_rows(rows)
        if not points:
            raise NoDataError("No data for ticker/date range")

        start_idx = snap_forward_index(points, start)
        end_idx = snap_backward_index(points, end)
        if start_idx is None or end_idx is None or end_idx <= start_idx:
            raise InsufficientDataError(
                "Insufficient data after trading-day snap",
                detail=(
                    f"{len(points)} points in {range_start}..{range_end}, "
                    f"start_idx={start_idx}, end_idx={end_idx}"
                ),
            )

        series = PriceSeries(
            ticker=Ticker(ticker),
            points=tuple(points[start_idx : end_idx + 1]),
        )
        self.cache.set(key, series)
        logger.info(
            f"Loaded {len(series)} points for {ticker} "
            f"({series.effective_start} to {series.effective_end})"
        )
        return series

    @staticmethod
    def _stub_series(ticker: str, start: date, end: date) -> PriceSeries:
        if end <= start:
            raise InsufficientDataError("Insufficient data after trading-day snap")
        return PriceSeries(
            ticker=Ticker(ticker),
            points=(
                PricePoint(date=start, adj_close=STUB_START_PRICE),
                PricePoint(date=end, adj_close=STUB_END_PRICE),
            ),
        )


__all__ = [
    "STUB_START_PRICE",
    "STUB_END_PRICE",
    "normalize_rows",
    "snap_forward_index",
    "snap_backward_index",
    "SeriesProvider",
]
