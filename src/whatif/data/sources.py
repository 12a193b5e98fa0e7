"""Upstream price sources.

This module provides an abstract interface for sources of daily adjusted
closes and concrete implementations for Yahoo Finance and CSV files. Sources
return raw, unvalidated rows; turning them into domain objects is the series
provider's job.
"""

from __future__ import annotations

import csv
import logging
from abc import ABC, abstractmethod
from datetime import date, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from whatif.dates import coerce_row_date, format_iso_date
from whatif.exceptions import ConfigError, ProviderUnavailableError

if TYPE_CHECKING:
    from whatif.config import Settings

logger = logging.getLogger(__name__)

RawRow = dict[str, Any]


class PriceSource(ABC):
    """Abstract base class for price sources.

    All source implementations must inherit from this class and implement
    the `fetch_rows` method.
    """

    name: str = "unknown"

    @abstractmethod
    def fetch_rows(
        self,
        ticker: str,
        range_start: date,
        range_end: date,
        interval: str = "1d",
    ) -> list[RawRow]:
        """Fetch raw price rows for a ticker.

        :param ticker: Symbol to fetch.
        :param range_start: First calendar day to fetch (inclusive).
        :param range_end: Last calendar day to fetch (inclusive).
        :param interval: Bar interval; only daily data is used.
        :returns: Rows carrying at least ``date`` and ``adj_close`` keys. Values
            are not validated and may be missing.
        :raises ProviderUnavailableError: If the upstream call fails.
        """
        ...


class YahooPriceSource(PriceSource):
    """Price source that fetches adjusted closes from Yahoo Finance via yfinance.

    :param source_params: Optional parameters for configuring the source.
        - timeout: Request timeout in seconds (default: 30)
    """

    name = "yahoo"

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        self.params = source_params or {}
        self.timeout = self.params.get("timeout", 30)

    def fetch_rows(
        self,
        ticker: str,
        range_start: date,
        range_end: date,
        interval: str = "1d",
    ) -> list[RawRow]:
        """Fetch daily history from Yahoo Finance.

        :param ticker: Symbol to fetch.
        :param range_start: First calendar day (inclusive).
        :param range_end: Last calendar day (inclusive).
        :param interval: yfinance interval string.
        :returns: Rows with ``date`` (exchange-local timestamp) and ``adj_close``.
        :raises ProviderUnavailableError: If yfinance is missing or the fetch fails.
        """
        try:
            import yfinance as yf
        except ImportError as e:
            raise ProviderUnavailableError(
                "Price provider error",
                detail="yfinance is not installed. Install it with: pip install yfinance",
            ) from e

        # yfinance treats `end` as exclusive
        start_str = format_iso_date(range_start)
        end_str = format_iso_date(range_end + timedelta(days=1))

        try:
            df = yf.Ticker(ticker).history(
                start=start_str,
                end=end_str,
                interval=interval,
                auto_adjust=False,
                actions=False,
                raise_errors=True,
                timeout=self.timeout,
            )
        except Exception as e:
            raise ProviderUnavailableError("Price provider error", detail=str(e)) from e

        if df is None or df.empty:
            return []

        has_adj_close = "Adj Close" in df.columns
        if not has_adj_close:
            logger.warning(f"Yahoo response for {ticker} has no 'Adj Close' column")

        return [
            {
                "date": timestamp,
                "adj_close": row["Adj Close"] if has_adj_close else None,
            }
            for timestamp, row in df.iterrows()
        ]


class CSVPriceSource(PriceSource):
    """Price source that reads adjusted closes from a CSV file.

    Expected CSV format (default columns):
    - date: ISO date (or datetime) string
    - adj_close: Adjusted closing price
    - symbol: Optional; when the column exists, rows are filtered by ticker

    :param source_params: Required parameters:
        - file_path: Path to the CSV file.
        Optional parameters:
        - date_col: Column name for the date (default: "date")
        - adj_close_col: Column name for the adjusted close (default: "adj_close")
        - symbol_col: Column name for the symbol (default: "symbol")
        - delimiter: CSV delimiter (default: ",")
    """

    name = "csv"

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        self.params = source_params or {}
        self.file_path = self.params.get("file_path")
        if not self.file_path:
            raise ConfigError("CSVPriceSource requires 'file_path' in source_params")

        self.date_col = self.params.get("date_col", "date")
        self.adj_close_col = self.params.get("adj_close_col", "adj_close")
        self.symbol_col = self.params.get("symbol_col", "symbol")
        self.delimiter = self.params.get("delimiter", ",")

    def fetch_rows(
        self,
        ticker: str,
        range_start: date,
        range_end: date,
        interval: str = "1d",
    ) -> list[RawRow]:
        """Read rows for ``ticker`` within the range from the CSV file.

        Rows whose date cannot be read are passed through untouched and left
        for normalization to drop.

        :raises ProviderUnavailableError: If the file is missing or unreadable.
        """
        path = Path(self.file_path)
        if not path.exists():
            raise ProviderUnavailableError(
                "Price provider error", detail=f"CSV file not found: {self.file_path}"
            )

        rows: list[RawRow] = []
        try:
            with open(path, newline="", encoding="utf-8") as f:
                reader = csv.DictReader(f, delimiter=self.delimiter)
                for record in reader:
                    symbol = record.get(self.symbol_col)
                    if symbol and symbol.strip().upper() != ticker.upper():
                        continue

                    raw_date = record.get(self.date_col)
                    row_date = coerce_row_date(raw_date)
                    if row_date is not None and not range_start <= row_date <= range_end:
                        continue

                    rows.append(
                        {"date": raw_date, "adj_close": record.get(self.adj_close_col)}
                    )
        except csv.Error as e:
            raise ProviderUnavailableError(
                "Price provider error", detail=f"CSV parsing error: {e}"
            ) from e
        except OSError as e:
            raise ProviderUnavailableError(
                "Price provider error", detail=f"Failed to read CSV file: {e}"
            ) from e

        return rows


def resolve_price_source(settings: Settings) -> PriceSource | None:
    """Construct a price source from configuration.

    :param settings: Settings with data_source and source_params.
    :returns: PriceSource instance, or None in stub mode (no upstream).
    :raises ConfigError: If data_source type is unrecognized.
    """
    source_type = settings.data_source.lower()

    if source_type == "yahoo":
        return YahooPriceSource(settings.source_params)
    elif source_type == "csv":
        return CSVPriceSource(settings.source_params)
    elif source_type == "stub":
        return None
    else:
        raise ConfigError(
            f"Unrecognized data source type: '{settings.data_source}'. "
            f"Supported types: yahoo, csv, stub"
        )


__all__ = [
    "RawRow",
    "PriceSource",
    "YahooPriceSource",
    "CSVPriceSource",
    "resolve_price_source",
]
