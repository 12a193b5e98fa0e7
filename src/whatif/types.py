"""Core type definitions for the backtester.

All data models use Pydantic BaseModel for automatic validation, JSON
serialization, and better error messages.
"""

from __future__ import annotations

import datetime as dt
import math
from enum import Enum
from typing import Any, NewType

from pydantic import (AliasChoices, BaseModel, ConfigDict, Field,
                      field_validator, model_validator)

# Type aliases for domain-specific identifiers
Ticker = NewType("Ticker", str)

SNAP_POLICY = "start=next, end=previous"


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class FrozenModel(BaseModel):
    """Base model with frozen (immutable) configuration."""

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Market Data Types
# ---------------------------------------------------------------------------


class PricePoint(FrozenModel):
    """One trading day's split/dividend-adjusted close.

    :param date: Trading day.
    :param adj_close: Adjusted closing price.
    """

    date: dt.date
    adj_close: float = Field(gt=0, allow_inf_nan=False)


class PriceSeries(FrozenModel):
    """Trading-day-aligned adjusted closes over ``[effective_start, effective_end]``.

    Both endpoints are dates that actually traded. A series always holds at
    least two points, in strictly ascending date order.

    :param ticker: Symbol the prices belong to.
    :param points: Price points, oldest first.
    """

    ticker: Ticker
    points: tuple[PricePoint, ...]

    @model_validator(mode="after")
    def _check_ordering(self) -> PriceSeries:
        if len(self.points) < 2:
            raise ValueError("a price series needs at least two points")
        for prev, cur in zip(self.points, self.points[1:]):
            if cur.date <= prev.date:
                raise ValueError(
                    f"price series dates must be strictly ascending "
                    f"({prev.date} then {cur.date})"
                )
        return self

    def __len__(self) -> int:
        return len(self.points)

    @property
    def effective_start(self) -> dt.date:
        return self.points[0].date

    @property
    def effective_end(self) -> dt.date:
        return self.points[-1].date

    @property
    def start_price(self) -> float:
        return self.points[0].adj_close

    @property
    def end_price(self) -> float:
        return self.points[-1].adj_close


# ---------------------------------------------------------------------------
# Request / Result Types
# ---------------------------------------------------------------------------


class Cadence(str, Enum):
    """How the invested amount is deployed."""

    LUMP_SUM = "lump_sum"


class BacktestRequest(FrozenModel):
    """Inputs for a single backtest.

    :param ticker: Symbol to backtest (stripped and upper-cased).
    :param amount: Amount invested at the effective start date.
    :param start_date: Requested start, ``YYYY-MM-DD``.
    :param end_date: Requested end, ``YYYY-MM-DD``.
    :param cadence: Contribution cadence.
    :param fee_bps: One-off purchase fee in basis points (also accepted as
        ``fees_bps``).
    """

    ticker: Ticker = Field(min_length=1)
    amount: float = Field(gt=0, allow_inf_nan=False)
    start_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    end_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    cadence: Cadence = Cadence.LUMP_SUM
    fee_bps: int = Field(
        default=0,
        ge=0,
        le=10_000,
        validation_alias=AliasChoices("fee_bps", "fees_bps"),
    )

    @field_validator("ticker", mode="before")
    @classmethod
    def _normalize_ticker(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _check_window(self) -> BacktestRequest:
        # ISO strings of the same shape sort chronologically
        if self.start_date > self.end_date:
            raise ValueError("start_date must be <= end_date")
        return self


class Assumptions(FrozenModel):
    """Transparency record describing how a result was produced.

    :param adjusted_prices: Prices are split/dividend adjusted.
    :param dividends_reinvested: Dividends are implicitly reinvested.
    :param fees_bps: Fee applied to the purchase, in basis points.
    :param snap_policy: How requested dates map to trading days.
    :param effective_start_date: Trading day the purchase was made.
    :param effective_end_date: Trading day the position was valued.
    :param source: Name of the price source.
    """

    adjusted_prices: bool = True
    dividends_reinvested: bool = True
    fees_bps: int
    snap_policy: str = SNAP_POLICY
    effective_start_date: dt.date
    effective_end_date: dt.date
    source: str


class ValuePoint(FrozenModel):
    """Portfolio value on one trading day.

    :param date: Trading day.
    :param value: Holding value (shares times adjusted close).
    """

    date: dt.date
    value: float


class BacktestResult(FrozenModel):
    """Outcome of a backtest, derived entirely from its request and series.

    :param series: Aligned price series the metrics were computed from.
    :param shares: Shares bought at the effective start, after fees.
    :param final_value: Value of the shares at the effective end.
    :param total_return_pct: Total return as a fraction (0.25 = 25%).
    :param cagr: Compound annual growth rate as a fraction.
    :param trajectory: Realized portfolio value on each trading day.
    :param assumptions: Transparency record.
    """

    series: PriceSeries
    shares: float = Field(ge=0)
    final_value: float = Field(ge=0)
    total_return_pct: float
    cagr: float
    trajectory: list[ValuePoint] = Field(default_factory=list)
    assumptions: Assumptions

    def to_payload(self) -> dict[str, Any]:
        """Render the external JSON shape (ISO date strings, flat series).

        A CAGR too large to represent renders as ``None`` so the payload stays
        valid JSON.
        """
        return {
            "series": [p.model_dump(mode="json") for p in self.series.points],
            "shares": self.shares,
            "final_value": self.final_value,
            "total_return_pct": self.total_return_pct,
            "cagr": self.cagr if math.isfinite(self.cagr) else None,
            "trajectory": [v.model_dump(mode="json") for v in self.trajectory],
            "assumptions": self.assumptions.model_dump(mode="json"),
        }


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

__all__ = [
    "Ticker",
    "SNAP_POLICY",
    "FrozenModel",
    "PricePoint",
    "PriceSeries",
    "Cadence",
    "BacktestRequest",
    "Assumptions",
    "ValuePoint",
    "BacktestResult",
]
