"""Lump-sum metrics engine.

Pure functions: no I/O and no domain errors. Inputs are expected to have been
validated upstream (positive amount, positive prices, fee within 0-10000 bps).

The day-count convention (365.25-day years) and the CAGR year floor are fixed
constants.
"""

from __future__ import annotations

import math
from datetime import date

from whatif.dates import elapsed_days
from whatif.types import FrozenModel, PriceSeries, ValuePoint

BPS_PER_UNIT = 10_000
DAYS_PER_YEAR = 365.25
MIN_YEARS = 1e-9


class LumpSumMetrics(FrozenModel):
    """Summary metrics of a lump-sum purchase held to the end of the window.

    :param shares: Shares bought at the start price, net of fees.
    :param final_value: Value of those shares at the end price.
    :param total_return_pct: ``(final_value - amount) / amount``.
    :param cagr: Compound annual growth rate.
    :param elapsed_days: Calendar days between the endpoints (at least 1).
    """

    shares: float
    final_value: float
    total_return_pct: float
    cagr: float
    elapsed_days: int


def fee_multiplier(fee_bps: int) -> float:
    """Fraction of the amount left after a fee given in basis points."""
    return 1 - fee_bps / BPS_PER_UNIT


def total_return_pct(amount: float, final_value: float) -> float:
    """Total return as a signed fraction of the invested amount."""
    return (final_value - amount) / amount


def cagr(amount: float, final_value: float, days: int) -> float:
    """Compound annual growth rate over ``days`` calendar days.

    The year count is floored at :data:`MIN_YEARS` so a same-day window stays
    finite. A growth ratio too large to annualise in float range gives
    ``math.inf``.
    """
    years = days / DAYS_PER_YEAR
    try:
        return (final_value / amount) ** (1 / max(years, MIN_YEARS)) - 1
    except OverflowError:
        return math.inf


def compute_lump_sum(
    amount: float,
    start_price: float,
    end_price: float,
    start_date: date,
    end_date: date,
    fee_bps: int = 0,
) -> LumpSumMetrics:
    """Compute metrics for buying at ``start_price`` and holding to ``end_price``.

    :param amount: Amount paid at the effective start.
    :param start_price: Adjusted close at the effective start.
    :param end_price: Adjusted close at the effective end.
    :param start_date: Effective start date.
    :param end_date: Effective end date.
    :param fee_bps: Purchase fee in basis points.
    :returns: Computed metrics.
    """
    shares = (amount / start_price) * fee_multiplier(fee_bps)
    final_value = shares * end_price
    days = elapsed_days(start_date, end_date)

    return LumpSumMetrics(
        shares=shares,
        final_value=final_value,
        total_return_pct=total_return_pct(amount, final_value),
        cagr=cagr(amount, final_value, days),
        elapsed_days=days,
    )


def compute_series_metrics(
    series: PriceSeries,
    amount: float,
    fee_bps: int = 0,
) -> LumpSumMetrics:
    """Compute lump-sum metrics from the endpoints of an aligned series."""
    return compute_lump_sum(
        amount=amount,
        start_price=series.start_price,
        end_price=series.end_price,
        start_date=series.effective_start,
        end_date=series.effective_end,
        fee_bps=fee_bps,
    )


def value_trajectory(series: PriceSeries, shares: float) -> list[ValuePoint]:
    """Value of a fixed holding on every trading day of the series."""
    return [ValuePoint(date=p.date, value=shares * p.adj_close) for p in series.points]


__all__ = [
    "BPS_PER_UNIT",
    "DAYS_PER_YEAR",
    "MIN_YEARS",
    "LumpSumMetrics",
    "fee_multiplier",
    "total_return_pct",
    "cagr",
    "compute_lump_sum",
    "compute_series_metrics",
    "value_trajectory",
]
