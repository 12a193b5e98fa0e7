"""Backtest orchestration.

Ties the series provider and the metrics engine together and packages the
result with its transparency record.
"""

from __future__ import annotations

import logging

from whatif.data.provider import SeriesProvider
from whatif.exceptions import DataValidationError
from whatif.metrics import compute_series_metrics, value_trajectory
from whatif.types import (Assumptions, BacktestRequest, BacktestResult,
                          Cadence)

logger = logging.getLogger(__name__)


class BacktestService:
    """Runs backtests against a shared series provider.

    Example usage::

        from whatif.config import build_provider, load_settings
        from whatif.service import BacktestService
        from whatif.types import BacktestRequest

        provider = build_provider(load_settings())
        service = BacktestService(provider)
        result = await service.run(
            BacktestRequest(
                ticker="TSLA",
                amount=100,
                start_date="2016-01-04",
                end_date="2016-12-30",
            )
        )
        print(f"Final value: {result.final_value:,.2f}")

    :param provider: Series provider (owns the cache).
    """

    def __init__(self, provider: SeriesProvider) -> None:
        self.provider = provider

    async def run(self, request: BacktestRequest) -> BacktestResult:
        """Run one backtest.

        :param request: Validated backtest request.
        :returns: Result with series, metrics, trajectory and assumptions.
        :raises WhatIfError: Any provider failure, unchanged.
        :raises DataValidationError: If the cadence is not supported.
        """
        if request.cadence is not Cadence.LUMP_SUM:
            raise DataValidationError(f"Unsupported cadence: {request.cadence}")

        series = await self.provider.get_adjusted_series(
            request.ticker, request.start_date, request.end_date
        )
        metrics = compute_series_metrics(series, request.amount, request.fee_bps)

        logger.info(
            f"Backtest {request.ticker} {series.effective_start}..{series.effective_end}: "
            f"final_value={metrics.final_value:.2f} cagr={metrics.cagr:.4f}"
        )

        return BacktestResult(
            series=series,
            shares=metrics.shares,
            final_value=metrics.final_value,
            total_return_pct=metrics.total_return_pct,
            cagr=metrics.cagr,
            trajectory=value_trajectory(series, metrics.shares),
            assumptions=Assumptions(
                fees_bps=request.fee_bps,
                effective_start_date=series.effective_start,
                effective_end_date=series.effective_end,
                source=self.provider.source_name,
            ),
        )


async def run_backtest(
    request: BacktestRequest,
    provider: SeriesProvider,
) -> BacktestResult:
    """Run a single backtest with a throwaway service."""
    return await BacktestService(provider).run(request)


__all__ = ["BacktestService", "run_backtest"]
