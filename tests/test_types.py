"""Tests for core type definitions."""

from datetime import date

import pytest
from pydantic import ValidationError

from whatif.types import (SNAP_POLICY, Assumptions, BacktestRequest,
                          BacktestResult, Cadence, PricePoint, PriceSeries,
                          Ticker, ValuePoint)


def _series(*points: tuple[date, float]) -> PriceSeries:
    return PriceSeries(
        ticker=Ticker("TSLA"),
        points=tuple(PricePoint(date=d, adj_close=p) for d, p in points),
    )


# ---------------------------------------------------------------------------
# Market Data Types
# ---------------------------------------------------------------------------


class TestPricePoint:
    """Tests for PricePoint."""

    def test_creation_and_attributes(self) -> None:
        point = PricePoint(date=date(2016, 1, 4), adj_close=10.0)

        assert point.date == date(2016, 1, 4)
        assert point.adj_close == 10.0

    def test_is_frozen(self) -> None:
        point = PricePoint(date=date(2016, 1, 4), adj_close=10.0)

        with pytest.raises(ValidationError):
            point.adj_close = 11.0  # type: ignore[misc]

    @pytest.mark.parametrize("price", [0.0, -1.0, float("nan"), float("inf")])
    def test_rejects_non_positive_or_non_finite_price(self, price: float) -> None:
        with pytest.raises(ValidationError):
            PricePoint(date=date(2016, 1, 4), adj_close=price)


class TestPriceSeries:
    """Tests for PriceSeries invariants."""

    def test_endpoints(self) -> None:
        series = _series((date(2016, 1, 4), 10.0), (date(2016, 6, 1), 12.0), (date(2016, 12, 30), 15.0))

        assert len(series) == 3
        assert series.effective_start == date(2016, 1, 4)
        assert series.effective_end == date(2016, 12, 30)
        assert series.start_price == 10.0
        assert series.end_price == 15.0

    def test_requires_two_points(self) -> None:
        with pytest.raises(ValidationError, match="at least two points"):
            _series((date(2016, 1, 4), 10.0))

    def test_rejects_duplicate_dates(self) -> None:
        with pytest.raises(ValidationError, match="strictly ascending"):
            _series((date(2016, 1, 4), 10.0), (date(2016, 1, 4), 11.0))

    def test_rejects_descending_dates(self) -> None:
        with pytest.raises(ValidationError, match="strictly ascending"):
            _series((date(2016, 1, 5), 10.0), (date(2016, 1, 4), 11.0))


# ---------------------------------------------------------------------------
# Request Types
# ---------------------------------------------------------------------------


class TestBacktestRequest:
    """Tests for BacktestRequest validation."""

    def _request(self, **overrides: object) -> BacktestRequest:
        fields: dict[str, object] = {
            "ticker": "tsla",
            "amount": 100,
            "start_date": "2016-01-04",
            "end_date": "2016-12-30",
        }
        fields.update(overrides)
        return BacktestRequest(**fields)  # type: ignore[arg-type]

    def test_defaults(self) -> None:
        request = self._request()

        assert request.ticker == "TSLA"
        assert request.amount == 100.0
        assert request.cadence is Cadence.LUMP_SUM
        assert request.fee_bps == 0

    def test_ticker_is_stripped(self) -> None:
        assert self._request(ticker="  spy ").ticker == "SPY"

    def test_fees_bps_alias(self) -> None:
        request = BacktestRequest.model_validate(
            {
                "ticker": "TSLA",
                "amount": 100,
                "start_date": "2016-01-04",
                "end_date": "2016-12-30",
                "cadence": "lump_sum",
                "fees_bps": 50,
            }
        )
        assert request.fee_bps == 50

    def test_same_day_window_allowed(self) -> None:
        request = self._request(end_date="2016-01-04")
        assert request.start_date == request.end_date

    @pytest.mark.parametrize(
        "overrides",
        [
            {"ticker": ""},
            {"ticker": "   "},
            {"amount": 0},
            {"amount": -5},
            {"start_date": "2016/01/04"},
            {"end_date": "Dec 30 2016"},
            {"start_date": "2017-01-01"},
            {"cadence": "weekly"},
            {"fee_bps": -1},
            {"fee_bps": 10_001},
        ],
    )
    def test_invalid_requests_raise(self, overrides: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            self._request(**overrides)

    def test_fee_bounds_inclusive(self) -> None:
        assert self._request(fee_bps=10_000).fee_bps == 10_000


# ---------------------------------------------------------------------------
# Result Types
# ---------------------------------------------------------------------------


def test_result_payload_shape() -> None:
    """to_payload renders ISO strings and the flat series."""
    series = _series((date(2016, 1, 4), 10.0), (date(2016, 12, 30), 15.0))
    result = BacktestResult(
        series=series,
        shares=10.0,
        final_value=150.0,
        total_return_pct=0.5,
        cagr=0.5,
        trajectory=[
            ValuePoint(date=date(2016, 1, 4), value=100.0),
            ValuePoint(date=date(2016, 12, 30), value=150.0),
        ],
        assumptions=Assumptions(
            fees_bps=0,
            effective_start_date=date(2016, 1, 4),
            effective_end_date=date(2016, 12, 30),
            source="stub",
        ),
    )

    payload = result.to_payload()

    assert payload["series"] == [
        {"date": "2016-01-04", "adj_close": 10.0},
        {"date": "2016-12-30", "adj_close": 15.0},
    ]
    assert payload["trajectory"][-1] == {"date": "2016-12-30", "value": 150.0}
    assert payload["assumptions"] == {
        "adjusted_prices": True,
        "dividends_reinvested": True,
        "fees_bps": 0,
        "snap_policy": SNAP_POLICY,
        "effective_start_date": "2016-01-04",
        "effective_end_date": "2016-12-30",
        "source": "stub",
    }
    assert payload["final_value"] == 150.0
