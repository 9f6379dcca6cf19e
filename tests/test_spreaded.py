"""
Unit tests for spreaded yield curves.
"""

from datetime import date, timedelta

import pytest

from ratesgraph.conventions import CompoundingConvention, DayCount
from ratesgraph.curves import (
    FlatForward,
    InterpolatedYieldCurve,
    PiecewiseZeroSpreadedTermStructure,
    ZeroSpreadedTermStructure,
    ZeroYield,
)
from ratesgraph.errors import ExtrapolationNotAllowed
from ratesgraph.handle import Handle, RelinkableHandle
from ratesgraph.quotes import SimpleQuote

TODAY = date(2009, 6, 9)
DAYS = [0, 13, 41, 75, 165, 256, 345, 524, 703]
RATES = [0.035, 0.035, 0.033, 0.034, 0.034, 0.036, 0.037, 0.039, 0.040]


@pytest.fixture
def base_curve():
    dates = [TODAY + timedelta(days=d) for d in DAYS]
    return InterpolatedYieldCurve(dates, RATES, traits=ZeroYield, interpolation="linear",
                                  day_count=DayCount.ACT_360)


@pytest.fixture
def spreads():
    return SimpleQuote(0.02), SimpleQuote(0.03)


@pytest.fixture
def spreaded(base_curve, spreads):
    dates = [TODAY + timedelta(days=240), TODAY + timedelta(days=450)]
    return PiecewiseZeroSpreadedTermStructure(Handle(base_curve), list(spreads), dates)


class TestPiecewiseZeroSpreaded:
    """Tests for PiecewiseZeroSpreadedTermStructure."""

    def test_flat_before_first_spread(self, spreaded, base_curve):
        d = TODAY + timedelta(days=100)
        assert abs(spreaded.zero_rate(d) - (base_curve.zero_rate(d) + 0.02)) < 1e-12

    def test_interpolated_between_spreads(self, spreaded, base_curve):
        # 345 days is halfway between 240 and 450
        d = TODAY + timedelta(days=345)
        assert abs(spreaded.zero_rate(d) - (base_curve.zero_rate(d) + 0.025)) < 1e-12

    def test_flat_after_last_spread(self, spreaded, base_curve):
        d = TODAY + timedelta(days=500)
        expected = base_curve.zero_rate(d) + 0.03
        assert abs(spreaded.zero_rate(d, extrapolate=True) - expected) < 1e-12

    def test_max_date_is_last_spread_date(self, spreaded):
        assert spreaded.max_date() == TODAY + timedelta(days=450)
        with pytest.raises(ExtrapolationNotAllowed):
            spreaded.zero_rate(TODAY + timedelta(days=500))

    def test_takes_dates_from_base(self, spreaded, base_curve):
        assert spreaded.reference_date == TODAY
        d = TODAY + timedelta(days=180)
        assert spreaded.time_from_reference(d) == base_curve.time_from_reference(d)

    def test_spread_at(self, spreaded):
        assert spreaded.spread_at(0.0) == 0.02
        assert spreaded.spread_at(10.0) == 0.03

    def test_follows_spread_quote(self, spreaded, spreads, base_curve, counter):
        watcher = counter(spreaded)
        d = TODAY + timedelta(days=100)

        spreads[0].set_value(0.05)
        assert watcher.count == 1
        assert abs(spreaded.zero_rate(d) - (base_curve.zero_rate(d) + 0.05)) < 1e-12

    def test_follows_base_relink(self, spreads, counter):
        base = RelinkableHandle(FlatForward(0.03, TODAY))
        dates = [TODAY + timedelta(days=240), TODAY + timedelta(days=450)]
        curve = PiecewiseZeroSpreadedTermStructure(base.handle(), list(spreads), dates)
        watcher = counter(curve)
        d = TODAY + timedelta(days=100)
        assert abs(curve.zero_rate(d) - 0.05) < 1e-12

        base.link_to(FlatForward(0.01, TODAY))
        assert watcher.count == 1
        assert abs(curve.zero_rate(d) - 0.03) < 1e-12

    def test_mismatched_inputs(self, base_curve):
        with pytest.raises(ValueError):
            PiecewiseZeroSpreadedTermStructure(Handle(base_curve), [0.01, 0.02], [TODAY])
        with pytest.raises(ValueError):
            PiecewiseZeroSpreadedTermStructure(Handle(base_curve), [], [])


class TestZeroSpreaded:
    """Tests for ZeroSpreadedTermStructure."""

    def test_continuous_spread(self, base_curve):
        curve = ZeroSpreadedTermStructure(Handle(base_curve), 0.01)
        d = TODAY + timedelta(days=300)
        assert abs(curve.zero_rate(d) - (base_curve.zero_rate(d) + 0.01)) < 1e-12
        assert curve.max_date() == base_curve.max_date()

    def test_spread_in_annual_compounding(self):
        base = FlatForward(0.04, TODAY, compounding=CompoundingConvention.ANNUAL)
        curve = ZeroSpreadedTermStructure(Handle(base), 0.01, compounding=CompoundingConvention.ANNUAL)
        assert abs(curve.zero_rate(2.0, CompoundingConvention.ANNUAL) - 0.05) < 1e-12
        assert abs(curve.discount(2.0) - 1.0 / 1.05 ** 2) < 1e-14

    def test_follows_spread_quote(self, base_curve, counter):
        spread = SimpleQuote(0.01)
        curve = ZeroSpreadedTermStructure(Handle(base_curve), spread)
        watcher = counter(curve)

        spread.set_value(0.02)
        assert watcher.count == 1
        d = TODAY + timedelta(days=300)
        assert abs(curve.zero_rate(d) - (base_curve.zero_rate(d) + 0.02)) < 1e-12

    def test_base_must_be_handle(self, base_curve):
        with pytest.raises(TypeError):
            ZeroSpreadedTermStructure(base_curve, 0.01)
