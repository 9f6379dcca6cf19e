"""
Unit tests for yield term structures.
"""

from datetime import timedelta
import math

import numpy as np
import pytest

from ratesgraph.conventions import CompoundingConvention, DayCount, year_fraction
from ratesgraph.curves import (
    Discount,
    FlatForward,
    InterpolatedYieldCurve,
    ZeroYield,
)
from ratesgraph.curves.yield_curve import compound_factor, implied_rate
from ratesgraph.errors import ExtrapolationNotAllowed, InvalidNodeOrdering
from ratesgraph.handle import RelinkableHandle
from ratesgraph.quotes import SimpleQuote


@pytest.fixture
def zero_curve(reference_date):
    """Linear zero curve with nodes at 0, 1 and 2 years (ACT/365)."""
    dates = [reference_date + timedelta(days=d) for d in (0, 365, 730)]
    return InterpolatedYieldCurve(dates, [0.02, 0.02, 0.03], traits=ZeroYield)


@pytest.fixture
def discount_curve(reference_date):
    """Log-linear discount curve: 3% forward to 1Y, then 4%."""
    dates = [reference_date + timedelta(days=d) for d in (0, 365, 730)]
    return InterpolatedYieldCurve(dates, [1.0, math.exp(-0.03), math.exp(-0.07)], traits=Discount)


class TestFlatForward:
    """Tests for FlatForward."""

    def test_discount(self, reference_date):
        curve = FlatForward(0.05, reference_date)
        assert abs(curve.discount(1.0) - math.exp(-0.05)) < 1e-15
        assert abs(curve.discount(reference_date + timedelta(days=730)) - math.exp(-0.1)) < 1e-15
        assert curve.discount(reference_date) == 1.0

    def test_rates(self, reference_date):
        curve = FlatForward(0.05, reference_date)
        assert abs(curve.zero_rate(2.0) - 0.05) < 1e-12
        assert abs(curve.forward_rate(1.0, 2.0) - 0.05) < 1e-12
        assert abs(curve.instantaneous_forward(3.0) - 0.05) < 1e-9
        assert abs(curve.zero_rate(0.0) - 0.05) < 1e-9

    def test_compounding(self, reference_date):
        curve = FlatForward(0.05, reference_date, compounding=CompoundingConvention.ANNUAL)
        assert abs(curve.discount(2.0) - 1.0 / 1.05 ** 2) < 1e-15
        assert abs(curve.zero_rate(2.0, CompoundingConvention.ANNUAL) - 0.05) < 1e-12
        assert abs(curve.zero_rate(2.0) - math.log(1.05)) < 1e-12

    def test_follows_quote(self, reference_date, counter):
        quote = SimpleQuote(0.05)
        curve = FlatForward(quote, reference_date)
        watcher = counter(curve)

        quote.set_value(0.06)
        assert watcher.count == 1
        assert abs(curve.zero_rate(1.0) - 0.06) < 1e-12

    def test_follows_relink(self, reference_date, counter):
        handle = RelinkableHandle(SimpleQuote(0.05))
        curve = FlatForward(handle.handle(), reference_date)
        watcher = counter(curve)

        handle.link_to(SimpleQuote(0.07))
        assert watcher.count == 1
        assert abs(curve.zero_rate(1.0) - 0.07) < 1e-12

    def test_before_reference_date(self, reference_date):
        curve = FlatForward(0.05, reference_date)
        with pytest.raises(ValueError):
            curve.discount(reference_date - timedelta(days=1))
        with pytest.raises(ValueError):
            curve.discount(-0.5)

    def test_forward_dates_reversed(self, reference_date):
        curve = FlatForward(0.05, reference_date)
        with pytest.raises(ValueError):
            curve.forward_rate(2.0, 1.0)

    def test_injected_day_count(self, reference_date):
        def act_364(d1, d2):
            return (d2 - d1).days / 364.0

        curve = FlatForward(0.05, reference_date, day_count=act_364)
        d = reference_date + timedelta(days=364)
        assert curve.time_from_reference(d) == 1.0
        assert abs(curve.discount(d) - math.exp(-0.05)) < 1e-15

    def test_unbounded_max_time(self, reference_date):
        calls = []

        def act_act(d1, d2):
            calls.append(d2)
            return year_fraction(d1, d2, DayCount.ACT_ACT)

        curve = FlatForward(0.05, reference_date, day_count=act_act)
        assert curve.max_time() == math.inf
        assert abs(curve.discount(30.0) - math.exp(-1.5)) < 1e-15
        # time queries never convert the open-ended max date
        assert calls == []


class TestInterpolatedYieldCurve:
    """Tests for InterpolatedYieldCurve."""

    def test_zero_interpolation(self, zero_curve):
        assert abs(zero_curve.zero_rate(1.5) - 0.025) < 1e-12
        assert abs(zero_curve.discount(1.5) - math.exp(-0.025 * 1.5)) < 1e-15

    def test_max_date(self, zero_curve, reference_date):
        assert zero_curve.max_date() == reference_date + timedelta(days=730)
        assert abs(zero_curve.max_time() - 2.0) < 1e-15
        zero_curve.discount(2.0)

    def test_extrapolation_not_allowed(self, zero_curve, reference_date):
        with pytest.raises(ExtrapolationNotAllowed) as info:
            zero_curve.discount(reference_date + timedelta(days=800))
        assert info.value.max_value == reference_date + timedelta(days=730)

        with pytest.raises(ExtrapolationNotAllowed):
            zero_curve.discount(2.5)

    def test_extrapolation_per_call_and_enabled(self, zero_curve):
        per_call = zero_curve.discount(2.5, extrapolate=True)
        zero_curve.enable_extrapolation()
        assert zero_curve.allows_extrapolation
        assert zero_curve.discount(2.5) == per_call

        zero_curve.disable_extrapolation()
        with pytest.raises(ExtrapolationNotAllowed):
            zero_curve.discount(2.5)

    def test_flat_forward_extrapolation_of_zero_rates(self, zero_curve):
        # instantaneous forward at 2Y: z + t dz/dt = 0.03 + 2 * 0.01
        forward = 0.05
        expected = math.exp(-(0.03 * 2.0 + forward * 1.0))
        assert abs(zero_curve.discount(3.0, extrapolate=True) - expected) < 1e-14

    def test_log_linear_discount(self, discount_curve):
        assert abs(discount_curve.forward_rate(1.0, 2.0) - 0.04) < 1e-12
        assert abs(discount_curve.forward_rate(0.2, 0.7) - 0.03) < 1e-12

    def test_flat_forward_extrapolation_of_discounts(self, discount_curve):
        expected = math.exp(-0.07 - 0.04)
        assert abs(discount_curve.discount(3.0, extrapolate=True) - expected) < 1e-14

    def test_initial_discount_must_be_one(self, reference_date):
        dates = [reference_date, reference_date + timedelta(days=365)]
        with pytest.raises(ValueError):
            InterpolatedYieldCurve(dates, [0.99, 0.95], traits=Discount)

    def test_unordered_dates(self, reference_date):
        dates = [reference_date, reference_date + timedelta(days=365), reference_date + timedelta(days=200)]
        with pytest.raises(InvalidNodeOrdering):
            InterpolatedYieldCurve(dates, [0.02, 0.02, 0.03])

    def test_wrong_traits(self, reference_date):
        from ratesgraph.curves import HazardRate
        dates = [reference_date, reference_date + timedelta(days=365)]
        with pytest.raises(TypeError):
            InterpolatedYieldCurve(dates, [0.02, 0.02], traits=HazardRate)

    def test_node_accessors(self, zero_curve, reference_date):
        assert zero_curve.dates()[0] == reference_date
        np.testing.assert_allclose(zero_curve.times(), [0.0, 1.0, 2.0])
        np.testing.assert_allclose(zero_curve.data(), [0.02, 0.02, 0.03])

        frame = zero_curve.nodes_frame()
        assert list(frame.columns) == ["date", "time", "value"]
        assert len(frame) == 3

        node = zero_curve.nodes()[2]
        assert node.value == 0.03

    def test_explicit_interpolation(self, reference_date):
        dates = [reference_date + timedelta(days=d) for d in (0, 365, 730, 1095)]
        curve = InterpolatedYieldCurve(dates, [0.02, 0.025, 0.03, 0.032], interpolation="cubic_spline")
        assert type(curve.interpolation).__name__ == "CubicSplineInterpolator"
        assert abs(curve.zero_rate(2.0) - 0.03) < 1e-12


class TestCompounding:
    """Tests for compounding helpers."""

    @pytest.mark.parametrize("compounding", list(CompoundingConvention))
    def test_implied_rate_inverts_compound_factor(self, compounding):
        factor = compound_factor(0.05, 2.0, compounding)
        assert abs(implied_rate(factor, 2.0, compounding) - 0.05) < 1e-12

    def test_simple(self):
        assert abs(compound_factor(0.05, 0.5, CompoundingConvention.SIMPLE) - 1.025) < 1e-15

    def test_implied_rate_needs_time(self):
        with pytest.raises(ValueError):
            implied_rate(1.01, 0.0, CompoundingConvention.CONTINUOUS)
