"""
Unit tests for piecewise curve bootstrapping.
"""

from datetime import date
import logging

import numpy as np
import pandas as pd
import pytest

from ratesgraph.curves import (
    BootstrapConfig,
    CdsSpreadHelper,
    DepositRateHelper,
    FlatForward,
    FraRateHelper,
    HazardRate,
    PiecewiseDefaultCurve,
    PiecewiseYieldCurve,
    SurvivalProbability,
    SwapRateHelper,
    ZeroYield,
)
from ratesgraph.errors import BootstrapFailure, InvalidNodeOrdering, RootNotBracketed
from ratesgraph.handle import Handle, RelinkableHandle
from ratesgraph.lazy import CalculationState
from ratesgraph.quotes import SimpleQuote

DEPOSITS = {"3M": 0.030, "6M": 0.032}
SWAPS = {"1Y": 0.034, "2Y": 0.036, "3Y": 0.038, "5Y": 0.040}


@pytest.fixture
def quotes():
    """Market quotes by tenor."""
    return {tenor: SimpleQuote(rate) for tenor, rate in {**DEPOSITS, **SWAPS}.items()}


@pytest.fixture
def helpers(quotes, reference_date):
    result = [DepositRateHelper(quotes[t], t, start_date=reference_date) for t in DEPOSITS]
    result += [SwapRateHelper(quotes[t], t, start_date=reference_date) for t in SWAPS]
    return result


@pytest.fixture
def curve(helpers, reference_date):
    return PiecewiseYieldCurve(helpers, reference_date=reference_date)


class TestYieldBootstrap:
    """Tests for PiecewiseYieldCurve."""

    def test_reprices_helpers(self, curve):
        errors = curve.repricing_errors()
        assert len(errors) == 6
        assert errors.name == "repricing_error"
        assert errors.abs().max() < 1e-10

    def test_nodes_on_pillars(self, curve, helpers, reference_date):
        dates = curve.dates()
        assert dates[0] == reference_date
        assert dates[1:] == [h.pillar_date for h in helpers]
        assert curve.data()[0] == 1.0
        assert np.all(np.diff(curve.data()) < 0.0)
        assert curve.max_date() == date(2029, 1, 15)

    def test_helpers_sorted(self, helpers, reference_date):
        curve = PiecewiseYieldCurve(list(reversed(helpers)), reference_date=reference_date)
        assert [h.pillar_date for h in curve.helpers] == [h.pillar_date for h in helpers]

    def test_deposit_rate(self, curve, reference_date):
        df = curve.discount(date(2024, 4, 15))
        assert abs((1.0 / df - 1.0) / (91 / 360) - 0.030) < 1e-10

    def test_idempotent(self, curve):
        first = curve.data()
        curve.recalculate()
        assert np.array_equal(curve.data(), first)

    def test_later_quote_leaves_earlier_nodes(self, curve, quotes):
        before = curve.data()
        quotes["5Y"].set_value(0.045)
        after = curve.data()

        assert np.array_equal(after[:-1], before[:-1])
        assert after[-1] < before[-1]

    def test_lazy(self, curve, quotes, counter):
        assert curve.state == CalculationState.UNCALCULATED
        curve.discount(1.0)
        assert curve.state == CalculationState.FRESH
        watcher = counter(curve)

        quotes["2Y"].set_value(0.037)
        assert curve.state == CalculationState.DIRTY
        assert watcher.count == 1

        # already dirty: nothing more to tell
        quotes["3Y"].set_value(0.039)
        assert watcher.count == 1

        curve.discount(1.0)
        assert curve.state == CalculationState.FRESH
        assert curve.repricing_errors().abs().max() < 1e-10

    def test_follows_relinked_quote(self, reference_date):
        handle = RelinkableHandle(SimpleQuote(0.030))
        helpers = [
            DepositRateHelper(handle.handle(), "3M", start_date=reference_date),
            SwapRateHelper(0.034, "1Y", start_date=reference_date),
        ]
        curve = PiecewiseYieldCurve(helpers, reference_date=reference_date)
        before = curve.discount(date(2024, 4, 15))

        handle.link_to(SimpleQuote(0.025))
        after = curve.discount(date(2024, 4, 15))
        assert after > before
        assert abs((1.0 / after - 1.0) / (91 / 360) - 0.025) < 1e-10

    def test_failure_keeps_previous_curve(self, curve, helpers, quotes):
        nodes = curve.data()
        result = curve.last_result

        quotes["3M"].set_value(-5.0)
        with pytest.raises(BootstrapFailure) as info:
            curve.discount(1.0)
        assert info.value.helper_index == 0
        assert info.value.pillar_date == date(2024, 4, 15)
        assert isinstance(info.value.__cause__, RootNotBracketed)
        assert curve.last_result is result
        assert curve.state != CalculationState.FRESH
        assert all(helper.term_structure is curve for helper in helpers)

        quotes["3M"].set_value(0.030)
        assert np.array_equal(curve.data(), nodes)

    def test_first_failure_leaves_helpers_unbound(self, curve, helpers, quotes):
        quotes["1Y"].set_value(-5.0)
        with pytest.raises(BootstrapFailure):
            curve.discount(1.0)
        for helper in helpers:
            with pytest.raises(RuntimeError):
                helper.term_structure

    def test_invalid_quote(self, curve, quotes):
        quotes["6M"].reset()
        with pytest.raises(BootstrapFailure) as info:
            curve.discount(1.0)
        assert info.value.helper_index == 1

    def test_expired_helper_skipped(self, helpers, reference_date, caplog):
        expired = DepositRateHelper(0.029, "1M", start_date=date(2023, 12, 1))
        curve = PiecewiseYieldCurve(helpers + [expired], reference_date=reference_date)

        with caplog.at_level(logging.WARNING, logger="ratesgraph.curves.bootstrap"):
            errors = curve.repricing_errors()
        assert "expired" in caplog.text
        assert len(errors) == 6
        assert errors.abs().max() < 1e-10
        assert len(curve.dates()) == 7

    def test_duplicate_pillars(self, reference_date):
        helpers = [
            DepositRateHelper(0.030, "3M", start_date=reference_date),
            DepositRateHelper(0.031, "3M", start_date=reference_date),
        ]
        with pytest.raises(InvalidNodeOrdering):
            PiecewiseYieldCurve(helpers, reference_date=reference_date)

    def test_no_helpers(self, reference_date):
        with pytest.raises(ValueError):
            PiecewiseYieldCurve([], reference_date=reference_date)

    def test_default_traits_rejected(self, helpers, reference_date):
        with pytest.raises(TypeError):
            PiecewiseYieldCurve(helpers, traits=HazardRate, reference_date=reference_date)

    def test_zero_yield_flat_left(self, helpers, reference_date):
        curve = PiecewiseYieldCurve(helpers, traits=ZeroYield, reference_date=reference_date)
        data = curve.data()
        assert data[0] == data[1]
        assert curve.repricing_errors().abs().max() < 1e-10

    def test_other_solver(self, helpers, reference_date):
        config = BootstrapConfig(solver="ridder", accuracy=1e-12)
        curve = PiecewiseYieldCurve(helpers, reference_date=reference_date, config=config)
        assert curve.repricing_errors().abs().max() < 1e-10

    def test_fra(self, reference_date):
        fra = FraRateHelper(0.033, "3M", "6M", start_date=reference_date)
        helpers = [
            DepositRateHelper(0.030, "3M", start_date=reference_date),
            fra,
            SwapRateHelper(0.034, "1Y", start_date=reference_date),
            SwapRateHelper(0.036, "2Y", start_date=reference_date),
        ]
        curve = PiecewiseYieldCurve(helpers, reference_date=reference_date)
        with pytest.raises(RuntimeError):
            fra.implied_quote()

        curve.discount(1.0)
        assert abs(fra.implied_quote() - 0.033) < 1e-10
        assert fra.term_structure is curve

    def test_result_frame(self, curve):
        assert curve.last_result is None
        curve.discount(1.0)

        frame = curve.last_result.to_frame()
        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == ["pillar_date", "time", "value", "residual", "evaluations"]
        assert len(frame) == 6
        assert (frame["evaluations"] > 0).all()
        assert curve.last_result.max_abs_residual < 1e-10


class TestMovingCurve:
    """Curves following the evaluation date."""

    def test_reference_date_moves(self, context):
        helpers = [DepositRateHelper(DEPOSITS[t], t, context=context) for t in DEPOSITS]
        helpers += [SwapRateHelper(SWAPS[t], t, context=context) for t in SWAPS]
        curve = PiecewiseYieldCurve(helpers, context=context)
        assert curve.dates()[0] == date(2024, 1, 15)

        context.evaluation_date = date(2024, 1, 16)
        assert curve.state != CalculationState.FRESH
        assert curve.reference_date == date(2024, 1, 16)
        assert curve.dates()[0] == date(2024, 1, 16)
        assert curve.max_date() == date(2029, 1, 16)
        assert curve.repricing_errors().abs().max() < 1e-10

    def test_settlement_days(self, context):
        helpers = [DepositRateHelper(0.03, "3M", settlement_days=2, context=context),
                   SwapRateHelper(0.034, "1Y", settlement_days=2, context=context)]
        curve = PiecewiseYieldCurve(helpers, settlement_days=2, context=context)
        assert curve.reference_date == date(2024, 1, 17)
        assert curve.dates()[1] == date(2024, 4, 17)


@pytest.fixture
def discount_handle(reference_date):
    return RelinkableHandle(FlatForward(0.03, reference_date))


@pytest.fixture
def cds_quotes():
    return {"1Y": SimpleQuote(0.0100), "3Y": SimpleQuote(0.0125), "5Y": SimpleQuote(0.0150)}


@pytest.fixture
def cds_helpers(cds_quotes, discount_handle, reference_date):
    return [
        CdsSpreadHelper(quote, tenor, discount_handle.handle(), start_date=reference_date)
        for tenor, quote in cds_quotes.items()
    ]


class TestDefaultBootstrap:
    """Tests for PiecewiseDefaultCurve."""

    def test_reprices_cds(self, cds_helpers, reference_date):
        curve = PiecewiseDefaultCurve(cds_helpers, reference_date=reference_date)
        assert curve.repricing_errors().abs().max() < 1e-10

        # roughly spread / (1 - recovery)
        assert abs(curve.hazard_rate(0.5) - 0.01 / 0.6) < 1e-3
        assert curve.survival_probability(5.0) < curve.survival_probability(1.0) < 1.0

    def test_hazard_rate_flat_left(self, cds_helpers, reference_date):
        curve = PiecewiseDefaultCurve(cds_helpers, reference_date=reference_date)
        data = curve.data()
        assert data[0] == data[1]
        assert np.all(np.diff(data[1:]) > 0.0)

    def test_survival_traits(self, cds_helpers, reference_date):
        curve = PiecewiseDefaultCurve(cds_helpers, traits=SurvivalProbability,
                                      reference_date=reference_date)
        assert curve.data()[0] == 1.0
        assert curve.repricing_errors().abs().max() < 1e-10

        hazard_curve = PiecewiseDefaultCurve(cds_helpers, reference_date=reference_date)
        # log-linear survival is piecewise flat hazard as well
        assert abs(curve.survival_probability(3.0) - hazard_curve.survival_probability(3.0)) < 1e-10

    def test_follows_discount_relink(self, cds_helpers, discount_handle, reference_date, counter):
        curve = PiecewiseDefaultCurve(cds_helpers, reference_date=reference_date)
        before = curve.survival_probability(3.0)
        watcher = counter(curve)

        discount_handle.link_to(FlatForward(0.08, reference_date))
        assert watcher.count == 1
        assert curve.survival_probability(3.0) != before
        assert curve.repricing_errors().abs().max() < 1e-10

    def test_yield_traits_rejected(self, cds_helpers, reference_date):
        from ratesgraph.curves import Discount
        with pytest.raises(TypeError):
            PiecewiseDefaultCurve(cds_helpers, traits=Discount, reference_date=reference_date)

    def test_discount_must_be_handle(self, reference_date):
        with pytest.raises(TypeError):
            CdsSpreadHelper(0.01, "1Y", FlatForward(0.03, reference_date), start_date=reference_date)

    def test_bootstrapped_discount_curve(self, curve, cds_quotes, reference_date):
        helpers = [CdsSpreadHelper(q, t, Handle(curve), start_date=reference_date)
                   for t, q in cds_quotes.items()]
        default_curve = PiecewiseDefaultCurve(helpers, reference_date=reference_date)
        assert default_curve.repricing_errors().abs().max() < 1e-10
