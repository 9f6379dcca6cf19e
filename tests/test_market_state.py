"""
Unit tests for the market state registry.
"""

from datetime import date

import pytest

from ratesgraph.curves import FlatForward, ZeroSpreadedTermStructure
from ratesgraph.errors import EmptyHandleError
from ratesgraph.market_state import MarketState
from ratesgraph.quotes import DerivedQuote
from ratesgraph.settings import EvaluationContext


@pytest.fixture
def market(context):
    state = MarketState(context)
    state.add_quotes({"USD.3M": 0.030, "USD.1Y": 0.034, "USD.5Y": 0.040})
    return state


class TestQuotes:
    """Tests for named quotes."""

    def test_add_and_read(self, market):
        assert market.quote_names() == ["USD.3M", "USD.1Y", "USD.5Y"]
        assert market.quote_value("USD.1Y") == 0.034
        assert market.quote("USD.1Y").current_link().value() == 0.034

    def test_duplicate(self, market):
        with pytest.raises(ValueError):
            market.add_quote("USD.3M", 0.031)

    def test_unknown(self, market):
        with pytest.raises(KeyError):
            market.quote("EUR.3M")
        with pytest.raises(KeyError):
            market.set_quote("EUR.3M", 0.01)

    def test_set_quote_notifies(self, market, counter):
        watcher = counter(market.quote("USD.3M"))
        market.set_quote("USD.3M", 0.031)
        assert watcher.count == 1
        assert market.quote_value("USD.3M") == 0.031

    def test_handles_are_read_only(self, market):
        handle = market.quote("USD.3M")
        assert not hasattr(handle, "link_to")

    def test_relink(self, market, counter):
        handle = market.quote("USD.1Y")
        watcher = counter(handle)

        spread = DerivedQuote(market.quote("USD.3M"), lambda x: x + 0.001)
        market.relink_quote("USD.1Y", spread)
        assert watcher.count == 1
        assert abs(handle.current_link().value() - 0.031) < 1e-15

        # follows the quote it now points to
        market.set_quote("USD.3M", 0.032)
        assert watcher.count == 2
        assert abs(market.quote_value("USD.1Y") - 0.033) < 1e-15

    def test_cannot_set_derived_quote(self, market):
        market.relink_quote("USD.1Y", DerivedQuote(market.quote("USD.3M"), lambda x: 2.0 * x))
        with pytest.raises(TypeError):
            market.set_quote("USD.1Y", 0.05)

    def test_invalid_quote(self):
        market = MarketState(EvaluationContext(date(2024, 1, 15)))
        market.add_quote("EMPTY")
        frame = market.to_frame()
        assert not frame.loc["EMPTY", "is_valid"]
        with pytest.raises(ValueError):
            market.quote_value("EMPTY")

    def test_to_frame(self, market):
        frame = market.to_frame()
        assert list(frame.columns) == ["value", "is_valid"]
        assert frame.loc["USD.5Y", "value"] == 0.040
        assert frame["is_valid"].all()


class TestCurves:
    """Tests for named curve handles."""

    def test_handle_before_curve(self, market, reference_date):
        handle = market.curve_handle("USD.OIS")
        spreaded = ZeroSpreadedTermStructure(handle, 0.01)
        assert handle.is_empty
        with pytest.raises(EmptyHandleError):
            market.curve("USD.OIS")

        market.link_curve("USD.OIS", FlatForward(market.quote("USD.1Y"), reference_date))
        assert abs(spreaded.zero_rate(1.0) - 0.044) < 1e-12

    def test_relink_notifies(self, market, reference_date, counter):
        handle = market.link_curve("USD.OIS", FlatForward(0.03, reference_date))
        watcher = counter(handle)

        other = FlatForward(0.04, reference_date)
        market.link_curve("USD.OIS", other)
        assert watcher.count == 1
        assert market.curve("USD.OIS") is other
        assert market.curve_names() == ["USD.OIS"]

    def test_unknown_curve(self, market):
        with pytest.raises(KeyError):
            market.curve("EUR.ESTR")

    def test_curve_follows_quote(self, market, reference_date):
        curve = FlatForward(market.quote("USD.1Y"), reference_date)
        market.link_curve("USD.OIS", curve)
        market.set_quote("USD.1Y", 0.05)
        assert abs(market.curve("USD.OIS").zero_rate(1.0) - 0.05) < 1e-12


class TestScenario:
    """Tests for temporary quote shifts."""

    def test_shift_and_restore(self, market):
        with market.scenario({"USD.3M": 0.001, "USD.5Y": -0.002}) as shifted:
            assert shifted is market
            assert abs(market.quote_value("USD.3M") - 0.031) < 1e-15
            assert abs(market.quote_value("USD.5Y") - 0.038) < 1e-15
            assert market.quote_value("USD.1Y") == 0.034

        assert market.quote_value("USD.3M") == 0.030
        assert market.quote_value("USD.5Y") == 0.040

    def test_restored_on_error(self, market):
        with pytest.raises(RuntimeError):
            with market.scenario({"USD.3M": 0.01}):
                raise RuntimeError("pricing failed")
        assert market.quote_value("USD.3M") == 0.030

    def test_valuation_date(self, market, context):
        assert market.valuation_date == date(2024, 1, 15)
        context.evaluation_date = date(2024, 2, 1)
        assert market.valuation_date == date(2024, 2, 1)
        assert "2024-02-01" in repr(market)
