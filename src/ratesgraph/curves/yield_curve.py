"""
Yield term structures.

The YieldTermStructure class provides:
- Discount factor P(t)
- Zero rate z(t) in any compounding
- Forward rate f(t1, t2)
- Instantaneous forward rate f(t)

Concrete structures:
- ZeroYieldStructure: defined through continuously compounded zero rates
- FlatForward: constant forward rate read from a quote handle
- InterpolatedYieldCurve: interpolated discount factors or zero rates on given nodes
"""

import math
from abc import abstractmethod
from datetime import date
from typing import Sequence, Union

from ..conventions import CompoundingConvention, DayCount, YearFraction, make_year_fraction
from ..handle import Handle
from ..quotes import Quote, quote_handle
from .interpolation import Interpolator, resolve_interpolator
from .nodes import CurveNodes, InterpolatedCurve
from .term_structure import DateOrTime, TermStructure
from .traits import Discount, YieldTraits, ZeroYield, make_traits

# time step for instantaneous quantities
DT = 1e-4

_FREQUENCIES = {
    CompoundingConvention.ANNUAL: 1,
    CompoundingConvention.SEMI_ANNUAL: 2,
    CompoundingConvention.QUARTERLY: 4,
}


def compound_factor(rate: float, t: float, compounding: CompoundingConvention) -> float:
    """Growth of one unit invested at rate over t years."""
    if compounding == CompoundingConvention.CONTINUOUS:
        return math.exp(rate * t)
    if compounding == CompoundingConvention.SIMPLE:
        return 1.0 + rate * t
    if compounding in _FREQUENCIES:
        n = _FREQUENCIES[compounding]
        return (1.0 + rate / n) ** (n * t)
    raise ValueError(f"Unknown compounding: {compounding}")


def implied_rate(compound: float, t: float, compounding: CompoundingConvention) -> float:
    """Rate giving the compound factor over t years (t > 0)."""
    if t <= 0.0:
        raise ValueError(f"implied rate needs a positive time, got {t}")
    if compound == 1.0:
        return 0.0
    if compounding == CompoundingConvention.CONTINUOUS:
        return math.log(compound) / t
    if compounding == CompoundingConvention.SIMPLE:
        return (compound - 1.0) / t
    if compounding in _FREQUENCIES:
        n = _FREQUENCIES[compounding]
        return n * (compound ** (1.0 / (n * t)) - 1.0)
    raise ValueError(f"Unknown compounding: {compounding}")


class YieldTermStructure(TermStructure):
    """
    Interest-rate term structure.

    Subclasses implement discount_impl(t); range checks are done here.

    Conventions:
        - Times are year fractions from the reference date
        - Discount factor at t=0 is 1.0
    """

    def discount(self, d: DateOrTime, extrapolate: bool = False) -> float:
        """
        Get discount factor P(t).

        Args:
            d: Date or year fraction
            extrapolate: Allow queries past max date for this call

        Returns:
            Discount factor
        """
        self.check_range(d, extrapolate)
        return self.discount_impl(self.to_time(d))

    def zero_rate(
        self,
        d: DateOrTime,
        compounding: CompoundingConvention = CompoundingConvention.CONTINUOUS,
        extrapolate: bool = False
    ) -> float:
        """
        Get zero rate z(t).

        At t=0 the rate over the first DT is returned.
        """
        self.check_range(d, extrapolate)
        t = self.to_time(d)
        if t == 0.0:
            t = DT
        compound = 1.0 / self.discount_impl(t)
        return implied_rate(compound, t, compounding)

    def forward_rate(
        self,
        d1: DateOrTime,
        d2: DateOrTime,
        compounding: CompoundingConvention = CompoundingConvention.CONTINUOUS,
        extrapolate: bool = False
    ) -> float:
        """
        Get forward rate f(t1, t2).

        Raises:
            ValueError: if d2 is before d1
        """
        t1 = self.to_time(d1)
        t2 = self.to_time(d2)
        if t2 < t1:
            raise ValueError(f"forward end ({d2}) before start ({d1})")
        self.check_range(d1, extrapolate)
        self.check_range(d2, extrapolate)
        if t2 - t1 < DT:
            t1 = max(t1 - DT / 2.0, 0.0)
            t2 = t1 + DT
        compound = self.discount_impl(t1) / self.discount_impl(t2)
        return implied_rate(compound, t2 - t1, compounding)

    def instantaneous_forward(self, d: DateOrTime, extrapolate: bool = False) -> float:
        """
        Get instantaneous forward rate f(t) = -d/dt log P(t).

        Computed as a continuously compounded forward over DT around t.
        """
        self.check_range(d, extrapolate)
        t1 = max(self.to_time(d) - DT / 2.0, 0.0)
        t2 = t1 + DT
        return math.log(self.discount_impl(t1) / self.discount_impl(t2)) / DT

    @abstractmethod
    def discount_impl(self, t: float) -> float:
        """Discount factor at time t, no range check."""


class ZeroYieldStructure(YieldTermStructure):
    """Yield structure defined through continuously compounded zero rates."""

    def discount_impl(self, t: float) -> float:
        if t == 0.0:
            return 1.0
        return math.exp(-self.zero_yield_impl(t) * t)

    @abstractmethod
    def zero_yield_impl(self, t: float) -> float:
        """Continuously compounded zero rate at time t, no range check."""


class FlatForward(YieldTermStructure):
    """
    Flat forward curve.

    The rate is read from a quote handle at every call, so relinking the
    handle or changing the quote reaches the curve's observers.

    Attributes:
        compounding: Compounding of the quoted rate
    """

    def __init__(
        self,
        forward: Union[Handle, Quote, float],
        reference_date: date = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_365,
        compounding: CompoundingConvention = CompoundingConvention.CONTINUOUS,
        settlement_days: int = 0,
        context=None,
    ):
        super().__init__(reference_date=reference_date, day_count=day_count,
                         settlement_days=settlement_days, context=context)
        self.forward = quote_handle(forward)
        self.compounding = compounding
        self.observe(self.forward)

    def rate(self) -> float:
        return self.forward.current_link().value()

    def discount_impl(self, t: float) -> float:
        return 1.0 / compound_factor(self.rate(), t, self.compounding)

    def __repr__(self) -> str:
        return f"FlatForward({self.forward!r}, ref={self.reference_date})"


class InterpolatedYieldCurve(YieldTermStructure, InterpolatedCurve):
    """
    Yield curve interpolated on given nodes.

    The first date is the reference date. With Discount traits the first
    value must be 1.0.

    Attributes:
        traits: Discount or ZeroYield
    """

    def __init__(
        self,
        dates: Sequence[date],
        values: Sequence[float],
        traits: Union[YieldTraits, type] = ZeroYield,
        interpolation: Union[str, Interpolator, None] = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_365,
    ):
        if len(dates) == 0:
            raise ValueError("no dates given")
        super().__init__(reference_date=dates[0], day_count=day_count)
        self.traits = make_traits(traits)
        if not isinstance(self.traits, YieldTraits):
            raise TypeError(f"{self.traits!r} are not yield curve traits")
        if isinstance(self.traits, Discount) and len(values) and values[0] != 1.0:
            raise ValueError(f"initial discount factor must be 1.0, got {values[0]}")

        year_fraction = make_year_fraction(day_count)
        times = [year_fraction(dates[0], d) for d in dates]
        self._nodes = CurveNodes(
            resolve_interpolator(interpolation, self.traits.default_interpolation),
            dates, times, values
        )
        self._nodes.refit()

    def max_date(self) -> date:
        return self._curve_nodes().dates[-1]

    def discount_impl(self, t: float) -> float:
        return self.traits.discount_impl(self._curve_nodes().interpolation, t)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(ref={self.reference_date}, nodes={len(self._nodes)}, "
                f"traits={type(self.traits).__name__})")


__all__ = [
    "DT",
    "compound_factor",
    "implied_rate",
    "YieldTermStructure",
    "ZeroYieldStructure",
    "FlatForward",
    "InterpolatedYieldCurve",
]
