"""
Yield curves obtained by adding zero-rate spreads to a base curve.

Provides:
- ZeroSpreadedTermStructure: constant spread over the base curve
- PiecewiseZeroSpreadedTermStructure: spreads interpolated between dates,
  flat before the first and after the last spread date

Both take the reference date and day count of the base curve and follow
it through its handle: relinking the base or changing a spread quote
reaches every observer of the spreaded curve.
"""

from datetime import date
from typing import List, Optional, Sequence, Union

from ..conventions import CompoundingConvention, DayCount, YearFraction
from ..handle import Handle
from ..quotes import Quote, quote_handle
from .interpolation import Interpolator, resolve_interpolator
from .nodes import check_increasing_dates
from .yield_curve import DT, ZeroYieldStructure, compound_factor, implied_rate


class _SpreadedStructure(ZeroYieldStructure):
    """Date handling shared by the spreaded curves."""

    delegates_dates = True

    def __init__(
        self,
        base: Handle,
        compounding: CompoundingConvention,
        day_count: Optional[Union[DayCount, YearFraction]],
    ):
        if not isinstance(base, Handle):
            raise TypeError(f"base curve must be given as a Handle, got {base!r}")
        super().__init__(day_count=day_count or DayCount.ACT_365)
        self.base = base
        self.compounding = compounding
        self._own_day_count = day_count is not None
        self.observe(base)

    def _base(self):
        return self.base.current_link()

    @property
    def reference_date(self) -> date:
        return self._base().reference_date

    def time_from_reference(self, d: date) -> float:
        if self._own_day_count:
            return self._year_fraction(self.reference_date, d)
        return self._base().time_from_reference(d)

    def max_date(self) -> date:
        return self._base().max_date()

    def _spreaded_zero(self, t: float, spread: float) -> float:
        t = max(t, DT)
        rate = self._base().zero_rate(t, self.compounding, extrapolate=True) + spread
        if self.compounding == CompoundingConvention.CONTINUOUS:
            return rate
        return implied_rate(compound_factor(rate, t, self.compounding), t,
                            CompoundingConvention.CONTINUOUS)


class ZeroSpreadedTermStructure(_SpreadedStructure):
    """
    Base curve plus a constant zero-rate spread.

    Attributes:
        spread: Quote handle of the spread, in the given compounding
    """

    def __init__(
        self,
        base: Handle,
        spread: Union[Handle, Quote, float],
        compounding: CompoundingConvention = CompoundingConvention.CONTINUOUS,
        day_count: Optional[Union[DayCount, YearFraction]] = None,
    ):
        super().__init__(base, compounding, day_count)
        self.spread = quote_handle(spread)
        self.observe(self.spread)

    def zero_yield_impl(self, t: float) -> float:
        return self._spreaded_zero(t, self.spread.current_link().value())


class PiecewiseZeroSpreadedTermStructure(_SpreadedStructure):
    """
    Base curve plus interpolated zero-rate spreads.

    The spread is flat at its first value before the first spread date and
    at its last value after the last spread date. The max date is the
    earlier of the base curve's max date and the last spread date.

    Attributes:
        spreads: Quote handles of the spreads
        spread_dates: Dates of the spreads (strictly increasing)
    """

    def __init__(
        self,
        base: Handle,
        spreads: Sequence[Union[Handle, Quote, float]],
        dates: Sequence[date],
        compounding: CompoundingConvention = CompoundingConvention.CONTINUOUS,
        interpolation: Union[str, Interpolator, None] = "linear",
        day_count: Optional[Union[DayCount, YearFraction]] = None,
    ):
        if len(spreads) != len(dates):
            raise ValueError(f"{len(spreads)} spreads given for {len(dates)} dates")
        if not spreads:
            raise ValueError("no spreads given")
        check_increasing_dates(dates, "spread")

        super().__init__(base, compounding, day_count)
        self.spreads: List[Handle] = [quote_handle(s) for s in spreads]
        self.spread_dates: List[date] = list(dates)
        self._interpolation = resolve_interpolator(interpolation, "linear")
        self._times: List[float] = []
        self._values: List[float] = []
        for spread in self.spreads:
            self.observe(spread)

    def max_date(self) -> date:
        return min(self._base().max_date(), self.spread_dates[-1])

    def perform_calculations(self) -> None:
        self._times = [self.time_from_reference(d) for d in self.spread_dates]
        self._values = [s.current_link().value() for s in self.spreads]
        if len(self._times) >= self._interpolation.required_points:
            self._interpolation.update(self._times, self._values)

    def spread_at(self, t: float) -> float:
        """Interpolated spread at time t (flat outside the spread dates)."""
        self.calculate()
        if t <= self._times[0]:
            return self._values[0]
        if t >= self._times[-1]:
            return self._values[-1]
        return self._interpolation(t)

    def zero_yield_impl(self, t: float) -> float:
        return self._spreaded_zero(t, self.spread_at(t))


__all__ = [
    "ZeroSpreadedTermStructure",
    "PiecewiseZeroSpreadedTermStructure",
]
