"""
Default-probability term structures.

The DefaultProbabilityTermStructure class provides:
- Survival probability S(t)
- Default probability 1 - S(t), or S(t1) - S(t2) over an interval
- Hazard rate h(t) = -d/dt log S(t)
- Default density -dS/dt

Concrete structures:
- FlatHazardRate: constant hazard rate read from a quote handle
- InterpolatedDefaultCurve: interpolated hazard rates or survival probabilities
"""

import math
from abc import abstractmethod
from datetime import date
from typing import Sequence, Union

from ..conventions import DayCount, YearFraction, make_year_fraction
from ..handle import Handle
from ..quotes import Quote, quote_handle
from .interpolation import Interpolator, resolve_interpolator
from .nodes import CurveNodes, InterpolatedCurve
from .term_structure import DateOrTime, TermStructure
from .traits import DefaultTraits, HazardRate, SurvivalProbability, make_traits
from .yield_curve import DT


class DefaultProbabilityTermStructure(TermStructure):
    """
    Default-probability term structure.

    Subclasses implement survival_impl(t); hazard_impl and
    default_density_impl fall back to finite differences of it.
    """

    def survival_probability(self, d: DateOrTime, extrapolate: bool = False) -> float:
        self.check_range(d, extrapolate)
        return self.survival_impl(self.to_time(d))

    def default_probability(
        self,
        d1: DateOrTime,
        d2: DateOrTime = None,
        extrapolate: bool = False
    ) -> float:
        """
        Probability of default before d1, or between d1 and d2 if given.

        Raises:
            ValueError: if d2 is before d1
        """
        if d2 is None:
            return 1.0 - self.survival_probability(d1, extrapolate)
        if self.to_time(d2) < self.to_time(d1):
            raise ValueError(f"default interval end ({d2}) before start ({d1})")
        return (self.survival_probability(d1, extrapolate)
                - self.survival_probability(d2, extrapolate))

    def hazard_rate(self, d: DateOrTime, extrapolate: bool = False) -> float:
        self.check_range(d, extrapolate)
        return self.hazard_impl(self.to_time(d))

    def default_density(self, d: DateOrTime, extrapolate: bool = False) -> float:
        self.check_range(d, extrapolate)
        return self.default_density_impl(self.to_time(d))

    @abstractmethod
    def survival_impl(self, t: float) -> float:
        """Survival probability at time t, no range check."""

    def default_density_impl(self, t: float) -> float:
        t1 = max(t - DT / 2.0, 0.0)
        t2 = t1 + DT
        return (self.survival_impl(t1) - self.survival_impl(t2)) / DT

    def hazard_impl(self, t: float) -> float:
        survival = self.survival_impl(t)
        if survival == 0.0:
            return 0.0
        return self.default_density_impl(t) / survival


class FlatHazardRate(DefaultProbabilityTermStructure):
    """
    Flat hazard rate curve: S(t) = exp(-h t).

    The hazard rate is read from a quote handle at every call.
    """

    def __init__(
        self,
        hazard_rate: Union[Handle, Quote, float],
        reference_date: date = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_365,
        settlement_days: int = 0,
        context=None,
    ):
        super().__init__(reference_date=reference_date, day_count=day_count,
                         settlement_days=settlement_days, context=context)
        self.hazard_quote = quote_handle(hazard_rate)
        self.observe(self.hazard_quote)

    def _hazard(self) -> float:
        return self.hazard_quote.current_link().value()

    def survival_impl(self, t: float) -> float:
        return math.exp(-self._hazard() * t)

    def hazard_impl(self, t: float) -> float:
        return self._hazard()

    def default_density_impl(self, t: float) -> float:
        h = self._hazard()
        return h * math.exp(-h * t)

    def __repr__(self) -> str:
        return f"FlatHazardRate({self.hazard_quote!r}, ref={self.reference_date})"


class InterpolatedDefaultCurve(DefaultProbabilityTermStructure, InterpolatedCurve):
    """
    Default curve interpolated on given nodes.

    The first date is the reference date. With SurvivalProbability traits
    the first value must be 1.0.

    Attributes:
        traits: HazardRate or SurvivalProbability
    """

    def __init__(
        self,
        dates: Sequence[date],
        values: Sequence[float],
        traits: Union[DefaultTraits, type] = HazardRate,
        interpolation: Union[str, Interpolator, None] = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_365,
    ):
        if len(dates) == 0:
            raise ValueError("no dates given")
        super().__init__(reference_date=dates[0], day_count=day_count)
        self.traits = make_traits(traits)
        if not isinstance(self.traits, DefaultTraits):
            raise TypeError(f"{self.traits!r} are not default curve traits")
        if isinstance(self.traits, SurvivalProbability) and len(values) and values[0] != 1.0:
            raise ValueError(f"initial survival probability must be 1.0, got {values[0]}")

        year_fraction = make_year_fraction(day_count)
        times = [year_fraction(dates[0], d) for d in dates]
        self._nodes = CurveNodes(
            resolve_interpolator(interpolation, self.traits.default_interpolation),
            dates, times, values
        )
        self._nodes.refit()

    def max_date(self) -> date:
        return self._curve_nodes().dates[-1]

    def survival_impl(self, t: float) -> float:
        return self.traits.survival_impl(self._curve_nodes().interpolation, t)

    def hazard_impl(self, t: float) -> float:
        return self.traits.hazard_impl(self._curve_nodes().interpolation, t)

    def default_density_impl(self, t: float) -> float:
        return self.hazard_impl(t) * self.survival_impl(t)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(ref={self.reference_date}, nodes={len(self._nodes)}, "
                f"traits={type(self.traits).__name__})")


__all__ = [
    "DefaultProbabilityTermStructure",
    "FlatHazardRate",
    "InterpolatedDefaultCurve",
]
