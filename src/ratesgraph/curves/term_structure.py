"""
Base class of all term structures.

A term structure has a reference date (time zero), a day count turning
dates into times, a max date past which it only answers if extrapolation
is enabled, and it is a LazyObject so that curves built from market data
cache their results until something upstream changes.

The reference date is either fixed at construction or moves with an
EvaluationContext (settlement_days business days after its evaluation
date).
"""

import logging
import math
from datetime import date
from typing import Optional, Union

from ..conventions import DayCount, YearFraction, make_year_fraction
from ..dates import DateUtils
from ..errors import ExtrapolationNotAllowed
from ..lazy import LazyObject
from ..settings import EvaluationContext
from ..solvers import close

logger = logging.getLogger(__name__)

DateOrTime = Union[date, float]


class TermStructure(LazyObject):
    """
    Abstract term structure.

    Attributes:
        day_count: DayCount member or year_fraction(d1, d2) callable
        settlement_days: Business days between evaluation and reference date
            (moving structures only)
        context: EvaluationContext driving a moving reference date
    """

    # subclasses taking their dates from an underlying structure set this
    # and override reference_date
    delegates_dates = False

    def __init__(
        self,
        reference_date: Optional[date] = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_365,
        settlement_days: int = 0,
        context: Optional[EvaluationContext] = None,
        holidays: Optional[set] = None,
        always_forward: bool = True,
    ):
        super().__init__(always_forward=always_forward)
        if reference_date is None and context is None and not self.delegates_dates:
            raise ValueError("a term structure needs either a reference date or an evaluation context")
        if settlement_days < 0:
            raise ValueError(f"settlement days must be non-negative, got {settlement_days}")

        self.day_count = day_count
        self._year_fraction = make_year_fraction(day_count)
        self._reference_date = reference_date
        self.settlement_days = settlement_days
        self.context = context
        self.holidays = holidays
        self._extrapolate = False

        self.moving = reference_date is None and context is not None
        if self.moving:
            self.observe(context)

    @property
    def reference_date(self) -> date:
        """Date at which time is zero."""
        if self.moving:
            return DateUtils.add_tenor(
                self.context.evaluation_date, f"{self.settlement_days}D", holidays=self.holidays
            )
        return self._reference_date

    def time_from_reference(self, d: date) -> float:
        """Year fraction from the reference date to d."""
        return self._year_fraction(self.reference_date, d)

    def max_date(self) -> date:
        """Latest date for which the structure can return values."""
        return date.max

    def max_time(self) -> float:
        max_date = self.max_date()
        if max_date == date.max:
            return math.inf
        return self.time_from_reference(max_date)

    def enable_extrapolation(self, extrapolate: bool = True) -> None:
        self._extrapolate = extrapolate

    def disable_extrapolation(self) -> None:
        self._extrapolate = False

    @property
    def allows_extrapolation(self) -> bool:
        return self._extrapolate

    def to_time(self, d: DateOrTime) -> float:
        if isinstance(d, date):
            return self.time_from_reference(d)
        return float(d)

    def check_range(self, d: DateOrTime, extrapolate: bool = False) -> None:
        """
        Validate a query against [reference date, max date].

        Raises:
            ValueError: if the query is before the reference date
            ExtrapolationNotAllowed: if the query is past max date and
                neither the call nor the structure allows extrapolation
        """
        allowed = extrapolate or self._extrapolate
        if isinstance(d, date):
            if d < self.reference_date:
                raise ValueError(f"date ({d}) before reference date ({self.reference_date})")
            max_date = self.max_date()
            if not allowed and d > max_date:
                raise ExtrapolationNotAllowed(d, max_date)
        else:
            t = float(d)
            if t < 0.0:
                raise ValueError(f"negative time ({t}) given")
            max_time = self.max_time()
            if not allowed and t > max_time and not close(t, max_time):
                raise ExtrapolationNotAllowed(t, max_time)

    def update(self) -> None:
        if self.moving:
            logger.debug("%s: reference date moved to %s", type(self).__name__, self.reference_date)
        super().update()


__all__ = [
    "DateOrTime",
    "TermStructure",
]
