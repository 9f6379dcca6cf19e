"""
Bootstrap helpers: market quotes turned into curve calibration targets.

Each helper knows:
1. Its pillar date (where the bootstrapper puts the node it solves for)
2. The dates it needs from the curve (earliest to latest)
3. The quote the curve should reproduce, as implied_quote() on the curve
   it is currently bound to

Helpers never cache: every call re-reads the quote and the bound curve.

Instruments:
- DepositRateHelper: money market deposit, simple rate
- FraRateHelper: forward rate agreement
- SwapRateHelper: single-curve par swap rate
- CdsSpreadHelper: par CDS spread against a default curve
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import List, Optional, Union

from ..conventions import (
    BusinessDayConvention,
    DayCount,
    YearFraction,
    make_year_fraction,
)
from ..dates import DateUtils
from ..handle import Handle
from ..observer import Observable, Observer
from ..quotes import Quote, quote_handle
from ..settings import EvaluationContext

logger = logging.getLogger(__name__)

QuoteLike = Union[Handle, Quote, float]


class BootstrapHelper(Observable, Observer, ABC):
    """
    Abstract calibration helper.

    The helper observes its quote handle and forwards every notification,
    so the curve built on it only has to observe the helper.

    Attributes:
        quote: Handle to the market quote
    """

    def __init__(self, quote: QuoteLike):
        Observable.__init__(self)
        Observer.__init__(self)
        self.quote = quote_handle(quote)
        self._term_structure = None
        self._earliest_date: Optional[date] = None
        self._latest_date: Optional[date] = None
        self._pillar_date: Optional[date] = None
        self.observe(self.quote)

    @property
    def pillar_date(self) -> date:
        """Date of the curve node solved with this helper."""
        return self._pillar_date

    @property
    def earliest_date(self) -> date:
        return self._earliest_date

    @property
    def latest_date(self) -> date:
        """Latest date the helper reads from the curve."""
        return self._latest_date

    @property
    def term_structure(self):
        if self._term_structure is None:
            raise RuntimeError(f"{type(self).__name__}: term structure not set")
        return self._term_structure

    def set_term_structure(self, term_structure):
        """Bind the curve to price against (not observed); returns the previous one."""
        previous, self._term_structure = self._term_structure, term_structure
        return previous

    def quote_value(self) -> float:
        return self.quote.current_link().value()

    def quote_is_valid(self) -> bool:
        return not self.quote.is_empty and self.quote.current_link().is_valid()

    @abstractmethod
    def implied_quote(self) -> float:
        """Quote implied by the bound term structure."""

    def quote_error(self) -> float:
        """implied_quote() - quote_value(); zero on a calibrated curve."""
        return self.implied_quote() - self.quote_value()

    def update(self) -> None:
        self.notify_observers()

    def __repr__(self) -> str:
        quote = self.quote_value() if self.quote_is_valid() else None
        return f"{type(self).__name__}(quote={quote}, pillar={self._pillar_date})"


class RelativeDateBootstrapHelper(BootstrapHelper):
    """
    Helper whose dates are rolled from an evaluation date.

    Without an explicit start date the helper observes the evaluation
    context and rebuilds its dates whenever the evaluation date moves.

    Attributes:
        start_date: Fixed spot date, or None to follow the context
        settlement_days: Business days from evaluation date to spot
        context: EvaluationContext driving the spot date
    """

    def __init__(
        self,
        quote: QuoteLike,
        start_date: Optional[date] = None,
        settlement_days: int = 0,
        context: Optional[EvaluationContext] = None,
        holidays: Optional[set] = None,
    ):
        super().__init__(quote)
        if start_date is None and context is None:
            raise ValueError(f"{type(self).__name__} needs a start date or an evaluation context")
        self.start_date = start_date
        self.settlement_days = settlement_days
        self.context = context
        self.holidays = holidays
        if start_date is None:
            self.observe(context)
        self._initialize_dates()

    def spot_date(self) -> date:
        if self.start_date is not None:
            return self.start_date
        return DateUtils.add_tenor(self.context.evaluation_date, f"{self.settlement_days}D",
                                   holidays=self.holidays)

    @abstractmethod
    def _initialize_dates(self) -> None:
        """Set earliest, latest and pillar dates."""

    def update(self) -> None:
        if self.start_date is None:
            self._initialize_dates()
            logger.debug("%s: dates rolled, pillar %s", type(self).__name__, self._pillar_date)
        super().update()


class DepositRateHelper(RelativeDateBootstrapHelper):
    """
    Money market deposit.

    Implied rate: R = (P(start) / P(end) - 1) / tau
    """

    def __init__(
        self,
        quote: QuoteLike,
        tenor: str,
        start_date: Optional[date] = None,
        settlement_days: int = 0,
        context: Optional[EvaluationContext] = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_360,
        convention: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING,
        holidays: Optional[set] = None,
    ):
        self.tenor = tenor
        self.convention = convention
        self._year_fraction = make_year_fraction(day_count)
        super().__init__(quote, start_date, settlement_days, context, holidays)

    def _initialize_dates(self) -> None:
        self._earliest_date = self.spot_date()
        self._latest_date = DateUtils.add_tenor(self._earliest_date, self.tenor,
                                                self.convention, self.holidays)
        self._pillar_date = self._latest_date

    def implied_quote(self) -> float:
        curve = self.term_structure
        tau = self._year_fraction(self._earliest_date, self._latest_date)
        df_start = curve.discount(self._earliest_date, extrapolate=True)
        df_end = curve.discount(self._latest_date, extrapolate=True)
        return (df_start / df_end - 1.0) / tau


class FraRateHelper(RelativeDateBootstrapHelper):
    """
    Forward rate agreement, e.g. 3x6 is start_tenor="3M", end_tenor="6M".

    Implied forward: F = (P(T1) / P(T2) - 1) / tau
    """

    def __init__(
        self,
        quote: QuoteLike,
        start_tenor: str,
        end_tenor: str,
        start_date: Optional[date] = None,
        settlement_days: int = 0,
        context: Optional[EvaluationContext] = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_360,
        convention: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING,
        holidays: Optional[set] = None,
    ):
        if DateUtils.tenor_to_years(end_tenor) <= DateUtils.tenor_to_years(start_tenor):
            raise ValueError(f"FRA end tenor {end_tenor} must be after start tenor {start_tenor}")
        self.start_tenor = start_tenor
        self.end_tenor = end_tenor
        self.convention = convention
        self._year_fraction = make_year_fraction(day_count)
        super().__init__(quote, start_date, settlement_days, context, holidays)

    def _initialize_dates(self) -> None:
        spot = self.spot_date()
        self._earliest_date = DateUtils.add_tenor(spot, self.start_tenor, self.convention, self.holidays)
        self._latest_date = DateUtils.add_tenor(spot, self.end_tenor, self.convention, self.holidays)
        self._pillar_date = self._latest_date

    def implied_quote(self) -> float:
        curve = self.term_structure
        tau = self._year_fraction(self._earliest_date, self._latest_date)
        df1 = curve.discount(self._earliest_date, extrapolate=True)
        df2 = curve.discount(self._latest_date, extrapolate=True)
        return (df1 / df2 - 1.0) / tau


class SwapRateHelper(RelativeDateBootstrapHelper):
    """
    Par swap rate, single curve (discounting = forwarding).

    Par rate: R = (P(start) - P(T_n)) / sum(tau_i * P(T_i))
    """

    def __init__(
        self,
        quote: QuoteLike,
        tenor: str,
        frequency: int = 1,
        start_date: Optional[date] = None,
        settlement_days: int = 0,
        context: Optional[EvaluationContext] = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_360,
        convention: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING,
        holidays: Optional[set] = None,
    ):
        self.tenor = tenor
        self.frequency = frequency
        self.convention = convention
        self._year_fraction = make_year_fraction(day_count)
        self._schedule: List[date] = []
        super().__init__(quote, start_date, settlement_days, context, holidays)

    def _initialize_dates(self) -> None:
        start = self.spot_date()
        maturity = DateUtils.add_tenor(start, self.tenor)
        self._schedule = DateUtils.generate_schedule(
            start, maturity, self.frequency, self.convention, self.holidays
        )
        self._earliest_date = start
        self._latest_date = self._schedule[-1]
        self._pillar_date = self._latest_date

    @property
    def payment_dates(self) -> List[date]:
        return list(self._schedule)

    def annuity(self) -> float:
        """Fixed leg PV01 per unit rate: sum(tau_i * P(T_i))."""
        curve = self.term_structure
        total = 0.0
        prev = self._earliest_date
        for pay_date in self._schedule:
            tau = self._year_fraction(prev, pay_date)
            total += tau * curve.discount(pay_date, extrapolate=True)
            prev = pay_date
        return total

    def implied_quote(self) -> float:
        curve = self.term_structure
        floating_leg = (curve.discount(self._earliest_date, extrapolate=True)
                        - curve.discount(self._latest_date, extrapolate=True))
        return floating_leg / self.annuity()


class CdsSpreadHelper(RelativeDateBootstrapHelper):
    """
    Par CDS spread, used to bootstrap default curves.

    Premium leg: sum_i s * tau_i * P(t_i) * S(t_i)
    Protection leg: sum_i (1 - R) * P(t_mid) * (S(t_{i-1}) - S(t_i)),
    defaults assumed at period midpoints.

    Fair spread: protection / risky annuity

    Attributes:
        discount_curve: Handle to the yield curve used for discounting
        recovery_rate: Assumed recovery rate
    """

    def __init__(
        self,
        quote: QuoteLike,
        tenor: str,
        discount_curve: Handle,
        recovery_rate: float = 0.4,
        frequency: int = 4,
        start_date: Optional[date] = None,
        settlement_days: int = 0,
        context: Optional[EvaluationContext] = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_360,
        convention: BusinessDayConvention = BusinessDayConvention.FOLLOWING,
        holidays: Optional[set] = None,
    ):
        if not 0.0 <= recovery_rate < 1.0:
            raise ValueError(f"recovery rate must be in [0, 1), got {recovery_rate}")
        if not isinstance(discount_curve, Handle):
            raise TypeError(f"discount curve must be given as a Handle, got {discount_curve!r}")
        self.tenor = tenor
        self.discount_curve = discount_curve
        self.recovery_rate = recovery_rate
        self.frequency = frequency
        self.convention = convention
        self._year_fraction = make_year_fraction(day_count)
        self._schedule: List[date] = []
        super().__init__(quote, start_date, settlement_days, context, holidays)
        self.observe(discount_curve)

    def _initialize_dates(self) -> None:
        start = self.spot_date()
        maturity = DateUtils.add_tenor(start, self.tenor)
        self._schedule = DateUtils.generate_schedule(
            start, maturity, self.frequency, self.convention, self.holidays
        )
        self._earliest_date = start
        self._latest_date = self._schedule[-1]
        self._pillar_date = self._latest_date

    @property
    def payment_dates(self) -> List[date]:
        return list(self._schedule)

    def _legs(self):
        survival = self.term_structure
        discount = self.discount_curve.current_link()
        risky_annuity = 0.0
        protection = 0.0
        prev = self._earliest_date
        s_prev = survival.survival_probability(prev, extrapolate=True)
        for pay_date in self._schedule:
            s_t = survival.survival_probability(pay_date, extrapolate=True)
            tau = self._year_fraction(prev, pay_date)
            risky_annuity += tau * discount.discount(pay_date, extrapolate=True) * s_t
            mid = prev + timedelta(days=(pay_date - prev).days // 2)
            protection += (1.0 - self.recovery_rate) * \
                discount.discount(mid, extrapolate=True) * (s_prev - s_t)
            prev = pay_date
            s_prev = s_t
        return protection, risky_annuity

    def implied_quote(self) -> float:
        protection, risky_annuity = self._legs()
        if risky_annuity <= 0.0:
            raise ValueError(f"non-positive risky annuity ({risky_annuity}) for {self!r}")
        return protection / risky_annuity


__all__ = [
    "BootstrapHelper",
    "RelativeDateBootstrapHelper",
    "DepositRateHelper",
    "FraRateHelper",
    "SwapRateHelper",
    "CdsSpreadHelper",
]
