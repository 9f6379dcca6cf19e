"""
Piecewise curves bootstrapped from market helpers.

Provides:
- PiecewiseYieldCurve: discount factors or zero rates fitted to deposits,
  FRAs and swaps
- PiecewiseDefaultCurve: hazard rates or survival probabilities fitted to
  CDS spreads

Both are lazy: a quote change (or a relink of a quote handle, or a move of
the evaluation date) only marks the curve dirty; the bootstrap runs again on
the next query.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Union

import pandas as pd

from ..conventions import DayCount, YearFraction
from ..settings import EvaluationContext
from .bootstrap import BootstrapConfig, BootstrapResult, IterativeBootstrap, sort_helpers
from .default_curve import DefaultProbabilityTermStructure, InterpolatedDefaultCurve
from .helpers import BootstrapHelper
from .interpolation import Interpolator
from .nodes import CurveNodes, InterpolatedCurve
from .traits import DefaultTraits, Discount, HazardRate, YieldTraits, make_traits
from .yield_curve import InterpolatedYieldCurve, YieldTermStructure

logger = logging.getLogger(__name__)


class _BootstrappedCurve(InterpolatedCurve):
    """
    Bootstrap plumbing shared by the piecewise curves.

    The curve registers with its helpers on its first calculation only,
    and hands the solved nodes over from the bootstrapper's scratch curve.
    """

    _scratch_class = None
    _traits_class = None

    def _setup(self, helpers, traits, interpolation, config, bootstrap) -> None:
        self.traits = make_traits(traits)
        if not isinstance(self.traits, self._traits_class):
            raise TypeError(f"{self.traits!r} cannot be used with {type(self).__name__}")
        self.interpolation_method = interpolation
        self.helpers: List[BootstrapHelper] = sort_helpers(helpers)
        self.bootstrap = bootstrap or IterativeBootstrap(config)
        self.last_result: Optional[BootstrapResult] = None
        self._nodes: Optional[CurveNodes] = None
        self._max_date: Optional[date] = None
        self._registered_with_helpers = False

    def make_scratch(self, dates: Sequence[date], values: Sequence[float]):
        """Fresh interpolated curve on the given nodes, used while bootstrapping."""
        return self._scratch_class(dates, values, self.traits, self.interpolation_method, self.day_count)

    def perform_calculations(self) -> None:
        if not self._registered_with_helpers:
            for helper in self.helpers:
                self.observe(helper)
            self._registered_with_helpers = True

        if self.context is not None:
            with self.context.pinned():
                nodes, result = self.bootstrap.calculate(self)
        else:
            nodes, result = self.bootstrap.calculate(self)

        # commit
        self._nodes = nodes
        self._max_date = max(h.latest_date for h in self.helpers)
        self.last_result = result
        for helper in self.helpers:
            helper.set_term_structure(self)
        logger.debug("%s: committed %d nodes up to %s", type(self).__name__, len(nodes), self._max_date)

    def _curve_nodes(self) -> CurveNodes:
        self.calculate()
        return self._nodes

    def max_date(self) -> date:
        self.calculate()
        return self._max_date

    def repricing_errors(self) -> pd.Series:
        """Quote error of every helper on the bootstrapped curve, by pillar."""
        self.calculate()
        alive = [h for h in self.helpers if h.pillar_date > self.reference_date]
        return pd.Series(
            [h.quote_error() for h in alive],
            index=[h.pillar_date for h in alive],
            name="repricing_error",
        )


class PiecewiseYieldCurve(_BootstrappedCurve, YieldTermStructure):
    """
    Yield curve bootstrapped from rate helpers.

    Attributes:
        helpers: Helpers sorted by pillar date
        traits: Discount (default) or ZeroYield
        bootstrap: IterativeBootstrap instance
        last_result: BootstrapResult of the last successful bootstrap
    """

    _scratch_class = InterpolatedYieldCurve
    _traits_class = YieldTraits

    def __init__(
        self,
        helpers: Sequence[BootstrapHelper],
        traits: Union[YieldTraits, type] = Discount,
        interpolation: Union[str, Interpolator, None] = None,
        reference_date: Optional[date] = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_365,
        settlement_days: int = 0,
        context: Optional[EvaluationContext] = None,
        config: Optional[BootstrapConfig] = None,
        bootstrap: Optional[IterativeBootstrap] = None,
    ):
        YieldTermStructure.__init__(
            self, reference_date=reference_date, day_count=day_count,
            settlement_days=settlement_days, context=context, always_forward=False,
        )
        self._setup(helpers, traits, interpolation, config, bootstrap)

    def discount_impl(self, t: float) -> float:
        return self.traits.discount_impl(self._curve_nodes().interpolation, t)

    def __repr__(self) -> str:
        return (f"PiecewiseYieldCurve(ref={self.reference_date}, helpers={len(self.helpers)}, "
                f"traits={type(self.traits).__name__}, state={self.state.value})")


class PiecewiseDefaultCurve(_BootstrappedCurve, DefaultProbabilityTermStructure):
    """
    Default curve bootstrapped from CDS helpers.

    Attributes:
        helpers: Helpers sorted by pillar date
        traits: HazardRate (default) or SurvivalProbability
        bootstrap: IterativeBootstrap instance
        last_result: BootstrapResult of the last successful bootstrap
    """

    _scratch_class = InterpolatedDefaultCurve
    _traits_class = DefaultTraits

    def __init__(
        self,
        helpers: Sequence[BootstrapHelper],
        traits: Union[DefaultTraits, type] = HazardRate,
        interpolation: Union[str, Interpolator, None] = None,
        reference_date: Optional[date] = None,
        day_count: Union[DayCount, YearFraction] = DayCount.ACT_365,
        settlement_days: int = 0,
        context: Optional[EvaluationContext] = None,
        config: Optional[BootstrapConfig] = None,
        bootstrap: Optional[IterativeBootstrap] = None,
    ):
        DefaultProbabilityTermStructure.__init__(
            self, reference_date=reference_date, day_count=day_count,
            settlement_days=settlement_days, context=context, always_forward=False,
        )
        self._setup(helpers, traits, interpolation, config, bootstrap)

    def survival_impl(self, t: float) -> float:
        return self.traits.survival_impl(self._curve_nodes().interpolation, t)

    def hazard_impl(self, t: float) -> float:
        return self.traits.hazard_impl(self._curve_nodes().interpolation, t)

    def default_density_impl(self, t: float) -> float:
        return self.hazard_impl(t) * self.survival_impl(t)

    def __repr__(self) -> str:
        return (f"PiecewiseDefaultCurve(ref={self.reference_date}, helpers={len(self.helpers)}, "
                f"traits={type(self.traits).__name__}, state={self.state.value})")


__all__ = [
    "PiecewiseYieldCurve",
    "PiecewiseDefaultCurve",
]
