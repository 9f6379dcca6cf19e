"""
Bootstrap traits: what a curve's node values mean.

A traits object tells the bootstrapper where to start (initial_value, guess)
and where to look (min_value_after, max_value_after) for node i, and tells
the curve how to turn its interpolated node values into discount factors
or survival probabilities.

Yield traits:
- Discount: nodes are discount factors P(t), log-linear by default
- ZeroYield: nodes are continuously compounded zero rates, linear by default

Default traits:
- HazardRate: nodes are hazard rates h(t), backward flat by default
- SurvivalProbability: nodes are survival probabilities S(t), log-linear by default
"""

import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .interpolation import Interpolator
from ..solvers import MACHINE_EPSILON

AVG_RATE = 0.05
MAX_RATE = 1.0
AVG_HAZARD_RATE = 0.01
MAX_HAZARD_RATE = 1.0


class BootstrapTraits(ABC):
    """
    Common bootstrap interface.

    Attributes:
        initial_value: Value of node 0 (at the reference date)
        flat_left: Node 0 mirrors node 1, so the curve is flat before the
            first pillar
        default_interpolation: Interpolation used when the curve names none
    """

    initial_value: float = 0.0
    flat_left: bool = False
    default_interpolation: str = "linear"

    @abstractmethod
    def guess(self, i: int, data: Sequence[float], times: Sequence[float]) -> float:
        """Starting value for node i (i >= 1) given nodes 0..i-1."""

    @abstractmethod
    def min_value_after(self, i: int, data: Sequence[float], times: Sequence[float]) -> float:
        pass

    @abstractmethod
    def max_value_after(self, i: int, data: Sequence[float], times: Sequence[float]) -> float:
        pass

    def update_guess(self, data, value: float, i: int) -> None:
        """Store a trial value for node i."""
        data[i] = value
        if i == 1 and self.flat_left:
            data[0] = value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(flat_left={self.flat_left})"


class YieldTraits(BootstrapTraits):
    """Traits of yield curves."""

    @abstractmethod
    def discount_impl(self, interpolation: Interpolator, t: float) -> float:
        pass


class DefaultTraits(BootstrapTraits):
    """Traits of default-probability curves."""

    @abstractmethod
    def survival_impl(self, interpolation: Interpolator, t: float) -> float:
        pass

    @abstractmethod
    def hazard_impl(self, interpolation: Interpolator, t: float) -> float:
        pass


class Discount(YieldTraits):
    """Discount factor nodes."""

    initial_value = 1.0
    default_interpolation = "log_linear"

    def guess(self, i, data, times):
        if i == 1:
            return 1.0 / (1.0 + AVG_RATE * times[1])
        # extend the previous zero rate
        rate = -math.log(data[i - 1]) / times[i - 1]
        return math.exp(-rate * times[i])

    def min_value_after(self, i, data, times):
        dt = times[i] - times[i - 1]
        return data[i - 1] * math.exp(-MAX_RATE * dt)

    def max_value_after(self, i, data, times):
        dt = times[i] - times[i - 1]
        return data[i - 1] * math.exp(MAX_RATE * dt)

    def discount_impl(self, interpolation, t):
        t_max = interpolation.x_max
        if t <= t_max:
            return interpolation(t)
        # flat instantaneous forward past the last node
        d_max = interpolation(t_max)
        forward = -interpolation.derivative(t_max) / d_max
        return d_max * math.exp(-forward * (t - t_max))


class ZeroYield(YieldTraits):
    """Continuously compounded zero rate nodes."""

    initial_value = AVG_RATE
    flat_left = True
    default_interpolation = "linear"

    def __init__(self, flat_left: Optional[bool] = None):
        if flat_left is not None:
            self.flat_left = flat_left

    def guess(self, i, data, times):
        if i == 1:
            return AVG_RATE
        return data[i - 1]

    def min_value_after(self, i, data, times):
        return -MAX_RATE

    def max_value_after(self, i, data, times):
        return MAX_RATE

    def zero_impl(self, interpolation: Interpolator, t: float) -> float:
        t_max = interpolation.x_max
        if t <= t_max:
            return interpolation(t)
        # flat instantaneous forward past the last node
        z_max = interpolation(t_max)
        forward = z_max + t_max * interpolation.derivative(t_max)
        return (z_max * t_max + forward * (t - t_max)) / t

    def discount_impl(self, interpolation, t):
        return math.exp(-self.zero_impl(interpolation, t) * t)


class HazardRate(DefaultTraits):
    """Hazard rate nodes."""

    initial_value = AVG_HAZARD_RATE
    flat_left = True
    default_interpolation = "backward_flat"

    def __init__(self, flat_left: Optional[bool] = None):
        if flat_left is not None:
            self.flat_left = flat_left

    def guess(self, i, data, times):
        if i == 1:
            return AVG_HAZARD_RATE
        return data[i - 1]

    def min_value_after(self, i, data, times):
        return MACHINE_EPSILON

    def max_value_after(self, i, data, times):
        return MAX_HAZARD_RATE

    def survival_impl(self, interpolation, t):
        t_max = interpolation.x_max
        if t <= t_max:
            return math.exp(-interpolation.primitive(t))
        integral = interpolation.primitive(t_max) + interpolation(t_max) * (t - t_max)
        return math.exp(-integral)

    def hazard_impl(self, interpolation, t):
        return interpolation(min(t, interpolation.x_max))


class SurvivalProbability(DefaultTraits):
    """Survival probability nodes."""

    initial_value = 1.0
    default_interpolation = "log_linear"

    def guess(self, i, data, times):
        if i == 1:
            return math.exp(-AVG_HAZARD_RATE * times[1])
        hazard = -math.log(data[i - 1]) / times[i - 1]
        return math.exp(-hazard * times[i])

    def min_value_after(self, i, data, times):
        return MACHINE_EPSILON

    def max_value_after(self, i, data, times):
        # survival probability cannot increase
        return data[i - 1]

    def survival_impl(self, interpolation, t):
        t_max = interpolation.x_max
        if t <= t_max:
            return interpolation(t)
        s_max = interpolation(t_max)
        return s_max * math.exp(-self.hazard_impl(interpolation, t_max) * (t - t_max))

    def hazard_impl(self, interpolation, t):
        t = min(t, interpolation.x_max)
        return -interpolation.derivative(t) / interpolation(t)


def make_traits(traits) -> BootstrapTraits:
    """Accept a traits class or instance."""
    if isinstance(traits, type) and issubclass(traits, BootstrapTraits):
        return traits()
    if isinstance(traits, BootstrapTraits):
        return traits
    raise TypeError(f"expected bootstrap traits, got {traits!r}")


__all__ = [
    "BootstrapTraits",
    "YieldTraits",
    "DefaultTraits",
    "Discount",
    "ZeroYield",
    "HazardRate",
    "SurvivalProbability",
    "make_traits",
]
