"""
Common machinery of the 1-D root finders.

Every solver exposes two entry points:
- solve(f, accuracy, guess, step): search outward from guess for a bracket,
  then refine it
- solve_bracketed(f, accuracy, guess, x_min, x_max): refine a given bracket

The objective f is either a plain callable or an object with value(x)
(and derivative(x) for the Newton variants).
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional, Tuple

import numpy as np

from ..errors import MaxEvaluationsExceeded, RootNotBracketed

logger = logging.getLogger(__name__)

MACHINE_EPSILON = float(np.finfo(float).eps)
MAX_EVALUATIONS = 100
GROWTH_FACTOR = 1.6


def close(x: float, y: float, n: int = 42) -> bool:
    """
    Floating point equality within n machine epsilons (relative).

    Comparisons against zero use the squared tolerance.
    """
    if x == y:
        return True
    diff = abs(x - y)
    tolerance = n * MACHINE_EPSILON
    if x * y == 0.0:
        return diff < tolerance * tolerance
    return diff <= tolerance * abs(x) and diff <= tolerance * abs(y)


def sign_of(a: float, b: float) -> float:
    """|a| carrying the sign of b."""
    return abs(a) if b >= 0.0 else -abs(a)


Function = Callable[[float], float]


class Solver1D(ABC):
    """
    Base class of the 1-D solvers.

    Subclasses implement _solve_impl(), which starts from a valid bracket
    [_x_min, _x_max] with known function values and a root estimate _root.

    Attributes:
        max_evaluations: Budget of function evaluations per solve
    """

    requires_derivative = False

    def __init__(self, max_evaluations: int = MAX_EVALUATIONS):
        self.max_evaluations = max_evaluations
        self._lower_bound: Optional[float] = None
        self._upper_bound: Optional[float] = None
        self._evaluation_number = 0
        self._root = 0.0
        self._x_min = 0.0
        self._x_max = 0.0
        self._fx_min = 0.0
        self._fx_max = 0.0

    @property
    def evaluation_number(self) -> int:
        """Function evaluations used by the last solve."""
        return self._evaluation_number

    def set_max_evaluations(self, evaluations: int) -> None:
        if evaluations < 1:
            raise ValueError(f"max evaluations must be positive, got {evaluations}")
        self.max_evaluations = evaluations

    def set_lower_bound(self, lower_bound: float) -> None:
        """Never evaluate f below lower_bound while searching for a bracket."""
        if self._upper_bound is not None and lower_bound > self._upper_bound:
            raise ValueError(f"lower bound {lower_bound} above upper bound {self._upper_bound}")
        self._lower_bound = lower_bound

    def set_upper_bound(self, upper_bound: float) -> None:
        """Never evaluate f above upper_bound while searching for a bracket."""
        if self._lower_bound is not None and upper_bound < self._lower_bound:
            raise ValueError(f"upper bound {upper_bound} below lower bound {self._lower_bound}")
        self._upper_bound = upper_bound

    def solve(self, f, accuracy: float, guess: float, step: float) -> float:
        """
        Find a root of f starting from a guess.

        The bracket is grown outward from guess by GROWTH_FACTOR on the side
        with the smaller |f| until a sign change is found.

        Args:
            f: Callable or object with value(x)
            accuracy: Required accuracy on x
            guess: Starting point
            step: Initial bracket width

        Returns:
            Root of f

        Raises:
            RootNotBracketed: if no sign change is found within max_evaluations
            MaxEvaluationsExceeded: if refining the bracket runs out of budget
        """
        value, derivative = self._unpack(f)
        accuracy = max(accuracy, MACHINE_EPSILON)

        self._root = guess
        self._fx_max = value(self._root)
        self._evaluation_number = 1

        if close(self._fx_max, 0.0):
            return self._root
        elif self._fx_max > 0.0:
            self._x_min = self._enforce_bounds(self._root - step)
            self._fx_min = value(self._x_min)
            self._x_max = self._root
        else:
            self._x_min = self._root
            self._fx_min = self._fx_max
            self._x_max = self._enforce_bounds(self._root + step)
            self._fx_max = value(self._x_max)

        self._evaluation_number = 2
        flipflop = -1
        while self._evaluation_number <= self.max_evaluations:
            if self._fx_min * self._fx_max <= 0.0:
                if close(self._fx_min, 0.0):
                    return self._x_min
                if close(self._fx_max, 0.0):
                    return self._x_max
                self._root = (self._x_max + self._x_min) / 2.0
                return self._refine(value, derivative, accuracy)

            if abs(self._fx_min) < abs(self._fx_max):
                self._x_min = self._enforce_bounds(
                    self._x_min + GROWTH_FACTOR * (self._x_min - self._x_max))
                self._fx_min = value(self._x_min)
            elif abs(self._fx_min) > abs(self._fx_max):
                self._x_max = self._enforce_bounds(
                    self._x_max + GROWTH_FACTOR * (self._x_max - self._x_min))
                self._fx_max = value(self._x_max)
            elif flipflop == -1:
                self._x_min = self._enforce_bounds(
                    self._x_min + GROWTH_FACTOR * (self._x_min - self._x_max))
                self._fx_min = value(self._x_min)
            else:
                self._x_max = self._enforce_bounds(
                    self._x_max + GROWTH_FACTOR * (self._x_max - self._x_min))
                self._fx_max = value(self._x_max)

            flipflop = -flipflop
            self._evaluation_number += 1

        raise RootNotBracketed(
            self._x_min, self._x_max, self._fx_min, self._fx_max,
            f"unable to bracket root in {self.max_evaluations} function evaluations "
            f"(last bracket attempt: f[{self._x_min}, {self._x_max}] -> "
            f"[{self._fx_min:.6e}, {self._fx_max:.6e}])"
        )

    def solve_bracketed(self, f, accuracy: float, guess: float,
                        x_min: float, x_max: float) -> float:
        """
        Find a root of f inside [x_min, x_max].

        Args:
            f: Callable or object with value(x)
            accuracy: Required accuracy on x
            guess: Starting point, strictly inside the bracket
            x_min: Lower end of the bracket
            x_max: Upper end of the bracket

        Returns:
            Root of f

        Raises:
            ValueError: if the bracket or guess are inconsistent
            RootNotBracketed: if f does not change sign over the bracket
            MaxEvaluationsExceeded: if the solver runs out of budget
        """
        value, derivative = self._unpack(f)
        accuracy = max(accuracy, MACHINE_EPSILON)

        if not x_min < x_max:
            raise ValueError(f"invalid range: x_min ({x_min}) >= x_max ({x_max})")
        if not x_min < guess < x_max:
            raise ValueError(f"guess ({guess}) not strictly inside [{x_min}, {x_max}]")
        if self._lower_bound is not None and x_min < self._lower_bound:
            raise ValueError(f"x_min ({x_min}) below enforced lower bound ({self._lower_bound})")
        if self._upper_bound is not None and x_max > self._upper_bound:
            raise ValueError(f"x_max ({x_max}) above enforced upper bound ({self._upper_bound})")

        self._x_min = x_min
        self._x_max = x_max

        self._fx_min = value(self._x_min)
        self._evaluation_number = 1
        if close(self._fx_min, 0.0):
            return self._x_min

        self._fx_max = value(self._x_max)
        self._evaluation_number = 2
        if close(self._fx_max, 0.0):
            return self._x_max

        if self._fx_min * self._fx_max >= 0.0:
            raise RootNotBracketed(x_min, x_max, self._fx_min, self._fx_max)

        self._root = guess
        return self._refine(value, derivative, accuracy)

    def _refine(self, value: Function, derivative: Optional[Function], accuracy: float) -> float:
        root = self._solve_impl(value, derivative, accuracy)
        logger.debug("%s: root %.12g after %d evaluations",
                     type(self).__name__, root, self._evaluation_number)
        return root

    @abstractmethod
    def _solve_impl(self, value: Function, derivative: Optional[Function],
                    accuracy: float) -> float:
        pass

    def _max_evaluations_exceeded(self) -> MaxEvaluationsExceeded:
        return MaxEvaluationsExceeded(self.max_evaluations, self._root)

    def _enforce_bounds(self, x: float) -> float:
        if self._lower_bound is not None and x < self._lower_bound:
            return self._lower_bound
        if self._upper_bound is not None and x > self._upper_bound:
            return self._upper_bound
        return x

    def _unpack(self, f) -> Tuple[Function, Optional[Function]]:
        value = getattr(f, "value", None)
        if value is None:
            if not callable(f):
                raise TypeError(f"objective must be callable or expose value(x), got {f!r}")
            value = f
        derivative = getattr(f, "derivative", None)
        if self.requires_derivative and derivative is None:
            raise TypeError(f"{type(self).__name__} requires an objective with derivative(x)")
        return value, derivative


__all__ = [
    "MACHINE_EPSILON",
    "MAX_EVALUATIONS",
    "GROWTH_FACTOR",
    "close",
    "Solver1D",
]
