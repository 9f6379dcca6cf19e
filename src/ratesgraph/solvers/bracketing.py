"""
Bracketing root finders: the bracket [x_min, x_max] always contains the root.

Provides:
- Bisection: halves the bracket at each step (slow, always converges)
- FalsePosition: regula falsi, linear interpolation between bracket ends
- Ridder: exponential fit through the bracket midpoint
- Brent: inverse quadratic interpolation with bisection fallback (default)
"""

import math
import sys

from ..errors import SolverError
from .base import MACHINE_EPSILON, Solver1D, close, sign_of


class Bisection(Solver1D):
    """Bisection method."""

    def _solve_impl(self, value, derivative, accuracy):
        # orient the search so that f < 0 at root
        if self._fx_min < 0.0:
            dx = self._x_max - self._x_min
            self._root = self._x_min
        else:
            dx = self._x_min - self._x_max
            self._root = self._x_max

        while self._evaluation_number <= self.max_evaluations:
            dx /= 2.0
            x_mid = self._root + dx
            f_mid = value(x_mid)
            self._evaluation_number += 1
            if f_mid <= 0.0:
                self._root = x_mid
            if abs(dx) < accuracy or close(f_mid, 0.0):
                value(self._root)
                self._evaluation_number += 1
                return self._root

        raise self._max_evaluations_exceeded()


class FalsePosition(Solver1D):
    """
    False position (regula falsi).

    Converges linearly when one end of the bracket stays fixed; the
    evaluation budget bounds the stall on strongly curved functions.
    """

    def _solve_impl(self, value, derivative, accuracy):
        if self._fx_min < 0.0:
            x_l, f_l = self._x_min, self._fx_min
            x_h, f_h = self._x_max, self._fx_max
        else:
            x_l, f_l = self._x_max, self._fx_max
            x_h, f_h = self._x_min, self._fx_min

        while self._evaluation_number <= self.max_evaluations:
            self._root = x_l + (x_h - x_l) * f_l / (f_l - f_h)
            f_root = value(self._root)
            self._evaluation_number += 1
            if f_root < 0.0:
                delta = x_l - self._root
                x_l, f_l = self._root, f_root
            else:
                delta = x_h - self._root
                x_h, f_h = self._root, f_root

            if abs(delta) < accuracy or close(f_root, 0.0):
                return self._root

        raise self._max_evaluations_exceeded()


class Ridder(Solver1D):
    """
    Ridder's method.

    The x tolerance is tightened by a factor of 100: the achieved accuracy
    is otherwise well below the requested one.
    """

    def _solve_impl(self, value, derivative, accuracy):
        x_accuracy = accuracy / 100.0
        self._root = -sys.float_info.max

        while self._evaluation_number <= self.max_evaluations:
            x_mid = 0.5 * (self._x_min + self._x_max)
            fx_mid = value(x_mid)
            self._evaluation_number += 1

            s = math.sqrt(fx_mid * fx_mid - self._fx_min * self._fx_max)
            if close(s, 0.0):
                return self._converged(value)

            direction = 1.0 if self._fx_min >= self._fx_max else -1.0
            next_root = x_mid + (x_mid - self._x_min) * (direction * fx_mid / s)
            if abs(next_root - self._root) <= x_accuracy:
                return self._converged(value)

            self._root = next_root
            f_root = value(self._root)
            self._evaluation_number += 1
            if close(f_root, 0.0):
                return self._root

            # keep the root bracketed
            if sign_of(fx_mid, f_root) != fx_mid:
                self._x_min, self._fx_min = x_mid, fx_mid
                self._x_max, self._fx_max = self._root, f_root
            elif sign_of(self._fx_min, f_root) != self._fx_min:
                self._x_max, self._fx_max = self._root, f_root
            elif sign_of(self._fx_max, f_root) != self._fx_max:
                self._x_min, self._fx_min = self._root, f_root
            else:
                raise SolverError(
                    f"Ridder: root {self._root} left the bracket [{self._x_min}, {self._x_max}]"
                )

            if abs(self._x_max - self._x_min) <= x_accuracy:
                return self._converged(value)

        raise self._max_evaluations_exceeded()

    def _converged(self, value):
        value(self._root)
        self._evaluation_number += 1
        return self._root


class Brent(Solver1D):
    """
    Brent's method.

    Inverse quadratic interpolation, falling back to bisection whenever the
    interpolated step would leave the bracket or converge too slowly.
    """

    def _solve_impl(self, value, derivative, accuracy):
        # start with the guess on one side of the bracket and both
        # bracket ends on the other
        f_root = value(self._root)
        self._evaluation_number += 1
        if f_root * self._fx_min < 0.0:
            self._x_max, self._fx_max = self._x_min, self._fx_min
        else:
            self._x_min, self._fx_min = self._x_max, self._fx_max
        d = self._root - self._x_max
        e = d

        while self._evaluation_number <= self.max_evaluations:
            if (f_root > 0.0 and self._fx_max > 0.0) or (f_root < 0.0 and self._fx_max < 0.0):
                self._x_max, self._fx_max = self._x_min, self._fx_min
                e = d = self._root - self._x_min
            if abs(self._fx_max) < abs(f_root):
                self._x_min, self._fx_min = self._root, f_root
                self._root, f_root = self._x_max, self._fx_max
                self._x_max, self._fx_max = self._x_min, self._fx_min

            x_acc1 = 2.0 * MACHINE_EPSILON * abs(self._root) + 0.5 * accuracy
            x_mid = (self._x_max - self._root) / 2.0
            if abs(x_mid) <= x_acc1 or close(f_root, 0.0):
                value(self._root)
                self._evaluation_number += 1
                return self._root

            if abs(e) >= x_acc1 and abs(self._fx_min) > abs(f_root):
                s = f_root / self._fx_min
                if close(self._x_min, self._x_max):
                    p = 2.0 * x_mid * s
                    q = 1.0 - s
                else:
                    q = self._fx_min / self._fx_max
                    r = f_root / self._fx_max
                    p = s * (2.0 * x_mid * q * (q - r) - (self._root - self._x_min) * (r - 1.0))
                    q = (q - 1.0) * (r - 1.0) * (s - 1.0)
                if p > 0.0:
                    q = -q
                p = abs(p)
                min1 = 3.0 * x_mid * q - abs(x_acc1 * q)
                min2 = abs(e * q)
                if 2.0 * p < min(min1, min2):
                    # accept interpolation
                    e = d
                    d = p / q
                else:
                    d = x_mid
                    e = d
            else:
                d = x_mid
                e = d

            self._x_min, self._fx_min = self._root, f_root
            if abs(d) > x_acc1:
                self._root += d
            else:
                self._root += sign_of(x_acc1, x_mid)
            f_root = value(self._root)
            self._evaluation_number += 1

        raise self._max_evaluations_exceeded()


__all__ = [
    "Bisection",
    "FalsePosition",
    "Ridder",
    "Brent",
]
