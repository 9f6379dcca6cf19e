"""
Open (locally modelled) root finders.

Provides:
- Secant: linear model through the last two iterates
- Newton: tangent steps, requires f.derivative
- NewtonSafe: Newton steps safeguarded by bisection inside the bracket
"""

import math

from ..errors import SolverError
from .base import Solver1D, close


class Secant(Solver1D):
    """Secant method."""

    def _solve_impl(self, value, derivative, accuracy):
        # start from the end with the smaller |f|
        if abs(self._fx_min) < abs(self._fx_max):
            self._root, f_root = self._x_min, self._fx_min
            x_l, f_l = self._x_max, self._fx_max
        else:
            self._root, f_root = self._x_max, self._fx_max
            x_l, f_l = self._x_min, self._fx_min

        while self._evaluation_number <= self.max_evaluations:
            if f_root == f_l:
                raise SolverError(
                    f"Secant: flat secant between {x_l} and {self._root} (f = {f_root:.6e})"
                )
            dx = (x_l - self._root) * f_root / (f_root - f_l)
            x_l, f_l = self._root, f_root
            self._root += dx
            f_root = value(self._root)
            self._evaluation_number += 1
            if abs(dx) < accuracy or close(f_root, 0.0):
                return self._root

        raise self._max_evaluations_exceeded()


class Newton(Solver1D):
    """
    Newton-Raphson method.

    Fails rather than diverging: a vanishing derivative or a step that
    leaves the bracket raises SolverError.
    """

    requires_derivative = True

    def _solve_impl(self, value, derivative, accuracy):
        f_root = value(self._root)
        dx = self._newton_step(f_root, derivative, self._root)
        self._evaluation_number += 1

        while self._evaluation_number <= self.max_evaluations:
            self._root -= dx
            if (self._x_min - self._root) * (self._root - self._x_max) < 0.0:
                raise SolverError(
                    f"Newton jumped outside bounds [{self._x_min}, {self._x_max}] to {self._root}"
                )
            if abs(dx) < accuracy:
                value(self._root)
                self._evaluation_number += 1
                return self._root
            f_root = value(self._root)
            dx = self._newton_step(f_root, derivative, self._root)
            self._evaluation_number += 1

        raise self._max_evaluations_exceeded()

    @staticmethod
    def _newton_step(f, derivative, x):
        df = derivative(x)
        if df is None:
            raise SolverError("Newton requires a function derivative")
        if f == 0.0:
            return 0.0
        step = f / df if df != 0.0 else math.inf
        if not math.isfinite(step):
            raise SolverError(f"Newton: derivative vanishes at x = {x} (f = {f:.3e}, f' = {df:.3e})")
        return step


class NewtonSafe(Solver1D):
    """Newton steps, replaced by bisection when they would leave the bracket."""

    requires_derivative = True

    def _solve_impl(self, value, derivative, accuracy):
        # orient the search so that f(x_l) < 0
        if self._fx_min < 0.0:
            x_l, x_h = self._x_min, self._x_max
        else:
            x_h, x_l = self._x_min, self._x_max

        dx_old = self._x_max - self._x_min
        dx = dx_old

        f_root = value(self._root)
        df_root = derivative(self._root)
        if df_root is None:
            raise SolverError("NewtonSafe requires a function derivative")
        self._evaluation_number += 1

        while self._evaluation_number <= self.max_evaluations:
            out_of_range = ((self._root - x_h) * df_root - f_root) * \
                ((self._root - x_l) * df_root - f_root) > 0.0
            too_slow = abs(2.0 * f_root) > abs(dx_old * df_root)
            if out_of_range or too_slow:
                dx_old = dx
                dx = (x_h - x_l) / 2.0
                self._root = x_l + dx
            else:
                dx_old = dx
                dx = f_root / df_root
                self._root -= dx

            if abs(dx) < accuracy:
                value(self._root)
                self._evaluation_number += 1
                return self._root

            f_root = value(self._root)
            df_root = derivative(self._root)
            self._evaluation_number += 1
            if f_root < 0.0:
                x_l = self._root
            else:
                x_h = self._root

        raise self._max_evaluations_exceeded()


__all__ = [
    "Secant",
    "Newton",
    "NewtonSafe",
]
