"""
Interpolation strategies for term structures.

Provides:
- Interpolator: common contract (update / value / is_in_range / derivative / primitive)
- LinearInterpolator: piecewise linear
- LogLinearInterpolator: linear in log(y), i.e. piecewise flat forwards on discount factors
- CubicSplineInterpolator: natural cubic spline (global: every node moves every segment)
- BackwardFlatInterpolator: y(x) = y[i+1] on (x[i], x[i+1]]
- ForwardFlatInterpolator: y(x) = y[i] on [x[i], x[i+1])

Interpolators are refitted with update(xs, ys) whenever the owning curve
changes its nodes. Outside [x_min, x_max] each strategy extends its boundary
segment; range checks belong to the term structure that owns it.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

import numpy as np
from scipy.integrate import quad
from scipy.linalg import solve_banded

from ..errors import InvalidNodeOrdering


class Interpolator(ABC):
    """
    Abstract base class for 1-D interpolation.

    Attributes:
        required_points: Minimum number of nodes needed by update()
        is_global: True if a node influences segments other than its neighbours
    """

    required_points = 2
    is_global = False

    def __init__(self):
        self._x: Optional[np.ndarray] = None
        self._y: Optional[np.ndarray] = None

    def update(self, xs: Sequence[float], ys: Sequence[float]) -> None:
        """
        Refit the interpolator to a new set of nodes.

        Args:
            xs: Strictly increasing abscissae
            ys: Node values

        Raises:
            ValueError: if lengths differ or fewer than required_points nodes
            InvalidNodeOrdering: if xs is not strictly increasing
        """
        x = np.asarray(xs, dtype=np.float64)
        y = np.asarray(ys, dtype=np.float64)
        if x.shape != y.shape or x.ndim != 1:
            raise ValueError(f"xs and ys must be 1-D of the same length, got {x.shape} and {y.shape}")
        if len(x) < self.required_points:
            raise ValueError(
                f"{type(self).__name__} needs at least {self.required_points} points, got {len(x)}"
            )
        steps = np.diff(x)
        if np.any(steps <= 0.0):
            bad = int(np.argmax(steps <= 0.0)) + 1
            raise InvalidNodeOrdering(
                f"interpolation nodes must be strictly increasing: x[{bad}] = {x[bad]} "
                f"follows x[{bad - 1}] = {x[bad - 1]}"
            )
        self._x = x
        self._y = y
        self._fit()

    def _fit(self) -> None:
        """Precompute whatever value() needs after update()."""

    @property
    def is_fitted(self) -> bool:
        return self._x is not None

    @property
    def x_min(self) -> float:
        self._check_fitted()
        return float(self._x[0])

    @property
    def x_max(self) -> float:
        self._check_fitted()
        return float(self._x[-1])

    @property
    def xs(self) -> np.ndarray:
        self._check_fitted()
        return self._x.copy()

    @property
    def ys(self) -> np.ndarray:
        self._check_fitted()
        return self._y.copy()

    def is_in_range(self, x: float) -> bool:
        """True if x lies in [x_min, x_max] (up to rounding)."""
        self._check_fitted()
        x_min, x_max = self._x[0], self._x[-1]
        tolerance = 1e-12 * max(1.0, abs(x_max))
        return x_min - tolerance <= x <= x_max + tolerance

    def __call__(self, x: float) -> float:
        return self.value(x)

    @abstractmethod
    def value(self, x: float) -> float:
        pass

    @abstractmethod
    def derivative(self, x: float) -> float:
        pass

    def primitive(self, x: float) -> float:
        """
        Integral of the interpolant from x_min to x.

        Default: numerical quadrature with the nodes as breakpoints.
        """
        self._check_fitted()
        x0 = float(self._x[0])
        if x == x0:
            return 0.0
        lo, hi = min(x0, x), max(x0, x)
        inner = self._x[(self._x > lo) & (self._x < hi)]
        result, _ = quad(self.value, lo, hi, points=inner if len(inner) else None, limit=200)
        return float(result) if x > x0 else -float(result)

    def _check_fitted(self) -> None:
        if self._x is None:
            raise RuntimeError(f"{type(self).__name__} not fitted; call update() first")

    def _locate(self, x: float) -> int:
        """Index i of the segment [x[i], x[i+1]] used for x (clipped at the ends)."""
        self._check_fitted()
        idx = int(np.searchsorted(self._x, x, side='right')) - 1
        return max(0, min(idx, len(self._x) - 2))

    def __repr__(self) -> str:
        n = 0 if self._x is None else len(self._x)
        return f"{type(self).__name__}(nodes={n})"


class LinearInterpolator(Interpolator):
    """
    Linear interpolation.

    The first and last segments are extended linearly outside the nodes.
    """

    def _fit(self) -> None:
        self._slopes = np.diff(self._y) / np.diff(self._x)
        areas = 0.5 * (self._y[:-1] + self._y[1:]) * np.diff(self._x)
        self._cumulative = np.concatenate(([0.0], np.cumsum(areas)))

    def value(self, x: float) -> float:
        i = self._locate(x)
        return float(self._y[i] + (x - self._x[i]) * self._slopes[i])

    def derivative(self, x: float) -> float:
        return float(self._slopes[self._locate(x)])

    def primitive(self, x: float) -> float:
        i = self._locate(x)
        dx = x - self._x[i]
        return float(self._cumulative[i] + dx * (self._y[i] + 0.5 * dx * self._slopes[i]))


class LogLinearInterpolator(Interpolator):
    """
    Log-linear interpolation.

    Interpolates log(y) linearly; on discount factors this corresponds to
    piecewise constant forward rates. Node values must be positive.
    """

    def _fit(self) -> None:
        if np.any(self._y <= 0.0):
            bad = int(np.argmax(self._y <= 0.0))
            raise ValueError(f"log-linear interpolation needs positive values, y[{bad}] = {self._y[bad]}")
        self._log_y = np.log(self._y)
        self._slopes = np.diff(self._log_y) / np.diff(self._x)

    def value(self, x: float) -> float:
        i = self._locate(x)
        return float(np.exp(self._log_y[i] + (x - self._x[i]) * self._slopes[i]))

    def derivative(self, x: float) -> float:
        return self.value(x) * float(self._slopes[self._locate(x)])


class CubicSplineInterpolator(Interpolator):
    """
    Natural cubic spline interpolation.

    Second derivative is zero at both ends; with two nodes the spline
    degenerates to a straight line. Outside the nodes the boundary cubic
    is extended.
    """

    is_global = True

    def _fit(self) -> None:
        """
        Solve the tridiagonal system for the node second derivatives M,
        then store S_i(x) = a_i + b_i*dx + c_i*dx^2 + d_i*dx^3 per interval.
        """
        x, y = self._x, self._y
        n = len(x)
        h = np.diff(x)
        m = np.zeros(n)

        if n > 2:
            # interior equations only; natural spline: M[0] = M[n-1] = 0
            rhs = 6.0 * ((y[2:] - y[1:-1]) / h[1:] - (y[1:-1] - y[:-2]) / h[:-1])
            banded = np.zeros((3, n - 2))
            banded[0, 1:] = h[1:-1]
            banded[1, :] = 2.0 * (h[:-1] + h[1:])
            banded[2, :-1] = h[1:-1]
            m[1:-1] = solve_banded((1, 1), banded, rhs)

        self._coefficients = np.column_stack((
            y[:-1],
            (y[1:] - y[:-1]) / h - h * (m[1:] + 2.0 * m[:-1]) / 6.0,
            m[:-1] / 2.0,
            (m[1:] - m[:-1]) / (6.0 * h),
        ))

    def value(self, x: float) -> float:
        i = self._locate(x)
        dx = x - self._x[i]
        a, b, c, d = self._coefficients[i]
        return float(a + dx * (b + dx * (c + dx * d)))

    def derivative(self, x: float) -> float:
        i = self._locate(x)
        dx = x - self._x[i]
        _, b, c, d = self._coefficients[i]
        return float(b + dx * (2.0 * c + 3.0 * d * dx))

    def second_derivative(self, x: float) -> float:
        i = self._locate(x)
        dx = x - self._x[i]
        _, _, c, d = self._coefficients[i]
        return float(2.0 * c + 6.0 * d * dx)


class BackwardFlatInterpolator(Interpolator):
    """Piecewise constant, taking the value of the right node of each segment."""

    required_points = 1

    def _fit(self) -> None:
        widths = np.diff(self._x)
        self._cumulative = np.concatenate(([0.0], np.cumsum(widths * self._y[1:])))

    def _locate(self, x: float) -> int:
        if len(self._x) == 1:
            return 0
        return super()._locate(x)

    def value(self, x: float) -> float:
        self._check_fitted()
        if x <= self._x[0]:
            return float(self._y[0])
        i = self._locate(x)
        if x == self._x[i]:
            return float(self._y[i])
        return float(self._y[min(i + 1, len(self._y) - 1)])

    def derivative(self, x: float) -> float:
        self._check_fitted()
        return 0.0

    def primitive(self, x: float) -> float:
        self._check_fitted()
        if x <= self._x[0]:
            return float((x - self._x[0]) * self._y[0])
        if x >= self._x[-1]:
            return float(self._cumulative[-1] + (x - self._x[-1]) * self._y[-1])
        i = self._locate(x)
        return float(self._cumulative[i] + (x - self._x[i]) * self._y[i + 1])


class ForwardFlatInterpolator(Interpolator):
    """Piecewise constant, taking the value of the left node of each segment."""

    required_points = 1

    def _fit(self) -> None:
        widths = np.diff(self._x)
        self._cumulative = np.concatenate(([0.0], np.cumsum(widths * self._y[:-1])))

    def _locate(self, x: float) -> int:
        if len(self._x) == 1:
            return 0
        return super()._locate(x)

    def value(self, x: float) -> float:
        self._check_fitted()
        if x >= self._x[-1]:
            return float(self._y[-1])
        return float(self._y[self._locate(x)])

    def derivative(self, x: float) -> float:
        self._check_fitted()
        return 0.0

    def primitive(self, x: float) -> float:
        self._check_fitted()
        if x >= self._x[-1]:
            return float(self._cumulative[-1] + (x - self._x[-1]) * self._y[-1])
        i = self._locate(x)
        return float(self._cumulative[i] + (x - self._x[i]) * self._y[i])


INTERPOLATORS = {
    "linear": LinearInterpolator,
    "log_linear": LogLinearInterpolator,
    "cubic_spline": CubicSplineInterpolator,
    "backward_flat": BackwardFlatInterpolator,
    "forward_flat": ForwardFlatInterpolator,
}

_ALIASES = {
    "lin": "linear",
    "loglinear": "log_linear",
    "cubic": "cubic_spline",
    "spline": "cubic_spline",
    "natural_cubic": "cubic_spline",
    "backwardflat": "backward_flat",
    "forwardflat": "forward_flat",
}


def create_interpolator(method: str) -> Interpolator:
    """
    Factory function to create an interpolator by name.

    Args:
        method: One of "linear", "log_linear", "cubic_spline",
            "backward_flat", "forward_flat" (or a common alias)

    Returns:
        Fresh, unfitted Interpolator instance
    """
    key = method.lower().replace("-", "_").replace(" ", "_")
    key = _ALIASES.get(key, key)
    if key not in INTERPOLATORS:
        raise ValueError(f"Unknown interpolation method: {method}. Available: {sorted(INTERPOLATORS)}")
    return INTERPOLATORS[key]()


def resolve_interpolator(interpolation: Union[str, Interpolator, None], default: str) -> Interpolator:
    """
    Fresh interpolator from a name, a prototype instance or None (default name).

    Each curve fits its own instance, so a prototype is never shared.
    """
    if interpolation is None:
        return create_interpolator(default)
    if isinstance(interpolation, str):
        return create_interpolator(interpolation)
    if isinstance(interpolation, Interpolator):
        return type(interpolation)()
    raise TypeError(f"expected an interpolation name or Interpolator, got {interpolation!r}")


__all__ = [
    "Interpolator",
    "LinearInterpolator",
    "LogLinearInterpolator",
    "CubicSplineInterpolator",
    "BackwardFlatInterpolator",
    "ForwardFlatInterpolator",
    "INTERPOLATORS",
    "create_interpolator",
    "resolve_interpolator",
]
