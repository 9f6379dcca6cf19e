"""
Node storage shared by interpolated and bootstrapped curves.

CurveNodes keeps dates, times and values in index-addressed arrays together
with the interpolation fitted over them. The bootstrapper fills one CurveNodes
instance (the scratch curve) and hands it over to the curve only once every
pillar has been solved.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from ..errors import InvalidNodeOrdering
from .interpolation import Interpolator


@dataclass(frozen=True)
class PillarNode:
    """A solved curve node."""
    pillar_date: date
    time: float
    value: float


def check_increasing_dates(dates: Sequence[date], what: str = "node") -> None:
    """Raise InvalidNodeOrdering unless dates are strictly increasing."""
    for i in range(1, len(dates)):
        if dates[i] <= dates[i - 1]:
            raise InvalidNodeOrdering(
                f"{what} dates must be strictly increasing: {what} {i} ({dates[i]}) "
                f"is not after {what} {i - 1} ({dates[i - 1]})"
            )


class CurveNodes:
    """
    Dates, times and values of a curve with the interpolation fitted over them.

    Attributes:
        dates: Node dates (first one is the curve reference date)
        times: Year fractions of the node dates
        data: Node values in the curve's own units (discount, zero rate, ...)
        interpolation: Interpolator fitted over (times, data)
    """

    def __init__(self, interpolation: Interpolator, dates: Sequence[date],
                 times: Sequence[float], data: Sequence[float]):
        if not (len(dates) == len(times) == len(data)):
            raise ValueError(
                f"dates ({len(dates)}), times ({len(times)}) and values ({len(data)}) differ in length"
            )
        check_increasing_dates(dates)
        self.interpolation = interpolation
        self.dates: List[date] = list(dates)
        self.times = np.asarray(times, dtype=np.float64)
        self.data = np.array(data, dtype=np.float64)

    def __len__(self) -> int:
        return len(self.dates)

    def refit(self, count: Optional[int] = None) -> None:
        """Fit the interpolation over the first count nodes (all by default)."""
        count = len(self.dates) if count is None else count
        self.interpolation.update(self.times[:count], self.data[:count])

    def nodes(self) -> List[PillarNode]:
        return [
            PillarNode(d, float(t), float(v))
            for d, t, v in zip(self.dates, self.times, self.data)
        ]


class InterpolatedCurve:
    """
    Mixin giving node accessors to curves backed by CurveNodes.

    Subclasses set self._nodes; lazily built curves override _curve_nodes()
    to bring the nodes up to date first.
    """

    _nodes: CurveNodes

    def _curve_nodes(self) -> CurveNodes:
        return self._nodes

    @property
    def interpolation(self) -> Interpolator:
        return self._curve_nodes().interpolation

    def dates(self) -> List[date]:
        return list(self._curve_nodes().dates)

    def times(self) -> np.ndarray:
        return self._curve_nodes().times.copy()

    def data(self) -> np.ndarray:
        return self._curve_nodes().data.copy()

    def nodes(self) -> List[PillarNode]:
        return self._curve_nodes().nodes()

    def nodes_frame(self) -> pd.DataFrame:
        """Curve nodes as a DataFrame (date, time, value)."""
        return pd.DataFrame(
            [{"date": n.pillar_date, "time": n.time, "value": n.value} for n in self.nodes()]
        )


__all__ = [
    "PillarNode",
    "CurveNodes",
    "InterpolatedCurve",
    "check_increasing_dates",
]
