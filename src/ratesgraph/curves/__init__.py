"""
Curves package - term structures and their bootstrap.

Provides:
- Interpolators behind a common update/value/derivative/primitive contract
- Yield and default term structures (flat, interpolated, spreaded)
- Bootstrap helpers and the iterative bootstrapper
- PiecewiseYieldCurve / PiecewiseDefaultCurve
"""

from .interpolation import (
    Interpolator,
    LinearInterpolator,
    LogLinearInterpolator,
    CubicSplineInterpolator,
    BackwardFlatInterpolator,
    ForwardFlatInterpolator,
    create_interpolator,
)
from .term_structure import TermStructure
from .nodes import CurveNodes, InterpolatedCurve, PillarNode
from .traits import Discount, ZeroYield, HazardRate, SurvivalProbability
from .yield_curve import (
    YieldTermStructure,
    ZeroYieldStructure,
    FlatForward,
    InterpolatedYieldCurve,
)
from .default_curve import (
    DefaultProbabilityTermStructure,
    FlatHazardRate,
    InterpolatedDefaultCurve,
)
from .spreaded import ZeroSpreadedTermStructure, PiecewiseZeroSpreadedTermStructure
from .helpers import (
    BootstrapHelper,
    RelativeDateBootstrapHelper,
    DepositRateHelper,
    FraRateHelper,
    SwapRateHelper,
    CdsSpreadHelper,
)
from .bootstrap import BootstrapConfig, BootstrapResult, IterativeBootstrap
from .piecewise import PiecewiseYieldCurve, PiecewiseDefaultCurve

__all__ = [
    "Interpolator",
    "LinearInterpolator",
    "LogLinearInterpolator",
    "CubicSplineInterpolator",
    "BackwardFlatInterpolator",
    "ForwardFlatInterpolator",
    "create_interpolator",
    "TermStructure",
    "CurveNodes",
    "InterpolatedCurve",
    "PillarNode",
    "Discount",
    "ZeroYield",
    "HazardRate",
    "SurvivalProbability",
    "YieldTermStructure",
    "ZeroYieldStructure",
    "FlatForward",
    "InterpolatedYieldCurve",
    "DefaultProbabilityTermStructure",
    "FlatHazardRate",
    "InterpolatedDefaultCurve",
    "ZeroSpreadedTermStructure",
    "PiecewiseZeroSpreadedTermStructure",
    "BootstrapHelper",
    "RelativeDateBootstrapHelper",
    "DepositRateHelper",
    "FraRateHelper",
    "SwapRateHelper",
    "CdsSpreadHelper",
    "BootstrapConfig",
    "BootstrapResult",
    "IterativeBootstrap",
    "PiecewiseYieldCurve",
    "PiecewiseDefaultCurve",
]
