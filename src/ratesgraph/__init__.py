"""
RatesGraph: reactive market-data graph and piecewise curve bootstrapping.

A modular library for:
- Wiring quotes, handles and lazily recomputed objects into a dependency
  graph that dirties eagerly and recomputes on demand
- Solving one-dimensional root-finding problems (Brent, Newton, ...)
- Bootstrapping yield and default curves pillar by pillar from market quotes
- Bump-and-reprice sensitivities through the graph

Scope: single-threaded, one-dimensional calibration only.
"""

__version__ = "0.1.0"

# Graph
from .errors import (
    RatesGraphError,
    EmptyHandleError,
    CyclicDependencyError,
    InvalidNodeOrdering,
    ExtrapolationNotAllowed,
    SolverError,
    RootNotBracketed,
    MaxEvaluationsExceeded,
    BootstrapFailure,
)
from .observer import Observable, Observer
from .handle import Handle, RelinkableHandle
from .lazy import LazyObject, CalculationState, RecalculationMode
from .settings import EvaluationContext
from .quotes import Quote, SimpleQuote, DerivedQuote, CompositeQuote

# Conventions
from .conventions import DayCount, BusinessDayConvention, CompoundingConvention, year_fraction
from .dates import DateUtils

# Solvers
from .solvers import (
    Solver1D,
    Bisection,
    FalsePosition,
    Secant,
    Newton,
    NewtonSafe,
    Ridder,
    Brent,
    create_solver,
)

# Curves
from .curves import (
    Interpolator,
    LinearInterpolator,
    LogLinearInterpolator,
    CubicSplineInterpolator,
    BackwardFlatInterpolator,
    ForwardFlatInterpolator,
    create_interpolator,
    TermStructure,
    PillarNode,
    Discount,
    ZeroYield,
    HazardRate,
    SurvivalProbability,
    YieldTermStructure,
    FlatForward,
    InterpolatedYieldCurve,
    DefaultProbabilityTermStructure,
    FlatHazardRate,
    InterpolatedDefaultCurve,
    ZeroSpreadedTermStructure,
    PiecewiseZeroSpreadedTermStructure,
    BootstrapHelper,
    DepositRateHelper,
    FraRateHelper,
    SwapRateHelper,
    CdsSpreadHelper,
    BootstrapConfig,
    BootstrapResult,
    IterativeBootstrap,
    PiecewiseYieldCurve,
    PiecewiseDefaultCurve,
)

# Market state and risk
from .market_state import MarketState
from .risk import BumpEngine, BumpType, BumpResult

__all__ = [
    # Version
    "__version__",
    # Errors
    "RatesGraphError",
    "EmptyHandleError",
    "CyclicDependencyError",
    "InvalidNodeOrdering",
    "ExtrapolationNotAllowed",
    "SolverError",
    "RootNotBracketed",
    "MaxEvaluationsExceeded",
    "BootstrapFailure",
    # Graph
    "Observable",
    "Observer",
    "Handle",
    "RelinkableHandle",
    "LazyObject",
    "CalculationState",
    "RecalculationMode",
    "EvaluationContext",
    "Quote",
    "SimpleQuote",
    "DerivedQuote",
    "CompositeQuote",
    # Conventions
    "DayCount",
    "BusinessDayConvention",
    "CompoundingConvention",
    "year_fraction",
    "DateUtils",
    # Solvers
    "Solver1D",
    "Bisection",
    "FalsePosition",
    "Secant",
    "Newton",
    "NewtonSafe",
    "Ridder",
    "Brent",
    "create_solver",
    # Curves
    "Interpolator",
    "LinearInterpolator",
    "LogLinearInterpolator",
    "CubicSplineInterpolator",
    "BackwardFlatInterpolator",
    "ForwardFlatInterpolator",
    "create_interpolator",
    "TermStructure",
    "PillarNode",
    "Discount",
    "ZeroYield",
    "HazardRate",
    "SurvivalProbability",
    "YieldTermStructure",
    "FlatForward",
    "InterpolatedYieldCurve",
    "DefaultProbabilityTermStructure",
    "FlatHazardRate",
    "InterpolatedDefaultCurve",
    "ZeroSpreadedTermStructure",
    "PiecewiseZeroSpreadedTermStructure",
    "BootstrapHelper",
    "DepositRateHelper",
    "FraRateHelper",
    "SwapRateHelper",
    "CdsSpreadHelper",
    "BootstrapConfig",
    "BootstrapResult",
    "IterativeBootstrap",
    "PiecewiseYieldCurve",
    "PiecewiseDefaultCurve",
    # Market state and risk
    "MarketState",
    "BumpEngine",
    "BumpType",
    "BumpResult",
]
