"""
Error taxonomy for the market-data graph and the bootstrapping engine.

Provides:
- EmptyHandleError: dereferencing an unbound handle
- CyclicDependencyError: an object observing (or recomputing) itself
- InvalidNodeOrdering: non-increasing or duplicate pillar dates
- ExtrapolationNotAllowed: query past the curve's max date
- SolverError, RootNotBracketed, MaxEvaluationsExceeded: 1-D root finding
- BootstrapFailure: a pillar's root search did not converge

Solver and helper errors never escape the bootstrapper directly: they are
wrapped into a single BootstrapFailure carrying the originating helper index
(the original exception is chained as __cause__).
"""

from datetime import date
from typing import Optional


class RatesGraphError(Exception):
    """Base class for all library errors."""


class EmptyHandleError(RatesGraphError, LookupError):
    """Raised when an empty handle is dereferenced."""


class CyclicDependencyError(RatesGraphError, RuntimeError):
    """Raised when a notification or recalculation re-enters itself."""


class InvalidNodeOrdering(RatesGraphError, ValueError):
    """Raised when pillar dates/times are not strictly increasing."""


class ExtrapolationNotAllowed(RatesGraphError, ValueError):
    """
    Raised when a term structure is queried past its max date.

    Attributes:
        query: The requested date or time
        max_value: The max date or time of the structure
    """

    def __init__(self, query, max_value):
        self.query = query
        self.max_value = max_value
        super().__init__(
            f"{query} is past max curve {'date' if isinstance(query, date) else 'time'} "
            f"({max_value}) and extrapolation is not enabled"
        )


class SolverError(RatesGraphError, RuntimeError):
    """Raised when a 1-D solver cannot produce a root."""


class RootNotBracketed(SolverError):
    """
    Raised when no sign change is found (or given) for f.

    Attributes:
        x_min, x_max: Last bracket tried
        fx_min, fx_max: Function values at the bracket ends
    """

    def __init__(self, x_min: float, x_max: float, fx_min: float, fx_max: float,
                 message: Optional[str] = None):
        self.x_min = x_min
        self.x_max = x_max
        self.fx_min = fx_min
        self.fx_max = fx_max
        if message is None:
            message = (f"root not bracketed: f[{x_min}, {x_max}] -> "
                       f"[{fx_min:.6e}, {fx_max:.6e}]")
        super().__init__(message)


class MaxEvaluationsExceeded(SolverError):
    """
    Raised when a solver runs out of function evaluations.

    Attributes:
        evaluations: Number of evaluations performed
        last_root: Last root estimate
    """

    def __init__(self, evaluations: int, last_root: Optional[float] = None):
        self.evaluations = evaluations
        self.last_root = last_root
        super().__init__(
            f"maximum number of function evaluations ({evaluations}) exceeded"
            + (f", last root estimate {last_root}" if last_root is not None else "")
        )


class BootstrapFailure(RatesGraphError, RuntimeError):
    """
    Raised when a pillar of a piecewise curve cannot be solved.

    Attributes:
        helper_index: Index (in pillar order) of the failing helper
        pillar_date: Pillar date of the failing helper
        x_min, x_max: Bracket searched for the node value
        last_residual: Last residual evaluated for this pillar
        accuracy: Requested solver accuracy
    """

    def __init__(
        self,
        helper_index: int,
        pillar_date: Optional[date],
        reason: str,
        x_min: Optional[float] = None,
        x_max: Optional[float] = None,
        last_residual: Optional[float] = None,
        accuracy: Optional[float] = None,
    ):
        self.helper_index = helper_index
        self.pillar_date = pillar_date
        self.x_min = x_min
        self.x_max = x_max
        self.last_residual = last_residual
        self.accuracy = accuracy
        self.reason = reason

        details = [f"bootstrap failed at helper {helper_index} (pillar {pillar_date})"]
        if x_min is not None and x_max is not None:
            details.append(f"bracket [{x_min:.6g}, {x_max:.6g}]")
        if last_residual is not None:
            details.append(f"last residual {last_residual:.6e}")
        if accuracy is not None:
            details.append(f"accuracy {accuracy:.1e}")
        super().__init__(", ".join(details) + f": {reason}")


__all__ = [
    "RatesGraphError",
    "EmptyHandleError",
    "CyclicDependencyError",
    "InvalidNodeOrdering",
    "ExtrapolationNotAllowed",
    "SolverError",
    "RootNotBracketed",
    "MaxEvaluationsExceeded",
    "BootstrapFailure",
]
