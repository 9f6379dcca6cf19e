"""
Market state: the named entry points of a market-data graph.

MarketState keeps, by name:
- quotes: a SimpleQuote behind a RelinkableHandle, so a quote can be set in
  place or swapped for another Quote object
- curves: RelinkableHandles, so anything built on a curve handle follows
  when a different curve is linked in

Every calculation reads market data through these handles, so changing a
quote or relinking a curve reaches every dependent object through the
notification graph.
"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Dict, Iterator, List, Optional

import pandas as pd

from .handle import Handle, RelinkableHandle
from .quotes import Quote, SimpleQuote
from .settings import EvaluationContext

logger = logging.getLogger(__name__)


class MarketState:
    """
    Registry of named quote and curve handles.

    Attributes:
        context: EvaluationContext shared by the curves built on this state
    """

    def __init__(self, context: Optional[EvaluationContext] = None):
        self.context = context or EvaluationContext()
        self._quotes: Dict[str, RelinkableHandle] = {}
        self._curves: Dict[str, RelinkableHandle] = {}

    @property
    def valuation_date(self) -> date:
        return self.context.evaluation_date

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def add_quote(self, name: str, value: Optional[float] = None) -> Handle:
        """
        Register a quote and return a read-only handle to it.

        Raises:
            ValueError: if the name is already registered
        """
        if name in self._quotes:
            raise ValueError(f"quote {name!r} already registered")
        self._quotes[name] = RelinkableHandle(SimpleQuote(value))
        return self._quotes[name].handle()

    def add_quotes(self, values: Dict[str, float]) -> Dict[str, Handle]:
        return {name: self.add_quote(name, value) for name, value in values.items()}

    def quote(self, name: str) -> Handle:
        """Read-only handle to a registered quote."""
        return self._quote_link(name).handle()

    def quote_value(self, name: str) -> float:
        return self._quote_link(name).current_link().value()

    def set_quote(self, name: str, value: Optional[float]) -> None:
        """
        Set the value of a registered quote.

        Raises:
            KeyError: if the quote is unknown
            TypeError: if the quote was relinked to something other than a SimpleQuote
        """
        quote = self._quote_link(name).current_link()
        if not isinstance(quote, SimpleQuote):
            raise TypeError(f"quote {name!r} is a {type(quote).__name__} and cannot be set")
        quote.set_value(value)

    def relink_quote(self, name: str, quote: Quote) -> None:
        """Point a registered quote name at another Quote object."""
        self._quote_link(name).link_to(quote)

    def quote_names(self) -> List[str]:
        return list(self._quotes)

    def _quote_link(self, name: str) -> RelinkableHandle:
        try:
            return self._quotes[name]
        except KeyError:
            raise KeyError(f"unknown quote {name!r}") from None

    # ------------------------------------------------------------------
    # Curves
    # ------------------------------------------------------------------

    def curve_handle(self, name: str) -> Handle:
        """
        Read-only handle to a named curve.

        Asking for a name that was never linked creates an empty handle, so
        dependent structures can be built before the curve exists.
        """
        if name not in self._curves:
            self._curves[name] = RelinkableHandle()
        return self._curves[name].handle()

    def link_curve(self, name: str, curve) -> Handle:
        """Link (or relink) a named curve; observers of its handle are notified."""
        handle = self.curve_handle(name)
        self._curves[name].link_to(curve)
        logger.debug("curve %r linked to %r", name, curve)
        return handle

    def curve(self, name: str):
        """
        Curve currently linked under name.

        Raises:
            KeyError: if no handle exists under name
            EmptyHandleError: if the handle is empty
        """
        if name not in self._curves:
            raise KeyError(f"unknown curve {name!r}")
        return self._curves[name].current_link()

    def curve_names(self) -> List[str]:
        return list(self._curves)

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    @contextmanager
    def scenario(self, shifts: Dict[str, float]) -> Iterator["MarketState"]:
        """
        Shift quotes additively for the duration of the block.

        The original values are restored on exit, also when the block raises.

        Args:
            shifts: Additive shift by quote name
        """
        saved = {name: self.quote_value(name) for name in shifts}
        try:
            for name, shift in shifts.items():
                self.set_quote(name, saved[name] + shift)
            logger.debug("scenario applied to %d quotes", len(shifts))
            yield self
        finally:
            for name, value in saved.items():
                self.set_quote(name, value)

    def to_frame(self) -> pd.DataFrame:
        """Quotes as a DataFrame indexed by name (value, is_valid)."""
        rows = []
        for name, link in self._quotes.items():
            quote = link.current_link()
            rows.append({
                "name": name,
                "value": quote.value() if quote.is_valid() else None,
                "is_valid": quote.is_valid(),
            })
        return pd.DataFrame(rows, columns=["name", "value", "is_valid"]).set_index("name")

    def __repr__(self) -> str:
        return (f"MarketState(date={self.valuation_date}, quotes={len(self._quotes)}, "
                f"curves={len(self._curves)})")


__all__ = [
    "MarketState",
]
