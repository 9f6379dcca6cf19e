"""
Market quotes: the observable leaves of the dependency graph.

Provides:
- Quote: abstract observable scalar
- SimpleQuote: settable market value
- DerivedQuote: f(quote) of another quote handle
- CompositeQuote: f(q1, q2) of two quote handles
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

from .handle import Handle
from .observer import Observable, Observer


class Quote(Observable, ABC):
    """Abstract market quote."""

    @abstractmethod
    def value(self) -> float:
        """Current value; raises ValueError if the quote is not valid."""
        pass

    @abstractmethod
    def is_valid(self) -> bool:
        pass


class SimpleQuote(Quote):
    """
    Market value set from outside.

    Observers are notified only when the value actually changes.
    """

    def __init__(self, value: Optional[float] = None):
        super().__init__()
        self._value = value

    def value(self) -> float:
        if self._value is None:
            raise ValueError("invalid SimpleQuote")
        return self._value

    def is_valid(self) -> bool:
        return self._value is not None

    def set_value(self, value: Optional[float]) -> float:
        """
        Set a new value.

        Returns:
            Difference between the new and the old value (0.0 if either is
            missing)
        """
        diff = 0.0
        if value is not None and self._value is not None:
            diff = value - self._value
        if value != self._value:
            self._value = value
            self.notify_observers()
        return diff

    def reset(self) -> None:
        """Invalidate the quote."""
        self.set_value(None)

    def __repr__(self) -> str:
        return f"SimpleQuote({self._value})"


class DerivedQuote(Quote, Observer):
    """Quote computed as f(x) of another quote."""

    def __init__(self, element: Handle, f: Callable[[float], float]):
        Quote.__init__(self)
        Observer.__init__(self)
        self._element = element
        self._f = f
        self.observe(element)

    def value(self) -> float:
        if not self.is_valid():
            raise ValueError("invalid DerivedQuote")
        return self._f(self._element.current_link().value())

    def is_valid(self) -> bool:
        return not self._element.is_empty and self._element.current_link().is_valid()

    def update(self) -> None:
        self.notify_observers()


class CompositeQuote(Quote, Observer):
    """Quote computed as f(x, y) of two other quotes."""

    def __init__(self, element1: Handle, element2: Handle, f: Callable[[float, float], float]):
        Quote.__init__(self)
        Observer.__init__(self)
        self._element1 = element1
        self._element2 = element2
        self._f = f
        self.observe(element1)
        self.observe(element2)

    def value1(self) -> float:
        return self._element1.current_link().value()

    def value2(self) -> float:
        return self._element2.current_link().value()

    def value(self) -> float:
        if not self.is_valid():
            raise ValueError("invalid CompositeQuote")
        return self._f(self.value1(), self.value2())

    def is_valid(self) -> bool:
        return all(
            not h.is_empty and h.current_link().is_valid()
            for h in (self._element1, self._element2)
        )

    def update(self) -> None:
        self.notify_observers()


def quote_handle(quote: Union[Handle, Quote, float]) -> Handle:
    """
    Normalise a quote argument into a Handle.

    A bare number is wrapped into a fresh SimpleQuote, so two callers passing
    the same number never end up sharing a mutable quote.
    """
    if isinstance(quote, Handle):
        return quote
    if isinstance(quote, Quote):
        return Handle(quote)
    if isinstance(quote, (int, float)):
        return Handle(SimpleQuote(float(quote)))
    raise TypeError(f"expected a Handle, a Quote or a number, got {quote!r}")


__all__ = [
    "Quote",
    "SimpleQuote",
    "DerivedQuote",
    "CompositeQuote",
    "quote_handle",
]
