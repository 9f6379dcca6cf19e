"""
Lazy objects: cached derived computations with dirty/fresh tracking.

State machine:
    UNCALCULATED --calculate()--> FRESH
    FRESH --update()--> DIRTY --calculate()--> FRESH

Dirtying is eager (update() runs synchronously when something upstream
changes), recomputation is pull-based (it happens on the next calculate()).
A failed recomputation leaves the state untouched, so the next request
retries from scratch.
"""

import logging
from enum import Enum

from .errors import CyclicDependencyError
from .observer import Observable, Observer

logger = logging.getLogger(__name__)


class CalculationState(Enum):
    """Cache state of a lazy object."""
    UNCALCULATED = "uncalculated"
    DIRTY = "dirty"
    FRESH = "fresh"


class RecalculationMode(Enum):
    """How a lazy object reacts to upstream changes."""
    LAZY = "lazy"      # mark dirty, recompute on demand
    ALWAYS = "always"  # recompute immediately (cheap objects only)


class LazyObject(Observable, Observer):
    """
    Base class for objects that cache the result of perform_calculations().

    Subclasses implement perform_calculations() and call calculate() at
    the top of every method that reads cached results.

    Attributes:
        mode: RecalculationMode applied on update()
        always_forward: Forward every notification, even when already dirty
    """

    def __init__(
        self,
        mode: RecalculationMode = RecalculationMode.LAZY,
        always_forward: bool = False
    ):
        Observable.__init__(self)
        Observer.__init__(self)
        self.mode = mode
        self.always_forward = always_forward
        self._state = CalculationState.UNCALCULATED
        self._frozen = False
        self._missed_update = False
        self._calculating = False

    @property
    def state(self) -> CalculationState:
        return self._state

    @property
    def is_fresh(self) -> bool:
        return self._state == CalculationState.FRESH

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def is_calculating(self) -> bool:
        return self._calculating

    def perform_calculations(self) -> None:
        """Recompute cached results. Override in subclasses."""

    def calculate(self) -> None:
        """
        Bring the cached results up to date if needed.

        A frozen object is only recomputed if it was never calculated.

        Raises:
            CyclicDependencyError: if called again while recomputing
        """
        if self._state == CalculationState.FRESH:
            return
        if self._frozen and self._state != CalculationState.UNCALCULATED:
            return
        self._run_calculations()

    def _run_calculations(self) -> None:
        if self._calculating:
            raise CyclicDependencyError(
                f"{type(self).__name__} was asked for its value while recomputing it: "
                "it depends on itself"
            )

        self._calculating = True
        try:
            logger.debug("%s: recalculating (was %s)", type(self).__name__, self._state.value)
            self.perform_calculations()
        finally:
            self._calculating = False
        # only reached on success
        self._state = CalculationState.FRESH
        self._missed_update = False

    def update(self) -> None:
        """React to a change of something this object observes."""
        if self._calculating:
            # triggered by our own recomputation
            logger.debug("%s: ignoring update raised during recalculation", type(self).__name__)
            return

        if self._frozen:
            self._missed_update = True
            return

        if self.mode == RecalculationMode.ALWAYS:
            self._state = CalculationState.DIRTY
            self._run_calculations()
            self.notify_observers()
            return

        was_fresh = self._state == CalculationState.FRESH
        if was_fresh:
            self._state = CalculationState.DIRTY
        if was_fresh or self.always_forward:
            self.notify_observers()

    def recalculate(self) -> None:
        """
        Force a synchronous recomputation, even when frozen or fresh.

        Observers are notified afterwards.
        """
        was_frozen = self._frozen
        self._frozen = False
        try:
            self._state = (CalculationState.DIRTY
                           if self._state != CalculationState.UNCALCULATED
                           else CalculationState.UNCALCULATED)
            self._run_calculations()
        finally:
            self._frozen = was_frozen
        self.notify_observers()

    def freeze(self) -> None:
        """Pin the current results: notifications are suppressed."""
        self._frozen = True

    def unfreeze(self) -> None:
        """
        Resume normal behaviour.

        If something changed while frozen, the object becomes dirty and its
        observers are notified.
        """
        if not self._frozen:
            return
        self._frozen = False
        if self._missed_update:
            self._missed_update = False
            if self._state == CalculationState.FRESH:
                self._state = CalculationState.DIRTY
            self.notify_observers()


__all__ = [
    "CalculationState",
    "RecalculationMode",
    "LazyObject",
]
