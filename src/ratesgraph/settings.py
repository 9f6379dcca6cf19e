"""
Evaluation context: the observable "today" of a pricing run.

Instead of a process-wide singleton, date-relative curves and helpers are
given an explicit EvaluationContext. Changing its evaluation date notifies
every dependent object; the date is immutable while a calculation is pinned
to the context.
"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Optional

from .observer import Observable

logger = logging.getLogger(__name__)


class EvaluationContext(Observable):
    """
    Holder of the current evaluation date.

    Attributes:
        evaluation_date: Current evaluation date (defaults to date.today()
            when never set or reset)
    """

    def __init__(self, evaluation_date: Optional[date] = None):
        super().__init__()
        self._evaluation_date = evaluation_date
        self._pins = 0

    @property
    def evaluation_date(self) -> date:
        if self._evaluation_date is None:
            return date.today()
        return self._evaluation_date

    @evaluation_date.setter
    def evaluation_date(self, d: Optional[date]) -> None:
        self.set_evaluation_date(d)

    def set_evaluation_date(self, d: Optional[date]) -> None:
        """
        Change the evaluation date and notify observers if it moved.

        Args:
            d: New evaluation date, or None to float with the system date

        Raises:
            RuntimeError: if a calculation is currently pinned to the context
        """
        if self._pins:
            raise RuntimeError("evaluation date cannot change while a calculation is running")
        previous = self.evaluation_date
        self._evaluation_date = d
        if self.evaluation_date != previous:
            logger.info("evaluation date moved: %s -> %s", previous, self.evaluation_date)
            self.notify_observers()

    def reset(self) -> None:
        """Return to the floating (system date) evaluation date."""
        self.set_evaluation_date(None)

    @contextmanager
    def pinned(self) -> Iterator[date]:
        """Freeze the evaluation date for the duration of a calculation."""
        self._pins += 1
        try:
            yield self.evaluation_date
        finally:
            self._pins -= 1

    @contextmanager
    def saved(self) -> Iterator["EvaluationContext"]:
        """Restore the evaluation date on exit (scenario/test scoping)."""
        saved_date = self._evaluation_date
        try:
            yield self
        finally:
            if self._evaluation_date != saved_date:
                self.set_evaluation_date(saved_date)

    def __repr__(self) -> str:
        return f"EvaluationContext({self.evaluation_date})"


__all__ = [
    "EvaluationContext",
]
