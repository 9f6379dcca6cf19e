"""
Shared fixtures.
"""

from datetime import date

import pytest

from ratesgraph.observer import Observer
from ratesgraph.settings import EvaluationContext


@pytest.fixture
def reference_date():
    """Monday 15 January 2024."""
    return date(2024, 1, 15)


@pytest.fixture
def context(reference_date):
    """Fresh evaluation context per test."""
    return EvaluationContext(reference_date)


class Counter(Observer):
    """Observer counting the notifications it receives."""

    def __init__(self, *observables):
        super().__init__()
        self.count = 0
        for observable in observables:
            self.observe(observable)

    def update(self):
        self.count += 1


@pytest.fixture
def counter():
    """Factory of notification counters."""
    return Counter
