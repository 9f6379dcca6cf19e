"""
One-dimensional root finders.

All solvers share the Solver1D contract (solve / solve_bracketed) and
differ only in their convergence strategy.
"""

from .base import GROWTH_FACTOR, MACHINE_EPSILON, MAX_EVALUATIONS, Solver1D, close
from .bracketing import Bisection, Brent, FalsePosition, Ridder
from .newton import Newton, NewtonSafe, Secant

SOLVERS = {
    "bisection": Bisection,
    "false_position": FalsePosition,
    "secant": Secant,
    "newton": Newton,
    "newton_safe": NewtonSafe,
    "ridder": Ridder,
    "brent": Brent,
}


def create_solver(name: str = "brent", max_evaluations: int = MAX_EVALUATIONS) -> Solver1D:
    """
    Factory function to create solvers by name.

    Args:
        name: One of SOLVERS (case and dash insensitive)
        max_evaluations: Evaluation budget

    Returns:
        Solver instance
    """
    key = name.lower().replace("-", "_").replace(" ", "_")
    if key not in SOLVERS:
        raise ValueError(f"Unknown solver: {name}. Available: {sorted(SOLVERS)}")
    return SOLVERS[key](max_evaluations=max_evaluations)


__all__ = [
    "Solver1D",
    "Bisection",
    "FalsePosition",
    "Secant",
    "Newton",
    "NewtonSafe",
    "Ridder",
    "Brent",
    "SOLVERS",
    "create_solver",
    "close",
    "MACHINE_EPSILON",
    "MAX_EVALUATIONS",
    "GROWTH_FACTOR",
]
