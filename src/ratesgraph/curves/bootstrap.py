"""
Curve bootstrapping engine.

Implements the sequential bootstrap of piecewise curves:
1. Drop expired helpers, check pillar ordering
2. For each pillar, solve for the node value that reprices its helper,
   holding the nodes already solved fixed
3. Hand the complete node set over to the curve

Nodes are solved into a scratch curve. The curve being bootstrapped only
receives the new nodes once every pillar has converged, so a failed
bootstrap leaves its previous nodes untouched.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import pandas as pd

from ..errors import BootstrapFailure, InvalidNodeOrdering, SolverError
from ..solvers import create_solver
from .helpers import BootstrapHelper
from .nodes import CurveNodes, PillarNode

logger = logging.getLogger(__name__)


@dataclass
class BootstrapConfig:
    """
    Solver settings of a bootstrap.

    Attributes:
        accuracy: Solver accuracy on each node value
        max_evaluations: Function evaluations allowed per pillar
        solver: Solver name (see ratesgraph.solvers.create_solver)
    """
    accuracy: float = 1e-12
    max_evaluations: int = 100
    solver: str = "brent"


@dataclass
class BootstrapResult:
    """
    Outcome of a successful bootstrap.

    Attributes:
        nodes: All curve nodes, the reference-date node first
        residuals: Helper quote error at each solved pillar
        evaluations: Solver evaluations spent on each pillar
    """
    nodes: List[PillarNode]
    residuals: List[float] = field(default_factory=list)
    evaluations: List[int] = field(default_factory=list)

    @property
    def max_abs_residual(self) -> float:
        return max((abs(r) for r in self.residuals), default=0.0)

    def to_frame(self) -> pd.DataFrame:
        """One row per pillar: date, time, value, residual, evaluations."""
        rows = []
        for node, residual, evaluations in zip(self.nodes[1:], self.residuals, self.evaluations):
            rows.append({
                "pillar_date": node.pillar_date,
                "time": node.time,
                "value": node.value,
                "residual": residual,
                "evaluations": evaluations,
            })
        return pd.DataFrame(rows)


def sort_helpers(helpers: Sequence[BootstrapHelper]) -> List[BootstrapHelper]:
    """Sort helpers by pillar date and check their ordering."""
    if not helpers:
        raise ValueError("no bootstrap helpers given")
    ordered = sorted(helpers, key=lambda h: h.pillar_date)
    check_helpers(ordered)
    return ordered


def check_helpers(helpers: Sequence[BootstrapHelper]) -> None:
    """
    Raise InvalidNodeOrdering on duplicate pillars or non-increasing latest dates.

    Helpers must already be sorted by pillar date.
    """
    for i in range(1, len(helpers)):
        previous, current = helpers[i - 1], helpers[i]
        if current.pillar_date <= previous.pillar_date:
            raise InvalidNodeOrdering(
                f"more than one instrument with pillar {current.pillar_date} "
                f"(helpers {i - 1} and {i})"
            )
        if current.latest_date <= previous.latest_date:
            raise InvalidNodeOrdering(
                f"helper {i} latest date ({current.latest_date}) is not after "
                f"helper {i - 1} latest date ({previous.latest_date})"
            )


class _PillarObjective:
    """Quote error of one helper as a function of its node value."""

    def __init__(self, traits, nodes: CurveNodes, helper: BootstrapHelper, index: int):
        self.traits = traits
        self.nodes = nodes
        self.helper = helper
        self.index = index
        self.last_residual = None

    def __call__(self, value: float) -> float:
        self.traits.update_guess(self.nodes.data, value, self.index)
        self.nodes.refit(self.index + 1)
        self.last_residual = self.helper.quote_error()
        return self.last_residual


class IterativeBootstrap:
    """
    Sequential pillar-by-pillar bootstrap.

    Node i is solved with nodes 0..i-1 fixed, so changing a helper's quote
    never moves the nodes of earlier pillars. Starting values come from the
    curve traits only (never from a previous bootstrap), so bootstrapping
    twice with the same quotes gives identical nodes.

    Attributes:
        config: BootstrapConfig with solver settings
    """

    def __init__(self, config: BootstrapConfig = None):
        self.config = config or BootstrapConfig()

    def calculate(self, curve) -> Tuple[CurveNodes, BootstrapResult]:
        """
        Bootstrap the curve's helpers.

        Args:
            curve: Piecewise curve exposing helpers, traits, reference_date
                and make_scratch(dates, values)

        Returns:
            Tuple of (solved nodes, BootstrapResult)

        Raises:
            InvalidNodeOrdering: if the alive helpers are badly ordered
            BootstrapFailure: if a pillar cannot be solved
        """
        traits = curve.traits
        reference_date = curve.reference_date

        helpers = []
        positions = []
        for i, helper in enumerate(curve.helpers):
            if helper.pillar_date <= reference_date:
                logger.warning("skipping expired helper %d (%r): pillar on or before %s",
                               i, helper, reference_date)
                continue
            helpers.append(helper)
            positions.append(i)
        if not helpers:
            raise ValueError(f"no alive helpers: every pillar is on or before {reference_date}")
        check_helpers(helpers)

        dates = [reference_date] + [h.pillar_date for h in helpers]
        scratch = curve.make_scratch(dates, [traits.initial_value] * len(dates))
        scratch.enable_extrapolation()
        nodes = scratch._nodes

        previous = [helper.set_term_structure(scratch) for helper in helpers]
        try:
            residuals, evaluations = self._solve_pillars(traits, nodes, helpers, positions)
        except Exception:
            # helpers keep pricing on the last committed curve
            for helper, term_structure in zip(helpers, previous):
                helper.set_term_structure(term_structure)
            raise

        result = BootstrapResult(nodes=nodes.nodes(), residuals=residuals, evaluations=evaluations)
        logger.info("bootstrapped %d pillars from %s to %s (max residual %.2e)",
                    len(helpers), dates[1], dates[-1], result.max_abs_residual)
        return nodes, result

    def _solve_pillars(self, traits, nodes, helpers, positions):
        """Solve the nodes one pillar at a time; returns (residuals, evaluations)."""
        config = self.config
        solver = create_solver(config.solver, config.max_evaluations)
        residuals = []
        evaluations = []

        for i, helper in enumerate(helpers, start=1):
            position = positions[i - 1]
            if not helper.quote_is_valid():
                raise BootstrapFailure(position, helper.pillar_date, "invalid quote")

            x_min = traits.min_value_after(i, nodes.data, nodes.times)
            x_max = traits.max_value_after(i, nodes.data, nodes.times)
            guess = traits.guess(i, nodes.data, nodes.times)
            if not x_min < guess < x_max:
                guess = 0.5 * (x_min + x_max)

            objective = _PillarObjective(traits, nodes, helper, i)
            try:
                value = solver.solve_bracketed(objective, config.accuracy, guess, x_min, x_max)
            except (SolverError, ArithmeticError, ValueError, LookupError) as exc:
                raise BootstrapFailure(
                    position, helper.pillar_date, str(exc),
                    x_min=x_min, x_max=x_max,
                    last_residual=objective.last_residual,
                    accuracy=config.accuracy,
                ) from exc

            # leave node i at the root, whatever the solver evaluated last
            residuals.append(objective(value))
            evaluations.append(solver.evaluation_number)
            logger.debug("pillar %d (%s): value %.12g, residual %.3e, %d evaluations",
                         position, helper.pillar_date, value, residuals[-1], evaluations[-1])

        return residuals, evaluations


__all__ = [
    "BootstrapConfig",
    "BootstrapResult",
    "IterativeBootstrap",
    "PillarNode",
    "check_helpers",
    "sort_helpers",
]
