"""Single head-to-head simulation runs and their outcome classification."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .competitors import Competitor
from .errors import InvariantViolation
from .interfaces import SimulationEngine, Status, StatusKind

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Possible trial outcomes, from team 0's seat."""
    WIN_TEAM0 = "win_team0"
    WIN_TEAM1 = "win_team1"
    DRAW = "draw"
    TIMED_OUT = "timed_out"

    @property
    def team0_lost(self) -> bool:
        # Running out of ticks is scored against team 0
        return self in (Outcome.WIN_TEAM1, Outcome.TIMED_OUT)


@dataclass(frozen=True)
class TrialResult:
    """Result of a single trial."""
    seed: int
    outcome: Outcome
    elapsed_time: float
    ticks: int = 0
    wall_time: float = 0.0


def classify_status(status: Status, scenario: str = "", seed: Optional[int] = None) -> Outcome:
    """Map a terminal engine status onto an outcome."""
    context = {"scenario": scenario, "seed": seed, "status": repr(status)}
    if not isinstance(status, Status):
        raise InvariantViolation(f"Unrecognised simulation status {status!r}", context_data=context)
    if status.kind == StatusKind.VICTORY:
        if status.team == 0:
            return Outcome.WIN_TEAM0
        if status.team == 1:
            return Outcome.WIN_TEAM1
        raise InvariantViolation(f"Invalid team {status.team}", context_data=context)
    if status.kind == StatusKind.DRAW:
        return Outcome.DRAW
    if status.kind == StatusKind.FAILED:
        return Outcome.WIN_TEAM1
    if status.kind == StatusKind.RUNNING:
        raise InvariantViolation("Scenario should not be running", context_data=context)
    raise InvariantViolation(f"Unrecognised simulation status {status!r}", context_data=context)


def run_trial(engine: SimulationEngine, scenario: str, seed: int,
              competitors: Sequence[Competitor], max_ticks: Optional[int] = None) -> TrialResult:
    """Run one simulation to completion or until the tick budget runs out.

    ``competitors[0]`` plays team 0 and ``competitors[1]`` team 1. Exceeding
    the budget is an expected outcome (``TIMED_OUT``), not an error.
    """
    if len(competitors) != 2:
        raise InvariantViolation(f"A trial needs exactly two competitors, got {len(competitors)}")
    budget = int(max_ticks if max_ticks is not None else engine.max_ticks)
    logger.debug(f"Running simulation {scenario} at seed {seed}")

    t0 = time.perf_counter()
    sim = engine.new_simulation(scenario, seed, [c.compiled_code for c in competitors])
    status = sim.status()
    while isinstance(status, Status) and status.is_running:
        sim.step()
        status = sim.status()
        if isinstance(status, Status) and status.is_running and sim.tick() >= budget:
            logger.warning(f"Simulation {scenario} at seed {seed} exceeding max ticks ({budget})")
            return TrialResult(seed, Outcome.TIMED_OUT, float(sim.score_time()), int(sim.tick()),
                               time.perf_counter() - t0)

    outcome = classify_status(status, scenario, seed)
    return TrialResult(seed, outcome, float(sim.score_time()), int(sim.tick()), time.perf_counter() - t0)
