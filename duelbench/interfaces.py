"""
Contracts for the collaborators duelbench drives but does not implement:
the simulation engine, the scenario catalogue and the agent-code compiler.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, Sequence, runtime_checkable


class StatusKind(Enum):
    RUNNING = "running"
    VICTORY = "victory"
    DRAW = "draw"
    FAILED = "failed"


@dataclass(frozen=True)
class Status:
    """Simulation status as reported by the engine."""
    kind: StatusKind
    team: Optional[int] = None

    @classmethod
    def victory(cls, team: int) -> "Status":
        return cls(StatusKind.VICTORY, team)

    @property
    def is_running(self) -> bool:
        return self.kind == StatusKind.RUNNING


RUNNING = Status(StatusKind.RUNNING)
DRAW = Status(StatusKind.DRAW)
FAILED = Status(StatusKind.FAILED)


@runtime_checkable
class Simulation(Protocol):
    """One simulation instance, exclusively owned by a single trial."""

    def step(self) -> None: ...

    def status(self) -> Status: ...

    def tick(self) -> int: ...

    def score_time(self) -> float: ...


@runtime_checkable
class SimulationEngine(Protocol):
    max_ticks: int

    def new_simulation(self, scenario: str, seed: int, codes: Sequence[Any]) -> Simulation: ...


class ScenarioDescriptor(Protocol):
    # initial_code[1] is the resident (team 1) opponent
    initial_code: Sequence[Any]


class ScenarioCatalogue(Protocol):
    def load(self, scenario: str) -> Optional[ScenarioDescriptor]: ...


class Compiler(Protocol):
    def compile(self, source: str) -> Any: ...

    def builtin_source(self, name: str) -> str: ...
