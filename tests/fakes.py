"""Scripted stand-ins for the simulation engine, scenario catalogue and compiler.

The team 0 program decides how a simulation ends. Compiled payloads are the
stripped source text, so a competitor compiled from ``"win"`` always wins:

- ``win`` / ``lose`` / ``draw``: victory for team 0, victory for team 1, draw
- ``stall``: never finishes, so the trial runs into the tick budget
- ``fail``: engine reports FAILED
- ``bad_team``: engine reports a victory for team 7
- ``mixed``: cycles win, lose, draw, stall by seed

Games end after ``1 + seed % 5`` ticks and ``score_time`` is half the tick
count, so elapsed times are exact binary fractions.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from duelbench.backend import Backend
from duelbench.competitors import BuiltinReference, CompiledBinary, Competitor
from duelbench.interfaces import DRAW, FAILED, RUNNING, Status

NEVER = 10 ** 9
TICK_SECONDS = 0.5

_MIXED = ("win", "lose", "draw", "stall")


def _final_status(strategy: str, seed: int) -> Tuple[Status, int]:
    if strategy == "mixed":
        strategy = _MIXED[seed % len(_MIXED)]
    finish = 1 + seed % 5
    if strategy == "win":
        return Status.victory(0), finish
    if strategy == "lose":
        return Status.victory(1), finish
    if strategy == "draw":
        return DRAW, finish
    if strategy == "fail":
        return FAILED, finish
    if strategy == "bad_team":
        return Status.victory(7), finish
    if strategy == "stall":
        return RUNNING, NEVER
    raise ValueError(f"unknown fake strategy {strategy!r}")


class FakeSimulation:
    def __init__(self, final: Status, finish_tick: int, delay: float = 0.0):
        self.final = final
        self.finish_tick = finish_tick
        self.delay = delay
        self._tick = 0

    def step(self) -> None:
        if self.delay:
            time.sleep(self.delay)
        self._tick += 1

    def status(self) -> Status:
        return RUNNING if self._tick < self.finish_tick else self.final

    def tick(self) -> int:
        return self._tick

    def score_time(self) -> float:
        return self._tick * TICK_SECONDS


class ScriptedEngine:
    """Deterministic engine; optionally jitters step times to shuffle completion order."""

    def __init__(self, max_ticks: int = 50, jitter: bool = False,
                 broken_scenarios: Optional[Set[str]] = None):
        self.max_ticks = max_ticks
        self.jitter = jitter
        self.broken_scenarios = set(broken_scenarios or ())
        self.created: List[Tuple[str, int, Tuple[Any, ...]]] = []
        self._lock = threading.Lock()

    def new_simulation(self, scenario: str, seed: int, codes: Sequence[Any]) -> FakeSimulation:
        payloads = tuple(c.payload if isinstance(c, CompiledBinary) else c for c in codes)
        with self._lock:
            self.created.append((scenario, seed, payloads))
        final, finish = _final_status(str(payloads[0]), seed)
        if scenario in self.broken_scenarios:
            final = Status.victory(2)
        delay = ((seed * 7919) % 5) * 0.0005 if self.jitter else 0.0
        return FakeSimulation(final, finish, delay)


class PicklableEngine:
    """Lock-free engine for process pools."""

    def __init__(self, max_ticks: int = 50):
        self.max_ticks = max_ticks

    def new_simulation(self, scenario: str, seed: int, codes: Sequence[Any]) -> FakeSimulation:
        final, finish = _final_status(str(codes[0].payload), seed)
        return FakeSimulation(final, finish)


class FakeCompiler:
    """Compiles by stripping whitespace; sources starting with ``error`` are rejected."""

    def __init__(self, builtins: Optional[Dict[str, str]] = None):
        self.builtins = dict(builtins or {"basic_opponent": "idle", "turret": "idle"})
        self.compiled: List[str] = []
        self._lock = threading.Lock()

    def compile(self, source: str) -> CompiledBinary:
        if source.strip().startswith("error"):
            raise ValueError("syntax error at line 1")
        with self._lock:
            self.compiled.append(source)
        return CompiledBinary(source.strip())

    def builtin_source(self, name: str) -> str:
        return self.builtins[name]


@dataclass
class FakeDescriptor:
    initial_code: List[Any] = field(default_factory=lambda: [None, BuiltinReference("basic_opponent")])


class FakeCatalogue:
    def __init__(self, scenarios: Optional[Dict[str, FakeDescriptor]] = None):
        self.scenarios = scenarios if scenarios is not None else {
            "duel": FakeDescriptor(),
            "chase": FakeDescriptor([None, BuiltinReference("turret")]),
        }
        self.loads: List[str] = []

    def load(self, scenario: str) -> Optional[FakeDescriptor]:
        self.loads.append(scenario)
        return self.scenarios.get(scenario)


def make_competitor(strategy: str, name: Optional[str] = None) -> Competitor:
    return Competitor(name=name or strategy, compiled_code=CompiledBinary(strategy), source_code=strategy)


def make_backend() -> Backend:
    return Backend(engine=ScriptedEngine(), catalogue=FakeCatalogue(), compiler=FakeCompiler())


def make_broken_backend() -> Backend:
    return Backend(engine=ScriptedEngine(broken_scenarios={"chase"}), catalogue=FakeCatalogue(),
                   compiler=FakeCompiler())


class CountingEngine(ScriptedEngine):
    """Records the peak number of simulations being built at the same time."""

    def __init__(self, max_ticks: int = 50, hold: float = 0.002):
        super().__init__(max_ticks=max_ticks)
        self.hold = hold
        self.active = 0
        self.peak = 0

    def new_simulation(self, scenario: str, seed: int, codes: Sequence[Any]) -> FakeSimulation:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(self.hold)
            return super().new_simulation(scenario, seed, codes)
        finally:
            with self._lock:
                self.active -= 1
