from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from .errors import InvalidConfiguration
from .executors import EXECUTOR_KINDS, default_workers


@dataclass
class Config:
    raw: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def load(path: str = "config.yaml") -> "Config":
        """Load configuration data from a YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise InvalidConfiguration(f"Cannot read config {path}: {e}", context_data={"path": path}) from e
        except yaml.YAMLError as e:
            raise InvalidConfiguration(f"Invalid YAML in {path}: {e}", context_data={"path": path}) from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise InvalidConfiguration(f"Config {path} must be a mapping, got {type(data).__name__}")
        return Config(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Return a configuration value or the provided default."""
        return self.raw.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Return the underlying configuration dictionary."""
        return self.raw

    # Convenience nested getters
    def bench(self) -> Dict[str, Any]:
        """Benchmark scheduling section."""
        return self.raw.get("bench", {}) or {}

    def simulation(self) -> Dict[str, Any]:
        """Simulation backend section."""
        return self.raw.get("simulation", {}) or {}

    def logging(self) -> Dict[str, Any]:
        """Logging section."""
        return self.raw.get("logging", {}) or {}


@dataclass
class BenchSettings:
    """Resolved knobs for one benchmark invocation."""
    rounds: int = 10
    trial_workers: int = field(default_factory=default_workers)
    scenario_workers: int = field(default_factory=default_workers)
    executor: str = "thread"
    max_ticks: Optional[int] = None
    backend: Optional[str] = None

    @classmethod
    def from_config(cls, cfg: Config, **overrides: Any) -> "BenchSettings":
        """Build settings from the ``bench`` and ``simulation`` sections.

        Keyword overrides set to ``None`` are ignored so CLI defaults do not
        clobber configured values.
        """
        bench = cfg.bench()
        sim = cfg.simulation()
        values: Dict[str, Any] = {}
        for key in ("rounds", "trial_workers", "scenario_workers", "executor"):
            if bench.get(key) is not None:
                values[key] = bench[key]
        if sim.get("max_ticks") is not None:
            values["max_ticks"] = sim["max_ticks"]
        if sim.get("backend") is not None:
            values["backend"] = sim["backend"]
        values.update({k: v for k, v in overrides.items() if v is not None})
        unknown = set(values) - set(cls.__dataclass_fields__)
        if unknown:
            raise InvalidConfiguration(f"Unknown settings: {sorted(unknown)}")
        settings = cls(**values)
        settings.validate()
        return settings

    def validate(self) -> None:
        try:
            self.rounds = int(self.rounds)
            self.trial_workers = int(self.trial_workers)
            self.scenario_workers = int(self.scenario_workers)
            if self.max_ticks is not None:
                self.max_ticks = int(self.max_ticks)
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"Non-numeric benchmark setting: {e}") from e
        if self.rounds < 1:
            raise InvalidConfiguration(f"Rounds must be at least 1, got {self.rounds}")
        if self.trial_workers < 1 or self.scenario_workers < 1:
            raise InvalidConfiguration(
                f"Worker counts must be positive (trial={self.trial_workers}, scenario={self.scenario_workers})")
        if self.executor not in EXECUTOR_KINDS:
            raise InvalidConfiguration(f"Unknown executor kind {self.executor!r}, expected one of {EXECUTOR_KINDS}")
        if self.max_ticks is not None and self.max_ticks < 1:
            raise InvalidConfiguration(f"max_ticks must be positive, got {self.max_ticks}")
