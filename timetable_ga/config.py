"""
Genetic algorithm configuration.

Parameters can be built in code or loaded from a YAML file so that every
run is reproducible: the random seed is mandatory.
"""
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigError
from .model import time_to_minutes

SELECTION_STRATEGIES = ("elite", "tournament")
CROSSOVER_STRATEGIES = ("one_point", "uniform")


@dataclass
class GAConfig:
    seed: int

    # Genetic algorithm
    population_size: int = 100
    generations: int = 50
    elitism_rate: float = 0.2
    mutation_rate: float = 0.02
    selection: str = "elite"
    tournament_size: int = 3
    crossover: str = "one_point"

    # Termination
    early_stop: bool = True
    max_stagnation: Optional[int] = None
    time_limit: Optional[float] = None  # seconds

    # Hard constraint weight
    hard_penalty: int = 100

    # Soft constraint weights (0 disables)
    weight_preferred_slot: int = 1
    weight_preferred_day: int = 1
    weight_unavailable_slot: int = 5
    weight_max_hours: int = 2
    weight_daily_load: int = 1
    weight_lunch_break: int = 2
    weight_consecutive: int = 1
    lunch_start: str = "12:00"
    lunch_end: str = "14:00"

    # Parallel evaluation
    n_workers: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GAConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}", {"keys": unknown})
        if data.get("seed") is None:
            raise ConfigError("A random seed is required for reproducible runs")
        return cls(**data)

    def soft_weights(self) -> Dict[str, int]:
        return {
            "preferred_slot": self.weight_preferred_slot,
            "preferred_day": self.weight_preferred_day,
            "unavailable_slot": self.weight_unavailable_slot,
            "max_hours": self.weight_max_hours,
            "daily_load": self.weight_daily_load,
            "lunch_break": self.weight_lunch_break,
            "consecutive": self.weight_consecutive,
        }

    def validate(self) -> "GAConfig":
        if not isinstance(self.seed, int) or isinstance(self.seed, bool):
            raise ConfigError("seed must be an integer", {"seed": self.seed})
        if self.population_size < 1:
            raise ConfigError("population_size must be at least 1")
        if self.generations < 0:
            raise ConfigError("generations must not be negative")
        for name in ("elitism_rate", "mutation_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be within [0, 1]", {name: value})
        if self.selection not in SELECTION_STRATEGIES:
            raise ConfigError(f"Unknown selection strategy {self.selection!r}")
        if self.crossover not in CROSSOVER_STRATEGIES:
            raise ConfigError(f"Unknown crossover strategy {self.crossover!r}")
        if self.tournament_size < 1:
            raise ConfigError("tournament_size must be at least 1")
        if self.hard_penalty <= 0:
            raise ConfigError("hard_penalty must be positive")
        negative = [k for k, w in self.soft_weights().items() if w < 0]
        if negative:
            raise ConfigError("Soft constraint weights must not be negative", {"weights": negative})
        try:
            lunch = (time_to_minutes(self.lunch_start), time_to_minutes(self.lunch_end))
        except ValueError as exc:
            raise ConfigError(f"Invalid lunch window: {exc}") from exc
        if lunch[0] >= lunch[1]:
            raise ConfigError("lunch_start must precede lunch_end")
        if self.max_stagnation is not None and self.max_stagnation < 1:
            raise ConfigError("max_stagnation must be at least 1 when set")
        if self.time_limit is not None and self.time_limit <= 0:
            raise ConfigError("time_limit must be positive when set")
        if self.n_workers < 1:
            raise ConfigError("n_workers must be at least 1")
        return self


def load_config(path: str = "config.yaml", **overrides: Any) -> GAConfig:
    """
    Read the configuration from YAML. Non-None ``overrides`` (typically the
    command line arguments) take precedence over the file.
    """
    cfg_path = Path(path)
    data: Dict[str, Any] = {}
    if cfg_path.exists():
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping")
    data.update({k: v for k, v in overrides.items() if v is not None})
    return GAConfig.from_dict(data).validate()
