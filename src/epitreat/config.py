"""
===========================================================
config.py
Author: Veronica Scerra
Last Updated: 2026-10-15
===========================================================
Sweep configuration.

YAML files are merged over the built-in defaults, so a file
only needs the keys it changes:

    sweep:
      t_start: [1, 50, 1]        # start, stop (inclusive), step
      cov_active: [0.1, 1.0, 0.1]
      workers: null              # null = all cores
    solver:
      method: RK4
      max_step: 0.1
      days: [0, 50, 1]           # output grid
    parameters:                  # TreatmentParameters fields
      beta_cc: 0.6
    initial:                     # InitialConditions fields
      S_c: 100

Unknown keys are rejected rather than silently ignored.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import copy
import dataclasses
import numpy as np
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .experiments import inclusive_range
from .integrate import check_method
from .parameters import InitialConditions, TreatmentParameters


@dataclass
class SweepSection:
    """Strategy grid and pool size."""
    t_start: List[float] = field(default_factory=lambda: [1, 50, 1])
    cov_active: List[float] = field(default_factory=lambda: [0.1, 1.0, 0.1])
    workers: Optional[int] = None


@dataclass
class SolverSection:
    """Integration method and output grid (days)."""
    method: str = "RK4"
    max_step: float = 0.1
    days: List[float] = field(default_factory=lambda: [0, 50, 1])


@dataclass
class SweepConfig:
    sweep: SweepSection = field(default_factory=SweepSection)
    solver: SolverSection = field(default_factory=SolverSection)
    parameters: Dict[str, Any] = field(default_factory=dict)
    initial: Dict[str, Any] = field(default_factory=dict)

    def t_starts(self) -> np.ndarray:
        return inclusive_range(*self.sweep.t_start)

    def coverages(self) -> np.ndarray:
        return inclusive_range(*self.sweep.cov_active)

    def output_times(self) -> np.ndarray:
        return inclusive_range(*self.solver.days)

    def base_parameters(self) -> TreatmentParameters:
        return TreatmentParameters(**self.parameters)

    def initial_conditions(self) -> InitialConditions:
        return InitialConditions(**self.initial)

    def to_dict(self) -> Dict:
        return dataclasses.asdict(self)


def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _check_keys(name: str, data: Dict, allowed):
    unknown = set(data) - set(allowed)
    if unknown:
        raise ValueError(f"unknown keys in '{name}': {sorted(unknown)}")


def _check_range(name: str, value):
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ValueError(f"{name} must be [start, stop, step], got {value!r}")
    inclusive_range(*value)


def _dict_to_config(data: Dict) -> SweepConfig:
    """Convert a merged YAML dict to a SweepConfig."""
    _check_keys("config", data, ("sweep", "solver", "parameters", "initial"))
    sweep = data.get("sweep") or {}
    solver = data.get("solver") or {}
    parameters = data.get("parameters") or {}
    initial = data.get("initial") or {}

    _check_keys("sweep", sweep, [f.name for f in dataclasses.fields(SweepSection)])
    _check_keys("solver", solver, [f.name for f in dataclasses.fields(SolverSection)])
    _check_keys("parameters", parameters,
                [f.name for f in dataclasses.fields(TreatmentParameters) if f.init])
    _check_keys("initial", initial, [f.name for f in dataclasses.fields(InitialConditions)])

    return SweepConfig(
        sweep=SweepSection(**sweep),
        solver=SolverSection(**solver),
        parameters=dict(parameters),
        initial=dict(initial),
    )


def validate_config(config: SweepConfig) -> None:
    """Raise ValueError (DomainError for model values) on a bad config."""
    _check_range("sweep.t_start", config.sweep.t_start)
    _check_range("sweep.cov_active", config.sweep.cov_active)
    _check_range("solver.days", config.solver.days)
    if config.sweep.workers is not None and config.sweep.workers < 1:
        raise ValueError(f"sweep.workers must be >= 1, got {config.sweep.workers}")
    if config.solver.max_step <= 0:
        raise ValueError(f"solver.max_step must be positive, got {config.solver.max_step}")
    check_method(config.solver.method)
    config.base_parameters()
    config.initial_conditions().validate()


def load_config(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict] = None,
) -> SweepConfig:
    """Load a YAML sweep config merged over the defaults.

    Merge order: defaults -> file -> overrides.
    """
    config_dict = default_config().to_dict()

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            deep_merge(config_dict, yaml.safe_load(f) or {})

    if overrides is not None:
        deep_merge(config_dict, copy.deepcopy(overrides))

    config = _dict_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> SweepConfig:
    """Return a SweepConfig with all default values."""
    return SweepConfig()
