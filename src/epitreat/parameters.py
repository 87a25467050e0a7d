"""
===============================================================================
parameters.py
Author: Veronica Scerra
Last Updated: 2026-10-12
===============================================================================
Model Parameters for the Pulse-Treatment SEIR Model

Epidemiological and intervention parameters for the child/adult SEIR model
with a Treatment compartment. All rates are per day.

The intervention is a one-time treatment pulse: from day t_start to
t_start + 1 a fraction cov_active of children leaving the exposed class is
routed to treatment (T) instead of the untreated infectious class (Iu).

Two drug regimes are modeled, selected by the target coverage:
    cov_active <  0.5 -> expensive drug, high efficacy (alpha_high_cov)
    cov_active >= 0.5 -> cheap drug, lower efficacy  (alpha_low_cov)
The same threshold drives the medicine_type label used in sweep results.
--------------------------------------------------------------------------------
License: MIT
================================================================================
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass, field, replace, asdict
from typing import Dict

from .exceptions import DomainError

# single threshold shared by the efficacy branch and the medicine label
COVERAGE_THRESHOLD = 0.5
PULSE_DURATION = 1.0    # days

LOW_COVERAGE_LABEL = "Expensive Medicine (Low Coverage)"
HIGH_COVERAGE_LABEL = "Cheap Medicine (High Coverage)"

COMPARTMENTS = ("S_c", "E_c", "T_c", "Iu_c", "R_c", "S_a", "E_a", "I_a")
CHILD_COMPARTMENTS = COMPARTMENTS[:5]
ADULT_COMPARTMENTS = COMPARTMENTS[5:]


def is_low_coverage(cov_active: float) -> bool:
    """True when the target coverage falls in the expensive/low-coverage regime"""
    return cov_active < COVERAGE_THRESHOLD


def medicine_type(cov_active: float) -> str:
    """Categorical label for a coverage level"""
    return LOW_COVERAGE_LABEL if is_low_coverage(cov_active) else HIGH_COVERAGE_LABEL


def select_alpha(cov_active: float, alpha_low_cov: float, alpha_high_cov: float) -> float:
    """Recovery rate of treated children for a coverage level.

    Low target coverage maps to the HIGH-efficacy drug (costlier but more
    effective, so it is given to fewer children).
    """
    return alpha_high_cov if is_low_coverage(cov_active) else alpha_low_cov


@dataclass(frozen=True)
class TreatmentParameters:
    """
    Parameter set for one run of the pulse-treatment SEIR model.

    Frozen: a sweep derives one instance per grid point with
    with_strategy() and never mutates the shared defaults.
    """

    # ==================== Natural History ========================================
    theta: float = 1.0 / 7.0     # child latency rate E_c -> I (1/7 days)
    theta_a: float = 1.0 / 10.0  # adult latency rate E_a -> I_a (1/10 days)

    # ==================== Transmission ===========================================
    beta_cc: float = 0.6    # child -> child
    beta_ac: float = 0.3    # adult -> child (beta_ca mirrors it)
    beta_aa: float = 0.4    # adult -> adult

    # ==================== Treatment ==============================================
    alpha_low_cov: float = 2.0      # recovery rate, cheap drug (high coverage)
    alpha_high_cov: float = 4.0     # recovery rate, expensive drug (low coverage)

    # ==================== Intervention Strategy ==================================
    cov_active: float = 0.6     # coverage during the pulse, fraction in [0, 1]
    t_start: int = 14           # day the pulse begins

    # derived in __post_init__
    alpha: float = field(init=False, repr=False)

    def __post_init__(self):
        """Validate, then fix the efficacy regime for the whole run"""
        self._validate()
        object.__setattr__(self, "t_start", int(self.t_start))
        object.__setattr__(self, "alpha",
                           select_alpha(self.cov_active, self.alpha_low_cov, self.alpha_high_cov))

    def _validate(self):
        for name in ("theta", "theta_a", "alpha_low_cov", "alpha_high_cov"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise DomainError(f"{name} must be positive, got {value}")
        for name in ("beta_cc", "beta_ac", "beta_aa"):
            value = getattr(self, name)
            if not np.isfinite(value) or value < 0:
                raise DomainError(f"{name} must be non-negative, got {value}")
        if not 0.0 <= self.cov_active <= 1.0:
            raise DomainError(f"cov_active must lie in [0, 1], got {self.cov_active}")
        if not np.isfinite(self.t_start) or self.t_start < 0 or int(self.t_start) != self.t_start:
            raise DomainError(f"t_start must be a non-negative integer, got {self.t_start}")

    @property
    def beta_ca(self) -> float:
        """Child -> adult transmission, symmetric with adult -> child"""
        return self.beta_ac

    @property
    def t_end(self) -> float:
        """Last day of the treatment pulse"""
        return self.t_start + PULSE_DURATION

    @property
    def medicine_type(self) -> str:
        return medicine_type(self.cov_active)

    def with_strategy(self, t_start: int, cov_active: float) -> "TreatmentParameters":
        """Copy with the two intervention parameters substituted"""
        return replace(self, t_start=t_start, cov_active=float(cov_active))

    def to_dict(self) -> Dict:
        """Convert parameters to dictionary for easy inspection."""
        d = asdict(self)
        d["beta_ca"] = self.beta_ca
        d["medicine_type"] = self.medicine_type
        return d

    def print_summary(self):
        """Print parameter summary for documentation."""
        print("PULSE-TREATMENT SEIR PARAMETERS:")
        print("\n--- NATURAL HISTORY ---")
        print(f"Child latent period: {1 / self.theta:.1f} days")
        print(f"Adult latent period: {1 / self.theta_a:.1f} days")
        print("\n--- TRANSMISSION ---")
        print(f"beta_cc (child->child): {self.beta_cc:.3f}")
        print(f"beta_ac = beta_ca (adult<->child): {self.beta_ac:.3f}")
        print(f"beta_aa (adult->adult): {self.beta_aa:.3f}")
        print("\n--- INTERVENTION ---")
        print(f"Pulse window: day {self.t_start} to day {self.t_end:g}")
        print(f"Coverage: {self.cov_active * 100:.0f}%")
        print(f"Medicine: {self.medicine_type}")
        print(f"Treated recovery rate (alpha): {self.alpha:.2f} per day")


@dataclass(frozen=True)
class InitialConditions:
    """Initial compartment sizes, in the order of COMPARTMENTS"""
    S_c: float = 100.0
    E_c: float = 0.0
    T_c: float = 0.0
    Iu_c: float = 1.0
    R_c: float = 0.0
    S_a: float = 20.0
    E_a: float = 0.0
    I_a: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([getattr(self, c) for c in COMPARTMENTS], dtype=float)

    @property
    def children_total(self) -> float:
        return float(sum(getattr(self, c) for c in CHILD_COMPARTMENTS))

    @property
    def adults_total(self) -> float:
        return float(sum(getattr(self, c) for c in ADULT_COMPARTMENTS))

    def validate(self):
        """Reject states the force of infection cannot be computed for"""
        y0 = self.as_array()
        if not np.all(np.isfinite(y0)) or np.any(y0 < 0):
            raise DomainError(f"initial compartments must be finite and non-negative, got {y0}")
        if self.children_total <= 0:
            raise DomainError("initial child population must be positive")
        if self.adults_total <= 0:
            raise DomainError("initial adult population must be positive")

    @classmethod
    def from_array(cls, y0) -> "InitialConditions":
        y0 = np.asarray(y0, dtype=float)
        if y0.shape != (len(COMPARTMENTS),):
            raise DomainError(f"expected {len(COMPARTMENTS)} compartments, got shape {y0.shape}")
        return cls(**dict(zip(COMPARTMENTS, (float(v) for v in y0))))


# Alternative parameter sets and starting states
def default_parameters() -> TreatmentParameters:
    return TreatmentParameters()


def no_intervention_parameters() -> TreatmentParameters:
    """Baseline with no treatment ever applied"""
    return TreatmentParameters(cov_active=0.0)


def simplified_initial_conditions() -> InitialConditions:
    """100-child variant: 99 susceptible plus the index case"""
    return InitialConditions(S_c=99.0)


if __name__ == "__main__":
    params = default_parameters()
    params.print_summary()

    print("\nParameter dictionary:")
    import pprint
    pprint.pprint(params.to_dict())
