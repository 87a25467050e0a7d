"""
===========================================================
model.py
Author: Veronica Scerra
Last Updated: 2026-10-14
===========================================================

Description:
    Deterministic child/adult SEIR model with a Treatment
    compartment and a one-day treatment pulse.

Model Structure:
    children:  S_c -> E_c -> T_c  -> R_c
                          \\-> Iu_c
    adults:    S_a -> E_a -> I_a

    While the pulse is on (t_start <= t <= t_start + 1) a
    fraction cov_active of children leaving E_c enters T_c;
    everyone else becomes untreated infectious (Iu_c), which
    has no outflow. Treated children recover at rate alpha.

API:
    coverage_at(t, params)          -> active coverage at time t
    forces_of_infection(y, params)  -> (lambda_c, lambda_a)
    treatment_rhs(t, y, params)     -> dy/dt (8 values)
    total_infected_children(y)      -> T_c + Iu_c
    TreatmentSEIRModel(params)
      - simulate(t, initial=None)   -> dict(t, compartments, totals)
      - summary(outputs)            -> dict of peak and final sizes

Notes:
    - Compartment order: S_c, E_c, T_c, Iu_c, R_c, S_a, E_a, I_a
    - beta_ca is tied to beta_ac
    - the pulse is integrated one-sided at both edges, so the
      treatment window lasts exactly 1.0 day
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from typing import Dict, Optional, Tuple

from .exceptions import NumericalError
from .integrate import integrate
from .parameters import (
    ADULT_COMPARTMENTS,
    CHILD_COMPARTMENTS,
    COMPARTMENTS,
    InitialConditions,
    TreatmentParameters,
)


def coverage_at(t: float, params: TreatmentParameters) -> float:
    """Coverage in effect at time t: cov_active inside [t_start, t_start + 1], else 0"""
    if params.t_start <= t <= params.t_end:
        return params.cov_active
    return 0.0


def forces_of_infection(y, params: TreatmentParameters) -> Tuple[float, float]:
    S_c, E_c, T_c, Iu_c, R_c, S_a, E_a, I_a = y
    N_c = S_c + E_c + T_c + Iu_c + R_c
    N_a = S_a + E_a + I_a

    lambda_c = params.beta_ac * (I_a / N_a) + params.beta_cc * ((T_c + Iu_c) / N_c)
    lambda_a = params.beta_ca * (Iu_c + T_c) / N_c + params.beta_aa * (I_a / N_a)
    return lambda_c, lambda_a


def treatment_rhs(t: float, y, params: TreatmentParameters) -> np.ndarray:
    """Right-hand side of the pulse-treatment SEIR equations"""
    S_c, E_c, T_c, Iu_c, R_c, S_a, E_a, I_a = y
    lambda_c, lambda_a = forces_of_infection(y, params)
    cov = coverage_at(t, params)
    alpha = params.alpha
    theta, theta_a = params.theta, params.theta_a

    dS_c = -lambda_c * S_c
    dE_c = lambda_c * S_c - theta * E_c
    dT_c = cov * theta * E_c - alpha * T_c
    dIu_c = (1 - cov) * theta * E_c
    dR_c = alpha * T_c
    dS_a = -lambda_a * S_a
    dE_a = lambda_a * S_a - theta_a * E_a
    dI_a = theta_a * E_a
    return np.array([dS_c, dE_c, dT_c, dIu_c, dR_c, dS_a, dE_a, dI_a])


def total_infected_children(y: np.ndarray) -> np.ndarray:
    """T_c + Iu_c for a single state (shape (8,)) or a trajectory (shape (n, 8))"""
    y = np.asarray(y, dtype=float)
    return y[..., 2] + y[..., 3]


class TreatmentSEIRModel:
    """
    Pulse-treatment SEIR model bound to one parameter set.

    Parameters:
    params : TreatmentParameters. Frozen, so one model can be
        shared read-only between runs.
    """

    compartments = COMPARTMENTS

    def __init__(self, params: TreatmentParameters):
        self.params = params

    @property
    def breakpoints(self) -> Tuple[float, float]:
        """Times where the coverage coefficient jumps"""
        return (float(self.params.t_start), float(self.params.t_end))

    def derivatives(self, t: float, y: np.ndarray) -> np.ndarray:
        return treatment_rhs(t, y, self.params)

    def simulate(
            self,
            t: np.ndarray,
            initial: Optional[InitialConditions] = None,
            method: str = "RK4",
            max_step: float = 0.1,
            tol: float = 1e-6
    ) -> Dict[str, np.ndarray]:
        """Run the model over the output grid t.

        Parameters:
        t: array-like. Non-decreasing output times (days), t[0] is the initial time
        initial: InitialConditions, optional. Defaults to 100 susceptible children,
            1 untreated infectious child and 20 susceptible adults
        method: str. "RK4" (fixed step) or any scipy solve_ivp method name
        max_step: float. Largest internal step (days)
        tol: float. Allowed bound violation / population drift

        Returns:
        outputs: dict. 't', one array per compartment, 'total_infected_children',
            'children' and 'adults'
        """
        initial = initial if initial is not None else InitialConditions()
        initial.validate()
        t = np.asarray(t, dtype=float)
        y0 = initial.as_array()
        N_c, N_a = initial.children_total, initial.adults_total
        upper = np.array([N_c] * len(CHILD_COMPARTMENTS) + [N_a] * len(ADULT_COMPARTMENTS))

        y = integrate(
            self.derivatives, y0, t,
            breakpoints=self.breakpoints,
            max_step=max_step,
            method=method,
            upper=upper,
            tol=tol,
        )

        children = y[:, :5].sum(axis=1)
        adults = y[:, 5:].sum(axis=1)
        drift = max(np.max(np.abs(children - N_c)), np.max(np.abs(adults - N_a)))
        if drift > tol * max(N_c, N_a, 1.0):
            raise NumericalError(f"population drifted by {drift:.3g} during integration")

        outputs = {"t": t}
        for k, name in enumerate(COMPARTMENTS):
            outputs[name] = y[:, k]
        outputs["total_infected_children"] = total_infected_children(y)
        outputs["children"] = children
        outputs["adults"] = adults
        return outputs

    @staticmethod
    def summary(outputs: Dict[str, np.ndarray]) -> Dict[str, float]:
        t, infected = outputs["t"], outputs["total_infected_children"]
        N_c = outputs["children"][0]
        peak_idx = int(np.argmax(infected))
        return {
            "peak_day": float(t[peak_idx]),
            "peak_infected_children": float(infected[peak_idx]),
            "final_recovered_children": float(outputs["R_c"][-1]),
            "final_untreated_children": float(outputs["Iu_c"][-1]),
            "final_infected_adults": float(outputs["I_a"][-1]),
            "attack_rate_children": float((N_c - outputs["S_c"][-1]) / N_c),
        }

    def __repr__(self) -> str:
        p = self.params
        return (
            f"TreatmentSEIRModel(\n"
            f"  θ={p.theta:.4f}, θa={p.theta_a:.4f} (latency rates)\n"
            f"  β_cc={p.beta_cc:.3f}, β_ac=β_ca={p.beta_ac:.3f}, β_aa={p.beta_aa:.3f}\n"
            f"  pulse=[{p.t_start}, {p.t_end:g}], cov={p.cov_active:.2f}, α={p.alpha:.2f}\n"
            f")"
        )
