"""
===========================================================
integrate.py
Author: Veronica Scerra
Last Updated: 2026-10-14
===========================================================

Description:
    ODE integration for compartmental models whose rates jump
    at known times (treatment pulses, policy switches).

API:
    rk4_step(fun, t, y, h)               -> y after one RK4 step
    integrate(fun, y0, t, breakpoints=(), max_step=0.1,
              method="RK4", upper=None)  -> states, shape (len(t), len(y0))

Notes:
    - fun has the solve_ivp signature fun(t, y) -> dy/dt.
    - The time span is cut at every breakpoint and each piece is
      integrated on its own, with fun evaluated at times clamped
      inside the piece (one-sided limits). No step ever straddles
      a jump, whatever the step size.
    - "RK4" is fixed step: each gap between consecutive output
      times/breakpoints is split into ceil(gap / max_step) equal
      steps, so output times are hit exactly.
    - RK45, RK23, DOP853, Radau, BDF and LSODA are handed to
      scipy's solve_ivp; any other name is a ValueError.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import math
import numpy as np
from scipy.integrate import solve_ivp
from typing import Callable, Optional, Sequence

from .exceptions import NumericalError

RHS = Callable[[float, np.ndarray], np.ndarray]

# solve_ivp's built-in methods
SCIPY_METHODS = ("RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA")
METHODS = ("RK4",) + SCIPY_METHODS


def check_method(method: str) -> str:
    """Return method, or raise ValueError if it is not RK4 or a solve_ivp method"""
    if not isinstance(method, str) or (method.upper() != "RK4" and method not in SCIPY_METHODS):
        raise ValueError(f"unknown integration method {method!r}, expected one of {list(METHODS)}")
    return method


def rk4_step(fun: RHS, t: float, y: np.ndarray, h: float) -> np.ndarray:
    """single RK4 step"""
    k1 = fun(t, y)
    k2 = fun(t + 0.5*h, y + 0.5*h*k1)
    k3 = fun(t + 0.5*h, y + 0.5*h*k2)
    k4 = fun(t + h, y + h*k3)
    return y + (h/6.0)*(k1 + 2*k2 + 2*k3 + k4)


def _one_sided(fun: RHS, a: float, b: float) -> RHS:
    """fun with time clamped strictly inside (a, b)"""
    lo, hi = np.nextafter(a, b), np.nextafter(b, a)

    def clamped(t, y):
        return fun(min(max(t, lo), hi), y)
    return clamped


def _edges(t0: float, t1: float, breakpoints: Sequence[float]) -> np.ndarray:
    """Piece boundaries: t0, the breakpoints strictly inside (t0, t1), t1"""
    inner = sorted({float(b) for b in breakpoints if t0 < b < t1})
    return np.array([t0] + inner + [t1], dtype=float)


def _integrate_rk4(fun, y0, t, edges, max_step):
    nodes = np.unique(np.concatenate([t, edges]))
    states = np.empty((len(nodes), len(y0)))
    states[0] = y = y0
    for i, (a, b) in enumerate(zip(nodes[:-1], nodes[1:])):
        f = _one_sided(fun, a, b)
        n = max(1, math.ceil((b - a) / max_step))
        h = (b - a) / n
        for k in range(n):
            y = rk4_step(f, a + k*h, y, h)
        states[i + 1] = y
    return states[np.searchsorted(nodes, t)]


def _integrate_scipy(fun, y0, t, edges, max_step, method, rtol, atol):
    out = np.empty((len(t), len(y0)))
    y = y0
    for a, b in zip(edges[:-1], edges[1:]):
        mask = (t >= a) & (t <= b)
        t_eval = np.unique(np.concatenate([t[mask], [b]]))
        solution = solve_ivp(
            fun=_one_sided(fun, a, b),
            t_span=(a, b),
            y0=y,
            method=method,
            t_eval=t_eval,
            max_step=max_step,
            rtol=rtol,
            atol=atol,
        )
        if not solution.success:
            raise NumericalError(f"ODE solver failed on [{a:g}, {b:g}]: {solution.message}")
        states = solution.y.T
        out[mask] = states[np.searchsorted(t_eval, t[mask])]
        y = states[-1]
    return out


def integrate(
        fun: RHS,
        y0,
        t,
        breakpoints: Sequence[float] = (),
        max_step: float = 0.1,
        method: str = "RK4",
        upper: Optional[np.ndarray] = None,
        tol: float = 1e-6,
        rtol: float = 1e-8,
        atol: float = 1e-10
) -> np.ndarray:
    """Integrate dy/dt = fun(t, y) and sample the state at the times t

    Parameters:
    fun: callable. Right-hand side fun(t, y)
    y0: array-like. State at t[0]
    t: array-like. Non-decreasing output times
    breakpoints: sequence of float. Times where fun jumps
    max_step: float. Largest internal step
    method: str. "RK4" or a solve_ivp method (RK45, RK23, DOP853, Radau, BDF, LSODA)
    upper: array-like, optional. Per-component upper bound on the state
    tol: float. Allowed excursion below 0 / above upper
    rtol, atol: float. solve_ivp tolerances (ignored by RK4)

    Returns:
    y: ndarray, shape (len(t), len(y0))
    """
    y0 = np.asarray(y0, dtype=float)
    t = np.asarray(t, dtype=float)
    if t.ndim != 1 or len(t) == 0:
        raise ValueError("t must be a non-empty 1D array of output times")
    if not np.all(np.isfinite(t)) or np.any(np.diff(t) < 0):
        raise ValueError("output times must be finite and non-decreasing")
    if max_step <= 0:
        raise ValueError(f"max_step must be positive, got {max_step}")
    check_method(method)

    if t[-1] == t[0]:
        y = np.tile(y0, (len(t), 1))
    else:
        edges = _edges(t[0], t[-1], breakpoints)
        if method.upper() == "RK4":
            y = _integrate_rk4(fun, y0, t, edges, max_step)
        else:
            y = _integrate_scipy(fun, y0, t, edges, max_step, method, rtol, atol)

    if not np.all(np.isfinite(y)):
        raise NumericalError("integration produced non-finite values")
    if np.any(y < -tol):
        k, j = np.unravel_index(np.argmin(y), y.shape)
        raise NumericalError(f"component {j} fell to {y[k, j]:.3g} at t={t[k]:g}")
    if upper is not None:
        excess = y - np.asarray(upper, dtype=float)
        if np.any(excess > tol):
            k, j = np.unravel_index(np.argmax(excess), y.shape)
            raise NumericalError(f"component {j} rose to {y[k, j]:.6g} at t={t[k]:g}, above its bound")
    return y
