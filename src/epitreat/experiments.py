"""
===========================================================
experiments.py
Author: Veronica Scerra
Last Updated: 2026-10-15
===========================================================

Description:
    Intervention-strategy sweeps for the pulse-treatment SEIR
    model: run the model over the grid (t_start x cov_active),
    keep the peak number of infected children per strategy and
    return a tidy DataFrame.

Example Usage:
    from epitreat.experiments import grid_sweep, inclusive_range
    result = grid_sweep(inclusive_range(1, 50, 1),
                        inclusive_range(0.1, 1.0, 0.1))
    result.print_summary()
    df = result.table

Notes:
    - Grid points are independent; they are spread over a
      multiprocessing pool and put back in grid order, so the
      table never depends on completion order.
    - A run that raises DomainError/NumericalError becomes an
      error row (NaN statistics, message in 'error'); the other
      rows are unaffected and nothing is retried. Successful rows
      hold a missing value in 'error' (None or NaN depending on
      the pandas string dtype), so test it with isna()/notna().
    - Rows are in traversal order: t_start outer, cov_active inner.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import math
import os
import warnings
import numpy as np
import pandas as pd
from dataclasses import dataclass
from multiprocessing import Pool
from typing import Dict, List, Optional, Sequence, Tuple

from .exceptions import DomainError, NumericalError
from .integrate import check_method
from .model import TreatmentSEIRModel
from .parameters import InitialConditions, TreatmentParameters, default_parameters, medicine_type

DEFAULT_DAYS = np.arange(0, 51, 1.0)    # days 0..50

COLUMNS = ["t_start", "cov_active", "peak_infected_children", "peak_day", "medicine_type", "error"]


def inclusive_range(start: float, stop: float, step: float) -> np.ndarray:
    """start, start + step, ... up to and including stop (within rounding)"""
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    if stop < start:
        raise ValueError(f"stop ({stop}) is before start ({start})")
    n = int(math.floor((stop - start) / step + 1e-9)) + 1
    # rounding keeps values like 0.5 exact for the coverage threshold
    return np.round(start + step * np.arange(n), 12)


def _as_day(value):
    value = float(value)
    return int(value) if value.is_integer() else value


def strategy_grid(t_starts: Sequence[float], coverages: Sequence[float]) -> List[Tuple]:
    """Cartesian product (t_start, cov_active), t_start outer"""
    return [(_as_day(ts), float(cov)) for ts in t_starts for cov in coverages]


def run_single(
        params: TreatmentParameters,
        t: Optional[np.ndarray] = None,
        initial: Optional[InitialConditions] = None,
        method: str = "RK4",
        max_step: float = 0.1
) -> Tuple[float, float]:
    """Run one simulation and return (peak_infected_children, peak_day)"""
    t = DEFAULT_DAYS if t is None else t
    model = TreatmentSEIRModel(params)
    out = model.simulate(t, initial=initial, method=method, max_step=max_step)
    stats = model.summary(out)
    return stats["peak_infected_children"], stats["peak_day"]


def peak_infected_children(params: TreatmentParameters, **kwargs) -> float:
    """Maximum of T_c + Iu_c over the output grid"""
    return run_single(params, **kwargs)[0]


def _run_grid_point(task) -> Tuple[int, Dict]:
    """Worker: one grid point -> (index, row). Never raises for model errors."""
    index, base, t_start, cov_active, t, initial, method, max_step = task
    row = {
        "t_start": t_start,
        "cov_active": cov_active,
        "medicine_type": medicine_type(cov_active),
    }
    try:
        params = base.with_strategy(t_start, cov_active)
        peak, day = run_single(params, t=t, initial=initial, method=method, max_step=max_step)
        row.update(peak_infected_children=peak, peak_day=day, error=None)
    except (DomainError, NumericalError) as e:
        row.update(peak_infected_children=np.nan, peak_day=np.nan,
                   error=f"{type(e).__name__}: {str(e)[:200]}")
    return index, row


@dataclass
class SweepResult:
    """Result table of a sweep plus failure bookkeeping"""
    table: pd.DataFrame

    @property
    def failures(self) -> pd.DataFrame:
        return self.table[self.table["error"].notna()]

    @property
    def n_failed(self) -> int:
        return int(self.table["error"].notna().sum())

    @property
    def ok(self) -> bool:
        return self.n_failed == 0

    def summary(self) -> Dict:
        failed = self.failures
        return {
            "n_runs": int(len(self.table)),
            "n_failed": self.n_failed,
            "failed_points": list(zip(failed["t_start"].tolist(), failed["cov_active"].tolist())),
        }

    def print_summary(self):
        """Print end-of-sweep report."""
        df = self.table
        print("STRATEGY SWEEP RESULTS:")
        print(f"Grid points: {len(df)}")
        print(f"Failed: {self.n_failed}")
        done = df[df["error"].isna()]
        if len(done):
            best = done.loc[done["peak_infected_children"].idxmin()]
            worst = done.loc[done["peak_infected_children"].idxmax()]
            print(f"\n--- PEAK INFECTED CHILDREN ---")
            print(f"Lowest:  {best['peak_infected_children']:.2f} "
                  f"(t_start={best['t_start']}, cov={best['cov_active']:.2f}, {best['medicine_type']})")
            print(f"Highest: {worst['peak_infected_children']:.2f} "
                  f"(t_start={worst['t_start']}, cov={worst['cov_active']:.2f}, {worst['medicine_type']})")
        if self.n_failed:
            print(f"\n--- FAILED GRID POINTS ---")
            for _, row in self.failures.iterrows():
                print(f"  t_start={row['t_start']}, cov={row['cov_active']}: {row['error']}")


def grid_sweep(
        t_starts: Sequence[float],
        coverages: Sequence[float],
        base: Optional[TreatmentParameters] = None,
        t: Optional[np.ndarray] = None,
        initial: Optional[InitialConditions] = None,
        method: str = "RK4",
        max_step: float = 0.1,
        workers: Optional[int] = None
) -> SweepResult:
    """
    Evaluate the model for every (t_start, cov_active) combination.
    All other parameters come from base (defaults if None), which is
    shared read-only; each run gets its own copy via with_strategy().

    workers: pool size, None for all cores, 1 to run in-process.
    An unknown method raises ValueError before any run starts.
    """
    check_method(method)
    base = base if base is not None else default_parameters()
    t = DEFAULT_DAYS if t is None else np.asarray(t, dtype=float)
    grid = strategy_grid(t_starts, coverages)
    tasks = [(i, base, ts, cov, t, initial, method, max_step) for i, (ts, cov) in enumerate(grid)]

    if workers is None:
        workers = os.cpu_count() or 1
    workers = min(workers, len(tasks))

    if workers <= 1:
        results = [_run_grid_point(task) for task in tasks]
    else:
        chunksize = max(1, len(tasks) // (workers * 4))
        with Pool(processes=workers) as pool:
            results = list(pool.imap_unordered(_run_grid_point, tasks, chunksize=chunksize))

    # completion order is arbitrary; restore grid order
    results.sort(key=lambda r: r[0])
    df = pd.DataFrame.from_records([row for _, row in results], columns=COLUMNS)
    result = SweepResult(df)

    if result.n_failed:
        warnings.warn(
            f"{result.n_failed}/{len(df)} grid points failed: "
            f"{result.summary()['failed_points']}",
            stacklevel=2,
        )
    return result


def pivot_for_plot(df: pd.DataFrame, x: str, y: str, value: str):
    """Pivot a DataFrame to 2D arrays for plotting (heatmaps/contour)
    Return X_grid, Y_grid, Z_values
    """
    # ensure you're getting unique combos
    sub = df[[x, y, value]].drop_duplicates(subset=[x, y])
    grid = sub.pivot(index=y, columns=x, values=value).sort_index().sort_index(axis=1)
    X, Y = np.meshgrid(grid.columns.to_numpy(), grid.index.to_numpy())
    return X, Y, grid.to_numpy(dtype=float)   # rows: y, cols: x
