"""
===========================================================
cli.py
Author: Veronica Scerra
Last Updated: 2026-10-15
===========================================================
Command line entry point for strategy sweeps.

    epitreat-sweep --config configs/default_sweep.yaml --out results.csv
    epitreat-sweep --t-start 1 50 1 --coverage 0.1 1.0 0.1 --workers 8

Flags override the config file. The result table is written
as CSV; the exit status is 1 when any grid point failed.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import argparse
import os
import time
from typing import Optional, Sequence

from .config import SweepConfig, load_config
from .experiments import SweepResult, grid_sweep


def run_sweep(config: SweepConfig) -> SweepResult:
    """Run the sweep a config describes"""
    return grid_sweep(
        config.t_starts(),
        config.coverages(),
        base=config.base_parameters(),
        t=config.output_times(),
        initial=config.initial_conditions(),
        method=config.solver.method,
        max_step=config.solver.max_step,
        workers=config.sweep.workers,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pulse-treatment strategy sweep")
    parser.add_argument("--config", type=str, default=None,
                        help="YAML sweep config (default: built-in defaults)")
    parser.add_argument("--t-start", type=float, nargs=3, metavar=("START", "STOP", "STEP"),
                        help="Treatment start days, stop inclusive")
    parser.add_argument("--coverage", type=float, nargs=3, metavar=("START", "STOP", "STEP"),
                        help="Coverage fractions, stop inclusive")
    parser.add_argument("--workers", type=int, default=None,
                        help="Number of parallel workers (default: all cores)")
    parser.add_argument("--method", type=str, default=None,
                        help="RK4 or a scipy solve_ivp method")
    parser.add_argument("--max-step", type=float, default=None,
                        help="Largest integration step in days")
    parser.add_argument("--out", type=str, default="results/sweep.csv",
                        help="Output CSV path")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {"sweep": {}, "solver": {}}
    if args.t_start is not None:
        overrides["sweep"]["t_start"] = list(args.t_start)
    if args.coverage is not None:
        overrides["sweep"]["cov_active"] = list(args.coverage)
    if args.workers is not None:
        overrides["sweep"]["workers"] = args.workers
    if args.method is not None:
        overrides["solver"]["method"] = args.method
    if args.max_step is not None:
        overrides["solver"]["max_step"] = args.max_step
    config = load_config(args.config, overrides=overrides)

    n_runs = len(config.t_starts()) * len(config.coverages())
    print(f"Running {n_runs} simulations ({config.solver.method}, max_step={config.solver.max_step})...")
    t0 = time.time()
    result = run_sweep(config)
    print(f"Completed {n_runs} runs in {time.time() - t0:.1f}s")

    outdir = os.path.dirname(args.out)
    if outdir:
        os.makedirs(outdir, exist_ok=True)
    result.table.to_csv(args.out, index=False)
    print(f"Results saved to {args.out}\n")
    result.print_summary()
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
