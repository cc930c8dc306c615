#!/usr/bin/env python3
"""
Valley Tracer - Entry Point
===========================

Detect and trace valleys (positive-dimensional critical manifolds).

Usage:
    python -m valley_walking.run_tracer [options]

Examples:
    # Trace the unit-circle valley from (1, 0)
    python -m valley_walking.run_tracer --landscape circle --start 1 0

    # Predictor-corrector walk with a smaller step
    python -m valley_walking.run_tracer --method predictor_corrector --step-size 0.02

    # Trace every candidate point of a CSV (columns x1, x2, ...)
    python -m valley_walking.run_tracer --mode batch --landscape circle --csv candidates.csv

    # Refine raw points, then trace the degenerate ones
    python -m valley_walking.run_tracer --mode demo
"""

import argparse

import numpy as np
import pandas as pd

from valley_walking.config import ValleyWalkConfig, WalkMethod
from valley_walking.derivatives import PROVIDERS, resolve_derivatives
from valley_walking.landscapes import LANDSCAPES
from valley_walking.refinement import refine_to_critical_points
from valley_walking.tracer import (
    run_valley_analysis,
    summarize_traces,
    trace_valley,
    trace_valleys_from_critical_points,
)


def build_config(args) -> ValleyWalkConfig:
    """Map command-line flags onto a ValleyWalkConfig."""
    return ValleyWalkConfig(
        gradient_tolerance=args.gradient_tolerance,
        eigenvalue_threshold=args.eigenvalue_threshold,
        initial_step_size=args.step_size,
        max_steps=args.max_steps,
        max_projection_iter=args.max_projection_iter,
        projection_tol=args.projection_tol,
        method=args.method,
        n_dims=LANDSCAPES[args.landscape][1]
    )


def print_config(config: ValleyWalkConfig, landscape: str, derivatives):
    print(f"Landscape: {landscape}")
    print(f"Method: {config.method.value}")
    print(f"Derivatives: {derivatives.name}")
    print(f"Step size: {config.initial_step_size}")
    print(f"Max steps per direction: {config.max_steps}")
    print(f"Eigenvalue threshold: {config.eigenvalue_threshold:.1e}")
    print(f"Gradient tolerance: {config.gradient_tolerance:.1e}")
    print()


def print_summary(results):
    print("=" * 70)
    print("RESULTS SUMMARY")
    print("=" * 70)
    print(f"Valleys traced: {sum(r.converged for r in results)}/{len(results)}")
    stalled = sum(r.converged and r.n_points == 0 for r in results)
    if stalled:
        print(f"Valleys with no walkable step: {stalled}")
    print()

    if results:
        with pd.option_context("display.max_columns", None, "display.width", 120):
            print(summarize_traces(results).to_string(index=False))
        print()


def run_single_trace(args, config, derivatives):
    """Trace one start point on a built-in landscape."""
    f, n_dims, default_start = LANDSCAPES[args.landscape]
    start = np.array(args.start if args.start is not None else default_start, dtype=float)

    print("=" * 70)
    print("VALLEY TRACER")
    print("=" * 70)
    print_config(config, args.landscape, derivatives)
    print(f"Start point: {start}")
    print()

    result = trace_valley(f, start, config, derivatives)
    print(f"  {result}")
    if result.converged and result.n_points == 0:
        print("  Start point is on a valley, but no step could be projected back onto it")
        print("  (try a smaller --step-size or a larger --max-projection-iter)")
    elif result.converged:
        curve = result.curve
        radii = np.linalg.norm(curve[:, :2], axis=1)
        print(f"  Curve spans {len(curve)} points, |x[:2]| in [{radii.min():.6f}, {radii.max():.6f}]")
    else:
        print("  Start point is not on a valley")
    print()

    print_summary([result])
    return [result]


def run_batch_trace(args, config, derivatives):
    """Trace every candidate point of a table."""
    f, n_dims, default_start = LANDSCAPES[args.landscape]

    if args.csv:
        df = pd.read_csv(args.csv)
        source = args.csv
    else:
        angles = np.linspace(0.0, np.pi, 4)
        df = pd.DataFrame({
            "x1": np.concatenate([np.cos(angles), [0.5, 0.0]]),
            "x2": np.concatenate([np.sin(angles), [0.0, 0.0]]),
        })
        for k in range(3, n_dims + 1):
            df[f"x{k}"] = 0.0
        source = "built-in candidates"

    print("=" * 70)
    print("BATCH VALLEY TRACER")
    print("=" * 70)
    print_config(config, args.landscape, derivatives)
    print(f"Candidates: {len(df)} rows from {source}")
    print()

    results = trace_valleys_from_critical_points(f, df, config, derivatives, verbose=True)
    print()

    print_summary(results)
    return results


def run_demo(args, config, derivatives):
    """Refine perturbed points, then trace valleys from the degenerate ones."""
    f, n_dims, default_start = LANDSCAPES[args.landscape]
    rng = np.random.default_rng(args.seed)

    print("=" * 70)
    print("VALLEY TRACER - REFINE AND TRACE DEMO")
    print("=" * 70)
    print_config(config, args.landscape, derivatives)

    raw_points = [np.asarray(default_start) + 0.05 * rng.standard_normal(n_dims)
                  for _ in range(args.points)]

    print(f"Refining {len(raw_points)} raw points...")
    refined = refine_to_critical_points(
        f, raw_points,
        derivatives=derivatives,
        hessian_tol=config.eigenvalue_threshold,
        verbose=True
    )
    print()

    results = run_valley_analysis(f, refined, config, derivatives, verbose=True)
    print()

    print_summary(results)
    return results


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Detect and trace valleys of built-in landscapes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Single trace
  python -m valley_walking.run_tracer --landscape circle --start 1 0

  # Batch trace from CSV
  python -m valley_walking.run_tracer --mode batch --csv candidates.csv

  # Refinement + valley analysis demo
  python -m valley_walking.run_tracer --mode demo --points 8
        """
    )

    # Mode selection
    parser.add_argument(
        "--mode",
        type=str,
        default="trace",
        choices=["trace", "batch", "demo"],
        help="Mode: 'trace' one point, 'batch' a table of points, 'demo' refine then trace"
    )

    # Landscape
    parser.add_argument(
        "--landscape",
        type=str,
        default="circle",
        choices=sorted(LANDSCAPES),
        help="Built-in objective (default: circle)"
    )
    parser.add_argument(
        "--start",
        type=float,
        nargs="+",
        default=None,
        help="Start point for trace mode (default: a point on the landscape's valley)"
    )
    parser.add_argument(
        "--csv",
        type=str,
        default=None,
        help="CSV of candidate points with columns x1, x2, ... (batch mode)"
    )

    # Walking parameters
    parser.add_argument(
        "--method",
        type=str,
        default=WalkMethod.NEWTON_PROJECTION.value,
        choices=[m.value for m in WalkMethod],
        help="Walking method (default: newton_projection)"
    )
    parser.add_argument(
        "--step-size",
        type=float,
        default=0.05,
        help="Predictor step length (default: 0.05)"
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=50,
        help="Maximum points per walk direction (default: 50)"
    )
    parser.add_argument(
        "--gradient-tolerance",
        type=float,
        default=1e-4,
        help="Max ||∇f|| for a critical point (default: 1e-4)"
    )
    parser.add_argument(
        "--eigenvalue-threshold",
        type=float,
        default=1e-2,
        help="|λ| below this is a valley direction (default: 1e-2)"
    )
    parser.add_argument(
        "--max-projection-iter",
        type=int,
        default=20,
        help="Newton iterations per correction (default: 20)"
    )
    parser.add_argument(
        "--projection-tol",
        type=float,
        default=1e-10,
        help="Projection tolerance on ||∇f|| (default: 1e-10)"
    )
    parser.add_argument(
        "--derivatives",
        type=str,
        default="finite_difference",
        choices=sorted(PROVIDERS),
        help="Differentiation provider (default: finite_difference)"
    )

    # Demo parameters
    parser.add_argument(
        "--points",
        type=int,
        default=6,
        help="Number of raw points in demo mode (default: 6)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)"
    )

    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    derivatives = resolve_derivatives(args.derivatives)

    n_dims = LANDSCAPES[args.landscape][1]
    if args.start is not None and len(args.start) != n_dims:
        parser.error(f"--start needs {n_dims} coordinates for landscape '{args.landscape}'")

    # Run appropriate mode
    if args.mode == "trace":
        return run_single_trace(args, config, derivatives)
    elif args.mode == "batch":
        try:
            return run_batch_trace(args, config, derivatives)
        except ValueError as e:
            parser.error(str(e))
    elif args.mode == "demo":
        return run_demo(args, config, derivatives)


if __name__ == "__main__":
    main()
