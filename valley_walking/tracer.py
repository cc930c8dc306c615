"""
Valley Tracing
==============

Drives a bidirectional walk from a start point and merges both half-paths
into a single :class:`ValleyTraceResult`:

    start ──detect──> tangent basis t0
          ──walk(+t0)──> path_positive
          ──walk(-t0)──> path_negative

Batch drivers trace every row of a candidate table, or every degenerate
point produced by Newton refinement. Each trace is independent of the others.
"""

import warnings
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from valley_walking.candidates import CandidateTable
from valley_walking.config import ValleyWalkConfig, WalkMethod
from valley_walking.derivatives import resolve_derivatives
from valley_walking.detector import detect_valley
from valley_walking.points import as_point
from valley_walking.stability import CriticalPointType
from valley_walking.walker import walk


def _frozen(points: Iterable[np.ndarray]) -> Tuple[np.ndarray, ...]:
    frozen = []
    for p in points:
        p = np.array(p, dtype=np.float64)
        p.setflags(write=False)
        frozen.append(p)
    return tuple(frozen)


@dataclass(frozen=True, eq=False)
class ValleyTraceResult:
    """
    Result of tracing a valley from one start point.

    Attributes:
        start_point: Point the trace started from
        path_positive: Points walked along +t0, ordered outward
        path_negative: Points walked along -t0, ordered outward
        arc_length: Summed segment lengths of both paths (start is the junction)
        n_points: len(path_positive) + len(path_negative); 1 when not a valley
        valley_dimension: Number of near-zero Hessian eigenvalues at the start
        method: Walking strategy used
        converged: True iff the start point was confirmed as a valley point
    """
    start_point: np.ndarray
    path_positive: Tuple[np.ndarray, ...]
    path_negative: Tuple[np.ndarray, ...]
    arc_length: float
    n_points: int
    valley_dimension: int
    method: WalkMethod
    converged: bool

    def __post_init__(self):
        start = np.array(self.start_point, dtype=np.float64)
        start.setflags(write=False)
        object.__setattr__(self, "start_point", start)
        object.__setattr__(self, "path_positive", _frozen(self.path_positive))
        object.__setattr__(self, "path_negative", _frozen(self.path_negative))
        object.__setattr__(self, "method", WalkMethod.parse(self.method))

    @property
    def curve(self) -> np.ndarray:
        """Whole trace in walking order: reversed negative path, start, positive path."""
        points = list(reversed(self.path_negative)) + [self.start_point] + list(self.path_positive)
        return np.vstack(points)

    def summary(self) -> Dict:
        """Flat record for reporting tables."""
        record = {f"x{i + 1}": float(v) for i, v in enumerate(self.start_point)}
        record.update({
            "converged": self.converged,
            "valley_dimension": self.valley_dimension,
            "method": self.method.value,
            "n_positive": len(self.path_positive),
            "n_negative": len(self.path_negative),
            "n_points": self.n_points,
            "arc_length": self.arc_length,
        })
        return record

    def __str__(self):
        return (f"ValleyTraceResult(converged={self.converged}, "
                f"dim={self.valley_dimension}, "
                f"points={self.n_points}, "
                f"arc_length={self.arc_length:.4f}, "
                f"method={self.method.value})")


def compute_arc_length(start_point, path_positive: Sequence, path_negative: Sequence) -> float:
    """Sum of Euclidean segment lengths of both half-paths, each joined at the start."""
    start = np.asarray(start_point, dtype=np.float64)
    total = 0.0
    for path in (path_positive, path_negative):
        if len(path) == 0:
            continue
        points = np.vstack([start] + [np.asarray(p, dtype=np.float64) for p in path])
        total += float(np.sum(np.linalg.norm(np.diff(points, axis=0), axis=1)))
    return total


def trace_valley(f, start_point, config: ValleyWalkConfig = None, derivatives=None) -> ValleyTraceResult:
    """
    Trace a valley in both directions from a starting point.

    Args:
        f: Objective function
        start_point: Candidate valley point (n,)
        config: Detection and walking parameters
        derivatives: Derivative provider or provider name

    Returns:
        ValleyTraceResult. If the start is not a valley point the result has
        converged=False, empty paths, arc_length=0 and n_points=1.
    """
    config = config if config is not None else ValleyWalkConfig()
    derivatives = resolve_derivatives(derivatives)
    start = as_point(start_point, n_dims=config.n_dims, name="start_point")

    is_valley, tangent_basis, dimension = detect_valley(f, start, config, derivatives)

    if not is_valley:
        return ValleyTraceResult(
            start_point=start,
            path_positive=(),
            path_negative=(),
            arc_length=0.0,
            n_points=1,
            valley_dimension=0,
            method=config.method,
            converged=False
        )

    if dimension > 1:
        warnings.warn(
            f"Valley at {start} has dimension {dimension}; "
            f"tracing a single curve along the softest direction",
            stacklevel=2
        )

    t0 = tangent_basis[:, 0]
    path_pos = walk(f, start, t0, config, derivatives)
    path_neg = walk(f, start, -t0, config, derivatives)

    return ValleyTraceResult(
        start_point=start,
        path_positive=path_pos,
        path_negative=path_neg,
        arc_length=compute_arc_length(start, path_pos, path_neg),
        n_points=len(path_pos) + len(path_neg),
        valley_dimension=dimension,
        method=config.method,
        converged=True
    )


def trace_valleys_from_critical_points(
    f,
    points_table: Union[pd.DataFrame, CandidateTable],
    config: ValleyWalkConfig = None,
    derivatives=None,
    coordinate_columns: Sequence[str] = None,
    verbose: bool = False
) -> List[ValleyTraceResult]:
    """
    Trace valleys from every candidate point in a table.

    Args:
        f: Objective function
        points_table: DataFrame with x1, x2, ... columns, or a CandidateTable
        config: Detection and walking parameters
        derivatives: Derivative provider or provider name
        coordinate_columns: Explicit coordinate columns for a DataFrame
        verbose: Print progress

    Returns:
        Traces of the rows that are valley points; other rows are dropped.

    Raises:
        MissingCoordinatesError: the table has no coordinate columns
    """
    config = config if config is not None else ValleyWalkConfig()
    derivatives = resolve_derivatives(derivatives)

    if isinstance(points_table, CandidateTable):
        table = points_table
    else:
        table = CandidateTable.from_dataframe(points_table, coordinate_columns)

    results = []
    n_rows = len(table)

    for i, candidate in enumerate(table):
        # Rows with gaps (nan/inf) cannot be valley points
        if not np.all(np.isfinite(candidate.coordinates)):
            if verbose:
                print(f"  [{i + 1}/{n_rows}] row {candidate.index!r}: non-finite coordinates, skipped")
            continue

        result = trace_valley(f, candidate.coordinates, config, derivatives)

        if verbose:
            status = str(result) if result.converged else "not a valley"
            print(f"  [{i + 1}/{n_rows}] row {candidate.index!r}: {status}")

        if result.converged:
            results.append(result)

    if verbose:
        print(f"Traced {len(results)} valley(s) from {n_rows} candidate point(s)")

    return results


def run_valley_analysis(
    f,
    refinement_results: Iterable,
    config: ValleyWalkConfig = None,
    derivatives=None,
    verbose: bool = False
) -> List[ValleyTraceResult]:
    """
    Trace valleys from the degenerate points of a Newton refinement run.

    Only results classified as degenerate are traced, one trace each, in input
    order. Minima, maxima and saddles are skipped.

    Args:
        f: Objective function
        refinement_results: CriticalPointRefinementResult objects
        config: Detection and walking parameters
        derivatives: Derivative provider or provider name
        verbose: Print progress

    Returns:
        List of ValleyTraceResult, one per degenerate refinement result
    """
    config = config if config is not None else ValleyWalkConfig()
    derivatives = resolve_derivatives(derivatives)

    degenerate = [
        r for r in refinement_results
        if CriticalPointType.parse(r.cp_type) == CriticalPointType.DEGENERATE
    ]

    if verbose:
        print(f"Valley analysis: {len(degenerate)} degenerate critical point(s)")

    results = []
    for r in degenerate:
        result = trace_valley(f, r.point, config, derivatives)
        if verbose:
            print(f"  {np.round(np.asarray(r.point, dtype=float), 6)}: {result}")
        results.append(result)

    return results


def summarize_traces(results: Iterable[ValleyTraceResult]) -> pd.DataFrame:
    """One summary row per trace, for downstream reporting."""
    return pd.DataFrame([r.summary() for r in results])
