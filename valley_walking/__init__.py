"""
Valley Walking
==============

Tools for detecting and tracing *valleys* (positive-dimensional critical
manifolds) of an objective function, as found when post-processing the
critical points of a polynomial-approximation optimizer.

A valley is a connected set of points that all satisfy ∇f = 0, as opposed
to an isolated minimum, maximum or saddle. At a valley point the Hessian has
near-zero eigenvalues whose eigenvectors span the valley's tangent space.

This module provides:
1. **Detection**: Decide whether a critical point lies on a valley
2. **Projection**: Newton correction back onto {∇f = 0}
3. **Walking**: Predictor-corrector continuation along the valley
4. **Tracing**: Bidirectional traces, batch tracing over candidate tables
5. **Refinement**: Newton refinement and min/max/saddle/degenerate classification

Example Usage
-------------

    from valley_walking import ValleyWalkConfig, trace_valley

    f = lambda x: (x[0]**2 + x[1]**2 - 1)**2   # unit-circle valley

    config = ValleyWalkConfig(eigenvalue_threshold=1e-2, max_steps=50)
    result = trace_valley(f, [1.0, 0.0], config)
    print(result)


Refine raw points, then trace from the degenerate ones:

    from valley_walking import refine_to_critical_points, run_valley_analysis

    refined = refine_to_critical_points(f, raw_points)
    traces = run_valley_analysis(f, refined, config)
"""

# =============================================================================
# Configuration and Errors
# =============================================================================

from valley_walking.config import ValleyWalkConfig, WalkMethod
from valley_walking.exceptions import (
    ValleyWalkingError,
    MissingCoordinatesError,
    DimensionMismatchError,
    UnknownWalkMethodError,
)

# =============================================================================
# Derivatives
# =============================================================================

from valley_walking.derivatives import (
    DerivativeProvider,
    FiniteDifferenceDerivatives,
    AutogradDerivatives,
    resolve_derivatives,
)

# =============================================================================
# Hessian Analysis
# =============================================================================

from valley_walking.stability import (
    CriticalPointType,
    HessianAnalysis,
    analyze_hessian,
    classify_eigenvalues,
)

# =============================================================================
# Valley Core
# =============================================================================

from valley_walking.detector import ValleyDetection, detect_valley
from valley_walking.projection import (
    ArclengthConstraint,
    ProjectionResult,
    project_to_valley,
)
from valley_walking.tangent import get_valley_tangent
from valley_walking.walker import (
    WALKERS,
    walk,
    walk_with_tangents,
    walk_newton_projection,
    walk_predictor_corrector,
)
from valley_walking.tracer import (
    ValleyTraceResult,
    compute_arc_length,
    trace_valley,
    trace_valleys_from_critical_points,
    run_valley_analysis,
    summarize_traces,
)

# =============================================================================
# Inputs
# =============================================================================

from valley_walking.candidates import (
    CandidatePoint,
    CandidateTable,
    find_coordinate_columns,
)
from valley_walking.refinement import (
    CriticalPointRefinementResult,
    refine_to_critical_point,
    refine_to_critical_points,
)


__version__ = "1.0.0"

__all__ = [
    # Configuration
    'ValleyWalkConfig',
    'WalkMethod',

    # Errors
    'ValleyWalkingError',
    'MissingCoordinatesError',
    'DimensionMismatchError',
    'UnknownWalkMethodError',

    # Derivatives
    'DerivativeProvider',
    'FiniteDifferenceDerivatives',
    'AutogradDerivatives',
    'resolve_derivatives',

    # Hessian analysis
    'CriticalPointType',
    'HessianAnalysis',
    'analyze_hessian',
    'classify_eigenvalues',

    # Detection / projection / tangents
    'ValleyDetection',
    'detect_valley',
    'ArclengthConstraint',
    'ProjectionResult',
    'project_to_valley',
    'get_valley_tangent',

    # Walking
    'WALKERS',
    'walk',
    'walk_with_tangents',
    'walk_newton_projection',
    'walk_predictor_corrector',

    # Tracing
    'ValleyTraceResult',
    'compute_arc_length',
    'trace_valley',
    'trace_valleys_from_critical_points',
    'run_valley_analysis',
    'summarize_traces',

    # Inputs
    'CandidatePoint',
    'CandidateTable',
    'find_coordinate_columns',
    'CriticalPointRefinementResult',
    'refine_to_critical_point',
    'refine_to_critical_points',
]
