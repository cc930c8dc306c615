"""
Newton-Based Critical Point Refinement
======================================

Refines raw candidate critical points (e.g. from a polynomial approximation)
into true critical points of the objective by solving ∇f(x) = 0 with damped
Newton iteration on the gradient:

    x_{k+1} = x_k - α H(x_k)⁺ ∇f(x_k)

Unlike a minimizer, this converges to critical points of every type. Each
refined point is classified from its Hessian eigenvalues as min, max,
saddle or degenerate; the degenerate ones are the candidates for valley
tracing.

Safeguards:
1. Regularized eigen pseudo-inverse (directions with tiny |λ| are skipped)
2. Step halving while the step increases ||∇f||, down to ``min_damping``
3. Optional box constraints, applied by clamping every iterate
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from valley_walking.derivatives import resolve_derivatives
from valley_walking.exceptions import DimensionMismatchError
from valley_walking.points import as_point
from valley_walking.stability import CriticalPointType, HessianAnalysis, hessian_analysis_at


@dataclass(frozen=True, eq=False)
class CriticalPointRefinementResult:
    """
    Result of refining one point to a critical point.

    Attributes:
        point: Refined critical point
        gradient_norm: ||∇f(point)|| at termination
        objective_value: f(point)
        converged: Whether ||∇f|| dropped below tolerance
        iterations: Newton iterations performed
        cp_type: Classification from Hessian eigenvalues
        eigenvalues: Hessian eigenvalues at the refined point (ascending)
        initial_gradient_norm: ||∇f|| at the starting point
    """
    point: np.ndarray
    gradient_norm: float
    objective_value: float
    converged: bool
    iterations: int
    cp_type: CriticalPointType
    eigenvalues: np.ndarray
    initial_gradient_norm: float

    def __post_init__(self):
        object.__setattr__(self, "cp_type", CriticalPointType.parse(self.cp_type))
        object.__setattr__(self, "point", np.asarray(self.point, dtype=np.float64))
        object.__setattr__(self, "eigenvalues", np.asarray(self.eigenvalues, dtype=np.float64))

    @property
    def is_degenerate(self) -> bool:
        return self.cp_type == CriticalPointType.DEGENERATE

    def __str__(self):
        return (f"CriticalPointRefinementResult(type={self.cp_type.value}, "
                f"f={self.objective_value:.4e}, "
                f"||∇f||={self.gradient_norm:.2e}, "
                f"converged={self.converged}, iterations={self.iterations})")


def _split_bounds(
    bounds: Optional[Sequence[Tuple[float, float]]],
    n: int
) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
    if bounds is None:
        return None, None
    bounds = np.asarray(bounds, dtype=np.float64)
    if bounds.shape != (n, 2):
        raise DimensionMismatchError(f"bounds must have shape ({n}, 2), got {bounds.shape}")
    return bounds[:, 0], bounds[:, 1]


def _clamp(x: np.ndarray, lower: Optional[np.ndarray], upper: Optional[np.ndarray]) -> np.ndarray:
    if lower is None:
        return x
    return np.clip(x, lower, upper)


def _pseudo_inverse_step(analysis: HessianAnalysis, grad: np.ndarray) -> np.ndarray:
    """Newton step -H⁺g, skipping near-singular directions."""
    cutoff = max(1e-12, 1e-10 * np.max(np.abs(analysis.eigenvalues)))
    return -analysis.pseudo_inverse_apply(grad, cutoff)


def refine_to_critical_point(
    f,
    initial_point,
    derivatives=None,
    tol: float = 1e-8,
    max_iterations: int = 100,
    bounds: Optional[Sequence[Tuple[float, float]]] = None,
    hessian_tol: float = 1e-6,
    damping: float = 1.0,
    min_damping: float = 0.01
) -> CriticalPointRefinementResult:
    """
    Refine a raw point to a critical point of f via damped Newton on ∇f = 0.

    Args:
        f: Objective function
        initial_point: Starting point (n,)
        derivatives: Derivative provider or provider name (default finite differences)
        tol: Convergence tolerance on ||∇f||
        max_iterations: Maximum Newton iterations
        bounds: Optional [(lo, hi), ...] box; iterates are clamped into it
        hessian_tol: |λ| at or below this classifies the point as degenerate
        damping: Initial step fraction α ∈ (0, 1]
        min_damping: Smallest α tried before accepting a step

    Returns:
        CriticalPointRefinementResult with convergence info and classification
    """
    if not 0.0 < damping <= 1.0:
        raise ValueError(f"damping must be in (0, 1], got {damping}")
    if not 0.0 < min_damping <= damping:
        raise ValueError(f"min_damping must be in (0, damping], got {min_damping}")

    derivatives = resolve_derivatives(derivatives)
    x = as_point(initial_point, name="initial_point")
    lower, upper = _split_bounds(bounds, x.size)
    x = _clamp(x, lower, upper)

    grad = derivatives.gradient(f, x)
    grad_norm = float(np.linalg.norm(grad))
    initial_grad_norm = grad_norm

    if not np.isfinite(grad_norm):
        return CriticalPointRefinementResult(
            point=x,
            gradient_norm=grad_norm,
            objective_value=float(f(x)),
            converged=False,
            iterations=0,
            cp_type=CriticalPointType.UNKNOWN,
            eigenvalues=np.full(x.size, np.nan),
            initial_gradient_norm=initial_grad_norm
        )

    converged = grad_norm < tol
    iterations = 0

    while not converged and iterations < max_iterations:
        iterations += 1

        analysis = hessian_analysis_at(f, x, derivatives, hessian_tol)
        if not analysis.is_finite:
            break
        step = _pseudo_inverse_step(analysis, grad)

        # Damped line search: shrink α while the step increases ||∇f||
        alpha = damping
        x_new = _clamp(x + alpha * step, lower, upper)
        grad_new = derivatives.gradient(f, x_new)
        grad_norm_new = float(np.linalg.norm(grad_new))

        while not grad_norm_new <= grad_norm and alpha > min_damping:
            alpha *= 0.5
            x_new = _clamp(x + alpha * step, lower, upper)
            grad_new = derivatives.gradient(f, x_new)
            grad_norm_new = float(np.linalg.norm(grad_new))

        if not np.isfinite(grad_norm_new):
            break

        x, grad, grad_norm = x_new, grad_new, grad_norm_new
        converged = grad_norm < tol

    final = hessian_analysis_at(f, x, derivatives, hessian_tol)

    return CriticalPointRefinementResult(
        point=x,
        gradient_norm=grad_norm,
        objective_value=float(f(x)),
        converged=converged,
        iterations=iterations,
        cp_type=final.stability_type,
        eigenvalues=final.eigenvalues,
        initial_gradient_norm=initial_grad_norm
    )


def refine_to_critical_points(
    f,
    points: Sequence,
    verbose: bool = False,
    **kwargs
) -> List[CriticalPointRefinementResult]:
    """
    Refine each point independently; results keep the input order.

    Args:
        f: Objective function
        points: Raw candidate points
        verbose: Print one status line per point
        **kwargs: Passed to refine_to_critical_point
    """
    results = []
    n_points = len(points)

    for i, point in enumerate(points):
        result = refine_to_critical_point(f, point, **kwargs)
        results.append(result)

        if verbose:
            mark = "✓" if result.converged else "✗"
            print(f"  Refining point {i + 1}/{n_points}... {mark} {result.cp_type.value} "
                  f"(||∇f|| = {result.gradient_norm:.2e})")

    return results
