"""
Manifold Projector
==================

Pulls a point back onto the zero-gradient set {x : ∇f(x) = 0}.

The iteration is Newton's method on the *gradient* map:

    H(x) Δx = -∇f(x),    x ← x + Δx

H is rank-deficient on a valley (the tangent directions have zero curvature),
so the step is the least-squares / pseudo-inverse solution. Targeting ∇f = 0
rather than f = 0 is what makes valleys with a nonzero floor value converge.
With finite differences a high floor also raises the derivatives' roundoff
floor; both the convergence test and the rank cutoff follow it.

The optional arclength constraint adds one row

    tᵀ Δx = -tᵀ (x - anchor)

which keeps the corrector on the hyperplane through ``anchor`` orthogonal to
the tangent t (pseudo-arclength continuation).
"""

from dataclasses import dataclass
from typing import NamedTuple, Optional

import numpy as np
from scipy import linalg

from valley_walking.derivatives import resolve_derivatives
from valley_walking.points import as_point, unit_vector


class ArclengthConstraint(NamedTuple):
    """Hyperplane through ``anchor`` with normal ``direction``."""
    direction: np.ndarray
    anchor: np.ndarray


@dataclass(frozen=True, eq=False)
class ProjectionResult:
    """
    Outcome of a projection.

    Attributes:
        point: Last iterate (returned whether or not it converged)
        converged: ||∇f(point)|| below the effective tolerance, all finite
        iterations: Newton steps taken
        gradient_norm: ||∇f|| at the last iterate (nan if non-finite)
    """
    point: np.ndarray
    converged: bool
    iterations: int
    gradient_norm: float


def _is_converged(x: np.ndarray, grad_norm: float, tol: float) -> bool:
    return bool(np.all(np.isfinite(x)) and np.isfinite(grad_norm) and grad_norm < tol)


def project_to_valley(
    f,
    point,
    max_iter: int = 10,
    tol: float = 1e-10,
    derivatives=None,
    constraint: Optional[ArclengthConstraint] = None,
    rcond: float = 1e-8
) -> ProjectionResult:
    """
    Project a point onto the critical set of f with Newton iteration on ∇f.

    Args:
        f: Objective function
        point: Starting point (n,)
        max_iter: Maximum Newton iterations
        tol: Convergence threshold on ||∇f||, raised to the provider's
             roundoff floor (``derivatives.gradient_noise``) where that is larger
        derivatives: Derivative provider or provider name
        constraint: Optional arclength hyperplane for the iterates
        rcond: Relative singular-value cutoff for the least-squares solve

    Returns:
        ProjectionResult. Non-convergence and non-finite iterates are reported
        through ``converged=False``, never raised.
    """
    derivatives = resolve_derivatives(derivatives)
    x = as_point(point)

    if constraint is not None:
        direction = unit_vector(constraint.direction, x.size, name="constraint direction")
        anchor = as_point(constraint.anchor, n_dims=x.size, name="constraint anchor")

    grad = derivatives.gradient(f, x)
    grad_norm = float(np.linalg.norm(grad))
    target = max(tol, derivatives.gradient_noise(f, x))
    iterations = 0

    while iterations < max_iter and not _is_converged(x, grad_norm, target):
        if not np.isfinite(grad_norm):
            break

        hessian = derivatives.hessian(f, x)
        if not np.all(np.isfinite(hessian)):
            break

        if constraint is None:
            A = hessian
            b = -grad
        else:
            A = np.vstack([hessian, direction])
            b = -np.append(grad, direction @ (x - anchor))

        # Modes softer than the Hessian's roundoff floor are treated as zero
        scale = np.linalg.norm(A, 2)
        cond = max(rcond, derivatives.hessian_noise(f, x) / scale) if scale > 0 else rcond

        try:
            step = linalg.lstsq(A, b, cond=cond)[0]
        except linalg.LinAlgError:
            break

        x = x + step
        iterations += 1

        if not np.all(np.isfinite(x)):
            grad_norm = np.nan
            break

        grad = derivatives.gradient(f, x)
        grad_norm = float(np.linalg.norm(grad))
        target = max(tol, derivatives.gradient_noise(f, x))

    return ProjectionResult(
        point=x,
        converged=_is_converged(x, grad_norm, target),
        iterations=iterations,
        gradient_norm=grad_norm if np.isfinite(grad_norm) else np.nan
    )
