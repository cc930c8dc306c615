"""
Valley Detector
===============

Decides whether a critical point sits on a positive-dimensional critical
manifold (a "valley") rather than being an isolated minimum, maximum or saddle.

A point x is a valley point when
1. ||∇f(x)|| is within the gradient tolerance (x is critical), and
2. the Hessian ∇²f(x) has at least one eigenvalue with |λ| < threshold.

The eigenvectors of those near-zero eigenvalues span the local tangent space
of the valley.
"""

from typing import NamedTuple, Optional

import numpy as np

from valley_walking.config import ValleyWalkConfig
from valley_walking.derivatives import resolve_derivatives
from valley_walking.points import as_point
from valley_walking.stability import hessian_analysis_at


class ValleyDetection(NamedTuple):
    """Outcome of :func:`detect_valley`; unpacks as a triple."""
    is_valley: bool
    tangent_basis: Optional[np.ndarray]  # (n, dimension) orthonormal columns
    dimension: int


NOT_A_VALLEY = ValleyDetection(False, None, 0)


def detect_valley(f, point, config: ValleyWalkConfig = None, derivatives=None) -> ValleyDetection:
    """
    Detect if a point lies on a valley of f.

    Args:
        f: Objective function
        point: Candidate critical point (n,)
        config: Thresholds (default ValleyWalkConfig())
        derivatives: Derivative provider or provider name

    Returns:
        ValleyDetection(is_valley, tangent_basis, dimension). The basis columns
        are ordered by increasing |λ|, so column 0 is the softest direction.
    """
    config = config if config is not None else ValleyWalkConfig()
    derivatives = resolve_derivatives(derivatives)
    x = as_point(point, n_dims=config.n_dims)

    grad = derivatives.gradient(f, x)
    grad_norm = np.linalg.norm(grad)
    if not np.isfinite(grad_norm) or grad_norm > config.gradient_tolerance:
        return NOT_A_VALLEY

    analysis = hessian_analysis_at(f, x, derivatives, config.eigenvalue_threshold)
    _, tangent_basis = analysis.soft_modes(config.eigenvalue_threshold)
    if tangent_basis.shape[1] == 0:
        return NOT_A_VALLEY

    return ValleyDetection(True, tangent_basis, int(tangent_basis.shape[1]))
