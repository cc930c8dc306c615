"""
Tangent tracking along a valley.

At a valley point the eigenvector of the smallest |λ| is the direction of
least curvature, i.e. the local tangent. Its sign is arbitrary, so it is
aligned with the previous step's direction to keep the walk from reversing.
"""

from typing import Optional

import numpy as np

from valley_walking.config import ValleyWalkConfig
from valley_walking.derivatives import resolve_derivatives
from valley_walking.stability import hessian_analysis_at
from valley_walking.points import as_point


def get_valley_tangent(
    f,
    point,
    prev_direction,
    config: ValleyWalkConfig = None,
    derivatives=None
) -> Optional[np.ndarray]:
    """
    Unit tangent to the valley at ``point``, continuous with ``prev_direction``.

    Returns None when no Hessian eigenvalue is below the threshold, meaning the
    walk has left the manifold.

    Only the single softest eigenvector is used. On valleys of dimension > 1
    this follows one curve inside the manifold.
    """
    config = config if config is not None else ValleyWalkConfig()
    derivatives = resolve_derivatives(derivatives)
    x = as_point(point, n_dims=config.n_dims)
    prev = as_point(prev_direction, n_dims=x.size, name="prev_direction")

    analysis = hessian_analysis_at(f, x, derivatives, config.eigenvalue_threshold)
    _, modes = analysis.soft_modes(config.eigenvalue_threshold)
    if modes.shape[1] == 0:
        return None

    tangent = modes[:, 0]
    if np.dot(tangent, prev) < 0:
        tangent = -tangent

    return tangent / np.linalg.norm(tangent)
