"""
Valley Walker
=============

Predictor-corrector continuation along a valley:

    1. Predict:    x_pred = x + h t
    2. Correct:    x_corr = project(x_pred)          (stop if it fails)
    3. Re-tangent: t_next = tangent(x_corr, t)       (stop if None)
    4. Append x_corr and continue from (x_corr, t_next)

Two correctors are available, selected by ``ValleyWalkConfig.method``:

- ``newton_projection``: plain Newton projection onto ∇f = 0. The correction
  may slide along the valley.
- ``predictor_corrector``: the correction is confined to the hyperplane through
  x_pred orthogonal to t (pseudo-arclength), so consecutive points stay about
  h apart.

The step size h is fixed for the whole walk. The start point is not part of
the returned path.
"""

from typing import Callable, Dict, List, Tuple

import numpy as np

from valley_walking.config import ValleyWalkConfig, WalkMethod
from valley_walking.derivatives import resolve_derivatives
from valley_walking.points import as_point, unit_vector
from valley_walking.projection import (
    ArclengthConstraint,
    ProjectionResult,
    project_to_valley,
)
from valley_walking.tangent import get_valley_tangent


def _newton_corrector(f, x_pred, tangent, config, derivatives) -> ProjectionResult:
    return project_to_valley(
        f, x_pred,
        max_iter=config.max_projection_iter,
        tol=config.projection_tol,
        derivatives=derivatives
    )


def _arclength_corrector(f, x_pred, tangent, config, derivatives) -> ProjectionResult:
    return project_to_valley(
        f, x_pred,
        max_iter=config.max_projection_iter,
        tol=config.projection_tol,
        derivatives=derivatives,
        constraint=ArclengthConstraint(direction=tangent, anchor=x_pred)
    )


CORRECTORS: Dict[WalkMethod, Callable[..., ProjectionResult]] = {
    WalkMethod.NEWTON_PROJECTION: _newton_corrector,
    WalkMethod.PREDICTOR_CORRECTOR: _arclength_corrector,
}


def walk_with_tangents(
    f,
    start_point,
    direction,
    config: ValleyWalkConfig = None,
    derivatives=None,
    method: WalkMethod = None
) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    """
    Walk along a valley and record the tangent used after each point.

    Args:
        f: Objective function
        start_point: Valley point to walk from (n,)
        direction: Initial walking direction (n,), normalized internally
        config: Walking parameters
        derivatives: Derivative provider or provider name
        method: Corrector override (default config.method)

    Returns:
        (points, tangents): Equal-length lists; tangents[k] is the unit
        tangent computed at points[k].
    """
    config = config if config is not None else ValleyWalkConfig()
    derivatives = resolve_derivatives(derivatives)
    corrector = CORRECTORS[WalkMethod.parse(method if method is not None else config.method)]

    x = as_point(start_point, n_dims=config.n_dims, name="start_point")
    t = unit_vector(direction, x.size)
    h = config.initial_step_size

    points = []
    tangents = []

    for _ in range(config.max_steps):
        x_pred = x + h * t

        projection = corrector(f, x_pred, t, config, derivatives)
        if not projection.converged:
            break
        x_corr = projection.point

        t_next = get_valley_tangent(f, x_corr, t, config, derivatives)
        if t_next is None:
            break

        points.append(x_corr)
        tangents.append(t_next)
        x, t = x_corr, t_next

    return points, tangents


def walk_newton_projection(f, start_point, direction, config=None, derivatives=None) -> List[np.ndarray]:
    """Walk along a valley using plain Newton projection as the corrector."""
    points, _ = walk_with_tangents(f, start_point, direction, config, derivatives,
                                   method=WalkMethod.NEWTON_PROJECTION)
    return points


def walk_predictor_corrector(f, start_point, direction, config=None, derivatives=None) -> List[np.ndarray]:
    """Walk along a valley using the arclength-constrained corrector."""
    points, _ = walk_with_tangents(f, start_point, direction, config, derivatives,
                                   method=WalkMethod.PREDICTOR_CORRECTOR)
    return points


WALKERS: Dict[WalkMethod, Callable[..., List[np.ndarray]]] = {
    WalkMethod.NEWTON_PROJECTION: walk_newton_projection,
    WalkMethod.PREDICTOR_CORRECTOR: walk_predictor_corrector,
}


def walk(f, start_point, direction, config: ValleyWalkConfig = None, derivatives=None) -> List[np.ndarray]:
    """Walk along a valley with the strategy selected by ``config.method``."""
    config = config if config is not None else ValleyWalkConfig()
    return WALKERS[config.method](f, start_point, direction, config, derivatives)
