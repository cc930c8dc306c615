#!/usr/bin/env python3
"""
Tests for tangent tracking and the predictor-corrector walk.
"""

import numpy as np
import pytest

from valley_walking import (
    DimensionMismatchError,
    ValleyWalkConfig,
    WalkMethod,
    get_valley_tangent,
    walk,
    walk_newton_projection,
    walk_predictor_corrector,
    walk_with_tangents,
)
from valley_walking.landscapes import circle_valley, circle_valley_3d, isolated_minimum


def on_circle(points, tol=1e-8):
    return all(abs(np.linalg.norm(p[:2]) - 1.0) < tol for p in points)


# =============================================================================
# Tests: Tangent Tracking
# =============================================================================

class TestValleyTangent:

    def test_tangent_follows_previous_direction(self):
        t = get_valley_tangent(circle_valley, [1.0, 0.0], [0.0, 1.0])
        np.testing.assert_allclose(t, [0.0, 1.0], atol=1e-6)

    def test_tangent_flips_to_match_previous(self):
        t = get_valley_tangent(circle_valley, [1.0, 0.0], [0.0, -1.0])
        np.testing.assert_allclose(t, [0.0, -1.0], atol=1e-6)

    def test_tangent_on_rotated_point(self):
        t = get_valley_tangent(circle_valley, [0.6, 0.8], [-1.0, 0.0])

        np.testing.assert_allclose(t, [-0.8, 0.6], atol=1e-6)
        assert np.linalg.norm(t) == pytest.approx(1.0)

    def test_no_tangent_at_isolated_minimum(self):
        assert get_valley_tangent(isolated_minimum, [0.0, 0.0], [1.0, 0.0]) is None

    def test_previous_direction_length_checked(self):
        with pytest.raises(DimensionMismatchError):
            get_valley_tangent(circle_valley, [1.0, 0.0], [0.0, 1.0, 0.0])


# =============================================================================
# Tests: Newton Projection Walk
# =============================================================================

class TestNewtonProjectionWalk:

    @pytest.fixture
    def config(self):
        return ValleyWalkConfig(max_steps=20)

    def test_walk_stays_on_circle(self, config):
        path = walk(circle_valley, [1.0, 0.0], [0.0, 1.0], config)

        assert len(path) == 20
        assert on_circle(path)

    def test_walk_moves_in_requested_direction(self, config):
        up = walk(circle_valley, [1.0, 0.0], [0.0, 1.0], config)
        down = walk(circle_valley, [1.0, 0.0], [0.0, -1.0], config)

        assert up[0][1] > 0
        assert down[0][1] < 0

    def test_walk_does_not_reverse(self, config):
        points, tangents = walk_with_tangents(circle_valley, [1.0, 0.0], [0.0, 1.0], config)

        for t_prev, t_next in zip(tangents, tangents[1:]):
            assert t_prev @ t_next > 0
        # Counter-clockwise: the angle increases monotonically
        angles = np.unwrap([np.arctan2(p[1], p[0]) for p in points])
        assert np.all(np.diff(angles) > 0)

    def test_step_spacing(self, config):
        path = walk_newton_projection(circle_valley, [1.0, 0.0], [0.0, 1.0], config)
        spacing = np.linalg.norm(np.diff(np.vstack(path), axis=0), axis=1)
        assert np.all(np.abs(spacing - 0.05) < 1e-3)

    def test_start_point_not_in_path(self, config):
        path = walk(circle_valley, [1.0, 0.0], [0.0, 1.0], config)
        assert not any(np.allclose(p, [1.0, 0.0]) for p in path)

    def test_direction_is_normalized(self, config):
        path = walk(circle_valley, [1.0, 0.0], [0.0, 7.0], config)
        assert np.linalg.norm(path[0] - np.array([1.0, 0.0])) < 0.06

    def test_circle_in_3d(self):
        config = ValleyWalkConfig(max_steps=10)
        path = walk(circle_valley_3d, [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], config)

        assert len(path) == 10
        assert on_circle(path)
        assert all(abs(p[2]) < 1e-8 for p in path)


# =============================================================================
# Tests: Predictor-Corrector Walk
# =============================================================================

class TestPredictorCorrectorWalk:

    def test_walk_stays_on_circle(self):
        config = ValleyWalkConfig(max_steps=20, method=WalkMethod.PREDICTOR_CORRECTOR)
        path = walk(circle_valley, [1.0, 0.0], [0.0, 1.0], config)

        assert len(path) == 20
        assert on_circle(path)

    def test_consecutive_points_are_one_step_apart(self):
        config = ValleyWalkConfig(max_steps=20, method="predictor_corrector")
        path = walk_predictor_corrector(circle_valley, [1.0, 0.0], [0.0, 1.0], config)

        points = np.vstack([[1.0, 0.0]] + path)
        spacing = np.linalg.norm(np.diff(points, axis=0), axis=1)
        assert np.all(np.abs(spacing - 0.05) < 1e-3)


# =============================================================================
# Tests: Termination
# =============================================================================

class TestWalkTermination:

    def test_empty_walk_from_isolated_minimum(self):
        path = walk(isolated_minimum, [0.0, 0.0], [1.0, 0.0])
        assert path == []

    def test_projection_failure_stops_walk(self):
        config = ValleyWalkConfig(max_steps=20, max_projection_iter=1)
        path = walk(circle_valley, [1.0, 0.0], [0.0, 1.0], config)
        assert path == []

    def test_max_steps_bounds_path(self):
        config = ValleyWalkConfig(max_steps=3)
        assert len(walk(circle_valley, [1.0, 0.0], [0.0, 1.0], config)) == 3


# =============================================================================
# Tests: Input Contract
# =============================================================================

class TestWalkInputs:

    def test_direction_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            walk(circle_valley, [1.0, 0.0], [0.0, 1.0, 0.0])

    def test_zero_direction(self):
        with pytest.raises(ValueError):
            walk(circle_valley, [1.0, 0.0], [0.0, 0.0])

    def test_non_finite_start(self):
        with pytest.raises(ValueError):
            walk(circle_valley, [np.nan, 0.0], [0.0, 1.0])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
