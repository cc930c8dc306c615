#!/usr/bin/env python3
"""
Tests for valley detection.

Landscapes:
- Circle valley f = (x1² + x2² - 1)²: every point on the unit circle is critical
- Isolated minimum f = x1² + x2²
- Saddle f = x1² - x2²
"""

import numpy as np
import pytest

from valley_walking import (
    DimensionMismatchError,
    ValleyWalkConfig,
    detect_valley,
)
from valley_walking.landscapes import (
    circle_valley,
    circle_valley_3d,
    isolated_minimum,
    saddle,
)


# =============================================================================
# Tests: Valley Points
# =============================================================================

class TestDetectValley:

    def test_circle_at_unit_x(self):
        is_valley, basis, dimension = detect_valley(circle_valley, [1.0, 0.0])

        assert is_valley
        assert dimension == 1
        assert basis.shape == (2, 1)
        # Tangent to the circle at (1, 0) is ±(0, 1)
        assert abs(abs(basis[1, 0]) - 1.0) < 1e-6

    def test_circle_at_unit_y(self):
        is_valley, basis, dimension = detect_valley(circle_valley, [0.0, 1.0])

        assert is_valley
        assert abs(abs(basis[0, 0]) - 1.0) < 1e-6

    def test_circle_at_45_degrees(self):
        point = np.array([1.0, 1.0]) / np.sqrt(2)
        is_valley, basis, dimension = detect_valley(circle_valley, point)

        assert is_valley
        assert dimension == 1
        # Tangent is orthogonal to the radius
        assert abs(basis[:, 0] @ point) < 1e-6

    def test_basis_is_orthonormal(self):
        sphere = lambda x: (x[0] ** 2 + x[1] ** 2 + x[2] ** 2 - 1) ** 2
        is_valley, basis, dimension = detect_valley(sphere, [0.0, 0.0, 1.0])

        assert is_valley
        assert dimension == 2
        np.testing.assert_allclose(basis.T @ basis, np.eye(2), atol=1e-10)

    def test_circle_in_3d(self):
        is_valley, basis, dimension = detect_valley(circle_valley_3d, [1.0, 0.0, 0.0])

        assert is_valley
        assert dimension == 1
        assert abs(abs(basis[1, 0]) - 1.0) < 1e-6

    def test_named_derivative_provider(self):
        detection = detect_valley(circle_valley, [1.0, 0.0], derivatives="finite_difference")
        assert detection.is_valley


# =============================================================================
# Tests: Non-Valley Points
# =============================================================================

class TestRejectNonValley:

    def test_isolated_minimum(self):
        assert detect_valley(isolated_minimum, [0.0, 0.0]) == (False, None, 0)

    def test_saddle(self):
        assert detect_valley(saddle, [0.0, 0.0]) == (False, None, 0)

    def test_non_critical_point(self):
        # ∇f = (-1.5, 0) at (0.5, 0)
        is_valley, basis, dimension = detect_valley(circle_valley, [0.5, 0.0])
        assert not is_valley
        assert basis is None
        assert dimension == 0

    def test_circle_center_is_local_maximum(self):
        assert not detect_valley(circle_valley, [0.0, 0.0]).is_valley

    def test_threshold_controls_detection(self):
        # Smallest |λ| of the quadratic is 2
        config = ValleyWalkConfig(eigenvalue_threshold=3.0)
        assert detect_valley(isolated_minimum, [0.0, 0.0], config).is_valley

    def test_non_finite_objective(self):
        assert not detect_valley(lambda x: np.nan, [1.0, 0.0]).is_valley


# =============================================================================
# Tests: Input Contract
# =============================================================================

class TestDetectorInputs:

    def test_dimension_mismatch_with_config(self):
        config = ValleyWalkConfig(n_dims=3)
        with pytest.raises(DimensionMismatchError):
            detect_valley(circle_valley, [1.0, 0.0], config)

    def test_non_vector_point(self):
        with pytest.raises(DimensionMismatchError):
            detect_valley(circle_valley, [[1.0, 0.0]])

    def test_point_is_not_mutated(self):
        point = np.array([1.0, 0.0])
        detect_valley(circle_valley, point)
        np.testing.assert_array_equal(point, [1.0, 0.0])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
