#!/usr/bin/env python3
"""
Tests for Newton projection onto the zero-gradient set.
"""

import numpy as np
import pytest

from valley_walking import (
    ArclengthConstraint,
    DimensionMismatchError,
    project_to_valley,
)
from valley_walking.landscapes import (
    circle_valley,
    circle_valley_3d,
    isolated_minimum,
    offset_circle_valley,
)


# =============================================================================
# Tests: Convergence
# =============================================================================

class TestProjectToValley:

    @pytest.mark.parametrize("start", [[1.05, 0.0], [0.9, 0.0], [0.7, 0.75]])
    def test_lands_on_circle(self, start):
        result = project_to_valley(circle_valley, start)

        assert result.converged
        assert abs(np.linalg.norm(result.point) - 1.0) < 1e-8
        assert result.gradient_norm < 1e-10

    def test_point_on_valley_is_fixed(self):
        result = project_to_valley(circle_valley, [1.0, 0.0])

        assert result.converged
        assert result.iterations == 0
        np.testing.assert_array_equal(result.point, [1.0, 0.0])

    def test_valley_with_nonzero_floor(self):
        # f = 0.01 on the valley: converges because the target is ∇f = 0
        result = project_to_valley(offset_circle_valley, [1.1, 0.0])

        assert result.converged
        assert abs(np.linalg.norm(result.point) - 1.0) < 1e-8
        assert offset_circle_valley(result.point) == pytest.approx(0.01)

    @pytest.mark.parametrize("floor", [0.01, 1.0, 100.0])
    def test_valley_floor_does_not_block_convergence(self, floor):
        f = lambda x: (x[0] ** 2 + x[1] ** 2 - 1) ** 2 + floor
        result = project_to_valley(f, [1.05, 0.0])

        assert result.converged
        assert abs(np.linalg.norm(result.point) - 1.0) < 1e-6
        # No drift along the flat direction
        assert abs(result.point[1]) < 1e-6

    def test_high_floor_with_arclength_constraint(self):
        f = lambda x: (x[0] ** 2 + x[1] ** 2 - 1) ** 2 + 100.0
        anchor = np.array([1.0, 0.3])
        constraint = ArclengthConstraint(direction=np.array([0.0, 1.0]), anchor=anchor)

        result = project_to_valley(f, anchor, max_iter=20, constraint=constraint)

        assert result.converged
        assert abs(result.point[1] - 0.3) < 1e-6

    def test_circle_in_3d(self):
        result = project_to_valley(circle_valley_3d, [1.05, 0.0, 0.1])

        assert result.converged
        assert abs(np.linalg.norm(result.point[:2]) - 1.0) < 1e-8
        assert abs(result.point[2]) < 1e-8

    def test_isolated_minimum(self):
        result = project_to_valley(isolated_minimum, [0.3, -0.4])

        assert result.converged
        np.testing.assert_allclose(result.point, [0.0, 0.0], atol=1e-8)


# =============================================================================
# Tests: Failure Reporting
# =============================================================================

class TestProjectionFailure:

    def test_iteration_budget_exhausted(self):
        result = project_to_valley(circle_valley, [1.5, 0.0], max_iter=1)

        assert not result.converged
        assert result.iterations == 1
        # Last iterate is still returned
        assert result.point.shape == (2,)
        assert np.all(np.isfinite(result.point))

    def test_non_finite_objective(self):
        result = project_to_valley(lambda x: np.nan, [1.0, 0.0])

        assert not result.converged
        assert result.iterations == 0
        assert np.isnan(result.gradient_norm)

    def test_input_is_not_mutated(self):
        point = np.array([1.05, 0.0])
        project_to_valley(circle_valley, point)
        np.testing.assert_array_equal(point, [1.05, 0.0])


# =============================================================================
# Tests: Arclength Constraint
# =============================================================================

class TestArclengthConstraint:

    def test_stays_on_hyperplane(self):
        anchor = np.array([1.0, 0.3])
        constraint = ArclengthConstraint(direction=np.array([0.0, 1.0]), anchor=anchor)

        result = project_to_valley(circle_valley, anchor, max_iter=20, constraint=constraint)

        assert result.converged
        assert abs(result.point[1] - 0.3) < 1e-6
        assert abs(result.point[0] - np.sqrt(1 - 0.09)) < 1e-6

    def test_constraint_dimension_checked(self):
        constraint = ArclengthConstraint(direction=np.array([0.0, 1.0, 0.0]),
                                         anchor=np.array([1.0, 0.0, 0.0]))
        with pytest.raises(DimensionMismatchError):
            project_to_valley(circle_valley, [1.0, 0.0], constraint=constraint)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
