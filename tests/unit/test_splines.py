import math

import numpy as np
import pytest

from holopath.splines import (
    ArcParameterizedSpline,
    HolonomicSpline,
    QuinticSpline,
    QuinticSplineSegment,
    Waypoint,
    build_heading_spline,
    build_spline,
    hermite_quintic_basis,
    hermite_quintic_curvature,
    uniform_indices,
)
from holopath.splines.mapped import QuinticSplineMapped, QuinticSplineMappedBuilder
from holopath.units import Displacement, Percentage
from holopath.utils.errors import SegmentContinuityError


def approx_equal(a, b, tol=1e-9):
    return abs(a - b) <= tol


@pytest.fixture
def s_curve():
    """Three segments through four waypoints with non-zero velocity markers."""
    return build_spline(
        [
            Waypoint([0.0, 0.0], [2.0, 0.0]),
            Waypoint([2.0, 1.0], [2.0, 1.0], [0.5, -0.5]),
            Waypoint([4.0, -1.0], [1.0, -2.0]),
            Waypoint([6.0, 0.0], [2.0, 0.0]),
        ]
    )


class TestHermite:
    def test_segment_matches_boundary_values(self):
        p0, v0, a0 = [0.0, 1.0], [1.0, 2.0], [0.5, -0.5]
        a1, v1, p1 = [-1.0, 0.25], [3.0, 0.0], [4.0, 4.0]
        segment = QuinticSplineSegment(p0, v0, a0, a1, v1, p1)

        assert np.allclose(segment.evaluate(0.0), p0)
        assert np.allclose(segment.evaluate_velocity(0.0), v0)
        assert np.allclose(segment.evaluate_acceleration(0.0), a0)
        assert np.allclose(segment.evaluate(1.0), p1)
        assert np.allclose(segment.evaluate_velocity(1.0), v1)
        assert np.allclose(segment.evaluate_acceleration(1.0), a1)

    def test_segment_rejects_mixed_dimensions(self):
        with pytest.raises(ValueError):
            QuinticSplineSegment([0.0, 0.0], [1.0], [0.0, 0.0], [0.0, 0.0], [0.0, 0.0], [1.0, 1.0])

    def test_segment_coefficients_are_read_only(self):
        segment = QuinticSplineSegment([0.0], [0.0], [0.0], [0.0], [0.0], [1.0])
        with pytest.raises(ValueError):
            segment.coefficients[0, 0] = 5.0

    def test_basis_rows_sum_to_one_for_positions(self):
        t = np.linspace(0.0, 1.0, 11)
        basis = hermite_quintic_basis(t)
        assert basis.shape == (6, 11)
        # Only p0 and p1 weights contribute to a constant
        assert np.allclose(basis[0] + basis[5], 1.0)

    def test_basis_rejects_high_derivatives(self):
        with pytest.raises(ValueError):
            hermite_quintic_basis([0.5], 3)

    @pytest.mark.parametrize(
        "segments, progress, expected",
        [
            (4, 0.0, (0, 0.0)),
            (4, 0.5, (2, 0.0)),
            (4, 0.375, (1, 0.5)),
            (3, 1.0, (2, 1.0)),
            (2, -0.5, (0, 0.0)),
            (2, 1.5, (1, 1.0)),
        ],
    )
    def test_uniform_indices(self, segments, progress, expected):
        index, t = uniform_indices(segments, progress)
        assert index == expected[0]
        assert approx_equal(t, expected[1])

    def test_uniform_indices_vectorized(self):
        index, t = uniform_indices(4, np.array([0.0, 0.375, 1.0]))
        assert index.tolist() == [0, 1, 3]
        assert np.allclose(t, [0.0, 0.5, 1.0])
        with pytest.raises(ValueError):
            uniform_indices(0, 0.5)

    def test_curvature_of_straight_segment_is_zero(self):
        assert hermite_quintic_curvature(
            [0.0, 0.0], [1.0, 0.0], [0.0, 0.0], [0.0, 0.0], [1.0, 0.0], [1.0, 0.0], 0.4
        ) == 0.0

    def test_curvature_at_rest_is_zero(self):
        assert hermite_quintic_curvature(
            [0.0, 0.0], [0.0, 0.0], [0.0, 0.0], [0.0, 0.0], [0.0, 0.0], [1.0, 1.0], 0.0
        ) == 0.0


class TestQuinticSpline:
    def test_evaluate_across_segment_boundaries(self, s_curve):
        assert np.allclose(s_curve.evaluate(0.0), [0.0, 0.0])
        assert np.allclose(s_curve.evaluate(1.0 / 3.0), [2.0, 1.0])
        assert np.allclose(s_curve.evaluate(2.0 / 3.0), [4.0, -1.0])
        assert np.allclose(s_curve.evaluate(1.0), [6.0, 0.0])
        assert s_curve.continuity_errors() == []

    @pytest.mark.parametrize("derivative", [0, 1, 2])
    def test_evaluate_many_matches_scalar(self, s_curve, derivative):
        ts = np.linspace(0.0, 1.0, 17)
        scalar = {
            0: s_curve.evaluate,
            1: s_curve.evaluate_velocity,
            2: s_curve.evaluate_acceleration,
        }[derivative]
        expected = np.array([scalar(t) for t in ts])
        assert np.allclose(s_curve.evaluate_many(ts, derivative), expected)

    def test_empty_spline_cannot_be_evaluated(self):
        spline = QuinticSpline()
        assert spline.is_empty
        with pytest.raises(ValueError):
            spline.evaluate(0.5)
        with pytest.raises(ValueError):
            spline.evaluate_many([0.5])

    def test_add_rejects_wrong_dimensions(self):
        spline = QuinticSpline(2)
        with pytest.raises(ValueError):
            spline.add(QuinticSplineSegment([0.0], [0.0], [0.0], [0.0], [0.0], [1.0]))

    def test_build_spline_needs_two_waypoints(self):
        with pytest.raises(ValueError):
            build_spline([Waypoint([0.0, 0.0])])
        with pytest.raises(ValueError):
            Waypoint([0.0, 0.0], [1.0, 0.0, 0.0])

    def test_arc_length_of_straight_line(self, straight_spline):
        length = straight_spline.compute_arc_length()
        assert length.unit is Displacement
        assert approx_equal(length.value, 10.0, 1e-6)
        assert approx_equal(straight_spline.integrate_arc_length().value, 10.0, 1e-6)

    def test_arc_length_of_half_circle(self, arc_spline):
        assert approx_equal(arc_spline.compute_arc_length().value, 2.0 * math.pi, 0.05)
        assert approx_equal(
            arc_spline.compute_arc_length().value, arc_spline.integrate_arc_length().value, 1e-4
        )

    def test_arc_length_rejects_non_positive_points(self, straight_spline):
        with pytest.raises(ValueError):
            straight_spline.compute_arc_length(0)

    def test_curvature_of_half_circle(self, arc_spline):
        for t in (0.1, 0.25, 0.5, 0.8):
            assert approx_equal(arc_spline.evaluate_curvature(t), 0.5, 0.02)

    def test_project_onto_line(self, straight_spline):
        progress = straight_spline.project([3.0, 1.0])
        assert progress.unit is Percentage
        x, y = straight_spline.evaluate(progress.value)
        assert approx_equal(x, 3.0, 1e-2)
        assert approx_equal(y, 0.0)

    def test_project_clamps_to_ends(self, straight_spline):
        assert straight_spline.project([12.0, 0.0]).value == 1.0
        assert straight_spline.project([-3.0, 5.0]).value == 0.0

    def test_project_on_empty_spline(self):
        assert QuinticSpline().project([1.0, 1.0]).value == 0.0

    def test_tangent_at_rest_uses_chord(self):
        spline = build_spline([Waypoint([0.0, 0.0]), Waypoint([0.0, 5.0])])
        assert approx_equal(spline.tangent_rotation(0.0).log(), math.pi / 2)
        assert approx_equal(spline.tangent_rotation(1.0).log(), math.pi / 2)
        assert approx_equal(spline.tangent_rotation(0.5).log(), math.pi / 2)

    def test_curve_pose(self, arc_spline):
        curve_pose = arc_spline.evaluate_curve_pose(0.5)
        assert approx_equal(curve_pose.parameter, 0.5)
        assert curve_pose.pose.approx_equals(arc_spline.evaluate_pose(0.5))
        assert approx_equal(curve_pose.pose.x, 0.0, 1e-9)
        assert approx_equal(curve_pose.pose.y, 2.0, 1e-9)
        assert approx_equal(curve_pose.pose.heading, math.pi, 1e-9)

    def test_continuity_errors_report_breaks(self):
        spline = QuinticSpline()
        spline.add(QuinticSplineSegment([0.0, 0.0], [1.0, 0.0], [0.0, 0.0], [0.0, 0.0], [1.0, 0.0], [1.0, 0.0]))
        spline.add(QuinticSplineSegment([1.5, 0.0], [1.0, 0.0], [0.0, 0.0], [0.0, 0.0], [1.0, 0.0], [2.0, 0.0]))
        errors = spline.continuity_errors()
        assert len(errors) == 1
        assert errors[0]["index"] == 1
        assert approx_equal(errors[0]["position"], 0.5)
        assert errors[0]["velocity"] == 0.0


class TestMappedSpline:
    def test_builder_and_clamped_evaluation(self):
        builder = QuinticSplineMappedBuilder(1)
        assert not builder.can_build()
        builder.add(0.0, [0.0])
        builder.add(2.0, [1.0])
        builder.add(5.0, [3.0])
        spline = builder.build()

        assert len(spline) == 2
        assert (spline.start_key, spline.end_key) == (0.0, 5.0)
        assert approx_equal(spline.evaluate(2.0)[0], 1.0)
        assert approx_equal(spline.evaluate(-1.0)[0], 0.0)
        assert approx_equal(spline.evaluate(10.0)[0], 3.0)
        # Mid-segment derivative is scaled by the 2-unit key span
        assert approx_equal(spline.evaluate_velocity(1.0)[0], 0.9375)

    def test_insert_validation(self):
        spline = QuinticSplineMapped(1)
        segment = QuinticSplineSegment([0.0], [0.0], [0.0], [0.0], [0.0], [1.0])
        with pytest.raises(ValueError):
            spline.insert(1.0, 1.0, segment)
        spline.insert(0.0, 1.0, segment)
        with pytest.raises(SegmentContinuityError):
            spline.insert(1.5, 2.0, segment)

    def test_empty_mapped_spline(self):
        spline = QuinticSplineMapped(1)
        with pytest.raises(ValueError):
            spline.evaluate(0.0)
        with pytest.raises(ValueError):
            QuinticSplineMappedBuilder(1).build()


class TestHeadingSpline:
    def test_unwraps_across_pi(self):
        heading = build_heading_spline([(1.0, -3.0), (0.0, 3.0)])
        assert approx_equal(heading.evaluate(0.0)[0], 3.0)
        assert approx_equal(heading.evaluate(1.0)[0], -3.0 + 2.0 * math.pi)
        assert approx_equal(heading.evaluate(0.5)[0], math.pi, 1e-9)

    def test_skips_duplicate_keys(self):
        heading = build_heading_spline([(0.0, 0.0), (1e-7, 1.0), (1.0, 0.5)])
        assert len(heading) == 1
        assert approx_equal(heading.evaluate(1.0)[0], 0.5)

    def test_holonomic_spline_follows_heading(self, turning_line):
        assert approx_equal(turning_line.evaluate_rotation(0.0).log(), 0.0)
        assert approx_equal(turning_line.evaluate_rotation(1.0).log(), math.pi / 2)
        pose = turning_line.evaluate_curve_pose(0.5)
        assert approx_equal(pose.pose.x, 2.0)
        assert approx_equal(pose.pose.heading, math.pi / 4)
        assert pose.curvature == 0.0

    def test_holonomic_spline_without_heading_uses_tangent(self, arc_spline):
        holonomic = HolonomicSpline(arc_spline)
        assert holonomic.evaluate_pose(0.25).approx_equals(arc_spline.evaluate_pose(0.25))

    def test_holonomic_spline_dimension_checks(self, straight_spline):
        with pytest.raises(ValueError):
            HolonomicSpline(QuinticSpline(1))
        with pytest.raises(ValueError):
            HolonomicSpline(straight_spline, QuinticSplineMapped(2))


class TestArcParameterization:
    def test_distance_maps_to_position(self, straight_spline):
        arc = ArcParameterizedSpline(straight_spline, samples=2048)
        assert approx_equal(arc.arc_length.value, 10.0, 1e-6)
        for distance in (0.5, 2.5, 5.0, 9.0):
            assert approx_equal(arc.evaluate(distance)[0], distance, 1e-3)

    def test_parameter_is_clamped(self, straight_spline):
        arc = ArcParameterizedSpline(straight_spline, samples=256)
        assert arc.evaluate_parameter(-1.0) == 0.0
        assert approx_equal(arc.evaluate_parameter(100.0), 1.0, 1e-12)

    def test_parameter_is_monotonic_on_arc(self, arc_spline):
        arc = ArcParameterizedSpline(arc_spline, samples=1024)
        distances = np.linspace(0.0, arc.arc_length.value, 50)
        parameters = [arc.evaluate_parameter(d) for d in distances]
        assert np.all(np.diff(parameters) > 0)

    @pytest.mark.parametrize("point", [[1.0, 1.0], [0.0, 0.0], [1000.0, -500.0]])
    def test_zero_length_spline_is_rejected(self, point):
        spline = build_spline([Waypoint(point), Waypoint(point)])
        with pytest.raises(ValueError):
            ArcParameterizedSpline(spline, samples=64)

    def test_too_few_samples(self, straight_spline):
        with pytest.raises(ValueError):
            ArcParameterizedSpline(straight_spline, samples=1)
