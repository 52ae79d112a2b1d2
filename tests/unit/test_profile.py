import logging
import math

import numpy as np
import pytest

import holopath.motion.profile as profile
from holopath import config
from holopath.geometry import CurvePose, Pose
from holopath.motion import (
    ApproximationEvent,
    TrajectoryConstraints,
    generate_profile,
    generate_trajectory,
)
from holopath.motion.profile import (
    combined_velocity,
    coupled_velocity_bound,
    movement_time,
    rotational_velocity_ranges,
)
from holopath.splines import sample_curve
from holopath.units import Velocity
from holopath.utils.errors import ConstraintApproximationError, TrajectoryGenerationError


def _line_poses(xs, headings=None):
    headings = [0.0] * len(xs) if headings is None else headings
    n = len(xs)
    return [CurvePose(Pose.from_xy(x, 0.0, h), 0.0, i / max(n - 1, 1)) for i, (x, h) in enumerate(zip(xs, headings))]


@pytest.fixture
def straight_poses(straight_spline):
    return sample_curve(straight_spline)


class TestStraightLine:
    def test_rest_to_rest_duration(self, straight_poses, generous_constraints):
        trajectory = generate_trajectory(straight_poses, generous_constraints)
        # 2 s ramp up, 3 s cruise at 2 m/s, 2 s ramp down
        assert trajectory.duration.value == pytest.approx(7.0, abs=0.1)
        assert trajectory.points[0].pose.approx_equals(Pose.from_xy(0.0, 0.0))
        assert trajectory.points[-1].pose.approx_equals(Pose.from_xy(10.0, 0.0))
        assert trajectory.evaluate(0.0).pose.approx_equals(Pose.from_xy(0.0, 0.0))
        assert trajectory.evaluate(trajectory.duration).pose.approx_equals(Pose.from_xy(10.0, 0.0))

    def test_endpoints_at_rest(self, straight_poses, generous_constraints):
        trajectory = generate_trajectory(straight_poses, generous_constraints)
        for point in (trajectory.points[0], trajectory.points[-1]):
            assert point.speed.value == 0.0
            assert point.velocity.xy == (0.0, 0.0)
            assert point.angular_velocity.value == 0.0

        start = trajectory.evaluate(0.0)
        end = trajectory.evaluate(trajectory.duration)
        assert start.velocity.xy == (0.0, 0.0)
        assert end.velocity.xy == (0.0, 0.0)

    def test_limits_hold(self, straight_poses, generous_constraints):
        points = generate_profile(straight_poses, generous_constraints)
        report = generous_constraints.validate(points)
        assert report["velocity_ok"]
        assert report["acceleration_ok"]
        assert report["angular_velocity_ok"]
        assert report["centripetal_ok"]
        assert report["max_velocity"] == pytest.approx(2.0)
        assert report["max_angular_velocity"] == 0.0

    def test_time_and_displacement_increase(self, straight_poses, generous_constraints):
        points = generate_profile(straight_poses, generous_constraints)
        times = np.array([p.time.value for p in points])
        displacement = np.array([p.displacement.value for p in points])
        assert times[0] == 0.0
        assert np.all(np.diff(times) > 0)
        assert np.all(np.diff(displacement) > 0)
        assert displacement[-1] == pytest.approx(10.0)

    def test_slower_deceleration_stretches_the_end(self, straight_poses):
        symmetric = TrajectoryConstraints(2.0, 1.0, 10.0, 10.0, 100.0)
        gentle_stop = TrajectoryConstraints(2.0, 1.0, 10.0, 10.0, 100.0, max_linear_deceleration=0.5)
        fast = generate_trajectory(straight_poses, symmetric).duration.value
        slow = generate_trajectory(straight_poses, gentle_stop).duration.value
        # Stopping from 2 m/s at 0.5 m/s^2 takes 4 s over 4 m instead of 2 s over 2 m
        assert slow - fast == pytest.approx(1.0, abs=0.1)


class TestCurvedPaths:
    def test_centripetal_limit_on_arc(self, arc_spline):
        constraints = TrajectoryConstraints(
            max_linear_velocity=5.0,
            max_linear_acceleration=2.0,
            max_angular_velocity=10.0,
            max_angular_acceleration=10.0,
            max_centripetal_acceleration=1.0,
        )
        points = generate_profile(sample_curve(arc_spline), constraints)
        speed = np.array([p.speed.value for p in points])
        curvature = np.array([p.curve_pose.curvature for p in points])

        assert np.all(speed**2 * np.abs(curvature) <= 1.0 + 1e-9)
        # Radius 2 m: v <= sqrt(a_c * R)
        assert np.max(speed) <= math.sqrt(2.0) + 0.05
        assert np.all(np.diff([p.time.value for p in points]) > 0)

    def test_heading_rotation_limits_speed(self, turning_line):
        constraints = TrajectoryConstraints(
            max_linear_velocity=2.0,
            max_linear_acceleration=1.0,
            max_angular_velocity=0.5,
            max_angular_acceleration=10.0,
            max_centripetal_acceleration=100.0,
        )
        trajectory = generate_trajectory(sample_curve(turning_line), constraints)
        points = trajectory.points

        for point in points:
            assert point.speed.value * abs(point.rotation_curvature.value) <= 0.5 + 1e-9

        # Heading and position share the same easing, so dθ/ds is constant
        rotation_curvature = [p.rotation_curvature.value for p in points[1:]]
        assert np.allclose(rotation_curvature, (math.pi / 2) / 4.0)
        assert max(p.speed.value for p in points) == pytest.approx(0.5 / ((math.pi / 2) / 4.0), rel=1e-6)
        assert points[-1].angular_displacement.value == pytest.approx(math.pi / 2)
        assert points[-1].pose.heading == pytest.approx(math.pi / 2)


class TestFailures:
    def test_too_few_poses(self, generous_constraints):
        with pytest.raises(TrajectoryGenerationError):
            generate_profile([], generous_constraints)
        with pytest.raises(TrajectoryGenerationError):
            generate_profile(_line_poses([0.0]), generous_constraints)

    def test_zero_displacement(self, generous_constraints):
        with pytest.raises(TrajectoryGenerationError) as exc_info:
            generate_profile(_line_poses([0.0, 1.0, 1.0, 2.0]), generous_constraints)
        assert "points 1 and 2" in str(exc_info.value)

    def test_non_finite_input(self, generous_constraints):
        poses = _line_poses([0.0, 1.0, 2.0])
        poses[1] = CurvePose(poses[1].pose, math.nan, poses[1].parameter)
        with pytest.raises(TrajectoryGenerationError):
            generate_profile(poses, generous_constraints)

    def test_unknown_policy(self, generous_constraints):
        with pytest.raises(ValueError):
            generate_profile(_line_poses([0.0, 1.0]), generous_constraints, approximation_policy="ignore")

    def test_error_message_prefix(self):
        error = TrajectoryGenerationError("boom")
        assert str(error) == "Trajectory Generation Error: boom"
        assert error.original_message == "boom"


class TestApproximationPolicy:
    @pytest.fixture
    def always_approximate(self, monkeypatch):
        real = profile.combined_velocity

        def flagged(*args):
            velocity, _ = real(*args)
            return velocity, 0.25

        monkeypatch.setattr(profile, "combined_velocity", flagged)

    def test_raise_policy(self, always_approximate, generous_constraints):
        with pytest.raises(ConstraintApproximationError) as exc_info:
            generate_profile(_line_poses([0.0, 1.0, 2.0]), generous_constraints, approximation_policy="raise")
        assert exc_info.value.index == 1

    def test_configured_default_policy(self, always_approximate, generous_constraints, monkeypatch):
        monkeypatch.setattr(config, "APPROXIMATION_POLICY", "raise")
        with pytest.raises(ConstraintApproximationError):
            generate_profile(_line_poses([0.0, 1.0, 2.0]), generous_constraints)

    def test_warn_policy_logs_warnings(self, always_approximate, generous_constraints, caplog):
        caplog.set_level(logging.WARNING, logger="holopath.motion.profile")
        points = generate_profile(_line_poses([0.0, 1.0, 2.0]), generous_constraints, approximation_policy="warn")
        assert len(points) == 3
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        # Forward and backward pass each visit two points
        assert len(warnings) == 4
        assert "Constraint approximation at point 1" in warnings[0].getMessage()

    def test_approximate_policy_stays_quiet(self, always_approximate, generous_constraints, caplog):
        caplog.set_level(logging.DEBUG, logger="holopath.motion.profile")
        generate_profile(_line_poses([0.0, 1.0, 2.0]), generous_constraints, approximation_policy="approximate")
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert any("Constraint approximation" in r.getMessage() for r in caplog.records)

    def test_callback_receives_events(self, always_approximate, generous_constraints):
        events = []
        generate_profile(
            _line_poses([0.0, 1.0, 2.0, 3.0]),
            generous_constraints,
            approximation_policy="approximate",
            on_approximation=events.append,
        )
        assert len(events) == 6
        assert all(isinstance(e, ApproximationEvent) for e in events)
        assert [e.index for e in events] == [1, 2, 3, 2, 1, 0]
        assert all(e.gap == 0.25 for e in events)

    def test_callback_runs_before_raise(self, always_approximate, generous_constraints):
        events = []
        with pytest.raises(ConstraintApproximationError):
            generate_profile(
                _line_poses([0.0, 1.0]),
                generous_constraints,
                approximation_policy="raise",
                on_approximation=events.append,
            )
        assert len(events) == 1

    def test_no_approximation_on_straight_line(self, straight_poses, generous_constraints):
        events = []
        generate_profile(straight_poses, generous_constraints, approximation_policy="raise", on_approximation=events.append)
        assert events == []


class TestVelocityMath:
    def test_combined_velocity_unconstrained_rotation(self):
        velocity, gap = combined_velocity(1.0, 0.5, 0.0, 0.0, 1.0, 1.0)
        assert gap is None
        assert velocity == pytest.approx(math.sqrt(2.0))

    def test_combined_velocity_fallback(self):
        # Heading must start turning at 1 rad/m within 1 cm while moving at 1 m/s
        velocity, gap = combined_velocity(1.0, 0.01, 0.0, 1.0, 1.0, 1.0)
        assert gap == pytest.approx(0.970335, abs=1e-5)
        assert velocity == pytest.approx(0.504783, abs=1e-5)

    def test_rotational_ranges_without_rotation(self):
        (only,) = rotational_velocity_ranges(0.0, 0.0, 1.0, 0.1, 1.0)
        assert only.min == -math.inf and only.max == math.inf

    def test_rotational_ranges_split_into_two(self):
        ranges = rotational_velocity_ranges(0.0, 1.0, 1.0, 0.01, 1.0)
        assert len(ranges) == 2
        assert ranges[1].min == pytest.approx(-0.020416, abs=1e-5)
        assert ranges[1].max == pytest.approx(0.019615, abs=1e-5)

    def test_coupled_bound_without_rotation_is_unbounded(self):
        assert coupled_velocity_bound(0.0, 0.0, 0.1, 1.0, 1.0, 2.0) == math.inf
        assert coupled_velocity_bound(0.3, 0.3, 0.1, 1.0, 1.0, 2.0) == math.inf

    def test_coupled_bound_closed_form(self):
        bound = coupled_velocity_bound(0.2, 0.5, 0.1, 1.0, 2.0, 5.0)
        assert bound == pytest.approx(math.sqrt(0.2 * 2.5**2 / (4.7 * 0.3)))

    def test_coupled_bound_is_mirror_symmetric(self):
        assert coupled_velocity_bound(-0.2, -0.5, 0.1, 1.0, 2.0, 5.0) == pytest.approx(
            coupled_velocity_bound(0.2, 0.5, 0.1, 1.0, 2.0, 5.0)
        )

    @pytest.mark.parametrize("c_i1, c_i", [(0.5, -0.2), (-0.5, 0.2)])
    def test_coupled_bound_curvature_sign_change(self, c_i1, c_i):
        bound = coupled_velocity_bound(c_i1, c_i, 0.1, 1.0, 2.0, 5.0)
        assert bound == pytest.approx(math.sqrt(0.2 * 2.2**2 / (0.7 * 3.7)))

    @pytest.mark.parametrize("c_i1", [0.5, -0.5])
    def test_coupled_bound_leaving_straight_rotation(self, c_i1):
        bound = coupled_velocity_bound(c_i1, 0.0, 0.1, 1.0, 2.0, 5.0)
        assert bound == pytest.approx(math.sqrt(0.2 * 2.0**2 / (0.5 * 3.5)))

    def test_coupled_bound_skips_undefined_sub_bound(self):
        # ci1 * at > 2 * aw leaves only the angular-velocity-limited speed
        bound = coupled_velocity_bound(5.0, 0.0, 0.1, 1.0, 2.0, 5.0)
        assert bound == pytest.approx(math.sqrt(2 * 0.1 * 2.0 / 5.0))

    def test_coupled_bound_rejects_nan(self):
        with pytest.raises(TrajectoryGenerationError):
            coupled_velocity_bound(math.nan, 0.5, 0.1, 1.0, 2.0, 5.0)

    @pytest.mark.parametrize(
        "ds, v0, v1, expected",
        [
            (1.0, 1.0, 1.0, 1.0),
            (2.0, 0.0, 2.0, 2.0),
            (2.0, 2.0, 0.0, 2.0),
            (0.0, 1.0, 1.0, 0.0),
        ],
    )
    def test_movement_time(self, ds, v0, v1, expected):
        assert movement_time(ds, v0, v1) == pytest.approx(expected)

    def test_movement_time_undefined(self):
        with pytest.raises(TrajectoryGenerationError):
            movement_time(1.0, 0.0, 0.0)
        with pytest.raises(TrajectoryGenerationError):
            movement_time(0.0, 1.0, 2.0)


class TestConstraints:
    @pytest.mark.parametrize("bad", [0.0, -1.0, math.nan, math.inf])
    def test_limits_must_be_positive_and_finite(self, bad):
        with pytest.raises(ValueError):
            TrajectoryConstraints(bad, 1.0, 1.0, 1.0, 1.0)
        with pytest.raises(ValueError):
            TrajectoryConstraints(1.0, 1.0, 1.0, 1.0, 1.0, max_linear_deceleration=bad)

    def test_deceleration_defaults_to_acceleration(self):
        constraints = TrajectoryConstraints(2.0, 1.5, 1.0, 1.0, 1.0)
        assert constraints.max_linear_deceleration == 1.5
        assert constraints.as_dict()["max_linear_deceleration"] == 1.5

    def test_unit_scalars_are_accepted(self):
        constraints = TrajectoryConstraints(Velocity.of(2.0), 1.0, 1.0, 1.0, 1.0)
        assert constraints.max_linear_velocity == 2.0
        assert isinstance(constraints.max_linear_velocity, float)

    def test_validate_flags_violations(self, straight_poses, generous_constraints):
        points = generate_profile(straight_poses, generous_constraints)
        tight = TrajectoryConstraints(1.0, 0.5, 1.0, 1.0, 1.0)
        report = tight.validate(points)
        assert not report["velocity_ok"]
        assert not report["acceleration_ok"]
        assert report["max_velocity"] == pytest.approx(2.0)
