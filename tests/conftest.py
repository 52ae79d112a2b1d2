"""
Pytest configuration and shared fixtures for the holopath test suite.

Provides the slow-test switch, constraint sets and a few canonical paths used
across the unit tests.
"""

import logging
import math
import os
import sys

import pytest

# Add the parent directory to Python path so we can import the package
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from holopath.motion import TrajectoryConstraints
from holopath.splines import (
    HolonomicSpline,
    QuinticSpline,
    QuinticSplineSegment,
    Waypoint,
    build_heading_spline,
    build_spline,
)

logger = logging.getLogger(__name__)


# ============================================================================
# PYTEST COMMAND LINE OPTIONS
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options for the test suite."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (dense sampling, long paths)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests that test individual components in isolation")
    config.addinivalue_line("markers", "slow: Slow-running tests (dense sampling or long paths)")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if not config.getoption("--run-slow"):
        skip_slow = pytest.mark.skip(reason="Slow tests disabled (use --run-slow to enable)")
        for item in items:
            if item.get_closest_marker("slow"):
                item.add_marker(skip_slow)


# ============================================================================
# CONSTRAINTS
# ============================================================================


@pytest.fixture
def generous_constraints() -> TrajectoryConstraints:
    """Limits loose enough that only the linear ones matter on gentle paths."""
    return TrajectoryConstraints(
        max_linear_velocity=2.0,
        max_linear_acceleration=1.0,
        max_angular_velocity=10.0,
        max_angular_acceleration=10.0,
        max_centripetal_acceleration=100.0,
    )


# ============================================================================
# PATHS
# ============================================================================


@pytest.fixture
def straight_spline() -> QuinticSpline:
    """Single segment from (0, 0) to (10, 0), at rest at both ends."""
    return build_spline([Waypoint([0.0, 0.0]), Waypoint([10.0, 0.0])])


def circle_arc_spline(radius: float, quarters: int = 2) -> QuinticSpline:
    """
    Counter-clockwise arc of ``quarters`` quarter circles centred at the origin,
    starting at (radius, 0). Each quarter is one segment matching the circle's
    position, velocity and acceleration at its ends.
    """
    speed = radius * math.pi / 2.0
    accel = radius * (math.pi / 2.0) ** 2

    def state(angle):
        c, s = math.cos(angle), math.sin(angle)
        return [radius * c, radius * s], [-speed * s, speed * c], [-accel * c, -accel * s]

    spline = QuinticSpline()
    for i in range(quarters):
        p0, v0, a0 = state(i * math.pi / 2.0)
        p1, v1, a1 = state((i + 1) * math.pi / 2.0)
        spline.add(QuinticSplineSegment(p0, v0, a0, a1, v1, p1))
    return spline


@pytest.fixture
def arc_spline() -> QuinticSpline:
    """Half circle of radius 2 m."""
    return circle_arc_spline(2.0)


@pytest.fixture
def turning_line() -> HolonomicSpline:
    """Straight 4 m line whose heading turns from 0 to pi/2 on the way."""
    translation = build_spline([Waypoint([0.0, 0.0]), Waypoint([4.0, 0.0])])
    heading = build_heading_spline([(0.0, 0.0), (1.0, math.pi / 2.0)])
    return HolonomicSpline(translation, heading)
