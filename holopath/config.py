"""
Central configuration for holopath tunables and shared constants.
"""

import logging
import math
import os
import sys

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")
# Add Logger.trace if missing
if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

TRACE_ENABLED = str(os.getenv("HOLOPATH_TRACE", "0")).lower() in ("1", "true", "yes", "on")

logger = logging.getLogger(__name__)

LOG_LEVEL_DEFAULT: str = os.getenv("HOLOPATH_LOG_LEVEL", "INFO")


def setup_logging(verbosity_level: str | None = None) -> None:
    """Configure logging for scripts and notebooks using holopath.

    Args:
        verbosity_level: 'TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'
            or None for LOG_LEVEL_DEFAULT
    """
    name = (verbosity_level or LOG_LEVEL_DEFAULT).upper()
    level = TRACE if name == "TRACE" else getattr(logging, name, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("holopath").setLevel(level)


# Small-angle threshold shared by the SE(2) exponential and logarithm maps
SMALL_ANGLE_EPS: float = 1e-9

# Spline arc length (uniform piecewise-linear samples)
ARC_LENGTH_SAMPLES: int = int(os.getenv("HOLOPATH_ARC_LENGTH_SAMPLES", "1024"))

# Arc-length -> parameter lookup resolution
ARC_PARAMETERIZATION_SAMPLES: int = int(os.getenv("HOLOPATH_ARC_PARAMETERIZATION_SAMPLES", "8192"))

# Projection: coarse scan then coordinate descent
PROJECTION_SAMPLES: int = 128
PROJECTION_DESCENT_STEPS: int = 32
PROJECTION_DESCENT_FALLOFF: float = 1.25

# Adaptive curve sampling defaults (meters, meters, radians)
SAMPLING_ADMISSIBLE_DX: float = float(os.getenv("HOLOPATH_SAMPLING_DX", "0.1"))
SAMPLING_ADMISSIBLE_DY: float = float(os.getenv("HOLOPATH_SAMPLING_DY", "0.1"))
SAMPLING_ADMISSIBLE_DTHETA: float = float(os.getenv("HOLOPATH_SAMPLING_DTHETA", str(math.pi / 32)))
SAMPLING_MIN_WIDTH: float = float(os.getenv("HOLOPATH_SAMPLING_MIN_WIDTH", "1e-5"))
SAMPLING_MAX_ITERATIONS: int = int(os.getenv("HOLOPATH_SAMPLING_MAX_ITERATIONS", "65536"))

# Preview playback rate (Hz)
PREVIEW_RATE_HZ: float = float(os.getenv("HOLOPATH_PREVIEW_RATE_HZ", "100"))

# Behaviour when the combined velocity pass finds no admissible velocity
APPROXIMATION_POLICIES: tuple[str, ...] = ("approximate", "warn", "raise")


def _parse_approximation_policy() -> str:
    raw = os.getenv("HOLOPATH_APPROXIMATION_POLICY")
    if not raw:
        return "approximate"
    policy = raw.strip().lower()
    if policy not in APPROXIMATION_POLICIES:
        logger.warning(
            f"Unknown HOLOPATH_APPROXIMATION_POLICY {raw!r}, falling back to 'approximate'"
        )
        return "approximate"
    return policy


APPROXIMATION_POLICY: str = _parse_approximation_policy()


def resolve_approximation_policy(policy: str | None) -> str:
    """
    Resolve an explicit approximation policy against the configured default.

    Args:
        policy: One of APPROXIMATION_POLICIES, or None for the configured default

    Returns:
        The policy to apply
    """
    if policy is None:
        return APPROXIMATION_POLICY
    if policy not in APPROXIMATION_POLICIES:
        raise ValueError(
            f"approximation_policy must be one of {APPROXIMATION_POLICIES}, got {policy!r}"
        )
    return policy
