"""Default configuration values for slippymap."""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

TILE_SIZE: Final[int] = 256
EARTH_RADIUS_M: Final[float] = 6378137.0
MAX_LATITUDE: Final[float] = 85.0511287798

# Stale layouts more than this many rounded zoom levels away are not drawn.
MAX_STALE_ZOOM_DISTANCE: Final[int] = 4

# ---------------------------------------------------------------------------
# Animation timings (milliseconds)
# ---------------------------------------------------------------------------

ANIMATION_TIME_MS: Final[float] = 300.0

# A throw that covers a full viewport diagonal runs for this long. Shorter
# throws scale down proportionally.
DIAGONAL_THROW_TIME_MS: Final[float] = 1500.0

# ---------------------------------------------------------------------------
# Gesture interpretation
# ---------------------------------------------------------------------------

SCROLL_PIXELS_FOR_ZOOM_LEVEL: Final[float] = 150.0
MIN_DRAG_FOR_THROW: Final[float] = 40.0
CLICK_TOLERANCE_PX: Final[float] = 2.0

# Minimum spacing between two retained move samples.
MOVE_SAMPLE_INTERVAL_MS: Final[float] = 40.0
MOVE_SAMPLE_LIMIT: Final[int] = 2

# Velocities are expressed as pixels travelled per this many milliseconds.
THROW_VELOCITY_WINDOW_MS: Final[float] = 120.0

# No throw starts for this long after the second finger of a pinch lifts.
PINCH_RELEASE_THROW_DELAY_MS: Final[float] = 300.0

DOUBLE_CLICK_ZOOM_STEP: Final[float] = 2.0

# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

BOUNDS_DEBOUNCE_MS: Final[float] = 60.0
WARNING_DISPLAY_TIMEOUT_MS: Final[float] = 300.0

# Programmatic moves below these thresholds are treated as "no change".
PROGRAMMATIC_ZOOM_EPSILON: Final[float] = 0.001
PROGRAMMATIC_CENTER_EPSILON: Final[float] = 0.0001

# Committed moves below these thresholds do not schedule a bounds update.
SYNC_ZOOM_EPSILON: Final[float] = 0.001
SYNC_CENTER_EPSILON: Final[float] = 0.00001

# ---------------------------------------------------------------------------
# Host adapter
# ---------------------------------------------------------------------------

FRAME_INTERVAL_MS: Final[int] = 16
