"""The viewport state machine shared by every host front-end."""

from __future__ import annotations

import logging
import math
import sys
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from ..config import (
    ANIMATION_TIME_MS,
    BOUNDS_DEBOUNCE_MS,
    PROGRAMMATIC_CENTER_EPSILON,
    PROGRAMMATIC_ZOOM_EPSILON,
    SYNC_CENTER_EPSILON,
    SYNC_ZOOM_EPSILON,
    TILE_SIZE,
    WARNING_DISPLAY_TIMEOUT_MS,
)
from ..errors import ViewportInvariantError
from ..settings.schema import MapOptions
from ..signal import Signal
from .animator import AnimationController
from .bounds import BoundsLimiter
from .events import ClickEvent, PointerEvent, TouchEvent, WheelEvent
from .geometry import Bounds, GeoPoint, PixelPoint
from .input_handler import WARNING_FINGERS, GestureInterpreter
from .projection import (
    lat_lng_to_pixel,
    lat_to_tile_y,
    lng_to_tile_x,
    pixel_to_lat_lng,
    tile_x_to_lng,
    tile_y_to_lat,
)
from .tile_collector import TileLayout, layout_tiles
from .tile_manager import TileLoadTracker
from .viewport import ViewportState, compute_state_tile_values, round_zoom

_LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class BoundsChangedEvent:
    """Payload of :attr:`MapViewport.bounds_changed`."""

    center: GeoPoint
    zoom: float
    bounds: Bounds
    initial: bool


class MapViewport:
    """Own the camera state and every transition applied to it.

    Hosts feed toolkit-neutral input events and resizes in, call :meth:`tick`
    once per frame while :attr:`needs_tick` is true and read the published
    :attr:`state` snapshot and :meth:`tile_layout` to render. Observers
    subscribe to the :class:`~slippymap.signal.Signal` attributes.
    """

    def __init__(
        self,
        options: MapOptions | Mapping[str, Any] | None = None,
        *,
        clock: Clock | None = None,
        now: float | None = None,
    ) -> None:
        """Validate *options* and schedule the initial bounds notification.

        Parameters
        ----------
        options:
            Either ready :class:`MapOptions` or a mapping merged over the
            defaults and validated; invalid input raises
            :class:`~slippymap.errors.OptionsValidationError`.
        clock:
            Millisecond clock used whenever a caller does not pass ``now``.
        now:
            Creation time on the host's timebase; the initial notification
            is due :data:`~slippymap.config.BOUNDS_DEBOUNCE_MS` after it.
        """

        if not isinstance(options, MapOptions):
            options = MapOptions.from_mapping(options)
        self._options = options
        self._clock = clock or _monotonic_ms

        self.bounds_changed = Signal()
        self.animation_started = Signal()
        self.animation_stopped = Signal()
        self.clicked = Signal()
        self.warning_changed = Signal()

        self._limiter = BoundsLimiter(options.limit_bounds)
        self._tracker = TileLoadTracker()
        self.tiles_changed = self._tracker.tiles_changed

        self._animator = AnimationController(
            zoom_center=self.calculate_zoom_center,
            on_animation_frame=self._on_animation_frame,
            on_animation_complete=self._on_animation_complete,
        )
        self._gestures = GestureInterpreter(self)

        zoom = self._clamp_zoom(options.zoom)
        self._state = ViewportState(GeoPoint(0.0, 0.0), zoom, options.width, options.height)
        center = self.limit_center(GeoPoint(*options.center), zoom)
        self._state = replace(self._state, center=center)

        self._last_synced_center = center
        self._last_synced_zoom = zoom
        self._host_time: float | None = None
        self._frame_time: float | None = None
        self._pending_bounds: tuple[GeoPoint, float] | None = None
        self._bounds_deadline = 0.0
        self._bounds_deadline_on_clock = False
        self._bounds_synced = False

        self._warning: str | None = None
        self._warning_deadline = 0.0
        self._disposed = False

        self._schedule_bounds_notification(center, zoom, now)

    # ------------------------------------------------------------------
    # Published state
    # ------------------------------------------------------------------
    @property
    def options(self) -> MapOptions:
        return self._options

    @property
    def state(self) -> ViewportState:
        return self._state

    @property
    def gestures(self) -> GestureInterpreter:
        return self._gestures

    @property
    def warning(self) -> str | None:
        return self._warning

    def is_animating(self) -> bool:
        return self._animator.is_animating()

    @property
    def animation_target_zoom(self) -> float | None:
        return self._animator.target_zoom

    @property
    def needs_tick(self) -> bool:
        """``True`` while an animation, notification or warning is pending."""

        if self._disposed:
            return False
        return self._animator.is_animating() or self._pending_bounds is not None or self._warning is not None

    def now(self) -> float:
        """Return the current time on the viewport's millisecond clock."""

        return self._now(None)

    def _now(self, now: float | None) -> float:
        if now is not None:
            return now
        if self._host_time is not None:
            return self._host_time
        return self._clock()

    # ------------------------------------------------------------------
    # Coordinate conversions
    # ------------------------------------------------------------------
    def lat_lng_to_pixel(
        self,
        point: GeoPoint,
        center: GeoPoint | None = None,
        zoom: float | None = None,
    ) -> PixelPoint:
        """Return the container pixel of *point*.

        Without an explicit camera the current state including any
        uncommitted gesture delta is used.
        """

        state = self._state
        if center is None and zoom is None:
            return lat_lng_to_pixel(
                point, state.center, state.effective_zoom, state.width, state.height, state.pixel_delta
            )
        return lat_lng_to_pixel(
            point,
            state.center if center is None else center,
            state.effective_zoom if zoom is None else zoom,
            state.width,
            state.height,
        )

    def pixel_to_lat_lng(
        self,
        pixel: PixelPoint,
        center: GeoPoint | None = None,
        zoom: float | None = None,
    ) -> GeoPoint:
        """Inverse of :meth:`lat_lng_to_pixel`."""

        state = self._state
        if center is None and zoom is None:
            return pixel_to_lat_lng(
                pixel, state.center, state.effective_zoom, state.width, state.height, state.pixel_delta
            )
        return pixel_to_lat_lng(
            pixel,
            state.center if center is None else center,
            state.effective_zoom if zoom is None else zoom,
            state.width,
            state.height,
        )

    def get_bounds(self, center: GeoPoint | None = None, zoom: float | None = None) -> Bounds:
        """Return the corners of the visible area."""

        state = self._state
        return Bounds(
            ne=self.pixel_to_lat_lng(PixelPoint(state.width - 1, 0), center, zoom),
            sw=self.pixel_to_lat_lng(PixelPoint(0, state.height - 1), center, zoom),
        )

    def coords_inside(self, pixel: PixelPoint) -> bool:
        state = self._state
        return 0 <= pixel.x < state.width and 0 <= pixel.y < state.height

    def calculate_zoom_center(
        self,
        center: GeoPoint,
        anchor: GeoPoint,
        old_zoom: float,
        new_zoom: float,
    ) -> GeoPoint:
        """Return the centre that keeps *anchor* on the same pixel at *new_zoom*."""

        state = self._state
        before = lat_lng_to_pixel(anchor, center, old_zoom, state.width, state.height)
        after = lat_lng_to_pixel(anchor, center, new_zoom, state.width, state.height)
        new_center = pixel_to_lat_lng(
            PixelPoint(state.width / 2.0 + after.x - before.x, state.height / 2.0 + after.y - before.y),
            center,
            new_zoom,
            state.width,
            state.height,
        )
        return self.limit_center(new_center, new_zoom)

    def limit_center(self, center: GeoPoint, zoom: float) -> GeoPoint:
        """Clamp *center* to the active bounds policy at *zoom*."""

        state = self._state
        return self._limiter.limit_center(center, zoom, state.width, state.height, fallback=state.center)

    def distance_in_screens(self, center: GeoPoint, zoom: float) -> float:
        """Estimate how many screens away ``(center, zoom)`` is from the current view."""

        state = self._state
        if not state.has_size:
            return math.inf

        here_now = self.lat_lng_to_pixel(state.center, state.center, state.zoom)
        there_now = self.lat_lng_to_pixel(center, state.center, state.zoom)
        here_then = self.lat_lng_to_pixel(state.center, state.center, zoom)
        there_then = self.lat_lng_to_pixel(center, state.center, zoom)

        width = (abs(here_now.x - there_now.x) + abs(here_then.x - there_then.x)) / 2.0 / state.width
        height = (abs(here_now.y - there_now.y) + abs(here_then.y - there_then.y)) / 2.0 / state.height
        return math.hypot(width, height)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def resize(self, width: float, height: float, now: float | None = None) -> None:
        """Apply a new container size and re-limit the centre."""

        state = self._state
        if width == state.width and height == state.height:
            return
        self._state = replace(state, width=float(width), height=float(height))
        center = self.limit_center(state.center, state.zoom)
        self._state = replace(self._state, center=center)
        self._schedule_bounds_notification(center, state.zoom, now)

    def set_pixel_delta(self, pixel_delta: PixelPoint | None) -> None:
        self._state = replace(self._state, pixel_delta=pixel_delta)

    def set_gesture_delta(self, pixel_delta: PixelPoint | None, zoom_delta: float) -> None:
        self._state = replace(self._state, pixel_delta=pixel_delta, zoom_delta=zoom_delta)

    def commit_delta(self) -> tuple[GeoPoint, float]:
        """Fold the uncommitted gesture delta into centre and zoom."""

        state = self._state
        if state.pixel_delta is None and not state.zoom_delta:
            return state.center, state.zoom

        zoom = state.effective_zoom
        delta_x = state.pixel_delta.x if state.pixel_delta is not None else 0.0
        delta_y = state.pixel_delta.y if state.pixel_delta is not None else 0.0
        center = GeoPoint(
            tile_y_to_lat(lat_to_tile_y(state.center.lat, zoom) - delta_y / TILE_SIZE, zoom),
            tile_x_to_lng(lng_to_tile_x(state.center.lng, zoom) - delta_x / TILE_SIZE, zoom),
        )
        self._state = replace(state, pixel_delta=None, zoom_delta=0.0)
        self.set_center_zoom(center, zoom)
        return self._state.center, self._state.zoom

    def set_center_zoom(
        self,
        center: GeoPoint | None,
        zoom: float,
        animation_ended: bool = False,
        now: float | None = None,
    ) -> None:
        """Commit a new camera, limiting it and tracking tile transitions."""

        if math.isnan(zoom):
            raise ViewportInvariantError("Cannot commit a NaN zoom level")

        previous = self._state
        zoom = self._clamp_zoom(zoom)
        limited = self.limit_center(previous.center if center is None else center, zoom)
        following = replace(previous, center=limited, zoom=zoom, pixel_delta=None, zoom_delta=0.0)

        if round_zoom(previous.zoom) != round_zoom(zoom):
            self._tracker.begin_transition(
                compute_state_tile_values(previous),
                compute_state_tile_values(following),
            )
        self._state = following

        if (
            animation_ended
            or abs(self._last_synced_zoom - zoom) > SYNC_ZOOM_EPSILON
            or abs(self._last_synced_center.lat - limited.lat) > SYNC_CENTER_EPSILON
            or abs(self._last_synced_center.lng - limited.lng) > SYNC_CENTER_EPSILON
        ):
            self._last_synced_center = limited
            self._last_synced_zoom = zoom
            self._schedule_bounds_notification(limited, zoom, now)

    def set_center_zoom_target(
        self,
        center: GeoPoint | None,
        zoom: float,
        *,
        zoom_around: GeoPoint | None = None,
        duration: float = ANIMATION_TIME_MS,
        now: float | None = None,
    ) -> None:
        """Move to ``(center, zoom)``, animated when animation is enabled.

        With *zoom_around* the centre is derived so that geographic point
        stays under the same pixel for the whole transition.
        """

        state = self._state
        if not self._options.animate:
            if zoom_around is not None:
                center = self.calculate_zoom_center(state.center, zoom_around, state.zoom, zoom)
            self.set_center_zoom(center, zoom, now=now)
            return

        started = self._animator.start(
            current_center=state.center,
            current_zoom=state.zoom,
            target_center=center,
            target_zoom=zoom,
            duration=duration,
            now=self._now(now),
            anchor=zoom_around,
        )
        if started:
            self.animation_started.emit()

    def set_view(self, center: GeoPoint, zoom: float, now: float | None = None) -> None:
        """Navigate programmatically, animating short moves and jumping long ones."""

        spec = self._animator.spec
        if spec is not None:
            current_center, current_zoom = spec.target_center, spec.target_zoom
        else:
            current_center, current_zoom = self._state.center, self._state.zoom

        if (
            abs(current_zoom - zoom) <= PROGRAMMATIC_ZOOM_EPSILON
            and abs(current_center.lat - center.lat) <= PROGRAMMATIC_CENTER_EPSILON
            and abs(current_center.lng - center.lng) <= PROGRAMMATIC_CENTER_EPSILON
        ):
            return

        distance = self.distance_in_screens(center, zoom)
        if self._options.animate and distance <= self._options.animate_max_screens:
            self.set_center_zoom_target(center, zoom, now=now)
        else:
            self.stop_animating()
            self.set_center_zoom(center, zoom, now=now)

    def stop_animating(self) -> None:
        if self._animator.stop():
            _LOGGER.debug("Animation stopped at zoom %.3f", self._state.zoom)
            self.animation_stopped.emit()

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------
    def tick(self, now: float | None = None) -> bool:
        """Advance animation, notifications and warnings to *now*.

        A host that passes *now* drives the viewport on its own timebase:
        later calls without an explicit time use the latest *now*, and a
        notification scheduled on the fallback clock becomes due
        :data:`~slippymap.config.BOUNDS_DEBOUNCE_MS` after it.

        Returns :attr:`needs_tick` so hosts can stop their frame timer.
        """

        if self._disposed:
            return False
        if now is not None:
            if self._pending_bounds is not None and self._bounds_deadline_on_clock:
                self._bounds_deadline = now + BOUNDS_DEBOUNCE_MS
                self._bounds_deadline_on_clock = False
            self._host_time = now
        now = self._now(now)

        self._frame_time = now
        try:
            self._animator.tick(now)
        finally:
            self._frame_time = None

        if self._pending_bounds is not None and now >= self._bounds_deadline:
            self.flush_notifications()
        if self._warning is not None and now >= self._warning_deadline:
            self.clear_warning()
        return self.needs_tick

    def flush_notifications(self) -> None:
        """Publish a pending bounds notification immediately."""

        pending = self._pending_bounds
        if pending is None:
            return
        self._pending_bounds = None
        center, zoom = pending
        event = BoundsChangedEvent(
            center=center,
            zoom=zoom,
            bounds=self.get_bounds(center, zoom),
            initial=not self._bounds_synced,
        )
        self._bounds_synced = True
        self.bounds_changed.emit(event)

    def _schedule_bounds_notification(self, center: GeoPoint, zoom: float, now: float | None) -> None:
        self._pending_bounds = (center, zoom)
        self._bounds_deadline_on_clock = now is None and self._host_time is None
        self._bounds_deadline = self._now(now) + BOUNDS_DEBOUNCE_MS

    def _on_animation_frame(self, center: GeoPoint, zoom: float) -> None:
        self.set_center_zoom(center, zoom, now=self._frame_time)

    def _on_animation_complete(self, center: GeoPoint, zoom: float) -> None:
        self.set_center_zoom(center, zoom, animation_ended=True, now=self._frame_time)
        _LOGGER.debug("Animation finished at %s @ %.3f", center, zoom)
        self.animation_stopped.emit()

    # ------------------------------------------------------------------
    # Warnings
    # ------------------------------------------------------------------
    def show_warning(self, kind: str, now: float | None = None) -> None:
        """Display the *kind* warning until 300ms after the last request."""

        if self._warning != kind:
            self._warning = kind
            _LOGGER.debug("Showing %s warning", kind)
            self.warning_changed.emit(True, kind)
        self._warning_deadline = self._now(now) + WARNING_DISPLAY_TIMEOUT_MS

    def clear_warning(self) -> None:
        kind = self._warning
        if kind is None:
            return
        self._warning = None
        self.warning_changed.emit(False, kind)

    def warning_text(self) -> str | None:
        """Return the message for the active warning, or ``None``."""

        if self._warning is None:
            return None
        if self._warning == WARNING_FINGERS:
            text = self._options.two_finger_drag_warning
        else:
            text = self._options.meta_wheel_zoom_warning
        return text.replace("META", "⌘" if sys.platform == "darwin" else "⊞")

    # ------------------------------------------------------------------
    # Tiles
    # ------------------------------------------------------------------
    def tile_layout(self) -> TileLayout:
        """Return the tiles to draw for the current state, stale ones first."""

        return layout_tiles(compute_state_tile_values(self._state), self._tracker.stale_values)

    def mark_tile_loaded(self, key: str) -> bool:
        return self._tracker.mark_loaded(key)

    def mark_tile_missing(self, key: str) -> bool:
        return self._tracker.mark_missing(key)

    def pending_tiles(self) -> set[str]:
        return self._tracker.pending_tiles()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------
    def report_click(self, click: ClickEvent) -> None:
        self.clicked.emit(click)

    def handle_mouse_press(self, event: PointerEvent) -> bool:
        return self._gestures.handle_mouse_press(event)

    def handle_mouse_move(self, event: PointerEvent) -> None:
        self._gestures.handle_mouse_move(event)

    def handle_mouse_release(self, event: PointerEvent) -> None:
        self._gestures.handle_mouse_release(event)

    def handle_double_click(self, event: PointerEvent) -> None:
        self._gestures.handle_double_click(event)

    def handle_touch_start(self, event: TouchEvent) -> None:
        self._gestures.handle_touch_start(event)

    def handle_touch_move(self, event: TouchEvent) -> None:
        self._gestures.handle_touch_move(event)

    def handle_touch_end(self, event: TouchEvent) -> None:
        self._gestures.handle_touch_end(event)

    def handle_wheel_event(self, event: WheelEvent) -> bool:
        return self._gestures.handle_wheel_event(event)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def dispose(self) -> None:
        """Cancel pending work and disconnect every observer."""

        if self._disposed:
            return
        self._disposed = True
        self._animator.stop()
        self._pending_bounds = None
        self._warning = None
        self._gestures.reset()
        self._tracker.reset()
        for signal in (
            self.bounds_changed,
            self.animation_started,
            self.animation_stopped,
            self.clicked,
            self.warning_changed,
            self.tiles_changed,
        ):
            signal.disconnect_all()

    def _clamp_zoom(self, zoom: float) -> float:
        return max(self._options.min_zoom, min(self._options.max_zoom, float(zoom)))


__all__ = ["BoundsChangedEvent", "MapViewport"]
