"""Logic for translating pointer, touch and wheel input into viewport transitions.

The interpreter never writes viewport fields itself. Every reaction is a
request on the owning viewport (see :class:`SupportsGestures`): uncommitted
deltas while a finger or the mouse is down, commits on release, and animation
requests for throws, wheel steps, double clicks and pinch snapping.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Protocol

from ..config import (
    ANIMATION_TIME_MS,
    CLICK_TOLERANCE_PX,
    DIAGONAL_THROW_TIME_MS,
    DOUBLE_CLICK_ZOOM_STEP,
    MIN_DRAG_FOR_THROW,
    MOVE_SAMPLE_INTERVAL_MS,
    MOVE_SAMPLE_LIMIT,
    PINCH_RELEASE_THROW_DELAY_MS,
    SCROLL_PIXELS_FOR_ZOOM_LEVEL,
    THROW_VELOCITY_WINDOW_MS,
    TILE_SIZE,
)
from ..settings.schema import MapOptions
from .events import PRIMARY_BUTTON, ClickEvent, PointerEvent, TouchEvent, WheelEvent
from .geometry import GeoPoint, PixelPoint
from .projection import lat_to_tile_y, lng_to_tile_x, tile_x_to_lng, tile_y_to_lat
from .viewport import ViewportState, round_zoom

_LOGGER = logging.getLogger(__name__)

WARNING_WHEEL = "wheel"
WARNING_FINGERS = "fingers"


class SupportsGestures(Protocol):
    """Minimal interface the interpreter expects from the viewport."""

    @property
    def options(self) -> MapOptions:  # pragma: no cover - interface definition only
        ...

    @property
    def state(self) -> ViewportState:  # pragma: no cover - interface definition only
        ...

    def is_animating(self) -> bool:  # pragma: no cover - interface definition only
        ...

    @property
    def animation_target_zoom(self) -> float | None:  # pragma: no cover - interface definition only
        ...

    def stop_animating(self) -> None:  # pragma: no cover - interface definition only
        ...

    def coords_inside(self, pixel: PixelPoint) -> bool:  # pragma: no cover - interface definition only
        ...

    def set_pixel_delta(self, pixel_delta: PixelPoint | None) -> None:  # pragma: no cover
        ...

    def set_gesture_delta(self, pixel_delta: PixelPoint | None, zoom_delta: float) -> None:  # pragma: no cover
        ...

    def commit_delta(self) -> tuple[GeoPoint, float]:  # pragma: no cover - interface definition only
        ...

    def pixel_to_lat_lng(self, pixel: PixelPoint) -> GeoPoint:  # pragma: no cover - interface definition only
        ...

    def set_center_zoom_target(
        self,
        center: GeoPoint | None,
        zoom: float,
        *,
        zoom_around: GeoPoint | None = None,
        duration: float = ANIMATION_TIME_MS,
        now: float | None = None,
    ) -> None:  # pragma: no cover - interface definition only
        ...

    def report_click(self, click: ClickEvent) -> None:  # pragma: no cover - interface definition only
        ...

    def show_warning(self, kind: str, now: float) -> None:  # pragma: no cover - interface definition only
        ...

    def clear_warning(self) -> None:  # pragma: no cover - interface definition only
        ...


@dataclass(frozen=True)
class MoveSample:
    timestamp: float
    point: PixelPoint


class GestureInterpreter:
    """Interpret raw input sequences for a :class:`SupportsGestures` viewport."""

    def __init__(self, viewport: SupportsGestures) -> None:
        self._viewport = viewport

        self._mouse_down = False
        self._drag_start: PixelPoint | None = None
        self._move_samples: deque[MoveSample] = deque(maxlen=MOVE_SAMPLE_LIMIT)

        # One entry while a single finger drags, two while pinching.
        self._touch_start_pixels: list[PixelPoint] | None = None
        self._touch_start_mid: PixelPoint | None = None
        self._touch_last_mid: PixelPoint | None = None
        self._touch_start_distance = 0.0
        self._second_touch_end: float | None = None

        self._last_wheel: float | None = None

    # ------------------------------------------------------------------
    @property
    def is_dragging(self) -> bool:
        return self._mouse_down or self._touch_start_pixels is not None

    @property
    def is_pinching(self) -> bool:
        return self._touch_start_pixels is not None and len(self._touch_start_pixels) == 2

    @property
    def move_samples(self) -> list[MoveSample]:
        return list(self._move_samples)

    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Forget any gesture in progress."""

        self._mouse_down = False
        self._drag_start = None
        self._touch_start_pixels = None
        self._touch_start_mid = None
        self._touch_last_mid = None
        self._second_touch_end = None
        self._last_wheel = None
        self.stop_tracking_move_events()

    # ------------------------------------------------------------------
    # Mouse
    # ------------------------------------------------------------------
    def handle_mouse_press(self, event: PointerEvent) -> bool:
        """Start a drag when the primary button goes down inside the map.

        Returns ``True`` when the event started a drag.
        """

        viewport = self._viewport
        if not viewport.options.mouse_events:
            return False
        pixel = event.pixel
        if event.button != PRIMARY_BUTTON or event.drag_blocked or not viewport.coords_inside(pixel):
            return False

        viewport.stop_animating()
        self._mouse_down = True
        self._drag_start = pixel
        self.track_move_events(pixel, event.timestamp)
        return True

    # ------------------------------------------------------------------
    def handle_mouse_move(self, event: PointerEvent) -> None:
        """Update the uncommitted pixel delta while dragging."""

        if not self._mouse_down or self._drag_start is None:
            return
        pixel = event.pixel
        self.track_move_events(pixel, event.timestamp)
        self._viewport.set_pixel_delta(pixel - self._drag_start)

    # ------------------------------------------------------------------
    def handle_mouse_release(self, event: PointerEvent) -> None:
        """Report a click or commit the drag and maybe throw the map."""

        if not self._mouse_down:
            return
        self._mouse_down = False
        self._drag_start = None

        viewport = self._viewport
        pixel = event.pixel
        pixel_delta = viewport.state.pixel_delta

        if not event.click_blocked and _within_click_tolerance(pixel_delta):
            viewport.set_pixel_delta(None)
            viewport.report_click(ClickEvent(viewport.pixel_to_lat_lng(pixel), pixel, event.native))
            self.stop_tracking_move_events()
            return

        center, zoom = viewport.commit_delta()
        self.throw_after_moving(pixel, center, zoom, event.timestamp)

    # ------------------------------------------------------------------
    def handle_double_click(self, event: PointerEvent) -> None:
        """Zoom in two levels around the clicked point."""

        viewport = self._viewport
        options = viewport.options
        lat_lng = viewport.pixel_to_lat_lng(event.pixel)
        zoom = _clamp(viewport.state.zoom + DOUBLE_CLICK_ZOOM_STEP, options.min_zoom, options.max_zoom)
        viewport.set_center_zoom_target(None, zoom, zoom_around=lat_lng, now=event.timestamp)

    # ------------------------------------------------------------------
    # Touch
    # ------------------------------------------------------------------
    def handle_touch_start(self, event: TouchEvent) -> None:
        """Begin a one-finger drag or switch to pinch on the second finger."""

        viewport = self._viewport
        if not viewport.options.touch_events or event.drag_blocked:
            return

        if len(event.touches) == 1:
            pixel = event.touches[0].pixel
            if viewport.coords_inside(pixel):
                self._touch_start_pixels = [pixel]
                if not viewport.options.two_finger_drag:
                    viewport.stop_animating()
                    self.track_move_events(pixel, event.timestamp)
        elif len(event.touches) == 2 and self._touch_start_pixels is not None:
            # added second finger and first one was in the area
            self.stop_tracking_move_events()
            viewport.stop_animating()
            state = viewport.state
            if state.pixel_delta is not None or state.zoom_delta:
                viewport.commit_delta()

            first = event.touches[0].pixel
            second = event.touches[1].pixel
            self._touch_start_pixels = [first, second]
            self._touch_start_mid = PixelPoint.midpoint(first, second)
            self._touch_last_mid = self._touch_start_mid
            self._touch_start_distance = (first - second).length()

    # ------------------------------------------------------------------
    def handle_touch_move(self, event: TouchEvent) -> None:
        """Drag with one finger or pinch-zoom with two."""

        viewport = self._viewport
        if self._touch_start_pixels is None:
            return

        if len(event.touches) == 1:
            pixel = event.touches[0].pixel
            if viewport.options.two_finger_drag:
                if viewport.coords_inside(pixel):
                    viewport.show_warning(WARNING_FINGERS, event.timestamp)
                return
            self.track_move_events(pixel, event.timestamp)
            viewport.set_pixel_delta(pixel - self._touch_start_pixels[0])
        elif len(event.touches) == 2 and self.is_pinching:
            self._pinch(event)

    # ------------------------------------------------------------------
    def _pinch(self, event: TouchEvent) -> None:
        viewport = self._viewport
        options = viewport.options
        state = viewport.state

        first = event.touches[0].pixel
        second = event.touches[1].pixel
        distance = (first - second).length()
        if distance <= 0 or self._touch_start_distance <= 0 or self._touch_start_mid is None:
            return

        mid = PixelPoint.midpoint(first, second)
        self._touch_last_mid = mid
        mid_diff = mid - self._touch_start_mid

        zoom = state.zoom
        zoom_delta = (
            _clamp(zoom + math.log2(distance / self._touch_start_distance), options.min_zoom, options.max_zoom)
            - zoom
        )
        scale = 2 ** zoom_delta

        # Keep the content under the starting midpoint under the fingers.
        center_shift = PixelPoint(
            (state.width / 2.0 - mid.x) * (scale - 1.0),
            (state.height / 2.0 - mid.y) * (scale - 1.0),
        )
        viewport.set_gesture_delta(center_shift + mid_diff.scaled(scale), zoom_delta)

    # ------------------------------------------------------------------
    def handle_touch_end(self, event: TouchEvent) -> None:
        """Commit the touch gesture, then tap, throw or snap the zoom."""

        if self._touch_start_pixels is None:
            return

        viewport = self._viewport
        options = viewport.options
        state = viewport.state
        zoom_before = state.zoom
        zoom_delta = state.zoom_delta
        was_pinch = self.is_pinching
        now = event.timestamp

        center, zoom = viewport.commit_delta()

        if len(event.touches) == 0:
            if options.two_finger_drag:
                viewport.clear_warning()
            elif not was_pinch:
                start = self._touch_start_pixels[0]
                end = event.changed_touches[0].pixel if event.changed_touches else start
                if _within_click_tolerance(end - start):
                    # A finger left over from a pinch is not a tap.
                    if self._second_touch_end is None:
                        viewport.report_click(ClickEvent(viewport.pixel_to_lat_lng(end), end, event.native))
                elif (
                    self._second_touch_end is None
                    or now - self._second_touch_end > PINCH_RELEASE_THROW_DELAY_MS
                ):
                    self.throw_after_moving(end, center, zoom, now)

            if was_pinch:
                self._snap_after_pinch(zoom_before, zoom_delta, zoom, now)
            self.stop_tracking_move_events()
            self._touch_start_pixels = None
            self._second_touch_end = None
            self._touch_start_mid = None
            self._touch_last_mid = None
        elif len(event.touches) == 1:
            remaining = event.touches[0].pixel
            self._second_touch_end = now
            self._touch_start_pixels = [remaining]
            self.track_move_events(remaining, now)
            if was_pinch:
                self._snap_after_pinch(zoom_before, zoom_delta, zoom, now)

    # ------------------------------------------------------------------
    def _snap_after_pinch(self, zoom_before: float, zoom_delta: float, zoom: float, now: float) -> None:
        """Animate to a whole zoom level after the fingers separate."""

        viewport = self._viewport
        options = viewport.options
        if not options.zoom_snap:
            return

        anchor_pixel = self._touch_last_mid or self._touch_start_mid
        lat_lng = viewport.pixel_to_lat_lng(anchor_pixel) if anchor_pixel is not None else viewport.state.center

        # Do not change level when dragging with two fingers did not cross one.
        if options.two_finger_drag and round_zoom(zoom_before) == round_zoom(zoom_before + zoom_delta):
            target = round_zoom(zoom_before)
        else:
            target = math.ceil(zoom) if zoom_delta > 0 else math.floor(zoom)

        target = _clamp(target, options.min_zoom, options.max_zoom)
        viewport.set_center_zoom_target(lat_lng, target, zoom_around=lat_lng, now=now)

    # ------------------------------------------------------------------
    # Wheel
    # ------------------------------------------------------------------
    def handle_wheel_event(self, event: WheelEvent) -> bool:
        """Zoom around the cursor; returns ``False`` if the event was ignored."""

        viewport = self._viewport
        options = viewport.options
        if not options.mouse_events:
            return False

        if options.meta_wheel_zoom and not event.meta_key:
            viewport.show_warning(WARNING_WHEEL, event.timestamp)
            return False

        add_to_zoom = -event.delta_y / SCROLL_PIXELS_FOR_ZOOM_LEVEL
        target_zoom = viewport.animation_target_zoom

        if not options.zoom_snap and target_zoom is not None:
            # Fold the new step into the animation still in flight.
            still_to_add = target_zoom - viewport.state.zoom
            self.zoom_around_point(add_to_zoom + still_to_add, event.pixel, event.timestamp)
        elif options.animate:
            self.zoom_around_point(add_to_zoom, event.pixel, event.timestamp)
        elif self._last_wheel is None or event.timestamp - self._last_wheel > ANIMATION_TIME_MS:
            self._last_wheel = event.timestamp
            self.zoom_around_point(add_to_zoom, event.pixel, event.timestamp)
        return True

    # ------------------------------------------------------------------
    def zoom_around_point(self, zoom_diff: float, pixel: PixelPoint, now: float) -> None:
        """Zoom by *zoom_diff* keeping the map under *pixel* in place."""

        viewport = self._viewport
        options = viewport.options
        zoom = viewport.state.zoom

        if (zoom == options.min_zoom and zoom_diff < 0) or (zoom == options.max_zoom and zoom_diff > 0):
            return

        lat_lng = viewport.pixel_to_lat_lng(pixel)
        target = zoom + zoom_diff
        if options.zoom_snap:
            target = math.floor(target) if zoom_diff < 0 else math.ceil(target)
        target = _clamp(target, options.min_zoom, options.max_zoom)
        viewport.set_center_zoom_target(None, target, zoom_around=lat_lng, now=now)

    # ------------------------------------------------------------------
    # Throw
    # ------------------------------------------------------------------
    def track_move_events(self, point: PixelPoint, timestamp: float) -> None:
        """Remember *point* for the velocity estimate, at most every 40ms."""

        samples = self._move_samples
        if not samples or timestamp - samples[-1].timestamp > MOVE_SAMPLE_INTERVAL_MS:
            samples.append(MoveSample(timestamp, point))

    # ------------------------------------------------------------------
    def stop_tracking_move_events(self) -> None:
        self._move_samples.clear()

    # ------------------------------------------------------------------
    def throw_after_moving(self, coords: PixelPoint, center: GeoPoint, zoom: float, now: float) -> None:
        """Continue a released drag in the direction it was moving."""

        viewport = self._viewport
        state = viewport.state
        last_sample = self._move_samples.popleft() if self._move_samples else None

        if last_sample is not None and viewport.options.animate:
            delta_ms = max(now - last_sample.timestamp, 1.0)
            delta = (coords - last_sample.point).scaled(THROW_VELOCITY_WINDOW_MS / delta_ms)
            distance = delta.length()

            if distance > MIN_DRAG_FOR_THROW:
                diagonal = math.hypot(state.width, state.height) or 1.0
                throw_time = DIAGONAL_THROW_TIME_MS * distance / diagonal

                lng = tile_x_to_lng(lng_to_tile_x(center.lng, zoom) - delta.x / TILE_SIZE, zoom)
                lat = tile_y_to_lat(lat_to_tile_y(center.lat, zoom) - delta.y / TILE_SIZE, zoom)
                _LOGGER.debug("Throwing map by %s over %.0fms", delta, throw_time)
                viewport.set_center_zoom_target(GeoPoint(lat, lng), zoom, duration=throw_time, now=now)

        self.stop_tracking_move_events()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _within_click_tolerance(delta: PixelPoint | None) -> bool:
    if delta is None:
        return True
    return abs(delta.x) <= CLICK_TOLERANCE_PX and abs(delta.y) <= CLICK_TOLERANCE_PX


__all__ = [
    "GestureInterpreter",
    "MoveSample",
    "SupportsGestures",
    "WARNING_FINGERS",
    "WARNING_WHEEL",
]
