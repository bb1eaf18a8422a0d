"""
Animation controller for animated pans, zooms and throws.

This module interpolates the camera between two states without any knowledge
of how the result is committed; the viewport supplies callbacks for frames and
completion and drives the controller by calling :meth:`AnimationController.tick`
once per display frame.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .geometry import GeoPoint

_LOGGER = logging.getLogger(__name__)

ZoomCenterFn = Callable[[GeoPoint, GeoPoint, float, float], GeoPoint]


def ease_out_quad(t: float) -> float:
    """Quadratic easing function for smooth animations (ease-out)."""
    return t * (2.0 - t)


@dataclass(frozen=True)
class AnimationSpec:
    """Parameters of the animation currently in flight."""

    start_center: GeoPoint
    start_zoom: float
    target_center: GeoPoint
    target_zoom: float
    start_time: float
    end_time: float
    anchor: GeoPoint | None = None

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


class AnimationController:
    """Interpolate centre and zoom toward a target over time."""

    def __init__(
        self,
        *,
        zoom_center: ZoomCenterFn,
        on_animation_frame: Callable[[GeoPoint, float], None],
        on_animation_complete: Callable[[GeoPoint, float], None],
    ) -> None:
        """Initialize the animation controller.

        Parameters
        ----------
        zoom_center:
            ``(center, anchor, old_zoom, new_zoom) -> center`` returning the
            centre that keeps *anchor* at the same screen pixel after zooming.
        on_animation_frame:
            Callback for each intermediate frame with ``(center, zoom)``.
        on_animation_complete:
            Callback with the exact target once the animation has finished.
        """
        self._zoom_center = zoom_center
        self._on_animation_frame = on_animation_frame
        self._on_animation_complete = on_animation_complete
        self._spec: AnimationSpec | None = None

    @property
    def spec(self) -> AnimationSpec | None:
        return self._spec

    def is_animating(self) -> bool:
        """Return True if an animation is currently running."""
        return self._spec is not None

    @property
    def target_zoom(self) -> float | None:
        return self._spec.target_zoom if self._spec is not None else None

    def start(
        self,
        *,
        current_center: GeoPoint,
        current_zoom: float,
        target_center: GeoPoint | None,
        target_zoom: float,
        duration: float,
        now: float,
        anchor: GeoPoint | None = None,
    ) -> bool:
        """Start or retarget an animation.

        When an animation is already running its interpolated state at *now*
        becomes the new starting point, so retargeting never jumps. Otherwise
        the animation starts from *current_center*/*current_zoom*.

        Returns ``True`` when the controller went from idle to animating.
        """
        started = self._spec is None
        if started:
            start_center, start_zoom = current_center, current_zoom
        else:
            start_center, start_zoom = self.step(now)

        if anchor is not None:
            target_center = self._zoom_center(start_center, anchor, start_zoom, target_zoom)
        elif target_center is None:
            target_center = start_center

        self._spec = AnimationSpec(
            start_center=start_center,
            start_zoom=start_zoom,
            target_center=target_center,
            target_zoom=target_zoom,
            start_time=now,
            end_time=now + max(0.0, float(duration)),
            anchor=anchor,
        )
        _LOGGER.debug(
            "%s animation to %s @ %.3f over %.0fms",
            "Starting" if started else "Retargeting",
            target_center,
            target_zoom,
            duration,
        )
        return started

    def stop(self) -> bool:
        """Cancel the current animation, returning ``True`` if one was running."""
        if self._spec is None:
            return False
        self._spec = None
        return True

    def step(self, now: float) -> tuple[GeoPoint, float]:
        """Return the interpolated ``(center, zoom)`` at *now*."""
        spec = self._spec
        if spec is None:
            raise RuntimeError("No animation in progress")

        length = spec.duration
        if length <= 0:
            progress = 1.0
        else:
            progress = max(0.0, min(1.0, (now - spec.start_time) / length))
        eased = ease_out_quad(progress)

        zoom = spec.start_zoom + (spec.target_zoom - spec.start_zoom) * eased
        if spec.anchor is not None:
            center = self._zoom_center(spec.start_center, spec.anchor, spec.start_zoom, zoom)
        else:
            center = GeoPoint(
                spec.start_center.lat + (spec.target_center.lat - spec.start_center.lat) * eased,
                spec.start_center.lng + (spec.target_center.lng - spec.start_center.lng) * eased,
            )
        return center, zoom

    def tick(self, now: float) -> bool:
        """Advance the animation, returning ``True`` while it keeps running."""
        spec = self._spec
        if spec is None:
            return False

        if now >= spec.end_time:
            # Animation complete
            self._spec = None
            self._on_animation_complete(spec.target_center, spec.target_zoom)
            return False

        center, zoom = self.step(now)
        self._on_animation_frame(center, zoom)
        return True


__all__ = ["AnimationController", "AnimationSpec", "ease_out_quad"]
