"""Scenario tests for the viewport state machine."""

import math
import sys

import pytest

from slippymap.core import BoundsChangedEvent, GeoPoint, MapViewport, PixelPoint
from slippymap.core.events import PointerEvent, TouchEvent, TouchPoint, WheelEvent
from slippymap.errors import ViewportInvariantError

LEUVEN = GeoPoint(50.879, 4.6997)


def _run_to_end(viewport, clock, ms: float = 2000.0, step: float = 16.0) -> None:
    end = clock.now + ms
    while clock.now < end:
        clock.advance(step)
        viewport.tick()


def test_bounds_midpoint_reprojects_to_centre(make_viewport) -> None:
    viewport = make_viewport(center=[LEUVEN.lat, LEUVEN.lng], zoom=12)
    bounds = viewport.get_bounds()

    assert bounds.ne.lat > LEUVEN.lat > bounds.sw.lat
    assert bounds.ne.lng > LEUVEN.lng > bounds.sw.lng

    midpoint = GeoPoint((bounds.ne.lat + bounds.sw.lat) / 2.0, (bounds.ne.lng + bounds.sw.lng) / 2.0)
    pixel = viewport.lat_lng_to_pixel(midpoint)
    assert abs(pixel.x - 300.0) < 1.0
    assert abs(pixel.y - 200.0) < 1.0


def test_zero_delta_commit_is_idempotent(make_viewport) -> None:
    viewport = make_viewport(center=[LEUVEN.lat, LEUVEN.lng], zoom=12)
    before = viewport.state
    assert viewport.commit_delta() == (before.center, before.zoom)
    assert viewport.state == before


def test_drag_moves_centre_west(make_viewport, clock) -> None:
    """Dragging content to the right moves the centre to a smaller longitude."""
    viewport = make_viewport(center=[LEUVEN.lat, LEUVEN.lng], zoom=12)

    assert viewport.handle_mouse_press(PointerEvent(300, 200, clock.now)) is True
    viewport.handle_mouse_move(PointerEvent(350, 200, clock.advance(100)))
    assert viewport.state.pixel_delta == PixelPoint(50, 0)

    viewport.handle_mouse_release(PointerEvent(350, 200, clock.advance(2000)))

    state = viewport.state
    assert state.pixel_delta is None
    assert state.center.lng < LEUVEN.lng
    assert state.center.lat == pytest.approx(LEUVEN.lat, abs=1e-9)
    assert state.zoom == 12
    assert not viewport.is_animating()


def test_fast_drag_throws_the_map(make_viewport, clock) -> None:
    viewport = make_viewport(center=[0.0, 0.0], zoom=5)
    started: list[bool] = []
    viewport.animation_started.connect(lambda: started.append(True))

    viewport.handle_mouse_press(PointerEvent(300, 200, clock.now))
    viewport.handle_mouse_move(PointerEvent(400, 200, clock.advance(50)))
    viewport.handle_mouse_release(PointerEvent(400, 200, clock.advance(50)))

    committed = viewport.state.center
    assert started == [True]
    assert viewport.is_animating()

    _run_to_end(viewport, clock)
    assert not viewport.is_animating()
    assert viewport.state.center.lng < committed.lng


def test_press_and_release_in_place_reports_click(make_viewport, clock) -> None:
    viewport = make_viewport(center=[LEUVEN.lat, LEUVEN.lng], zoom=12)
    clicks = []
    viewport.clicked.connect(clicks.append)
    before = viewport.state

    viewport.handle_mouse_press(PointerEvent(300, 200, clock.now))
    viewport.handle_mouse_move(PointerEvent(302, 199, clock.advance(30)))
    viewport.handle_mouse_release(PointerEvent(302, 199, clock.advance(30)))

    assert len(clicks) == 1
    assert clicks[0].pixel == PixelPoint(302, 199)
    assert clicks[0].lat_lng.lng == pytest.approx(viewport.pixel_to_lat_lng(PixelPoint(302, 199)).lng)
    assert viewport.state == before


def test_blocked_or_disabled_mouse_does_not_drag(make_viewport, clock) -> None:
    viewport = make_viewport(mouse_events=False)
    assert viewport.handle_mouse_press(PointerEvent(300, 200, clock.now)) is False

    viewport = make_viewport()
    assert viewport.handle_mouse_press(PointerEvent(300, 200, clock.now, drag_blocked=True)) is False
    assert viewport.handle_mouse_press(PointerEvent(300, 200, clock.now, button=2)) is False
    assert viewport.handle_mouse_press(PointerEvent(700, 200, clock.now)) is False

    # Orphan events are ignored.
    before = viewport.state
    viewport.handle_mouse_move(PointerEvent(350, 200, clock.now))
    viewport.handle_mouse_release(PointerEvent(350, 200, clock.now))
    assert viewport.state == before


def test_pinch_doubling_distance_snaps_to_next_level(make_viewport, clock) -> None:
    viewport = make_viewport(center=[0.0, 0.0], zoom=10)
    first = TouchPoint(250, 200)

    viewport.handle_touch_start(TouchEvent((first,), clock.now))
    viewport.handle_touch_start(TouchEvent((first, TouchPoint(350, 200)), clock.advance(10)))
    viewport.handle_touch_move(TouchEvent((TouchPoint(200, 200), TouchPoint(400, 200)), clock.advance(30)))

    assert viewport.state.zoom_delta == pytest.approx(1.0)
    assert viewport.state.pixel_delta.x == pytest.approx(0.0)

    remaining = TouchPoint(200, 200)
    viewport.handle_touch_end(
        TouchEvent((remaining,), clock.advance(30), changed_touches=(TouchPoint(400, 200),))
    )
    viewport.handle_touch_end(TouchEvent((), clock.advance(20), changed_touches=(remaining,)))
    _run_to_end(viewport, clock, 500)

    assert viewport.state.zoom == 11
    assert viewport.state.zoom_delta == 0.0


def test_partial_pinch_snaps_up(make_viewport, clock) -> None:
    viewport = make_viewport(center=[0.0, 0.0], zoom=10)
    viewport.handle_touch_start(TouchEvent((TouchPoint(250, 200),), clock.now))
    viewport.handle_touch_start(TouchEvent((TouchPoint(250, 200), TouchPoint(350, 200)), clock.now))
    viewport.handle_touch_move(TouchEvent((TouchPoint(240, 200), TouchPoint(360, 200)), clock.advance(20)))
    viewport.handle_touch_end(TouchEvent((), clock.advance(20)))

    assert 10 < viewport.state.zoom < 11
    _run_to_end(viewport, clock, 500)
    assert viewport.state.zoom == 11


def test_two_finger_drag_pinch_keeps_level(make_viewport, clock) -> None:
    viewport = make_viewport(center=[0.0, 0.0], zoom=10, two_finger_drag=True)
    viewport.handle_touch_start(TouchEvent((TouchPoint(250, 200),), clock.now))
    viewport.handle_touch_start(TouchEvent((TouchPoint(250, 200), TouchPoint(350, 200)), clock.now))
    viewport.handle_touch_move(TouchEvent((TouchPoint(245, 210), TouchPoint(355, 210)), clock.advance(20)))
    viewport.handle_touch_end(TouchEvent((TouchPoint(245, 210),), clock.advance(20)))

    _run_to_end(viewport, clock, 500)
    assert viewport.state.zoom == 10


def test_one_finger_with_two_finger_drag_shows_warning(make_viewport, clock) -> None:
    viewport = make_viewport(two_finger_drag=True)
    warnings: list[tuple[bool, str]] = []
    viewport.warning_changed.connect(lambda show, kind: warnings.append((show, kind)))
    before = viewport.state

    viewport.handle_touch_start(TouchEvent((TouchPoint(100, 100),), clock.now))
    viewport.handle_touch_move(TouchEvent((TouchPoint(150, 100),), clock.advance(20)))

    assert viewport.warning == "fingers"
    assert viewport.warning_text() == "Use two fingers to move the map"
    assert viewport.state == before

    viewport.handle_touch_end(TouchEvent((), clock.advance(20)))
    assert warnings == [(True, "fingers"), (False, "fingers")]


def test_touch_tap_reports_click(make_viewport, clock) -> None:
    viewport = make_viewport()
    clicks = []
    viewport.clicked.connect(clicks.append)

    viewport.handle_touch_start(TouchEvent((TouchPoint(100, 100),), clock.now))
    viewport.handle_touch_end(TouchEvent((), clock.advance(80), changed_touches=(TouchPoint(101, 100),)))

    assert [click.pixel for click in clicks] == [PixelPoint(101, 100)]


def test_orphan_touch_events_are_ignored(make_viewport, clock) -> None:
    viewport = make_viewport()
    before = viewport.state
    viewport.handle_touch_move(TouchEvent((TouchPoint(10, 10),), clock.now))
    viewport.handle_touch_end(TouchEvent((), clock.now))
    viewport.handle_touch_start(TouchEvent((TouchPoint(10, 10), TouchPoint(20, 20)), clock.now))
    assert viewport.state == before


def test_wheel_step_zooms_one_level_around_cursor(make_viewport, clock) -> None:
    viewport = make_viewport(center=[LEUVEN.lat, LEUVEN.lng], zoom=12)
    cursor = PixelPoint(100, 150)
    anchor = viewport.pixel_to_lat_lng(cursor)

    assert viewport.handle_wheel_event(WheelEvent(cursor.x, cursor.y, -150, clock.now)) is True
    assert viewport.animation_target_zoom == 13

    previous = viewport.lat_lng_to_pixel(anchor)
    while viewport.is_animating():
        clock.advance(16)
        viewport.tick()
        current = viewport.lat_lng_to_pixel(anchor)
        assert math.hypot(current.x - previous.x, current.y - previous.y) < 1.0
        previous = current

    assert viewport.state.zoom == 13
    assert previous.x == pytest.approx(cursor.x, abs=1e-6)
    assert previous.y == pytest.approx(cursor.y, abs=1e-6)


def test_wheel_at_max_zoom_is_ignored(make_viewport, clock) -> None:
    viewport = make_viewport(zoom=18)
    viewport.handle_wheel_event(WheelEvent(300, 200, -150, clock.now))
    assert not viewport.is_animating()
    assert viewport.state.zoom == 18


def test_wheel_without_snap_accumulates_target(make_viewport, clock) -> None:
    viewport = make_viewport(zoom=12, zoom_snap=False)
    viewport.handle_wheel_event(WheelEvent(300, 200, -150, clock.now))
    clock.advance(100)
    viewport.tick()
    viewport.handle_wheel_event(WheelEvent(300, 200, -150, clock.now))
    assert viewport.animation_target_zoom == pytest.approx(14.0)


def test_wheel_without_animation_is_throttled(make_viewport, clock) -> None:
    viewport = make_viewport(zoom=12, animate=False)
    viewport.handle_wheel_event(WheelEvent(300, 200, -150, clock.now))
    assert viewport.state.zoom == 13
    viewport.handle_wheel_event(WheelEvent(300, 200, -150, clock.advance(100)))
    assert viewport.state.zoom == 13
    viewport.handle_wheel_event(WheelEvent(300, 200, -150, clock.advance(250)))
    assert viewport.state.zoom == 14
    assert not viewport.is_animating()


def test_meta_wheel_zoom_requires_modifier(make_viewport, clock, monkeypatch) -> None:
    monkeypatch.setattr(sys, "platform", "darwin")
    viewport = make_viewport(zoom=12, meta_wheel_zoom=True)
    warnings: list[tuple[bool, str]] = []
    viewport.warning_changed.connect(lambda show, kind: warnings.append((show, kind)))

    assert viewport.handle_wheel_event(WheelEvent(300, 200, -150, clock.now)) is False
    assert viewport.warning == "wheel"
    assert viewport.warning_text() == "Use ⌘+wheel to zoom!"
    assert not viewport.is_animating()

    clock.advance(299)
    viewport.tick()
    assert viewport.warning == "wheel"
    clock.advance(1)
    viewport.tick()
    assert viewport.warning is None
    assert warnings == [(True, "wheel"), (False, "wheel")]

    assert viewport.handle_wheel_event(WheelEvent(300, 200, -150, clock.now, meta_key=True)) is True
    assert viewport.animation_target_zoom == 13


def test_double_click_zooms_two_levels(make_viewport, clock) -> None:
    viewport = make_viewport(zoom=5)
    viewport.handle_double_click(PointerEvent(100, 100, clock.now))
    assert viewport.animation_target_zoom == 7

    viewport = make_viewport(zoom=17.5)
    viewport.handle_double_click(PointerEvent(100, 100, clock.now))
    assert viewport.animation_target_zoom == 18


def test_animation_converges_exactly(make_viewport, clock) -> None:
    viewport = make_viewport(center=[0.0, 0.0], zoom=3)
    stopped: list[bool] = []
    viewport.animation_stopped.connect(lambda: stopped.append(True))

    viewport.set_center_zoom_target(GeoPoint(10.0, 20.0), 5)
    for ms in (7, 120, 33):
        clock.advance(ms)
        viewport.tick()
    clock.advance(500)
    viewport.tick()

    assert viewport.state.center == GeoPoint(10.0, 20.0)
    assert viewport.state.zoom == 5
    assert stopped == [True]


def test_bounds_notification_is_debounced(make_viewport, clock) -> None:
    viewport = make_viewport(center=[LEUVEN.lat, LEUVEN.lng], zoom=12)
    events: list[BoundsChangedEvent] = []
    viewport.bounds_changed.connect(events.append)

    clock.advance(59)
    viewport.tick()
    assert events == []
    clock.advance(1)
    viewport.tick()
    assert len(events) == 1
    assert events[0].initial is True
    assert events[0].center == LEUVEN
    assert events[0].bounds == viewport.get_bounds()

    viewport.set_center_zoom(GeoPoint(51.0, 4.0), 12)
    clock.advance(30)
    viewport.set_center_zoom(GeoPoint(52.0, 4.0), 12)
    clock.advance(59)
    viewport.tick()
    assert len(events) == 1
    clock.advance(1)
    viewport.tick()
    assert len(events) == 2
    assert events[1].initial is False
    assert events[1].center == GeoPoint(52.0, 4.0)
    assert not viewport.needs_tick


def test_flush_notifications_publishes_immediately(make_viewport) -> None:
    viewport = make_viewport()
    events: list[BoundsChangedEvent] = []
    viewport.bounds_changed.connect(events.append)
    viewport.flush_notifications()
    viewport.flush_notifications()
    assert len(events) == 1


def test_tiny_changes_do_not_notify(make_viewport, clock) -> None:
    viewport = make_viewport(center=[10.0, 10.0], zoom=6)
    viewport.flush_notifications()
    viewport.set_center_zoom(GeoPoint(10.000001, 10.0), 6.0001)
    assert not viewport.needs_tick


def test_commit_clamps_zoom_and_rejects_nan(make_viewport) -> None:
    viewport = make_viewport(zoom=5)
    viewport.set_center_zoom(None, 25)
    assert viewport.state.zoom == 18
    viewport.set_center_zoom(GeoPoint(0.0, 0.0), 0)
    assert viewport.state.zoom == 1

    with pytest.raises(ViewportInvariantError):
        viewport.set_center_zoom(GeoPoint(0.0, 0.0), float("nan"))


def test_edge_policy_keeps_view_inside_world(make_viewport) -> None:
    viewport = make_viewport(zoom=3, limit_bounds="edge")
    viewport.set_center_zoom(GeoPoint(0.0, 170.0), 3)
    assert viewport.state.center.lng == pytest.approx(127.265625)


def test_edge_policy_free_axis_stays_on_the_map(make_viewport) -> None:
    viewport = make_viewport(width=600, height=600, zoom=1, limit_bounds="edge")
    viewport.set_center_zoom(GeoPoint(89.9, 0.0), 1)
    assert viewport.state.center.lat == pytest.approx(85.0511287798)


def test_set_view_jumps_far_and_animates_near(make_viewport, clock) -> None:
    viewport = make_viewport(center=[0.0, 0.0], zoom=12)

    viewport.set_view(GeoPoint(40.0, 40.0), 12)
    assert not viewport.is_animating()
    assert viewport.state.center.lat == pytest.approx(40.0)

    viewport.set_view(GeoPoint(40.001, 40.0), 12)
    assert viewport.is_animating()
    _run_to_end(viewport, clock, 500)
    assert viewport.state.center.lat == pytest.approx(40.001)

    viewport.set_view(GeoPoint(40.00105, 40.0), 12.0005)
    assert not viewport.is_animating()
    assert viewport.state.center.lat == pytest.approx(40.001)


def test_distance_in_screens(make_viewport) -> None:
    viewport = make_viewport(center=[0.0, 0.0], zoom=4)
    # One screen width to the east.
    east = viewport.pixel_to_lat_lng(PixelPoint(300 + 600, 200))
    assert viewport.distance_in_screens(east, 4) == pytest.approx(1.0)
    assert make_viewport(width=0, height=0).distance_in_screens(east, 4) == math.inf


def test_rounded_zoom_change_keeps_stale_tiles_until_loaded(make_viewport) -> None:
    viewport = make_viewport(center=[0.0, 0.0], zoom=4)
    changes: list[bool] = []
    viewport.tiles_changed.connect(lambda: changes.append(True))

    viewport.set_center_zoom(None, 5)
    layout = viewport.tile_layout()
    assert layout.stale_tiles
    assert viewport.pending_tiles() == {tile.key for tile in layout.active_tiles}

    for tile in layout.fetch_order():
        viewport.mark_tile_loaded(tile.key)

    assert viewport.tile_layout().stale_tiles == []
    assert changes == [True]


def test_same_rounded_zoom_keeps_transition_state(make_viewport) -> None:
    viewport = make_viewport(center=[0.0, 0.0], zoom=4)
    viewport.set_center_zoom(None, 5)
    for tile in viewport.tile_layout().fetch_order()[:2]:
        viewport.mark_tile_loaded(tile.key)

    pending = viewport.pending_tiles()
    stale_keys = [tile.key for tile in viewport.tile_layout().stale_tiles]
    assert pending and stale_keys

    viewport.set_center_zoom(None, 5.3)
    viewport.set_center_zoom(GeoPoint(0.0001, 0.0001), 5.3)

    assert viewport.pending_tiles() == pending
    assert [tile.key for tile in viewport.tile_layout().stale_tiles] == stale_keys


def test_bounds_notifications_follow_host_frame_times() -> None:
    viewport = MapViewport({"width": 600, "height": 400, "zoom": 5})
    events: list[BoundsChangedEvent] = []
    viewport.bounds_changed.connect(events.append)

    viewport.tick(0.0)
    viewport.tick(59.0)
    assert events == []
    viewport.tick(60.0)
    assert len(events) == 1
    assert events[0].initial is True

    viewport.set_center_zoom(GeoPoint(10.0, 10.0), 5, now=100.0)
    viewport.tick(159.0)
    assert len(events) == 1
    viewport.tick(160.0)
    assert len(events) == 2
    assert events[1].center == GeoPoint(10.0, 10.0)


def test_animated_bounds_notification_uses_frame_times() -> None:
    viewport = MapViewport({"width": 600, "height": 400, "zoom": 5}, now=0.0)
    events: list[BoundsChangedEvent] = []
    viewport.bounds_changed.connect(events.append)

    viewport.tick(60.0)
    assert len(events) == 1

    viewport.set_center_zoom_target(GeoPoint(1.0, 1.0), 6, now=100.0)
    frame = 100.0
    while viewport.tick(frame):
        frame += 16.0
        assert frame < 10_000.0

    assert len(events) == 2
    assert events[1].center == GeoPoint(1.0, 1.0)
    assert events[1].zoom == 6


def test_resize_updates_state_and_notifies(make_viewport, clock) -> None:
    viewport = make_viewport(width=0, height=0)
    viewport.flush_notifications()
    viewport.resize(800, 600)
    assert viewport.state.width == 800
    assert viewport.coords_inside(PixelPoint(799, 599))
    assert not viewport.coords_inside(PixelPoint(800, 10))
    assert viewport.needs_tick


def test_dispose_releases_observers(make_viewport, clock) -> None:
    viewport = make_viewport()
    viewport.bounds_changed.connect(lambda event: None)
    viewport.clicked.connect(lambda event: None)
    viewport.set_center_zoom_target(GeoPoint(1.0, 1.0), 4)

    viewport.dispose()

    assert viewport.bounds_changed.handler_count == 0
    assert viewport.clicked.handler_count == 0
    assert not viewport.is_animating()
    assert not viewport.needs_tick
    assert viewport.tick() is False
