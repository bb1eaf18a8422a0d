"""QWidget front-end that drives a :class:`~slippymap.core.MapViewport`."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from PySide6.QtCore import QEvent, QRectF, Qt, QTimer, Signal
from PySide6.QtGui import QCloseEvent, QColor, QEventPoint, QPainter, QPixmap, QResizeEvent
from PySide6.QtWidgets import QWidget

from ..config import FRAME_INTERVAL_MS
from ..core import MapViewport, PointerEvent, TouchEvent, TouchPoint, WheelEvent
from ..core.events import PRIMARY_BUTTON
from ..core.geometry import GeoPoint
from ..settings.schema import MapOptions

TILE_MISSING = object()
"""Returned by a tile loader for a tile that will never be available."""

TileLoader = Callable[[int, int, int], Any]
"""Return a ``QPixmap``, ``None`` while loading, or :data:`TILE_MISSING`."""

_PLACEHOLDER_COLOR = QColor(221, 221, 221)


class MapWidget(QWidget):
    """Display the tile layout of a :class:`MapViewport` and forward Qt input to it."""

    boundsChanged = Signal(object)
    """Signal emitted with a :class:`~slippymap.core.BoundsChangedEvent`."""

    clicked = Signal(object)
    """Signal emitted with a :class:`~slippymap.core.ClickEvent`."""

    animationStarted = Signal()
    animationStopped = Signal()
    warningChanged = Signal(bool, str)

    def __init__(
        self,
        parent: QWidget | None = None,
        *,
        options: MapOptions | Mapping[str, Any] | None = None,
        tile_loader: TileLoader | None = None,
    ) -> None:
        super().__init__(parent)

        self._viewport = MapViewport(options)
        self._tile_loader = tile_loader

        self._viewport.bounds_changed.connect(self.boundsChanged.emit)
        self._viewport.clicked.connect(self.clicked.emit)
        self._viewport.animation_started.connect(self.animationStarted.emit)
        self._viewport.animation_stopped.connect(self.animationStopped.emit)
        self._viewport.warning_changed.connect(self._on_warning_changed)
        self._viewport.tiles_changed.connect(self.update)

        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(FRAME_INTERVAL_MS)
        self._frame_timer.timeout.connect(self._on_frame)

        self.setAttribute(Qt.WA_AcceptTouchEvents, True)
        self.setMouseTracking(True)
        self._ensure_ticking()

    # ------------------------------------------------------------------
    @property
    def viewport(self) -> MapViewport:
        """Expose the underlying state machine for programmatic control."""

        return self._viewport

    # ------------------------------------------------------------------
    def set_tile_loader(self, tile_loader: TileLoader | None) -> None:
        self._tile_loader = tile_loader
        self.update()

    # ------------------------------------------------------------------
    def set_view(self, lat: float, lng: float, zoom: float) -> None:
        """Move to *lat*/*lng* at *zoom*, animating short distances."""

        self._viewport.set_view(GeoPoint(lat, lng), zoom)
        self._after_input()

    # ------------------------------------------------------------------
    def shutdown(self) -> None:
        """Stop the frame timer and release the viewport observers."""

        self._frame_timer.stop()
        self._viewport.dispose()

    # ------------------------------------------------------------------
    def paintEvent(self, event) -> None:  # type: ignore[override]
        """Draw stale tiles first and the active tiles on top of them."""

        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
            self._render(painter)
        finally:
            painter.end()

    # ------------------------------------------------------------------
    def _render(self, painter: QPainter) -> None:
        layout = self._viewport.tile_layout()
        loaded: list[str] = []
        missing: list[str] = []
        for tile in layout.tiles:
            rect = layout.to_screen(tile.rect)
            target = QRectF(rect.left, rect.top, rect.width, rect.height)
            pixmap = None
            if self._tile_loader is not None:
                pixmap = self._tile_loader(tile.index.x, tile.index.y, tile.index.z)

            if pixmap is None or pixmap is TILE_MISSING or pixmap.isNull():
                if not tile.is_stale:
                    painter.fillRect(target, _PLACEHOLDER_COLOR)
                    if pixmap is TILE_MISSING:
                        missing.append(tile.key)
                continue

            painter.drawPixmap(target, pixmap, QRectF(pixmap.rect()))
            if not tile.is_stale:
                loaded.append(tile.key)

        # Settle after drawing so dropping stale tiles only affects the next frame.
        for key in loaded:
            self._viewport.mark_tile_loaded(key)
        for key in missing:
            self._viewport.mark_tile_missing(key)

    # ------------------------------------------------------------------
    def closeEvent(self, event: QCloseEvent) -> None:  # type: ignore[override]
        """Tear down the frame timer before the widget is destroyed."""

        self.shutdown()
        super().closeEvent(event)

    # ------------------------------------------------------------------
    def resizeEvent(self, event: QResizeEvent) -> None:  # type: ignore[override]
        """Propagate the new size to the viewport."""

        super().resizeEvent(event)
        self._viewport.resize(self.width(), self.height())
        self._after_input()

    # ------------------------------------------------------------------
    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        """Forward mouse press events to the viewport."""

        self._viewport.handle_mouse_press(self._pointer_event(event))
        self._after_input()
        super().mousePressEvent(event)

    # ------------------------------------------------------------------
    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        """Forward mouse move events to the viewport."""

        self._viewport.handle_mouse_move(self._pointer_event(event))
        self._after_input()
        super().mouseMoveEvent(event)

    # ------------------------------------------------------------------
    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        """Forward mouse release events to the viewport."""

        self._viewport.handle_mouse_release(self._pointer_event(event))
        self._after_input()
        super().mouseReleaseEvent(event)

    # ------------------------------------------------------------------
    def mouseDoubleClickEvent(self, event) -> None:  # type: ignore[override]
        """Zoom in around the double-clicked point."""

        self._viewport.handle_double_click(self._pointer_event(event))
        self._after_input()
        super().mouseDoubleClickEvent(event)

    # ------------------------------------------------------------------
    def wheelEvent(self, event) -> None:  # type: ignore[override]
        """Forward wheel events to the viewport."""

        position = event.position()
        modifiers = event.modifiers()
        meta = bool(modifiers & (Qt.MetaModifier | Qt.ControlModifier))
        handled = self._viewport.handle_wheel_event(
            WheelEvent(
                x=position.x(),
                y=position.y(),
                delta_y=-float(event.angleDelta().y()),
                timestamp=self._viewport.now(),
                meta_key=meta,
                native=event,
            )
        )
        self._after_input()
        if handled:
            event.accept()
        else:
            super().wheelEvent(event)

    # ------------------------------------------------------------------
    def event(self, event: QEvent) -> bool:  # type: ignore[override]
        """Route touch events, which QWidget has no dedicated handler for."""

        kind = event.type()
        if kind not in (QEvent.TouchBegin, QEvent.TouchUpdate, QEvent.TouchEnd, QEvent.TouchCancel):
            return super().event(event)

        points = list(event.points())
        now = self._viewport.now()
        active = tuple(
            TouchPoint(point.position().x(), point.position().y())
            for point in points
            if point.state() != QEventPoint.State.Released
        )
        released = tuple(
            TouchPoint(point.position().x(), point.position().y())
            for point in points
            if point.state() == QEventPoint.State.Released
        )
        pressed = any(point.state() == QEventPoint.State.Pressed for point in points)

        if kind == QEvent.TouchBegin:
            self._viewport.handle_touch_start(TouchEvent(active, now, native=event))
        elif kind in (QEvent.TouchEnd, QEvent.TouchCancel):
            self._viewport.handle_touch_end(TouchEvent((), now, changed_touches=released, native=event))
        elif released:
            self._viewport.handle_touch_end(TouchEvent(active, now, changed_touches=released, native=event))
        elif pressed:
            self._viewport.handle_touch_start(TouchEvent(active, now, native=event))
        else:
            self._viewport.handle_touch_move(TouchEvent(active, now, native=event))

        self._after_input()
        event.accept()
        return True

    # ------------------------------------------------------------------
    def _pointer_event(self, event) -> PointerEvent:
        position = event.position()
        button = PRIMARY_BUTTON if event.button() in (Qt.LeftButton, Qt.NoButton) else PRIMARY_BUTTON + 1
        return PointerEvent(
            x=position.x(),
            y=position.y(),
            timestamp=self._viewport.now(),
            button=button,
            native=event,
        )

    # ------------------------------------------------------------------
    def _after_input(self) -> None:
        self.update()
        self._ensure_ticking()

    # ------------------------------------------------------------------
    def _ensure_ticking(self) -> None:
        if self._viewport.needs_tick and not self._frame_timer.isActive():
            self._frame_timer.start()

    # ------------------------------------------------------------------
    def _on_frame(self) -> None:
        if not self._viewport.tick():
            self._frame_timer.stop()
        self.update()

    # ------------------------------------------------------------------
    def _on_warning_changed(self, show: bool, kind: str) -> None:
        self.setToolTip((self._viewport.warning_text() or "") if show else "")
        self.warningChanged.emit(show, kind)


__all__ = ["MapWidget", "TILE_MISSING", "TileLoader"]
