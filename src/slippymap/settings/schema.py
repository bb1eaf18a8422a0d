"""Schema helpers for the viewport construction options."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from dataclasses import dataclass
from typing import Any

from jsonschema import Draft202012Validator, ValidationError

from ..errors import OptionsValidationError

MAP_OPTIONS_SCHEMA: dict[str, Any] = {
    "$id": "slippymap/options.schema.json",
    "type": "object",
    "required": ["min_zoom", "max_zoom", "limit_bounds"],
    "properties": {
        "center": {
            "type": "array",
            "items": {"type": "number"},
            "minItems": 2,
            "maxItems": 2,
        },
        "zoom": {"type": "number"},
        "width": {"type": "number", "minimum": 0},
        "height": {"type": "number", "minimum": 0},
        "min_zoom": {"type": "number", "minimum": 0},
        "max_zoom": {"type": "number", "minimum": 0},
        "limit_bounds": {"type": "string", "enum": ["center", "edge"]},
        "animate": {"type": "boolean"},
        "animate_max_screens": {"type": "number", "minimum": 0},
        "zoom_snap": {"type": "boolean"},
        "mouse_events": {"type": "boolean"},
        "touch_events": {"type": "boolean"},
        "two_finger_drag": {"type": "boolean"},
        "two_finger_drag_warning": {"type": "string"},
        "meta_wheel_zoom": {"type": "boolean"},
        "meta_wheel_zoom_warning": {"type": "string"},
    },
    "additionalProperties": False,
}

DEFAULT_OPTIONS: dict[str, Any] = {
    "center": [0.0, 0.0],
    "zoom": 1,
    "width": 0,
    "height": 0,
    "min_zoom": 1,
    "max_zoom": 18,
    "limit_bounds": "center",
    "animate": True,
    "animate_max_screens": 5,
    "zoom_snap": True,
    "mouse_events": True,
    "touch_events": True,
    "two_finger_drag": False,
    "two_finger_drag_warning": "Use two fingers to move the map",
    "meta_wheel_zoom": False,
    "meta_wheel_zoom_warning": "Use META+wheel to zoom!",
}

_validator = Draft202012Validator(MAP_OPTIONS_SCHEMA)


@dataclass(frozen=True)
class MapOptions:
    """Validated construction options for :class:`~slippymap.core.controller.MapViewport`."""

    center: tuple[float, float] = (0.0, 0.0)
    zoom: float = 1.0
    width: float = 0.0
    height: float = 0.0
    min_zoom: float = 1.0
    max_zoom: float = 18.0
    limit_bounds: str = "center"
    animate: bool = True
    animate_max_screens: float = 5.0
    zoom_snap: bool = True
    mouse_events: bool = True
    touch_events: bool = True
    two_finger_drag: bool = False
    two_finger_drag_warning: str = DEFAULT_OPTIONS["two_finger_drag_warning"]
    meta_wheel_zoom: bool = False
    meta_wheel_zoom_warning: str = DEFAULT_OPTIONS["meta_wheel_zoom_warning"]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None = None) -> "MapOptions":
        """Merge *data* over the defaults, validate it and build the options."""

        merged = merge_with_defaults(data)
        lat, lng = merged["center"]
        return cls(
            center=(float(lat), float(lng)),
            zoom=float(merged["zoom"]),
            width=float(merged["width"]),
            height=float(merged["height"]),
            min_zoom=float(merged["min_zoom"]),
            max_zoom=float(merged["max_zoom"]),
            limit_bounds=merged["limit_bounds"],
            animate=bool(merged["animate"]),
            animate_max_screens=float(merged["animate_max_screens"]),
            zoom_snap=bool(merged["zoom_snap"]),
            mouse_events=bool(merged["mouse_events"]),
            touch_events=bool(merged["touch_events"]),
            two_finger_drag=bool(merged["two_finger_drag"]),
            two_finger_drag_warning=merged["two_finger_drag_warning"],
            meta_wheel_zoom=bool(merged["meta_wheel_zoom"]),
            meta_wheel_zoom_warning=merged["meta_wheel_zoom_warning"],
        )


def merge_with_defaults(data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_OPTIONS` and validate the result."""

    merged = deepcopy(DEFAULT_OPTIONS)
    if data:
        for key, value in data.items():
            if key == "center" and isinstance(value, tuple):
                merged[key] = list(value)
                continue
            merged[key] = value
    validate_options(merged)
    return merged


def validate_options(data: Mapping[str, Any]) -> None:
    """Validate *data* against the options schema and the zoom range."""

    try:
        _validator.validate(dict(data))
    except ValidationError as exc:
        raise OptionsValidationError(exc.message) from exc
    if data["min_zoom"] > data["max_zoom"]:
        raise OptionsValidationError(
            f"min_zoom {data['min_zoom']} is larger than max_zoom {data['max_zoom']}"
        )


__all__ = [
    "DEFAULT_OPTIONS",
    "MAP_OPTIONS_SCHEMA",
    "MapOptions",
    "merge_with_defaults",
    "validate_options",
]
