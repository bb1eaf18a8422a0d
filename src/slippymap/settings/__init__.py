from .schema import DEFAULT_OPTIONS, MAP_OPTIONS_SCHEMA, MapOptions, merge_with_defaults, validate_options

__all__ = [
    "DEFAULT_OPTIONS",
    "MAP_OPTIONS_SCHEMA",
    "MapOptions",
    "merge_with_defaults",
    "validate_options",
]
