"""Shape and size map options and the derivation of their initial data."""

from .derive import initial_shape_and_size_funcs, make_shape_and_size_functions_of_time
from .initial_values import (
    archived_shape_coefficients,
    horizon_shape_coefficients,
    kerr_schild_horizon_radius_offset,
    zero_low_order_modes,
)
from .options import (
    AnalyticKerrSchildBoyerLindquist,
    ArchivedSurfaceSnapshots,
    InitialValueSpecification,
    ObjectLabel,
    ShapeMapOptions,
    ShapeMapOptionsError,
    Unspecified,
    initial_values_from_config,
    load_shape_map_options,
    shape_map_options_from_dict,
)

__all__ = [
    "AnalyticKerrSchildBoyerLindquist",
    "ArchivedSurfaceSnapshots",
    "InitialValueSpecification",
    "ObjectLabel",
    "ShapeMapOptions",
    "ShapeMapOptionsError",
    "Unspecified",
    "archived_shape_coefficients",
    "horizon_shape_coefficients",
    "initial_shape_and_size_funcs",
    "initial_values_from_config",
    "kerr_schild_horizon_radius_offset",
    "load_shape_map_options",
    "make_shape_and_size_functions_of_time",
    "shape_map_options_from_dict",
    "zero_low_order_modes",
]
