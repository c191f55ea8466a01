"""Spherical harmonic surfaces and their on-disk archives."""

from .archive import (
    TimeMatchError,
    auto_match_time_epsilon,
    list_subfiles,
    read_subfile,
    read_surface_at_time,
    read_surfaces_at_time,
    select_matching_row,
    write_surface_archive,
    ylm_legend_and_data,
)
from .surface import (
    InsufficientResolutionError,
    SpectralSurface,
    coefficient_index,
    iter_modes,
    phys_to_spec,
    physical_size,
    spec_to_phys,
    spectral_size,
    theta_phi_points,
)

__all__ = [
    "InsufficientResolutionError",
    "SpectralSurface",
    "TimeMatchError",
    "auto_match_time_epsilon",
    "coefficient_index",
    "iter_modes",
    "list_subfiles",
    "phys_to_spec",
    "physical_size",
    "read_subfile",
    "read_surface_at_time",
    "read_surfaces_at_time",
    "select_matching_row",
    "spec_to_phys",
    "spectral_size",
    "theta_phi_points",
    "write_surface_archive",
    "ylm_legend_and_data",
]
