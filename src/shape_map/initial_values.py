"""Shape-map coefficients for each way of specifying an initial horizon."""

from __future__ import annotations

import logging
import math
from pathlib import Path

import numpy as np

from src import config
from src.spherical_harmonics import (
    InsufficientResolutionError,
    coefficient_index,
    iter_modes,
    phys_to_spec,
    read_surfaces_at_time,
    spectral_size,
    theta_phi_points,
)

from .options import (
    AnalyticKerrSchildBoyerLindquist,
    ArchivedSurfaceSnapshots,
    InitialValueSpecification,
    ShapeMapOptionsError,
    Unspecified,
    check_expansion_order,
)


def kerr_schild_horizon_radius_offset(
    theta: np.ndarray,
    phi: np.ndarray,
    mass: float,
    spin: tuple[float, float, float],
) -> tuple[np.ndarray, float]:
    """
    Kerr-Schild radius of the Kerr horizon minus its polar radius r_+.

    The Boyer-Lindquist horizon r = r_+ is the ellipsoid
        (x² + y²) / (r_+² + a²) + z² / r_+² = 1
    in Kerr-Schild coordinates (spin along z). Along a direction n with
    a·n = a cos ψ this gives
        r_KS² = r_+² (r_+² + a²) / (r_+² + (a·n)²).
    The offset r_KS - r_+ is returned in a form without cancellation, so it
    is exactly zero when the spin vanishes.

    Returns:
        (r_KS - r_+ at each point, r_+)
    """
    spin_vec = np.asarray(spin, dtype=np.float64)
    chi_squared = float(spin_vec @ spin_vec)
    if chi_squared >= 1.0:
        raise ValueError(
            f"Dimensionless spin magnitude {np.sqrt(chi_squared):.6g} has no horizon"
        )
    a_vec = mass * spin_vec
    a_squared = float(a_vec @ a_vec)
    r_plus = mass + np.sqrt(mass**2 - a_squared)

    sin_theta = np.sin(theta)
    directions = np.stack(
        [sin_theta * np.cos(phi), sin_theta * np.sin(phi), np.cos(theta)], axis=-1
    )
    a_dot_n = directions @ a_vec
    perp_squared = a_squared - a_dot_n**2
    denominator = r_plus**2 + a_dot_n**2
    r_ks = r_plus * np.sqrt((r_plus**2 + a_squared) / denominator)
    # r_KS² - r_+² = r_+² (a² - (a·n)²) / (r_+² + (a·n)²)
    offset = r_plus**2 * perp_squared / (denominator * (r_ks + r_plus))
    return offset, float(r_plus)


def check_inner_radius(inner_radius: float) -> float:
    inner_radius = float(inner_radius)
    if not math.isfinite(inner_radius) or inner_radius <= 0.0:
        raise ValueError(f"inner_radius must be positive and finite, got {inner_radius!r}")
    return inner_radius


def zero_low_order_modes(coefficients: np.ndarray, l_max: int) -> np.ndarray:
    """Copy with every l = 0 and l = 1 coefficient set to zero."""
    zeroed = np.array(coefficients, dtype=np.float64)
    for l, m in iter_modes(min(l_max, config.LOW_ORDER_MODE_CUTOFF - 1)):  # noqa: E741
        zeroed[coefficient_index(l, m, l_max, l_max)] = 0.0
    return zeroed


def _analytic_shape_coefficients(
    spec: AnalyticKerrSchildBoyerLindquist,
    expansion_order: int,
    inner_radius: float,
) -> np.ndarray:
    theta, phi = theta_phi_points(expansion_order, expansion_order)
    offset, r_plus = kerr_schild_horizon_radius_offset(theta, phi, spec.mass, spec.spin)
    coefficients = phys_to_spec(-offset / inner_radius, expansion_order, expansion_order)
    # The mean radius is carried by the size map
    coefficients[0] = 0.0
    logging.debug(
        "Kerr horizon: mass=%g spin=%s r_+=%g, projected at l_max=%d",
        spec.mass,
        spec.spin,
        r_plus,
        expansion_order,
    )
    return coefficients


def archived_shape_coefficients(
    spec: ArchivedSurfaceSnapshots,
    expansion_order: int,
) -> list[np.ndarray]:
    """
    Restricted, sign-flipped coefficients for every archived snapshot.

    One array per subfile, in ``subfile_names`` order (value first, then the
    time derivative when present). Low-order modes are left untouched so
    callers can still read the l = 0 content.
    """
    path = Path(spec.archive_name)
    surfaces = read_surfaces_at_time(
        path, spec.subfile_names, spec.match_time, spec.match_time_epsilon
    )
    snapshots = []
    for subfile, surface in zip(spec.subfile_names, surfaces):
        if expansion_order > surface.l_max:
            raise InsufficientResolutionError(
                expansion_order, surface.l_max, context=f"{path}:{subfile}"
            )
        restricted = surface.restricted(expansion_order)
        # Stored surfaces use the opposite sign to the shape map
        snapshots.append(-1.0 * restricted.coefficients)
        logging.info(
            "Read %s:%s at t=%r (file l_max=%d -> l_max=%d)",
            path,
            subfile,
            spec.match_time,
            surface.l_max,
            expansion_order,
        )
    return snapshots


def horizon_shape_coefficients(
    spec: InitialValueSpecification | None,
    expansion_order: int,
    inner_radius: float = 1.0,
) -> np.ndarray:
    """
    Shape-map coefficients of length ``spectral_size(expansion_order, expansion_order)``.

    Args:
        spec: Initial value specification; None is treated as Unspecified.
        expansion_order: Highest spherical harmonic degree kept.
        inner_radius: Length scale the analytic horizon distortion is measured in.

    Returns:
        Coefficient vector for the value slot of the shape map.
    """
    expansion_order = check_expansion_order(expansion_order, key="Expansion order")
    inner_radius = check_inner_radius(inner_radius)

    if spec is None or isinstance(spec, Unspecified):
        return np.zeros(spectral_size(expansion_order, expansion_order))
    if isinstance(spec, AnalyticKerrSchildBoyerLindquist):
        return _analytic_shape_coefficients(spec, expansion_order, inner_radius)
    if isinstance(spec, ArchivedSurfaceSnapshots):
        coefficients = archived_shape_coefficients(spec, expansion_order)[0]
        if spec.zero_low_order_modes:
            coefficients = zero_low_order_modes(coefficients, expansion_order)
        return coefficients
    raise ShapeMapOptionsError(f"Unknown initial value specification: {spec!r}")
