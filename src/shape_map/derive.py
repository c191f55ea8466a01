"""
Derive the seed values of the shape and size functions of time.

The shape map deforms the surface of an excised object through spherical
harmonic coefficients; the size map controls its overall radial scale. Both
are seeded with ``config.NUM_SEED_SLOTS`` slots (value plus three time
derivatives) from a ``ShapeMapOptions`` and the object's inner radius.
"""

from __future__ import annotations

import logging

import numpy as np

from src import config
from src.functions_of_time import FunctionOfTime, PiecewisePolynomial
from src.spherical_harmonics import spectral_size

from .initial_values import (
    archived_shape_coefficients,
    check_inner_radius,
    horizon_shape_coefficients,
    zero_low_order_modes,
)
from .options import ArchivedSurfaceSnapshots, ShapeMapOptions


def initial_shape_and_size_funcs(
    options: ShapeMapOptions,
    inner_radius: float,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Seed coefficients for the shape and size functions of time.

    Args:
        options: Resolved shape map options for one object.
        inner_radius: Inner coordinate radius of the object's excision surface.

    Returns:
        (shape, size) where ``shape`` has shape (4, spectral_size(l_max, l_max))
        and ``size`` has shape (4,). Slot 0 is the value, slots 1-3 the time
        derivatives in increasing order.
    """
    inner_radius = check_inner_radius(inner_radius)

    l_max = options.expansion_order
    shape = np.zeros((config.NUM_SEED_SLOTS, spectral_size(l_max, l_max)))
    size = np.zeros(config.NUM_SEED_SLOTS)
    auto_size = options.initial_size_values is None
    spec = options.resolved_initial_values()

    if isinstance(spec, ArchivedSurfaceSnapshots):
        # Value snapshot seeds slot 0, its time derivative (if archived) slot 1
        for slot, coefficients in enumerate(archived_shape_coefficients(spec, l_max)):
            if auto_size:
                # Coefficients are already sign-flipped, so this is -c00 sqrt(pi/2)
                size[slot] = coefficients[0] * config.SPHEREPACK_L0_TO_YLM_FACTOR
            if spec.zero_low_order_modes:
                coefficients = zero_low_order_modes(coefficients, l_max)
            shape[slot] = coefficients
    else:
        shape[0] = horizon_shape_coefficients(spec, l_max, inner_radius=inner_radius)

    if not auto_size:
        size[:3] = options.initial_size_values
        size[3] = 0.0

    logging.info(
        "%s: seeded %d shape coefficients (%s), size=%s%s",
        options.name(),
        shape.shape[1],
        type(spec).__name__,
        np.array2string(size, precision=6),
        " (auto)" if auto_size else "",
    )
    return shape, size


def make_shape_and_size_functions_of_time(
    options: ShapeMapOptions,
    inner_radius: float,
    initial_time: float,
    expiration_time: float,
) -> dict[str, FunctionOfTime]:
    """Build the shape and size functions of time keyed by their map names."""
    shape, size = initial_shape_and_size_funcs(options, inner_radius)
    return {
        options.name(): PiecewisePolynomial(initial_time, shape, expiration_time),
        options.size_name(): PiecewisePolynomial(
            initial_time, size[:, np.newaxis], expiration_time
        ),
    }
