"""
Real spherical harmonic representation of a surface radius.

Coefficients follow the SPHEREPACK convention:

    f(θ, φ) = Σ_l Σ_{m=0}^{l} w_m P̄_l^m(cos θ) (a_lm cos mφ − b_lm sin mφ)

with w_0 = 1/2, w_m = 1 otherwise, and P̄_l^m normalized to unit norm on
[-1, 1]. The flat coefficient vector stores all a_lm first (index
m * (l_max + 1) + l) followed by all b_lm at the same offsets. Slots with
m > l, and b_l0, are always zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterator

import numpy as np
from scipy.special import roots_legendre, sph_harm_y


class InsufficientResolutionError(ValueError):
    """Requested expansion order exceeds the resolution of the stored surface."""

    def __init__(self, requested_l_max: int, available_l_max: int, context: str = ""):
        self.requested_l_max = requested_l_max
        self.available_l_max = available_l_max
        where = f" ({context})" if context else ""
        super().__init__(
            f"Cannot restrict surface{where} to l_max={requested_l_max}: "
            f"only l_max={available_l_max} is available"
        )


def _sph_harm(m: int, l: int, phi, theta):  # noqa: E741
    """Evaluate spherical harmonics using SciPy sph_harm_y (theta=colat, phi=azimuth)."""
    return sph_harm_y(l, m, theta, phi)


def spectral_size(l_max: int, m_max: int) -> int:
    """Length of the flat coefficient vector."""
    return 2 * (l_max + 1) * (m_max + 1)


def physical_size(l_max: int, m_max: int) -> int:
    """Number of collocation points on the grid."""
    return (l_max + 1) * (2 * m_max + 1)


def coefficient_index(l: int, m: int, l_max: int, m_max: int) -> int:  # noqa: E741
    """Flat index of mode (l, m); negative m addresses the sine coefficient b_l|m|."""
    if l < 0 or l > l_max or abs(m) > min(l, m_max):
        raise ValueError(f"Mode (l={l}, m={m}) is not valid for l_max={l_max}, m_max={m_max}")
    offset = abs(m) * (l_max + 1) + l
    if m < 0:
        return spectral_size(l_max, m_max) // 2 + offset
    return offset


def iter_modes(l_max: int, m_max: int | None = None) -> Iterator[tuple[int, int]]:
    """Yield (l, m) pairs in increasing l, then m from -l to l."""
    if m_max is None:
        m_max = l_max
    for l in range(l_max + 1):  # noqa: E741
        m_top = min(l, m_max)
        for m in range(-m_top, m_top + 1):
            yield l, m


def _normalized_legendre(l: int, m: int, theta: np.ndarray) -> np.ndarray:  # noqa: E741
    """P̄_l^m(cos θ) with unit norm on [-1, 1], from Y_lm at φ = 0."""
    return np.sqrt(2.0 * np.pi) * np.real(_sph_harm(m, l, 0.0, theta))


@lru_cache(maxsize=32)
def _collocation(l_max: int, m_max: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Gauss-Legendre colatitudes, equally spaced longitudes, and latitude weights."""
    nodes, weights = roots_legendre(l_max + 1)
    # Ascending colatitude
    nodes = nodes[::-1]
    weights = weights[::-1]
    theta = np.arccos(nodes)
    n_phi = 2 * m_max + 1
    phi = 2.0 * np.pi * np.arange(n_phi) / n_phi
    for arr in (theta, phi, weights):
        arr.setflags(write=False)
    return theta, phi, weights


@lru_cache(maxsize=32)
def _transform_matrices(l_max: int, m_max: int) -> tuple[np.ndarray, np.ndarray]:
    """Synthesis (physical x spectral) and analysis (spectral x physical) matrices."""
    theta, phi, weights = _collocation(l_max, m_max)
    theta_grid, phi_grid = np.meshgrid(theta, phi, indexing="ij")
    theta_flat = theta_grid.ravel()
    phi_flat = phi_grid.ravel()
    weight_flat = np.repeat(weights, phi.size) * (2.0 * np.pi / phi.size)

    n_spec = spectral_size(l_max, m_max)
    n_phys = physical_size(l_max, m_max)
    synthesis = np.zeros((n_phys, n_spec), dtype=np.float64)
    analysis = np.zeros((n_spec, n_phys), dtype=np.float64)

    for l in range(l_max + 1):  # noqa: E741
        for m in range(min(l, m_max) + 1):
            legendre = _normalized_legendre(l, m, theta_flat)
            cos_part = legendre * np.cos(m * phi_flat)
            a_idx = coefficient_index(l, m, l_max, m_max)
            synthesis[:, a_idx] = (0.5 if m == 0 else 1.0) * cos_part
            analysis[a_idx, :] = weight_flat * cos_part / np.pi
            if m > 0:
                sin_part = legendre * np.sin(m * phi_flat)
                b_idx = coefficient_index(l, -m, l_max, m_max)
                synthesis[:, b_idx] = -sin_part
                analysis[b_idx, :] = -weight_flat * sin_part / np.pi

    synthesis.setflags(write=False)
    analysis.setflags(write=False)
    return synthesis, analysis


def theta_phi_points(l_max: int, m_max: int) -> tuple[np.ndarray, np.ndarray]:
    """Flattened (theta, phi) collocation points, theta-major."""
    theta, phi, _ = _collocation(l_max, m_max)
    theta_grid, phi_grid = np.meshgrid(theta, phi, indexing="ij")
    return theta_grid.ravel(), phi_grid.ravel()


def phys_to_spec(values: np.ndarray, l_max: int, m_max: int) -> np.ndarray:
    """Project grid values onto the coefficient basis."""
    values = np.asarray(values, dtype=np.float64)
    expected = physical_size(l_max, m_max)
    if values.shape != (expected,):
        raise ValueError(f"Expected {expected} grid values, got shape {values.shape}")
    _, analysis = _transform_matrices(l_max, m_max)
    return analysis @ values


def spec_to_phys(coefficients: np.ndarray, l_max: int, m_max: int) -> np.ndarray:
    """Evaluate coefficients on the collocation grid."""
    coefficients = np.asarray(coefficients, dtype=np.float64)
    expected = spectral_size(l_max, m_max)
    if coefficients.shape != (expected,):
        raise ValueError(
            f"Expected {expected} coefficients, got shape {coefficients.shape}"
        )
    synthesis, _ = _transform_matrices(l_max, m_max)
    return synthesis @ coefficients


@dataclass(frozen=True, eq=False)
class SpectralSurface:
    """Surface radius r(θ, φ) about an expansion center."""

    l_max: int
    m_max: int
    coefficients: np.ndarray
    center: tuple[float, float, float] = field(default=(0.0, 0.0, 0.0))

    def __post_init__(self) -> None:
        if self.l_max < 0 or self.m_max < 0 or self.m_max > self.l_max:
            raise ValueError(f"Invalid resolution l_max={self.l_max}, m_max={self.m_max}")
        coefficients = np.array(self.coefficients, dtype=np.float64)
        expected = spectral_size(self.l_max, self.m_max)
        if coefficients.shape != (expected,):
            raise ValueError(
                f"Expected {expected} coefficients, got shape {coefficients.shape}"
            )
        coefficients.setflags(write=False)
        object.__setattr__(self, "coefficients", coefficients)
        object.__setattr__(self, "center", tuple(float(c) for c in self.center))

    @classmethod
    def from_radius(
        cls,
        l_max: int,
        m_max: int,
        radius: np.ndarray,
        center: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> SpectralSurface:
        """Build a surface from radius values at the collocation points."""
        return cls(l_max, m_max, phys_to_spec(radius, l_max, m_max), center)

    @classmethod
    def sphere(
        cls,
        l_max: int,
        radius: float,
        center: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> SpectralSurface:
        """Sphere of constant radius; only a_00 is non-zero."""
        coefficients = np.zeros(spectral_size(l_max, l_max))
        coefficients[0] = 2.0 * np.sqrt(2.0) * radius
        return cls(l_max, l_max, coefficients, center)

    def coefficient(self, l: int, m: int) -> float:  # noqa: E741
        return float(self.coefficients[coefficient_index(l, m, self.l_max, self.m_max)])

    def radius(self) -> np.ndarray:
        """Radius at the collocation points."""
        return spec_to_phys(self.coefficients, self.l_max, self.m_max)

    def average_radius(self) -> float:
        """Mean radius over the sphere (the l = 0 content)."""
        return float(self.coefficients[0] / (2.0 * np.sqrt(2.0)))

    def restricted(self, l_max: int) -> SpectralSurface:
        """Copy keeping only modes with l <= l_max; never re-expands."""
        if l_max < 0:
            raise ValueError(f"l_max must be non-negative, got {l_max}")
        if l_max > self.l_max:
            raise InsufficientResolutionError(l_max, self.l_max)
        m_max = min(self.m_max, l_max)
        restricted = np.zeros(spectral_size(l_max, m_max))
        for l, m in iter_modes(l_max, m_max):  # noqa: E741
            restricted[coefficient_index(l, m, l_max, m_max)] = self.coefficients[
                coefficient_index(l, m, self.l_max, self.m_max)
            ]
        logging.debug("Restricted surface from l_max=%d to l_max=%d", self.l_max, l_max)
        return SpectralSurface(l_max, m_max, restricted, self.center)
