from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pytest

from src.spherical_harmonics import SpectralSurface, physical_size, write_surface_archive

ARCHIVE_MATCH_TIME = 1.7
ARCHIVE_FILE_L_MAX = 10
ARCHIVE_SUBFILES = ("Ylm_coefs", "dt_Ylm_coefs")


@dataclass(frozen=True)
class SurfaceArchive:
    path: Path
    surfaces: tuple[SpectralSurface, ...]  # one per subfile, same order
    time: float
    file_l_max: int


@pytest.fixture
def rng():
    return np.random.default_rng(20240605)


def random_surface(rng: np.random.Generator, l_max: int, low: float = 0.1, high: float = 2.0) -> SpectralSurface:
    """Surface projected from uniformly random radii on the collocation grid."""
    radius = rng.uniform(low, high, physical_size(l_max, l_max))
    return SpectralSurface.from_radius(l_max, l_max, radius)


@pytest.fixture
def surface_archive(tmp_path, rng) -> SurfaceArchive:
    """
    Archive with one random surface per subfile at ``ARCHIVE_MATCH_TIME``.

    The stored resolution is purposefully larger than the expansion orders the
    tests request, so reading it always exercises restriction.
    """
    path = tmp_path / "TotalEclipseOfTheHeart.npz"
    surfaces = tuple(random_surface(rng, ARCHIVE_FILE_L_MAX) for _ in ARCHIVE_SUBFILES)
    write_surface_archive(
        path,
        {
            name: [(ARCHIVE_MATCH_TIME, surface)]
            for name, surface in zip(ARCHIVE_SUBFILES, surfaces)
        },
    )
    return SurfaceArchive(
        path=path,
        surfaces=surfaces,
        time=ARCHIVE_MATCH_TIME,
        file_l_max=ARCHIVE_FILE_L_MAX,
    )
