"""Archived time series of spherical harmonic surfaces.

An archive is a single NPZ bundle holding any number of subfiles. Subfile
``<name>`` is stored as two arrays:

    <name>.legend: string column names
    <name>.data:   float64 array of shape (n_samples, n_columns)

The legend is ``Time``, the three expansion-center components, ``Lmax`` and
then ``coef(l,m)`` for l = 0..Lmax, m = -l..l, where negative m holds the
sine coefficient b_l|m|.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Sequence

import numpy as np
import pandas as pd

from src import config

from .surface import SpectralSurface, coefficient_index, iter_modes, spectral_size


class TimeMatchError(ValueError):
    """Zero or several archived samples lie within epsilon of the match time."""

    def __init__(
        self,
        match_time: float,
        epsilon: float,
        matched_times: Sequence[float],
        subfile: str = "",
    ):
        self.match_time = match_time
        self.epsilon = epsilon
        self.matched_times = list(matched_times)
        where = f" in subfile '{subfile}'" if subfile else ""
        if self.matched_times:
            detail = f"{len(self.matched_times)} samples matched: {self.matched_times}"
        else:
            detail = "no samples matched"
        super().__init__(
            f"Expected exactly one sample{where} within {epsilon:.3e} of time "
            f"{match_time!r}; {detail}"
        )


def _coef_column(l: int, m: int) -> str:  # noqa: E741
    return f"coef({l},{m})"


def _normalize_subfile_name(name: str) -> str:
    return name.strip("/")


def ylm_legend_and_data(
    surface: SpectralSurface,
    time: float,
    max_l: int | None = None,
) -> tuple[list[str], np.ndarray]:
    """Build the legend and one data row for ``surface`` at ``time``.

    Rows are zero-padded up to ``max_l`` so surfaces written at different
    resolutions share one legend.
    """
    if max_l is None:
        max_l = surface.l_max
    if max_l < surface.l_max:
        raise ValueError(f"max_l={max_l} is smaller than surface l_max={surface.l_max}")

    legend = [config.TIME_COLUMN, *config.CENTER_COLUMNS, config.LMAX_COLUMN]
    row = [float(time), *surface.center, float(surface.l_max)]
    for l, m in iter_modes(max_l):  # noqa: E741
        legend.append(_coef_column(l, m))
        if l <= surface.l_max and abs(m) <= surface.m_max:
            row.append(surface.coefficient(l, m))
        else:
            row.append(0.0)
    return legend, np.asarray(row, dtype=np.float64)


def write_surface_archive(
    path: Path,
    subfiles: Mapping[str, Sequence[tuple[float, SpectralSurface]]],
) -> None:
    """Write ``{subfile: [(time, surface), ...]}`` to an NPZ archive."""
    payload: dict[str, np.ndarray] = {}
    for name, samples in subfiles.items():
        if not samples:
            raise ValueError(f"Subfile '{name}' has no samples")
        key = _normalize_subfile_name(name)
        max_l = max(surface.l_max for _, surface in samples)
        legend: list[str] = []
        rows = []
        for time, surface in samples:
            legend, row = ylm_legend_and_data(surface, time, max_l=max_l)
            rows.append(row)
        payload[key + config.LEGEND_SUFFIX] = np.array(legend)
        payload[key + config.DATA_SUFFIX] = np.vstack(rows)

    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(path, **payload)
    logging.info("Saved %d surface subfiles to %s", len(subfiles), path)


def _available_subfiles(data) -> list[str]:
    return sorted(
        key[: -len(config.LEGEND_SUFFIX)]
        for key in data.files
        if key.endswith(config.LEGEND_SUFFIX)
    )


def _subfile_frame(data, path: Path, name: str) -> pd.DataFrame:
    """DataFrame for subfile ``name`` of an already opened archive."""
    key = _normalize_subfile_name(name)
    legend_key = key + config.LEGEND_SUFFIX
    data_key = key + config.DATA_SUFFIX
    if legend_key not in data.files or data_key not in data.files:
        raise KeyError(
            f"Subfile '{name}' not in {path}; available: {_available_subfiles(data)}"
        )
    legend = [str(col) for col in data[legend_key]]
    values = np.atleast_2d(data[data_key].astype(np.float64))
    logging.debug("Read %d samples from %s:%s", values.shape[0], path, key)
    return pd.DataFrame(values, columns=legend)


def list_subfiles(path: Path) -> list[str]:
    """Names of the subfiles stored in an archive."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Archive {path} not found")
    with np.load(path) as data:
        return _available_subfiles(data)


def read_subfile(path: Path, name: str) -> pd.DataFrame:
    """Load one subfile as a DataFrame whose columns are the stored legend."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Archive {path} not found")
    with np.load(path) as data:
        return _subfile_frame(data, path, name)


def auto_match_time_epsilon(times: np.ndarray) -> float:
    """Half the smallest positive spacing between stored sample times."""
    unique_times = np.unique(np.asarray(times, dtype=np.float64))
    if unique_times.size < 2:
        return config.DEFAULT_MATCH_TIME_EPSILON
    return float(config.AUTO_EPSILON_STEP_FRACTION * np.min(np.diff(unique_times)))


def select_matching_row(
    frame: pd.DataFrame,
    match_time: float,
    epsilon: float | None = None,
    subfile: str = "",
) -> pd.Series:
    """Return the single row whose time lies within ``epsilon`` of ``match_time``."""
    times = frame[config.TIME_COLUMN].to_numpy()
    if epsilon is None:
        epsilon = auto_match_time_epsilon(times)
        logging.debug("Using automatic match-time epsilon %.3e", epsilon)
    mask = np.abs(times - match_time) <= epsilon
    if np.count_nonzero(mask) != 1:
        raise TimeMatchError(match_time, epsilon, times[mask].tolist(), subfile=subfile)
    return frame.loc[mask].iloc[0]


def surface_from_row(row: pd.Series) -> SpectralSurface:
    """Rebuild the surface stored in one archive row at its own resolution."""
    l_max = int(row[config.LMAX_COLUMN])
    coefficients = np.zeros(spectral_size(l_max, l_max))
    for l, m in iter_modes(l_max):  # noqa: E741
        column = _coef_column(l, m)
        if column not in row.index:
            raise KeyError(f"Archive row is missing column '{column}' for Lmax={l_max}")
        coefficients[coefficient_index(l, m, l_max, l_max)] = row[column]
    center = tuple(float(row[col]) for col in config.CENTER_COLUMNS)
    return SpectralSurface(l_max, l_max, coefficients, center)


def read_surfaces_at_time(
    path: Path,
    names: Sequence[str],
    match_time: float,
    epsilon: float | None = None,
) -> list[SpectralSurface]:
    """Read the surface stored in each of ``names`` at ``match_time``.

    The archive is opened once and released before returning, also when a
    subfile is missing or no single sample matches.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Archive {path} not found")
    surfaces = []
    with np.load(path) as data:
        for name in names:
            frame = _subfile_frame(data, path, name)
            row = select_matching_row(frame, match_time, epsilon, subfile=name)
            surface = surface_from_row(row)
            logging.debug(
                "Matched %s:%s at t=%r (stored t=%r, l_max=%d)",
                path,
                name,
                match_time,
                float(row[config.TIME_COLUMN]),
                surface.l_max,
            )
            surfaces.append(surface)
    return surfaces


def read_surface_at_time(
    path: Path,
    name: str,
    match_time: float,
    epsilon: float | None = None,
) -> SpectralSurface:
    """Read the surface stored in ``name`` at ``match_time``."""
    return read_surfaces_at_time(path, [name], match_time, epsilon)[0]
