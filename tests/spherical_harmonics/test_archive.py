# Tests for src/spherical_harmonics/archive.py

import numpy as np
import pytest

from src import config
from src.spherical_harmonics import (
    SpectralSurface,
    TimeMatchError,
    auto_match_time_epsilon,
    iter_modes,
    list_subfiles,
    read_subfile,
    read_surface_at_time,
    read_surfaces_at_time,
    select_matching_row,
    write_surface_archive,
    ylm_legend_and_data,
)


def test_legend_layout():
    surface = SpectralSurface.sphere(2, 1.0, center=(0.5, -0.5, 1.5))
    legend, row = ylm_legend_and_data(surface, 3.0)
    assert legend[:5] == [config.TIME_COLUMN, *config.CENTER_COLUMNS, config.LMAX_COLUMN]
    assert legend[5:] == [f"coef({l},{m})" for l, m in iter_modes(2)]
    assert row.shape == (len(legend),)
    assert row[:5].tolist() == [3.0, 0.5, -0.5, 1.5, 2.0]
    assert row[5] == surface.coefficient(0, 0)


def test_legend_padding_rejects_smaller_max_l():
    with pytest.raises(ValueError):
        ylm_legend_and_data(SpectralSurface.sphere(4, 1.0), 0.0, max_l=3)


def test_read_surface_is_bit_exact(surface_archive):
    for name, expected in zip(("Ylm_coefs", "dt_Ylm_coefs"), surface_archive.surfaces):
        surface = read_surface_at_time(surface_archive.path, name, surface_archive.time)
        assert surface.l_max == surface_archive.file_l_max
        np.testing.assert_array_equal(surface.coefficients, expected.coefficients)


def _count_archive_opens(monkeypatch):
    opened = []
    load = np.load

    def counting_load(path, *args, **kwargs):
        opened.append(path)
        return load(path, *args, **kwargs)

    monkeypatch.setattr(np, "load", counting_load)
    return opened


def test_several_subfiles_are_read_in_one_open(surface_archive, monkeypatch):
    opened = _count_archive_opens(monkeypatch)
    surfaces = read_surfaces_at_time(
        surface_archive.path, ["Ylm_coefs", "dt_Ylm_coefs"], surface_archive.time
    )
    assert len(opened) == 1
    for surface, expected in zip(surfaces, surface_archive.surfaces):
        np.testing.assert_array_equal(surface.coefficients, expected.coefficients)


def test_missing_subfile_fails_after_a_single_open(surface_archive, monkeypatch):
    opened = _count_archive_opens(monkeypatch)
    with pytest.raises(KeyError, match="available"):
        read_surfaces_at_time(
            surface_archive.path, ["Ylm_coefs", "Not_there"], surface_archive.time
        )
    assert len(opened) == 1


def test_list_and_read_subfiles(surface_archive):
    assert list_subfiles(surface_archive.path) == ["Ylm_coefs", "dt_Ylm_coefs"]
    frame = read_subfile(surface_archive.path, "/Ylm_coefs")
    assert frame.shape[0] == 1
    assert frame[config.TIME_COLUMN].iloc[0] == surface_archive.time


def test_mixed_resolutions_share_a_legend(tmp_path):
    path = tmp_path / "mixed.npz"
    low = SpectralSurface.sphere(2, 1.0)
    high = SpectralSurface.sphere(5, 2.0)
    write_surface_archive(path, {"Ylm_coefs": [(0.0, low), (1.0, high)]})

    read_low = read_surface_at_time(path, "Ylm_coefs", 0.0)
    read_high = read_surface_at_time(path, "Ylm_coefs", 1.0)
    assert read_low.l_max == 2
    assert read_high.l_max == 5
    assert read_low.average_radius() == pytest.approx(1.0)
    assert read_high.average_radius() == pytest.approx(2.0)


def test_missing_archive_and_subfile(tmp_path, surface_archive):
    with pytest.raises(FileNotFoundError):
        read_subfile(tmp_path / "nope.npz", "Ylm_coefs")
    with pytest.raises(KeyError, match="available"):
        read_subfile(surface_archive.path, "Not_there")


@pytest.mark.parametrize(
    "times,expected",
    [
        ([0.0, 0.5, 1.5], 0.25),
        ([2.0, 0.0, 1.0, 1.0], 0.5),
        ([1.7], config.DEFAULT_MATCH_TIME_EPSILON),
    ],
)
def test_auto_match_time_epsilon(times, expected):
    assert auto_match_time_epsilon(np.array(times)) == pytest.approx(expected)


def _archive_with_times(tmp_path, times):
    path = tmp_path / "series.npz"
    samples = [(t, SpectralSurface.sphere(3, 1.0 + i)) for i, t in enumerate(times)]
    write_surface_archive(path, {"Ylm_coefs": samples})
    return path


def test_exactly_one_sample_matches(tmp_path):
    path = _archive_with_times(tmp_path, [1.0, 1.5, 2.0])
    surface = read_surface_at_time(path, "Ylm_coefs", 1.5)
    assert surface.average_radius() == pytest.approx(2.0)
    surface = read_surface_at_time(path, "Ylm_coefs", 1.9, epsilon=0.2)
    assert surface.average_radius() == pytest.approx(3.0)


def test_two_samples_within_epsilon_raise(tmp_path):
    path = _archive_with_times(tmp_path, [1.0, 1.5, 2.0])
    with pytest.raises(TimeMatchError) as excinfo:
        read_surface_at_time(path, "Ylm_coefs", 1.25, epsilon=0.3)
    assert excinfo.value.matched_times == [1.0, 1.5]
    assert excinfo.value.match_time == 1.25


def test_no_sample_within_epsilon_raises(tmp_path):
    path = _archive_with_times(tmp_path, [1.0, 1.5, 2.0])
    with pytest.raises(TimeMatchError, match="no samples matched"):
        read_surface_at_time(path, "Ylm_coefs", 3.0)


def test_select_matching_row_with_duplicate_times(tmp_path):
    path = _archive_with_times(tmp_path, [1.0, 1.0, 2.0])
    frame = read_subfile(path, "Ylm_coefs")
    with pytest.raises(TimeMatchError):
        select_matching_row(frame, 1.0)
    row = select_matching_row(frame, 2.0)
    assert row[config.TIME_COLUMN] == 2.0
