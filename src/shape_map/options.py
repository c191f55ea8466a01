"""Options describing the initial state of a shape map and its size map."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Union

import numpy as np
import yaml

from src import config


class ShapeMapOptionsError(ValueError):
    """Malformed shape map configuration."""


class ObjectLabel(str, Enum):
    """Which object of a multi-object domain a map belongs to."""

    A = "A"
    B = "B"
    NONE = ""

    def __str__(self) -> str:
        return self.value


def check_expansion_order(value: Any, key: str = "LMax") -> int:
    """Non-negative integer (Python or numpy, but not bool) as a plain int."""
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
        raise ShapeMapOptionsError(f"{key} must be a non-negative integer, got {value!r}")
    if value < 0:
        raise ShapeMapOptionsError(f"{key} must be non-negative, got {value}")
    return int(value)


def parse_object_label(value: ObjectLabel | str | None) -> ObjectLabel:
    if value is None:
        return ObjectLabel.NONE
    if isinstance(value, ObjectLabel):
        return value
    if str(value) == "None":
        return ObjectLabel.NONE
    try:
        return ObjectLabel(str(value))
    except ValueError:
        raise ValueError(f"Unknown object label: {value}") from None


@dataclass(frozen=True)
class Unspecified:
    """Spherical initial shape: every shape coefficient starts at zero."""


@dataclass(frozen=True)
class AnalyticKerrSchildBoyerLindquist:
    """Horizon of a Kerr black hole in Kerr-Schild coordinates.

    ``spin`` is the dimensionless spin vector; its magnitude is not checked
    here.
    """

    mass: float
    spin: tuple[float, float, float]

    def __post_init__(self) -> None:
        mass = float(self.mass)
        if not math.isfinite(mass) or mass <= 0.0:
            raise ShapeMapOptionsError(f"Mass must be positive and finite, got {self.mass!r}")
        spin = tuple(float(s) for s in self.spin)
        if len(spin) != 3 or not all(math.isfinite(s) for s in spin):
            raise ShapeMapOptionsError(f"Spin must be 3 finite numbers, got {self.spin!r}")
        object.__setattr__(self, "mass", mass)
        object.__setattr__(self, "spin", spin)


def _subfile_names(value: Any) -> tuple[str, ...]:
    """A single subfile name or a list of names, as a tuple of names."""
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and all(isinstance(name, str) for name in value):
        return tuple(value)
    raise ShapeMapOptionsError(
        f"SubfileNames must be a subfile name or a list of names, got {value!r}"
    )


@dataclass(frozen=True)
class ArchivedSurfaceSnapshots:
    """Surface coefficients read from an archive at a given time.

    ``subfile_names`` holds the value subfile and, optionally, the subfile of
    its time derivative. ``match_time_epsilon=None`` means the tolerance is
    derived from the archive's sampling.
    """

    archive_name: str
    subfile_names: tuple[str, ...]
    match_time: float
    match_time_epsilon: float | None = None
    zero_low_order_modes: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.archive_name, (str, os.PathLike)) or not os.fspath(
            self.archive_name
        ):
            raise ShapeMapOptionsError(
                f"H5Filename must be a non-empty path, got {self.archive_name!r}"
            )
        names = _subfile_names(self.subfile_names)
        if not 1 <= len(names) <= 2 or not all(names):
            raise ShapeMapOptionsError(
                "SubfileNames must list the value subfile and optionally its "
                f"time-derivative subfile, got {list(names)!r}"
            )
        match_time = _as_float(self.match_time, "MatchTime")
        if not math.isfinite(match_time):
            raise ShapeMapOptionsError(f"MatchTime must be finite, got {self.match_time!r}")
        epsilon = self.match_time_epsilon
        if epsilon is not None:
            epsilon = _as_float(epsilon, "MatchTimeEpsilon")
            if not math.isfinite(epsilon) or epsilon <= 0.0:
                raise ShapeMapOptionsError(
                    f"MatchTimeEpsilon must be positive, got {self.match_time_epsilon!r}"
                )
        object.__setattr__(self, "archive_name", os.fspath(self.archive_name))
        object.__setattr__(self, "subfile_names", names)
        object.__setattr__(self, "match_time", match_time)
        object.__setattr__(self, "match_time_epsilon", epsilon)
        object.__setattr__(self, "zero_low_order_modes", bool(self.zero_low_order_modes))


InitialValueSpecification = Union[
    Unspecified, AnalyticKerrSchildBoyerLindquist, ArchivedSurfaceSnapshots
]
INITIAL_VALUE_SPECIFICATIONS = (
    Unspecified,
    AnalyticKerrSchildBoyerLindquist,
    ArchivedSurfaceSnapshots,
)


@dataclass(frozen=True)
class ShapeMapOptions:
    """Per-object shape map configuration.

    ``initial_values=None`` is equivalent to ``Unspecified()``.
    ``initial_size_values=None`` means "Auto": the size map is seeded from
    the shape data. ``transition_ends_at_cube`` is None for domains that do
    not offer the option.
    """

    expansion_order: int
    initial_values: InitialValueSpecification | None = None
    initial_size_values: tuple[float, float, float] | None = None
    transition_ends_at_cube: bool | None = None
    object_label: ObjectLabel = ObjectLabel.NONE

    def __post_init__(self) -> None:
        object.__setattr__(self, "expansion_order", check_expansion_order(self.expansion_order))
        if self.initial_values is not None and not isinstance(
            self.initial_values, INITIAL_VALUE_SPECIFICATIONS
        ):
            raise ShapeMapOptionsError(
                f"Unknown initial value specification: {self.initial_values!r}"
            )
        if self.initial_size_values is not None:
            sizes = tuple(float(v) for v in self.initial_size_values)
            if len(sizes) != 3:
                raise ShapeMapOptionsError(
                    f"SizeInitialValues must have 3 entries, got {len(sizes)}"
                )
            object.__setattr__(self, "initial_size_values", sizes)
        object.__setattr__(self, "object_label", parse_object_label(self.object_label))

    @property
    def l_max(self) -> int:
        return self.expansion_order

    def resolved_initial_values(self) -> InitialValueSpecification:
        return Unspecified() if self.initial_values is None else self.initial_values

    def name(self) -> str:
        return f"{config.SHAPE_MAP_NAME_PREFIX}{self.object_label}"

    def size_name(self) -> str:
        return f"{config.SIZE_MAP_NAME_PREFIX}{self.object_label}"


def _as_float(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise ShapeMapOptionsError(f"{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ShapeMapOptionsError(f"{key} must be a number, got {value!r}") from None


def _as_vector(value: Any, key: str, length: int = 3) -> tuple[float, ...]:
    if isinstance(value, (str, bytes)) or not hasattr(value, "__len__"):
        raise ShapeMapOptionsError(f"{key} must be a list of {length} numbers, got {value!r}")
    if len(value) != length:
        raise ShapeMapOptionsError(
            f"{key} must have {length} entries, got {len(value)}"
        )
    return tuple(_as_float(v, key) for v in value)


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise ShapeMapOptionsError(f"{key} must be a boolean, got {value!r}")


def _check_keys(raw: Mapping[str, Any], required: set[str], optional: set[str], where: str) -> None:
    keys = set(raw)
    missing = required - keys
    if missing:
        raise ShapeMapOptionsError(f"{where}: missing option(s) {sorted(missing)}")
    unknown = keys - required - optional
    if unknown:
        raise ShapeMapOptionsError(f"{where}: unknown option(s) {sorted(unknown)}")


def kerr_schild_from_dict(raw: Mapping[str, Any]) -> AnalyticKerrSchildBoyerLindquist:
    """Parse ``{Mass, Spin}``."""
    _check_keys(raw, {"Mass", "Spin"}, set(), "InitialValues")
    return AnalyticKerrSchildBoyerLindquist(
        mass=_as_float(raw["Mass"], "Mass"),
        spin=_as_vector(raw["Spin"], "Spin"),  # type: ignore[arg-type]
    )


def ylms_from_file_from_dict(raw: Mapping[str, Any]) -> ArchivedSurfaceSnapshots:
    """Parse ``{H5Filename, SubfileNames, MatchTime, MatchTimeEpsilon, SetL1CoefsToZero}``."""
    _check_keys(
        raw,
        {"H5Filename", "SubfileNames", "MatchTime", "SetL1CoefsToZero"},
        {"MatchTimeEpsilon"},
        "InitialValues",
    )
    epsilon = raw.get("MatchTimeEpsilon", config.AUTO_KEYWORD)
    if epsilon == config.AUTO_KEYWORD or epsilon is None:
        epsilon = None
    else:
        epsilon = _as_float(epsilon, "MatchTimeEpsilon")
    return ArchivedSurfaceSnapshots(
        archive_name=raw["H5Filename"],
        subfile_names=raw["SubfileNames"],
        match_time=_as_float(raw["MatchTime"], "MatchTime"),
        match_time_epsilon=epsilon,
        zero_low_order_modes=_as_bool(raw["SetL1CoefsToZero"], "SetL1CoefsToZero"),
    )


def initial_values_from_config(value: Any) -> InitialValueSpecification | None:
    """Resolve the ``InitialValues`` entry; None means a spherical start."""
    if value is None:
        return None
    if isinstance(value, str):
        if value in config.SPHERICAL_KEYWORDS:
            return None
        raise ShapeMapOptionsError(f"Unknown InitialValues keyword: {value}")
    if not isinstance(value, Mapping):
        raise ShapeMapOptionsError(f"InitialValues must be a keyword or mapping, got {value!r}")
    if "Mass" in value or "Spin" in value:
        return kerr_schild_from_dict(value)
    if "H5Filename" in value:
        return ylms_from_file_from_dict(value)
    raise ShapeMapOptionsError(
        f"Cannot tell which InitialValues variant is meant by keys {sorted(value)}"
    )


def shape_map_options_from_dict(
    raw: Mapping[str, Any],
    *,
    object_label: ObjectLabel | str | None = ObjectLabel.NONE,
    include_transition_ends_at_cube: bool = False,
) -> ShapeMapOptions:
    """Validate a parsed configuration mapping into ``ShapeMapOptions``."""
    if not isinstance(raw, Mapping):
        raise ShapeMapOptionsError(f"Shape map options must be a mapping, got {raw!r}")
    required = {"LMax", "SizeInitialValues"}
    optional = {"InitialValues"}
    if include_transition_ends_at_cube:
        required.add("TransitionEndsAtCube")
    _check_keys(raw, required, optional, "ShapeMap")

    size_raw = raw["SizeInitialValues"]
    if size_raw == config.AUTO_KEYWORD:
        size_values = None
    else:
        size_values = _as_vector(size_raw, "SizeInitialValues")

    transition = None
    if include_transition_ends_at_cube:
        transition = _as_bool(raw["TransitionEndsAtCube"], "TransitionEndsAtCube")

    return ShapeMapOptions(
        expansion_order=check_expansion_order(raw["LMax"]),
        initial_values=initial_values_from_config(raw.get("InitialValues")),
        initial_size_values=size_values,  # type: ignore[arg-type]
        transition_ends_at_cube=transition,
        object_label=parse_object_label(object_label),
    )


def load_shape_map_options(
    source: str | Path,
    *,
    object_label: ObjectLabel | str | None = ObjectLabel.NONE,
    include_transition_ends_at_cube: bool = False,
) -> ShapeMapOptions:
    """Load options from a YAML file path or from YAML text."""
    if isinstance(source, Path):
        if not source.exists():
            raise FileNotFoundError(f"Options file not found at {source}")
        text = source.read_text(encoding="utf-8")
    else:
        text = source
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ShapeMapOptionsError(f"Could not parse shape map options: {exc}") from exc
    return shape_map_options_from_dict(
        raw,
        object_label=object_label,
        include_transition_ends_at_cube=include_transition_ends_at_cube,
    )
