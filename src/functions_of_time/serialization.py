"""Checkpoint and restore named functions of time as NPZ bundles."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

import numpy as np

from .base import FunctionOfTime, function_of_time_class

_KIND_FIELD = "kind"
_SEPARATOR = "."


def save_functions_of_time(
    path: Path, functions: Mapping[str, FunctionOfTime]
) -> None:
    """
    Save functions of time to a single NPZ file.

    Storage format:
        <name>.kind: implementation name used to pick the class on restore
        <name>.<field>: every array returned by the function's ``as_dict``
    """
    if not functions:
        raise ValueError("No functions of time to save")

    payload: dict[str, np.ndarray] = {}
    for name, function in functions.items():
        if _SEPARATOR in name:
            raise ValueError(f"Function of time name '{name}' may not contain '{_SEPARATOR}'")
        if not function.kind:
            raise ValueError(f"{type(function).__name__} is not a registered function of time")
        payload[f"{name}{_SEPARATOR}{_KIND_FIELD}"] = np.array(function.kind)
        for field_name, value in function.as_dict().items():
            payload[f"{name}{_SEPARATOR}{field_name}"] = np.asarray(value)

    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(path, **payload)
    logging.info("Saved %d functions of time to %s", len(functions), path)


def load_functions_of_time(path: Path) -> dict[str, FunctionOfTime]:
    """Restore the mapping written by ``save_functions_of_time``."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Checkpoint {path} not found")

    grouped: dict[str, dict[str, np.ndarray]] = {}
    with np.load(path) as data:
        for key in data.files:
            name, _, field_name = key.partition(_SEPARATOR)
            grouped.setdefault(name, {})[field_name] = data[key]

    functions: dict[str, FunctionOfTime] = {}
    for name, fields in grouped.items():
        if _KIND_FIELD not in fields:
            raise ValueError(f"Checkpoint entry '{name}' has no '{_KIND_FIELD}' field")
        cls = function_of_time_class(str(fields.pop(_KIND_FIELD)))
        functions[name] = cls.from_dict(fields)
    logging.debug("Loaded %d functions of time from %s", len(functions), path)
    return functions
