"""Base interface for functions of time driving time-dependent maps.

A function of time returns the same value for a time ``t`` no matter when,
how often, or by whom it is called, provided ``t`` lies inside its domain of
validity. Every implementation supplies

    - ``value(t)``                    -> (f,)
    - ``value_and_1_derivative(t)``   -> (f, df/dt)
    - ``value_and_2_derivatives(t)``  -> (f, df/dt, d2f/dt2)

where each entry is a 1-D float64 array of the same length (one entry for a
scalar function, three for a 3-vector, and so on).
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any, Callable, TypeVar

import numpy as np


class OutOfDomainError(ValueError):
    """Evaluation time lies outside the function's domain of validity."""

    def __init__(self, time: float, bounds: tuple[float, float], name: str = ""):
        self.time = time
        self.bounds = bounds
        who = f"{name} " if name else ""
        super().__init__(
            f"Time {time!r} is outside the {who}domain of validity "
            f"[{bounds[0]!r}, {bounds[1]!r}]"
        )


class FunctionOfTime(ABC):
    """Interval-bounded, side-effect-free mapping from time to value and derivatives."""

    kind: str = ""

    def get_clone(self) -> FunctionOfTime:
        """Deep, independently owned copy."""
        return copy.deepcopy(self)

    @abstractmethod
    def time_bounds(self) -> tuple[float, float]:
        """Domain of validity, including any allowed extrapolation interval."""

    @abstractmethod
    def _func_and_derivs(self, t: float, n_derivs: int) -> tuple[np.ndarray, ...]:
        """Value and the first ``n_derivs`` derivatives at a validated time."""

    @abstractmethod
    def as_dict(self) -> dict[str, Any]:
        """Array payload sufficient to rebuild this instance via ``from_dict``."""

    @classmethod
    @abstractmethod
    def from_dict(cls, payload: dict[str, Any]) -> FunctionOfTime:
        """Rebuild an instance from ``as_dict`` output."""

    def check_time(self, t: float) -> float:
        t = float(t)
        lower, upper = self.time_bounds()
        if not (lower <= t <= upper):
            raise OutOfDomainError(t, (lower, upper), name=type(self).__name__)
        return t

    def value(self, t: float) -> tuple[np.ndarray]:
        return self._func_and_derivs(self.check_time(t), 0)  # type: ignore[return-value]

    def value_and_1_derivative(self, t: float) -> tuple[np.ndarray, np.ndarray]:
        return self._func_and_derivs(self.check_time(t), 1)  # type: ignore[return-value]

    def value_and_2_derivatives(
        self, t: float
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self._func_and_derivs(self.check_time(t), 2)  # type: ignore[return-value]


FunctionOfTimeT = TypeVar("FunctionOfTimeT", bound=type[FunctionOfTime])

# Concrete implementations by serialized kind name
FUNCTIONS_OF_TIME: dict[str, type[FunctionOfTime]] = {}


def register_function_of_time(kind: str) -> Callable[[FunctionOfTimeT], FunctionOfTimeT]:
    """Class decorator adding an implementation to ``FUNCTIONS_OF_TIME``."""

    def decorator(cls: FunctionOfTimeT) -> FunctionOfTimeT:
        if kind in FUNCTIONS_OF_TIME:
            raise ValueError(f"Function of time kind '{kind}' is already registered")
        cls.kind = kind
        FUNCTIONS_OF_TIME[kind] = cls
        return cls

    return decorator


def function_of_time_class(kind: str) -> type[FunctionOfTime]:
    try:
        return FUNCTIONS_OF_TIME[kind]
    except KeyError:
        raise ValueError(
            f"Unknown function of time kind: {kind} "
            f"(known: {sorted(FUNCTIONS_OF_TIME)})"
        ) from None
