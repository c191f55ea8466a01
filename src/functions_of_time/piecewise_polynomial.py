"""Piecewise Taylor-polynomial function of time.

Each segment stores the value and derivatives up to ``max_deriv`` at its
update time t_i and evaluates

    d^k f / dt^k (t) = Σ_{j=k}^{N} c_j (t - t_i)^{j-k} / (j-k)!

An update replaces the highest derivative at the update time and extends the
expiration time, which is how an external controller steers the map.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from typing import Any, Sequence

import numpy as np

from .base import FunctionOfTime, register_function_of_time


@register_function_of_time("PiecewisePolynomial")
class PiecewisePolynomial(FunctionOfTime):
    """Function of time whose highest derivative is piecewise constant."""

    def __init__(
        self,
        initial_time: float,
        initial_func_and_derivs: Sequence[np.ndarray] | np.ndarray,
        expiration_time: float,
    ):
        coefficients = np.array(initial_func_and_derivs, dtype=np.float64)
        if coefficients.ndim == 1:
            coefficients = coefficients[:, np.newaxis]
        if coefficients.ndim != 2 or coefficients.shape[0] == 0:
            raise ValueError(
                "initial_func_and_derivs must be a non-empty sequence of equal-length "
                f"vectors, got shape {coefficients.shape}"
            )
        if expiration_time < initial_time:
            raise ValueError(
                f"expiration_time {expiration_time!r} precedes initial_time {initial_time!r}"
            )
        self._update_times: list[float] = [float(initial_time)]
        self._coefficients: list[np.ndarray] = [coefficients]
        self._expiration_time = float(expiration_time)

    @property
    def max_deriv(self) -> int:
        return self._coefficients[0].shape[0] - 1

    @property
    def n_components(self) -> int:
        return self._coefficients[0].shape[1]

    @property
    def update_times(self) -> tuple[float, ...]:
        return tuple(self._update_times)

    def time_bounds(self) -> tuple[float, float]:
        return self._update_times[0], self._expiration_time

    def expiration_time(self) -> float:
        return self._expiration_time

    def _func_and_derivs(self, t: float, n_derivs: int) -> tuple[np.ndarray, ...]:
        segment = max(bisect_right(self._update_times, t) - 1, 0)
        coefs = self._coefficients[segment]
        dt = t - self._update_times[segment]
        order = self.max_deriv
        results = []
        for k in range(n_derivs + 1):
            if k > order:
                results.append(np.zeros(self.n_components))
                continue
            # Horner evaluation of the k-th derivative
            result = coefs[order].copy()
            for j in range(order - 1, k - 1, -1):
                result = coefs[j] + result * (dt / (j + 1 - k))
            results.append(result)
        return tuple(results)

    def func_and_all_derivs(self, t: float) -> tuple[np.ndarray, ...]:
        """Value and every stored derivative order at ``t``."""
        return self._func_and_derivs(self.check_time(t), self.max_deriv)

    def update(
        self,
        time_of_update: float,
        updated_max_deriv: np.ndarray,
        next_expiration_time: float,
    ) -> None:
        """Start a new segment whose highest derivative is ``updated_max_deriv``."""
        time_of_update = float(time_of_update)
        if time_of_update <= self._update_times[-1]:
            raise ValueError(
                f"Update time {time_of_update!r} must follow the last update "
                f"time {self._update_times[-1]!r}"
            )
        if time_of_update > self._expiration_time:
            raise ValueError(
                f"Update time {time_of_update!r} is after the expiration time "
                f"{self._expiration_time!r}"
            )
        if next_expiration_time < time_of_update:
            raise ValueError(
                f"Next expiration time {next_expiration_time!r} precedes update "
                f"time {time_of_update!r}"
            )
        updated = np.asarray(updated_max_deriv, dtype=np.float64).reshape(-1)
        if updated.size != self.n_components:
            raise ValueError(
                f"Updated derivative has {updated.size} components, "
                f"expected {self.n_components}"
            )

        coefs = np.array(self._func_and_derivs(time_of_update, self.max_deriv))
        coefs[-1] = updated
        self._update_times.append(time_of_update)
        self._coefficients.append(coefs)
        self._expiration_time = float(next_expiration_time)
        logging.debug(
            "PiecewisePolynomial updated at t=%r, expires at t=%r",
            time_of_update,
            self._expiration_time,
        )

    def reset_expiration_time(self, next_expiration_time: float) -> None:
        if next_expiration_time < self._expiration_time:
            raise ValueError(
                f"Cannot move expiration time back from {self._expiration_time!r} "
                f"to {next_expiration_time!r}"
            )
        self._expiration_time = float(next_expiration_time)

    def as_dict(self) -> dict[str, Any]:
        return {
            "update_times": np.array(self._update_times, dtype=np.float64),
            "coefficients": np.stack(self._coefficients),
            "expiration_time": np.float64(self._expiration_time),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> PiecewisePolynomial:
        update_times = np.asarray(payload["update_times"], dtype=np.float64)
        coefficients = np.asarray(payload["coefficients"], dtype=np.float64)
        if coefficients.ndim != 3 or coefficients.shape[0] != update_times.size:
            raise ValueError(
                f"Inconsistent payload: {update_times.size} update times for "
                f"coefficients of shape {coefficients.shape}"
            )
        instance = cls(
            update_times[0], coefficients[0], float(payload["expiration_time"])
        )
        instance._update_times = [float(t) for t in update_times]
        instance._coefficients = [coefficients[i].copy() for i in range(update_times.size)]
        return instance

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PiecewisePolynomial):
            return NotImplemented
        return (
            self._update_times == other._update_times
            and self._expiration_time == other._expiration_time
            and all(
                np.array_equal(a, b)
                for a, b in zip(self._coefficients, other._coefficients)
            )
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"PiecewisePolynomial(max_deriv={self.max_deriv}, "
            f"n_components={self.n_components}, bounds={self.time_bounds()})"
        )
