"""
Functions of time for time-dependent coordinate maps.

This package provides:
- The abstract FunctionOfTime interface and its domain error
- A registry of concrete implementations keyed by kind name
- A piecewise-polynomial implementation
- NPZ checkpoint/restore of named functions of time
"""

from .base import (
    FUNCTIONS_OF_TIME,
    FunctionOfTime,
    OutOfDomainError,
    function_of_time_class,
    register_function_of_time,
)
from .piecewise_polynomial import PiecewisePolynomial
from .serialization import load_functions_of_time, save_functions_of_time

__all__ = [
    "FUNCTIONS_OF_TIME",
    "FunctionOfTime",
    "OutOfDomainError",
    "PiecewisePolynomial",
    "function_of_time_class",
    "load_functions_of_time",
    "register_function_of_time",
    "save_functions_of_time",
]
