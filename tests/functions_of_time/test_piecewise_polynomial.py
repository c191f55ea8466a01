import numpy as np
import pytest

from src.functions_of_time import (
    FUNCTIONS_OF_TIME,
    FunctionOfTime,
    OutOfDomainError,
    PiecewisePolynomial,
    function_of_time_class,
    load_functions_of_time,
    save_functions_of_time,
)


@pytest.fixture
def quadratic():
    """f(t) = [1 + 2t + 3t^2, -t^2] on [0, 2]."""
    return PiecewisePolynomial(
        0.0,
        [np.array([1.0, 0.0]), np.array([2.0, 0.0]), np.array([6.0, -2.0])],
        2.0,
    )


def test_value_and_derivatives(quadratic):
    (value,) = quadratic.value(0.5)
    np.testing.assert_allclose(value, [2.75, -0.25])

    value, deriv = quadratic.value_and_1_derivative(0.5)
    np.testing.assert_allclose(value, [2.75, -0.25])
    np.testing.assert_allclose(deriv, [5.0, -1.0])

    value, deriv, second = quadratic.value_and_2_derivatives(0.5)
    np.testing.assert_allclose(second, [6.0, -2.0])
    assert value.shape == deriv.shape == second.shape == (2,)


def test_derivative_order_zero_matches_value(quadratic):
    t = 1.3
    (value,) = quadratic.value(t)
    np.testing.assert_array_equal(quadratic.value_and_1_derivative(t)[0], value)
    np.testing.assert_array_equal(quadratic.value_and_2_derivatives(t)[0], value)


def test_evaluation_is_independent_of_call_order(quadratic):
    times = [1.9, 0.1, 1.0, 0.0, 2.0, 0.7]
    first = [quadratic.value_and_2_derivatives(t) for t in times]
    second = [quadratic.value_and_2_derivatives(t) for t in reversed(times)][::-1]
    for a, b in zip(first, second):
        for x, y in zip(a, b):
            np.testing.assert_array_equal(x, y)


def test_returned_arrays_do_not_alias_state(quadratic):
    value, deriv, second = quadratic.value_and_2_derivatives(2.0)
    second[:] = 100.0
    np.testing.assert_allclose(quadratic.value_and_2_derivatives(2.0)[2], [6.0, -2.0])


@pytest.mark.parametrize("t", [-1.0e-10, 2.0 + 1.0e-10, 10.0])
def test_out_of_domain(quadratic, t):
    with pytest.raises(OutOfDomainError) as excinfo:
        quadratic.value(t)
    assert excinfo.value.time == t
    assert excinfo.value.bounds == (0.0, 2.0)


def test_low_order_function_pads_missing_derivatives():
    constant = PiecewisePolynomial(0.0, [np.array([4.0])], 1.0)
    value, deriv, second = constant.value_and_2_derivatives(0.5)
    assert value.tolist() == [4.0]
    assert deriv.tolist() == [0.0]
    assert second.tolist() == [0.0]


def test_scalar_seed_is_one_component():
    size = PiecewisePolynomial(0.0, np.array([0.5, 1.0, 2.4, 0.0]), 1.0)
    assert size.max_deriv == 3
    assert size.n_components == 1
    np.testing.assert_allclose(size.value(0.0)[0], [0.5])


def test_update_keeps_lower_derivatives_continuous(quadratic):
    quadratic.update(1.0, np.array([0.0, 4.0]), 3.0)
    assert quadratic.time_bounds() == (0.0, 3.0)
    assert quadratic.update_times == (0.0, 1.0)

    value, deriv, second = quadratic.value_and_2_derivatives(1.0)
    np.testing.assert_allclose(value, [6.0, -1.0])
    np.testing.assert_allclose(deriv, [8.0, -2.0])
    np.testing.assert_allclose(second, [0.0, 4.0])

    # Earlier segment unchanged
    np.testing.assert_allclose(quadratic.value(0.5)[0], [2.75, -0.25])
    np.testing.assert_allclose(quadratic.value(2.0)[0], [14.0, -1.0])


@pytest.mark.parametrize(
    "time,expiration,deriv",
    [
        (0.0, 3.0, [0.0, 0.0]),  # not after last update
        (2.5, 3.0, [0.0, 0.0]),  # after expiration
        (1.0, 0.5, [0.0, 0.0]),  # expiration before update
        (1.0, 3.0, [0.0]),  # wrong number of components
    ],
)
def test_update_rejects_invalid_arguments(quadratic, time, expiration, deriv):
    with pytest.raises(ValueError):
        quadratic.update(time, np.array(deriv), expiration)


def test_reset_expiration_time(quadratic):
    quadratic.reset_expiration_time(5.0)
    assert quadratic.expiration_time() == 5.0
    with pytest.raises(ValueError):
        quadratic.reset_expiration_time(4.0)


def test_clone_is_independent(quadratic):
    clone = quadratic.get_clone()
    assert isinstance(clone, PiecewisePolynomial)
    assert clone == quadratic

    clone.update(1.0, np.array([10.0, 10.0]), 4.0)
    assert clone != quadratic
    assert quadratic.time_bounds() == (0.0, 2.0)
    np.testing.assert_allclose(quadratic.value_and_2_derivatives(1.5)[2], [6.0, -2.0])


def test_invalid_construction():
    with pytest.raises(ValueError):
        PiecewisePolynomial(1.0, [np.array([1.0])], 0.5)
    with pytest.raises(ValueError):
        PiecewisePolynomial(0.0, [], 1.0)


def test_registry():
    assert FUNCTIONS_OF_TIME["PiecewisePolynomial"] is PiecewisePolynomial
    assert PiecewisePolynomial.kind == "PiecewisePolynomial"
    assert issubclass(function_of_time_class("PiecewisePolynomial"), FunctionOfTime)
    with pytest.raises(ValueError, match="Unknown function of time kind"):
        function_of_time_class("QuaternionFunctionOfTime")


def test_checkpoint_round_trip(tmp_path, quadratic, rng):
    quadratic.update(1.0, np.array([-1.0, 0.5]), 3.0)
    shape = PiecewisePolynomial(0.0, rng.normal(size=(4, 18)), np.inf)
    path = tmp_path / "checkpoint" / "functions_of_time.npz"

    save_functions_of_time(path, {"Expansion": quadratic, "ShapeMapA": shape})
    restored = load_functions_of_time(path)

    assert set(restored) == {"Expansion", "ShapeMapA"}
    assert restored["Expansion"] == quadratic
    assert restored["ShapeMapA"] == shape
    for t in np.linspace(0.0, 3.0, 13):
        for original, loaded in zip(
            quadratic.value_and_2_derivatives(t),
            restored["Expansion"].value_and_2_derivatives(t),
        ):
            np.testing.assert_array_equal(original, loaded)


def test_save_rejects_empty_and_dotted_names(tmp_path, quadratic):
    with pytest.raises(ValueError):
        save_functions_of_time(tmp_path / "empty.npz", {})
    with pytest.raises(ValueError):
        save_functions_of_time(tmp_path / "bad.npz", {"Shape.A": quadratic})


def test_load_missing_checkpoint(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_functions_of_time(tmp_path / "missing.npz")
