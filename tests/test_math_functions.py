import numpy as np
import pytest

from cloudfractal.acceleration.numba_backend import (
    escape_time_kernel,
    in_main_cardioid,
    in_period2_bulb,
    pixel_to_complex,
    scanline_kernel,
)
from cloudfractal.core.math_functions import EscapeTimeEvaluator, IterationResult, Viewport
from cloudfractal.core.parameters import normalize_parameters


@pytest.mark.parametrize("cx, cy", [(0.0, 0.0), (-0.5, 0.0), (0.2, 0.3), (-0.1, 0.6)])
def test_cardioid_points(cx, cy) -> None:
    assert in_main_cardioid(cx, cy)
    assert escape_time_kernel(cx, cy, 100) == (100, 0.0, 0.0)


@pytest.mark.parametrize("cx, cy", [(-1.0, 0.0), (-1.1, 0.1), (-0.9, -0.2)])
def test_period2_bulb_points(cx, cy) -> None:
    assert in_period2_bulb(cx, cy)
    assert escape_time_kernel(cx, cy, 100) == (100, 0.0, 0.0)


def test_point_outside_escapes_immediately() -> None:
    n, zr, zi = escape_time_kernel(-2.5, -2.0, 50)
    assert n == 1
    assert (zr, zi) == (-2.5, -2.0)


def test_escape_needs_several_iterations() -> None:
    # c = -0.5 - i: z1 = c, z2 = -1.25, z3 = 1.0625 - i, z4 escapes
    n, zr, zi = escape_time_kernel(-0.5, -1.0, 50)
    assert n == 4
    assert zr * zr + zi * zi >= 4.0


def test_bounded_point_outside_shortcuts_hits_the_cap() -> None:
    # -1.5 is in the set but in neither the cardioid nor the period-2 bulb
    assert not in_main_cardioid(-1.5, 0.0)
    assert not in_period2_bulb(-1.5, 0.0)
    n, _, _ = escape_time_kernel(-1.5, 0.0, 50)
    assert n == 50


def test_viewport_mapping() -> None:
    viewport = Viewport(normalize_parameters(width=4, height=4, max_iterations=50))
    assert viewport.pixel_to_complex(0, 0) == complex(-2.5, -2.0)
    assert viewport.pixel_to_complex(2, 2) == complex(-0.5, 0.0)
    assert viewport.pixel_to_complex(3, 3) == complex(0.5, 1.0)
    assert viewport.is_known_interior(2, 2)
    assert not viewport.is_known_interior(0, 0)


def test_scanline_samples_the_mapped_points() -> None:
    assert pixel_to_complex(0, 0, 4, 4, -0.5, 0.0, 4.0) == (-2.5, -2.0)
    assert pixel_to_complex(3, 1, 4, 4, -0.5, 0.0, 4.0) == (0.5, -1.0)

    iterations, _, _ = scanline_kernel(1, 4, 4, -0.5, 0.0, 4.0, 50)
    expected = [escape_time_kernel(cx, -1.0, 50)[0] for cx in (-2.5, -1.5, -0.5, 0.5)]
    assert iterations.tolist() == expected


def test_viewport_mapping_with_zoom() -> None:
    viewport = Viewport(normalize_parameters(width=10, height=10, center_x=1.0, center_y=1.0, zoom=4.0))
    assert viewport.pixel_to_complex(5, 5) == complex(1.0, 1.0)
    assert viewport.pixel_to_complex(0, 0) == complex(0.5, 0.5)


def test_row_matches_single_points() -> None:
    request = normalize_parameters(width=24, height=16, max_iterations=80)
    evaluator = EscapeTimeEvaluator(request)
    for y in (0, 5, 8, 15):
        row = evaluator.evaluate_row(y)
        assert len(row) == 24
        for x in range(24):
            n, zr, zi = evaluator.evaluate(x, y)
            assert row.iterations[x] == n
            assert row.final_real[x] == zr
            assert row.final_imag[x] == zi


def test_evaluation_is_deterministic() -> None:
    evaluator = EscapeTimeEvaluator(normalize_parameters(width=32, height=32, max_iterations=200))
    first = evaluator.evaluate_row(11)
    second = evaluator.evaluate_row(11)
    np.testing.assert_array_equal(first.iterations, second.iterations)
    np.testing.assert_array_equal(first.final_real, second.final_real)
    np.testing.assert_array_equal(first.final_imag, second.final_imag)


def test_continuous_index() -> None:
    result = IterationResult(
        np.array([1, 50]), np.array([-2.5, 0.0]), np.array([-2.0, 0.0]), max_iter=50
    )
    smooth = result.continuous_index()
    log_zn = np.log(10.25) / 2
    nu = np.log(log_zn / np.log(2)) / np.log(2)
    assert smooth[0] == pytest.approx(2 - nu)
    assert smooth[1] == 50.0
    np.testing.assert_array_equal(result.escaped, [True, False])
