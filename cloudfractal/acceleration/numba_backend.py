"""
Numba JIT kernels for escape-time evaluation.

The kernels are compiled with ``nogil=True`` so scanlines evaluated on a
thread pool run truly in parallel. They only read their scalar arguments and
write freshly allocated arrays, so any number of callers may use them
concurrently.
"""

import logging

import numba
import numpy as np
from numba import njit

logger = logging.getLogger(__name__)

ESCAPE_RADIUS_SQ = 4.0
PERIOD2_BULB_RADIUS_SQ = 0.0625  # 1/16


@njit(nogil=True, cache=True)
def in_main_cardioid(cx, cy):
    """Closed-form membership test for the main cardioid."""
    xm = cx - 0.25
    q = xm * xm + cy * cy
    return q * (q + xm) < 0.25 * cy * cy


@njit(nogil=True, cache=True)
def in_period2_bulb(cx, cy):
    """Closed-form membership test for the period-2 bulb around -1."""
    xp = cx + 1.0
    return xp * xp + cy * cy < PERIOD2_BULB_RADIUS_SQ


@njit(nogil=True, cache=True)
def pixel_to_complex(x, y, width, height, center_x, center_y, span):
    """Map pixel (x, y) to the point c = (cx, cy) it samples."""
    cx = center_x + (x - width / 2.0) * span / width
    cy = center_y + (y - height / 2.0) * span / height
    return cx, cy


@njit(nogil=True, cache=True)
def escape_time_kernel(cx, cy, max_iter):
    """
    Iterate z = z^2 + c from z = 0 until |z|^2 >= 4 or max_iter is reached.

    Args:
        cx, cy: Real and imaginary parts of c
        max_iter: Iteration cap

    Returns:
        Tuple of (iterations, final_real, final_imag)
    """
    if in_main_cardioid(cx, cy) or in_period2_bulb(cx, cy):
        return max_iter, 0.0, 0.0

    zr = 0.0
    zi = 0.0
    n = 0
    while zr * zr + zi * zi < ESCAPE_RADIUS_SQ and n < max_iter:
        tmp = zr * zr - zi * zi + cx
        zi = 2.0 * zr * zi + cy
        zr = tmp
        n += 1

    return n, zr, zi


@njit(nogil=True, cache=True)
def scanline_kernel(y, width, height, center_x, center_y, span, max_iter):
    """
    Evaluate every pixel of one image row.

    Args:
        y: Row index
        width, height: Image size in pixels
        center_x, center_y: Viewport center
        span: Viewport extent in the complex plane (4 / zoom)
        max_iter: Iteration cap

    Returns:
        Tuple of (iterations, final_real, final_imag) arrays of length width
    """
    iterations = np.empty(width, dtype=np.int64)
    final_real = np.empty(width, dtype=np.float64)
    final_imag = np.empty(width, dtype=np.float64)

    for x in range(width):
        cx, cy = pixel_to_complex(x, y, width, height, center_x, center_y, span)
        n, zr, zi = escape_time_kernel(cx, cy, max_iter)
        iterations[x] = n
        final_real[x] = zr
        final_imag[x] = zi

    return iterations, final_real, final_imag


def get_numba_version() -> str:
    """Version of the JIT compiler backing the kernels."""
    return numba.__version__
