"""
Escape-time evaluation of the Mandelbrot set.

This module maps pixels onto the complex plane and evaluates single points or
whole scanlines through the JIT-compiled kernels.
"""

import math
import logging
from typing import Tuple

import numpy as np

from ..acceleration.numba_backend import (
    escape_time_kernel,
    in_main_cardioid,
    in_period2_bulb,
    pixel_to_complex,
    scanline_kernel,
)
from .parameters import RenderRequest

logger = logging.getLogger(__name__)

LOG2 = math.log(2.0)


class Viewport:
    """Maps pixel coordinates of a request onto the complex plane."""

    def __init__(self, request: RenderRequest):
        self.width = request.width
        self.height = request.height
        self.center_x = request.center_x
        self.center_y = request.center_y
        self.span = request.span

    def pixel_to_complex(self, px: int, py: int) -> complex:
        """Convert pixel coordinates to complex number."""
        real, imag = pixel_to_complex(px, py, self.width, self.height,
                                      self.center_x, self.center_y, self.span)
        return complex(real, imag)

    def is_known_interior(self, px: int, py: int) -> bool:
        """True when the pixel lies in the main cardioid or the period-2 bulb."""
        c = self.pixel_to_complex(px, py)
        return bool(in_main_cardioid(c.real, c.imag) or in_period2_bulb(c.real, c.imag))


class IterationResult:
    """Escape-time results for a run of pixels (usually one scanline)."""

    def __init__(self, iterations: np.ndarray, final_real: np.ndarray,
                 final_imag: np.ndarray, max_iter: int):
        """
        Initialize iteration result.

        Args:
            iterations: Iteration counts
            final_real, final_imag: Orbit value when iteration stopped
            max_iter: Iteration cap the counts were computed with
        """
        self.iterations = iterations
        self.final_real = final_real
        self.final_imag = final_imag
        self.max_iter = max_iter

    def __len__(self) -> int:
        return len(self.iterations)

    @property
    def escaped(self) -> np.ndarray:
        """Boolean mask of points that left the radius-2 disc."""
        return self.iterations < self.max_iter

    def continuous_index(self) -> np.ndarray:
        """
        Smooth iteration count, ``n + 1 - log2(log2(|z|))``.

        Points that never escaped get ``max_iter``.
        """
        escaped = self.escaped
        smooth = np.full(self.iterations.shape, float(self.max_iter))

        zr = self.final_real[escaped]
        zi = self.final_imag[escaped]
        log_zn = np.log(zr * zr + zi * zi) / 2.0
        nu = np.log(log_zn / LOG2) / LOG2
        smooth[escaped] = self.iterations[escaped] + 1 - nu
        return smooth


class EscapeTimeEvaluator:
    """Evaluates pixels of one render request."""

    def __init__(self, request: RenderRequest):
        self.request = request
        self.viewport = Viewport(request)

    def evaluate(self, px: int, py: int) -> Tuple[int, float, float]:
        """
        Evaluate a single pixel.

        Returns:
            Tuple of (iterations, final_real, final_imag)
        """
        c = self.viewport.pixel_to_complex(px, py)
        n, zr, zi = escape_time_kernel(c.real, c.imag, self.request.max_iterations)
        return int(n), float(zr), float(zi)

    def evaluate_row(self, py: int) -> IterationResult:
        """Evaluate every pixel of row ``py``."""
        r = self.request
        iterations, final_real, final_imag = scanline_kernel(
            py, r.width, r.height, r.center_x, r.center_y, r.span, r.max_iterations
        )
        return IterationResult(iterations, final_real, final_imag, r.max_iterations)
