"""
Continuous coloring of escape-time results.

Escaped points are colored from their smooth iteration count through the
curve of the selected palette; points that reached the iteration cap are
black under every palette.
"""

import logging
from typing import Dict, List, Tuple

import numpy as np
from matplotlib.colors import hsv_to_rgb

from ..core.math_functions import IterationResult
from ..core.parameters import PaletteCurve, PaletteVariant

logger = logging.getLogger(__name__)

INSIDE_COLOR = (0, 0, 0)


def palette_hsb(curve: PaletteCurve, t: np.ndarray) -> np.ndarray:
    """
    Evaluate a palette curve.

    Args:
        curve: Palette coefficients
        t: Continuous index divided by the iteration cap

    Returns:
        Array of shape t.shape + (3,) holding hue, saturation, brightness
    """
    # Hue wraps into [0, 1); the other channels keep the sign of t.
    hue = np.mod(curve.hue_offset + curve.hue_scale * t, 1.0)
    saturation = curve.saturation_base + np.fmod(curve.saturation_scale * t, curve.saturation_span)
    brightness = curve.brightness_base + np.fmod(curve.brightness_scale * t, curve.brightness_span)
    return np.stack([hue, saturation, brightness], axis=-1)


def hsb_to_rgb8(hsb: np.ndarray) -> np.ndarray:
    """Convert HSB triples in [0, 1] to 8-bit RGB."""
    rgb = hsv_to_rgb(np.clip(hsb, 0.0, 1.0))
    return np.floor(rgb * 255.0 + 0.5).astype(np.uint8)


class ColorMapper:
    """Maps escape-time results to RGB through one palette."""

    def __init__(self, palette: PaletteVariant = PaletteVariant.SOL):
        self.palette = palette

    def color_row(self, result: IterationResult) -> np.ndarray:
        """
        Color a run of evaluated pixels.

        Args:
            result: Iteration result for the pixels

        Returns:
            uint8 array of shape (len(result), 3)
        """
        rgb = np.zeros((len(result), 3), dtype=np.uint8)
        rgb[:] = INSIDE_COLOR

        escaped = result.escaped
        if not np.any(escaped):
            return rgb

        t = result.continuous_index()[escaped] / result.max_iter
        rgb[escaped] = hsb_to_rgb8(palette_hsb(self.palette.curve, t))
        return rgb

    def color_point(self, iterations: int, final_real: float, final_imag: float,
                    max_iter: int) -> Tuple[int, int, int]:
        """Color a single evaluated pixel."""
        result = IterationResult(
            np.array([iterations], dtype=np.int64),
            np.array([final_real], dtype=np.float64),
            np.array([final_imag], dtype=np.float64),
            max_iter,
        )
        r, g, b = self.color_row(result)[0]
        return int(r), int(g), int(b)


def list_palettes() -> List[str]:
    """Get list of available palette names."""
    return [variant.name.lower() for variant in PaletteVariant]


def describe_palettes() -> Dict[str, Dict[str, float]]:
    """Get the curve coefficients of every palette keyed by name."""
    return {variant.name.lower(): variant.curve.to_dict() for variant in PaletteVariant}
