"""
Mandelbrot set rendering engine.

Renders the Mandelbrot set into an RGB pixel grid from a handful of viewport
parameters, computing image rows in parallel and coloring them with smooth,
continuous palettes. A Flask app and a click CLI sit on top of the engine.

Example usage:
    >>> from cloudfractal import FractalRenderer, normalize_parameters
    >>> request = normalize_parameters(width=800, height=600, palette="dark")
    >>> grid = FractalRenderer().render(request)
    >>> grid.shape
    (600, 800, 3)
"""

__version__ = "1.0.0"

from cloudfractal.errors import (
    FractalError,
    InvalidPalette,
    InvalidParameter,
    ResourceExhausted,
    RowComputationFailed,
)
from cloudfractal.core.parameters import PaletteVariant, RenderRequest, normalize_parameters
from cloudfractal.core.math_functions import EscapeTimeEvaluator
from cloudfractal.rendering.coloring import ColorMapper
from cloudfractal.rendering.image_output import ImageExporter, encode_png
from cloudfractal.acceleration.multiprocessing import ScanlineScheduler, ImageAssembler
from cloudfractal.config import Settings

# Main API
from cloudfractal.api import FractalRenderer, render

__all__ = [
    "FractalRenderer",
    "render",
    "RenderRequest",
    "PaletteVariant",
    "normalize_parameters",
    "EscapeTimeEvaluator",
    "ColorMapper",
    "ScanlineScheduler",
    "ImageAssembler",
    "ImageExporter",
    "encode_png",
    "Settings",
    "FractalError",
    "InvalidPalette",
    "InvalidParameter",
    "ResourceExhausted",
    "RowComputationFailed",
]
