"""
Render parameters, palette variants and parameter normalization.

Raw parameters arrive as optional strings or numbers (typically straight from
a query string or the command line). normalize_parameters() turns them into a
frozen RenderRequest so nothing downstream has to re-validate.
"""

import math
import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..errors import InvalidPalette, InvalidParameter, ResourceExhausted

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 1000
DEFAULT_HEIGHT = 1000
DEFAULT_CENTER_X = -0.5
DEFAULT_CENTER_Y = 0.0
DEFAULT_ZOOM = 1.0
DEFAULT_MAX_ITERATIONS = 1024

# Below this the viewport spans millions of units and z*z overflows.
MIN_ZOOM = 1e-6
# Larger centers overflow z*z on the first iteration the same way.
MAX_CENTER_MAGNITUDE = 1e100

DEFAULT_MAX_PIXELS = 16_000_000
DEFAULT_MAX_ITERATIONS_LIMIT = 100_000

RawValue = Optional[Union[str, int, float]]


@dataclass(frozen=True)
class PaletteCurve:
    """Hue/saturation/brightness coefficients of a palette.

    For a normalized continuous index ``t`` the palette color is::

        hue        = (hue_offset + hue_scale * t) mod 1
        saturation = saturation_base + (saturation_scale * t) mod saturation_span
        brightness = brightness_base + (brightness_scale * t) mod brightness_span
    """

    hue_offset: float
    hue_scale: float
    saturation_base: float
    saturation_scale: float = 0.0
    saturation_span: float = 1.0
    brightness_base: float = 1.0
    brightness_scale: float = 0.0
    brightness_span: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        """Convert coefficients to dictionary."""
        return asdict(self)


class PaletteVariant(Enum):
    """Closed set of palettes, each tagged with its curve."""

    SUNRISE = PaletteCurve(hue_offset=0.95, hue_scale=10.0, saturation_base=0.6)
    SOL = PaletteCurve(hue_offset=0.1, hue_scale=25.0, saturation_base=0.8,
                       saturation_scale=5.0, saturation_span=0.2)
    DARK = PaletteCurve(hue_offset=0.6, hue_scale=3.0, saturation_base=0.9,
                        brightness_base=0.2, brightness_scale=4.0, brightness_span=0.5)

    @property
    def curve(self) -> PaletteCurve:
        return self.value

    @classmethod
    def parse(cls, token: Any, strict: bool = False) -> 'PaletteVariant':
        """
        Resolve a palette from a case-insensitive name.

        Args:
            token: Palette name, a PaletteVariant, or None
            strict: Raise InvalidPalette instead of falling back to SOL

        Returns:
            The matching variant, SOL for missing or unknown tokens
        """
        if isinstance(token, cls):
            return token
        if token is None or token == "":
            return cls.SOL
        try:
            return cls[str(token).strip().upper()]
        except KeyError:
            if strict:
                raise InvalidPalette(token) from None
            logger.debug(f"Unknown palette '{token}', using {cls.SOL.name}")
            return cls.SOL


@dataclass(frozen=True)
class RenderRequest:
    """Canonical, fully validated parameters of one render call."""

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    center_x: float = DEFAULT_CENTER_X
    center_y: float = DEFAULT_CENTER_Y
    zoom: float = DEFAULT_ZOOM
    palette: PaletteVariant = PaletteVariant.SOL
    max_iterations: int = DEFAULT_MAX_ITERATIONS

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def span(self) -> float:
        """Width (and height) of the viewport in the complex plane."""
        return 4.0 / self.zoom

    def to_dict(self) -> Dict[str, Any]:
        """Convert request to a JSON-friendly dictionary."""
        data = asdict(self)
        data['palette'] = self.palette.name.lower()
        return data


def _parse_int(name: str, value: RawValue, default: int) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise InvalidParameter(name, value, "expected an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidParameter(name, value, "expected an integer")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidParameter(name, value, "expected an integer") from None


def _parse_float(name: str, value: RawValue, default: float) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise InvalidParameter(name, value, "expected a number")
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise InvalidParameter(name, value, "expected a number") from None
    if not math.isfinite(result):
        raise InvalidParameter(name, value, "must be finite")
    return result


def normalize_parameters(width: RawValue = None,
                         height: RawValue = None,
                         center_x: RawValue = None,
                         center_y: RawValue = None,
                         zoom: RawValue = None,
                         palette: Any = None,
                         max_iterations: RawValue = None,
                         max_pixels: int = DEFAULT_MAX_PIXELS,
                         max_iterations_limit: int = DEFAULT_MAX_ITERATIONS_LIMIT) -> RenderRequest:
    """
    Validate and default raw render parameters.

    Missing values take the documented defaults and unknown palettes fall
    back to SOL. Width or height of zero is accepted and renders an empty
    grid.

    Args:
        width, height: Image size in pixels
        center_x, center_y: Viewport center in the complex plane
        zoom: Magnification, the viewport spans 4 / zoom units
        palette: Palette name (case-insensitive)
        max_iterations: Iteration cap per pixel
        max_pixels: Largest accepted width * height
        max_iterations_limit: Largest accepted max_iterations

    Returns:
        Frozen RenderRequest

    Raises:
        InvalidParameter: Malformed or out-of-range value
        ResourceExhausted: Request exceeds the configured limits
    """
    w = _parse_int('width', width, DEFAULT_WIDTH)
    h = _parse_int('height', height, DEFAULT_HEIGHT)
    cx = _parse_float('center_x', center_x, DEFAULT_CENTER_X)
    cy = _parse_float('center_y', center_y, DEFAULT_CENTER_Y)
    z = _parse_float('zoom', zoom, DEFAULT_ZOOM)
    iterations = _parse_int('max_iterations', max_iterations, DEFAULT_MAX_ITERATIONS)

    if w < 0:
        raise InvalidParameter('width', w, "must not be negative")
    if h < 0:
        raise InvalidParameter('height', h, "must not be negative")
    if z < MIN_ZOOM:
        raise InvalidParameter('zoom', z, f"must be at least {MIN_ZOOM}")
    for name, value in (('center_x', cx), ('center_y', cy)):
        if abs(value) > MAX_CENTER_MAGNITUDE:
            raise InvalidParameter(name, value, f"magnitude must not exceed {MAX_CENTER_MAGNITUDE}")
    if iterations <= 0:
        raise InvalidParameter('max_iterations', iterations, "must be positive")

    if w * h > max_pixels:
        raise ResourceExhausted(f"Image of {w}x{h} pixels exceeds the limit of {max_pixels} pixels")
    if iterations > max_iterations_limit:
        raise ResourceExhausted(f"max_iterations {iterations} exceeds the limit of {max_iterations_limit}")

    return RenderRequest(
        width=w,
        height=h,
        center_x=cx,
        center_y=cy,
        zoom=z,
        palette=PaletteVariant.parse(palette),
        max_iterations=iterations,
    )
