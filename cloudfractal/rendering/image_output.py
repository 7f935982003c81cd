"""
PNG export for rendered pixel grids.

Grids are written losslessly with Pillow. When saving to disk the render
parameters can be embedded as PNG text chunks and read back later.
"""

import io
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
from PIL import Image, PngImagePlugin

from .. import __version__
from ..core.parameters import RenderRequest

logger = logging.getLogger(__name__)

METADATA_KEY = "FractalMetadata"


@dataclass
class RenderMetadata:
    """Metadata for fractal renders."""

    center: Tuple[float, float]
    zoom: float
    resolution: Tuple[int, int]  # width, height
    max_iterations: int
    palette: str
    render_time_seconds: float = 0.0
    timestamp: str = ""
    software_version: str = __version__
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    @classmethod
    def from_request(cls, request: RenderRequest, render_time: float = 0.0) -> 'RenderMetadata':
        """Create metadata describing a render request."""
        return cls(
            center=(request.center_x, request.center_y),
            zoom=request.zoom,
            resolution=(request.width, request.height),
            max_iterations=request.max_iterations,
            palette=request.palette.name.lower(),
            render_time_seconds=render_time,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        data = json.loads(json_str)
        data['center'] = tuple(data['center'])
        data['resolution'] = tuple(data['resolution'])
        return cls(**data)


class ImageExporter:
    """Lossless PNG export of pixel grids."""

    def __init__(self, compress_level: int = 6):
        """
        Initialize image exporter.

        Args:
            compress_level: zlib level, 0 (none) to 9 (max)
        """
        if not 0 <= compress_level <= 9:
            raise ValueError("compress_level must be between 0 and 9")
        self.compress_level = compress_level

    def _to_image(self, grid: np.ndarray) -> Image.Image:
        if grid.ndim != 3 or grid.shape[2] != 3:
            raise ValueError(f"Expected RGB grid (H, W, 3), got {grid.shape}")
        if grid.shape[0] == 0 or grid.shape[1] == 0:
            raise ValueError("Cannot encode an empty image")
        if grid.dtype != np.uint8:
            raise ValueError(f"Expected uint8 grid, got {grid.dtype}")
        return Image.fromarray(grid)

    def _png_info(self, metadata: RenderMetadata) -> PngImagePlugin.PngInfo:
        pnginfo = PngImagePlugin.PngInfo()
        pnginfo.add_text("Title", "Mandelbrot set")
        pnginfo.add_text("Software", f"cloudfractal v{metadata.software_version}")
        pnginfo.add_text("Creation Time", metadata.timestamp)
        pnginfo.add_text(METADATA_KEY, metadata.to_json())
        return pnginfo

    def encode_png(self, grid: np.ndarray, metadata: Optional[RenderMetadata] = None) -> bytes:
        """
        Encode a pixel grid as PNG bytes.

        Args:
            grid: uint8 RGB grid of shape (height, width, 3)
            metadata: Optional metadata to embed

        Returns:
            PNG byte stream
        """
        image = self._to_image(grid)
        buffer = io.BytesIO()
        pnginfo = self._png_info(metadata) if metadata else None
        image.save(buffer, "PNG", pnginfo=pnginfo, compress_level=self.compress_level)
        return buffer.getvalue()

    def save_png(self, grid: np.ndarray, filepath: Union[str, Path],
                 metadata: Optional[RenderMetadata] = None) -> Path:
        """Save a pixel grid as a PNG file."""
        filepath = Path(filepath)
        if filepath.suffix.lower() != '.png':
            raise ValueError(f"Unsupported format '{filepath.suffix}'. Supported: .png")

        image = self._to_image(grid)
        pnginfo = self._png_info(metadata) if metadata else None
        image.save(filepath, "PNG", pnginfo=pnginfo, compress_level=self.compress_level)

        logger.info(f"Saved image: {filepath} ({image.size[0]}x{image.size[1]})")
        return filepath

    def extract_metadata(self, filepath: Union[str, Path]) -> Optional[RenderMetadata]:
        """Read embedded render metadata back from a PNG file."""
        with Image.open(filepath) as image:
            text = getattr(image, 'text', {})
            if METADATA_KEY not in text:
                return None
            return RenderMetadata.from_json(text[METADATA_KEY])


def encode_png(grid: np.ndarray) -> bytes:
    """Encode a pixel grid as PNG bytes with default settings."""
    return ImageExporter().encode_png(grid)
