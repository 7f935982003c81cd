"""
Main API for Mandelbrot rendering.

This module ties the scanline scheduler and the row assembler together behind
a single render() call, and offers helpers that go from raw parameters to PNG
bytes.
"""

import logging
import time
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np

from .acceleration.multiprocessing import ScanlineScheduler, assemble_rows
from .config import Settings
from .core.parameters import RenderRequest, normalize_parameters
from .rendering.image_output import ImageExporter, RenderMetadata

logger = logging.getLogger(__name__)


class FractalRenderer:
    """Renders Mandelbrot images. Holds only its settings between calls."""

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize fractal renderer.

        Args:
            settings: Runtime settings (uses defaults if None)
        """
        self.settings = (settings or Settings()).validate()

    def normalize(self, **raw: Any) -> RenderRequest:
        """Normalize raw parameters against this renderer's resource limits."""
        return normalize_parameters(
            max_pixels=self.settings.max_pixels,
            max_iterations_limit=self.settings.max_iterations,
            **raw
        )

    def render(self, request: RenderRequest) -> np.ndarray:
        """
        Render a request to a pixel grid.

        Args:
            request: Normalized render parameters

        Returns:
            uint8 RGB array of shape (height, width, 3)

        Raises:
            ResourceExhausted: A row ran out of memory
            RowComputationFailed: A row task failed
        """
        logger.info(f"Generating fractal: {request.width}x{request.height}, "
                    f"center=({request.center_x}, {request.center_y}), zoom={request.zoom}, "
                    f"palette={request.palette.name}")

        if request.width == 0 or request.height == 0:
            return np.zeros((request.height, request.width, 3), dtype=np.uint8)

        start_time = time.perf_counter()
        scheduler = ScanlineScheduler(self.settings.workers, self.settings.executor)
        rows = scheduler.run(request)
        grid = assemble_rows(rows, request.width, request.height)

        logger.info(f"Render complete: {time.perf_counter() - start_time:.2f}s")
        return grid

    def render_png(self, request: RenderRequest) -> bytes:
        """Render a request and encode it as PNG bytes."""
        return ImageExporter().encode_png(self.render(request))

    def render_to_file(self, request: RenderRequest, output_path: Union[str, Path],
                       save_metadata: bool = True) -> Path:
        """
        Render a request and save it as a PNG file.

        Args:
            request: Normalized render parameters
            output_path: Target .png path
            save_metadata: Embed the render parameters as PNG text chunks

        Returns:
            Path of the written file
        """
        start_time = time.perf_counter()
        grid = self.render(request)
        metadata = None
        if save_metadata:
            metadata = RenderMetadata.from_request(request, time.perf_counter() - start_time)
        return ImageExporter().save_png(grid, output_path, metadata)


def render(request: RenderRequest, settings: Optional[Settings] = None) -> np.ndarray:
    """Render a request with a one-off renderer."""
    return FractalRenderer(settings).render(request)
