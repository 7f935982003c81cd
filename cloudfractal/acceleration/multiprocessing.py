"""
Parallel scanline rendering.

Every image row is an independent task: it reads only the frozen
RenderRequest and returns a fresh pixel array, so rows can be fanned out over
a worker pool without locking. The scheduler joins all tasks before the rows
are assembled into the final grid.
"""

import logging
import multiprocessing as mp
import time
from concurrent.futures import (
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np

from ..core.math_functions import EscapeTimeEvaluator
from ..core.parameters import RenderRequest
from ..errors import ResourceExhausted, RowComputationFailed
from ..rendering.coloring import ColorMapper

logger = logging.getLogger(__name__)

EXECUTOR_KINDS = ('thread', 'process')


@dataclass
class RowResult:
    """Result from computing a single scanline."""
    row: int
    pixels: np.ndarray  # uint8, shape (width, 3)
    processing_time: float = 0.0


def compute_scanline(row: int, request: RenderRequest) -> RowResult:
    """
    Compute the colors of one image row.

    Module-level so it can be shipped to worker processes.

    Args:
        row: Row index
        request: Render parameters

    Returns:
        RowResult for the row
    """
    start_time = time.perf_counter()
    result = EscapeTimeEvaluator(request).evaluate_row(row)
    pixels = ColorMapper(request.palette).color_row(result)
    return RowResult(row, pixels, time.perf_counter() - start_time)


RowTask = Callable[[int, RenderRequest], RowResult]


class ImageAssembler:
    """Writes completed rows into a (height, width, 3) pixel grid."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.grid = np.zeros((height, width, 3), dtype=np.uint8)
        self._placed = np.zeros(height, dtype=bool)

    def place(self, result: RowResult) -> None:
        """Place one row; completion order does not matter."""
        if not 0 <= result.row < self.height:
            raise ValueError(f"Row {result.row} outside image of height {self.height}")
        if self._placed[result.row]:
            raise ValueError(f"Row {result.row} placed twice")
        if result.pixels.shape != (self.width, 3):
            raise ValueError(f"Row {result.row} has shape {result.pixels.shape}, "
                             f"expected {(self.width, 3)}")
        self.grid[result.row] = result.pixels
        self._placed[result.row] = True

    @property
    def complete(self) -> bool:
        return bool(self._placed.all())

    def result(self) -> np.ndarray:
        """Return the finished grid once every row is in place."""
        if not self.complete:
            missing = np.flatnonzero(~self._placed)
            raise ValueError(f"{len(missing)} rows missing, first is row {missing[0]}")
        return self.grid


def assemble_rows(results: Iterable[RowResult], width: int, height: int) -> np.ndarray:
    """
    Assemble row results into a complete image.

    Args:
        results: RowResult objects in any order
        width: Image width
        height: Image height

    Returns:
        uint8 RGB grid of shape (height, width, 3)
    """
    assembler = ImageAssembler(width, height)
    for result in results:
        assembler.place(result)
    return assembler.result()


def get_optimal_worker_count() -> int:
    """Number of workers for compute-bound work: one per processing unit."""
    return max(1, mp.cpu_count())


class ScanlineScheduler:
    """Fans out one task per row on a worker pool and joins them."""

    def __init__(self, num_workers: Optional[int] = None, executor: str = 'thread',
                 row_task: Optional[RowTask] = None):
        """
        Initialize scanline scheduler.

        Args:
            num_workers: Number of workers (None for CPU count)
            executor: 'thread' or 'process'
            row_task: Function computing one row (compute_scanline if None)
        """
        if executor not in EXECUTOR_KINDS:
            raise ValueError(f"Unknown executor '{executor}'. Available: {', '.join(EXECUTOR_KINDS)}")

        if num_workers is None:
            self.num_workers = get_optimal_worker_count()
        else:
            self.num_workers = max(1, num_workers)

        self.executor = executor
        self.row_task = row_task or compute_scanline

    def _create_executor(self, rows: int) -> Executor:
        workers = min(self.num_workers, rows)
        if self.executor == 'process':
            return ProcessPoolExecutor(max_workers=workers)
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix='scanline')

    def run(self, request: RenderRequest) -> List[RowResult]:
        """
        Compute every row of the request.

        Args:
            request: Render parameters

        Returns:
            One RowResult per row, in completion order

        Raises:
            ResourceExhausted: A row ran out of memory
            RowComputationFailed: Any other row failure
        """
        rows = request.height
        if rows == 0:
            return []

        start_time = time.perf_counter()
        results: List[RowResult] = []
        report_every = max(1, rows // 10)

        with self._create_executor(rows) as executor:
            future_to_row: Dict[Future, int] = {
                executor.submit(self.row_task, y, request): y for y in range(rows)
            }

            for future in as_completed(future_to_row):
                row = future_to_row[future]
                try:
                    results.append(future.result())
                except MemoryError as e:
                    self._cancel_pending(future_to_row)
                    raise ResourceExhausted(f"Out of memory while computing row {row}") from e
                except Exception as e:
                    self._cancel_pending(future_to_row)
                    logger.error(f"Row {row} failed: {e}")
                    raise RowComputationFailed(row, e) from e

                if len(results) % report_every == 0:
                    logger.debug(f"Completed {len(results)}/{rows} rows "
                                 f"({len(results) / rows * 100:.1f}%)")

        total_time = time.perf_counter() - start_time
        processing_time = sum(r.processing_time for r in results)
        logger.debug(f"Scanlines complete: {total_time:.3f}s wall, "
                     f"{processing_time:.3f}s in row tasks, {self.num_workers} workers")
        return results

    @staticmethod
    def _cancel_pending(future_to_row: Dict[Future, int]) -> None:
        for future in future_to_row:
            future.cancel()
