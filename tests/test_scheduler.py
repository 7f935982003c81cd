import numpy as np
import pytest

from cloudfractal.acceleration.multiprocessing import (
    ImageAssembler,
    RowResult,
    ScanlineScheduler,
    assemble_rows,
    compute_scanline,
    get_optimal_worker_count,
)
from cloudfractal.core.parameters import RenderRequest, normalize_parameters
from cloudfractal.errors import ResourceExhausted, RowComputationFailed


def failing_row_task(row: int, request: RenderRequest) -> RowResult:
    if row == 3:
        raise ZeroDivisionError("boom")
    return compute_scanline(row, request)


def oom_row_task(row: int, request: RenderRequest) -> RowResult:
    raise MemoryError()


def solid_row(row: int, width: int, value: int) -> RowResult:
    return RowResult(row, np.full((width, 3), value, dtype=np.uint8))


def test_compute_scanline_shape() -> None:
    request = normalize_parameters(width=12, height=6, max_iterations=40)
    result = compute_scanline(2, request)
    assert result.row == 2
    assert result.pixels.shape == (12, 3)
    assert result.pixels.dtype == np.uint8
    assert result.processing_time >= 0.0


def test_scheduler_returns_every_row_once() -> None:
    request = normalize_parameters(width=10, height=9, max_iterations=30)
    results = ScanlineScheduler(num_workers=3).run(request)
    assert sorted(r.row for r in results) == list(range(9))


def test_scheduler_with_no_rows() -> None:
    request = normalize_parameters(width=10, height=0)
    assert ScanlineScheduler().run(request) == []


def test_worker_count() -> None:
    assert get_optimal_worker_count() >= 1
    assert ScanlineScheduler(num_workers=0).num_workers == 1
    assert ScanlineScheduler().num_workers == get_optimal_worker_count()


def test_unknown_executor_is_rejected() -> None:
    with pytest.raises(ValueError):
        ScanlineScheduler(executor="gpu")


def test_failing_row_fails_the_render() -> None:
    request = normalize_parameters(width=8, height=8, max_iterations=20)
    scheduler = ScanlineScheduler(num_workers=2, row_task=failing_row_task)
    with pytest.raises(RowComputationFailed) as excinfo:
        scheduler.run(request)
    assert excinfo.value.row == 3
    assert isinstance(excinfo.value.__cause__, ZeroDivisionError)


def test_memory_error_is_resource_exhausted() -> None:
    request = normalize_parameters(width=8, height=4, max_iterations=20)
    scheduler = ScanlineScheduler(num_workers=2, row_task=oom_row_task)
    with pytest.raises(ResourceExhausted):
        scheduler.run(request)


def test_process_and_thread_executors_agree() -> None:
    request = normalize_parameters(width=16, height=12, max_iterations=64, palette="dark")
    threaded = ScanlineScheduler(num_workers=2, executor="thread").run(request)
    processed = ScanlineScheduler(num_workers=2, executor="process").run(request)
    np.testing.assert_array_equal(
        assemble_rows(threaded, 16, 12),
        assemble_rows(processed, 16, 12),
    )


def test_assembly_follows_row_index_not_completion_order() -> None:
    results = [solid_row(2, 4, 30), solid_row(0, 4, 10), solid_row(1, 4, 20)]
    grid = assemble_rows(results, 4, 3)
    assert grid.shape == (3, 4, 3)
    assert [int(grid[y, 0, 0]) for y in range(3)] == [10, 20, 30]


def test_assembler_rejects_incomplete_grids() -> None:
    assembler = ImageAssembler(4, 3)
    assembler.place(solid_row(0, 4, 1))
    assembler.place(solid_row(2, 4, 1))
    assert not assembler.complete
    with pytest.raises(ValueError):
        assembler.result()


@pytest.mark.parametrize("bad_row", [
    solid_row(5, 4, 1),
    solid_row(-1, 4, 1),
    solid_row(0, 7, 1),
])
def test_assembler_rejects_misplaced_rows(bad_row) -> None:
    assembler = ImageAssembler(4, 3)
    with pytest.raises(ValueError):
        assembler.place(bad_row)


def test_assembler_rejects_duplicate_rows() -> None:
    assembler = ImageAssembler(4, 3)
    assembler.place(solid_row(1, 4, 1))
    with pytest.raises(ValueError):
        assembler.place(solid_row(1, 4, 2))
