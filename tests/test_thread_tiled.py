import threading

import pytest
import torch

import kernels.thread_tiled as thread_tiled
from kernels.errors import ExecutionError, ShapeError
from kernels.reference import reference_matmul
from kernels.thread_tiled import TileBuffer, tiled_matmul_threads
from kernels.verify import matrices_match


def _rand(n, seed):
    gen = torch.Generator().manual_seed(seed)
    return torch.rand((n, n), generator=gen)


@pytest.mark.parametrize(
    "n, tile_width",
    [
        (4, 4),
        (5, 4),
        (8, 4),
        (16, 16),
        (17, 16),
        (33, 16),
    ],
)
def test_matches_reference(n, tile_width):
    a, b = _rand(n, n), _rand(n, n + 100)
    c = tiled_matmul_threads(a, b, tile_width=tile_width)
    assert c.shape == (n, n)
    assert c.dtype == torch.float32
    assert matrices_match(reference_matmul(a, b), c, tol=1e-3)


def test_tile_larger_than_matrix():
    a, b = _rand(3, 0), _rand(3, 1)
    c = tiled_matmul_threads(a, b, tile_width=8)
    assert matrices_match(reference_matmul(a, b), c)


def test_single_element():
    a = torch.tensor([[0.375]])
    b = torch.tensor([[0.625]])
    c = tiled_matmul_threads(a, b, tile_width=16)
    assert c[0, 0].item() == (a[0, 0] * b[0, 0]).item()


def test_identity_returns_input():
    a = _rand(17, 3)
    c = tiled_matmul_threads(a, torch.eye(17), tile_width=16)
    assert torch.equal(c, a)


def test_zero_matrix_gives_zero():
    a = _rand(10, 4)
    c = tiled_matmul_threads(a, torch.zeros(10, 10), tile_width=4)
    assert torch.count_nonzero(c).item() == 0


def test_groups_run_one_at_a_time():
    a, b = _rand(12, 5), _rand(12, 6)
    c = tiled_matmul_threads(a, b, tile_width=4, max_groups=1)
    assert matrices_match(reference_matmul(a, b), c)


def test_tile_buffer_shape():
    buf = TileBuffer(4)
    assert len(buf.a) == 4 and all(len(row) == 4 for row in buf.a)
    assert len(buf.b) == 4 and all(len(row) == 4 for row in buf.b)


def test_worker_failure_breaks_group_barrier(monkeypatch):
    original = thread_tiled._load_tile_slot

    def failing_load(src, n, row, col):
        if row == 1 and col == 2:
            raise RuntimeError("boom")
        return original(src, n, row, col)

    monkeypatch.setattr(thread_tiled, "_load_tile_slot", failing_load)

    a, b = _rand(8, 7), _rand(8, 8)
    with pytest.raises(ExecutionError) as excinfo:
        tiled_matmul_threads(a, b, tile_width=4)
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert "boom" in str(excinfo.value)


def test_failed_thread_start_releases_group(monkeypatch):
    real_thread = threading.Thread
    worker_starts = []

    class ThreadLimitReached(real_thread):
        def start(self):
            if "-worker-" in self.name:
                worker_starts.append(self.name)
                if len(worker_starts) == 3:
                    raise RuntimeError("can't start new thread")
            super().start()

    monkeypatch.setattr(thread_tiled.threading, "Thread", ThreadLimitReached)

    a = _rand(4, 9)
    with pytest.raises(ExecutionError, match="start new thread") as excinfo:
        tiled_matmul_threads(a, a, tile_width=4, max_groups=1)
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert "2 of 16 running" in str(excinfo.value)

    still_alive = [t.name for t in threading.enumerate() if "-worker-" in t.name]
    assert still_alive == []


def test_rejects_bad_operands():
    with pytest.raises(ShapeError):
        tiled_matmul_threads(torch.zeros(3, 4), torch.zeros(4, 3))


def test_rejects_non_positive_tile_width():
    with pytest.raises(ValueError):
        tiled_matmul_threads(torch.zeros(3, 3), torch.zeros(3, 3), tile_width=0)
