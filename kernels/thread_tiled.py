"""
Tiled matmul on the CPU with explicit workers, groups and barriers.

This is the same algorithm tiled_matmul_kernel runs on the GPU, spelled out
with one thread per output element:

    for every output tile (a group of TILE x TILE workers):
        for every k-step:
            each worker loads one slot of the A tile and one of the B tile
            barrier
            each worker adds  sum_i A_tile[r][i] * B_tile[i][c]
            barrier
        each in-range worker writes its element of C

Groups never share a buffer or a barrier, so they run independently.
It is slow (pure Python), and meant for small matrices and for checking
the tiling logic without a GPU.
"""

import os
import threading
from concurrent.futures import ThreadPoolExecutor

import torch
import triton

from kernels.errors import ExecutionError, check_square_operands
from kernels.logger import get_logger

logger = get_logger(__name__)


class TileBuffer:
    """Working set shared by the workers of one group."""

    def __init__(self, tile):
        self.a = [[0.0] * tile for _ in range(tile)]
        self.b = [[0.0] * tile for _ in range(tile)]


def _load_tile_slot(src, n, row, col):
    # zero-fill outside the matrix
    if row < n and col < n:
        return src[row * n + col]
    return 0.0


def _worker(a, b, c, n, tile, tile_row, tile_col, local_row, local_col, buf, barrier, errors):
    row = tile_row * tile + local_row
    col = tile_col * tile + local_col
    acc = 0.0

    try:
        for step in range(triton.cdiv(n, tile)):
            k0 = step * tile

            # ---- Load phase ----
            buf.a[local_row][local_col] = _load_tile_slot(a, n, row, k0 + local_col)
            buf.b[local_row][local_col] = _load_tile_slot(b, n, k0 + local_row, col)
            barrier.wait()

            # ---- Accumulate phase ----
            a_row = buf.a[local_row]
            for i in range(tile):
                acc += a_row[i] * buf.b[i][local_col]
            barrier.wait()
    except threading.BrokenBarrierError as e:
        # released because a groupmate failed
        errors.append(e)
        return
    except Exception as e:
        errors.append(e)
        barrier.abort()
        return

    if row < n and col < n:
        c[row * n + col] = acc


def _run_group(a, b, c, n, tile, tile_row, tile_col):
    buf = TileBuffer(tile)
    barrier = threading.Barrier(tile * tile)
    errors = []

    workers = [
        threading.Thread(
            target=_worker,
            args=(a, b, c, n, tile, tile_row, tile_col, local_row, local_col, buf, barrier, errors),
            name=f"tile-{tile_row}-{tile_col}-worker-{local_row}-{local_col}",
            daemon=True,
        )
        for local_row in range(tile)
        for local_col in range(tile)
    ]
    started = []
    try:
        for w in workers:
            w.start()
            started.append(w)
    except RuntimeError as e:
        # release the workers already waiting on this group's barrier
        barrier.abort()
        for w in started:
            w.join()
        raise ExecutionError(
            f"could not start workers for tile ({tile_row}, {tile_col}): "
            f"{len(started)} of {len(workers)} running: {e}"
        ) from e

    for w in started:
        w.join()

    if errors:
        cause = next((e for e in errors if not isinstance(e, threading.BrokenBarrierError)), errors[0])
        raise ExecutionError(f"worker in tile ({tile_row}, {tile_col}) failed: {cause!r}") from cause


def tiled_matmul_threads(a, b, tile_width=16, max_groups=None):
    """
    a, b: (N, N) float32 tensors on any device
    Returns C = a @ b as a CPU float32 tensor.

    max_groups bounds how many tiles run at once; each running tile holds
    tile_width**2 threads.
    """
    n = check_square_operands(a, b)
    if tile_width <= 0:
        raise ValueError(f"tile_width must be positive, got {tile_width}")
    if max_groups is None:
        max_groups = min(4, os.cpu_count() or 1)

    flat_a = a.detach().to("cpu").reshape(-1).tolist()
    flat_b = b.detach().to("cpu").reshape(-1).tolist()
    flat_c = [0.0] * (n * n)

    tiles = triton.cdiv(n, tile_width)
    logger.debug(f"threads backend N={n} TILE={tile_width} groups={tiles * tiles} max_groups={max_groups}")

    with ThreadPoolExecutor(max_workers=max_groups, thread_name_prefix="tile-group") as pool:
        try:
            futures = [
                pool.submit(_run_group, flat_a, flat_b, flat_c, n, tile_width, tile_row, tile_col)
                for tile_row in range(tiles)
                for tile_col in range(tiles)
            ]
            for f in futures:
                f.result()
        except ExecutionError:
            pool.shutdown(wait=True, cancel_futures=True)
            raise
        except RuntimeError as e:
            pool.shutdown(wait=True, cancel_futures=True)
            raise ExecutionError(f"could not run tile groups: {e}") from e

    return torch.tensor(flat_c, dtype=torch.float32).view(n, n)
