import torch
import triton
import triton.language as tl

from kernels.errors import ExecutionError, ResourceError, ShapeError, check_square_operands
from kernels.logger import get_logger

TILE_WIDTH = 16

logger = get_logger(__name__)


@triton.jit
def tiled_matmul_kernel(a_ptr, b_ptr, c_ptr, N, stride_am, stride_ak, stride_bk, stride_bn, stride_cm, stride_cn, TILE: tl.constexpr):
    """
    One program per TILE x TILE output tile; each lane (row, col) of the
    tile is one worker producing one element of C.
    """
    pid_m = tl.program_id(0)
    pid_n = tl.program_id(1)

    offs_m = pid_m * TILE + tl.arange(0, TILE)
    offs_n = pid_n * TILE + tl.arange(0, TILE)
    offs_k = tl.arange(0, TILE)

    a_ptrs = a_ptr + (offs_m[:, None] * stride_am + offs_k[None, :] * stride_ak)
    b_ptrs = b_ptr + (offs_k[:, None] * stride_bk + offs_n[None, :] * stride_bn)
    acc = tl.zeros((TILE, TILE), dtype=tl.float32)

    for k in range(0, N, TILE):
        # ---- Load: out-of-range slots are zero-filled ----
        a_tile = tl.load(a_ptrs, mask=(offs_m[:, None] < N) & (offs_k[None, :] + k < N), other=0.0)
        b_tile = tl.load(b_ptrs, mask=(offs_k[:, None] + k < N) & (offs_n[None, :] < N), other=0.0)

        # ---- Accumulate: acc[r, c] += sum_i a_tile[r, i] * b_tile[i, c] ----
        # plain fp32 products, tl.dot would round inputs to tf32
        acc += tl.sum(a_tile[:, :, None] * b_tile[None, :, :], axis=1)

        a_ptrs += TILE * stride_ak
        b_ptrs += TILE * stride_bk

    c_ptrs = c_ptr + (offs_m[:, None] * stride_cm + offs_n[None, :] * stride_cn)
    tl.store(c_ptrs, acc, mask=(offs_m[:, None] < N) & (offs_n[None, :] < N))


def _is_power_of_two(x):
    return x > 0 and (x & (x - 1)) == 0


def tiled_matmul_triton(a, b, tile_width=TILE_WIDTH, out=None):
    """
    a, b: (N, N) float32 CUDA tensors
    Returns C = a @ b computed by tiled_matmul_kernel.
    """
    n = check_square_operands(a, b)
    if not _is_power_of_two(tile_width):
        raise ValueError(f"tile_width must be a power of two, got {tile_width}")
    if out is not None and (out.shape != (n, n) or out.dtype != torch.float32):
        raise ShapeError(f"out must be a ({n}, {n}) float32 tensor, got {tuple(out.shape)} {out.dtype}")
    if not (a.is_cuda and b.is_cuda):
        raise ExecutionError(f"triton backend needs CUDA tensors, got {a.device} and {b.device}")
    if out is not None and out.device != a.device:
        raise ExecutionError(f"out is on {out.device}, operands are on {a.device}")

    a = a.contiguous()
    b = b.contiguous()

    try:
        c = out if out is not None else torch.empty((n, n), device=a.device, dtype=torch.float32)
    except torch.cuda.OutOfMemoryError as e:
        raise ResourceError(f"could not allocate {n}x{n} output: {e}") from e

    grid = (triton.cdiv(n, tile_width), triton.cdiv(n, tile_width))
    logger.debug(f"launch tiled_matmul_kernel N={n} TILE={tile_width} grid={grid}")

    try:
        # launch on the operands' device, not the current one
        with torch.cuda.device(a.device):
            tiled_matmul_kernel[grid](
                a, b, c,
                n,
                a.stride(0), a.stride(1),
                b.stride(0), b.stride(1),
                c.stride(0), c.stride(1),
                TILE=tile_width,
            )
    except torch.cuda.OutOfMemoryError as e:
        raise ResourceError(str(e)) from e
    except Exception as e:
        raise ExecutionError(f"tiled_matmul_kernel failed: {e}") from e

    return c
