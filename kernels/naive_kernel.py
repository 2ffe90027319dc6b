import torch
import triton
import triton.language as tl

from kernels.errors import ExecutionError, check_square_operands
from kernels.logger import get_logger

logger = get_logger(__name__)


@triton.jit
def naive_matmul_kernel(a_ptr, b_ptr, c_ptr, N, stride_am, stride_ak, stride_bk, stride_bn, stride_cm, stride_cn, BLOCK: tl.constexpr):
    """
    Baseline without k-tiling: every step reads one column of A and one
    row of B straight from global memory.
    """
    pid_m = tl.program_id(0)
    pid_n = tl.program_id(1)

    offs_m = pid_m * BLOCK + tl.arange(0, BLOCK)
    offs_n = pid_n * BLOCK + tl.arange(0, BLOCK)
    mask_m = offs_m < N
    mask_n = offs_n < N

    acc = tl.zeros((BLOCK, BLOCK), dtype=tl.float32)
    for k in range(0, N):
        a_col = tl.load(a_ptr + offs_m * stride_am + k * stride_ak, mask=mask_m, other=0.0)
        b_row = tl.load(b_ptr + k * stride_bk + offs_n * stride_bn, mask=mask_n, other=0.0)
        acc += a_col[:, None] * b_row[None, :]

    c_ptrs = c_ptr + (offs_m[:, None] * stride_cm + offs_n[None, :] * stride_cn)
    tl.store(c_ptrs, acc, mask=mask_m[:, None] & mask_n[None, :])


def naive_matmul_triton(a, b, block=16):
    n = check_square_operands(a, b)
    if not (a.is_cuda and b.is_cuda):
        raise ExecutionError(f"triton backend needs CUDA tensors, got {a.device} and {b.device}")

    a = a.contiguous()
    b = b.contiguous()
    c = torch.empty((n, n), device=a.device, dtype=torch.float32)

    grid = (triton.cdiv(n, block), triton.cdiv(n, block))
    logger.debug(f"launch naive_matmul_kernel N={n} BLOCK={block} grid={grid}")

    try:
        naive_matmul_kernel[grid](
            a, b, c,
            n,
            a.stride(0), a.stride(1),
            b.stride(0), b.stride(1),
            c.stride(0), c.stride(1),
            BLOCK=block,
        )
    except Exception as e:
        raise ExecutionError(f"naive_matmul_kernel failed: {e}") from e
    return c
