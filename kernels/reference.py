import torch

from kernels.errors import ResourceError, check_square_operands, is_allocation_failure


def reference_matmul(a, b):
    """
    CPU ground truth: C[i][j] = sum_k A[i][k] * B[k][j]

    Accumulates in float32, left to right over k, for every (i, j).
    Each k-step is vectorised across the whole output, which keeps the
    per-element summation order identical to a triple loop.
    """
    n = check_square_operands(a, b)

    try:
        a = a.detach().to("cpu").contiguous()
        b = b.detach().to("cpu").contiguous()
        c = torch.zeros((n, n), dtype=torch.float32)
    except RuntimeError as e:
        if is_allocation_failure(e):
            raise ResourceError(f"could not allocate {n}x{n} reference output: {e}") from e
        raise

    for k in range(n):
        c += a[:, k, None] * b[None, k, :]
    return c
