import torch


class MatmulError(Exception):
    """Base class for every error raised by the matmul kernels and harness."""


class ShapeError(MatmulError, ValueError):
    """Operands are not equally sized, square, non-empty float32 matrices."""


class ExecutionError(MatmulError, RuntimeError):
    """The parallel path failed to launch or to run to completion."""


class ResourceError(MatmulError, MemoryError):
    """A matrix or working buffer could not be allocated."""


def check_square_operands(a, b):
    """Validate A and B and return their shared dimension n."""
    if a.dim() != 2 or b.dim() != 2:
        raise ShapeError(f"expected 2-D matrices, got {tuple(a.shape)} and {tuple(b.shape)}")
    if a.shape[0] != a.shape[1] or b.shape[0] != b.shape[1]:
        raise ShapeError(f"expected square matrices, got {tuple(a.shape)} and {tuple(b.shape)}")
    if a.shape != b.shape:
        raise ShapeError(f"size mismatch: {tuple(a.shape)} vs {tuple(b.shape)}")
    n = a.shape[0]
    if n == 0:
        raise ShapeError("matrix dimension must be positive")
    if a.dtype != torch.float32 or b.dtype != torch.float32:
        raise ShapeError(f"expected float32 operands, got {a.dtype} and {b.dtype}")
    return n


def is_allocation_failure(e):
    """
    torch reports a failed CPU allocation as a plain RuntimeError from
    DefaultCPUAllocator, and CUDA exhaustion as OutOfMemoryError.
    """
    if isinstance(e, (MemoryError, torch.cuda.OutOfMemoryError)):
        return True
    msg = str(e)
    return isinstance(e, RuntimeError) and ("DefaultCPUAllocator" in msg or "can't allocate memory" in msg)
