from kernels.matmul_kernel import TILE_WIDTH, tiled_matmul_triton
from kernels.thread_tiled import tiled_matmul_threads

BACKENDS = ("triton", "threads")


def tiled_matmul(a, b, tile_width=TILE_WIDTH, backend="triton", out=None):
    """
    C = a @ b with the tiled algorithm.

    backend="triton"  -> tiled_matmul_kernel on the tensors' CUDA device;
                         writes into `out` when given
    backend="threads" -> one CPU thread per output element, grouped per tile
    """
    if backend == "triton":
        return tiled_matmul_triton(a, b, tile_width=tile_width, out=out)
    if backend == "threads":
        if out is not None:
            raise ValueError("out= is only supported by the triton backend")
        return tiled_matmul_threads(a, b, tile_width=tile_width)
    raise ValueError(f"unknown backend {backend!r}, expected one of {BACKENDS}")
