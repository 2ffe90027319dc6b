"""
Tiled matmul vs CPU reference: generate A and B, time both paths, verify.

    tiled-matmul --n 512 --tile-width 16
    python -m kernels.harness --backend threads --n 64 --seed 0

Exit status is 0 whenever both paths ran (a mismatch is only reported) and
1 when the parallel path could not run.
"""

import argparse
import sys
from dataclasses import dataclass
from typing import Optional

import torch

from kernels.errors import ExecutionError, ResourceError, is_allocation_failure
from kernels.logger import get_logger, set_log_level
from kernels.matmul_kernel import TILE_WIDTH
from kernels.reference import reference_matmul
from kernels.tiled_matmul import BACKENDS, tiled_matmul
from kernels.timing import time_cpu, time_cuda
from kernels.verify import DEFAULT_TOL, matrices_match, max_abs_diff

logger = get_logger(__name__)


@dataclass
class HarnessConfig:
    n: int = 512
    tile_width: int = TILE_WIDTH
    seed: Optional[int] = None
    tol: float = DEFAULT_TOL
    backend: str = "triton"
    device: str = "cuda"
    # untimed launches so the JIT compile stays out of the measurement
    warmup: int = 1


@dataclass
class HarnessResult:
    parallel_ms: float
    sequential_ms: float
    match: bool
    max_abs_diff: float


def generate_inputs(n, seed=None, device="cpu"):
    """A, B: independent uniform [0, 1) float32 matrices of shape (n, n)."""
    if n <= 0:
        raise ValueError(f"n must be positive, got {n}")

    gen = torch.Generator()
    if seed is None:
        gen.seed()
    else:
        gen.manual_seed(seed)

    try:
        a = torch.rand((n, n), generator=gen, dtype=torch.float32)
        b = torch.rand((n, n), generator=gen, dtype=torch.float32)
        return a.to(device), b.to(device)
    except (RuntimeError, MemoryError) as e:
        if is_allocation_failure(e):
            raise ResourceError(f"could not allocate {n}x{n} inputs on {device}: {e}") from e
        raise


def _parallel_device(config):
    if config.backend == "threads":
        return "cpu"
    if not torch.cuda.is_available():
        raise ExecutionError("CUDA is not available; the triton backend cannot launch")
    try:
        device = torch.device(config.device)
    except RuntimeError as e:
        raise ExecutionError(f"invalid device {config.device!r}: {e}") from e
    if device.type != "cuda":
        raise ExecutionError(f"triton backend needs a CUDA device, got {config.device!r}")
    if device.index is not None and device.index >= torch.cuda.device_count():
        raise ExecutionError(f"{config.device} does not exist, {torch.cuda.device_count()} CUDA device(s) visible")
    return device


def run(config):
    if config.backend not in BACKENDS:
        raise ValueError(f"unknown backend {config.backend!r}, expected one of {BACKENDS}")

    device = _parallel_device(config)
    logger.info(
        f"n={config.n} tile_width={config.tile_width} backend={config.backend} "
        f"device={device} seed={config.seed} tol={config.tol}"
    )

    a, b = generate_inputs(config.n, config.seed, device)

    # ---- Parallel path ----
    if config.backend == "triton":
        # output buffer is acquired before the timed window
        try:
            out = torch.empty((config.n, config.n), device=a.device, dtype=torch.float32)
        except (RuntimeError, MemoryError) as e:
            if is_allocation_failure(e):
                raise ResourceError(f"could not allocate {config.n}x{config.n} output on {a.device}: {e}") from e
            raise

        with torch.cuda.device(a.device):
            for _ in range(config.warmup):
                tiled_matmul(a, b, tile_width=config.tile_width, backend="triton", out=out)
            c_gpu, parallel_ms = time_cuda(
                tiled_matmul, a, b, tile_width=config.tile_width, backend="triton", out=out
            )
    else:
        c_gpu, parallel_ms = time_cpu(tiled_matmul, a, b, tile_width=config.tile_width, backend="threads")
    logger.debug(f"parallel path done in {parallel_ms:.3f} ms")

    # ---- Sequential path ----
    a_cpu, b_cpu = a.cpu(), b.cpu()
    c_cpu, sequential_ms = time_cpu(reference_matmul, a_cpu, b_cpu)
    logger.debug(f"sequential path done in {sequential_ms:.3f} ms")

    # ---- Verify ----
    match = matrices_match(c_cpu, c_gpu, tol=config.tol)
    diff = max_abs_diff(c_cpu, c_gpu)
    if not match:
        logger.warning(f"results differ, max abs diff {diff:.3g} > tol {config.tol}")

    return HarnessResult(
        parallel_ms=parallel_ms,
        sequential_ms=sequential_ms,
        match=match,
        max_abs_diff=diff,
    )


def format_report(result):
    verdict = "Results match!" if result.match else "Results differ!"
    return "\n".join([
        f"Parallel execution time: {result.parallel_ms:.3f} ms",
        f"Sequential execution time: {result.sequential_ms:.3f} ms",
        verdict,
    ])


def build_parser():
    parser = argparse.ArgumentParser(
        prog="tiled-matmul",
        description="Time a tiled matrix multiplication against a CPU reference and verify the result.",
    )
    parser.add_argument("--n", type=int, default=512, help="matrix dimension")
    parser.add_argument("--tile-width", type=int, default=TILE_WIDTH)
    parser.add_argument("--seed", type=int, default=None, help="random seed for A and B")
    parser.add_argument("--tol", type=float, default=DEFAULT_TOL, help="absolute tolerance per element")
    parser.add_argument("--backend", choices=BACKENDS, default="triton")
    parser.add_argument("--device", default="cuda", help="device for the triton backend")
    parser.add_argument("--warmup", type=int, default=1, help="untimed launches before timing")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.n <= 0:
        parser.error("--n must be a positive integer")
    if args.tile_width <= 0:
        parser.error("--tile-width must be a positive integer")
    if args.backend == "triton" and args.tile_width & (args.tile_width - 1):
        parser.error("--tile-width must be a power of two for the triton backend")
    if args.log_level:
        set_log_level(args.log_level)

    config = HarnessConfig(
        n=args.n,
        tile_width=args.tile_width,
        seed=args.seed,
        tol=args.tol,
        backend=args.backend,
        device=args.device,
        warmup=args.warmup,
    )

    try:
        result = run(config)
    except (ExecutionError, MemoryError) as e:
        logger.error(f"run aborted: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(format_report(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
