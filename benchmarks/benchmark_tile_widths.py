import sys, os
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

import torch
import matplotlib.pyplot as plt

from kernels.matmul_kernel import tiled_matmul_triton
from kernels.timing import time_cuda


def benchmark_tile_widths(tile_widths=[8, 16, 32], n=1024, iters=10):
    torch.manual_seed(0)

    a = torch.rand(n, n, device="cuda")
    b = torch.rand(n, n, device="cuda")

    results = []

    for tw in tile_widths:
        # compile for this TILE before timing
        tiled_matmul_triton(a, b, tile_width=tw)
        torch.cuda.synchronize()

        times = [time_cuda(tiled_matmul_triton, a, b, tile_width=tw)[1] for _ in range(iters)]
        ms = sum(times) / len(times)
        results.append(ms)
        print(f"TILE_WIDTH={tw}: {ms:.3f} ms")

    # --- Plot ---
    plt.figure(figsize=(8, 5))
    plt.plot(tile_widths, results, marker="o")
    plt.xlabel("TILE_WIDTH")
    plt.ylabel("Runtime (ms)")
    plt.title(f"Tiled Matmul Performance vs Tile Width (N={n})")
    plt.grid(True)
    plt.savefig("tile_width_benchmark.png")
    print("Saved: tile_width_benchmark.png")


if __name__ == "__main__":
    benchmark_tile_widths()
