import sys, os
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

import torch
import matplotlib.pyplot as plt

from kernels.matmul_kernel import tiled_matmul_triton
from kernels.naive_kernel import naive_matmul_triton
from kernels.timing import time_cuda


def benchmark_once(n, kernels):
    a = torch.rand(n, n, device="cuda")
    b = torch.rand(n, n, device="cuda")

    times = {}
    for name, fn in kernels.items():
        fn(a, b)  # warmup / compile
        _, ms = time_cuda(fn, a, b)
        times[name] = ms
    return times


def main():
    kernels = {
        "Tiled Triton": tiled_matmul_triton,
        "Naive Triton": naive_matmul_triton,
        "torch.matmul": torch.matmul,
    }

    sizes = [64, 128, 256, 512, 1024, 2048]
    results = {name: [] for name in kernels}

    for n in sizes:
        times = benchmark_once(n, kernels)
        for name, ms in times.items():
            results[name].append(ms)
        print(f"N={n}: " + ", ".join(f"{name}={ms:.3f} ms" for name, ms in times.items()))

    plt.figure(figsize=(8, 5))
    for name, ms in results.items():
        plt.plot(sizes, ms, marker="o", label=name)
    plt.xlabel("Matrix size (N)")
    plt.ylabel("Runtime (ms)")
    plt.title("Matmul Runtime vs Matrix Size")
    plt.xscale("log", base=2)
    plt.yscale("log")
    plt.legend()
    plt.grid(True)
    plt.savefig("matrix_size_benchmark.png", dpi=200)
    print("Saved: matrix_size_benchmark.png")


if __name__ == "__main__":
    main()
