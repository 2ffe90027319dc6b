import sys, os
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

import torch

from kernels.matmul_kernel import tiled_matmul_triton
from kernels.naive_kernel import naive_matmul_triton
from kernels.reference import reference_matmul
from kernels.timing import time_cpu, time_cuda
from kernels.verify import max_abs_diff


def benchmark_matmul(n=512, iters=20):
    torch.manual_seed(0)

    a = torch.rand(n, n, device="cuda")
    b = torch.rand(n, n, device="cuda")

    gpu_kernels = {
        "Tiled Triton": tiled_matmul_triton,
        "Naive Triton": naive_matmul_triton,
        "torch.matmul": torch.matmul,
    }

    # Warmup (also compiles the Triton kernels)
    for fn in gpu_kernels.values():
        for _ in range(3):
            fn(a, b)
    torch.cuda.synchronize()

    a_cpu, b_cpu = a.cpu(), b.cpu()
    c_ref, cpu_ms = time_cpu(reference_matmul, a_cpu, b_cpu)

    results = {}
    for name, fn in gpu_kernels.items():
        times = []
        for _ in range(iters):
            c, ms = time_cuda(fn, a, b)
            times.append(ms)
        avg = sum(times) / len(times)
        results[name] = avg
        print(f"{name:<14} {avg:8.3f} ms   max diff vs CPU: {max_abs_diff(c_ref, c):.2e}")

    print(f"{'CPU reference':<14} {cpu_ms:8.3f} ms")
    results["CPU reference"] = cpu_ms

    # Save results
    with open("benchmark_results.txt", "w") as f:
        for name, ms in results.items():
            f.write(f"{name}\t{ms}\n")


if __name__ == "__main__":
    benchmark_matmul()
