import matplotlib.pyplot as plt

# Load benchmark results written by benchmark_matmul.py
labels = []
times = []
with open("benchmark_results.txt", "r") as f:
    for line in f:
        name, ms = line.rstrip("\n").split("\t")
        labels.append(name)
        times.append(float(ms))

plt.figure(figsize=(7, 4))
plt.bar(labels, times)
plt.ylabel("Runtime (ms)")
plt.yscale("log")
plt.title("Tiled Matmul vs Baselines (N=512)")
plt.grid(axis="y", linestyle="--", alpha=0.5)
plt.tight_layout()
plt.savefig("benchmark_plot.png", dpi=200)

print("Saved benchmark_plot.png")
