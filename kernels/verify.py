import torch

DEFAULT_TOL = 1e-3


def matrices_match(ref, data, tol=DEFAULT_TOL):
    """True iff abs(ref[i] - data[i]) <= tol for every element."""
    if ref.shape != data.shape:
        return False
    diff = (ref.detach().to("cpu", torch.float32) - data.detach().to("cpu", torch.float32)).abs()
    return bool(torch.all(diff <= tol).item())


def max_abs_diff(ref, data):
    """Largest elementwise |ref - data|; inf when the shapes differ."""
    if ref.shape != data.shape:
        return float("inf")
    diff = ref.detach().to("cpu", torch.float32) - data.detach().to("cpu", torch.float32)
    if diff.numel() == 0:
        return 0.0
    return diff.abs().max().item()
