import pytest
import torch

from kernels.errors import ExecutionError, ShapeError
from kernels.matmul_kernel import TILE_WIDTH, tiled_matmul_triton
from kernels.naive_kernel import naive_matmul_triton
from kernels.reference import reference_matmul
from kernels.tiled_matmul import tiled_matmul
from kernels.verify import matrices_match

requires_cuda = pytest.mark.skipif(not torch.cuda.is_available(), reason="CUDA not available")


def _rand(n, seed, device="cuda"):
    gen = torch.Generator().manual_seed(seed)
    return torch.rand((n, n), generator=gen).to(device)


@requires_cuda
def test_scenario_512():
    torch.manual_seed(0)
    a = torch.rand(512, 512, device="cuda")
    b = torch.rand(512, 512, device="cuda")
    c = tiled_matmul_triton(a, b)
    torch.cuda.synchronize()
    assert matrices_match(reference_matmul(a, b), c, tol=1e-3)


@requires_cuda
@pytest.mark.parametrize("n", [1, 15, 16, 17, 100])
@pytest.mark.parametrize("tile_width", [16, 32])
def test_matches_reference(n, tile_width):
    a, b = _rand(n, 0), _rand(n, 1)
    c = tiled_matmul_triton(a, b, tile_width=tile_width)
    assert c.is_cuda
    assert matrices_match(reference_matmul(a, b), c, tol=1e-3)


@requires_cuda
def test_identity_and_zero():
    a = _rand(40, 2)
    eye = torch.eye(40, device="cuda")
    zeros = torch.zeros(40, 40, device="cuda")
    assert matrices_match(a, tiled_matmul(a, eye))
    assert torch.count_nonzero(tiled_matmul(a, zeros)).item() == 0


@requires_cuda
def test_single_element():
    a = torch.tensor([[0.375]], device="cuda")
    b = torch.tensor([[0.625]], device="cuda")
    c = tiled_matmul_triton(a, b)
    assert c.item() == (a * b).item()


@requires_cuda
def test_naive_baseline_matches_reference():
    a, b = _rand(33, 3), _rand(33, 4)
    c = naive_matmul_triton(a, b)
    assert matrices_match(reference_matmul(a, b), c, tol=1e-3)


@requires_cuda
def test_tile_width_must_be_power_of_two():
    a = _rand(8, 5)
    with pytest.raises(ValueError):
        tiled_matmul_triton(a, a, tile_width=12)


def test_cpu_tensors_are_an_execution_error():
    a = torch.rand(4, 4)
    with pytest.raises(ExecutionError):
        tiled_matmul_triton(a, a, tile_width=TILE_WIDTH)


def test_unknown_backend():
    a = torch.rand(4, 4)
    with pytest.raises(ValueError):
        tiled_matmul(a, a, backend="opencl")


def test_threads_backend_dispatch():
    a = torch.rand(6, 6)
    c = tiled_matmul(a, torch.eye(6), tile_width=4, backend="threads")
    assert torch.equal(c, a)


def test_out_with_wrong_shape():
    a = torch.rand(4, 4)
    with pytest.raises(ShapeError):
        tiled_matmul_triton(a, a, out=torch.empty(3, 3))


@requires_cuda
def test_writes_into_out():
    a, b = _rand(20, 6), _rand(20, 7)
    out = torch.full((20, 20), float("nan"), device="cuda")
    c = tiled_matmul(a, b, out=out)
    assert c is out
    assert matrices_match(reference_matmul(a, b), out, tol=1e-3)


@requires_cuda
def test_launches_on_operand_device():
    device = f"cuda:{torch.cuda.device_count() - 1}"
    a, b = _rand(24, 8, device), _rand(24, 9, device)
    c = tiled_matmul_triton(a, b)
    assert c.device == a.device
    assert matrices_match(reference_matmul(a, b), c, tol=1e-3)
