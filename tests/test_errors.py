import pytest

from kernels.errors import ExecutionError, MatmulError, ResourceError, ShapeError, is_allocation_failure


@pytest.mark.parametrize(
    "error",
    [
        MemoryError(),
        ResourceError("out of host memory"),
        RuntimeError("[enforce fail at alloc_cpu.cpp:127] DefaultCPUAllocator: can't allocate memory"),
    ],
)
def test_allocation_failures(error):
    assert is_allocation_failure(error)


@pytest.mark.parametrize(
    "error",
    [
        RuntimeError("invalid device ordinal"),
        ValueError("can't allocate memory"),
        ExecutionError("kernel launch failed"),
    ],
)
def test_other_errors_are_not_allocation_failures(error):
    assert not is_allocation_failure(error)


def test_taxonomy():
    assert issubclass(ShapeError, ValueError)
    assert issubclass(ExecutionError, RuntimeError)
    assert issubclass(ResourceError, MemoryError)
    for cls in (ShapeError, ExecutionError, ResourceError):
        assert issubclass(cls, MatmulError)
