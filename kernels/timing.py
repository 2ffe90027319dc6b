import time

import torch

from kernels.errors import ExecutionError, ResourceError


def time_cuda(fn, *args, **kwargs):
    """
    Run fn(*args, **kwargs) between two CUDA events.
    Returns (result, elapsed milliseconds).

    Events and synchronize use the current CUDA device; wrap the call in
    torch.cuda.device(...) to time another one.

    Kernel faults are asynchronous and show up at the synchronize, so they
    are reported here as ExecutionError as well.
    """
    start = torch.cuda.Event(enable_timing=True)
    end = torch.cuda.Event(enable_timing=True)

    try:
        torch.cuda.synchronize()
        start.record()
        result = fn(*args, **kwargs)
        end.record()
        torch.cuda.synchronize()
    except ExecutionError:
        raise
    except torch.cuda.OutOfMemoryError as e:
        raise ResourceError(str(e)) from e
    except RuntimeError as e:
        raise ExecutionError(f"device error around kernel launch: {e}") from e

    return result, start.elapsed_time(end)


def time_cpu(fn, *args, **kwargs):
    """Run fn(*args, **kwargs) under time.perf_counter; returns (result, ms)."""
    start = time.perf_counter()
    result = fn(*args, **kwargs)
    elapsed_ms = (time.perf_counter() - start) * 1000
    return result, elapsed_ms
