from kernels.errors import ExecutionError, MatmulError, ResourceError, ShapeError
from kernels.reference import reference_matmul
from kernels.tiled_matmul import BACKENDS, tiled_matmul
from kernels.verify import matrices_match, max_abs_diff
