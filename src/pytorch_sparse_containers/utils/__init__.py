"""
Utility functions for pytorch_sparse_containers.
"""

from .availability import (
    check_cuda_available,
    check_sparse_bsr_available,
    get_available_devices,
    get_available_backends,
    default_device,
)

from .buffers import (
    INDEX_DTYPE,
    SUPPORTED_DTYPES,
    allocate,
    upload,
    download,
    copy_device_to_device,
    free,
)

from .matrix_utils import (
    create_tridiagonal_host,
    create_poisson_2d_host,
    random_host_sparse,
    host_matrices_equal,
)

__all__ = [
    'check_cuda_available',
    'check_sparse_bsr_available',
    'get_available_devices',
    'get_available_backends',
    'default_device',
    'INDEX_DTYPE',
    'SUPPORTED_DTYPES',
    'allocate',
    'upload',
    'download',
    'copy_device_to_device',
    'free',
    'create_tridiagonal_host',
    'create_poisson_2d_host',
    'random_host_sparse',
    'host_matrices_equal',
]
