"""
PyTorch Sparse Containers - Device-Resident Sparse Vectors and Matrices

This package holds sparse vectors and matrices on a GPU (or the CPU) in the
layouts used by vendor sparse routines, mirroring SciPy's host formats:

- **DeviceSparseVector**: sparse vector (indices + values)
- **DeviceSparseMatrixCSC**: compressed sparse column, 1:1 with SciPy's CSC
- **DeviceSparseMatrixCSR**: compressed sparse row
- **DeviceSparseMatrixBSR**: block sparse row with row- or column-major blocks
- **DeviceSparseMatrixHYB**: opaque hybrid format behind a ``HybHandle``

Containers only hold buffers and metadata. They support shape queries,
host <-> device transfer, ``similar``/``copy``/``copy_`` and thin format
conversions delegated to PyTorch; they do no arithmetic.

Quick Start:
    >>> import scipy.sparse
    >>> from pytorch_sparse_containers import DeviceSparseMatrixCSC, DeviceSparseMatrixCSR
    >>>
    >>> A_host = scipy.sparse.random(100, 100, density=0.05, format='csc')
    >>> A = DeviceSparseMatrixCSC.from_host(A_host, device='cuda')
    >>> A.shape, A.nonzero_count, A.device_id
    ((100, 100), 500, 0)
    >>>
    >>> B = A.copy()                                   # independent buffers
    >>> R = DeviceSparseMatrixCSR.from_host(A_host)   # converted on the device
    >>> R.to_host()                                    # back to scipy CSC

Annotations:
    >>> from pytorch_sparse_containers import Symmetric
    >>> Symmetric(A).is_symmetric()
    True

Check Device Availability:
    >>> from pytorch_sparse_containers.utils import get_available_devices
    >>> print(get_available_devices())
    ['cpu', 'cuda:0']
"""

__version__ = '1.0.0'
__author__ = 'Litianyu141'
__license__ = 'Apache-2.0'

from .errors import (
    SparseContainerError,
    InvalidDimension,
    ShapeMismatch,
    UnsupportedConversion,
)

from .base import (
    BlockDirection,
    DeviceSparseContainer,
    get_device_id,
)

from .vector import DeviceSparseVector
from .compressed import (
    CompressedSparseMatrix,
    DeviceSparseMatrixCSC,
    DeviceSparseMatrixCSR,
    expand_row_pointers,
)
from .block import DeviceSparseMatrixBSR
from .hybrid import DeviceSparseMatrixHYB, HybHandle

from .wrappers import (
    Symmetric,
    Hermitian,
    UpperTriangular,
    LowerTriangular,
    is_compressed_sparse,
)

from .convert import (
    csc_to_csr,
    csr_to_csc,
    csr_to_bsr,
    bsr_to_csr,
    csr_to_hyb,
    hyb_to_csr,
)

from .utils.availability import (
    check_cuda_available,
    get_available_devices,
    print_availability_report,
)

from .utils.buffers import INDEX_DTYPE, SUPPORTED_DTYPES

__all__ = [
    # Version info
    '__version__',
    '__author__',
    '__license__',

    # Errors
    'SparseContainerError',
    'InvalidDimension',
    'ShapeMismatch',
    'UnsupportedConversion',

    # Containers
    'BlockDirection',
    'DeviceSparseContainer',
    'DeviceSparseVector',
    'CompressedSparseMatrix',
    'DeviceSparseMatrixCSC',
    'DeviceSparseMatrixCSR',
    'DeviceSparseMatrixBSR',
    'DeviceSparseMatrixHYB',
    'HybHandle',
    'expand_row_pointers',
    'get_device_id',
    'INDEX_DTYPE',
    'SUPPORTED_DTYPES',

    # Annotations
    'Symmetric',
    'Hermitian',
    'UpperTriangular',
    'LowerTriangular',
    'is_compressed_sparse',

    # Conversions
    'csc_to_csr',
    'csr_to_csc',
    'csr_to_bsr',
    'bsr_to_csr',
    'csr_to_hyb',
    'hyb_to_csr',

    # Availability checking
    'check_cuda_available',
    'get_available_devices',
    'print_availability_report',
]
