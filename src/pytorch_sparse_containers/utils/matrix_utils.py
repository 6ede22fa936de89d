"""
Host matrix helpers for pytorch_sparse_containers.

This module builds the SciPy structures used as upload sources in the tests
and examples, and compares host structures entry by entry.
"""

import numpy as np
import scipy.sparse
from typing import Optional, Union


def create_tridiagonal_host(
    n: int,
    diag_val: float = 2.0,
    off_diag_val: float = -1.0,
    dtype: Union[str, np.dtype] = np.float64
) -> scipy.sparse.csc_matrix:
    """
    Create a tridiagonal host matrix.

    Args:
        n: Matrix dimension
        diag_val: Main diagonal value
        off_diag_val: Off-diagonal value
        dtype: Data type

    Returns:
        CSC matrix representing a tridiagonal matrix
    """
    if n == 1:
        return scipy.sparse.csc_matrix(np.full((1, 1), diag_val, dtype=dtype))
    return scipy.sparse.diags(
        [np.full(n - 1, off_diag_val), np.full(n, diag_val), np.full(n - 1, off_diag_val)],
        offsets=[-1, 0, 1],
        shape=(n, n),
        format='csc',
        dtype=dtype,
    )


def create_poisson_2d_host(
    nx: int,
    ny: int,
    dtype: Union[str, np.dtype] = np.float64
) -> scipy.sparse.csc_matrix:
    """
    Create a 2D Poisson matrix using the 5-point stencil.

    Args:
        nx: Number of grid points in x direction
        ny: Number of grid points in y direction
        dtype: Data type

    Returns:
        CSC matrix of shape (nx * ny, nx * ny)
    """
    tx = create_tridiagonal_host(nx, 2.0, -1.0, dtype)
    ty = create_tridiagonal_host(ny, 2.0, -1.0, dtype)
    poisson = scipy.sparse.kron(tx, scipy.sparse.identity(ny, dtype=dtype)) \
        + scipy.sparse.kron(scipy.sparse.identity(nx, dtype=dtype), ty)
    return poisson.tocsc()


def random_host_sparse(
    m: int,
    n: int,
    density: float = 0.1,
    dtype: Union[str, np.dtype] = np.float64,
    seed: Optional[int] = None
) -> scipy.sparse.csc_matrix:
    """
    Create a random host matrix with sorted, duplicate-free indices.

    Complex dtypes get random imaginary parts as well.
    """
    rng = np.random.default_rng(seed)
    dtype = np.dtype(dtype)
    count = int(round(density * m * n))
    positions = rng.choice(m * n, size=count, replace=False)
    values = rng.standard_normal(count)
    if dtype.kind == 'c':
        values = values + 1j * rng.standard_normal(count)
    rows, cols = np.divmod(positions, n)
    matrix = scipy.sparse.coo_matrix((values.astype(dtype), (rows, cols)), shape=(m, n)).tocsc()
    matrix.sort_indices()
    return matrix


def host_matrices_equal(A, B) -> bool:
    """
    Check two host sparse structures hold the same entries and shape.

    Args:
        A: SciPy sparse structure
        B: SciPy sparse structure

    Returns:
        True if shapes match and every entry is equal
    """
    if A.shape != B.shape:
        return False
    return np.array_equal(A.toarray(), B.toarray())
