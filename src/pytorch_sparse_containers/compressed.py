#!/usr/bin/env python3
# Copyright 2025 Litianyu141
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Compressed sparse column (CSC) and compressed sparse row (CSR) matrices.

CSC matches the host ecosystem's native sparse layout one to one, so it
transfers buffer by buffer. Most vendor sparse routines work on CSR instead;
CSR containers are built on the device by converting an uploaded CSC matrix,
and are brought back to the host through ``(row, column, value)`` triplets.

Note:
    Bare CSC/CSR containers never claim symmetry. Wrap them in
    ``Symmetric`` or ``Hermitian`` to let routines index a single triangle.
"""

from typing import Any, Optional, Tuple

import numpy as np
import scipy.sparse
import torch

from .base import DeviceSparseContainer
from .errors import UnsupportedConversion
from .utils import buffers


def expand_row_pointers(row_pointers: Any) -> np.ndarray:
    """
    Expand compressed row pointers into one row label per stored entry.

    Row ``r`` is repeated ``row_pointers[r+1] - row_pointers[r]`` times.

    Args:
        row_pointers: Host array of length rows + 1

    Returns:
        np.ndarray: Row label of every stored entry, in storage order

    Example:
        >>> expand_row_pointers([0, 2, 3])
        array([0, 0, 1], dtype=int32)
    """
    row_pointers = np.asarray(row_pointers, dtype=np.int32)
    counts = np.diff(row_pointers)
    return np.repeat(np.arange(len(row_pointers) - 1, dtype=np.int32), counts)


class CompressedSparseMatrix(DeviceSparseContainer):
    """
    Layout shared by CSC and CSR: pointers along the major axis, minor-axis
    indices and values per stored entry.
    """

    _pointer_field = ""
    _index_field = ""
    _major_axis = 0

    def __init__(
        self,
        pointers: Any,
        indices: Any,
        values: Any,
        shape: Tuple[int, int],
        nonzero_count: Optional[int] = None,
        device=None,
        stream: Optional["torch.cuda.Stream"] = None
    ):
        device = buffers.resolve_device(device, values, pointers, indices)
        pointers = buffers.as_index_buffer(pointers, device, stream)
        indices = buffers.as_index_buffer(indices, device, stream)
        values = buffers.as_value_buffer(values, device, stream)

        shape = tuple(int(s) for s in shape)
        if len(shape) != 2:
            raise ValueError(f"Expected a 2D shape, got {shape}")
        if pointers.numel() != shape[self._major_axis] + 1:
            raise ValueError(
                f"{self._pointer_field} must have {shape[self._major_axis] + 1} entries, "
                f"got {pointers.numel()}"
            )
        if indices.numel() != values.numel():
            raise ValueError(
                f"{self._index_field} and values must have the same length, "
                f"got {indices.numel()} and {values.numel()}"
            )

        setattr(self, self._pointer_field, pointers)
        setattr(self, self._index_field, indices)
        self.values = values
        if nonzero_count is None:
            nonzero_count = values.numel()
        super().__init__(shape, nonzero_count, values.device)

    def is_symmetric(self) -> bool:
        """The format carries no symmetry guarantee."""
        return False

    def is_hermitian(self) -> bool:
        """The format carries no symmetry guarantee."""
        return False

    def similar(self):
        """Same pattern (structure copied), uninitialized values."""
        return type(self)(
            buffers.clone(getattr(self, self._pointer_field)),
            buffers.clone(getattr(self, self._index_field)),
            buffers.allocate(self.values.numel(), self.values.dtype, self._device),
            self.shape,
            self.nonzero_count,
            device=self._device,
        )


class DeviceSparseMatrixCSC(CompressedSparseMatrix):
    """
    Container holding a sparse matrix in compressed sparse column format.

    Attributes:
        column_pointers: int32 buffer of length columns + 1
        row_indices: int32 buffer, row of each stored entry
        values: Buffer of stored values

    Example:
        >>> import numpy as np
        >>> A = DeviceSparseMatrixCSC([0, 1, 2], [0, 1], np.array([1.0, 2.0]), (2, 2))
        >>> A.to_host().toarray()
        array([[1., 0.],
               [0., 2.]])
    """

    format = "csc"
    _pointer_field = "column_pointers"
    _index_field = "row_indices"
    _major_axis = 1
    _buffer_fields = ("column_pointers", "row_indices", "values")

    def __init__(
        self,
        column_pointers: Any,
        row_indices: Any,
        values: Any,
        shape: Tuple[int, int],
        nonzero_count: Optional[int] = None,
        device=None,
        stream: Optional["torch.cuda.Stream"] = None
    ):
        super().__init__(column_pointers, row_indices, values, shape, nonzero_count, device, stream)

    @classmethod
    def from_host(
        cls,
        host,
        device=None,
        stream: Optional["torch.cuda.Stream"] = None
    ) -> "DeviceSparseMatrixCSC":
        """
        Upload a host sparse structure.

        Args:
            host: Any 2-D SciPy sparse structure, or a 1-D sparse array which
                becomes a single-column matrix
            device: Target device
            stream: Stream to issue uploads on

        Raises:
            UnsupportedConversion: If ``host`` is not sparse or holds an
                unsupported element type
        """
        if not scipy.sparse.issparse(host):
            raise UnsupportedConversion(
                f"Expected a SciPy sparse structure, got {type(host).__name__}"
            )

        device = buffers.resolve_device(device)
        if host.ndim == 1:
            coo = host.tocoo(copy=True)
            coo.sum_duplicates()
            column_pointers = np.array([0, coo.nnz], dtype=np.int32)
            return cls(column_pointers, coo.coords[0], coo.data, (host.shape[0], 1),
                       device=device, stream=stream)

        csc = scipy.sparse.csc_matrix(host)
        return cls(csc.indptr, csc.indices, csc.data, csc.shape, device=device, stream=stream)

    @classmethod
    def from_torch(cls, tensor: torch.Tensor) -> "DeviceSparseMatrixCSC":
        """Adopt the buffers of a ``torch.sparse_csc`` tensor."""
        if tensor.layout != torch.sparse_csc:
            raise UnsupportedConversion(f"Expected a sparse CSC tensor, got layout {tensor.layout}")
        return cls(tensor.ccol_indices(), tensor.row_indices(), tensor.values(),
                   tuple(tensor.shape), device=tensor.device)

    def to_torch(self) -> torch.Tensor:
        """View the buffers as a ``torch.sparse_csc`` tensor (no copy)."""
        return torch.sparse_csc_tensor(
            self.column_pointers, self.row_indices, self.values, size=self.shape
        )

    def to_host(self, stream: Optional["torch.cuda.Stream"] = None) -> scipy.sparse.csc_matrix:
        """Download the three buffers into a ``scipy.sparse.csc_matrix``."""
        return scipy.sparse.csc_matrix(
            (
                buffers.download(self.values, stream),
                buffers.download(self.row_indices, stream),
                buffers.download(self.column_pointers, stream),
            ),
            shape=self.shape,
        )


class DeviceSparseMatrixCSR(CompressedSparseMatrix):
    """
    Container holding a sparse matrix in compressed sparse row format.

    Attributes:
        row_pointers: int32 buffer of length rows + 1
        column_indices: int32 buffer, column of each stored entry
        values: Buffer of stored values
    """

    format = "csr"
    _pointer_field = "row_pointers"
    _index_field = "column_indices"
    _major_axis = 0
    _buffer_fields = ("row_pointers", "column_indices", "values")

    def __init__(
        self,
        row_pointers: Any,
        column_indices: Any,
        values: Any,
        shape: Tuple[int, int],
        nonzero_count: Optional[int] = None,
        device=None,
        stream: Optional["torch.cuda.Stream"] = None
    ):
        super().__init__(row_pointers, column_indices, values, shape, nonzero_count, device, stream)

    @classmethod
    def from_host(
        cls,
        host,
        device=None,
        stream: Optional["torch.cuda.Stream"] = None
    ) -> "DeviceSparseMatrixCSR":
        """
        Upload a host sparse structure as CSC and convert it on the device.

        Args:
            host: Any SciPy sparse structure accepted by
                ``DeviceSparseMatrixCSC.from_host``
            device: Target device
            stream: Stream to issue uploads and the conversion on
        """
        from .convert import csc_to_csr

        csc = DeviceSparseMatrixCSC.from_host(host, device=device, stream=stream)
        return csc_to_csr(csc, stream=stream)

    @classmethod
    def from_torch(cls, tensor: torch.Tensor) -> "DeviceSparseMatrixCSR":
        """Adopt the buffers of a ``torch.sparse_csr`` tensor."""
        if tensor.layout != torch.sparse_csr:
            raise UnsupportedConversion(f"Expected a sparse CSR tensor, got layout {tensor.layout}")
        return cls(tensor.crow_indices(), tensor.col_indices(), tensor.values(),
                   tuple(tensor.shape), device=tensor.device)

    def to_torch(self) -> torch.Tensor:
        """View the buffers as a ``torch.sparse_csr`` tensor (no copy)."""
        return torch.sparse_csr_tensor(
            self.row_pointers, self.column_indices, self.values, size=self.shape
        )

    def to_triplets(
        self,
        stream: Optional["torch.cuda.Stream"] = None
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Download the matrix as ``(rows, columns, values)`` host arrays.

        Row labels are rebuilt from the row pointers with
        ``expand_row_pointers``.
        """
        row_pointers = buffers.download(self.row_pointers, stream)
        columns = buffers.download(self.column_indices, stream)
        values = buffers.download(self.values, stream)
        return expand_row_pointers(row_pointers), columns, values

    def to_host(self, stream: Optional["torch.cuda.Stream"] = None) -> scipy.sparse.csc_matrix:
        """Download and assemble a ``scipy.sparse.csc_matrix`` from triplets."""
        rows, columns, values = self.to_triplets(stream)
        return scipy.sparse.coo_matrix((values, (rows, columns)), shape=self.shape).tocsc()
