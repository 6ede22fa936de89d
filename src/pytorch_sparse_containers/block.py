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
Block compressed sparse row (BSR) matrices.

BSR is CSR over square dense blocks of side ``block_dim``. It suits matrices
that are "block" sparse: rare regions that are themselves dense. The values
buffer is flat; ``direction`` records whether the scalars of each block are
stored row-major or column-major.
"""

from typing import Any, Optional, Tuple, Union

import numpy as np
import scipy.sparse
import torch

from .base import BlockDirection, DeviceSparseContainer
from .errors import ShapeMismatch, UnsupportedConversion
from .utils import buffers


def _check_block_shape(shape: Tuple[int, int], block_dim: int, error=ValueError) -> None:
    if block_dim < 1:
        raise error(f"block_dim must be >= 1, got {block_dim}")
    if shape[0] % block_dim or shape[1] % block_dim:
        raise error(f"Shape {shape} is not divisible by block_dim={block_dim}")


class DeviceSparseMatrixBSR(DeviceSparseContainer):
    """
    Container holding a sparse matrix in block sparse row format.

    ``nonzero_count`` counts stored blocks, not scalars.

    Attributes:
        row_pointers: int32 buffer of length block_rows + 1
        column_indices: int32 buffer, block column of each stored block
        values: Flat buffer of ``nonzero_count * block_dim**2`` scalars
        block_dim: Side of each square block
        direction: Storage order of the scalars within a block
    """

    format = "bsr"
    _buffer_fields = ("row_pointers", "column_indices", "values")

    def __init__(
        self,
        row_pointers: Any,
        column_indices: Any,
        values: Any,
        shape: Tuple[int, int],
        block_dim: int,
        direction: Union[BlockDirection, str] = BlockDirection.ROW,
        nonzero_count: Optional[int] = None,
        device=None,
        stream: Optional["torch.cuda.Stream"] = None
    ):
        """
        Wrap or upload the buffers of a BSR matrix.

        Args:
            row_pointers: Block row pointers
            column_indices: Block column of each stored block
            values: Block values, flat or shaped ``(blocks, block_dim, block_dim)``
            shape: Matrix shape in scalars
            block_dim: Side of each square block
            direction: Block storage order ('row' or 'column')
            nonzero_count: Stored block count (default: ``len(column_indices)``)
            device: Target device
            stream: Stream to issue uploads on
        """
        shape = tuple(int(s) for s in shape)
        block_dim = int(block_dim)
        _check_block_shape(shape, block_dim)

        device = buffers.resolve_device(device, values, row_pointers, column_indices)
        self.row_pointers = buffers.as_index_buffer(row_pointers, device, stream)
        self.column_indices = buffers.as_index_buffer(column_indices, device, stream)
        self.values = buffers.as_value_buffer(values, device, stream)
        self.block_dim = block_dim
        self.direction = BlockDirection(direction)

        if self.row_pointers.numel() != shape[0] // block_dim + 1:
            raise ValueError(
                f"row_pointers must have {shape[0] // block_dim + 1} entries, "
                f"got {self.row_pointers.numel()}"
            )
        if self.values.numel() != self.column_indices.numel() * block_dim ** 2:
            raise ValueError(
                f"values must hold {block_dim}×{block_dim} scalars per block: expected "
                f"{self.column_indices.numel() * block_dim ** 2}, got {self.values.numel()}"
            )

        if nonzero_count is None:
            nonzero_count = self.column_indices.numel()
        super().__init__(shape, nonzero_count, self.values.device)

    @property
    def block_rows(self) -> int:
        return self._dims[0] // self.block_dim

    @property
    def block_columns(self) -> int:
        return self._dims[1] // self.block_dim

    @classmethod
    def from_host(
        cls,
        host,
        block_dim: int,
        direction: Union[BlockDirection, str] = BlockDirection.ROW,
        device=None,
        stream: Optional["torch.cuda.Stream"] = None
    ) -> "DeviceSparseMatrixBSR":
        """
        Block a host sparse matrix and upload it.

        Raises:
            UnsupportedConversion: If ``host`` is not a 2-D sparse structure,
                its shape is not divisible by ``block_dim``, or it holds an
                unsupported element type
        """
        if not scipy.sparse.issparse(host) or host.ndim != 2:
            raise UnsupportedConversion("Expected a 2-D SciPy sparse structure")
        block_dim = int(block_dim)
        _check_block_shape(host.shape, block_dim, UnsupportedConversion)

        direction = BlockDirection(direction)
        bsr = scipy.sparse.bsr_matrix(host, blocksize=(block_dim, block_dim))
        blocks = bsr.data
        if direction is BlockDirection.COLUMN:
            blocks = blocks.transpose(0, 2, 1)

        device = buffers.resolve_device(device)
        return cls(bsr.indptr, bsr.indices, np.ascontiguousarray(blocks), bsr.shape,
                   block_dim, direction, device=device, stream=stream)

    def _blocks(self) -> torch.Tensor:
        """Values as ``(blocks, block_dim, block_dim)`` in row-major block order."""
        blocks = self.values.reshape(-1, self.block_dim, self.block_dim)
        if self.direction is BlockDirection.COLUMN:
            blocks = blocks.transpose(1, 2)
        return blocks

    def to_torch(self) -> torch.Tensor:
        """
        Build a ``torch.sparse_bsr`` tensor from the buffers.

        Shares memory for row-major blocks; column-major blocks are copied.
        """
        return torch.sparse_bsr_tensor(
            self.row_pointers, self.column_indices, self._blocks().contiguous(), size=self.shape
        )

    def to_host(self, stream: Optional["torch.cuda.Stream"] = None) -> scipy.sparse.csc_matrix:
        """Download and assemble a ``scipy.sparse.csc_matrix``."""
        blocks = buffers.download(self.values, stream).reshape(-1, self.block_dim, self.block_dim)
        if self.direction is BlockDirection.COLUMN:
            blocks = blocks.transpose(0, 2, 1)
        bsr = scipy.sparse.bsr_matrix(
            (
                blocks,
                buffers.download(self.column_indices, stream),
                buffers.download(self.row_pointers, stream),
            ),
            shape=self.shape,
        )
        return bsr.tocsc()

    def similar(self) -> "DeviceSparseMatrixBSR":
        """Same block pattern (structure copied), uninitialized values."""
        return DeviceSparseMatrixBSR(
            buffers.clone(self.row_pointers),
            buffers.clone(self.column_indices),
            buffers.allocate(self.values.numel(), self.values.dtype, self._device),
            self.shape,
            self.block_dim,
            self.direction,
            self.nonzero_count,
            device=self._device,
        )

    def copy_(self, source, stream: Optional["torch.cuda.Stream"] = None) -> "DeviceSparseMatrixBSR":
        """
        Overwrite buffers, ``nonzero_count`` and ``direction`` from ``source``.

        Raises:
            ShapeMismatch: If shapes or block sizes differ
        """
        self._check_copy_source(source)
        if source.block_dim != self.block_dim:
            raise ShapeMismatch(
                (self.block_dim, self.block_dim), (source.block_dim, source.block_dim), "block"
            )
        super().copy_(source, stream=stream)
        self.direction = source.direction
        return self

    def __repr__(self) -> str:
        return (
            f"DeviceSparseMatrixBSR(shape={self.shape}, block_dim={self.block_dim}, "
            f"direction={self.direction.value}, nonzero_count={self.nonzero_count}, "
            f"dtype={self.element_type}, device='{self._device}')"
        )
