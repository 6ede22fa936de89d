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
Format conversions between device containers.

Most of the work is done by PyTorch's sparse layouts on the containers'
device; this module only moves buffers in and out of torch sparse tensors. Every
conversion returns a container that owns fresh buffers, except
``csr_to_hyb(..., out=hyb)`` which refreshes ``hyb`` in place.

Key Features:
- CSC <-> CSR through a transposed COO round (CSC of A is CSR of A^T)
- CSR <-> BSR with either block storage direction
- CSR <-> HYB through the opaque ``HybHandle`` routines
"""

from typing import Optional, Tuple, Union

import numpy as np
import scipy.sparse
import torch

from .base import BlockDirection
from .block import DeviceSparseMatrixBSR, _check_block_shape
from .compressed import DeviceSparseMatrixCSC, DeviceSparseMatrixCSR
from .errors import ShapeMismatch, UnsupportedConversion
from .hybrid import DeviceSparseMatrixHYB, HybHandle
from .utils import buffers


def _transpose_compressed(
    pointers: torch.Tensor,
    indices: torch.Tensor,
    values: torch.Tensor,
    shape: Tuple[int, int]
) -> torch.Tensor:
    """
    Given the CSR buffers of a matrix X of ``shape``, return X^T as a
    ``torch.sparse_csr`` tensor with freshly allocated buffers.
    """
    coo = torch.sparse_csr_tensor(pointers, indices, values, size=shape).to_sparse_coo().coalesce()
    rows, cols = coo.indices()
    transposed = torch.sparse_coo_tensor(
        torch.stack([cols, rows]),
        coo.values().clone(),
        (shape[1], shape[0]),
    )
    return transposed.coalesce().to_sparse_csr()


def csc_to_csr(
    csc: DeviceSparseMatrixCSC,
    stream: Optional["torch.cuda.Stream"] = None
) -> DeviceSparseMatrixCSR:
    """
    Convert a CSC container to CSR on its device.

    Args:
        csc: Source matrix
        stream: Stream to run the conversion on

    Returns:
        DeviceSparseMatrixCSR: New container with the same entries
    """
    rows, cols = csc.shape
    with buffers.stream_scope(stream, csc.device):
        # The CSC buffers of A are the CSR buffers of A^T
        t = _transpose_compressed(csc.column_pointers, csc.row_indices, csc.values, (cols, rows))
        return DeviceSparseMatrixCSR(t.crow_indices(), t.col_indices(), t.values(),
                                     csc.shape, device=csc.device)


def csr_to_csc(
    csr: DeviceSparseMatrixCSR,
    stream: Optional["torch.cuda.Stream"] = None
) -> DeviceSparseMatrixCSC:
    """
    Convert a CSR container to CSC on its device.

    Args:
        csr: Source matrix
        stream: Stream to run the conversion on

    Returns:
        DeviceSparseMatrixCSC: New container with the same entries
    """
    with buffers.stream_scope(stream, csr.device):
        t = _transpose_compressed(csr.row_pointers, csr.column_indices, csr.values, csr.shape)
        return DeviceSparseMatrixCSC(t.crow_indices(), t.col_indices(), t.values(),
                                     csr.shape, device=csr.device)


def _block_on_host(
    csr: DeviceSparseMatrixCSR,
    block_dim: int
) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    """Group CSR buffers into blocks with SciPy; returns host tensors."""
    host = scipy.sparse.csr_matrix(
        (
            buffers.download(csr.values),
            buffers.download(csr.column_indices),
            buffers.download(csr.row_pointers),
        ),
        shape=csr.shape,
    )
    bsr = scipy.sparse.bsr_matrix(host, blocksize=(block_dim, block_dim))
    return (torch.from_numpy(bsr.indptr), torch.from_numpy(bsr.indices),
            torch.from_numpy(np.ascontiguousarray(bsr.data)))


def csr_to_bsr(
    csr: DeviceSparseMatrixCSR,
    block_dim: int,
    direction: Union[BlockDirection, str] = BlockDirection.ROW,
    stream: Optional["torch.cuda.Stream"] = None
) -> DeviceSparseMatrixBSR:
    """
    Group a CSR container into square blocks of side ``block_dim``.

    The conversion stays sparse: work and memory grow with the number of
    stored entries, not with the matrix size. Explicitly stored zeros are
    kept.

    Args:
        csr: Source matrix
        block_dim: Side of each block; must divide both dimensions
        direction: Storage order of the scalars inside each block
        stream: Stream to run the conversion on

    Raises:
        UnsupportedConversion: If the shape is not divisible by ``block_dim``
    """
    block_dim = int(block_dim)
    _check_block_shape(csr.shape, block_dim, UnsupportedConversion)
    direction = BlockDirection(direction)

    with buffers.stream_scope(stream, csr.device):
        try:
            t = csr.to_torch().to_sparse_bsr((block_dim, block_dim))
            pointers, indices, blocks = t.crow_indices(), t.col_indices(), t.values().clone()
        except (RuntimeError, NotImplementedError):
            # PyTorch has no CSR -> BSR kernel for this device
            pointers, indices, blocks = _block_on_host(csr, block_dim)
        if direction is BlockDirection.COLUMN:
            blocks = blocks.transpose(1, 2)
        return DeviceSparseMatrixBSR(pointers, indices, blocks.contiguous(), csr.shape,
                                     block_dim, direction, device=csr.device)


def bsr_to_csr(
    bsr: DeviceSparseMatrixBSR,
    stream: Optional["torch.cuda.Stream"] = None
) -> DeviceSparseMatrixCSR:
    """
    Expand a BSR container into CSR on its device.

    Every scalar of every stored block becomes a stored entry, zeros
    included, so the result holds ``nonzero_count * block_dim**2`` entries.
    """
    block_dim = bsr.block_dim
    device = bsr.device
    with buffers.stream_scope(stream, device):
        blocks = bsr._blocks()
        offsets = torch.arange(block_dim, device=device)
        block_rows = torch.repeat_interleave(
            torch.arange(bsr.block_rows, device=device),
            torch.diff(bsr.row_pointers.long()),
        )
        rows = (block_rows[:, None, None] * block_dim + offsets[None, :, None]).expand_as(blocks)
        cols = (bsr.column_indices.long()[:, None, None] * block_dim
                + offsets[None, None, :]).expand_as(blocks)
        coo = torch.sparse_coo_tensor(
            torch.stack([rows.reshape(-1), cols.reshape(-1)]),
            blocks.reshape(-1).clone(),
            bsr.shape,
        )
        t = coo.coalesce().to_sparse_csr()
        return DeviceSparseMatrixCSR(t.crow_indices(), t.col_indices(), t.values(),
                                     bsr.shape, device=device)


def csr_to_hyb(
    csr: DeviceSparseMatrixCSR,
    out: Optional[DeviceSparseMatrixHYB] = None,
    stream: Optional["torch.cuda.Stream"] = None
) -> DeviceSparseMatrixHYB:
    """
    Convert a CSR container to the opaque hybrid format.

    Args:
        csr: Source matrix
        out: Existing HYB record to refresh in place; its previous handle is
            destroyed
        stream: Stream to run the conversion on

    Raises:
        ShapeMismatch: If ``out`` has a different shape than ``csr``
    """
    if out is not None and out.shape != csr.shape:
        raise ShapeMismatch(out.shape, csr.shape)

    with buffers.stream_scope(stream, csr.device):
        handle = HybHandle.from_torch_csr(csr.to_torch())

    if out is None:
        return DeviceSparseMatrixHYB(handle, csr.shape, handle.nonzero_count, device=csr.device)
    out.replace_handle(handle, handle.nonzero_count)
    return out


def hyb_to_csr(
    hyb: DeviceSparseMatrixHYB,
    stream: Optional["torch.cuda.Stream"] = None
) -> DeviceSparseMatrixCSR:
    """Export a HYB container to CSR."""
    with buffers.stream_scope(stream, hyb.device):
        return DeviceSparseMatrixCSR.from_torch(hyb.handle.to_torch_csr())
