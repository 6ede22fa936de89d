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
Hybrid (HYB) sparse matrices.

HYB is an opaque representation owned by the vendor sparse library: callers
cannot inspect it, only convert to and from it. ``HybHandle`` plays the role
of the vendor's handle type and exposes the vendor routines (create from CSR,
export to CSR, clone, destroy). ``DeviceSparseMatrixHYB`` pairs a handle with
shape and count metadata.

Each record owns its handle exclusively. Copying between records clones the
payload, so two records never share one handle and destroying one never
invalidates the other.
"""

import warnings
from typing import Optional, Tuple

import scipy.sparse
import torch

from .base import DeviceSparseContainer
from .utils import buffers


class HybHandle:
    """
    Opaque hybrid-format payload.

    The payload is kept as a coalesced ``torch.sparse_coo`` tensor; nothing
    outside this class depends on that choice.
    """

    def __init__(self, payload: torch.Tensor):
        if payload.layout != torch.sparse_coo:
            raise TypeError(f"HYB payload must be a sparse COO tensor, got {payload.layout}")
        self._payload = payload.coalesce()

    @classmethod
    def from_torch_csr(cls, tensor: torch.Tensor) -> "HybHandle":
        """Create a handle from a ``torch.sparse_csr`` tensor (csr2hyb)."""
        return cls(tensor.to_sparse_coo().clone())

    def to_torch_csr(self) -> torch.Tensor:
        """Export a copy of the payload as a ``torch.sparse_csr`` tensor (hyb2csr)."""
        return self._require().to_sparse_csr().clone()

    def clone(self, stream: Optional["torch.cuda.Stream"] = None) -> "HybHandle":
        """Deep copy of the payload into a new handle."""
        payload = self._require()
        with buffers.stream_scope(stream, payload.device):
            return HybHandle(payload.clone())

    def destroy(self) -> None:
        """Release the payload. Destroying twice only warns."""
        if self._payload is None:
            warnings.warn("HYB handle already destroyed", RuntimeWarning, stacklevel=2)
            return
        self._payload = None

    @property
    def destroyed(self) -> bool:
        return self._payload is None

    @property
    def nonzero_count(self) -> int:
        """Stored entries in the coalesced payload."""
        return self._require()._nnz()

    @property
    def dtype(self) -> torch.dtype:
        return self._require().dtype

    @property
    def device(self) -> torch.device:
        return self._require().device

    def _require(self) -> torch.Tensor:
        if self._payload is None:
            raise RuntimeError("HYB handle used after destroy()")
        return self._payload

    def __repr__(self) -> str:
        if self.destroyed:
            return "HybHandle(<destroyed>)"
        return f"HybHandle(dtype={self.dtype}, device='{self.device}')"


class DeviceSparseMatrixHYB(DeviceSparseContainer):
    """
    Container holding a sparse matrix in the vendor's hybrid format.

    Attributes:
        handle: Opaque ``HybHandle`` owned by this record
    """

    format = "hyb"

    def __init__(
        self,
        handle: HybHandle,
        shape: Tuple[int, int],
        nonzero_count: int,
        device=None
    ):
        if device is None:
            device = handle.device
        self.handle = handle
        super().__init__(shape, nonzero_count, buffers.resolve_device(device))

    @property
    def element_type(self) -> torch.dtype:
        return self.handle.dtype

    def replace_handle(self, handle: HybHandle, nonzero_count: Optional[int] = None) -> None:
        """
        Install a new payload, destroying the previous one.

        Used when a conversion rewrites this record in place.
        """
        if handle is not self.handle and not self.handle.destroyed:
            self.handle.destroy()
        self.handle = handle
        if nonzero_count is not None:
            self._nonzero_count = int(nonzero_count)

    def to_host(self, stream: Optional["torch.cuda.Stream"] = None) -> scipy.sparse.csc_matrix:
        """Export through CSR and download as a ``scipy.sparse.csc_matrix``."""
        from .compressed import DeviceSparseMatrixCSR

        with buffers.stream_scope(stream, self._device):
            csr = DeviceSparseMatrixCSR.from_torch(self.handle.to_torch_csr())
        return csr.to_host(stream)

    def copy_(self, source, stream: Optional["torch.cuda.Stream"] = None) -> "DeviceSparseMatrixHYB":
        """
        Replace this record's payload with a clone of ``source``'s.

        Raises:
            TypeError: If ``source`` is not a HYB record
            ShapeMismatch: If the shapes differ
        """
        self._check_copy_source(source)
        self.replace_handle(source.handle.clone(stream), source.nonzero_count)
        return self

    def copy(self, stream: Optional["torch.cuda.Stream"] = None) -> "DeviceSparseMatrixHYB":
        return DeviceSparseMatrixHYB(
            self.handle.clone(stream), self.shape, self.nonzero_count, device=self._device
        )

    def __repr__(self) -> str:
        return (
            f"DeviceSparseMatrixHYB(shape={self.shape}, nonzero_count={self.nonzero_count}, "
            f"handle={self.handle!r}, device='{self._device}')"
        )

    def free(self) -> None:
        """Destroy the handle."""
        if self._freed:
            warnings.warn("DeviceSparseMatrixHYB already freed", RuntimeWarning, stacklevel=2)
            return
        self.handle.destroy()
        self._freed = True
