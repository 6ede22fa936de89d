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
Sparse vectors on the device.

The host counterpart is a 1-D ``scipy.sparse.coo_array``; single-column
sparse matrices are accepted on upload as well.
"""

from typing import Any, Optional

import scipy.sparse
import torch

from .base import DeviceSparseContainer
from .errors import UnsupportedConversion
from .utils import buffers


class DeviceSparseVector(DeviceSparseContainer):
    """
    Container holding a sparse vector on the device.

    Attributes:
        indices: int32 buffer of positions, one per stored entry
        values: Buffer of stored values
        length: Logical length of the vector

    Example:
        >>> import numpy as np
        >>> v = DeviceSparseVector([1, 4], np.array([2.0, 3.0]), 6, device='cpu')
        >>> v.shape, v.nonzero_count
        ((6,), 2)
    """

    format = "vector"
    ndim = 1
    _buffer_fields = ("indices", "values")

    def __init__(
        self,
        indices: Any,
        values: Any,
        length: int,
        nonzero_count: Optional[int] = None,
        device=None,
        stream: Optional["torch.cuda.Stream"] = None
    ):
        """
        Wrap or upload the buffers of a sparse vector.

        Args:
            indices: Positions of the stored entries (tensor or array-like)
            values: Stored values (tensor or array-like)
            length: Logical length
            nonzero_count: Stored entry count (default: ``len(values)``)
            device: Target device (default: device of the given tensors)
            stream: Stream to issue uploads on
        """
        device = buffers.resolve_device(device, values, indices)
        self.indices = buffers.as_index_buffer(indices, device, stream)
        self.values = buffers.as_value_buffer(values, device, stream)
        if self.indices.numel() != self.values.numel():
            raise ValueError(
                f"indices and values must have the same length, "
                f"got {self.indices.numel()} and {self.values.numel()}"
            )
        if nonzero_count is None:
            nonzero_count = self.values.numel()
        super().__init__((length,), nonzero_count, self.values.device)

    @property
    def length(self) -> int:
        return self._dims[0]

    @classmethod
    def from_host(
        cls,
        host,
        device=None,
        stream: Optional["torch.cuda.Stream"] = None
    ) -> "DeviceSparseVector":
        """
        Upload a host sparse vector.

        Args:
            host: 1-D SciPy sparse array, or a sparse matrix with one column
            device: Target device
            stream: Stream to issue uploads on

        Raises:
            UnsupportedConversion: If ``host`` is not sparse, has more than one
                column, or holds an unsupported element type
        """
        if not scipy.sparse.issparse(host):
            raise UnsupportedConversion(
                f"Expected a SciPy sparse structure, got {type(host).__name__}"
            )

        if host.ndim == 1:
            coo = host.tocoo(copy=True)
            coo.sum_duplicates()
            indices, values = coo.coords[0], coo.data
        elif host.shape[1] == 1:
            csc = scipy.sparse.csc_matrix(host)
            if not csc.has_sorted_indices:
                csc = csc.sorted_indices()
            indices, values = csc.indices, csc.data
        else:
            raise UnsupportedConversion(
                f"Cannot build a sparse vector from a {host.shape[0]}×{host.shape[1]} matrix"
            )

        device = buffers.resolve_device(device)
        return cls(indices, values, host.shape[0], device=device, stream=stream)

    def to_host(self, stream: Optional["torch.cuda.Stream"] = None) -> scipy.sparse.coo_array:
        """Download into a 1-D ``scipy.sparse.coo_array`` of the same length."""
        indices = buffers.download(self.indices, stream)
        values = buffers.download(self.values, stream)
        return scipy.sparse.coo_array((values, (indices,)), shape=(self.length,))

    def similar(self) -> "DeviceSparseVector":
        """Same pattern (indices copied), uninitialized values."""
        return DeviceSparseVector(
            buffers.clone(self.indices),
            buffers.allocate(self.values.numel(), self.values.dtype, self._device),
            self.length,
            self.nonzero_count,
            device=self._device,
        )
