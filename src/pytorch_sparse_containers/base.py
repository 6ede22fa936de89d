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
Shared capability set of the device sparse containers.

Every container (vector, CSC, CSR, BSR, HYB) is a set of device buffers plus
shape, nonzero count and device metadata. The formats keep disjoint fields, so
this base only implements what is truly common: shape queries, device
residency and the copy protocol skeleton.
"""

import math
import warnings
from enum import Enum
from typing import Any, Optional, Tuple

import scipy.sparse
import torch

from .errors import InvalidDimension, ShapeMismatch
from .utils import buffers


class BlockDirection(Enum):
    """Storage order of the scalars inside each BSR block."""
    ROW = "row"        # row-major blocks
    COLUMN = "column"  # column-major blocks


class DeviceSparseContainer:
    """
    Base class for sparse vectors and matrices resident on a device.

    Subclasses declare their buffers in ``_buffer_fields`` and set ``format``
    and ``ndim``. The base class never allocates; it only reads metadata and
    walks the declared buffers.

    Attributes:
        format: Short format name ('vector', 'csc', 'csr', 'bsr', 'hyb')
        ndim: Rank of the container (1 for vectors, 2 for matrices)
    """

    format: str = ""
    ndim: int = 2
    _buffer_fields: Tuple[str, ...] = ()

    def __init__(self, dims: Tuple[int, ...], nonzero_count: int, device: torch.device):
        self._dims = tuple(int(d) for d in dims)
        self._nonzero_count = int(nonzero_count)
        self._device = device
        self._freed = False

    @property
    def shape(self) -> Tuple[int, ...]:
        """Logical shape: ``(length,)`` for vectors, ``(rows, columns)`` for matrices."""
        return self._dims

    @property
    def nonzero_count(self) -> int:
        """Number of stored entries."""
        return self._nonzero_count

    @property
    def element_count(self) -> int:
        """Number of logical elements, stored or not."""
        return math.prod(self._dims)

    @property
    def element_type(self) -> torch.dtype:
        return self.values.dtype

    @property
    def device(self) -> torch.device:
        return self._device

    @property
    def device_id(self) -> int:
        """CUDA ordinal the buffers live on, -1 for host memory."""
        return buffers.device_id_of(self._device)

    def length_along(self, dim: int) -> int:
        """
        Extent along the 1-based dimension ``dim``.

        Dimensions past the container's rank have extent 1, matching the
        broadcasting convention of dense arrays.

        Raises:
            InvalidDimension: If ``dim < 1``
        """
        if dim < 1:
            raise InvalidDimension(dim)
        if dim <= self.ndim:
            return self._dims[dim - 1]
        return 1

    def to_host(self, stream: Optional["torch.cuda.Stream"] = None):
        raise NotImplementedError

    def similar(self):
        raise NotImplementedError(f"similar() is not supported for {self.format.upper()} containers")

    def copy_(self, source, stream: Optional["torch.cuda.Stream"] = None):
        """
        Overwrite this container's buffers with those of ``source``.

        Shapes are checked before anything is touched, so a failed call leaves
        the destination unmodified. Buffers whose element count differs from
        the source's are reallocated first.

        Args:
            source: Container of the same format and shape
            stream: Stream to issue the device-to-device copies on

        Returns:
            self

        Raises:
            TypeError: If ``source`` is a different format
            ShapeMismatch: If the shapes differ
        """
        self._check_copy_source(source)
        for field in self._buffer_fields:
            dst = getattr(self, field)
            src = getattr(source, field)
            if dst.numel() != src.numel() or dst.dtype != src.dtype:
                dst = buffers.allocate(src.numel(), src.dtype, self._device)
                setattr(self, field, dst)
            buffers.copy_device_to_device(dst, src, stream)
        self._nonzero_count = source.nonzero_count
        return self

    def copy(self, stream: Optional["torch.cuda.Stream"] = None):
        """Independent deep copy on the same device."""
        return self.similar().copy_(self, stream=stream)

    def _check_copy_source(self, source) -> None:
        if type(source) is not type(self):
            raise TypeError(
                f"Cannot copy {type(source).__name__} into {type(self).__name__}"
            )
        if source.shape != self.shape:
            what = "Sparse Vector" if self.ndim == 1 else "Sparse Matrix"
            raise ShapeMismatch(self.shape, source.shape, what)

    def free(self) -> None:
        """Release the device buffers held by this container."""
        if self._freed:
            warnings.warn(f"{type(self).__name__} already freed", RuntimeWarning, stacklevel=2)
            return
        for field in self._buffer_fields:
            setattr(self, field, buffers.free(getattr(self, field)))
        self._freed = True

    @property
    def freed(self) -> bool:
        return self._freed

    def summary(self) -> str:
        dims = "×".join(str(d) for d in self._dims)
        return (
            f"{dims} {type(self).__name__}{{{self.element_type}}} "
            f"with {self.nonzero_count} stored entries on {self._device}"
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(shape={self.shape}, nonzero_count={self.nonzero_count}, "
            f"dtype={self.element_type}, device='{self._device}')"
        )


def get_device_id(obj: Any) -> int:
    """
    Device a sparse structure lives on.

    Args:
        obj: A device container, an annotation wrapper or a SciPy structure

    Returns:
        int: CUDA ordinal, or -1 for host structures
    """
    if scipy.sparse.issparse(obj):
        return -1
    return obj.device_id
