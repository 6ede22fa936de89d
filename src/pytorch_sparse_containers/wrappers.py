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
Read-only structural annotations for device sparse matrices.

A wrapper marks that only one triangle of its parent is significant
(``Symmetric``, ``Hermitian``) or that the parent is triangular
(``UpperTriangular``, ``LowerTriangular``). Wrappers hold a reference to the
parent and never copy its buffers; they must not outlive it.
"""

from typing import Any, Tuple

import torch

from .base import DeviceSparseContainer
from .compressed import CompressedSparseMatrix


class _MatrixAnnotation:
    """Common forwarding of shape and residency queries to the parent."""

    def __init__(self, parent: DeviceSparseContainer):
        if not isinstance(parent, DeviceSparseContainer) or parent.ndim != 2:
            raise TypeError(
                f"{type(self).__name__} expects a device sparse matrix, "
                f"got {type(parent).__name__}"
            )
        self._parent = parent

    @property
    def parent(self) -> DeviceSparseContainer:
        return self._parent

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._parent.shape

    @property
    def nonzero_count(self) -> int:
        return self._parent.nonzero_count

    @property
    def element_type(self) -> torch.dtype:
        return self._parent.element_type

    @property
    def device(self) -> torch.device:
        return self._parent.device

    @property
    def device_id(self) -> int:
        return self._parent.device_id

    def length_along(self, dim: int) -> int:
        return self._parent.length_along(dim)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._parent!r})"


class _SelfAdjointAnnotation(_MatrixAnnotation):
    """Only the ``uplo`` triangle of a CSC or CSR parent is referenced."""

    def __init__(self, parent: CompressedSparseMatrix, uplo: str = 'U'):
        super().__init__(parent)
        if not isinstance(parent, CompressedSparseMatrix):
            raise TypeError(
                f"{type(self).__name__} supports CSC and CSR matrices, "
                f"got {type(parent).__name__}"
            )
        if uplo not in ('U', 'L'):
            raise ValueError(f"uplo must be 'U' or 'L', got {uplo!r}")
        self.uplo = uplo

    def _is_real(self) -> bool:
        return not self._parent.element_type.is_complex

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._parent!r}, uplo='{self.uplo}')"


class Symmetric(_SelfAdjointAnnotation):
    """
    Marks a CSC or CSR matrix as symmetric.

    For real element types symmetric and hermitian coincide, so
    ``is_hermitian()`` is True as well; for complex types it is False.

    Example:
        >>> S = Symmetric(A)
        >>> S.is_symmetric()
        True
    """

    def is_symmetric(self) -> bool:
        return True

    def is_hermitian(self) -> bool:
        """A real symmetric matrix is also hermitian."""
        return self._is_real()


class Hermitian(_SelfAdjointAnnotation):
    """
    Marks a CSC or CSR matrix as hermitian.

    For real element types ``is_symmetric()`` is True as well.
    """

    def is_symmetric(self) -> bool:
        """A real hermitian matrix is also symmetric."""
        return self._is_real()

    def is_hermitian(self) -> bool:
        return True


class UpperTriangular(_MatrixAnnotation):
    """Marks any device sparse matrix as upper triangular."""

    def is_upper(self) -> bool:
        return True

    def is_lower(self) -> bool:
        return False


class LowerTriangular(_MatrixAnnotation):
    """Marks any device sparse matrix as lower triangular."""

    def is_upper(self) -> bool:
        return False

    def is_lower(self) -> bool:
        return True


def is_compressed_sparse(obj: Any) -> bool:
    """
    Whether ``obj`` is a CSC/CSR container or a symmetric/hermitian view of one.

    Routines accepting these can index a single triangle when the matrix is
    known to be self-adjoint.
    """
    if isinstance(obj, _SelfAdjointAnnotation):
        return True
    return isinstance(obj, CompressedSparseMatrix)
