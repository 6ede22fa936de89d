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
Test symmetry and triangularity annotations.
"""

import sys

import numpy as np
import pytest

# Add parent path for direct execution
sys.path.insert(0, str(__file__).rsplit('/', 3)[0])

from pytorch_sparse_containers import (
    DeviceSparseMatrixBSR,
    DeviceSparseMatrixCSC,
    DeviceSparseMatrixCSR,
    DeviceSparseVector,
    Hermitian,
    InvalidDimension,
    LowerTriangular,
    Symmetric,
    UpperTriangular,
    csr_to_hyb,
    get_device_id,
    is_compressed_sparse,
)
from pytorch_sparse_containers.utils.matrix_utils import create_poisson_2d_host

COMPRESSED = [DeviceSparseMatrixCSC, DeviceSparseMatrixCSR]


def upload(cls, dtype=np.float64):
    return cls.from_host(create_poisson_2d_host(2, 2, dtype=dtype), device='cpu')


class TestSelfAdjointAnnotations:
    """Symmetric and Hermitian over CSC and CSR parents."""

    @pytest.mark.parametrize('cls', COMPRESSED)
    def test_symmetric_real(self, cls):
        S = Symmetric(upload(cls))
        assert S.is_symmetric()
        assert S.is_hermitian()

    @pytest.mark.parametrize('cls', COMPRESSED)
    def test_symmetric_complex(self, cls):
        S = Symmetric(upload(cls, np.complex128))
        assert S.is_symmetric()
        assert not S.is_hermitian()

    @pytest.mark.parametrize('cls', COMPRESSED)
    def test_hermitian_real(self, cls):
        H = Hermitian(upload(cls, np.float32), uplo='L')
        assert H.is_hermitian()
        assert H.is_symmetric()
        assert H.uplo == 'L'

    @pytest.mark.parametrize('cls', COMPRESSED)
    def test_hermitian_complex(self, cls):
        H = Hermitian(upload(cls, np.complex64))
        assert H.is_hermitian()
        assert not H.is_symmetric()

    def test_forwards_queries(self):
        A = upload(DeviceSparseMatrixCSC)
        S = Symmetric(A)

        assert S.parent is A
        assert S.shape == A.shape
        assert S.nonzero_count == A.nonzero_count
        assert S.element_type == A.element_type
        assert S.device == A.device
        assert get_device_id(S) == -1
        assert S.length_along(2) == 4
        assert S.length_along(3) == 1
        with pytest.raises(InvalidDimension):
            S.length_along(0)

    def test_does_not_copy(self):
        A = upload(DeviceSparseMatrixCSR)
        S = Symmetric(A)
        A.values.zero_()
        assert S.parent.values.abs().sum().item() == 0

    def test_bad_uplo(self):
        with pytest.raises(ValueError):
            Symmetric(upload(DeviceSparseMatrixCSC), uplo='X')

    def test_rejects_other_formats(self):
        bsr = DeviceSparseMatrixBSR.from_host(create_poisson_2d_host(2, 2), 2, device='cpu')
        with pytest.raises(TypeError):
            Symmetric(bsr)
        with pytest.raises(TypeError):
            Hermitian(csr_to_hyb(upload(DeviceSparseMatrixCSR)))

    def test_rejects_vectors(self):
        v = DeviceSparseVector([0], np.array([1.0]), 3, device='cpu')
        with pytest.raises(TypeError):
            Symmetric(v)
        with pytest.raises(TypeError):
            UpperTriangular(v)

    def test_repr(self):
        assert "uplo='U'" in repr(Symmetric(upload(DeviceSparseMatrixCSC)))


class TestTriangularAnnotations:
    """Triangular wrappers report their own orientation."""

    @pytest.mark.parametrize('cls', COMPRESSED)
    def test_upper(self, cls):
        U = UpperTriangular(upload(cls))
        assert U.is_upper()
        assert not U.is_lower()

    @pytest.mark.parametrize('cls', COMPRESSED)
    def test_lower(self, cls):
        L = LowerTriangular(upload(cls))
        assert L.is_lower()
        assert not L.is_upper()

    def test_any_matrix_format(self):
        bsr = DeviceSparseMatrixBSR.from_host(create_poisson_2d_host(2, 2), 2, device='cpu')
        hyb = csr_to_hyb(upload(DeviceSparseMatrixCSR))

        assert UpperTriangular(bsr).shape == (4, 4)
        assert LowerTriangular(hyb).nonzero_count == hyb.nonzero_count


class TestIsCompressedSparse:
    """The predicate used to route compressed inputs."""

    @pytest.mark.parametrize('cls', COMPRESSED)
    def test_bare_and_wrapped(self, cls):
        A = upload(cls)
        assert is_compressed_sparse(A)
        assert is_compressed_sparse(Symmetric(A))
        assert is_compressed_sparse(Hermitian(A))

    def test_other_inputs(self):
        A = upload(DeviceSparseMatrixCSR)
        bsr = DeviceSparseMatrixBSR.from_host(create_poisson_2d_host(2, 2), 2, device='cpu')

        assert not is_compressed_sparse(UpperTriangular(A))
        assert not is_compressed_sparse(bsr)
        assert not is_compressed_sparse(create_poisson_2d_host(2, 2))
        assert not is_compressed_sparse(None)


if __name__ == '__main__':
    sys.exit(pytest.main([__file__, '-v']))
