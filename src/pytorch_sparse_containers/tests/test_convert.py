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
Test format conversions delegated to PyTorch's sparse layouts.
"""

import sys

import numpy as np
import pytest
import scipy.sparse
import torch

# Add parent path for direct execution
sys.path.insert(0, str(__file__).rsplit('/', 3)[0])

from pytorch_sparse_containers import (
    BlockDirection,
    DeviceSparseMatrixBSR,
    DeviceSparseMatrixCSC,
    DeviceSparseMatrixCSR,
    ShapeMismatch,
    UnsupportedConversion,
    bsr_to_csr,
    csc_to_csr,
    csr_to_bsr,
    csr_to_csc,
    csr_to_hyb,
    hyb_to_csr,
)
from pytorch_sparse_containers.utils.availability import (
    check_sparse_bsr_available,
    get_available_devices,
)
from pytorch_sparse_containers.utils.matrix_utils import (
    create_poisson_2d_host,
    host_matrices_equal,
    random_host_sparse,
)

DEVICES = get_available_devices()
DTYPES = [np.float32, np.float64, np.complex64, np.complex128]

requires_bsr = pytest.mark.skipif(
    not check_sparse_bsr_available(), reason="BSR tensors not available"
)


class TestCompressedConversions:
    """CSC <-> CSR."""

    @pytest.mark.parametrize('device', DEVICES)
    @pytest.mark.parametrize('dtype', DTYPES)
    def test_csc_to_csr(self, device, dtype):
        host = random_host_sparse(13, 21, density=0.2, dtype=dtype, seed=21)
        csr = csc_to_csr(DeviceSparseMatrixCSC.from_host(host, device=device))
        reference = host.tocsr()
        reference.sort_indices()

        assert isinstance(csr, DeviceSparseMatrixCSR)
        assert csr.shape == host.shape
        assert csr.device == torch.device(device)
        assert csr.row_pointers.dtype == torch.int32
        assert csr.column_indices.dtype == torch.int32
        np.testing.assert_array_equal(csr.row_pointers.cpu().numpy(), reference.indptr)
        np.testing.assert_array_equal(csr.column_indices.cpu().numpy(), reference.indices)
        np.testing.assert_array_equal(csr.values.cpu().numpy(), reference.data)

    @pytest.mark.parametrize('device', DEVICES)
    def test_csr_to_csc(self, device):
        host = random_host_sparse(16, 9, density=0.25, seed=22)
        csc = csr_to_csc(DeviceSparseMatrixCSR.from_host(host, device=device))

        assert isinstance(csc, DeviceSparseMatrixCSC)
        np.testing.assert_array_equal(csc.column_pointers.cpu().numpy(), host.indptr)
        np.testing.assert_array_equal(csc.row_indices.cpu().numpy(), host.indices)
        np.testing.assert_array_equal(csc.values.cpu().numpy(), host.data)

    def test_conversion_does_not_alias(self):
        A = DeviceSparseMatrixCSC.from_host(create_poisson_2d_host(3, 3), device='cpu')
        B = csc_to_csr(A)
        B.values.zero_()
        assert A.values.abs().sum().item() > 0

    def test_empty_columns(self):
        host = random_host_sparse(10, 10, density=0.0)
        csr = csc_to_csr(DeviceSparseMatrixCSC.from_host(host, device='cpu'))
        assert csr.nonzero_count == 0
        np.testing.assert_array_equal(csr.row_pointers.numpy(), np.zeros(11))


@requires_bsr
class TestBlockConversions:
    """CSR <-> BSR."""

    @pytest.mark.parametrize('device', DEVICES)
    @pytest.mark.parametrize('direction', [BlockDirection.ROW, BlockDirection.COLUMN])
    def test_csr_to_bsr(self, device, direction):
        host = create_poisson_2d_host(4, 4)
        bsr = csr_to_bsr(DeviceSparseMatrixCSR.from_host(host, device=device), 4, direction)

        assert bsr.block_dim == 4
        assert bsr.direction is direction
        assert bsr.shape == (16, 16)
        assert host_matrices_equal(bsr.to_host(), host)

    def test_matches_host_blocking(self):
        host = create_poisson_2d_host(3, 2)
        direct = DeviceSparseMatrixBSR.from_host(host, 2, 'column', device='cpu')
        converted = csr_to_bsr(DeviceSparseMatrixCSR.from_host(host, device='cpu'), 2, 'column')

        assert converted.nonzero_count == direct.nonzero_count
        assert torch.equal(converted.row_pointers, direct.row_pointers)
        assert host_matrices_equal(converted.to_host(), direct.to_host())

    def test_indivisible_shape(self):
        csr = DeviceSparseMatrixCSR.from_host(create_poisson_2d_host(3, 1), device='cpu')
        with pytest.raises(UnsupportedConversion):
            csr_to_bsr(csr, 2)

    @pytest.mark.parametrize('device', DEVICES)
    def test_bsr_to_csr(self, device):
        host = create_poisson_2d_host(2, 4)
        bsr = csr_to_bsr(DeviceSparseMatrixCSR.from_host(host, device=device), 2, 'column')
        csr = bsr_to_csr(bsr)

        assert isinstance(csr, DeviceSparseMatrixCSR)
        # Every scalar of a stored block is kept, zeros included
        assert csr.nonzero_count == bsr.nonzero_count * 4
        assert host_matrices_equal(csr.to_host(), host)

    @pytest.mark.parametrize('direction', ['row', 'column'])
    def test_bsr_to_csr_keeps_block_zeros(self, direction):
        dense = np.array([
            [1.0, 2.0, 9.0, 0.0],
            [3.0, 4.0, 0.0, 0.0],
            [0.0, 0.0, 5.0, 6.0],
            [0.0, 0.0, 7.0, 8.0],
        ])
        bsr = DeviceSparseMatrixBSR.from_host(scipy.sparse.csc_matrix(dense), 2, direction, device='cpu')
        rows, cols, vals = bsr_to_csr(bsr).to_triplets()

        np.testing.assert_array_equal(rows, [0, 0, 0, 0, 1, 1, 1, 1, 2, 2, 3, 3])
        np.testing.assert_array_equal(cols, [0, 1, 2, 3, 0, 1, 2, 3, 2, 3, 2, 3])
        np.testing.assert_array_equal(vals, [1, 2, 9, 0, 3, 4, 0, 0, 5, 6, 7, 8])

    @pytest.mark.parametrize('device', DEVICES)
    def test_large_sparse_matrix(self, device):
        n = 200000
        row_pointers = np.zeros(n + 1, dtype=np.int32)
        row_pointers[6:] = 1
        csr = DeviceSparseMatrixCSR(row_pointers, [7], np.array([1.0]), (n, n), device=device)

        bsr = csr_to_bsr(csr, 2)
        assert bsr.nonzero_count == 1
        assert bsr.column_indices.cpu().tolist() == [3]
        np.testing.assert_array_equal(bsr.values.cpu().numpy(), [0.0, 0.0, 0.0, 1.0])

        rows, cols, vals = bsr_to_csr(bsr).to_triplets()
        np.testing.assert_array_equal(rows, [4, 4, 5, 5])
        np.testing.assert_array_equal(cols, [6, 7, 6, 7])
        np.testing.assert_array_equal(vals, [0.0, 0.0, 0.0, 1.0])


class TestHybridConversions:
    """CSR <-> HYB."""

    @pytest.mark.parametrize('device', DEVICES)
    def test_round_trip(self, device):
        host = random_host_sparse(12, 8, density=0.3, dtype=np.complex128, seed=23)
        csr = DeviceSparseMatrixCSR.from_host(host, device=device)
        back = hyb_to_csr(csr_to_hyb(csr))

        assert back.shape == csr.shape
        assert torch.equal(back.row_pointers, csr.row_pointers)
        assert torch.equal(back.column_indices, csr.column_indices)
        assert torch.equal(back.values, csr.values)

    def test_duplicate_entries_counted_once(self):
        # Column 1 of row 0 is stored twice
        csr = DeviceSparseMatrixCSR([0, 2, 3], [1, 1, 0], np.array([1.0, 2.0, 4.0]), (2, 3),
                                    device='cpu')
        hyb = csr_to_hyb(csr)

        assert hyb.nonzero_count == 2
        assert hyb.handle.nonzero_count == 2
        np.testing.assert_array_equal(hyb.to_host().toarray(), [[0.0, 3.0, 0.0], [4.0, 0.0, 0.0]])

        other = DeviceSparseMatrixCSR.from_host(random_host_sparse(2, 3, density=0.5, seed=25), device='cpu')
        target = csr_to_hyb(other)
        csr_to_hyb(csr, out=target)
        assert target.nonzero_count == 2

    def test_refresh_in_place(self):
        first = create_poisson_2d_host(2, 2)
        second = random_host_sparse(4, 4, density=0.5, seed=24)
        hyb = csr_to_hyb(DeviceSparseMatrixCSR.from_host(first, device='cpu'))
        old_handle = hyb.handle

        result = csr_to_hyb(DeviceSparseMatrixCSR.from_host(second, device='cpu'), out=hyb)

        assert result is hyb
        assert old_handle.destroyed
        assert hyb.nonzero_count == second.nnz
        assert host_matrices_equal(hyb.to_host(), second)

    def test_refresh_shape_mismatch(self):
        hyb = csr_to_hyb(DeviceSparseMatrixCSR.from_host(create_poisson_2d_host(2, 2), device='cpu'))
        other = DeviceSparseMatrixCSR.from_host(create_poisson_2d_host(3, 3), device='cpu')
        with pytest.raises(ShapeMismatch):
            csr_to_hyb(other, out=hyb)
        assert not hyb.handle.destroyed


if __name__ == '__main__':
    sys.exit(pytest.main([__file__, '-v']))
