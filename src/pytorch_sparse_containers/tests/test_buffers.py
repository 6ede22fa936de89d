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
Test device buffer primitives and availability helpers.
"""

import sys

import numpy as np
import pytest
import torch

# Add parent path for direct execution
sys.path.insert(0, str(__file__).rsplit('/', 3)[0])

from pytorch_sparse_containers.errors import UnsupportedConversion
from pytorch_sparse_containers.utils import buffers
from pytorch_sparse_containers.utils.availability import (
    default_device,
    get_available_backends,
    get_available_devices,
)

DEVICES = get_available_devices()


class TestBuffers:
    """Allocation, transfer and copy conventions."""

    @pytest.mark.parametrize('device', DEVICES)
    def test_upload_copies_host_memory(self, device):
        host = np.array([1.0, 2.0, 3.0])
        buffer = buffers.upload(host, device=device)
        host[0] = 100.0

        assert buffer.device.type == torch.device(device).type
        assert buffer.dtype == torch.float64
        np.testing.assert_array_equal(buffers.download(buffer), [1.0, 2.0, 3.0])

    @pytest.mark.parametrize('device', DEVICES)
    def test_index_buffers_are_int32(self, device):
        buffer = buffers.as_index_buffer([0, 2, 5], torch.device(device))
        assert buffer.dtype == buffers.INDEX_DTYPE

        wrapped = buffers.as_index_buffer(
            torch.tensor([1, 2], dtype=torch.int64, device=device), torch.device(device)
        )
        assert wrapped.dtype == torch.int32

    def test_index_buffer_must_be_1d(self):
        with pytest.raises(ValueError):
            buffers.as_index_buffer(torch.zeros(2, 2, dtype=torch.int32), torch.device('cpu'))

    @pytest.mark.parametrize('dtype', [np.float32, np.float64, np.complex64, np.complex128])
    def test_supported_element_types(self, dtype):
        assert buffers.element_type_of(np.zeros(2, dtype=dtype)) in buffers.SUPPORTED_DTYPES

    @pytest.mark.parametrize('values', [
        np.array([1, 2, 3]),
        np.array([1.0], dtype=np.float16),
        torch.tensor([1, 2]),
    ])
    def test_unsupported_element_types(self, values):
        with pytest.raises(UnsupportedConversion):
            buffers.element_type_of(values)

    @pytest.mark.parametrize('device', DEVICES)
    def test_download_is_independent(self, device):
        buffer = buffers.upload(np.arange(4, dtype=np.float32), device=device)
        host = buffers.download(buffer)
        host[:] = -1.0
        np.testing.assert_array_equal(buffers.download(buffer), [0.0, 1.0, 2.0, 3.0])

    @pytest.mark.parametrize('device', DEVICES)
    def test_copy_device_to_device(self, device):
        src = buffers.upload(np.array([4.0, 5.0]), device=device)
        dst = buffers.allocate(2, torch.float64, torch.device(device))
        buffers.copy_device_to_device(dst, src)
        np.testing.assert_array_equal(buffers.download(dst), [4.0, 5.0])

    def test_copy_device_to_device_size_mismatch(self):
        src = torch.zeros(3)
        dst = torch.ones(2)
        with pytest.raises(ValueError):
            buffers.copy_device_to_device(dst, src)
        assert torch.equal(dst, torch.ones(2))

    def test_clone_is_independent(self):
        buffer = torch.arange(3, dtype=torch.int32)
        copy = buffers.clone(buffer)
        copy[0] = 9
        assert buffer[0].item() == 0

    def test_free_leaves_buffer_untouched(self):
        buffer = torch.ones(8)
        placeholder = buffers.free(buffer)

        assert placeholder.numel() == 0
        assert placeholder.dtype == buffer.dtype
        assert placeholder.device == buffer.device
        assert torch.equal(buffer, torch.ones(8))
        assert buffers.free(None) is None

    def test_stream_ignored_on_cpu(self):
        with pytest.warns(RuntimeWarning, match="stream argument ignored"):
            buffers.upload(np.ones(3), device='cpu', stream=object())

    def test_resolve_device(self):
        assert buffers.resolve_device('cpu') == torch.device('cpu')
        assert buffers.resolve_device(None, [1, 2], torch.zeros(1)) == torch.device('cpu')
        assert buffers.resolve_device(None) == default_device()

    def test_device_id_of_host(self):
        assert buffers.device_id_of(torch.device('cpu')) == -1

    @pytest.mark.skipif(not torch.cuda.is_available(), reason="CUDA not available")
    def test_device_id_of_cuda(self):
        assert buffers.device_id_of(torch.device('cuda', 0)) == 0


class TestAvailability:
    """Device detection helpers."""

    def test_cpu_always_available(self):
        devices = get_available_devices()
        assert devices[0] == 'cpu'
        assert all(d.startswith('cuda:') for d in devices[1:])

    def test_backends_report(self):
        report = get_available_backends()
        assert set(report) == {'cuda', 'sparse_bsr'}
        assert all(isinstance(v, bool) for v in report.values())


if __name__ == '__main__':
    sys.exit(pytest.main([__file__, '-v']))
