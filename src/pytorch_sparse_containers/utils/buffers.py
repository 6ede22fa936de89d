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
Device buffer primitives.

A device buffer is a contiguous 1-D ``torch.Tensor``. Allocation, host/device
transfer and device-to-device copies are delegated to PyTorch and its caching
allocator; this module only fixes the conventions the containers rely on:

- structural index buffers are always ``torch.int32``
- value buffers hold one of the BLAS scalar types in ``SUPPORTED_DTYPES``
- every upload and download copies, so a container never shares memory with
  the host structure it was built from (or handed to)
- transfers accept an optional ``torch.cuda.Stream``; when one is given the
  work is issued on it without blocking and the caller must synchronize
"""

import warnings
from contextlib import contextmanager
from typing import Any, Optional, Union

import numpy as np
import torch

from ..errors import UnsupportedConversion
from .availability import default_device

DeviceLike = Union[str, int, torch.device]

# Fixed-width integer type of the vendor sparse routines
INDEX_DTYPE = torch.int32

SUPPORTED_DTYPES = (
    torch.float32,
    torch.float64,
    torch.complex64,
    torch.complex128,
)

_NUMPY_TO_TORCH = {
    np.dtype(np.float32): torch.float32,
    np.dtype(np.float64): torch.float64,
    np.dtype(np.complex64): torch.complex64,
    np.dtype(np.complex128): torch.complex128,
}


def resolve_device(device: Optional[DeviceLike] = None, *buffers: Any) -> torch.device:
    """
    Pick the device a container is placed on.

    Args:
        device: Explicitly requested device
        *buffers: Buffers handed to the constructor; the first tensor among
            them decides the device when ``device`` is None

    Returns:
        torch.device: The resolved device
    """
    if device is not None:
        if isinstance(device, int):
            return torch.device('cuda', device)
        return torch.device(device)
    for buffer in buffers:
        if isinstance(buffer, torch.Tensor):
            return buffer.device
    return default_device()


def device_id_of(device: torch.device) -> int:
    """CUDA ordinal of ``device``, or -1 for host memory."""
    if device.type != 'cuda':
        return -1
    if device.index is None:
        return torch.cuda.current_device()
    return device.index


@contextmanager
def stream_scope(stream: Optional["torch.cuda.Stream"], device: torch.device):
    """
    Issue the enclosed transfers on ``stream``.

    Args:
        stream: CUDA stream, or None for the current stream
        device: Device the transfers touch
    """
    if stream is None:
        yield
        return
    if device.type != 'cuda':
        warnings.warn(
            f"stream argument ignored for non-CUDA device '{device}'",
            RuntimeWarning,
            stacklevel=3,
        )
        yield
        return
    with torch.cuda.stream(stream):
        yield


def element_type_of(buffer: Any) -> torch.dtype:
    """
    Check that ``buffer`` holds a supported scalar type.

    Args:
        buffer: Tensor, numpy array or array-like

    Returns:
        torch.dtype: The matching torch dtype

    Raises:
        UnsupportedConversion: If the scalar type is not a BLAS float type
    """
    if isinstance(buffer, torch.Tensor):
        dtype = buffer.dtype
        if dtype in SUPPORTED_DTYPES:
            return dtype
    else:
        np_dtype = np.asarray(buffer).dtype
        if np_dtype in _NUMPY_TO_TORCH:
            return _NUMPY_TO_TORCH[np_dtype]
        dtype = np_dtype
    raise UnsupportedConversion(
        f"Unsupported element type {dtype}. "
        f"Use one of: float32, float64, complex64, complex128"
    )


def allocate(count: int, dtype: torch.dtype, device: torch.device) -> torch.Tensor:
    """Allocate an uninitialized buffer of ``count`` elements."""
    return torch.empty(count, dtype=dtype, device=device)


def upload(
    host: Any,
    dtype: Optional[torch.dtype] = None,
    device: Optional[DeviceLike] = None,
    stream: Optional["torch.cuda.Stream"] = None
) -> torch.Tensor:
    """
    Copy a host array into a new device buffer.

    Args:
        host: Numpy array or array-like
        dtype: Target dtype (default: keep the host dtype)
        device: Target device
        stream: Stream to issue the copy on

    Returns:
        1-D device buffer that owns its memory
    """
    device = resolve_device(device)
    array = np.ascontiguousarray(host).reshape(-1)
    tensor = torch.as_tensor(array)
    with stream_scope(stream, device):
        return tensor.to(
            device=device, dtype=dtype, non_blocking=stream is not None, copy=True
        )


def download(buffer: torch.Tensor, stream: Optional["torch.cuda.Stream"] = None) -> np.ndarray:
    """
    Copy a device buffer into a new host array.

    The copy always completes before returning, even when ``stream`` is given;
    the stream only orders it after work already queued there.
    """
    with stream_scope(stream, buffer.device):
        return buffer.detach().to('cpu', copy=True).resolve_conj().numpy()


def copy_device_to_device(
    dst: torch.Tensor,
    src: torch.Tensor,
    stream: Optional["torch.cuda.Stream"] = None
) -> torch.Tensor:
    """Overwrite ``dst`` with the contents of ``src`` (same element count)."""
    if dst.numel() != src.numel():
        raise ValueError(
            f"Buffer size mismatch: destination has {dst.numel()} elements, "
            f"source has {src.numel()}"
        )
    with stream_scope(stream, dst.device):
        dst.copy_(src, non_blocking=stream is not None)
    return dst


def clone(buffer: torch.Tensor, stream: Optional["torch.cuda.Stream"] = None) -> torch.Tensor:
    """Deep copy of ``buffer`` on the same device."""
    with stream_scope(stream, buffer.device):
        return buffer.clone()


def free(buffer: Optional[torch.Tensor]) -> Optional[torch.Tensor]:
    """
    Drop a container's reference to ``buffer``.

    ``buffer`` itself is left untouched, since it may be a tensor the caller
    handed in. The caching allocator reclaims the memory once the last
    reference is gone.

    Returns:
        An empty buffer of the same dtype and device to hold in its place,
        or None if ``buffer`` is None
    """
    if buffer is None:
        return None
    return torch.empty(0, dtype=buffer.dtype, device=buffer.device)


def as_index_buffer(
    indices: Any,
    device: torch.device,
    stream: Optional["torch.cuda.Stream"] = None
) -> torch.Tensor:
    """
    Wrap or upload a structural index buffer as int32 on ``device``.

    A tensor already of the right type and device is used as-is.
    """
    if isinstance(indices, torch.Tensor):
        if indices.dim() != 1:
            raise ValueError(f"Index buffer must be 1-D, got {indices.dim()}D")
        with stream_scope(stream, device):
            return indices.to(device=device, dtype=INDEX_DTYPE, non_blocking=stream is not None)
    return upload(indices, INDEX_DTYPE, device, stream)


def as_value_buffer(
    values: Any,
    device: torch.device,
    stream: Optional["torch.cuda.Stream"] = None
) -> torch.Tensor:
    """
    Wrap or upload a value buffer on ``device``.

    Raises:
        UnsupportedConversion: If the scalar type is not supported
    """
    dtype = element_type_of(values)
    if isinstance(values, torch.Tensor):
        with stream_scope(stream, device):
            return values.reshape(-1).to(device=device, non_blocking=stream is not None)
    return upload(values, dtype, device, stream)
