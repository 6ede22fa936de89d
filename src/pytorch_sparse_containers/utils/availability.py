"""
Device availability detection for pytorch_sparse_containers.

Containers can live on any device PyTorch knows about. This module reports
which ones are usable on the current system and picks the default device
used when a caller does not pass one explicitly.
"""

import warnings
from typing import Dict, List
from functools import lru_cache

import torch


@lru_cache(maxsize=1)
def check_cuda_available() -> bool:
    """
    Check if a CUDA device can hold sparse containers.

    Requires:
    - PyTorch built with CUDA support
    - At least one visible NVIDIA GPU

    Returns:
        bool: True if CUDA tensors can be allocated
    """
    try:
        if not torch.cuda.is_available():
            return False

        # Allocation can still fail on a broken driver setup
        _ = torch.zeros(1, dtype=torch.int32, device='cuda')
        return True
    except RuntimeError:
        return False
    except Exception as e:
        warnings.warn(f"CUDA availability check failed: {e}")
        return False


@lru_cache(maxsize=1)
def check_sparse_bsr_available() -> bool:
    """
    Check if this PyTorch build provides block sparse row tensors.

    Returns:
        bool: True if ``torch.sparse_bsr_tensor`` is present
    """
    return hasattr(torch, 'sparse_bsr_tensor') and hasattr(torch.Tensor, 'to_sparse_bsr')


def get_available_devices() -> List[str]:
    """
    Get the names of all devices containers can be placed on.

    Returns:
        List[str]: ``'cpu'`` followed by ``'cuda:<n>'`` for each visible GPU
    """
    devices = ['cpu']
    if check_cuda_available():
        devices.extend(f'cuda:{i}' for i in range(torch.cuda.device_count()))
    return devices


def get_available_backends() -> Dict[str, bool]:
    """
    Get a dictionary of feature availability.

    Returns:
        Dict[str, bool]: Dictionary mapping feature names to availability status
    """
    return {
        'cuda': check_cuda_available(),
        'sparse_bsr': check_sparse_bsr_available(),
    }


def default_device() -> torch.device:
    """
    Device used when neither a device nor device-resident buffers are given.

    Returns:
        torch.device: ``cuda`` (current ordinal) if available, otherwise ``cpu``
    """
    if check_cuda_available():
        return torch.device('cuda', torch.cuda.current_device())
    return torch.device('cpu')


def print_availability_report() -> None:
    """Print a detailed availability report for all devices."""
    print("=" * 60)
    print("PyTorch Sparse Containers - Device Availability Report")
    print("=" * 60)

    print(f"\nPyTorch version: {torch.__version__}")

    cuda = check_cuda_available()
    status = "✅ Available" if cuda else "❌ Not Available"
    print(f"\nCUDA: {status}")
    if cuda:
        print(f"  - CUDA version: {torch.version.cuda}")
        for i in range(torch.cuda.device_count()):
            print(f"  - GPU {i}: {torch.cuda.get_device_name(i)}")
    else:
        print("  ⚠️  Containers will be placed on the CPU")

    bsr = check_sparse_bsr_available()
    status = "✅ Available" if bsr else "❌ Not Available"
    print(f"\nBlock sparse row (BSR) conversions: {status}")
    if not bsr:
        print("  ⚠️  Requires: PyTorch >= 2.0")

    print("\n" + "=" * 60)
    print(f"Devices: {', '.join(get_available_devices())}")
    print("=" * 60)


if __name__ == "__main__":
    print_availability_report()
