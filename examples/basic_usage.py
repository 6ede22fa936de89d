#!/usr/bin/env python3
"""
Basic Usage Examples for PyTorch Sparse Containers

This file demonstrates moving SciPy sparse structures to the device, copying
containers, converting between formats and annotating matrices.
"""

import numpy as np
import scipy.sparse
import torch

# Add src directory to path for imports
import sys
import os
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from pytorch_sparse_containers import (
    BlockDirection,
    DeviceSparseMatrixBSR,
    DeviceSparseMatrixCSC,
    DeviceSparseMatrixCSR,
    DeviceSparseVector,
    Hermitian,
    Symmetric,
    UpperTriangular,
    csc_to_csr,
    csr_to_bsr,
    csr_to_hyb,
    hyb_to_csr,
)
from pytorch_sparse_containers.utils import (
    check_sparse_bsr_available,
    create_poisson_2d_host,
    host_matrices_equal,
    random_host_sparse,
)

def example_vectors(device):
    """Example with sparse vectors"""
    print("\n📐 Sparse Vector Example")
    print("-" * 40)

    host = scipy.sparse.coo_array(
        (np.array([1.5, -2.0, 4.0]), (np.array([0, 3, 7]),)), shape=(10,)
    )
    v = DeviceSparseVector.from_host(host, device=device)
    print(v.summary())
    print(f"length_along(1)={v.length_along(1)}, length_along(2)={v.length_along(2)}")

    w = v.copy()
    w.values.mul_(10.0)
    print(f"Original values: {v.to_host().data}")
    print(f"Copied values:   {w.to_host().data}")

def example_compressed(device):
    """Example with CSC and CSR matrices"""
    print("\n🕸️  Compressed Matrix Example")
    print("-" * 40)

    host = create_poisson_2d_host(30, 30)
    print(f"Host matrix: {host.shape}, {host.nnz} stored entries")

    A = DeviceSparseMatrixCSC.from_host(host, device=device)
    print(A.summary())
    print(f"Device id: {A.device_id}")

    R = DeviceSparseMatrixCSR.from_host(host, device=device)
    rows, cols, vals = R.to_triplets()
    print(f"First triplets: {list(zip(rows[:3], cols[:3], vals[:3]))}")
    print(f"CSR round trip matches host: {host_matrices_equal(R.to_host(), host)}")

    # copy_ reuses the destination and fails without touching it on shape mismatch
    B = A.similar()
    B.copy_(A)
    print(f"copy_ matches source: {host_matrices_equal(B.to_host(), host)}")

def example_conversions(device):
    """Example converting between formats on the device"""
    print("\n🔁 Format Conversion Example")
    print("-" * 40)

    host = random_host_sparse(64, 64, density=0.05, dtype=np.complex128, seed=42)
    csr = csc_to_csr(DeviceSparseMatrixCSC.from_host(host, device=device))
    print(csr.summary())

    hyb = csr_to_hyb(csr)
    print(f"HYB record: {hyb!r}")
    print(f"HYB -> CSR matches host: {host_matrices_equal(hyb_to_csr(hyb).to_host(), host)}")
    hyb.free()

    if check_sparse_bsr_available():
        bsr = csr_to_bsr(csr, 8, BlockDirection.COLUMN)
        print(f"BSR: {bsr.nonzero_count} blocks of {bsr.block_dim}×{bsr.block_dim}")
        print(f"BSR -> host matches: {host_matrices_equal(bsr.to_host(), host)}")
    else:
        print("⚠️  BSR tensors not available, uploading blocks from the host instead")
        bsr = DeviceSparseMatrixBSR.from_host(host, 8, BlockDirection.COLUMN, device=device)
        print(f"BSR: {bsr.nonzero_count} blocks of {bsr.block_dim}×{bsr.block_dim}")

def example_annotations(device):
    """Example with structural annotations"""
    print("\n🔖 Annotation Example")
    print("-" * 40)

    real = DeviceSparseMatrixCSR.from_host(create_poisson_2d_host(4, 4), device=device)
    cplx = DeviceSparseMatrixCSC.from_host(
        create_poisson_2d_host(4, 4, dtype=np.complex64), device=device
    )

    for name, wrapped in [
        ("Symmetric(real)", Symmetric(real)),
        ("Symmetric(complex)", Symmetric(cplx)),
        ("Hermitian(complex)", Hermitian(cplx, uplo='L')),
    ]:
        print(f"{name:<20} symmetric={wrapped.is_symmetric()} hermitian={wrapped.is_hermitian()}")

    U = UpperTriangular(real)
    print(f"UpperTriangular: upper={U.is_upper()} lower={U.is_lower()} shape={U.shape}")

def main():
    """Run all examples"""
    print("🚀 PyTorch Sparse Containers - Examples")
    print("=" * 60)

    # Check device
    device = 'cuda' if torch.cuda.is_available() else 'cpu'
    print(f"📍 Using device: {device}")

    if device == 'cuda':
        print(f"📍 GPU: {torch.cuda.get_device_name(0)}")

    # Run examples
    example_vectors(device)
    example_compressed(device)
    example_conversions(device)
    example_annotations(device)

    print("\n✅ All examples completed!")

if __name__ == "__main__":
    main()
