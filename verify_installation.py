#!/usr/bin/env python3
"""
Installation Verification Script

This script verifies that all components are properly installed and working:
- PyTorch (and CUDA, when a GPU is present)
- SciPy sparse arrays used as host structures
- pytorch_sparse_containers upload / download and device conversions
"""

import sys
import os
import torch
import numpy as np

# Add src directory to path for imports
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

def check_pytorch():
    """Check PyTorch installation and CUDA support"""
    print("🔧 Checking PyTorch Installation")
    print("-" * 40)

    print(f"✅ PyTorch version: {torch.__version__}")
    print(f"✅ Python version: {sys.version.split()[0]}")

    if torch.cuda.is_available():
        print(f"✅ CUDA available: {torch.cuda.is_available()}")
        print(f"✅ CUDA version: {torch.version.cuda}")
        print(f"✅ GPU count: {torch.cuda.device_count()}")

        for i in range(torch.cuda.device_count()):
            gpu_name = torch.cuda.get_device_name(i)
            gpu_memory = torch.cuda.get_device_properties(i).total_memory / 1e9
            print(f"✅ GPU {i}: {gpu_name} ({gpu_memory:.1f} GB)")
    else:
        print("⚠️  CUDA not available, containers will live on the CPU")

    return True

def check_scipy():
    """Check SciPy sparse arrays"""
    print("\n📦 Checking SciPy Installation")
    print("-" * 40)

    try:
        import scipy
        import scipy.sparse
        print(f"✅ SciPy version: {scipy.__version__}")

        # 1-D sparse arrays are the host form of sparse vectors
        v = scipy.sparse.coo_array((np.array([1.0]), (np.array([2]),)), shape=(4,))
        print(f"✅ 1-D sparse arrays: shape={v.shape}")
        return True

    except ImportError as e:
        print(f"❌ Failed to import SciPy: {e}")
        return False
    except Exception as e:
        print(f"❌ SciPy 1-D sparse arrays not supported (need scipy >= 1.13): {e}")
        return False

def check_containers():
    """Check host/device round trips"""
    print("\n🧮 Checking Sparse Containers")
    print("-" * 40)

    try:
        from pytorch_sparse_containers import (
            DeviceSparseMatrixCSC, DeviceSparseMatrixCSR, DeviceSparseVector,
        )
        from pytorch_sparse_containers.utils import create_poisson_2d_host, host_matrices_equal
        print("✅ pytorch_sparse_containers imported successfully")

        host = create_poisson_2d_host(10, 10)

        A = DeviceSparseMatrixCSC.from_host(host)
        print(f"✅ CSC round trip: {host_matrices_equal(A.to_host(), host)} (device {A.device})")

        R = DeviceSparseMatrixCSR.from_host(host)
        print(f"✅ CSR round trip: {host_matrices_equal(R.to_host(), host)} (device {R.device})")

        v = DeviceSparseVector.from_host(host[:, [0]])
        print(f"✅ Sparse vector: {v.nonzero_count} stored entries of {v.length}")

        return True

    except ImportError as e:
        print(f"❌ Failed to import pytorch_sparse_containers: {e}")
        return False
    except Exception as e:
        print(f"❌ Container test failed: {e}")
        return False

def check_conversions():
    """Check conversions delegated to torch.sparse"""
    print("\n🔁 Checking Device Conversions")
    print("-" * 40)

    try:
        from pytorch_sparse_containers import (
            DeviceSparseMatrixCSR, csr_to_bsr, bsr_to_csr, csr_to_hyb, hyb_to_csr,
        )
        from pytorch_sparse_containers.utils import (
            check_sparse_bsr_available, create_poisson_2d_host, host_matrices_equal,
        )

        host = create_poisson_2d_host(8, 8)
        A = DeviceSparseMatrixCSR.from_host(host)

        H = csr_to_hyb(A)
        print(f"✅ CSR -> HYB -> CSR: {host_matrices_equal(hyb_to_csr(H).to_host(), host)}")
        H.free()

        if check_sparse_bsr_available():
            B = csr_to_bsr(A, 4)
            print(f"✅ CSR -> BSR -> CSR: {host_matrices_equal(bsr_to_csr(B).to_host(), host)}")
        else:
            print("⚠️  BSR tensors not available, skipping BSR conversion")

        return True

    except Exception as e:
        print(f"❌ Conversion test failed: {e}")
        return False

def main():
    """Run all verification checks"""
    print("🚀 PyTorch Sparse Containers - Installation Verification")
    print("=" * 70)

    checks = [
        ("PyTorch", check_pytorch),
        ("SciPy", check_scipy),
        ("Sparse Containers", check_containers),
        ("Device Conversions", check_conversions),
    ]

    results = {}

    for name, check_func in checks:
        try:
            results[name] = check_func()
        except Exception as e:
            print(f"❌ {name} check failed with exception: {e}")
            results[name] = False

    # Summary
    print("\n📊 Verification Summary")
    print("=" * 70)

    all_passed = True
    for name, passed in results.items():
        status = "✅ PASSED" if passed else "❌ FAILED"
        print(f"{name:<30} {status}")
        if not passed:
            all_passed = False

    print("\n" + "=" * 70)
    if all_passed:
        print("🎉 All checks passed! Your installation is ready to use.")
        print("\nNext steps:")
        print("- Run: python examples/basic_usage.py")
        print("- Run: python src/run_all_tests.py")
    else:
        print("⚠️  Some checks failed. Please review the installation instructions.")

    return all_passed

if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
