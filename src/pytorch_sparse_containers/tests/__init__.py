"""
Test suite for pytorch_sparse_containers package.

This test suite validates:
1. Shape queries and metadata of every container format
2. Host <-> device round trips
3. similar / copy / copy_ semantics
4. Format conversions and annotations
"""

__all__ = [
    'test_buffers',
    'test_vector',
    'test_compressed',
    'test_block',
    'test_hybrid',
    'test_convert',
    'test_wrappers',
]
