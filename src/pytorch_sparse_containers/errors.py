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
Exceptions raised by the sparse container layer.

All of them derive from ValueError, so callers that already guard input
validation with ``except ValueError`` keep working.
"""


class SparseContainerError(ValueError):
    """Base class for sparse container errors."""


class InvalidDimension(SparseContainerError):
    """A dimension index below 1 was queried."""

    def __init__(self, dim: int):
        super().__init__(f"dimension must be >= 1, got {dim}")
        self.dim = dim


class ShapeMismatch(SparseContainerError):
    """Source and destination containers have different shapes."""

    def __init__(self, expected, actual, what: str = "Sparse Matrix"):
        super().__init__(
            f"Inconsistent {what} size: destination has shape {tuple(expected)}, "
            f"source has shape {tuple(actual)}"
        )
        self.expected = tuple(expected)
        self.actual = tuple(actual)


class UnsupportedConversion(SparseContainerError):
    """A host structure cannot be turned into the requested container."""
