"""Data types and shapes describing tensors and dataset elements."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict, Optional, Sequence, Tuple

import numpy as np


class DataType(IntEnum):
    """Tensor element types, numbered as the C API's ``TF_DataType``."""

    FLOAT = 1
    DOUBLE = 2
    INT32 = 3
    UINT8 = 4
    INT16 = 5
    INT8 = 6
    STRING = 7
    COMPLEX64 = 8
    INT64 = 9
    BOOL = 10
    BFLOAT16 = 14
    UINT16 = 17
    COMPLEX128 = 18
    HALF = 19
    RESOURCE = 20
    VARIANT = 21
    UINT32 = 22
    UINT64 = 23

    @classmethod
    def from_numpy(cls, dtype) -> DataType:
        """Map a NumPy dtype (or anything ``np.dtype`` accepts) to a DataType.

        Raises:
            TypeError: If the dtype has no TensorFlow counterpart
        """
        dtype = np.dtype(dtype)
        for data_type, np_dtype in _NUMPY_DTYPES.items():
            if np_dtype == dtype:
                return data_type
        raise TypeError(f"Unsupported NumPy dtype: {dtype}")

    @property
    def numpy_dtype(self) -> np.dtype:
        """NumPy dtype with the same memory layout.

        Raises:
            TypeError: For STRING, BFLOAT16, RESOURCE and VARIANT
        """
        try:
            return _NUMPY_DTYPES[self]
        except KeyError:
            raise TypeError(f"{self.name} has no NumPy equivalent") from None


_NUMPY_DTYPES: Dict[DataType, np.dtype] = {
    DataType.FLOAT: np.dtype(np.float32),
    DataType.DOUBLE: np.dtype(np.float64),
    DataType.INT32: np.dtype(np.int32),
    DataType.UINT8: np.dtype(np.uint8),
    DataType.INT16: np.dtype(np.int16),
    DataType.INT8: np.dtype(np.int8),
    DataType.COMPLEX64: np.dtype(np.complex64),
    DataType.INT64: np.dtype(np.int64),
    DataType.BOOL: np.dtype(np.bool_),
    DataType.UINT16: np.dtype(np.uint16),
    DataType.COMPLEX128: np.dtype(np.complex128),
    DataType.HALF: np.dtype(np.float16),
    DataType.UINT32: np.dtype(np.uint32),
    DataType.UINT64: np.dtype(np.uint64),
}


class Shape:
    """Immutable tensor shape.

    A shape either has an unknown number of dimensions, or a fixed tuple of
    dimension sizes where ``-1`` marks a size that is not known. Equality is
    structural: two shapes are equal when their dimension tuples are equal,
    so unknown sizes (and unknown ranks) compare equal to each other.

    Examples:
        >>> Shape.of(2, 3).num_dimensions
        2
        >>> Shape.of(5, 3).tail()
        Shape(3)
        >>> Shape.of(3).prepend(-1)
        Shape(-1, 3)
    """

    UNKNOWN_SIZE = -1

    __slots__ = ("_dims",)

    def __init__(self, dims: Optional[Sequence[int]]) -> None:
        """Internal constructor. Use ``of``, ``scalar`` or ``unknown``.

        Args:
            dims: Dimension sizes, or None for an unknown number of dimensions
        """
        if dims is not None:
            dims = tuple(int(d) for d in dims)
            if any(d < self.UNKNOWN_SIZE for d in dims):
                raise ValueError(f"Invalid dimension sizes: {dims}")
        self._dims = dims

    @classmethod
    def of(cls, *dims: int) -> Shape:
        return cls(dims)

    @classmethod
    def scalar(cls) -> Shape:
        return cls(())

    @classmethod
    def unknown(cls) -> Shape:
        return cls(None)

    @property
    def dims(self) -> Optional[Tuple[int, ...]]:
        """Dimension sizes, or None if the number of dimensions is unknown."""
        return self._dims

    @property
    def is_unknown(self) -> bool:
        return self._dims is None

    @property
    def num_dimensions(self) -> int:
        """Number of dimensions, ``-1`` if unknown."""
        return -1 if self._dims is None else len(self._dims)

    def size(self, i: int) -> int:
        """Size of dimension ``i`` (``-1`` if unknown)."""
        if self._dims is None:
            raise ValueError("Shape has an unknown number of dimensions")
        return self._dims[i]

    def tail(self) -> Shape:
        """Shape with the first dimension removed."""
        if self._dims is None:
            return self
        if not self._dims:
            raise ValueError("Cannot take the tail of a scalar shape")
        return Shape(self._dims[1:])

    def prepend(self, dim: int) -> Shape:
        """Shape with a new leading dimension of size ``dim``."""
        if self._dims is None:
            return self
        return Shape((dim,) + self._dims)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Shape):
            return NotImplemented
        return self._dims == other._dims

    def __hash__(self) -> int:
        return hash(self._dims)

    def __repr__(self) -> str:
        if self._dims is None:
            return "Shape(<unknown>)"
        return f"Shape({', '.join(str(d) for d in self._dims)})"
