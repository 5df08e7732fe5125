"""Tensor class for host tensors owned by the TensorFlow runtime."""

from __future__ import annotations

import ctypes
from typing import Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ._lib import get_lib
from .types import DataType


class Tensor:
    """Dense host tensor backed by a native ``TF_Tensor``.

    This class wraps a runtime tensor and provides NumPy conversion.
    Memory is automatically managed - when the Python object is garbage
    collected, the underlying native tensor is released.

    Examples:
        >>> t = Tensor.from_numpy(np.array([[1, 2], [3, 4]], dtype=np.int32))
        >>> t.shape
        (2, 2)
        >>> t.dtype
        <DataType.INT32: 3>
    """

    __slots__ = ("_ptr", "_lib")

    def __init__(self, ptr: int) -> None:
        """Internal constructor. Use ``from_numpy`` to create tensors.

        Args:
            ptr: Raw pointer to the ``TF_Tensor`` (as integer). Ownership is
                transferred to the new object.
        """
        self._lib = get_lib()
        self._ptr = ptr

    def __del__(self) -> None:
        """Release native memory when Python object is garbage collected."""
        if getattr(self, "_ptr", None):
            self._lib.TF_DeleteTensor(self._ptr)
            self._ptr = None

    @classmethod
    def from_numpy(cls, value: ArrayLike, dtype: Optional[DataType] = None) -> Tensor:
        """Create a tensor from a NumPy array or scalar (copies data).

        Args:
            value: Array-like value to convert
            dtype: Element type of the tensor; inferred from ``value`` if None

        Returns:
            New tensor with copied data

        Raises:
            TypeError: If the element type cannot be stored in a tensor
        """
        if dtype is None:
            arr = np.asarray(value, order="C")
            dtype = DataType.from_numpy(arr.dtype)
        else:
            arr = np.asarray(value, dtype=dtype.numpy_dtype, order="C")

        lib = get_lib()
        ndim = arr.ndim
        if ndim == 0:
            dims_arr = None
        else:
            dims_arr = (ctypes.c_int64 * ndim)(*arr.shape)
        ptr = lib.TF_AllocateTensor(int(dtype), dims_arr, ndim, arr.nbytes)
        if not ptr:
            raise MemoryError(f"Failed to allocate tensor of {arr.nbytes} bytes")
        if arr.nbytes:
            ctypes.memmove(lib.TF_TensorData(ptr), arr.ctypes.data, arr.nbytes)
        return cls(ptr)

    @property
    def ptr(self) -> int:
        """Raw ``TF_Tensor*``; still owned by this object."""
        return self._ptr

    @property
    def dtype(self) -> DataType:
        return DataType(self._lib.TF_TensorType(self._ptr))

    @property
    def ndim(self) -> int:
        """Number of dimensions."""
        return self._lib.TF_NumDims(self._ptr)

    @property
    def shape(self) -> Tuple[int, ...]:
        """Shape of the tensor."""
        return tuple(int(self._lib.TF_Dim(self._ptr, i)) for i in range(self.ndim))

    @property
    def nbytes(self) -> int:
        """Size of the tensor data in bytes."""
        return self._lib.TF_TensorByteSize(self._ptr)

    def to_numpy(self) -> NDArray:
        """Convert to NumPy array (copies data).

        Raises:
            TypeError: If the element type has no NumPy equivalent
        """
        np_dtype = self.dtype.numpy_dtype
        shape = self.shape
        nbytes = self.nbytes
        if nbytes == 0:
            return np.zeros(shape, dtype=np_dtype)
        raw = ctypes.string_at(self._lib.TF_TensorData(self._ptr), nbytes)
        return np.frombuffer(raw, dtype=np_dtype).reshape(shape).copy()

    def __repr__(self) -> str:
        """String representation."""
        return f"Tensor(dtype={self.dtype.name}, shape={self.shape})"
