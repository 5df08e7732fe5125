"""Tests for DataType and Shape values."""

import numpy as np
import pytest

from tfbridge import DataType, Shape


class TestDataType:
    """Tests for DataType conversions."""

    @pytest.mark.parametrize(
        "np_dtype, data_type",
        [
            (np.float32, DataType.FLOAT),
            (np.float64, DataType.DOUBLE),
            (np.int32, DataType.INT32),
            (np.int64, DataType.INT64),
            (np.uint8, DataType.UINT8),
            (np.bool_, DataType.BOOL),
            (np.float16, DataType.HALF),
            (np.complex128, DataType.COMPLEX128),
        ],
    )
    def test_from_numpy(self, np_dtype, data_type):
        """Test mapping NumPy dtypes to data types and back."""
        assert DataType.from_numpy(np_dtype) == data_type
        assert data_type.numpy_dtype == np.dtype(np_dtype)

    def test_c_api_values(self):
        """Test that values match the C API enum."""
        assert DataType.FLOAT == 1
        assert DataType.INT64 == 9
        assert DataType.BOOL == 10
        assert DataType.RESOURCE == 20
        assert DataType.VARIANT == 21

    def test_unsupported_numpy_dtype(self):
        """Test that object arrays are rejected."""
        with pytest.raises(TypeError):
            DataType.from_numpy(np.dtype(object))

    @pytest.mark.parametrize("data_type", [DataType.RESOURCE, DataType.VARIANT, DataType.STRING])
    def test_no_numpy_equivalent(self, data_type):
        """Test that handle and string types have no NumPy dtype."""
        with pytest.raises(TypeError):
            data_type.numpy_dtype


class TestShape:
    """Tests for Shape values."""

    def test_of(self):
        """Test a fully known shape."""
        s = Shape.of(2, 3)
        assert s.dims == (2, 3)
        assert s.num_dimensions == 2
        assert s.size(1) == 3
        assert not s.is_unknown

    def test_scalar(self):
        """Test the scalar shape."""
        s = Shape.scalar()
        assert s.dims == ()
        assert s.num_dimensions == 0

    def test_unknown(self):
        """Test a shape of unknown rank."""
        s = Shape.unknown()
        assert s.is_unknown
        assert s.num_dimensions == -1
        assert s.dims is None
        with pytest.raises(ValueError):
            s.size(0)

    def test_invalid_dimension(self):
        """Test that sizes below -1 are rejected."""
        with pytest.raises(ValueError):
            Shape.of(2, -3)

    def test_structural_equality(self):
        """Test that equal dimension tuples give equal, hash-equal shapes."""
        assert Shape.of(2, 3) == Shape.of(2, 3)
        assert hash(Shape.of(2, 3)) == hash(Shape.of(2, 3))
        assert Shape.of(2, 3) != Shape.of(3, 2)
        assert Shape.of(2) != Shape.of(2, 1)
        assert Shape.scalar() != Shape.unknown()

    def test_unknown_sizes_compare_equal(self):
        """Test that unknown sizes and ranks are equal to themselves."""
        assert Shape.of(-1, 3) == Shape.of(-1, 3)
        assert Shape.unknown() == Shape.unknown()

    def test_tail(self):
        """Test dropping the leading dimension."""
        assert Shape.of(5, 2, 3).tail() == Shape.of(2, 3)
        assert Shape.of(5).tail() == Shape.scalar()
        assert Shape.unknown().tail() == Shape.unknown()
        with pytest.raises(ValueError):
            Shape.scalar().tail()

    def test_prepend(self):
        """Test adding a leading dimension."""
        assert Shape.of(3).prepend(-1) == Shape.of(-1, 3)
        assert Shape.scalar().prepend(4) == Shape.of(4)

    def test_structure_tuples(self):
        """Test that element structures compare element-wise as tuples."""
        a = (Shape.of(2), Shape.scalar())
        b = (Shape.of(2), Shape.scalar())
        c = (Shape.of(2), Shape.of(1))
        assert a == b
        assert a != c
        assert (DataType.FLOAT, DataType.INT64) != (DataType.INT64, DataType.FLOAT)

    def test_repr(self):
        """Test string representation."""
        assert repr(Shape.of(2, 3)) == "Shape(2, 3)"
        assert repr(Shape.unknown()) == "Shape(<unknown>)"
