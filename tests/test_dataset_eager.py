"""Tests for dataset iteration in an eager session."""

import gc

import numpy as np
import pytest

from tfbridge import Dataset, DatasetIterator, DataType, EagerSession, Ops, OutOfRangeError, Shape


class TestEagerIterator:
    """Tests for eager iteration."""

    def test_get_next_until_exhausted(self, eager_ops):
        """Test that get_next returns N elements, then raises OutOfRangeError."""
        iterator = Dataset.range(eager_ops, 0, 3).make_iterator()
        values = [int(iterator.get_next()[0].numpy()) for _ in range(3)]
        assert values == [0, 1, 2]
        with pytest.raises(OutOfRangeError):
            iterator.get_next()

    def test_python_iteration(self, eager_ops):
        """Test that the iterator protocol stops at exhaustion."""
        dataset = Dataset.range(eager_ops, 0, 4)
        assert [int(x.numpy()) for (x,) in dataset] == [0, 1, 2, 3]

    def test_dataset_iterates_again(self, eager_ops):
        """Test that each iteration over a dataset starts from the beginning."""
        dataset = Dataset.range(eager_ops, 0, 2)
        assert [int(x.numpy()) for (x,) in dataset] == [0, 1]
        assert [int(x.numpy()) for (x,) in dataset] == [0, 1]

    def test_make_initializer_rewinds(self, eager_ops):
        """Test that re-initializing restarts from the first element."""
        dataset = Dataset.range(eager_ops, 0, 5)
        iterator = dataset.make_iterator()
        iterator.get_next()
        iterator.get_next()
        iterator.make_initializer(dataset)
        assert int(iterator.get_next()[0].numpy()) == 0

    def test_from_structure(self, eager_ops):
        """Test an iterator declared before its dataset."""
        iterator = DatasetIterator.from_structure(eager_ops, [DataType.INT64], [Shape.scalar()])
        assert iterator.initializer is None
        iterator.make_initializer(Dataset.range(eager_ops, 5, 7))
        assert [int(x.numpy()) for (x,) in iterator] == [5, 6]

    def test_as_numpy_iterator(self, eager_ops):
        """Test iteration as tuples of NumPy arrays."""
        features = np.arange(6, dtype=np.float32).reshape(3, 2)
        labels = np.array([1, 0, 1], dtype=np.int64)
        dataset = Dataset.from_tensor_slices(eager_ops, [features, labels])
        elements = list(dataset.as_numpy_iterator())
        assert len(elements) == 3
        for i, (x, y) in enumerate(elements):
            assert isinstance(x, np.ndarray)
            np.testing.assert_array_equal(x, features[i])
            assert y == labels[i]

    def test_batch(self, eager_ops):
        """Test eager batching."""
        dataset = Dataset.range(eager_ops, 0, 5).batch(2)
        assert [x.tolist() for (x,) in dataset.as_numpy_iterator()] == [[0, 1], [2, 3], [4]]

    def test_component_structure(self, eager_ops):
        """Test that eager components report their runtime type and shape."""
        dataset = Dataset.from_tensor_slices(eager_ops, [np.zeros((4, 3), dtype=np.float32)])
        (x,) = dataset.make_iterator().get_next()
        assert x.dtype == DataType.FLOAT
        assert x.shape == Shape.of(3)


class TestEagerOptional:
    """Tests for the optional form of get_next in eager mode."""

    def test_has_value_until_exhausted(self, eager_ops):
        """Test that exhaustion is reported by has_value without raising."""
        iterator = Dataset.range(eager_ops, 0, 2).make_iterator()
        flags = []
        values = []
        for _ in range(4):
            optional = iterator.get_next_as_optional()
            flag = bool(optional.has_value().numpy())
            flags.append(flag)
            if flag:
                values.append(int(optional.get_value()[0].numpy()))
        assert flags == [True, True, False, False]
        assert values == [0, 1]


class TestEagerPreconditions:
    """Tests for rejected datasets in eager mode."""

    def test_dataset_from_other_session(self, eager_ops):
        """Test that a dataset from another eager session is rejected."""
        iterator = DatasetIterator.from_structure(eager_ops, [DataType.INT64], [Shape.scalar()])
        with EagerSession() as other:
            foreign = Dataset.range(Ops.create(other), 0, 3)
            with pytest.raises(ValueError, match="same ExecutionEnvironment"):
                iterator.make_initializer(foreign)

    def test_structure_mismatch(self, eager_ops):
        """Test that a dataset with another structure is rejected."""
        iterator = DatasetIterator.from_structure(eager_ops, [DataType.FLOAT], [Shape.scalar()])
        with pytest.raises(ValueError, match="structure"):
            iterator.make_initializer(Dataset.range(eager_ops, 0, 3))

    def test_control_dependencies_unsupported(self, eager_ops):
        """Test that eager ops cannot take control inputs."""
        c = eager_ops.constant(1)
        with pytest.raises(NotImplementedError):
            eager_ops.with_control_dependencies([c]).constant(2)


class TestEagerHandles:
    """Tests for the lifetime of eager tensor handles."""

    def test_scalar_constant(self, eager_ops):
        """Test that scalar constants stay rank 0."""
        c = eager_ops.constant(3, DataType.INT64)
        assert c.shape == Shape.scalar()
        assert int(c.as_output().numpy()) == 3

    def test_handles_released_while_iterating(self, eager, eager_ops):
        """Test that a long iteration does not accumulate tensor handles."""
        dataset = Dataset.range(eager_ops, 0, 500)
        gc.collect()
        before = eager.num_live_handles
        total = 0
        for (x,) in dataset.as_numpy_iterator():
            total += int(x)
        gc.collect()
        assert total == sum(range(500))
        assert eager.num_live_handles <= before + 2

    def test_handles_released_with_operation(self, eager, eager_ops):
        """Test that dropping an op wrapper releases its handle."""
        gc.collect()
        before = eager.num_live_handles
        c = eager_ops.constant(np.arange(4))
        assert eager.num_live_handles == before + 1
        del c
        gc.collect()
        assert eager.num_live_handles == before

    def test_close_releases_live_handles(self, native):
        """Test that closing the session releases handles still referenced."""
        env = EagerSession()
        c = Ops.create(env).constant(np.arange(4))
        assert env.num_live_handles == 1
        env.close()
        assert env.num_live_handles == 0
        with pytest.raises(RuntimeError, match="closed"):
            c.as_output().numpy()
