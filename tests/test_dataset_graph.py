"""Tests for dataset iteration in a graph run by a Session."""

import numpy as np
import pytest

from tfbridge import (
    Dataset,
    DatasetIterator,
    DataType,
    FailedPreconditionError,
    Graph,
    Ops,
    OutOfRangeError,
    Session,
    Shape,
)


def drain(session, components):
    """Run ``components`` until the iterator is exhausted."""
    values = []
    while True:
        try:
            values.append(session.run(components))
        except OutOfRangeError:
            return values


class TestInitializeableIterator:
    """Tests for the graph-mode iteration protocol."""

    def test_range(self, graph, graph_ops):
        """Test that N elements are produced, then OutOfRangeError."""
        dataset = Dataset.range(graph_ops, 0, 5)
        iterator = dataset.make_initializeable_iterator()
        (x,) = iterator.get_next()
        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            values = [int(session.run([x])[0]) for _ in range(5)]
            with pytest.raises(OutOfRangeError):
                session.run([x])
        assert values == [0, 1, 2, 3, 4]

    def test_exhaustion_is_repeatable(self, graph, graph_ops):
        """Test that fetching past the end keeps raising OutOfRangeError."""
        iterator = Dataset.range(graph_ops, 0, 1).make_initializeable_iterator()
        (x,) = iterator.get_next()
        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            session.run([x])
            for _ in range(2):
                with pytest.raises(OutOfRangeError):
                    session.run([x])

    def test_reinitialize_restarts(self, graph, graph_ops):
        """Test that re-running the initializer rewinds to the first element."""
        iterator = Dataset.range(graph_ops, 0, 3).make_initializeable_iterator()
        (x,) = iterator.get_next()
        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            first = [int(v) for (v,) in drain(session, [x])]
            session.run(targets=[iterator.initializer])
            second = [int(v) for (v,) in drain(session, [x])]
        assert first == second == [0, 1, 2]

    def test_switch_datasets(self, graph, graph_ops):
        """Test that one iterator can be bound to several datasets."""
        iterator = DatasetIterator.from_structure(graph_ops, [DataType.INT64], [Shape.scalar()])
        (x,) = iterator.get_next()
        train = iterator.make_initializer(Dataset.range(graph_ops, 0, 3))
        test = iterator.make_initializer(Dataset.range(graph_ops, 10, 12))
        with Session(graph) as session:
            session.run(targets=[train])
            assert [int(v) for (v,) in drain(session, [x])] == [0, 1, 2]
            session.run(targets=[test])
            assert [int(v) for (v,) in drain(session, [x])] == [10, 11]

    def test_uninitialized(self, graph, graph_ops):
        """Test that fetching before initialization is a runtime failure."""
        iterator = DatasetIterator.from_structure(graph_ops, [DataType.INT64], [Shape.scalar()])
        (x,) = iterator.get_next()
        assert iterator.initializer is None
        with Session(graph) as session:
            with pytest.raises(FailedPreconditionError):
                session.run([x])

    def test_empty_dataset(self, graph, graph_ops):
        """Test that an empty dataset is exhausted immediately."""
        iterator = Dataset.range(graph_ops, 0, 0).make_initializeable_iterator()
        (x,) = iterator.get_next()
        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            with pytest.raises(OutOfRangeError):
                session.run([x])

    def test_get_next_types_and_shapes(self, graph_ops):
        """Test that the components carry the declared structure."""
        iterator = Dataset.range(graph_ops, 0, 5).make_initializeable_iterator()
        (x,) = iterator.get_next()
        assert x.dtype == DataType.INT64
        assert x.shape == Shape.scalar()

    def test_make_iterator_requires_eager(self, graph_ops):
        """Test that the ready-to-use iterator is eager only."""
        with pytest.raises(ValueError, match="eager"):
            Dataset.range(graph_ops, 0, 5).make_iterator()

    def test_python_iteration_rejected(self, graph_ops):
        """Test that graph datasets cannot be iterated in Python."""
        dataset = Dataset.range(graph_ops, 0, 5)
        with pytest.raises(RuntimeError):
            iter(dataset)


class TestMakeInitializerPreconditions:
    """Tests for rejected datasets in a graph."""

    def test_dataset_from_other_graph(self, graph_ops):
        """Test that a dataset from another graph is rejected before building anything."""
        iterator = DatasetIterator.from_structure(graph_ops, [DataType.INT64], [Shape.scalar()])
        with Graph() as other:
            foreign = Dataset.range(Ops.create(other), 0, 3)
            with pytest.raises(ValueError, match="same ExecutionEnvironment"):
                iterator.make_initializer(foreign)
        assert iterator.initializer is None

    def test_type_mismatch(self, graph_ops):
        """Test that a dataset of another element type is rejected."""
        iterator = DatasetIterator.from_structure(graph_ops, [DataType.INT32], [Shape.scalar()])
        with pytest.raises(ValueError, match="structure"):
            iterator.make_initializer(Dataset.range(graph_ops, 0, 3))

    def test_shape_mismatch(self, graph_ops):
        """Test that a dataset of another element shape is rejected."""
        iterator = DatasetIterator.from_structure(graph_ops, [DataType.INT64], [Shape.of(1)])
        with pytest.raises(ValueError, match="structure"):
            iterator.make_initializer(Dataset.range(graph_ops, 0, 3))

    def test_component_count_mismatch(self, graph_ops):
        """Test that a dataset with more components is rejected."""
        dataset = Dataset.from_tensor_slices(
            graph_ops, [np.arange(3, dtype=np.int64), np.arange(3, dtype=np.int64)]
        )
        iterator = DatasetIterator.from_structure(graph_ops, [DataType.INT64], [Shape.scalar()])
        with pytest.raises(ValueError, match="structure"):
            iterator.make_initializer(dataset)


class TestOptional:
    """Tests for the optional form of get_next in a graph."""

    def test_has_value_until_exhausted(self, graph, graph_ops):
        """Test that has_value is true N times, then false without raising."""
        iterator = Dataset.range(graph_ops, 0, 3).make_initializeable_iterator()
        has_value = iterator.get_next_as_optional().has_value()
        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            flags = [bool(session.run([has_value])[0]) for _ in range(5)]
        assert flags == [True, True, True, False, False]

    def test_get_value(self, graph, graph_ops):
        """Test reading the element held by an optional."""
        iterator = Dataset.range(graph_ops, 7, 9).make_initializeable_iterator()
        optional = iterator.get_next_as_optional()
        (value,) = optional.get_value()
        assert value.dtype == DataType.INT64
        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            assert int(session.run([value])[0]) == 7


class TestTransformations:
    """Tests for dataset constructors and transformations."""

    def test_tensor_slices(self, graph, graph_ops):
        """Test slicing features and labels together."""
        features = np.arange(6, dtype=np.float32).reshape(3, 2)
        labels = np.array([0, 1, 0], dtype=np.int32)
        dataset = Dataset.from_tensor_slices(graph_ops, [features, labels])
        assert dataset.output_types == (DataType.FLOAT, DataType.INT32)
        assert dataset.output_shapes == (Shape.of(2), Shape.scalar())

        iterator = dataset.make_initializeable_iterator()
        x, y = iterator.get_next()
        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            elements = drain(session, [x, y])
        assert len(elements) == 3
        for i, (fx, fy) in enumerate(elements):
            np.testing.assert_array_equal(fx, features[i])
            assert fy == labels[i]

    def test_batch(self, graph, graph_ops):
        """Test batching with a smaller final batch."""
        dataset = Dataset.range(graph_ops, 0, 5).batch(2)
        assert dataset.output_shapes == (Shape.of(-1),)
        iterator = dataset.make_initializeable_iterator()
        (x,) = iterator.get_next()
        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            batches = [v.tolist() for (v,) in drain(session, [x])]
        assert batches == [[0, 1], [2, 3], [4]]

    def test_batch_drop_remainder(self, graph, graph_ops):
        """Test batching that drops the incomplete final batch."""
        dataset = Dataset.range(graph_ops, 0, 5).batch(2, drop_remainder=True)
        assert dataset.output_shapes == (Shape.of(2),)
        iterator = dataset.make_initializeable_iterator()
        (x,) = iterator.get_next()
        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            batches = [v.tolist() for (v,) in drain(session, [x])]
        assert batches == [[0, 1], [2, 3]]

    def test_skip_take_repeat(self, graph, graph_ops):
        """Test chaining skip, take and repeat."""
        dataset = Dataset.range(graph_ops, 0, 10).skip(2).take(3).repeat(2)
        iterator = dataset.make_initializeable_iterator()
        (x,) = iterator.get_next()
        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            values = [int(v) for (v,) in drain(session, [x])]
        assert values == [2, 3, 4, 2, 3, 4]

    def test_structure_preserved(self, graph_ops):
        """Test that skip, take and repeat keep the element structure."""
        dataset = Dataset.range(graph_ops, 0, 10)
        for derived in (dataset.skip(1), dataset.take(1), dataset.repeat()):
            assert derived.output_types == dataset.output_types
            assert derived.output_shapes == dataset.output_shapes
            assert derived.tf is dataset.tf
