"""Tests for README.md examples.

This file verifies that all code examples in README.md actually work.
"""

import numpy as np

from tfbridge import Dataset, EagerSession, Graph, Ops, OutOfRangeError, Session


class TestReadmeUsageExamples:
    """Tests for the Usage section examples."""

    def test_eager_iteration(self, native):
        """Test the eager iteration example."""
        with EagerSession() as env:
            tf = Ops.create(env)
            features = np.arange(12, dtype=np.float32).reshape(6, 2)
            labels = np.arange(6, dtype=np.int32)

            dataset = Dataset.from_tensor_slices(tf, [features, labels]).batch(4)
            batches = list(dataset.as_numpy_iterator())

        assert [x.shape for x, _ in batches] == [(4, 2), (2, 2)]
        assert [y.tolist() for _, y in batches] == [[0, 1, 2, 3], [4, 5]]

    def test_graph_iteration(self, native):
        """Test the graph iteration example."""
        printed = []
        with Graph() as graph:
            tf = Ops.create(graph)
            iterator = Dataset.range(tf, 0, 5).make_initializeable_iterator()
            (x,) = iterator.get_next()

            with Session(graph) as session:
                session.run(targets=[iterator.initializer])
                while True:
                    try:
                        printed.append(int(session.run([x])[0]))
                    except OutOfRangeError:
                        break

        assert printed == [0, 1, 2, 3, 4]
