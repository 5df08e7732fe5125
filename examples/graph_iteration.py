"""Dataset iteration in a graph run by a Session.

This example builds an input pipeline into a graph, binds one iterator to a
training and a validation dataset, and reads elements until the runtime
reports the end of each dataset.

Requirements:
    pip install tfbridge[tensorflow]
"""

import numpy as np

from tfbridge import Dataset, DatasetIterator, Graph, Ops, OutOfRangeError, Session


def example_range():
    """Iterate over a range dataset until OutOfRangeError."""
    print("=== Range ===")
    with Graph() as graph:
        tf = Ops.create(graph)
        iterator = Dataset.range(tf, 0, 5).make_initializeable_iterator()
        (x,) = iterator.get_next()

        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            while True:
                try:
                    print(session.run([x])[0])
                except OutOfRangeError:
                    print("End of dataset\n")
                    break


def example_reinitializable():
    """Share one iterator between two datasets of the same structure."""
    print("=== Reinitializable iterator ===")
    rng = np.random.default_rng(0)
    x_train = rng.normal(size=(8, 3)).astype(np.float32)
    y_train = rng.integers(0, 2, size=8).astype(np.int32)
    x_val = rng.normal(size=(4, 3)).astype(np.float32)
    y_val = rng.integers(0, 2, size=4).astype(np.int32)

    with Graph() as graph:
        tf = Ops.create(graph)
        train = Dataset.from_tensor_slices(tf, [x_train, y_train]).batch(3)
        val = Dataset.from_tensor_slices(tf, [x_val, y_val]).batch(3)

        iterator = DatasetIterator.from_structure(tf, train.output_types, train.output_shapes)
        features, labels = iterator.get_next()
        train_init = iterator.make_initializer(train)
        val_init = iterator.make_initializer(val)

        with Session(graph) as session:
            for name, init in (("train", train_init), ("val", val_init)):
                session.run(targets=[init])
                while True:
                    try:
                        fx, fy = session.run([features, labels])
                    except OutOfRangeError:
                        break
                    print(f"{name}: features {fx.shape}, labels {fy}")
    print()


def example_optional():
    """Detect the end of a dataset without an exception."""
    print("=== Optional ===")
    with Graph() as graph:
        tf = Ops.create(graph)
        iterator = Dataset.range(tf, 0, 3).make_initializeable_iterator()
        has_value = iterator.get_next_as_optional().has_value()

        with Session(graph) as session:
            session.run(targets=[iterator.initializer])
            for _ in range(4):
                print(f"has_value: {session.run([has_value])[0]}")
    print()


if __name__ == "__main__":
    example_range()
    example_reinitializable()
    example_optional()
