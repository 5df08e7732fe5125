"""Eager dataset iteration, with JAX and PyTorch consumers.

Requirements:
    pip install tfbridge[tensorflow]
    pip install tfbridge[jax]    # for example_jax
    pip install tfbridge[torch]  # for example_torch
"""

import numpy as np

from tfbridge import Dataset, EagerSession, Ops, OutOfRangeError


def make_dataset(tf):
    features = np.arange(20, dtype=np.float32).reshape(10, 2)
    labels = (np.arange(10) % 2).astype(np.int64)
    return Dataset.from_tensor_slices(tf, [features, labels]).batch(4)


def example_get_next(tf):
    """Fetch elements one at a time until OutOfRangeError."""
    print("=== get_next ===")
    iterator = Dataset.range(tf, 0, 3).make_iterator()
    while True:
        try:
            (x,) = iterator.get_next()
        except OutOfRangeError:
            print("End of dataset\n")
            break
        print(x.numpy())


def example_numpy(tf):
    """Iterate as tuples of NumPy arrays."""
    print("=== NumPy ===")
    for x, y in make_dataset(tf).as_numpy_iterator():
        print(f"features {x.shape}, labels {y}")
    print()


def example_jax(tf):
    """Feed batches to a JAX computation."""
    import jax.numpy as jnp

    from tfbridge.jax_ops import jax_iterator

    print("=== JAX ===")
    w = jnp.array([0.5, -0.5])
    for x, y in jax_iterator(make_dataset(tf)):
        print(f"logits {x @ w}, labels {y}")
    print()


def example_torch(tf):
    """Feed batches to a PyTorch module."""
    import torch

    from tfbridge.torch_ops import TorchIterableDataset

    print("=== PyTorch ===")
    model = torch.nn.Linear(2, 1)
    for epoch in range(2):
        total = 0.0
        for x, y in TorchIterableDataset(make_dataset(tf)):
            loss = torch.nn.functional.mse_loss(model(x).squeeze(-1), y.float())
            total += loss.item()
        print(f"epoch {epoch}: loss {total:.3f}")
    print()


if __name__ == "__main__":
    with EagerSession() as env:
        tf = Ops.create(env)
        example_get_next(tf)
        example_numpy(tf)
        try:
            example_jax(tf)
        except ImportError:
            print("jax not installed, skipping\n")
        try:
            example_torch(tf)
        except ImportError:
            print("torch not installed, skipping\n")
