"""PyTorch integration for tfbridge datasets."""

from __future__ import annotations

from typing import Iterator, Tuple

try:
    import torch
    from torch.utils.data import IterableDataset

    TORCH_AVAILABLE = True
except ImportError:
    TORCH_AVAILABLE = False

from .data import Dataset


def _check_torch_available() -> None:
    """Check if PyTorch is available."""
    if not TORCH_AVAILABLE:
        raise ImportError(
            "PyTorch integration requires torch. "
            "Install with: pip install tfbridge[torch]"
        )


if TORCH_AVAILABLE:

    class TorchIterableDataset(IterableDataset):
        """A PyTorch ``IterableDataset`` over the elements of an eager dataset.

        Every iteration starts a fresh iterator on the underlying dataset, so
        the wrapper can be iterated once per training epoch.

        Note:
            The dataset is bound to its ``EagerSession``; use it with
            ``num_workers=0`` in a ``DataLoader``.

        Examples:
            >>> from tfbridge.torch_ops import TorchIterableDataset
            >>> dataset = Dataset.from_tensor_slices(tf, [features, labels]).batch(32)
            >>> for x, y in TorchIterableDataset(dataset):
            ...     loss = model(x, y)
        """

        def __init__(self, dataset: Dataset) -> None:
            super().__init__()
            self.dataset = dataset

        def __iter__(self) -> Iterator[Tuple[torch.Tensor, ...]]:
            for components in self.dataset.as_numpy_iterator():
                yield tuple(torch.from_numpy(c) for c in components)

else:
    # Placeholder when PyTorch is not available
    class TorchIterableDataset:
        """PyTorch ``IterableDataset`` over an eager dataset (PyTorch not installed)."""

        def __init__(self, *args, **kwargs):
            _check_torch_available()


__all__ = ["TorchIterableDataset", "TORCH_AVAILABLE"]
