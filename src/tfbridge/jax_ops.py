"""JAX integration for tfbridge datasets."""

from __future__ import annotations

from typing import Iterator, Tuple

try:
    import jax
    import jax.numpy as jnp

    JAX_AVAILABLE = True
except ImportError:
    JAX_AVAILABLE = False

from .data import Dataset


def _check_jax_available() -> None:
    """Check if JAX is available."""
    if not JAX_AVAILABLE:
        raise ImportError(
            "JAX integration requires jax. "
            "Install with: pip install tfbridge[jax]"
        )


if JAX_AVAILABLE:

    def jax_iterator(dataset: Dataset, device=None) -> Iterator[Tuple[jax.Array, ...]]:
        """Iterate over an eager dataset, yielding elements as JAX arrays.

        Each element is read from the runtime as NumPy arrays, then handed to
        JAX (and placed on ``device`` when given).

        Args:
            dataset: Dataset built in an ``EagerSession``
            device: Optional JAX device to place the arrays on

        Returns:
            Iterator of tuples, one JAX array per element component

        Note:
            INT64 and DOUBLE components are narrowed to 32 bits unless
            ``jax_enable_x64`` is set.

        Examples:
            >>> from tfbridge.jax_ops import jax_iterator
            >>> dataset = Dataset.range(tf, 0, 3)
            >>> [int(x) for (x,) in jax_iterator(dataset)]
            [0, 1, 2]
        """
        for components in dataset.as_numpy_iterator():
            arrays = tuple(jnp.asarray(c) for c in components)
            if device is not None:
                arrays = tuple(jax.device_put(a, device) for a in arrays)
            yield arrays

else:
    # Placeholder when JAX is not available
    def jax_iterator(*args, **kwargs):
        """Iterate over an eager dataset as JAX arrays (JAX not installed)."""
        _check_jax_available()


__all__ = ["jax_iterator", "JAX_AVAILABLE"]
