"""Datasets: sequences of elements with a fixed structure."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, List, Sequence, Tuple, Union

from numpy.typing import ArrayLike, NDArray

from ..environment import Operand, Output
from ..types import DataType, Shape
from .iterator import DatasetIterator

if TYPE_CHECKING:
    from ..ops import Ops


class Dataset:
    """A sequence of elements, each made of typed, shaped components.

    The dataset itself is a VARIANT tensor produced by a dataset op; its
    structure (``output_types``, ``output_shapes``) is tracked on the
    Python side so that iterators can be checked against it.

    Examples:
        >>> dataset = Dataset.from_tensor_slices(tf, [features, labels]).batch(32)
        >>> iterator = dataset.make_initializeable_iterator()
    """

    def __init__(
        self,
        tf: Ops,
        variant: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> None:
        self._tf = tf
        self._variant = variant
        self._output_types = tuple(output_types)
        self._output_shapes = tuple(output_shapes)

    @classmethod
    def from_tensor_slices(cls, tf: Ops, tensors: Sequence[Union[Operand, ArrayLike]]) -> Dataset:
        """Dataset whose elements are the slices of ``tensors`` along their first dimension.

        Args:
            tf: Ops accessor
            tensors: Operands or array-like values, all with the same first
                dimension

        Returns:
            A dataset with one component per input tensor
        """
        components = [t if isinstance(t, Operand) else tf.constant(t) for t in tensors]
        output_types = [c.dtype for c in components]
        output_shapes = [c.shape.tail() for c in components]
        variant = tf.data.tensor_slice_dataset(components, output_shapes).handle
        return cls(tf, variant, output_types, output_shapes)

    @classmethod
    def range(cls, tf: Ops, start: int, stop: int, step: int = 1) -> Dataset:
        """Dataset of INT64 scalars ``start, start + step, ...`` up to ``stop`` (exclusive)."""
        output_types = [DataType.INT64]
        output_shapes = [Shape.scalar()]
        variant = tf.data.range_dataset(
            tf.constant(start, DataType.INT64),
            tf.constant(stop, DataType.INT64),
            tf.constant(step, DataType.INT64),
            output_types,
            output_shapes,
        ).handle
        return cls(tf, variant, output_types, output_shapes)

    @property
    def tf(self) -> Ops:
        return self._tf

    @property
    def variant(self) -> Operand:
        return self._variant

    @property
    def output_types(self) -> tuple:
        return self._output_types

    @property
    def output_shapes(self) -> tuple:
        return self._output_shapes

    def batch(self, batch_size: int, drop_remainder: bool = False) -> Dataset:
        """Combine consecutive elements into batches.

        The leading dimension of each component is ``batch_size`` when
        ``drop_remainder`` is set, and unknown otherwise (the last batch may
        be smaller).
        """
        leading = batch_size if drop_remainder else Shape.UNKNOWN_SIZE
        output_shapes = [s.prepend(leading) for s in self._output_shapes]
        variant = self._tf.data.batch_dataset(
            self._variant,
            self._tf.constant(batch_size, DataType.INT64),
            self._tf.constant(drop_remainder, DataType.BOOL),
            self._output_types,
            output_shapes,
        ).handle
        return Dataset(self._tf, variant, self._output_types, output_shapes)

    def skip(self, count: int) -> Dataset:
        """Dataset without the first ``count`` elements."""
        variant = self._tf.data.skip_dataset(
            self._variant,
            self._tf.constant(count, DataType.INT64),
            self._output_types,
            self._output_shapes,
        ).handle
        return Dataset(self._tf, variant, self._output_types, self._output_shapes)

    def take(self, count: int) -> Dataset:
        """Dataset with at most the first ``count`` elements."""
        variant = self._tf.data.take_dataset(
            self._variant,
            self._tf.constant(count, DataType.INT64),
            self._output_types,
            self._output_shapes,
        ).handle
        return Dataset(self._tf, variant, self._output_types, self._output_shapes)

    def repeat(self, count: int = -1) -> Dataset:
        """Dataset repeated ``count`` times (forever if ``count`` is -1)."""
        variant = self._tf.data.repeat_dataset(
            self._variant,
            self._tf.constant(count, DataType.INT64),
            self._output_types,
            self._output_shapes,
        ).handle
        return Dataset(self._tf, variant, self._output_types, self._output_shapes)

    def make_initializeable_iterator(self) -> DatasetIterator:
        """Iterator over this dataset with its initializer already built.

        In graph mode, run ``iterator.initializer`` in a ``Session`` before
        fetching elements; in eager mode the iterator is ready to use.
        """
        iterator = DatasetIterator.from_structure(
            self._tf, self._output_types, self._output_shapes
        )
        iterator.make_initializer(self)
        return iterator

    def make_iterator(self) -> DatasetIterator:
        """Ready-to-use iterator over this dataset (eager mode only).

        Raises:
            ValueError: In graph mode; use ``make_initializeable_iterator``
        """
        if not self._tf.env.is_eager:
            raise ValueError(
                "make_iterator() requires an eager environment; "
                "use make_initializeable_iterator() in graph mode"
            )
        return self.make_initializeable_iterator()

    def __iter__(self) -> Iterator[List[Output]]:
        if not self._tf.env.is_eager:
            raise RuntimeError("Dataset is only iterable in an eager environment")
        return self.make_iterator()

    def as_numpy_iterator(self) -> Iterator[Tuple[NDArray, ...]]:
        """Iterate over elements as tuples of NumPy arrays (eager mode only)."""
        iterator = iter(self)
        return (tuple(c.numpy() for c in components) for components in iterator)

    def __repr__(self) -> str:
        types = ", ".join(t.name for t in self._output_types)
        return f"Dataset(types=[{types}], shapes={list(self._output_shapes)})"
