"""Iteration through the elements of a ``Dataset``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

from .._status import OutOfRangeError
from ..environment import Operand, Output
from ..ops.core import RawOp
from ..types import DataType, Shape
from .optional import DatasetOptional

if TYPE_CHECKING:
    from ..ops import Ops
    from .dataset import Dataset

logger = logging.getLogger(__name__)


class DatasetIterator:
    """Represents the state of an iteration through a dataset.

    In graph mode, call ``get_next`` once and use its components as inputs to
    other operations; each ``Session.run`` of the initializer rewinds the
    iterator, and each run of the components advances it:

        >>> iterator = dataset.make_initializeable_iterator()
        >>> x, y = iterator.get_next()
        >>> with Session(graph) as session:
        ...     session.run(targets=[iterator.initializer])
        ...     while True:
        ...         try:
        ...             session.run([x, y])
        ...         except OutOfRangeError:
        ...             break

    In eager mode, each ``get_next`` call returns the next element, and the
    iterator is also a Python iterator:

        >>> for x, y in dataset.make_iterator():
        ...     print(x.numpy(), y.numpy())
    """

    EMPTY_SHARED_NAME = ""

    def __init__(
        self,
        tf: Ops,
        iterator_resource: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
        initializer: Optional[RawOp] = None,
    ) -> None:
        """
        Args:
            tf: Ops accessor for the same environment as ``iterator_resource``
            iterator_resource: Operand of the iterator resource (from
                ``tf.data.iterator`` or ``tf.data.anonymous_iterator``)
            output_types: Type of each component of a dataset element
            output_shapes: Shape of each component of a dataset element
            initializer: Op that initializes this iterator, if already built
        """
        if len(output_types) != len(output_shapes):
            raise ValueError(
                f"Got {len(output_types)} output types but {len(output_shapes)} output shapes"
            )
        self._tf = tf
        self._iterator_resource = iterator_resource
        self._initializer = initializer
        self._output_types = tuple(output_types)
        self._output_shapes = tuple(output_shapes)

    @classmethod
    def from_structure(
        cls, tf: Ops, output_types: Sequence[DataType], output_shapes: Sequence[Shape]
    ) -> DatasetIterator:
        """Create a new, uninitialized iterator for elements of the given structure.

        Args:
            tf: Ops accessor
            output_types: Type of each component of a dataset element
            output_shapes: Shape of each component of a dataset element

        Returns:
            A new DatasetIterator with no initializer
        """
        if tf.env.is_eager:
            iterator_resource = tf.data.anonymous_iterator(output_types, output_shapes).handle
        else:
            iterator_resource = tf.data.iterator(
                cls.EMPTY_SHARED_NAME, "", output_types, output_shapes
            ).handle
        return cls(tf, iterator_resource, output_types, output_shapes)

    @property
    def iterator_resource(self) -> Operand:
        return self._iterator_resource

    @property
    def initializer(self) -> Optional[RawOp]:
        return self._initializer

    @property
    def output_types(self) -> tuple:
        return self._output_types

    @property
    def output_shapes(self) -> tuple:
        return self._output_shapes

    def get_next(self) -> List[Output]:
        """Return the components of the next dataset element.

        In graph mode the components are symbolic: running them in a
        ``Session`` yields successive elements, and raises ``OutOfRangeError``
        once the dataset is exhausted. In eager mode each call fetches the
        next element immediately.

        Raises:
            OutOfRangeError: In eager mode, when the iterator is exhausted
        """
        return self._tf.data.iterator_get_next(
            self._iterator_resource, self._output_types, self._output_shapes
        ).components

    def get_next_as_optional(self) -> DatasetOptional:
        """Return the next dataset element wrapped in a ``DatasetOptional``.

        Exhaustion is reported through ``DatasetOptional.has_value`` instead
        of an ``OutOfRangeError``.
        """
        optional_variant = self._tf.data.iterator_get_next_as_optional(
            self._iterator_resource, self._output_types, self._output_shapes
        ).optional
        return DatasetOptional(self._tf, optional_variant, self._output_types, self._output_shapes)

    def make_initializer(self, dataset: Dataset) -> RawOp:
        """Create an op that (re)initializes this iterator on ``dataset``.

        When the op runs, the iterator restarts at the first element of the
        dataset. In eager mode the op has already run when this returns.

        Args:
            dataset: Dataset to initialize this iterator on

        Returns:
            The initializer op, also available as ``initializer``

        Raises:
            ValueError: If the dataset belongs to another execution
                environment, or its structure does not match this iterator
        """
        if self._tf.env is not dataset.tf.env:
            raise ValueError("Dataset must share the same ExecutionEnvironment as this iterator.")

        if (
            tuple(dataset.output_shapes) != self._output_shapes
            or tuple(dataset.output_types) != self._output_types
        ):
            raise ValueError("Dataset structure (types, output shapes) must match this iterator.")

        self._initializer = self._tf.data.make_iterator(dataset.variant, self._iterator_resource)
        logger.debug("Initializer %r bound to %r", self._initializer, dataset)
        return self._initializer

    def __iter__(self) -> DatasetIterator:
        return self

    def __next__(self) -> List[Output]:
        if not self._tf.env.is_eager:
            raise RuntimeError(
                "DatasetIterator is only iterable in an eager environment; "
                "use get_next() with a Session in graph mode"
            )
        try:
            return self.get_next()
        except OutOfRangeError:
            raise StopIteration from None

    def __repr__(self) -> str:
        types = ", ".join(t.name for t in self._output_types)
        return f"DatasetIterator(types=[{types}], shapes={list(self._output_shapes)})"
