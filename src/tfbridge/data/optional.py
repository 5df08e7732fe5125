"""An optional dataset element."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from ..environment import Operand, Output
from ..types import DataType, Shape

if TYPE_CHECKING:
    from ..ops import Ops


class DatasetOptional:
    """Either the components of a dataset element, or nothing.

    Returned by ``DatasetIterator.get_next_as_optional``. Use ``has_value``
    to check whether an element was available and ``get_value`` to read it.
    """

    def __init__(
        self,
        tf: Ops,
        optional_variant: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> None:
        self._tf = tf
        self._optional_variant = optional_variant
        self._output_types = tuple(output_types)
        self._output_shapes = tuple(output_shapes)

    @property
    def optional_variant(self) -> Operand:
        return self._optional_variant

    @property
    def output_types(self) -> tuple:
        return self._output_types

    @property
    def output_shapes(self) -> tuple:
        return self._output_shapes

    def has_value(self) -> Output:
        """BOOL scalar that is true iff this optional holds an element."""
        return self._tf.data.optional_has_value(self._optional_variant).has_value

    def get_value(self) -> List[Output]:
        """Components of the element; running them fails if there is none."""
        return self._tf.data.optional_get_value(
            self._optional_variant, self._output_types, self._output_shapes
        ).components
