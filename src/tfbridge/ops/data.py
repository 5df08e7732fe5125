"""Dataset and iterator operation wrappers (the ``tf.data`` op group)."""

from __future__ import annotations

from typing import Iterator as PyIterator
from typing import List, Sequence

from ..environment import Operand, Operation, Output
from ..scope import Scope
from ..types import DataType, Shape
from .core import RawOp, set_structure_attrs


class _SingleOutputOp(RawOp, Operand):
    """Wrapper for an operation whose only output is its result."""

    def __init__(self, operation: Operation) -> None:
        super().__init__(operation)
        self._output = operation.output(0)

    def as_output(self) -> Output:
        return self._output


class _ComponentsOp(RawOp):
    """Wrapper for an operation producing one output per element component."""

    def __init__(self, operation: Operation) -> None:
        super().__init__(operation)
        self._components = operation.outputs()

    @property
    def components(self) -> List[Output]:
        return list(self._components)

    def __iter__(self) -> PyIterator[Output]:
        return iter(self._components)

    def __len__(self) -> int:
        return len(self._components)


class Iterator(_SingleOutputOp):
    """A container for an iterator resource (``IteratorV2``)."""

    OP_NAME = "IteratorV2"

    @classmethod
    def create(
        cls,
        scope: Scope,
        shared_name: str,
        container: str,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> Iterator:
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("Iterator"))
        builder = scope.apply_control_dependencies(builder)
        builder.set_attr_string("shared_name", shared_name)
        builder.set_attr_string("container", container)
        set_structure_attrs(builder, output_types, output_shapes)
        return cls(builder.build())

    @property
    def handle(self) -> Output:
        return self._output


class AnonymousIterator(_SingleOutputOp):
    """A container for an iterator resource that is not shared by name."""

    OP_NAME = "AnonymousIterator"

    @classmethod
    def create(
        cls, scope: Scope, output_types: Sequence[DataType], output_shapes: Sequence[Shape]
    ) -> AnonymousIterator:
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("AnonymousIterator"))
        builder = scope.apply_control_dependencies(builder)
        set_structure_attrs(builder, output_types, output_shapes)
        return cls(builder.build())

    @property
    def handle(self) -> Output:
        return self._output


class IteratorGetNext(_ComponentsOp):
    """Gets the next output from the given iterator."""

    OP_NAME = "IteratorGetNext"

    @classmethod
    def create(
        cls,
        scope: Scope,
        iterator: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> IteratorGetNext:
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("IteratorGetNext"))
        builder.add_input(iterator.as_output())
        builder = scope.apply_control_dependencies(builder)
        set_structure_attrs(builder, output_types, output_shapes)
        return cls(builder.build())


class IteratorGetNextAsOptional(_SingleOutputOp):
    """Gets the next output from the given iterator as an Optional variant."""

    OP_NAME = "IteratorGetNextAsOptional"

    @classmethod
    def create(
        cls,
        scope: Scope,
        iterator: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> IteratorGetNextAsOptional:
        builder = scope.env.op_builder(
            cls.OP_NAME, scope.make_op_name("IteratorGetNextAsOptional")
        )
        builder.add_input(iterator.as_output())
        builder = scope.apply_control_dependencies(builder)
        set_structure_attrs(builder, output_types, output_shapes)
        return cls(builder.build())

    @property
    def optional(self) -> Output:
        return self._output


class MakeIterator(RawOp):
    """Makes a new iterator from the given ``dataset`` and stores it in ``iterator``.

    This operation may be executed multiple times. Each execution will reset
    the iterator in ``iterator`` to the first element of ``dataset``.
    """

    OP_NAME = "MakeIterator"

    @classmethod
    def create(cls, scope: Scope, dataset: Operand, iterator: Operand) -> MakeIterator:
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("MakeIterator"))
        builder.add_input(dataset.as_output())
        builder.add_input(iterator.as_output())
        builder = scope.apply_control_dependencies(builder)
        return cls(builder.build())


class OptionalHasValue(_SingleOutputOp):
    """Returns true if and only if the given Optional variant has a value."""

    OP_NAME = "OptionalHasValue"

    @classmethod
    def create(cls, scope: Scope, optional: Operand) -> OptionalHasValue:
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("OptionalHasValue"))
        builder.add_input(optional.as_output())
        builder = scope.apply_control_dependencies(builder)
        return cls(builder.build())

    @property
    def has_value(self) -> Output:
        return self._output


class OptionalGetValue(_ComponentsOp):
    """Returns the value stored in an Optional variant or raises an error if none exists."""

    OP_NAME = "OptionalGetValue"

    @classmethod
    def create(
        cls,
        scope: Scope,
        optional: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> OptionalGetValue:
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("OptionalGetValue"))
        builder.add_input(optional.as_output())
        builder = scope.apply_control_dependencies(builder)
        set_structure_attrs(builder, output_types, output_shapes)
        return cls(builder.build())


class RangeDataset(_SingleOutputOp):
    """Creates a dataset with a range of values. Corresponds to python's xrange."""

    OP_NAME = "RangeDataset"

    @classmethod
    def create(
        cls,
        scope: Scope,
        start: Operand,
        stop: Operand,
        step: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> RangeDataset:
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("RangeDataset"))
        builder.add_input(start.as_output())
        builder.add_input(stop.as_output())
        builder.add_input(step.as_output())
        builder = scope.apply_control_dependencies(builder)
        set_structure_attrs(builder, output_types, output_shapes)
        return cls(builder.build())

    @property
    def handle(self) -> Output:
        return self._output


class TensorSliceDataset(_SingleOutputOp):
    """Creates a dataset that emits each dim-0 slice of ``components`` once."""

    OP_NAME = "TensorSliceDataset"

    @classmethod
    def create(
        cls, scope: Scope, components: Sequence[Operand], output_shapes: Sequence[Shape]
    ) -> TensorSliceDataset:
        outputs = [c.as_output() for c in components]
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("TensorSliceDataset"))
        builder.add_input_list(outputs)
        builder = scope.apply_control_dependencies(builder)
        builder.set_attr_type_list("Toutput_types", [o.dtype for o in outputs])
        builder.set_attr_shape_list("output_shapes", output_shapes)
        return cls(builder.build())

    @property
    def handle(self) -> Output:
        return self._output


class BatchDataset(_SingleOutputOp):
    """Creates a dataset that batches ``batch_size`` elements from ``input_dataset``."""

    OP_NAME = "BatchDatasetV2"

    @classmethod
    def create(
        cls,
        scope: Scope,
        input_dataset: Operand,
        batch_size: Operand,
        drop_remainder: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> BatchDataset:
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("BatchDataset"))
        builder.add_input(input_dataset.as_output())
        builder.add_input(batch_size.as_output())
        builder.add_input(drop_remainder.as_output())
        builder = scope.apply_control_dependencies(builder)
        set_structure_attrs(builder, output_types, output_shapes)
        return cls(builder.build())

    @property
    def handle(self) -> Output:
        return self._output


class _CountDataset(_SingleOutputOp):
    """Dataset transformation parameterized by a single INT64 ``count``."""

    LABEL = ""

    @classmethod
    def create(
        cls,
        scope: Scope,
        input_dataset: Operand,
        count: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ):
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name(cls.LABEL))
        builder.add_input(input_dataset.as_output())
        builder.add_input(count.as_output())
        builder = scope.apply_control_dependencies(builder)
        set_structure_attrs(builder, output_types, output_shapes)
        return cls(builder.build())

    @property
    def handle(self) -> Output:
        return self._output


class SkipDataset(_CountDataset):
    """Creates a dataset that skips ``count`` elements from the ``input_dataset``."""

    OP_NAME = "SkipDataset"
    LABEL = "SkipDataset"


class TakeDataset(_CountDataset):
    """Creates a dataset that contains ``count`` elements from the ``input_dataset``."""

    OP_NAME = "TakeDataset"
    LABEL = "TakeDataset"


class RepeatDataset(_CountDataset):
    """Creates a dataset that emits the outputs of ``input_dataset`` ``count`` times."""

    OP_NAME = "RepeatDataset"
    LABEL = "RepeatDataset"


class DataOps:
    """The ``tf.data`` group of the ``Ops`` accessor."""

    def __init__(self, scope: Scope) -> None:
        self._scope = scope

    def iterator(
        self,
        shared_name: str,
        container: str,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> Iterator:
        return Iterator.create(self._scope, shared_name, container, output_types, output_shapes)

    def anonymous_iterator(
        self, output_types: Sequence[DataType], output_shapes: Sequence[Shape]
    ) -> AnonymousIterator:
        return AnonymousIterator.create(self._scope, output_types, output_shapes)

    def iterator_get_next(
        self,
        iterator: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> IteratorGetNext:
        return IteratorGetNext.create(self._scope, iterator, output_types, output_shapes)

    def iterator_get_next_as_optional(
        self,
        iterator: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> IteratorGetNextAsOptional:
        return IteratorGetNextAsOptional.create(
            self._scope, iterator, output_types, output_shapes
        )

    def make_iterator(self, dataset: Operand, iterator: Operand) -> MakeIterator:
        return MakeIterator.create(self._scope, dataset, iterator)

    def optional_has_value(self, optional: Operand) -> OptionalHasValue:
        return OptionalHasValue.create(self._scope, optional)

    def optional_get_value(
        self,
        optional: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> OptionalGetValue:
        return OptionalGetValue.create(self._scope, optional, output_types, output_shapes)

    def range_dataset(
        self,
        start: Operand,
        stop: Operand,
        step: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> RangeDataset:
        return RangeDataset.create(self._scope, start, stop, step, output_types, output_shapes)

    def tensor_slice_dataset(
        self, components: Sequence[Operand], output_shapes: Sequence[Shape]
    ) -> TensorSliceDataset:
        return TensorSliceDataset.create(self._scope, components, output_shapes)

    def batch_dataset(
        self,
        input_dataset: Operand,
        batch_size: Operand,
        drop_remainder: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> BatchDataset:
        return BatchDataset.create(
            self._scope, input_dataset, batch_size, drop_remainder, output_types, output_shapes
        )

    def skip_dataset(
        self,
        input_dataset: Operand,
        count: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> SkipDataset:
        return SkipDataset.create(self._scope, input_dataset, count, output_types, output_shapes)

    def take_dataset(
        self,
        input_dataset: Operand,
        count: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> TakeDataset:
        return TakeDataset.create(self._scope, input_dataset, count, output_types, output_shapes)

    def repeat_dataset(
        self,
        input_dataset: Operand,
        count: Operand,
        output_types: Sequence[DataType],
        output_shapes: Sequence[Shape],
    ) -> RepeatDataset:
        return RepeatDataset.create(
            self._scope, input_dataset, count, output_types, output_shapes
        )
