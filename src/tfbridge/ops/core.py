"""Base class for operation wrappers, and the core ops."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from numpy.typing import ArrayLike

from ..environment import ExecutionEnvironment, Operand, Operation, OperationBuilder, Output
from ..scope import Scope
from ..tensor import Tensor
from ..types import DataType, Shape


class RawOp:
    """Wraps a single built operation.

    The wrapper does not own the operation; its lifetime is managed by the
    execution environment that built it.
    """

    def __init__(self, operation: Operation) -> None:
        self._operation = operation

    @property
    def operation(self) -> Operation:
        return self._operation

    @property
    def env(self) -> ExecutionEnvironment:
        return self._operation.env

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RawOp):
            return NotImplemented
        return self._operation == other._operation

    def __hash__(self) -> int:
        return hash(self._operation)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._operation!r})"


def set_structure_attrs(
    builder: OperationBuilder,
    output_types: Sequence[DataType],
    output_shapes: Sequence[Shape],
) -> OperationBuilder:
    """Set the ``output_types``/``output_shapes`` attrs shared by dataset ops."""
    builder.set_attr_type_list("output_types", output_types)
    builder.set_attr_shape_list("output_shapes", output_shapes)
    return builder


class Constant(RawOp, Operand):
    """An operator producing a constant value."""

    OP_NAME = "Const"

    def __init__(self, operation: Operation) -> None:
        super().__init__(operation)
        self._output = operation.output(0)

    @classmethod
    def create(
        cls, scope: Scope, value: ArrayLike, dtype: Optional[DataType] = None
    ) -> Constant:
        """Factory method to create a class wrapping a new Const operation.

        Args:
            scope: current scope
            value: array-like value of the constant (copied)
            dtype: element type; inferred from ``value`` if None

        Returns:
            a new instance of Constant
        """
        tensor = Tensor.from_numpy(np.asarray(value), dtype)
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("Const"))
        builder = scope.apply_control_dependencies(builder)
        builder.set_attr_tensor("value", tensor)
        builder.set_attr_type("dtype", tensor.dtype)
        return cls(builder.build())

    def output(self) -> Output:
        return self._output

    def as_output(self) -> Output:
        return self._output


class Identity(RawOp, Operand):
    """Return a tensor with the same shape and contents as the input tensor or value."""

    OP_NAME = "Identity"

    def __init__(self, operation: Operation) -> None:
        super().__init__(operation)
        self._output = operation.output(0)

    @classmethod
    def create(cls, scope: Scope, input: Operand) -> Identity:
        """Factory method to create a class wrapping a new Identity operation.

        Args:
            scope: current scope
            input: the tensor to forward

        Returns:
            a new instance of Identity
        """
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("Identity"))
        builder.add_input(input.as_output())
        builder = scope.apply_control_dependencies(builder)
        builder.set_attr_type("T", input.dtype)
        return cls(builder.build())

    def output(self) -> Output:
        return self._output

    def as_output(self) -> Output:
        return self._output
