"""Abstractions shared by graph and eager execution environments."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from numpy.typing import NDArray

from .scope import NameScope
from .tensor import Tensor
from .types import DataType, Shape


class ExecutionEnvironment(ABC):
    """Context that owns and runs operations.

    Operations, outputs and tensor handles created in an environment are
    owned by it; wrappers only hold references and never release them.
    """

    def __init__(self) -> None:
        self._root_name_scope = NameScope()

    @property
    def root_name_scope(self) -> NameScope:
        """Name scope shared by every ``Scope`` opened on this environment."""
        return self._root_name_scope

    @property
    @abstractmethod
    def is_eager(self) -> bool:
        """True if operations execute immediately when built."""

    @abstractmethod
    def op_builder(self, op_type: str, name: str) -> OperationBuilder:
        """Start building an operation of kind ``op_type``."""

    @abstractmethod
    def close(self) -> None:
        """Release the native resources of this environment."""

    def check_input(self, output: Output) -> None:
        """Reject an output that belongs to a different environment."""
        if output.env is not self:
            raise ValueError(
                f"Input '{output}' was created in a different execution environment"
            )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class Operand(ABC):
    """Anything that can be used as the input of an operation."""

    @abstractmethod
    def as_output(self) -> Output:
        """The symbolic output this operand refers to."""

    @property
    def dtype(self) -> DataType:
        return self.as_output().dtype

    @property
    def shape(self) -> Shape:
        return self.as_output().shape

    @property
    def env(self) -> ExecutionEnvironment:
        return self.as_output().env


class Operation(ABC):
    """A node owned by an execution environment."""

    @property
    @abstractmethod
    def env(self) -> ExecutionEnvironment:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def type(self) -> str:
        pass

    @property
    @abstractmethod
    def num_outputs(self) -> int:
        pass

    @abstractmethod
    def output_dtype(self, index: int) -> DataType:
        pass

    @abstractmethod
    def output_shape(self, index: int) -> Shape:
        pass

    def output_value(self, index: int) -> NDArray:
        """Concrete value of output ``index``; only eager operations have one."""
        raise RuntimeError(
            f"Output {index} of '{self.name}' has no value in a graph; run it in a Session"
        )

    def output(self, index: int) -> Output:
        if not 0 <= index < self.num_outputs:
            raise IndexError(
                f"Output index {index} out of range for '{self.name}' "
                f"with {self.num_outputs} outputs"
            )
        return Output(self, index)

    def outputs(self, start: int = 0, length: Optional[int] = None) -> List[Output]:
        """Outputs ``start`` to ``start + length`` (to the end if ``length`` is None)."""
        end = self.num_outputs if length is None else start + length
        return [self.output(i) for i in range(start, end)]

    def __repr__(self) -> str:
        return f"<{self.type} '{self.name}'>"


class Output(Operand):
    """Symbolic handle to one output of an operation."""

    __slots__ = ("_operation", "_index")

    def __init__(self, operation: Operation, index: int) -> None:
        self._operation = operation
        self._index = index

    @property
    def operation(self) -> Operation:
        return self._operation

    @property
    def index(self) -> int:
        return self._index

    @property
    def dtype(self) -> DataType:
        return self._operation.output_dtype(self._index)

    @property
    def shape(self) -> Shape:
        return self._operation.output_shape(self._index)

    @property
    def env(self) -> ExecutionEnvironment:
        return self._operation.env

    def as_output(self) -> Output:
        return self

    def numpy(self) -> NDArray:
        """Value of this output (eager environments only)."""
        return self._operation.output_value(self._index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Output):
            return NotImplemented
        return self._operation == other._operation and self._index == other._index

    def __hash__(self) -> int:
        return hash((self._operation, self._index))

    def __repr__(self) -> str:
        return f"<{self._operation.type} '{self._operation.name}:{self._index}'>"


class OperationBuilder(ABC):
    """Collects the inputs and attributes of an operation, then builds it."""

    @abstractmethod
    def add_input(self, input: Output) -> OperationBuilder:
        pass

    @abstractmethod
    def add_input_list(self, inputs: Sequence[Output]) -> OperationBuilder:
        pass

    @abstractmethod
    def add_control_input(self, control: Operation) -> OperationBuilder:
        pass

    @abstractmethod
    def set_attr_type(self, name: str, value: DataType) -> OperationBuilder:
        pass

    @abstractmethod
    def set_attr_type_list(self, name: str, values: Sequence[DataType]) -> OperationBuilder:
        pass

    @abstractmethod
    def set_attr_shape(self, name: str, value: Shape) -> OperationBuilder:
        pass

    @abstractmethod
    def set_attr_shape_list(self, name: str, values: Sequence[Shape]) -> OperationBuilder:
        pass

    @abstractmethod
    def set_attr_string(self, name: str, value: str) -> OperationBuilder:
        pass

    @abstractmethod
    def set_attr_int(self, name: str, value: int) -> OperationBuilder:
        pass

    @abstractmethod
    def set_attr_bool(self, name: str, value: bool) -> OperationBuilder:
        pass

    @abstractmethod
    def set_attr_tensor(self, name: str, value: Tensor) -> OperationBuilder:
        pass

    @abstractmethod
    def build(self) -> Operation:
        pass
