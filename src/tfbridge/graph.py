"""Graph execution environment backed by a native ``TF_Graph``."""

from __future__ import annotations

import ctypes
import logging
from functools import partial
from typing import Callable, List, Optional, Sequence

from ._lib import TF_Output, get_lib, shape_list_arrays
from ._status import Status
from .environment import ExecutionEnvironment, Operation, OperationBuilder, Output
from .tensor import Tensor
from .types import DataType, Shape

logger = logging.getLogger(__name__)


class Graph(ExecutionEnvironment):
    """A dataflow graph: operations are added to it and run by a ``Session``.

    Examples:
        >>> with Graph() as g:
        ...     tf = Ops.create(g)
        ...     c = tf.constant(np.arange(3))
        ...     with Session(g) as s:
        ...         s.run([c])
        [array([0, 1, 2])]
    """

    def __init__(self) -> None:
        super().__init__()
        self._lib = get_lib()
        self._ptr = self._lib.TF_NewGraph()
        logger.debug("Created graph %#x", self._ptr)

    def __del__(self) -> None:
        """Release the native graph when the Python object is garbage collected."""
        self.close()

    @property
    def ptr(self) -> int:
        if not getattr(self, "_ptr", None):
            raise RuntimeError("Graph has been closed")
        return self._ptr

    @property
    def is_eager(self) -> bool:
        return False

    def op_builder(self, op_type: str, name: str) -> GraphOperationBuilder:
        return GraphOperationBuilder(self, op_type, name)

    def operation(self, name: str) -> Optional[GraphOperation]:
        """Look up an operation by its full name; None if it does not exist."""
        ptr = self._lib.TF_GraphOperationByName(self.ptr, name.encode())
        return GraphOperation(self, ptr) if ptr else None

    def close(self) -> None:
        if getattr(self, "_ptr", None):
            logger.debug("Deleting graph %#x", self._ptr)
            self._lib.TF_DeleteGraph(self._ptr)
            self._ptr = None

    def _output_shape(self, output: TF_Output) -> Shape:
        status = Status()
        ndim = self._lib.TF_GraphGetTensorNumDims(self.ptr, output, status.ptr)
        status.check("shape")
        if ndim < 0:
            return Shape.unknown()
        dims = (ctypes.c_int64 * ndim)()
        self._lib.TF_GraphGetTensorShape(self.ptr, output, dims, ndim, status.ptr)
        status.check("shape")
        return Shape(dims)

    def __repr__(self) -> str:
        return f"Graph({self._ptr:#x})" if getattr(self, "_ptr", None) else "Graph(<closed>)"


class GraphOperation(Operation):
    """An operation node of a ``Graph``; owned by the graph."""

    __slots__ = ("_graph", "_ptr")

    def __init__(self, graph: Graph, ptr: int) -> None:
        self._graph = graph
        self._ptr = ptr

    @property
    def ptr(self) -> int:
        return self._ptr

    @property
    def env(self) -> Graph:
        return self._graph

    @property
    def name(self) -> str:
        return self._graph._lib.TF_OperationName(self._ptr).decode()

    @property
    def type(self) -> str:
        return self._graph._lib.TF_OperationOpType(self._ptr).decode()

    @property
    def num_outputs(self) -> int:
        return self._graph._lib.TF_OperationNumOutputs(self._ptr)

    def output_dtype(self, index: int) -> DataType:
        return DataType(self._graph._lib.TF_OperationOutputType(TF_Output(self._ptr, index)))

    def output_shape(self, index: int) -> Shape:
        return self._graph._output_shape(TF_Output(self._ptr, index))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphOperation):
            return NotImplemented
        return self._graph is other._graph and self._ptr == other._ptr

    def __hash__(self) -> int:
        return hash((id(self._graph), self._ptr))


def _tf_output(output: Output) -> TF_Output:
    return TF_Output(output.operation.ptr, output.index)


class GraphOperationBuilder(OperationBuilder):
    """Builds an operation into a ``Graph`` via ``TF_NewOperation``.

    Inputs are checked as they are added, but nothing reaches the graph until
    ``build``: the native description is created, filled and finished in one
    step, so a rejected input leaves no half-built operation behind.
    """

    def __init__(self, graph: Graph, op_type: str, name: str) -> None:
        self._graph = graph
        self._lib = graph._lib
        self._op_type = op_type
        self._name = name
        self._steps: List[Callable[[int, Status], None]] = []
        self._built = False

    def add_input(self, input: Output) -> GraphOperationBuilder:
        self._graph.check_input(input)
        self._steps.append(partial(self._add_input, _tf_output(input)))
        return self

    def add_input_list(self, inputs: Sequence[Output]) -> GraphOperationBuilder:
        for input in inputs:
            self._graph.check_input(input)
        outputs = [_tf_output(i) for i in inputs]
        self._steps.append(partial(self._add_input_list, outputs))
        return self

    def add_control_input(self, control: Operation) -> GraphOperationBuilder:
        if control.env is not self._graph:
            raise ValueError(f"Control input '{control.name}' belongs to a different graph")
        self._steps.append(partial(self._add_control_input, control.ptr))
        return self

    def set_attr_type(self, name: str, value: DataType) -> GraphOperationBuilder:
        self._steps.append(partial(self._set_attr_type, name.encode(), int(value)))
        return self

    def set_attr_type_list(self, name: str, values: Sequence[DataType]) -> GraphOperationBuilder:
        types = [int(v) for v in values]
        self._steps.append(partial(self._set_attr_type_list, name.encode(), types))
        return self

    def set_attr_shape(self, name: str, value: Shape) -> GraphOperationBuilder:
        self._steps.append(partial(self._set_attr_shape, name.encode(), value))
        return self

    def set_attr_shape_list(self, name: str, values: Sequence[Shape]) -> GraphOperationBuilder:
        dims = [v.dims for v in values]
        self._steps.append(partial(self._set_attr_shape_list, name.encode(), dims))
        return self

    def set_attr_string(self, name: str, value: str) -> GraphOperationBuilder:
        self._steps.append(partial(self._set_attr_string, name.encode(), value.encode()))
        return self

    def set_attr_int(self, name: str, value: int) -> GraphOperationBuilder:
        self._steps.append(partial(self._set_attr_int, name.encode(), int(value)))
        return self

    def set_attr_bool(self, name: str, value: bool) -> GraphOperationBuilder:
        self._steps.append(partial(self._set_attr_bool, name.encode(), 1 if value else 0))
        return self

    def set_attr_tensor(self, name: str, value: Tensor) -> GraphOperationBuilder:
        self._steps.append(partial(self._set_attr_tensor, name.encode(), value))
        return self

    def build(self) -> GraphOperation:
        """Add the operation to the graph.

        Raises:
            TensorFlowError: If the runtime rejects the inputs or attributes
        """
        if self._built:
            raise RuntimeError("Operation has already been built")
        self._built = True
        desc = self._lib.TF_NewOperation(
            self._graph.ptr, self._op_type.encode(), self._name.encode()
        )
        attr_status = Status()
        for step in self._steps:
            step(desc, attr_status)
            if attr_status.code:
                break
        # TF_FinishOperation consumes the description, even on failure.
        status = Status()
        ptr = self._lib.TF_FinishOperation(desc, status.ptr)
        attr_status.check("build")
        status.check("build")
        return GraphOperation(self._graph, ptr)

    def _add_input(self, output: TF_Output, desc: int, status: Status) -> None:
        self._lib.TF_AddInput(desc, output)

    def _add_input_list(self, outputs: List[TF_Output], desc: int, status: Status) -> None:
        arr = (TF_Output * len(outputs))(*outputs)
        self._lib.TF_AddInputList(desc, arr, len(outputs))

    def _add_control_input(self, control: int, desc: int, status: Status) -> None:
        self._lib.TF_AddControlInput(desc, control)

    def _set_attr_type(self, name: bytes, value: int, desc: int, status: Status) -> None:
        self._lib.TF_SetAttrType(desc, name, value)

    def _set_attr_type_list(
        self, name: bytes, values: List[int], desc: int, status: Status
    ) -> None:
        arr = (ctypes.c_int * len(values))(*values)
        self._lib.TF_SetAttrTypeList(desc, name, arr, len(values))

    def _set_attr_shape(self, name: bytes, value: Shape, desc: int, status: Status) -> None:
        ndim = value.num_dimensions
        dims = (ctypes.c_int64 * max(ndim, 0))(*(value.dims or ()))
        self._lib.TF_SetAttrShape(desc, name, dims, ndim)

    def _set_attr_shape_list(
        self, name: bytes, shapes: List[Optional[tuple]], desc: int, status: Status
    ) -> None:
        dims, num_dims, _buffers = shape_list_arrays(shapes)
        self._lib.TF_SetAttrShapeList(desc, name, dims, num_dims, len(shapes))

    def _set_attr_string(self, name: bytes, value: bytes, desc: int, status: Status) -> None:
        self._lib.TF_SetAttrString(desc, name, value, len(value))

    def _set_attr_int(self, name: bytes, value: int, desc: int, status: Status) -> None:
        self._lib.TF_SetAttrInt(desc, name, value)

    def _set_attr_bool(self, name: bytes, value: int, desc: int, status: Status) -> None:
        self._lib.TF_SetAttrBool(desc, name, value)

    def _set_attr_tensor(self, name: bytes, value: Tensor, desc: int, status: Status) -> None:
        self._lib.TF_SetAttrTensor(desc, name, value.ptr, status.ptr)
