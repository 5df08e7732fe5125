"""Eager execution environment backed by a native ``TFE_Context``."""

from __future__ import annotations

import ctypes
import itertools
import logging
import weakref
from typing import Dict, Sequence, Tuple

from numpy.typing import NDArray

from ._lib import get_lib, shape_list_arrays
from ._status import Status
from .environment import ExecutionEnvironment, Operation, OperationBuilder, Output
from .tensor import Tensor
from .types import DataType, Shape

logger = logging.getLogger(__name__)

# Upper bound on the outputs of a single eager op; TFE_Execute reports the
# actual count.
_MAX_OUTPUTS = 256


class EagerSession(ExecutionEnvironment):
    """Environment in which operations run as soon as they are built.

    Tensor handles produced by an eager operation are released when the
    operation is garbage collected, or when the session is closed,
    whichever comes first.

    Examples:
        >>> with EagerSession() as env:
        ...     tf = Ops.create(env)
        ...     tf.constant(np.arange(3)).as_output().numpy()
        array([0, 1, 2])
    """

    def __init__(self) -> None:
        super().__init__()
        self._lib = get_lib()
        self._ptr = None
        self._live_handles: Dict[int, Tuple[int, ...]] = {}
        self._keys = itertools.count()
        opts = self._lib.TFE_NewContextOptions()
        try:
            status = Status()
            ptr = self._lib.TFE_NewContext(opts, status.ptr)
            status.check("new_context")
        finally:
            self._lib.TFE_DeleteContextOptions(opts)
        self._ptr = ptr
        logger.debug("Created eager context %#x", ptr)

    def __del__(self) -> None:
        """Release the native context when the Python object is garbage collected."""
        self.close()

    @property
    def ptr(self) -> int:
        if not getattr(self, "_ptr", None):
            raise RuntimeError("EagerSession has been closed")
        return self._ptr

    @property
    def is_eager(self) -> bool:
        return True

    def op_builder(self, op_type: str, name: str) -> EagerOperationBuilder:
        return EagerOperationBuilder(self, op_type, name)

    @property
    def num_live_handles(self) -> int:
        """Number of tensor handles not yet released."""
        return sum(len(handles) for handles in self._live_handles.values())

    def _track(self, operation: EagerOperation) -> None:
        """Release the handles of ``operation`` once it is garbage collected."""
        key = next(self._keys)
        self._live_handles[key] = operation._handles
        finalizer = weakref.finalize(operation, self._release, key)
        finalizer.atexit = False

    def _release(self, key: int) -> None:
        for handle in self._live_handles.pop(key, ()):
            self._lib.TFE_DeleteTensorHandle(handle)

    def close(self) -> None:
        if getattr(self, "_ptr", None):
            for key in list(self._live_handles):
                self._release(key)
            logger.debug("Deleting eager context %#x", self._ptr)
            self._lib.TFE_DeleteContext(self._ptr)
            self._ptr = None

    def __repr__(self) -> str:
        if getattr(self, "_ptr", None):
            return f"EagerSession({self._ptr:#x})"
        return "EagerSession(<closed>)"


class EagerOperation(Operation):
    """An executed eager operation holding its output tensor handles."""

    def __init__(
        self, session: EagerSession, op_type: str, name: str, handles: Sequence[int]
    ) -> None:
        self._session = session
        self._type = op_type
        self._name = name
        self._handles = tuple(handles)

    @property
    def env(self) -> EagerSession:
        return self._session

    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> str:
        return self._type

    @property
    def num_outputs(self) -> int:
        return len(self._handles)

    def handle(self, index: int) -> int:
        """Raw ``TFE_TensorHandle*`` of output ``index``; owned by this operation."""
        if self._session._ptr is None:
            raise RuntimeError(f"EagerSession of '{self._name}' has been closed")
        return self._handles[index]

    def output_dtype(self, index: int) -> DataType:
        return DataType(self._session._lib.TFE_TensorHandleDataType(self.handle(index)))

    def output_shape(self, index: int) -> Shape:
        lib = self._session._lib
        handle = self.handle(index)
        status = Status()
        ndim = lib.TFE_TensorHandleNumDims(handle, status.ptr)
        status.check("shape")
        dims = []
        for i in range(ndim):
            dims.append(lib.TFE_TensorHandleDim(handle, i, status.ptr))
            status.check("shape")
        return Shape(dims)

    def output_value(self, index: int) -> NDArray:
        status = Status()
        ptr = self._session._lib.TFE_TensorHandleResolve(self.handle(index), status.ptr)
        status.check("resolve")
        return Tensor(ptr).to_numpy()


class EagerOperationBuilder(OperationBuilder):
    """Builds an operation in an ``EagerSession`` and executes it on ``build``."""

    def __init__(self, session: EagerSession, op_type: str, name: str) -> None:
        self._session = session
        self._lib = session._lib
        self._type = op_type
        self._name = name
        status = Status()
        self._op = self._lib.TFE_NewOp(session.ptr, op_type.encode(), status.ptr)
        status.check(f"new_op({op_type})")

    def __del__(self) -> None:
        if getattr(self, "_op", None):
            self._lib.TFE_DeleteOp(self._op)
            self._op = None

    def _handle(self, input: Output) -> int:
        self._session.check_input(input)
        return input.operation.handle(input.index)

    def add_input(self, input: Output) -> EagerOperationBuilder:
        status = Status()
        self._lib.TFE_OpAddInput(self._op, self._handle(input), status.ptr)
        status.check("add_input")
        return self

    def add_input_list(self, inputs: Sequence[Output]) -> EagerOperationBuilder:
        arr = (ctypes.c_void_p * len(inputs))(*[self._handle(i) for i in inputs])
        status = Status()
        self._lib.TFE_OpAddInputList(self._op, arr, len(inputs), status.ptr)
        status.check("add_input_list")
        return self

    def add_control_input(self, control: Operation) -> EagerOperationBuilder:
        raise NotImplementedError(
            "Control inputs are not supported in an eager execution environment"
        )

    def set_attr_type(self, name: str, value: DataType) -> EagerOperationBuilder:
        self._lib.TFE_OpSetAttrType(self._op, name.encode(), int(value))
        return self

    def set_attr_type_list(self, name: str, values: Sequence[DataType]) -> EagerOperationBuilder:
        arr = (ctypes.c_int * len(values))(*[int(v) for v in values])
        self._lib.TFE_OpSetAttrTypeList(self._op, name.encode(), arr, len(values))
        return self

    def set_attr_shape(self, name: str, value: Shape) -> EagerOperationBuilder:
        ndim = value.num_dimensions
        dims = (ctypes.c_int64 * max(ndim, 0))(*(value.dims or ()))
        status = Status()
        self._lib.TFE_OpSetAttrShape(self._op, name.encode(), dims, ndim, status.ptr)
        status.check(f"set_attr_shape({name})")
        return self

    def set_attr_shape_list(self, name: str, values: Sequence[Shape]) -> EagerOperationBuilder:
        dims, num_dims, _buffers = shape_list_arrays([v.dims for v in values])
        status = Status()
        self._lib.TFE_OpSetAttrShapeList(
            self._op, name.encode(), dims, num_dims, len(values), status.ptr
        )
        status.check(f"set_attr_shape_list({name})")
        return self

    def set_attr_string(self, name: str, value: str) -> EagerOperationBuilder:
        raw = value.encode()
        self._lib.TFE_OpSetAttrString(self._op, name.encode(), raw, len(raw))
        return self

    def set_attr_int(self, name: str, value: int) -> EagerOperationBuilder:
        self._lib.TFE_OpSetAttrInt(self._op, name.encode(), int(value))
        return self

    def set_attr_bool(self, name: str, value: bool) -> EagerOperationBuilder:
        self._lib.TFE_OpSetAttrBool(self._op, name.encode(), 1 if value else 0)
        return self

    def set_attr_tensor(self, name: str, value: Tensor) -> EagerOperationBuilder:
        status = Status()
        self._lib.TFE_OpSetAttrTensor(self._op, name.encode(), value.ptr, status.ptr)
        status.check(f"set_attr_tensor({name})")
        return self

    def build(self) -> EagerOperation:
        """Execute the operation.

        Raises:
            OutOfRangeError: If the operation reads past the end of a sequence
            TensorFlowError: For any other runtime failure
        """
        if not self._op:
            raise RuntimeError("Operation has already been built")
        retvals = (ctypes.c_void_p * _MAX_OUTPUTS)()
        num_retvals = ctypes.c_int(_MAX_OUTPUTS)
        status = Status()
        try:
            self._lib.TFE_Execute(self._op, retvals, ctypes.byref(num_retvals), status.ptr)
        finally:
            self._lib.TFE_DeleteOp(self._op)
            self._op = None
        status.check(self._type)
        handles = [retvals[i] for i in range(num_retvals.value)]
        operation = EagerOperation(self._session, self._type, self._name, handles)
        self._session._track(operation)
        return operation
