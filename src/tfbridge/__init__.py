"""Python bindings for the TensorFlow C API.

This package builds TensorFlow operations from Python, either into a graph
run by a ``Session`` or immediately in an ``EagerSession``, and provides
dataset iteration on top of the runtime's ``tf.data`` ops.

Examples:
    >>> from tfbridge import Dataset, EagerSession, Ops
    >>> with EagerSession() as env:
    ...     tf = Ops.create(env)
    ...     [int(x) for (x,) in Dataset.range(tf, 0, 3).as_numpy_iterator()]
    [0, 1, 2]

For JAX integration:
    >>> from tfbridge.jax_ops import jax_iterator  # requires jax

For PyTorch integration:
    >>> from tfbridge.torch_ops import TorchIterableDataset  # requires torch
"""

from ._lib import is_available
from ._status import (
    AbortedError,
    AlreadyExistsError,
    CancelledError,
    Code,
    DataLossError,
    DeadlineExceededError,
    FailedPreconditionError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    OutOfRangeError,
    PermissionDeniedError,
    ResourceExhaustedError,
    TensorFlowError,
    UnauthenticatedError,
    UnavailableError,
    UnimplementedError,
    UnknownError,
)
from .data import Dataset, DatasetIterator, DatasetOptional
from .eager import EagerSession
from .environment import ExecutionEnvironment, Operand, Operation, Output
from .graph import Graph
from .ops import Ops
from .scope import Scope
from .session import Session
from .tensor import Tensor
from .types import DataType, Shape

__all__ = [
    "is_available",
    "Code",
    "TensorFlowError",
    "CancelledError",
    "UnknownError",
    "InvalidArgumentError",
    "DeadlineExceededError",
    "NotFoundError",
    "AlreadyExistsError",
    "PermissionDeniedError",
    "ResourceExhaustedError",
    "FailedPreconditionError",
    "AbortedError",
    "OutOfRangeError",
    "UnimplementedError",
    "InternalError",
    "UnavailableError",
    "DataLossError",
    "UnauthenticatedError",
    "Dataset",
    "DatasetIterator",
    "DatasetOptional",
    "EagerSession",
    "ExecutionEnvironment",
    "Operand",
    "Operation",
    "Output",
    "Graph",
    "Ops",
    "Scope",
    "Session",
    "Tensor",
    "DataType",
    "Shape",
]

__version__ = "0.1.0"


def __getattr__(name: str):
    """Lazy import for optional dependencies."""
    if name == "jax_iterator":
        from .jax_ops import jax_iterator
        return jax_iterator
    if name == "TorchIterableDataset":
        from .torch_ops import TorchIterableDataset
        return TorchIterableDataset
    if name == "JAX_AVAILABLE":
        from .jax_ops import JAX_AVAILABLE
        return JAX_AVAILABLE
    if name == "TORCH_AVAILABLE":
        from .torch_ops import TORCH_AVAILABLE
        return TORCH_AVAILABLE
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
