"""Session: runs operations of a ``Graph``."""

from __future__ import annotations

import ctypes
import logging
from typing import Iterable, List, Sequence, Union

from numpy.typing import NDArray

from ._lib import TF_Output, get_lib
from ._status import Status
from .environment import Operand, Operation
from .graph import Graph
from .tensor import Tensor

logger = logging.getLogger(__name__)


def _as_operation(target) -> Operation:
    """Accept an ``Operation`` or an op wrapper exposing ``operation``."""
    return getattr(target, "operation", target)


class Session:
    """Runs operations of a graph and fetches their outputs as NumPy arrays.

    Examples:
        >>> with Session(graph) as session:
        ...     session.run(targets=[iterator.initializer])
        ...     x, y = session.run(iterator.get_next())
    """

    def __init__(self, graph: Graph) -> None:
        self._graph = graph
        self._lib = get_lib()
        self._ptr = None
        opts = self._lib.TF_NewSessionOptions()
        try:
            status = Status()
            ptr = self._lib.TF_NewSession(graph.ptr, opts, status.ptr)
            status.check("new_session")
        finally:
            self._lib.TF_DeleteSessionOptions(opts)
        self._ptr = ptr
        logger.debug("Created session %#x on %r", ptr, graph)

    def __del__(self) -> None:
        """Release the native session when the Python object is garbage collected."""
        if getattr(self, "_ptr", None):
            self.close()

    @property
    def graph(self) -> Graph:
        return self._graph

    def run(
        self,
        fetches: Sequence[Operand] = (),
        targets: Iterable[Union[Operation, object]] = (),
    ) -> List[NDArray]:
        """Run the graph, computing ``fetches`` and executing ``targets``.

        Args:
            fetches: Operands whose values should be returned
            targets: Operations (or op wrappers) to run without fetching outputs

        Returns:
            One NumPy array per fetch, in order

        Raises:
            OutOfRangeError: If a fetched iterator is exhausted
            TensorFlowError: For any other runtime failure
        """
        if not self._ptr:
            raise RuntimeError("Session has been closed")

        outputs = [f.as_output() for f in fetches]
        operations = [_as_operation(t) for t in targets]
        for output in outputs:
            self._graph.check_input(output)
        for operation in operations:
            if operation.env is not self._graph:
                raise ValueError(f"Target '{operation.name}' belongs to a different graph")

        n_out = len(outputs)
        n_tgt = len(operations)
        out_arr = (TF_Output * n_out)(*[TF_Output(o.operation.ptr, o.index) for o in outputs])
        values = (ctypes.c_void_p * n_out)()
        tgt_arr = (ctypes.c_void_p * n_tgt)(*[op.ptr for op in operations])

        status = Status()
        self._lib.TF_SessionRun(
            self._ptr,
            None,
            None,
            None,
            0,
            out_arr if n_out else None,
            values if n_out else None,
            n_out,
            tgt_arr if n_tgt else None,
            n_tgt,
            None,
            status.ptr,
        )
        status.check("run")
        tensors = [Tensor(values[i]) for i in range(n_out)]
        return [t.to_numpy() for t in tensors]

    def close(self) -> None:
        if getattr(self, "_ptr", None):
            status = Status()
            self._lib.TF_CloseSession(self._ptr, status.ptr)
            self._lib.TF_DeleteSession(self._ptr, status.ptr)
            self._ptr = None
            logger.debug("Closed session on %r", self._graph)
            status.check("close")

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
