"""Operation wrappers and the ``Ops`` accessor used to build them.

Examples:
    >>> with Graph() as g:
    ...     tf = Ops.create(g)
    ...     x = tf.constant(np.ones((2, 3), dtype=np.float32))
    ...     y = tf.xla.cluster_output(x)
    ...     y.dtype
    <DataType.FLOAT: 1>
"""

from __future__ import annotations

from typing import Iterable, Optional

from numpy.typing import ArrayLike

from ..environment import ExecutionEnvironment, Operand
from ..scope import Scope
from ..types import DataType
from .core import Constant, Identity, RawOp
from .data import DataOps
from .xla import ClusterOutput


class XlaOps:
    """The ``tf.xla`` group of the ``Ops`` accessor."""

    def __init__(self, scope: Scope) -> None:
        self._scope = scope

    def cluster_output(self, input: Operand) -> ClusterOutput:
        return ClusterOutput.create(self._scope, input)


class Ops:
    """Entry point for building operations in an execution environment.

    Every operation built through an ``Ops`` instance uses its scope for
    naming and control dependencies.
    """

    def __init__(self, scope: Scope) -> None:
        self._scope = scope
        self.data = DataOps(scope)
        self.xla = XlaOps(scope)

    @classmethod
    def create(cls, env: ExecutionEnvironment) -> Ops:
        return cls(Scope(env))

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def env(self) -> ExecutionEnvironment:
        return self._scope.env

    def with_sub_scope(self, child_scope_name: str) -> Ops:
        return Ops(self._scope.with_sub_scope(child_scope_name))

    def with_name(self, op_name: str) -> Ops:
        return Ops(self._scope.with_name(op_name))

    def with_control_dependencies(self, controls: Iterable) -> Ops:
        return Ops(self._scope.with_control_dependencies(controls))

    def constant(self, value: ArrayLike, dtype: Optional[DataType] = None) -> Constant:
        return Constant.create(self._scope, value, dtype)

    def identity(self, input: Operand) -> Identity:
        return Identity.create(self._scope, input)


__all__ = ["Ops", "XlaOps", "DataOps", "RawOp", "Constant", "Identity", "ClusterOutput"]
