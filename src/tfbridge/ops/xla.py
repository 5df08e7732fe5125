"""XLA operation wrappers."""

from __future__ import annotations

from ..environment import Operand, Operation, Output
from ..scope import Scope
from .core import RawOp


class ClusterOutput(RawOp, Operand):
    """Operator that connects the output of an XLA computation to other consumer graph nodes."""

    OP_NAME = "XlaClusterOutput"

    def __init__(self, operation: Operation) -> None:
        super().__init__(operation)
        output_idx = 0
        self._outputs = operation.output(output_idx)

    @classmethod
    def create(cls, scope: Scope, input: Operand) -> ClusterOutput:
        """Factory method to create a class wrapping a new ClusterOutput operation.

        Args:
            scope: current scope
            input: the value computed by the XLA cluster

        Returns:
            a new instance of ClusterOutput
        """
        builder = scope.env.op_builder(cls.OP_NAME, scope.make_op_name("ClusterOutput"))
        builder.add_input(input.as_output())
        builder = scope.apply_control_dependencies(builder)
        return cls(builder.build())

    @property
    def outputs(self) -> Output:
        return self._outputs

    def as_output(self) -> Output:
        return self._outputs
