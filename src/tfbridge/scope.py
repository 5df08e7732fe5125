"""Scopes: operation naming and control dependencies."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Tuple

if TYPE_CHECKING:
    from .environment import ExecutionEnvironment, Operation, OperationBuilder

_NAME_REGEX = re.compile(r"[A-Za-z0-9.][A-Za-z0-9_.\-]*")


def _check_name(name: str) -> str:
    if not _NAME_REGEX.fullmatch(name):
        raise ValueError(f"invalid name: '{name}'")
    return name


class NameScope:
    """Hands out unique operation names within a naming hierarchy.

    A name used for the first time is returned as is; later requests for
    the same name get a ``_1``, ``_2``, ... suffix. Sub-scopes prefix their
    names with ``parent/``.

    Examples:
        >>> root = NameScope()
        >>> root.make_op_name("Const"), root.make_op_name("Const")
        ('Const', 'Const_1')
        >>> root.with_sub_scope("layer").make_op_name("Const")
        'layer/Const'
    """

    def __init__(
        self,
        base_op_name: Optional[str] = None,
        op_name: Optional[str] = None,
        ids: Optional[Dict[str, int]] = None,
    ) -> None:
        self._base_op_name = base_op_name
        self._op_name = op_name
        self._ids: Dict[str, int] = {} if ids is None else ids

    def with_sub_scope(self, child_name: str) -> NameScope:
        child = self._make_unique(_check_name(child_name))
        return NameScope(self._fully_qualify(child))

    def with_name(self, op_name: str) -> NameScope:
        return NameScope(self._base_op_name, _check_name(op_name), self._ids)

    def make_op_name(self, op_name: str) -> str:
        if self._op_name is not None:
            op_name = self._op_name
        return self._fully_qualify(self._make_unique(_check_name(op_name)))

    def _make_unique(self, name: str) -> str:
        count = self._ids.get(name)
        if count is None:
            self._ids[name] = 1
            return name
        self._ids[name] = count + 1
        return f"{name}_{count}"

    def _fully_qualify(self, name: str) -> str:
        if self._base_op_name is None:
            return name
        return f"{self._base_op_name}/{name}"


class Scope:
    """Context in which operations are created.

    Carries the execution environment, a name scope and the control
    dependencies to attach to every operation built through it. Scopes are
    immutable: the ``with_*`` methods return new scopes.
    """

    def __init__(
        self,
        env: ExecutionEnvironment,
        name_scope: Optional[NameScope] = None,
        control_dependencies: Tuple[Operation, ...] = (),
    ) -> None:
        self._env = env
        self._name_scope = env.root_name_scope if name_scope is None else name_scope
        self._control_dependencies = tuple(control_dependencies)

    @property
    def env(self) -> ExecutionEnvironment:
        return self._env

    @property
    def control_dependencies(self) -> Tuple[Operation, ...]:
        return self._control_dependencies

    def with_sub_scope(self, child_name: str) -> Scope:
        return Scope(
            self._env, self._name_scope.with_sub_scope(child_name), self._control_dependencies
        )

    def with_name(self, op_name: str) -> Scope:
        return Scope(self._env, self._name_scope.with_name(op_name), self._control_dependencies)

    def with_control_dependencies(self, controls: Iterable) -> Scope:
        """Return a scope whose operations run after ``controls``.

        Args:
            controls: Operations, or op wrappers exposing ``operation``
        """
        operations = tuple(getattr(c, "operation", c) for c in controls)
        return Scope(self._env, self._name_scope, operations)

    def make_op_name(self, default_name: str) -> str:
        """Unique name for a new operation, from ``default_name`` or ``with_name``."""
        return self._name_scope.make_op_name(default_name)

    def apply_control_dependencies(self, builder: OperationBuilder) -> OperationBuilder:
        for control in self._control_dependencies:
            builder.add_control_input(control)
        return builder
