"""Tests for operation naming and control dependencies."""

import pytest

from tfbridge.scope import NameScope, Scope


class StubEnvironment:
    """Just enough of an environment to open scopes on."""

    def __init__(self):
        self.root_name_scope = NameScope()


class RecordingBuilder:
    """Operation builder that records control inputs."""

    def __init__(self):
        self.controls = []

    def add_control_input(self, control):
        self.controls.append(control)
        return self


class TestNameScope:
    """Tests for unique name generation."""

    def test_first_name_is_unchanged(self):
        """Test that a fresh name is used as is."""
        assert NameScope().make_op_name("Const") == "Const"

    def test_repeated_names_get_suffixes(self):
        """Test that repeated names are made unique."""
        ns = NameScope()
        names = [ns.make_op_name("Const") for _ in range(3)]
        assert names == ["Const", "Const_1", "Const_2"]

    def test_sub_scope_prefix(self):
        """Test that sub-scopes qualify names with their prefix."""
        ns = NameScope()
        sub = ns.with_sub_scope("layer")
        assert sub.make_op_name("MatMul") == "layer/MatMul"
        assert sub.with_sub_scope("inner").make_op_name("Add") == "layer/inner/Add"

    def test_sub_scopes_are_unique(self):
        """Test that two sub-scopes with the same name do not collide."""
        ns = NameScope()
        first = ns.with_sub_scope("layer").make_op_name("Op")
        second = ns.with_sub_scope("layer").make_op_name("Op")
        assert first == "layer/Op"
        assert second == "layer_1/Op"

    def test_with_name_overrides_default(self):
        """Test that an explicit op name replaces the default label."""
        ns = NameScope()
        assert ns.with_name("my_iterator").make_op_name("Iterator") == "my_iterator"

    def test_with_name_shares_uniqueness(self):
        """Test that explicit names are still made unique."""
        ns = NameScope()
        ns.make_op_name("x")
        assert ns.with_name("x").make_op_name("Const") == "x_1"

    @pytest.mark.parametrize("name", ["", "_leading", "has space", "a/b"])
    def test_invalid_names(self, name):
        """Test that invalid names are rejected."""
        with pytest.raises(ValueError, match="invalid name"):
            NameScope().make_op_name(name)


class TestScope:
    """Tests for Scope."""

    def test_shares_environment_name_scope(self):
        """Test that scopes opened on one environment never reuse a name."""
        env = StubEnvironment()
        assert Scope(env).make_op_name("Const") == "Const"
        assert Scope(env).make_op_name("Const") == "Const_1"

    def test_env(self):
        """Test that the scope exposes its environment."""
        env = StubEnvironment()
        assert Scope(env).env is env
        assert Scope(env).with_sub_scope("a").env is env

    def test_no_control_dependencies_by_default(self):
        """Test that a fresh scope adds no control inputs."""
        builder = RecordingBuilder()
        assert Scope(StubEnvironment()).apply_control_dependencies(builder) is builder
        assert builder.controls == []

    def test_control_dependencies_applied(self):
        """Test that control dependencies are attached to each builder."""
        a, b = object(), object()
        scope = Scope(StubEnvironment()).with_control_dependencies([a, b])
        builder = RecordingBuilder()
        scope.apply_control_dependencies(builder)
        assert builder.controls == [a, b]

    def test_control_dependencies_unwrap_ops(self):
        """Test that op wrappers are reduced to their operation."""

        class Wrapper:
            operation = object()

        wrapper = Wrapper()
        scope = Scope(StubEnvironment()).with_control_dependencies([wrapper])
        assert scope.control_dependencies == (wrapper.operation,)

    def test_control_dependencies_survive_sub_scope(self):
        """Test that derived scopes keep the control dependencies."""
        a = object()
        scope = Scope(StubEnvironment()).with_control_dependencies([a]).with_sub_scope("s")
        assert scope.control_dependencies == (a,)
        assert scope.with_name("n").control_dependencies == (a,)
