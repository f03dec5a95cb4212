"""Tests for the plugin registry — activation, duplicates, local plugin views.

Covers activate (instance, mapping, factory), DuplicatePluginError, cycles
leaving the registry unchanged, after_plugin seeding plugin state, unknown
events, get_local_plugins with local and excluded plugins, and merged defaults.
"""

from __future__ import annotations

import pytest

from statekit import Specification, activate_plugin, get_context, get_plugin_state
from statekit.core.errors import CyclicStepOrderError, DuplicatePluginError, PluginConfigError
from statekit.plugins import BASE_STEP_ORDER, LifecyclePhase, Placement, Plugin, PluginRegistry, PluginSet


def _noop(logic, spec, build):
    return None


# ---------------------------------------------------------------------------
# Plugin normalization
# ---------------------------------------------------------------------------


class TestPluginShapes:
    def test_mapping_plugin(self, context):
        plugin = context.activate_plugin(
            {"name": "mapped", "build_steps": {"mapped": _noop}, "build_order": {"mapped": {"after": "actions"}}}
        )
        assert isinstance(plugin, Plugin)
        assert plugin.build_order["mapped"] == Placement(after="actions")

    def test_factory_plugin(self, context):
        def factory():
            return Plugin(name="made", build_steps={"made": _noop})

        assert context.activate_plugin(factory).name == "made"
        assert "made" in context.registry.get_step_order()

    def test_factory_returning_garbage(self, context):
        with pytest.raises(PluginConfigError, match="expected a Plugin"):
            context.activate_plugin(lambda: 42)

    def test_unknown_event_rejected(self):
        with pytest.raises(PluginConfigError, match="unknown event"):
            Plugin(name="bad", events={"after_everything": lambda: None})

    def test_string_event_names_accepted(self):
        plugin = Plugin(name="strings", events={"after_mount": lambda logic: None})
        assert LifecyclePhase.AFTER_MOUNT in plugin.events

    def test_non_callable_step(self):
        with pytest.raises(PluginConfigError, match="not callable"):
            Plugin(name="bad", build_steps={"x": "nope"})

    def test_missing_name(self):
        with pytest.raises(PluginConfigError, match="name"):
            Plugin.from_dict({"build_steps": {}})


# ---------------------------------------------------------------------------
# activate
# ---------------------------------------------------------------------------


class TestActivate:
    def test_core_is_active_by_default(self, context):
        assert context.registry.is_activated("core")
        assert context.registry.get_step_order() == BASE_STEP_ORDER

    def test_duplicate_raises(self, context):
        context.activate_plugin(Plugin(name="once"))
        with pytest.raises(DuplicatePluginError) as exc_info:
            context.activate_plugin(Plugin(name="once"))
        assert exc_info.value.plugin_name == "once"

    def test_cycle_leaves_registry_unchanged(self, context):
        context.activate_plugin(Plugin(name="first", build_order={"a": Placement(after="reducers")}))
        before = context.registry.get_step_order()

        loop = Plugin(name="loop", build_order={"reducers": Placement(after="a"), "b": Placement(after="a")})
        with pytest.raises(CyclicStepOrderError):
            context.activate_plugin(loop)

        assert context.registry.get_step_order() == before
        assert not context.registry.is_activated("loop")

    def test_steps_contributed_by_several_plugins_run_in_activation_order(self, context):
        calls = []
        context.activate_plugin(Plugin(name="one", build_steps={"shared": lambda *a: calls.append("one")}))
        context.activate_plugin(Plugin(name="two", build_steps={"shared": lambda *a: calls.append("two")}))
        assert [name for name, _ in context.registry.plugins.handlers("shared")] == ["one", "two"]

    def test_after_plugin_runs_for_activated_plugin_only(self, context):
        seen = []
        context.activate_plugin(
            Plugin(name="first", events={LifecyclePhase.AFTER_PLUGIN: lambda ctx: seen.append("first")})
        )
        context.activate_plugin(
            Plugin(name="second", events={LifecyclePhase.AFTER_PLUGIN: lambda ctx: seen.append("second")})
        )
        assert seen == ["first", "second"]

    def test_after_plugin_seeds_plugin_state(self):
        def seed(ctx):
            ctx.set_plugin_state("counter", {"builds": 0})

        activate_plugin(Plugin(name="counter", events={"after_plugin": seed}))
        assert get_plugin_state("counter") == {"builds": 0}
        assert get_context().get_plugin_state("missing", "fallback") == "fallback"

    def test_failing_after_plugin_rolls_back(self, context):
        def broken(ctx):
            raise RuntimeError("cannot seed state")

        before = context.registry.get_step_order()
        with pytest.raises(RuntimeError, match="cannot seed state"):
            context.activate_plugin(
                Plugin(name="broken", build_steps={"extra": _noop}, events={"after_plugin": broken})
            )

        assert not context.registry.is_activated("broken")
        assert context.registry.get_step_order() == before
        context.activate_plugin(Plugin(name="broken"))
        assert context.registry.is_activated("broken")

    def test_registry_without_context(self):
        registry = PluginRegistry()
        registry.activate(Plugin(name="solo", events={"after_plugin": lambda ctx: None}))
        assert registry.plugins.names == ["solo"]


# ---------------------------------------------------------------------------
# PluginSet
# ---------------------------------------------------------------------------


class TestPluginSet:
    def test_from_plugins_rejects_duplicates(self):
        with pytest.raises(DuplicatePluginError):
            PluginSet.from_plugins([Plugin(name="x"), Plugin(name="x")])

    def test_logic_defaults_later_plugin_wins(self):
        plugins = PluginSet.from_plugins(
            [
                Plugin(name="a", defaults=lambda: {"tags": ["a"], "owner": "a"}),
                Plugin(name="b", defaults=lambda: {"owner": "b"}),
            ]
        )
        assert plugins.logic_defaults() == {"tags": ["a"], "owner": "b"}

    def test_defaults_are_fresh_per_call(self):
        plugins = PluginSet.from_plugins([Plugin(name="a", defaults=lambda: {"tags": []})])
        first = plugins.logic_defaults()
        first["tags"].append("x")
        assert plugins.logic_defaults() == {"tags": []}

    def test_handlers_empty_for_ordering_only_step(self):
        plugins = PluginSet.from_plugins([Plugin(name="a", build_order={"mark": Placement(before="events")})])
        assert "mark" in plugins.step_order
        assert plugins.handlers("mark") == []
        assert plugins.contributors("mark") == ["a"]

    def test_run_event_in_activation_order(self):
        calls = []
        plugins = PluginSet.from_plugins(
            [
                Plugin(name="a", events={"after_mount": lambda logic: calls.append(("a", logic))}),
                Plugin(name="b", events={"after_mount": lambda logic: calls.append(("b", logic))}),
            ]
        )
        plugins.run_event(LifecyclePhase.AFTER_MOUNT, "L")
        assert calls == [("a", "L"), ("b", "L")]


# ---------------------------------------------------------------------------
# get_local_plugins
# ---------------------------------------------------------------------------


class TestLocalPlugins:
    def test_plain_spec_uses_global_set(self, context):
        spec = Specification.from_input({})
        assert context.registry.get_local_plugins(spec) is context.registry.plugins

    def test_local_plugin_added_without_touching_registry(self, context):
        local = Plugin(name="local", build_steps={"local": _noop})
        spec = Specification.from_input({"plugins": [local]})
        view = context.registry.get_local_plugins(spec)
        assert "local" in view
        assert "local" in view.step_order
        assert not context.registry.is_activated("local")
        assert "local" not in context.registry.get_step_order()

    def test_exclude_plugin(self, context):
        context.activate_plugin(Plugin(name="noisy", build_steps={"noise": _noop}))
        spec = Specification.from_input({"exclude_plugins": ["noisy"]})
        view = context.registry.get_local_plugins(spec)
        assert "noisy" not in view
        assert "noise" not in view.step_order
        assert context.registry.is_activated("noisy")

    def test_core_cannot_be_excluded(self, context):
        spec = Specification.from_input({"exclude_plugins": ["core"]})
        with pytest.raises(PluginConfigError, match="core"):
            context.registry.get_local_plugins(spec)

    def test_excluding_unknown_plugin(self, context):
        spec = Specification.from_input({"exclude_plugins": ["ghost"]})
        with pytest.raises(PluginConfigError, match="ghost"):
            context.registry.get_local_plugins(spec)

    def test_local_duplicate_of_global(self, context):
        context.activate_plugin(Plugin(name="dup"))
        spec = Specification.from_input({"plugins": [Plugin(name="dup")]})
        with pytest.raises(DuplicatePluginError):
            context.registry.get_local_plugins(spec)
