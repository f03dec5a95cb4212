"""Tests for the build pipeline and the core build steps.

Covers step order and plugin defaults, BuildStepError annotation, statekit
errors passing through, lifecycle phase order, and each core step: constants,
action creators and bound actions, defaults, reducer shapes, the combined
reducer, reducer selectors, selectors with forward references, values and
logic events.
"""

from __future__ import annotations

import pytest

from statekit import LifecyclePhase, Plugin, Placement, define
from statekit.core.errors import BuildStepError, SpecificationError
from statekit.steps import ActionCreator, combine_reducers


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class TestPipeline:
    def test_plugin_steps_run_at_their_position(self, context):
        seen = []

        def after_connect(logic, spec, build):
            seen.append(("after_connect", sorted(logic.action_creators)))

        def before_events(logic, spec, build):
            seen.append(("before_events", sorted(logic.selectors)))

        context.activate_plugin(
            Plugin(
                name="probe",
                build_steps={"after_connect": after_connect, "before_events": before_events},
                build_order={
                    "after_connect": Placement(after="connect"),
                    "before_events": Placement(before="events"),
                },
            )
        )
        define({"path": ("probe",), "actions": {"go": True}, "reducers": {"n": [0, {}]}})
        assert seen == [("after_connect", []), ("before_events", ["n"])]

    def test_plugin_defaults_become_fields(self, context):
        context.activate_plugin(Plugin(name="tags", defaults=lambda: {"tags": [], "cache": {"seen": True}}))
        logic = define({"path": ("tagged",)}).build()
        assert logic.tags == []
        assert logic.cache == {"seen": True}
        assert define({"path": ("other",)}).get("tags") == []

    def test_plugin_defaults_cannot_override_identity(self, context):
        context.activate_plugin(Plugin(name="sneaky", defaults=lambda: {"path": ("elsewhere",)}))
        assert define({"path": ("mine",)}).path == ("mine",)

    def test_failing_handler_is_annotated(self, context):
        def explode(logic, spec, build):
            raise KeyError("boom")

        context.activate_plugin(Plugin(name="bomb", build_steps={"explode": explode}))
        wrapper = define({"path": ("fragile",), "options": {"lazy": True}})

        with pytest.raises(BuildStepError) as exc_info:
            wrapper.build()

        error = exc_info.value
        assert error.step == "explode"
        assert error.plugin_name == "bomb"
        assert error.path == "fragile"
        assert isinstance(error.__cause__, KeyError)
        assert "fragile" not in context.cache

    def test_core_step_failure_names_core(self, context):
        wrapper = define({"path": ("bad",), "options": {"lazy": True}, "defaults": lambda logic: 1 / 0})
        with pytest.raises(BuildStepError) as exc_info:
            wrapper.build()
        assert exc_info.value.step == "defaults"
        assert exc_info.value.plugin_name == "core"

    def test_statekit_errors_propagate_unchanged(self, context):
        wrapper = define({"path": ("bad",), "options": {"lazy": True}, "reducers": {"x": "nope"}})
        with pytest.raises(SpecificationError):
            wrapper.build()

    def test_lifecycle_phase_order(self, context, recorder):
        context.activate_plugin(recorder)
        wrapper = define({"path": ("observed",), "options": {"lazy": True}})
        unmount = wrapper.mount()
        unmount()
        assert recorder.phases() == [
            "after_plugin",
            "before_logic",
            "before_build",
            "after_logic",
            "after_build",
            "after_mount",
            "after_unmount",
        ]

    def test_after_build_fires_once_per_new_build(self, context, recorder):
        context.activate_plugin(recorder)
        wrapper = define({"path": ("once",), "options": {"lazy": True}})
        wrapper.build()
        wrapper.build()
        assert recorder.phases().count("after_build") == 1

    def test_logic_cache_written_in_after_logic_and_after_mount(self, context):
        def after_logic(logic, spec):
            logic.cache["built"] = True

        def after_mount(logic):
            logic.cache["mounted"] = True

        context.activate_plugin(
            Plugin(name="cacher", events={"after_logic": after_logic, "after_mount": after_mount})
        )
        wrapper = define({"path": ("cached",), "options": {"lazy": True}})
        assert wrapper.cache == {"built": True}
        wrapper.mount()
        assert wrapper.cache == {"built": True, "mounted": True}

    def test_deterministic_key_sets(self, context):
        spec = {
            "path": ("det",),
            "key": lambda props: props["id"],
            "actions": {"a": True, "b": True},
            "reducers": lambda logic: {"x": [0, {logic.action_creators.a: lambda s, p: s + 1}]},
        }
        wrapper = define(spec)
        first = wrapper.build({"id": 1})
        second = wrapper.build({"id": 2})
        for field in ("actions", "reducers", "selectors", "defaults"):
            assert list(getattr(first, field)) == list(getattr(second, field))


# ---------------------------------------------------------------------------
# Core steps
# ---------------------------------------------------------------------------


class TestConstantsAndActions:
    def test_constants(self, context):
        logic = define({"path": ("c",), "constants": ["SHOW_ALL", "SHOW_DONE"]}).build()
        assert logic.constants == {"SHOW_ALL": "SHOW_ALL", "SHOW_DONE": "SHOW_DONE"}
        assert logic.constants.SHOW_DONE == "SHOW_DONE"

    def test_constants_must_be_a_sequence(self, context):
        with pytest.raises(SpecificationError, match="constants"):
            define({"path": ("c",), "constants": "SHOW_ALL"})

    def test_action_creator_type_and_payload(self, counter_logic):
        creator = counter_logic.action_creators.increment
        assert isinstance(creator, ActionCreator)
        assert creator.type == "increment (scenes.counter)"
        assert str(creator) == creator.type
        assert creator(3) == {"type": "increment (scenes.counter)", "payload": {"amount": 3}}

    def test_underscores_become_spaces(self, context):
        logic = define({"path": ("t",), "actions": {"add_todo": lambda text: {"text": text}}}).build()
        assert logic.action_creators.add_todo.type == "add todo (t)"

    def test_non_callable_definition_wraps_value(self, counter_logic):
        assert counter_logic.action_creators.reset() == {
            "type": "reset (scenes.counter)",
            "payload": {"value": True},
        }

    def test_bound_action_dispatches_and_returns_action(self, context, counter_logic):
        counter_logic.mount()
        action = counter_logic.actions.increment(2)
        assert action == {"type": "increment (scenes.counter)", "payload": {"amount": 2}}
        assert context.store.get_state()["scenes"]["counter"] == {"count": 2}

    def test_dispatching_creator_output_equals_bound_action(self, context, counter_logic):
        counter_logic.mount()
        context.store.dispatch(counter_logic.action_creators.increment(5))
        assert counter_logic.values.count == 5
        counter_logic.actions.increment(5)
        assert counter_logic.values.count == 10


class TestReducers:
    def test_tuple_shapes(self, context):
        logic = define(
            {
                "path": ("shapes",),
                "actions": {"set": lambda v: v},
                "reducers": lambda logic: {
                    "plain": [1, {logic.action_creators.set: lambda s, p: p}],
                    "typed": [2, int, {logic.action_creators.set: lambda s, p: p}],
                    "options": [3, int, {"persist": True}, {logic.action_creators.set: lambda s, p: p}],
                    "custom": lambda state, action: (state or 0) + 1,
                },
            }
        ).build()
        assert logic.defaults == {"plain": 1, "typed": 2, "options": 3, "custom": None}
        assert logic.prop_types == {"typed": int, "options": int}
        assert logic.reducer_options == {"options": {"persist": True}}
        assert set(logic.reducers) == {"plain", "typed", "options", "custom"}

    def test_handler_keys_may_be_type_strings(self, context):
        wrapper = define(
            {
                "path": ("strings",),
                "options": {"lazy": True},
                "reducers": {"seen": [False, {"external event": lambda s, p: True}]},
            }
        )
        wrapper.mount()
        context.store.dispatch({"type": "external event"})
        assert wrapper.values.seen is True

    def test_defaults_override_tuple_defaults(self, context):
        logic = define(
            {"path": ("d",), "defaults": {"count": 10}, "reducers": {"count": [0, {}]}}
        ).build()
        assert logic.defaults.count == 10
        assert context.store.get_state()["d"] == {"count": 10}

    def test_callable_defaults_read_store_and_props(self, context):
        context.store.attach_reducer(("settings",), lambda state, action: state or {"page_size": 25})
        wrapper = define(
            {
                "path": ("d",),
                "key": lambda props: props["id"],
                "defaults": {"size": lambda state, props: state["settings"]["page_size"] + props["id"]},
                "reducers": {"size": [0, {}]},
            }
        )
        assert wrapper.build({"id": 1}).defaults.size == 26

    def test_bad_reducer_shapes(self, context):
        for definition in ([0], [0, 1, 2, 3, 4], [0, "not a mapping"], 5):
            with pytest.raises(SpecificationError):
                define({"path": ("bad",), "options": {"lazy": True}, "reducers": {"x": definition}}).build()

    def test_no_reducers_means_no_reducer(self, context):
        logic = define({"path": ("empty",)}).build()
        assert logic.reducer is None
        assert logic.selector is None
        assert context.store.get_state() == {}


class TestCombineReducers:
    def test_initial_state_from_defaults(self):
        reducer = combine_reducers({"a": lambda s, action: s}, {"a": 1})
        assert reducer(None, {"type": "init"}) == {"a": 1}

    def test_unchanged_returns_same_dict(self):
        reducer = combine_reducers({"a": lambda s, action: s, "b": lambda s, action: s}, {"a": 1, "b": []})
        state = reducer(None, {"type": "init"})
        assert reducer(state, {"type": "noop"}) is state

    def test_changed_returns_new_dict(self):
        reducer = combine_reducers({"a": lambda s, action: s + 1}, {"a": 0})
        state = {"a": 0}
        assert reducer(state, {"type": "x"}) == {"a": 1}


class TestSelectorsAndValues:
    def test_reducer_selectors(self, context, counter_logic):
        counter_logic.mount()
        state = context.store.get_state()
        assert counter_logic.build().selector(state) == {"count": 0}
        assert counter_logic.selectors.count(state) == 0

    def test_forward_references(self, context):
        wrapper = define(
            {
                "path": ("fwd",),
                "reducers": {"items": [[1, 2, 3], {}]},
                "selectors": lambda logic: {
                    "total": (lambda: [logic.selectors.doubled], sum),
                    "doubled": (lambda: [logic.selectors.items], lambda items: [i * 2 for i in items]),
                },
            }
        )
        assert wrapper.values.total == 12

    def test_selectors_memoize(self, context, counter_logic):
        counter_logic.mount()
        doubled = counter_logic.selectors.doubled
        assert counter_logic.values.doubled == 0
        counter_logic.actions.reset()
        assert counter_logic.values.doubled == 0
        assert doubled.recomputations == 1
        counter_logic.actions.increment()
        assert counter_logic.values.doubled == 2
        assert doubled.recomputations == 2

    def test_selector_prop_types(self, counter_logic):
        assert counter_logic.prop_types == {"count": int, "doubled": int}

    def test_values_view(self, context, counter_logic):
        counter_logic.mount()
        values = counter_logic.values
        assert values["count"] == 0
        assert "doubled" in values
        assert values.to_dict() == {"count": 0, "doubled": 0}
        with pytest.raises(AttributeError):
            values.missing

    def test_bad_selector_definition(self, context):
        with pytest.raises(SpecificationError, match="Selector"):
            define({"path": ("s",), "selectors": {"x": lambda state: 1}})


class TestLogicEvents:
    def test_handlers_stored_in_order(self, context):
        calls = []
        logic = define(
            {
                "path": ("ev",),
                "options": {"lazy": True},
                "events": {
                    "after_mount": [lambda: calls.append("a"), lambda: calls.append("b")],
                    "before_unmount": lambda: calls.append("c"),
                },
            }
        ).build()
        assert len(logic.events["after_mount"]) == 2
        assert len(logic.events["before_unmount"]) == 1

    def test_unknown_logic_event(self, context):
        with pytest.raises(SpecificationError, match="Unknown logic event"):
            define({"path": ("ev",), "events": {"on_click": lambda: None}})


class TestFieldNamesLikeMappingMethods:
    def test_actions_named_clear_and_update(self, context):
        wrapper = define(
            {
                "path": ("editor",),
                "options": {"lazy": True},
                "actions": {"clear": True, "update": lambda text: {"text": text}},
                "reducers": lambda logic: {
                    "text": [
                        "",
                        {
                            logic.action_creators.update: lambda state, p: p["text"],
                            logic.action_creators.clear: lambda state, p: "",
                        },
                    ],
                },
                "selectors": lambda logic: {
                    "items": (lambda: [logic.selectors.text], lambda text: text.split()),
                },
            }
        )
        wrapper.mount()

        action = wrapper.actions.update("a b")
        assert action["type"] == "update (editor)"
        assert wrapper.values.items == ["a", "b"]
        assert set(wrapper.actions) == {"clear", "update"}

        wrapper.actions.clear()
        assert wrapper.values.text == ""
        assert set(wrapper.actions) == {"clear", "update"}


# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------


class TestErrorReporting:
    def test_statekit_error_gets_plugin_step_and_path(self, context):
        wrapper = define({"path": ("bad",), "options": {"lazy": True}, "reducers": {"x": "nope"}})
        with pytest.raises(SpecificationError) as exc_info:
            wrapper.build()
        assert exc_info.value.context.plugin == "core"
        assert exc_info.value.context.step == "reducers"
        assert exc_info.value.context.path == "bad"

    def test_plugin_step_error_names_plugin(self, context):
        def strict(logic, spec, build):
            raise SpecificationError("strict plugin rejects this logic")

        context.activate_plugin(Plugin(name="strict", build_steps={"strict": strict}))
        with pytest.raises(SpecificationError) as exc_info:
            define({"path": ("checked",)})
        assert exc_info.value.context.plugin == "strict"
        assert exc_info.value.context.step == "strict"

    def test_values_of_unattached_logic_raise_key_error(self, counter_logic):
        with pytest.raises(KeyError):
            counter_logic.values.count

    def test_errors_inside_selectors_propagate(self, context):
        def explode(count):
            raise KeyError("inner")

        wrapper = define(
            {
                "path": ("fragile",),
                "reducers": {"count": [0, {}]},
                "selectors": lambda logic: {"broken": (lambda: [logic.selectors.count], explode)},
            }
        )
        with pytest.raises(KeyError, match="inner"):
            wrapper.values.broken

    def test_unknown_value_names_the_logic(self, counter_logic):
        with pytest.raises(AttributeError, match="has no selector 'missing'"):
            counter_logic.values.missing
