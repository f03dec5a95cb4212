"""Tests for statekit.core.fields."""

import pytest

from statekit.core.fields import FieldMap, as_dict, get_in, path_to_string


class TestFieldMap:
    def test_attribute_and_item_access(self):
        fields = FieldMap(add_todo="x")
        assert fields.add_todo == "x"
        assert fields["add_todo"] == "x"

    def test_missing_attribute_raises_attribute_error(self):
        with pytest.raises(AttributeError):
            FieldMap().missing

    def test_dir_lists_keys(self):
        assert "todos" in dir(FieldMap(todos=[]))


class TestPaths:
    def test_get_in(self):
        assert get_in({"a": {"b": {"c": 1}}}, ("a", "b", "c")) == 1

    def test_get_in_missing_segment(self):
        with pytest.raises(KeyError):
            get_in({"a": {}}, ("a", "b"))

    def test_path_to_string(self):
        assert path_to_string(("scenes", "todo", 5)) == "scenes.todo.5"


class TestFieldNamesShadowingMethods:
    def test_field_wins_over_mapping_method(self):
        fields = FieldMap(clear="clear action", update="update action", items=["a"])
        assert fields.clear == "clear action"
        assert fields.update == "update action"
        assert fields.items == ["a"]
        assert len(fields) == 3

    def test_methods_work_when_not_shadowed(self):
        fields = FieldMap(a=1)
        fields.update(b=2)
        assert sorted(fields.items()) == [("a", 1), ("b", 2)]
        assert fields.get("missing") is None

    def test_as_dict_ignores_shadowing_fields(self):
        fields = FieldMap(keys="k", items="i")
        assert as_dict(fields) == {"keys": "k", "items": "i"}

    def test_equality_with_plain_dict(self):
        assert FieldMap(items=1) == {"items": 1}
        assert FieldMap(a=1) != {"a": 2}
