"""Tests for ObjectNode: reads, writes, keys and deletion."""

import logging

import pytest

from deepstate import UnknownPropertyError, autorun, reify


class TestReadWrite:
    def test_attribute_and_item_access(self):
        state = reify({"count": 0, "user": {"name": "Jane"}}).state
        state.count = 5
        assert state.count == 5
        state["count"] = 6
        assert state["count"] == 6
        state.user["name"] = "John"
        assert state.user.name == "John"

    def test_augmented_assignment(self):
        state = reify({"count": 1}).state
        state.count += 2
        assert state.count == 3

    def test_missing_attribute(self):
        state = reify({"count": 0}).state
        with pytest.raises(AttributeError, match="no property 'missing'"):
            state.missing
        assert not hasattr(state, "missing")
        assert getattr(state, "missing", None) is None

    def test_missing_item(self):
        state = reify({"count": 0}).state
        with pytest.raises(KeyError):
            state["missing"]

    def test_writing_a_dict_over_none_builds_a_node(self):
        state = reify({"user": None}).state
        state.user = {"name": "Jane"}
        assert state.user.name == "Jane"
        assert state.user.to_json() == {"name": "Jane"}

    def test_writes_notify(self):
        state = reify({"user": {"name": "Jane"}}).state
        log = []
        autorun(lambda: log.append(state.user.name))
        state.user.name = "John"
        assert log == ["Jane", "John"]

    def test_equal_write_does_not_notify(self):
        state = reify({"count": 1}).state
        log = []
        autorun(lambda: log.append(state.count))
        state.count = 1
        assert log == [1]


class TestKeys:
    def test_iteration_len_contains(self):
        state = reify({"a": 1, "b": 2, "sum": lambda self: self.a + self.b}).state
        assert list(state) == ["a", "b", "sum"]
        assert len(state) == 3
        assert "a" in state
        assert "c" not in state
        assert "$a" not in state  # escape keys are never members

    def test_method_names_are_read_only_attributes(self):
        state = reify({"to_json": 1}).state
        assert state["to_json"] == 1
        with pytest.raises(AttributeError, match="read-only attribute"):
            state.to_json = 2
        state["to_json"] = 2
        assert state["to_json"] == 2
        assert state.to_json() == {"to_json": 2}

    def test_repr(self):
        state = reify({"count": 0}).state
        assert repr(state) == "ObjectNode({'count': 0})"


class TestStrictMode:
    def test_rejects_new_keys(self):
        state = reify({"count": 0}).state
        with pytest.raises(UnknownPropertyError, match=r"Cannot add new property 'newProp' in strict mode\."):
            state.newProp = 1
        assert "newProp" not in state

    def test_rejects_new_nested_keys(self):
        state = reify({"user": {"name": "Jane"}}).state
        with pytest.raises(UnknownPropertyError) as info:
            state.user["age"] = 30
        assert info.value.key == "age"
        assert info.value.mode == "strict"

    def test_is_an_attribute_error(self):
        state = reify({}).state
        with pytest.raises(AttributeError):
            state.anything = 1

    def test_delete_resets_to_none(self):
        state = reify({"count": 3}).state
        log = []
        autorun(lambda: log.append(state.count))
        del state.count
        assert state.count is None
        assert "count" in state
        assert log == [3, None]

    def test_delete_unknown_key(self):
        state = reify({"count": 3}).state
        with pytest.raises(UnknownPropertyError, match=r"Cannot delete property 'nope' in strict mode\."):
            del state["nope"]


class TestPermissiveMode:
    def test_accepts_new_keys(self, caplog):
        state = reify({"count": 0}, permissive=True).state
        with caplog.at_level(logging.DEBUG, logger="deepstate.node"):
            state.newProp = "hello"
        assert state.newProp == "hello"
        assert "added property 'newProp'" in caplog.text

    def test_new_dict_becomes_a_node(self):
        state = reify({}, permissive=True).state
        state.profile = {"name": "Jane"}
        state.profile.age = 30
        assert state.profile.to_json() == {"name": "Jane", "age": 30}

    def test_new_keys_notify_iteration(self):
        state = reify({"a": 1}, permissive=True).state
        log = []
        autorun(lambda: log.append(list(state)))
        state.b = 2
        assert log == [["a"], ["a", "b"]]

    def test_delete_removes_key(self):
        state = reify({"a": 1, "b": 2}, permissive=True).state
        del state.a
        assert "a" not in state
        assert list(state) == ["b"]
        with pytest.raises(AttributeError):
            state.a

    def test_delete_unknown_key(self):
        state = reify({}, permissive=True).state
        with pytest.raises(UnknownPropertyError, match="in permissive mode"):
            del state.nope

    def test_deleted_key_can_come_back(self):
        state = reify({"a": 1}, permissive=True).state
        del state.a
        state.a = {"x": 1}
        assert state.a.x == 1
