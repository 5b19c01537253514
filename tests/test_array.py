"""Tests for ArrayNode: list reads, list methods and cell identity."""

import pytest

from deepstate import (
    EscapeHatchAssignmentError,
    ObjectNode,
    ReplacementDisallowedError,
    Signal,
    autorun,
    reify,
)


def _todos(*items):
    return reify({"todos": list(items)}).state.todos


class TestReads:
    def test_basic_operations(self):
        todos = _todos(1, 2, 3)
        assert len(todos) == 3
        assert todos[0] == 1
        assert todos[-1] == 3
        assert todos[1:] == [2, 3]
        assert list(todos) == [1, 2, 3]
        assert 2 in todos
        assert todos.index(3) == 2
        assert todos.count(1) == 1
        assert list(reversed(todos)) == [3, 2, 1]

    def test_out_of_range(self):
        todos = _todos(1)
        with pytest.raises(IndexError):
            todos[5]
        with pytest.raises(IndexError):
            todos[5] = 1

    def test_nested_items_are_nodes(self):
        todos = _todos({"text": "a", "done": False})
        assert isinstance(todos[0], ObjectNode)
        todos[0].done = True
        assert todos.to_json() == [{"text": "a", "done": True}]

    def test_computed_items(self):
        state = reify({"xs": [1, lambda self: self[0] + 1]}).state
        assert state.xs[1] == 2
        state.xs[0] = 10
        assert state.xs[1] == 11
        assert state.xs.to_json() == [10, None]

    def test_repr(self):
        assert repr(_todos(1, 2)) == "ArrayNode([1, 2])"


class TestMutations:
    def test_setitem(self):
        todos = _todos(1, 2, 3)
        todos[1] = 20
        assert list(todos) == [1, 20, 3]

    def test_slice_assignment(self):
        todos = _todos(1, 2, 3, 4)
        todos[1:3] = ["a"]
        assert list(todos) == [1, "a", 4]
        with pytest.raises(ValueError):
            todos[::2] = [0, 0]

    def test_append_extend_iadd(self):
        todos = _todos()
        log = []
        autorun(lambda: log.append(list(todos)))
        todos.append(1)
        todos.extend([2, 3])
        todos += [4]
        assert log == [[], [1], [1, 2, 3], [1, 2, 3, 4]]

    def test_extend_with_nothing_does_not_notify(self):
        todos = _todos(1)
        log = []
        autorun(lambda: log.append(len(todos)))
        todos.extend([])
        assert log == [1]

    def test_insert_remove_clear(self):
        todos = _todos(1, 2, 3)
        todos.insert(1, 99)
        assert list(todos) == [1, 99, 2, 3]
        todos.remove(99)
        assert list(todos) == [1, 2, 3]
        with pytest.raises(ValueError):
            todos.remove(99)
        todos.clear()
        assert list(todos) == []

    def test_pop(self):
        todos = _todos(1, 2, 3)
        assert todos.pop() == 3
        assert todos.pop(0) == 1
        assert list(todos) == [2]
        todos.pop()
        with pytest.raises(IndexError, match="pop from empty list"):
            todos.pop()

    def test_pop_returns_the_node(self):
        todos = _todos({"text": "a"})
        item = todos.pop()
        assert isinstance(item, ObjectNode)
        assert item.text == "a"

    def test_sort(self):
        todos = _todos(3, 1, 2)
        todos.sort()
        assert list(todos) == [1, 2, 3]
        todos.sort(reverse=True)
        assert list(todos) == [3, 2, 1]

    def test_sort_nodes_by_key(self):
        todos = _todos({"n": 2}, {"n": 1})
        todos.sort(key=lambda item: item.n)
        assert todos.to_json() == [{"n": 1}, {"n": 2}]

    def test_reverse(self):
        todos = _todos(1, 2, 3)
        todos.reverse()
        assert list(todos) == [3, 2, 1]

    def test_splice(self):
        todos = _todos(1, 2, 3, 4)
        assert todos.splice(1, 2) == [2, 3]
        assert list(todos) == [1, 4]
        assert todos.splice(1, 0, "a", "b") == []
        assert list(todos) == [1, "a", "b", 4]
        assert todos.splice(-1) == [4]
        assert todos.splice(10, 1, "z") == []
        assert list(todos) == [1, "a", "b", "z"]

    def test_callables_are_rejected(self):
        todos = _todos()
        with pytest.raises(TypeError):
            todos.append(lambda: 1)

    def test_growing_is_allowed_in_strict_mode(self):
        todos = _todos()
        todos.append({"text": "a"})
        assert len(todos) == 1


class TestDeletion:
    def test_del_leaves_a_hole(self):
        todos = _todos(1, 2)
        log = []
        autorun(lambda: log.append(todos[0]))
        del todos[0]
        assert todos[0] is None
        assert len(todos) == 2
        assert todos.to_json() == [None, 2]
        assert log[-1] is None

    def test_plain_string_index_writes(self):
        todos = _todos(1)
        with pytest.raises(TypeError, match="list indices must be integers"):
            todos["0"] = 5
        with pytest.raises(TypeError, match="list indices must be integers"):
            del todos["0"]
        with pytest.raises(EscapeHatchAssignmentError):
            todos["$0"] = 5
        assert list(todos) == [1]

    def test_slice_delete_is_unsupported(self):
        todos = _todos(1, 2)
        with pytest.raises(TypeError, match="splice"):
            del todos[0:1]


class TestCellIdentity:
    def test_cells_stay_per_index(self):
        todos = _todos("a", "b")
        first_cell = todos["$0"]
        todos.insert(0, "z")
        assert todos["$0"] is first_cell
        assert first_cell.value == "z"

    def test_nodes_move_with_their_values(self):
        todos = _todos({"n": 1}, {"n": 2})
        first = todos[0]
        todos.insert(0, {"n": 0})
        assert todos[1] is first
        assert [item.n for item in todos] == [0, 1, 2]

    def test_equal_values_in_distinct_nodes_are_not_confused(self):
        todos = _todos({"n": 1}, {"n": 1})
        second = todos[1]
        todos.reverse()
        assert todos[0] is second

    def test_length_subscribers_hear_about_appends(self):
        todos = _todos()
        log = []
        autorun(lambda: log.append(len(todos)))
        todos.append(1)
        todos.pop()
        assert log == [0, 1, 0]


class TestReplacement:
    def test_deep_element_cannot_be_replaced(self):
        todos = _todos({"text": "a"})
        with pytest.raises(ReplacementDisallowedError):
            todos[0] = {"text": "b"}

    def test_escape_reads(self):
        todos = _todos(1, {"x": 1})
        assert isinstance(todos["$0"], Signal)
        assert todos["$1"] is todos[1]
        assert todos["$9"] is None
        assert todos["$x"] is None
        with pytest.raises(TypeError):
            todos["0"]
