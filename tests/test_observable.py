"""Tests for observe(), Record, and ReactiveList."""

import json

from seedfx import Computed, ReactiveList, Record, is_observed, observe, watch


class TestObserve:
    def test_adopts_plain_dict(self):
        state = observe({"a": 1})
        assert isinstance(state, Record)
        assert is_observed(state)
        assert state["a"] == 1

    def test_idempotent(self):
        state = observe({"a": 1})
        dependency = state._dependency
        registry = state._watchers
        assert observe(state) is state
        assert state._dependency is dependency
        assert state._watchers is registry

    def test_instruments_record_in_place(self):
        record = Record(a=1)
        assert not is_observed(record)
        assert observe(record) is record
        assert is_observed(record)

    def test_scalars_and_frozen_pass_through(self):
        frozen = (1, {"a": 1})
        assert observe(frozen) is frozen
        assert observe(5) == 5
        assert observe("x") == "x"
        assert not is_observed(frozen)
        assert type(frozen[1]) is dict

    def test_nested_containers_adopted(self):
        state = observe({"user": {"name": "ada"}, "tags": ["x", {"y": 1}]})
        assert isinstance(state["user"], Record)
        assert isinstance(state["tags"], ReactiveList)
        assert isinstance(state["tags"][1], Record)
        assert is_observed(state["tags"][1])

    def test_seed_and_registry(self):
        state = observe({"user": {"name": "ada"}, "tags": [{"y": 1}]})
        assert state._seed is None
        assert state._watchers == []
        assert state["user"]._seed is state
        assert state["user"]._watchers is None
        assert state["tags"]._seed is state
        assert state["tags"][0]._seed is state

    def test_watchers_on_nested_go_to_root_registry(self):
        state = observe({"user": {"name": "ada"}})
        w = watch(state["user"], "name", None)
        assert state._watchers == [w]

    def test_self_reference_terminates(self):
        data = {"name": "loop"}
        data["self"] = data
        state = observe(data)
        assert state["self"] is state

    def test_shared_plain_child_adopted_once(self):
        shared = {"n": 1}
        state = observe({"left": shared, "right": shared})
        assert state["left"] is state["right"]

    def test_bookkeeping_hidden(self):
        state = observe({"a": 1, "b": [1, 2], "c": {"d": None}})
        assert list(state) == ["a", "b", "c"]
        assert state == {"a": 1, "b": [1, 2], "c": {"d": None}}
        assert json.loads(json.dumps(state)) == {"a": 1, "b": [1, 2], "c": {"d": None}}
        assert not hasattr(state, "__dict__")


class TestRecord:
    def test_read_subscribes_and_write_notifies(self):
        state = observe({"a": 1})
        log = []
        watch(state, lambda: state["a"], lambda new, old: log.append((new, old)))
        state["a"] = 2
        assert log == [(2, 1)]

    def test_same_value_suppressed(self):
        state = observe({"a": 1})
        log = []
        watch(state, lambda: state["a"], lambda new, old: log.append((new, old)))
        state["a"] = 1
        assert log == []

    def test_bool_and_int_are_different_values(self):
        state = observe({"flag": 1})
        log = []
        watch(state, lambda: state["flag"], lambda new, old: log.append((new, old)))
        state["flag"] = True
        assert log == [(True, 1)]

    def test_equal_container_still_notifies(self):
        """Containers are compared by identity, never structurally."""
        state = observe({"items": [1, 2]})
        calls = []
        watch(state, lambda: state["items"], lambda new, old: calls.append(new))
        state["items"] = [1, 2]
        assert len(calls) == 1
        assert isinstance(state["items"], ReactiveList)

    def test_new_key_notifies_container(self):
        state = observe({"a": 1})
        log = []
        watch(state, lambda: sorted(state), lambda new, old: log.append(new))
        state["b"] = 2
        assert log == [["a", "b"]]

    def test_delete_notifies_container(self):
        state = observe({"a": 1, "b": 2})
        log = []
        watch(state, lambda: len(state), lambda new, old: log.append((new, old)))
        del state["b"]
        assert log == [(1, 2)]

    def test_missing_key_read_tracks_membership(self):
        state = observe({})
        log = []
        watch(state, lambda: state.get("later", "none"), lambda new, old: log.append(new))
        state["later"] = "here"
        assert log == ["here"]

    def test_nested_new_key_reaches_parent_reader(self):
        state = observe({"user": {"name": "ada"}})
        log = []
        watch(state, lambda: state["user"], lambda new, old: log.append(new))
        state["user"]["email"] = "ada@example.com"
        assert len(log) == 1

    def test_update_pop_setdefault_clear(self):
        state = observe({"a": 1})
        log = []
        watch(state, lambda: len(state), lambda new, old: log.append(new))
        state.update({"b": 2}, c=3)
        assert state.pop("b") == 2
        assert state.setdefault("a", 99) == 1
        assert state.setdefault("d", 4) == 4
        state.clear()
        assert log == [2, 3, 2, 3, 0]

    def test_pop_default_and_popitem(self):
        state = observe({"a": 1, "b": 2})
        assert state.pop("zzz", None) is None
        assert state.popitem() == ("b", 2)
        assert dict(state) == {"a": 1}

    def test_values_items_copy_read_through_accessors(self):
        state = observe({"a": 1, "double": Computed(lambda: state["a"] * 2)})
        assert state.values() == [1, 2]
        assert state.items() == [("a", 1), ("double", 2)]
        assert state.copy() == {"a": 1, "double": 2}

    def test_unobserved_record_is_plain(self):
        record = Record(a=1)
        record["b"] = 2
        del record["a"]
        assert record == {"b": 2}
        assert record.pop("b") == 2
        assert record == {}

    def test_reversed_tracks_membership(self):
        state = observe({"a": 1})
        log = []
        watch(state, lambda: list(reversed(state)), lambda new, old: log.append(new))
        state["b"] = 2
        assert log == [["b", "a"]]

    def test_equality_tracks_reads(self):
        state = observe({"a": 1})
        log = []
        watch(state, lambda: state == {"a": 2}, lambda new, old: log.append(new))
        state["a"] = 2
        state["b"] = 3
        assert log == [True, False]

    def test_equality_reads_computed_values(self):
        state = observe({"a": 1, "t": Computed(lambda: state["a"] + 1)})
        assert state == {"a": 1, "t": 2}
        assert {"a": 1, "t": 2} == state
        assert not state != {"a": 1, "t": 2}
        assert state != {"a": 1, "t": Computed(lambda: 2)}

    def test_equality_between_records(self):
        left = observe({"a": 1, "t": Computed(lambda: left["a"] * 2)})
        right = observe({"a": 1, "t": 2})
        assert left == right
        assert right == left
        assert Record(a=1, t=2) == left

    def test_union_reads_computed_values(self):
        state = observe({"a": 1, "t": Computed(lambda: state["a"] + 1)})
        assert state | {"b": 0} == {"a": 1, "t": 2, "b": 0}
        assert {"b": 0} | state == {"b": 0, "a": 1, "t": 2}
        assert type(state | {}) is dict

    def test_repr_shows_computed_value(self):
        state = observe({"a": 1, "t": Computed(lambda: state["a"] + 1)})
        assert repr(state) == "Record({'a': 1, 't': 2})"

    def test_repr_of_cycle_terminates(self):
        data = {"name": "loop"}
        data["self"] = data
        state = observe(data)
        assert repr(state) == "Record({'name': 'loop', 'self': ...})"

    def test_repr(self):
        assert repr(observe({"a": 1})) == "Record({'a': 1})"


class TestReactiveList:
    def test_read_tracks_and_mutations_notify(self):
        state = observe({"items": [1, 2]})
        log = []
        watch(state, lambda: sum(state["items"]), lambda new, old: log.append(new))
        items = state["items"]
        items.append(3)
        items.pop()
        items.insert(0, 10)
        items.remove(10)
        items[0] = 5
        del items[0]
        items.extend([4, 4])
        items.clear()
        assert log == [6, 3, 13, 3, 7, 2, 10, 0]

    def test_same_index_value_suppressed(self):
        items = observe([1, 2])
        log = []
        watch(items, lambda: [x for x in items], lambda new, old: log.append(new))
        items[0] = 1
        assert log == []

    def test_sort_reverse_and_inplace_ops_notify(self):
        items = observe([3, 1, 2])
        log = []
        watch(items, lambda: [x for x in items], lambda new, old: log.append(new))
        items.sort()
        items.reverse()
        items += [0]
        items *= 2
        assert log == [[1, 2, 3], [3, 2, 1], [3, 2, 1, 0], [3, 2, 1, 0, 3, 2, 1, 0]]

    def test_appended_items_are_instrumented(self):
        state = observe({"todos": []})
        state["todos"].append({"done": False})
        todo = state["todos"][0]
        assert isinstance(todo, Record)
        assert todo._seed is state

    def test_element_change_reaches_property_reader(self):
        state = observe({"todos": [{"done": False}]})
        log = []
        watch(state, lambda: state["todos"], lambda new, old: log.append(new))
        state["todos"][0]["note"] = "x"
        assert len(log) == 1

    def test_unobserved_list_is_plain(self):
        items = ReactiveList([3, 1, 2])
        items.sort()
        items.append({"a": 1})
        assert items == [1, 2, 3, {"a": 1}]
        assert type(items[3]) is dict

    def test_copy_tracks(self):
        items = observe([1, 2])
        log = []
        watch(items, lambda: items.copy(), lambda new, old: log.append(new))
        items.append(3)
        assert log == [[1, 2, 3]]
        assert type(items.copy()) is list

    def test_reversed_tracks(self):
        items = observe([1, 2])
        log = []
        watch(items, lambda: list(reversed(items)), lambda new, old: log.append(new))
        items.append(3)
        assert log == [[3, 2, 1]]

    def test_comparisons_track(self):
        items = observe([1, 2])
        equal = []
        less = []
        watch(items, lambda: items == [1, 2, 3], lambda new, old: equal.append(new))
        watch(items, lambda: items < [1, 3], lambda new, old: less.append(new))
        items.append(3)
        assert equal == [True]
        assert less == []
        items[1] = 5
        assert equal == [False]
        assert less == [False]

    def test_reflected_comparison_tracks(self):
        items = observe([1])
        log = []
        watch(items, lambda: [1, 2] != items, lambda new, old: log.append(new))
        items.append(2)
        assert log == [False]

    def test_comparison_tracks_both_lists(self):
        state = observe({"left": [1], "right": [1]})
        left, right = state["left"], state["right"]
        log = []
        watch(state, lambda: left >= right, lambda new, old: log.append(new))
        right.append(0)
        assert log == [False]

    def test_add_and_mul_track(self):
        items = observe([1])
        sums = []
        products = []
        watch(items, lambda: items + [0], lambda new, old: sums.append(new))
        watch(items, lambda: 2 * items, lambda new, old: products.append(new))
        items.append(2)
        assert sums == [[1, 2, 0]]
        assert products == [[1, 2, 1, 2]]
        assert type(items * 2) is list

    def test_repr(self):
        assert repr(observe([1, 2])) == "ReactiveList([1, 2])"
