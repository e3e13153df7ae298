"""Tests for the keyed entity store and swap transitions."""

import pytest

from dota_scout.store.entity_store import EntityStore
from dota_scout.store.transitions import swap_entry


class TestEntityStore:
    """Tests for EntityStore primitives."""

    def test_get_missing_returns_none(self):
        """Missing ids yield None instead of raising."""
        store = EntityStore("teams")
        assert store.get("nope") is None
        assert store.delete("nope") is False

    def test_every_mutation_publishes_new_ref(self):
        """set, delete and touch each change the ref identity."""
        store = EntityStore("matches")
        refs = [store.ref]

        store.set(1, "a")
        refs.append(store.ref)
        store.touch()
        refs.append(store.ref)
        store.delete(1)
        refs.append(store.ref)

        assert len({id(r) for r in refs}) == 4
        assert store.version == 3

    def test_ref_is_a_snapshot(self):
        """An old ref keeps showing the contents it was published with."""
        store = EntityStore("players")
        store.set(1, "first")
        before = store.ref

        store.set(2, "second")

        assert dict(before) == {1: "first"}
        assert dict(store.ref) == {1: "first", 2: "second"}

    def test_ref_is_read_only(self):
        """The published ref cannot be used to mutate the store."""
        store = EntityStore("players")
        store.set(1, "x")
        with pytest.raises(TypeError):
            store.ref[2] = "y"

    def test_batch_refreshes_once(self):
        """Mutations inside batch() produce a single notification."""
        store = EntityStore("teams")
        seen = []
        store.subscribe(lambda ref: seen.append(dict(ref)))

        with store.batch():
            store.set("a", 1)
            store.delete("a")
            store.set("b", 2)

        assert seen == [{"b": 2}]

    def test_nested_batches_refresh_on_outer_exit(self):
        """Only the outermost batch publishes."""
        store = EntityStore("teams")
        seen = []
        store.subscribe(lambda ref: seen.append(dict(ref)))

        with store.batch():
            with store.batch():
                store.set("a", 1)
            assert seen == []
            store.set("b", 2)

        assert seen == [{"a": 1, "b": 2}]

    def test_batch_without_changes_does_not_notify(self):
        """An empty batch leaves the ref untouched."""
        store = EntityStore("teams")
        ref = store.ref
        with store.batch():
            pass
        assert store.ref is ref

    def test_unsubscribe(self):
        """Unsubscribed listeners are no longer called."""
        store = EntityStore("teams")
        seen = []
        unsubscribe = store.subscribe(lambda ref: seen.append(len(ref)))
        store.set("a", 1)
        unsubscribe()
        store.set("b", 2)
        assert seen == [1]

    def test_replace_all_and_clear(self):
        """replace_all swaps the contents, clear empties them."""
        store = EntityStore("heroes")
        store.set(1, "old")
        store.replace_all({2: "new", 3: "newer"})
        assert store.keys() == [2, 3]
        store.clear()
        assert len(store) == 0


class TestSwapEntry:
    """Tests for the swap_entry transition helper."""

    def test_new_entry_takes_old_position(self):
        """The replacement sits where the replaced entry was."""
        entries = {1: "a", 2: "b", 3: "c"}
        result = swap_entry(entries, 2, 9, "z")
        assert list(result.current.items()) == [(1, "a"), (9, "z"), (3, "c")]

    def test_input_is_not_mutated(self):
        """The previous state is returned untouched."""
        entries = {1: "a", 2: "b"}
        result = swap_entry(entries, 1, 5, "e")
        assert result.previous is entries
        assert entries == {1: "a", 2: "b"}
        assert result.changed

    def test_explicit_position(self):
        """A position argument overrides the old entry's slot."""
        result = swap_entry({1: "a", 2: "b", 3: "c"}, 1, 7, "g", position=2)
        assert list(result.current) == [2, 3, 7]

    def test_same_key_replaces_value(self):
        """Swapping a key for itself replaces only the value."""
        result = swap_entry({1: "a", 2: "b"}, 2, 2, "B")
        assert result.current == {1: "a", 2: "B"}

    def test_missing_old_key_raises(self):
        """Swapping an absent key is an error."""
        with pytest.raises(KeyError):
            swap_entry({1: "a"}, 2, 3, "c")

    def test_existing_new_key_raises(self):
        """The new key may not already name another entry."""
        with pytest.raises(ValueError):
            swap_entry({1: "a", 2: "b"}, 1, 2, "x")
