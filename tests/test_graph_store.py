"""
Tests for GraphStore - the canonical node/edge collection.

Covers id allocation, child creation, subtree deletion, renaming, retyping,
overlay bookkeeping and the listener contract used for persistence.
"""

import random

import pytest

from skillmap.errors import NoSuchParentError
from skillmap.graph_store import GraphStore
from skillmap.models import (
    DEFAULT_LABEL,
    ROOT_ID,
    ROOT_POSITION,
    Edge,
    Node,
    NodeType,
    OverlayFamily,
    OverlayNode,
    Point,
)


@pytest.fixture
def store():
    return GraphStore()


@pytest.fixture
def events(store):
    """List of canonical flags passed to store listeners."""
    seen = []
    store.subscribe(seen.append)
    return seen


def make_overlay(index=0, target_id=ROOT_ID):
    return OverlayNode(
        id=f"overlay-test-{index}",
        label="assertion",
        family=OverlayFamily.COLOR_PICKER,
        position=Point(0, 0),
        target_id=target_id,
    )


def ids(store):
    return sorted(n.id for n in store.nodes)


class TestInitialState:

    def test_fresh_store_has_locked_root(self, store):
        assert ids(store) == [ROOT_ID]
        root = store.get_node(ROOT_ID)
        assert root.locked
        assert root.label == DEFAULT_LABEL
        assert root.type == NodeType.TOPIC
        assert root.position == ROOT_POSITION
        assert store.edges == []
        assert store.overlays == []

    def test_missing_root_is_restored(self):
        store = GraphStore([Node(id="node-2")], [])
        assert store.has_node(ROOT_ID)
        assert store.get_node(ROOT_ID).locked

    def test_unlocked_root_gets_locked(self):
        store = GraphStore([Node(id=ROOT_ID, label="mine")], [])
        root = store.get_node(ROOT_ID)
        assert root.locked
        assert root.label == "mine"

    def test_dangling_and_duplicate_edges_dropped(self):
        nodes = [Node(id=ROOT_ID), Node(id="node-2")]
        edges = [Edge(ROOT_ID, "node-2"), Edge(ROOT_ID, "node-2"), Edge("node-2", "node-9")]
        store = GraphStore(nodes, edges)
        assert store.edges == [Edge(ROOT_ID, "node-2")]

    def test_duplicate_node_ids_keep_first(self):
        store = GraphStore([Node(id=ROOT_ID), Node(id="node-2", label="a"), Node(id="node-2", label="b")])
        assert store.get_node("node-2").label == "a"
        assert len(store.nodes) == 2


class TestAddChild:

    def test_add_child_to_root(self, store):
        new_id = store.add_child(ROOT_ID)
        assert new_id == "node-2"
        assert ids(store) == [ROOT_ID, "node-2"]
        assert store.edges == [Edge(ROOT_ID, "node-2")]
        child = store.get_node("node-2")
        assert child.label == "Node 2"
        assert child.type == NodeType.TOPIC
        assert not child.locked

    def test_child_is_placed_right_of_parent(self, store):
        new_id = store.add_child(ROOT_ID)
        assert store.get_node(new_id).position == Point(ROOT_POSITION.x + 100, ROOT_POSITION.y)

    def test_unknown_parent_raises_and_changes_nothing(self, store, events):
        with pytest.raises(NoSuchParentError) as exc:
            store.add_child("node-7")
        assert exc.value.operation == "add_child"
        assert "node-7" in str(exc.value)
        assert ids(store) == [ROOT_ID]
        assert events == []

    def test_add_child_notifies_canonical(self, store, events):
        store.add_child(ROOT_ID)
        assert events == [True]

    def test_lowest_free_id_is_reused(self, store):
        assert [store.add_child(ROOT_ID) for _ in range(3)] == ["node-2", "node-3", "node-4"]
        store.delete_subtree("node-3")
        assert store.add_child(ROOT_ID) == "node-3"
        assert store.add_child(ROOT_ID) == "node-5"

    def test_child_label_follows_reused_id(self, store):
        for _ in range(3):
            store.add_child(ROOT_ID)
        store.delete_subtree("node-3")
        store.add_child("node-4")
        assert store.get_node("node-3").label == "Node 3"
        assert store.get_node("node-4").label == "Node 4"

    def test_foreign_ids_do_not_block_numbering(self):
        store = GraphStore([Node(id=ROOT_ID), Node(id="imported"), Node(id="node-x")])
        assert store.add_child(ROOT_ID) == "node-2"

    def test_random_add_delete_sequence_keeps_ids_unique(self):
        rng = random.Random(1234)
        store = GraphStore()
        for _ in range(200):
            existing = [n.id for n in store.nodes]
            if rng.random() < 0.6:
                used = {int(nid.split("-")[1]) for nid in existing}
                expected = next(n for n in range(1, len(used) + 2) if n not in used)
                new_id = store.add_child(rng.choice(existing))
                assert new_id == f"node-{expected}"
            else:
                store.delete_subtree(rng.choice(existing))

            node_ids = [n.id for n in store.nodes]
            assert len(node_ids) == len(set(node_ids))
            assert ROOT_ID in node_ids
            for edge in store.edges:
                assert store.has_node(edge.source) and store.has_node(edge.target)


class TestDeleteSubtree:

    def test_delete_chain(self, store):
        store.add_child(ROOT_ID)  # node-2
        store.add_child("node-2")  # node-3
        removed = store.delete_subtree("node-2")
        assert removed == {"node-2", "node-3"}
        assert ids(store) == [ROOT_ID]
        assert store.edges == []

    def test_delete_leaves_siblings(self, store):
        store.add_child(ROOT_ID)  # node-2
        store.add_child(ROOT_ID)  # node-3
        store.add_child("node-2")  # node-4
        store.add_child("node-3")  # node-5
        store.delete_subtree("node-2")
        assert ids(store) == [ROOT_ID, "node-3", "node-5"]
        assert store.edges == [Edge(ROOT_ID, "node-3"), Edge("node-3", "node-5")]

    def test_delete_root_is_noop(self, store, events):
        store.add_child(ROOT_ID)
        events.clear()
        assert store.delete_subtree(ROOT_ID) == set()
        assert ids(store) == [ROOT_ID, "node-2"]
        assert events == []

    def test_delete_unknown_is_noop(self, store, events):
        assert store.delete_subtree("node-99") == set()
        assert events == []

    def test_delete_never_removes_root_through_cycle(self):
        nodes = [Node(id=ROOT_ID), Node(id="node-2")]
        edges = [Edge(ROOT_ID, "node-2"), Edge("node-2", ROOT_ID)]
        store = GraphStore(nodes, edges)
        assert store.delete_subtree("node-2") == {"node-2"}
        assert ids(store) == [ROOT_ID]
        assert store.edges == []

    def test_delete_drops_overlays_of_removed_nodes(self, store):
        store.add_child(ROOT_ID)
        store.show_overlays([make_overlay(0, "node-2"), make_overlay(1, ROOT_ID)])
        store.delete_subtree("node-2")
        assert [o.target_id for o in store.overlays] == [ROOT_ID]


class TestRename:

    def test_rename_trims(self, store):
        assert store.rename_node(ROOT_ID, "  Machine Learning  ")
        assert store.get_node(ROOT_ID).label == "Machine Learning"

    def test_rename_root_is_allowed(self, store):
        store.rename_node(ROOT_ID, "My Skills")
        assert store.get_node(ROOT_ID).label == "My Skills"
        assert store.get_node(ROOT_ID).locked

    def test_long_text_is_balanced(self, store):
        store.rename_node(ROOT_ID, "the quick brown fox jumps over the lazy dog")
        assert store.get_node(ROOT_ID).label == "the quick brown fox\njumps over the lazy\ndog"

    def test_unchanged_words_are_a_noop(self, store, events):
        fits = []
        store.set_fit_scheduler(fits.append)
        store.apply_fit(ROOT_ID, "new\ntopic", 26)
        events.clear()
        assert not store.rename_node(ROOT_ID, "new topic")
        assert store.get_node(ROOT_ID).label == "new\ntopic"
        assert store.get_node(ROOT_ID).font_size == 26
        assert events == []
        assert fits == []

    def test_rename_schedules_fit(self, store):
        fits = []
        store.set_fit_scheduler(fits.append)
        store.rename_node(ROOT_ID, "Statistics")
        assert fits == [ROOT_ID]

    def test_rename_unknown_node_is_noop(self, store, events):
        assert not store.rename_node("node-5", "anything")
        assert events == []


class TestSetType:

    def test_set_type_on_root(self, store, events):
        store.set_type(ROOT_ID, "blocker")
        assert store.get_node(ROOT_ID).type == NodeType.BLOCKER
        assert events == [True]

    def test_set_type_accepts_enum(self, store):
        store.set_type(ROOT_ID, NodeType.QUESTION)
        assert store.get_node(ROOT_ID).type == NodeType.QUESTION

    @pytest.mark.parametrize("falsy", [None, ""])
    def test_falsy_type_changes_nothing(self, store, events, falsy):
        before = store.get_node(ROOT_ID)
        store.set_type(ROOT_ID, falsy)
        assert store.get_node(ROOT_ID) == before
        assert events == []

    def test_same_type_does_not_notify(self, store, events):
        store.set_type(ROOT_ID, "topic")
        assert events == []

    def test_invalid_type_raises(self, store):
        with pytest.raises(ValueError):
            store.set_type(ROOT_ID, "purple")
        assert store.get_node(ROOT_ID).type == NodeType.TOPIC

    def test_unknown_node_is_ignored(self, store, events):
        store.set_type("node-3", "assertion")
        assert events == []


class TestFitAndMove:

    def test_apply_fit_notifies_only_on_change(self, store, events):
        store.apply_fit(ROOT_ID, "new\ntopic", 26)
        store.apply_fit(ROOT_ID, "new\ntopic", 26)
        assert events == [True]

    def test_apply_fit_records_fit_found(self, store):
        store.apply_fit(ROOT_ID, "new topic", 6, fitted=False)
        assert store.get_node(ROOT_ID).fit_found is False

    def test_apply_fit_missing_node_ignored(self, store, events):
        store.apply_fit("node-4", "x", 10)
        assert events == []

    def test_root_cannot_move(self, store):
        assert not store.move_node(ROOT_ID, Point(1, 1))
        assert store.get_node(ROOT_ID).position == ROOT_POSITION

    def test_child_moves(self, store):
        store.add_child(ROOT_ID)
        assert store.move_node("node-2", Point(10, 20))
        assert store.get_node("node-2").position == Point(10, 20)


class TestOverlays:

    def test_show_overlays_is_not_canonical(self, store, events):
        store.show_overlays([make_overlay()])
        assert len(store.overlays) == 1
        assert events == [False]

    def test_show_replaces_previous_family(self, store):
        store.show_overlays([make_overlay(0), make_overlay(1)])
        store.show_overlays([make_overlay(2)])
        assert [o.id for o in store.overlays] == ["overlay-test-2"]

    def test_clear_overlays_is_idempotent(self, store, events):
        store.show_overlays([make_overlay()])
        store.clear_overlays()
        store.clear_overlays()
        assert store.overlays == []
        assert events == [False, False]

    def test_clear_without_overlays_does_not_notify(self, store, events):
        store.clear_overlays()
        assert events == []

    def test_get_overlay(self, store):
        store.show_overlays([make_overlay(3)])
        assert store.get_overlay("overlay-test-3").label == "assertion"
        assert store.get_overlay("overlay-test-4") is None
        assert store.get_overlay(None) is None


class TestReplace:

    def test_replace_clears_overlays_and_notifies(self, store, events):
        store.show_overlays([make_overlay()])
        events.clear()
        store.replace([Node(id=ROOT_ID, label="Imported"), Node(id="node-2")], [Edge(ROOT_ID, "node-2")])
        assert store.overlays == []
        assert ids(store) == [ROOT_ID, "node-2"]
        assert store.get_node(ROOT_ID).locked
        assert events == [True]
