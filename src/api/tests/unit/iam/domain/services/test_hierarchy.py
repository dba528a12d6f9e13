"""Unit tests for the tree traversal helpers."""

from types import SimpleNamespace

from iam.domain.services import build_tree, collect_ancestors, collect_descendant_ids


def tree(edges):
    """Build a find_children callable from (parent, child) pairs."""

    def find_children(parent_id):
        return [
            SimpleNamespace(id=child) for parent, child in edges if parent == parent_id
        ]

    return find_children


class TestCollectDescendantIds:
    """Tests for collect_descendant_ids()."""

    def test_collects_all_levels(self):
        find_children = tree([("a", "b"), ("b", "c"), ("a", "d"), ("x", "y")])

        assert collect_descendant_ids("a", find_children) == {"b", "c", "d"}

    def test_leaf_has_no_descendants(self):
        assert collect_descendant_ids("c", tree([("a", "b")])) == set()

    def test_terminates_on_corrupt_cycle(self):
        """A cycle already in storage must not loop forever."""
        find_children = tree([("a", "b"), ("b", "c"), ("c", "a")])

        assert collect_descendant_ids("a", find_children) == {"b", "c"}


def nodes(edges):
    """Build id -> node objects carrying parent_id from (parent, child) pairs."""
    parents = {child: parent for parent, child in edges}
    ids = set(parents) | set(parents.values())
    return {
        node_id: SimpleNamespace(id=node_id, parent_id=parents.get(node_id))
        for node_id in ids
    }


class TestCollectAncestors:
    """Tests for collect_ancestors()."""

    def test_nearest_parent_first(self):
        by_id = nodes([("a", "b"), ("b", "c")])

        ancestors = collect_ancestors(by_id["c"], by_id.get)

        assert [node.id for node in ancestors] == ["b", "a"]

    def test_root_has_no_ancestors(self):
        by_id = nodes([("a", "b")])

        assert collect_ancestors(by_id["a"], by_id.get) == []

    def test_stops_at_missing_parent(self):
        by_id = nodes([("a", "b"), ("b", "c")])
        del by_id["a"]

        assert [node.id for node in collect_ancestors(by_id["c"], by_id.get)] == [
            "b"
        ]

    def test_terminates_on_corrupt_cycle(self):
        by_id = nodes([("a", "b"), ("b", "c"), ("c", "a")])

        ancestors = collect_ancestors(by_id["a"], by_id.get)

        assert [node.id for node in ancestors] == ["c", "b"]


class TestBuildTree:
    """Tests for build_tree()."""

    def test_nests_children(self):
        edges = [("a", "b"), ("b", "c"), ("a", "d")]
        by_id = nodes(edges)

        root = build_tree(by_id["a"], tree(edges))

        assert root.entity is by_id["a"]
        assert root.size == 4
        assert sorted(child.entity.id for child in root.children) == ["b", "d"]
        assert [node.id for node in root.iter_entities()][0] == "a"

    def test_leaf_tree(self):
        by_id = nodes([("a", "b")])

        leaf = build_tree(by_id["b"], tree([("a", "b")]))

        assert leaf.children == ()
        assert leaf.size == 1

    def test_terminates_on_corrupt_cycle(self):
        edges = [("a", "b"), ("b", "c"), ("c", "a")]

        root = build_tree(nodes(edges)["a"], tree(edges))

        assert {node.id for node in root.iter_entities()} == {"a", "b", "c"}
