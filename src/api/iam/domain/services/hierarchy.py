"""Tree traversal helpers for self-referential hierarchies."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any


def collect_descendant_ids(
    root_id: Any,
    find_children: Callable[[Any], Iterable[Any]],
) -> set[Any]:
    """Return the ids of every node below ``root_id``.

    Walks the tree breadth-first, asking ``find_children`` for the direct
    children of each node. A visited set guards against cycles already
    present in stored data, so the walk always terminates.

    Args:
        root_id: Id of the node whose descendants are wanted
        find_children: Returns the direct children (objects with ``id``)

    Returns:
        Descendant ids, excluding ``root_id`` itself
    """
    visited = {root_id}
    queue = deque([root_id])
    while queue:
        current = queue.popleft()
        for child in find_children(current):
            if child.id not in visited:
                visited.add(child.id)
                queue.append(child.id)
    visited.discard(root_id)
    return visited


def collect_ancestors(
    node: Any,
    find_by_id: Callable[[Any], Any | None],
) -> list[Any]:
    """Return the ancestors of ``node``, nearest parent first.

    Follows ``parent_id`` links until a root, a missing parent or a node
    that was already seen, so corrupt stored data cannot loop forever.
    """
    ancestors = []
    seen = {node.id}
    parent_id = node.parent_id
    while parent_id is not None and parent_id not in seen:
        parent = find_by_id(parent_id)
        if parent is None:
            break
        ancestors.append(parent)
        seen.add(parent_id)
        parent_id = parent.parent_id
    return ancestors


@dataclass(frozen=True)
class HierarchyNode:
    """One entity of a tree together with its sub-trees."""

    entity: Any
    children: tuple[HierarchyNode, ...] = ()

    @property
    def size(self) -> int:
        return 1 + sum(child.size for child in self.children)

    def iter_entities(self) -> Iterator[Any]:
        """Yield every entity of the tree, depth-first, this one first."""
        yield self.entity
        for child in self.children:
            yield from child.iter_entities()


def build_tree(
    root: Any,
    find_children: Callable[[Any], Iterable[Any]],
) -> HierarchyNode:
    """Assemble the tree below ``root``.

    A node reached a second time is left out, so the result is always a
    finite tree.
    """
    seen = {root.id}

    def build(node: Any) -> HierarchyNode:
        children = []
        for child in find_children(node.id):
            if child.id not in seen:
                seen.add(child.id)
                children.append(build(child))
        return HierarchyNode(entity=node, children=tuple(children))

    return build(root)
