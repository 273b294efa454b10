"""Search-filtered schema hierarchy stored as an arena of nodes."""

from __future__ import annotations

from typing import Iterator, Sequence

from cqt_source.snapshot import CATEGORY_LABELS
from cqt_ui.tui.system.models import Node, NodeKind, VisibleRow

WILDCARD = "*"
ROOT_ID = 0


def normalize_term(search_term: str) -> str:
    """Strip the wildcard marker and fold case for substring matching."""
    return search_term.replace(WILDCARD, "").lower()


class NodeTree:
    """Owns every node below a single synthetic root.

    Nodes live in an id-keyed arena; children are id lists and parents are
    referenced by ``parent_id``. A node's ``path`` is unique, so inserting an
    existing path merges into the node already there.
    """

    def __init__(self, root_label: str = "") -> None:
        self._root_label = root_label
        self._nodes: dict[int, Node] = {}
        self._by_path: dict[tuple[str, ...], int] = {}
        self._next_id = ROOT_ID
        self.clear()

    @property
    def root(self) -> Node:
        return self._nodes[ROOT_ID]

    def __len__(self) -> int:
        """Number of nodes below the root."""
        return len(self._nodes) - 1

    def __contains__(self, path: object) -> bool:
        return isinstance(path, tuple) and path in self._by_path

    def clear(self) -> None:
        """Drop every node below the root."""
        self._nodes.clear()
        self._by_path.clear()
        self._next_id = ROOT_ID
        root = self._new_node(self._root_label, (), None)
        self._by_path[()] = root.id

    def node(self, node_id: int) -> Node:
        return self._nodes[node_id]

    def get(self, path: Sequence[str]) -> Node | None:
        node_id = self._by_path.get(tuple(path))
        return None if node_id is None else self._nodes[node_id]

    def parent(self, node: Node) -> Node | None:
        return None if node.parent_id is None else self._nodes[node.parent_id]

    def children(self, node: Node) -> list[Node]:
        return [self._nodes[child_id] for child_id in node.children]

    def is_leaf(self, node: Node) -> bool:
        return not node.children

    def add_child(
        self,
        parent_path: Sequence[str],
        label: str,
        search_term: str = "",
    ) -> Node | None:
        """Ensure a node exists at ``parent_path + (label,)``.

        With a search term, a new node is only created when its label contains
        the term; its missing ancestors are created regardless. A path that is
        already present (because a descendant matched) is returned as is.
        Returns None when the node is filtered out.
        """
        path = tuple(parent_path) + (label,)
        existing = self.get(path)
        if existing is not None:
            return existing

        term = normalize_term(search_term)
        if term and term not in label.lower():
            return None

        parent = self._ensure(tuple(parent_path))
        return self._attach(parent, label)

    def toggle_expand(self, node: Node) -> bool:
        node.expanded = not node.expanded
        return node.expanded

    def flatten(self) -> list[VisibleRow]:
        """Pre-order walk of the visible rows, honouring ``expanded`` flags."""
        return list(self._walk(self.root, -1))

    def _walk(self, node: Node, depth: int) -> Iterator[VisibleRow]:
        if node.id != ROOT_ID:
            yield VisibleRow(node=node, depth=depth)
            if not node.expanded:
                return
        for child_id in node.children:
            yield from self._walk(self._nodes[child_id], depth + 1)

    def _ensure(self, path: tuple[str, ...]) -> Node:
        node = self.root
        for depth in range(1, len(path) + 1):
            found = self.get(path[:depth])
            node = found if found is not None else self._attach(node, path[depth - 1])
        return node

    def _attach(self, parent: Node, label: str) -> Node:
        node = self._new_node(label, parent.path + (label,), parent.id)
        self._by_path[node.path] = node.id
        if parent.id == ROOT_ID:
            parent.children.insert(self._category_slot(label), node.id)
        else:
            parent.children.append(node.id)
        return node

    def _category_slot(self, label: str) -> int:
        # Known categories keep their fixed priority; anything else goes last.
        rank = _category_rank(label)
        for index, child_id in enumerate(self.root.children):
            if _category_rank(self._nodes[child_id].label) > rank:
                return index
        return len(self.root.children)

    def _new_node(self, label: str, path: tuple[str, ...], parent_id: int | None) -> Node:
        node = Node(
            id=self._next_id,
            label=label,
            path=path,
            kind=NodeKind.for_depth(len(path)),
            parent_id=parent_id,
        )
        self._nodes[node.id] = node
        self._next_id += 1
        return node


def _category_rank(label: str) -> int:
    try:
        return CATEGORY_LABELS.index(label)
    except ValueError:
        return len(CATEGORY_LABELS)
