"""
Node tree overlaying linear document data.

The tree is an arena: every Node lives in NodeTree.nodes and refers to its
parent and children by index, so there are no object back-references to keep
alive or patch. The linear data stays the single source of truth; a tree is
always built from it with NodeTree.from_data() and thrown away when the data
changes.

Node behavior is not dispatched through subclasses. Each Node carries a type
name and a NodeKind tag, and capability questions go through the free
functions at the bottom of this module, which consult a NodeFactory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from .constants import DOCUMENT_TYPE, TEXT_TYPE
from .errors import InvalidDataError
from .linear import get_element_type, is_close_element, is_element
from .node_factory import NodeFactory
from .ranges import Range

logger = logging.getLogger(__name__)


class NodeKind(Enum):
    """Whether a node may hold children."""

    BRANCH = auto()
    LEAF = auto()


@dataclass
class Node:
    """A node in the tree, addressed by its index in the arena.

    Attributes:
        id: Index of this node in NodeTree.nodes
        type: Node type name (a key into the NodeFactory)
        kind: BRANCH or LEAF
        offset: Offset of the node's first item (its opening marker if wrapped)
        length: Number of items between the node's markers
        is_wrapped: Whether the node has opening/closing markers
        parent: Index of the parent node (None for the root)
        children: Indexes of the child nodes, in document order
        attributes: Attributes of the opening marker
    """

    id: int
    type: str
    kind: NodeKind
    offset: int
    length: int = 0
    is_wrapped: bool = True
    parent: int | None = None
    children: list[int] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def outer_length(self) -> int:
        return self.length + 2 if self.is_wrapped else self.length

    @property
    def range(self) -> Range:
        """Range of the node's content, excluding its own markers."""
        start = self.offset + 1 if self.is_wrapped else self.offset
        return Range(start, start + self.length)

    @property
    def outer_range(self) -> Range:
        """Range of the node including its opening and closing markers."""
        return Range(self.offset, self.offset + self.outer_length)

    @property
    def is_branch(self) -> bool:
        return self.kind is NodeKind.BRANCH


class NodeTree:
    """Arena of nodes built from linear data.

    Example:
        >>> tree = NodeTree.from_data(
        ...     [{"type": "paragraph"}, "a", "b", {"type": "/paragraph"}], factory
        ... )
        >>> paragraph = tree.get_children(tree.root)[0]
        >>> paragraph.range, paragraph.outer_range
        (Range(start=1, end=3, backwards=False), Range(start=0, end=4, backwards=False))
    """

    def __init__(self, nodes: list[Node]) -> None:
        self.nodes = nodes

    @classmethod
    def from_data(cls, data: Sequence[Any], factory: NodeFactory) -> NodeTree:
        """Build a tree from linear data.

        Consecutive content items become one unwrapped text leaf. Element
        types are looked up in the factory to decide whether they are
        branches or leaves.

        Args:
            data: Linear document data
            factory: Factory used to look up node type rules

        Returns:
            The new tree; its root is an unwrapped document node

        Raises:
            InvalidDataError: If markers are unbalanced or mismatched
            UnregisteredTypeError: If an element type is not registered
        """
        root = Node(
            id=0,
            type=DOCUMENT_TYPE,
            kind=NodeKind.BRANCH,
            offset=0,
            length=len(data),
            is_wrapped=False,
        )
        nodes = [root]
        stack = [root]
        text: Node | None = None

        def add(node: Node) -> Node:
            if stack[-1].kind is NodeKind.LEAF:
                raise InvalidDataError(
                    f"Leaf node '{stack[-1].type}' cannot have children", node.offset
                )
            node.id = len(nodes)
            node.parent = stack[-1].id
            stack[-1].children.append(node.id)
            nodes.append(node)
            return node

        for offset, item in enumerate(data):
            if not is_element(item):
                if text is None:
                    text = add(
                        Node(
                            id=-1,
                            type=TEXT_TYPE,
                            kind=NodeKind.LEAF,
                            offset=offset,
                            is_wrapped=False,
                        )
                    )
                text.length += 1
                continue

            text = None
            element_type = get_element_type(item)
            if is_close_element(item):
                if len(stack) == 1:
                    raise InvalidDataError(f"Unexpected closing element '{element_type}'", offset)
                closed = stack.pop()
                if closed.type != element_type:
                    raise InvalidDataError(
                        f"Closing element '{element_type}' does not match opening "
                        f"element '{closed.type}'",
                        offset,
                    )
                closed.length = offset - closed.offset - 1
            else:
                kind = (
                    NodeKind.BRANCH
                    if factory.can_node_have_children(element_type)
                    else NodeKind.LEAF
                )
                node = add(
                    Node(
                        id=-1,
                        type=element_type,
                        kind=kind,
                        offset=offset,
                        attributes=dict(item.get("attributes") or {}),
                    )
                )
                stack.append(node)

        if len(stack) > 1:
            raise InvalidDataError(f"Unclosed element '{stack[-1].type}'", stack[-1].offset)

        logger.debug(f"Built node tree with {len(nodes)} nodes over {len(data)} items")
        return cls(nodes)

    @property
    def root(self) -> Node:
        return self.nodes[0]

    def get_node(self, node_id: int) -> Node:
        return self.nodes[node_id]

    def get_parent(self, node: Node) -> Node | None:
        if node.parent is None:
            return None
        return self.nodes[node.parent]

    def get_children(self, node: Node) -> list[Node]:
        return [self.nodes[child_id] for child_id in node.children]

    def get_ancestors(self, node: Node) -> list[Node]:
        """Get the ancestors of a node, nearest first."""
        ancestors = []
        parent = self.get_parent(node)
        while parent is not None:
            ancestors.append(parent)
            parent = self.get_parent(parent)
        return ancestors

    def get_depth(self, node: Node) -> int:
        return len(self.get_ancestors(node))

    def depth_first(self, node: Node | None = None) -> Iterator[Node]:
        """Traverse the tree depth-first, yielding each node before its children."""
        node = node if node is not None else self.root
        yield node
        for child in self.get_children(node):
            yield from self.depth_first(child)

    def __len__(self) -> int:
        return len(self.nodes)


def is_content(factory: NodeFactory, node: Node) -> bool:
    return factory.is_node_content(node.type)


def can_contain_content(factory: NodeFactory, node: Node) -> bool:
    return factory.can_node_contain_content(node.type)


def can_be_merged_with(tree: NodeTree, node: Node, other: Node) -> bool:
    """Check if two nodes can be merged by removing everything between them.

    Walks up from both nodes at the same pace. The nodes are mergeable when
    the walks meet at a common ancestor and every pair of nodes visited on the
    way has the same type, i.e. both nodes sit at the same depth under that
    ancestor inside structurally identical wrappers. A node is always
    mergeable with itself.
    """
    first: Node | None = node
    second: Node | None = other
    while first is not second:
        if first is None or second is None or first.type != second.type:
            return False
        first = tree.get_parent(first)
        second = tree.get_parent(second)
    return True
