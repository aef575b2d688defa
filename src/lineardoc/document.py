"""
Document class owning linear data and the node tree built over it.

The Document answers structural questions about its data (which nodes a
range touches, how inserted data must be adjusted to stay legal, which
annotations a character carries) and applies transactions. It never changes
its data other than through commit() and rollback().
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .constants import DEFAULT_WRAPPER_TYPE, TEXT_TYPE
from .errors import InvalidInsertionError, InvalidRangeError, ValidationError
from .linear import (
    Annotation,
    contains_annotation,
    get_annotations,
    get_element_type,
    is_close_element,
    is_element,
    is_open_element,
    make_closing,
    normalize_item,
)
from .node_factory import NodeFactory, get_default_factory
from .nodes import Node, NodeTree
from .ranges import Range
from .transaction_processor import TransactionProcessor

if TYPE_CHECKING:
    from .transaction import Transaction

logger = logging.getLogger(__name__)


class SelectionMode(str, Enum):
    """How select_nodes() reports the nodes a range touches.

    LEAVES: only leaf nodes (and empty branches)
    COVERED: the largest fully covered nodes, descending only into partially
        covered branches
    """

    LEAVES = "leaves"
    COVERED = "covered"


@dataclass
class SelectedNode:
    """One entry of a select_nodes() result.

    Attributes:
        node: The selected node
        range: Covered part of the node's content, or None if the whole node is covered
        index: Index of the node within its parent's children (None for the root)
        node_range: Range of the node's content
        node_outer_range: Range of the node including its markers
    """

    node: Node
    range: Range | None
    index: int | None
    node_range: Range
    node_outer_range: Range

    @property
    def is_fully_covered(self) -> bool:
        return self.range is None


@dataclass
class _Frame:
    """An open element while fixing up inserted data."""

    type: str
    element: dict[str, Any] | None = None
    inserted: bool = False
    auto: bool = False


class Document:
    """A document stored as linear data with a node tree overlay.

    Example:
        >>> doc = Document([{"type": "paragraph"}, "a", {"type": "/paragraph"}])
        >>> doc.get_length()
        3
        >>> [s.node.type for s in doc.select_nodes(Range(1, 2), "leaves")]
        ['text']
    """

    def __init__(self, data: Sequence[Any], factory: NodeFactory | None = None) -> None:
        """Initialize a Document.

        Args:
            data: Linear document data (copied into canonical form, see
                normalize_item(); the document owns its data)
            factory: Node type registry; defaults to the process-wide factory

        Raises:
            InvalidDataError: If the data is not well formed
            UnregisteredTypeError: If the data uses an unknown element type
        """
        self._factory = factory if factory is not None else get_default_factory()
        self._data: list[Any] = [normalize_item(item) for item in copy.deepcopy(list(data))]
        self._tree = NodeTree.from_data(self._data, self._factory)

    @classmethod
    def from_file(cls, path: str | Path, factory: NodeFactory | None = None) -> Document:
        """Load a document from a JSON file holding its linear data.

        Raises:
            FileNotFoundError: If the file does not exist
            ValidationError: If the file is not a JSON list
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Document file not found: {path}")
        try:
            with open(file_path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Failed to parse JSON file: {e}") from e
        if not isinstance(data, list):
            raise ValidationError("Document file must contain a list of items")
        return cls(data, factory=factory)

    def save(self, path: str | Path) -> None:
        """Write the linear data to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False, indent=1)
        logger.debug(f"Saved document with {len(self._data)} items to {path}")

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def get_data(self) -> list[Any]:
        """Get the linear data. Callers must not modify the returned list."""
        return self._data

    def get_length(self) -> int:
        return len(self._data)

    def get_factory(self) -> NodeFactory:
        return self._factory

    def get_tree(self) -> NodeTree:
        return self._tree

    def get_document_node(self) -> Node:
        return self._tree.root

    def get_parent(self, node: Node) -> Node | None:
        return self._tree.get_parent(node)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def select_nodes(
        self, range_: Range, mode: SelectionMode | str = SelectionMode.LEAVES
    ) -> list[SelectedNode]:
        """Get the nodes a range touches.

        A node is touched when the range reaches any position inside its
        content. Positions on a node's outer edges (before its opening marker
        or after its closing marker) do not touch it. A node whose outer range
        lies entirely inside the range is fully covered and reported with
        ``range=None``; other touched nodes carry the covered part of their
        content.

        In COVERED mode fully covered nodes are reported whole, and only
        partially covered branches are descended into. In LEAVES mode every
        branch is descended into. A partially covered branch none of whose
        children are touched is reported itself. A range touching no node at
        all (an insertion point between nodes) reports the root node.

        Args:
            range_: Range to select (normalized copy is used)
            mode: SelectionMode or its string value

        Returns:
            Selected nodes in document order (empty only for an empty document)

        Raises:
            InvalidRangeError: If the range lies outside the document
            ValueError: If the mode is unknown
        """
        mode = SelectionMode(mode)
        range_ = range_.normalized()
        if range_.start < 0 or range_.end > len(self._data):
            raise InvalidRangeError(range_.start, range_.end, "outside of document")

        root = self._tree.root
        if not root.children:
            return []

        selection: list[SelectedNode] = []
        self._select_in(root, range_.start, range_.end, mode, selection)
        if not selection:
            selection.append(self._make_selected(root, Range(range_.start, range_.end), None))
        return selection

    def _select_in(
        self,
        branch: Node,
        start: int,
        end: int,
        mode: SelectionMode,
        selection: list[SelectedNode],
    ) -> None:
        for index, child in enumerate(self._tree.get_children(branch)):
            inner = child.range
            outer = child.outer_range
            if start > inner.end or end < inner.start:
                continue

            if start <= outer.start and end >= outer.end:
                if mode is SelectionMode.COVERED or not child.children:
                    selection.append(self._make_selected(child, None, index))
                else:
                    self._select_in(child, start, end, mode, selection)
                continue

            if child.children:
                found = len(selection)
                self._select_in(child, start, end, mode, selection)
                if len(selection) > found:
                    continue

            covered = Range(max(start, inner.start), min(end, inner.end))
            selection.append(self._make_selected(child, covered, index))

    @staticmethod
    def _make_selected(node: Node, range_: Range | None, index: int | None) -> SelectedNode:
        return SelectedNode(
            node=node,
            range=range_,
            index=index,
            node_range=node.range,
            node_outer_range=node.outer_range,
        )

    def get_branch_node_from_offset(self, offset: int) -> Node:
        """Get the deepest branch node whose content contains an offset.

        Offsets on a node's outer edges belong to its parent.
        """
        if offset < 0 or offset > len(self._data):
            raise InvalidRangeError(offset, offset, "outside of document")
        node = self._tree.root
        while True:
            for child in self._tree.get_children(node):
                if child.is_branch and child.is_wrapped:
                    inner = child.range
                    if inner.start <= offset <= inner.end:
                        node = child
                        break
            else:
                return node

    def get_annotations_from_offset(self, offset: int) -> list[Annotation]:
        """Get the annotations of the content item at an offset (empty for elements)."""
        if offset < 0 or offset >= len(self._data):
            raise InvalidRangeError(offset, offset + 1, "outside of document")
        return get_annotations(self._data[offset])

    def offset_contains_annotation(self, offset: int, annotation: Annotation) -> bool:
        """Check if the content item at an offset carries an annotation equal to the given one."""
        if offset < 0 or offset >= len(self._data):
            raise InvalidRangeError(offset, offset + 1, "outside of document")
        item = self._data[offset]
        if is_element(item):
            return False
        return contains_annotation(item, annotation)

    def fixup_insertion(
        self,
        data: Sequence[Any],
        offset: int,
        wrapper_type: str = DEFAULT_WRAPPER_TYPE,
    ) -> list[Any]:
        """Adjust data so it can be legally inserted at an offset.

        - Content arriving where content is not allowed is wrapped in a
          ``wrapper_type`` element.
        - Elements not allowed in the enclosing node close that node (and its
          ancestors, as far as needed) before the element; copies of the closed
          openings are re-emitted after the inserted data, splitting them.
        - A closing marker for an enclosing splittable node splits it
          explicitly. An opening marker of the same type that follows becomes
          the second half; without one, a copy of the original opening is
          re-emitted after the inserted data.
        - Inserted elements left open are closed.
        - Items are brought into canonical form (see normalize_item()).

        Args:
            data: Data to insert (not modified)
            offset: Insertion offset
            wrapper_type: Element type used to wrap stray content

        Returns:
            The corrected data

        Raises:
            InvalidRangeError: If the offset lies outside the document
            InvalidInsertionError: If the data cannot be made legal at the offset
        """
        branch = self.get_branch_node_from_offset(offset)
        for child in self._tree.get_children(branch):
            if not child.is_branch and child.is_wrapped and child.range.start == offset:
                raise InvalidInsertionError(offset, f"offset is inside leaf node '{child.type}'")

        context = list(reversed([branch, *self._tree.get_ancestors(branch)]))
        stack = [
            _Frame(node.type, element=None if not node.is_wrapped else self._data[node.offset])
            for node in context
        ]
        result: list[Any] = []
        reopen: list[dict[str, Any]] = []
        # Openings of context nodes closed by a closing marker in the data
        split: list[dict[str, Any]] = []

        for item in data:
            if is_close_element(item):
                while stack[-1].auto:
                    result.append(make_closing(stack.pop().type))
                top = stack[-1]
                closing_type = get_element_type(item)
                if top.type != closing_type:
                    raise InvalidInsertionError(
                        offset, f"unbalanced closing element '{closing_type}'"
                    )
                if not top.inserted:
                    if top.element is None or not self._factory.can_node_be_split(top.type):
                        raise InvalidInsertionError(
                            offset, f"'{closing_type}' cannot be split"
                        )
                    reopen.append(top.element)
                    split.append(top.element)
                stack.pop()
                result.append(copy.deepcopy(item))
                continue

            child_type = get_element_type(item) if is_element(item) else TEXT_TYPE
            self._make_room(child_type, stack, result, reopen, offset, wrapper_type)
            result.append(normalize_item(copy.deepcopy(item)))
            if not is_open_element(item):
                continue
            if split and get_element_type(split[-1]) == child_type and not stack[-1].inserted:
                # Second half of an explicit split; the original closing marker closes it
                element = split.pop()
                reopen.pop(next(i for i, e in enumerate(reopen) if e is element))
                stack.append(_Frame(child_type, element=result[-1]))
            else:
                stack.append(_Frame(child_type, inserted=True))

        while stack[-1].inserted:
            result.append(make_closing(stack.pop().type))
        for element in reversed(reopen):
            result.append(copy.deepcopy(element))

        if result != list(data):
            logger.debug(
                f"Fixed up insertion at offset {offset}: {len(data)} items became {len(result)}"
            )
        return result

    def _make_room(
        self,
        child_type: str,
        stack: list[_Frame],
        result: list[Any],
        reopen: list[dict[str, Any]],
        offset: int,
        wrapper_type: str,
    ) -> None:
        """Open a wrapper or close enclosing elements until child_type is allowed."""
        factory = self._factory
        while not factory.is_child_allowed(child_type, stack[-1].type):
            top = stack[-1]
            if (
                factory.is_node_content(child_type)
                and not factory.can_node_contain_content(top.type)
                and factory.is_child_allowed(wrapper_type, top.type)
                and factory.is_child_allowed(child_type, wrapper_type)
            ):
                result.append({"type": wrapper_type})
                stack.append(_Frame(wrapper_type, inserted=True, auto=True))
            elif top.auto:
                result.append(make_closing(stack.pop().type))
            elif top.inserted:
                raise InvalidInsertionError(
                    offset, f"'{child_type}' is not allowed inside '{top.type}'"
                )
            elif top.element is None or not factory.can_node_be_split(top.type):
                raise InvalidInsertionError(
                    offset,
                    f"'{child_type}' is not allowed inside '{top.type}', which cannot be split",
                )
            else:
                result.append(make_closing(stack.pop().type))
                reopen.append(top.element)

    # -------------------------------------------------------------------------
    # Applying transactions
    # -------------------------------------------------------------------------

    def commit(self, transaction: Transaction) -> None:
        """Apply a transaction to this document.

        The new data is computed on a copy and the tree rebuilt from it before
        either replaces the current state, so a failure leaves the document
        untouched.

        Raises:
            TransactionApplyError: If the transaction does not match the data
            InvalidDataError: If the transaction would produce unbalanced data
        """
        data = TransactionProcessor(self, transaction).process()
        tree = NodeTree.from_data(data, self._factory)
        self._data = data
        self._tree = tree
        logger.debug(
            f"Committed transaction with {len(transaction.get_operations())} operations "
            f"(length difference {transaction.get_length_difference()})"
        )

    def rollback(self, transaction: Transaction) -> None:
        """Undo a previously committed transaction by applying its inverse."""
        self.commit(transaction.reversed())

    def rebuild_tree(self) -> None:
        """Rebuild the node tree from the current linear data."""
        self._tree = NodeTree.from_data(self._data, self._factory)
