"""
Transaction class and the builders that derive transactions from edit intents.

A Transaction describes one edit as an ordered list of operations covering the
whole document it was built against. Builders only read the document; the
transaction is applied separately with Document.commit().
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .errors import (
    ClosingElementError,
    InvalidRangeError,
    InvalidRetainError,
    NotAnElementError,
    ValidationError,
)
from .linear import (
    ABSENT,
    Absent,
    Annotation,
    AttributeValue,
    is_close_element,
    is_element,
    validate_attribute_value,
)
from .nodes import can_be_merged_with, is_content
from .operations import (
    AnnotateOperation,
    AnnotationBias,
    AnnotationMethod,
    AttributeOperation,
    Operation,
    ReplaceOperation,
    RetainOperation,
    operation_from_dict,
)
from .ranges import Range

if TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)


class Transaction:
    """An ordered list of operations describing one edit.

    Attributes:
        operations: The operations, in document order
        length_difference: Change in document length the transaction causes

    Example:
        >>> doc = Document([{"type": "paragraph"}, "a", {"type": "/paragraph"}])
        >>> tx = Transaction.new_from_insertion(doc, 2, ["b"])
        >>> [op.to_dict() for op in tx.get_operations()]
        [{'type': 'retain', 'length': 2}, {'type': 'replace', 'remove': [], 'insert': ['b']}, {'type': 'retain', 'length': 1}]
        >>> doc.commit(tx)
    """

    def __init__(self) -> None:
        self.operations: list[Operation] = []
        self.length_difference = 0

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    @classmethod
    def new_from_insertion(
        cls, doc: Document, offset: int, insertion: Sequence[Any]
    ) -> Transaction:
        """Build a transaction that inserts data at an offset.

        The data is fixed up first so it is legal at the offset (see
        Document.fixup_insertion()).

        Args:
            doc: Document to build the transaction for
            offset: Offset to insert at
            insertion: Data to insert

        Returns:
            Transaction that inserts the data

        Raises:
            InvalidRangeError: If the offset lies outside the document
            InvalidInsertionError: If the data cannot be made legal at the offset
        """
        tx = cls()
        data = doc.get_data()
        if offset < 0 or offset > len(data):
            raise InvalidRangeError(offset, offset, "insertion offset outside of document")
        insertion = doc.fixup_insertion(insertion, offset)
        tx.push_retain(offset)
        tx.push_replace([], insertion)
        tx.push_retain(len(data) - offset)
        return tx

    @classmethod
    def new_from_removal(cls, doc: Document, range_: Range) -> Transaction:
        """Build a transaction that removes the data in a range.

        There are three possible outcomes:

        1. Merge: the first and last selected nodes can be merged (see
           can_be_merged_with()), so everything from the first node's covered
           part to the last node's covered part is removed in one piece,
           fusing the two nodes. This also covers removing content within a
           single text run.
        2. Remove whole elements: nodes fully covered by the range are removed
           together with their markers.
        3. Strip content: nodes only partially covered lose the covered part of
           their content but keep their markers.

        Contiguous removals are combined into one replace operation.

        Args:
            doc: Document to build the transaction for
            range_: Range to remove (a normalized copy is used)

        Returns:
            Transaction that removes the data

        Raises:
            InvalidRangeError: If the range lies outside the document or
                selects no nodes
        """
        tx = cls()
        data = doc.get_data()
        range_ = range_.normalized()
        if range_.start == range_.end:
            tx.push_retain(len(data))
            return tx

        selection = doc.select_nodes(range_, "covered")
        if not selection:
            raise InvalidRangeError(range_.start, range_.end, "range selects no nodes")

        first = selection[0]
        last = selection[-1]
        if can_be_merged_with(doc.get_tree(), first.node, last.node):
            if first.range is None and last.range is None:
                merge_start = first.node_outer_range.start
                merge_end = last.node_outer_range.end
            else:
                merge_start = (first.range or first.node_range).start
                merge_end = (last.range or last.node_range).end
            logger.debug(
                f"Removal merges {first.node.type} nodes, removing {merge_start}-{merge_end}"
            )
            tx.push_retain(merge_start)
            tx.push_replace(data[merge_start:merge_end], [])
            tx.push_retain(len(data) - merge_end)
            return tx

        offset = 0
        remove_start: int | None = None
        remove_end: int | None = None
        for selected in selection:
            if selected.range is None:
                node_start = selected.node_outer_range.start
                node_end = selected.node_outer_range.end
            else:
                node_start = selected.range.start
                node_end = selected.range.end

            if remove_end is None:
                remove_start, remove_end = node_start, node_end
            elif remove_end == node_start:
                remove_end = node_end
            else:
                tx.push_retain(remove_start - offset)
                tx.push_replace(data[remove_start:remove_end], [])
                offset = remove_end
                remove_start, remove_end = node_start, node_end

        if remove_end is not None:
            tx.push_retain(remove_start - offset)
            tx.push_replace(data[remove_start:remove_end], [])
            offset = remove_end
        tx.push_retain(len(data) - offset)
        return tx

    @classmethod
    def new_from_attribute_change(
        cls, doc: Document, offset: int, key: str, value: AttributeValue | Absent
    ) -> Transaction:
        """Build a transaction that changes an attribute of an element.

        Args:
            doc: Document to build the transaction for
            offset: Offset of the opening element marker
            key: Attribute name
            value: New value, or ABSENT to remove the attribute

        Returns:
            Transaction that changes the attribute

        Raises:
            InvalidRangeError: If the offset lies outside the document
            NotAnElementError: If the item at the offset is content
            ClosingElementError: If the item at the offset is a closing marker
            InvalidAttributeError: If the value is not a supported attribute value
        """
        tx = cls()
        data = doc.get_data()
        if offset < 0 or offset >= len(data):
            raise InvalidRangeError(offset, offset + 1, "element offset outside of document")
        element = data[offset]
        if not is_element(element):
            raise NotAnElementError(offset)
        if is_close_element(element):
            raise ClosingElementError(offset)
        if value is not ABSENT:
            validate_attribute_value(key, value)

        current = (element.get("attributes") or {}).get(key, ABSENT)
        tx.push_retain(offset)
        tx.push_replace_element_attribute(key, copy.deepcopy(current), copy.deepcopy(value))
        tx.push_retain(len(data) - offset)
        return tx

    @classmethod
    def new_from_annotation(
        cls,
        doc: Document,
        range_: Range,
        method: AnnotationMethod | str,
        annotation: Annotation,
    ) -> Transaction:
        """Build a transaction that sets or clears an annotation on content.

        With SET, content not already carrying the annotation is annotated;
        with CLEAR, content carrying it is cleared. Eligible content is grouped
        into the widest possible spans. Element markers end a span, since
        annotations never straddle structure.

        Args:
            doc: Document to build the transaction for
            range_: Range to annotate (a normalized copy is used)
            method: AnnotationMethod or its string value
            annotation: Annotation to set or clear

        Returns:
            Transaction that annotates the content

        Raises:
            InvalidRangeError: If the range lies outside the document
            ValueError: If the method is unknown
        """
        tx = cls()
        data = doc.get_data()
        method = AnnotationMethod(method)
        annotation = dict(annotation)
        range_ = range_.normalized()
        if range_.start < 0 or range_.end > len(data):
            raise InvalidRangeError(range_.start, range_.end, "outside of document")

        span = range_.start
        on = False
        for i in range(range_.start, range_.end):
            if is_element(data[i]):
                eligible = False
            else:
                covered = doc.offset_contains_annotation(i, annotation)
                eligible = covered != (method is AnnotationMethod.SET)
            if on and not eligible:
                tx.push_retain(span)
                tx.push_stop_annotating(method, annotation)
                span = 0
                on = False
            elif eligible and not on:
                tx.push_retain(span)
                tx.push_start_annotating(method, annotation)
                span = 0
                on = True
            span += 1
        tx.push_retain(span)
        if on:
            tx.push_stop_annotating(method, annotation)
        tx.push_retain(len(data) - range_.end)
        return tx

    @classmethod
    def new_from_content_branch_conversion(
        cls,
        doc: Document,
        range_: Range,
        type_name: str,
        attributes: Mapping[str, Any] | None = None,
    ) -> Transaction:
        """Build a transaction that converts content branches to another type.

        Every distinct wrapped parent of content touched by the range has its
        opening and closing markers replaced; its content is retained.

        Args:
            doc: Document to build the transaction for
            range_: Range whose content branches are converted
            type_name: Element type to convert to
            attributes: Attributes for the new opening markers

        Returns:
            Transaction that converts the branches

        Raises:
            InvalidRangeError: If the range lies outside the document or the
                branches overlap
            UnregisteredTypeError: If type_name is not registered
            InvalidAttributeError: If an attribute value is unsupported
        """
        tx = cls()
        data = doc.get_data()
        factory = doc.get_factory()
        factory.get_rules(type_name)

        opening: dict[str, Any] = {"type": type_name}
        if attributes:
            for key, value in attributes.items():
                validate_attribute_value(key, value)
            opening["attributes"] = copy.deepcopy(dict(attributes))
        closing = {"type": "/" + type_name}

        previous_end = 0
        previous_branch = None
        for selected in doc.select_nodes(range_, "leaves"):
            if not is_content(factory, selected.node):
                continue
            branch = doc.get_parent(selected.node)
            if branch is None or branch is previous_branch:
                continue
            if not branch.is_wrapped:
                logger.debug(f"Skipping content directly inside unwrapped '{branch.type}'")
                continue
            outer = branch.outer_range
            if outer.start < previous_end:
                raise InvalidRangeError(
                    range_.start, range_.end, "content branches to convert overlap"
                )
            tx.push_retain(outer.start - previous_end)
            tx.push_replace([data[outer.start]], [copy.deepcopy(opening)])
            tx.push_retain(branch.length)
            tx.push_replace([data[outer.end - 1]], [copy.deepcopy(closing)])
            previous_branch = branch
            previous_end = outer.end

        tx.push_retain(len(data) - previous_end)
        return tx

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Transaction:
        """Rebuild a transaction from the output of to_dict().

        Raises:
            ValidationError: If the data is not a valid transaction
        """
        if not isinstance(data, Mapping) or not isinstance(data.get("operations"), list):
            raise ValidationError("Transaction data must contain an 'operations' list")
        tx = cls()
        for entry in data["operations"]:
            tx._push(operation_from_dict(entry))
        return tx

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def get_operations(self) -> list[Operation]:
        """Get a copy of the operation list; the operations themselves are shared."""
        return list(self.operations)

    def get_length_difference(self) -> int:
        """Get the difference in document length this transaction causes."""
        return self.length_difference

    def get_source_length(self) -> int:
        """Get the length of the document this transaction was built against.

        Every retained or removed item counts once, so this equals the length
        of that document.
        """
        total = 0
        for op in self.operations:
            if isinstance(op, RetainOperation):
                total += op.length
            elif isinstance(op, ReplaceOperation):
                total += len(op.remove)
        return total

    def is_noop(self) -> bool:
        return all(isinstance(op, RetainOperation) for op in self.operations)

    def reversed(self) -> Transaction:
        """Get the transaction that undoes this one.

        Replace operations swap remove and insert, attribute changes swap
        from and to, and annotations swap set and clear.
        """
        tx = Transaction()
        tx.operations = [op.reversed() for op in self.operations]
        tx.length_difference = -self.length_difference
        return tx

    def to_dict(self) -> dict[str, Any]:
        return {
            "operations": [op.to_dict() for op in self.operations],
            "length_difference": self.length_difference,
        }

    # -------------------------------------------------------------------------
    # Operation accumulation
    # -------------------------------------------------------------------------

    def push_retain(self, length: int) -> None:
        """Add a retain operation, extending a trailing retain if there is one.

        Raises:
            InvalidRetainError: If length is negative
        """
        if length < 0:
            raise InvalidRetainError(length)
        if not length:
            return
        if self.operations and isinstance(self.operations[-1], RetainOperation):
            self.operations[-1].length += length
        else:
            self.operations.append(RetainOperation(length))

    def push_replace(self, remove: Sequence[Any], insert: Sequence[Any]) -> None:
        """Add a replace operation; replacing nothing with nothing is skipped."""
        if not remove and not insert:
            return
        self.operations.append(
            ReplaceOperation(copy.deepcopy(list(remove)), copy.deepcopy(list(insert)))
        )
        self.length_difference += len(insert) - len(remove)

    def push_replace_element_attribute(
        self, key: str, from_value: AttributeValue | Absent, to_value: AttributeValue | Absent
    ) -> None:
        self.operations.append(AttributeOperation(key, from_value, to_value))

    def push_start_annotating(
        self, method: AnnotationMethod | str, annotation: Annotation
    ) -> None:
        self.operations.append(
            AnnotateOperation(AnnotationMethod(method), AnnotationBias.START, dict(annotation))
        )

    def push_stop_annotating(self, method: AnnotationMethod | str, annotation: Annotation) -> None:
        self.operations.append(
            AnnotateOperation(AnnotationMethod(method), AnnotationBias.STOP, dict(annotation))
        )

    def _push(self, op: Operation) -> None:
        if isinstance(op, RetainOperation):
            self.push_retain(op.length)
        elif isinstance(op, ReplaceOperation):
            self.push_replace(op.remove, op.insert)
        else:
            self.operations.append(op)

    def __repr__(self) -> str:
        return (
            f"Transaction(operations={len(self.operations)}, "
            f"length_difference={self.length_difference})"
        )
