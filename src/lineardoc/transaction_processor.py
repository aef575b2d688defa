"""
Application of transactions to document data.

TransactionProcessor walks a transaction's operations over a copy of the
document's data and returns the resulting data. It checks that the
transaction matches the data it is applied to; a mismatch means the
transaction was built against another document state and raises
TransactionApplyError without touching the document.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any

from .errors import TransactionApplyError
from .linear import (
    ABSENT,
    annotation_hash,
    clear_annotation,
    is_element,
    is_open_element,
    set_annotation,
)
from .operations import (
    AnnotateOperation,
    AnnotationBias,
    AnnotationMethod,
    AttributeOperation,
    ReplaceOperation,
    RetainOperation,
)

if TYPE_CHECKING:
    from .document import Document
    from .transaction import Transaction

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """Applies one transaction to the data of a document.

    Example:
        >>> data = TransactionProcessor(doc, tx).process()
    """

    def __init__(self, document: Document, transaction: Transaction) -> None:
        self._document = document
        self._transaction = transaction
        self._source: list[Any] = []
        self._result: list[Any] = []
        self._cursor = 0
        # Active annotating spans, keyed by annotation hash
        self._set: dict[str, dict[str, Any]] = {}
        self._clear: dict[str, dict[str, Any]] = {}

    def process(self) -> list[Any]:
        """Apply the transaction and return the new linear data.

        Raises:
            TransactionApplyError: If the transaction does not match the data
        """
        self._source = copy.deepcopy(self._document.get_data())
        self._result = []
        self._cursor = 0
        self._set.clear()
        self._clear.clear()

        for op in self._transaction.get_operations():
            if isinstance(op, RetainOperation):
                self._retain(op)
            elif isinstance(op, ReplaceOperation):
                self._replace(op)
            elif isinstance(op, AttributeOperation):
                self._attribute(op)
            elif isinstance(op, AnnotateOperation):
                self._annotate(op)
            else:
                raise TransactionApplyError(
                    f"Unknown operation: {op!r}", reason="unknown_operation", offset=self._cursor
                )

        if self._cursor != len(self._source):
            raise TransactionApplyError(
                f"Transaction covers {self._cursor} items but the document has "
                f"{len(self._source)}",
                reason="length_mismatch",
                offset=self._cursor,
                expected=len(self._source),
                actual=self._cursor,
            )
        if self._set or self._clear:
            raise TransactionApplyError(
                "Transaction ends while still annotating",
                reason="unclosed_annotation",
                offset=self._cursor,
            )
        logger.debug(
            f"Processed {len(self._transaction.get_operations())} operations: "
            f"{len(self._source)} items became {len(self._result)}"
        )
        return self._result

    def _retain(self, op: RetainOperation) -> None:
        end = self._cursor + op.length
        if end > len(self._source):
            raise TransactionApplyError(
                f"Cannot retain {op.length} items at offset {self._cursor}, past the end of "
                f"the document ({len(self._source)} items)",
                reason="retain_overflow",
                offset=self._cursor,
            )
        for item in self._source[self._cursor : end]:
            if not is_element(item):
                for annotation in self._set.values():
                    item = set_annotation(item, annotation)
                for annotation in self._clear.values():
                    item = clear_annotation(item, annotation)
            self._result.append(item)
        self._cursor = end

    def _replace(self, op: ReplaceOperation) -> None:
        end = self._cursor + len(op.remove)
        actual = self._source[self._cursor : end]
        if actual != op.remove:
            raise TransactionApplyError(
                f"Data to remove at offset {self._cursor} does not match the document",
                reason="replace_mismatch",
                offset=self._cursor,
                expected=op.remove,
                actual=actual,
            )
        self._result.extend(copy.deepcopy(op.insert))
        self._cursor = end

    def _attribute(self, op: AttributeOperation) -> None:
        if self._cursor >= len(self._source) or not is_open_element(self._source[self._cursor]):
            raise TransactionApplyError(
                f"No opening element at offset {self._cursor} to change attribute '{op.key}' on",
                reason="not_an_element",
                offset=self._cursor,
            )
        element = self._source[self._cursor]
        attributes = element.get("attributes") or {}
        current = attributes.get(op.key, ABSENT)
        if current != op.from_value:
            raise TransactionApplyError(
                f"Attribute '{op.key}' at offset {self._cursor} does not have the expected value",
                reason="attribute_mismatch",
                offset=self._cursor,
                expected=op.from_value,
                actual=current,
            )
        if op.to_value is ABSENT:
            attributes.pop(op.key, None)
        else:
            attributes[op.key] = copy.deepcopy(op.to_value)
        if attributes:
            element["attributes"] = attributes
        else:
            element.pop("attributes", None)

    def _annotate(self, op: AnnotateOperation) -> None:
        active = self._set if op.method is AnnotationMethod.SET else self._clear
        key = annotation_hash(op.annotation)
        if op.bias is AnnotationBias.START:
            if key in active:
                raise TransactionApplyError(
                    f"Annotation {key} ({op.method.value}) already started at offset "
                    f"{self._cursor}",
                    reason="annotation_already_started",
                    offset=self._cursor,
                )
            active[key] = op.annotation
        else:
            if key not in active:
                raise TransactionApplyError(
                    f"Cannot stop annotation {key} at offset {self._cursor}, it was not started",
                    reason="annotation_not_started",
                    offset=self._cursor,
                )
            del active[key]
