"""
lineardoc - A linear document model edited through replayable transactions.

A structured document is stored as a flat list of content items and balanced
element markers. Edits are described as transactions (retain, replace,
attribute and annotate operations) that can be inspected, serialized,
applied and inverted.

Example:
    >>> from lineardoc import Document, Range, Transaction
    >>> doc = Document([{"type": "paragraph"}, "a", "b", {"type": "/paragraph"}])
    >>> tx = Transaction.new_from_annotation(doc, Range(1, 3), "set", {"type": "bold"})
    >>> doc.commit(tx)
    >>> doc.rollback(tx)
"""

__version__ = "0.1.0"
__all__ = [
    "Document",
    "SelectedNode",
    "SelectionMode",
    "Range",
    "NodeFactory",
    "NodeTypeRules",
    "get_default_factory",
    "Node",
    "NodeKind",
    "NodeTree",
    "Transaction",
    "TransactionProcessor",
    "AnnotationMethod",
    "AnnotationBias",
    "RetainOperation",
    "ReplaceOperation",
    "AttributeOperation",
    "AnnotateOperation",
    "ABSENT",
    "Absent",
    "BatchOperations",
    "EditResult",
    "tree_to_xml",
    "tree_to_xml_string",
    "LinearDocError",
    "UnregisteredTypeError",
    "InvalidRangeError",
    "InvalidRetainError",
    "NotAnElementError",
    "ClosingElementError",
    "InvalidDataError",
    "InvalidInsertionError",
    "InvalidAttributeError",
    "TransactionApplyError",
    "ValidationError",
]

from .batch import BatchOperations
from .document import Document, SelectedNode, SelectionMode
from .errors import (
    ClosingElementError,
    InvalidAttributeError,
    InvalidDataError,
    InvalidInsertionError,
    InvalidRangeError,
    InvalidRetainError,
    LinearDocError,
    NotAnElementError,
    TransactionApplyError,
    UnregisteredTypeError,
    ValidationError,
)
from .export import tree_to_xml, tree_to_xml_string
from .linear import ABSENT, Absent
from .node_factory import NodeFactory, NodeTypeRules, get_default_factory
from .nodes import Node, NodeKind, NodeTree
from .operations import (
    AnnotateOperation,
    AnnotationBias,
    AnnotationMethod,
    AttributeOperation,
    ReplaceOperation,
    RetainOperation,
)
from .ranges import Range
from .results import EditResult
from .transaction import Transaction
from .transaction_processor import TransactionProcessor
