"""
Operation types that make up a Transaction.

Each operation is one step of a left-to-right pass over the document:

- RetainOperation: keep ``length`` items unchanged
- ReplaceOperation: swap the items in ``remove`` for the items in ``insert``
- AttributeOperation: change one attribute of the opening marker at the cursor
- AnnotateOperation: start or stop setting/clearing an annotation on the
  content retained afterwards

Operations convert to and from plain dicts (``{"type": "retain", "length": 3}``)
so transactions can be logged, stored on undo stacks or sent elsewhere.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from .errors import ValidationError
from .linear import ABSENT, Absent, AttributeValue


class AnnotationMethod(str, Enum):
    """Whether an annotate operation adds or removes an annotation."""

    SET = "set"
    CLEAR = "clear"

    def inverse(self) -> AnnotationMethod:
        return AnnotationMethod.CLEAR if self is AnnotationMethod.SET else AnnotationMethod.SET


class AnnotationBias(str, Enum):
    """Whether an annotate operation opens or closes an annotating span."""

    START = "start"
    STOP = "stop"


@dataclass
class RetainOperation:
    type: ClassVar[str] = "retain"

    length: int

    def reversed(self) -> RetainOperation:
        return RetainOperation(self.length)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "length": self.length}


@dataclass
class ReplaceOperation:
    type: ClassVar[str] = "replace"

    remove: list[Any] = field(default_factory=list)
    insert: list[Any] = field(default_factory=list)

    def reversed(self) -> ReplaceOperation:
        return ReplaceOperation(copy.deepcopy(self.insert), copy.deepcopy(self.remove))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "remove": copy.deepcopy(self.remove),
            "insert": copy.deepcopy(self.insert),
        }


@dataclass
class AttributeOperation:
    """Change of one attribute.

    ABSENT as from_value or to_value means the key is not set, which is
    different from the key being set to None. ABSENT values are left out of
    the dict form.
    """

    type: ClassVar[str] = "attribute"

    key: str
    from_value: AttributeValue | Absent = ABSENT
    to_value: AttributeValue | Absent = ABSENT

    def reversed(self) -> AttributeOperation:
        return AttributeOperation(
            self.key, copy.deepcopy(self.to_value), copy.deepcopy(self.from_value)
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "key": self.key}
        if self.from_value is not ABSENT:
            data["from"] = copy.deepcopy(self.from_value)
        if self.to_value is not ABSENT:
            data["to"] = copy.deepcopy(self.to_value)
        return data


@dataclass
class AnnotateOperation:
    type: ClassVar[str] = "annotate"

    method: AnnotationMethod
    bias: AnnotationBias
    annotation: dict[str, Any]

    def reversed(self) -> AnnotateOperation:
        return AnnotateOperation(self.method.inverse(), self.bias, copy.deepcopy(self.annotation))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "method": self.method.value,
            "bias": self.bias.value,
            "annotation": copy.deepcopy(self.annotation),
        }


Operation = Union[RetainOperation, ReplaceOperation, AttributeOperation, AnnotateOperation]


def operation_from_dict(data: dict[str, Any]) -> Operation:
    """Build an operation from its dict form.

    Raises:
        ValidationError: If the dict has an unknown type or is missing fields
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Operation must be a dictionary, got {type(data).__name__}")
    op_type = data.get("type")
    try:
        if op_type == RetainOperation.type:
            return RetainOperation(int(data["length"]))
        if op_type == ReplaceOperation.type:
            return ReplaceOperation(list(data["remove"]), list(data["insert"]))
        if op_type == AttributeOperation.type:
            return AttributeOperation(
                data["key"], data.get("from", ABSENT), data.get("to", ABSENT)
            )
        if op_type == AnnotateOperation.type:
            return AnnotateOperation(
                AnnotationMethod(data["method"]),
                AnnotationBias(data["bias"]),
                dict(data["annotation"]),
            )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid '{op_type}' operation: {e}") from e
    raise ValidationError(f"Unknown operation type: {op_type}")
