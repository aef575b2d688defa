"""
Custom exception classes for the lineardoc package.

Every error raised by the data model and the transaction builders derives from
LinearDocError, so callers can catch the whole family or a specific kind.
"""

from typing import Any


class LinearDocError(Exception):
    """Base exception for all lineardoc errors."""

    pass


class UnregisteredTypeError(LinearDocError):
    """Raised when a node type name was never registered with a NodeFactory.

    Attributes:
        type_name: The unknown node type name
    """

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Unregistered node type: '{type_name}'")


class InvalidRangeError(LinearDocError):
    """Raised when a range or offset cannot be used against the document.

    Attributes:
        start: Start offset of the offending range
        end: End offset of the offending range
        reason: Short description of what is wrong
    """

    def __init__(self, start: int, end: int, reason: str | None = None) -> None:
        self.start = start
        self.end = end
        self.reason = reason
        msg = f"Invalid range, cannot use {start} to {end}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvalidRetainError(LinearDocError):
    """Raised when a retain operation would move the cursor backwards.

    Attributes:
        length: The rejected retain length
    """

    def __init__(self, length: int) -> None:
        self.length = length
        super().__init__(f"Invalid retain length, cannot retain backwards: {length}")


class NotAnElementError(LinearDocError):
    """Raised when an attribute change targets content data instead of an element.

    Attributes:
        offset: Offset of the content item
    """

    def __init__(self, offset: int) -> None:
        self.offset = offset
        super().__init__(f"Cannot set attributes on non-element data at offset {offset}")


class ClosingElementError(LinearDocError):
    """Raised when an attribute change targets a closing element marker.

    Attributes:
        offset: Offset of the closing marker
    """

    def __init__(self, offset: int) -> None:
        self.offset = offset
        super().__init__(f"Cannot set attributes on closing element at offset {offset}")


class InvalidDataError(LinearDocError):
    """Raised when linear data does not describe a well-formed tree.

    Attributes:
        offset: Offset where the problem was detected
    """

    def __init__(self, message: str, offset: int | None = None) -> None:
        self.offset = offset
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)


class InvalidInsertionError(LinearDocError):
    """Raised when data cannot be made legal for insertion at an offset.

    Attributes:
        offset: The insertion offset
        reason: Why the insertion was rejected
    """

    def __init__(self, offset: int, reason: str) -> None:
        self.offset = offset
        self.reason = reason
        super().__init__(f"Cannot insert at offset {offset}: {reason}")


class InvalidAttributeError(LinearDocError):
    """Raised when an attribute value is outside the supported value types.

    Attributes:
        key: Attribute name
        value: The rejected value
    """

    def __init__(self, key: str, value: Any) -> None:
        self.key = key
        self.value = value
        super().__init__(
            f"Unsupported value for attribute '{key}': {type(value).__name__} "
            "(expected str, int, float, bool, None, list or mapping)"
        )


class TransactionApplyError(LinearDocError):
    """Raised when a transaction does not match the document it is applied to.

    This is a consistency failure: the transaction was built against a
    different document state and must be rebuilt, not retried.

    Attributes:
        reason: Machine-readable failure kind (e.g. "replace_mismatch")
        offset: Offset of the cursor when the failure occurred
        expected: What the transaction expected to find
        actual: What was actually found
    """

    def __init__(
        self,
        message: str,
        *,
        reason: str = "mismatch",
        offset: int | None = None,
        expected: Any = None,
        actual: Any = None,
    ) -> None:
        self.reason = reason
        self.offset = offset
        self.expected = expected
        self.actual = actual
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {
            "reason": self.reason,
            "offset": self.offset,
            "expected": self.expected,
            "actual": self.actual,
        }


class ValidationError(LinearDocError):
    """Raised when an input file or edit specification is malformed.

    Attributes:
        errors: List of specific validation error messages (optional)
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)
