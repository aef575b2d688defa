"""
Result classes for batch edit operations.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .transaction import Transaction


@dataclass
class EditResult:
    """Result of applying a single edit.

    Attributes:
        success: Whether the edit was applied
        edit_type: Type of edit (e.g., "insert", "remove")
        message: Human-readable message about the result
        transaction: The committed transaction, if the edit was applied
        error: Optional exception that occurred during the edit
    """

    success: bool
    edit_type: str
    message: str
    transaction: "Transaction | None" = None
    error: Exception | None = None

    def __str__(self) -> str:
        """Get string representation of the result."""
        status = "✓" if self.success else "✗"
        return f"{status} {self.edit_type}: {self.message}"
