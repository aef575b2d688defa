"""
BatchOperations class for applying a list of edits to a document.

Each edit is a dictionary naming an edit type and its parameters. Edits are
turned into transactions with the Transaction builders and committed one at a
time, so later edits see the document as changed by earlier ones.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from .errors import LinearDocError, ValidationError
from .linear import ABSENT
from .ranges import Range
from .results import EditResult
from .transaction import Transaction

if TYPE_CHECKING:
    from .document import Document


class BatchOperations:
    """Handles batch edit operations on a Document.

    Example:
        >>> batch = BatchOperations(doc)
        >>> edits = [
        ...     {"type": "insert", "offset": 2, "data": ["b"]},
        ...     {"type": "annotate", "start": 1, "end": 3, "annotation": {"type": "bold"}},
        ... ]
        >>> results = batch.apply_edits(edits)
    """

    def __init__(self, document: Document) -> None:
        """Initialize BatchOperations with a Document reference.

        Args:
            document: The Document instance to operate on
        """
        self._document = document

    def apply_edits(
        self, edits: list[dict[str, Any]], stop_on_error: bool = False
    ) -> list[EditResult]:
        """Apply multiple edits in sequence.

        Args:
            edits: List of edit dictionaries with keys:
                - type: Edit operation ("insert", "remove", "set_attribute",
                  "annotate", "convert")
                - Other parameters specific to the edit type
            stop_on_error: If True, stop processing on first error

        Returns:
            List of EditResult objects, one per processed edit
        """
        results = []

        for i, edit in enumerate(edits):
            edit_type = edit.get("type") if isinstance(edit, dict) else None
            if not edit_type:
                results.append(
                    EditResult(
                        success=False,
                        edit_type="unknown",
                        message=f"Edit {i}: Missing 'type' field",
                        error=ValidationError("Missing 'type' field"),
                    )
                )
                if stop_on_error:
                    break
                continue

            result = self._apply_single_edit(edit_type, edit)
            results.append(result)
            if not result.success and stop_on_error:
                break

        return results

    def _apply_single_edit(self, edit_type: str, edit: dict[str, Any]) -> EditResult:
        """Build and commit the transaction for one edit."""
        handlers = {
            "insert": self._build_insert,
            "remove": self._build_remove,
            "set_attribute": self._build_set_attribute,
            "annotate": self._build_annotate,
            "convert": self._build_convert,
        }

        handler = handlers.get(edit_type)
        if handler is None:
            return EditResult(
                success=False,
                edit_type=edit_type,
                message=f"Unknown edit type: {edit_type}",
                error=ValidationError(f"Unknown edit type: {edit_type}"),
            )

        try:
            tx, message = handler(edit)
            self._document.commit(tx)
        except LinearDocError as e:
            return EditResult(
                success=False, edit_type=edit_type, message=f"Error: {e}", error=e
            )
        except ValueError as e:
            return EditResult(
                success=False,
                edit_type=edit_type,
                message=f"Invalid parameter: {e}",
                error=e,
            )
        return EditResult(success=True, edit_type=edit_type, message=message, transaction=tx)

    def _build_insert(self, edit: dict[str, Any]) -> tuple[Transaction, str]:
        offset = _require_int(edit, "offset")
        data = edit.get("data")
        if isinstance(data, str):
            data = list(data)
        if not isinstance(data, list) or not data:
            raise ValidationError("Missing required parameter: 'data'")
        tx = Transaction.new_from_insertion(self._document, offset, data)
        return tx, f"Inserted {len(data)} items at {offset}"

    def _build_remove(self, edit: dict[str, Any]) -> tuple[Transaction, str]:
        range_ = _require_range(edit)
        tx = Transaction.new_from_removal(self._document, range_)
        return tx, f"Removed {range_.start}-{range_.end} ({-tx.get_length_difference()} items)"

    def _build_set_attribute(self, edit: dict[str, Any]) -> tuple[Transaction, str]:
        offset = _require_int(edit, "offset")
        key = edit.get("key")
        if not key:
            raise ValidationError("Missing required parameter: 'key'")
        # No "value" key removes the attribute; null stores None
        value = edit.get("value", ABSENT)
        tx = Transaction.new_from_attribute_change(self._document, offset, key, value)
        return tx, f"Set attribute '{key}' at {offset}"

    def _build_annotate(self, edit: dict[str, Any]) -> tuple[Transaction, str]:
        range_ = _require_range(edit)
        annotation = edit.get("annotation")
        if not isinstance(annotation, dict):
            raise ValidationError("Missing required parameter: 'annotation'")
        method = edit.get("method", "set")
        tx = Transaction.new_from_annotation(self._document, range_, method, annotation)
        return tx, f"Annotated {range_.start}-{range_.end} ({method})"

    def _build_convert(self, edit: dict[str, Any]) -> tuple[Transaction, str]:
        range_ = _require_range(edit)
        node_type = edit.get("node_type")
        if not node_type:
            raise ValidationError("Missing required parameter: 'node_type'")
        tx = Transaction.new_from_content_branch_conversion(
            self._document, range_, node_type, edit.get("attributes")
        )
        return tx, f"Converted {range_.start}-{range_.end} to '{node_type}'"

    def apply_edit_file(
        self, path: str | Path, format: str = "yaml", stop_on_error: bool = False
    ) -> list[EditResult]:
        """Apply edits from a YAML or JSON file.

        The file should contain an 'edits' key with a list of edit dictionaries.

        Args:
            path: Path to the edit specification file
            format: File format - "yaml" or "json" (default: "yaml")
            stop_on_error: If True, stop processing on first error

        Returns:
            List of EditResult objects, one per processed edit

        Raises:
            ValidationError: If file cannot be parsed or has invalid format
            FileNotFoundError: If file does not exist

        Example YAML file:
            ```yaml
            edits:
              - type: insert
                offset: 2
                data: "new text"
              - type: convert
                start: 1
                end: 3
                node_type: heading
                attributes:
                  level: 2
            ```
        """
        file_path = Path(path)

        if not file_path.exists():
            raise FileNotFoundError(f"Edit file not found: {path}")

        try:
            with open(file_path, encoding="utf-8") as f:
                if format == "yaml":
                    data = yaml.safe_load(f)
                elif format == "json":
                    data = json.load(f)
                else:
                    raise ValidationError(f"Unsupported format: {format}")
        except yaml.YAMLError as e:
            raise ValidationError(f"Failed to parse YAML file: {e}") from e
        except json.JSONDecodeError as e:
            raise ValidationError(f"Failed to parse JSON file: {e}") from e

        if not isinstance(data, dict):
            raise ValidationError("Edit file must contain a dictionary/object")
        if "edits" not in data:
            raise ValidationError("Edit file must contain an 'edits' key")
        edits = data["edits"]
        if not isinstance(edits, list):
            raise ValidationError("'edits' must be a list")

        return self.apply_edits(edits, stop_on_error=stop_on_error)


def _require_int(edit: dict[str, Any], key: str) -> int:
    value = edit.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"Missing required parameter: '{key}' (integer)")
    return value


def _require_range(edit: dict[str, Any]) -> Range:
    return Range(_require_int(edit, "start"), _require_int(edit, "end"))
