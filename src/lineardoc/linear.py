"""
Helpers for reading and rewriting items of linear document data.

Linear data is a flat list. Each item is one of:

- a content item: a single character ``"a"``, or an annotated character
  ``["a", [{"type": "textStyle/bold"}]]``
- an opening element marker: ``{"type": "paragraph", "attributes": {...}}``
- a closing element marker: ``{"type": "/paragraph"}``

Annotations are compared by value through annotation_hash() and kept sorted
by it, so a character's annotation list behaves like a set. normalize_item()
brings an item into this canonical form.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any, Union

from .constants import CLOSING_PREFIX
from .errors import InvalidAttributeError

AttributeValue = Union[str, int, float, bool, None, list, Mapping[str, Any]]
Annotation = Mapping[str, Any]
Item = Any


class Absent(Enum):
    """Marker for an attribute key that is not set, as opposed to set to None."""

    ABSENT = "absent"

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = Absent.ABSENT


def is_element(item: Item) -> bool:
    """Check if an item is an element marker (opening or closing)."""
    return isinstance(item, Mapping) and "type" in item


def is_open_element(item: Item) -> bool:
    """Check if an item is an opening element marker."""
    return is_element(item) and not item["type"].startswith(CLOSING_PREFIX)


def is_close_element(item: Item) -> bool:
    """Check if an item is a closing element marker."""
    return is_element(item) and item["type"].startswith(CLOSING_PREFIX)


def get_element_type(item: Item) -> str:
    """Get the node type named by an element marker, without the closing prefix."""
    element_type = item["type"]
    if element_type.startswith(CLOSING_PREFIX):
        return element_type[len(CLOSING_PREFIX) :]
    return element_type


def make_closing(element_type: str) -> dict[str, str]:
    return {"type": CLOSING_PREFIX + element_type}


def get_character(item: Item) -> str:
    """Get the character of a content item, ignoring its annotations."""
    if isinstance(item, str):
        return item
    return item[0]


def get_annotations(item: Item) -> list[Annotation]:
    """Get the annotations carried by a content item (empty for plain characters)."""
    if isinstance(item, str) or is_element(item):
        return []
    return list(item[1])


def annotation_hash(annotation: Annotation) -> str:
    """Return a stable key for an annotation so equal values compare equal.

    Examples:
        >>> annotation_hash({"type": "bold"}) == annotation_hash({"type": "bold"})
        True
    """
    return json.dumps(annotation, sort_keys=True, separators=(",", ":"))


def contains_annotation(item: Item, annotation: Annotation) -> bool:
    """Check if a content item carries an annotation equal to the given one."""
    key = annotation_hash(annotation)
    return any(annotation_hash(existing) == key for existing in get_annotations(item))


def set_annotation(item: Item, annotation: Annotation) -> Item:
    """Return a copy of a content item with the annotation added.

    Items that already carry the annotation are returned unchanged.
    """
    if contains_annotation(item, annotation):
        return item
    annotations = get_annotations(item)
    annotations.append(dict(annotation))
    return [get_character(item), sorted(annotations, key=annotation_hash)]


def clear_annotation(item: Item, annotation: Annotation) -> Item:
    """Return a copy of a content item with the annotation removed.

    A character left without annotations collapses back to a plain string.
    """
    key = annotation_hash(annotation)
    annotations = [a for a in get_annotations(item) if annotation_hash(a) != key]
    if not annotations:
        return get_character(item)
    return [get_character(item), annotations]


def normalize_item(item: Item) -> Item:
    """Return an item in canonical form.

    Annotations are sorted by annotation_hash(), characters without
    annotations become plain strings, and element markers lose an empty
    ``attributes`` mapping. Data made only of canonical items comes back
    unchanged after any transaction followed by its inverse.

    Examples:
        >>> normalize_item(["a", []])
        'a'
        >>> normalize_item({"type": "paragraph", "attributes": {}})
        {'type': 'paragraph'}
    """
    if is_element(item):
        if "attributes" in item and not item["attributes"]:
            return {key: value for key, value in item.items() if key != "attributes"}
        return item
    if isinstance(item, str):
        return item
    annotations = get_annotations(item)
    if not annotations:
        return get_character(item)
    return [get_character(item), sorted(annotations, key=annotation_hash)]


def validate_attribute_value(key: str, value: Any) -> None:
    """Check that an attribute value belongs to the supported variant types.

    Args:
        key: Attribute name (used in the error message)
        value: Value to check; lists and mappings are checked recursively

    Raises:
        InvalidAttributeError: If the value or a nested value is unsupported
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return
    if isinstance(value, list):
        for entry in value:
            validate_attribute_value(key, entry)
        return
    if isinstance(value, Mapping):
        for nested_key, entry in value.items():
            if not isinstance(nested_key, str):
                raise InvalidAttributeError(key, value)
            validate_attribute_value(key, entry)
        return
    raise InvalidAttributeError(key, value)
