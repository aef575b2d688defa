"""
Export of a document's node tree and selections for inspection.

tree_to_xml() mirrors the node tree as an lxml element tree: each node becomes
an element named after its type, attributes become XML attributes, and text
leaves become text content. The XML form is for reading and debugging only;
documents are never loaded back from it.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from lxml import etree

from .constants import TEXT_TYPE
from .linear import get_annotations, get_character

if TYPE_CHECKING:
    from .document import Document, SelectedNode
    from .nodes import Node


def tree_to_xml(document: Document) -> etree._Element:
    """Build an XML element tree mirroring the document's node tree.

    Annotated characters are grouped into ``<span>`` elements whose
    ``annotations`` attribute lists the annotation values as JSON.

    Args:
        document: Document to export

    Returns:
        The root element (named after the root node type)
    """
    tree = document.get_tree()
    root = etree.Element(tree.root.type)
    _append_children(document, tree.root, root)
    return root


def tree_to_xml_string(document: Document, pretty_print: bool = True) -> str:
    """Serialize the document's node tree as an XML string."""
    return etree.tostring(tree_to_xml(document), encoding="unicode", pretty_print=pretty_print)


def _append_children(document: Document, node: Node, element: etree._Element) -> None:
    data = document.get_data()
    for child in document.get_tree().get_children(node):
        if child.type == TEXT_TYPE and not child.is_wrapped:
            _append_text(element, data[child.offset : child.offset + child.length])
            continue
        child_element = etree.SubElement(element, child.type)
        for key, value in child.attributes.items():
            child_element.set(key, value if isinstance(value, str) else json.dumps(value))
        _append_children(document, child, child_element)


def _append_text(element: etree._Element, items: list[Any]) -> None:
    """Append a run of content items, wrapping annotated stretches in spans."""
    runs: list[tuple[str, str]] = []
    for item in items:
        key = json.dumps(get_annotations(item), sort_keys=True) if get_annotations(item) else ""
        if runs and runs[-1][0] == key:
            runs[-1] = (key, runs[-1][1] + get_character(item))
        else:
            runs.append((key, get_character(item)))

    for key, text in runs:
        if key:
            span = etree.SubElement(element, "span")
            span.set("annotations", key)
            span.text = text
        elif len(element):
            last = element[-1]
            last.tail = (last.tail or "") + text
        else:
            element.text = (element.text or "") + text


def selection_to_dicts(selection: list[SelectedNode]) -> list[dict[str, Any]]:
    """Convert a select_nodes() result to plain dicts for printing."""
    return [
        {
            "type": selected.node.type,
            "index": selected.index,
            "range": None if selected.range is None else list(selected.range.to_tuple()),
            "node_range": list(selected.node_range.to_tuple()),
            "node_outer_range": list(selected.node_outer_range.to_tuple()),
        }
        for selected in selection
    ]
