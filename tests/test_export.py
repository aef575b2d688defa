"""Tests for exporting node trees and selections."""

import json

from lineardoc import Document, Range, tree_to_xml, tree_to_xml_string
from lineardoc.export import selection_to_dicts
from lineardoc.node_factory import create_builtin_factory

P = {"type": "paragraph"}
P_END = {"type": "/paragraph"}
BOLD = {"type": "textStyle/bold"}


def make_document(data):
    return Document(data, factory=create_builtin_factory())


class TestTreeToXml:
    """Tests for tree_to_xml()."""

    def test_paragraphs(self):
        """Test paragraphs become elements holding their text."""
        doc = make_document([P, "a", "b", P_END, P, "c", "d", P_END])
        root = tree_to_xml(doc)
        assert root.tag == "document"
        assert [child.tag for child in root] == ["paragraph", "paragraph"]
        assert root[0].text == "ab"
        assert root[1].text == "cd"

    def test_attributes(self):
        """Test string attributes are copied and other values are JSON encoded."""
        doc = make_document(
            [
                {"type": "heading", "attributes": {"level": 1, "align": "center"}},
                "a",
                {"type": "/heading"},
            ]
        )
        heading = tree_to_xml(doc)[0]
        assert heading.get("level") == "1"
        assert heading.get("align") == "center"

    def test_annotated_text_in_spans(self):
        """Test annotated characters are grouped into spans."""
        doc = make_document([P, "a", ["b", [BOLD]], ["c", [BOLD]], "d", P_END])
        paragraph = tree_to_xml(doc)[0]
        assert paragraph.text == "a"
        span = paragraph[0]
        assert span.tag == "span"
        assert span.text == "bc"
        assert json.loads(span.get("annotations")) == [BOLD]
        assert span.tail == "d"

    def test_inline_leaf(self):
        """Test text after an inline image becomes its tail."""
        doc = make_document([P, "e", {"type": "image"}, {"type": "/image"}, "f", P_END])
        paragraph = tree_to_xml(doc)[0]
        assert paragraph.text == "e"
        assert paragraph[0].tag == "image"
        assert paragraph[0].tail == "f"

    def test_xml_string(self):
        """Test the serialized form."""
        doc = make_document([P, "a", P_END])
        xml = tree_to_xml_string(doc, pretty_print=False)
        assert xml == "<document><paragraph>a</paragraph></document>"


class TestSelectionToDicts:
    """Tests for selection_to_dicts()."""

    def test_selection(self):
        """Test selections convert to plain dicts."""
        doc = make_document([P, "a", "b", P_END, P, "c", "d", P_END])
        result = selection_to_dicts(doc.select_nodes(Range(2, 8), "covered"))
        assert result == [
            {
                "type": "text",
                "index": 0,
                "range": [2, 3],
                "node_range": [1, 3],
                "node_outer_range": [1, 3],
            },
            {
                "type": "paragraph",
                "index": 1,
                "range": None,
                "node_range": [5, 7],
                "node_outer_range": [4, 8],
            },
        ]
