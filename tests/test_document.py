"""Tests for the Document class: selection, fixups and annotation queries."""

import json

import pytest

from lineardoc import (
    Document,
    InvalidInsertionError,
    InvalidRangeError,
    Range,
    SelectionMode,
    ValidationError,
)
from lineardoc.node_factory import create_builtin_factory

P = {"type": "paragraph"}
P_END = {"type": "/paragraph"}
BOLD = {"type": "textStyle/bold"}


def make_document(data):
    return Document(data, factory=create_builtin_factory())


def paragraphs_data():
    """Two paragraphs: [p a b /p p c d /p]."""
    return [P, "a", "b", P_END, P, "c", "d", P_END]


def mixed_data():
    """A heading with bold text, a one-cell table and a paragraph with an image."""
    return [
        {"type": "heading", "attributes": {"level": 1}},
        "a",
        ["b", [BOLD]],
        "c",
        {"type": "/heading"},
        {"type": "table"},
        {"type": "tableRow"},
        {"type": "tableCell"},
        P,
        "d",
        P_END,
        {"type": "/tableCell"},
        {"type": "/tableRow"},
        {"type": "/table"},
        P,
        "e",
        {"type": "image"},
        {"type": "/image"},
        "f",
        P_END,
    ]


def list_data():
    return [
        {"type": "list"},
        {"type": "listItem"},
        P, "a", "b", P_END,
        {"type": "/listItem"},
        {"type": "listItem"},
        P, "c", "d", P_END,
        {"type": "/listItem"},
        {"type": "/list"},
    ]


def summarize(selection):
    """Reduce a selection to (type, range tuple or None) pairs."""
    return [
        (s.node.type, None if s.range is None else s.range.to_tuple()) for s in selection
    ]


class TestDocumentBasics:
    """Tests for construction, accessors and files."""

    def test_data_is_copied(self):
        """Test the document owns a copy of the data it was given."""
        data = paragraphs_data()
        doc = make_document(data)
        data.append("x")
        assert doc.get_length() == 8

    def test_data_is_normalized(self):
        """Test annotations are sorted and empty attribute maps or annotation lists dropped."""
        italic = {"type": "textStyle/italic"}
        doc = make_document(
            [{"type": "paragraph", "attributes": {}}, ["a", [italic, BOLD]], ["b", []], P_END]
        )
        assert doc.get_data() == [P, ["a", [BOLD, italic]], "b", P_END]

    def test_document_node(self):
        """Test the document node is the tree root."""
        doc = make_document(paragraphs_data())
        assert doc.get_document_node() is doc.get_tree().root
        assert doc.get_parent(doc.get_document_node()) is None

    def test_save_and_load(self, tmp_path):
        """Test a document survives a JSON round trip through a file."""
        path = tmp_path / "doc.json"
        make_document(mixed_data()).save(path)
        loaded = Document.from_file(path, factory=create_builtin_factory())
        assert loaded.get_data() == mixed_data()

    def test_from_file_missing(self, tmp_path):
        """Test loading a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            Document.from_file(tmp_path / "missing.json")

    def test_from_file_not_a_list(self, tmp_path):
        """Test a JSON file that is not a list is rejected."""
        path = tmp_path / "doc.json"
        path.write_text(json.dumps({"data": []}))
        with pytest.raises(ValidationError):
            Document.from_file(path)


class TestSelectNodesLeaves:
    """Tests for select_nodes() in leaves mode."""

    def test_range_across_paragraphs(self):
        """Test a range from inside one paragraph into the next selects both texts partially."""
        doc = make_document(paragraphs_data())
        selection = doc.select_nodes(Range(2, 6), SelectionMode.LEAVES)
        assert summarize(selection) == [("text", (2, 3)), ("text", (5, 6))]
        assert [s.index for s in selection] == [0, 0]

    def test_whole_document(self):
        """Test selecting everything reports each text leaf fully covered."""
        doc = make_document(paragraphs_data())
        selection = doc.select_nodes(Range(0, 8), "leaves")
        assert summarize(selection) == [("text", None), ("text", None)]
        assert selection[0].is_fully_covered

    def test_exact_text_range_is_full(self):
        """Test a range matching a text run exactly covers it fully."""
        doc = make_document(paragraphs_data())
        selection = doc.select_nodes(Range(1, 3), "leaves")
        assert summarize(selection) == [("text", None)]
        assert selection[0].node_range.to_tuple() == (1, 3)
        assert selection[0].node_outer_range.to_tuple() == (1, 3)

    def test_backwards_range(self):
        """Test a reversed range selects the same nodes."""
        doc = make_document(paragraphs_data())
        assert summarize(doc.select_nodes(Range(6, 2), "leaves")) == summarize(
            doc.select_nodes(Range(2, 6), "leaves")
        )

    def test_collapsed_range_inside_text(self):
        """Test an insertion point inside text selects that text."""
        doc = make_document(paragraphs_data())
        assert summarize(doc.select_nodes(Range(2, 2), "leaves")) == [("text", (2, 2))]

    def test_outer_edges_do_not_touch(self):
        """Test an insertion point between paragraphs falls back to the root."""
        doc = make_document(paragraphs_data())
        selection = doc.select_nodes(Range(4, 4), "leaves")
        assert summarize(selection) == [("document", (4, 4))]
        assert selection[0].index is None

    def test_empty_branch_is_reported(self):
        """Test an empty paragraph is selected itself."""
        doc = make_document([P, P_END])
        assert summarize(doc.select_nodes(Range(1, 1), "leaves")) == [("paragraph", (1, 1))]

    def test_image_leaf(self):
        """Test a range over the image paragraph selects text, image and text."""
        doc = make_document(mixed_data())
        selection = doc.select_nodes(Range(15, 19), "leaves")
        assert summarize(selection) == [("text", None), ("image", None), ("text", None)]
        assert [s.index for s in selection] == [0, 1, 2]

    def test_empty_document(self):
        """Test selecting in an empty document gives an empty list."""
        doc = make_document([])
        assert doc.select_nodes(Range(0, 0), "leaves") == []

    def test_range_outside_document(self):
        """Test a range past the end is rejected."""
        doc = make_document(paragraphs_data())
        with pytest.raises(InvalidRangeError):
            doc.select_nodes(Range(0, 9), "leaves")
        with pytest.raises(InvalidRangeError):
            doc.select_nodes(Range(-1, 2), "leaves")

    def test_unknown_mode(self):
        """Test an unknown selection mode is rejected."""
        doc = make_document(paragraphs_data())
        with pytest.raises(ValueError):
            doc.select_nodes(Range(0, 1), "siblings")


class TestSelectNodesCovered:
    """Tests for select_nodes() in covered mode."""

    def test_fully_covered_paragraph(self):
        """Test a range over a whole paragraph selects the paragraph."""
        doc = make_document(paragraphs_data())
        selection = doc.select_nodes(Range(0, 4), "covered")
        assert summarize(selection) == [("paragraph", None)]
        assert selection[0].node_range.to_tuple() == (1, 3)
        assert selection[0].node_outer_range.to_tuple() == (0, 4)

    def test_whole_document(self):
        """Test selecting everything reports the top-level nodes."""
        doc = make_document(paragraphs_data())
        assert summarize(doc.select_nodes(Range(0, 8), "covered")) == [
            ("paragraph", None),
            ("paragraph", None),
        ]

    def test_descends_into_partial_branches(self):
        """Test partially covered branches are descended into."""
        doc = make_document(mixed_data())
        selection = doc.select_nodes(Range(1, 9), "covered")
        assert summarize(selection) == [("text", None), ("text", (9, 9))]

    def test_range_touching_paragraph_edges(self):
        """Test a range from the end of one paragraph to the start of the next."""
        doc = make_document(paragraphs_data())
        assert summarize(doc.select_nodes(Range(3, 5), "covered")) == [
            ("text", (3, 3)),
            ("text", (5, 5)),
        ]


class TestBranchFromOffset:
    """Tests for get_branch_node_from_offset()."""

    def test_inside_paragraph(self):
        """Test offsets within a paragraph's content belong to it."""
        doc = make_document(paragraphs_data())
        assert doc.get_branch_node_from_offset(1).type == "paragraph"
        assert doc.get_branch_node_from_offset(3).type == "paragraph"

    def test_between_paragraphs(self):
        """Test offsets between paragraphs belong to the document."""
        doc = make_document(paragraphs_data())
        assert doc.get_branch_node_from_offset(4).type == "document"
        assert doc.get_branch_node_from_offset(0).type == "document"

    def test_nested(self):
        """Test the deepest enclosing branch is found."""
        doc = make_document(list_data())
        assert doc.get_branch_node_from_offset(3).type == "paragraph"
        assert doc.get_branch_node_from_offset(2).type == "listItem"
        assert doc.get_branch_node_from_offset(7).type == "list"


class TestAnnotations:
    """Tests for annotation queries."""

    def test_offset_contains_annotation(self):
        """Test an annotated character reports its annotation."""
        doc = make_document(mixed_data())
        assert doc.offset_contains_annotation(2, {"type": "textStyle/bold"})
        assert not doc.offset_contains_annotation(1, BOLD)
        assert not doc.offset_contains_annotation(2, {"type": "textStyle/italic"})

    def test_annotations_compared_by_value(self):
        """Test annotations with the same values match regardless of key order."""
        link = {"type": "link", "attributes": {"href": "x"}}
        doc = make_document([P, ["a", [link]], P_END])
        assert doc.offset_contains_annotation(1, {"attributes": {"href": "x"}, "type": "link"})
        assert not doc.offset_contains_annotation(1, {"type": "link", "attributes": {"href": "y"}})

    def test_elements_have_no_annotations(self):
        """Test element markers never contain annotations."""
        doc = make_document(mixed_data())
        assert doc.offset_contains_annotation(0, BOLD) is False
        assert doc.get_annotations_from_offset(0) == []

    def test_get_annotations_from_offset(self):
        """Test reading the annotations of a character."""
        doc = make_document(mixed_data())
        assert doc.get_annotations_from_offset(2) == [BOLD]
        assert doc.get_annotations_from_offset(1) == []

    def test_offset_out_of_bounds(self):
        """Test querying past the end is rejected."""
        doc = make_document(paragraphs_data())
        with pytest.raises(InvalidRangeError):
            doc.offset_contains_annotation(8, BOLD)


class TestFixupInsertion:
    """Tests for fixup_insertion()."""

    def test_text_in_paragraph_unchanged(self):
        """Test text inserted inside a paragraph needs no fixing."""
        doc = make_document(paragraphs_data())
        assert doc.fixup_insertion(["x", "y"], 2) == ["x", "y"]

    def test_text_at_root_is_wrapped(self):
        """Test text inserted between paragraphs is wrapped in a paragraph."""
        doc = make_document(paragraphs_data())
        assert doc.fixup_insertion(["x"], 4) == [P, "x", P_END]

    def test_custom_wrapper(self):
        """Test the wrapper type can be chosen."""
        doc = make_document(paragraphs_data())
        assert doc.fixup_insertion(["x"], 4, wrapper_type="heading") == [
            {"type": "heading"},
            "x",
            {"type": "/heading"},
        ]

    def test_paragraph_in_paragraph_splits(self):
        """Test inserting a paragraph inside a paragraph splits the enclosing one."""
        doc = make_document(paragraphs_data())
        assert doc.fixup_insertion([P, "x", P_END], 2) == [P_END, P, "x", P_END, P]

    def test_unclosed_elements_are_closed(self):
        """Test inserted elements left open are closed."""
        doc = make_document(paragraphs_data())
        assert doc.fixup_insertion([P, "x"], 4) == [P, "x", P_END]

    def test_inline_leaf_in_paragraph(self):
        """Test an image can be inserted into a paragraph as is."""
        doc = make_document(paragraphs_data())
        image = [{"type": "image"}, {"type": "/image"}]
        assert doc.fixup_insertion(image, 2) == image

    def test_input_not_modified(self):
        """Test the given data is not changed."""
        doc = make_document(paragraphs_data())
        data = ["x"]
        doc.fixup_insertion(data, 4)
        assert data == ["x"]

    def test_unbalanced_closing(self):
        """Test closing an element that does not enclose the offset is rejected."""
        doc = make_document(paragraphs_data())
        with pytest.raises(InvalidInsertionError):
            doc.fixup_insertion([{"type": "/heading"}], 2)

    def test_explicit_paragraph_split(self):
        """Test a closing and opening pair splits the enclosing paragraph as given."""
        doc = make_document(paragraphs_data())
        assert doc.fixup_insertion([P_END, P], 2) == [P_END, P]

    def test_explicit_split_keeps_new_attributes(self):
        """Test the second half of a split takes the inserted opening."""
        doc = make_document(paragraphs_data())
        styled = {"type": "paragraph", "attributes": {"style": "lead"}}
        assert doc.fixup_insertion([P_END, styled, "x"], 2) == [P_END, styled, "x"]

    def test_closing_without_reopen(self):
        """Test a lone closing marker splits and the original opening is re-emitted."""
        doc = make_document(paragraphs_data())
        assert doc.fixup_insertion([P_END], 2) == [P_END, P]

    def test_explicit_list_item_split(self):
        """Test splitting a paragraph and its list item with explicit markers."""
        doc = make_document(list_data())
        data = [P_END, {"type": "/listItem"}, {"type": "listItem"}, P]
        assert doc.fixup_insertion(data, 4) == data

    def test_closing_unsplittable_rejected(self):
        """Test a closing marker for a list cannot split it."""
        doc = make_document(list_data())
        with pytest.raises(InvalidInsertionError):
            doc.fixup_insertion([{"type": "/list"}], 7)

    def test_closing_document_rejected(self):
        """Test the document node cannot be closed."""
        doc = make_document(paragraphs_data())
        with pytest.raises(InvalidInsertionError):
            doc.fixup_insertion([{"type": "/document"}], 4)

    def test_items_are_normalized(self):
        """Test inserted items come out in canonical form."""
        doc = make_document(paragraphs_data())
        italic = {"type": "textStyle/italic"}
        assert doc.fixup_insertion([["x", [italic, BOLD]], ["y", []]], 2) == [
            ["x", [BOLD, italic]],
            "y",
        ]

    def test_unsplittable_ancestor(self):
        """Test a paragraph cannot be placed directly in a list."""
        doc = make_document(list_data())
        with pytest.raises(InvalidInsertionError):
            doc.fixup_insertion([P, "x", P_END], 7)

    def test_inside_leaf(self):
        """Test nothing can be inserted between an image's markers."""
        doc = make_document(mixed_data())
        with pytest.raises(InvalidInsertionError):
            doc.fixup_insertion(["x"], 17)

    def test_offset_outside_document(self):
        """Test an offset past the end is rejected."""
        doc = make_document(paragraphs_data())
        with pytest.raises(InvalidRangeError):
            doc.fixup_insertion(["x"], 9)
