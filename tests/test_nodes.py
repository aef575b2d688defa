"""Tests for building node trees from linear data."""

import pytest

from lineardoc import InvalidDataError, NodeKind, NodeTree, UnregisteredTypeError
from lineardoc.node_factory import create_builtin_factory
from lineardoc.nodes import can_be_merged_with, can_contain_content, is_content

P = {"type": "paragraph"}
P_END = {"type": "/paragraph"}


def build(data):
    return NodeTree.from_data(data, create_builtin_factory())


def list_data():
    """Two list items, each holding one paragraph."""
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


class TestTreeBuilding:
    """Tests for NodeTree.from_data()."""

    def test_root_spans_everything(self):
        """Test the root is an unwrapped document node over all the data."""
        tree = build([P, "a", P_END])
        assert tree.root.type == "document"
        assert tree.root.is_wrapped is False
        assert tree.root.range.to_tuple() == (0, 3)
        assert tree.root.outer_range.to_tuple() == (0, 3)

    def test_paragraph_ranges(self):
        """Test a paragraph's inner and outer ranges."""
        tree = build([P, "a", "b", P_END])
        paragraph = tree.get_children(tree.root)[0]
        assert paragraph.type == "paragraph"
        assert paragraph.kind is NodeKind.BRANCH
        assert paragraph.length == 2
        assert paragraph.range.to_tuple() == (1, 3)
        assert paragraph.outer_range.to_tuple() == (0, 4)

    def test_consecutive_content_is_one_text_leaf(self):
        """Test adjacent characters, annotated or not, form one text node."""
        tree = build([P, "a", ["b", [{"type": "textStyle/bold"}]], "c", P_END])
        paragraph = tree.get_children(tree.root)[0]
        (text,) = tree.get_children(paragraph)
        assert text.type == "text"
        assert text.kind is NodeKind.LEAF
        assert text.range.to_tuple() == (1, 4)

    def test_inline_element_splits_text(self):
        """Test an inline image divides the paragraph's text into two leaves."""
        tree = build([P, "a", {"type": "image"}, {"type": "/image"}, "b", P_END])
        paragraph = tree.get_children(tree.root)[0]
        types = [child.type for child in tree.get_children(paragraph)]
        assert types == ["text", "image", "text"]
        image = tree.get_children(paragraph)[1]
        assert image.kind is NodeKind.LEAF
        assert image.outer_range.to_tuple() == (2, 4)

    def test_attributes_are_copied(self):
        """Test opening marker attributes are exposed on the node."""
        tree = build([{"type": "heading", "attributes": {"level": 2}}, "a", {"type": "/heading"}])
        heading = tree.get_children(tree.root)[0]
        assert heading.attributes == {"level": 2}

    def test_parent_and_ancestors(self):
        """Test parent links and the nearest-first ancestor list."""
        tree = build(list_data())
        text = [node for node in tree.depth_first() if node.type == "text"][0]
        assert [node.type for node in tree.get_ancestors(text)] == [
            "paragraph",
            "listItem",
            "list",
            "document",
        ]
        assert tree.get_depth(text) == 4
        assert tree.get_parent(tree.root) is None

    def test_depth_first_order(self):
        """Test depth-first traversal visits nodes in document order."""
        tree = build([P, "a", P_END, P, P_END])
        assert [node.type for node in tree.depth_first()] == [
            "document",
            "paragraph",
            "text",
            "paragraph",
        ]
        assert len(tree) == 4

    def test_empty_data(self):
        """Test empty data gives a root with no children."""
        tree = build([])
        assert tree.root.children == []
        assert tree.root.length == 0


class TestInvalidData:
    """Tests for malformed linear data."""

    def test_unexpected_closing(self):
        """Test a closing marker with nothing open is rejected."""
        with pytest.raises(InvalidDataError) as exc_info:
            build(["a", P_END])
        assert exc_info.value.offset == 1

    def test_mismatched_closing(self):
        """Test a closing marker must match the innermost opening."""
        with pytest.raises(InvalidDataError):
            build([P, "a", {"type": "/heading"}])

    def test_unclosed_element(self):
        """Test data ending with an open element is rejected."""
        with pytest.raises(InvalidDataError) as exc_info:
            build(["a", P, "b"])
        assert exc_info.value.offset == 1

    def test_content_inside_leaf(self):
        """Test a leaf element cannot hold content."""
        with pytest.raises(InvalidDataError):
            build([P, {"type": "image"}, "a", {"type": "/image"}, P_END])

    def test_unregistered_type(self):
        """Test elements of unknown types are rejected."""
        with pytest.raises(UnregisteredTypeError):
            build([{"type": "blink"}, {"type": "/blink"}])


class TestCapabilities:
    """Tests for the node capability helpers."""

    def test_is_content(self):
        """Test text and images are content, paragraphs are not."""
        factory = create_builtin_factory()
        tree = NodeTree.from_data(
            [P, "a", {"type": "image"}, {"type": "/image"}, P_END], factory
        )
        paragraph = tree.get_children(tree.root)[0]
        text, image = tree.get_children(paragraph)
        assert is_content(factory, text)
        assert is_content(factory, image)
        assert not is_content(factory, paragraph)
        assert can_contain_content(factory, paragraph)
        assert not can_contain_content(factory, tree.root)


class TestCanBeMergedWith:
    """Tests for can_be_merged_with()."""

    def test_node_merges_with_itself(self):
        """Test a node is always mergeable with itself."""
        tree = build([P, "a", P_END])
        paragraph = tree.get_children(tree.root)[0]
        assert can_be_merged_with(tree, paragraph, paragraph)

    def test_sibling_paragraphs(self):
        """Test sibling paragraphs and their texts are mergeable."""
        tree = build([P, "a", P_END, P, "b", P_END])
        first, second = tree.get_children(tree.root)
        assert can_be_merged_with(tree, first, second)
        assert can_be_merged_with(
            tree, tree.get_children(first)[0], tree.get_children(second)[0]
        )

    def test_texts_in_separate_list_items(self):
        """Test texts inside matching wrappers at the same depth are mergeable."""
        tree = build(list_data())
        texts = [node for node in tree.depth_first() if node.type == "text"]
        assert can_be_merged_with(tree, texts[0], texts[1])

    def test_different_parent_types(self):
        """Test texts in a heading and a paragraph are not mergeable."""
        tree = build([{"type": "heading"}, "a", {"type": "/heading"}, P, "b", P_END])
        texts = [node for node in tree.depth_first() if node.type == "text"]
        assert not can_be_merged_with(tree, texts[0], texts[1])

    def test_different_depths(self):
        """Test a paragraph at the root is not mergeable with one inside a list."""
        tree = build([P, "a", P_END, *list_data()])
        paragraphs = [node for node in tree.depth_first() if node.type == "paragraph"]
        assert not can_be_merged_with(tree, paragraphs[0], paragraphs[1])

    def test_different_types(self):
        """Test a paragraph is not mergeable with a text node."""
        tree = build([P, "a", P_END])
        paragraph = tree.get_children(tree.root)[0]
        assert not can_be_merged_with(tree, paragraph, tree.get_children(paragraph)[0])
