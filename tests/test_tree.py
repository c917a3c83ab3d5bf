"""Tests for the tree model and the parent/child index."""

import pytest

from errors import DuplicateNode, InvalidLink, InvalidParameters, NodeNotFound, UnknownNodeKind
from node_kind import LoopParameters, NodeKind
from tree import Position, TreeIndex, TreeNode


@pytest.fixture
def index():
    idx = TreeIndex()
    idx.add("root", NodeKind.ROOT)
    idx.add("seq", NodeKind.SEQUENCE)
    idx.add("sel", NodeKind.SELECTOR)
    idx.add("act", NodeKind.ACTION)
    return idx


class TestPosition:
    def test_from_wire(self):
        assert Position.from_wire({"x": 3, "y": "4.5"}) == Position(3.0, 4.5)

    def test_missing_position_defaults_to_origin(self):
        assert Position.from_wire(None) == Position(0.0, 0.0)

    def test_bad_coordinate(self):
        with pytest.raises(InvalidParameters):
            Position.from_wire({"x": "left", "y": 0})


class TestTreeNode:
    """Test TreeNode wire conversion and traversal."""

    def test_round_trip(self, sample_tree):
        assert TreeNode.from_dict(sample_tree).to_dict() == sample_tree

    def test_children_always_written(self):
        node = TreeNode("a", NodeKind.SEQUENCE)
        assert node.to_dict()["children"] == []

    def test_from_dict_without_children(self):
        node = TreeNode.from_dict({"id": 7, "ty": "Loop", "loop": 2})
        assert node.id == "7"
        assert node.parameters == LoopParameters(2)
        assert node.children == []

    def test_from_dict_unknown_kind(self):
        with pytest.raises(UnknownNodeKind):
            TreeNode.from_dict({"id": "x", "ty": "Parallel"})

    def test_walk_is_preorder(self, sample_tree):
        tree = TreeNode.from_dict(sample_tree)
        assert [n.id for n in tree.walk()] == ["root", "seq", "act", "loop", "wait"]
        assert tree.find("wait").kind is NodeKind.WAIT
        assert tree.find("missing") is None


class TestTreeIndex:
    """Test attach/detach invariants of TreeIndex."""

    def test_duplicate_add(self, index):
        with pytest.raises(DuplicateNode):
            index.add("seq", NodeKind.SEQUENCE)

    def test_unknown_id(self, index):
        with pytest.raises(NodeNotFound):
            index.get("nope")

    def test_attach_keeps_child_order(self, index):
        index.attach("root", "seq")
        index.attach("seq", "act")
        index.attach("seq", "sel")
        assert index.children_of("seq") == ["act", "sel"]
        assert index.parent_of("sel") == "seq"
        assert index.roots() == ["root"]

    def test_single_parent(self, index):
        """A node that already has a parent cannot be attached again."""
        index.attach("seq", "act")
        with pytest.raises(InvalidLink):
            index.attach("sel", "act")
        assert index.parent_of("act") == "seq"
        assert index.children_of("sel") == []

    def test_root_is_never_a_child(self, index):
        with pytest.raises(InvalidLink):
            index.attach("seq", "root")

    def test_leaf_cannot_be_parent(self, index):
        with pytest.raises(InvalidLink):
            index.attach("act", "seq")

    def test_self_link(self, index):
        with pytest.raises(InvalidLink):
            index.attach("seq", "seq")

    def test_cycle(self, index):
        index.attach("seq", "sel")
        with pytest.raises(InvalidLink):
            index.attach("sel", "seq")

    def test_detach(self, index):
        index.attach("seq", "act")
        assert index.detach("act") == "seq"
        assert index.parent_of("act") is None
        assert index.detach("act") is None

    def test_remove_cascades(self, index):
        index.attach("root", "seq")
        index.attach("seq", "sel")
        index.attach("sel", "act")
        assert index.remove("seq") == ["seq", "sel", "act"]
        assert list(index) == ["root"]
        assert index.children_of("root") == []

    def test_root_id(self, index):
        assert index.root_id() == "root"
        index.clear()
        assert index.root_id() is None
        assert len(index) == 0
