"""Tests for reading and writing tree files."""

import json

import pytest

from errors import TreeFileError
from tree import TreeNode
from tree_io import dump_trees, load_trees


class TestLoadTrees:
    def test_single_tree_object(self, tmp_path, sample_tree):
        path = tmp_path / "tree.json"
        path.write_text(json.dumps(sample_tree))
        assert load_trees(path) == [sample_tree]

    def test_list_of_trees(self, tmp_path, sample_tree):
        path = tmp_path / "forest.json"
        lone = {"id": "x", "ty": "Selector"}
        path.write_text(json.dumps([sample_tree, lone]))
        assert load_trees(path) == [sample_tree, lone]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(TreeFileError):
            load_trees(path)

    @pytest.mark.parametrize("content", ["42", '"Root"', "[1, 2]"])
    def test_not_a_tree(self, tmp_path, content):
        path = tmp_path / "odd.json"
        path.write_text(content)
        with pytest.raises(TreeFileError):
            load_trees(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(TreeFileError):
            load_trees(tmp_path / "nope.json")


class TestDumpTrees:
    def test_writes_json_array(self, tmp_path, sample_tree):
        path = tmp_path / "out.json"
        dump_trees(path, [TreeNode.from_dict(sample_tree)])
        assert json.loads(path.read_text()) == [sample_tree]
        assert path.read_text().startswith("[\n  {")

    def test_save_then_load_into_editor(self, tmp_path, context, sample_tree):
        context.load([sample_tree])
        path = tmp_path / "saved.json"
        dump_trees(path, context.synchronizer.snapshot_all())

        context.synchronizer.reset()
        context.load(load_trees(path))
        assert context.synchronizer.snapshot().to_dict() == sample_tree

    def test_unwritable_path(self, tmp_path):
        with pytest.raises(TreeFileError):
            dump_trees(tmp_path / "missing" / "out.json", [])
