"""Tests for snapshot based undo/redo."""

import pytest
from PyQt5.QtCore import QPointF

from config import EditorConfig
from context import EditorContext
from events import ParameterUpdate, Topic
from node_kind import LoopParameters, NodeKind, ScriptParameters


def tree_ids(synchronizer):
    return [[node.id for node in tree.walk()] for tree in synchronizer.snapshot_all()]


class TestUndoRedo:
    def test_fresh_context_has_nothing_to_undo(self, context):
        assert not context.history.can_undo
        assert not context.history.can_redo
        assert not context.history.undo()

    def test_undo_node_add(self, context):
        sync = context.synchronizer
        before = sync.snapshot_all()
        node = sync.create_node(NodeKind.SELECTOR, QPointF(100, 100))
        assert context.history.can_undo

        context.undo()
        assert sync.snapshot_all() == before
        assert sync.find_node(node.node_id) is None
        assert context.history.can_redo

        context.redo()
        assert sync.find_node(node.node_id) is not None
        assert sync.find_node(node.node_id).kind is NodeKind.SELECTOR

    def test_undo_link(self, context):
        sync = context.synchronizer
        root = sync.index.root_id()
        seq = sync.create_node(NodeKind.SEQUENCE, QPointF(0, 100))
        sync.connect_nodes(root, seq.node_id)

        context.undo()
        assert sync.index.parent_of(seq.node_id) is None
        context.redo()
        assert sync.index.parent_of(seq.node_id) == root

    def test_undo_delete(self, context, sample_tree):
        sync = context.synchronizer
        context.load([sample_tree])
        sync.delete_node("seq")
        assert tree_ids(sync) == [["root"]]

        context.undo()
        assert tree_ids(sync) == [["root", "seq", "act", "loop", "wait"]]
        assert sync.snapshot().to_dict() == sample_tree

    def test_undo_move(self, context, sample_tree):
        sync = context.synchronizer
        context.load([sample_tree])
        node = sync.find_node("act")
        node.setPos(QPointF(400, 400))
        context.scene.notify_node_moved(node)

        context.undo()
        assert sync.find_node("act").pos() == QPointF(-160, 240)

    def test_undo_parameter_change(self, context, sample_tree):
        sync = context.synchronizer
        context.load([sample_tree])
        context.bus.publish(Topic.UPDATE_NODE_PARM,
                            ParameterUpdate("act", NodeKind.ACTION, ScriptParameters("run", ""),
                                            notify=True))
        assert sync.find_node("act").label == "run"

        context.undo()
        assert sync.find_node("act").label == "open door"
        context.redo()
        assert sync.find_node("act").label == "run"

    def test_new_edit_clears_redo(self, context):
        sync = context.synchronizer
        sync.create_node(NodeKind.ACTION, QPointF(0, 0))
        context.undo()
        assert context.history.can_redo
        sync.create_node(NodeKind.WAIT, QPointF(0, 0))
        assert not context.history.can_redo

    def test_replay_does_not_record(self, context):
        sync = context.synchronizer
        sync.create_node(NodeKind.ACTION, QPointF(0, 0))
        sync.create_node(NodeKind.WAIT, QPointF(0, 0))
        context.undo()
        assert len(context.history.undo_stack) == 1
        assert len(context.history.redo_stack) == 1


class TestOneStepPerCommand:
    def test_delete_node_with_its_selected_link(self, context, sample_tree, events):
        """The link goes away with the node, so only the removal is recorded."""
        sync = context.synchronizer
        context.load([sample_tree])
        node = sync.find_node("act")
        node.setSelected(True)
        context.scene.incoming_edge(node).setSelected(True)
        del events[:]
        sync.delete_selected()

        assert len(context.history.undo_stack) == 1
        assert events.of(Topic.LINK_DISCONNECT) == []
        assert events.of(Topic.NODE_RMV) == ["act"]
        context.undo()
        assert sync.snapshot().to_dict() == sample_tree

    def test_delete_of_separate_subtrees(self, context, sample_tree):
        sync = context.synchronizer
        context.load([sample_tree])
        for node_id in ("act", "wait"):
            sync.find_node(node_id).setSelected(True)
        context.delete_selected()

        assert len(context.history.undo_stack) == 1
        assert tree_ids(sync) == [["root", "seq", "loop"]]
        context.undo()
        assert tree_ids(sync) == [["root", "seq", "act", "loop", "wait"]]

    def test_grouped_block_without_edits(self, context):
        with context.history.grouped():
            pass
        assert not context.history.can_undo

    def test_rejected_parameter_update(self, context, sample_tree):
        """A mismatched update leaves the canvas alone and records nothing."""
        context.load([sample_tree])
        context.bus.publish(Topic.UPDATE_NODE_PARM,
                            ParameterUpdate("act", NodeKind.ACTION, LoopParameters(3), notify=True))
        assert context.synchronizer.find_node("act").label == "open door"
        assert not context.history.can_undo

    def test_unchanged_parameters(self, context, sample_tree):
        context.load([sample_tree])
        context.bus.publish(Topic.UPDATE_NODE_PARM,
                            ParameterUpdate("act", NodeKind.ACTION,
                                            ScriptParameters("open door", "door.open()"),
                                            notify=True))
        assert not context.history.can_undo


class TestHistoryReset:
    def test_load_cleans_history(self, context, sample_tree):
        context.synchronizer.create_node(NodeKind.ACTION, QPointF(0, 0))
        assert context.history.can_undo
        context.load([sample_tree])
        assert not context.history.can_undo
        assert not context.history.can_redo

    def test_reset_cleans_history(self, context):
        context.synchronizer.create_node(NodeKind.ACTION, QPointF(0, 0))
        context.synchronizer.reset()
        assert not context.history.can_undo

    def test_materialize_without_user_load_keeps_history(self, context, sample_tree):
        context.synchronizer.create_node(NodeKind.ACTION, QPointF(0, 0))
        context.synchronizer.materialize(sample_tree)
        assert context.history.can_undo


class TestLimit:
    @pytest.fixture
    def small_context(self, qapp):
        ctx = EditorContext(config=EditorConfig(max_undo_steps=2))
        yield ctx
        ctx.close()

    def test_oldest_step_dropped(self, small_context):
        sync = small_context.synchronizer
        for kind in (NodeKind.ACTION, NodeKind.WAIT, NodeKind.LOOP):
            sync.create_node(kind, QPointF(0, 0))
        assert len(small_context.history.undo_stack) == 2

        assert small_context.history.undo()
        assert small_context.history.undo()
        assert not small_context.history.undo()
        kinds = [tree.kind for tree in sync.snapshot_all()]
        assert kinds == [NodeKind.ROOT, NodeKind.ACTION]
