"""Tests for the main window wiring."""

import json

import pytest
from PyQt5.QtCore import QPointF
from PyQt5.QtWidgets import QFileDialog, QMessageBox

from config import EditorConfig
from node_kind import NodeKind
from window import BehaviorTreeEditorWindow


@pytest.fixture
def window(qapp):
    win = BehaviorTreeEditorWindow(EditorConfig())
    yield win
    win.close()


class TestWindow:
    def test_starts_with_root(self, window):
        assert window.context.synchronizer.snapshot().kind is NodeKind.ROOT

    def test_add_node_at_view_centre(self, window):
        window.add_node_at(NodeKind.SEQUENCE)
        kinds = [tree.kind for tree in window.context.synchronizer.snapshot_all()]
        assert kinds == [NodeKind.ROOT, NodeKind.SEQUENCE]

    def test_drop_creates_node(self, window):
        window.view.node_dropped.emit(NodeKind.WAIT, QPointF(120, 80))
        wait = window.context.synchronizer.snapshot_all()[-1]
        assert wait.kind is NodeKind.WAIT
        assert (wait.position.x, wait.position.y) == (120.0, 80.0)

    def test_click_switches_panel(self, window):
        node = window.context.synchronizer.create_node(NodeKind.LOOP, QPointF(0, 0))
        window.scene.notify_node_clicked(node)
        assert window.panel_stack.currentIndex() == window.panel_pages["loop"]

    def test_delete_selected(self, window):
        node = window.context.synchronizer.create_node(NodeKind.ACTION, QPointF(0, 0))
        node.setSelected(True)
        window.delete_selected_items()
        assert window.scene.find_node(node.node_id) is None

    def test_warning_in_status_bar(self, window):
        window.add_node_at(NodeKind.ROOT)
        assert window.statusBar().currentMessage().startswith("Warning:")

    def test_save_and_load(self, window, tmp_path, monkeypatch, sample_tree):
        source = tmp_path / "in.json"
        source.write_text(json.dumps(sample_tree))
        monkeypatch.setattr(QFileDialog, "getOpenFileName", lambda *args: (str(source), ""))
        window.load_design()
        assert window.context.synchronizer.snapshot().to_dict() == sample_tree

        target = tmp_path / "out"
        monkeypatch.setattr(QFileDialog, "getSaveFileName", lambda *args: (str(target), ""))
        window.save_design()
        assert json.loads((tmp_path / "out.json").read_text()) == [sample_tree]

    def test_load_error_is_reported(self, window, tmp_path, monkeypatch):
        broken = tmp_path / "broken.json"
        broken.write_text("[")
        shown = []
        monkeypatch.setattr(QFileDialog, "getOpenFileName", lambda *args: (str(broken), ""))
        monkeypatch.setattr(QMessageBox, "critical", lambda *args: shown.append(args[2]))
        window.load_design()
        assert len(shown) == 1
        assert window.context.synchronizer.snapshot().kind is NodeKind.ROOT

    def test_close_tears_down_context(self, window):
        window.close()
        assert window.context.bus.subscriber_count() == 0
