"""
Property panels shown next to the canvas, and the node stencil.

Each panel edits the node selected by the last click. Pressing Apply publishes
UpdateNodeParm with notify=True; the coordinator applies it and the undo
controller records it.
"""

import logging

from PyQt5.QtCore import Qt, QMimeData
from PyQt5.QtGui import QBrush, QColor, QDrag
from PyQt5.QtWidgets import (QWidget, QFormLayout, QVBoxLayout, QLabel, QLineEdit,
                             QPlainTextEdit, QPushButton, QSpinBox, QListWidget,
                             QListWidgetItem, QAbstractItemView)

from errors import InvalidParameters
from events import ParameterUpdate, Topic
from graph import NODE_KIND_MIME
from node_kind import (LoopParameters, NodeKind, ScriptParameters, WaitParameters,
                       check_parameters, kind_spec, node_label)

log = logging.getLogger(__name__)


class ParameterPanel(QWidget):
    """Base for the panels that edit a node's parameters"""

    def __init__(self, bus, title, parent=None):
        super().__init__(parent)
        self.bus = bus
        self.node_id = None
        self.kind = None

        layout = QVBoxLayout(self)
        self.title_label = QLabel(title)
        self.title_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(self.title_label)

        self.form = QFormLayout()
        layout.addLayout(self.form)

        self.apply_button = QPushButton("Apply")
        self.apply_button.clicked.connect(self.apply)
        layout.addWidget(self.apply_button)
        layout.addStretch(1)
        self.setEnabled(False)

    def show_node(self, node_id, kind, parameters):
        self.node_id = node_id
        self.kind = kind
        self.title_label.setText(f"{kind.value} ({node_id[:8]})")
        for widget in self.editors():
            widget.blockSignals(True)
        try:
            self.load(parameters)
        finally:
            for widget in self.editors():
                widget.blockSignals(False)
        self.setEnabled(True)

    def clear(self):
        self.node_id = None
        self.kind = None
        self.title_label.setText("No node selected")
        self.setEnabled(False)

    def apply(self):
        if self.node_id is None:
            return
        parameters = self.parameters()
        try:
            check_parameters(self.kind, parameters)
        except InvalidParameters as exc:
            log.warning("Not applying to %s: %s", self.node_id, exc)
            self.bus.publish(Topic.WARNING, str(exc))
            return
        update = ParameterUpdate(self.node_id, self.kind, parameters, notify=True)
        log.debug("Applying %r", update)
        self.bus.publish(Topic.UPDATE_NODE_PARM, update)

    def editors(self):
        return []

    def load(self, parameters):
        raise NotImplementedError

    def parameters(self):
        raise NotImplementedError


class ScriptPanel(ParameterPanel):
    """Alias and code of Action, Condition and Assert nodes"""

    def __init__(self, bus, parent=None):
        super().__init__(bus, "Script", parent)
        self.alias_edit = QLineEdit()
        self.alias_edit.setPlaceholderText("alias")
        self.code_edit = QPlainTextEdit()
        self.code_edit.setPlaceholderText("code")
        self.form.addRow("Alias", self.alias_edit)
        self.form.addRow("Code", self.code_edit)

    def editors(self):
        return [self.alias_edit, self.code_edit]

    def load(self, parameters):
        parameters = parameters or ScriptParameters()
        self.alias_edit.setText(parameters.alias)
        self.code_edit.setPlainText(parameters.code)

    def parameters(self):
        return ScriptParameters(alias=self.alias_edit.text(),
                                code=self.code_edit.toPlainText())


class LoopPanel(ParameterPanel):
    def __init__(self, bus, parent=None):
        super().__init__(bus, "Loop", parent)
        self.count_spin = QSpinBox()
        self.count_spin.setRange(0, 1000000)
        # 0 repeats forever
        self.count_spin.setSpecialValueText("endless")
        self.form.addRow("Count", self.count_spin)

    def editors(self):
        return [self.count_spin]

    def load(self, parameters):
        parameters = parameters or LoopParameters()
        self.count_spin.setValue(parameters.loop_count)

    def parameters(self):
        return LoopParameters(loop_count=self.count_spin.value())


class WaitPanel(ParameterPanel):
    def __init__(self, bus, parent=None):
        super().__init__(bus, "Wait", parent)
        self.wait_spin = QSpinBox()
        self.wait_spin.setRange(0, 3600000)
        self.wait_spin.setSuffix(" ms")
        self.form.addRow("Duration", self.wait_spin)

    def editors(self):
        return [self.wait_spin]

    def load(self, parameters):
        parameters = parameters or WaitParameters()
        self.wait_spin.setValue(parameters.wait_ms)

    def parameters(self):
        return WaitParameters(wait_ms=self.wait_spin.value())


class StructuralPanel(QWidget):
    """Read-only view for Root, Sequence and Selector"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.node_id = None
        layout = QVBoxLayout(self)
        self.title_label = QLabel("No node selected")
        self.title_label.setStyleSheet("font-weight: bold;")
        self.info_label = QLabel("")
        self.info_label.setWordWrap(True)
        layout.addWidget(self.title_label)
        layout.addWidget(self.info_label)
        layout.addStretch(1)

    def show_node(self, node_id, kind, parameters):
        self.node_id = node_id
        self.title_label.setText(f"{kind.value} ({node_id[:8]})")
        self.info_label.setText(f"Label: {node_label(kind, parameters)}\nNo editable parameters.")

    def clear(self):
        self.node_id = None
        self.title_label.setText("No node selected")
        self.info_label.setText("")


class StencilList(QListWidget):
    """Node kinds that can be dragged onto the canvas"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setDragEnabled(True)
        self.setDragDropMode(QAbstractItemView.DragOnly)
        self.setSelectionMode(QAbstractItemView.SingleSelection)
        for kind in NodeKind:
            if kind is NodeKind.ROOT:
                continue
            item = QListWidgetItem(kind.value)
            item.setData(Qt.UserRole, kind.value)
            item.setToolTip(f"Drag onto the canvas to add a {kind.value} node")
            item.setForeground(QBrush(QColor("#ecf0f1")))
            item.setBackground(QBrush(QColor(kind_spec(kind).title_color)))
            self.addItem(item)

    def mimeTypes(self):
        return [NODE_KIND_MIME]

    def mimeData(self, items):
        mime = QMimeData()
        if items:
            mime.setData(NODE_KIND_MIME, items[0].data(Qt.UserRole).encode("utf-8"))
        return mime

    def startDrag(self, supported_actions):
        item = self.currentItem()
        if item is None:
            return
        drag = QDrag(self)
        drag.setMimeData(self.mimeData([item]))
        drag.exec_(Qt.CopyAction)