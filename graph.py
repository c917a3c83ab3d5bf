"""
Canvas primitives: the scene that holds node and edge items and the view the
user interacts with.

BehaviorScene assigns node ids and reports low-level changes through Qt signals
(node added, edge connected, edge removed, node moved, node clicked). It does
not know about the tree model; the synchronizer listens to these signals.
"""

import logging
import uuid

from PyQt5.QtCore import Qt, QPointF, pyqtSignal
from PyQt5.QtGui import QPainter, QPen, QColor
from PyQt5.QtWidgets import QGraphicsScene, QGraphicsView

from edge import Edge
from node import Node
from node_kind import NodeKind

log = logging.getLogger(__name__)

NODE_KIND_MIME = "application/x-bteditor-node-kind"


class BehaviorScene(QGraphicsScene):
    node_added = pyqtSignal(object, object)      # node, options
    edge_connected = pyqtSignal(object, bool)    # edge, is_new
    edge_removed = pyqtSignal(object, object)    # edge, options
    node_moved = pyqtSignal(object)
    node_clicked = pyqtSignal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setSceneRect(-2000, -2000, 4000, 4000)
        self._nodes = {}
        self._edges = []

    @staticmethod
    def new_node_id():
        return str(uuid.uuid4())

    def nodes(self):
        return list(self._nodes.values())

    def edges(self):
        return list(self._edges)

    def find_node(self, node_id):
        return self._nodes.get(node_id)

    def create_node(self, kind, pos=None, node_id=None, parameters=None):
        """Build a node item; it is not on the canvas until add_node()"""
        if node_id is None:
            node_id = self.new_node_id()
        if pos is not None and not isinstance(pos, QPointF):
            pos = QPointF(pos[0], pos[1])
        return Node(node_id, NodeKind.parse(kind), pos, parameters)

    def add_node(self, node, **options):
        self.addItem(node)
        self._nodes[node.node_id] = node
        self.node_added.emit(node, options)
        return node

    def remove_node(self, node):
        """Remove a node and every edge touching it. Edge removals are not UI actions."""
        for edge in list(node.connected_edges):
            self.remove_edge(edge, ui=False)
        if node.scene() is self:
            self.removeItem(node)
        self._nodes.pop(node.node_id, None)

    def add_edge(self, source, target, is_new=True, **options):
        start = source.bottom_anchor() if source is not None else QPointF()
        edge = Edge(start)
        edge.set_start_node(source)
        edge.set_end_node(target)
        self.addItem(edge)
        self._edges.append(edge)
        self.edge_connected.emit(edge, is_new)
        return edge

    def remove_edge(self, edge, ui=False):
        if edge not in self._edges:
            return
        edge.detach_nodes()
        self._edges.remove(edge)
        if edge.scene() is self:
            self.removeItem(edge)
        self.edge_removed.emit(edge, {"ui": ui})

    def incoming_edge(self, node):
        for edge in node.connected_edges:
            if edge.target is node:
                return edge
        return None

    def clear_graph(self):
        """Remove every edge and node. Nothing here counts as a UI action."""
        for edge in list(self._edges):
            self.remove_edge(edge, ui=False)
        for node in list(self._nodes.values()):
            self.remove_node(node)

    def selected_nodes(self):
        return [item for item in self.selectedItems() if isinstance(item, Node)]

    def selected_edges(self):
        return [item for item in self.selectedItems() if isinstance(item, Edge)]

    def notify_node_moved(self, node):
        self.node_moved.emit(node)

    def notify_node_clicked(self, node):
        self.node_clicked.emit(node)


class NodeEditorGraphicsView(QGraphicsView):
    """Canvas view: grid, zoom, Ctrl+drag to link nodes, drop target for the stencil"""

    node_dropped = pyqtSignal(object, object)  # NodeKind, scene QPointF

    def __init__(self, scene, parent=None, grid_size=20):
        super().__init__(parent)
        self.scene = scene
        self.setScene(scene)

        self.setRenderHints(QPainter.Antialiasing | QPainter.TextAntialiasing |
                            QPainter.SmoothPixmapTransform)
        self.setViewportUpdateMode(QGraphicsView.FullViewportUpdate)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAsNeeded)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAsNeeded)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self.setDragMode(QGraphicsView.RubberBandDrag)
        self.setAcceptDrops(True)

        # Zoom settings
        self.zoom_in_factor = 1.25
        self.zoom_out_factor = 1 / self.zoom_in_factor
        self.zoom_level = 0
        self.zoom_step = 1
        self.zoom_range = [-10, 10]

        self.grid_size = grid_size
        self.grid_squares = 5

        # Edge creation state
        self.edge_start_node = None
        self.temp_edge = None

    def drawBackground(self, painter, rect):
        """Draw the background grid"""
        painter.fillRect(rect, QColor("#292826"))

        minor_pen = QPen(QColor("#353533"))
        minor_pen.setWidth(1)
        major_pen = QPen(QColor("#424241"))
        major_pen.setWidth(1)
        major = self.grid_size * self.grid_squares

        left = int(rect.left()) - (int(rect.left()) % self.grid_size)
        top = int(rect.top()) - (int(rect.top()) % self.grid_size)

        x = left
        while x <= rect.right():
            painter.setPen(major_pen if x % major == 0 else minor_pen)
            painter.drawLine(QPointF(x, rect.top()), QPointF(x, rect.bottom()))
            x += self.grid_size

        y = top
        while y <= rect.bottom():
            painter.setPen(major_pen if y % major == 0 else minor_pen)
            painter.drawLine(QPointF(rect.left(), y), QPointF(rect.right(), y))
            y += self.grid_size

    def wheelEvent(self, event):
        """Zoom with Ctrl + mouse wheel"""
        if event.modifiers() & Qt.ControlModifier:
            if event.angleDelta().y() > 0:
                self.zoom_in()
            else:
                self.zoom_out()
            event.accept()
        else:
            super().wheelEvent(event)

    def zoom_in(self):
        if self.zoom_level < self.zoom_range[1]:
            self.scale(self.zoom_in_factor, self.zoom_in_factor)
            self.zoom_level += self.zoom_step

    def zoom_out(self):
        if self.zoom_level > self.zoom_range[0]:
            self.scale(self.zoom_out_factor, self.zoom_out_factor)
            self.zoom_level -= self.zoom_step

    def reset_zoom(self):
        self.resetTransform()
        self.zoom_level = 0

    def _node_at(self, view_pos):
        item = self.itemAt(view_pos)
        while item is not None and not isinstance(item, Node):
            item = item.parentItem()
        return item

    def mousePressEvent(self, event):
        node = self._node_at(event.pos())

        # Ctrl + drag from a node starts a new parent -> child link
        if event.button() == Qt.LeftButton and node is not None and \
                (event.modifiers() & Qt.ControlModifier):
            self.edge_start_node = node
            self.temp_edge = Edge(node.bottom_anchor())
            self.temp_edge.set_start_node(node)
            self.scene.addItem(self.temp_edge)
            event.accept()
            return

        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self.temp_edge is not None:
            self.temp_edge.set_end_pos(self.mapToScene(event.pos()))
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.LeftButton and self.temp_edge is not None:
            target = self._node_at(event.pos())
            start = self.edge_start_node

            self.temp_edge.detach_nodes()
            self.scene.removeItem(self.temp_edge)
            self.temp_edge = None
            self.edge_start_node = None

            if target is not None and target is not start:
                self.scene.add_edge(start, target, is_new=True)
            event.accept()
            return

        super().mouseReleaseEvent(event)

    def dragEnterEvent(self, event):
        if event.mimeData().hasFormat(NODE_KIND_MIME):
            event.acceptProposedAction()
        else:
            super().dragEnterEvent(event)

    def dragMoveEvent(self, event):
        if event.mimeData().hasFormat(NODE_KIND_MIME):
            event.acceptProposedAction()
        else:
            super().dragMoveEvent(event)

    def dropEvent(self, event):
        mime = event.mimeData()
        if not mime.hasFormat(NODE_KIND_MIME):
            super().dropEvent(event)
            return
        value = bytes(mime.data(NODE_KIND_MIME)).decode("utf-8")
        try:
            kind = NodeKind(value)
        except ValueError:
            log.warning("Ignoring drop of unknown node kind %r", value)
            event.ignore()
            return
        self.node_dropped.emit(kind, self.mapToScene(event.pos()))
        event.acceptProposedAction()
