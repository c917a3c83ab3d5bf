import logging

from PyQt5.QtCore import Qt, QRectF, QPointF
from PyQt5.QtGui import QPainter, QPen, QColor, QBrush, QPainterPath, QPolygonF, QFont
from PyQt5.QtWidgets import QGraphicsItem, QGraphicsTextItem

from node_kind import (NodeKind, NodeParameters, check_parameters, default_parameters,
                       kind_spec, node_label)

log = logging.getLogger(__name__)


class Node(QGraphicsItem):
    """A behavior tree node drawn on the canvas.

    The item owns the display attributes of the node (kind, parameters, label and
    position). Parent/child structure is not kept here; edges are attached through
    connected_edges so they can be rerouted when the node moves.
    """

    def __init__(self, node_id, kind, pos=None, parameters=None, parent=None):
        super().__init__(parent)
        self.setFlag(QGraphicsItem.ItemIsMovable)
        self.setFlag(QGraphicsItem.ItemIsSelectable)
        self.setFlag(QGraphicsItem.ItemSendsGeometryChanges)
        self.setFlag(QGraphicsItem.ItemSendsScenePositionChanges)
        self.setAcceptHoverEvents(True)

        self.node_id = node_id
        self.kind = NodeKind.parse(kind)
        self.spec = kind_spec(self.kind)
        self.parameters: NodeParameters = None
        self.label = ""

        # Geometry
        self.width = 140
        self.height = 56
        self.title_height = 20
        self.padding = 8
        self.edge_roundness = 6.0
        self.rect = QRectF(0, 0, self.width, self.height)

        # Colors
        self.title_color = QColor(self.spec.title_color)
        self.bg_color = QColor("#2c3e50")
        self.border_color = QColor("#747574")
        self.border_width = 2
        self.text_color = QColor("#ecf0f1")

        self.connected_edges = []
        self.position_before_move = None

        self.title_item = QGraphicsTextItem(self.kind.value, self)
        self.title_item.setDefaultTextColor(self.text_color)
        small = QFont()
        small.setPointSize(7)
        self.title_item.setFont(small)
        self.title_item.setPos(self.padding, (self.title_height - self.title_item.boundingRect().height()) / 2)

        self.label_item = QGraphicsTextItem("", self)
        self.label_item.setDefaultTextColor(self.text_color)

        if pos is not None:
            self.setPos(pos)
        if parameters is None:
            parameters = default_parameters(self.kind)
        self.set_parameters(parameters)

    def set_parameters(self, parameters: NodeParameters):
        """Replace the node parameters and refresh the label"""
        check_parameters(self.kind, parameters)
        self.parameters = parameters
        self.set_label(node_label(self.kind, parameters))

    def set_label(self, text):
        self.label = text
        self.label_item.setPlainText(text)
        self._center_label()
        self.update()

    def _center_label(self):
        br = self.label_item.boundingRect()
        body_top = self.title_height
        body_height = self.height - self.title_height
        self.label_item.setPos((self.width - br.width()) / 2,
                               body_top + (body_height - br.height()) / 2)

    def boundingRect(self):
        padding = max(2, self.border_width / 2 + 2)
        return self.rect.adjusted(-padding, -padding, padding, padding)

    def _get_path(self):
        """Outline of the node body for the kind's shape"""
        rect = self.rect
        path = QPainterPath()
        shape = self.spec.shape
        if shape == "pill":
            radius = rect.height() / 2
            path.addRoundedRect(rect, radius, radius)
        elif shape == "diamond":
            inset = rect.height() / 3
            path.addPolygon(QPolygonF([
                QPointF(rect.left() + inset, rect.top()),
                QPointF(rect.right() - inset, rect.top()),
                QPointF(rect.right(), rect.center().y()),
                QPointF(rect.right() - inset, rect.bottom()),
                QPointF(rect.left() + inset, rect.bottom()),
                QPointF(rect.left(), rect.center().y()),
            ]))
            path.closeSubpath()
        elif shape == "hexagon":
            inset = rect.height() / 4
            path.addPolygon(QPolygonF([
                QPointF(rect.left() + inset, rect.top()),
                QPointF(rect.right() - inset, rect.top()),
                QPointF(rect.right(), rect.top() + inset),
                QPointF(rect.right(), rect.bottom() - inset),
                QPointF(rect.right() - inset, rect.bottom()),
                QPointF(rect.left() + inset, rect.bottom()),
                QPointF(rect.left(), rect.bottom() - inset),
                QPointF(rect.left(), rect.top() + inset),
            ]))
            path.closeSubpath()
        else:
            path.addRoundedRect(rect, self.edge_roundness, self.edge_roundness)
        return path

    def shape(self):
        return self._get_path()

    def paint(self, painter, option, widget=None):
        painter.setRenderHint(QPainter.Antialiasing)
        path = self._get_path()

        painter.setPen(Qt.NoPen)
        painter.setBrush(QBrush(self.bg_color))
        painter.drawPath(path)

        # Title band, clipped to the body outline
        title_bg_color = QColor(self.title_color)
        title_bg_color.setAlpha(200)
        band = QPainterPath()
        band.addRect(QRectF(0, 0, self.rect.width(), self.title_height))
        painter.setBrush(QBrush(title_bg_color))
        painter.drawPath(path.intersected(band))

        if self.isSelected():
            painter.setPen(QPen(QColor("#f1c40f"), self.border_width + 2, Qt.SolidLine, Qt.RoundCap, Qt.RoundJoin))
        else:
            painter.setPen(QPen(self.border_color, self.border_width, Qt.SolidLine, Qt.RoundCap, Qt.RoundJoin))
        painter.setBrush(Qt.NoBrush)
        painter.drawPath(path)

    def top_anchor(self):
        """Scene point where the incoming (parent) edge attaches"""
        return self.mapToScene(QPointF(self.rect.center().x(), self.rect.top()))

    def bottom_anchor(self):
        """Scene point where outgoing (child) edges leave"""
        return self.mapToScene(QPointF(self.rect.center().x(), self.rect.bottom()))

    def get_border_intersection(self, point):
        """
        Find the intersection point between the node's border and a line
        from the node's center to the given point.

        Args:
            point (QPointF): The point in item coordinates

        Returns:
            QPointF: The intersection point on the node's rectangle
        """
        rect = self.rect
        center = rect.center()
        if point == center:
            return QPointF(rect.right(), center.y())

        dx = point.x() - center.x()
        dy = point.y() - center.y()

        intersections = []
        if abs(dx) > 1e-6:
            for edge_x in (rect.left(), rect.right()):
                t = (edge_x - center.x()) / dx
                y = center.y() + t * dy
                if t > 0 and rect.top() <= y <= rect.bottom():
                    intersections.append((t, QPointF(edge_x, y)))
        if abs(dy) > 1e-6:
            for edge_y in (rect.top(), rect.bottom()):
                t = (edge_y - center.y()) / dy
                x = center.x() + t * dx
                if t > 0 and rect.left() <= x <= rect.right():
                    intersections.append((t, QPointF(x, edge_y)))

        if intersections:
            return min(intersections, key=lambda item: item[0])[1]
        return QPointF(rect.right(), center.y())

    def update_edges(self):
        for edge in self.connected_edges:
            edge.update_path()

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            # Captured for the moved/clicked decision on release
            self.position_before_move = QPointF(self.pos())
        super().mousePressEvent(event)

    def mouseReleaseEvent(self, event):
        super().mouseReleaseEvent(event)
        if event.button() != Qt.LeftButton or self.position_before_move is None:
            return

        moved = self.position_before_move != self.pos()
        self.position_before_move = None
        scene = self.scene()
        if scene is None or not hasattr(scene, 'notify_node_moved'):
            return

        if moved:
            log.debug("Node moved: %s to (%.2f, %.2f)", self.node_id, self.pos().x(), self.pos().y())
            scene.notify_node_moved(self)
        else:
            scene.notify_node_clicked(self)

    def itemChange(self, change, value):
        if change == QGraphicsItem.ItemPositionHasChanged and self.scene():
            self.update_edges()
        elif change == QGraphicsItem.ItemSelectedHasChanged and self.scene():
            self.setZValue(1000 if value else 0)
        return super().itemChange(change, value)

    def __repr__(self):
        return f"<Node {self.kind.value} {self.node_id}>"
