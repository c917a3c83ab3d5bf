from PyQt5.QtCore import Qt, QPointF
from PyQt5.QtGui import QPen, QPainterPath, QColor, QPainterPathStroker, QPolygonF
from PyQt5.QtWidgets import QGraphicsPathItem


class Edge(QGraphicsPathItem):
    """A parent -> child connection with vertical orthogonal routing"""

    def __init__(self, start_pos, parent=None):
        super().__init__(parent)
        self._start_pos = start_pos
        self._end_pos = start_pos
        self._start_node = None
        self._end_node = None

        # Ratio (0-1) of the horizontal segment between start and end Y
        self.waypoint_ratio = 0.5

        self.edge_color = QColor("#a0a0a0")
        self.selected_color = QColor(255, 140, 0)
        self.normal_pen = QPen(self.edge_color, 2, Qt.SolidLine, Qt.RoundCap, Qt.RoundJoin)
        self.selected_pen = QPen(self.selected_color, 3, Qt.SolidLine, Qt.RoundCap, Qt.RoundJoin)
        self.setPen(self.normal_pen)
        self.arrow_size = 8.0
        self._arrow_end = None
        self._arrow_prev = None

        self.setZValue(-1)  # Draw below nodes
        self.setFlag(QGraphicsPathItem.ItemIsSelectable)
        self.setAcceptHoverEvents(True)

        self.update_path()

    @property
    def source(self):
        return self._start_node

    @property
    def target(self):
        return self._end_node

    def set_end_pos(self, pos):
        """Set the loose end while the edge is being dragged"""
        self._end_pos = pos
        self.update_path()

    def set_start_node(self, node):
        self._attach(self._start_node, node)
        self._start_node = node
        self.update_path()

    def set_end_node(self, node):
        self._attach(self._end_node, node)
        self._end_node = node
        self.update_path()

    def _attach(self, old_node, new_node):
        if old_node is not None and self in old_node.connected_edges:
            old_node.connected_edges.remove(self)
        if new_node is not None and self not in new_node.connected_edges:
            new_node.connected_edges.append(self)

    def detach_nodes(self):
        """Unregister from both endpoint nodes"""
        self._attach(self._start_node, None)
        self._attach(self._end_node, None)

    def update_path(self):
        path = QPainterPath()
        self._arrow_end = None
        self._arrow_prev = None

        if self._start_node is not None and self._end_node is not None:
            start = self._start_node.bottom_anchor()
            end = self._end_node.top_anchor()
            mid_y = start.y() + (end.y() - start.y()) * self.waypoint_ratio

            waypoint1 = QPointF(start.x(), mid_y)
            waypoint2 = QPointF(end.x(), mid_y)

            # vertical -> horizontal -> vertical
            path.moveTo(start)
            path.lineTo(waypoint1)
            path.lineTo(waypoint2)
            path.lineTo(end)
            self._arrow_prev = waypoint2
            self._arrow_end = end
        else:
            start = self._start_pos
            if self._start_node is not None:
                local_end = self._start_node.mapFromScene(self._end_pos)
                start = self._start_node.mapToScene(self._start_node.get_border_intersection(local_end))
            path.moveTo(start)
            path.lineTo(self._end_pos)
            self._arrow_prev = start
            self._arrow_end = self._end_pos

        self.setPath(path)

    def shape(self):
        """Return a wider shape for easier selection"""
        stroker = QPainterPathStroker()
        stroker.setWidth(12)
        stroker.setCapStyle(Qt.RoundCap)
        stroker.setJoinStyle(Qt.RoundJoin)
        return stroker.createStroke(self.path())

    def paint(self, painter, option, widget=None):
        painter.setPen(self.selected_pen if self.isSelected() else self.normal_pen)
        painter.drawPath(self.path())

        if self._arrow_end is None or self._arrow_prev is None:
            return
        end = self._arrow_end
        prev = self._arrow_prev
        dx = end.x() - prev.x()
        dy = end.y() - prev.y()
        length = (dx * dx + dy * dy) ** 0.5
        if length <= 0.0001:
            return
        ux = dx / length
        uy = dy / length
        base_x = end.x() - ux * self.arrow_size
        base_y = end.y() - uy * self.arrow_size
        width = self.arrow_size * 0.6
        left = QPointF(base_x - uy * width, base_y + ux * width)
        right = QPointF(base_x + uy * width, base_y - ux * width)
        painter.setBrush(painter.pen().color())
        painter.drawPolygon(QPolygonF([end, left, right]))

    def __repr__(self):
        source = self._start_node.node_id if self._start_node else None
        target = self._end_node.node_id if self._end_node else None
        return f"<Edge {source} -> {target}>"
