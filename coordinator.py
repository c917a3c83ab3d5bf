import logging

from PyQt5.QtCore import QObject, pyqtSignal

from events import Topic
from node_kind import kind_spec

log = logging.getLogger(__name__)


class SelectionCoordinator(QObject):
    """Routes node clicks to the matching editor panel.

    A panel is any object with show_node(node_id, kind, parameters) and clear().
    Parameter updates coming back from the panels are applied through the
    synchronizer's attribute-set path and are not republished.
    """

    panel_changed = pyqtSignal(str)

    def __init__(self, bus, synchronizer, parent=None):
        super().__init__(parent)
        self.bus = bus
        self.synchronizer = synchronizer
        self.panels = {}
        self.active_panel = None
        self.active_node = None

        bus.subscribe(Topic.NODE_CLICK, self._on_node_click)
        bus.subscribe(Topic.UPDATE_NODE_PARM, self._on_update_node_parm)
        bus.subscribe(Topic.NODE_RMV, self._on_node_rmv)
        bus.subscribe(Topic.FILE_LOAD_DRAW, self._on_redraw)
        bus.subscribe(Topic.FILE_LOAD_REDRAW, self._on_redraw)

    def register_panel(self, key, panel):
        self.panels[key] = panel

    def _on_node_click(self, clicked):
        node = self.synchronizer.find_node(clicked.node_id)
        if node is None:
            log.warning("Click on unknown node %s", clicked.node_id)
            return
        key = kind_spec(clicked.kind).panel
        self.active_node = clicked.node_id
        panel = self.panels.get(key)
        if panel is not None:
            panel.show_node(node.node_id, node.kind, node.parameters)
        if key != self.active_panel:
            self.active_panel = key
            self.panel_changed.emit(key)

    def _on_update_node_parm(self, update):
        self.synchronizer.apply_parameters(update.node_id, update.parameters)

    def _on_node_rmv(self, node_id):
        if self.active_node is None:
            return
        if self.active_node == node_id or self.synchronizer.find_node(self.active_node) is None:
            self._clear_active()

    def _on_redraw(self, trees):
        if self.active_node is None:
            return
        node = self.synchronizer.find_node(self.active_node)
        if node is None:
            self._clear_active()
            return
        panel = self.panels.get(self.active_panel)
        if panel is not None:
            panel.show_node(node.node_id, node.kind, node.parameters)

    def _clear_active(self):
        log.debug("Active node %s is gone, clearing panel %s", self.active_node, self.active_panel)
        panel = self.panels.get(self.active_panel)
        if panel is not None:
            panel.clear()
        self.active_node = None
