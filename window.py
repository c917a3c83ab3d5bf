import logging

from PyQt5.QtCore import Qt, QByteArray
from PyQt5.QtGui import QIcon, QPainter, QPixmap, QKeySequence
from PyQt5.QtSvg import QSvgRenderer
from PyQt5.QtWidgets import (QMainWindow, QWidget, QHBoxLayout, QSplitter, QStackedWidget,
                             QSizePolicy, QFileDialog, QMessageBox, QShortcut, QLabel,
                             QVBoxLayout)

from config import EditorConfig
from context import EditorContext
from errors import EditorError
from events import Topic
from graph import BehaviorScene, NodeEditorGraphicsView
from node_kind import (NodeKind, PANEL_LOOP, PANEL_SCRIPT, PANEL_STRUCTURAL, PANEL_WAIT,
                       kind_spec)
from panels import LoopPanel, ScriptPanel, StencilList, StructuralPanel, WaitPanel
from tree_io import dump_trees, load_trees
from version import get_version_string

log = logging.getLogger(__name__)


class BehaviorTreeEditorWindow(QMainWindow):
    def __init__(self, config=None):
        super().__init__()
        self.config = config or EditorConfig()
        self.context = None
        self.initUI()

    def initUI(self):
        self.setWindowTitle(get_version_string())
        self.setGeometry(100, 100, 1400, 850)

        # Canvas and editor context
        self.scene = BehaviorScene()
        self.view = NodeEditorGraphicsView(self.scene, self, grid_size=self.config.grid_size)
        self.context = EditorContext(self.scene, self.config)
        self.view.node_dropped.connect(self.add_node_at)
        self.context.bus.subscribe(Topic.WARNING, self.show_warning)

        self.createToolbar()
        self.createMenu()

        # Panels, one page per panel key
        self.panel_stack = QStackedWidget()
        self.panel_pages = {}
        bus = self.context.bus
        for key, panel in ((PANEL_STRUCTURAL, StructuralPanel()),
                           (PANEL_SCRIPT, ScriptPanel(bus)),
                           (PANEL_LOOP, LoopPanel(bus)),
                           (PANEL_WAIT, WaitPanel(bus))):
            self.panel_pages[key] = self.panel_stack.addWidget(panel)
            self.context.coordinator.register_panel(key, panel)
        self.context.coordinator.panel_changed.connect(self.show_panel)

        stencil_box = QWidget()
        stencil_layout = QVBoxLayout(stencil_box)
        stencil_layout.setContentsMargins(4, 4, 4, 4)
        stencil_layout.addWidget(QLabel("Nodes"))
        self.stencil = StencilList()
        stencil_layout.addWidget(self.stencil)

        splitter = QSplitter(Qt.Horizontal)
        splitter.addWidget(stencil_box)
        splitter.addWidget(self.view)
        splitter.addWidget(self.panel_stack)
        splitter.setStretchFactor(1, 1)
        splitter.setSizes([160, 940, 300])

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QHBoxLayout(central_widget)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(splitter)

        self.statusBar().showMessage("Ready")
        self.show()

    def createToolbar(self):
        toolbar = self.addToolBar("Main Toolbar")
        toolbar.setMovable(False)

        new_action = toolbar.addAction("New")
        new_action.setToolTip("Start a new tree")
        new_action.triggered.connect(self.new_design)

        save_action = toolbar.addAction("Save")
        save_action.setToolTip("Save the tree to a JSON file")
        save_action.triggered.connect(self.save_design)

        load_action = toolbar.addAction("Load")
        load_action.setToolTip("Load a tree from a JSON file")
        load_action.triggered.connect(self.load_design)

        toolbar.addSeparator()

        # One add action per kind, icon colored like the node title band
        for kind in NodeKind:
            if kind is NodeKind.ROOT:
                continue
            action = toolbar.addAction(kind.value)
            action.setToolTip(f"Add a {kind.value} node")
            action.setIcon(self.make_node_svg_icon(24, title_color=kind_spec(kind).title_color,
                                                   label=kind.value[0]))
            action.triggered.connect(lambda checked=False, k=kind: self.add_node_at(k))

        toolbar.addSeparator()

        undo_action = toolbar.addAction("Undo")
        undo_action.setShortcut(QKeySequence("Ctrl+Z"))
        undo_action.triggered.connect(self.context.undo)

        redo_action = toolbar.addAction("Redo")
        redo_action.setShortcut(QKeySequence("Ctrl+Y"))
        redo_action.triggered.connect(self.context.redo)

        delete_action = toolbar.addAction("Delete")
        delete_action.setToolTip("Delete selected items")
        delete_action.setIcon(self.make_red_cross_svg_icon(24))
        delete_action.setShortcut("Delete")
        delete_action.triggered.connect(self.delete_selected_items)

        backspace_shortcut = QShortcut(QKeySequence(Qt.Key_Backspace), self)
        backspace_shortcut.activated.connect(self.delete_selected_items)

        spacer = QWidget()
        spacer.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)
        toolbar.addWidget(spacer)

    def createMenu(self):
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        new_action = file_menu.addAction("New")
        new_action.setShortcut("Ctrl+N")
        new_action.triggered.connect(self.new_design)

        save_action = file_menu.addAction("Save")
        save_action.setShortcut("Ctrl+S")
        save_action.triggered.connect(self.save_design)

        load_action = file_menu.addAction("Load")
        load_action.setShortcut("Ctrl+O")
        load_action.triggered.connect(self.load_design)

        file_menu.addSeparator()

        exit_action = file_menu.addAction("Exit")
        exit_action.setShortcut("Ctrl+Q")
        exit_action.triggered.connect(self.close)

        view_menu = menubar.addMenu("&View")

        zoom_in_action = view_menu.addAction("Zoom In")
        zoom_in_action.setShortcut("Ctrl++")
        zoom_in_action.triggered.connect(self.view.zoom_in)

        zoom_out_action = view_menu.addAction("Zoom Out")
        zoom_out_action.setShortcut("Ctrl+-")
        zoom_out_action.triggered.connect(self.view.zoom_out)

        reset_zoom_action = view_menu.addAction("Reset Zoom")
        reset_zoom_action.setShortcut("Ctrl+0")
        reset_zoom_action.triggered.connect(self.view.reset_zoom)

    def make_red_cross_svg_icon(self, size=24) -> QIcon:
        """Red 'X' icon from inline SVG"""
        svg = f"""
        <svg width="{size}" height="{size}" viewBox="0 0 24 24" fill="none"
             xmlns="http://www.w3.org/2000/svg">
          <path d="M6 6 L18 18 M18 6 L6 18"
                stroke="#E74C3C" stroke-width="3" stroke-linecap="round"/>
        </svg>
        """
        return self._render_svg_icon(svg, size)

    def make_node_svg_icon(self, size=24, title_color="#e67e22", label=None) -> QIcon:
        """Node-like icon: rounded body with a colored title bar and an optional letter"""
        label_svg = ""
        if label:
            label_svg = (f'<text x="12" y="17" text-anchor="middle" '
                         f'font-family="Arial, Helvetica, sans-serif" font-size="9" '
                         f'font-weight="700" fill="#FFFFFF">{label}</text>')
        svg = f"""
        <svg width="{size}" height="{size}" viewBox="0 0 24 24" fill="none"
             xmlns="http://www.w3.org/2000/svg">
          <defs>
            <clipPath id="rrect">
              <rect x="3" y="3" width="18" height="18" rx="4" ry="4"/>
            </clipPath>
          </defs>
          <rect x="3" y="3" width="18" height="18" rx="4" ry="4" fill="#2c3e50"/>
          <g clip-path="url(#rrect)">
            <rect x="3" y="3" width="18" height="7" fill="{title_color}"/>
          </g>
          <rect x="3" y="3" width="18" height="18" rx="4" ry="4" stroke="#747574"
                stroke-width="2" fill="none"/>
          {label_svg}
        </svg>
        """
        return self._render_svg_icon(svg, size)

    def _render_svg_icon(self, svg, size):
        renderer = QSvgRenderer(QByteArray(svg.encode("utf-8")))
        pm = QPixmap(size, size)
        pm.fill(Qt.transparent)
        painter = QPainter(pm)
        painter.setRenderHint(QPainter.Antialiasing, True)
        renderer.render(painter)
        painter.end()
        return QIcon(pm)

    def show_panel(self, key):
        index = self.panel_pages.get(key)
        if index is not None:
            self.panel_stack.setCurrentIndex(index)

    def show_warning(self, message):
        self.statusBar().showMessage(f"Warning: {message}", 5000)

    def add_node_at(self, kind, scene_pos=None):
        """Add a node of the given kind, at the view centre unless a position is given"""
        if scene_pos is None:
            scene_pos = self.view.mapToScene(self.view.viewport().rect().center())
        node = self.context.synchronizer.create_node(kind, scene_pos)
        if node is not None:
            self.statusBar().showMessage(f"Added {node.kind.value} node")

    def delete_selected_items(self):
        """Delete the selected edges and nodes"""
        self.context.delete_selected()

    def new_design(self):
        self.context.synchronizer.reset()
        self.statusBar().showMessage("New tree")

    def save_design(self):
        """Save the current tree to a JSON file"""
        file_path, _ = QFileDialog.getSaveFileName(
            self,
            "Save Tree",
            "",
            "JSON Files (*.json);;All Files (*)"
        )
        if not file_path:
            return
        if not file_path.endswith('.json'):
            file_path += '.json'

        try:
            dump_trees(file_path, self.context.synchronizer.snapshot_all())
        except EditorError as e:
            log.error("Failed to save %s: %s", file_path, e)
            QMessageBox.critical(self, "Error", f"Failed to save tree: {e}")
            self.statusBar().showMessage("Failed to save tree")
            return
        self.statusBar().showMessage(f"Tree saved to {file_path}")

    def load_design(self):
        """Load a tree from a JSON file"""
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Load Tree",
            "",
            "JSON Files (*.json);;All Files (*)"
        )
        if not file_path:
            return

        try:
            trees = load_trees(file_path)
        except EditorError as e:
            log.error("Failed to load %s: %s", file_path, e)
            QMessageBox.critical(self, "Error", f"Failed to load tree: {e}")
            self.statusBar().showMessage("Failed to load tree")
            return
        self.context.load(trees)
        self.statusBar().showMessage(f"Tree loaded from {file_path}")

    def closeEvent(self, event):
        if self.context is not None:
            self.context.close()
        super().closeEvent(event)
