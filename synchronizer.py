"""
Tree <-> graph synchronization.

The synchronizer keeps three things consistent: the items on the BehaviorScene,
the TreeIndex that owns the parent/child structure, and the events published on
the EventBus.

- materialize() rebuilds the canvas from serialized trees. It runs in
  reconstruction mode: the live-edit handlers below ignore the scene signals it
  causes, and every event it publishes itself is tagged from_build.
- snapshot() reads the canvas back into a TreeNode without side effects.
- The _on_* handlers turn user edits reported by the scene into semantic events.

Each user command publishes exactly one structural event, after the index and
the scene already reflect the change.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, List, Mapping, Optional, Union

from PyQt5.QtCore import QPointF

from errors import (DuplicateNode, EditorError, InvalidLink, MissingEndpoint,
                    NodeNotFound)
from events import (LinkConnected, LinkDisconnected, NodeAdded, NodeClicked,
                    ParameterUpdate, Topic)
from node_kind import (NodeKind, NodeParameters, check_parameters, default_parameters,
                       kind_spec, parameters_from_wire)
from tree import Position, TreeIndex, TreeNode

log = logging.getLogger(__name__)

SerializedTree = Union[TreeNode, Mapping]


class TreeGraphSynchronizer:
    def __init__(self, bus, scene):
        self.bus = bus
        self.scene = scene
        self.index = TreeIndex()
        self._reconstruction_depth = 0

        scene.node_added.connect(self._on_node_added)
        scene.edge_connected.connect(self._on_edge_connected)
        scene.edge_removed.connect(self._on_edge_removed)
        scene.node_moved.connect(self._on_node_moved)
        scene.node_clicked.connect(self._on_node_clicked)

        bus.subscribe(Topic.FILE_LOAD_DRAW, self._on_file_load_draw)
        bus.subscribe(Topic.FILE_LOAD_REDRAW, self._on_file_load_redraw)

    def close(self):
        """Stop listening to the scene"""
        self.scene.node_added.disconnect(self._on_node_added)
        self.scene.edge_connected.disconnect(self._on_edge_connected)
        self.scene.edge_removed.disconnect(self._on_edge_removed)
        self.scene.node_moved.disconnect(self._on_node_moved)
        self.scene.node_clicked.disconnect(self._on_node_clicked)

    @contextmanager
    def reconstruction(self):
        """Suspend the live-edit handlers for the duration of a bulk rebuild"""
        self._reconstruction_depth += 1
        try:
            yield
        finally:
            self._reconstruction_depth -= 1

    @property
    def is_reconstructing(self):
        return self._reconstruction_depth > 0

    def _warn(self, message):
        log.warning(message)
        self.bus.publish(Topic.WARNING, message)

    # ------------------------------------------------------------------
    # Reconstruction
    # ------------------------------------------------------------------

    def reset(self, position: Optional[Position] = None):
        """Start a new design containing only the Root"""
        with self.reconstruction():
            self._clear()
            self._add_root(position or Position())
        self.bus.publish(Topic.HISTORY_CLEAN, None)

    def materialize(self, tree: SerializedTree, user_load: bool = False):
        self.materialize_all([tree], user_load)

    def materialize_all(self, trees: Iterable[SerializedTree], user_load: bool = False):
        """Replace the canvas with the given top-level trees.

        user_load marks a file load: the undo history is reset afterwards. Undo and
        redo replay pass False so the history they are walking stays intact.
        """
        trees = list(trees)
        log.info("Materializing %d tree(s) (user_load=%s)", len(trees), user_load)
        with self.reconstruction():
            self._clear()
            for tree in trees:
                if isinstance(tree, TreeNode):
                    tree = tree.to_dict()
                self._build(tree, None)
            if self.index.root_id() is None:
                self._add_root(Position())
        if user_load:
            self.bus.publish(Topic.HISTORY_CLEAN, None)

    def _clear(self):
        self.scene.clear_graph()
        self.index.clear()

    def _add_root(self, position):
        node = self.scene.create_node(NodeKind.ROOT, QPointF(position.x, position.y))
        self._add_built_node(node)
        return node

    def _add_built_node(self, node):
        self.scene.add_node(node, build=True, silent=True)
        self.index.add(node.node_id, node.kind)
        self.bus.publish(Topic.NODE_ADD, NodeAdded(self.subtree_info(node.node_id),
                                                   from_build=True, silent=True))

    def _resolve(self, data, parent):
        """Validate one serialized node before anything is created for it"""
        if not isinstance(data, Mapping):
            raise InvalidLink(f"Malformed tree node: {data!r}")
        kind = NodeKind.parse(data.get("ty"))
        if kind is NodeKind.ROOT:
            if parent is not None:
                raise InvalidLink("Root cannot be the child of another node")
            if self.index.root_id() is not None:
                raise InvalidLink("The tree already has a Root")
        if parent is not None and not kind_spec(parent.kind).accepts_children:
            raise InvalidLink(f"{parent.kind.value} nodes cannot have children")

        node_id = data.get("id")
        if node_id is not None:
            node_id = str(node_id)
            if node_id in self.index:
                raise DuplicateNode(node_id)
        position = Position.from_wire(data.get("pos"))
        parameters = parameters_from_wire(kind, data)
        return kind, node_id, position, parameters

    def _build(self, data, parent):
        try:
            kind, node_id, position, parameters = self._resolve(data, parent)
        except EditorError as exc:
            self._warn(f"Skipped node while loading: {exc}")
            return

        node = self.scene.create_node(kind, QPointF(position.x, position.y), node_id)
        self._add_built_node(node)

        if parent is not None:
            self.scene.add_edge(parent, node, is_new=False)
            self.index.attach(parent.node_id, node.node_id)
            self.bus.publish(Topic.LINK_CONNECT,
                             LinkConnected(parent.node_id, node.node_id, from_build=True))

        node.set_parameters(parameters)
        if parameters is not None:
            self.bus.publish(Topic.UPDATE_NODE_PARM,
                             ParameterUpdate(node.node_id, kind, parameters, notify=False))

        for child in data.get("children") or []:
            self._build(child, node)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> TreeNode:
        """Serialize the tree hanging from the Root"""
        root_id = self.index.root_id()
        if root_id is None:
            raise NodeNotFound("Root")
        return self.subtree_info(root_id)

    def snapshot_all(self) -> List[TreeNode]:
        """Serialize every top-level subtree: the Root tree first, then detached ones"""
        root_id = self.index.root_id()
        top = self.index.roots()
        if root_id in top:
            top.remove(root_id)
            top.insert(0, root_id)
        return [self.subtree_info(node_id) for node_id in top]

    def subtree_info(self, node_id) -> TreeNode:
        entry = self.index.get(node_id)
        node = self._node(node_id)
        return TreeNode(
            id=node_id,
            kind=entry.kind,
            position=Position(node.pos().x(), node.pos().y()),
            parameters=node.parameters,
            children=[self.subtree_info(child_id) for child_id in entry.children],
        )

    # ------------------------------------------------------------------
    # Lookups and the attribute-set path
    # ------------------------------------------------------------------

    def _node(self, node_id):
        node = self.scene.find_node(node_id)
        if node is None:
            raise NodeNotFound(node_id)
        return node

    def find_node(self, node_id):
        return self.scene.find_node(node_id)

    def node_parameters(self, node_id) -> NodeParameters:
        return self._node(node_id).parameters

    def apply_parameters(self, node_id, parameters: NodeParameters) -> bool:
        """Set a node's parameters and label without publishing anything"""
        try:
            node = self._node(node_id)
            check_parameters(node.kind, parameters)
        except EditorError as exc:
            self._warn(str(exc))
            return False
        node.set_parameters(parameters)
        return True

    # ------------------------------------------------------------------
    # User edits
    # ------------------------------------------------------------------

    def create_node(self, kind, position):
        """Add a new node dropped from the stencil; the scene assigns its id"""
        kind = NodeKind.parse(kind)
        if kind is NodeKind.ROOT and self.index.root_id() is not None:
            self._warn("The tree already has a Root")
            return None
        if not isinstance(position, QPointF):
            position = QPointF(position.x, position.y)
        node = self.scene.create_node(kind, position, parameters=default_parameters(kind))
        self.scene.add_node(node)
        return node

    def connect_nodes(self, parent_id, child_id):
        """Link two existing nodes as if the user had drawn the edge"""
        try:
            parent = self._node(parent_id)
            child = self._node(child_id)
        except NodeNotFound as exc:
            self._warn(str(exc))
            return None
        edge = self.scene.add_edge(parent, child, is_new=True)
        return edge if edge.scene() is self.scene else None

    def disconnect_node(self, child_id):
        """Remove the incoming edge of a node as a UI action"""
        node = self.scene.find_node(child_id)
        if node is None:
            self._warn(str(NodeNotFound(child_id)))
            return False
        edge = self.scene.incoming_edge(node)
        if edge is None:
            return False
        self.scene.remove_edge(edge, ui=True)
        return True

    def delete_selected(self):
        """Delete command: selected edges first, then selected nodes with their subtrees"""
        selected = {node.node_id for node in self.scene.selected_nodes()
                    if node.kind is not NodeKind.ROOT}
        doomed = set()
        for node_id in selected:
            if node_id in self.index:
                doomed.update(self.index.subtree(node_id))
        for edge in self.scene.selected_edges():
            # Goes away with its deleted child
            if edge.target is not None and edge.target.node_id in doomed:
                continue
            self.scene.remove_edge(edge, ui=True)
        for node_id in list(self.index):
            if node_id not in selected or node_id not in self.index:
                continue
            # Removed together with a selected ancestor
            if any(ancestor in selected for ancestor in self.index.ancestors(node_id)):
                continue
            self.delete_node(node_id)

    def delete_node(self, node_id) -> bool:
        """Remove a node and its subtree, then publish NodeRmv for the node.

        NodeRmv goes out once the index and the canvas no longer hold the
        subtree, so that subscribers snapshotting on it see the deletion.
        """
        try:
            entry = self.index.get(node_id)
        except NodeNotFound as exc:
            self._warn(str(exc))
            return False
        if entry.kind is NodeKind.ROOT:
            log.info("Ignoring request to delete the Root")
            return False

        removed = self.index.remove(node_id)
        for removed_id in removed:
            node = self.scene.find_node(removed_id)
            if node is not None:
                self.scene.remove_node(node)
        log.debug("Deleted %s with %d descendant(s)", node_id, len(removed) - 1)
        self.bus.publish(Topic.NODE_RMV, node_id)
        return True

    # ------------------------------------------------------------------
    # Scene notifications
    # ------------------------------------------------------------------

    def _on_node_added(self, node, options):
        if self.is_reconstructing:
            return
        self.index.add(node.node_id, node.kind)
        self.bus.publish(Topic.NODE_ADD, NodeAdded(self.subtree_info(node.node_id),
                                                   from_build=bool(options.get("build", False)),
                                                   silent=bool(options.get("silent", False))))

    def _on_edge_connected(self, edge, is_new):
        if self.is_reconstructing or not is_new:
            return
        source, target = edge.source, edge.target
        try:
            if source is None or target is None:
                raise MissingEndpoint()
            self.index.attach(source.node_id, target.node_id)
        except EditorError as exc:
            self.scene.remove_edge(edge, ui=False)
            self._warn(f"Link rejected: {exc}")
            return
        self.bus.publish(Topic.LINK_CONNECT,
                         LinkConnected(source.node_id, target.node_id, from_build=False))

    def _on_edge_removed(self, edge, options):
        if self.is_reconstructing or not options.get("ui"):
            return
        target = edge.target
        if target is None or target.node_id not in self.index:
            return
        if self.index.parent_of(target.node_id) is None:
            return
        self.index.detach(target.node_id)
        self.bus.publish(Topic.LINK_DISCONNECT, LinkDisconnected(target.node_id, from_build=False))

    def _on_node_moved(self, node):
        if self.is_reconstructing or node.node_id not in self.index:
            return
        self.bus.publish(Topic.UPDATE_GRAPH_PARM, self.subtree_info(node.node_id))

    def _on_node_clicked(self, node):
        self.bus.publish(Topic.NODE_CLICK, NodeClicked(node.node_id, node.kind))

    def _on_file_load_draw(self, trees):
        self.materialize_all(trees, user_load=True)

    def _on_file_load_redraw(self, trees):
        self.materialize_all(trees, user_load=False)
