"""
Topic-addressed publish/subscribe bus.

Each Topic is backed by a pyqtSignal on an EventBus instance. Handlers are plain
callables taking the payload. Delivery is synchronous on the GUI thread and
follows subscription order; a handler may publish again, and nested publications
are delivered before the outer publish() returns.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from PyQt5.QtCore import QObject, pyqtSignal

from node_kind import NodeKind, NodeParameters
from tree import TreeNode

log = logging.getLogger(__name__)


class Topic(Enum):
    NODE_ADD = "NodeAdd"
    NODE_RMV = "NodeRmv"
    LINK_CONNECT = "LinkConnect"
    LINK_DISCONNECT = "LinkDisconnect"
    NODE_CLICK = "NodeClick"
    UPDATE_GRAPH_PARM = "UpdateGraphParm"
    UPDATE_NODE_PARM = "UpdateNodeParm"
    FILE_LOAD_DRAW = "FileLoadDraw"
    FILE_LOAD_REDRAW = "FileLoadRedraw"
    HISTORY_CLEAN = "HistoryClean"
    UNDO = "Undo"
    REDO = "Redo"
    WARNING = "Warning"


@dataclass(frozen=True)
class NodeAdded:
    info: TreeNode
    from_build: bool
    silent: bool


@dataclass(frozen=True)
class LinkConnected:
    parent: str
    child: str
    from_build: bool


@dataclass(frozen=True)
class LinkDisconnected:
    child: str
    from_build: bool


@dataclass(frozen=True)
class NodeClicked:
    node_id: str
    kind: NodeKind


@dataclass(frozen=True)
class ParameterUpdate:
    node_id: str
    kind: NodeKind
    parameters: NodeParameters
    notify: bool


Handler = Callable[[object], None]


class EventBus(QObject):
    node_add = pyqtSignal(object)
    node_rmv = pyqtSignal(object)
    link_connect = pyqtSignal(object)
    link_disconnect = pyqtSignal(object)
    node_click = pyqtSignal(object)
    update_graph_parm = pyqtSignal(object)
    update_node_parm = pyqtSignal(object)
    file_load_draw = pyqtSignal(object)
    file_load_redraw = pyqtSignal(object)
    history_clean = pyqtSignal(object)
    undo = pyqtSignal(object)
    redo = pyqtSignal(object)
    warning = pyqtSignal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._subscriptions: List[Tuple[Topic, Handler]] = []

    def _signal(self, topic: Topic):
        return getattr(self, topic.name.lower())

    def subscribe(self, topic: Topic, handler: Handler) -> None:
        self._signal(topic).connect(handler)
        self._subscriptions.append((topic, handler))
        log.debug("Subscribed %r to %s", handler, topic.value)

    def unsubscribe(self, topic: Topic, handler: Handler) -> bool:
        """Remove one subscription. Returns False if it was not registered."""
        try:
            self._subscriptions.remove((topic, handler))
        except ValueError:
            return False
        self._signal(topic).disconnect(handler)
        return True

    def unsubscribe_all(self) -> None:
        for topic, handler in reversed(self._subscriptions):
            self._signal(topic).disconnect(handler)
        self._subscriptions.clear()

    def subscriber_count(self, topic: Optional[Topic] = None) -> int:
        if topic is None:
            return len(self._subscriptions)
        return sum(1 for subscribed, _ in self._subscriptions if subscribed is topic)

    def publish(self, topic: Topic, payload=None) -> None:
        log.debug("Publish %s: %r", topic.value, payload)
        self._signal(topic).emit(payload)
