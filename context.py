"""
Editor context: owns the event bus and the components subscribed to it.

Components are wired in a fixed order so that, for a single publication, the
synchronizer runs first, then the coordinator, then the undo controller.
"""

import logging

from config import EditorConfig
from coordinator import SelectionCoordinator
from events import EventBus, Topic
from graph import BehaviorScene
from history import UndoController
from synchronizer import TreeGraphSynchronizer

log = logging.getLogger(__name__)


class EditorContext:
    def __init__(self, scene=None, config=None):
        self.config = config or EditorConfig()
        self.scene = scene if scene is not None else BehaviorScene()
        self.bus = EventBus()
        self.synchronizer = TreeGraphSynchronizer(self.bus, self.scene)
        self.coordinator = SelectionCoordinator(self.bus, self.synchronizer)
        self.history = UndoController(self.bus, self.synchronizer,
                                      max_steps=self.config.max_undo_steps)
        self._closed = False

        self.synchronizer.reset()
        log.info("Editor context ready (%d subscribers)", self.bus.subscriber_count())

    def load(self, trees):
        """Replace the canvas with loaded trees and start a fresh history"""
        self.bus.publish(Topic.FILE_LOAD_DRAW, list(trees))

    def save(self):
        return [tree.to_dict() for tree in self.synchronizer.snapshot_all()]

    def delete_selected(self):
        """Delete the selection as one undo step"""
        with self.history.grouped():
            self.synchronizer.delete_selected()

    def undo(self):
        self.bus.publish(Topic.UNDO, None)

    def redo(self):
        self.bus.publish(Topic.REDO, None)

    def close(self):
        if self._closed:
            return
        self._closed = True
        self.bus.unsubscribe_all()
        self.synchronizer.close()
        log.info("Editor context closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False
