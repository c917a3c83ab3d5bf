"""
Snapshot based undo/redo.

Every recorded step stores the whole forest as returned by
TreeGraphSynchronizer.snapshot_all(). Undo and redo replay a stored forest by
publishing FileLoadRedraw, which the synchronizer materializes without resetting
the history.
"""

import logging
from collections import deque
from contextlib import contextmanager

from events import Topic

log = logging.getLogger(__name__)


class UndoController:
    def __init__(self, bus, synchronizer, max_steps=50):
        self.bus = bus
        self.synchronizer = synchronizer
        self.max_steps = max_steps
        self.undo_stack = deque(maxlen=max_steps)
        self.redo_stack = []
        self._current = []
        self._replaying = False
        self._group_depth = 0
        self._group_changed = False

        bus.subscribe(Topic.NODE_ADD, self._on_node_add)
        bus.subscribe(Topic.NODE_RMV, self._record_event)
        bus.subscribe(Topic.LINK_CONNECT, self._on_link_event)
        bus.subscribe(Topic.LINK_DISCONNECT, self._on_link_event)
        bus.subscribe(Topic.UPDATE_GRAPH_PARM, self._record_event)
        bus.subscribe(Topic.UPDATE_NODE_PARM, self._on_update_node_parm)
        bus.subscribe(Topic.HISTORY_CLEAN, self._on_history_clean)
        bus.subscribe(Topic.UNDO, self._on_undo)
        bus.subscribe(Topic.REDO, self._on_redo)

    @property
    def can_undo(self):
        return len(self.undo_stack) > 0

    @property
    def can_redo(self):
        return len(self.redo_stack) > 0

    def reset(self):
        """Drop both stacks and take the current canvas as the new baseline"""
        self.undo_stack.clear()
        self.redo_stack.clear()
        self._current = self.synchronizer.snapshot_all()
        log.debug("History reset")

    def record(self):
        if self._replaying or self.synchronizer.is_reconstructing:
            return
        if self._group_depth:
            self._group_changed = True
            return
        snapshot = self.synchronizer.snapshot_all()
        if snapshot == self._current:
            log.debug("Canvas unchanged, nothing to record")
            return
        self.undo_stack.append(self._current)
        self.redo_stack.clear()
        self._current = snapshot
        log.debug("Recorded undo step (%d stored)", len(self.undo_stack))

    @contextmanager
    def grouped(self):
        """Record every edit made inside the block as a single undo step"""
        self._group_depth += 1
        try:
            yield
        finally:
            self._group_depth -= 1
            if not self._group_depth and self._group_changed:
                self._group_changed = False
                self.record()

    def undo(self):
        if not self.undo_stack:
            log.info("Nothing to undo")
            return False
        previous = self.undo_stack.pop()
        self.redo_stack.append(self._current)
        self._replay(previous)
        return True

    def redo(self):
        if not self.redo_stack:
            log.info("Nothing to redo")
            return False
        following = self.redo_stack.pop()
        self.undo_stack.append(self._current)
        self._replay(following)
        return True

    def _replay(self, trees):
        self._replaying = True
        try:
            self.bus.publish(Topic.FILE_LOAD_REDRAW, list(trees))
        finally:
            self._replaying = False
        self._group_depth = 0
        self._group_changed = False
        self._current = self.synchronizer.snapshot_all()

    def _record_event(self, payload):
        self.record()

    def _on_node_add(self, added):
        if not added.from_build:
            self.record()

    def _on_link_event(self, link):
        if not link.from_build:
            self.record()

    def _on_update_node_parm(self, update):
        if update.notify:
            self.record()

    def _on_history_clean(self, payload):
        if not self._replaying:
            self.reset()

    def _on_undo(self, payload):
        self.undo()

    def _on_redo(self, payload):
        self.redo()
