"""Shared fixtures for the behavior tree editor tests."""

import os
import sys

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt5.QtWidgets import QApplication

from config import EditorConfig
from context import EditorContext
from events import Topic


@pytest.fixture(scope="session")
def qapp():
    """One QApplication for the whole run."""
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture(autouse=True)
def slot_exceptions(monkeypatch):
    """Fail the test if an exception escaped a Qt slot.

    PyQt hands such exceptions to sys.excepthook instead of raising them at the
    emit() call site, so they are collected here and reported afterwards.
    """
    raised = []

    def hook(exc_type, exc_value, exc_traceback):
        raised.append(exc_value)

    monkeypatch.setattr(sys, "excepthook", hook)
    yield raised
    if raised:
        pytest.fail(f"Exception raised in a Qt slot: {raised[0]!r}")


@pytest.fixture
def config():
    return EditorConfig(max_undo_steps=50, grid_size=20)


@pytest.fixture
def context(qapp, config):
    """EditorContext on its own scene, holding only the Root."""
    ctx = EditorContext(config=config)
    yield ctx
    ctx.close()


@pytest.fixture
def synchronizer(context):
    return context.synchronizer


class EventLog(list):
    """Every publication on a bus as (topic, payload), in order."""

    def of(self, topic):
        return [payload for t, payload in self if t is topic]

    def topics(self):
        return [t for t, _ in self]


@pytest.fixture
def events(context):
    recorded = EventLog()
    for topic in Topic:
        context.bus.subscribe(topic, lambda payload, t=topic: recorded.append((t, payload)))
    return recorded


@pytest.fixture
def sample_tree():
    """Root -> Sequence -> [Action, Loop -> Wait], in wire form."""
    return {
        "id": "root",
        "ty": "Root",
        "pos": {"x": 0.0, "y": 0.0},
        "children": [
            {
                "id": "seq",
                "ty": "Sequence",
                "pos": {"x": 0.0, "y": 120.0},
                "children": [
                    {
                        "id": "act",
                        "ty": "Action",
                        "pos": {"x": -160.0, "y": 240.0},
                        "alias": "open door",
                        "code": "door.open()",
                        "children": [],
                    },
                    {
                        "id": "loop",
                        "ty": "Loop",
                        "pos": {"x": 160.0, "y": 240.0},
                        "loop": 3,
                        "children": [
                            {
                                "id": "wait",
                                "ty": "Wait",
                                "pos": {"x": 160.0, "y": 360.0},
                                "wait": 250,
                                "children": [],
                            },
                        ],
                    },
                ],
            },
        ],
    }
