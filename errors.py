"""
Recoverable editor errors.

None of these are fatal: they are caught where they are detected, logged, and
reported to the user as a warning while the rest of the operation continues.
"""


class EditorError(Exception):
    """Base class for all recoverable editor failures"""


class UnknownNodeKind(EditorError):
    """A serialized node names a kind the registry does not know"""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Unknown node kind: {kind!r}")


class MissingEndpoint(EditorError):
    """An edge was connected without a source or a target node"""

    def __init__(self):
        super().__init__("Edge has no source or target node")


class NodeNotFound(EditorError):
    """A lookup by id failed during a targeted mutation"""

    def __init__(self, node_id):
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class DuplicateNode(EditorError):
    """The same id appears twice in one tree"""

    def __init__(self, node_id):
        self.node_id = node_id
        super().__init__(f"Duplicate node id: {node_id}")


class InvalidLink(EditorError):
    """A parent/child link would break the tree invariants"""


class InvalidParameters(EditorError):
    """Parameters do not match the node kind they are applied to"""


class TreeFileError(EditorError):
    """A tree file could not be read or written"""
