"""
Canonical behavior tree model.

TreeNode is the serializable form exchanged with files, the undo log and the
event bus. TreeIndex is the flat id -> entry table that owns the parent/child
structure of the live graph.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional

from errors import DuplicateNode, InvalidLink, InvalidParameters, NodeNotFound
from node_kind import (NodeKind, NodeParameters, kind_spec, parameters_from_wire,
                       parameters_to_wire)


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_wire(cls, data) -> "Position":
        if not isinstance(data, Mapping):
            return cls()
        try:
            return cls(float(data.get("x") or 0.0), float(data.get("y") or 0.0))
        except (TypeError, ValueError):
            raise InvalidParameters(f"Invalid position: {dict(data)!r}") from None

    def to_wire(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass
class TreeNode:
    id: str
    kind: NodeKind
    position: Position = field(default_factory=Position)
    parameters: NodeParameters = None
    children: List["TreeNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize to the wire format"""
        data = {
            "id": self.id,
            "ty": self.kind.value,
            "pos": self.position.to_wire(),
        }
        data.update(parameters_to_wire(self.kind, self.parameters))
        data["children"] = [child.to_dict() for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: Mapping) -> "TreeNode":
        """Parse a wire mapping, raising on the first malformed node"""
        kind = NodeKind.parse(data.get("ty"))
        return cls(
            id=str(data["id"]),
            kind=kind,
            position=Position.from_wire(data.get("pos")),
            parameters=parameters_from_wire(kind, data),
            children=[cls.from_dict(child) for child in data.get("children") or []],
        )

    def walk(self) -> Iterator["TreeNode"]:
        """Yield this node and its descendants in pre-order"""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, node_id: str) -> Optional["TreeNode"]:
        for node in self.walk():
            if node.id == node_id:
                return node
        return None


@dataclass
class IndexEntry:
    node_id: str
    kind: NodeKind
    parent: Optional[str] = None
    children: List[str] = field(default_factory=list)


class TreeIndex:
    """Parent/child bookkeeping for the nodes currently on the canvas"""

    def __init__(self):
        self._entries: Dict[str, IndexEntry] = {}

    def __contains__(self, node_id):
        return node_id in self._entries

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))

    def add(self, node_id: str, kind: NodeKind) -> IndexEntry:
        if node_id in self._entries:
            raise DuplicateNode(node_id)
        entry = IndexEntry(node_id, kind)
        self._entries[node_id] = entry
        return entry

    def get(self, node_id: str) -> IndexEntry:
        try:
            return self._entries[node_id]
        except KeyError:
            raise NodeNotFound(node_id) from None

    def parent_of(self, node_id: str) -> Optional[str]:
        return self.get(node_id).parent

    def children_of(self, node_id: str) -> List[str]:
        return list(self.get(node_id).children)

    def roots(self) -> List[str]:
        """Ids of all entries without a parent, in insertion order"""
        return [entry.node_id for entry in self._entries.values() if entry.parent is None]

    def root_id(self) -> Optional[str]:
        for entry in self._entries.values():
            if entry.kind is NodeKind.ROOT:
                return entry.node_id
        return None

    def ancestors(self, node_id: str) -> List[str]:
        result = []
        parent = self.get(node_id).parent
        while parent is not None:
            result.append(parent)
            parent = self._entries[parent].parent
        return result

    def check_attach(self, parent_id: str, child_id: str) -> None:
        """Raise InvalidLink if child_id cannot become the last child of parent_id"""
        parent = self.get(parent_id)
        child = self.get(child_id)
        if parent_id == child_id:
            raise InvalidLink("A node cannot be linked to itself")
        if child.kind is NodeKind.ROOT:
            raise InvalidLink("Root cannot be the child of another node")
        if not kind_spec(parent.kind).accepts_children:
            raise InvalidLink(f"{parent.kind.value} nodes cannot have children")
        if child.parent is not None:
            raise InvalidLink(f"Node {child_id} already has a parent")
        if child_id in self.ancestors(parent_id):
            raise InvalidLink("Link would create a cycle")

    def attach(self, parent_id: str, child_id: str) -> None:
        self.check_attach(parent_id, child_id)
        self._entries[parent_id].children.append(child_id)
        self._entries[child_id].parent = parent_id

    def detach(self, child_id: str) -> Optional[str]:
        """Unlink a node from its parent, returning the former parent id"""
        child = self.get(child_id)
        parent_id = child.parent
        if parent_id is not None:
            self._entries[parent_id].children.remove(child_id)
            child.parent = None
        return parent_id

    def subtree(self, node_id: str) -> List[str]:
        """Ids of node_id and all its descendants, pre-order"""
        result = []
        stack = [node_id]
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self.get(current).children))
        return result

    def remove(self, node_id: str) -> List[str]:
        """Detach node_id and drop its whole subtree, returning the removed ids"""
        self.detach(node_id)
        removed = self.subtree(node_id)
        for removed_id in removed:
            del self._entries[removed_id]
        return removed

    def clear(self):
        self._entries.clear()
