"""
Node kinds of a behavior tree.

The registry maps every NodeKind to a KindSpec describing how the kind is drawn,
which editor panel edits it, whether it may own children, and which parameter
variant it carries. Labels are derived from (kind, parameters) alone so they can
be computed without a canvas.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional, Union

from errors import InvalidParameters, UnknownNodeKind


class NodeKind(Enum):
    ROOT = "Root"
    SEQUENCE = "Sequence"
    SELECTOR = "Selector"
    CONDITION = "Condition"
    ACTION = "Action"
    LOOP = "Loop"
    WAIT = "Wait"
    ASSERT = "Assert"

    @classmethod
    def parse(cls, value) -> "NodeKind":
        """Return the kind named by a wire value, raising UnknownNodeKind otherwise"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownNodeKind(value) from None


class KindCategory(Enum):
    SCRIPT = "script"          # edited through alias + code
    CONTROL = "control"        # parameterized control kinds (Loop, Wait)
    STRUCTURAL = "structural"  # no parameters beyond a fixed label


@dataclass(frozen=True)
class ScriptParameters:
    alias: str = ""
    code: str = ""


@dataclass(frozen=True)
class LoopParameters:
    loop_count: int = 0  # 0 repeats forever


@dataclass(frozen=True)
class WaitParameters:
    wait_ms: int = 0


NodeParameters = Union[ScriptParameters, LoopParameters, WaitParameters, None]


@dataclass(frozen=True)
class KindSpec:
    kind: NodeKind
    category: KindCategory
    title_color: str
    shape: str
    panel: str
    accepts_children: bool
    parameters_type: Optional[type] = None
    fixed_label: Optional[str] = None


PANEL_SCRIPT = "script"
PANEL_LOOP = "loop"
PANEL_WAIT = "wait"
PANEL_STRUCTURAL = "structural"


NODE_KINDS: Dict[NodeKind, KindSpec] = {
    NodeKind.ROOT: KindSpec(
        NodeKind.ROOT, KindCategory.STRUCTURAL, "#7f8c8d", "rounded",
        PANEL_STRUCTURAL, accepts_children=True, fixed_label="Root"),
    NodeKind.SEQUENCE: KindSpec(
        NodeKind.SEQUENCE, KindCategory.STRUCTURAL, "#27ae60", "rounded",
        PANEL_STRUCTURAL, accepts_children=True, fixed_label="seq"),
    NodeKind.SELECTOR: KindSpec(
        NodeKind.SELECTOR, KindCategory.STRUCTURAL, "#2980b9", "rounded",
        PANEL_STRUCTURAL, accepts_children=True, fixed_label="sel"),
    NodeKind.CONDITION: KindSpec(
        NodeKind.CONDITION, KindCategory.SCRIPT, "#e67e22", "diamond",
        PANEL_SCRIPT, accepts_children=False, parameters_type=ScriptParameters),
    NodeKind.ACTION: KindSpec(
        NodeKind.ACTION, KindCategory.SCRIPT, "#8e44ad", "pill",
        PANEL_SCRIPT, accepts_children=False, parameters_type=ScriptParameters),
    NodeKind.ASSERT: KindSpec(
        NodeKind.ASSERT, KindCategory.SCRIPT, "#c0392b", "diamond",
        PANEL_SCRIPT, accepts_children=False, parameters_type=ScriptParameters),
    NodeKind.LOOP: KindSpec(
        NodeKind.LOOP, KindCategory.CONTROL, "#16a085", "hexagon",
        PANEL_LOOP, accepts_children=True, parameters_type=LoopParameters),
    NodeKind.WAIT: KindSpec(
        NodeKind.WAIT, KindCategory.CONTROL, "#d35400", "hexagon",
        PANEL_WAIT, accepts_children=False, parameters_type=WaitParameters),
}


def _check_registry():
    missing = [kind.value for kind in NodeKind if kind not in NODE_KINDS]
    if missing:
        raise RuntimeError(f"Node kinds without a registry entry: {', '.join(missing)}")


_check_registry()


def kind_spec(kind) -> KindSpec:
    return NODE_KINDS[NodeKind.parse(kind)]


def is_script_kind(kind) -> bool:
    return kind_spec(kind).category is KindCategory.SCRIPT


def default_parameters(kind) -> NodeParameters:
    """Return fresh parameters for a newly created node of this kind"""
    spec = kind_spec(kind)
    if spec.parameters_type is None:
        return None
    return spec.parameters_type()


def check_parameters(kind, parameters: NodeParameters) -> None:
    """Raise InvalidParameters if the variant does not belong to this kind"""
    spec = kind_spec(kind)
    if spec.parameters_type is None:
        if parameters is not None:
            raise InvalidParameters(f"{spec.kind.value} nodes carry no parameters")
        return
    if not isinstance(parameters, spec.parameters_type):
        raise InvalidParameters(
            f"{spec.kind.value} nodes expect {spec.parameters_type.__name__}, "
            f"got {type(parameters).__name__}")


def node_label(kind, parameters: NodeParameters = None) -> str:
    """Compute the display label of a node from its kind and parameters"""
    spec = kind_spec(kind)
    if parameters is None and spec.parameters_type is not None:
        parameters = spec.parameters_type()

    if spec.category is KindCategory.SCRIPT:
        return parameters.alias or spec.kind.value
    if spec.kind is NodeKind.LOOP:
        if parameters.loop_count != 0:
            return f"{parameters.loop_count} times"
        return "endless"
    if spec.kind is NodeKind.WAIT:
        return f"{parameters.wait_ms} ms"
    return spec.fixed_label


def _wire_int(data: Mapping, key: str) -> int:
    value = data.get(key, 0)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise InvalidParameters(f"'{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidParameters(f"'{key}' must be an integer, got {value!r}") from None


def parameters_from_wire(kind, data: Mapping) -> NodeParameters:
    """Read the kind-specific parameter keys of a serialized node"""
    spec = kind_spec(kind)
    if spec.parameters_type is ScriptParameters:
        return ScriptParameters(alias=str(data.get("alias") or ""),
                                code=str(data.get("code") or ""))
    if spec.parameters_type is LoopParameters:
        return LoopParameters(loop_count=_wire_int(data, "loop"))
    if spec.parameters_type is WaitParameters:
        return WaitParameters(wait_ms=_wire_int(data, "wait"))
    return None


def parameters_to_wire(kind, parameters: NodeParameters) -> dict:
    spec = kind_spec(kind)
    if parameters is None:
        parameters = default_parameters(spec.kind)
    if isinstance(parameters, ScriptParameters):
        return {"alias": parameters.alias, "code": parameters.code}
    if isinstance(parameters, LoopParameters):
        return {"loop": parameters.loop_count}
    if isinstance(parameters, WaitParameters):
        return {"wait": parameters.wait_ms}
    return {}
