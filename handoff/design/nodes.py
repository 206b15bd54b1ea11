"""Design node model: typed representation of a design-tool node tree.

Two variants share one field layout:
- RawDesignNode: as exported, bounding box optional (groups often omit it)
- DesignNode: resolved, bounding box guaranteed (see resolver.resolve_tree)

Parent links are never stored on nodes. DesignTree keeps a non-owning
child-id → parent-id index next to the owning children lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple


class NodeKind(str, Enum):
    RECTANGLE = "RECTANGLE"
    TEXT = "TEXT"
    FRAME = "FRAME"
    GROUP = "GROUP"
    COMPONENT = "COMPONENT"
    INSTANCE = "INSTANCE"
    CANVAS = "CANVAS"
    ELLIPSE = "ELLIPSE"
    VECTOR = "VECTOR"
    LINE = "LINE"
    OTHER = "OTHER"

    @classmethod
    def from_figma(cls, value: Optional[str]) -> "NodeKind":
        try:
            return cls((value or "").upper())
        except ValueError:
            return cls.OTHER


CONTAINER_KINDS = frozenset({
    NodeKind.FRAME, NodeKind.GROUP, NodeKind.COMPONENT,
    NodeKind.INSTANCE, NodeKind.CANVAS,
})


class PaintKind(str, Enum):
    SOLID = "SOLID"
    IMAGE = "IMAGE"
    GRADIENT = "GRADIENT"


class EffectKind(str, Enum):
    DROP_SHADOW = "DROP_SHADOW"
    INNER_SHADOW = "INNER_SHADOW"
    BLUR = "BLUR"


# =====================================================================
# Value types
# =====================================================================


@dataclass(frozen=True)
class BoundingBox:
    """Absolute pixel rectangle of a node on the design canvas."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @classmethod
    def union(cls, boxes: Iterable["BoundingBox"]) -> Optional["BoundingBox"]:
        """Tight bounding union of boxes, or None when there are none."""
        boxes = list(boxes)
        if not boxes:
            return None
        left = min(b.x for b in boxes)
        top = min(b.y for b in boxes)
        right = max(b.right for b in boxes)
        bottom = max(b.bottom for b in boxes)
        return cls(x=left, y=top, width=right - left, height=bottom - top)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Color:
    """RGBA color with 0–1 channels, as the design tool exports it."""

    r: float
    g: float
    b: float
    a: float = 1.0

    def to_rgb255(self) -> Tuple[int, int, int]:
        return (round(self.r * 255), round(self.g * 255), round(self.b * 255))

    def to_hex(self) -> str:
        r, g, b = self.to_rgb255()
        return f"#{r:02x}{g:02x}{b:02x}"

    def to_rgb_string(self) -> str:
        r, g, b = self.to_rgb255()
        return f"rgb({r}, {g}, {b})"

    def to_dict(self) -> Dict[str, float]:
        return {"r": self.r, "g": self.g, "b": self.b, "a": self.a}


@dataclass(frozen=True)
class Paint:
    kind: PaintKind
    color: Optional[Color] = None
    image_ref: Optional[str] = None
    visible: bool = True


@dataclass(frozen=True)
class Stroke:
    color: Optional[Color]
    weight: float = 1.0


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    radius: float = 0.0
    color: Optional[Color] = None
    offset: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class TextStyle:
    font_family: str = ""
    font_size: Optional[float] = None
    font_weight: Optional[float] = None
    line_height: Optional[float] = None
    letter_spacing: Optional[float] = None


# =====================================================================
# Nodes
# =====================================================================


@dataclass
class RawDesignNode:
    """Node as exported by the design tool; ``box`` may be missing."""

    id: str
    name: str = ""
    kind: NodeKind = NodeKind.OTHER
    box: Optional[BoundingBox] = None
    fills: List[Paint] = field(default_factory=list)
    strokes: List[Stroke] = field(default_factory=list)
    corner_radius: float = 0.0
    corner_radii: Optional[Tuple[float, float, float, float]] = None
    effects: List[Effect] = field(default_factory=list)
    characters: Optional[str] = None
    text_style: Optional[TextStyle] = None
    children: List["RawDesignNode"] = field(default_factory=list)


@dataclass
class DesignNode:
    """Resolved node; every node reachable from a DesignTree root has a box."""

    id: str
    name: str
    kind: NodeKind
    box: BoundingBox
    fills: List[Paint] = field(default_factory=list)
    strokes: List[Stroke] = field(default_factory=list)
    corner_radius: float = 0.0
    corner_radii: Optional[Tuple[float, float, float, float]] = None
    effects: List[Effect] = field(default_factory=list)
    characters: Optional[str] = None
    text_style: Optional[TextStyle] = None
    children: List["DesignNode"] = field(default_factory=list)

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS


@dataclass
class DesignTree:
    """Resolved tree plus a non-owning child-id → parent-id index."""

    root: DesignNode
    parent_of: Dict[str, str] = field(default_factory=dict)
    by_id: Dict[str, DesignNode] = field(default_factory=dict)

    @classmethod
    def from_root(cls, root: DesignNode) -> "DesignTree":
        tree = cls(root=root)
        stack: List[DesignNode] = [root]
        while stack:
            node = stack.pop()
            tree.by_id[node.id] = node
            for child in node.children:
                tree.parent_of[child.id] = node.id
                stack.append(child)
        return tree

    def get(self, node_id: str) -> Optional[DesignNode]:
        return self.by_id.get(node_id)

    def parent(self, node: DesignNode) -> Optional[DesignNode]:
        parent_id = self.parent_of.get(node.id)
        return self.by_id.get(parent_id) if parent_id is not None else None

    def siblings(self, node: DesignNode) -> List[DesignNode]:
        """All children of node's parent, node included, in document order."""
        parent = self.parent(node)
        return list(parent.children) if parent else []

    def walk(self) -> Iterator[DesignNode]:
        """Pre-order (document order) traversal from the root."""
        yield from _preorder(self.root)

    def descendants(self, node: DesignNode) -> List[DesignNode]:
        return [n for child in node.children for n in _preorder(child)]


def _preorder(node: DesignNode) -> Iterator[DesignNode]:
    yield node
    for child in node.children:
        yield from _preorder(child)


# =====================================================================
# Helpers
# =====================================================================


def has_text_content(node: Any) -> bool:
    """True when the node or any descendant is a non-empty text node."""
    if node.kind == NodeKind.TEXT and node.characters and node.characters.strip():
        return True
    return any(has_text_content(child) for child in node.children)


def first_text(node: Any) -> str:
    """Own characters for text nodes, else the first direct text child's."""
    if node.kind == NodeKind.TEXT:
        return (node.characters or "").strip()
    for child in node.children:
        if child.kind == NodeKind.TEXT:
            return (child.characters or "").strip()
    return ""


def primary_solid_fill(node: Any) -> Optional[Color]:
    """Color of the first visible solid fill, if any."""
    if node is None:
        return None
    for paint in node.fills:
        if paint.visible and paint.kind == PaintKind.SOLID and paint.color is not None:
            return paint.color
    return None


def node_to_dict(node: Any) -> Dict[str, Any]:
    """Dump a node subtree as Figma-shaped JSON (parseable by figma_parser)."""
    data: Dict[str, Any] = {
        "id": node.id,
        "name": node.name,
        "type": node.kind.value,
    }
    if node.box is not None:
        data["absoluteBoundingBox"] = node.box.to_dict()
    if node.fills:
        data["fills"] = [_paint_to_dict(p) for p in node.fills]
    if node.strokes:
        data["strokes"] = [
            {"type": "SOLID", **({"color": s.color.to_dict()} if s.color else {})}
            for s in node.strokes
        ]
        data["strokeWeight"] = node.strokes[0].weight
    if node.corner_radius:
        data["cornerRadius"] = node.corner_radius
    if node.corner_radii:
        data["rectangleCornerRadii"] = list(node.corner_radii)
    if node.effects:
        data["effects"] = [_effect_to_dict(e) for e in node.effects]
    if node.characters is not None:
        data["characters"] = node.characters
    if node.text_style is not None:
        ts = node.text_style
        style = {
            "fontFamily": ts.font_family,
            "fontSize": ts.font_size,
            "fontWeight": ts.font_weight,
            "lineHeightPx": ts.line_height,
            "letterSpacing": ts.letter_spacing,
        }
        data["style"] = {k: v for k, v in style.items() if v not in (None, "")}
    data["children"] = [node_to_dict(c) for c in node.children]
    return data


def _paint_to_dict(paint: Paint) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": paint.kind.value}
    if paint.color is not None:
        data["color"] = paint.color.to_dict()
    if paint.image_ref:
        data["imageRef"] = paint.image_ref
    if not paint.visible:
        data["visible"] = False
    return data


def _effect_to_dict(effect: Effect) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": effect.kind.value, "radius": effect.radius}
    if effect.color is not None:
        data["color"] = effect.color.to_dict()
    if effect.offset is not None:
        data["offset"] = {"x": effect.offset[0], "y": effect.offset[1]}
    return data
