"""Design node model, Figma JSON parsing and bounding-box resolution."""

from handoff.design.figma_parser import parse_figma_node, parse_figma_nodes_response
from handoff.design.nodes import (
    BoundingBox,
    Color,
    DesignNode,
    DesignTree,
    Effect,
    EffectKind,
    NodeKind,
    Paint,
    PaintKind,
    RawDesignNode,
    Stroke,
    TextStyle,
    node_to_dict,
)
from handoff.design.resolver import resolve_tree

__all__ = [
    "BoundingBox",
    "Color",
    "DesignNode",
    "DesignTree",
    "Effect",
    "EffectKind",
    "NodeKind",
    "Paint",
    "PaintKind",
    "RawDesignNode",
    "Stroke",
    "TextStyle",
    "node_to_dict",
    "parse_figma_node",
    "parse_figma_nodes_response",
    "resolve_tree",
]
