"""Figma REST API node JSON → RawDesignNode converter.

Pure data conversion, no HTTP calls. Accepts the ``document`` objects
returned by GET /v1/files/:key/nodes (or any dict in the same shape,
including the output of nodes.node_to_dict).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from handoff.design.nodes import (
    BoundingBox,
    Color,
    Effect,
    EffectKind,
    NodeKind,
    Paint,
    PaintKind,
    RawDesignNode,
    Stroke,
    TextStyle,
)
from handoff.errors import InvalidDesignInput

logger = logging.getLogger("handoff.design")

_EFFECT_KINDS = {
    "DROP_SHADOW": EffectKind.DROP_SHADOW,
    "INNER_SHADOW": EffectKind.INNER_SHADOW,
    "LAYER_BLUR": EffectKind.BLUR,
    "BACKGROUND_BLUR": EffectKind.BLUR,
    "BLUR": EffectKind.BLUR,
}


def parse_figma_node(data: Optional[Dict[str, Any]]) -> RawDesignNode:
    """Convert one Figma node dict (and its subtree) into a RawDesignNode.

    Invisible children are skipped. Raises InvalidDesignInput if data is not
    a dict.
    """
    if not isinstance(data, dict):
        raise InvalidDesignInput(
            f"Figma node must be a JSON object, got {type(data).__name__}"
        )

    children = []
    for child in data.get("children", []) or []:
        if not isinstance(child, dict):
            continue
        if child.get("visible", True) is False:
            continue
        children.append(parse_figma_node(child))

    stroke_weight = _number(data.get("strokeWeight"), 1.0)
    strokes = [
        Stroke(color=_parse_color(s.get("color"), s.get("opacity")), weight=stroke_weight)
        for s in data.get("strokes", []) or []
        if isinstance(s, dict) and s.get("visible", True) is not False
    ]

    radii = data.get("rectangleCornerRadii")
    corner_radii = None
    if isinstance(radii, (list, tuple)) and len(radii) == 4:
        corner_radii = tuple(_number(r, 0.0) for r in radii)

    return RawDesignNode(
        id=str(data.get("id", "")),
        name=data.get("name", "") or "",
        kind=NodeKind.from_figma(data.get("type")),
        box=_parse_box(data.get("absoluteBoundingBox")),
        fills=_parse_paints(data.get("fills")),
        strokes=strokes,
        corner_radius=_number(data.get("cornerRadius"), 0.0),
        corner_radii=corner_radii,
        effects=_parse_effects(data.get("effects")),
        characters=data.get("characters"),
        text_style=_parse_text_style(data.get("style")),
        children=children,
    )


def parse_figma_nodes_response(
    response: Dict[str, Any], node_id: str,
) -> RawDesignNode:
    """Unwrap a /v1/files/:key/nodes response and parse the requested node."""
    nodes_map = response.get("nodes", {}) or {}
    entry = nodes_map.get(node_id)
    if entry is None:
        # Figma sometimes echoes "1-10" for a requested "1:10"
        entry = nodes_map.get(node_id.replace(":", "-")) or nodes_map.get(
            node_id.replace("-", ":")
        )
    if not entry or not entry.get("document"):
        raise InvalidDesignInput(
            f"Node '{node_id}' not found in Figma response. "
            f"Available nodes: {list(nodes_map.keys())}"
        )
    return parse_figma_node(entry["document"])


# --- Field parsers ---


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def _parse_box(bbox: Any) -> Optional[BoundingBox]:
    if not isinstance(bbox, dict):
        return None
    try:
        return BoundingBox(
            x=_number(bbox.get("x"), 0),
            y=_number(bbox.get("y"), 0),
            width=_number(bbox["width"], 0),
            height=_number(bbox["height"], 0),
        )
    except KeyError:
        return None


def _parse_color(color: Any, opacity: Any = None) -> Optional[Color]:
    if not isinstance(color, dict):
        return None
    alpha = _number(color.get("a"), 1.0)
    if opacity is not None:
        alpha *= _number(opacity, 1.0)
    return Color(
        r=_number(color.get("r"), 0.0),
        g=_number(color.get("g"), 0.0),
        b=_number(color.get("b"), 0.0),
        a=alpha,
    )


def _parse_paints(fills: Any) -> List[Paint]:
    paints = []
    for fill in fills or []:
        if not isinstance(fill, dict):
            continue
        fill_type = str(fill.get("type", "SOLID")).upper()
        if fill_type == "SOLID":
            kind = PaintKind.SOLID
        elif fill_type == "IMAGE":
            kind = PaintKind.IMAGE
        elif fill_type.startswith("GRADIENT"):
            kind = PaintKind.GRADIENT
        else:
            continue
        paints.append(Paint(
            kind=kind,
            color=_parse_color(fill.get("color"), fill.get("opacity")),
            image_ref=fill.get("imageRef"),
            visible=fill.get("visible", True) is not False,
        ))
    return paints


def _parse_effects(effects: Any) -> List[Effect]:
    parsed = []
    for effect in effects or []:
        if not isinstance(effect, dict) or effect.get("visible", True) is False:
            continue
        kind = _EFFECT_KINDS.get(str(effect.get("type", "")).upper())
        if kind is None:
            continue
        offset = effect.get("offset")
        parsed.append(Effect(
            kind=kind,
            radius=_number(effect.get("radius"), 0.0),
            color=_parse_color(effect.get("color")),
            offset=(
                (_number(offset.get("x"), 0.0), _number(offset.get("y"), 0.0))
                if isinstance(offset, dict) else None
            ),
        ))
    return parsed


def _parse_text_style(style: Any) -> Optional[TextStyle]:
    if not isinstance(style, dict) or not style:
        return None
    return TextStyle(
        font_family=style.get("fontFamily", "") or "",
        font_size=style.get("fontSize"),
        font_weight=style.get("fontWeight"),
        line_height=style.get("lineHeightPx"),
        letter_spacing=style.get("letterSpacing"),
    )
