"""Rule-based UI component classification for design nodes.

Scores a resolved node against six widget archetypes and keeps the best:
- button: compact, text-bearing, rounded, solid fill
- card: padded multi-child container with moderate rounding/shadow
- input: wide, bordered, light fill, placeholder-like text
- badge: small pill with short text
- avatar: gated on an avatar-like name, then square/circular in a narrow size band
- container: large, minimally styled layout frame

Pure function of the node and its resolved subtree. Zero LLM cost.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from handoff.design.nodes import (
    EffectKind,
    NodeKind,
    PaintKind,
    first_text,
    has_text_content,
    primary_solid_fill,
)
from handoff.settings import (
    CLASSIFICATION_MIN_CONFIDENCE,
    HIGH_CONFIDENCE,
    LIBRARY_MIN_CONFIDENCE,
)

logger = logging.getLogger("handoff.analysis.classifier")


class ComponentType(str, Enum):
    BUTTON = "button"
    INPUT = "input"
    CARD = "card"
    BADGE = "badge"
    AVATAR = "avatar"
    CONTAINER = "container"
    UNKNOWN = "unknown"
    # Never produced by classify(); accepted from callers that know better
    NAVIGATION = "navigation"
    IMAGE = "image"


@dataclass(frozen=True)
class ClassificationResult:
    """Best-matching archetype for a node."""

    component_type: ComponentType
    confidence: int  # 0 - 100
    reasoning: Tuple[str, ...] = ()
    suggested_library: str = "custom"

    @property
    def is_unknown(self) -> bool:
        return self.component_type == ComponentType.UNKNOWN

    @property
    def confidence_band(self) -> str:
        if self.confidence >= HIGH_CONFIDENCE:
            return "high"
        if self.confidence >= LIBRARY_MIN_CONFIDENCE:
            return "medium"
        return "low"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component_type": self.component_type.value,
            "confidence": self.confidence,
            "reasoning": list(self.reasoning),
            "suggested_library": self.suggested_library,
        }


UNKNOWN_RESULT = ClassificationResult(
    component_type=ComponentType.UNKNOWN,
    confidence=0,
    reasoning=("does not match any known component pattern",),
    suggested_library="custom",
)


# --- Constants ---

NAME_KEYWORDS: Dict[ComponentType, Tuple[str, ...]] = {
    ComponentType.BUTTON: ("button", "btn"),
    ComponentType.CARD: ("card", "panel", "box"),
    ComponentType.INPUT: ("input", "field", "textbox", "textfield"),
    ComponentType.BADGE: ("badge", "tag", "label", "chip"),
    ComponentType.AVATAR: ("avatar", "profile", "user", "icon"),
    ComponentType.CONTAINER: ("container", "wrapper", "layout", "section"),
}

LIBRARY_BY_TYPE: Dict[ComponentType, str] = {
    ComponentType.BUTTON: "shadcn",
    ComponentType.CARD: "shadcn",
    ComponentType.INPUT: "shadcn",
    ComponentType.BADGE: "shadcn",
    ComponentType.AVATAR: "shadcn",
    ComponentType.CONTAINER: "custom",
}

# Typical input backgrounds: white, slate-50, gray-50
LIGHT_INPUT_BACKGROUNDS = frozenset({(255, 255, 255), (248, 250, 252), (249, 250, 251)})

PLACEHOLDER_FRAGMENTS = ("Enter", "Type", "Placeholder", "Search")


@dataclass
class _Score:
    confidence: int = 0
    reasons: List[str] = field(default_factory=list)

    def add(self, points: int, reason: Optional[str] = None) -> None:
        self.confidence += points
        if reason:
            self.reasons.append(reason)


def name_contains(name: str, component_type: ComponentType) -> bool:
    lower = (name or "").lower()
    return any(k in lower for k in NAME_KEYWORDS.get(component_type, ()))


def _has_drop_shadow(node: Any) -> bool:
    return any(e.kind == EffectKind.DROP_SHADOW for e in node.effects)


def _first_fill_color(node: Any):
    for paint in node.fills:
        if paint.color is not None:
            return paint.color
    return None


# =====================================================================
# Archetype scorers
# =====================================================================


def score_button(node: Any) -> _Score:
    s = _Score()
    w, h = node.box.width, node.box.height
    if 32 <= h <= 64 and 60 <= w <= 300:
        s.add(20, "appropriate button size")
    if has_text_content(node):
        s.add(25, "has text content")
    if node.corner_radius > 0:
        s.add(15, "rounded corners")
    if node.fills and node.fills[0].kind == PaintKind.SOLID:
        s.add(15, "solid background color")
    if node.strokes or _has_drop_shadow(node):
        s.add(10, "has border or shadow")
    if name_contains(node.name, ComponentType.BUTTON):
        s.add(15, 'name contains "button"')
    return s


def score_card(node: Any) -> _Score:
    s = _Score()
    if node.kind in (NodeKind.FRAME, NodeKind.GROUP):
        s.add(15, "is container (FRAME/GROUP)")
    if len(node.children) >= 2:
        s.add(20, "has multiple children")
    if node.box.width > 200 and node.box.height > 100:
        s.add(15, "card-like dimensions")
    if 8 <= node.corner_radius <= 16:
        s.add(15, "rounded corners")
    if _has_drop_shadow(node):
        s.add(10, "has shadow")
    inset = any(
        c.box is not None and (c.box.x > node.box.x + 10 or c.box.y > node.box.y + 10)
        for c in node.children
    )
    if inset:
        s.add(15, "has internal padding")
    if name_contains(node.name, ComponentType.CARD):
        s.add(10, 'name contains "card"')
    return s


def score_input(node: Any) -> _Score:
    s = _Score()
    w, h = node.box.width, node.box.height
    if 32 <= h <= 56 and w >= 150:
        s.add(25, "appropriate input size")
    if node.strokes:
        s.add(25, "has border")
    color = primary_solid_fill(node)
    if color is not None and color.to_rgb255() in LIGHT_INPUT_BACKGROUNDS:
        s.add(20, "light background")
    text = first_text(node)
    if text and any(fragment in text for fragment in PLACEHOLDER_FRAGMENTS):
        s.add(15, "has placeholder-like text")
    if name_contains(node.name, ComponentType.INPUT):
        s.add(30, 'name contains "input"')
    if node.corner_radius <= 8:
        s.add(10, "minimal corner radius (typical for inputs)")
    return s


def score_badge(node: Any) -> _Score:
    s = _Score()
    w, h = node.box.width, node.box.height
    if 20 < w < 100 and 16 < h < 40:
        s.add(25, "small badge-like size")
    if has_text_content(node):
        s.add(20, "has text content")
    if node.corner_radius >= h / 2 or node.corner_radius >= 16:
        s.add(20, "pill-shaped or highly rounded")
    if _first_fill_color(node) is not None:
        s.add(10, "has background color")
    if name_contains(node.name, ComponentType.BADGE):
        s.add(15, 'name contains "badge"')
    return s


def score_avatar(node: Any) -> _Score:
    s = _Score()
    if not name_contains(node.name, ComponentType.AVATAR):
        # Gate: without an avatar-like name the archetype is not viable
        s.add(-20)
        return s
    s.add(40, 'name contains "avatar"')

    w, h = node.box.width, node.box.height
    is_square = abs(w - h) <= 5
    is_circle = w > 0 and node.corner_radius >= w / 2
    if is_square or is_circle:
        s.add(20, "circular shape" if is_circle else "square shape")
    if 32 <= w <= 64 and 32 <= h <= 64:
        s.add(25, "avatar-like size")
    else:
        s.add(-15)
    if node.fills:
        s.add(15, "has fill (image or color)")
    text = first_text(node)
    if len(text) <= 2:
        s.add(15, "minimal or no text content")
    return s


def score_container(node: Any) -> _Score:
    s = _Score()
    if node.kind in (NodeKind.FRAME, NodeKind.GROUP):
        s.add(15, "is container (FRAME/GROUP)")
    if len(node.children) >= 2:
        s.add(20, "has multiple children")
    if node.box.width > 200 or node.box.height > 200:
        s.add(15, "large container size")
    if len(node.fills) <= 1 and not node.strokes and node.corner_radius <= 4:
        s.add(20, "minimal styling (layout container)")
    if name_contains(node.name, ComponentType.CONTAINER):
        s.add(10, 'name contains "container"')
    return s


# Order doubles as the tie-break: earlier archetypes win equal scores
SCORERS: Tuple[Tuple[ComponentType, Callable[[Any], _Score]], ...] = (
    (ComponentType.BUTTON, score_button),
    (ComponentType.CARD, score_card),
    (ComponentType.INPUT, score_input),
    (ComponentType.BADGE, score_badge),
    (ComponentType.AVATAR, score_avatar),
    (ComponentType.CONTAINER, score_container),
)


# =====================================================================
# Public API
# =====================================================================


def suggest_library(component_type: ComponentType, confidence: int) -> str:
    if confidence < LIBRARY_MIN_CONFIDENCE:
        return "custom"
    return LIBRARY_BY_TYPE.get(component_type, "custom")


def score_all(node: Any) -> Dict[ComponentType, int]:
    """Raw (clamped) score per archetype, for debugging close calls."""
    if node is None or getattr(node, "box", None) is None:
        return {t: 0 for t, _ in SCORERS}
    return {t: max(0, min(scorer(node).confidence, 100)) for t, scorer in SCORERS}


def classify(node: Any) -> ClassificationResult:
    """Classify a resolved design node into a UI component archetype.

    Never raises: a missing node or a node without geometry yields Unknown/0.
    """
    if node is None or getattr(node, "box", None) is None:
        logger.info("classify: missing node or geometry, returning unknown")
        return UNKNOWN_RESULT

    best_type: Optional[ComponentType] = None
    best: Optional[_Score] = None
    for component_type, scorer in SCORERS:
        score = scorer(node)
        if best is None or score.confidence > best.confidence:
            best_type, best = component_type, score

    if best is None or best.confidence < CLASSIFICATION_MIN_CONFIDENCE:
        logger.info(
            f"classify: '{node.name}' below threshold "
            f"(best={best_type.value if best_type else None}, "
            f"score={best.confidence if best else 0})"
        )
        return UNKNOWN_RESULT

    confidence = min(best.confidence, 100)
    result = ClassificationResult(
        component_type=best_type,
        confidence=confidence,
        reasoning=tuple(best.reasons),
        suggested_library=suggest_library(best_type, confidence),
    )
    logger.info(
        f"classify: '{node.name}' → {best_type.value} ({confidence}%)"
    )
    return result


def should_use_library_component(
    result: ClassificationResult, preference: Optional[str],
) -> bool:
    """Whether generated code should reach for a component library at all."""
    if preference == "none":
        return False
    if result.confidence < LIBRARY_MIN_CONFIDENCE:
        return False
    if result.component_type in (ComponentType.UNKNOWN, ComponentType.CONTAINER):
        return False
    return True
