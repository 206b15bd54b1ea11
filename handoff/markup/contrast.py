"""WCAG 2.x contrast ratio between a node and its background."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from handoff.design.nodes import Color, DesignNode, DesignTree, NodeKind, primary_solid_fill
from handoff.settings import CONTRAST_AA_RATIO, CONTRAST_AAA_RATIO


@dataclass(frozen=True)
class ContrastResult:
    ratio: float  # 2 decimal places
    meets_aa: bool
    meets_aaa: bool
    foreground_hex: str
    background_hex: str
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ratio": self.ratio,
            "meets_aa": self.meets_aa,
            "meets_aaa": self.meets_aaa,
            "foreground": self.foreground_hex,
            "background": self.background_hex,
            "warning": self.warning,
        }


def _linearize(channel: float) -> float:
    if channel <= 0.03928:
        return channel / 12.92
    return ((channel + 0.055) / 1.055) ** 2.4


def relative_luminance(color: Color) -> float:
    return (
        0.2126 * _linearize(color.r)
        + 0.7152 * _linearize(color.g)
        + 0.0722 * _linearize(color.b)
    )


def contrast_ratio(first: Color, second: Color) -> float:
    l1 = relative_luminance(first)
    l2 = relative_luminance(second)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def evaluate_contrast(foreground: Color, background: Color) -> ContrastResult:
    ratio = contrast_ratio(foreground, background)
    meets_aa = ratio >= CONTRAST_AA_RATIO
    return ContrastResult(
        ratio=round(ratio, 2),
        meets_aa=meets_aa,
        meets_aaa=ratio >= CONTRAST_AAA_RATIO,
        foreground_hex=foreground.to_hex(),
        background_hex=background.to_hex(),
        warning=None if meets_aa else (
            f"Contrast ratio {ratio:.2f}:1 fails WCAG AA (needs {CONTRAST_AA_RATIO:g}:1)"
        ),
    )


def _color_pair(
    node: DesignNode, tree: Optional[DesignTree],
) -> Optional[Tuple[Color, Color]]:
    own = primary_solid_fill(node)
    parent = tree.parent(node) if tree is not None else None
    if parent is not None:
        background = primary_solid_fill(parent)
        if own is None or background is None:
            return None
        return own, background
    # Root: text drawn directly on the node
    if own is not None:
        for child in node.children:
            if child.kind == NodeKind.TEXT:
                text_color = primary_solid_fill(child)
                if text_color is not None:
                    return text_color, own
    return None


def check_color_contrast(
    node: Optional[DesignNode], tree: Optional[DesignTree] = None,
) -> Optional[ContrastResult]:
    """Contrast of the node's solid fill against its parent's solid fill.

    A root node has no parent, so its first text child's fill is checked
    against the root's own fill instead. None when either side has
    no solid fill.
    """
    if node is None:
        return None
    pair = _color_pair(node, tree)
    if pair is None:
        return None
    return evaluate_contrast(*pair)
