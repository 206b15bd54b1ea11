"""Force generated style values to the exact design geometry.

Rules (no rounding anywhere):
- Root element: absolute/fixed positioning, offsets and transforms are
  stripped; ``position: 'relative'`` is injected when no position remains;
  width/height are forced to the node's box size.
- Paired descendants: ``position: 'absolute'`` with left/top relative to the
  enclosing paired element, exact width/height, and ``zIndex`` equal to the
  1-based sibling index so later siblings stack above earlier ones.
- Alignment groups: every member of a TOP/LEFT group receives the group's
  canonical coordinate, so shared edges are emitted as identical literals.

Purely textual: opening tags are rewritten through the named rules in
markup.rules. A style given as an expression (``style={styles.item}``) is
kept as a leading spread and the exact values are appended after it, so they
win at runtime. Unmatched shapes are left untouched. Idempotent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from handoff.analysis.alignment_analyzer import AlignmentGroup, collect_alignment_groups
from handoff.design.nodes import DesignNode
from handoff.errors import InvalidDesignInput
from handoff.markup.pairing import canonical_offsets, expected_offsets, pair_elements
from handoff.markup.rules import (
    ElementMatch,
    StyleProp,
    element_style,
    format_px,
    get_style_value,
    js_str,
    remove_style_props,
    rewrite_element,
    set_style_prop,
    with_style,
)

logger = logging.getLogger("handoff.markup.enforcer")

ROOT_FORBIDDEN_PROPS = ("left", "top", "right", "bottom", "transform")
ROOT_FORBIDDEN_POSITIONS = ("absolute", "fixed")
DESCENDANT_CONFLICTING_PROPS = ("right", "bottom")


@dataclass(frozen=True)
class ValueChange:
    element: str
    property: str
    before: Optional[str]
    after: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "element": self.element,
            "property": self.property,
            "before": self.before,
            "after": self.after,
        }


@dataclass
class EnforcementResult:
    markup: str
    changes: List[ValueChange] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


class _PropEditor:
    """Accumulates style edits for one element and records what changed."""

    def __init__(self, label: str, props: List[StyleProp], changes: List[ValueChange]):
        self.label = label
        self.props = props
        self.changes = changes

    def set(self, key: str, expression: str, literal: str) -> None:
        before = get_style_value(self.props, key)
        if before != literal:
            self.changes.append(ValueChange(self.label, key, before, literal))
        self.props = set_style_prop(self.props, key, expression)

    def set_px(self, key: str, number: float) -> None:
        value = format_px(number)
        self.set(key, js_str(value), value)

    def remove(self, keys: Sequence[str]) -> None:
        for key in keys:
            before = get_style_value(self.props, key)
            if before is not None:
                self.changes.append(ValueChange(self.label, key, before, None))
        self.props = remove_style_props(self.props, keys)


def enforce_with_report(
    markup: str,
    node: Optional[DesignNode],
    groups: Optional[Sequence[AlignmentGroup]] = None,
) -> EnforcementResult:
    """Enforce exact values and list every substitution made."""
    if node is None or getattr(node, "box", None) is None:
        raise InvalidDesignInput("enforce requires a resolved design node")
    if not markup:
        return EnforcementResult(markup=markup or "")

    if groups is None:
        groups = collect_alignment_groups(node)
    canonical = canonical_offsets(groups)

    pairing = pair_elements(markup, node)
    if pairing.root is None:
        logger.info("enforce: no elements found, markup left untouched")
        return EnforcementResult(markup=markup)

    changes: List[ValueChange] = []
    edits: List[Tuple[ElementMatch, str]] = []

    # --- Root: anchored at its own origin ---
    root = pairing.root
    editor = _PropEditor("root", element_style(markup, root), changes)
    position = get_style_value(editor.props, "position")
    if position in ROOT_FORBIDDEN_POSITIONS:
        editor.remove(["position"])
    editor.remove(ROOT_FORBIDDEN_PROPS)
    if get_style_value(editor.props, "position") is None:
        editor.set("position", js_str("relative"), "relative")
    editor.set_px("width", node.box.width)
    editor.set_px("height", node.box.height)
    edits.append((root, with_style(root.text(markup), root.tag, editor.props)))

    # --- Descendants: absolute, exact offsets and sizes ---
    for pair in pairing.pairs:
        element = pair.element
        left, top = expected_offsets(pair, canonical)
        editor = _PropEditor(pair.label, element_style(markup, element), changes)
        editor.set("position", js_str("absolute"), "absolute")
        editor.remove(DESCENDANT_CONFLICTING_PROPS)
        editor.set_px("left", left)
        editor.set_px("top", top)
        editor.set_px("width", pair.node.box.width)
        editor.set_px("height", pair.node.box.height)
        z_index = str(pair.sibling_index + 1)
        editor.set("zIndex", z_index, z_index)
        edits.append((element, with_style(element.text(markup), element.tag, editor.props)))

    # Rewrite back to front so earlier offsets stay valid
    corrected = markup
    for element, new_open in sorted(edits, key=lambda e: e[0].start, reverse=True):
        corrected = rewrite_element(corrected, element, new_open)

    logger.info(
        f"enforce: node '{node.name}': {len(pairing.pairs)} paired descendants, "
        f"{len(changes)} substitutions"
    )
    return EnforcementResult(markup=corrected, changes=changes)


def enforce(
    markup: str,
    node: Optional[DesignNode],
    groups: Optional[Sequence[AlignmentGroup]] = None,
) -> str:
    """Return markup whose numeric/positional styles match the design exactly."""
    return enforce_with_report(markup, node, groups).markup
