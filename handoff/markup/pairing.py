"""Pair markup elements with the design nodes they render.

Shared by the enforcer and the validator so both read the same element as
the same node:
- the first element is the root and renders the selected node
- elements carrying ``data-node-id`` pair with that descendant
- remaining elements pair in document order with the unclaimed descendants
  (pre-order); extra elements stay unpaired
- helper elements added by the accessibility passes are never paired

Offsets are measured against the nearest enclosing paired element (the
root when there is none), which is the CSS containing block once every
paired descendant is absolutely positioned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from handoff.analysis.alignment_analyzer import AlignmentGroup, AlignmentKind
from handoff.design.nodes import DesignNode, DesignTree
from handoff.markup.rules import (
    HELPER_ATTR,
    ElementMatch,
    element_extent,
    iter_elements,
    match_closing_tags,
)


@dataclass(frozen=True)
class PairedElement:
    element: ElementMatch
    node: DesignNode
    reference: DesignNode  # node the offsets are relative to
    sibling_index: int  # 0-based position among the design parent's children

    @property
    def label(self) -> str:
        return self.node.name or self.node.id


@dataclass
class ElementPairing:
    root: Optional[ElementMatch] = None
    pairs: List[PairedElement] = field(default_factory=list)

    def by_node_id(self) -> Dict[str, PairedElement]:
        return {p.node.id: p for p in self.pairs}


def pair_elements(markup: str, node: DesignNode) -> ElementPairing:
    elements = list(iter_elements(markup))
    if not elements:
        return ElementPairing()

    root = elements[0]
    spans = match_closing_tags(markup, elements)
    root_extent = element_extent(markup, root, spans)
    inner = [
        e for e in elements[1:]
        if e.start < root_extent and not e.has_attribute(HELPER_ATTR)
    ]

    subtree = DesignTree.from_root(node)
    descendants = subtree.descendants(node)
    by_id = {d.id: d for d in descendants}

    assigned: Dict[int, DesignNode] = {}
    claimed = set()
    for e in inner:
        if e.node_id is not None and e.node_id in by_id and e.node_id not in claimed:
            assigned[e.start] = by_id[e.node_id]
            claimed.add(e.node_id)

    remaining = [d for d in descendants if d.id not in claimed]
    queue = [e for e in inner if e.node_id is None]
    for e, design in zip(queue, remaining):
        assigned[e.start] = design

    # Enclosing paired element for each paired element, by textual containment
    paired = [e for e in inner if e.start in assigned]
    open_stack: List[ElementMatch] = []
    pairs: List[PairedElement] = []
    for e in paired:
        while open_stack and element_extent(markup, open_stack[-1], spans) <= e.start:
            open_stack.pop()
        reference = assigned[open_stack[-1].start] if open_stack else node
        design = assigned[e.start]
        parent = subtree.parent(design)
        siblings = parent.children if parent else [design]
        index = next((i for i, s in enumerate(siblings) if s is design), 0)
        pairs.append(PairedElement(
            element=e, node=design, reference=reference, sibling_index=index,
        ))
        if not e.self_closing:
            open_stack.append(e)

    return ElementPairing(root=root, pairs=pairs)


# =====================================================================
# Expected geometry
# =====================================================================

# Alignment kinds whose shared coordinate is emitted as a CSS offset
GROUP_PROPERTIES = {
    AlignmentKind.TOP: "top",
    AlignmentKind.LEFT: "left",
}


def canonical_offsets(groups: Iterable[AlignmentGroup]) -> Dict[Tuple[str, str], float]:
    """(node_id, property) → canonical absolute coordinate for grouped nodes."""
    canonical: Dict[Tuple[str, str], float] = {}
    for group in groups:
        prop = GROUP_PROPERTIES.get(group.kind)
        if prop is None:
            continue
        for node_id in group.node_ids:
            canonical.setdefault((node_id, prop), group.value)
    return canonical


def expected_offsets(
    pair: PairedElement, canonical: Dict[Tuple[str, str], float],
) -> Tuple[float, float]:
    """(left, top) the element must carry, relative to its reference node."""
    box = pair.node.box
    ref = pair.reference.box
    left = canonical.get((pair.node.id, "left"), box.x) - ref.x
    top = canonical.get((pair.node.id, "top"), box.y) - ref.y
    return left, top
