"""Bounding-box resolution: RawDesignNode tree → DesignTree.

Runs once before any analysis stage. Missing boxes (typically on groups)
become the tight union of the resolved descendant boxes. Leaves with no box
at all carry no geometry and are dropped.
"""

from __future__ import annotations

import logging
from typing import Optional

from handoff.design.nodes import BoundingBox, DesignNode, DesignTree, RawDesignNode
from handoff.errors import InvalidDesignInput

logger = logging.getLogger("handoff.design")


def resolve_tree(raw: Optional[RawDesignNode]) -> DesignTree:
    """Resolve every box in the raw tree and build the parent index.

    Raises:
        InvalidDesignInput: raw is None, or the root has zero resolvable geometry.
    """
    if raw is None:
        raise InvalidDesignInput("Design node is required; got None")

    root = _resolve(raw)
    if root is None:
        raise InvalidDesignInput(
            f"Node '{raw.name or raw.id}' has no resolvable geometry: neither it "
            f"nor any descendant carries a bounding box"
        )
    return DesignTree.from_root(root)


def _resolve(raw: RawDesignNode) -> Optional[DesignNode]:
    children = []
    for child in raw.children:
        resolved = _resolve(child)
        if resolved is None:
            logger.warning(
                f"resolve_tree: dropping node '{child.name or child.id}' "
                f"(no bounding box and no resolvable descendants)"
            )
            continue
        children.append(resolved)

    box = raw.box
    if box is None:
        box = BoundingBox.union(c.box for c in children)
    if box is None:
        return None

    return DesignNode(
        id=raw.id,
        name=raw.name,
        kind=raw.kind,
        box=box,
        fills=list(raw.fills),
        strokes=list(raw.strokes),
        corner_radius=raw.corner_radius,
        corner_radii=raw.corner_radii,
        effects=list(raw.effects),
        characters=raw.characters,
        text_style=raw.text_style,
        children=children,
    )
