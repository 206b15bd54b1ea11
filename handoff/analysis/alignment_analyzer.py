"""Sibling geometry analysis: alignment groups, spacing runs, grid detection.

Recovers layout intent from absolute design coordinates:
- Edge alignment (top/left/right/bottom) between siblings within 1px
- Centering of siblings inside their parent within 1px
- Consistent gaps between consecutive siblings (dominant 1px bucket ≥70%)
- Row-bucketed grid patterns (≥4 siblings, equal row counts)
- A flexbox recommendation with human-readable reasons

Also renders the analysis as a text block for the code-generation request.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from handoff.design.nodes import BoundingBox, DesignNode, DesignTree
from handoff.settings import (
    ALIGNMENT_TOLERANCE_PX,
    COMPLEXITY_MODERATE_MAX,
    COMPLEXITY_SIMPLE_MAX,
    GRID_MIN_ELEMENTS,
    GRID_ROW_BREAK_PX,
    SPACING_SUPPORT_RATIO,
)

logger = logging.getLogger("handoff.analysis.alignment")


class AlignmentKind(str, Enum):
    TOP = "topAligned"
    LEFT = "leftAligned"
    RIGHT = "rightAligned"
    BOTTOM = "bottomAligned"
    HORIZONTAL_CENTER = "horizontallyCentered"
    VERTICAL_CENTER = "verticallyCentered"


EDGE_KINDS = (
    AlignmentKind.TOP, AlignmentKind.LEFT, AlignmentKind.RIGHT, AlignmentKind.BOTTOM,
)
CENTER_KINDS = (AlignmentKind.HORIZONTAL_CENTER, AlignmentKind.VERTICAL_CENTER)


@dataclass(frozen=True)
class AlignmentEntry:
    """One node's membership in one alignment kind."""

    node_id: str
    node_name: str
    kind: AlignmentKind
    position: float  # absolute edge coordinate, or center offset for center kinds
    aligned_with: tuple = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "node_name": self.node_name,
            "position": self.position,
            "aligned_with": list(self.aligned_with),
        }


@dataclass(frozen=True)
class AlignmentGroup:
    """Siblings sharing one coordinate; ``value`` is the canonical coordinate."""

    kind: AlignmentKind
    value: float
    node_ids: tuple

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "value": self.value, "node_ids": list(self.node_ids)}


@dataclass(frozen=True)
class ConsistentSpacing:
    direction: str  # "horizontal" | "vertical"
    value: int
    count: int
    total: int

    @property
    def support_ratio(self) -> float:
        return self.count / self.total if self.total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction,
            "value": self.value,
            "count": self.count,
            "total": self.total,
            "support_ratio": self.support_ratio,
        }


@dataclass(frozen=True)
class GridPattern:
    rows: int
    columns: int
    total_elements: int

    def to_dict(self) -> Dict[str, Any]:
        return {"rows": self.rows, "columns": self.columns, "total_elements": self.total_elements}


@dataclass(frozen=True)
class FlexCandidate:
    recommended: bool = False
    reasons: tuple = ()
    direction: Optional[str] = None

    @property
    def reason(self) -> str:
        return ". ".join(self.reasons)

    def __bool__(self) -> bool:
        return self.recommended

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommended": self.recommended,
            "reason": self.reason,
            "reasons": list(self.reasons),
            "direction": self.direction,
        }


@dataclass(frozen=True)
class SpacingPattern:
    consistent_spacing: Optional[ConsistentSpacing] = None
    grid_pattern: Optional[GridPattern] = None
    flex_candidate: FlexCandidate = FlexCandidate()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "consistent_spacing": (
                self.consistent_spacing.to_dict() if self.consistent_spacing else None
            ),
            "grid_pattern": self.grid_pattern.to_dict() if self.grid_pattern else None,
            "flexbox_candidate": self.flex_candidate.to_dict(),
        }


@dataclass(frozen=True)
class Recommendation:
    type: str
    message: str
    elements: tuple = ()
    value: Optional[float] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "message": self.message}
        if self.elements:
            data["elements"] = list(self.elements)
        if self.value is not None:
            data["value"] = self.value
        if self.reason:
            data["reason"] = self.reason
        return data


@dataclass
class AlignmentAnalysis:
    """Full result for one set of siblings."""

    entries: Dict[AlignmentKind, List[AlignmentEntry]] = field(
        default_factory=lambda: {k: [] for k in AlignmentKind}
    )
    groups: List[AlignmentGroup] = field(default_factory=list)
    patterns: SpacingPattern = SpacingPattern()
    recommendations: List[Recommendation] = field(default_factory=list)
    horizontal_spacings: List[float] = field(default_factory=list)
    vertical_spacings: List[float] = field(default_factory=list)

    @property
    def top_aligned(self) -> List[AlignmentEntry]:
        return self.entries[AlignmentKind.TOP]

    @property
    def left_aligned(self) -> List[AlignmentEntry]:
        return self.entries[AlignmentKind.LEFT]

    @property
    def right_aligned(self) -> List[AlignmentEntry]:
        return self.entries[AlignmentKind.RIGHT]

    @property
    def bottom_aligned(self) -> List[AlignmentEntry]:
        return self.entries[AlignmentKind.BOTTOM]

    @property
    def horizontally_centered(self) -> List[AlignmentEntry]:
        return self.entries[AlignmentKind.HORIZONTAL_CENTER]

    @property
    def vertically_centered(self) -> List[AlignmentEntry]:
        return self.entries[AlignmentKind.VERTICAL_CENTER]

    @property
    def total_alignments(self) -> int:
        return sum(len(v) for v in self.entries.values())

    @property
    def complexity(self) -> str:
        total = self.total_alignments
        if total > COMPLEXITY_MODERATE_MAX:
            return "complex"
        if total > COMPLEXITY_SIMPLE_MAX:
            return "moderate"
        return "simple"

    def groups_of(self, kind: AlignmentKind) -> List[AlignmentGroup]:
        return [g for g in self.groups if g.kind == kind]

    def groups_by_kind(self) -> Dict[AlignmentKind, List[AlignmentGroup]]:
        by_kind: Dict[AlignmentKind, List[AlignmentGroup]] = {k: [] for k in AlignmentKind}
        for group in self.groups:
            by_kind[group.kind].append(group)
        return by_kind

    def summary(self) -> Dict[str, Any]:
        recommendations = []
        if self.patterns.flex_candidate:
            recommendations.append("Consider flexbox layout")
        if self.patterns.consistent_spacing:
            recommendations.append("Use consistent spacing values")
        if self.patterns.grid_pattern:
            recommendations.append("Consider CSS Grid layout")
        return {
            "total_alignments": self.total_alignments,
            "alignment_types": [k.value for k, v in self.entries.items() if v],
            "complexity": self.complexity,
            "recommendations": recommendations,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alignment_groups": {
                k.value: [e.to_dict() for e in v] for k, v in self.entries.items()
            },
            "groups": [g.to_dict() for g in self.groups],
            "patterns": self.patterns.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "summary": self.summary(),
        }


# =====================================================================
# Public API
# =====================================================================


def analyze(node: Optional[DesignNode], tree: Optional[DesignTree]) -> AlignmentAnalysis:
    """Analyze a node against its siblings.

    Root nodes (and nodes not found in the tree) have nothing to align
    against and return an empty analysis.
    """
    if node is None or tree is None:
        return AlignmentAnalysis()
    parent = tree.parent(node)
    if parent is None:
        return AlignmentAnalysis()
    return analyze_siblings(parent.children, parent.box)


def analyze_children(container: Optional[DesignNode]) -> AlignmentAnalysis:
    """Analyze the layout of a container's direct children."""
    if container is None or not container.children:
        return AlignmentAnalysis()
    return analyze_siblings(container.children, container.box)


def collect_alignment_groups(root: DesignNode) -> List[AlignmentGroup]:
    """Alignment groups for every container in the subtree (root included)."""
    groups: List[AlignmentGroup] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if len(node.children) > 1:
            groups.extend(analyze_children(node).groups)
        stack.extend(reversed(node.children))
    return groups


def analyze_siblings(
    siblings: Sequence[DesignNode], parent_box: Optional[BoundingBox],
) -> AlignmentAnalysis:
    """Core analysis over an ordered list of siblings inside parent_box."""
    siblings = [s for s in siblings if s.box is not None]
    analysis = AlignmentAnalysis()
    if not siblings:
        return analysis

    tol = ALIGNMENT_TOLERANCE_PX
    for child in siblings:
        for kind in EDGE_KINDS:
            own = _edge(child.box, kind)
            aligned_with = tuple(
                s.id for s in siblings
                if s is not child and abs(_edge(s.box, kind) - own) <= tol
            )
            if aligned_with:
                analysis.entries[kind].append(AlignmentEntry(
                    node_id=child.id,
                    node_name=child.name,
                    kind=kind,
                    position=own,
                    aligned_with=aligned_with,
                ))

        if parent_box is not None:
            offset_x = (child.box.center_x - parent_box.x) - parent_box.width / 2
            if abs(offset_x) <= tol:
                analysis.entries[AlignmentKind.HORIZONTAL_CENTER].append(AlignmentEntry(
                    node_id=child.id, node_name=child.name,
                    kind=AlignmentKind.HORIZONTAL_CENTER, position=offset_x,
                ))
            offset_y = (child.box.center_y - parent_box.y) - parent_box.height / 2
            if abs(offset_y) <= tol:
                analysis.entries[AlignmentKind.VERTICAL_CENTER].append(AlignmentEntry(
                    node_id=child.id, node_name=child.name,
                    kind=AlignmentKind.VERTICAL_CENTER, position=offset_y,
                ))

    analysis.groups = _build_groups(siblings, analysis.entries, parent_box)

    analysis.horizontal_spacings = _gaps(siblings, horizontal=True)
    analysis.vertical_spacings = _gaps(siblings, horizontal=False)
    consistent = (
        find_consistent_spacing(analysis.horizontal_spacings, "horizontal")
        or find_consistent_spacing(analysis.vertical_spacings, "vertical")
    )
    grid = detect_grid_pattern(siblings)
    flex = _flex_candidate(analysis.entries, consistent)
    analysis.patterns = SpacingPattern(
        consistent_spacing=consistent, grid_pattern=grid, flex_candidate=flex,
    )
    analysis.recommendations = _recommendations(analysis)

    logger.debug(
        f"analyze_siblings: {len(siblings)} siblings, "
        f"{analysis.total_alignments} alignments, {len(analysis.groups)} groups"
    )
    return analysis


# =====================================================================
# Groups
# =====================================================================


def _edge(box: BoundingBox, kind: AlignmentKind) -> float:
    if kind == AlignmentKind.TOP:
        return box.y
    if kind == AlignmentKind.LEFT:
        return box.x
    if kind == AlignmentKind.RIGHT:
        return box.right
    return box.bottom


def _build_groups(
    siblings: Sequence[DesignNode],
    entries: Dict[AlignmentKind, List[AlignmentEntry]],
    parent_box: Optional[BoundingBox],
) -> List[AlignmentGroup]:
    """Cluster entries of each edge kind into groups of shared coordinates.

    Clusters grow by single linkage: a coordinate joins the current cluster
    when it lies within tolerance of the previous member, so a chain of
    aligned siblings always ends up in one group. The canonical value is the
    coordinate of the first member in document order.
    """
    order = {s.id: i for i, s in enumerate(siblings)}
    groups: List[AlignmentGroup] = []

    for kind in EDGE_KINDS:
        members = sorted(entries[kind], key=lambda e: (e.position, order[e.node_id]))
        clusters: List[List[AlignmentEntry]] = []
        for entry in members:
            if clusters and entry.position - clusters[-1][-1].position <= ALIGNMENT_TOLERANCE_PX:
                clusters[-1].append(entry)
            else:
                clusters.append([entry])
        for cluster in clusters:
            if len(cluster) < 2:
                continue
            cluster.sort(key=lambda e: order[e.node_id])
            groups.append(AlignmentGroup(
                kind=kind,
                value=cluster[0].position,
                node_ids=tuple(e.node_id for e in cluster),
            ))

    if parent_box is not None:
        centers = {
            AlignmentKind.HORIZONTAL_CENTER: parent_box.x + parent_box.width / 2,
            AlignmentKind.VERTICAL_CENTER: parent_box.y + parent_box.height / 2,
        }
        for kind in CENTER_KINDS:
            if len(entries[kind]) >= 2:
                groups.append(AlignmentGroup(
                    kind=kind,
                    value=centers[kind],
                    node_ids=tuple(e.node_id for e in entries[kind]),
                ))
    return groups


# =====================================================================
# Spacing / Grid / Flex
# =====================================================================


def _gaps(siblings: Sequence[DesignNode], horizontal: bool) -> List[float]:
    """Non-negative gaps between consecutive siblings in document order."""
    gaps = []
    for current, nxt in zip(siblings, siblings[1:]):
        if horizontal:
            gap = nxt.box.x - (current.box.x + current.box.width)
        else:
            gap = nxt.box.y - (current.box.y + current.box.height)
        if gap >= 0:
            gaps.append(gap)
    return gaps


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def find_consistent_spacing(
    spacings: Sequence[float], direction: str,
) -> Optional[ConsistentSpacing]:
    """Dominant 1px gap bucket, if it covers at least SPACING_SUPPORT_RATIO."""
    if len(spacings) < 2:
        return None

    buckets: Dict[int, int] = {}
    for spacing in spacings:
        key = _round_half_up(spacing)
        buckets[key] = buckets.get(key, 0) + 1

    best_value, best_count = None, 0
    for value in sorted(buckets):
        if buckets[value] > best_count:
            best_value, best_count = value, buckets[value]

    if best_value is not None and best_count / len(spacings) >= SPACING_SUPPORT_RATIO:
        return ConsistentSpacing(
            direction=direction, value=best_value,
            count=best_count, total=len(spacings),
        )
    return None


def detect_grid_pattern(siblings: Sequence[DesignNode]) -> Optional[GridPattern]:
    """Row-bucket siblings by top edge; a grid needs equal row counts > 1."""
    if len(siblings) < GRID_MIN_ELEMENTS:
        return None

    ordered = sorted(siblings, key=lambda s: s.box.y)
    row_sizes: List[int] = []
    current_row = [ordered[0]]
    for node in ordered[1:]:
        if node.box.y - current_row[-1].box.y > GRID_ROW_BREAK_PX:
            row_sizes.append(len(current_row))
            current_row = [node]
        else:
            current_row.append(node)
    row_sizes.append(len(current_row))

    unique = set(row_sizes)
    if len(unique) == 1 and row_sizes[0] > 1:
        return GridPattern(
            rows=len(row_sizes), columns=row_sizes[0], total_elements=len(siblings),
        )
    return None


def _flex_candidate(
    entries: Dict[AlignmentKind, List[AlignmentEntry]],
    consistent: Optional[ConsistentSpacing],
) -> FlexCandidate:
    reasons = []
    left = len(entries[AlignmentKind.LEFT])
    top = len(entries[AlignmentKind.TOP])
    if left > 2:
        reasons.append("Multiple left-aligned elements suggest flex-row layout")
    if top > 2:
        reasons.append("Multiple top-aligned elements suggest flex-column layout")
    if consistent is not None:
        reasons.append("Consistent spacing can be handled with flexbox gap")
    if entries[AlignmentKind.HORIZONTAL_CENTER] or entries[AlignmentKind.VERTICAL_CENTER]:
        reasons.append("Centered elements are easier with flexbox")

    if not reasons:
        return FlexCandidate()
    return FlexCandidate(
        recommended=True,
        reasons=tuple(reasons),
        direction="row" if left > top else "column",
    )


def _recommendations(analysis: AlignmentAnalysis) -> List[Recommendation]:
    recs = []
    if analysis.top_aligned:
        recs.append(Recommendation(
            type="top-alignment",
            message=(
                f"{len(analysis.top_aligned)} elements are top-aligned. "
                f"Use consistent top values."
            ),
            elements=tuple(e.node_name for e in analysis.top_aligned),
        ))
    if analysis.left_aligned:
        recs.append(Recommendation(
            type="left-alignment",
            message=(
                f"{len(analysis.left_aligned)} elements are left-aligned. "
                f"Consider flexbox or consistent left values."
            ),
            elements=tuple(e.node_name for e in analysis.left_aligned),
        ))
    spacing = analysis.patterns.consistent_spacing
    if spacing:
        recs.append(Recommendation(
            type="consistent-spacing",
            message=(
                f"Consistent {spacing.direction} spacing detected. "
                f"Use gap: {spacing.value}px or margin."
            ),
            value=spacing.value,
        ))
    flex = analysis.patterns.flex_candidate
    if flex:
        recs.append(Recommendation(
            type="flexbox",
            message="Consider using flexbox for better alignment control and responsiveness.",
            reason=flex.reason,
        ))
    return recs


# =====================================================================
# Prompt hints
# =====================================================================


def format_alignment_hints(analysis: AlignmentAnalysis) -> str:
    """Render the analysis as a text block for the generation request."""
    lines = ["", "ALIGNMENT ANALYSIS:", "===================", ""]

    for kind, entries in analysis.entries.items():
        if not entries:
            continue
        lines.append(f"{kind.value.upper()}:")
        for entry in entries:
            lines.append(f"  - {entry.node_name}: {json.dumps(entry.to_dict())}")
        lines.append("")

    patterns = analysis.patterns
    if patterns.consistent_spacing:
        lines.append(f"CONSISTENT SPACING: {patterns.consistent_spacing.value}px")
    if patterns.grid_pattern:
        lines.append(
            f"GRID PATTERN: {patterns.grid_pattern.rows}x{patterns.grid_pattern.columns}"
        )
    if patterns.flex_candidate:
        lines.append(f"FLEXBOX RECOMMENDED: {patterns.flex_candidate.reason}")

    if analysis.recommendations:
        lines.append("")
        lines.append("RECOMMENDATIONS:")
        for rec in analysis.recommendations:
            lines.append(f"- {rec.message}")

    lines.extend([
        "",
        "CRITICAL ALIGNMENT RULES:",
        "- Use EXACT numerical values from the design JSON",
        "- Do NOT round or approximate positioning values",
        "- Elements that align in the design MUST align in code",
        "- If elements share alignment, use identical CSS values",
        "- Consider flexbox for complex alignment scenarios",
        "",
    ])
    return "\n".join(lines) + "\n"
