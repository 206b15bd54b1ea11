"""Read-only residual check of corrected markup against the design tree.

Re-extracts width/height/left/top/position through the same rules and
element pairing the enforcer writes with, and reports:
- value mismatches beyond VALIDATION_TOLERANCE_PX (high above
  HIGH_SEVERITY_DELTA_PX, else medium)
- positioning errors (root absolute or offset, descendant not absolute)
- alignment-group violations: members of a TOP/LEFT group whose emitted
  values differ at all

Values that are absent or non-numeric (``'100%'``, ``'auto'``) are not
compared. Warnings and suggested fixes are advisory and never affect
``is_exact``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from handoff.analysis.alignment_analyzer import (
    AlignmentAnalysis,
    AlignmentGroup,
    collect_alignment_groups,
)
from handoff.design.nodes import DesignNode
from handoff.errors import InvalidDesignInput
from handoff.markup.pairing import (
    GROUP_PROPERTIES,
    PairedElement,
    canonical_offsets,
    expected_offsets,
    pair_elements,
)
from handoff.markup.rules import element_style, get_style_value, parse_px
from handoff.settings import (
    HIGH_SEVERITY_DELTA_PX,
    LARGE_OFFSET_WARNING_PX,
    VALIDATION_TOLERANCE_PX,
)

logger = logging.getLogger("handoff.markup.validator")


@dataclass(frozen=True)
class Mismatch:
    property: str
    element: str
    expected_value: Any
    actual_value: Any
    delta: Optional[float]
    severity: str  # "high" | "medium"
    type: str  # "dimension-error" | "positioning-error" | "position-error" | "alignment-group-violation"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "property": self.property,
            "element": self.element,
            "expected_value": self.expected_value,
            "actual_value": self.actual_value,
            "delta": self.delta,
            "severity": self.severity,
            "type": self.type,
        }


@dataclass
class CorrectionReport:
    mismatches: List[Mismatch] = field(default_factory=list)
    corrected: str = ""
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    suggested_fixes: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_exact(self) -> bool:
        return not self.mismatches

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_exact": self.is_exact,
            "mismatches": [m.to_dict() for m in self.mismatches],
            "corrected": self.corrected,
            "warnings": list(self.warnings),
            "suggested_fixes": list(self.suggested_fixes),
        }


def _severity(delta: float) -> str:
    return "high" if delta > HIGH_SEVERITY_DELTA_PX else "medium"


def _compare(
    mismatches: List[Mismatch],
    label: str,
    prop: str,
    expected: float,
    actual_text: Optional[str],
    kind: str,
) -> None:
    actual = parse_px(actual_text)
    if actual is None:
        return
    delta = abs(actual - expected)
    if delta > VALIDATION_TOLERANCE_PX:
        mismatches.append(Mismatch(
            property=prop,
            element=label,
            expected_value=expected,
            actual_value=actual,
            delta=delta,
            severity=_severity(delta),
            type=kind,
        ))


# =====================================================================
# Public API
# =====================================================================


def validate(
    markup: str,
    node: Optional[DesignNode],
    groups: Optional[Sequence[AlignmentGroup]] = None,
    analysis: Optional[AlignmentAnalysis] = None,
) -> CorrectionReport:
    """Measure residual divergence between markup and the design node.

    ``groups`` defaults to the alignment groups of every container in the
    node's subtree. ``analysis`` only feeds the advisory warnings and fixes.
    """
    if node is None or getattr(node, "box", None) is None:
        raise InvalidDesignInput("validate requires a resolved design node")

    report = CorrectionReport(corrected=markup or "")
    if groups is None:
        groups = collect_alignment_groups(node)

    pairing = pair_elements(markup or "", node)
    if pairing.root is not None:
        _check_root(report.mismatches, markup, pairing.root, node)
        canonical = canonical_offsets(groups)
        for pair in pairing.pairs:
            _check_descendant(report.mismatches, markup, pair, canonical)
        _check_groups(report.mismatches, markup, pairing.pairs, groups)
        report.warnings.extend(_offset_warnings(markup, pairing.pairs))

    if analysis is not None:
        report.warnings.extend(_analysis_warnings(analysis))
        report.suggested_fixes.extend(suggested_fixes(analysis))

    logger.info(
        f"validate: node '{node.name}': {len(report.mismatches)} mismatches, "
        f"exact={report.is_exact}"
    )
    return report


# =====================================================================
# Element checks
# =====================================================================


def _check_root(mismatches: List[Mismatch], markup: str, root, node: DesignNode) -> None:
    props = element_style(markup, root)
    position = get_style_value(props, "position")
    if position in ("absolute", "fixed"):
        mismatches.append(Mismatch(
            property="position", element="root",
            expected_value="relative", actual_value=position,
            delta=None, severity="high", type="position-error",
        ))
    for prop in ("left", "top", "right", "bottom"):
        value = get_style_value(props, prop)
        if value is not None and parse_px(value) != 0:
            mismatches.append(Mismatch(
                property=prop, element="root",
                expected_value=None, actual_value=value,
                delta=None, severity="high", type="position-error",
            ))
    _compare(mismatches, "root", "width", node.box.width,
             get_style_value(props, "width"), "dimension-error")
    _compare(mismatches, "root", "height", node.box.height,
             get_style_value(props, "height"), "dimension-error")


def _check_descendant(
    mismatches: List[Mismatch], markup: str, pair: PairedElement, canonical,
) -> None:
    props = element_style(markup, pair.element)
    position = get_style_value(props, "position")
    if position != "absolute":
        mismatches.append(Mismatch(
            property="position", element=pair.label,
            expected_value="absolute", actual_value=position,
            delta=None, severity="high", type="position-error",
        ))
    left, top = expected_offsets(pair, canonical)
    _compare(mismatches, pair.label, "left", left,
             get_style_value(props, "left"), "positioning-error")
    _compare(mismatches, pair.label, "top", top,
             get_style_value(props, "top"), "positioning-error")
    _compare(mismatches, pair.label, "width", pair.node.box.width,
             get_style_value(props, "width"), "dimension-error")
    _compare(mismatches, pair.label, "height", pair.node.box.height,
             get_style_value(props, "height"), "dimension-error")


def _check_groups(
    mismatches: List[Mismatch],
    markup: str,
    pairs: Sequence[PairedElement],
    groups: Sequence[AlignmentGroup],
) -> None:
    """Members of one group, laid out against the same reference, must emit
    literally identical values."""
    by_id = {p.node.id: p for p in pairs}
    for group in groups:
        prop = GROUP_PROPERTIES.get(group.kind)
        if prop is None:
            continue
        by_reference: Dict[str, List[PairedElement]] = {}
        for node_id in group.node_ids:
            pair = by_id.get(node_id)
            if pair is not None:
                by_reference.setdefault(pair.reference.id, []).append(pair)

        for members in by_reference.values():
            emitted = [
                (p, parse_px(get_style_value(element_style(markup, p.element), prop)))
                for p in members
            ]
            emitted = [(p, v) for p, v in emitted if v is not None]
            if len(emitted) < 2:
                continue
            first_value = emitted[0][1]
            divergent = [(p, v) for p, v in emitted[1:] if v != first_value]
            for pair, value in divergent:
                mismatches.append(Mismatch(
                    property=prop,
                    element=", ".join(p.label for p, _ in emitted),
                    expected_value=first_value,
                    actual_value=value,
                    delta=abs(value - first_value),
                    severity="high",
                    type="alignment-group-violation",
                ))


# =====================================================================
# Advisory output
# =====================================================================


def _offset_warnings(markup: str, pairs: Sequence[PairedElement]) -> List[Dict[str, Any]]:
    warnings = []
    for pair in pairs:
        props = element_style(markup, pair.element)
        for prop in ("left", "top"):
            value = parse_px(get_style_value(props, prop))
            if value is not None and value > LARGE_OFFSET_WARNING_PX:
                warnings.append({
                    "type": "large-positioning",
                    "message": (
                        f"Large {prop} value ({value:g}px) on '{pair.label}'. "
                        f"Consider responsive alternatives."
                    ),
                    "severity": "medium",
                })
    return warnings


def _analysis_warnings(analysis: AlignmentAnalysis) -> List[Dict[str, Any]]:
    warnings = []
    if len(analysis.left_aligned) > 1:
        warnings.append({
            "type": "missing-alignment",
            "message": (
                "Multiple left-aligned elements detected. "
                "Consider using flexbox for better control."
            ),
            "severity": "low",
        })
    if analysis.patterns.consistent_spacing:
        warnings.append({
            "type": "spacing-opportunity",
            "message": (
                "Consistent spacing detected. Consider using CSS gap or margin "
                "for better maintainability."
            ),
            "severity": "low",
        })
    return warnings


def suggested_fixes(analysis: AlignmentAnalysis) -> List[Dict[str, Any]]:
    patterns = analysis.patterns
    fixes = []
    if patterns.flex_candidate:
        fixes.append({
            "type": "flexbox-layout",
            "description": "Consider using flexbox for better alignment control",
            "reason": patterns.flex_candidate.reason,
            "priority": "high",
        })
    if patterns.consistent_spacing:
        fixes.append({
            "type": "consistent-spacing",
            "description": "Use consistent spacing values",
            "value": patterns.consistent_spacing.value,
            "priority": "medium",
        })
    if patterns.grid_pattern:
        fixes.append({
            "type": "grid-layout",
            "description": "Consider CSS Grid for this layout",
            "pattern": patterns.grid_pattern.to_dict(),
            "priority": "high",
        })
    return fixes
