"""Pure analysis stages: component classification and sibling layout analysis."""

from handoff.analysis.alignment_analyzer import (
    AlignmentAnalysis,
    AlignmentEntry,
    AlignmentGroup,
    AlignmentKind,
    ConsistentSpacing,
    FlexCandidate,
    GridPattern,
    SpacingPattern,
    analyze,
    analyze_children,
    collect_alignment_groups,
    format_alignment_hints,
)
from handoff.analysis.component_classifier import (
    ClassificationResult,
    ComponentType,
    classify,
    should_use_library_component,
)

__all__ = [
    "AlignmentAnalysis",
    "AlignmentEntry",
    "AlignmentGroup",
    "AlignmentKind",
    "ClassificationResult",
    "ComponentType",
    "ConsistentSpacing",
    "FlexCandidate",
    "GridPattern",
    "SpacingPattern",
    "analyze",
    "analyze_children",
    "classify",
    "collect_alignment_groups",
    "format_alignment_hints",
    "should_use_library_component",
]
