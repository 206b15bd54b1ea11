"""Correction stages over generated markup: transform, enforce, validate."""

from handoff.markup.contrast import ContrastResult, check_color_contrast, contrast_ratio
from handoff.markup.cross_validator import CorrectionReport, Mismatch, validate
from handoff.markup.exact_value_enforcer import EnforcementResult, enforce, enforce_with_report
from handoff.markup.rules import extract_markup_block
from handoff.markup.semantic_transformer import (
    AccessibilityReport,
    AccessibilityResult,
    enhance,
    validate_accessibility,
)

__all__ = [
    "AccessibilityReport",
    "AccessibilityResult",
    "ContrastResult",
    "CorrectionReport",
    "EnforcementResult",
    "Mismatch",
    "check_color_contrast",
    "contrast_ratio",
    "enforce",
    "enforce_with_report",
    "enhance",
    "extract_markup_block",
    "validate",
    "validate_accessibility",
]
