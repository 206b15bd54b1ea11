"""Handoff runtime settings: tunable parameters for the correction pipeline.

All values read from environment variables with defaults matching the
hand-tuned constants the pipeline was calibrated with. Import from here
instead of hardcoding.

Infrastructure config (API keys, endpoints, server binding) stays in
handoff/config.py.
"""

from __future__ import annotations

import os


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _str(key: str, default: str) -> str:
    return os.getenv(key, default)


# =====================================================================
# Geometry / Alignment
# =====================================================================

# Max distance (px) between two edges/centers to count as aligned
ALIGNMENT_TOLERANCE_PX = _float("ALIGNMENT_TOLERANCE_PX", 1.0)

# Dominant gap bucket must cover at least this share of measured gaps
SPACING_SUPPORT_RATIO = _float("SPACING_SUPPORT_RATIO", 0.7)

# Grid detection: minimum sibling count, and vertical break that starts a new row
GRID_MIN_ELEMENTS = _int("GRID_MIN_ELEMENTS", 4)
GRID_ROW_BREAK_PX = _float("GRID_ROW_BREAK_PX", 10.0)

# Layout complexity bands by total alignment-relationship count
COMPLEXITY_SIMPLE_MAX = _int("COMPLEXITY_SIMPLE_MAX", 5)
COMPLEXITY_MODERATE_MAX = _int("COMPLEXITY_MODERATE_MAX", 10)


# =====================================================================
# Classification
# =====================================================================

# Below this score the result is Unknown with confidence 0
CLASSIFICATION_MIN_CONFIDENCE = _int("CLASSIFICATION_MIN_CONFIDENCE", 50)

# Below this score the suggested library is "custom"
LIBRARY_MIN_CONFIDENCE = _int("LIBRARY_MIN_CONFIDENCE", 70)

# At or above this score the classification is reported as high confidence
HIGH_CONFIDENCE = _int("HIGH_CONFIDENCE", 90)


# =====================================================================
# Validation / Accessibility
# =====================================================================

# Residual differences above this many px are reported as mismatches
VALIDATION_TOLERANCE_PX = _float("VALIDATION_TOLERANCE_PX", 2.0)

# Mismatches above this many px are high severity
HIGH_SEVERITY_DELTA_PX = _float("HIGH_SEVERITY_DELTA_PX", 5.0)

# Offsets larger than this trigger a "large positioning" warning
LARGE_OFFSET_WARNING_PX = _float("LARGE_OFFSET_WARNING_PX", 1000.0)

# WCAG contrast thresholds (normal text)
CONTRAST_AA_RATIO = _float("CONTRAST_AA_RATIO", 4.5)
CONTRAST_AAA_RATIO = _float("CONTRAST_AAA_RATIO", 7.0)

# Accessibility score deductions
CONTRAST_FAILURE_PENALTY = _int("CONTRAST_FAILURE_PENALTY", 15)
ACCESSIBILITY_ISSUE_PENALTY = _int("ACCESSIBILITY_ISSUE_PENALTY", 5)

# Focus ring injected on pointer-styled elements
FOCUS_OUTLINE = _str("FOCUS_OUTLINE", "2px solid #3b82f6")
FOCUS_OUTLINE_OFFSET = _str("FOCUS_OUTLINE_OFFSET", "2px")


# =====================================================================
# Caching
# =====================================================================

# Max entries kept per ContentCache instance (LRU eviction)
CACHE_MAX_ENTRIES = _int("CACHE_MAX_ENTRIES", 256)


# =====================================================================
# HTTP Clients (generation service, Figma API)
# =====================================================================

GENERATION_TIMEOUT = _float("GENERATION_TIMEOUT", 60.0)
GENERATION_MAX_TOKENS = _int("GENERATION_MAX_TOKENS", 1500)
GENERATION_TEMPERATURE = _float("GENERATION_TEMPERATURE", 0.4)

FIGMA_HTTP_TIMEOUT = _float("FIGMA_HTTP_TIMEOUT", 60.0)
