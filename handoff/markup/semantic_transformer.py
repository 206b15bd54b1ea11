"""Semantic HTML and accessibility passes over generated markup.

Four ordered passes, each idempotent:
1. semantic_html   : root element kind implied by the classification
2. aria_attributes : component-specific ARIA/alt/type attributes
3. keyboard        : focus index, key handler and focus ring on pointer elements
4. color_contrast  : WCAG contrast of the node against its background

A pass that raises is skipped: its error is recorded in
``report.stage_errors`` and the markup from before the pass is kept.
Elements this module adds carry ``data-a11y`` so the enforcer and the
validator never pair them with design nodes.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from handoff.analysis.component_classifier import ClassificationResult, ComponentType
from handoff.design.nodes import DesignNode, DesignTree, NodeKind, first_text
from handoff.markup.contrast import ContrastResult, check_color_contrast
from handoff.markup.rules import (
    HELPER_ATTR,
    NATIVE_INTERACTIVE_TAGS,
    ElementMatch,
    closing_tag_span,
    element_style,
    get_style_value,
    inner_text,
    iter_elements,
    js_str,
    rename_element,
    replace_attribute,
    rewrite_element,
    root_element,
    set_attribute,
    set_raw_attribute,
    set_style_prop,
    text_content,
    with_style,
)
from handoff.settings import (
    ACCESSIBILITY_ISSUE_PENALTY,
    CONTRAST_FAILURE_PENALTY,
    FOCUS_OUTLINE,
    FOCUS_OUTLINE_OFFSET,
)

logger = logging.getLogger("handoff.markup.accessibility")


# --- Keyword tables ---

BUTTON_LABELS = (
    ("close", "Close"),
    ("submit", "Submit form"),
    ("cancel", "Cancel"),
    ("save", "Save"),
    ("delete", "Delete"),
    ("edit", "Edit"),
    ("add", "Add"),
    ("remove", "Remove"),
)

ALT_TEXTS = (
    ("avatar", "User profile picture"),
    ("logo", "Company logo"),
    ("icon", "Icon"),
    ("photo", "Photo"),
    ("image", "Image"),
)

INPUT_TYPES = (
    ("email", "email"),
    ("password", "password"),
    ("phone", "tel"),
    ("number", "number"),
    ("search", "search"),
    ("url", "url"),
)

KEY_HANDLER = "(e) => (e.key === 'Enter' || e.key === ' ') && e.currentTarget.click()"
HEADING_MAX_CHARS = 50


@dataclass
class AccessibilityReport:
    semantic_html: bool = False
    aria_labels: bool = False
    keyboard_accessible: bool = False
    color_contrast: Optional[ContrastResult] = None
    score: int = 100
    issues: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stage_errors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "semantic_html": self.semantic_html,
            "aria_labels": self.aria_labels,
            "keyboard_accessible": self.keyboard_accessible,
            "color_contrast": self.color_contrast.to_dict() if self.color_contrast else None,
            "score": self.score,
            "issues": list(self.issues),
            "improvements": list(self.improvements),
            "warnings": list(self.warnings),
            "stage_errors": dict(self.stage_errors),
        }


@dataclass
class AccessibilityResult:
    markup: str
    report: AccessibilityReport


@dataclass
class _Context:
    classification: ClassificationResult
    node: Optional[DesignNode]
    tree: Optional[DesignTree]

    @property
    def component_type(self) -> ComponentType:
        return self.classification.component_type

    @property
    def name(self) -> str:
        return (self.node.name if self.node is not None else "").lower()


# =====================================================================
# Keyword inference
# =====================================================================


def infer_button_label(name: Optional[str]) -> str:
    lower = (name or "").lower()
    for keyword, label in BUTTON_LABELS:
        if keyword in lower:
            return label
    return "Button"


def generate_alt_text(name: Optional[str]) -> str:
    lower = (name or "").lower()
    for keyword, alt in ALT_TEXTS:
        if keyword in lower:
            return alt
    return "Image"


def determine_input_type(name: Optional[str], placeholder: Optional[str] = None) -> str:
    lower_name = (name or "").lower()
    lower_placeholder = (placeholder or "").lower()
    for keyword, input_type in INPUT_TYPES:
        if keyword in lower_name or keyword in lower_placeholder:
            return input_type
    return "text"


def extract_heading_text(node: Optional[DesignNode]) -> Optional[str]:
    """Own text, or the first short text child, when under 50 characters."""
    if node is None:
        return None
    if node.characters and len(node.characters) < HEADING_MAX_CHARS:
        return node.characters
    for child in node.children:
        if (
            child.kind == NodeKind.TEXT
            and child.characters
            and len(child.characters) < HEADING_MAX_CHARS
        ):
            return child.characters
    return None


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def _attr_text(text: str) -> str:
    return text.replace('"', "&quot;")


def _first_with_tag(markup: str, tag: str) -> Optional[ElementMatch]:
    return next((e for e in iter_elements(markup) if e.tag == tag), None)


def _update_open(markup: str, element: ElementMatch, fn: Callable[[str], str]) -> str:
    current = element.text(markup)
    updated = fn(current)
    if updated == current:
        return markup
    return rewrite_element(markup, element, updated)


# =====================================================================
# Pass 1: semantic substitution
# =====================================================================

_BUTTON_STYLE_SIGNALS = ("cursor", "backgroundColor", "border")


def _semantic_pass(markup: str, ctx: _Context) -> str:
    root = root_element(markup)
    if root is None:
        return markup
    ctype = ctx.component_type

    if ctype == ComponentType.BUTTON:
        if root.tag != "div":
            return markup
        keys = {p.key for p in element_style(markup, root)}
        if not (any(k in keys for k in _BUTTON_STYLE_SIGNALS) or text_content(markup, root)):
            return markup
        markup = rename_element(markup, root, "button")
        return _update_open(
            markup, root_element(markup),
            lambda t: set_attribute(t, "button", "type", "button"),
        )

    if ctype == ComponentType.INPUT:
        return _input_substitution(markup, root, ctx)

    if ctype == ComponentType.CARD:
        return _rename_root(markup, root, "article", {"role": "article"})

    if ctype == ComponentType.NAVIGATION:
        return _rename_root(
            markup, root, "nav",
            {"role": "navigation", "aria-label": "Main navigation"},
        )

    if ctype in (ComponentType.AVATAR, ComponentType.IMAGE):
        alt = generate_alt_text(ctx.name) if ctx.name else "User profile picture"
        for img in reversed([e for e in iter_elements(markup) if e.tag == "img"]):
            markup = _update_open(markup, img, lambda t: set_attribute(t, "img", "alt", alt))
        return markup

    if "section" in ctx.name or "container" in ctx.name:
        return _rename_root(markup, root, "section", {"role": "region"})
    return markup


def _rename_root(
    markup: str, root: ElementMatch, new_tag: str, attrs: Dict[str, str],
) -> str:
    if root.tag not in ("div", new_tag):
        return markup
    if root.tag == "div":
        markup = rename_element(markup, root, new_tag)
    for name, value in attrs.items():
        markup = _update_open(
            markup, root_element(markup),
            lambda t, n=name, v=value: set_attribute(t, new_tag, n, v),
        )
    return markup


def _input_substitution(markup: str, root: ElementMatch, ctx: _Context) -> str:
    """Leaf ``<div style>placeholder</div>`` → wrapper with label, input, helper."""
    if root.tag != "div" or _first_with_tag(markup, "input") is not None:
        return markup
    text = inner_text(markup, root)
    span = closing_tag_span(markup, root)
    if text is None or span is None:
        return markup

    placeholder = text.strip()
    input_id = f"input-{_slug(ctx.name) or 'input'}"
    input_type = determine_input_type(ctx.name, placeholder)
    label = placeholder or "Input field"
    helper = f"Enter your {placeholder or 'value'}"
    body = (
        "\n"
        f'  <label {HELPER_ATTR}="label" htmlFor="{input_id}" '
        f"style={{{{ display: 'none' }}}}>{label}</label>\n"
        f'  <input {HELPER_ATTR}="control" id="{input_id}" type="{input_type}" '
        f'placeholder="{_attr_text(placeholder)}" aria-describedby="{input_id}-helper" '
        f"style={{{{ width: '100%', height: '100%', boxSizing: 'border-box' }}}} />\n"
        f'  <span {HELPER_ATTR}="helper" id="{input_id}-helper" '
        f"style={{{{ display: 'none' }}}}>{helper}</span>\n"
    )
    return markup[:root.end] + body + markup[span[0]:]


# =====================================================================
# Pass 2: component-specific attributes
# =====================================================================


def _attribute_pass(markup: str, ctx: _Context) -> str:
    ctype = ctx.component_type
    node_name = ctx.node.name if ctx.node is not None else ""

    if ctype == ComponentType.BUTTON:
        button = _first_with_tag(markup, "button")
        if button is None:
            return markup
        text = first_text(ctx.node) if ctx.node is not None else ""
        if len(text) < 2:
            label = infer_button_label(node_name)
            markup = _update_open(
                markup, button, lambda t: set_attribute(t, "button", "aria-label", label),
            )
            button = _first_with_tag(markup, "button")
        return _update_open(
            markup, button, lambda t: set_attribute(t, "button", "type", "button"),
        )

    if ctype == ComponentType.INPUT:
        control = _first_with_tag(markup, "input")
        if control is None:
            return markup
        attrs = {}
        if "required" in ctx.name or "mandatory" in ctx.name:
            attrs["aria-required"] = "true"
        if "error" in ctx.name or "invalid" in ctx.name:
            attrs["aria-invalid"] = "true"
        placeholder = control.get_attribute("placeholder")
        attrs["type"] = determine_input_type(ctx.name, placeholder)
        for name, value in attrs.items():
            control = _first_with_tag(markup, "input")
            markup = _update_open(
                markup, control, lambda t, n=name, v=value: set_attribute(t, "input", n, v),
            )
        return markup

    if ctype == ComponentType.CARD:
        heading = extract_heading_text(ctx.node)
        if not heading or "<h2" in markup:
            return markup
        pattern = re.compile(r">(\s*)" + re.escape(heading) + r"(\s*)<")
        return pattern.sub(
            lambda m: (
                f">{m.group(1)}<h2 {HELPER_ATTR}=\"heading\" "
                f"style={{{{ margin: 0, font: 'inherit' }}}}>{heading}</h2>{m.group(2)}<"
            ),
            markup,
            count=1,
        )

    if ctype in (ComponentType.AVATAR, ComponentType.IMAGE):
        alt = generate_alt_text(node_name)
        images = [e for e in iter_elements(markup) if e.tag == "img"]
        if images:
            for img in reversed(images):
                markup = _update_open(
                    markup, img, lambda t: replace_attribute(t, "img", "alt", alt),
                )
            return markup
        root = root_element(markup)
        if root is None:
            return markup
        markup = _update_open(markup, root, lambda t: set_attribute(t, root.tag, "role", "img"))
        return _update_open(
            markup, root_element(markup),
            lambda t: set_attribute(t, root.tag, "aria-label", alt),
        )

    if ctype == ComponentType.NAVIGATION:
        nav = _first_with_tag(markup, "nav")
        if nav is None:
            return markup
        return _update_open(
            markup, nav, lambda t: set_attribute(t, "nav", "aria-label", "Main navigation"),
        )

    return markup


# =====================================================================
# Pass 3: keyboard accessibility
# =====================================================================


def _is_pointer(markup: str, element: ElementMatch) -> bool:
    return get_style_value(element_style(markup, element), "cursor") == "pointer"


def _keyboard_pass(markup: str, ctx: _Context) -> str:
    if ctx.component_type not in (ComponentType.BUTTON, ComponentType.NAVIGATION):
        return markup

    pointer = [e for e in iter_elements(markup) if _is_pointer(markup, e)]
    for element in reversed(pointer):
        open_text = element.text(markup)
        if element.tag not in NATIVE_INTERACTIVE_TAGS:
            open_text = set_attribute(open_text, element.tag, "tabIndex", "0")
            open_text = set_raw_attribute(open_text, element.tag, "onKeyPress", KEY_HANDLER)
        props = element_style(markup, element)
        if get_style_value(props, "outline") is None:
            props = set_style_prop(props, "outline", js_str(FOCUS_OUTLINE))
            props = set_style_prop(props, "outlineOffset", js_str(FOCUS_OUTLINE_OFFSET))
            open_text = with_style(open_text, element.tag, props)
        if open_text != element.text(markup):
            markup = rewrite_element(markup, element, open_text)
    return markup


# =====================================================================
# Final structural check
# =====================================================================


def validate_accessibility(markup: str, classification: ClassificationResult) -> List[str]:
    """Residual accessibility issues in the markup; each costs score points."""
    issues: List[str] = []
    elements = list(iter_elements(markup))
    tags = {e.tag for e in elements}
    ctype = classification.component_type

    if ctype == ComponentType.BUTTON:
        if "button" not in tags:
            issues.append("Button should use <button> element")
        else:
            button = next(e for e in elements if e.tag == "button")
            if not button.has_attribute("aria-label") and not text_content(markup, button):
                issues.append("Interactive elements should have ARIA attributes")

    if ctype == ComponentType.INPUT and "input" not in tags:
        issues.append("Input should use <input> element")

    if ctype == ComponentType.NAVIGATION:
        nav = next((e for e in elements if e.tag == "nav"), None)
        if nav is None or not nav.has_attribute("aria-label"):
            issues.append("Navigation should have an aria-label")

    if any(e.tag == "img" and not e.has_attribute("alt") for e in elements):
        issues.append("Images should have alt text")

    for element in elements:
        if (
            _is_pointer(markup, element)
            and element.tag not in NATIVE_INTERACTIVE_TAGS
            and not element.has_attribute("tabIndex")
        ):
            issues.append("Interactive elements should have keyboard support")
            break
    return issues


# =====================================================================
# Public API
# =====================================================================

PASSES = (
    ("semantic_html", _semantic_pass, "Converted to semantic HTML"),
    ("aria_attributes", _attribute_pass, "Added ARIA attributes"),
    ("keyboard", _keyboard_pass, "Added keyboard navigation"),
)


def enhance(
    markup: str,
    classification: Optional[ClassificationResult],
    node: Optional[DesignNode],
    tree: Optional[DesignTree] = None,
) -> AccessibilityResult:
    """Run the accessibility passes and score the result."""
    report = AccessibilityReport()
    if not markup or classification is None:
        report.score = 0
        report.issues.append("Missing component data")
        return AccessibilityResult(markup=markup or "", report=report)

    ctx = _Context(classification=classification, node=node, tree=tree)
    logger.info(f"enhance: starting for {classification.component_type.value}")

    flags = {
        "semantic_html": "semantic_html",
        "aria_attributes": "aria_labels",
        "keyboard": "keyboard_accessible",
    }
    for name, fn, improvement in PASSES:
        before = markup
        try:
            markup = fn(markup, ctx)
        except Exception as e:
            logger.warning(f"enhance: pass '{name}' failed, skipped: {e}")
            report.stage_errors[name] = f"{type(e).__name__}: {e}"
            markup = before
            continue
        setattr(report, flags[name], True)
        if markup != before:
            report.improvements.append(improvement)

    try:
        contrast = check_color_contrast(node, tree)
    except Exception as e:
        logger.warning(f"enhance: pass 'color_contrast' failed, skipped: {e}")
        report.stage_errors["color_contrast"] = f"{type(e).__name__}: {e}"
        contrast = None
    if contrast is not None:
        report.color_contrast = contrast
        if not contrast.meets_aa:
            report.warnings.append(contrast.warning)
            report.score -= CONTRAST_FAILURE_PENALTY

    report.issues = validate_accessibility(markup, classification)
    report.score = max(0, report.score - len(report.issues) * ACCESSIBILITY_ISSUE_PENALTY)

    logger.info(f"enhance: complete, score={report.score}")
    return AccessibilityResult(markup=markup, report=report)
