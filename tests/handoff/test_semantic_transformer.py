"""Tests for handoff.markup.semantic_transformer."""

from __future__ import annotations

import pytest

import handoff.markup.semantic_transformer as transformer
from handoff.analysis.component_classifier import ClassificationResult, ComponentType
from handoff.design.figma_parser import parse_figma_node
from handoff.design.resolver import resolve_tree
from handoff.markup.rules import iter_elements
from handoff.markup.semantic_transformer import (
    determine_input_type,
    enhance,
    extract_heading_text,
    generate_alt_text,
    infer_button_label,
    validate_accessibility,
)


def _as(component_type: ComponentType) -> ClassificationResult:
    return ClassificationResult(component_type, 95, (), "shadcn")


def _node(name, children=None, **extra):
    data = {
        "id": "n", "name": name, "type": "FRAME",
        "absoluteBoundingBox": {"x": 0, "y": 0, "width": 200, "height": 48},
        "children": children or [],
    }
    data.update(extra)
    return resolve_tree(parse_figma_node(data)).root


# ---------------------------------------------------------------------------
# Keyword tables
# ---------------------------------------------------------------------------


class TestKeywordInference:

    @pytest.mark.parametrize("name,label", [
        ("Close Icon", "Close"), ("btn-submit", "Submit form"),
        ("Delete Row", "Delete"), ("Frame 12", "Button"), (None, "Button"),
    ])
    def test_button_labels(self, name, label):
        assert infer_button_label(name) == label

    def test_alt_text(self):
        assert generate_alt_text("Company Logo") == "Company logo"
        assert generate_alt_text("Hero Photo") == "Photo"
        assert generate_alt_text("Rectangle 4") == "Image"

    @pytest.mark.parametrize("name,placeholder,expected", [
        ("Email Field", None, "email"),
        ("Field", "Your password", "password"),
        ("Phone", None, "tel"),
        ("Search Bar", None, "search"),
        ("Name", "Jane", "text"),
    ])
    def test_input_type(self, name, placeholder, expected):
        assert determine_input_type(name, placeholder) == expected

    def test_heading_text(self, card_tree):
        assert extract_heading_text(card_tree.root) is None
        assert extract_heading_text(card_tree.get("2:2")) == "Title"
        long_title = _node("Card", children=[{
            "id": "t", "type": "TEXT", "characters": "x" * 60,
            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 10, "height": 10},
        }])
        assert extract_heading_text(long_title) is None


# ---------------------------------------------------------------------------
# Semantic substitution and attributes
# ---------------------------------------------------------------------------


class TestEnhance:

    def test_button(self, button_tree, button_markup):
        result = enhance(button_markup, _as(ComponentType.BUTTON), button_tree.root, button_tree)
        root = next(iter_elements(result.markup))
        assert root.tag == "button"
        assert root.get_attribute("type") == "button"
        assert result.markup.rstrip().endswith("</button>")
        # visible text "Submit" means no inferred aria-label
        assert not root.has_attribute("aria-label")
        assert "outline: '2px solid #3b82f6'" in result.markup
        report = result.report
        assert report.semantic_html and report.aria_labels and report.keyboard_accessible
        assert report.issues == []
        assert report.color_contrast.ratio == 21.0
        assert report.score == 100
        assert "Converted to semantic HTML" in report.improvements

    def test_icon_button_gets_aria_label(self):
        node = _node("Close Icon Button", cornerRadius=4)
        markup = "<div style={{ cursor: 'pointer' }}><svg /></div>"
        result = enhance(markup, _as(ComponentType.BUTTON), node)
        root = next(iter_elements(result.markup))
        assert root.get_attribute("aria-label") == "Close"
        assert result.report.issues == []

    def test_pointer_children_get_keyboard_support(self):
        node = _node("Menu Button")
        markup = (
            "<div style={{ cursor: 'pointer' }}>"
            "<div style={{ cursor: 'pointer' }}>Open</div></div>"
        )
        result = enhance(markup, _as(ComponentType.BUTTON), node)
        inner = list(iter_elements(result.markup))[1]
        assert inner.get_attribute("tabIndex") == "0"
        assert inner.has_attribute("onKeyPress")
        assert result.markup.count("outlineOffset: '2px'") == 2
        assert result.report.issues == []

    def test_input_substitution(self):
        node = _node("Email Field")
        markup = "<div data-node-id=\"n\" style={{ border: '1px solid #ccc' }}>Enter your email</div>"
        result = enhance(markup, _as(ComponentType.INPUT), node)
        tags = [e.tag for e in iter_elements(result.markup)]
        assert tags == ["div", "label", "input", "span"]
        control = list(iter_elements(result.markup))[2]
        assert control.get_attribute("type") == "email"
        assert control.get_attribute("placeholder") == "Enter your email"
        assert control.get_attribute("data-a11y") == "control"
        assert result.report.issues == []

    def test_required_and_invalid_inputs(self):
        node = _node("Required Email Error")
        markup = "<div><input placeholder=\"you@example.com\" /></div>"
        result = enhance(markup, _as(ComponentType.INPUT), node)
        control = list(iter_elements(result.markup))[1]
        assert control.get_attribute("aria-required") == "true"
        assert control.get_attribute("aria-invalid") == "true"
        assert control.get_attribute("type") == "email"

    def test_card_becomes_article_with_heading(self, card_tree):
        header = card_tree.get("2:2")
        markup = "<div style={{ padding: '16px' }}><span>Title</span><p>Body</p></div>"
        result = enhance(markup, _as(ComponentType.CARD), header, card_tree)
        root = next(iter_elements(result.markup))
        assert root.tag == "article"
        assert root.get_attribute("role") == "article"
        assert "<h2 data-a11y=\"heading\"" in result.markup
        assert ">Title</h2>" in result.markup

    def test_navigation(self):
        node = _node("Top Nav")
        markup = "<div><a href=\"/\">Home</a></div>"
        result = enhance(markup, _as(ComponentType.NAVIGATION), node)
        root = next(iter_elements(result.markup))
        assert root.tag == "nav"
        assert root.get_attribute("aria-label") == "Main navigation"
        assert root.get_attribute("role") == "navigation"
        assert result.report.issues == []

    def test_avatar_image_alt(self):
        node = _node("User Avatar")
        result = enhance("<div><img src=\"a.png\" /></div>", _as(ComponentType.AVATAR), node)
        img = list(iter_elements(result.markup))[1]
        assert img.get_attribute("alt") == "User profile picture"

    def test_avatar_without_img_gets_role(self):
        node = _node("Company Logo")
        result = enhance("<div style={{ borderRadius: '50%' }} />", _as(ComponentType.IMAGE), node)
        root = next(iter_elements(result.markup))
        assert root.get_attribute("role") == "img"
        assert root.get_attribute("aria-label") == "Company logo"

    def test_section_container(self):
        node = _node("Hero Section")
        result = enhance("<div><p>x</p></div>", _as(ComponentType.CONTAINER), node)
        root = next(iter_elements(result.markup))
        assert root.tag == "section"
        assert root.get_attribute("role") == "region"

    def test_idempotent(self, button_tree, button_markup, card_tree):
        once = enhance(button_markup, _as(ComponentType.BUTTON), button_tree.root, button_tree)
        twice = enhance(once.markup, _as(ComponentType.BUTTON), button_tree.root, button_tree)
        assert twice.markup == once.markup

        markup = "<div><span>Title</span></div>"
        header = card_tree.get("2:2")
        once = enhance(markup, _as(ComponentType.CARD), header, card_tree)
        assert enhance(once.markup, _as(ComponentType.CARD), header, card_tree).markup == once.markup

    def test_missing_component_data(self, button_tree):
        result = enhance("", _as(ComponentType.BUTTON), button_tree.root)
        assert result.report.score == 0
        assert result.report.issues == ["Missing component data"]
        assert enhance("<div />", None, button_tree.root).report.score == 0


# ---------------------------------------------------------------------------
# Degradation and scoring
# ---------------------------------------------------------------------------


class TestDegradation:

    def test_failing_pass_is_skipped_and_recorded(self, monkeypatch, button_tree, button_markup):
        def boom(markup, ctx):
            raise ValueError("boom")

        passes = transformer.PASSES
        monkeypatch.setattr(
            transformer, "PASSES", (passes[0], ("aria_attributes", boom, "x"), passes[2]),
        )
        result = enhance(button_markup, _as(ComponentType.BUTTON), button_tree.root, button_tree)
        report = result.report
        assert report.stage_errors == {"aria_attributes": "ValueError: boom"}
        assert report.semantic_html and not report.aria_labels and report.keyboard_accessible
        assert next(iter_elements(result.markup)).tag == "button"

    def test_contrast_failure_costs_fifteen(self):
        node = _node("Gray Button", fills=[{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}}],
                     children=[{
                         "id": "t", "type": "TEXT", "characters": "Go",
                         "absoluteBoundingBox": {"x": 0, "y": 0, "width": 20, "height": 10},
                         "fills": [{"type": "SOLID", "color": {"r": 0.5, "g": 0.5, "b": 0.5}}],
                     }])
        result = enhance("<button>Go</button>", _as(ComponentType.BUTTON), node)
        assert result.report.color_contrast.ratio == 3.98
        assert result.report.score == 85
        assert result.report.warnings == ["Contrast ratio 3.98:1 fails WCAG AA (needs 4.5:1)"]

    def test_issues_cost_five_each(self):
        issues = validate_accessibility(
            "<div style={{ cursor: 'pointer' }}><img src=\"x.png\" /></div>",
            _as(ComponentType.BUTTON),
        )
        assert issues == [
            "Button should use <button> element",
            "Images should have alt text",
            "Interactive elements should have keyboard support",
        ]
