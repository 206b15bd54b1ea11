"""Tests for handoff.analysis.component_classifier."""

from __future__ import annotations

from handoff.analysis.component_classifier import (
    ClassificationResult,
    ComponentType,
    classify,
    score_all,
    should_use_library_component,
)
from handoff.design.figma_parser import parse_figma_node
from handoff.design.resolver import resolve_tree


def _node(data):
    return resolve_tree(parse_figma_node(data)).root


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


class TestClassify:

    def test_button(self, button_tree):
        result = classify(button_tree.root)
        assert result.component_type == ComponentType.BUTTON
        assert result.confidence == 90
        assert result.suggested_library == "shadcn"
        assert result.confidence_band == "high"
        assert "has text content" in result.reasoning
        assert 'name contains "button"' in result.reasoning

    def test_layout_frame_is_container(self, toolbar_tree):
        result = classify(toolbar_tree.root)
        assert result.component_type == ComponentType.CONTAINER
        assert result.confidence == 70
        assert result.suggested_library == "custom"

    def test_avatar_requires_name(self):
        data = {
            "id": "5:1", "name": "User Avatar", "type": "ELLIPSE",
            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 48, "height": 48},
            "cornerRadius": 24,
            "fills": [{"type": "IMAGE", "imageRef": "abc"}],
        }
        result = classify(_node(data))
        assert result.component_type == ComponentType.AVATAR
        assert result.confidence == 100

        data["name"] = "Circle"
        assert classify(_node(data)).component_type != ComponentType.AVATAR

    def test_input(self):
        result = classify(_node({
            "id": "6:1", "name": "Email Input", "type": "FRAME",
            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 280, "height": 44},
            "cornerRadius": 6,
            "fills": [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}}],
            "strokes": [{"type": "SOLID", "color": {"r": 0.8, "g": 0.8, "b": 0.8}}],
            "children": [{
                "id": "6:2", "name": "Placeholder", "type": "TEXT",
                "characters": "Enter your email",
                "absoluteBoundingBox": {"x": 12, "y": 12, "width": 120, "height": 20},
            }],
        }))
        assert result.component_type == ComponentType.INPUT
        assert result.confidence == 100

    def test_low_score_is_unknown(self):
        result = classify(_node({
            "id": "7:1", "name": "Line", "type": "VECTOR",
            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 2, "height": 500},
        }))
        assert result.is_unknown
        assert result.confidence == 0
        assert result.suggested_library == "custom"

    def test_missing_node_is_unknown(self):
        assert classify(None).is_unknown

    def test_deterministic(self, card_tree):
        assert classify(card_tree.root) == classify(card_tree.root)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:

    def test_score_all_is_clamped(self, button_tree):
        scores = score_all(button_tree.root)
        assert set(scores) == {
            ComponentType.BUTTON, ComponentType.CARD, ComponentType.INPUT,
            ComponentType.BADGE, ComponentType.AVATAR, ComponentType.CONTAINER,
        }
        assert all(0 <= v <= 100 for v in scores.values())
        assert scores[ComponentType.AVATAR] == 0

    def test_should_use_library_component(self):
        button = ClassificationResult(ComponentType.BUTTON, 90, (), "shadcn")
        assert should_use_library_component(button, None)
        assert not should_use_library_component(button, "none")
        low = ClassificationResult(ComponentType.BUTTON, 60, (), "custom")
        assert not should_use_library_component(low, None)
        container = ClassificationResult(ComponentType.CONTAINER, 95, (), "custom")
        assert not should_use_library_component(container, None)
