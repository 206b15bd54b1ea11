"""Tests for handoff.markup.contrast."""

from __future__ import annotations

import pytest

from handoff.design.figma_parser import parse_figma_node
from handoff.design.nodes import Color, primary_solid_fill
from handoff.design.resolver import resolve_tree
from handoff.markup.contrast import (
    check_color_contrast,
    contrast_ratio,
    evaluate_contrast,
    relative_luminance,
)

BLACK = Color(0, 0, 0)
WHITE = Color(1, 1, 1)
GRAY = Color(0.5, 0.5, 0.5)


class TestLuminance:

    def test_extremes(self):
        assert relative_luminance(BLACK) == 0
        assert relative_luminance(WHITE) == pytest.approx(1.0)

    def test_black_on_white(self):
        assert contrast_ratio(BLACK, WHITE) == pytest.approx(21.0)
        assert contrast_ratio(WHITE, BLACK) == pytest.approx(21.0)

    def test_same_color(self):
        assert contrast_ratio(GRAY, GRAY) == pytest.approx(1.0)


class TestEvaluate:

    def test_passing_pair(self):
        result = evaluate_contrast(BLACK, WHITE)
        assert result.ratio == 21.0
        assert result.meets_aa and result.meets_aaa
        assert result.warning is None
        assert result.foreground_hex == "#000000"

    def test_failing_pair_warns(self):
        result = evaluate_contrast(GRAY, WHITE)
        assert result.ratio == 3.98
        assert not result.meets_aa
        assert result.warning == "Contrast ratio 3.98:1 fails WCAG AA (needs 4.5:1)"


class TestCheckColorContrast:

    def test_node_against_parent_fill(self):
        tree = resolve_tree(parse_figma_node({
            "id": "p", "type": "FRAME",
            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 100, "height": 100},
            "fills": [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}}],
            "children": [{
                "id": "c", "type": "RECTANGLE",
                "absoluteBoundingBox": {"x": 0, "y": 0, "width": 10, "height": 10},
                "fills": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0}}],
            }],
        }))
        result = check_color_contrast(tree.get("c"), tree)
        assert result.ratio == 21.0
        assert result.background_hex == "#ffffff"

    def test_root_falls_back_to_text_child(self, button_tree):
        result = check_color_contrast(button_tree.root, button_tree)
        assert result.foreground_hex == "#ffffff"
        assert result.background_hex == "#000000"
        assert result.meets_aa

    def test_child_with_unfilled_parent_has_no_result(self, button_json):
        tree = resolve_tree(parse_figma_node({
            "id": "p", "type": "FRAME",
            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 300, "height": 100},
            "children": [button_json],
        }))
        button = tree.get("3:1")
        # the black fill and white label are known, but the parent has no fill
        assert primary_solid_fill(button) is not None
        assert check_color_contrast(button, tree) is None

    def test_missing_fill_returns_none(self, grid_tree):
        assert check_color_contrast(grid_tree.get("4:2"), grid_tree) is None
        assert check_color_contrast(None) is None
