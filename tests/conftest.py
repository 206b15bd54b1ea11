"""Root conftest for core and API tests.

Provides:
- Figma-shaped node JSON for a toolbar row, a button, a card and a 2x2 grid
- Resolved DesignTree fixtures built from them
- Generated markup samples with deliberate geometry errors
- Async HTTP client for the FastAPI app (ASGITransport, no server)
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from handoff.design.figma_parser import parse_figma_node
from handoff.design.resolver import resolve_tree

WHITE = {"r": 1.0, "g": 1.0, "b": 1.0, "a": 1.0}
BLACK = {"r": 0.0, "g": 0.0, "b": 0.0, "a": 1.0}


def _box(x, y, w, h):
    return {"x": x, "y": y, "width": w, "height": h}


# ---------------------------------------------------------------------------
# Design JSON
# ---------------------------------------------------------------------------


@pytest.fixture
def toolbar_json():
    """400x60 frame at (100, 200) with three 100x40 items, 20px apart."""
    return {
        "id": "1:1",
        "name": "Toolbar",
        "type": "FRAME",
        "absoluteBoundingBox": _box(100, 200, 400, 60),
        "fills": [{"type": "SOLID", "color": WHITE}],
        "children": [
            {
                "id": f"1:{i + 2}",
                "name": f"Item {label}",
                "type": "RECTANGLE",
                "absoluteBoundingBox": _box(120 + i * 120, 210, 100, 40),
                "children": [],
            }
            for i, label in enumerate("ABC")
        ],
    }


@pytest.fixture
def button_json():
    """Black rounded 'Submit Button' with a white text child."""
    return {
        "id": "3:1",
        "name": "Submit Button",
        "type": "FRAME",
        "absoluteBoundingBox": _box(0, 0, 120, 40),
        "cornerRadius": 8,
        "fills": [{"type": "SOLID", "color": BLACK}],
        "children": [
            {
                "id": "3:2",
                "name": "Label",
                "type": "TEXT",
                "characters": "Submit",
                "absoluteBoundingBox": _box(20, 10, 80, 20),
                "fills": [{"type": "SOLID", "color": WHITE}],
                "children": [],
            },
        ],
    }


@pytest.fixture
def card_json():
    """Card whose title sits inside a nested group."""
    return {
        "id": "2:1",
        "name": "Profile Card",
        "type": "FRAME",
        "absoluteBoundingBox": _box(0, 0, 300, 200),
        "cornerRadius": 12,
        "fills": [{"type": "SOLID", "color": WHITE}],
        "children": [
            {
                "id": "2:2",
                "name": "Header",
                "type": "GROUP",
                "absoluteBoundingBox": _box(20, 20, 260, 100),
                "children": [
                    {
                        "id": "2:3",
                        "name": "Title",
                        "type": "TEXT",
                        "characters": "Title",
                        "absoluteBoundingBox": _box(40, 30, 100, 20),
                        "children": [],
                    },
                ],
            },
        ],
    }


@pytest.fixture
def grid_json():
    """220x220 frame holding a 2x2 grid of 100x100 cells with 20px gutters."""
    cells = [(0, 0), (120, 0), (0, 120), (120, 120)]
    return {
        "id": "4:1",
        "name": "Gallery",
        "type": "FRAME",
        "absoluteBoundingBox": _box(0, 0, 220, 220),
        "children": [
            {
                "id": f"4:{i + 2}",
                "name": f"Cell {i + 1}",
                "type": "RECTANGLE",
                "absoluteBoundingBox": _box(x, y, 100, 100),
                "children": [],
            }
            for i, (x, y) in enumerate(cells)
        ],
    }


# ---------------------------------------------------------------------------
# Resolved trees
# ---------------------------------------------------------------------------


@pytest.fixture
def toolbar_tree(toolbar_json):
    return resolve_tree(parse_figma_node(toolbar_json))


@pytest.fixture
def button_tree(button_json):
    return resolve_tree(parse_figma_node(button_json))


@pytest.fixture
def card_tree(card_json):
    return resolve_tree(parse_figma_node(card_json))


@pytest.fixture
def grid_tree(grid_json):
    return resolve_tree(parse_figma_node(grid_json))


# ---------------------------------------------------------------------------
# Generated markup samples
# ---------------------------------------------------------------------------


@pytest.fixture
def toolbar_markup():
    """Toolbar as a generator might emit it: canvas offsets on the root,
    Item B one pixel low, Item C unpositioned and too narrow."""
    return (
        "<div data-node-id=\"1:1\" style={{ position: 'absolute', left: '100px', "
        "top: '200px', width: '400px', height: '60px' }}>\n"
        "  <div data-node-id=\"1:2\" style={{ position: 'absolute', left: '20px', "
        "top: '10px', width: '100px', height: '40px' }} />\n"
        "  <div data-node-id=\"1:3\" style={{ position: 'absolute', left: '140px', "
        "top: '11px', width: '100px', height: '40px' }} />\n"
        "  <div data-node-id=\"1:4\" style={{ left: '260px', top: '10px', "
        "width: '90px', height: '40px' }} />\n"
        "</div>"
    )


@pytest.fixture
def button_markup():
    return (
        "<div data-node-id=\"3:1\" style={{ position: 'absolute', left: '50px', "
        "top: '30px', width: '119.5px', height: '40px', backgroundColor: '#000000', "
        "cursor: 'pointer' }}>\n"
        "  <span data-node-id=\"3:2\" style={{ color: '#ffffff', left: '20px', "
        "top: '10px', width: '80px', height: '20px' }}>Submit</span>\n"
        "</div>"
    )


# ---------------------------------------------------------------------------
# FastAPI test client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI routes."""
    from handoff_api.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
