"""Tests for design handoff API routes (handoff_api/routes/handoff.py).

Covers:
- GET /health
- POST /api/v1/handoff/classify (component archetype)
- POST /api/v1/handoff/analyze (children and siblings scope)
- POST /api/v1/handoff/prepare (generation request)
- POST /api/v1/handoff/generate (generation service + correction)
- POST /api/v1/handoff/correct (transform, enforce, validate)
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from handoff.errors import GenerationServiceError


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# POST /api/v1/handoff/classify
# ---------------------------------------------------------------------------


class TestClassify:
    """Tests for the classification endpoint."""

    @pytest.mark.asyncio
    async def test_classify_button(self, client: AsyncClient, button_json):
        resp = await client.post("/api/v1/handoff/classify", json={"node": button_json})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["node_id"] == "3:1"
        assert data["component_type"] == "button"
        assert 0 <= data["confidence"] <= 100
        assert data["reasoning"]

    @pytest.mark.asyncio
    async def test_classify_child_node(self, client: AsyncClient, toolbar_json):
        resp = await client.post(
            "/api/v1/handoff/classify", json={"node": toolbar_json, "node_id": "1:2"},
        )
        assert resp.status_code == 200
        assert resp.json()["node_name"] == "Item A"

    @pytest.mark.asyncio
    async def test_node_without_geometry(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/handoff/classify", json={"node": {"id": "x", "type": "FRAME"}},
        )
        assert resp.status_code == 400
        assert "geometry" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_unknown_node_id(self, client: AsyncClient, toolbar_json):
        resp = await client.post(
            "/api/v1/handoff/classify", json={"node": toolbar_json, "node_id": "9:9"},
        )
        assert resp.status_code == 400
        assert "9:9" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_missing_node_field(self, client: AsyncClient):
        resp = await client.post("/api/v1/handoff/classify", json={})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# POST /api/v1/handoff/analyze
# ---------------------------------------------------------------------------


class TestAnalyze:
    """Tests for the layout analysis endpoint."""

    @pytest.mark.asyncio
    async def test_children_scope(self, client: AsyncClient, toolbar_json):
        resp = await client.post("/api/v1/handoff/analyze", json={"node": toolbar_json})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["scope"] == "children"
        assert data["analysis"]["patterns"]["consistent_spacing"]["value"] == 20
        assert "ALIGNMENT ANALYSIS:" in data["hints"]

    @pytest.mark.asyncio
    async def test_siblings_scope(self, client: AsyncClient, toolbar_json):
        resp = await client.post(
            "/api/v1/handoff/analyze",
            json={"node": toolbar_json, "node_id": "1:3", "scope": "siblings"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["node_id"] == "1:3"
        assert len(data["analysis"]["alignment_groups"]["topAligned"]) == 3

    @pytest.mark.asyncio
    async def test_invalid_scope(self, client: AsyncClient, toolbar_json):
        resp = await client.post(
            "/api/v1/handoff/analyze", json={"node": toolbar_json, "scope": "cousins"},
        )
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# POST /api/v1/handoff/prepare
# ---------------------------------------------------------------------------


class TestPrepare:

    @pytest.mark.asyncio
    async def test_prepare(self, client: AsyncClient, button_json):
        resp = await client.post("/api/v1/handoff/prepare", json={"node": button_json})
        assert resp.status_code == 200
        data = resp.json()
        assert data["classification"]["component_type"] == "button"
        assert "data-node-id" in data["user_prompt"]
        assert "```jsx" in data["system_prompt"]


# ---------------------------------------------------------------------------
# POST /api/v1/handoff/generate
# ---------------------------------------------------------------------------


class TestGenerate:
    """Tests for the generate-and-correct endpoint."""

    @pytest.mark.asyncio
    async def test_requires_api_key(self, client: AsyncClient, toolbar_json):
        with patch("handoff_api.routes.handoff.GENERATION_API_KEY", ""):
            resp = await client.post("/api/v1/handoff/generate", json={"node": toolbar_json})
        assert resp.status_code == 400
        assert "GENERATION_API_KEY" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_generate_and_correct(self, client: AsyncClient, toolbar_json, toolbar_markup):
        with patch("handoff_api.routes.handoff.GENERATION_API_KEY", "fake-key"):
            with patch("handoff_api.routes.handoff.GenerationClient") as client_cls:
                instance = client_cls.return_value
                instance.generate = AsyncMock(return_value=f"```jsx\n{toolbar_markup}\n```")
                instance.close = AsyncMock()
                resp = await client.post("/api/v1/handoff/generate", json={"node": toolbar_json})

        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["is_exact"] is True
        assert "position: 'relative'" in data["markup"]
        client_cls.assert_called_once_with(api_key="fake-key")
        instance.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_generation_failure_is_502(self, client: AsyncClient, toolbar_json):
        with patch("handoff_api.routes.handoff.GENERATION_API_KEY", "fake-key"):
            with patch("handoff_api.routes.handoff.GenerationClient") as client_cls:
                instance = client_cls.return_value
                instance.generate = AsyncMock(side_effect=GenerationServiceError("timeout"))
                instance.close = AsyncMock()
                resp = await client.post("/api/v1/handoff/generate", json={"node": toolbar_json})

        assert resp.status_code == 502
        assert "timeout" in resp.json()["detail"]
        instance.close.assert_awaited_once()


# ---------------------------------------------------------------------------
# POST /api/v1/handoff/correct
# ---------------------------------------------------------------------------


class TestCorrect:
    """Tests for the correction endpoint."""

    @pytest.mark.asyncio
    async def test_correct_toolbar(self, client: AsyncClient, toolbar_json, toolbar_markup):
        resp = await client.post(
            "/api/v1/handoff/correct", json={"node": toolbar_json, "markup": toolbar_markup},
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["is_exact"] is True
        assert data["correction"]["mismatches"] == []
        assert len(data["changes"]) == 10
        assert [s["name"] for s in data["stages"]] == ["transform", "enforce", "validate"]

    @pytest.mark.asyncio
    async def test_fenced_markup_and_type_override(
        self, client: AsyncClient, button_json, button_markup,
    ):
        resp = await client.post("/api/v1/handoff/correct", json={
            "node": button_json,
            "markup": f"```tsx\n{button_markup}\n```",
            "component_type": "button",
        })
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["classification"]["confidence"] == 100
        assert data["markup"].startswith("<button")
        assert data["accessibility"]["score"] == 100
        assert data["is_exact"] is True

    @pytest.mark.asyncio
    async def test_fence_without_markup_block(self, client: AsyncClient, toolbar_json):
        resp = await client.post("/api/v1/handoff/correct", json={
            "node": toolbar_json, "markup": "```python\nprint(1)\n```",
        })
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_component_type(self, client: AsyncClient, toolbar_json):
        resp = await client.post("/api/v1/handoff/correct", json={
            "node": toolbar_json, "markup": "<div />", "component_type": "carousel",
        })
        assert resp.status_code == 422
