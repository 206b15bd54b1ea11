"""Tests for handoff.integrations.figma_client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from handoff.errors import FigmaClientError, InvalidDesignInput
from handoff.integrations.figma_client import FigmaClient


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client():
    """Create a FigmaClient with a test token."""
    return FigmaClient(token="test-figma-token-123")


@pytest.fixture
def sample_nodes_response():
    """Sample Figma /v1/files/:key/nodes response."""
    return {
        "name": "TestFile",
        "nodes": {
            "16650:538": {
                "document": {
                    "id": "16650:538",
                    "name": "Checkout Page",
                    "type": "FRAME",
                    "absoluteBoundingBox": {
                        "x": 80, "y": 318, "width": 393, "height": 852
                    },
                    "children": [
                        {
                            "id": "16650:539",
                            "name": "Header",
                            "type": "FRAME",
                            "visible": True,
                            "absoluteBoundingBox": {
                                "x": 80, "y": 318, "width": 393, "height": 92
                            },
                            "children": [
                                {
                                    "id": "16650:542",
                                    "name": "AppTitle",
                                    "type": "TEXT",
                                    "characters": "Checkout",
                                    "absoluteBoundingBox": {
                                        "x": 160, "y": 376, "width": 233, "height": 22
                                    },
                                    "children": [],
                                },
                            ],
                        },
                        {
                            "id": "16650:601",
                            "name": "Summary",
                            "type": "GROUP",
                            "children": [
                                {
                                    "id": "16650:602",
                                    "name": "Total",
                                    "type": "TEXT",
                                    "characters": "$42.00",
                                    "absoluteBoundingBox": {"x": 100, "y": 500, "width": 80, "height": 20},
                                    "children": [],
                                },
                            ],
                        },
                        {
                            "id": "invisible_node",
                            "name": "HiddenLayer",
                            "type": "FRAME",
                            "visible": False,
                            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 100, "height": 100},
                            "children": [],
                        },
                    ],
                },
            },
        },
    }


def _mock_get(client, mock_resp):
    mock_http = AsyncMock()
    mock_http.get = AsyncMock(return_value=mock_resp)
    return patch.object(client, "_get_client", AsyncMock(return_value=mock_http)), mock_http


# ---------------------------------------------------------------------------
# Init
# ---------------------------------------------------------------------------


class TestFigmaClientInit:

    def test_creates_with_explicit_token(self):
        c = FigmaClient(token="my-token")
        assert c._token == "my-token"

    def test_reads_token_from_config(self, monkeypatch):
        monkeypatch.setattr("handoff.integrations.figma_client.FIGMA_TOKEN", "env-token-abc")
        c = FigmaClient()
        assert c._token == "env-token-abc"

    def test_raises_without_token(self, monkeypatch):
        monkeypatch.setattr("handoff.integrations.figma_client.FIGMA_TOKEN", "")
        with pytest.raises(FigmaClientError, match="FIGMA_TOKEN"):
            FigmaClient()


# ---------------------------------------------------------------------------
# get_file_nodes
# ---------------------------------------------------------------------------


class TestGetFileNodes:

    @pytest.mark.asyncio
    async def test_returns_nodes(self, client, sample_nodes_response):
        mock_resp = MagicMock()
        mock_resp.status_code = 200
        mock_resp.json.return_value = sample_nodes_response

        patcher, mock_http = _mock_get(client, mock_resp)
        with patcher:
            result = await client.get_file_nodes("abc123", ["16650:538"])

        assert "16650:538" in result["nodes"]
        mock_http.get.assert_awaited_once_with(
            "/v1/files/abc123/nodes", params={"ids": "16650:538"},
        )

    @pytest.mark.asyncio
    async def test_403_raises_auth_error(self, client):
        mock_resp = MagicMock()
        mock_resp.status_code = 403
        mock_resp.text = "Forbidden"

        patcher, _ = _mock_get(client, mock_resp)
        with patcher:
            with pytest.raises(FigmaClientError, match="403 Forbidden"):
                await client.get_file_nodes("abc123", ["1:1"])

    @pytest.mark.asyncio
    async def test_404_raises_not_found(self, client):
        mock_resp = MagicMock()
        mock_resp.status_code = 404
        mock_resp.text = "Not found"

        patcher, _ = _mock_get(client, mock_resp)
        with patcher:
            with pytest.raises(FigmaClientError, match="not found"):
                await client.get_file_nodes("abc123", ["1:1"])

    @pytest.mark.asyncio
    async def test_429_raises_rate_limit(self, client):
        mock_resp = MagicMock()
        mock_resp.status_code = 429
        mock_resp.text = "Rate limited"

        patcher, _ = _mock_get(client, mock_resp)
        with patcher:
            with pytest.raises(FigmaClientError, match="rate limit"):
                await client.get_file_nodes("abc123", ["1:1"])

    @pytest.mark.asyncio
    async def test_other_status_includes_body(self, client):
        mock_resp = MagicMock()
        mock_resp.status_code = 502
        mock_resp.text = "Bad gateway"

        patcher, _ = _mock_get(client, mock_resp)
        with patcher:
            with pytest.raises(FigmaClientError, match="Figma API error 502: Bad gateway"):
                await client.get_file_nodes("abc123", ["1:1"])

    @pytest.mark.asyncio
    async def test_connection_error_raises(self, client):
        mock_http = AsyncMock()
        mock_http.get = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch.object(client, "_get_client", AsyncMock(return_value=mock_http)):
            with pytest.raises(FigmaClientError, match="connection error"):
                await client.get_file_nodes("abc123", ["1:1"])

    @pytest.mark.asyncio
    async def test_timeout_raises(self, client):
        mock_http = AsyncMock()
        mock_http.get = AsyncMock(side_effect=httpx.TimeoutException("slow"))
        with patch.object(client, "_get_client", AsyncMock(return_value=mock_http)):
            with pytest.raises(FigmaClientError, match="timeout"):
                await client.get_file_nodes("abc123", ["1:1"])

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, client):
        mock_resp = MagicMock()
        mock_resp.status_code = 200
        mock_resp.json.side_effect = ValueError("bad json")

        patcher, _ = _mock_get(client, mock_resp)
        with patcher:
            with pytest.raises(FigmaClientError, match="invalid JSON"):
                await client.get_file_nodes("abc123", ["1:1"])


# ---------------------------------------------------------------------------
# fetch_design_tree
# ---------------------------------------------------------------------------


class TestFetchDesignTree:

    @pytest.mark.asyncio
    async def test_resolves_tree(self, client, sample_nodes_response):
        mock_resp = MagicMock()
        mock_resp.status_code = 200
        mock_resp.json.return_value = sample_nodes_response

        patcher, _ = _mock_get(client, mock_resp)
        with patcher:
            tree = await client.fetch_design_tree("abc123", "16650:538")

        assert tree.root.id == "16650:538"
        # hidden layers are dropped
        assert tree.get("invisible_node") is None
        # the group without its own box takes the union of its children
        summary = tree.get("16650:601")
        assert (summary.box.x, summary.box.y, summary.box.width) == (100, 500, 80)
        assert tree.parent(tree.get("16650:542")).id == "16650:539"

    @pytest.mark.asyncio
    async def test_dash_separated_node_id(self, client, sample_nodes_response):
        sample_nodes_response["nodes"]["16650-538"] = sample_nodes_response["nodes"].pop("16650:538")
        mock_resp = MagicMock()
        mock_resp.status_code = 200
        mock_resp.json.return_value = sample_nodes_response

        patcher, _ = _mock_get(client, mock_resp)
        with patcher:
            tree = await client.fetch_design_tree("abc123", "16650:538")
        assert tree.root.name == "Checkout Page"

    @pytest.mark.asyncio
    async def test_missing_node_raises(self, client):
        mock_resp = MagicMock()
        mock_resp.status_code = 200
        mock_resp.json.return_value = {"nodes": {}}

        patcher, _ = _mock_get(client, mock_resp)
        with patcher:
            with pytest.raises(InvalidDesignInput, match="not found"):
                await client.fetch_design_tree("abc123", "9:9")


# ---------------------------------------------------------------------------
# close
# ---------------------------------------------------------------------------


class TestClose:

    @pytest.mark.asyncio
    async def test_close_is_safe_without_client(self, client):
        await client.close()
        assert client._client is None

    @pytest.mark.asyncio
    async def test_close_releases_client(self, client):
        http = await client._get_client()
        assert http.headers["X-FIGMA-TOKEN"] == "test-figma-token-123"
        await client.close()
        assert http.is_closed
        assert client._client is None
