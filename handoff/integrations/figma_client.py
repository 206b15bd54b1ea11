"""Figma REST API client for the design handoff pipeline.

Fetches node subtrees from Figma files using Personal Access Token (PAT)
authentication and hands them to the design model as resolved trees.

Environment:
    FIGMA_TOKEN: Figma Personal Access Token (required)

Usage:
    client = FigmaClient()
    nodes = await client.get_file_nodes("6kGd851qaAX4TiL44vpIrO", ["16650:538"])
    tree = await client.fetch_design_tree("6kGd851qaAX4TiL44vpIrO", "16650:538")
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from handoff.config import FIGMA_API_BASE, FIGMA_TOKEN
from handoff.design.figma_parser import parse_figma_nodes_response
from handoff.design.nodes import DesignTree
from handoff.design.resolver import resolve_tree
from handoff.errors import FigmaClientError
from handoff.integrations.http_base import ServiceClient
from handoff.settings import FIGMA_HTTP_TIMEOUT

logger = logging.getLogger("handoff.integrations.figma")

_STATUS_MESSAGES = {
    403: (
        "Figma API returned 403 Forbidden. Check that FIGMA_TOKEN is valid "
        "and has file_content:read scope."
    ),
    429: "Figma API rate limit exceeded. Retry later.",
}


class FigmaClient(ServiceClient):
    """Async Figma REST API client.

    Args:
        token: Figma PAT. Falls back to FIGMA_TOKEN env var.
        timeout: HTTP request timeout in seconds.
        base_url: API root, overridable for tests and proxies.
    """

    service = "Figma API"
    error_class = FigmaClientError

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: float = FIGMA_HTTP_TIMEOUT,
        base_url: str = FIGMA_API_BASE,
    ):
        super().__init__(timeout)
        self._token = token or FIGMA_TOKEN
        if not self._token:
            raise FigmaClientError(
                "Figma token not configured. Set FIGMA_TOKEN environment variable "
                "or pass token= to FigmaClient()."
            )
        self._base_url = base_url

    def _client_options(self) -> Dict[str, Any]:
        return {
            "base_url": self._base_url,
            "headers": {"X-FIGMA-TOKEN": self._token},
            "limits": httpx.Limits(max_connections=5, max_keepalive_connections=3),
        }

    def _status_error(self, resp: httpx.Response, url: str) -> str:
        if resp.status_code == 404:
            return f"Figma resource not found: {url}"
        return _STATUS_MESSAGES.get(resp.status_code) or super()._status_error(resp, url)

    async def _get(self, path: str, params: Optional[Dict] = None) -> Dict[str, Any]:
        resp = await self._send("get", path, params=params)
        return self._json(resp, path)

    # ------------------------------------------------------------------
    # API methods
    # ------------------------------------------------------------------

    async def get_file_nodes(
        self,
        file_key: str,
        node_ids: List[str],
    ) -> Dict[str, Any]:
        """Fetch specific nodes (with their subtrees) from a Figma file.

        GET /v1/files/:key/nodes?ids=...
        """
        ids_param = ",".join(node_ids)
        data = await self._get(f"/v1/files/{file_key}/nodes", params={"ids": ids_param})
        logger.info(
            f"get_file_nodes: file={file_key}, requested={len(node_ids)}, "
            f"returned={len(data.get('nodes') or {})}"
        )
        return data

    async def fetch_design_tree(self, file_key: str, node_id: str) -> DesignTree:
        """Fetch one node and resolve it into a DesignTree.

        Raises FigmaClientError on transport/API failures and
        InvalidDesignInput when the node has no resolvable geometry.
        """
        data = await self.get_file_nodes(file_key, [node_id])
        raw = parse_figma_nodes_response(data, node_id)
        tree = resolve_tree(raw)
        logger.info(
            f"fetch_design_tree: file={file_key}, node={node_id}, "
            f"nodes={len(tree.by_id)}"
        )
        return tree
