"""Command-line entry point.

Usage:
    # Classify / analyze a node exported from Figma (document object, or a
    # full /v1/files/:key/nodes response together with --node-id)
    python -m handoff classify design.json
    python -m handoff analyze design.json --node-id 16650:538

    # Correct previously generated markup against the design
    python -m handoff correct design.json Component.jsx

    # Fetch a node subtree from the Figma API (needs FIGMA_TOKEN)
    python -m handoff fetch 6kGd851qaAX4TiL44vpIrO 16650:538 -o design.json

    # Run the HTTP API
    python -m handoff serve --port 8000
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from handoff.analysis.component_classifier import ClassificationResult, ComponentType
from handoff.config import API_HOST, API_PORT
from handoff.design.figma_parser import parse_figma_node, parse_figma_nodes_response
from handoff.design.nodes import DesignNode, DesignTree, node_to_dict
from handoff.design.resolver import resolve_tree
from handoff.errors import HandoffError
from handoff.logging_config import get_pipeline_logger
from handoff.markup.rules import extract_markup_block
from handoff.pipeline import HandoffPipeline


def load_tree(path: str, node_id: Optional[str] = None) -> DesignTree:
    """Load a Figma node (or nodes response) JSON file and resolve it."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict) and "nodes" in data:
        if not node_id:
            raise HandoffError("a /nodes response needs --node-id to pick the node")
        return resolve_tree(parse_figma_nodes_response(data, node_id))
    return resolve_tree(parse_figma_node(data))


def _dump(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _target_id(tree: DesignTree, node_id: Optional[str]) -> Optional[str]:
    # A nodes response is already narrowed to node_id, which is then the root
    if node_id is None or node_id == tree.root.id:
        return None
    return node_id


def _select(tree: DesignTree, node_id: Optional[str]) -> DesignNode:
    target = _target_id(tree, node_id)
    node = tree.get(target) if target else tree.root
    if node is None:
        raise HandoffError(f"node {target!r} not found in the design file")
    return node


# --- Subcommands ---


def cmd_classify(args: argparse.Namespace) -> int:
    tree = load_tree(args.design, args.node_id)
    node = _select(tree, args.node_id)
    _dump({"node_id": node.id, "node_name": node.name, **HandoffPipeline().classify(node).to_dict()})
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    tree = load_tree(args.design, args.node_id)
    node = _select(tree, args.node_id)
    _dump(HandoffPipeline().analyze(node).to_dict())
    return 0


def cmd_correct(args: argparse.Namespace) -> int:
    tree = load_tree(args.design, args.node_id)
    markup = Path(args.markup).read_text(encoding="utf-8")
    if "```" in markup:
        markup = extract_markup_block(markup)

    classification = None
    if args.component_type:
        classification = ClassificationResult(
            component_type=ComponentType(args.component_type),
            confidence=100,
            reasoning=("provided on the command line",),
        )

    result = HandoffPipeline().correct(
        markup, tree, classification=classification,
        node_id=_target_id(tree, args.node_id),
    )
    if args.output:
        Path(args.output).write_text(result.markup, encoding="utf-8")
    _dump(result.to_dict())
    return 0 if result.is_exact else 2


def cmd_fetch(args: argparse.Namespace) -> int:
    from handoff.integrations.figma_client import FigmaClient

    async def _fetch() -> DesignTree:
        client = FigmaClient()
        try:
            return await client.fetch_design_tree(args.file_key, args.node_id)
        finally:
            await client.close()

    tree = asyncio.run(_fetch())
    text = json.dumps(node_to_dict(tree.root), indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"wrote {len(tree.by_id)} nodes to {args.output}", file=sys.stderr)
    else:
        print(text)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("handoff_api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="handoff", description="Design handoff: classify, analyze and correct components",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("classify", help="Classify a design node")
    p.add_argument("design", help="Figma node JSON file")
    p.add_argument("--node-id", default=None, help="Node to classify (default: root)")
    p.set_defaults(func=cmd_classify)

    p = sub.add_parser("analyze", help="Analyze the layout of a node's children")
    p.add_argument("design", help="Figma node JSON file")
    p.add_argument("--node-id", default=None, help="Container node (default: root)")
    p.set_defaults(func=cmd_analyze)

    p = sub.add_parser("correct", help="Correct generated markup against the design")
    p.add_argument("design", help="Figma node JSON file")
    p.add_argument("markup", help="Generated JSX file (raw or fenced)")
    p.add_argument("--node-id", default=None, help="Node the markup renders (default: root)")
    p.add_argument(
        "--component-type", default=None,
        choices=[t.value for t in ComponentType],
        help="Skip classification and use this component type",
    )
    p.add_argument("-o", "--output", default=None, help="Write corrected markup here")
    p.set_defaults(func=cmd_correct)

    p = sub.add_parser("fetch", help="Fetch a node subtree from the Figma API")
    p.add_argument("file_key", help="Figma file key")
    p.add_argument("node_id", help="Node id, e.g. 16650:538")
    p.add_argument("-o", "--output", default=None, help="Write node JSON here")
    p.set_defaults(func=cmd_fetch)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default=API_HOST)
    p.add_argument("--port", type=int, default=API_PORT)
    p.add_argument("--reload", action="store_true")
    p.set_defaults(func=cmd_serve)

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    get_pipeline_logger()
    try:
        return args.func(args)
    except HandoffError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
