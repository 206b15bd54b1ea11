"""Design handoff API endpoints.

Stateless wrappers around HandoffPipeline. Every request carries the Figma
node JSON it operates on (the ``document`` object of a /v1/files/:key/nodes
response); nothing is stored between calls apart from the shared result
cache.

    POST /api/v1/handoff/classify   component archetype + confidence
    POST /api/v1/handoff/analyze    alignment / spacing / grid analysis
    POST /api/v1/handoff/prepare    generation request (prompts only)
    POST /api/v1/handoff/generate   generate + correct via the generation service
    POST /api/v1/handoff/correct    transform → enforce → validate caller markup
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from handoff.analysis.alignment_analyzer import analyze, format_alignment_hints
from handoff.analysis.component_classifier import ClassificationResult, ComponentType
from handoff.cache import ContentCache
from handoff.config import GENERATION_API_KEY
from handoff.design.figma_parser import parse_figma_node
from handoff.design.nodes import DesignTree
from handoff.design.resolver import resolve_tree
from handoff.errors import GenerationServiceError, InvalidDesignInput, MarkupExtractionError
from handoff.integrations.generation_client import GenerationClient
from handoff.markup.rules import extract_markup_block
from handoff.pipeline import HandoffPipeline

logger = logging.getLogger("handoff_api.routes.handoff")

router = APIRouter(prefix="/api/v1/handoff", tags=["handoff"])

_cache = ContentCache()


def get_pipeline() -> HandoffPipeline:
    """Pipeline without a generator, sharing the module-level cache."""
    return HandoffPipeline(cache=_cache)


# --- Schemas ---


class NodeRequest(BaseModel):
    """Base request: a Figma node subtree plus an optional target node."""

    node: Dict[str, Any] = Field(
        ..., description="Figma node JSON (the document object of a nodes response)"
    )
    node_id: Optional[str] = Field(
        None, description="Node inside the subtree to operate on; defaults to its root"
    )


class AnalyzeRequest(NodeRequest):
    """Request for POST /api/v1/handoff/analyze."""

    scope: Literal["children", "siblings"] = Field(
        "children",
        description=(
            "children: layout of the node's direct children; "
            "siblings: the node against its siblings inside its parent"
        ),
    )


class PrepareRequest(NodeRequest):
    """Request for POST /api/v1/handoff/prepare and /generate."""

    library: Optional[str] = Field(
        None, description='Component library preference, "none" forces plain elements'
    )


class CorrectRequest(NodeRequest):
    """Request for POST /api/v1/handoff/correct."""

    markup: str = Field(
        ..., description="Generated JSX markup, raw or inside a fenced code block"
    )
    component_type: Optional[ComponentType] = Field(
        None, description="Overrides the classifier when the caller knows the component type"
    )


class ClassifyResponse(BaseModel):
    """Response for POST /api/v1/handoff/classify."""

    node_id: str
    node_name: str
    component_type: str
    confidence: int = Field(..., ge=0, le=100)
    reasoning: List[str] = Field(default_factory=list)
    suggested_library: str


class AnalyzeResponse(BaseModel):
    """Response for POST /api/v1/handoff/analyze."""

    node_id: str
    node_name: str
    scope: str
    analysis: Dict[str, Any]
    hints: str = Field(..., description="Text block embedded in generation requests")


class PrepareResponse(BaseModel):
    """Response for POST /api/v1/handoff/prepare."""

    node_id: str
    classification: Dict[str, Any]
    system_prompt: str
    user_prompt: str


class CorrectResponse(BaseModel):
    """Response for POST /api/v1/handoff/correct and /generate."""

    markup: str
    is_exact: bool
    classification: Dict[str, Any]
    analysis: Dict[str, Any]
    accessibility: Optional[Dict[str, Any]] = None
    correction: Optional[Dict[str, Any]] = None
    changes: List[Dict[str, Any]] = Field(default_factory=list)
    stages: List[Dict[str, Any]] = Field(default_factory=list)


# --- Helpers ---


def _build_tree(body: NodeRequest) -> DesignTree:
    try:
        return resolve_tree(parse_figma_node(body.node))
    except InvalidDesignInput as e:
        raise HTTPException(status_code=400, detail=str(e))


def _target(tree: DesignTree, node_id: Optional[str]):
    if node_id is None:
        return tree.root
    node = tree.get(node_id)
    if node is None:
        raise HTTPException(
            status_code=400, detail=f"Node '{node_id}' not found in the submitted subtree"
        )
    return node


# --- Endpoints ---


@router.post("/classify", response_model=ClassifyResponse)
async def classify_node(
    body: NodeRequest, pipeline: HandoffPipeline = Depends(get_pipeline),
):
    """Classify a design node into a UI component archetype."""
    tree = _build_tree(body)
    node = _target(tree, body.node_id)
    result = pipeline.classify(node)
    return ClassifyResponse(
        node_id=node.id,
        node_name=node.name,
        **result.to_dict(),
    )


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_node(
    body: AnalyzeRequest, pipeline: HandoffPipeline = Depends(get_pipeline),
):
    """Alignment, spacing and grid analysis for a node's layout."""
    tree = _build_tree(body)
    node = _target(tree, body.node_id)
    if body.scope == "siblings":
        analysis = analyze(node, tree)
    else:
        analysis = pipeline.analyze(node)
    return AnalyzeResponse(
        node_id=node.id,
        node_name=node.name,
        scope=body.scope,
        analysis=analysis.to_dict(),
        hints=format_alignment_hints(analysis),
    )


@router.post("/prepare", response_model=PrepareResponse)
async def prepare_request(body: PrepareRequest):
    """Build the generation request without calling the generation service."""
    tree = _build_tree(body)
    _target(tree, body.node_id)
    prepared = HandoffPipeline(cache=_cache, library=body.library).prepare(tree, body.node_id)
    return PrepareResponse(
        node_id=prepared.node.id,
        classification=prepared.classification.to_dict(),
        system_prompt=prepared.request.system_prompt,
        user_prompt=prepared.request.user_prompt,
    )


@router.post("/generate", response_model=CorrectResponse)
async def generate_component(body: PrepareRequest):
    """Generate markup with the generation service, then correct it."""
    if not GENERATION_API_KEY:
        raise HTTPException(
            status_code=400,
            detail="GENERATION_API_KEY not configured. Set it in the environment.",
        )
    tree = _build_tree(body)
    _target(tree, body.node_id)

    client = GenerationClient(api_key=GENERATION_API_KEY)
    pipeline = HandoffPipeline(generate=client.generate, cache=_cache, library=body.library)
    try:
        result = await pipeline.run(tree, body.node_id)
    except (GenerationServiceError, MarkupExtractionError) as e:
        logger.error(f"generate: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    finally:
        await client.close()
    return CorrectResponse(**result.to_dict())


@router.post("/correct", response_model=CorrectResponse)
async def correct_markup(
    body: CorrectRequest, pipeline: HandoffPipeline = Depends(get_pipeline),
):
    """Run the accessibility, exact-value and validation stages over markup."""
    tree = _build_tree(body)
    _target(tree, body.node_id)

    markup = body.markup
    if "```" in markup:
        try:
            markup = extract_markup_block(markup)
        except MarkupExtractionError as e:
            raise HTTPException(status_code=400, detail=str(e))

    classification = None
    if body.component_type is not None:
        classification = ClassificationResult(
            component_type=body.component_type,
            confidence=100,
            reasoning=("provided by caller",),
        )

    result = pipeline.correct(
        markup, tree, classification=classification, node_id=body.node_id,
    )
    logger.info(
        f"correct: node={result.classification.component_type.value}, "
        f"exact={result.is_exact}, changes={len(result.changes)}"
    )
    return CorrectResponse(**result.to_dict())
