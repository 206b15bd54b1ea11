"""Design handoff pipeline: classify → analyze → generate → correct.

    prepare(tree)          classification + layout analysis + generation request
    await run(tree)        prepare, call the generation service, then correct
    correct(markup, tree)  transform → enforce → validate, no generation

Correction stages degrade gracefully: a stage that raises is recorded as a
failed StageOutcome and the markup from before the stage flows on to the
next one. Generation failures are not caught: they propagate to the caller
unmodified, and nothing here retries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from handoff.analysis.alignment_analyzer import AlignmentAnalysis, analyze_children
from handoff.analysis.component_classifier import ClassificationResult, classify
from handoff.cache import ContentCache, content_key
from handoff.design.nodes import DesignNode, DesignTree, node_to_dict
from handoff.errors import HandoffError, InvalidDesignInput, StageFailure
from handoff.markup.cross_validator import CorrectionReport, validate
from handoff.markup.exact_value_enforcer import ValueChange, enforce_with_report
from handoff.markup.rules import extract_markup_block
from handoff.markup.semantic_transformer import AccessibilityReport, enhance
from handoff.prompts.generation_prompt import GenerationRequest, build_generation_request

logger = logging.getLogger("handoff.pipeline")

GenerateFn = Callable[[GenerationRequest], Awaitable[str]]

STAGE_TRANSFORM = "transform"
STAGE_ENFORCE = "enforce"
STAGE_VALIDATE = "validate"


@dataclass(frozen=True)
class StageOutcome:
    name: str
    succeeded: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "succeeded": self.succeeded, "error": self.error}


@dataclass
class PreparedRequest:
    node: DesignNode
    classification: ClassificationResult
    analysis: AlignmentAnalysis
    request: GenerationRequest


@dataclass
class PipelineResult:
    classification: ClassificationResult
    analysis: AlignmentAnalysis
    markup: str
    accessibility: Optional[AccessibilityReport] = None
    correction: Optional[CorrectionReport] = None
    changes: List[ValueChange] = field(default_factory=list)
    stages: List[StageOutcome] = field(default_factory=list)

    @property
    def is_exact(self) -> bool:
        return self.correction is not None and self.correction.is_exact

    @property
    def failed_stages(self) -> List[str]:
        return [s.name for s in self.stages if not s.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "classification": self.classification.to_dict(),
            "analysis": self.analysis.to_dict(),
            "markup": self.markup,
            "accessibility": self.accessibility.to_dict() if self.accessibility else None,
            "correction": self.correction.to_dict() if self.correction else None,
            "changes": [c.to_dict() for c in self.changes],
            "stages": [s.to_dict() for s in self.stages],
            "is_exact": self.is_exact,
        }


class HandoffPipeline:
    """One pipeline per caller; the optional cache may be shared.

    Args:
        generate: async callable submitting a GenerationRequest and returning
            the raw reply text (e.g. GenerationClient.generate).
        cache: ContentCache for classification, analysis and correction
            results. None disables caching.
        library: component library preference forwarded to the request.
    """

    def __init__(
        self,
        generate: Optional[GenerateFn] = None,
        cache: Optional[ContentCache] = None,
        library: Optional[str] = None,
    ):
        self._generate = generate
        self._cache = cache
        self._library = library

    def _cached(self, key_parts: tuple, compute: Callable[[], Any]) -> Any:
        if self._cache is None:
            return compute()
        return self._cache.get_or_compute(content_key(*key_parts), compute)

    @staticmethod
    def _select(tree: Optional[DesignTree], node_id: Optional[str]) -> DesignNode:
        if tree is None:
            raise InvalidDesignInput("pipeline requires a resolved design tree")
        if node_id is None:
            return tree.root
        node = tree.get(node_id)
        if node is None:
            raise InvalidDesignInput(f"node {node_id!r} not found in design tree")
        return node

    # ------------------------------------------------------------------
    # Pure stages
    # ------------------------------------------------------------------

    def classify(self, node: DesignNode) -> ClassificationResult:
        return self._cached(("classify", node_to_dict(node)), lambda: classify(node))

    def analyze(self, node: DesignNode) -> AlignmentAnalysis:
        return self._cached(("analyze", node_to_dict(node)), lambda: analyze_children(node))

    def prepare(self, tree: DesignTree, node_id: Optional[str] = None) -> PreparedRequest:
        node = self._select(tree, node_id)
        classification = self.classify(node)
        analysis = self.analyze(node)
        request = build_generation_request(node, classification, analysis, self._library)
        logger.info(
            f"prepare: node '{node.name}' → {classification.component_type.value} "
            f"({classification.confidence}%), {analysis.complexity} layout"
        )
        return PreparedRequest(
            node=node, classification=classification, analysis=analysis, request=request,
        )

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    async def run(self, tree: DesignTree, node_id: Optional[str] = None) -> PipelineResult:
        """Prepare, generate, then correct.

        GenerationServiceError (and anything else the generate callable
        raises) propagates unmodified. MarkupExtractionError is raised when
        the reply contains no fenced markup block.
        """
        if self._generate is None:
            raise HandoffError("HandoffPipeline.run requires a generate callable")
        prepared = self.prepare(tree, node_id)
        reply = await self._generate(prepared.request)
        markup = extract_markup_block(reply)
        return self.correct(
            markup, tree,
            classification=prepared.classification,
            analysis=prepared.analysis,
            node_id=node_id,
        )

    # ------------------------------------------------------------------
    # Correction
    # ------------------------------------------------------------------

    def correct(
        self,
        markup: str,
        tree: DesignTree,
        classification: Optional[ClassificationResult] = None,
        analysis: Optional[AlignmentAnalysis] = None,
        node_id: Optional[str] = None,
    ) -> PipelineResult:
        """Run transform → enforce → validate over markup for one node."""
        node = self._select(tree, node_id)
        if classification is None:
            classification = self.classify(node)
        if analysis is None:
            analysis = self.analyze(node)

        parent = tree.parent(node)
        key_parts = (
            "correct",
            node_to_dict(node),
            node_to_dict(parent) if parent is not None else None,
            markup,
            classification.to_dict(),
        )
        return self._cached(
            key_parts, lambda: self._correct(markup, node, tree, classification, analysis),
        )

    def _correct(
        self,
        markup: str,
        node: DesignNode,
        tree: DesignTree,
        classification: ClassificationResult,
        analysis: AlignmentAnalysis,
    ) -> PipelineResult:
        result = PipelineResult(
            classification=classification, analysis=analysis, markup=markup or "",
        )

        # --- Stage 1: semantic / accessibility transform ---
        try:
            enhanced = enhance(result.markup, classification, node, tree)
        except Exception as e:
            self._record_failure(result, StageFailure(STAGE_TRANSFORM, e))
        else:
            result.markup = enhanced.markup
            result.accessibility = enhanced.report
            result.stages.append(StageOutcome(STAGE_TRANSFORM, True))
            for pass_name, error in enhanced.report.stage_errors.items():
                result.stages.append(
                    StageOutcome(f"{STAGE_TRANSFORM}.{pass_name}", False, error)
                )

        # --- Stage 2: exact values / positioning ---
        try:
            enforced = enforce_with_report(result.markup, node)
        except Exception as e:
            self._record_failure(result, StageFailure(STAGE_ENFORCE, e))
        else:
            result.markup = enforced.markup
            result.changes = enforced.changes
            result.stages.append(StageOutcome(STAGE_ENFORCE, True))

        # --- Stage 3: read-only validation ---
        try:
            result.correction = validate(result.markup, node, analysis=analysis)
        except Exception as e:
            self._record_failure(result, StageFailure(STAGE_VALIDATE, e))
        else:
            result.stages.append(StageOutcome(STAGE_VALIDATE, True))

        logger.info(
            f"correct: node '{node.name}': exact={result.is_exact}, "
            f"failed_stages={result.failed_stages or 'none'}"
        )
        return result

    @staticmethod
    def _record_failure(result: PipelineResult, failure: StageFailure) -> None:
        logger.warning(f"correct: stage '{failure.stage}' failed, skipped: {failure.cause}")
        result.stages.append(StageOutcome(failure.stage, False, str(failure)))
