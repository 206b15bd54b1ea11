"""Error taxonomy for the handoff pipeline.

Low confidence and validation mismatches are reported as data, not raised.
"""


class HandoffError(Exception):
    """Base class for all handoff errors."""


class InvalidDesignInput(HandoffError):
    """Raised when a design tree has no resolvable geometry, or a node is missing
    where geometry is mandatory for the requested operation."""


class StageFailure(HandoffError):
    """Raised inside a transform/enforce pass. Caught by the pipeline, which
    records it and continues with the markup from before the stage."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"{stage} failed: {cause}")
        self.stage = stage
        self.cause = cause


class GenerationServiceError(HandoffError):
    """Raised when the external code-generation call fails or times out."""


class FigmaClientError(HandoffError):
    """Raised when a Figma API call fails."""


class MarkupExtractionError(HandoffError):
    """Raised when a generation response contains no fenced markup block."""
