"""Code Generation Prompt Templates

Builds the request handed to the external generation service: the
classification result, the alignment hints, the positioning rules the
enforcer will apply anyway, and the JSON dump of the node subtree.

Every generated element must carry ``data-node-id`` so the correction stages
can pair markup elements with design nodes without guessing.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from handoff.analysis.alignment_analyzer import AlignmentAnalysis, format_alignment_hints
from handoff.analysis.component_classifier import (
    ClassificationResult,
    should_use_library_component,
)
from handoff.design.nodes import DesignNode, node_to_dict

GENERATION_SYSTEM_PROMPT = """\
You are a helpful design-to-code assistant. You convert design-tool node \
trees into a single React component written with inline styles.

Respond with exactly one fenced ```jsx block containing the component. \
Do not add any other code blocks."""

GENERATION_USER_PROMPT = """\
Create a React component for the design node below.

## Component

Detected type: {component_type} (confidence {confidence}%)
Reasoning: {reasoning}
{library_guidelines}

## Layout

{alignment_hints}

## Positioning Rules

1. ROOT ELEMENT: never use position: 'absolute', left, top, right, bottom or \
transform. The root starts at (0, 0) regardless of canvas coordinates.
2. ROOT ELEMENT: width and height are exactly absoluteBoundingBox.width and \
absoluteBoundingBox.height of the root node.
3. CHILD ELEMENTS: position: 'absolute' with \
left = child.x - parent.x and top = child.y - parent.y.
4. Use the exact values from the JSON. Do NOT round: 20.5 stays '20.5px'.
5. Elements that share an edge in the design must use identical values.
6. Use zIndex to keep document order (later siblings stack higher).
7. Hardcode literal values: width: '320px', never template literals or \
variables.
8. Only create elements that exist in the design data. Do not invent \
placeholder text.
9. Put data-node-id="<node id>" on every element you create.

## Design Node

```json
{node_json}
```
"""

LIBRARY_GUIDELINES = {
    "shadcn": (
        "Prefer the shadcn/ui {component} primitive for structure, but keep every "
        "dimension and color as inline styles."
    ),
    "custom": "Build the component from plain elements; no component library.",
}


@dataclass(frozen=True)
class GenerationRequest:
    system_prompt: str
    user_prompt: str


def _library_guidelines(
    classification: ClassificationResult, library: Optional[str],
) -> str:
    if not should_use_library_component(classification, library):
        return LIBRARY_GUIDELINES["custom"]
    chosen = library or classification.suggested_library
    template = LIBRARY_GUIDELINES.get(chosen)
    if template is None:
        return (
            f"Prefer {chosen} components for structure, but keep every dimension "
            f"and color as inline styles."
        )
    return template.format(component=classification.component_type.value)


def build_generation_request(
    node: DesignNode,
    classification: ClassificationResult,
    analysis: AlignmentAnalysis,
    library: Optional[str] = None,
) -> GenerationRequest:
    """Fold classification, layout hints and the node dump into one request.

    Args:
        library: component library preference; "none" forces plain elements,
            None defers to the classification's suggestion.
    """
    user_prompt = GENERATION_USER_PROMPT.format(
        component_type=classification.component_type.value,
        confidence=classification.confidence,
        reasoning="; ".join(classification.reasoning) or "none",
        library_guidelines=_library_guidelines(classification, library),
        alignment_hints=format_alignment_hints(analysis).strip(),
        node_json=json.dumps(node_to_dict(node), indent=2, ensure_ascii=False),
    )
    return GenerationRequest(system_prompt=GENERATION_SYSTEM_PROMPT, user_prompt=user_prompt)
