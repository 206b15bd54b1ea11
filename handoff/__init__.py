"""Design handoff core package.

Subpackages:
- design: Design node model, Figma JSON parsing, bounding-box resolution
- analysis: Component classification and sibling alignment analysis
- markup: Accessibility transform, exact-value enforcement, cross-validation
- prompts: Generation request templates for the code-generation service
- integrations: Figma REST and code-generation HTTP clients
"""

__version__ = "0.1.0"
