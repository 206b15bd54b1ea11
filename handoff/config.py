"""Handoff configuration constants: single source of truth for all env vars."""

import os

# Figma REST API: Personal Access Token for design file access
FIGMA_TOKEN = os.getenv("FIGMA_TOKEN", "")
FIGMA_API_BASE = os.getenv("FIGMA_API_BASE", "https://api.figma.com")

# Code generation service (OpenAI-compatible chat completions endpoint)
GENERATION_API_KEY = os.getenv("GENERATION_API_KEY", "")
GENERATION_API_URL = os.getenv(
    "GENERATION_API_URL", "https://api.openai.com/v1/chat/completions"
)
GENERATION_MODEL = os.getenv("GENERATION_MODEL", "gpt-4o-mini")

# Server binding: used by `python -m handoff serve`
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# CORS configuration (comma-separated origins)
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if o.strip()
]
