"""Code-generation service client (OpenAI-compatible chat completions).

Submits a GenerationRequest and returns the raw reply text. Every failure
(timeout, connection error, non-200, malformed body) surfaces as
GenerationServiceError. No retries: retry policy belongs to the caller.

Environment:
    GENERATION_API_KEY: bearer token for the service (required)
    GENERATION_API_URL: chat completions endpoint
    GENERATION_MODEL: model name sent with each request
"""

import logging
from typing import Any, Dict, Optional

from handoff.config import GENERATION_API_KEY, GENERATION_API_URL, GENERATION_MODEL
from handoff.errors import GenerationServiceError
from handoff.integrations.http_base import ServiceClient
from handoff.prompts.generation_prompt import GenerationRequest
from handoff.settings import (
    GENERATION_MAX_TOKENS,
    GENERATION_TEMPERATURE,
    GENERATION_TIMEOUT,
)

logger = logging.getLogger("handoff.integrations.generation")


class GenerationClient(ServiceClient):
    """Async chat-completions client.

    Args:
        api_key: Falls back to GENERATION_API_KEY env var.
        url: Full chat completions URL.
        model: Model name.
        timeout: HTTP request timeout in seconds.
    """

    service = "Generation service"
    error_class = GenerationServiceError

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: str = GENERATION_API_URL,
        model: str = GENERATION_MODEL,
        timeout: float = GENERATION_TIMEOUT,
    ):
        super().__init__(timeout)
        self._api_key = api_key or GENERATION_API_KEY
        if not self._api_key:
            raise GenerationServiceError(
                "Generation API key not configured. Set GENERATION_API_KEY "
                "environment variable or pass api_key= to GenerationClient()."
            )
        self._url = url
        self._model = model

    def _client_options(self) -> Dict[str, Any]:
        return {
            "headers": {
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
        }

    def _payload(self, request: GenerationRequest) -> Dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_prompt},
            ],
            "temperature": GENERATION_TEMPERATURE,
            "max_tokens": GENERATION_MAX_TOKENS,
        }

    async def generate(self, request: GenerationRequest) -> str:
        """Submit the request and return the first choice's message text."""
        resp = await self._send("post", self._url, json=self._payload(request))
        data = self._json(resp, self._url)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"generate: malformed response body: {e}")
            raise GenerationServiceError("Generation service returned a malformed body") from e

        if not isinstance(content, str) or not content.strip():
            raise GenerationServiceError("Generation service returned empty content")

        usage = data.get("usage") or {}
        logger.info(
            f"generate: model={self._model}, "
            f"tokens={usage.get('total_tokens', 'n/a')}, chars={len(content)}"
        )
        return content
