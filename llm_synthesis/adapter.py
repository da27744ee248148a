"""LLM adapters for report generation.

Provides a base interface and concrete adapters for the Anthropic and
OpenAI-compatible APIs plus a deterministic mock for testing.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

import anthropic
import openai

logger = logging.getLogger(__name__)


class LLMServiceError(Exception):
    """Raised when the model provider rejects or fails a request.

    Attributes:
        code: Stable error code for API clients.
        status: HTTP status the API layer should answer with.
    """

    def __init__(self, message: str, code: str, status: int) -> None:
        self.message = message
        self.code = code
        self.status = status
        super().__init__(message)

    @classmethod
    def from_status(cls, status: Optional[int]) -> "LLMServiceError":
        """Map a provider HTTP status onto a client-facing error."""
        if status == 401:
            return cls("Invalid LLM API key", "INVALID_API_KEY", 401)
        if status == 429:
            return cls("LLM API rate limit exceeded", "RATE_LIMIT", 429)
        if status == 400:
            return cls("Invalid request to LLM API", "INVALID_REQUEST", 400)
        return cls("LLM API service unavailable", "SERVICE_UNAVAILABLE", 503)


class BaseLLMAdapter(ABC):
    """Interface every model provider implements."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the model's reply to ``prompt`` as plain text.

        Raises:
            LLMServiceError: If the provider rejects or fails the call.
        """


class AnthropicLLMAdapter(BaseLLMAdapter):
    """Adapter for the Anthropic Messages API."""

    def __init__(
        self,
        model: str = "claude-3-5-sonnet-20241022",
        max_tokens: int = 4000,
        api_key: Optional[str] = None,
    ) -> None:
        """Without ``api_key`` the SDK reads ANTHROPIC_API_KEY itself."""
        client_kwargs: dict = {}
        if api_key:
            client_kwargs["api_key"] = api_key

        self._client = anthropic.Anthropic(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens

    def generate(self, prompt: str) -> str:
        try:
            response = self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as exc:
            logger.error("Anthropic API error status=%s: %s", exc.status_code, exc)
            raise LLMServiceError.from_status(exc.status_code) from exc
        except anthropic.APIError as exc:
            logger.error("Anthropic API request failed: %s", exc)
            raise LLMServiceError.from_status(None) from exc

        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )


class OpenAILLMAdapter(BaseLLMAdapter):
    """Chat-completions adapter for OpenAI and compatible gateways.

    Sampling is pinned (temperature 0) so repeated report runs over the
    same tickets produce comparable documents.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 4000,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        client_kwargs: dict = {}
        if api_key:
            client_kwargs["api_key"] = api_key
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = openai.OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens

    def generate(self, prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0,
                top_p=1,
                max_tokens=self._max_tokens,
                stream=False,
            )
        except openai.APIStatusError as exc:
            logger.error("OpenAI API error status=%s: %s", exc.status_code, exc)
            raise LLMServiceError.from_status(exc.status_code) from exc
        except openai.APIError as exc:
            logger.error("OpenAI API request failed: %s", exc)
            raise LLMServiceError.from_status(None) from exc

        return response.choices[0].message.content or ""


# Carries the keys of every report type so it validates against each schema.
_MOCK_RESPONSE = {
    "title": "Mock SLA Performance Report",
    "keyMetrics": [
        {"label": "First Response SLA Compliance", "value": "90.0%", "trend": "stable", "impact": "high"},
    ],
    "criticalFindings": [
        {"finding": "Mock finding for testing purposes.", "impact": "None", "priority": "low"},
    ],
    "recommendations": [
        {"action": "Verify integration with upstream analysis.", "timeline": "immediate", "impact": "None"},
    ],
    "summary": "Mock summary generated without a model call.",
    "overview": {"totalRecords": 0, "timeSpan": "Mock period", "keyTrends": ["Mock trend"]},
    "slaMetrics": {
        "firstResponseSLA": {"compliance": "90.0%", "violations": 1, "total": 10},
        "resolutionSLA": {"compliance": "80.0%", "violations": 2, "total": 10},
    },
    "performanceMetrics": [
        {"metric": "First Response SLA Compliance", "current": "90.0%", "benchmark": "95%", "status": "warning"},
    ],
    "problemAreas": [
        {"area": "Response Time Violations", "volume": 1, "percentage": 10.0, "description": "Mock problem area"},
    ],
    "insights": ["Mock insight for testing purposes."],
    "slides": [
        {
            "title": "Mock Overview",
            "type": "overview",
            "content": {
                "headline": "Mock headline",
                "metrics": [{"label": "Tickets", "value": "10", "highlight": True}],
                "insights": ["Mock slide insight"],
                "visual": "none",
            },
        }
    ],
    "keyMessage": "Mock key message.",
    "callToAction": "Mock call to action.",
}

_MOCK_RESPONSE_JSON = json.dumps(_MOCK_RESPONSE, indent=2)


class MockLLMAdapter(BaseLLMAdapter):
    """Offline adapter selected with LLM_ADAPTER=mock.

    Ignores the prompt and always answers with the same document.
    """

    def generate(self, prompt: str) -> str:
        return _MOCK_RESPONSE_JSON
