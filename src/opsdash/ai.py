"""Summary: AI provider abstraction and the insight summarizer.

Importance: Turns normalized provider data into structured insights and ad strategies.
Alternatives: Call provider SDKs directly in each service.
"""

from __future__ import annotations

import json
import logging
import re
import time
import http.client
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from opsdash.config import AppConfig
from opsdash.models import AdSetInsight, AdStrategy, BusinessInsight


logger = logging.getLogger(__name__)

IMPACT_LEVELS = ("high", "medium", "low")

BUSINESS_INSIGHTS = "business_insights"
MARKETING_STRATEGY = "marketing_strategy"


class AiProvider(ABC):
    """Summary: Abstract interface for AI text generation.

    Importance: Allows switching between local and cloud LLMs without refactors.
    Alternatives: Use a single vendor SDK and accept lock-in risk.
    """

    @abstractmethod
    def generate_text(self, prompt: str, purpose: str) -> tuple[str, int]:
        """Summary: Generate a response for a prompt.

        Importance: Standardizes AI outputs for downstream services.
        Alternatives: Return provider-specific response objects directly.
        """


class MockAiProvider(AiProvider):
    """Summary: Deterministic AI provider for local testing.

    Importance: Enables offline dashboards and repeatable tests.
    Alternatives: Use a small local LLM for all development tasks.
    """

    def generate_text(self, prompt: str, purpose: str) -> tuple[str, int]:
        """Summary: Return canned JSON shaped for the requested purpose.

        Importance: Exercises the summarizer parsing path without external dependencies.
        Alternatives: Use fixture-based responses loaded from files.
        """

        started = time.time()
        if purpose == MARKETING_STRATEGY:
            reply: Any = {
                "winner": "n/a",
                "reasoning": f"[mock:{purpose}] {prompt[:120]}",
                "tacticalAdvice": ["Review cost per conversion weekly"],
                "scalingPotential": "low",
            }
        else:
            reply = [
                {
                    "title": "Mock insight",
                    "description": f"[mock:{purpose}] {prompt[:120]}",
                    "recommendation": "Connect a real AI provider for live analysis.",
                    "impact": "low",
                }
            ]
        latency_ms = int((time.time() - started) * 1000)
        return json.dumps(reply), latency_ms


class OllamaProvider(AiProvider):
    """Summary: AI provider that targets a local Ollama server.

    Importance: Keeps business data on local hardware.
    Alternatives: Use llama.cpp directly with a Python binding.
    """

    def __init__(self, base_url: str, model: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model

    def generate_text(self, prompt: str, purpose: str) -> tuple[str, int]:
        """Summary: Generate JSON text using the Ollama HTTP API.

        Importance: Enables local inference for dashboard summaries.
        Alternatives: Use Ollama's CLI and parse its output.
        """

        payload = json.dumps(
            {"model": self._model, "prompt": prompt, "stream": False, "format": "json"}
        )
        request = urllib.request.Request(
            url=f"{self._base_url}/api/generate",
            data=payload.encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        started = time.time()
        try:
            with urllib.request.urlopen(request, timeout=60) as response:
                raw = json.loads(response.read().decode("utf-8"))
        except (OSError, http.client.HTTPException) as exc:
            raise RuntimeError(f"Ollama request failed: {exc}") from exc
        latency_ms = int((time.time() - started) * 1000)
        if not isinstance(raw, dict):
            raise RuntimeError("Ollama returned an unexpected payload")
        return raw.get("response", ""), latency_ms


class OpenAiProvider(AiProvider):
    """Summary: AI provider using OpenAI's chat completion API.

    Importance: Enables higher-quality analysis when configured.
    Alternatives: Use other cloud providers or a local model.
    """

    def __init__(self, api_key: str, model: str) -> None:
        self._api_key = api_key
        self._model = model

    def generate_text(self, prompt: str, purpose: str) -> tuple[str, int]:
        """Summary: Generate JSON text using OpenAI chat completions.

        Importance: Enables cloud-grade reasoning for strategy suggestions.
        Alternatives: Use the responses API or a different provider.
        """

        payload = {
            "model": self._model,
            "messages": [
                {
                    "role": "system",
                    "content": f"You are a business analyst. Task: {purpose}. Reply with JSON only.",
                },
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
        }
        request = urllib.request.Request(
            url="https://api.openai.com/v1/chat/completions",
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
            method="POST",
        )
        started = time.time()
        try:
            with urllib.request.urlopen(request, timeout=60) as response:
                raw = json.loads(response.read().decode("utf-8"))
        except (OSError, http.client.HTTPException) as exc:
            raise RuntimeError(f"OpenAI request failed: {exc}") from exc
        latency_ms = int((time.time() - started) * 1000)
        try:
            content = raw["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RuntimeError(f"OpenAI reply has no message content: {exc!r}") from exc
        return content, latency_ms


@dataclass(frozen=True)
class AiProviderFactory:
    """Summary: Factory for selecting AI providers from configuration.

    Importance: Keeps provider selection logic centralized.
    Alternatives: Wire providers manually at the application entrypoint.
    """

    config: AppConfig

    def build(self) -> AiProvider:
        if self.config.ai_provider == "ollama":
            return OllamaProvider(self.config.ollama_url, self.config.ollama_model)
        if self.config.ai_provider == "openai":
            if not self.config.openai_api_key:
                raise ValueError("OPENAI_API_KEY is required for openai provider")
            return OpenAiProvider(self.config.openai_api_key, self.config.openai_model)
        return MockAiProvider()


@dataclass(frozen=True)
class InsightSummarizer:
    """Summary: Produces structured insights and ad strategies from provider data.

    Importance: Summaries are optional; failures degrade to empty results instead of breaking views.
    Alternatives: Surface AI failures to the user as errors.
    """

    provider: AiProvider

    def business_insights(self, data: dict[str, Any]) -> list[BusinessInsight]:
        """Summary: Ask for three actionable insights about business data.

        Importance: Adds commentary to the analytics dashboard.
        Alternatives: Compute rule-based highlights.
        """

        prompt = (
            "Analyze the following business data and provide 3 actionable insights as a JSON "
            'array of objects with keys "title", "description", "recommendation" and "impact" '
            f'("high", "medium" or "low"): {json.dumps(data)}'
        )
        parsed = self._generate_json(prompt, BUSINESS_INSIGHTS)
        if not isinstance(parsed, list):
            return []
        insights = [_business_insight(item) for item in parsed if isinstance(item, dict)]
        logger.info("Generated %s business insights.", len(insights))
        return insights

    def marketing_strategy(self, ad_sets: list[AdSetInsight]) -> AdStrategy | None:
        """Summary: Pick the winning ad set and suggest next steps.

        Importance: Turns ad metrics into a short action plan.
        Alternatives: Rank ad sets by ROI without commentary.
        """

        data = [item.to_dict() for item in ad_sets]
        prompt = (
            "You are a world-class ad strategist. Analyze these ad sets and pick the winning one. "
            'Reply with a JSON object with keys "winner", "reasoning", "tacticalAdvice" '
            '(3-4 specific steps) and "scalingPotential" ("high", "medium" or "low"). '
            f"Data: {json.dumps(data)}"
        )
        parsed = self._generate_json(prompt, MARKETING_STRATEGY)
        if not isinstance(parsed, dict):
            return None
        advice = parsed.get("tacticalAdvice")
        return AdStrategy(
            winner=str(parsed.get("winner", "")),
            reasoning=str(parsed.get("reasoning", "")),
            tactical_advice=[str(step) for step in advice] if isinstance(advice, list) else [],
            scaling_potential=_level(parsed.get("scalingPotential")),
        )

    def _generate_json(self, prompt: str, purpose: str) -> Any | None:
        try:
            text, latency_ms = self.provider.generate_text(prompt, purpose)
        except (RuntimeError, KeyError, ValueError) as exc:
            logger.warning("AI request for %s failed: %s", purpose, exc)
            return None
        logger.info("AI %s responded in %s ms.", purpose, latency_ms)
        return parse_json_reply(text)


def parse_json_reply(text: str) -> Any | None:
    """Summary: Parse a JSON reply, tolerating markdown code fences.

    Importance: Chat models often wrap JSON in ```json fences.
    Alternatives: Require providers that enforce a response schema.
    """

    cleaned = re.sub(r"^```(?:json)?\s*|\s*```$", "", text.strip())
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Discarding AI reply that is not valid JSON.")
        return None


def _business_insight(item: dict[str, Any]) -> BusinessInsight:
    return BusinessInsight(
        title=str(item.get("title", "")),
        description=str(item.get("description", "")),
        recommendation=str(item.get("recommendation", "")),
        impact=_level(item.get("impact")),
    )


def _level(value: Any) -> str:
    level = str(value or "").strip().lower()
    return level if level in IMPACT_LEVELS else "low"
