"""
Narrative recommendations via an external language model.

Two call sites:
- retention_note(): a 2-3 sentence pastoral outreach suggestion for one member
- strategic_recommendations(): 3-5 {title, description} items for the cohort

The collaborator is optional and untrusted. Every failure (no client,
HTTP error, timeout, empty or unparseable output) resolves to a fixed
deterministic fallback; callers only ever receive text.

Example:
    >>> generator = NarrativeGenerator(OpenAIChatClient())
    >>> generator.retention_note("Ada Lovelace", ["45 days inactive"], "Active in: prayer")
"""

import json
import logging
import os
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Optional

import requests

from .config import DEFAULT_CONFIG, PredictionConfig
from .errors import NarrativeGenerationFailed

logger = logging.getLogger(__name__)


FALLBACK_NOTE = "Consider a personal phone call or email to check in on their spiritual journey."

FALLBACK_RECOMMENDATIONS = [
    {
        "title": "Focus on At-Risk Members",
        "description": "Prioritize personal outreach to members showing declining engagement in the last 30 days.",
    },
    {
        "title": "Create Requested Content",
        "description": "Address the content gaps identified by member searches to improve engagement.",
    },
    {
        "title": "Strengthen Community Connections",
        "description": "Encourage members to join small groups or community features to build lasting relationships.",
    },
]

RETENTION_SYSTEM_PROMPT = (
    "You are an assistant helping a ministry care for its members. "
    "Generate a brief, actionable pastoral recommendation (2-3 sentences) for re-engaging a member. "
    "Focus on spiritual care and genuine connection, not sales tactics."
)

STRATEGY_SYSTEM_PROMPT = (
    "You are a ministry growth strategist. "
    "Provide 3-5 specific, actionable strategic recommendations based on the analytics data. "
    "Focus on spiritual growth, member engagement, and sustainable ministry growth. "
    "Keep each recommendation brief (1-2 sentences) and actionable. "
    'Format as a JSON array of objects with "title" and "description" fields.'
)


class NarrativeClient(ABC):
    """A text-generation collaborator."""

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
    ) -> str:
        """
        Generate text.

        Raises:
            NarrativeGenerationFailed: On any failure
        """
        pass


@dataclass
class OpenAIConfig:
    """Configuration for an OpenAI-compatible chat completions endpoint."""
    api_key: str
    model: str = "gpt-4o"
    base_url: str = "https://api.openai.com/v1"
    max_retries: int = 2
    retry_delay: float = 1.0

    @classmethod
    def from_env(cls) -> "OpenAIConfig":
        return cls(
            api_key=os.getenv("OPENAI_API_KEY", ""),
            model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        )


class OpenAIChatClient(NarrativeClient):
    """Chat completions over HTTP with retry on rate limits and server errors."""

    RETRYABLE_STATUS = (429, 500, 502, 503, 504)

    def __init__(self, config: Optional[OpenAIConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or OpenAIConfig.from_env()
        if not self.config.api_key:
            raise NarrativeGenerationFailed("OPENAI_API_KEY not set")
        self.session = session or requests.Session()
        logger.info("OpenAIChatClient initialized with model: %s", self.config.model)

    def complete(self, system_prompt, prompt, max_tokens, temperature, timeout) -> str:
        body = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        data = self._post(body, timeout)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise NarrativeGenerationFailed(f"Malformed completion response: {e}") from e
        return content or ""

    def _post(self, body: dict, timeout: float) -> dict:
        endpoint = f"{self.config.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        last_error = "no attempt made"
        for attempt in range(self.config.max_retries + 1):
            try:
                response = self.session.post(endpoint, json=body, headers=headers, timeout=timeout)
            except requests.RequestException as e:
                last_error = str(e)
                logger.warning("Completion request failed (attempt %d): %s", attempt + 1, e)
            else:
                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise NarrativeGenerationFailed(f"Invalid JSON from completion API: {e}") from e
                if response.status_code not in self.RETRYABLE_STATUS:
                    raise NarrativeGenerationFailed(
                        f"Completion API error {response.status_code}: {response.text[:200]}",
                        status_code=response.status_code,
                    )
                last_error = f"HTTP {response.status_code}"
                logger.warning("Completion API returned %s (attempt %d)", response.status_code, attempt + 1)

            if attempt < self.config.max_retries:
                time.sleep(self.config.retry_delay * (attempt + 1))

        raise NarrativeGenerationFailed(f"Completion API unavailable: {last_error}")


def parse_recommendations(text: Optional[str], max_items: int = DEFAULT_CONFIG.max_recommendations) -> Optional[list[dict]]:
    """
    Extract recommendations from free-form model output.

    Scans for the first well-formed JSON array in the text and keeps the
    objects that carry a non-empty title and description.

    Returns:
        Up to `max_items` {"title", "description"} dicts, or None if the
        text holds no usable array
    """
    if not text:
        return None

    decoder = json.JSONDecoder()
    position = text.find("[")
    while position != -1:
        try:
            items, _ = decoder.raw_decode(text, position)
        except ValueError:
            position = text.find("[", position + 1)
            continue
        if isinstance(items, list):
            recommendations = [
                {"title": str(item["title"]).strip(), "description": str(item["description"]).strip()}
                for item in items
                if isinstance(item, dict)
                and str(item.get("title") or "").strip()
                and str(item.get("description") or "").strip()
            ]
            if recommendations:
                return recommendations[:max_items]
        position = text.find("[", position + 1)
    return None


class NarrativeGenerator:
    """Wraps a NarrativeClient with a timeout and deterministic fallbacks."""

    def __init__(self, client: Optional[NarrativeClient] = None, config: Optional[PredictionConfig] = None):
        self.client = client
        self.config = config or DEFAULT_CONFIG

    def _complete(self, system_prompt: str, prompt: str, max_tokens: int) -> str:
        if self.client is None:
            raise NarrativeGenerationFailed("No narrative client configured")

        timeout = self.config.narrative_timeout
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="narrative")
        try:
            future = pool.submit(
                self.client.complete,
                system_prompt,
                prompt,
                max_tokens,
                self.config.narrative_temperature,
                timeout,
            )
            text = future.result(timeout=timeout)
        except FutureTimeout as e:
            raise NarrativeGenerationFailed(f"Narrative generation timed out after {timeout}s") from e
        except NarrativeGenerationFailed:
            raise
        except Exception as e:
            raise NarrativeGenerationFailed(f"Narrative client error: {e}") from e
        finally:
            # Never wait on a hung collaborator
            pool.shutdown(wait=False)

        if not text or not text.strip():
            raise NarrativeGenerationFailed("Empty narrative response")
        return text.strip()

    def retention_note(self, member_name: str, risk_factors: list[str], engagement_history: str) -> str:
        """Pastoral outreach suggestion for one member. Never raises."""
        prompt = (
            f"Member: {member_name}\n"
            f"Risk factors: {', '.join(risk_factors) or 'none identified'}\n"
            f"Recent engagement: {engagement_history}\n\n"
            "Suggest a specific, personalized way to reach out and reconnect with this member."
        )
        try:
            return self._complete(RETENTION_SYSTEM_PROMPT, prompt, self.config.retention_max_tokens)
        except NarrativeGenerationFailed as e:
            logger.warning("Retention note fallback for %s: %s", member_name, e)
            return FALLBACK_NOTE

    def strategic_recommendations(
        self,
        high_risk_count: int,
        engagement_trend: str,
        content_gap_count: int,
        revenue_trend: str,
    ) -> list[dict]:
        """Cohort-level recommendations. Never raises."""
        prompt = (
            "Current ministry analytics:\n"
            f"- High churn risk members: {high_risk_count}\n"
            f"- Overall engagement trend: {engagement_trend}\n"
            f"- Content gaps identified: {content_gap_count}\n"
            f"- Revenue trend: {revenue_trend}\n\n"
            "Generate strategic recommendations for the next 30 days."
        )
        try:
            text = self._complete(STRATEGY_SYSTEM_PROMPT, prompt, self.config.strategy_max_tokens)
        except NarrativeGenerationFailed as e:
            logger.warning("Strategic recommendations fallback: %s", e)
            return fallback_recommendations()

        recommendations = parse_recommendations(text, self.config.max_recommendations)
        if recommendations is None:
            logger.warning("Strategic recommendations fallback: unparseable response")
            return fallback_recommendations()
        return recommendations


def fallback_recommendations() -> list[dict]:
    return [dict(item) for item in FALLBACK_RECOMMENDATIONS]
