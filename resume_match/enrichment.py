"""
AI Enrichment Module

Uses PhiData + OpenAI to write a summary, a missing-skill list and resume
bullet improvements. Output is stored verbatim; nothing here affects scores.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from phi.agent import Agent
from phi.model.openai import OpenAIChat

from .config import LLM_CONFIG
from .errors import EnrichmentUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Enrichment:
    summary: Optional[str] = None
    missing_skills: List[str] = field(default_factory=list)
    bullet_improvements: List[str] = field(default_factory=list)


class TextGenerator(ABC):
    """Abstract base class for text-generation providers."""

    @abstractmethod
    def generate(
        self,
        job_description: str,
        resume_text: str,
        signals: Dict[str, Any],
    ) -> Enrichment:
        """
        Produce AI enrichment for one analysis.

        Args:
            job_description: Full job description text
            resume_text: Full resume text
            signals: Computed keyword/semantic signals used as prompt context

        Returns:
            Enrichment with summary, missing skills and bullet improvements

        Raises:
            EnrichmentUnavailable: If the provider fails or returns unusable output
        """
        raise NotImplementedError


def get_model_config(model_name: str, temperature: float = 0) -> Dict[str, Any]:
    """
    Get model configuration with temperature support check.
    Some models don't support custom temperature.
    """
    config = {"id": model_name}

    # Models that don't support temperature customization
    models_without_temperature = ["o1", "o1-mini", "o1-preview", "gpt-5-mini", "gpt-5"]

    model_lower = model_name.lower()
    supports_temperature = not any(no_temp in model_lower for no_temp in models_without_temperature)

    if supports_temperature:
        config["temperature"] = temperature

    # JSON mode support
    if "gpt-4" in model_lower:
        config["response_format"] = {"type": "json_object"}

    return config


def extract_json_from_response(text: str) -> Optional[Dict[str, Any]]:
    """Extract a JSON object from an LLM response, handling markdown fences."""
    if not text:
        return None

    fenced = re.search(r'```(?:json)?\s*\n?(.*?)\n?```', text, re.DOTALL)
    if fenced:
        text = fenced.group(1).strip()

    try:
        data = json.loads(text)
        return data if isinstance(data, dict) else None
    except json.JSONDecodeError:
        pass

    # Outermost braces, for replies with chatter around the object
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        try:
            data = json.loads(text[start:end + 1])
            return data if isinstance(data, dict) else None
        except json.JSONDecodeError:
            return None
    return None


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return []


def parse_enrichment(data: Dict[str, Any]) -> Enrichment:
    """Map the model's JSON onto an Enrichment."""
    summary = data.get("summary")
    return Enrichment(
        summary=str(summary) if summary else None,
        missing_skills=_string_list(data.get("missing_skills")),
        bullet_improvements=_string_list(data.get("bullet_improvements")),
    )


def build_prompt(job_description: str, resume_text: str, signals: Dict[str, Any]) -> str:
    """Build the enrichment prompt from the texts and computed signals."""
    matched = ", ".join(signals.get("matched_keywords", [])) or "none"
    missing = ", ".join(signals.get("missing_keywords", [])) or "none"
    semantic = signals.get("semantic_score")
    semantic_line = f"{semantic:.1f}%" if semantic is not None else "not available"

    return f"""Review how well this resume fits the job description.

Computed signals:
- Keyword match score: {signals.get("match_score", 0):.1f}%
- Semantic similarity score: {semantic_line}
- Matched keywords: {matched}
- Missing keywords: {missing}

Return ONLY a valid JSON object with these keys:
- summary: string, 3-5 sentences on overall fit, strengths and gaps
- missing_skills: array of skills the job needs that the resume does not show
- bullet_improvements: array of rewritten resume bullet points that better target the job

Job Description:
{job_description}

Resume:
{resume_text}
"""


def build_enrichment_agent(model_name: str = None, api_key: str = None, timeout: float = None) -> Agent:
    """Build PhiData agent for resume feedback."""
    model_name = model_name or LLM_CONFIG["model"]
    model_config = get_model_config(model_name, temperature=LLM_CONFIG["temperature"])
    if api_key:
        model_config["api_key"] = api_key
    if timeout:
        model_config["timeout"] = timeout
    # No client-side retries within the enrichment deadline
    model_config["max_retries"] = 0

    return Agent(
        name="Resume Reviewer",
        role="Compare a resume against a job description and suggest improvements",
        model=OpenAIChat(**model_config),
        instructions=[
            "Respond in JSON format with no additional text or markdown.",
            "Return ONLY valid JSON with keys: 'summary', 'missing_skills', 'bullet_improvements'.",
            "Base missing skills on the job description, not on generic advice.",
            "Bullet improvements must stay truthful to the resume content.",
        ],
        show_tool_calls=False,
        markdown=False,
    )


class PhiTextGenerator(TextGenerator):
    """Text generator backed by a PhiData agent."""

    def __init__(
        self,
        model_name: str = None,
        api_key: str = None,
        timeout: float = None,
        agent: Agent = None,
    ):
        self.agent = agent or build_enrichment_agent(model_name, api_key, timeout)

    def generate(self, job_description, resume_text, signals) -> Enrichment:
        prompt = build_prompt(job_description, resume_text, signals)
        try:
            response = self.agent.run(prompt)
        except Exception as e:  # noqa: BLE001
            raise EnrichmentUnavailable(f"Text generation failed: {e}") from e

        if hasattr(response, 'content'):
            response_text = str(response.content)
        else:
            response_text = str(response)
        logger.debug(f"Raw LLM response: {response_text[:500]}...")

        data = extract_json_from_response(response_text)
        if not data:
            raise EnrichmentUnavailable("Could not extract valid JSON from LLM response")
        return parse_enrichment(data)


def get_text_generator(settings) -> Optional[TextGenerator]:
    """Return a PhiTextGenerator when an OpenAI key is configured, else None."""
    if not settings.openai_api_key:
        logger.info("No OPENAI_API_KEY; AI enrichment disabled")
        return None
    try:
        return PhiTextGenerator(
            settings.model_name,
            settings.openai_api_key,
            timeout=settings.enrichment_timeout_seconds,
        )
    except Exception as e:  # noqa: BLE001
        logger.warning(f"Failed to initialise text generator: {e}")
        return None
