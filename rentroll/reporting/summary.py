"""Human-readable summary of matching statistics."""

import json

from rentroll.config.settings import Settings
from rentroll.extraction.client_base import BaseExtractionClient
from rentroll.extraction.exceptions import ExtractionError
from rentroll.extraction.factory import UnitExtractorFactory
from rentroll.logging.logger import Log
from rentroll.matching.models import MatchingStats

SUMMARY_SYSTEM_PROMPT = """You are a due diligence analyst. Given the matching results \
between a PDF rent roll and a portfolio database, generate a brief summary.

Guidelines:
- Generate 3-5 concise bullet points
- Focus on actionable insights
- Mention specific numbers (units matched, missing, confidence levels)
- Be professional and direct
- If there are low confidence matches, recommend review"""

SUMMARY_SCHEMA: dict[str, object] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["bulletPoints"],
    "properties": {"bulletPoints": {"type": "array", "items": {"type": "string"}}},
}

REVIEW_CONFIDENCE_PERCENT = 85


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def fallback_summary(stats: MatchingStats) -> str:
    bullets: list[str] = []
    confident = stats.matched + stats.fuzzy
    if confident > 0:
        bullets.append(f"{_plural(confident, 'unit')} matched with your portfolio")
    if stats.missing > 0:
        bullets.append(f"{_plural(stats.missing, 'unit')} from the document not found in portfolio")
    if stats.extra > 0:
        bullets.append(f"{_plural(stats.extra, 'portfolio unit')} not referenced in document")
    if stats.avg_confidence > 0:
        percent = round(stats.avg_confidence * 100)
        bullets.append(f"Average match confidence: {percent}%")
        if percent < REVIEW_CONFIDENCE_PERCENT:
            bullets.append("Some matches have lower confidence - review recommended")
    return "\n".join(bullets) or "Analysis complete."


class Summarizer:
    """Deterministic bullet summary."""

    def summarize(self, stats: MatchingStats) -> str:
        return fallback_summary(stats)


class LlmSummarizer(Summarizer):
    """Asks the AI provider for bullet points; falls back to the deterministic summary."""

    def __init__(self, *, client: BaseExtractionClient, model: str, temperature: float = 0.2) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature

    def summarize(self, stats: MatchingStats) -> str:
        prompt = (
            "Matching results:\n"
            f"- Total units in PDF: {stats.total_pdf_units}\n"
            f"- Total units in database: {stats.total_db_units}\n"
            f"- Matched units: {stats.matched}\n"
            f"- Fuzzy matches: {stats.fuzzy}\n"
            f"- Missing from database: {stats.missing}\n"
            f"- Extra in database (not in PDF): {stats.extra}\n"
            f"- Average confidence: {round(stats.avg_confidence * 100)}%"
        )
        try:
            raw = self._client.create_chat_completion(
                model=self._model,
                temperature=self._temperature,
                system_prompt=SUMMARY_SYSTEM_PROMPT,
                user_prompt=prompt,
                json_schema=SUMMARY_SCHEMA,
            )
            bullets = json.loads(raw).get("bulletPoints")
        except (ExtractionError, ValueError, AttributeError) as exc:
            Log.warning(f"Summary generation failed, using fallback: {exc}")
            return fallback_summary(stats)
        if not isinstance(bullets, list) or not bullets:
            return fallback_summary(stats)
        return "\n".join(str(bullet) for bullet in bullets)


def build_summarizer(settings: Settings) -> Summarizer:
    provider = settings.summary_provider.lower()
    if provider == "none":
        return Summarizer()
    if provider == "llm":
        return LlmSummarizer(
            client=UnitExtractorFactory.create_client(settings),
            model=UnitExtractorFactory.resolve_model_name(
                settings.extraction_provider.lower(), settings
            ),
        )
    raise ValueError(f"Unknown summary provider '{provider}'. Choose from: ['none', 'llm']")
