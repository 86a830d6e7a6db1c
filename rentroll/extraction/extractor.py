"""AI-powered rent-roll unit extractor."""

import json
from pathlib import Path

from rentroll.extraction.base import BaseUnitExtractor
from rentroll.extraction.client_base import BaseExtractionClient
from rentroll.extraction.exceptions import ExtractionValidationError
from rentroll.extraction.models import ExtractionResult
from rentroll.extraction.prompt_loader import load_json_schema, load_prompt_template
from rentroll.extraction.validator import validate_and_build
from rentroll.logging.logger import Log


class UnitExtractor(BaseUnitExtractor):
    """Extracts candidate units from document text using an AI provider."""

    DEFAULT_SYSTEM_PROMPT = (
        "You are a document parser specializing in real estate rent rolls. "
        "Respond with JSON only."
    )

    def __init__(
        self,
        *,
        client: BaseExtractionClient,
        model: str,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._system_prompt = system_prompt
        self._prompt_template = load_prompt_template(prompt_template_path)
        schema_str = load_json_schema(json_schema_path)
        self._json_schema = schema_str
        self._json_schema_dict = json.loads(schema_str)

    @property
    def temperature(self) -> float:
        return self._temperature

    def extract(self, text: str) -> ExtractionResult:
        if not text.strip():
            return ExtractionResult()
        prompt = self._build_prompt(text)
        Log.debug(f"Extraction prompt is {len(prompt)} chars")

        raw_response = self._call_ai(prompt)
        Log.debug(f"AI raw response:\n{raw_response}")

        parsed = self._parse_json(raw_response)
        result = validate_and_build(parsed)

        Log.info(
            f"Extraction complete: {len(result.units)} units, "
            f"{result.dropped_count} dropped, property={'yes' if result.property else 'no'}"
        )
        return result

    def _build_prompt(self, text: str) -> str:
        return self._prompt_template.format(
            document_text=text,
            json_schema=self._json_schema,
        )

    def _call_ai(self, prompt: str) -> str:
        return self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_schema=self._json_schema_dict,
        )

    @staticmethod
    def _parse_json(raw: str) -> dict[str, object]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise ExtractionValidationError(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise ExtractionValidationError("JSON response must be an object")
        return parsed
