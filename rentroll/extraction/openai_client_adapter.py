import json

import httpx
import openai

from rentroll.extraction.client_base import BaseExtractionClient
from rentroll.extraction.exceptions import (
    ExtractionError,
    ExtractionNetworkError,
    ExtractionValidationError,
)

# Providers whose OpenAI-compatible endpoints reject `json_schema` response formats.
JSON_OBJECT_PROVIDERS = frozenset({"deepseek", "ollama"})


class OpenAIClientAdapter(BaseExtractionClient):
    """Chat client for OpenAI and OpenAI-compatible providers.

    With `strict_schema=False` the schema is appended to the system prompt
    and the provider is only asked for a JSON object.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
        schema_name: str = "unit_extraction_result",
        strict_schema: bool = True,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )
        self._schema_name = schema_name
        self._strict_schema = strict_schema

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        if self._strict_schema:
            response_format: dict[str, object] = {
                "type": "json_schema",
                "json_schema": {"name": self._schema_name, "strict": True, "schema": json_schema},
            }
        else:
            response_format = {"type": "json_object"}
            system_prompt = (
                f"{system_prompt}\n\nRespond with a single JSON object matching this schema:\n"
                f"{json.dumps(json_schema)}"
            )

        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format=response_format,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ExtractionNetworkError(f"AI provider network error: {exc}") from exc
        except openai.RateLimitError as exc:
            raise ExtractionNetworkError(f"AI provider rate limited the request: {exc}") from exc
        except openai.APIError as exc:
            raise ExtractionNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise ExtractionError("AI returned no choices")
        choice = response.choices[0]
        if choice.finish_reason == "length":
            raise ExtractionValidationError(
                "AI response was cut off at the token limit; the document may list too many units"
            )
        if choice.message.content is None:
            raise ExtractionError("AI returned empty response")
        return choice.message.content
