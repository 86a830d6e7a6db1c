from typing import ClassVar

from rentroll.config.settings import Settings
from rentroll.extraction.base import BaseUnitExtractor
from rentroll.extraction.client_base import BaseExtractionClient
from rentroll.extraction.example_client_adapter import ExampleClientAdapter
from rentroll.extraction.extractor import UnitExtractor
from rentroll.extraction.openai_client_adapter import JSON_OBJECT_PROVIDERS, OpenAIClientAdapter


class UnitExtractorFactory:
    """Creates the configured unit extractor and its AI client."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseUnitExtractor:
        """Create a configured unit extractor from application settings."""
        provider = settings.extraction_provider.lower()
        return UnitExtractor(
            client=cls.create_client(settings),
            model=cls.resolve_model_name(provider, settings),
            temperature=cls._resolve_temperature(provider, settings),
        )

    @classmethod
    def create_client(cls, settings: Settings) -> BaseExtractionClient:
        """Create the AI client for the configured provider."""
        provider = settings.extraction_provider.lower()
        if provider == "example":
            return ExampleClientAdapter()
        return OpenAIClientAdapter(
            api_key=cls._resolve_api_key(provider, settings),
            timeout_seconds=cls._resolve_timeout_seconds(provider, settings),
            base_url=cls._resolve_base_url(provider, settings),
            strict_schema=provider not in JSON_OBJECT_PROVIDERS,
        )

    @classmethod
    def resolve_model_name(cls, provider: str, settings: Settings) -> str:
        if provider == "example":
            return "example"
        key_map = {
            "openai": settings.extraction_openai_model_name,
            "openai_compatible": settings.extraction_openai_compatible_model_name,
            "openrouter": settings.extraction_openrouter_model_name,
            "groq": settings.extraction_groq_model_name,
            "together": settings.extraction_together_model_name,
            "deepseek": settings.extraction_deepseek_model_name,
            "ollama": settings.extraction_ollama_model_name,
        }
        return key_map.get(provider, "") or ""

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = (settings.extraction_openai_compatible_base_url or "").strip()
            if not url:
                raise ValueError(
                    "extraction_openai_compatible_base_url is required for "
                    "extraction_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(f"Unknown extraction provider '{provider}'. Choose from: {supported}")

    @classmethod
    def _resolve_api_key(cls, provider: str, settings: Settings) -> str:
        key_map = {
            "openai": settings.extraction_openai_api_key,
            "openai_compatible": settings.extraction_openai_compatible_api_key,
            "openrouter": settings.extraction_openrouter_api_key,
            "groq": settings.extraction_groq_api_key,
            "together": settings.extraction_together_api_key,
            "deepseek": settings.extraction_deepseek_api_key,
            "ollama": settings.extraction_ollama_api_key,
        }
        return key_map.get(provider, "") or ""

    @classmethod
    def _resolve_timeout_seconds(cls, provider: str, settings: Settings) -> int:
        if provider == "openai":
            return settings.extraction_openai_timeout_seconds
        if provider == "openai_compatible":
            return settings.extraction_openai_compatible_timeout_seconds
        return settings.extraction_hosted_timeout_seconds

    @classmethod
    def _resolve_temperature(cls, provider: str, settings: Settings) -> float:
        if provider == "example":
            return 0.0
        return settings.extraction_temperature
