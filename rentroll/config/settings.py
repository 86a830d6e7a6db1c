from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "rentroll"
    db_username: str = "rentroll"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    job_store_backend: str = "postgres"
    max_job_attempts: int = 3
    job_poll_interval_seconds: int = 5
    events_poll_interval_seconds: float = 2.0
    worker_concurrency: int = 1

    backoff_policy: str = "exponential"
    backoff_base_seconds: float = 10.0
    backoff_factor: float = 3.0
    backoff_max_seconds: float = 900.0

    files_root: str = "/app/files"
    max_upload_bytes: int = 10 * 1024 * 1024

    pdf_engine: str = "pdfplumber"
    extraction_max_chars: int = 20_000

    extraction_provider: str = "openai"
    extraction_temperature: float = 0.1
    extraction_openai_api_key: str = ""
    extraction_openai_model_name: str = "gpt-4o-mini"
    extraction_openai_timeout_seconds: int = 60
    extraction_openai_compatible_base_url: str = ""
    extraction_openai_compatible_api_key: str = ""
    extraction_openai_compatible_model_name: str = ""
    extraction_openai_compatible_timeout_seconds: int = 60
    extraction_openrouter_api_key: str = ""
    extraction_openrouter_model_name: str = ""
    extraction_groq_api_key: str = ""
    extraction_groq_model_name: str = ""
    extraction_together_api_key: str = ""
    extraction_together_model_name: str = ""
    extraction_deepseek_api_key: str = ""
    extraction_deepseek_model_name: str = ""
    extraction_ollama_api_key: str = "ollama"
    extraction_ollama_model_name: str = ""
    extraction_hosted_timeout_seconds: int = 60

    summary_provider: str = "none"

    stage_timeout_seconds: int = 120

    match_min_confidence: float = 0.5
    match_high_confidence: float = 0.85

    api_host: str = "127.0.0.1"
    api_port: int = 8000
