"""Application configuration via pydantic-settings.

Loads all settings from environment variables with sensible defaults.
A global `settings` object is available for import throughout the app.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Storage
    STORAGE_BACKEND: str = "supabase"
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Request tokens
    REQUEST_TOKEN_SECRET: str = ""
    REQUEST_TOKEN_TTL_DAYS: int = 15
    PUBLIC_BASE_URL: str = "http://localhost:3000"

    # Messaging (Resend-compatible email API)
    RESEND_API_KEY: str = ""
    RESEND_API_URL: str = "https://api.resend.com/emails"
    MAIL_FROM: str = "VeriHire <verify@verihire.app>"

    # Identity proof verification (World ID cloud verifier)
    WORLD_APP_ID: str = ""
    WORLD_ACTION_ID: str = "trust-match-verification"
    WORLD_VERIFY_URL: str = "https://developer.worldcoin.org/api/v2/verify"

    # Reasoning collaborator (OpenAI-compatible chat completions)
    LLM_API_URL: str = "https://api.asi1.ai/v1/chat/completions"
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "asi1-mini"

    # Ledger / mint relay
    LEDGER_MINT_URL: str = ""
    LEDGER_API_KEY: str = ""

    # Keyed digests for credentials and attestations
    CREDENTIAL_DIGEST_KEY: str = ""

    # Outbound calls
    COLLABORATOR_TIMEOUT_SECONDS: float = 10.0
    DISPATCH_MAX_WORKERS: int = 4

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    RESEND_INTERVAL_MINUTES: int = 30

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()
