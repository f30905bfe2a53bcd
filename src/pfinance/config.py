from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Database (single local file)
    database_url: str = "sqlite+aiosqlite:///./data/pfinance.db"
    db_echo: bool = False

    # Money / amounts (all amounts are integer minor units)
    currency: str = "EUR"
    currency_minor_unit: int = 2
    default_account_balance: int = 100000
    max_abs_balance: int = 100_000_000

    # Balance reconciliation thresholds (minor units, inclusive upper bound)
    balance_alert_threshold: int = 5000
    balance_high_threshold: int = 20000

    # Categorization
    fallback_category: str = "Altro"

    # LLM insights (OpenRouter speaks the OpenAI API)
    openrouter_api_key: str | None = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    ai_models: list[str] = [
        "deepseek/deepseek-r1-0528:free",
        "google/gemini-2.0-flash-exp:free",
        "google/gemini-2.0-flash-001",
    ]
    ai_temperature: float = 0.7
    ai_max_tokens: int = 1200
    ai_timeout_seconds: int = 30
    ai_rate_limit_max: int = 10
    ai_rate_limit_window_seconds: int = 60
    ai_chat_history_limit: int = 20


settings = Settings()
