from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql+psycopg2://mindhaven:mindhaven@db:5432/mindhaven"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Bearer tokens are HS256 JWTs whose `sub` claim is the user id.
    SECRET_KEY: str = "changeme-secret-key"
    JWT_ALGORITHM: str = "HS256"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    # Classification service (OpenAI-compatible chat completions endpoint).
    LLM_API_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "google/gemini-2.5-flash"
    LLM_TIMEOUT_SECONDS: float = 30.0

    RISK_LOOKBACK_DAYS: int = 7
    ASSESSMENT_INTERVAL_HOURS: int = 24

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
