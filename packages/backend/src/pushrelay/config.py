"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with RELAY_ prefix.
No YAML files: env vars (12-factor app style), optionally collected in a
.env file in the working directory. Real env vars win over .env.

Learn: The only file the service ever reads at startup is the Firebase
service-account JSON, and only its *path* lives here. A missing file is
not a configuration error: the relay runs without push delivery.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via RELAY_* env vars."""

    # Credential directory (device tokens)
    database_url: str = "sqlite+aiosqlite:///./tokens.db"

    # Redis (cross-process live fan-out + rate limiting), optional
    redis_url: str = "redis://localhost:6379/0"
    redis_enabled: bool = True

    # Firebase Cloud Messaging
    firebase_service_account_path: str = "./firebase-service-account.json"

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    # CORS
    cors_origins: list[str] = ["*"]

    # Rate limiting
    rate_limit_rpm: int = 300  # requests per minute per IP
    rate_limit_token_rpm: int = 30  # stricter limit for token writes

    # Recipient queue bound per identity (0 = unbounded)
    queue_max_messages: int = 0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = {"env_prefix": "RELAY_", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def validate_limits(self):
        """Reject settings the relay cannot honour."""
        if self.queue_max_messages < 0:
            raise ValueError(
                "RELAY_QUEUE_MAX_MESSAGES must be 0 (unbounded) or a positive integer"
            )
        if self.rate_limit_rpm <= 0 or self.rate_limit_token_rpm <= 0:
            raise ValueError("Rate limits must be positive")
        return self


# Singleton, import this everywhere
settings = Settings()
