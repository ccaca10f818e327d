from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

# Get the project root directory (parent of loyalty directory)
PROJECT_ROOT = Path(__file__).parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Database
    DB_DSN: str
    DB_POOL_MIN_SIZE: int = 1
    DB_POOL_MAX_SIZE: int = 10
    RUN_MIGRATIONS_ON_STARTUP: bool = True

    # Environment and security settings
    ENVIRONMENT: str  # Required: development, staging, production or test
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Service bind address and port
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    # Proxies whose X-Forwarded-For uvicorn trusts when setting the client address
    FORWARDED_ALLOW_IPS: str = "127.0.0.1"
    API_PREFIX: str = "/api/v1"

    # Optional: API Key for service-to-service authentication
    API_KEY: str | None = None

    # Optional: CORS (if needed for direct frontend access)
    CORS_ALLOWED_ORIGINS: str = "*"

    # Rate limiting (slowapi / limits syntax)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/15minutes"
    RATE_LIMIT_CHECK_IN: str = "20/15minutes"
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Burst guard and request limits
    BURST_GUARD_ENABLED: bool = True
    MAX_BODY_SIZE: int = 1024 * 1024

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

settings = Settings()
