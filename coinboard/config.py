import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised when a setting required to start the service is missing or invalid."""


@dataclass
class Settings:
    database_url: str = ""
    host: str = "0.0.0.0"
    port: int = 8000
    api_prefix: str = "/api/go"
    cmc_api_key: str = ""
    cmc_base_url: str = ""
    cmc_latest_quotes_path: str = ""
    quote_timeout_seconds: float = 5.0
    db_ready_attempts: int = 30
    db_ready_interval_seconds: float = 1.0
    log_level: str = "INFO"

    def missing_quote_setting(self) -> Optional[str]:
        """Return the env name of the first unset quote setting, if any."""
        required = (
            ("X-CMC_PRO_API_KEY", self.cmc_api_key),
            ("CMC_BASE_URL", self.cmc_base_url),
            ("CMC_LATEST_QUOTES_PATH", self.cmc_latest_quotes_path),
        )
        for name, value in required:
            if not value:
                return name
        return None


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", ""),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int_env("PORT", 8000),
        api_prefix=os.getenv("API_PREFIX", "/api/go").rstrip("/"),
        cmc_api_key=os.getenv("X-CMC_PRO_API_KEY", ""),
        cmc_base_url=os.getenv("CMC_BASE_URL", ""),
        cmc_latest_quotes_path=os.getenv("CMC_LATEST_QUOTES_PATH", ""),
        quote_timeout_seconds=_float_env("CMC_TIMEOUT_SECONDS", 5.0),
        db_ready_attempts=_int_env("DB_READY_ATTEMPTS", 30),
        db_ready_interval_seconds=_float_env("DB_READY_INTERVAL_SECONDS", 1.0),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


settings = load_settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings."""
    return settings
