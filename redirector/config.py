import os
from dataclasses import dataclass


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _cache_enabled_default() -> str:
    # the cache is on by default only when a Redis server was configured
    return "true" if os.getenv("REDIS_URL") else "false"


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./redirector.db")
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    cache_enabled: bool = _env_flag("CACHE_ENABLED", _cache_enabled_default())
    id_length: int = int(os.getenv("ID_LENGTH", "7"))
    id_max_attempts: int = int(os.getenv("ID_MAX_ATTEMPTS", "10"))
    # 3 days
    default_ttl_seconds: int = int(os.getenv("DEFAULT_TTL_SECONDS", str(60 * 60 * 24 * 3)))
    sweep_interval_seconds: int = int(os.getenv("SWEEP_INTERVAL_SECONDS", "60"))
    db_connect_attempts: int = int(os.getenv("DB_CONNECT_ATTEMPTS", "30"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
