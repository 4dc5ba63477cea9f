import os
import yaml

from tenantgate.domain.errors import ConfigurationError

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./tenantgate.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    CACHE_BACKEND = data.get("CACHE_BACKEND", "redis")
    CELERY_BROKER_URL = data.get("CELERY_BROKER_URL", "redis://localhost:6379/1")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    APP_NAME = data.get("APP_NAME", "tenantgate")
    APP_URL = data.get("APP_URL", "http://localhost:8000")
    APP_KEY = data.get("APP_KEY", "dev-app-key-change-in-production")
    APP_PREVIOUS_KEYS = data.get("APP_PREVIOUS_KEYS", [])

    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_TTL_MINUTES = int(data.get("JWT_TTL_MINUTES", 60))
    JWT_REFRESH_TTL_MINUTES = int(data.get("JWT_REFRESH_TTL_MINUTES", 20160))

    LOGIN_MAX_ATTEMPTS = int(data.get("LOGIN_MAX_ATTEMPTS", 5))
    LOGIN_DECAY_MINUTES = int(data.get("LOGIN_DECAY_MINUTES", 15))
    MAGIC_LINK_MAX_ATTEMPTS = int(data.get("MAGIC_LINK_MAX_ATTEMPTS", 3))
    MAGIC_LINK_DECAY_MINUTES = int(data.get("MAGIC_LINK_DECAY_MINUTES", 60))
    MAGIC_LINK_EXPIRE_MINUTES = int(data.get("MAGIC_LINK_EXPIRE_MINUTES", 15))
    TWO_FACTOR_CHALLENGE_MINUTES = int(data.get("TWO_FACTOR_CHALLENGE_MINUTES", 10))
    EMAIL_VERIFICATION_EXPIRE_MINUTES = int(
        data.get("EMAIL_VERIFICATION_EXPIRE_MINUTES", 60)
    )

    WEBHOOK_MAX_RETRIES = int(data.get("WEBHOOK_MAX_RETRIES", 3))
    WEBHOOK_RETRY_DELAY = int(data.get("WEBHOOK_RETRY_DELAY", 60))
    WEBHOOK_TIMEOUT_SECONDS = float(data.get("WEBHOOK_TIMEOUT_SECONDS", 30))

    @classmethod
    def validate(cls):
        """Fail fast on settings the service cannot run without"""
        if not cls.JWT_SECRET:
            raise ConfigurationError("JWT_SECRET must be set")
        if not cls.APP_KEY:
            raise ConfigurationError("APP_KEY must be set")
        if cls.CACHE_BACKEND not in ("redis", "memory"):
            raise ConfigurationError(
                f"CACHE_BACKEND must be 'redis' or 'memory', got {cls.CACHE_BACKEND!r}"
            )
        if cls.CACHE_BACKEND == "redis" and not cls.REDIS_URL:
            raise ConfigurationError("REDIS_URL must be set when CACHE_BACKEND is 'redis'")
        if not 0 <= cls.WEBHOOK_MAX_RETRIES <= 10:
            raise ConfigurationError("WEBHOOK_MAX_RETRIES must be between 0 and 10")
        if not 5 <= cls.WEBHOOK_RETRY_DELAY <= 3600:
            raise ConfigurationError("WEBHOOK_RETRY_DELAY must be between 5 and 3600")
