import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    ENVIRONMENT = data.get("ENVIRONMENT", "development")
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")

    # Password reset
    RESET_TOKEN_TTL_HOURS = data.get("RESET_TOKEN_TTL_HOURS", 24)
    RESET_TOKEN_BYTES = data.get("RESET_TOKEN_BYTES", 32)
    MAX_RESET_ATTEMPTS = data.get("MAX_RESET_ATTEMPTS", 3)
    RESET_RATE_LIMIT_WINDOW_MINUTES = data.get("RESET_RATE_LIMIT_WINDOW_MINUTES", 60)
    RESET_LINK_BASE_URL = data.get(
        "RESET_LINK_BASE_URL", "http://localhost:3000/reset-password"
    )
    BCRYPT_ROUNDS = data.get("BCRYPT_ROUNDS", 12)

    # Sessions
    SESSION_TOKEN_BYTES = data.get("SESSION_TOKEN_BYTES", 48)
    CONCURRENT_SESSION_THRESHOLD = data.get("CONCURRENT_SESSION_THRESHOLD", 5)
    SESSION_CLEANUP_DAYS = data.get("SESSION_CLEANUP_DAYS", 30)

    STORE_TIMEOUT_SECONDS = data.get("STORE_TIMEOUT_SECONDS", 5.0)
